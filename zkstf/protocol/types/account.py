from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List
from .primitives import Address, Hash32, Uint256, Uint64
from .common import DuplicateAccount
from ..config.params import ZERO_HASH

class Account(BaseModel):
    # Mutated in place by the processor; assignments are range checked
    model_config = ConfigDict(validate_assignment=True)

    address: Address
    balance: Uint256 = 0
    nonce: Uint64 = 0

    # Reserved for future extension, never interpreted
    code_hash: Hash32 = ZERO_HASH
    storage_root: Hash32 = ZERO_HASH

    def encode(self) -> bytes:
        from ..codec.canonical import encode_account
        return encode_account(self)


class LedgerSnapshot(BaseModel):
    """
    Ordered account set as supplied by the host. Order is part of the commitment.
    """
    accounts: List[Account] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_addresses(self) -> "LedgerSnapshot":
        seen = set()
        for acc in self.accounts:
            if acc.address in seen:
                raise DuplicateAccount(f"Duplicate account 0x{acc.address.hex()} in snapshot")
            seen.add(acc.address)
        return self
