from pydantic import BaseModel, ConfigDict, Field
from .primitives import Address, HexBytes, Uint256, Uint64, to_hex
from ..crypto.hash import sha256

class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_address: Address = Field(alias="from")
    to_address: Address = Field(alias="to")
    value: Uint256 = 0
    data: HexBytes = b""   # opaque, carried through
    nonce: Uint64 = 0      # carried; checked only when nonce enforcement is on
    gas_limit: Uint64 = 0
    gas_price: Uint64 = 0

    @property
    def fee(self) -> int:
        return self.gas_limit * self.gas_price

    def encode(self) -> bytes:
        from ..codec.canonical import encode_transaction
        return encode_transaction(self)

    def hash(self) -> bytes:
        """Digest of the canonical encoding."""
        return sha256(self.encode())

    @property
    def hash_hex(self) -> str:
        return to_hex(self.hash())
