from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List
from .primitives import Hash32, Uint64
from .tx import Transaction
from ..config.params import ZERO_HASH

class StateTransitionBatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    transactions: List[Transaction] = Field(default_factory=list)
    # Claimed by the caller; advisory only, the executor recomputes the real roots
    old_state_root: Hash32 = ZERO_HASH
    new_state_root: Hash32 = ZERO_HASH
    batch_index: Uint64 = 0

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class TxFailure(BaseModel):
    """A transaction skipped under the skip-and-record failure policy."""
    model_config = ConfigDict(frozen=True)

    index: int
    kind: str
    message: str


class CommitmentRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    old_state_root: Hash32
    new_state_root: Hash32
    batch_index: Uint64
    transaction_count: Uint64
    # One digest per input transaction, in input order
    transaction_hashes: List[Hash32] = Field(default_factory=list)
    # Always empty when the batch runs under the abort policy
    failures: List[TxFailure] = Field(default_factory=list)

    @model_validator(mode="after")
    def _count_matches_hashes(self) -> "CommitmentRecord":
        if self.transaction_count != len(self.transaction_hashes):
            raise ValueError(
                f"transaction_count {self.transaction_count} != {len(self.transaction_hashes)} hashes"
            )
        return self

    def to_bytes(self) -> bytes:
        """Serialized form handed to the host output channel."""
        return self.model_dump_json().encode("utf-8")
