from enum import Enum
from typing import Optional


class FailurePolicy(str, Enum):
    ABORT = "abort"                       # reject the whole batch on first failure
    SKIP_AND_RECORD = "skip_and_record"   # apply valid txs, record failures per index


class CommitmentScheme(str, Enum):
    FLAT = "flat"
    MERKLE = "merkle"


class WireFormat(str, Enum):
    JSON = "json"
    RLP = "rlp"


class ExecutionPhase(str, Enum):
    INITIALIZED = "initialized"
    OLD_ROOT_COMPUTED = "old_root_computed"
    EXECUTING = "executing"
    ALL_APPLIED = "all_applied"
    NEW_ROOT_COMPUTED = "new_root_computed"
    DONE = "done"
    ABORTED = "aborted"


class ProtocolError(Exception):
    pass


class DecodeError(ProtocolError):
    """Malformed or truncated input. Fatal, no output is produced."""
    pass


class DuplicateAccount(ProtocolError):
    pass


class BatchTooLarge(ProtocolError):
    pass


class StateRootMismatch(ProtocolError):
    pass


class ExecutionError(ProtocolError):
    """
    Failure while applying a transaction.

    `tx_index` is filled in by the batch executor once the offending
    position in the batch is known.
    """
    kind = "ExecutionError"

    def __init__(self, message: str, tx_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.tx_index = tx_index

    def __str__(self) -> str:
        if self.tx_index is None:
            return f"{self.kind}: {self.message}"
        return f"{self.kind} at tx {self.tx_index}: {self.message}"


class AccountNotFound(ExecutionError):
    kind = "AccountNotFound"


class InsufficientBalance(ExecutionError):
    kind = "InsufficientBalance"


class ArithmeticOverflow(ExecutionError):
    kind = "ArithmeticOverflow"


class InvalidNonce(ExecutionError):
    kind = "InvalidNonce"
