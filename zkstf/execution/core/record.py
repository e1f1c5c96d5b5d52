from typing import Iterable, Sequence
from ...protocol.types.batch import CommitmentRecord, TxFailure

def build_commitment_record(
    old_state_root: bytes,
    new_state_root: bytes,
    batch_index: int,
    transaction_hashes: Sequence[bytes],
    failures: Iterable[TxFailure] = (),
) -> CommitmentRecord:
    """Assembles the immutable output record. No computation, no failure modes."""
    return CommitmentRecord(
        old_state_root=old_state_root,
        new_state_root=new_state_root,
        batch_index=batch_index,
        transaction_count=len(transaction_hashes),
        transaction_hashes=list(transaction_hashes),
        failures=list(failures),
    )
