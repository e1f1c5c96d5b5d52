# MIT License
# Copyright (c) 2025 Hashborn

"""
Batch Executor

Drives the transaction processor over one batch, strictly in input order:

    initialized -> old_root_computed -> executing(i)... -> all_applied
                -> new_root_computed -> done
    any failure under the abort policy -> aborted (no record)

The executor is seeded once with an initial snapshot. Every invocation runs
on a private clone of that seed, so nothing leaks between invocations and
the seed itself is never mutated.
"""

import logging
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from .ledger import Ledger
from .processor import TransactionProcessor
from .record import build_commitment_record
from ..observability import metrics
from ...protocol.codec.canonical import decode_batch, decode_batch_json
from ...protocol.types.account import Account, LedgerSnapshot
from ...protocol.types.batch import CommitmentRecord, StateTransitionBatch, TxFailure
from ...protocol.types.common import (
    BatchTooLarge,
    ExecutionError,
    ExecutionPhase,
    FailurePolicy,
    StateRootMismatch,
    WireFormat,
)
from ...protocol.config.params import ExecutorConfig, ZERO_HASH, get_profile

logger = logging.getLogger(__name__)

Seed = Union[Ledger, LedgerSnapshot, Iterable[Account]]


@dataclass
class ExecutionResult:
    """
    Outcome of one successful invocation.

    Attributes:
        record: Commitment record for the host to serialize and commit
        post_state: Ledger after all applied transactions (ownership passes to the caller)
    """
    record: CommitmentRecord
    post_state: Ledger


class BatchExecutor:

    def __init__(self, snapshot: Optional[Seed] = None, config: Optional[ExecutorConfig] = None):
        """
        Args:
            snapshot: Initial ledger. Defaults to the profile's genesis ledger.
            config: Executor configuration (defaults to the profile named by $ZKSTF_PROFILE)
        """
        self.config = config or get_profile()
        if snapshot is None:
            self._seed = Ledger.genesis(self.config)
        elif isinstance(snapshot, Ledger):
            self._seed = snapshot.clone()
        elif isinstance(snapshot, LedgerSnapshot):
            self._seed = Ledger.from_snapshot(snapshot)
        else:
            self._seed = Ledger(acc.model_copy(deep=True) for acc in snapshot)

        self.processor = TransactionProcessor(enforce_nonce=self.config.enforce_nonce)
        self.phase = ExecutionPhase.INITIALIZED
        self.current_index: Optional[int] = None
        self.failed_index: Optional[int] = None

    @property
    def seed_root(self) -> bytes:
        return self._seed.compute_state_root(self.config.commitment_scheme)

    @property
    def seed_size(self) -> int:
        return len(self._seed)

    def _enter(self, phase: ExecutionPhase, index: Optional[int] = None):
        self.phase = phase
        self.current_index = index
        if index is None:
            logger.debug(f"Executor phase -> {phase.value}")

    def execute(self, batch: StateTransitionBatch) -> ExecutionResult:
        """
        Evaluates a batch against a fresh copy of the seed ledger.

        Raises:
            BatchTooLarge: batch exceeds max_tx_per_batch
            StateRootMismatch: claimed prior root differs (only with reject_root_mismatch)
            ExecutionError: first failing transaction under the abort policy,
                with `tx_index` set
        """
        started = time.perf_counter()
        tx_count = len(batch.transactions)
        self._enter(ExecutionPhase.INITIALIZED)
        self.failed_index = None

        limit = self.config.max_tx_per_batch
        if limit is not None and tx_count > limit:
            metrics.record_batch('rejected', tx_count, time.perf_counter() - started)
            raise BatchTooLarge(f"Batch {batch.batch_index} has {tx_count} transactions (max {limit})")

        ledger = self._seed.clone()
        scheme = self.config.commitment_scheme

        old_root = ledger.compute_state_root(scheme)
        self._enter(ExecutionPhase.OLD_ROOT_COMPUTED)

        if batch.old_state_root != ZERO_HASH and batch.old_state_root != old_root:
            msg = (f"Claimed prior root 0x{batch.old_state_root.hex()} does not match "
                   f"computed 0x{old_root.hex()}")
            if self.config.reject_root_mismatch:
                metrics.record_batch('rejected', tx_count, time.perf_counter() - started)
                raise StateRootMismatch(msg)
            logger.warning(f"Batch {batch.batch_index}: {msg} (ignored)")

        # Hashes cover every input transaction regardless of outcome
        tx_hashes: List[bytes] = [tx.hash() for tx in batch.transactions]
        failures: List[TxFailure] = []

        for i, tx in enumerate(batch.transactions):
            self._enter(ExecutionPhase.EXECUTING, i)
            try:
                fee = self.processor.apply(ledger, tx)
            except ExecutionError as e:
                e.tx_index = i
                metrics.record_transaction_failure(e.kind)
                if self.config.failure_policy == FailurePolicy.ABORT:
                    self._enter(ExecutionPhase.ABORTED, i)
                    self.failed_index = i
                    metrics.record_batch('aborted', tx_count, time.perf_counter() - started)
                    logger.error(f"Batch {batch.batch_index} aborted: {e}")
                    raise
                logger.warning(f"Batch {batch.batch_index}: skipping tx {i}: {e}")
                failures.append(TxFailure(index=i, kind=e.kind, message=e.message))
                continue
            metrics.record_transaction(fee)

        self._enter(ExecutionPhase.ALL_APPLIED)
        new_root = ledger.compute_state_root(scheme)
        self._enter(ExecutionPhase.NEW_ROOT_COMPUTED)

        record = build_commitment_record(
            old_state_root=old_root,
            new_state_root=new_root,
            batch_index=batch.batch_index,
            transaction_hashes=tx_hashes,
            failures=failures,
        )
        self._enter(ExecutionPhase.DONE)

        elapsed = time.perf_counter() - started
        metrics.record_batch('committed', tx_count, elapsed)
        logger.info(
            f"Batch {batch.batch_index} committed: {tx_count} txs ({len(failures)} skipped), "
            f"root 0x{old_root.hex()[:12]}.. -> 0x{new_root.hex()[:12]}.. in {elapsed * 1000:.1f}ms"
        )
        return ExecutionResult(record=record, post_state=ledger)

    def execute_bytes(self, data: bytes, wire_format: Optional[WireFormat] = None) -> ExecutionResult:
        """Decodes a serialized batch (DecodeError on malformed input) and executes it."""
        wire_format = WireFormat(wire_format or self.config.wire_format)
        if wire_format == WireFormat.RLP:
            batch = decode_batch(data)
        else:
            batch = decode_batch_json(data)
        return self.execute(batch)
