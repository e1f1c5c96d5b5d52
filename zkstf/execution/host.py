# MIT License
# Copyright (c) 2025 Hashborn

"""
Guest entry point.

The surrounding host owns the byte channel: it hands us the serialized
batch and commits whatever bytes we return. Any error propagates and no
output is produced.
"""

import logging
from typing import Optional

from .core.executor import BatchExecutor, Seed
from ..protocol.config.params import ExecutorConfig

logger = logging.getLogger(__name__)


def run_guest(input_bytes: bytes, snapshot: Optional[Seed] = None, config: Optional[ExecutorConfig] = None) -> bytes:
    """
    Read batch -> execute -> serialize record.

    Args:
        input_bytes: Serialized StateTransitionBatch (wire format from config)
        snapshot: Initial ledger; defaults to the profile's genesis ledger
        config: Executor configuration

    Returns:
        Serialized CommitmentRecord bytes to commit
    """
    executor = BatchExecutor(snapshot=snapshot, config=config)
    result = executor.execute_bytes(input_bytes)
    output = result.record.to_bytes()
    logger.debug(f"Committing {len(output)} output bytes for batch {result.record.batch_index}")
    return output
