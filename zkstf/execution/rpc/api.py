from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import Response
from pydantic import ValidationError
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from typing import Optional
from ... import __version__
from ...protocol.types.account import LedgerSnapshot
from ...protocol.types.common import (
    BatchTooLarge,
    CommitmentScheme,
    DecodeError,
    DuplicateAccount,
    ExecutionError,
    StateRootMismatch,
    WireFormat,
)
from ..core.commitment import compute_state_root
from ..core.executor import BatchExecutor
from ..observability.metrics import metrics_registry, seeded_accounts
import logging

logger = logging.getLogger(__name__)

app = FastAPI(title="zkstf Evaluator Host")

# Injected by the node CLI
executor: Optional[BatchExecutor] = None


def _require_executor() -> BatchExecutor:
    if not executor:
        raise HTTPException(status_code=503, detail="Executor not initialized")
    return executor


@app.get("/")
async def root():
    return {"message": "zkstf evaluator host", "version": __version__}

@app.get("/status")
async def get_status():
    ex = _require_executor()
    return {
        "profile": ex.config.to_dict(),
        "seed_state_root": "0x" + ex.seed_root.hex(),
        "seed_accounts": ex.seed_size,
        "phase": ex.phase.value,
    }

@app.post("/execute")
async def execute_batch(request: Request, wire_format: Optional[WireFormat] = None):
    """
    Evaluate one serialized batch (raw request body) against the seeded ledger.

    Returns the commitment record. No record is returned when the batch fails.
    """
    ex = _require_executor()
    body = await request.body()
    try:
        result = ex.execute_bytes(body, wire_format=wire_format)
    except (DecodeError, BatchTooLarge) as e:
        raise HTTPException(status_code=400, detail={"kind": type(e).__name__, "message": str(e)})
    except StateRootMismatch as e:
        raise HTTPException(status_code=422, detail={"kind": "StateRootMismatch", "message": str(e)})
    except ExecutionError as e:
        raise HTTPException(
            status_code=422,
            detail={"kind": e.kind, "tx_index": e.tx_index, "message": e.message},
        )
    return Response(content=result.record.to_bytes(), media_type="application/json")

@app.post("/state_root")
async def state_root(request: Request, scheme: CommitmentScheme = CommitmentScheme.FLAT):
    """Compute the commitment of an arbitrary snapshot (JSON body: {"accounts": [...]})."""
    body = await request.body()
    try:
        snapshot = LedgerSnapshot.model_validate_json(body)
    except (ValidationError, DuplicateAccount) as e:
        raise HTTPException(status_code=400, detail=str(e))
    root_hash = compute_state_root(snapshot.accounts, scheme)
    return {
        "state_root": "0x" + root_hash.hex(),
        "accounts": len(snapshot.accounts),
        "scheme": scheme.value,
    }

@app.get("/metrics")
async def get_metrics():
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    if executor:
        seeded_accounts.set(executor.seed_size)
    return Response(content=generate_latest(metrics_registry), media_type=CONTENT_TYPE_LATEST)
