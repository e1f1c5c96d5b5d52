# MIT License
# Copyright (c) 2025 Hashborn

"""
Prometheus Metrics Exporter

Exports evaluator metrics in Prometheus format.

Metrics:
- Batches executed, by outcome
- Transactions processed, by status
- Batch size and execution time
- Fees charged
- Size of the seeded ledger served by the host
"""

from prometheus_client import Counter, Gauge, Histogram, CollectorRegistry

# Create registry for metrics
metrics_registry = CollectorRegistry()

# ═══════════════════════════════════════════════════════════════════
# BATCH METRICS
# ═══════════════════════════════════════════════════════════════════

batches_total = Counter(
    'zkstf_batches_total',
    'Total number of batches evaluated',
    ['outcome'],  # committed / aborted / rejected
    registry=metrics_registry
)

batch_size = Histogram(
    'zkstf_batch_size',
    'Number of transactions per batch',
    buckets=[0, 1, 5, 10, 50, 100, 500, 1000],
    registry=metrics_registry
)

batch_execution_seconds = Histogram(
    'zkstf_batch_execution_seconds',
    'Wall time spent evaluating a batch',
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 5],
    registry=metrics_registry
)

# ═══════════════════════════════════════════════════════════════════
# TRANSACTION METRICS
# ═══════════════════════════════════════════════════════════════════

transactions_total = Counter(
    'zkstf_transactions_total',
    'Total number of transactions processed',
    ['status'],  # applied / failed
    registry=metrics_registry
)

transaction_failures_total = Counter(
    'zkstf_transaction_failures_total',
    'Transaction failures by error kind',
    ['kind'],
    registry=metrics_registry
)

fees_charged_total = Counter(
    'zkstf_fees_charged_total',
    'Sum of gas_limit * gas_price debited from senders',
    registry=metrics_registry
)

# ═══════════════════════════════════════════════════════════════════
# HOST METRICS
# ═══════════════════════════════════════════════════════════════════

seeded_accounts = Gauge(
    'zkstf_seeded_accounts',
    'Number of accounts in the snapshot the host seeds executors with',
    registry=metrics_registry
)


# ═══════════════════════════════════════════════════════════════════
# HELPER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════

def record_transaction(fee: int):
    transactions_total.labels(status='applied').inc()
    fees_charged_total.inc(fee)


def record_transaction_failure(kind: str):
    transactions_total.labels(status='failed').inc()
    transaction_failures_total.labels(kind=kind).inc()


def record_batch(outcome: str, tx_count: int, elapsed: float):
    """
    Update batch metrics once per invocation.

    Args:
        outcome: 'committed', 'aborted' or 'rejected'
        tx_count: Number of transactions in the input batch
        elapsed: Evaluation time in seconds
    """
    batches_total.labels(outcome=outcome).inc()
    batch_size.observe(tx_count)
    batch_execution_seconds.observe(elapsed)
