# MIT License
# Copyright (c) 2025 Hashborn

"""
Observability Module

Provides Prometheus metrics for the state-transition evaluator.
"""

from .metrics import metrics_registry, record_batch

__all__ = ['metrics_registry', 'record_batch']
