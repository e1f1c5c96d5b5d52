# MIT License
# Copyright (c) 2025 Hashborn

"""Deterministic state-transition evaluator for prove-correct-execution pipelines."""

__version__ = "0.1.0"
