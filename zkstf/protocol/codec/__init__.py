# MIT License
# Copyright (c) 2025 Hashborn

"""
Canonical Encoder

Deterministic byte serialization of accounts, transactions and batches,
plus the strict inverse used to accept host-supplied input.
"""

from .canonical import (
    encode_account,
    encode_transaction,
    encode_batch,
    decode_account,
    decode_transaction,
    decode_batch,
    decode_batch_json,
)

__all__ = [
    'encode_account',
    'encode_transaction',
    'encode_batch',
    'decode_account',
    'decode_transaction',
    'decode_batch',
    'decode_batch_json',
]
