# MIT License
# Copyright (c) 2025 Hashborn

"""
Canonical encoding of ledger entities.

Every field is always encoded, in declaration order, as one RLP item:
fixed-width identifiers and digests at full width, unsigned integers and
byte payloads in their minimal length-prefixed form. Accounts and
transactions are the bare concatenation of their field items; batches are
RLP lists so they can be decoded without out-of-band lengths.
"""

import logging
from typing import Callable, List, Tuple, TypeVar

from pydantic import ValidationError

from . import rlp
from ..config.params import ADDRESS_LENGTH, HASH_LENGTH, U64_MAX, U256_MAX
from ..types.account import Account
from ..types.batch import StateTransitionBatch
from ..types.common import DecodeError
from ..types.tx import Transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")


def encode_account(account: Account) -> bytes:
    return (
        rlp.encode_bytes(account.address)
        + rlp.encode_uint(account.balance)
        + rlp.encode_uint(account.nonce)
        + rlp.encode_bytes(account.code_hash)
        + rlp.encode_bytes(account.storage_root)
    )


def encode_transaction(tx: Transaction) -> bytes:
    return (
        rlp.encode_bytes(tx.from_address)
        + rlp.encode_bytes(tx.to_address)
        + rlp.encode_uint(tx.value)
        + rlp.encode_bytes(tx.data)
        + rlp.encode_uint(tx.nonce)
        + rlp.encode_uint(tx.gas_limit)
        + rlp.encode_uint(tx.gas_price)
    )


def encode_batch(batch: StateTransitionBatch) -> bytes:
    txs_payload = b"".join(rlp.encode_list(encode_transaction(tx)) for tx in batch.transactions)
    return rlp.encode_list(
        rlp.encode_list(txs_payload)
        + rlp.encode_bytes(batch.old_state_root)
        + rlp.encode_bytes(batch.new_state_root)
        + rlp.encode_uint(batch.batch_index)
    )


def _read_account(data: bytes, pos: int) -> Tuple[Account, int]:
    address, pos = rlp.decode_fixed(data, pos, ADDRESS_LENGTH)
    balance, pos = rlp.decode_uint(data, pos, U256_MAX)
    nonce, pos = rlp.decode_uint(data, pos, U64_MAX)
    code_hash, pos = rlp.decode_fixed(data, pos, HASH_LENGTH)
    storage_root, pos = rlp.decode_fixed(data, pos, HASH_LENGTH)
    account = Account(
        address=address,
        balance=balance,
        nonce=nonce,
        code_hash=code_hash,
        storage_root=storage_root,
    )
    return account, pos


def _read_transaction(data: bytes, pos: int) -> Tuple[Transaction, int]:
    from_address, pos = rlp.decode_fixed(data, pos, ADDRESS_LENGTH)
    to_address, pos = rlp.decode_fixed(data, pos, ADDRESS_LENGTH)
    value, pos = rlp.decode_uint(data, pos, U256_MAX)
    payload, pos = rlp.decode_string(data, pos)
    nonce, pos = rlp.decode_uint(data, pos, U64_MAX)
    gas_limit, pos = rlp.decode_uint(data, pos, U64_MAX)
    gas_price, pos = rlp.decode_uint(data, pos, U64_MAX)
    tx = Transaction(
        from_address=from_address,
        to_address=to_address,
        value=value,
        data=payload,
        nonce=nonce,
        gas_limit=gas_limit,
        gas_price=gas_price,
    )
    return tx, pos


def _decode_exact(data: bytes, reader: Callable[[bytes, int], Tuple[T, int]], what: str) -> T:
    data = bytes(data)
    value, end = reader(data, 0)
    if end != len(data):
        raise DecodeError(f"{len(data) - end} trailing bytes after {what}")
    return value


def decode_account(data: bytes) -> Account:
    return _decode_exact(data, _read_account, "account")


def decode_transaction(data: bytes) -> Transaction:
    return _decode_exact(data, _read_transaction, "transaction")


def decode_batch(data: bytes) -> StateTransitionBatch:
    """Decodes a canonically encoded batch. Rejects anything but the exact canonical form."""
    data = bytes(data)
    body, end = rlp.decode_list(data, 0)
    if end != len(data):
        raise DecodeError(f"{len(data) - end} trailing bytes after batch")

    txs_payload, pos = rlp.decode_list(body, 0)
    old_state_root, pos = rlp.decode_fixed(body, pos, HASH_LENGTH)
    new_state_root, pos = rlp.decode_fixed(body, pos, HASH_LENGTH)
    batch_index, pos = rlp.decode_uint(body, pos, U64_MAX)
    if pos != len(body):
        raise DecodeError("unexpected extra fields in batch")

    transactions: List[Transaction] = []
    cursor = 0
    while cursor < len(txs_payload):
        tx_payload, cursor = rlp.decode_list(txs_payload, cursor)
        transactions.append(_decode_exact(tx_payload, _read_transaction, "transaction"))

    return StateTransitionBatch(
        transactions=transactions,
        old_state_root=old_state_root,
        new_state_root=new_state_root,
        batch_index=batch_index,
    )


def decode_batch_json(data: bytes) -> StateTransitionBatch:
    """Decodes the JSON wire form of a batch."""
    try:
        return StateTransitionBatch.model_validate_json(data)
    except ValidationError as e:
        logger.debug(f"Rejected batch JSON: {e}")
        raise DecodeError(f"invalid batch: {e.error_count()} validation error(s): {e.errors()[0]['msg']}") from e
