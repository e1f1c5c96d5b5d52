# MIT License
# Copyright (c) 2025 Hashborn

"""
Batch executor tests.

Covers the all-or-nothing batch semantics, the skip-and-record policy,
hash independence from execution outcome and the reference scenarios.
"""

import pytest
from zkstf.execution.core.executor import BatchExecutor
from zkstf.execution.core.ledger import Ledger
from zkstf.execution.core.record import build_commitment_record
from zkstf.execution.host import run_guest
from zkstf.protocol.codec.canonical import encode_batch, encode_transaction
from zkstf.protocol.config.params import ExecutorConfig, ZERO_ADDRESS, ZERO_HASH
from zkstf.protocol.crypto.hash import sha256
from zkstf.protocol.types.account import Account, LedgerSnapshot
from zkstf.protocol.types.batch import CommitmentRecord, StateTransitionBatch
from zkstf.protocol.types.common import (
    AccountNotFound,
    BatchTooLarge,
    CommitmentScheme,
    DecodeError,
    ExecutionPhase,
    FailurePolicy,
    InsufficientBalance,
    InvalidNonce,
    StateRootMismatch,
    WireFormat,
)
from zkstf.protocol.types.tx import Transaction

ADDR_B = bytes.fromhex("b0" * 20)
ADDR_C = bytes.fromhex("c0" * 20)


@pytest.fixture
def config():
    return ExecutorConfig(profile_id="test")


@pytest.fixture
def skip_config():
    return ExecutorConfig(profile_id="test-skip", failure_policy=FailurePolicy.SKIP_AND_RECORD)


@pytest.fixture
def two_accounts():
    return LedgerSnapshot(accounts=[
        Account(address=ZERO_ADDRESS, balance=1_000_000),
        Account(address=ADDR_B, balance=10),
    ])


def tx(frm=ZERO_ADDRESS, to=ZERO_ADDRESS, value=0, gas_limit=1, gas_price=1, nonce=0):
    return Transaction(
        from_address=frm,
        to_address=to,
        value=value,
        nonce=nonce,
        gas_limit=gas_limit,
        gas_price=gas_price,
    )


def test_self_transfer_scenario(config):
    """Single account with 1,000,000; self transfer paying 1 gas."""
    executor = BatchExecutor(config=config)
    batch = StateTransitionBatch(transactions=[tx()], batch_index=0)

    result = executor.execute(batch)

    account = result.post_state.get_account(ZERO_ADDRESS)
    assert account.balance == 999_999
    assert account.nonce == 1
    assert result.record.old_state_root != result.record.new_state_root
    assert result.record.transaction_count == 1
    assert result.record.old_state_root == sha256(Account(address=ZERO_ADDRESS, balance=1_000_000).encode())
    assert result.record.new_state_root == result.post_state.compute_state_root()
    assert result.record.failures == []
    assert executor.phase == ExecutionPhase.DONE


def test_unknown_account_aborts_batch(config):
    executor = BatchExecutor(config=config)
    batch = StateTransitionBatch(transactions=[tx(), tx(to=ADDR_B)], batch_index=5)

    with pytest.raises(AccountNotFound) as exc_info:
        executor.execute(batch)

    assert exc_info.value.tx_index == 1
    assert "at tx 1" in str(exc_info.value)
    assert executor.phase == ExecutionPhase.ABORTED
    assert executor.failed_index == 1


def test_overspend_aborts_batch(config):
    executor = BatchExecutor(config=config)
    batch = StateTransitionBatch(transactions=[tx(value=1_000_000, gas_limit=1, gas_price=1)])

    with pytest.raises(InsufficientBalance) as exc_info:
        executor.execute(batch)
    assert exc_info.value.tx_index == 0


def test_abort_leaves_seed_untouched(config, two_accounts):
    executor = BatchExecutor(snapshot=two_accounts, config=config)
    seed_root = executor.seed_root
    batch = StateTransitionBatch(transactions=[
        tx(to=ADDR_B, value=500),
        tx(frm=ADDR_B, to=ADDR_C, value=1),
    ])

    with pytest.raises(AccountNotFound):
        executor.execute(batch)

    assert executor.seed_root == seed_root
    # A clean batch afterwards starts from the untouched seed
    result = executor.execute(StateTransitionBatch(transactions=[tx(to=ADDR_B, value=500)]))
    assert result.record.old_state_root == seed_root
    assert result.post_state.get_account(ADDR_B).balance == 510


def test_invocations_do_not_share_state(config):
    executor = BatchExecutor(config=config)
    batch = StateTransitionBatch(transactions=[tx(), tx()], batch_index=9)

    first = executor.execute(batch)
    second = executor.execute(batch)

    assert first.record == second.record
    assert first.record.to_bytes() == second.record.to_bytes()
    assert first.post_state.get_account(ZERO_ADDRESS).nonce == 2


def test_transaction_hashes_cover_every_input(skip_config, two_accounts):
    executor = BatchExecutor(snapshot=two_accounts, config=skip_config)
    txs = [
        tx(to=ADDR_C, value=1),                    # unknown recipient
        tx(to=ADDR_B, value=100),
        tx(frm=ADDR_B, to=ZERO_ADDRESS, value=1000),  # overspend
    ]
    result = executor.execute(StateTransitionBatch(transactions=txs, batch_index=2))

    assert result.record.transaction_count == 3
    assert result.record.transaction_hashes == [sha256(encode_transaction(t)) for t in txs]
    assert [(f.index, f.kind) for f in result.record.failures] == [
        (0, "AccountNotFound"),
        (2, "InsufficientBalance"),
    ]
    # Only the middle transaction landed
    assert result.post_state.get_account(ZERO_ADDRESS).balance == 1_000_000 - 101
    assert result.post_state.get_account(ZERO_ADDRESS).nonce == 1
    assert result.post_state.get_account(ADDR_B).balance == 110
    assert result.post_state.get_account(ADDR_B).nonce == 0


def test_hashes_match_between_policies(config, skip_config):
    txs = [tx(), tx(to=ADDR_B)]
    batch = StateTransitionBatch(transactions=txs)

    skipped = BatchExecutor(config=skip_config).execute(batch)
    assert skipped.record.transaction_hashes == [t.hash() for t in txs]

    with pytest.raises(AccountNotFound):
        BatchExecutor(config=config).execute(batch)


def test_empty_batch(config):
    result = BatchExecutor(config=config).execute(StateTransitionBatch(batch_index=1))
    assert result.record.transaction_count == 0
    assert result.record.transaction_hashes == []
    assert result.record.old_state_root == result.record.new_state_root


def test_batch_size_limit():
    config = ExecutorConfig(profile_id="small", max_tx_per_batch=1)
    with pytest.raises(BatchTooLarge):
        BatchExecutor(config=config).execute(StateTransitionBatch(transactions=[tx(), tx()]))


def test_claimed_root_is_advisory(config):
    bogus = StateTransitionBatch(transactions=[tx()], old_state_root=b"\x01" * 32)
    result = BatchExecutor(config=config).execute(bogus)
    assert result.record.old_state_root != b"\x01" * 32


def test_claimed_root_mismatch_can_be_rejected():
    config = ExecutorConfig(profile_id="strict-root", reject_root_mismatch=True)
    executor = BatchExecutor(config=config)

    with pytest.raises(StateRootMismatch):
        executor.execute(StateTransitionBatch(transactions=[tx()], old_state_root=b"\x01" * 32))

    honest = StateTransitionBatch(transactions=[tx()], old_state_root=executor.seed_root)
    assert executor.execute(honest).record.old_state_root == executor.seed_root


def test_nonce_enforcement_profile():
    config = ExecutorConfig(profile_id="nonce", enforce_nonce=True)
    executor = BatchExecutor(config=config)

    ok = StateTransitionBatch(transactions=[tx(nonce=0), tx(nonce=1)])
    assert executor.execute(ok).post_state.get_account(ZERO_ADDRESS).nonce == 2

    with pytest.raises(InvalidNonce) as exc_info:
        executor.execute(StateTransitionBatch(transactions=[tx(nonce=0), tx(nonce=0)]))
    assert exc_info.value.tx_index == 1


def test_merkle_scheme(two_accounts):
    flat = BatchExecutor(snapshot=two_accounts, config=ExecutorConfig(profile_id="flat"))
    merkle = BatchExecutor(
        snapshot=two_accounts,
        config=ExecutorConfig(profile_id="merkle", commitment_scheme=CommitmentScheme.MERKLE),
    )
    batch = StateTransitionBatch(transactions=[tx(to=ADDR_B, value=5)])

    flat_record = flat.execute(batch).record
    merkle_record = merkle.execute(batch).record
    assert flat_record.new_state_root != merkle_record.new_state_root
    assert flat_record.transaction_hashes == merkle_record.transaction_hashes


def test_seed_accepts_ledger_and_account_list(config, two_accounts):
    from_snapshot = BatchExecutor(snapshot=two_accounts, config=config)
    from_ledger = BatchExecutor(snapshot=Ledger.from_snapshot(two_accounts), config=config)
    from_list = BatchExecutor(snapshot=two_accounts.accounts, config=config)
    assert from_snapshot.seed_root == from_ledger.seed_root == from_list.seed_root


def test_execute_bytes_json_and_rlp(config):
    executor = BatchExecutor(config=config)
    batch = StateTransitionBatch(transactions=[tx(), tx(value=10)], batch_index=4)

    via_json = executor.execute_bytes(batch.to_json().encode())
    via_rlp = executor.execute_bytes(encode_batch(batch), wire_format=WireFormat.RLP)
    assert via_json.record == via_rlp.record


def test_execute_bytes_rejects_malformed(config):
    executor = BatchExecutor(config=config)
    with pytest.raises(DecodeError):
        executor.execute_bytes(b'{"transactions": [')
    with pytest.raises(DecodeError):
        executor.execute_bytes(b"\xc1", wire_format=WireFormat.RLP)


def test_run_guest_output(config):
    batch = StateTransitionBatch(transactions=[tx()], batch_index=11)
    output = run_guest(batch.to_json().encode(), config=config)

    record = CommitmentRecord.model_validate_json(output)
    assert record.batch_index == 11
    assert record.transaction_count == 1
    assert record.transaction_hashes == [batch.transactions[0].hash()]


def test_run_guest_produces_nothing_on_failure(config):
    batch = StateTransitionBatch(transactions=[tx(to=ADDR_B)])
    with pytest.raises(AccountNotFound):
        run_guest(batch.to_json().encode(), config=config)


def test_record_builder():
    hashes = [b"\x01" * 32, b"\x02" * 32]
    record = build_commitment_record(ZERO_HASH, b"\x03" * 32, 7, hashes)
    assert record.transaction_count == 2
    assert record.transaction_hashes == hashes
    assert record.batch_index == 7

    with pytest.raises(ValueError):
        CommitmentRecord(
            old_state_root=ZERO_HASH,
            new_state_root=ZERO_HASH,
            batch_index=0,
            transaction_count=3,
            transaction_hashes=hashes,
        )


def test_default_config_follows_environment(monkeypatch):
    monkeypatch.setenv("ZKSTF_PROFILE", "lenient")
    assert BatchExecutor().config.failure_policy == FailurePolicy.SKIP_AND_RECORD

    monkeypatch.delenv("ZKSTF_PROFILE")
    assert BatchExecutor().config.profile_id == "default"

    monkeypatch.setenv("ZKSTF_PROFILE", "staging")
    with pytest.raises(ValueError, match="Unknown profile"):
        BatchExecutor()
