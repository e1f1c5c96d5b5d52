"""
Command line tests (local commands only).
"""

import json

import pytest

from zkstf.cli.main import main
from zkstf.execution.core.commitment import verify_account_proof
from zkstf.protocol.codec.canonical import encode_batch
from zkstf.protocol.config.params import ZERO_ADDRESS
from zkstf.protocol.types.account import Account, LedgerSnapshot
from zkstf.protocol.types.batch import CommitmentRecord, StateTransitionBatch
from zkstf.protocol.types.tx import Transaction

ADDR_B = bytes.fromhex("b0" * 20)


@pytest.fixture
def batch():
    tx = Transaction(from_address=ZERO_ADDRESS, to_address=ADDR_B, value=100, gas_limit=1, gas_price=1)
    return StateTransitionBatch(transactions=[tx], batch_index=2)


@pytest.fixture
def batch_file(tmp_path, batch):
    path = tmp_path / "batch.json"
    path.write_text(batch.to_json())
    return path


@pytest.fixture
def state_file(tmp_path):
    snapshot = LedgerSnapshot(accounts=[
        Account(address=ZERO_ADDRESS, balance=1_000_000),
        Account(address=ADDR_B, balance=0),
    ])
    path = tmp_path / "state.json"
    path.write_text(snapshot.model_dump_json())
    return path


def test_execute_writes_record(tmp_path, batch_file, state_file):
    out = tmp_path / "record.json"
    post = tmp_path / "post.json"
    main(["execute", str(batch_file), "--state", str(state_file),
          "--output", str(out), "--post-state", str(post)])

    record = CommitmentRecord.model_validate_json(out.read_bytes())
    assert record.batch_index == 2
    assert record.transaction_count == 1

    post_state = LedgerSnapshot.model_validate_json(post.read_bytes())
    assert post_state.accounts[0].balance == 1_000_000 - 101
    assert post_state.accounts[1].balance == 100


def test_execute_rlp_input(tmp_path, batch, state_file, capsys):
    path = tmp_path / "batch.rlp"
    path.write_text("0x" + encode_batch(batch).hex())
    main(["execute", str(path), "--state", str(state_file), "--format", "rlp"])

    record = json.loads(capsys.readouterr().out)
    assert record["transaction_count"] == 1


def test_execute_failure_exits(batch_file, capsys):
    # Genesis ledger has no account for the recipient
    with pytest.raises(SystemExit) as exc_info:
        main(["execute", str(batch_file)])
    assert exc_info.value.code == 1
    assert "batch aborted" in capsys.readouterr().out


def test_execute_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit):
        main(["execute", str(tmp_path / "missing.json")])
    assert capsys.readouterr().out.startswith("Error:")


def test_state_root(state_file, capsys):
    main(["state-root", str(state_file)])
    out = capsys.readouterr().out
    assert "State root: 0x" in out
    assert "Accounts:   2" in out


def test_hash_txs(batch_file, batch, capsys):
    main(["hash-txs", str(batch_file)])
    assert batch.transactions[0].hash_hex in capsys.readouterr().out


def test_encode(batch_file, batch, capsys):
    main(["encode", str(batch_file)])
    assert capsys.readouterr().out.strip() == "0x" + encode_batch(batch).hex()


def test_explicit_profile_ignores_bad_environment(tmp_path, batch_file, state_file, monkeypatch):
    monkeypatch.setenv("ZKSTF_PROFILE", "staging")
    out = tmp_path / "record.json"
    main(["execute", str(batch_file), "--state", str(state_file),
          "--profile", "default", "--output", str(out)])
    assert CommitmentRecord.model_validate_json(out.read_bytes()).transaction_count == 1


def test_unknown_environment_profile_is_reported(batch_file, state_file, monkeypatch, capsys):
    monkeypatch.setenv("ZKSTF_PROFILE", "staging")
    with pytest.raises(SystemExit) as exc_info:
        main(["execute", str(batch_file), "--state", str(state_file)])
    assert exc_info.value.code == 1
    assert "Unknown profile 'staging'" in capsys.readouterr().out


def test_environment_profile_selects_policy(tmp_path, state_file, monkeypatch, capsys):
    monkeypatch.setenv("ZKSTF_PROFILE", "lenient")
    tx = Transaction(from_address=ZERO_ADDRESS, to_address=bytes.fromhex("c0" * 20), gas_limit=1, gas_price=1)
    path = tmp_path / "batch.json"
    path.write_text(StateTransitionBatch(transactions=[tx]).to_json())

    main(["execute", str(path), "--state", str(state_file)])

    record = json.loads(capsys.readouterr().out)
    assert [f["kind"] for f in record["failures"]] == ["AccountNotFound"]


def test_proof(state_file, capsys):
    main(["proof", str(state_file), "0x" + ADDR_B.hex()])
    out = json.loads(capsys.readouterr().out)

    assert out["index"] == 1
    assert out["leaf_count"] == 2
    account = Account.model_validate(out["account"])
    siblings = [bytes.fromhex(s[2:]) for s in out["siblings"]]
    root = bytes.fromhex(out["merkle_root"][2:])
    assert verify_account_proof(account, out["index"], siblings, root, out["leaf_count"])


def test_proof_unknown_account(state_file, capsys):
    with pytest.raises(SystemExit):
        main(["proof", str(state_file), "0x" + "99" * 20])
    assert "is not in" in capsys.readouterr().out
