# MIT License
# Copyright (c) 2025 Hashborn

import argparse
import sys
import json
import requests
import os
from typing import Optional
from ..protocol.codec.canonical import decode_batch, decode_batch_json, encode_batch
from ..protocol.config.params import PROFILES, get_profile
from ..protocol.types.common import CommitmentScheme, DecodeError, ExecutionError, ProtocolError, WireFormat
from ..protocol.types.primitives import parse_hex
from ..execution.core.commitment import account_proof, compute_state_root
from ..execution.core.executor import BatchExecutor
from ..execution.core.ledger import load_snapshot_file

DEFAULT_NODE = "http://localhost:8000"

def get_node_url(args):
    return args.node or os.environ.get("ZKSTF_NODE", DEFAULT_NODE)

def read_input(path: str, wire_format: WireFormat) -> bytes:
    """Reads a batch from a file or stdin ('-'). RLP batches are stored as hex text."""
    if path == "-":
        raw = sys.stdin.buffer.read()
    else:
        with open(path, "rb") as f:
            raw = f.read()
    if wire_format == WireFormat.RLP:
        text = raw.decode("ascii", errors="replace").strip()
        if text[:2] in ("0x", "0X"):
            text = text[2:]
        try:
            return bytes.fromhex(text)
        except ValueError:
            raise DecodeError(f"{path}: RLP input must be hex text")
    return raw

def load_batch(path: str, wire_format: WireFormat):
    data = read_input(path, wire_format)
    if wire_format == WireFormat.RLP:
        return decode_batch(data)
    return decode_batch_json(data)

def write_output(data: bytes, path: Optional[str]):
    if path:
        with open(path, "wb") as f:
            f.write(data)
        print(f"Wrote {len(data)} bytes to {path}")
    else:
        sys.stdout.write(data.decode("utf-8") + "\n")

# --- Local Commands ---
def cmd_execute(args):
    config = get_profile(args.profile)
    wire_format = WireFormat(args.format or config.wire_format)
    seed = load_snapshot_file(args.state) if args.state else None
    executor = BatchExecutor(snapshot=seed, config=config)
    batch = load_batch(args.input, wire_format)
    result = executor.execute(batch)
    write_output(result.record.to_bytes(), args.output)
    if args.post_state:
        with open(args.post_state, "w") as f:
            f.write(result.post_state.to_snapshot().model_dump_json(indent=2))

def cmd_state_root(args):
    ledger = load_snapshot_file(args.snapshot)
    root_hash = compute_state_root(ledger, CommitmentScheme(args.scheme))
    print(f"State root: 0x{root_hash.hex()}")
    print(f"Accounts:   {len(ledger)}")

def cmd_proof(args):
    ledger = load_snapshot_file(args.snapshot)
    address = parse_hex(args.address)
    if address not in ledger:
        raise ValueError(f"account 0x{address.hex()} is not in {args.snapshot}")
    proof = account_proof(ledger, address)
    out = {
        "address": "0x" + address.hex(),
        "index": proof.index,
        "leaf_count": proof.leaf_count,
        "merkle_root": "0x" + proof.root.hex(),
        "siblings": ["0x" + s.hex() for s in proof.siblings],
        "account": json.loads(proof.account.model_dump_json()),
    }
    print(json.dumps(out, indent=2))

def cmd_hash_txs(args):
    batch = load_batch(args.input, WireFormat(args.format))
    print(f"{'Index':<7} {'Tx Hash':<68}")
    print("-" * 75)
    for i, tx in enumerate(batch.transactions):
        print(f"{i:<7} {tx.hash_hex:<68}")

def cmd_encode(args):
    batch = load_batch(args.input, WireFormat.JSON)
    print("0x" + encode_batch(batch).hex())

# --- Remote Commands ---
def cmd_submit(args):
    url = get_node_url(args)
    wire_format = WireFormat(args.format)
    data = read_input(args.input, wire_format)
    try:
        resp = requests.post(
            f"{url}/execute",
            params={"wire_format": wire_format.value},
            data=data,
            timeout=args.timeout,
        )
    except requests.RequestException as e:
        print(f"Connection error: {e}")
        sys.exit(1)
    if resp.status_code != 200:
        print(f"Error: {resp.text}")
        sys.exit(1)
    print(json.dumps(resp.json(), indent=2))

def main(argv=None):
    parser = argparse.ArgumentParser(description="zkstf state-transition evaluator")
    subparsers = parser.add_subparsers(dest="command")

    formats = [f.value for f in WireFormat]

    p_exec = subparsers.add_parser("execute", help="Evaluate a batch locally and print the commitment record")
    p_exec.add_argument("input", help="Batch file ('-' for stdin)")
    p_exec.add_argument("--state", help="JSON snapshot to seed the ledger (default: genesis)")
    p_exec.add_argument("--profile", choices=sorted(PROFILES), help="Executor profile")
    p_exec.add_argument("--format", choices=formats, help="Input wire format (default: profile)")
    p_exec.add_argument("--output", help="Write the record here instead of stdout")
    p_exec.add_argument("--post-state", help="Write the resulting ledger snapshot here")

    p_root = subparsers.add_parser("state-root", help="Compute the commitment of a snapshot")
    p_root.add_argument("snapshot", help="JSON snapshot file")
    p_root.add_argument("--scheme", choices=[s.value for s in CommitmentScheme], default=CommitmentScheme.FLAT.value)

    p_proof = subparsers.add_parser("proof", help="Print the Merkle membership proof of one account in a snapshot")
    p_proof.add_argument("snapshot", help="JSON snapshot file")
    p_proof.add_argument("address", help="0x-prefixed account address")

    p_hash = subparsers.add_parser("hash-txs", help="Print the canonical hash of every transaction in a batch")
    p_hash.add_argument("input", help="Batch file ('-' for stdin)")
    p_hash.add_argument("--format", choices=formats, default=WireFormat.JSON.value)

    p_enc = subparsers.add_parser("encode", help="Print the canonical (RLP) encoding of a JSON batch")
    p_enc.add_argument("input", help="JSON batch file ('-' for stdin)")

    p_submit = subparsers.add_parser("submit", help="Send a batch to a running evaluator host")
    p_submit.add_argument("input", help="Batch file ('-' for stdin)")
    p_submit.add_argument("--format", choices=formats, default=WireFormat.JSON.value)
    p_submit.add_argument("--node", help=f"Host URL (default: $ZKSTF_NODE or {DEFAULT_NODE})")
    p_submit.add_argument("--timeout", type=float, default=30.0)

    args = parser.parse_args(argv)

    commands = {
        "execute": cmd_execute,
        "state-root": cmd_state_root,
        "proof": cmd_proof,
        "hash-txs": cmd_hash_txs,
        "encode": cmd_encode,
        "submit": cmd_submit,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return

    try:
        handler(args)
    except ExecutionError as e:
        print(f"Error: batch aborted: {e}")
        sys.exit(1)
    except (ProtocolError, ValueError, OSError) as e:
        print(f"Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
