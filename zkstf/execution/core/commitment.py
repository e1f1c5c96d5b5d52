# MIT License
# Copyright (c) 2025 Hashborn

"""
State root commitment.

The baseline is a flat commitment: one SHA-256 over the concatenated
canonical encodings of every account, in ledger order. It is O(n) in the
encoded size and yields no membership proofs, which is fine while the
account set is small and fully materialized per invocation.

A Merkle variant is available behind the same contract (ordered accounts
in, 32-byte digest out) and backs per-account membership proofs.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from ...protocol.codec.canonical import encode_account
from ...protocol.crypto.hash import sha256, sha256_concat, merkle_proof, merkle_root, verify_merkle_proof
from ...protocol.types.account import Account
from ...protocol.types.common import CommitmentScheme


def flat_state_root(accounts: Iterable[Account]) -> bytes:
    return sha256_concat(*(encode_account(acc) for acc in accounts))


def merkle_state_root(accounts: Iterable[Account]) -> bytes:
    leaves: List[bytes] = [account_leaf(acc) for acc in accounts]
    return merkle_root(leaves)


def compute_state_root(accounts: Iterable[Account], scheme: CommitmentScheme = CommitmentScheme.FLAT) -> bytes:
    if scheme == CommitmentScheme.FLAT:
        return flat_state_root(accounts)
    if scheme == CommitmentScheme.MERKLE:
        return merkle_state_root(accounts)
    raise ValueError(f"Unknown commitment scheme: {scheme}")


@dataclass
class AccountProof:
    """Membership proof for one account under a Merkle state root."""
    account: Account
    index: int
    leaf_count: int
    siblings: List[bytes]
    root: bytes

    def verify(self) -> bool:
        return verify_account_proof(self.account, self.index, self.siblings, self.root, self.leaf_count)


def account_leaf(account: Account) -> bytes:
    return sha256(encode_account(account))


def account_proof(ledger, address: bytes) -> AccountProof:
    """
    Builds the Merkle membership proof for `address` in `ledger`.

    Raises AccountNotFound if the address is not in the ledger.
    """
    index = ledger.index_of(address)
    accounts = ledger.accounts
    leaves = [account_leaf(acc) for acc in accounts]
    return AccountProof(
        account=accounts[index].model_copy(deep=True),
        index=index,
        leaf_count=len(leaves),
        siblings=merkle_proof(leaves, index),
        root=merkle_root(leaves),
    )


def verify_account_proof(account: Account, index: int, siblings: List[bytes], root: bytes,
                         leaf_count: Optional[int] = None) -> bool:
    return verify_merkle_proof(account_leaf(account), index, siblings, root, leaf_count)
