import hashlib
from typing import List, Optional, Sequence

from ..config.params import HASH_LENGTH, ZERO_HASH


def sha256(data: bytes) -> bytes:
    """Returns SHA256 digest of bytes."""
    return hashlib.sha256(data).digest()


def sha256_concat(*parts: bytes) -> bytes:
    """Digest of the parts joined back to back (no separators, no length prefixes)."""
    h = hashlib.sha256()
    for part in parts:
        h.update(part)
    return h.digest()


def _check_leaves(leaves: Sequence[bytes]) -> List[bytes]:
    level = list(leaves)
    for leaf in level:
        if len(leaf) != HASH_LENGTH:
            raise ValueError(f"Merkle leaf must be {HASH_LENGTH} bytes, got {len(leaf)}")
    return level


def _next_level(level: List[bytes]) -> List[bytes]:
    # Odd node is paired with itself
    if len(level) % 2:
        level = level + [level[-1]]
    return [sha256_concat(level[i], level[i + 1]) for i in range(0, len(level), 2)]


def merkle_root(leaves: Sequence[bytes]) -> bytes:
    """
    Binary Merkle root over 32-byte leaves.

    An odd node at any level is paired with itself. No leaves gives the
    zero hash; a single leaf is its own root.
    """
    level = _check_leaves(leaves)
    if not level:
        return ZERO_HASH
    while len(level) > 1:
        level = _next_level(level)
    return level[0]


def merkle_proof(leaves: Sequence[bytes], index: int) -> List[bytes]:
    """
    Sibling hashes from leaf `index` up to the root, bottom first.

    A single-leaf tree has an empty proof.
    """
    level = _check_leaves(leaves)
    if not 0 <= index < len(level):
        raise IndexError(f"leaf index {index} out of range for {len(level)} leaves")

    proof: List[bytes] = []
    while len(level) > 1:
        sibling = index ^ 1
        proof.append(level[sibling] if sibling < len(level) else level[index])
        level = _next_level(level)
        index //= 2
    return proof


def verify_merkle_proof(leaf: bytes, index: int, proof: Sequence[bytes], root: bytes,
                        leaf_count: Optional[int] = None) -> bool:
    """
    Checks that `leaf` sits at `index` under `root`.

    Pass `leaf_count` when it is known: with odd-node duplication the last
    leaf of an odd level also verifies at the next (nonexistent) index.
    """
    if index < 0 or (leaf_count is not None and index >= leaf_count):
        return False
    node = leaf
    for sibling in proof:
        if index % 2 == 0:
            node = sha256_concat(node, sibling)
        else:
            node = sha256_concat(sibling, node)
        index //= 2
    return index == 0 and node == root
