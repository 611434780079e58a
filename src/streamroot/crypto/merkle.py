"""Merkle commitment engine for ordered subscriber ledgers.

Uses keccak-256 as the hash function. Leaf order is significant: unlike a
canonical (sorted) tree, the ledger's insertion order is the leaf order, so
reordering records changes the root.

Odd levels duplicate their last node (it is paired with itself) rather than
promoting it unchanged. For leaves [a, b, c]:

    root = H(H(a || b) || H(c || c))

where a, b, c are already leaf hashes. A single leaf is its own root.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from web3 import Web3

from streamroot.crypto.encoding import leaf_hash
from streamroot.models.subscriber import SubscriberRecord

HASH_WIDTH = 32

# Commitment of a ledger that has never been appended to.
EMPTY_ROOT = b"\x00" * HASH_WIDTH


def tree_depth(leaf_count: int) -> int:
    """Number of combining rounds for a tree of leaf_count leaves.

    Ceiling of log2, computed by repeated halving (rounding up), so a
    single leaf needs zero rounds and three leaves need two.
    """
    if leaf_count < 1:
        raise ValueError("A Merkle tree needs at least one leaf")
    depth = 0
    width = leaf_count
    while width > 1:
        width = (width + 1) // 2
        depth += 1
    return depth


def hash_pair(left: bytes, right: bytes) -> bytes:
    """Hash the concatenation of two fixed-width nodes."""
    if len(left) != HASH_WIDTH or len(right) != HASH_WIDTH:
        raise ValueError("Merkle nodes must be 32 bytes wide")
    return bytes(Web3.keccak(left + right))


def merkle_root(leaves: Sequence[bytes]) -> bytes:
    """Compute the root over an ordered sequence of leaf hashes.

    Pure: the same sequence in the same order always yields the same root.
    Raises ValueError for an empty sequence.
    """
    level = list(leaves)
    for _ in range(tree_depth(len(level))):
        next_level: list[bytes] = []
        for i in range(0, len(level), 2):
            left = level[i]
            right = level[i + 1] if i + 1 < len(level) else left  # Duplicate
            next_level.append(hash_pair(left, right))
        level = next_level
    if len(level[0]) != HASH_WIDTH:
        raise ValueError("Merkle nodes must be 32 bytes wide")
    return level[0]


def records_root(records: Iterable[SubscriberRecord]) -> bytes:
    """Root over records, or EMPTY_ROOT when there are none."""
    leaves = [leaf_hash(r) for r in records]
    if not leaves:
        return EMPTY_ROOT
    return merkle_root(leaves)
