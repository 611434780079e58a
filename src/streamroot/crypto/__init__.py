"""Cryptographic primitives: leaf encoding, Merkle commitment, payload codec."""

from streamroot.crypto.encoding import (
    decode_commitment,
    encode_commitment,
    encode_leaf,
    leaf_hash,
)
from streamroot.crypto.merkle import (
    EMPTY_ROOT,
    hash_pair,
    merkle_root,
    records_root,
    tree_depth,
)

__all__ = [
    "EMPTY_ROOT",
    "decode_commitment",
    "encode_commitment",
    "encode_leaf",
    "hash_pair",
    "leaf_hash",
    "merkle_root",
    "records_root",
    "tree_depth",
]
