"""Merkle trie subsystem for replica divergence detection."""

from chronotrie_core.merkle.differ import MerkleTrieDiffer
from chronotrie_core.merkle.hashing import get_hasher, hash_timestamp
from chronotrie_core.merkle.keys import Key, KeyCodec, decode, encode
from chronotrie_core.merkle.models import (
    EMPTY_NODE,
    IncompatibleTrieError,
    MalformedKeyError,
    MerkleNode,
    OutOfRangeError,
    TrieDiff,
)
from chronotrie_core.merkle.tree import MerkleTrie


def new_trie() -> MerkleTrie:
    """An empty trie with the default depth, bucket size and hash."""
    return MerkleTrie()


def insert(trie: MerkleTrie, key: Key, item_hash: int) -> MerkleTrie:
    """Convenience wrapper around MerkleTrie.insert_key()."""
    return trie.insert_key(key, item_hash)


def diverging_paths(
    left: MerkleTrie,
    right: MerkleTrie,
    *,
    max_depth: int | None = None,
    limit: int | None = None,
) -> list[Key]:
    """Convenience wrapper around MerkleTrieDiffer.diff()."""
    return list(MerkleTrieDiffer.diff(left, right, max_depth=max_depth, limit=limit).paths)


def first_divergence(left: MerkleTrie, right: MerkleTrie) -> int | None:
    """Convenience wrapper around MerkleTrieDiffer.first_divergence()."""
    return MerkleTrieDiffer.first_divergence(left, right)


__all__ = [
    "EMPTY_NODE",
    "IncompatibleTrieError",
    "Key",
    "KeyCodec",
    "MalformedKeyError",
    "MerkleNode",
    "MerkleTrie",
    "MerkleTrieDiffer",
    "OutOfRangeError",
    "TrieDiff",
    "decode",
    "diverging_paths",
    "encode",
    "first_divergence",
    "get_hasher",
    "hash_timestamp",
    "insert",
    "new_trie",
]
