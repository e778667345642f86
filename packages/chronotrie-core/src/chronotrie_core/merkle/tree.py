"""Ternary Merkle trie over time-bucketed hybrid logical timestamps.

Every node's ``hash`` is the XOR of the hashes of all items inserted through
it. XOR is its own inverse: inserting the same item twice cancels it out and
returns the affected nodes to their previous hash. That is expected
behaviour of the aggregation, not a bug, and is also why equal aggregates
only mean "no divergence detected" rather than "identical item sets".
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from chronotrie_core.hlc.models import Timestamp
from chronotrie_core.merkle.hashing import DEFAULT_ALGORITHM, get_hasher
from chronotrie_core.merkle.keys import DEFAULT_CODEC, Key, KeyCodec
from chronotrie_core.merkle.models import EMPTY_NODE, MalformedKeyError, MerkleNode, TrieDiff

if TYPE_CHECKING:
    from chronotrie_core.config.models import TrieConfig


def insert_key(node: MerkleNode | None, key: Key, item_hash: int) -> MerkleNode:
    """Return a copy of *node* with *item_hash* folded in along *key*.

    Each level rebuilds only its own node; subtrees off the path are shared
    with the input. Missing nodes start out empty.
    """
    node = node if node is not None else EMPTY_NODE
    if not key.digits:
        return MerkleNode(children=node.children, hash=node.hash ^ item_hash)
    digit, rest = key.pop_front()
    children = list(node.children)
    children[digit] = insert_key(children[digit], rest, item_hash)
    return MerkleNode(children=tuple(children), hash=node.hash ^ item_hash)


class MerkleTrie:
    """Immutable Merkle trie; every insert returns a new trie."""

    def __init__(
        self,
        root: MerkleNode = EMPTY_NODE,
        codec: KeyCodec = DEFAULT_CODEC,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> None:
        self._hasher = get_hasher(algorithm)
        self._root = root
        self._codec = codec
        self._algorithm = algorithm

    @classmethod
    def from_config(cls, config: TrieConfig) -> MerkleTrie:
        """An empty trie shaped by *config*."""
        return cls(
            codec=KeyCodec(depth=config.depth, bucket_ms=config.bucket_ms),
            algorithm=config.hash_algorithm,
        )

    @classmethod
    def build(
        cls,
        timestamps: Iterable[Timestamp],
        config: TrieConfig | None = None,
    ) -> MerkleTrie:
        trie = cls.from_config(config) if config is not None else cls()
        return trie.extend(timestamps)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def root(self) -> MerkleNode:
        return self._root

    @property
    def root_hash(self) -> int:
        return self._root.hash

    @property
    def codec(self) -> KeyCodec:
        return self._codec

    @property
    def depth(self) -> int:
        return self._codec.depth

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def hash_item(self, ts: Timestamp) -> int:
        return self._hasher(ts.to_canonical().encode())

    def node_at(self, prefix: Key) -> MerkleNode | None:
        """Return the node reached by following *prefix*, or None if absent."""
        if len(prefix) > self.depth:
            raise MalformedKeyError(f"prefix longer than depth {self.depth}: {prefix}")
        node: MerkleNode | None = self._root
        for digit in prefix:
            if node is None:
                return None
            node = node.child(digit)
        return node

    # ------------------------------------------------------------------
    # Insert
    # ------------------------------------------------------------------

    def insert_key(self, key: Key, item_hash: int) -> MerkleTrie:
        if len(key) != self.depth:
            raise MalformedKeyError(f"expected {self.depth} digits, got {len(key)}: {key}")
        root = insert_key(self._root, key, item_hash)
        return MerkleTrie(root, self._codec, self._algorithm)

    def insert(self, ts: Timestamp) -> MerkleTrie:
        """Insert a timestamp keyed by its bucket and hashed by its canonical string."""
        return self.insert_key(self._codec.key_for(ts), self.hash_item(ts))

    def extend(self, timestamps: Iterable[Timestamp]) -> MerkleTrie:
        trie = self
        for ts in timestamps:
            trie = trie.insert(ts)
        return trie

    # ------------------------------------------------------------------
    # Compare
    # ------------------------------------------------------------------

    def is_compatible(self, other: MerkleTrie) -> bool:
        return self._codec == other._codec and self._algorithm == other._algorithm

    def diff(
        self,
        other: MerkleTrie,
        *,
        max_depth: int | None = None,
        limit: int | None = None,
    ) -> TrieDiff:
        """Compare *self* (left) against *other* (right)."""
        from chronotrie_core.merkle.differ import MerkleTrieDiffer

        return MerkleTrieDiffer.diff(self, other, max_depth=max_depth, limit=limit)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MerkleTrie):
            return NotImplemented
        return self.is_compatible(other) and self._root == other._root

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"MerkleTrie(root_hash={self.root_hash:#010x}, depth={self.depth}, "
            f"algorithm={self._algorithm!r})"
        )
