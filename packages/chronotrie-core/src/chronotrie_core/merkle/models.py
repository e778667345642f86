"""Data models for the Merkle trie subsystem."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chronotrie_core.merkle.keys import Key

# Digits 0, 1 and 2 each own one child slot.
BRANCHING = 3


class OutOfRangeError(ValueError):
    """A timestamp falls outside the time range addressable by the key depth."""


class MalformedKeyError(ValueError):
    """A key has a digit outside {0, 1, 2} or the wrong length for its trie."""


class IncompatibleTrieError(ValueError):
    """Two tries were built with different depths, bucket sizes or hash functions."""


@dataclass(frozen=True)
class MerkleNode:
    """A trie node: up to three children plus the XOR of every hash below it."""

    children: tuple[MerkleNode | None, MerkleNode | None, MerkleNode | None] = (
        None,
        None,
        None,
    )
    hash: int = 0

    def __post_init__(self) -> None:
        if len(self.children) != BRANCHING:
            raise ValueError(f"node must have {BRANCHING} child slots, got {len(self.children)}")
        if self.hash < 0:
            raise ValueError(f"hash must be unsigned, got {self.hash}")

    def child(self, digit: int) -> MerkleNode | None:
        return self.children[digit]

    @property
    def is_empty(self) -> bool:
        return self.hash == 0 and all(c is None for c in self.children)


EMPTY_NODE = MerkleNode()


@dataclass(frozen=True)
class TrieDiff:
    """Result of comparing two Merkle tries."""

    paths: tuple[Key, ...] = ()
    root_changed: bool = False
    left_root_hash: int = 0
    right_root_hash: int = 0
    truncated: bool = False
