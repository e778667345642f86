"""Divergence detection between two Merkle tries."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

from chronotrie_core.merkle.keys import Key
from chronotrie_core.merkle.models import (
    BRANCHING,
    EMPTY_NODE,
    IncompatibleTrieError,
    MerkleNode,
    TrieDiff,
)

if TYPE_CHECKING:
    from chronotrie_core.merkle.tree import MerkleTrie

logger = logging.getLogger(__name__)


def _walk(
    left: MerkleNode | None,
    right: MerkleNode | None,
    prefix: Key,
    max_depth: int,
) -> Iterator[Key]:
    # Absent sides compare as the empty node. Equal aggregates are pruned even
    # when the item sets differ (XOR cancellation); callers needing exact
    # answers must re-check suspect ranges out of band.
    left = left if left is not None else EMPTY_NODE
    right = right if right is not None else EMPTY_NODE
    if left.hash == right.hash:
        return
    if len(prefix) == max_depth:
        yield prefix
        return
    for digit in range(BRANCHING):
        lchild, rchild = left.child(digit), right.child(digit)
        if lchild is None and rchild is None:
            continue
        yield from _walk(lchild, rchild, prefix.child(digit), max_depth)


class MerkleTrieDiffer:
    """Localizes where two tries' item sets disagree."""

    @staticmethod
    def _check(left: MerkleTrie, right: MerkleTrie, max_depth: int | None) -> int:
        if not left.is_compatible(right):
            raise IncompatibleTrieError(
                f"cannot compare {left!r} ({left.codec!r}) with {right!r} ({right.codec!r})"
            )
        if max_depth is None:
            return left.depth
        if not 0 <= max_depth <= left.depth:
            raise ValueError(f"max_depth must be between 0 and {left.depth}, got {max_depth}")
        return max_depth

    @staticmethod
    def iter_paths(
        left: MerkleTrie, right: MerkleTrie, max_depth: int | None = None
    ) -> Iterator[Key]:
        """Lazily yield diverging prefixes in ascending time order."""
        depth = MerkleTrieDiffer._check(left, right, max_depth)
        return _walk(left.root, right.root, Key(), depth)

    @staticmethod
    def diff(
        left: MerkleTrie,
        right: MerkleTrie,
        *,
        max_depth: int | None = None,
        limit: int | None = None,
    ) -> TrieDiff:
        """Compare *left* against *right* and return a diff summary.

        *limit* caps how many paths are collected; the result is flagged
        ``truncated`` when more were available.
        """
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        paths: list[Key] = []
        truncated = False
        for path in MerkleTrieDiffer.iter_paths(left, right, max_depth):
            if limit is not None and len(paths) >= limit:
                truncated = True
                break
            paths.append(path)

        if truncated:
            logger.warning("Divergence walk stopped after %d paths", limit)
        logger.debug(
            "Compared roots %#010x / %#010x: %d diverging path(s)",
            left.root_hash,
            right.root_hash,
            len(paths),
        )
        return TrieDiff(
            paths=tuple(paths),
            root_changed=left.root_hash != right.root_hash,
            left_root_hash=left.root_hash,
            right_root_hash=right.root_hash,
            truncated=truncated,
        )

    @staticmethod
    def first_divergence(left: MerkleTrie, right: MerkleTrie) -> int | None:
        """Millis at the start of the earliest diverging bucket, or None."""
        first = next(MerkleTrieDiffer.iter_paths(left, right), None)
        if first is None:
            return None
        return left.codec.prefix_start(first)
