"""Chronotrie Core - hybrid logical timestamps indexed in a ternary Merkle trie."""

from chronotrie_core.config import ChronotrieConfig, load_config
from chronotrie_core.hlc import HybridLogicalClock, Timestamp
from chronotrie_core.merkle import (
    Key,
    KeyCodec,
    MerkleTrie,
    MerkleTrieDiffer,
    TrieDiff,
    diverging_paths,
    first_divergence,
    new_trie,
)

__version__ = "0.1.0"

__all__ = [
    "ChronotrieConfig",
    "HybridLogicalClock",
    "Key",
    "KeyCodec",
    "MerkleTrie",
    "MerkleTrieDiffer",
    "Timestamp",
    "TrieDiff",
    "diverging_paths",
    "first_divergence",
    "load_config",
    "new_trie",
]
