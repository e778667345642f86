"""Shared test fixtures for Chronotrie."""

import pytest

from chronotrie_core.config.models import ChronotrieConfig
from chronotrie_core.hlc.models import Timestamp
from chronotrie_core.merkle import Key, MerkleTrie

MINUTE = 60_000


@pytest.fixture
def empty_trie():
    return MerkleTrie()


@pytest.fixture
def sample_timestamps():
    """Events from three origins spread over a handful of minutes."""
    return [
        Timestamp(10 * MINUTE, 0, "alpha"),
        Timestamp(10 * MINUTE + 1, 0, "alpha"),
        Timestamp(10 * MINUTE + 1, 1, "beta"),
        Timestamp(20 * MINUTE, 0, "gamma"),
        Timestamp(3**9 * MINUTE, 4, "beta"),
    ]


@pytest.fixture
def diverging_pair():
    """Left holds keys 1010...0 and 2000...0, right only 1010...0."""
    shared = Key.from_base3_str("1010" + "0" * 12)
    extra = Key.from_base3_str("2" + "0" * 15)
    right = MerkleTrie().insert_key(shared, 0x1234ABCD)
    left = right.insert_key(extra, 0x0BADF00D)
    return left, right


@pytest.fixture
def sample_config():
    return ChronotrieConfig()


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Run with no project-local or user-global chronotrie.yaml in reach."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path
