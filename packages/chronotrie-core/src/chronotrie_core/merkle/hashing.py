"""Item hash primitives over a timestamp's canonical string.

Every replica taking part in a comparison must use the same algorithm;
aggregates produced by different functions are not comparable.
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable

import mmh3

from chronotrie_core.hlc.models import Timestamp

DEFAULT_ALGORITHM = "murmur3"


def murmur3_hash(content: bytes) -> int:
    """MurmurHash3 x86 32-bit, seed 0, unsigned."""
    return mmh3.hash(content, 0, signed=False)


def sha256_hash(content: bytes) -> int:
    """First four bytes of SHA-256, big-endian."""
    return int.from_bytes(hashlib.sha256(content).digest()[:4], "big")


HASHERS: dict[str, Callable[[bytes], int]] = {
    "murmur3": murmur3_hash,
    "sha256": sha256_hash,
}


def get_hasher(algorithm: str) -> Callable[[bytes], int]:
    try:
        return HASHERS[algorithm]
    except KeyError:
        raise ValueError(
            f"Unknown hash algorithm '{algorithm}'. Choose from: {', '.join(sorted(HASHERS))}"
        ) from None


def hash_timestamp(ts: Timestamp, algorithm: str = DEFAULT_ALGORITHM) -> int:
    return get_hasher(algorithm)(ts.to_canonical().encode())
