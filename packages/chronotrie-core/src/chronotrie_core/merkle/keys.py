"""Key codec: maps a timestamp's time bucket to a fixed-length base-3 path.

Digits are stored most-significant first, so the first level of the trie
splits the widest time ranges and deeper levels narrow down to a single
bucket. A key of depth ``D`` addresses ``3**D`` buckets; with the default
one-minute bucket and ``D = 16`` that is roughly 82 years after the epoch.
"""

from __future__ import annotations

from dataclasses import dataclass

from chronotrie_core.hlc.models import Timestamp
from chronotrie_core.merkle.models import BRANCHING, MalformedKeyError, OutOfRangeError

DEFAULT_DEPTH = 16
DEFAULT_BUCKET_MS = 60_000


@dataclass(frozen=True, order=True)
class Key:
    """An immutable sequence of base-3 digits (a full key or a prefix)."""

    digits: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        for d in self.digits:
            if not isinstance(d, int) or not 0 <= d < BRANCHING:
                raise MalformedKeyError(f"digit out of range: {d!r} in {self.digits!r}")

    @classmethod
    def from_base3_str(cls, base3_str: str) -> Key:
        if not all(c in "012" for c in base3_str):
            raise MalformedKeyError(f"not a base-3 string: {base3_str!r}")
        return cls(tuple(int(c) for c in base3_str))

    def pop_front(self) -> tuple[int, Key]:
        """Split off the most-significant digit."""
        if not self.digits:
            raise IndexError("pop_front from empty key")
        return self.digits[0], Key(self.digits[1:])

    def child(self, digit: int) -> Key:
        return Key(self.digits + (digit,))

    def __len__(self) -> int:
        return len(self.digits)

    def __iter__(self):
        return iter(self.digits)

    def __str__(self) -> str:
        return "".join(str(d) for d in self.digits)


def _to_base3(n: int) -> str:
    if n == 0:
        return "0"
    out: list[str] = []
    while n:
        n, r = divmod(n, BRANCHING)
        out.append(str(r))
    return "".join(reversed(out))


class KeyCodec:
    """Converts millis to keys and back for a given depth and bucket size."""

    def __init__(self, depth: int = DEFAULT_DEPTH, bucket_ms: int = DEFAULT_BUCKET_MS) -> None:
        if depth <= 0:
            raise ValueError(f"depth must be positive, got {depth}")
        if bucket_ms <= 0:
            raise ValueError(f"bucket_ms must be positive, got {bucket_ms}")
        self.depth = depth
        self.bucket_ms = bucket_ms

    @property
    def max_bucket(self) -> int:
        return BRANCHING**self.depth - 1

    def encode(self, millis: int) -> Key:
        """Quantize *millis* to its bucket and write it as a ``depth``-digit key."""
        if millis < 0:
            raise OutOfRangeError(f"millis must be non-negative, got {millis}")
        bucket = millis // self.bucket_ms
        if bucket > self.max_bucket:
            raise OutOfRangeError(
                f"bucket {bucket} exceeds {self.max_bucket} addressable at depth {self.depth}"
            )
        return Key.from_base3_str(_to_base3(bucket).rjust(self.depth, "0"))

    def decode(self, key: Key) -> int:
        """Recover the start of the bucket; sub-bucket precision is gone."""
        if len(key) != self.depth:
            raise MalformedKeyError(f"expected {self.depth} digits, got {len(key)}: {key}")
        return int(str(key), BRANCHING) * self.bucket_ms

    def prefix_start(self, prefix: Key) -> int:
        """Earliest millis covered by the subtree under *prefix*."""
        if len(prefix) > self.depth:
            raise MalformedKeyError(f"prefix longer than depth {self.depth}: {prefix}")
        return self.decode(Key(prefix.digits + (0,) * (self.depth - len(prefix))))

    def key_for(self, ts: Timestamp) -> Key:
        return self.encode(ts.millis)

    def timestamp_for(self, key: Key) -> Timestamp:
        """Partial inverse: counter and origin are not part of the key."""
        return Timestamp.from_millis(self.decode(key))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyCodec):
            return NotImplemented
        return (self.depth, self.bucket_ms) == (other.depth, other.bucket_ms)

    def __hash__(self) -> int:
        return hash((self.depth, self.bucket_ms))

    def __repr__(self) -> str:
        return f"KeyCodec(depth={self.depth}, bucket_ms={self.bucket_ms})"


DEFAULT_CODEC = KeyCodec()


def encode(millis: int) -> Key:
    return DEFAULT_CODEC.encode(millis)


def decode(key: Key) -> int:
    return DEFAULT_CODEC.decode(key)
