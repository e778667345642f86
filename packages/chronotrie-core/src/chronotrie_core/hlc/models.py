"""Hybrid logical timestamps and their canonical string form."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

MAX_COUNTER = 0xFFFF
ORIGIN_WIDTH = 16
# Last millisecond of year 9999, the largest instant datetime can render.
MAX_MILLIS = 253_402_300_799_999

_CANONICAL_RE = re.compile(
    r"(?P<time>.+)-(?P<counter>[0-9A-F]{4})-(?P<origin>.{%d})" % ORIGIN_WIDTH
)


@dataclass(frozen=True, order=True)
class Timestamp:
    """A hybrid logical timestamp: wall-clock millis, counter and origin node."""

    millis: int
    counter: int = 0
    origin: str = ""

    def __post_init__(self) -> None:
        if not 0 <= self.millis <= MAX_MILLIS:
            raise ValueError(f"millis out of range: {self.millis}")
        if not 0 <= self.counter <= MAX_COUNTER:
            raise ValueError(f"counter must fit in 4 hex digits, got {self.counter}")
        if len(self.origin) > ORIGIN_WIDTH:
            raise ValueError(
                f"origin must be at most {ORIGIN_WIDTH} chars, got {self.origin!r}"
            )

    @classmethod
    def from_millis(cls, millis: int) -> Timestamp:
        return cls(millis=millis)

    @property
    def as_datetime(self) -> datetime:
        return EPOCH + timedelta(milliseconds=self.millis)

    def to_canonical(self) -> str:
        """Serialize as ``<RFC3339>-<counter hex>-<padded origin>``.

        This string, not the struct, is what gets hashed, so the format must
        be identical on every replica.
        """
        timespec = "seconds" if self.millis % 1000 == 0 else "milliseconds"
        ts = self.as_datetime.isoformat(timespec=timespec)
        counter = f"{self.counter:04X}"
        origin = self.origin.rjust(ORIGIN_WIDTH, "0")
        return "-".join([ts, counter, origin])

    def __str__(self) -> str:
        return self.to_canonical()

    @classmethod
    def parse(cls, canonical: str) -> Timestamp:
        """Inverse of :meth:`to_canonical`.

        The origin is returned in its padded 16-character form, which
        canonicalizes (and therefore hashes) the same as the unpadded one.
        """
        m = _CANONICAL_RE.fullmatch(canonical)
        if m is None:
            raise ValueError(f"Invalid canonical timestamp: {canonical!r}")
        try:
            dt = datetime.fromisoformat(m.group("time"))
        except ValueError as e:
            raise ValueError(f"Invalid canonical timestamp: {canonical!r}") from e
        if dt.tzinfo is None:
            raise ValueError(f"Canonical timestamp lacks a UTC offset: {canonical!r}")
        millis = (dt - EPOCH) // timedelta(milliseconds=1)
        return cls(
            millis=millis,
            counter=int(m.group("counter"), 16),
            origin=m.group("origin"),
        )
