"""Hybrid logical clock that issues timestamps for local and remote events."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from chronotrie_core.hlc.models import MAX_COUNTER, Timestamp

if TYPE_CHECKING:
    from chronotrie_core.config.models import ClockConfig

logger = logging.getLogger(__name__)


class ClockError(Exception):
    """Base class for clock failures."""


class ClockDriftError(ClockError):
    """The clock would run too far ahead of physical time."""

    def __init__(self, millis: int, physical: int, max_drift_ms: int) -> None:
        self.millis = millis
        self.physical = physical
        self.max_drift_ms = max_drift_ms
        super().__init__(
            f"clock drift {millis - physical}ms exceeds max {max_drift_ms}ms"
        )


class CounterOverflowError(ClockError):
    """The logical counter ran past 4 hex digits within one millisecond."""


class DuplicateOriginError(ClockError):
    """A remote timestamp carries this clock's own origin."""


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class HybridLogicalClock:
    """Thread-safe HLC bound to a single origin."""

    def __init__(
        self,
        origin: str,
        *,
        max_drift_ms: int = 60_000,
        physical_ms: Callable[[], int] = wall_clock_ms,
    ) -> None:
        self.origin = origin
        self.max_drift_ms = max_drift_ms
        self._physical_ms = physical_ms
        self._last = Timestamp(0, 0, origin)
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls, config: ClockConfig, *, physical_ms: Callable[[], int] = wall_clock_ms
    ) -> HybridLogicalClock:
        """A clock for the origin and drift bound in *config*."""
        return cls(config.origin, max_drift_ms=config.max_drift_ms, physical_ms=physical_ms)

    @property
    def last(self) -> Timestamp:
        return self._last

    def send(self) -> Timestamp:
        """Issue a timestamp for a local event."""
        with self._lock:
            phys = self._physical_ms()
            millis = max(self._last.millis, phys)
            counter = self._last.counter + 1 if millis == self._last.millis else 0
            self._last = self._advance(millis, counter, phys)
            return self._last

    def receive(self, remote: Timestamp) -> Timestamp:
        """Merge a timestamp received from another replica."""
        if remote.origin == self.origin:
            raise DuplicateOriginError(f"remote timestamp shares origin {self.origin!r}")
        with self._lock:
            phys = self._physical_ms()
            local = self._last
            millis = max(local.millis, remote.millis, phys)
            if millis == local.millis == remote.millis:
                counter = max(local.counter, remote.counter) + 1
            elif millis == local.millis:
                counter = local.counter + 1
            elif millis == remote.millis:
                counter = remote.counter + 1
            else:
                counter = 0
            try:
                self._last = self._advance(millis, counter, phys)
            except ClockDriftError:
                logger.warning("Rejected remote timestamp %s from the future", remote)
                raise
            logger.debug("Merged %s -> %s", remote, self._last)
            return self._last

    def _advance(self, millis: int, counter: int, phys: int) -> Timestamp:
        if millis - phys > self.max_drift_ms:
            raise ClockDriftError(millis, phys, self.max_drift_ms)
        if counter > MAX_COUNTER:
            raise CounterOverflowError(f"counter overflow at {millis}ms")
        return Timestamp(millis, counter, self.origin)
