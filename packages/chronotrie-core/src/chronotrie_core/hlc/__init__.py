"""Hybrid logical timestamps and the clock that issues them."""

from chronotrie_core.hlc.clock import (
    ClockDriftError,
    ClockError,
    CounterOverflowError,
    DuplicateOriginError,
    HybridLogicalClock,
)
from chronotrie_core.hlc.models import Timestamp

__all__ = [
    "ClockDriftError",
    "ClockError",
    "CounterOverflowError",
    "DuplicateOriginError",
    "HybridLogicalClock",
    "Timestamp",
]
