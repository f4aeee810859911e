"""Monotonic latency measurement."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass(slots=True)
class Timer:
    """Measures elapsed seconds for one operation.

    Uses ``time.perf_counter`` so wall-clock adjustments never distort
    latencies.

    Example:
        >>> timer = Timer.start()
        >>> ...
        >>> latency = timer.elapsed()
    """

    started_at: float = field(default_factory=time.perf_counter)

    @classmethod
    def start(cls) -> Timer:
        """Start a new timer now."""
        return cls()

    def elapsed(self) -> float:
        """Seconds since the timer started."""
        return time.perf_counter() - self.started_at


__all__ = ["Timer"]
