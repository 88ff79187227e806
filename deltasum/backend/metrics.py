"""
backend/metrics.py

Pipeline sample counts shared by the API handlers, the runner and the
output consumer. Counts are kept in one dict behind one lock so that
as_dict() is a consistent snapshot.

Usage:
    from deltasum.backend.metrics import METRICS
    METRICS.inc("samples_received")
    print(METRICS.as_dict())
"""

from __future__ import annotations

import threading

PIPELINE_COUNTERS = (
    "samples_received",  # accepted by the API and queued for ingestion
    "input_dropped",     # queued samples displaced by newer ones (input queue full)
    "output_dropped",    # emitted samples displaced before reaching the consumer
    "samples_emitted",   # aggregated samples put on the output queue
)


class Metrics:
    """Named pipeline counters. Unknown names raise KeyError."""

    def __init__(self, names: tuple[str, ...] = PIPELINE_COUNTERS) -> None:
        self._lock = threading.Lock()
        self._counts: dict[str, int] = dict.fromkeys(names, 0)

    def inc(self, name: str, amount: int = 1) -> None:
        with self._lock:
            if name not in self._counts:
                raise KeyError(f"unknown pipeline counter {name!r}")
            self._counts[name] += amount

    def value(self, name: str) -> int:
        with self._lock:
            return self._counts[name]

    def as_dict(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def reset_all(self) -> None:
        """Zero every counter (useful in tests)."""
        with self._lock:
            for name in self._counts:
                self._counts[name] = 0


# Module-level singleton — import from here everywhere
METRICS = Metrics()
