"""
aggregation/base.py

Abstract base class that every aggregator plugin must implement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import Sample, Sink


class BaseAggregator(ABC):
    """
    Contract between an aggregator and the host that schedules it.

    Class-level attributes:
        name — unique identifier the host uses to look the plugin up

    The host calls ingest() for every sample, then flush() and reset()
    once per aggregation interval, never concurrently.
    """

    name: str = ""

    @abstractmethod
    def ingest(self, sample: Sample) -> bool:
        """Fold one sample into the current window. False if it was ignored."""
        ...

    @abstractmethod
    def flush(self, sink: Sink, now: float | None = None) -> int:
        """Emit the current window to `sink` and return the number of samples emitted."""
        ...

    @abstractmethod
    def reset(self, now: float | None = None) -> int:
        """Start a new window and return the number of evicted states."""
        ...

    def __repr__(self) -> str:
        return f"<Aggregator:{self.name}>"
