"""
backend/models.py

Contracts shared with the host: the incoming Sample, the EmittedSample
produced on flush, and the Sink that receives emitted samples.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(slots=True)
class Sample:
    """One counter reading as delivered by the host."""

    name: str
    """Metric name, e.g. 'db_requests_total'."""

    tags: dict[str, str] = field(default_factory=dict)
    """Series identity tags; keys are unique."""

    fields: dict[str, Any] = field(default_factory=dict)
    """Must be exactly {'value': <float | int>} to be aggregated."""

    timestamp: float = 0.0
    """Unix epoch timestamp (float64)."""


@dataclass(slots=True)
class EmittedSample:
    """One aggregated point handed to the Sink."""

    name: str
    fields: dict[str, float]
    tags: dict[str, str]
    timestamp: float

    @property
    def value(self) -> float:
        return self.fields["value"]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "fields": dict(self.fields),
            "tags": dict(self.tags),
            "timestamp": self.timestamp,
        }


class Sink(Protocol):
    """Receives finished samples during flush()."""

    def emit(
        self,
        name: str,
        fields: dict[str, float],
        tags: dict[str, str],
        timestamp: float,
    ) -> None:
        ...


class CollectingSink:
    """Sink that keeps emitted samples in a list, in emission order."""

    def __init__(self) -> None:
        self.samples: list[EmittedSample] = []

    def emit(
        self,
        name: str,
        fields: dict[str, float],
        tags: dict[str, str],
        timestamp: float,
    ) -> None:
        self.samples.append(EmittedSample(name, dict(fields), dict(tags), timestamp))

    def drain(self) -> list[EmittedSample]:
        """Return everything collected so far and start over."""
        samples, self.samples = self.samples, []
        return samples

    def __len__(self) -> int:
        return len(self.samples)
