"""
aggregation/models.py

Data models for the delta-sum aggregation engine.

SeriesKey  — 64-bit FNV-1a fingerprint of (metric name, tag set)
DeltaState — per raw-series counter readings (keyed by raw SeriesKey)
SumState   — per output-series window total (keyed by grouped SeriesKey)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

SeriesKey = int

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_MASK64 = 0xFFFFFFFFFFFFFFFF

_NAME_SEP = b";"
_KV_SEP = b"="
_TAG_SEP = b";"


# ---------------------------------------------------------------------------
# SeriesKey — order-independent fingerprint
# ---------------------------------------------------------------------------

def _fnv1a(h: int, data: bytes) -> int:
    for byte in data:
        h ^= byte
        h = (h * _FNV64_PRIME) & _MASK64
    return h


def make_series_key(name: str, tags: Mapping[str, str]) -> SeriesKey:
    """
    Return the 64-bit fingerprint of a metric name and tag set.

    Tag keys are sorted before hashing so that the result does not depend on
    mapping iteration order. Byte layout fed to FNV-1a:

        name ";" (key "=" value ";")*

    Collisions are not defended against; the key is only a dict key.
    """
    h = _fnv1a(_FNV64_OFFSET, name.encode("utf-8"))
    h = _fnv1a(h, _NAME_SEP)
    for key in sorted(tags):
        h = _fnv1a(h, key.encode("utf-8"))
        h = _fnv1a(h, _KV_SEP)
        h = _fnv1a(h, tags[key].encode("utf-8"))
        h = _fnv1a(h, _TAG_SEP)
    return h


# ---------------------------------------------------------------------------
# DeltaState — one physical counter
# ---------------------------------------------------------------------------

@dataclass
class DeltaState:
    """
    Last two readings of a raw series.

    `last_value` is None until a second sample has arrived; a series with a
    single reading always yields delta 0.
    """

    name: str
    tags: dict[str, str]
    current_value: float
    last_update: float
    """Timestamp of the most recent sample (Unix epoch seconds)."""

    last_value: float | None = None
    seen_this_window: bool = True

    def __repr__(self) -> str:
        return (
            f"DeltaState({self.name} {self.tags} "
            f"last={self.last_value} current={self.current_value})"
        )


# ---------------------------------------------------------------------------
# SumState — one output series
# ---------------------------------------------------------------------------

@dataclass
class SumState:
    """Running total of deltas folded into an output series this window."""

    name: str
    tags: dict[str, str]
    accumulated_value: float
    last_update: float

    first_observation: bool = True
    """True only during the first window the output series exists in."""

    seen_this_window: bool = True

    def __repr__(self) -> str:
        return (
            f"SumState({self.name} {self.tags} "
            f"value={self.accumulated_value} first={self.first_observation})"
        )
