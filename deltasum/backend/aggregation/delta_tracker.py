"""
aggregation/delta_tracker.py

DeltaTracker — turns successive absolute counter readings into deltas.

Design constraints:
  - One DeltaState per raw series (metric name + full tag set).
  - Only the last two readings are kept; memory is O(1) per series.
  - A decrease is a counter reset and contributes 0. The increment between
    the reset and the first post-reset reading is not recovered.
  - States untouched for longer than the grace period are dropped by
    sweep(); the next reading for that series starts from scratch.

Thread safety: NOT thread-safe. The owning aggregator serialises access.
"""

from __future__ import annotations

import logging
from typing import Mapping

from .models import DeltaState, SeriesKey

logger = logging.getLogger(__name__)


def compute_delta(last: float | None, current: float) -> float:
    """
    Non-negative increase from `last` to `current`.

    Returns 0 when there is no previous reading, when either reading is
    negative, or when the counter went down (reset).
    """
    if last is None or last < 0 or current < 0:
        return 0.0
    return max(0.0, current - last)


class DeltaTracker:
    """Per raw-series counter state keyed by SeriesKey."""

    def __init__(self) -> None:
        self.states: dict[SeriesKey, DeltaState] = {}

    def observe(
        self,
        key: SeriesKey,
        name: str,
        tags: Mapping[str, str],
        value: float,
        timestamp: float,
    ) -> float:
        """Record a reading and return its delta against the previous one."""
        state = self.states.get(key)
        if state is None:
            self.states[key] = DeltaState(
                name=name,
                tags=dict(tags),
                current_value=value,
                last_update=timestamp,
            )
            logger.debug(
                "New raw series: %s %s (tracked: %d)", name, dict(tags), len(self.states)
            )
            return 0.0

        state.last_value = state.current_value
        state.current_value = value
        state.seen_this_window = True
        state.last_update = timestamp
        return compute_delta(state.last_value, state.current_value)

    def sweep(self, now: float, grace_seconds: float) -> list[DeltaState]:
        """
        Evict states idle for longer than `grace_seconds` and clear the
        per-window flag on the rest.

        Returns the evicted states.
        """
        evicted: list[DeltaState] = []
        for key in list(self.states):
            state = self.states[key]
            if now - state.last_update > grace_seconds:
                evicted.append(self.states.pop(key))
                continue
            state.seen_this_window = False
        return evicted

    def __len__(self) -> int:
        return len(self.states)
