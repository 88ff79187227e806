"""
aggregation/sum_accumulator.py

SumAccumulator — per output-series running total of deltas.

Several raw series can fold into one output series when the grouping
policy drops the tags that distinguish them. The first_observation flag
is only consumed by sweep(), never by fold(), so every fold inside the
first window still counts as part of that first observation.

Thread safety: NOT thread-safe. The owning aggregator serialises access.
"""

from __future__ import annotations

import logging
from typing import Iterator, Mapping

from .models import SeriesKey, SumState

logger = logging.getLogger(__name__)


class SumAccumulator:
    """Per output-series window totals keyed by grouped SeriesKey."""

    def __init__(self, cumulative: bool = False) -> None:
        self.states: dict[SeriesKey, SumState] = {}
        self._cumulative = cumulative

    def fold(
        self,
        key: SeriesKey,
        name: str,
        tags: Mapping[str, str],
        delta: float,
        timestamp: float,
    ) -> SumState:
        """Add `delta` to the output series, creating it on first use."""
        state = self.states.get(key)
        if state is None:
            state = SumState(
                name=name,
                tags=dict(tags),
                accumulated_value=delta,
                last_update=timestamp,
            )
            self.states[key] = state
            logger.debug(
                "New output series: %s %s (tracked: %d)", name, state.tags, len(self.states)
            )
            return state

        state.accumulated_value += delta
        state.seen_this_window = True
        state.last_update = timestamp
        return state

    def seen(self) -> Iterator[SumState]:
        """Yield output series touched since the last sweep, in first-seen order."""
        for state in self.states.values():
            if state.seen_this_window:
                yield state

    def sweep(self, now: float, grace_seconds: float) -> list[SumState]:
        """
        Evict states idle for longer than `grace_seconds`; start a new
        window on the rest.

        Surviving states lose their per-window flags and, unless the
        accumulator is cumulative, have their total zeroed.
        """
        evicted: list[SumState] = []
        for key in list(self.states):
            state = self.states[key]
            if now - state.last_update > grace_seconds:
                evicted.append(self.states.pop(key))
                continue
            state.seen_this_window = False
            state.first_observation = False
            if not self._cumulative:
                state.accumulated_value = 0.0
        return evicted

    def __len__(self) -> int:
        return len(self.states)
