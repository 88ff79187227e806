"""
aggregation/aggregator.py

DeltaSumAggregator — turns raw counter readings into per-window delta sums.

Per sample:
    1. Hash (name, full tags) → raw SeriesKey → DeltaTracker → delta
    2. Apply the grouping policy to the tags
    3. Hash (name, grouped tags) → output SeriesKey → SumAccumulator

Per interval (driven by the host):
    flush() — emit every output series touched this window. The first
              window of an output series is preceded by a 0 sample placed
              half an interval before the flush, so downstream rate
              functions have an anchor.
    reset() — evict states older than the grace period, clear window
              flags, zero the sums (unless cumulative).

Stats dict:
    samples_ingested — samples folded into the engine
    samples_emitted  — samples handed to sinks (zero anchors included)
    series_evicted   — raw + output states dropped by the grace period
    flushes          — completed flush() calls
    delta_series     — raw series currently tracked
    sum_series       — output series currently tracked

Thread safety: NOT thread-safe. ingest/flush/reset must be serialised by
the caller (see AggregatorRunner).
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

from ..config import AggregatorConfig, ConfigurationError
from ..models import Sample, Sink
from .base import BaseAggregator
from .delta_tracker import DeltaTracker
from .grouping import GroupingPolicy, make_policy
from .models import DeltaState, SeriesKey, SumState, make_series_key
from .sum_accumulator import SumAccumulator

logger = logging.getLogger(__name__)

VALUE_FIELD = "value"

# Readings must fit a signed or unsigned 64-bit counter
_INT_MIN = -(2**63)
_INT_LIMIT = 2**64


def extract_value(fields: Mapping[str, Any] | None) -> float | None:
    """
    Return the numeric reading of a sample, or None if the sample does not
    have exactly one field named 'value' holding a float or an integer
    within the signed/unsigned 64-bit range.
    """
    if not fields or len(fields) != 1:
        return None
    value = fields.get(VALUE_FIELD)
    # bool is an int subclass but not a counter reading
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, int) and not _INT_MIN <= value < _INT_LIMIT:
        return None
    return float(value)


def build_grouping_policy(config: AggregatorConfig) -> GroupingPolicy:
    has_by = bool(config.group_by_labels)
    has_without = bool(config.group_without_labels)
    if has_by and has_without:
        raise ConfigurationError(
            "at most one of group_without_labels and group_by_labels may be set"
        )
    if config.require_grouping and not (has_by or has_without):
        raise ConfigurationError(
            "one of group_without_labels or group_by_labels must be set"
        )
    return make_policy(
        group_by=config.group_by_labels,
        group_without=config.group_without_labels,
    )


class DeltaSumAggregator(BaseAggregator):
    """
    Delta-sum aggregator for monotonically increasing counters.

    Args:
        config: Validated AggregatorConfig. Defaults apply when omitted.

    Raises:
        ConfigurationError: if the grouping selections are inconsistent.
    """

    name = "dbcounter"

    def __init__(self, config: AggregatorConfig | None = None) -> None:
        self.config = config or AggregatorConfig()
        self.policy: GroupingPolicy = build_grouping_policy(self.config)

        self._deltas = DeltaTracker()
        self._sums = SumAccumulator(cumulative=self.config.cumulative)

        self.stats: dict[str, int] = {
            "samples_ingested": 0,
            "samples_emitted": 0,
            "series_evicted": 0,
            "flushes": 0,
            "delta_series": 0,
            "sum_series": 0,
        }
        logger.debug(
            "dbcounter aggregator initialised with grouping mode: %s", self.policy.mode
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ingest(self, sample: Sample) -> bool:
        """
        Fold one sample into the current window.

        Samples whose fields are not exactly {'value': number} are ignored
        and leave every state untouched. Returns True if the sample was used.
        """
        value = extract_value(sample.fields)
        if value is None:
            return False

        raw_key = make_series_key(sample.name, sample.tags)
        grouped = self.policy.apply(sample.tags)
        output_key = make_series_key(sample.name, grouped)

        delta = self._deltas.observe(
            raw_key, sample.name, sample.tags, value, sample.timestamp
        )
        self._sums.fold(output_key, sample.name, grouped, delta, sample.timestamp)

        self.stats["samples_ingested"] += 1
        self._update_sizes()
        return True

    def flush(self, sink: Sink, now: float | None = None) -> int:
        """Emit every output series seen since the last reset()."""
        now = time.time() if now is None else now
        anchor_ts = now - self.config.aggregation_interval / 2
        emitted = 0

        for state in self._sums.seen():
            name = state.name + self.config.name_suffix
            if state.first_observation:
                sink.emit(name, {VALUE_FIELD: 0.0}, dict(state.tags), anchor_ts)
                emitted += 1
            sink.emit(name, {VALUE_FIELD: state.accumulated_value}, dict(state.tags), now)
            emitted += 1

        self.stats["samples_emitted"] += emitted
        self.stats["flushes"] += 1
        logger.debug("Flushed %d samples from %d output series", emitted, len(self._sums))
        return emitted

    def reset(self, now: float | None = None) -> int:
        """Evict stale states and start a new window."""
        now = time.time() if now is None else now
        grace = self.config.late_series_grace_period

        deltas_evicted = self._deltas.sweep(now, grace)
        sums_evicted = self._sums.sweep(now, grace)
        evicted = len(deltas_evicted) + len(sums_evicted)

        if evicted:
            self.stats["series_evicted"] += evicted
            logger.info(
                "Evicted %d raw and %d output series (grace=%.0fs, remaining: %d raw / %d output)",
                len(deltas_evicted),
                len(sums_evicted),
                grace,
                len(self._deltas),
                len(self._sums),
            )
        self._update_sizes()
        return evicted

    @property
    def delta_states(self) -> dict[SeriesKey, DeltaState]:
        return self._deltas.states

    @property
    def sum_states(self) -> dict[SeriesKey, SumState]:
        return self._sums.states

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _update_sizes(self) -> None:
        self.stats["delta_series"] = len(self._deltas)
        self.stats["sum_series"] = len(self._sums)
