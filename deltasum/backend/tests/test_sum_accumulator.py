"""
tests/test_sum_accumulator.py

Tests for aggregation/sum_accumulator.py.
"""

from __future__ import annotations

from deltasum.backend.aggregation.models import make_series_key
from deltasum.backend.aggregation.sum_accumulator import SumAccumulator

T0 = 1_530_939_936.0
TAGS = {"foo": "bar"}
KEY = make_series_key("m1", TAGS)


def fold(acc: SumAccumulator, delta: float, ts: float = T0, tags=TAGS):
    return acc.fold(make_series_key("m1", tags), "m1", tags, delta, ts)


class TestSumAccumulatorFold:

    def test_first_fold_creates_state(self):
        acc = SumAccumulator()
        state = fold(acc, 0.0)
        assert state.accumulated_value == 0.0
        assert state.first_observation is True
        assert state.seen_this_window is True
        assert state.last_update == T0

    def test_folds_add_up(self):
        acc = SumAccumulator()
        for delta in (0.0, 1.0, 1.0, 4.0):
            fold(acc, delta)
        assert acc.states[KEY].accumulated_value == 6.0

    def test_first_observation_survives_multiple_folds(self):
        acc = SumAccumulator()
        fold(acc, 1.0)
        fold(acc, 2.0)
        assert acc.states[KEY].first_observation is True

    def test_seen_yields_only_touched_states(self):
        acc = SumAccumulator()
        fold(acc, 1.0, tags={"foo": "a"})
        fold(acc, 1.0, tags={"foo": "b"})
        acc.sweep(now=T0, grace_seconds=300)
        fold(acc, 1.0, tags={"foo": "b"})
        assert [s.tags for s in acc.seen()] == [{"foo": "b"}]

    def test_seen_preserves_first_seen_order(self):
        acc = SumAccumulator()
        for name in ("c", "a", "b"):
            fold(acc, 0.0, tags={"foo": name})
        assert [s.tags["foo"] for s in acc.seen()] == ["c", "a", "b"]


class TestSumAccumulatorSweep:

    def test_sweep_clears_flags_and_zeroes_total(self):
        acc = SumAccumulator()
        fold(acc, 5.0)
        assert acc.sweep(now=T0 + 1, grace_seconds=300) == []
        state = acc.states[KEY]
        assert state.seen_this_window is False
        assert state.first_observation is False
        assert state.accumulated_value == 0.0

    def test_cumulative_keeps_total(self):
        acc = SumAccumulator(cumulative=True)
        fold(acc, 5.0)
        acc.sweep(now=T0 + 1, grace_seconds=300)
        fold(acc, 2.0, ts=T0 + 2)
        assert acc.states[KEY].accumulated_value == 7.0

    def test_first_observation_never_returns(self):
        acc = SumAccumulator()
        fold(acc, 1.0)
        acc.sweep(now=T0 + 1, grace_seconds=300)
        fold(acc, 1.0, ts=T0 + 2)
        assert acc.states[KEY].first_observation is False

    def test_stale_state_is_evicted(self):
        acc = SumAccumulator()
        fold(acc, 1.0)
        evicted = acc.sweep(now=T0 + 301, grace_seconds=300)
        assert len(evicted) == 1
        assert len(acc) == 0

    def test_state_recreated_after_eviction_is_first_observation_again(self):
        acc = SumAccumulator()
        fold(acc, 1.0)
        acc.sweep(now=T0 + 301, grace_seconds=300)
        state = fold(acc, 0.0, ts=T0 + 301)
        assert state.first_observation is True
