"""
aggregation/__init__.py

Public API for the aggregation sub-package.
"""

from .aggregator import DeltaSumAggregator, extract_value
from .base import BaseAggregator
from .delta_tracker import DeltaTracker, compute_delta
from .grouping import GroupBy, GroupingPolicy, GroupWithout, NoGrouping, make_policy
from .models import DeltaState, SeriesKey, SumState, make_series_key
from .runner import AggregatorRunner
from .sum_accumulator import SumAccumulator

__all__ = [
    "AggregatorRunner",
    "BaseAggregator",
    "DeltaSumAggregator",
    "DeltaState",
    "DeltaTracker",
    "GroupBy",
    "GroupWithout",
    "GroupingPolicy",
    "NoGrouping",
    "SeriesKey",
    "SumAccumulator",
    "SumState",
    "compute_delta",
    "extract_value",
    "make_policy",
    "make_series_key",
]
