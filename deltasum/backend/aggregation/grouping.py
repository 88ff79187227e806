"""
aggregation/grouping.py

Grouping policies — decide which tags identify an output series.

Three closed variants, chosen once at engine initialisation:
    NoGrouping        — every tag is kept
    GroupWithout(S)   — every tag except those whose key is in S
    GroupBy(S)        — only tags whose key is in S

Each policy returns a fresh dict; the caller's tags are never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Union


@dataclass(frozen=True)
class NoGrouping:
    """Pass every tag through unchanged."""

    @property
    def mode(self) -> str:
        return "none"

    def apply(self, tags: Mapping[str, str]) -> dict[str, str]:
        return dict(tags)


@dataclass(frozen=True)
class GroupWithout:
    """Drop the configured tag keys."""

    labels: frozenset[str]

    @property
    def mode(self) -> str:
        return "group_without"

    def apply(self, tags: Mapping[str, str]) -> dict[str, str]:
        return {k: v for k, v in tags.items() if k not in self.labels}


@dataclass(frozen=True)
class GroupBy:
    """Keep only the configured tag keys."""

    labels: frozenset[str]

    @property
    def mode(self) -> str:
        return "group_by"

    def apply(self, tags: Mapping[str, str]) -> dict[str, str]:
        return {k: v for k, v in tags.items() if k in self.labels}


GroupingPolicy = Union[NoGrouping, GroupWithout, GroupBy]


def make_policy(
    group_by: Iterable[str] | None = None,
    group_without: Iterable[str] | None = None,
) -> GroupingPolicy:
    """
    Build the policy for a (validated) pair of label selections.

    Empty or missing selections count as "not set". Raises ValueError if
    both are set; the aggregator reports that case earlier as a
    ConfigurationError.
    """
    by = frozenset(group_by or ())
    without = frozenset(group_without or ())
    if by and without:
        raise ValueError("at most one of group_by and group_without may be set")
    if without:
        return GroupWithout(without)
    if by:
        return GroupBy(by)
    return NoGrouping()
