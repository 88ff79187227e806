"""
api/serializers.py

Request / response models for the REST API.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SampleIn(BaseModel):
    name: str = Field(min_length=1)
    tags: dict[str, str] = {}
    fields: dict[str, Any]
    timestamp: float | None = None
    """Unix epoch seconds; the receive time is used when omitted."""


class SampleBatch(BaseModel):
    samples: list[SampleIn]


class IngestResponse(BaseModel):
    queued: int
    dropped: int = 0


class StatsResponse(BaseModel):
    aggregator: dict[str, int]
    runner: dict[str, int]
    pipeline: dict[str, int]
