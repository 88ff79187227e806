"""
api/routes/stats.py

GET /api/stats — aggregator, runner and pipeline counters
"""

from __future__ import annotations

from fastapi import APIRouter

from ...metrics import METRICS
from ..serializers import StatsResponse

router = APIRouter(prefix="/stats", tags=["stats"])


def _get_pipeline_stats() -> dict:
    from ..main import get_pipeline_stats
    return get_pipeline_stats()


@router.get("", response_model=StatsResponse)
async def get_stats() -> StatsResponse:
    """Return live counters for the running aggregator."""
    stats = _get_pipeline_stats()
    return StatsResponse(
        aggregator=dict(stats.get("aggregator", {})),
        runner=dict(stats.get("runner", {})),
        pipeline=METRICS.as_dict(),
    )
