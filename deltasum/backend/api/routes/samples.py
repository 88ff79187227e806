"""
api/routes/samples.py

POST /api/samples — queue a batch of counter samples for aggregation

Samples are only checked for shape here. Field validation (exactly one
numeric 'value' field) happens in the aggregator, which silently ignores
anything else.
"""

from __future__ import annotations

import time

from fastapi import APIRouter, HTTPException

from ...metrics import METRICS
from ...models import Sample
from ...pipeline import safe_put
from ..serializers import IngestResponse, SampleBatch

router = APIRouter(prefix="/samples", tags=["samples"])


def _get_input_queue():
    from ..main import get_input_queue
    return get_input_queue()


@router.post("", response_model=IngestResponse, status_code=202)
async def post_samples(batch: SampleBatch) -> IngestResponse:
    """
    Put every sample in the batch on the input queue.

    `dropped` counts queued samples lost to make room for this batch.
    """
    queue = _get_input_queue()
    if queue is None:
        raise HTTPException(status_code=503, detail="Pipeline not running")

    received_at = time.time()
    queued = 0
    dropped = 0
    for item in batch.samples:
        sample = Sample(
            name=item.name,
            tags=dict(item.tags),
            fields=dict(item.fields),
            timestamp=item.timestamp if item.timestamp is not None else received_at,
        )
        displaces_oldest = queue.full()
        if await safe_put(queue, sample, "input_dropped"):
            METRICS.inc("samples_received")
            queued += 1
            if displaces_oldest:
                dropped += 1
        else:
            dropped += 1
    return IngestResponse(queued=queued, dropped=dropped)
