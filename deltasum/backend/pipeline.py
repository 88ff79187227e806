"""
backend/pipeline.py

Defines the asyncio.Queue instances between the API, the aggregator runner
and the output consumer, plus the ring-buffer safe_put() helper used to
enqueue without blocking.

  input_queue  — Sample objects waiting to be ingested
  output_queue — EmittedSample objects waiting for the output consumer

All queues use safe_put() which drops the *oldest* item when full
(ring-buffer semantics) rather than blocking the producer.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .metrics import METRICS

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Queue definitions — import these from other modules
# ---------------------------------------------------------------------------

# Lazily initialised so tests can create fresh queues without import side effects.
# Call init_queues() once at startup (done inside main.py).

input_queue: asyncio.Queue | None = None
output_queue: asyncio.Queue | None = None


def init_queues(input_size: int = 10_000, output_size: int = 10_000) -> None:
    """
    Initialise both pipeline queues.
    Must be called from within a running asyncio event loop.
    """
    global input_queue, output_queue
    input_queue = asyncio.Queue(maxsize=input_size)
    output_queue = asyncio.Queue(maxsize=output_size)
    logger.info(
        "Pipeline queues initialised — sizes: input=%d output=%d",
        input_size,
        output_size,
    )


# ---------------------------------------------------------------------------
# Ring-buffer put helper
# ---------------------------------------------------------------------------

async def safe_put(queue: asyncio.Queue, item: Any, drop_counter: str) -> bool:
    """
    Enqueue without blocking; a full queue loses its oldest item instead.

    Args:
        queue:        Target queue.
        item:         Sample to enqueue.
        drop_counter: METRICS counter charged for every sample lost here,
                      e.g. "input_dropped" or "output_dropped".

    Returns True if `item` itself is now on the queue.
    """
    if queue.full():
        try:
            displaced = queue.get_nowait()
        except asyncio.QueueEmpty:
            displaced = None  # a consumer emptied the queue meanwhile
        else:
            queue.task_done()
            METRICS.inc(drop_counter)
            logger.warning(
                "%s: queue full (maxsize=%d), displaced %r",
                drop_counter,
                queue.maxsize,
                displaced,
            )

    try:
        queue.put_nowait(item)
    except asyncio.QueueFull:
        METRICS.inc(drop_counter)
        logger.error("%s: queue refilled before put, sample lost: %r", drop_counter, item)
        return False
    return True
