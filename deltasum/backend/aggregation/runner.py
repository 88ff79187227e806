"""
aggregation/runner.py

AggregatorRunner — the single coroutine that owns an aggregator.

Consumes Sample objects from the input queue, ingests them, and every
`interval` seconds runs flush() then reset(), putting the emitted samples
on the output queue. Because only this coroutine touches the aggregator,
ingest/flush/reset never interleave.

Scheduling:
  - Main loop: asyncio.wait_for(queue.get(), timeout=poll)
    The timeout lets interval ticks fire during quiet periods.
  - Interval ticks use time.monotonic(); emitted timestamps use time.time().
  - Graceful shutdown: on CancelledError, flushes the open window.

Stats dict:
    samples_processed — samples the aggregator accepted
    windows_flushed   — completed flush/reset cycles
"""

from __future__ import annotations

import asyncio
import logging
import time

from ..metrics import METRICS
from ..models import CollectingSink, Sample
from ..pipeline import safe_put
from .base import BaseAggregator

logger = logging.getLogger(__name__)


class AggregatorRunner:
    """
    Bridges the input queue → aggregator → output queue.

    Args:
        aggregator:   The aggregator instance this runner owns.
        input_queue:  asyncio.Queue[Sample]
        output_queue: asyncio.Queue[EmittedSample]
        interval:     Seconds between flush/reset cycles.
    """

    def __init__(
        self,
        aggregator: BaseAggregator,
        input_queue: asyncio.Queue,
        output_queue: asyncio.Queue,
        interval: float,
    ) -> None:
        self._agg = aggregator
        self._input_q = input_queue
        self._output_q = output_queue
        self._interval = interval
        self._poll_timeout = min(1.0, interval)
        self._sink = CollectingSink()
        self._last_tick = time.monotonic()

        self.stats: dict[str, int] = {
            "samples_processed": 0,
            "windows_flushed": 0,
        }

    @property
    def aggregator(self) -> BaseAggregator:
        return self._agg

    # ------------------------------------------------------------------
    # Main async loop
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """
        Main loop. Runs until cancelled.

        On CancelledError, flushes the open window to the output queue
        before re-raising so no data is silently lost on shutdown.
        """
        logger.info("Aggregator %r started — interval=%.1fs", self._agg.name, self._interval)
        try:
            while True:
                await self._process_one()
        except asyncio.CancelledError:
            logger.info("Runner cancellation received — flushing open window…")
            await self._flush()
            raise

    async def tick(self) -> int:
        """Close the current window: flush, emit, reset. Returns samples emitted."""
        emitted = await self._flush()
        self._agg.reset()
        self.stats["windows_flushed"] += 1
        return emitted

    # ------------------------------------------------------------------
    # Internal: per-iteration logic
    # ------------------------------------------------------------------

    async def _process_one(self) -> None:
        """Run a due interval tick, then dequeue and ingest at most one sample."""
        now = time.monotonic()
        if now - self._last_tick >= self._interval:
            await self.tick()
            self._last_tick = now

        try:
            sample: Sample = await asyncio.wait_for(
                self._input_q.get(), timeout=self._poll_timeout
            )
            self._input_q.task_done()
        except asyncio.TimeoutError:
            return

        if self._agg.ingest(sample):
            self.stats["samples_processed"] += 1

    async def _flush(self) -> int:
        self._agg.flush(self._sink)
        emitted = 0
        for sample in self._sink.drain():
            if await safe_put(self._output_q, sample, "output_dropped"):
                METRICS.inc("samples_emitted")
                emitted += 1
        if emitted:
            logger.debug("Emitted %d samples", emitted)
        return emitted
