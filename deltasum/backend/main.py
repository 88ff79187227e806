
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import NoReturn

import uvicorn

from . import pipeline
from .aggregation import AggregatorRunner
from .api.main import create_app, set_input_queue, set_pipeline_stats
from .config import ConfigurationError, settings
from .metrics import METRICS
from .models import EmittedSample
from .pipeline import init_queues
from .registry import available, create

logger = logging.getLogger("deltasum.main")


# ---------------------------------------------------------------------------
# Output consumer — output_queue → stdout (JSON lines)
# ---------------------------------------------------------------------------

async def output_consumer(producer: asyncio.Task, poll: float = 0.5) -> None:
    """
    Write every emitted sample to stdout as one JSON object per line.

    Runs until `producer` (the runner task) has finished and the output
    queue is empty, so the runner's shutdown flush is always written.
    """
    logger.info("Output consumer started")
    while True:
        try:
            sample: EmittedSample = await asyncio.wait_for(
                pipeline.output_queue.get(), timeout=poll
            )
        except asyncio.TimeoutError:
            if producer.done():
                break
            continue
        pipeline.output_queue.task_done()
        print(json.dumps(sample.to_dict(), sort_keys=True), flush=True)
    logger.info("Output consumer exiting")


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

async def run(aggregator_name: str, host: str, port: int) -> None:
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    config = settings.aggregator_config()
    aggregator = create(aggregator_name, config)

    init_queues(
        input_size=settings.INPUT_QUEUE_SIZE,
        output_size=settings.OUTPUT_QUEUE_SIZE,
    )

    def _signal_handler(_signum, _frame) -> None:
        logger.info("Shutdown signal received")
        loop.call_soon_threadsafe(shutdown_event.set)

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    runner = AggregatorRunner(
        aggregator=aggregator,
        input_queue=pipeline.input_queue,
        output_queue=pipeline.output_queue,
        interval=config.aggregation_interval,
    )

    # Wire API state
    set_input_queue(pipeline.input_queue)
    set_pipeline_stats({"aggregator": aggregator.stats, "runner": runner.stats})

    app = create_app()
    uv_config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="warning",
        loop="none",
    )
    uv_server = uvicorn.Server(uv_config)

    runner_task = asyncio.create_task(runner.run(), name="runner")
    tasks = [
        runner_task,
        asyncio.create_task(output_consumer(runner_task), name="output"),
        asyncio.create_task(uv_server.serve(), name="api"),
    ]

    logger.info(
        "deltasum — aggregator=%r interval=%.0fs grace=%.0fs API=http://%s:%d",
        aggregator_name,
        config.aggregation_interval,
        config.late_series_grace_period,
        host,
        port,
    )

    await shutdown_event.wait()

    uv_server.should_exit = True
    set_input_queue(None)
    # The runner flushes its open window on cancellation; the output
    # consumer keeps going until that flush is written.
    runner_task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    logger.info(
        "Final stats — aggregator=%s runner=%s pipeline=%s",
        aggregator.stats, runner.stats, METRICS.as_dict(),
    )
    logger.info("deltasum stopped cleanly")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="deltasum counter aggregator")
    parser.add_argument("--aggregator", default="dbcounter")
    parser.add_argument("--host", default=settings.API_HOST)
    parser.add_argument("--port", type=int, default=settings.API_PORT)
    parser.add_argument(
        "--log-level", default=settings.LOG_LEVEL.upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args()


def main() -> NoReturn:
    args = _parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    if args.aggregator not in available():
        print(f"ERROR: unknown aggregator {args.aggregator!r}", file=sys.stderr)
        sys.exit(1)

    try:
        asyncio.run(run(aggregator_name=args.aggregator, host=args.host, port=args.port))
    except ConfigurationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
