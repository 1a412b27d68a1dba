"""
Worker process entry point
"""
import asyncio
import signal
from typing import Optional

from prometheus_client import start_http_server
import structlog

from api.config import settings
from api.services.metrics import PrometheusMetricsService
from api.services.queue import QueueService
from api.utils.logger import setup_logging
from worker.pool import WorkerPool
from worker.tasks import make_transcode_task

logger = structlog.get_logger()


async def run_worker(shutdown: Optional[asyncio.Event] = None) -> None:
    """Connect to the broker and run the pool until a stop signal arrives."""
    shutdown = shutdown or asyncio.Event()

    queue_service = QueueService(blocking_consumers=settings.MAX_PARALLELIZATION)
    # A broker we cannot reach at startup is fatal
    await queue_service.initialize()

    metrics = PrometheusMetricsService()
    if settings.WORKER_METRICS_PORT:
        start_http_server(settings.WORKER_METRICS_PORT, registry=metrics.registry)
        logger.info("Metrics server started", port=settings.WORKER_METRICS_PORT)

    pool = WorkerPool(
        queue_service,
        settings.MAX_PARALLELIZATION,
        work_function=make_transcode_task(),
        metrics=metrics,
        error_backoff=settings.WORKER_ERROR_BACKOFF,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown.set)

    logger.info("Starting worker", max_parallelization=settings.MAX_PARALLELIZATION)
    try:
        await pool.start(shutdown)
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await queue_service.cleanup()


def main():
    """Main entry point for the worker."""
    setup_logging("worker")
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
