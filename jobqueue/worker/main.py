"""
Worker process for executing jobs.

The worker claims jobs from one queue, runs the configured handler and
reports each job's terminal status through the store.
"""

import asyncio
import logging
import signal

from jobqueue.config import Settings, get_settings
from jobqueue.observability.logging import setup_logging
from jobqueue.observability.metrics import setup_metrics
from jobqueue.observability.tracing import setup_tracing
from jobqueue.queue import Queue
from jobqueue.types.job import ProcessFunction
from jobqueue.worker.handlers import resolve_handler

logger = logging.getLogger(__name__)


class Worker:
    """
    Long-running worker bound to one queue.

    Features:
    - Blocking claims with a bounded wait, so shutdown is never stuck
    - Timeout supervision of every job (LOST detection)
    - Graceful shutdown on SIGTERM/SIGINT
    """

    def __init__(
        self,
        queue: Queue,
        handler: ProcessFunction,
        settings: Settings | None = None,
    ):
        """
        Initialize the worker.

        Args:
            queue: Queue to claim jobs from.
            handler: Processing function for every claimed job.
            settings: Worker settings. Defaults to the environment.
        """
        self.queue = queue
        self.handler = handler
        self.settings = settings or get_settings()
        self._task: asyncio.Task | None = None

    async def start(self) -> int:
        """
        Run the work loop until stopped.

        Returns:
            Number of jobs supervised before the loop ended.
        """
        s = self.settings
        logger.info(
            "Worker starting",
            extra={
                "queue": self.queue.name,
                "timeout": s.worker_timeout_seconds,
                "poll_frequency": s.worker_poll_frequency,
            },
        )

        self._task = asyncio.create_task(
            self.queue.work(
                s.worker_wait_seconds,
                self.handler,
                timeout=s.worker_timeout_seconds,
                poll_frequency=s.worker_poll_frequency,
                result_expire=s.worker_result_expire_seconds,
                fatal_on_lost=s.worker_fatal_on_lost,
                repeat=True,
            )
        )

        try:
            return await self._task
        except asyncio.CancelledError:
            logger.info("Worker stopped", extra={"queue": self.queue.name})
            return 0
        finally:
            self._task = None

    async def stop(self) -> None:
        """Stop the worker. A job being supervised is abandoned mid-poll."""
        logger.info("Worker stopping", extra={"queue": self.queue.name})
        if self._task is not None:
            self._task.cancel()


async def run_async() -> None:
    """Run the worker asynchronously."""
    settings = get_settings()
    setup_logging()
    setup_tracing()
    metrics = setup_metrics(settings.prometheus_port if settings.metrics_enabled else None)

    handler = resolve_handler(settings.worker_handler)
    queue = Queue(
        settings.redis_url,
        settings.queue_name,
        metrics=metrics,
    )
    worker = Worker(queue, handler, settings)

    # Handle shutdown signals
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: asyncio.create_task(worker.stop())
        )

    try:
        await worker.start()
    finally:
        await queue.aclose()


def run() -> None:
    """Run the worker."""
    asyncio.run(run_async())


if __name__ == "__main__":
    run()
