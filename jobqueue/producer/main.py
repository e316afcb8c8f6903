"""
Batch producer.

Enqueues a batch of jobs, waits for workers to pick them up, then prints
one ``<uuid> <status> <result>`` line per job.
"""

import asyncio
import logging
import sys

from jobqueue.config import Settings, get_settings
from jobqueue.exceptions import JobNotFoundError
from jobqueue.observability.logging import setup_logging
from jobqueue.observability.tracing import setup_tracing
from jobqueue.queue import Queue

logger = logging.getLogger(__name__)

NOT_FOUND = "NOT_FOUND"


class Producer:
    """
    Enqueues a batch of identical jobs and collects their outcome.
    """

    def __init__(self, queue: Queue, settings: Settings | None = None):
        self.queue = queue
        self.settings = settings or get_settings()

    async def submit(self, args: list[str], count: int) -> list[str]:
        """
        Enqueue ``count`` jobs with the same args.

        Returns:
            The job uuids in enqueue order.
        """
        uuids = []
        for _ in range(count):
            uuids.append(
                await self.queue.enqueue(args, self.settings.job_expire_seconds)
            )
        logger.info(
            "Batch enqueued",
            extra={"queue": self.queue.name, "count": count},
        )
        return uuids

    async def report(self, uuids: list[str]) -> list[tuple[str, str, str]]:
        """
        Read back status and result of each job.

        Jobs whose record expired are reported with status NOT_FOUND.
        """
        rows = []
        for uuid in uuids:
            try:
                status = str(await self.queue.status(uuid))
                result = await self.queue.result(uuid) or ""
            except JobNotFoundError:
                status, result = NOT_FOUND, ""
            rows.append((uuid, status, result))
        return rows

    async def run(self, args: list[str]) -> list[tuple[str, str, str]]:
        """Submit a batch, wait, and report it."""
        uuids = await self.submit(args, self.settings.producer_job_count)
        await asyncio.sleep(self.settings.producer_wait_seconds)
        return await self.report(uuids)


async def run_async(args: list[str]) -> None:
    """Run the producer asynchronously."""
    settings = get_settings()
    setup_logging()
    setup_tracing()

    async with Queue(settings.redis_url, settings.queue_name) as queue:
        rows = await Producer(queue, settings).run(args)

    for uuid, status, result in rows:
        print(uuid, status, result)


def run() -> None:
    """Run the producer with the command-line arguments as job args."""
    asyncio.run(run_async(sys.argv[1:]))


if __name__ == "__main__":
    run()
