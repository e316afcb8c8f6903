"""
Integration tests for the worker and producer processes.
"""

import asyncio
import time

from jobqueue.config import Settings
from jobqueue.constants import JobStatus
from jobqueue.producer.main import NOT_FOUND, Producer
from jobqueue.queue import Queue
from jobqueue.worker.handlers import handle_echo
from jobqueue.worker.main import Worker


class TestWorker:
    """Tests for the long-running Worker."""

    async def test_processes_until_stopped(self, queue: Queue, test_settings: Settings):
        """Test the worker keeps claiming jobs and stops on request."""
        worker = Worker(queue, handle_echo, test_settings)
        task = asyncio.create_task(worker.start())

        uuids = [await queue.enqueue([f"job-{i}"], 30) for i in range(2)]

        deadline = time.monotonic() + 10
        while [await queue.status(u) for u in uuids] != [JobStatus.FINISHED] * 2:
            assert time.monotonic() < deadline
            await asyncio.sleep(0.05)

        await worker.stop()

        assert await task == 0
        assert await queue.result(uuids[1]) == "job-1"

    async def test_stop_before_start_is_noop(self, queue: Queue, test_settings: Settings):
        """Test stopping an idle worker does nothing."""
        worker = Worker(queue, handle_echo, test_settings)

        await worker.stop()


class TestProducer:
    """Tests for the batch Producer."""

    async def test_submit_and_report(self, queue: Queue, test_settings: Settings):
        """Test a submitted batch is reported with each job's outcome."""
        producer = Producer(queue, test_settings)

        uuids = await producer.submit(["hi", "there"], 3)
        assert len(set(uuids)) == 3
        assert await queue.pending() == 3

        for _ in uuids:
            await queue.work(1, handle_echo, 5, 10, 5, False, False)

        rows = await producer.report(uuids)

        assert rows == [(uuid, "FINISHED", "hi there") for uuid in uuids]

    async def test_report_missing_job(self, queue: Queue, test_settings: Settings):
        """Test expired or unknown jobs are reported as NOT_FOUND."""
        rows = await Producer(queue, test_settings).report(["missing"])

        assert rows == [("missing", NOT_FOUND, "")]

    async def test_run_without_workers(self, queue: Queue, test_settings: Settings):
        """Test a batch nobody works on is still QUEUED after the wait."""
        rows = await Producer(queue, test_settings).run(["x"])

        assert len(rows) == test_settings.producer_job_count
        assert {status for _, status, _ in rows} == {"QUEUED"}
        assert {result for _, _, result in rows} == {""}
