"""
Integration tests for producer-side queue operations.
"""

import asyncio
import json

import fakeredis
import pytest
from prometheus_client import CollectorRegistry

from jobqueue.constants import JobStatus
from jobqueue.exceptions import JobDecodeError, JobNotFoundError, StoreUnavailableError
from jobqueue.queue import Queue


class TestEnqueue:
    """Tests for enqueue and the stored layout."""

    async def test_job_queued(self, queue: Queue):
        """Test a freshly enqueued job is QUEUED."""
        uuid = await queue.enqueue([], 5)

        assert await queue.status(uuid) == JobStatus.QUEUED
        assert await queue.result(uuid) is None

    async def test_store_layout(
        self,
        queue: Queue,
        redis_client: fakeredis.FakeAsyncRedis,
        queue_name: str,
    ):
        """Test the record key, its TTL and the pending list."""
        uuid = await queue.enqueue(["a", "b"], 30)

        raw = await redis_client.get(f"{queue_name}:{uuid}")
        assert json.loads(raw) == {
            "uuid": uuid,
            "status": "QUEUED",
            "args": ["a", "b"],
            "result": "",
        }
        assert 0 < await redis_client.ttl(f"{queue_name}:{uuid}") <= 30
        assert await redis_client.lrange(f"{queue_name}:uuids", 0, -1) == [uuid]

    async def test_identical_args_get_distinct_ids(self, queue: Queue):
        """Test enqueue never reuses an id."""
        first = await queue.enqueue(["same"], 5)
        second = await queue.enqueue(["same"], 5)

        assert first != second
        assert await queue.pending() == 2

    async def test_pending_list_is_fifo(
        self,
        queue: Queue,
        redis_client: fakeredis.FakeAsyncRedis,
        queue_name: str,
    ):
        """Test ids are appended in enqueue order."""
        uuids = [await queue.enqueue([str(i)], 5) for i in range(3)]

        assert await redis_client.lrange(f"{queue_name}:uuids", 0, -1) == uuids

    @pytest.mark.parametrize("expire", [0, -1])
    async def test_enqueue_rejects_non_positive_expire(self, queue: Queue, expire: int):
        """Test a record must be written with a real TTL."""
        with pytest.raises(ValueError):
            await queue.enqueue([], expire)

    async def test_enqueue_records_metrics(self, queue: Queue, registry: CollectorRegistry):
        """Test enqueue increments the per-queue counter."""
        await queue.enqueue([], 5)

        assert registry.get_sample_value(
            "jobs_enqueued_total", {"queue": queue.name}
        ) == 1


class TestStatusAndResult:
    """Tests for reading job state back."""

    async def test_job_expired(self, queue: Queue):
        """Test a job never claimed disappears after its TTL."""
        uuid = await queue.enqueue([], 1)
        await asyncio.sleep(2)

        with pytest.raises(JobNotFoundError):
            await queue.status(uuid)
        with pytest.raises(JobNotFoundError) as exc_info:
            await queue.result(uuid)

        assert exc_info.value.uuid == uuid

    async def test_unknown_job(self, queue: Queue):
        """Test reading a job that never existed."""
        with pytest.raises(JobNotFoundError):
            await queue.status("does-not-exist")

    async def test_status_is_stable(self, queue: Queue):
        """Test repeated reads without mutation agree."""
        uuid = await queue.enqueue([], 5)

        statuses = [await queue.status(uuid) for _ in range(3)]

        assert statuses == [JobStatus.QUEUED] * 3

    async def test_corrupt_record(
        self,
        queue: Queue,
        redis_client: fakeredis.FakeAsyncRedis,
        queue_name: str,
    ):
        """Test a corrupt payload raises JobDecodeError."""
        await redis_client.set(f"{queue_name}:broken", "{not json")

        with pytest.raises(JobDecodeError):
            await queue.status("broken")
        with pytest.raises(JobDecodeError):
            await queue.result("broken")


class TestDrop:
    """Tests for drop."""

    async def test_drop_clears_pending_only(self, queue: Queue):
        """Test drop removes pending ids but keeps records."""
        uuid = await queue.enqueue([], 10)

        await queue.drop()

        assert await queue.pending() == 0
        assert await queue.status(uuid) == JobStatus.QUEUED

    async def test_drop_on_empty_queue(self, queue: Queue):
        """Test dropping a queue that has no pending list."""
        await queue.drop()

        assert await queue.pending() == 0

    async def test_pending_updates_depth_gauge(self, queue: Queue, registry: CollectorRegistry):
        """Test pending() publishes the queue depth."""
        await queue.enqueue([], 5)
        await queue.enqueue([], 5)

        assert await queue.pending() == 2
        assert registry.get_sample_value("job_queue_depth", {"queue": queue.name}) == 2


class TestQueueHandle:
    """Tests for the queue handle itself."""

    async def test_construction_performs_no_io(self):
        """Test a queue pointing at an unreachable store can be built and closed."""
        queue = Queue("redis://127.0.0.1:1/0", "offline")

        assert queue.name == "offline"
        assert "offline" in repr(queue)
        await queue.aclose()

    async def test_unreachable_store(self, metrics):
        """Test store failures surface as StoreUnavailableError."""
        async with Queue("redis://127.0.0.1:1/0", "offline", metrics=metrics) as queue:
            with pytest.raises(StoreUnavailableError):
                await queue.enqueue([], 5)
            with pytest.raises(StoreUnavailableError):
                await queue.status("any")

    async def test_injected_client_is_not_closed(
        self,
        redis_client: fakeredis.FakeAsyncRedis,
        metrics,
    ):
        """Test aclose leaves a caller-owned client usable."""
        async with Queue("redis://unused/", "owned", client=redis_client, metrics=metrics):
            pass

        assert await redis_client.ping()
