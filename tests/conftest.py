"""
Pytest configuration and shared fixtures.
"""

from collections.abc import AsyncGenerator
from uuid import uuid4

import fakeredis
import pytest
import pytest_asyncio
from prometheus_client import CollectorRegistry

from jobqueue.config import Settings
from jobqueue.observability.metrics import MetricsCollector
from jobqueue.queue import Queue

TEST_REDIS_URL = "redis://localhost:6379/15"


@pytest.fixture
def registry() -> CollectorRegistry:
    """Create an isolated metrics registry."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> MetricsCollector:
    """Create a metrics collector bound to the test registry."""
    return MetricsCollector(registry=registry)


@pytest_asyncio.fixture
async def redis_client() -> AsyncGenerator[fakeredis.FakeAsyncRedis]:
    """Create an in-memory Redis client with its own server."""
    client = fakeredis.FakeAsyncRedis(
        server=fakeredis.FakeServer(),
        decode_responses=True,
    )
    yield client
    await client.aclose()


@pytest.fixture
def queue_name() -> str:
    """Generate a unique queue name."""
    return f"test-{uuid4().hex[:8]}"


@pytest_asyncio.fixture
async def queue(
    redis_client: fakeredis.FakeAsyncRedis,
    queue_name: str,
    metrics: MetricsCollector,
) -> AsyncGenerator[Queue]:
    """Create a queue backed by the in-memory client."""
    q = Queue(TEST_REDIS_URL, queue_name, client=redis_client, metrics=metrics)
    yield q
    await q.aclose()


@pytest.fixture
def test_settings(queue_name: str) -> Settings:
    """Create test settings."""
    return Settings(
        redis_url=TEST_REDIS_URL,
        queue_name=queue_name,
        job_expire_seconds=30,
        producer_job_count=3,
        producer_wait_seconds=0.1,
        worker_wait_seconds=1,
        worker_timeout_seconds=5,
        worker_poll_frequency=10,
        worker_result_expire_seconds=5,
        log_level="DEBUG",
        log_format="console",
        metrics_enabled=False,
    )
