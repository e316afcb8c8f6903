"""
Store connection management.
Creates async Redis clients and maps client errors onto the queue errors.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from redis import asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from jobqueue.config import get_settings
from jobqueue.exceptions import StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)


def create_client(url: str | None = None) -> aioredis.Redis:
    """
    Create an async Redis client.

    No connection is opened until the first command is sent.

    Args:
        url: Redis URL. Defaults to the configured ``redis_url``.

    Returns:
        Redis: A client with response decoding enabled.
    """
    url = url or get_settings().redis_url
    client = aioredis.from_url(url, decode_responses=True)
    logger.debug("Redis client created", extra={"redis_url": url})
    return client


async def close_client(client: aioredis.Redis) -> None:
    """Close a client and release its connection pool."""
    await client.aclose()
    logger.debug("Redis client closed")


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """
    Translate Redis client errors into queue errors.

    Args:
        operation: Name of the store operation, used in the error message.

    Raises:
        StoreUnavailableError: On connection failures and timeouts.
        StoreError: On any other Redis error.
    """
    try:
        yield
    except (RedisConnectionError, RedisTimeoutError) as e:
        raise StoreUnavailableError(f"{operation} failed: {e}") from e
    except RedisError as e:
        raise StoreError(f"{operation} failed: {e}") from e
