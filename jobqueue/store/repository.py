"""
Job repository for store operations.
Implements the key layout and data access patterns for one named queue.
"""

import logging

from redis import asyncio as aioredis

from jobqueue.constants import KEY_SEPARATOR, PENDING_LIST_SUFFIX
from jobqueue.store.connection import store_errors
from jobqueue.types.job import JobRecord

logger = logging.getLogger(__name__)


class JobRepository:
    """
    Repository for job records and the pending id list.

    Every method issues a single store command, so each one is atomic on
    its own; nothing here spans more than one key.

    Key layout:
    - ``<queue>:uuids``: list of job ids awaiting a claim (FIFO)
    - ``<queue>:<uuid>``: JSON job record, written with a TTL
    """

    def __init__(self, client: aioredis.Redis, queue_name: str):
        """
        Initialize the repository.

        Args:
            client: The async Redis client.
            queue_name: Name prefixing every key of this queue.
        """
        self._client = client
        self._queue_name = queue_name

    @property
    def pending_key(self) -> str:
        return f"{self._queue_name}{KEY_SEPARATOR}{PENDING_LIST_SUFFIX}"

    def job_key(self, uuid: str) -> str:
        return f"{self._queue_name}{KEY_SEPARATOR}{uuid}"

    async def save_job(self, job: JobRecord, ttl_seconds: int) -> None:
        """
        Write a job record, replacing its TTL.

        Args:
            job: The record to persist.
            ttl_seconds: Expiry applied to the key.
        """
        with store_errors("save_job"):
            await self._client.set(
                self.job_key(job.uuid), job.to_json(), ex=ttl_seconds
            )

    async def get_job(self, uuid: str) -> JobRecord | None:
        """
        Load a job record.

        Returns:
            The record, or None if the key is missing or expired.

        Raises:
            JobDecodeError: If the stored payload is corrupt.
        """
        key = self.job_key(uuid)
        with store_errors("get_job"):
            raw = await self._client.get(key)
        if raw is None:
            return None
        return JobRecord.from_json(key, raw)

    async def push_pending(self, uuid: str) -> int:
        """
        Append an id to the pending list.

        Returns:
            Length of the list after the push.
        """
        with store_errors("push_pending"):
            return await self._client.rpush(self.pending_key, uuid)

    async def pop_pending(self, wait_seconds: float) -> str | None:
        """
        Claim the oldest pending id, blocking up to ``wait_seconds``.

        The pop is destructive, so a claimed id is never handed to a
        second worker.

        Returns:
            The claimed uuid, or None if nothing arrived in time.
        """
        with store_errors("pop_pending"):
            popped = await self._client.blpop([self.pending_key], timeout=wait_seconds)
        if popped is None:
            return None
        _, uuid = popped
        return uuid

    async def count_pending(self) -> int:
        """Get the number of ids awaiting a claim."""
        with store_errors("count_pending"):
            return await self._client.llen(self.pending_key)

    async def delete_pending(self) -> None:
        """Delete the pending list. Job records are left to expire."""
        with store_errors("delete_pending"):
            deleted = await self._client.delete(self.pending_key)
        logger.info(
            "Pending list dropped",
            extra={"queue": self._queue_name, "deleted": bool(deleted)},
        )
