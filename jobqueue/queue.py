"""
Queue handle and worker loop.

A ``Queue`` is bound to a Redis URL and a queue name. Producers call
``enqueue`` and later read ``status``/``result`` by id; workers call
``work``, which claims ids from the pending list and supervises the
processing function against a wall-clock timeout.
"""

import asyncio
import inspect
import logging
import threading
import time
from collections.abc import Callable, Sequence
from typing import Any

from redis import asyncio as aioredis

from jobqueue.constants import (
    DEFAULT_EXPIRE_SECONDS,
    DEFAULT_POLL_FREQUENCY,
    DEFAULT_RESULT_EXPIRE_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    SPAN_CLAIM_JOB,
    SPAN_ENQUEUE_JOB,
    SPAN_EXECUTE_JOB,
    JobStatus,
)
from jobqueue.exceptions import JobNotFoundError
from jobqueue.observability.logging import job_log_context
from jobqueue.observability.metrics import MetricsCollector, get_metrics
from jobqueue.observability.tracing import get_tracer
from jobqueue.store.connection import close_client, create_client
from jobqueue.store.repository import JobRepository
from jobqueue.types.job import JobRecord, JobResult, ProcessFunction

logger = logging.getLogger(__name__)


class Queue:
    """
    Handle on one named queue.

    Construction performs no I/O. The Redis client is created on first use
    and released by ``aclose()``.
    """

    def __init__(
        self,
        url: str,
        name: str,
        client: aioredis.Redis | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the queue handle.

        Args:
            url: Redis URL, e.g. ``redis://localhost/``.
            name: Queue name prefixing every key.
            client: Optional pre-built client. It is not closed by ``aclose()``.
            metrics: Metrics collector. Defaults to the process-wide one.
        """
        self.url = url
        self.name = name
        self._client = client
        self._owns_client = client is None
        self._metrics = metrics
        # Processing tasks still running, including ones given up as LOST
        self._detached: set[asyncio.Future] = set()

    def __repr__(self) -> str:
        return f"Queue(url={self.url!r}, name={self.name!r})"

    async def __aenter__(self) -> "Queue":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the client. Running jobs are not waited for."""
        if self._client is not None and self._owns_client:
            await close_client(self._client)
            self._client = None

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    async def enqueue(self, args: Sequence[str], expire: int = DEFAULT_EXPIRE_SECONDS) -> str:
        """
        Enqueue a new job.

        Writes the QUEUED record with a TTL of ``expire`` seconds, then
        appends its id to the pending list. The two writes are not atomic:
        a crash in between leaves a record nobody will claim.

        Args:
            args: Job arguments handed to the processing function.
            expire: Seconds the record survives if no worker claims it.

        Returns:
            The job uuid.

        Raises:
            ValueError: If ``expire`` is not positive.
            StoreError: If either write fails.
        """
        if expire <= 0:
            raise ValueError("expire must be a positive number of seconds")

        job = JobRecord.new(list(args))
        repo = self._repository()

        with get_tracer().start_as_current_span(SPAN_ENQUEUE_JOB) as span:
            span.set_attribute("job_id", job.uuid)
            span.set_attribute("queue", self.name)

            await repo.save_job(job, expire)
            await repo.push_pending(job.uuid)

        self._get_metrics().record_job_enqueued(self.name)
        logger.info(
            "Job enqueued",
            extra={"job_id": job.uuid, "queue": self.name, "expire": expire},
        )
        return job.uuid

    async def status(self, uuid: str) -> JobStatus:
        """
        Get the current status of a job.

        Raises:
            JobNotFoundError: If the record never existed or has expired.
            JobDecodeError: If the stored record is corrupt.
        """
        job = await self._load(uuid)
        return job.status

    async def result(self, uuid: str) -> str | None:
        """
        Get the result of a job.

        Returns:
            The processing result for a FINISHED job, None otherwise.

        Raises:
            JobNotFoundError: If the record never existed or has expired.
            JobDecodeError: If the stored record is corrupt.
        """
        job = await self._load(uuid)
        if job.status != JobStatus.FINISHED:
            return None
        return job.result

    async def drop(self) -> None:
        """
        Delete the pending list.

        Existing records keep their TTL and jobs already claimed keep running.
        """
        await self._repository().delete_pending()

    async def pending(self) -> int:
        """Get the number of ids awaiting a claim."""
        depth = await self._repository().count_pending()
        self._get_metrics().update_queue_depth(self.name, depth)
        return depth

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------

    async def work(
        self,
        wait: float,
        process: ProcessFunction,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        poll_frequency: int = DEFAULT_POLL_FREQUENCY,
        result_expire: int = DEFAULT_RESULT_EXPIRE_SECONDS,
        fatal_on_lost: bool = False,
        repeat: bool = True,
    ) -> int:
        """
        Claim and process jobs.

        Each iteration blocks up to ``wait`` seconds for an id, marks the job
        RUNNING and starts ``process(uuid, args)`` on a detached task. The
        task is polled ``poll_frequency`` times per second for at most
        ``timeout`` seconds; a job without a completion signal by then is
        marked LOST. The processing task is never cancelled.

        Args:
            wait: Seconds to block waiting for an id.
            process: Processing function; coroutine functions run on the
                event loop, plain callables on a daemon thread of their own.
            timeout: Seconds to wait for the completion signal.
            poll_frequency: Completion checks per second.
            result_expire: TTL of the terminal record.
            fatal_on_lost: Exit the process when a job is LOST.
            repeat: Keep claiming jobs instead of returning after one
                iteration.

        Returns:
            Number of jobs supervised to a terminal status.

        Raises:
            SystemExit: If a job is LOST and ``fatal_on_lost`` is set.
            StoreError: If a store command fails.
            JobDecodeError: If a claimed record is corrupt.
        """
        if wait <= 0:
            raise ValueError("wait must be positive")
        if timeout <= 0 or poll_frequency <= 0 or result_expire <= 0:
            raise ValueError("timeout, poll_frequency and result_expire must be positive")

        repo = self._repository()
        supervised = 0

        while True:
            job = await self._claim(repo, wait, timeout + result_expire)
            if job is not None:
                job = await self._supervise(
                    repo, job, process, timeout, poll_frequency, result_expire
                )
                supervised += 1

                if job.status == JobStatus.LOST and fatal_on_lost:
                    logger.critical(
                        "Job lost, terminating worker",
                        extra={"job_id": job.uuid, "queue": self.name},
                    )
                    raise SystemExit(f"Job {job.uuid} lost")

            if not repeat:
                return supervised

    async def _claim(
        self,
        repo: JobRepository,
        wait: float,
        running_ttl: int,
    ) -> JobRecord | None:
        """
        Pop one id and move its record to RUNNING.

        Returns:
            The RUNNING record, or None when nothing could be claimed.
        """
        uuid = await repo.pop_pending(wait)
        if uuid is None:
            return None

        with get_tracer().start_as_current_span(SPAN_CLAIM_JOB) as span:
            span.set_attribute("job_id", uuid)
            span.set_attribute("queue", self.name)

            job = await repo.get_job(uuid)
            if job is None:
                logger.warning(
                    "Claimed job expired before it could run",
                    extra={"job_id": uuid, "queue": self.name},
                )
                self._get_metrics().record_job_expired(self.name)
                return None

            if job.status != JobStatus.QUEUED:
                logger.warning(
                    "Claimed job is not queued, skipping",
                    extra={"job_id": uuid, "queue": self.name, "status": job.status},
                )
                return None

            job = job.start()
            await repo.save_job(job, running_ttl)

        self._get_metrics().record_job_claimed(self.name)
        logger.info("Job claimed", extra={"job_id": uuid, "queue": self.name})
        return job

    async def _supervise(
        self,
        repo: JobRepository,
        job: JobRecord,
        process: ProcessFunction,
        timeout: int,
        poll_frequency: int,
        result_expire: int,
    ) -> JobRecord:
        """Run the processing task and persist its terminal status."""
        started = time.monotonic()

        with (
            get_tracer().start_as_current_span(SPAN_EXECUTE_JOB) as span,
            job_log_context(job_id=job.uuid, queue=self.name),
        ):
            span.set_attribute("job_id", job.uuid)
            span.set_attribute("queue", self.name)

            future = self._spawn(process, job)
            signal = await self._wait_for_signal(future, timeout, poll_frequency)

            if signal is None:
                job = job.lose()
                future.add_done_callback(_discard_late_signal(job.uuid))
                logger.warning(
                    "Job lost: no completion signal before timeout",
                    extra={"job_id": job.uuid, "timeout": timeout},
                )
            else:
                job = signal.apply(job)
                if signal.success:
                    logger.info(
                        "Job finished",
                        extra={"job_id": job.uuid, "duration_ms": signal.duration_ms},
                    )
                else:
                    logger.warning(
                        "Job failed",
                        extra={"job_id": job.uuid, "error": signal.error},
                    )

            await repo.save_job(job, result_expire)
            span.set_attribute("status", str(job.status))

        self._get_metrics().record_job_completed(
            queue=self.name,
            status=str(job.status),
            duration_seconds=time.monotonic() - started,
        )
        return job

    def _spawn(self, process: ProcessFunction, job: JobRecord) -> asyncio.Future:
        """
        Start the processing function detached from the loop.

        Plain callables get their own daemon thread, so a LOST job never
        delays the start of the next one and never keeps the process alive.
        """
        args = list(job.args)
        if inspect.iscoroutinefunction(process):
            future = asyncio.ensure_future(_execute_async(process, job.uuid, args))
        else:
            loop = asyncio.get_running_loop()
            future = loop.create_future()
            threading.Thread(
                target=_execute_in_thread,
                args=(loop, future, process, job.uuid, args),
                name=f"jobqueue-{self.name}-{job.uuid}",
                daemon=True,
            ).start()
        self._detached.add(future)
        future.add_done_callback(self._detached.discard)
        return future

    @staticmethod
    async def _wait_for_signal(
        future: asyncio.Future,
        timeout: int,
        poll_frequency: int,
    ) -> JobResult | None:
        """
        Poll the processing task until it completes or the budget runs out.

        Returns:
            The completion signal, or None if none arrived in time.
        """
        interval = 1.0 / poll_frequency
        for _ in range(int(timeout * poll_frequency)):
            if future.done():
                return _signal_from(future)
            await asyncio.sleep(interval)
        if future.done():
            return _signal_from(future)
        return None

    async def _load(self, uuid: str) -> JobRecord:
        job = await self._repository().get_job(uuid)
        if job is None:
            raise JobNotFoundError(uuid)
        return job

    def _repository(self) -> JobRepository:
        if self._client is None:
            self._client = create_client(self.url)
        return JobRepository(self._client, self.name)

    def _get_metrics(self) -> MetricsCollector:
        if self._metrics is None:
            self._metrics = get_metrics()
        return self._metrics


def _coerce_output(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _failure(error: BaseException, started: float) -> JobResult:
    return JobResult(
        success=False,
        error=f"{type(error).__name__}: {error}",
        duration_ms=(time.monotonic() - started) * 1000,
    )


def _execute(process: ProcessFunction, uuid: str, args: list[str]) -> JobResult:
    """
    Run a plain processing function and turn its outcome into a signal.

    ``sys.exit()`` and friends count as failures of the job, not of the worker.
    """
    started = time.monotonic()
    try:
        value = process(uuid, args)
    except BaseException as e:
        return _failure(e, started)
    return JobResult(
        success=True,
        output=_coerce_output(value),
        duration_ms=(time.monotonic() - started) * 1000,
    )


async def _execute_async(process: ProcessFunction, uuid: str, args: list[str]) -> JobResult:
    """Coroutine counterpart of ``_execute``."""
    started = time.monotonic()
    try:
        value = await process(uuid, args)
    except BaseException as e:
        return _failure(e, started)
    return JobResult(
        success=True,
        output=_coerce_output(value),
        duration_ms=(time.monotonic() - started) * 1000,
    )


def _execute_in_thread(
    loop: asyncio.AbstractEventLoop,
    future: asyncio.Future,
    process: ProcessFunction,
    uuid: str,
    args: list[str],
) -> None:
    """Thread body: run ``process`` and hand the signal back to the loop."""
    signal = _execute(process, uuid, args)
    try:
        loop.call_soon_threadsafe(_deliver, future, signal)
    except RuntimeError:
        # Event loop already closed
        logger.info(
            "Discarding completion signal",
            extra={"job_id": uuid, "success": signal.success},
        )


def _deliver(future: asyncio.Future, signal: JobResult) -> None:
    if not future.done():
        future.set_result(signal)


def _signal_from(future: asyncio.Future) -> JobResult:
    """Read a finished processing future; cancellation counts as failure."""
    if future.cancelled():
        return JobResult(success=False, error="CancelledError: processing task cancelled")
    error = future.exception()
    if error is not None:
        return JobResult(success=False, error=f"{type(error).__name__}: {error}")
    return future.result()


def _discard_late_signal(uuid: str) -> Callable[[asyncio.Future], None]:
    """Build a callback that logs a completion arriving after LOST."""

    def callback(future: asyncio.Future) -> None:
        signal = _signal_from(future)
        logger.info(
            "Discarding late completion signal",
            extra={"job_id": uuid, "success": signal.success},
        )

    return callback
