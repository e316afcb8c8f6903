"""
Job-related type definitions.
"""

from collections.abc import Awaitable, Callable
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from jobqueue.constants import STATUS_TRANSITIONS, TERMINAL_STATUSES, JobStatus
from jobqueue.exceptions import InvalidTransitionError, JobDecodeError

# A processing function receives the job uuid and its args and returns the
# job result. Coroutine functions are awaited, plain callables run in a thread.
ProcessFunction = Callable[[str, list[str]], Any | Awaitable[Any]]


class JobRecord(BaseModel):
    """
    Persisted state of one job.

    Serialized as a JSON object with ``uuid``, ``status``, ``args`` and
    ``result``. ``result`` is always present and stays empty unless the job
    is FINISHED.
    """

    model_config = ConfigDict(frozen=True)

    uuid: str
    status: JobStatus
    args: list[str]
    result: str = ""

    @model_validator(mode="after")
    def _result_only_when_finished(self) -> "JobRecord":
        if self.result and self.status != JobStatus.FINISHED:
            raise ValueError(f"{self.status} job cannot carry a result")
        return self

    @classmethod
    def new(cls, args: list[str]) -> "JobRecord":
        """Create a QUEUED record with a fresh uuid."""
        return cls(uuid=str(uuid4()), status=JobStatus.QUEUED, args=list(args))

    @classmethod
    def from_json(cls, key: str, raw: str | bytes) -> "JobRecord":
        """
        Decode a stored record.

        Raises:
            JobDecodeError: If the payload is not a valid record.
        """
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise JobDecodeError(key, str(e)) from e

    def to_json(self) -> str:
        return self.model_dump_json()

    def start(self) -> "JobRecord":
        """QUEUED -> RUNNING."""
        return self._transition(JobStatus.RUNNING)

    def finish(self, result: str) -> "JobRecord":
        """RUNNING -> FINISHED with the processing result."""
        return self._transition(JobStatus.FINISHED, result)

    def fail(self) -> "JobRecord":
        """RUNNING -> FAILED."""
        return self._transition(JobStatus.FAILED)

    def lose(self) -> "JobRecord":
        """RUNNING -> LOST."""
        return self._transition(JobStatus.LOST)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _transition(self, target: JobStatus, result: str = "") -> "JobRecord":
        if target not in STATUS_TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.status, target)
        return self.model_copy(update={"status": target, "result": result})


class JobResult(BaseModel):
    """
    Completion signal of a processing task.
    Delivered from the detached task back to the supervising loop.
    """

    success: bool
    output: str = ""
    error: str | None = None
    duration_ms: float | None = None

    @property
    def status(self) -> JobStatus:
        return JobStatus.FINISHED if self.success else JobStatus.FAILED

    def apply(self, job: JobRecord) -> JobRecord:
        """Move a RUNNING record to the reported terminal status."""
        if self.success:
            return job.finish(self.output)
        return job.fail()
