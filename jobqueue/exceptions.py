"""
Queue error taxonomy.

Store and codec errors propagate to callers of the producer-side operations.
Errors raised by a processing function never leave the worker loop; they
only decide the job's terminal status.
"""

from jobqueue.constants import JobStatus


class QueueError(Exception):
    """Base class for all queue errors."""


class StoreError(QueueError):
    """A store command failed."""


class StoreUnavailableError(StoreError):
    """The store could not be reached (connection refused, timeout)."""


class JobNotFoundError(QueueError):
    """The job record does not exist or has expired."""

    def __init__(self, uuid: str):
        super().__init__(f"Job not found: {uuid}")
        self.uuid = uuid


class JobDecodeError(QueueError):
    """The stored job record could not be parsed."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Corrupt job record at {key}: {reason}")
        self.key = key
        self.reason = reason


class InvalidTransitionError(QueueError):
    """A status change outside the job lifecycle was requested."""

    def __init__(self, current: JobStatus, target: JobStatus):
        super().__init__(f"Invalid job transition: {current} -> {target}")
        self.current = current
        self.target = target


class ProcessingFailed(Exception):
    """
    Raised by a processing function to report failure.

    Any exception marks the job FAILED; this one exists so handlers can
    signal an expected failure without picking an arbitrary type.
    """
