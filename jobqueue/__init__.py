"""
Redis Job Queue

Producers enqueue jobs identified by a generated uuid; workers claim them
from a shared Redis list, run a processing function under a timeout and
publish the outcome back to the store.
"""

__version__ = "1.0.0"

from jobqueue.constants import JobStatus
from jobqueue.exceptions import (
    InvalidTransitionError,
    JobDecodeError,
    JobNotFoundError,
    ProcessingFailed,
    QueueError,
    StoreError,
    StoreUnavailableError,
)
from jobqueue.queue import Queue

__all__ = [
    "Queue",
    "JobStatus",
    "QueueError",
    "StoreError",
    "StoreUnavailableError",
    "JobNotFoundError",
    "JobDecodeError",
    "InvalidTransitionError",
    "ProcessingFailed",
]
