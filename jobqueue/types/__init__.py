"""
Type definitions for the job queue.
"""

from jobqueue.types.job import (
    JobRecord,
    JobResult,
    ProcessFunction,
)

__all__ = [
    "JobRecord",
    "JobResult",
    "ProcessFunction",
]
