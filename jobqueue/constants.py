"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class JobStatus(StrEnum):
    """
    Job lifecycle states.

    State transitions:
    - QUEUED -> RUNNING (worker claimed the job)
    - RUNNING -> FINISHED (processing returned)
    - RUNNING -> FAILED (processing raised)
    - RUNNING -> LOST (no completion before the timeout)
    """

    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    LOST = "LOST"
    FINISHED = "FINISHED"
    FAILED = "FAILED"


# Allowed transitions, keyed by current status
STATUS_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.RUNNING}),
    JobStatus.RUNNING: frozenset(
        {JobStatus.FINISHED, JobStatus.FAILED, JobStatus.LOST}
    ),
    JobStatus.LOST: frozenset(),
    JobStatus.FINISHED: frozenset(),
    JobStatus.FAILED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    {JobStatus.FINISHED, JobStatus.FAILED, JobStatus.LOST}
)

# Store key layout
KEY_SEPARATOR = ":"
PENDING_LIST_SUFFIX = "uuids"

# Default values
DEFAULT_EXPIRE_SECONDS = 30
DEFAULT_WAIT_SECONDS = 1
DEFAULT_TIMEOUT_SECONDS = 5
DEFAULT_POLL_FREQUENCY = 10
DEFAULT_RESULT_EXPIRE_SECONDS = 30

# Metrics names
METRIC_QUEUE_DEPTH = "job_queue_depth"
METRIC_JOBS_ENQUEUED = "jobs_enqueued_total"
METRIC_JOBS_CLAIMED = "jobs_claimed_total"
METRIC_JOBS_COMPLETED = "jobs_completed_total"
METRIC_JOBS_EXPIRED = "jobs_expired_total"
METRIC_JOB_DURATION = "job_duration_seconds"

# Trace span names
SPAN_ENQUEUE_JOB = "enqueue_job"
SPAN_CLAIM_JOB = "claim_job"
SPAN_EXECUTE_JOB = "execute_job"
