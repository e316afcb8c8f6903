"""
Store module.
Contains the Redis connection helpers and the job repository.
"""

from jobqueue.store.connection import close_client, create_client, store_errors
from jobqueue.store.repository import JobRepository

__all__ = [
    "create_client",
    "close_client",
    "store_errors",
    "JobRepository",
]
