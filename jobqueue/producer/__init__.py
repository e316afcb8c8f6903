"""
Producer module.
Contains the batch producer that enqueues jobs and reports their outcome.
"""

from jobqueue.producer.main import Producer, run

__all__ = ["Producer", "run"]
