"""
Prometheus metrics collection.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    start_http_server,
)

from jobqueue.constants import (
    METRIC_JOB_DURATION,
    METRIC_JOBS_CLAIMED,
    METRIC_JOBS_COMPLETED,
    METRIC_JOBS_ENQUEUED,
    METRIC_JOBS_EXPIRED,
    METRIC_QUEUE_DEPTH,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for queues and workers.

    Collects metrics for:
    - Pending list depth
    - Enqueued and claimed jobs
    - Terminal statuses and supervised duration
    - Claimed ids whose record had already expired
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.queue_depth = Gauge(
            METRIC_QUEUE_DEPTH,
            "Number of job ids awaiting a claim",
            ["queue"],
            registry=self._registry,
        )

        self.jobs_enqueued = Counter(
            METRIC_JOBS_ENQUEUED,
            "Total number of jobs enqueued",
            ["queue"],
            registry=self._registry,
        )

        self.jobs_claimed = Counter(
            METRIC_JOBS_CLAIMED,
            "Total number of jobs claimed by a worker",
            ["queue"],
            registry=self._registry,
        )

        self.jobs_completed = Counter(
            METRIC_JOBS_COMPLETED,
            "Total number of jobs that reached a terminal status",
            ["queue", "status"],
            registry=self._registry,
        )

        self.jobs_expired = Counter(
            METRIC_JOBS_EXPIRED,
            "Claimed job ids whose record had already expired",
            ["queue"],
            registry=self._registry,
        )

        # LOST jobs are observed at the timeout, not at their real end
        self.job_duration = Histogram(
            METRIC_JOB_DURATION,
            "Supervised job duration in seconds",
            ["queue", "status"],
            buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
            registry=self._registry,
        )

    def record_job_enqueued(self, queue: str) -> None:
        """Record a job submission."""
        self.jobs_enqueued.labels(queue=queue).inc()

    def record_job_claimed(self, queue: str) -> None:
        self.jobs_claimed.labels(queue=queue).inc()

    def record_job_expired(self, queue: str) -> None:
        self.jobs_expired.labels(queue=queue).inc()

    def record_job_completed(
        self,
        queue: str,
        status: str,
        duration_seconds: float,
    ) -> None:
        """Record a terminal status."""
        self.jobs_completed.labels(queue=queue, status=status).inc()
        self.job_duration.labels(queue=queue, status=status).observe(
            duration_seconds
        )

    def update_queue_depth(self, queue: str, depth: int) -> None:
        self.queue_depth.labels(queue=queue).set(depth)

    def get_metrics(self) -> bytes:
        """Get all metrics in Prometheus format."""
        return generate_latest(self._registry)

    def get_content_type(self) -> str:
        """Get the content type for metrics response."""
        return CONTENT_TYPE_LATEST


def setup_metrics(port: int | None = None) -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Args:
        port: If given, serve the default registry over HTTP on this port.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    if port is not None:
        start_http_server(port)
    return _metrics


def get_metrics() -> MetricsCollector:
    """
    Get the metrics collector instance, creating it on first use.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    if _metrics is None:
        return setup_metrics()
    return _metrics
