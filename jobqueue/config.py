"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from jobqueue.constants import (
    DEFAULT_EXPIRE_SECONDS,
    DEFAULT_POLL_FREQUENCY,
    DEFAULT_RESULT_EXPIRE_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_WAIT_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Store
    redis_url: str = "redis://localhost:6379/0"
    queue_name: str = "jobqueue"

    # Producer Configuration
    job_expire_seconds: int = DEFAULT_EXPIRE_SECONDS
    producer_job_count: int = 10
    producer_wait_seconds: float = 10.0

    # Worker Configuration
    worker_wait_seconds: int = DEFAULT_WAIT_SECONDS
    worker_timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    worker_poll_frequency: int = DEFAULT_POLL_FREQUENCY
    worker_result_expire_seconds: int = DEFAULT_RESULT_EXPIRE_SECONDS
    worker_fatal_on_lost: bool = False
    worker_handler: str = "echo"

    # Observability
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "jobqueue"
    metrics_enabled: bool = True
    prometheus_port: int = 9090
    log_level: str = "INFO"
    log_format: str = "json"  # json or console


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
