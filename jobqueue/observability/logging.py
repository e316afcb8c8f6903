"""
Structured logging setup using structlog.

Modules log through the standard library (``logging.getLogger(__name__)``
with ``extra=`` fields); ``setup_logging`` routes those records through
structlog so they come out as JSON or console lines.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from opentelemetry import trace

from jobqueue.config import get_settings

LOG_FORMATS = ("json", "console")


def add_trace_ids(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add the ids of the current OpenTelemetry span, if any."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def _renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {log_format!r}")


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure structured logging for the worker and producer processes.

    Args:
        log_level: Overrides the configured level.
        log_format: Overrides the configured format ("json" or "console").

    Raises:
        ValueError: If the format is unknown.
    """
    settings = get_settings()
    renderer = _renderer(log_format or settings.log_format)
    level = logging.getLevelName((log_level or settings.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO

    # Applied to structlog events and stdlib records alike
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_trace_ids,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for noisy in ("redis", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


@contextmanager
def job_log_context(**kwargs: Any) -> Iterator[None]:
    """Bind ``kwargs`` to every log record emitted inside the block."""
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield
