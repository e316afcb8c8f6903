"""
Processing function registry and built-in handlers.

A handler receives the job uuid and its args and returns the job result.
Raising marks the job FAILED. Handlers may run again after a worker crash
and keep running after being marked LOST, so they should be idempotent.
"""

import importlib
import logging
import time
from collections.abc import Callable

from jobqueue.exceptions import ProcessingFailed
from jobqueue.types.job import ProcessFunction

logger = logging.getLogger(__name__)

# Handler registry
_handlers: dict[str, ProcessFunction] = {}


def register_handler(name: str) -> Callable[[ProcessFunction], ProcessFunction]:
    """
    Decorator to register a processing function under a name.

    Args:
        name: The name workers select the handler by.

    Returns:
        Decorator function.

    Example:
        @register_handler("resize")
        def handle_resize(uuid: str, args: list[str]) -> str:
            ...
    """
    def decorator(handler: ProcessFunction) -> ProcessFunction:
        _handlers[name] = handler
        logger.debug("Registered handler", extra={"handler": name})
        return handler
    return decorator


def get_handler(name: str) -> ProcessFunction | None:
    """
    Get a registered handler.

    Returns:
        The handler or None if not found.
    """
    return _handlers.get(name)


def list_handlers() -> list[str]:
    """List all registered handler names."""
    return list(_handlers.keys())


def resolve_handler(target: str) -> ProcessFunction:
    """
    Resolve a handler by registry name or ``module:function`` import path.

    Raises:
        LookupError: If no such handler exists.
    """
    handler = get_handler(target)
    if handler is not None:
        return handler

    module_name, sep, attr = target.partition(":")
    if not sep or not attr:
        raise LookupError(f"No handler registered as {target!r}")

    module = importlib.import_module(module_name)
    handler = getattr(module, attr, None)
    if not callable(handler):
        raise LookupError(f"{target!r} is not a callable")
    return handler


# ============================================================================
# Built-in handlers
# ============================================================================


@register_handler("echo")
def handle_echo(uuid: str, args: list[str]) -> str:
    """Return the job args joined by spaces."""
    return " ".join(args)


@register_handler("greet")
def handle_greet(uuid: str, args: list[str]) -> str:
    """Sleep for a second, then greet from the job id."""
    time.sleep(1)
    logger.info("Greeting", extra={"job_id": uuid})
    return f"hi from {uuid}"


@register_handler("sleep")
def handle_sleep(uuid: str, args: list[str]) -> str:
    """
    Sleep handler for testing timeouts.

    The first arg is the number of seconds to sleep (default 1).
    """
    duration = float(args[0]) if args else 1.0
    time.sleep(duration)
    return f"slept {duration:g}s"


@register_handler("failing_job")
def handle_failing_job(uuid: str, args: list[str]) -> str:
    """Handler that always fails."""
    raise ProcessingFailed(f"Intentional failure for job {uuid}")
