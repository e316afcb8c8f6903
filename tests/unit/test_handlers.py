"""
Unit tests for the handler registry.
"""

import pytest

from jobqueue.exceptions import ProcessingFailed
from jobqueue.worker.handlers import (
    get_handler,
    handle_echo,
    handle_failing_job,
    handle_sleep,
    list_handlers,
    register_handler,
    resolve_handler,
)


class TestHandlerRegistry:
    """Tests for handler registration and lookup."""

    def test_list_handlers(self):
        """Test listing registered handlers."""
        handlers = list_handlers()

        assert "echo" in handlers
        assert "greet" in handlers
        assert "sleep" in handlers
        assert "failing_job" in handlers

    def test_get_handler_exists(self):
        """Test getting an existing handler."""
        assert get_handler("echo") is handle_echo

    def test_get_handler_not_exists(self):
        """Test getting a non-existent handler."""
        assert get_handler("nonexistent") is None

    def test_register_handler(self):
        """Test the decorator registers and returns the function."""

        @register_handler("test_upper")
        def upper(uuid: str, args: list[str]) -> str:
            return " ".join(args).upper()

        assert get_handler("test_upper") is upper
        assert upper("id", ["a"]) == "A"

    def test_resolve_by_name(self):
        """Test resolving a registered name."""
        assert resolve_handler("failing_job") is handle_failing_job

    def test_resolve_by_import_path(self):
        """Test resolving a module:function path."""
        handler = resolve_handler("jobqueue.worker.handlers:handle_sleep")

        assert handler is handle_sleep

    @pytest.mark.parametrize(
        "target",
        ["nonexistent", "jobqueue.worker.handlers:", "jobqueue.worker.handlers:_handlers"],
    )
    def test_resolve_unknown(self, target: str):
        """Test unknown handlers raise LookupError."""
        with pytest.raises(LookupError):
            resolve_handler(target)


class TestBuiltinHandlers:
    """Tests for the built-in handlers."""

    def test_echo_handler(self):
        """Test echo joins its args."""
        assert handle_echo("id", ["hello", "world"]) == "hello world"
        assert handle_echo("id", []) == ""

    def test_sleep_handler(self):
        """Test sleep reports how long it slept."""
        assert handle_sleep("id", ["0"]) == "slept 0s"

    def test_failing_handler(self):
        """Test the failing handler raises ProcessingFailed."""
        with pytest.raises(ProcessingFailed, match="Intentional failure"):
            handle_failing_job("id", [])
