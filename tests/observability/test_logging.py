"""
Test suite for correlation IDs and logging helpers.

System role: Verification of observability utilities
"""

import asyncio
import logging

import pytest

from imagecraft.observability import (
    clear_correlation_id,
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)
from imagecraft.core.exceptions import StorageError
from imagecraft.observability.correlation import bind_branch, normalize_correlation_id
from imagecraft.observability.log_utils import (
    log_exception_with_context,
    log_with_context,
    safe_log_value,
)
from imagecraft.observability.logger import CorrelationIdFilter


class TestCorrelationId:
    """Test suite for correlation ID context."""

    def test_set_and_clear(self) -> None:
        assert set_correlation_id("req-1") == "req-1"
        assert get_correlation_id() == "req-1"

        clear_correlation_id()

        assert get_correlation_id() == ""

    def test_generated_when_missing(self) -> None:
        generated = set_correlation_id()

        assert generated
        assert get_correlation_id() == generated
        clear_correlation_id()

    @pytest.mark.asyncio
    async def test_spawned_tasks_inherit_id(self) -> None:
        """Test fan-out tasks see the ID of the request that created them."""
        # Arrange
        set_correlation_id("req-fanout")

        async def read() -> str:
            return get_correlation_id()

        # Act
        seen = await asyncio.gather(asyncio.create_task(read()), asyncio.create_task(read()))

        # Assert
        assert seen == ["req-fanout", "req-fanout"]
        clear_correlation_id()

    @pytest.mark.asyncio
    async def test_branches_are_isolated(self) -> None:
        """Test each provider branch narrows its own copy of the ID."""
        # Arrange
        set_correlation_id("req-2")

        async def branch(name: str) -> str:
            bind_branch(name)
            await asyncio.sleep(0)
            return get_correlation_id()

        # Act
        seen = await asyncio.gather(branch("openai"), branch("google"))

        # Assert
        assert seen == ["req-2/openai", "req-2/google"]
        assert get_correlation_id() == "req-2"
        clear_correlation_id()

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("  abc-123 ", "abc-123"),
            ("", None),
            (None, None),
            ("x" * 65, None),
            ("bad id\nInjected", None),
        ],
    )
    def test_normalize_correlation_id(self, raw, expected) -> None:
        assert normalize_correlation_id(raw) == expected

    def test_unusable_header_gets_fresh_id(self) -> None:
        value = set_correlation_id("not valid!")

        assert value != "not valid!"
        assert len(value) == 36
        clear_correlation_id()


class TestLogUtils:
    """Test suite for structured logging helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "None"),
            (b"\x89PNG" * 10, "bytes(40)"),
            (["a", "b"], "list(2 items)"),
            ({"a": 1}, "dict(1 keys)"),
            ("plain", "plain"),
            ("data:image/png;base64,iVBORw0KGgo=", "data-url(image/png, 34 chars)"),
            ("A" * 300, "base64(300 chars)"),
        ],
    )
    def test_safe_log_value(self, value, expected) -> None:
        assert safe_log_value(value) == expected

    def test_long_values_are_truncated(self) -> None:
        assert safe_log_value("x" * 20, max_length=5).startswith("xxxxx... (truncated")

    def test_log_with_context_attaches_extra(self, caplog) -> None:
        logger = logging.getLogger("imagecraft.test")

        with caplog.at_level(logging.INFO, logger="imagecraft.test"):
            log_with_context(logger, logging.INFO, "stored", provider="openai", data=b"abc")

        record = caplog.records[-1]
        assert record.provider == "openai"
        assert record.data == "bytes(3)"

    def test_log_exception_with_context(self, caplog) -> None:
        logger = logging.getLogger("imagecraft.test")

        with caplog.at_level(logging.ERROR, logger="imagecraft.test"):
            log_exception_with_context(logger, "provider raised", RuntimeError("boom"), provider="google")

        record = caplog.records[-1]
        assert record.error_type == "RuntimeError"
        assert record.error_msg == "boom"
        assert record.exc_info is not None


class TestConfigureLogging:
    """Test suite for configure_logging()."""

    def test_handler_injects_correlation_id(self) -> None:
        configure_logging("DEBUG")
        root = logging.getLogger()

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert any(isinstance(f, CorrelationIdFilter) for f in root.handlers[0].filters)

        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        set_correlation_id("req-9")
        CorrelationIdFilter().filter(record)
        assert record.correlation_id == "req-9"
        clear_correlation_id()


def test_log_exception_merges_application_details(caplog) -> None:
    logger = logging.getLogger("imagecraft.test")
    error = StorageError("Upload failed", operation="put_object")

    with caplog.at_level(logging.ERROR, logger="imagecraft.test"):
        log_exception_with_context(logger, "upload", error, provider="openai")

    record = caplog.records[-1]
    assert record.operation == "put_object"
    assert record.provider == "openai"
    assert record.error_msg == "Upload failed"
