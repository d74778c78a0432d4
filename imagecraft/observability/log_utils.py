"""
Structured logging helpers.

Context values pass through safe_log_value before they reach a record, so
image payloads (raw bytes, base64 strings, data URLs) show up as a size
and never as content.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import logging
import re
from typing import Any

from imagecraft.core.exceptions import ImageCraftException

_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,", re.IGNORECASE)
_BASE64_BLOB = re.compile(r"^[A-Za-z0-9+/=\s]{256,}$")


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Render a value for a log record.

    Args:
        value: Value to render
        max_length: Longer renderings are cut and marked as truncated

    Returns:
        str: Log-safe representation
    """
    if value is None:
        return "None"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"bytes({len(value)})"
    if isinstance(value, str):
        match = _DATA_URL.match(value)
        if match:
            return f"data-url({match.group('mime')}, {len(value)} chars)"
        if _BASE64_BLOB.match(value):
            return f"base64({len(value)} chars)"
        text = value
    elif isinstance(value, (list, tuple, set)):
        text = f"{type(value).__name__}({len(value)} items)"
    elif isinstance(value, dict):
        text = f"dict({len(value)} keys)"
    else:
        try:
            text = str(value)
        except Exception as e:
            return f"<unable to log: {type(e).__name__}>"

    if len(text) > max_length:
        return text[:max_length] + f"... (truncated, {len(text)} total)"
    return text


def _safe_context(context: dict[str, Any]) -> dict[str, str]:
    return {key: safe_log_value(val) for key, val in context.items()}


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context,
) -> None:
    """Log message with every context value attached as a record attribute."""
    logger.log(level, message, extra=_safe_context(context))


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context,
) -> None:
    """
    Log an exception with its traceback and context.

    For application errors the exception's own details (provider, upload
    key and so on) are merged into the context; explicit context wins.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Additional record attributes
    """
    if isinstance(exc, ImageCraftException):
        context = {**exc.details, **context}
        error_msg = exc.message
    else:
        error_msg = str(exc)

    safe_context = _safe_context(context)
    safe_context["error_type"] = type(exc).__name__
    safe_context["error_msg"] = safe_log_value(error_msg)
    logger.error(message, exc_info=exc, extra=safe_context)
