"""
Correlation IDs for requests and generation fan-out branches.

A request gets its ID from the X-Correlation-ID header (or a fresh one).
Background generation tasks copy the context of the request that started
them, and each provider branch narrows it to "<request id>/<provider>" so
interleaved provider logs can be told apart.

Dependencies: contextvars
System role: Request tracing across the API and background generation
"""

import re
import uuid
from contextvars import ContextVar

MAX_CORRELATION_ID_LENGTH = 64

_VALID_ID = re.compile(r"^[A-Za-z0-9._:/-]+$")

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def normalize_correlation_id(raw: str | None) -> str | None:
    """
    Accept a client-supplied ID only if it is safe to echo and log.

    Returns:
        The stripped ID, or None when missing, too long or containing
        characters outside [A-Za-z0-9._:/-]
    """
    if not raw:
        return None
    value = raw.strip()
    if not value or len(value) > MAX_CORRELATION_ID_LENGTH or not _VALID_ID.match(value):
        return None
    return value


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Set the correlation ID for the current context.

    Unusable values are replaced with a new UUID4.

    Returns:
        str: The correlation ID that was set
    """
    value = normalize_correlation_id(correlation_id) or str(uuid.uuid4())
    correlation_id_ctx.set(value)
    return value


def get_correlation_id() -> str:
    """Current correlation ID, empty string when unset."""
    return correlation_id_ctx.get()


def bind_branch(branch: str) -> str:
    """
    Narrow the current ID to one fan-out branch.

    Call inside the branch's own task so sibling branches keep theirs.
    """
    parent = get_correlation_id() or str(uuid.uuid4())
    value = f"{parent}/{branch}"
    correlation_id_ctx.set(value)
    return value


def clear_correlation_id() -> None:
    correlation_id_ctx.set("")
