"""
Correlation IDs for request-scoped logging.

Each chat request runs in its own asyncio task, so a ContextVar keeps the
ID of one request from leaking into another.
"""

import contextvars
import uuid
from typing import Optional

_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def get_correlation_id() -> str:
    """
    Get the current correlation ID, generating one if none exists.

    Returns:
        Correlation ID string for tracking a request across components
    """
    correlation_id = _correlation_id.get()
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
        _correlation_id.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context."""
    _correlation_id.set(correlation_id)


def new_correlation_id() -> str:
    """Start a fresh correlation ID for the current context and return it."""
    correlation_id = str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id
