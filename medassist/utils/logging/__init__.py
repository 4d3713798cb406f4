"""
Structured logging for MedAssist.

One decorator (``track``) for timed operations plus ``log_event`` for
ad-hoc structured events, both tagged with a per-request correlation ID.
"""

from .context import get_correlation_id, new_correlation_id, set_correlation_id
from .smart_logger import (
    log_operation_error,
    track,
)
from .structured import StructuredLogger, create_development_formatter, log_event

__all__ = [
    # Primary API
    "track",
    "log_event",
    "get_correlation_id",
    "set_correlation_id",
    "new_correlation_id",
    # Manual logging helpers
    "log_operation_error",
    # Advanced usage
    "StructuredLogger",
    "create_development_formatter",
]
