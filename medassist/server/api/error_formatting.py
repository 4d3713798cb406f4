"""
Map pipeline errors onto HTTP error responses.

Rate-limit and quota errors keep distinct, actionable messages; every
other failure is reported with the generic retry message and logged in
full.
"""

import logging
from typing import Any, Dict

from fastapi.responses import JSONResponse

from ...llm.exceptions import (
    GENERIC_USER_MESSAGE,
    RAGPipelineError,
    RateLimitError,
)
from ...utils.logging import log_event


def format_pipeline_error(error: Exception) -> str:
    """User-facing message for an error raised by the chat pipeline."""
    if isinstance(error, RAGPipelineError):
        return error.get_user_message()
    return GENERIC_USER_MESSAGE


def status_for_error(error: Exception) -> int:
    if isinstance(error, RAGPipelineError):
        return error.http_status
    return 500


def create_error_metadata(error: Exception) -> Dict[str, Any]:
    """Structured detail for logs; never sent to the client."""
    if isinstance(error, RAGPipelineError):
        return error.to_dict()
    return {
        "error": str(error)[:500],
        "error_type": type(error).__name__,
        "retryable": False,
    }


def error_response(error: Exception, event: str = "request_failed") -> JSONResponse:
    """
    Log ``error`` and build the ``{"error": ...}`` response for it.

    Returns:
        JSONResponse with status 429, 402 or 500
    """
    status_code = status_for_error(error)
    log_event(
        event,
        {"status_code": status_code, **create_error_metadata(error)},
        level=logging.WARNING if status_code < 500 else logging.ERROR,
    )

    headers = {}
    if isinstance(error, RateLimitError) and error.retry_after:
        headers["Retry-After"] = str(error.retry_after)

    return JSONResponse(
        status_code=status_code,
        content={"error": format_pipeline_error(error)},
        headers=headers or None,
    )
