"""
Error taxonomy for the chat pipeline.

Every failure that can reach the HTTP boundary is a ``RAGPipelineError``
carrying the status code and user-facing message it maps to. Rate-limit
and quota failures keep their own classes end to end so the caller can
tell them apart; everything else collapses to a generic "try again".
"""

import json
from typing import Any, Dict, Optional

GENERIC_USER_MESSAGE = "Failed to get response. Please try again."


class RAGPipelineError(Exception):
    """
    Base exception for all pipeline errors.

    Attributes:
        message: Internal error message (logged, never shown to users)
        service: Component that raised the error (embedding, retrieval, completion)
        error_type: Categorization of error type
        retryable: Whether the caller may retry later
        http_status: Status code the HTTP layer responds with
        metadata: Additional context about the error
    """

    USER_MESSAGE = GENERIC_USER_MESSAGE

    def __init__(
        self,
        message: str,
        service: str,
        error_type: str = "unknown",
        retryable: bool = False,
        http_status: int = 500,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.service = service
        self.error_type = error_type
        self.retryable = retryable
        self.http_status = http_status
        self.metadata = metadata or {}

    def get_user_message(self) -> str:
        """Message safe to return to the caller."""
        return self.USER_MESSAGE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "error_type": self.error_type,
            "service": self.service,
            "retryable": self.retryable,
            "http_status": self.http_status,
            "metadata": self.metadata,
        }

    def __str__(self) -> str:
        if self.service:
            return f"{self.message} (service: {self.service})"
        return self.message


class ConfigurationError(RAGPipelineError):
    """
    Missing or invalid configuration. Fatal at startup.

    Attributes:
        config_fields: Settings fields that are missing or invalid
    """

    def __init__(self, message: str, config_fields: Optional[list] = None):
        super().__init__(
            message=message,
            service="configuration",
            error_type="configuration_error",
            retryable=False,
            metadata={"config_fields": config_fields or []},
        )
        self.config_fields = config_fields or []


class EmbeddingError(RAGPipelineError):
    """
    The embedding service failed or returned an unusable payload.

    Aborts an interactive chat request; recorded and skipped during backfill.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        metadata: Dict[str, Any] = {}
        if status_code is not None:
            metadata["status_code"] = status_code
        if response_body:
            metadata["response_body"] = response_body[:1000]
        if original_error is not None:
            metadata["original_error"] = str(original_error)

        super().__init__(
            message=message,
            service="embedding",
            error_type="embedding_failure",
            metadata=metadata,
        )
        self.status_code = status_code
        self.original_error = original_error


class RetrievalError(RAGPipelineError):
    """The similarity search against the document store failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(
            message=message,
            service="retrieval",
            error_type="retrieval_failure",
            metadata=(
                {"original_error": str(original_error)} if original_error else {}
            ),
        )
        self.original_error = original_error


class UpstreamError(RAGPipelineError):
    """
    Non-2xx response or transport failure from an upstream AI service.

    Attributes:
        status_code: HTTP status code (None for transport failures)
        response_body: Raw response body from the service
    """

    def __init__(
        self,
        message: str,
        service: str = "completion",
        status_code: Optional[int] = None,
        response_body: str = "",
        error_type: Optional[str] = None,
        retryable: bool = False,
        http_status: int = 500,
        original_error: Optional[Exception] = None,
    ):
        metadata: Dict[str, Any] = {"status_code": status_code}
        if response_body:
            metadata["response_body"] = response_body[:1000]
        if original_error is not None:
            metadata["original_error"] = str(original_error)

        super().__init__(
            message=message,
            service=service,
            error_type=error_type or self._categorize_status_code(status_code),
            retryable=retryable,
            http_status=http_status,
            metadata=metadata,
        )
        self.status_code = status_code
        self.response_body = response_body
        self.original_error = original_error

    @staticmethod
    def _categorize_status_code(status_code: Optional[int]) -> str:
        if status_code is None:
            return "transport_error"
        elif status_code in (401, 403):
            return "authentication_error"
        elif 400 <= status_code < 500:
            return "invalid_request"
        elif 500 <= status_code < 600:
            return "server_error"
        return "api_error"


class RateLimitError(UpstreamError):
    """
    The upstream service is rate limiting us. Recoverable by backing off.

    Never retried automatically; the caller decides when to try again.

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by the service)
    """

    USER_MESSAGE = "Rate limit exceeded. Please wait a moment and try again."

    def __init__(
        self,
        message: str,
        service: str = "completion",
        response_body: str = "",
        retry_after: Optional[int] = None,
    ):
        super().__init__(
            message=message,
            service=service,
            status_code=429,
            response_body=response_body,
            error_type="rate_limited",
            retryable=True,
            http_status=429,
        )
        self.retry_after = retry_after
        if retry_after:
            self.metadata["retry_after"] = retry_after

    def get_user_message(self) -> str:
        if self.retry_after:
            return f"Rate limit exceeded. Please wait {self.retry_after} seconds and try again."
        return self.USER_MESSAGE


class QuotaExhaustedError(UpstreamError):
    """
    Billing credits or quota are exhausted. Needs operator intervention.

    Never retried.
    """

    USER_MESSAGE = (
        "AI usage credits are exhausted. Please add credits to your workspace "
        "to continue."
    )

    def __init__(
        self,
        message: str,
        service: str = "completion",
        status_code: int = 402,
        response_body: str = "",
    ):
        super().__init__(
            message=message,
            service=service,
            status_code=status_code,
            response_body=response_body,
            error_type="quota_exhausted",
            retryable=False,
            http_status=402,
        )


class MalformedFrameError(RAGPipelineError):
    """
    A stream frame could not be parsed.

    Raised and recovered inside the stream decoder only; it never reaches
    callers of the decoder.
    """

    def __init__(self, message: str, payload: str = ""):
        super().__init__(
            message=message,
            service="stream_decoder",
            error_type="malformed_frame",
            metadata={"payload_chars": len(payload)},
        )
        self.payload = payload


def _is_quota_body(response_body: str) -> bool:
    """Detect OpenAI-style ``insufficient_quota`` error codes in a 429 body."""
    try:
        payload = json.loads(response_body)
    except (TypeError, ValueError):
        return "insufficient_quota" in (response_body or "")

    if not isinstance(payload, dict):
        return False
    error = payload.get("error")
    if isinstance(error, dict):
        return "insufficient_quota" in (error.get("code"), error.get("type"))
    return False


def _parse_retry_after(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        seconds = int(float(value))
    except (ValueError, OverflowError):
        return None
    return seconds if seconds > 0 else None


def classify_upstream_status(
    status_code: int,
    response_body: str,
    service: str = "completion",
    retry_after: Optional[str] = None,
) -> UpstreamError:
    """
    Map a non-2xx upstream response to the error taxonomy.

    Args:
        status_code: HTTP status returned by the service
        response_body: Response body text (used for diagnostics and quota detection)
        service: Which upstream service responded
        retry_after: Raw ``Retry-After`` header value, if any

    Returns:
        RateLimitError for 429, QuotaExhaustedError for 402 (or a 429 whose
        body names ``insufficient_quota``), UpstreamError otherwise
    """
    if status_code == 402 or (status_code == 429 and _is_quota_body(response_body)):
        return QuotaExhaustedError(
            message=f"{service} service reports exhausted quota (HTTP {status_code})",
            service=service,
            status_code=status_code,
            response_body=response_body,
        )

    if status_code == 429:
        return RateLimitError(
            message=f"{service} service rate limit exceeded",
            service=service,
            response_body=response_body,
            retry_after=_parse_retry_after(retry_after),
        )

    return UpstreamError(
        message=f"{service} service returned HTTP {status_code}",
        service=service,
        status_code=status_code,
        response_body=response_body,
    )
