"""
Result type for explicit error handling in the storage layer.

Persistence hooks in the chat pipeline are non-fatal: a failed insert must
not abort delivery of an answer. Storage services therefore return a
``Success`` or ``Failure`` value instead of raising, and callers decide
whether to log and continue or to surface the failure.

Example:
    >>> result = Success({"id": "c1"})
    >>> result.unwrap()
    {'id': 'c1'}

    >>> failure = not_found_error("Conversation c9 not found")
    >>> failure.to_dict()
    {'success': False, 'error': 'Conversation c9 not found', 'error_type': 'NotFoundError'}
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass
class Success(Generic[T]):
    """
    A successful operation with a value.

    Attributes:
        value: The successful result value
        metadata: Optional metadata about the operation
    """

    value: T
    metadata: Optional[Dict[str, Any]] = None

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": True, "data": self.value}
        if self.metadata:
            result["metadata"] = self.metadata
        return result

    def __bool__(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Success({self.value})"


@dataclass
class Failure(Generic[E]):
    """
    A failed operation.

    Attributes:
        error: The error message
        error_type: Category of error (e.g., "ValidationError")
        context: Additional context about the error
        recoverable: Whether the operation can be retried
        status_code: HTTP status code hint for API responses
    """

    error: E
    error_type: str = "UnknownError"
    context: Optional[Dict[str, Any]] = None
    recoverable: bool = False
    status_code: int = 500

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """
        Raises:
            RuntimeError: Always, since this is a Failure
        """
        raise RuntimeError(f"Called unwrap on Failure: {self.error}")

    def unwrap_or(self, default: Any) -> Any:
        return default

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "success": False,
            "error": str(self.error),
            "error_type": self.error_type,
        }
        if self.context:
            result["context"] = self.context
        if self.recoverable:
            result["recoverable"] = True
        return result

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"Failure({self.error_type}: {self.error})"


Result = Union[Success[T], Failure[E]]


class ErrorType:
    """Error categories as (name, HTTP status, recoverable)."""

    VALIDATION_ERROR = ("ValidationError", 400, True)
    NOT_FOUND_ERROR = ("NotFoundError", 404, False)
    INTERNAL_ERROR = ("InternalError", 500, False)


def _failure(kind: tuple, message: str, context: Optional[Dict[str, Any]]) -> Failure:
    error_type, status_code, recoverable = kind
    return Failure(
        error=message,
        error_type=error_type,
        context=context,
        recoverable=recoverable,
        status_code=status_code,
    )


def validation_error(message: str, context: Optional[Dict[str, Any]] = None) -> Failure:
    """Create a validation error result."""
    return _failure(ErrorType.VALIDATION_ERROR, message, context)


def not_found_error(message: str, context: Optional[Dict[str, Any]] = None) -> Failure:
    """Create a not found error result."""
    return _failure(ErrorType.NOT_FOUND_ERROR, message, context)


def internal_error(message: str, context: Optional[Dict[str, Any]] = None) -> Failure:
    """Create an internal error result."""
    return _failure(ErrorType.INTERNAL_ERROR, message, context)
