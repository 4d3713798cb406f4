"""
Operation tracking - one decorator for timing, argument capture and errors.

High-frequency operations (embedding calls, retrieval) can be sampled;
operations that mutate state are always logged.
"""

import functools
import inspect
import logging
import random
import time
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union, cast

from .structured import log_event

F = TypeVar("F", bound=Callable[..., Any])


class LogConfig:
    """Global configuration for operation tracking."""

    SAMPLE_RATES = {
        "high_frequency": 0.1,
        "medium_frequency": 0.5,
        "low_frequency": 1.0,
    }

    SENSITIVE_KEYS = {"password", "token", "secret", "key", "api_key", "auth"}
    LARGE_CONTENT_KEYS = {"content", "text", "message", "body", "input"}
    MAX_ARG_LENGTH = 100

    CRITICAL_OPS = {"persist", "backfill", "update", "create", "initialize"}


def track(
    operation: Optional[str] = None,
    level: int = logging.INFO,
    frequency: str = "low_frequency",
    include_args: Union[bool, List[str]] = True,
    include_result: bool = True,
    track_performance: bool = True,
    emit_events: bool = True,
):
    """
    Decorator that logs start, completion and failure of an operation.

    Args:
        operation: Operation name (derived from the function if None)
        level: Log level for this operation
        frequency: Sampling category (high_frequency, medium_frequency, low_frequency)
        include_args: True for all keyword args, a list for specific ones, False for none
        include_result: Whether to log return value info
        track_performance: Whether to record duration
        emit_events: False to stay silent

    Examples:
        @track(operation="embedding_request", frequency="high_frequency")
        @track(include_args=["conversation_id"])
    """

    def decorator(func: F) -> F:
        op_name = operation or _get_operation_name(func)

        def _tracker(args, kwargs) -> "BaseOperationTracker":
            return BaseOperationTracker(
                operation=op_name,
                level=level,
                include_args=include_args,
                include_result=include_result,
                track_performance=track_performance,
                emit_events=emit_events,
                args=args,
                kwargs=kwargs,
            )

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            if not _should_log(op_name, frequency):
                return await func(*args, **kwargs)

            tracker = _tracker(args, kwargs)
            tracker.on_enter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                tracker.on_exit(type(e), e)
                raise
            tracker.set_result(result)
            tracker.on_exit(None, None)
            return result

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            if not _should_log(op_name, frequency):
                return func(*args, **kwargs)

            tracker = _tracker(args, kwargs)
            tracker.on_enter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                tracker.on_exit(type(e), e)
                raise
            tracker.set_result(result)
            tracker.on_exit(None, None)
            return result

        if inspect.iscoroutinefunction(func):
            return cast(F, async_wrapper)
        return cast(F, sync_wrapper)

    return decorator


class BaseOperationTracker:
    """Handles all logging for one invocation of a tracked operation."""

    def __init__(
        self,
        operation: str,
        level: int,
        include_args: Union[bool, List[str]],
        include_result: bool,
        track_performance: bool,
        emit_events: bool,
        args: tuple,
        kwargs: dict,
    ):
        self.operation = operation
        self.level = level
        self.include_args = include_args
        self.include_result = include_result
        self.track_performance = track_performance
        self.emit_events = emit_events
        self.args = args
        self.kwargs = kwargs

        self.start_time: Optional[float] = None
        self.result: Any = None
        self.metrics: Dict[str, Any] = {}

    def on_enter(self) -> None:
        if self.track_performance:
            self.start_time = time.perf_counter()

        if self.emit_events and self.level <= logging.DEBUG:
            log_event("operation_started", self._build_start_context(), self.level)

    def on_exit(self, exc_type: Optional[type], exc_val: Optional[Exception]) -> None:
        if self.track_performance and self.start_time:
            self.metrics["duration_ms"] = int(
                (time.perf_counter() - self.start_time) * 1000
            )

        if not self.emit_events:
            return

        context = self._build_exit_context(exc_type, exc_val)
        if exc_type is None:
            log_event("operation_completed", context, self.level)
        else:
            log_event("operation_failed", context, logging.ERROR)

    def set_result(self, result: Any) -> None:
        self.result = result

    def _build_start_context(self) -> Dict[str, Any]:
        context: Dict[str, Any] = {"operation": self.operation}
        if self.include_args:
            context.update(_extract_safe_args(self.kwargs, self.include_args))
        return context

    def _build_exit_context(
        self, exc_type: Optional[type], exc_val: Optional[Exception]
    ) -> Dict[str, Any]:
        context: Dict[str, Any] = {
            "operation": self.operation,
            "success": exc_type is None,
            **self.metrics,
        }
        if self.include_args:
            context.update(_extract_safe_args(self.kwargs, self.include_args))

        if self.include_result and exc_type is None and self.result is not None:
            context.update(_extract_result_info(self.result))

        if exc_type is not None:
            context["error_type"] = exc_type.__name__
            context["error_message"] = str(exc_val) if exc_val else ""

        return context


def _get_operation_name(func: Callable) -> str:
    if hasattr(func, "__qualname__"):
        return func.__qualname__.replace(".", "_").lower()
    return func.__name__.lower()


def _should_log(operation: str, frequency: str) -> bool:
    if any(critical in operation.lower() for critical in LogConfig.CRITICAL_OPS):
        return True
    return random.random() < LogConfig.SAMPLE_RATES.get(frequency, 1.0)


def _extract_safe_args(
    kwargs: dict, include_spec: Union[bool, List[str]]
) -> Dict[str, Any]:
    """Keyword arguments only; positional args are never logged."""
    if include_spec is True:
        include_keys = set(kwargs.keys())
    elif isinstance(include_spec, list):
        include_keys = set(include_spec)
    else:
        return {}

    return {
        f"arg_{key}": _sanitize_value(key, value)
        for key, value in kwargs.items()
        if key in include_keys
    }


def _sanitize_value(key: str, value: Any) -> Any:
    if any(sensitive in key.lower() for sensitive in LogConfig.SENSITIVE_KEYS):
        return "[REDACTED]"

    if key.lower() in LogConfig.LARGE_CONTENT_KEYS and isinstance(value, str):
        if len(value) > LogConfig.MAX_ARG_LENGTH:
            return f"<{len(value)} chars>"
        return value

    if isinstance(value, (str, int, float, bool, type(None))):
        if isinstance(value, str) and len(value) > LogConfig.MAX_ARG_LENGTH:
            return f"{value[:LogConfig.MAX_ARG_LENGTH]}..."
        return value
    return f"<{type(value).__name__}>"


def _extract_result_info(result: Any) -> Dict[str, Any]:
    result_info: Dict[str, Any] = {"result_type": type(result).__name__}

    if isinstance(result, (list, tuple)):
        result_info["result_length"] = len(result)
    elif isinstance(result, dict):
        result_info["result_keys_count"] = len(result)
    elif isinstance(result, bool):
        result_info["result_value"] = result

    return result_info


def log_operation_error(
    operation: str, error: Exception, duration_ms: Optional[int] = None, **context
):
    """Manually log operation error."""
    context.update(
        {
            "operation": operation,
            "success": False,
            "error_type": type(error).__name__,
            "error_message": str(error),
        }
    )
    if duration_ms is not None:
        context["duration_ms"] = duration_ms
    log_event("operation_failed", context, logging.ERROR)
