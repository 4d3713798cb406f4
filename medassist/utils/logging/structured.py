"""
Structured event logging with a human-readable development formatter.

Every event is a log record carrying a ``structured_data`` dict so that
handlers can render it however they like; the bundled formatter renders
pipeline events as one readable line each.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

LOGGER_NAME = "medassist"


class StructuredLogger:
    """
    Structured logger that creates consistent, searchable log events.

    Injects the correlation ID of the current request into every event.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def event(
        self,
        event_name: str,
        data: Optional[Dict[str, Any]] = None,
        level: int = logging.INFO,
    ):
        """
        Log a structured event with optional data.

        Args:
            event_name: Name of the event (e.g., 'retrieval_completed')
            data: Dictionary of structured data to include
            level: Log level (defaults to INFO)
        """
        from .context import get_correlation_id

        if not self.logger.isEnabledFor(level):
            return

        structured_data: Dict[str, Any] = {
            "event": event_name,
            "correlation_id": get_correlation_id(),
        }
        if data:
            structured_data.update(data)

        record = self.logger.makeRecord(
            self.logger.name, level, "(structured)", 0, event_name, (), None
        )
        record.structured_data = structured_data

        self.logger.handle(record)


_global_logger: Optional[StructuredLogger] = None


def get_structured_logger(name: str = LOGGER_NAME) -> StructuredLogger:
    """Get or create the structured logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = StructuredLogger(name)
    return _global_logger


def log_event(
    event_name: str, data: Optional[Dict[str, Any]] = None, level: int = logging.INFO
):
    """
    Convenience function for logging structured events.

    Example::

        log_event("retrieval_completed", {
            "match_count": 3,
            "threshold": 0.5,
        })
    """
    get_structured_logger().event(event_name, data, level)


def create_development_formatter() -> logging.Formatter:
    """
    Create a human-readable formatter for development environments.

    Operation events get timing badges; pipeline events get a short summary
    of their most useful fields; anything else falls back to ``key=value``.
    """

    class DevelopmentFormatter(logging.Formatter):
        def format(self, record: logging.LogRecord) -> str:
            timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[
                :-3
            ]

            data: Optional[dict] = getattr(record, "structured_data", None)

            if not data:
                return f"{timestamp} | {record.levelname:5} | {record.getMessage()}"

            event = data.get("event", "")
            operation = data.get("operation", "")

            if event == "operation_started":
                message_content = f"🚀 {operation or 'operation'} started"
            elif event == "operation_completed":
                message_content = self._format_operation_success(data, operation)
            elif event == "operation_failed":
                message_content = self._format_operation_error(data, operation)
            elif event in ("service_ready", "health_check"):
                message_content = self._format_system_event(data, event)
            else:
                message_content = self._format_generic_event(data, event)

            return f"{timestamp} | {record.levelname:5} | {message_content}"

        @staticmethod
        def _format_duration(duration_ms: int) -> str:
            if duration_ms >= 1000:
                return f"{duration_ms/1000:.1f}s"
            return f"{duration_ms}ms"

        def _format_operation_success(self, data: dict, operation: str) -> str:
            duration_ms = data.get("duration_ms", 0)

            if duration_ms < 50:
                duration_emoji = "⚡"
            elif duration_ms > 2000:
                duration_emoji = "🐌"
            else:
                duration_emoji = "⏱️"

            base_message = (
                f"{duration_emoji} {self._format_duration(duration_ms)} {operation}"
            )
            if "result_length" in data:
                return f"{base_message} ({data['result_length']} results)"
            return base_message

        def _format_operation_error(self, data: dict, operation: str) -> str:
            duration_ms = data.get("duration_ms", 0)
            error_type = data.get("error_type", "Error")
            error_message = data.get("error_message", "")

            duration_part = f" {self._format_duration(duration_ms)}" if duration_ms else ""

            if len(error_message) > 60:
                error_message = error_message[:57] + "..."

            return (
                f"❌{duration_part} {operation} failed ({error_type}: {error_message})"
            )

        def _format_system_event(self, data: dict, event: str) -> str:
            if event == "service_ready":
                service = data.get("service", "unknown")
                status = data.get("status", "unknown")
                return f"✅ {service} service ready ({status})"
            status = data.get("status", "unknown")
            return f"💚 health_check ({status})"

        def _format_generic_event(self, data: dict, event: str) -> str:
            if not event:
                return "📝 log_event"

            context = self._get_pipeline_context(data, event)
            if context:
                return f"📝 {event}: {context}"

            extras = {
                k: v
                for k, v in data.items()
                if k not in ("event", "correlation_id")
            }
            if extras:
                pairs = ", ".join(f"{k}={v}" for k, v in list(extras.items())[:6])
                return f"📝 {event} ({pairs})"
            return f"📝 {event}"

        def _get_pipeline_context(self, data: dict, event: str) -> str:
            if event == "retrieval_completed":
                return (
                    f"{data.get('match_count', 0)} matches "
                    f"(threshold={data.get('threshold')})"
                )
            elif event == "prompt_assembled":
                return (
                    f"{data.get('document_blocks', 0)} documents, "
                    f"{data.get('history_turns', 0)} history turns, "
                    f"{data.get('system_chars', 0)} chars"
                )
            elif event == "pipeline_state_changed":
                return f"{data.get('from_state')} → {data.get('to_state')}"
            elif event == "stream_completed":
                return (
                    f"{data.get('delta_count', 0)} deltas, "
                    f"{data.get('reply_chars', 0)} chars"
                )
            elif event == "stream_decoder_discarded":
                return f"{data.get('discarded_chars', 0)} trailing chars dropped"
            elif event == "backfill_completed":
                return (
                    f"{data.get('succeeded', 0)}/{data.get('total', 0)} embedded, "
                    f"{data.get('failed', 0)} failed"
                )
            return ""

    return DevelopmentFormatter()
