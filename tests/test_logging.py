import logging

import pytest

from medassist.utils.logging import (
    create_development_formatter,
    get_correlation_id,
    log_event,
    new_correlation_id,
    set_correlation_id,
    track,
)
from medassist.utils.logging.smart_logger import _sanitize_value, _should_log


@pytest.fixture
def captured():
    records = []

    class Collector(logging.Handler):
        def emit(self, record):
            records.append(record)

    app_logger = logging.getLogger("medassist")
    handler = Collector()
    previous = app_logger.level
    app_logger.addHandler(handler)
    app_logger.setLevel(logging.DEBUG)
    yield records
    app_logger.removeHandler(handler)
    app_logger.setLevel(previous)


def _events(records):
    return [r.structured_data for r in records if hasattr(r, "structured_data")]


class TestLogEvent:
    def test_carries_correlation_id(self, captured):
        set_correlation_id("req-123")

        log_event("retrieval_completed", {"match_count": 2})

        event = _events(captured)[-1]
        assert event["event"] == "retrieval_completed"
        assert event["correlation_id"] == "req-123"
        assert event["match_count"] == 2

    def test_new_correlation_id_replaces_current(self):
        set_correlation_id("old")

        fresh = new_correlation_id()

        assert fresh != "old"
        assert get_correlation_id() == fresh

    def test_formatter_renders_pipeline_event(self, captured):
        log_event("retrieval_completed", {"match_count": 2, "threshold": 0.5, "top_k": 3})

        line = create_development_formatter().format(captured[-1])

        assert "retrieval_completed" in line
        assert "INFO" in line


class TestTrack:
    @pytest.mark.asyncio
    async def test_logs_completion_with_selected_args(self, captured):
        @track(operation="message_persist", include_args=["conversation_id"])
        async def persist(conversation_id, content):
            return [1, 2]

        await persist(conversation_id="c1", content="secret stuff")

        event = _events(captured)[-1]
        assert event["event"] == "operation_completed"
        assert event["arg_conversation_id"] == "c1"
        assert "arg_content" not in event
        assert event["result_length"] == 2

    @pytest.mark.asyncio
    async def test_logs_failure_and_reraises(self, captured):
        @track(operation="embedding_backfill")
        async def run():
            raise ValueError("boom")

        with pytest.raises(ValueError):
            await run()

        event = _events(captured)[-1]
        assert event["event"] == "operation_failed"
        assert event["error_type"] == "ValueError"

    def test_sync_functions(self, captured):
        @track(operation="create_thing")
        def create():
            return {"success": True}

        assert create() == {"success": True}
        assert _events(captured)[-1]["result_keys_count"] == 1

    def test_critical_operations_never_sampled(self):
        assert _should_log("message_persist", "high_frequency")

    @pytest.mark.parametrize(
        "key,value,expected",
        [
            ("api_key", "sk-123", "[REDACTED]"),
            ("content", "x" * 500, "<500 chars>"),
            ("conversation_id", "c1", "c1"),
            ("vector", [0.1], "<list>"),
        ],
    )
    def test_sanitize_value(self, key, value, expected):
        assert _sanitize_value(key, value) == expected
