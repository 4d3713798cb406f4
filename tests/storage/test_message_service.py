import uuid
from datetime import datetime, timezone

import asyncpg
import pytest

from medassist.models import TurnRole
from medassist.storage.database import MessageService
from tests.mocks import MockPool

CONV_ID = "5a1e6c3b-2f4d-4e8a-9b7c-1d2e3f4a5b6c"


@pytest.fixture
def pool():
    return MockPool()


@pytest.fixture
def service(pool):
    return MessageService(pool)


class TestAddMessage:
    @pytest.mark.asyncio
    async def test_inserts_row(self, service, pool):
        pool.conn.fetchrow.return_value = {
            "id": uuid.uuid4(),
            "conversation_id": uuid.UUID(CONV_ID),
            "role": "user",
            "content": "What helps a headache?",
        }

        result = await service.add_message(CONV_ID, "user", "What helps a headache?")

        assert result.is_success()
        query, *values = pool.conn.fetchrow.await_args.args
        assert "INSERT INTO chat_messages" in query
        assert values == [uuid.UUID(CONV_ID), "user", "What helps a headache?"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "role,content", [("system", "hi"), ("bot", "hi"), ("user", ""), ("user", "  ")]
    )
    async def test_validation(self, service, pool, role, content):
        result = await service.add_message(CONV_ID, role, content)

        assert result.is_failure()
        assert result.error_type == "ValidationError"
        pool.conn.fetchrow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_conversation_id(self, service):
        result = await service.add_message("abc", "user", "hi")

        assert result.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_conversation(self, service, pool):
        pool.conn.fetchrow.side_effect = asyncpg.ForeignKeyViolationError("fk")

        result = await service.add_message(CONV_ID, "assistant", "Rest helps.")

        assert result.is_failure()
        assert result.error_type == "NotFoundError"

    @pytest.mark.asyncio
    async def test_database_error(self, service, pool):
        pool.conn.fetchrow.side_effect = OSError("connection reset")

        result = await service.add_message(CONV_ID, "user", "hi")

        assert result.error_type == "InternalError"
        assert "connection reset" in result.error


class TestGetRecentTurns:
    @pytest.mark.asyncio
    async def test_returns_turns(self, service, pool):
        created = datetime(2026, 3, 1, tzinfo=timezone.utc)
        pool.conn.fetch.return_value = [
            {"role": "user", "content": "q", "created_at": created},
            {"role": "assistant", "content": "a", "created_at": created},
        ]

        result = await service.get_recent_turns(CONV_ID, limit=10)

        turns = result.unwrap()
        assert [t.role for t in turns] == [TurnRole.USER, TurnRole.ASSISTANT]
        query, conv_uuid, limit = pool.conn.fetch.await_args.args
        assert "ORDER BY created_at DESC" in query
        assert "ORDER BY created_at ASC" in query
        assert (conv_uuid, limit) == (uuid.UUID(CONV_ID), 10)

    @pytest.mark.asyncio
    async def test_zero_limit_skips_query(self, service, pool):
        result = await service.get_recent_turns(CONV_ID, limit=0)

        assert result.unwrap() == []
        pool.conn.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [-1, 201])
    async def test_limit_out_of_range(self, service, limit):
        result = await service.get_recent_turns(CONV_ID, limit=limit)

        assert result.error_type == "ValidationError"

    @pytest.mark.asyncio
    async def test_database_error(self, service, pool):
        pool.conn.fetch.side_effect = OSError("connection reset")

        result = await service.get_recent_turns(CONV_ID)

        assert result.is_failure()
        assert result.status_code == 500
