import uuid

import pytest

from medassist.storage.database import ConversationService
from tests.mocks import MockPool

CONV_ID = "5a1e6c3b-2f4d-4e8a-9b7c-1d2e3f4a5b6c"


@pytest.fixture
def pool():
    return MockPool()


@pytest.fixture
def service(pool):
    return ConversationService(pool)


class TestCreateConversation:
    @pytest.mark.asyncio
    async def test_default_title(self, service, pool):
        pool.conn.fetchrow.return_value = {"id": uuid.UUID(CONV_ID), "title": "New Conversation"}

        result = await service.create_conversation()

        assert result.is_success()
        assert result.unwrap()["title"] == "New Conversation"
        _, *values = pool.conn.fetchrow.await_args.args
        assert values == ["New Conversation"]

    @pytest.mark.asyncio
    async def test_with_user(self, service, pool):
        user_id = str(uuid.uuid4())
        pool.conn.fetchrow.return_value = {"id": uuid.UUID(CONV_ID), "title": "Migraines"}

        await service.create_conversation(user_id=user_id, title="  Migraines ")

        _, *values = pool.conn.fetchrow.await_args.args
        assert values == ["Migraines", uuid.UUID(user_id)]

    @pytest.mark.asyncio
    async def test_title_too_long(self, service, pool):
        result = await service.create_conversation(title="x" * 201)

        assert result.error_type == "ValidationError"
        pool.conn.fetchrow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_user_id(self, service):
        result = await service.create_conversation(user_id="someone")

        assert result.status_code == 400

    @pytest.mark.asyncio
    async def test_no_row_returned(self, service, pool):
        pool.conn.fetchrow.return_value = None

        result = await service.create_conversation()

        assert result.error_type == "InternalError"


class TestGetConversation:
    @pytest.mark.asyncio
    async def test_found(self, service, pool):
        pool.conn.fetchrow.return_value = {"id": uuid.UUID(CONV_ID), "title": "T"}

        result = await service.get_conversation(CONV_ID)

        assert result.unwrap()["title"] == "T"

    @pytest.mark.asyncio
    async def test_not_found(self, service, pool):
        result = await service.get_conversation(CONV_ID)

        assert result.error_type == "NotFoundError"
        assert result.status_code == 404

    @pytest.mark.asyncio
    async def test_database_error(self, service, pool):
        pool.conn.fetchrow.side_effect = OSError("connection reset")

        result = await service.get_conversation(CONV_ID)

        assert result.error_type == "InternalError"
