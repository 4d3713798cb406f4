import pytest


class TestCreateConversationEndpoint:
    def test_create_without_body(self, client):
        response = client.post("/api/conversations")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["conversation"]["title"] == "New Conversation"

    @pytest.mark.parametrize(
        "payload,expected_title",
        [
            ({"title": "Migraine questions"}, "Migraine questions"),
            ({"userId": "0b5c9f3e-4c1f-4e7a-9d7e-3f2a1b6c8d90"}, "New Conversation"),
            ({}, "New Conversation"),
        ],
    )
    def test_create_with_body(self, client, payload, expected_title):
        response = client.post("/api/conversations", json=payload)

        assert response.status_code == 200
        assert response.json()["conversation"]["title"] == expected_title

    def test_title_too_long(self, client):
        response = client.post("/api/conversations", json={"title": "x" * 201})

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error_type"] == "ValidationError"

    def test_service_failure(self, client, mock_container):
        mock_container.conversation_service.fail_create = True

        response = client.post("/api/conversations", json={})

        assert response.status_code == 500
        assert response.json()["error_type"] == "InternalError"

    def test_service_unavailable(self, client_no_conversation_service):
        response = client_no_conversation_service.post("/api/conversations", json={})

        assert response.status_code == 503


class TestGetConversationMessagesEndpoint:
    def test_returns_turns_oldest_first(self, client, mock_container):
        conversation_id = mock_container.conversation_service.seed()
        mock_container.message_service.seed_turns(
            conversation_id,
            [("user", "What helps a headache?"), ("assistant", "Rest and fluids.")],
        )

        response = client.get(f"/api/conversations/{conversation_id}/messages")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [m["role"] for m in data["messages"]] == ["user", "assistant"]
        assert data["messages"][1]["content"] == "Rest and fluids."

    def test_limit_keeps_most_recent(self, client, mock_container):
        conversation_id = mock_container.conversation_service.seed()
        mock_container.message_service.seed_turns(
            conversation_id, [("user", "one"), ("assistant", "two"), ("user", "three")]
        )

        response = client.get(
            f"/api/conversations/{conversation_id}/messages", params={"limit": 2}
        )

        assert [m["content"] for m in response.json()["messages"]] == ["two", "three"]

    def test_unknown_conversation(self, client):
        response = client.get(
            "/api/conversations/7d0f3c5e-0000-4000-8000-000000000000/messages"
        )

        assert response.status_code == 404
        assert response.json()["error_type"] == "NotFoundError"

    @pytest.mark.parametrize("limit", [0, 201, -1])
    def test_invalid_limit(self, client, mock_container, limit):
        conversation_id = mock_container.conversation_service.seed()

        response = client.get(
            f"/api/conversations/{conversation_id}/messages", params={"limit": limit}
        )

        assert response.status_code == 422

    def test_history_failure(self, client, mock_container):
        conversation_id = mock_container.conversation_service.seed()
        mock_container.message_service.fail_history = True

        response = client.get(f"/api/conversations/{conversation_id}/messages")

        assert response.status_code == 500
        assert response.json()["success"] is False
