from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from medassist.models import ConversationTurn
from medassist.storage.database.utils import parse_uuid
from medassist.utils.result import (
    Success,
    internal_error,
    not_found_error,
    validation_error,
)

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class MockConversationService:
    """In-memory ConversationService returning real Result values."""

    def __init__(self):
        self.conversations: Dict[str, Dict[str, Any]] = {}
        self.fail_create = False

    def seed(self, conversation_id: Optional[str] = None, title: str = "Headaches"):
        conversation_id = conversation_id or str(uuid4())
        self.conversations[conversation_id] = {
            "id": conversation_id,
            "user_id": None,
            "title": title,
            "created_at": BASE_TIME.isoformat(),
        }
        return conversation_id

    async def create_conversation(self, user_id=None, title=None):
        if self.fail_create:
            return internal_error("Failed to create conversation: connection reset")
        if title is not None and len(title) > 200:
            return validation_error("Title cannot exceed 200 characters")
        conversation_id = self.seed(title=title or "New Conversation")
        self.conversations[conversation_id]["user_id"] = user_id
        return Success(self.conversations[conversation_id])

    async def get_conversation(self, conversation_id: str):
        if conversation_id not in self.conversations:
            return not_found_error(f"Conversation '{conversation_id}' not found")
        return Success(self.conversations[conversation_id])


class MockMessageService:
    """
    In-memory MessageService.

    ``added`` records every successful insert in order so tests can assert
    exactly what was persisted.
    """

    def __init__(self):
        self.messages: Dict[str, List[ConversationTurn]] = {}
        self.added: List[Dict[str, str]] = []
        self.fail_add = False
        self.fail_history = False

    def seed_turns(self, conversation_id: str, turns: List[tuple]) -> None:
        stored = self.messages.setdefault(conversation_id, [])
        for role, content in turns:
            stored.append(
                ConversationTurn(
                    role=role,
                    content=content,
                    created_at=BASE_TIME + timedelta(seconds=len(stored)),
                )
            )

    def added_by_role(self, role: str) -> List[str]:
        return [entry["content"] for entry in self.added if entry["role"] == role]

    async def add_message(self, conversation_id: str, role: str, content: str):
        if self.fail_add:
            return internal_error("Failed to add message: connection reset")
        if not content.strip():
            return validation_error("Message content cannot be empty")
        try:
            parse_uuid(conversation_id)
        except ValueError as e:
            return validation_error(str(e))

        self.seed_turns(conversation_id, [(role, content)])
        entry = {"conversation_id": conversation_id, "role": role, "content": content}
        self.added.append(entry)
        return Success({"id": str(uuid4()), **entry})

    async def get_recent_turns(self, conversation_id: str, limit: int = 10):
        if self.fail_history:
            return internal_error("Failed to get messages: connection reset")
        try:
            parse_uuid(conversation_id)
        except ValueError as e:
            return validation_error(str(e))
        turns = self.messages.get(conversation_id, [])
        return Success(turns[-limit:] if limit else [])
