"""
Conversation service for chat conversations.

The chat UI creates a conversation before the first message; the chat
pipeline only ever appends to one.
"""

import logging
from typing import Any, Dict, Optional

import asyncpg

from ...utils.logging import log_event, track
from ...utils.result import (
    Result,
    Success,
    internal_error,
    not_found_error,
    validation_error,
)
from .utils import build_insert_query, parse_uuid, record_to_dict

DEFAULT_TITLE = "New Conversation"
MAX_TITLE_LENGTH = 200


class ConversationService:
    """
    Service for ``chat_conversations`` rows.

    All methods return Result types for consistent error handling.
    """

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    @track(
        operation="conversation_create",
        include_args=["user_id"],
        include_result=True,
        track_performance=True,
        frequency="low_frequency",
    )
    async def create_conversation(
        self,
        user_id: Optional[str] = None,
        title: Optional[str] = None,
    ) -> Result[Dict[str, Any], str]:
        """
        Create a new conversation.

        Args:
            user_id: Owner's identifier as issued by the auth provider
            title: Conversation title (defaults to "New Conversation")

        Returns:
            Success with conversation dict, or Failure with error
        """
        title = (title or DEFAULT_TITLE).strip() or DEFAULT_TITLE
        if len(title) > MAX_TITLE_LENGTH:
            return validation_error(
                f"Title cannot exceed {MAX_TITLE_LENGTH} characters",
                context={"title_length": len(title)},
            )

        try:
            data: Dict[str, Any] = {"title": title}
            if user_id:
                data["user_id"] = parse_uuid(user_id)

            query, values = build_insert_query("chat_conversations", data)

            async with self.db_pool.acquire() as conn:
                record = await conn.fetchrow(query, *values)

            if not record:
                return internal_error(
                    "Failed to create conversation",
                    context={"user_id": user_id},
                )

            conversation = record_to_dict(record)

            log_event(
                "conversation_created",
                {"conversation_id": str(conversation["id"]), "user_id": user_id},
            )

            return Success(conversation)

        except ValueError as e:
            return validation_error(str(e), context={"user_id": user_id})
        except Exception as e:
            log_event(
                "conversation_create_error",
                {"error": str(e), "error_type": type(e).__name__},
                level=logging.ERROR,
            )
            return internal_error(
                f"Failed to create conversation: {str(e)}",
                context={"user_id": user_id, "error_type": type(e).__name__},
            )

    @track(
        operation="conversation_get",
        include_args=["conversation_id"],
        track_performance=True,
        frequency="high_frequency",
    )
    async def get_conversation(
        self, conversation_id: str
    ) -> Result[Dict[str, Any], str]:
        """
        Get conversation by ID.

        Returns:
            Success with conversation dict, or Failure (NotFoundError if missing)
        """
        try:
            conv_uuid = parse_uuid(conversation_id)

            async with self.db_pool.acquire() as conn:
                record = await conn.fetchrow(
                    "SELECT * FROM chat_conversations WHERE id = $1", conv_uuid
                )

            if not record:
                return not_found_error(
                    f"Conversation '{conversation_id}' not found",
                    context={"conversation_id": conversation_id},
                )

            return Success(record_to_dict(record))

        except ValueError as e:
            return validation_error(
                str(e), context={"conversation_id": conversation_id}
            )
        except Exception as e:
            log_event(
                "conversation_get_error",
                {"conversation_id": conversation_id, "error": str(e)},
                level=logging.ERROR,
            )
            return internal_error(
                f"Failed to get conversation: {str(e)}",
                context={"conversation_id": conversation_id},
            )
