"""
Message service for conversation turns.

Messages are append-only. Reading history returns the most recent turns
in chronological order, which is what the prompt assembler expects.
"""

import logging
from typing import Any, Dict, List

import asyncpg

from ...models import ConversationTurn, TurnRole
from ...utils.logging import log_event, track
from ...utils.result import (
    Result,
    Success,
    internal_error,
    not_found_error,
    validation_error,
)
from .utils import build_insert_query, parse_uuid, record_to_dict, records_to_list

MAX_HISTORY_LIMIT = 200


class MessageService:
    """
    Service for ``chat_messages`` rows.

    All methods return Result types for consistent error handling.
    """

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    @track(
        operation="message_persist",
        include_args=["conversation_id", "role"],
        include_result=True,
        track_performance=True,
        frequency="high_frequency",
    )
    async def add_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
    ) -> Result[Dict[str, Any], str]:
        """
        Append a message to a conversation.

        Args:
            conversation_id: Conversation UUID
            role: 'user' or 'assistant'
            content: Message text (must not be blank)

        Returns:
            Success with message dict, or Failure with error
        """
        valid_roles = [r.value for r in TurnRole]
        if role not in valid_roles:
            return validation_error(
                f"Invalid role: {role}. Must be one of {valid_roles}",
                context={"role": role},
            )

        if not content or not content.strip():
            return validation_error(
                "Message content cannot be empty",
                context={"conversation_id": conversation_id},
            )

        try:
            conv_uuid = parse_uuid(conversation_id)

            query, values = build_insert_query(
                "chat_messages",
                {"conversation_id": conv_uuid, "role": role, "content": content},
            )

            async with self.db_pool.acquire() as conn:
                record = await conn.fetchrow(query, *values)

            if not record:
                return internal_error(
                    "Failed to create message",
                    context={"conversation_id": conversation_id},
                )

            message = record_to_dict(record)

            log_event(
                "message_added",
                {
                    "message_id": str(message["id"]),
                    "conversation_id": conversation_id,
                    "role": role,
                    "content_chars": len(content),
                },
            )

            return Success(message)

        except ValueError as e:
            return validation_error(
                str(e), context={"conversation_id": conversation_id}
            )
        except asyncpg.ForeignKeyViolationError:
            return not_found_error(
                f"Conversation '{conversation_id}' not found",
                context={"conversation_id": conversation_id},
            )
        except Exception as e:
            log_event(
                "message_add_error",
                {"conversation_id": conversation_id, "error": str(e)},
                level=logging.ERROR,
            )
            return internal_error(
                f"Failed to add message: {str(e)}",
                context={"conversation_id": conversation_id},
            )

    @track(
        operation="messages_get_recent",
        include_args=["conversation_id", "limit"],
        track_performance=True,
        frequency="high_frequency",
    )
    async def get_recent_turns(
        self,
        conversation_id: str,
        limit: int = 10,
    ) -> Result[List[ConversationTurn], str]:
        """
        Get the most recent turns of a conversation.

        Args:
            conversation_id: Conversation UUID
            limit: Maximum turns to return (0 returns none)

        Returns:
            Success with turns ordered oldest first, or Failure with error
        """
        if limit < 0 or limit > MAX_HISTORY_LIMIT:
            return validation_error(
                f"Limit must be between 0 and {MAX_HISTORY_LIMIT}",
                context={"limit": limit},
            )
        if limit == 0:
            return Success([])

        try:
            conv_uuid = parse_uuid(conversation_id)

            # Newest N first, then flipped back to chronological order
            query = """
                SELECT role, content, created_at FROM (
                    SELECT role, content, created_at, id
                    FROM chat_messages
                    WHERE conversation_id = $1
                    ORDER BY created_at DESC, id DESC
                    LIMIT $2
                ) recent
                ORDER BY created_at ASC, id ASC
            """

            async with self.db_pool.acquire() as conn:
                records = await conn.fetch(query, conv_uuid, limit)

            turns = [
                ConversationTurn.from_record(row) for row in records_to_list(records)
            ]
            return Success(turns)

        except ValueError as e:
            return validation_error(
                str(e), context={"conversation_id": conversation_id}
            )
        except Exception as e:
            log_event(
                "messages_get_error",
                {"conversation_id": conversation_id, "error": str(e)},
                level=logging.ERROR,
            )
            return internal_error(
                f"Failed to get messages: {str(e)}",
                context={"conversation_id": conversation_id},
            )
