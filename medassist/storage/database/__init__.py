"""
PostgreSQL-backed conversation storage.

Conversations and their messages live in ``chat_conversations`` and
``chat_messages``; services wrap an asyncpg pool and return Results.
"""

from .conversation_service import ConversationService
from .message_service import MessageService
from .schema import SCHEMA_SQL, render_schema
from .utils import (
    DatabaseError,
    EmbeddingDimensionError,
    build_insert_query,
    parse_uuid,
    record_to_dict,
    records_to_list,
    to_vector_literal,
)

__all__ = [
    "ConversationService",
    "MessageService",
    "SCHEMA_SQL",
    "render_schema",
    "DatabaseError",
    "EmbeddingDimensionError",
    "build_insert_query",
    "parse_uuid",
    "record_to_dict",
    "records_to_list",
    "to_vector_literal",
]
