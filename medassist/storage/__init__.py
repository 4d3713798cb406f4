"""Storage layer: document corpus and conversation persistence."""

from .database import ConversationService, DatabaseError, MessageService
from .document_store import DocumentStore

__all__ = [
    "ConversationService",
    "DatabaseError",
    "DocumentStore",
    "MessageService",
]
