"""
Core data models for MedAssist.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TurnRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Document(BaseModel):
    """A reference document from the medical corpus."""

    id: str = Field(description="Document ID")
    title: str = Field(description="Document title")
    category: str = Field(default="", description="Topic category")
    content: str = Field(description="Document body")
    embedding: Optional[List[float]] = Field(
        default=None, description="Stored embedding, null until backfilled"
    )

    def embedding_text(self) -> str:
        """Text the backfill pass embeds for this document."""
        return f"{self.title}\n\n{self.content}"


class ConversationTurn(BaseModel):
    """One stored message of a conversation."""

    role: TurnRole = Field(description="Who said it")
    content: str = Field(description="Message text")
    created_at: datetime = Field(description="Insertion timestamp")

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ConversationTurn":
        return cls(
            role=record["role"],
            content=record["content"],
            created_at=record["created_at"],
        )


class RetrievalMatch(BaseModel):
    """A document paired with its similarity to the query. Never persisted."""

    document: Document
    score: float = Field(description="Cosine similarity, higher is closer")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.document.id,
            "title": self.document.title,
            "category": self.document.category,
            "score": self.score,
        }
