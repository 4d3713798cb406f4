"""
Pydantic models for MedAssist.
"""

from .core import ConversationTurn, Document, RetrievalMatch, TurnRole

__all__ = [
    "Document",
    "ConversationTurn",
    "RetrievalMatch",
    "TurnRole",
]
