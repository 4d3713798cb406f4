"""
Type definitions for the RAG chat pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from ..llm.base_provider import LLMMessage


class PipelineState(Enum):
    """Lifecycle of one chat request."""

    IDLE = "idle"
    EMBEDDING_IN_FLIGHT = "embedding_in_flight"
    RETRIEVING = "retrieving"
    ASSEMBLING = "assembling"
    STREAMING_IN_FLIGHT = "streaming_in_flight"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.COMPLETED, PipelineState.FAILED)


# Forward-only ordering; FAILED is reachable from any non-terminal state.
_STATE_ORDER = [
    PipelineState.IDLE,
    PipelineState.EMBEDDING_IN_FLIGHT,
    PipelineState.RETRIEVING,
    PipelineState.ASSEMBLING,
    PipelineState.STREAMING_IN_FLIGHT,
    PipelineState.STREAMING,
    PipelineState.COMPLETED,
]


def is_valid_transition(current: PipelineState, target: PipelineState) -> bool:
    if current.is_terminal:
        return False
    if target is PipelineState.FAILED:
        return True
    return _STATE_ORDER.index(target) == _STATE_ORDER.index(current) + 1


@dataclass(frozen=True)
class ContextConfig:
    """
    Retrieval and history settings for the chat pipeline.

    Attributes:
        similarity_threshold: Minimum similarity score for a document to count
        similarity_top_k: Maximum documents injected into the prompt
        history_limit: Most recent conversation turns sent with the request
    """

    similarity_threshold: float = 0.5
    similarity_top_k: int = 3
    history_limit: int = 10

    def __post_init__(self):
        if self.similarity_top_k < 1:
            raise ValueError("similarity_top_k must be at least 1")
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ValueError("similarity_threshold must be between 0 and 1")
        if self.history_limit < 0:
            raise ValueError("history_limit cannot be negative")


@dataclass
class Prompt:
    """Ordered completion messages: system first, new user turn last."""

    messages: List[LLMMessage]

    @property
    def system_message(self) -> LLMMessage:
        return self.messages[0]

    @property
    def user_message(self) -> LLMMessage:
        return self.messages[-1]

    def to_payload(self) -> List[Dict[str, Any]]:
        return [message.to_dict() for message in self.messages]


@dataclass
class BackfillFailure:
    document_id: str
    error_type: str
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_id": self.document_id,
            "error_type": self.error_type,
            "error": self.error,
        }


@dataclass
class BackfillReport:
    """
    Outcome of one embedding backfill pass.

    Every listed document ends up counted in ``succeeded`` or in ``failures``.
    """

    total: int = 0
    succeeded: int = 0
    failures: List[BackfillFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "failures": [failure.to_dict() for failure in self.failures],
        }
