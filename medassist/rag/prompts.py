"""
Prompt construction for the chat pipeline.

The system message always comes first and the new user turn always comes
last; history sits between them, oldest first.
"""

import logging
from typing import List, Sequence

from ..config.settings import NO_CONTEXT_FALLBACK, SYSTEM_PREAMBLE
from ..llm.base_provider import LLMMessage
from ..models import ConversationTurn, RetrievalMatch
from ..utils.logging import log_event
from .types import Prompt

DOCUMENT_BLOCK_TEMPLATE = "Document: {title} (Category: {category})\n{content}"


class ContextAssembler:
    """
    Builds the completion prompt from retrieved documents and history.

    Args:
        history_limit: Maximum history turns kept (most recent win)
        preamble: Medical disclaimer that opens the system message
        fallback: Context text used when nothing was retrieved
    """

    def __init__(
        self,
        history_limit: int = 10,
        preamble: str = SYSTEM_PREAMBLE,
        fallback: str = NO_CONTEXT_FALLBACK,
    ):
        if history_limit < 0:
            raise ValueError("history_limit cannot be negative")
        self.history_limit = history_limit
        self.preamble = preamble
        self.fallback = fallback

    def format_document(self, match: RetrievalMatch) -> str:
        document = match.document
        return DOCUMENT_BLOCK_TEMPLATE.format(
            title=document.title,
            category=document.category,
            content=document.content,
        )

    def build_context(self, matches: Sequence[RetrievalMatch]) -> str:
        if not matches:
            return self.fallback
        return "\n\n".join(self.format_document(match) for match in matches)

    def build_system_prompt(self, matches: Sequence[RetrievalMatch]) -> str:
        return f"{self.preamble}\n\nContext:\n{self.build_context(matches)}"

    def select_history(
        self, history: Sequence[ConversationTurn]
    ) -> List[ConversationTurn]:
        """Most recent ``history_limit`` turns, in chronological order."""
        if self.history_limit == 0:
            return []
        ordered = sorted(history, key=lambda turn: turn.created_at)
        return ordered[-self.history_limit :]

    def assemble(
        self,
        matches: Sequence[RetrievalMatch],
        history: Sequence[ConversationTurn],
        user_message: str,
    ) -> Prompt:
        """
        Assemble the prompt for one request.

        Args:
            matches: Retrieved documents in ranking order
            history: Prior turns of the conversation, any order
            user_message: The new question

        Returns:
            Prompt whose first message is the system instruction and whose
            last message is the user turn
        """
        system_prompt = self.build_system_prompt(matches)
        turns = self.select_history(history)

        messages = [LLMMessage(role="system", content=system_prompt)]
        messages.extend(
            LLMMessage(role=turn.role.value, content=turn.content) for turn in turns
        )
        messages.append(LLMMessage(role="user", content=user_message))

        log_event(
            "prompt_assembled",
            {
                "document_blocks": len(matches),
                "history_turns": len(turns),
                "history_dropped": len(history) - len(turns),
                "system_chars": len(system_prompt),
            },
            level=logging.DEBUG,
        )

        return Prompt(messages=messages)
