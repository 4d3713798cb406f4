"""
Similarity retrieval over the document corpus.
"""

import logging
from typing import List, Sequence

from ..llm.exceptions import RetrievalError
from ..models import RetrievalMatch
from ..storage.database.utils import DatabaseError, EmbeddingDimensionError
from ..storage.document_store import DocumentStore
from ..utils.logging import log_event


def rank_matches(
    matches: Sequence[RetrievalMatch], threshold: float, top_k: int
) -> List[RetrievalMatch]:
    """
    Keep matches scoring at least ``threshold``, best first, at most ``top_k``.

    Ties are broken by document id so results are deterministic.
    """
    kept = [match for match in matches if match.score >= threshold]
    kept.sort(key=lambda match: (-match.score, match.document.id))
    return kept[:top_k]


class SimilarityRetriever:
    """
    Returns the top-K documents similar to a query vector.

    Read-only. The ranking contract (threshold, order, length) is enforced
    here regardless of what the store returns.
    """

    def __init__(self, document_store: DocumentStore):
        self.document_store = document_store

    async def retrieve(
        self, query_vector: List[float], threshold: float, top_k: int
    ) -> List[RetrievalMatch]:
        """
        Args:
            query_vector: Embedding of the user's question
            threshold: Minimum similarity score
            top_k: Maximum matches to return

        Returns:
            Matches ordered by score descending; empty when nothing clears the threshold

        Raises:
            ValueError: Invalid arguments
            RetrievalError: The document store failed
        """
        if top_k < 1:
            raise ValueError("top_k must be at least 1")
        if not query_vector:
            raise ValueError("query_vector cannot be empty")

        try:
            raw = await self.document_store.match_documents(
                query_vector, threshold=threshold, count=top_k
            )
        except (DatabaseError, EmbeddingDimensionError) as e:
            raise RetrievalError(
                f"Similarity search failed: {e}", original_error=e
            ) from e

        matches = rank_matches(raw, threshold, top_k)

        log_event(
            "retrieval_completed",
            {
                "match_count": len(matches),
                "threshold": threshold,
                "top_k": top_k,
                "top_score": matches[0].score if matches else None,
            },
        )
        if not matches:
            log_event(
                "retrieval_no_matches", {"threshold": threshold}, level=logging.DEBUG
            )

        return matches
