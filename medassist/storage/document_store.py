"""
Document store backed by PostgreSQL + pgvector.

Holds the medical reference corpus in ``medical_documents``. Similarity is
cosine similarity, computed in SQL as ``1 - (embedding <=> query)``.
"""

import logging
from typing import List

import asyncpg

from ..models import Document, RetrievalMatch
from ..utils.logging import log_event, track
from .database.utils import (
    DatabaseError,
    EmbeddingDimensionError,
    parse_uuid,
    to_vector_literal,
)

MATCH_DOCUMENTS_SQL = """
    SELECT id, title, category, content,
           1 - (embedding <=> $1::vector) AS score
    FROM medical_documents
    WHERE embedding IS NOT NULL
      AND 1 - (embedding <=> $1::vector) >= $2
    ORDER BY score DESC, id ASC
    LIMIT $3
"""

MISSING_EMBEDDINGS_SQL = """
    SELECT id, title, category, content
    FROM medical_documents
    WHERE embedding IS NULL
    ORDER BY id ASC
"""

UPDATE_EMBEDDING_SQL = """
    UPDATE medical_documents
    SET embedding = $2::vector
    WHERE id = $1
"""


def _row_to_document(row: asyncpg.Record) -> Document:
    return Document(
        id=str(row["id"]),
        title=row["title"],
        category=row["category"] or "",
        content=row["content"],
    )


class DocumentStore:
    """
    Read and embedding-write access to ``medical_documents``.

    Raises ``DatabaseError`` on any storage failure; callers decide how
    that maps onto the pipeline's error taxonomy.
    """

    def __init__(self, db_pool: asyncpg.Pool, embedding_dimensions: int):
        self.db_pool = db_pool
        self.embedding_dimensions = embedding_dimensions

    @track(
        operation="match_documents",
        include_args=["threshold", "count"],
        track_performance=True,
        frequency="high_frequency",
    )
    async def match_documents(
        self, query_embedding: List[float], threshold: float, count: int
    ) -> List[RetrievalMatch]:
        """
        Rank documents by similarity to ``query_embedding``.

        Args:
            query_embedding: Query vector of the configured dimensionality
            threshold: Minimum similarity score
            count: Maximum rows to return

        Returns:
            Matches ordered by score descending, then id ascending

        Raises:
            EmbeddingDimensionError: Query vector has the wrong size
            DatabaseError: Query failed
        """
        if len(query_embedding) != self.embedding_dimensions:
            raise EmbeddingDimensionError(
                self.embedding_dimensions, len(query_embedding)
            )

        try:
            async with self.db_pool.acquire() as conn:
                rows = await conn.fetch(
                    MATCH_DOCUMENTS_SQL,
                    to_vector_literal(query_embedding),
                    threshold,
                    count,
                )
        except (asyncpg.PostgresError, OSError) as e:
            log_event(
                "match_documents_error",
                {"error": str(e), "error_type": type(e).__name__},
                level=logging.ERROR,
            )
            raise DatabaseError(f"Similarity search failed: {e}") from e

        return [
            RetrievalMatch(document=_row_to_document(row), score=float(row["score"]))
            for row in rows
        ]

    @track(
        operation="list_missing_embeddings",
        include_args=False,
        track_performance=True,
    )
    async def list_missing_embeddings(self) -> List[Document]:
        """
        List every document whose embedding has not been computed yet.

        Raises:
            DatabaseError: Query failed
        """
        try:
            async with self.db_pool.acquire() as conn:
                rows = await conn.fetch(MISSING_EMBEDDINGS_SQL)
        except (asyncpg.PostgresError, OSError) as e:
            raise DatabaseError(f"Failed to list documents: {e}") from e

        return [_row_to_document(row) for row in rows]

    async def update_embedding(self, document_id: str, embedding: List[float]) -> None:
        """
        Store an embedding for one document. Writing the same vector twice
        is harmless.

        Raises:
            EmbeddingDimensionError: Vector has the wrong size (nothing written)
            DatabaseError: Write failed or the document does not exist
        """
        if len(embedding) != self.embedding_dimensions:
            raise EmbeddingDimensionError(self.embedding_dimensions, len(embedding))

        try:
            literal = to_vector_literal(embedding)
            async with self.db_pool.acquire() as conn:
                status = await conn.execute(
                    UPDATE_EMBEDDING_SQL, parse_uuid(document_id), literal
                )
        except ValueError as e:
            raise DatabaseError(f"Cannot store embedding for {document_id}: {e}") from e
        except (asyncpg.PostgresError, OSError) as e:
            raise DatabaseError(
                f"Failed to store embedding for {document_id}: {e}"
            ) from e

        if status == "UPDATE 0":
            raise DatabaseError(f"Document '{document_id}' not found")

        log_event(
            "document_embedding_updated",
            {"document_id": document_id, "dimensions": len(embedding)},
            level=logging.DEBUG,
        )
