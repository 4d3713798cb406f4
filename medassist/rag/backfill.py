"""
Embedding backfill for documents ingested without an embedding.
"""

import logging

from ..llm.embedding_client import EmbeddingClient
from ..llm.exceptions import RAGPipelineError, RetrievalError
from ..storage.database.utils import DatabaseError
from ..storage.document_store import DocumentStore
from ..utils.logging import log_event, track
from .types import BackfillFailure, BackfillReport


class EmbeddingBackfill:
    """
    Computes and stores embeddings for every document that lacks one.

    A failure on one document is logged and recorded; the pass moves on
    to the next. Re-running is safe: only documents still missing an
    embedding are listed.
    """

    def __init__(self, embedding_client: EmbeddingClient, document_store: DocumentStore):
        self.embedding_client = embedding_client
        self.document_store = document_store

    @track(
        operation="embedding_backfill",
        include_args=False,
        track_performance=True,
    )
    async def run(self) -> BackfillReport:
        """
        Run one backfill pass.

        Returns:
            Report counting every listed document as succeeded or failed

        Raises:
            RetrievalError: The document listing itself failed
        """
        try:
            documents = await self.document_store.list_missing_embeddings()
        except DatabaseError as e:
            raise RetrievalError(
                f"Failed to list documents for backfill: {e}", original_error=e
            ) from e

        report = BackfillReport(total=len(documents))

        for document in documents:
            try:
                embedding = await self.embedding_client.embed(
                    document.embedding_text()
                )
                await self.document_store.update_embedding(document.id, embedding)
            except (RAGPipelineError, DatabaseError, ValueError) as e:
                log_event(
                    "backfill_document_failed",
                    {
                        "document_id": document.id,
                        "title": document.title,
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                    level=logging.ERROR,
                )
                report.failures.append(
                    BackfillFailure(
                        document_id=document.id,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                )
                continue

            report.succeeded += 1
            log_event(
                "backfill_document_embedded",
                {"document_id": document.id, "title": document.title},
                level=logging.DEBUG,
            )

        log_event(
            "backfill_completed",
            {
                "total": report.total,
                "succeeded": report.succeeded,
                "failed": report.failed,
            },
        )
        return report
