"""
Retrieval-augmented generation for the medical chat assistant.
"""

from .backfill import EmbeddingBackfill
from .prompts import ContextAssembler
from .retriever import SimilarityRetriever, rank_matches
from .service import PipelineRun, RAGPipeline
from .types import (
    BackfillFailure,
    BackfillReport,
    ContextConfig,
    PipelineState,
    Prompt,
)

__all__ = [
    "RAGPipeline",
    "PipelineRun",
    "PipelineState",
    "ContextAssembler",
    "ContextConfig",
    "Prompt",
    "SimilarityRetriever",
    "rank_matches",
    "EmbeddingBackfill",
    "BackfillReport",
    "BackfillFailure",
]
