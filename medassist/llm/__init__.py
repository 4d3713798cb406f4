"""
Clients for the AI gateway: embeddings, streaming completions, and the
incremental decoder for the completion stream.
"""

from .base_provider import BaseHTTPProvider, LLMMessage
from .completion_streamer import CompletionStream, CompletionStreamer
from .embedding_client import EmbeddingClient
from .exceptions import (
    ConfigurationError,
    EmbeddingError,
    MalformedFrameError,
    QuotaExhaustedError,
    RAGPipelineError,
    RateLimitError,
    RetrievalError,
    UpstreamError,
    classify_upstream_status,
)
from .stream_decoder import StreamDecoder, StreamDelta

__all__ = [
    # Messages
    "LLMMessage",
    "BaseHTTPProvider",
    # Clients
    "EmbeddingClient",
    "CompletionStreamer",
    "CompletionStream",
    # Decoding
    "StreamDecoder",
    "StreamDelta",
    # Errors
    "RAGPipelineError",
    "ConfigurationError",
    "EmbeddingError",
    "RetrievalError",
    "UpstreamError",
    "RateLimitError",
    "QuotaExhaustedError",
    "MalformedFrameError",
    "classify_upstream_status",
]
