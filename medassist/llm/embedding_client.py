"""
Embedding client for the AI gateway's OpenAI-compatible ``/embeddings`` API.
"""

import asyncio
import logging
import math
from typing import Any, List

import aiohttp

from ..utils.logging import log_event, track
from .base_provider import BaseHTTPProvider
from .exceptions import EmbeddingError, classify_upstream_status


class EmbeddingClient(BaseHTTPProvider):
    """
    Turns text into a fixed-length float vector.

    Pure request/response: nothing is persisted here. Rate-limit and quota
    responses raise the same errors the completion streamer does so the
    chat route can map them to 429/402; every other failure, including a
    malformed or wrongly sized vector, raises ``EmbeddingError``.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        dimensions: int,
        timeout_seconds: int = 30,
    ):
        super().__init__(base_url, api_key, timeout_seconds)
        self.model = model
        self.dimensions = dimensions

    async def initialize(self) -> None:
        self._initialize_session(
            timeout=self._create_timeout(total=self.timeout_seconds),
            max_connections=50,
            max_connections_per_host=20,
        )
        log_event(
            "embedding_client_initialized",
            {"model": self.model, "dimensions": self.dimensions},
        )

    async def cleanup(self) -> None:
        await self._cleanup_session()

    @track(
        operation="embedding_request",
        include_args=False,
        track_performance=True,
        frequency="high_frequency",
    )
    async def embed(self, text: str) -> List[float]:
        """
        Embed one piece of text.

        Args:
            text: Text to embed (must not be blank)

        Returns:
            Vector with exactly ``self.dimensions`` components

        Raises:
            ValueError: If text is blank
            RateLimitError: Gateway answered 429
            QuotaExhaustedError: Gateway answered 402 or reported exhausted quota
            EmbeddingError: Any other failure
        """
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")

        session = self._ensure_session()
        url = f"{self.base_url}/embeddings"
        payload = {"input": text, "model": self.model}

        try:
            async with session.post(url, json=payload) as response:
                if not 200 <= response.status < 300:
                    error_text = await response.text()
                    log_event(
                        "embedding_request_failed",
                        {
                            "status": response.status,
                            "error": error_text[:500],
                            "model": self.model,
                        },
                        level=logging.ERROR,
                    )
                    if response.status in (402, 429):
                        raise classify_upstream_status(
                            response.status,
                            error_text,
                            service="embedding",
                            retry_after=response.headers.get("Retry-After"),
                        )
                    raise EmbeddingError(
                        f"Embedding request failed (HTTP {response.status})",
                        status_code=response.status,
                        response_body=error_text,
                    )

                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise EmbeddingError(
                        "Embedding response is not valid JSON", original_error=e
                    ) from e

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log_event(
                "embedding_connection_error",
                {"error": str(e), "url": url},
                level=logging.ERROR,
            )
            raise EmbeddingError(
                f"Failed to reach embedding service: {e}", original_error=e
            ) from e

        return self._extract_vector(data)

    def _extract_vector(self, data: Any) -> List[float]:
        try:
            raw = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise EmbeddingError(
                "Embedding response is missing data[0].embedding", original_error=e
            ) from e

        if not isinstance(raw, list) or not raw:
            raise EmbeddingError("Embedding response contains no vector")

        vector: List[float] = []
        for value in raw:
            # bool is an int subclass; reject it explicitly
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise EmbeddingError(
                    f"Embedding contains a non-numeric component: {value!r}"
                )
            if not math.isfinite(value):
                raise EmbeddingError("Embedding contains a non-finite component")
            vector.append(float(value))

        if len(vector) != self.dimensions:
            raise EmbeddingError(
                f"Embedding has {len(vector)} dimensions, expected {self.dimensions}"
            )

        return vector
