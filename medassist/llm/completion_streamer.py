"""
Streaming chat-completion client.

``CompletionStreamer.stream`` opens the upstream request and classifies
its status before any byte is exposed; the returned ``CompletionStream``
then hands out the raw body chunk by chunk so the HTTP layer can forward
it untouched.
"""

import asyncio
import logging
from typing import AsyncIterator, List, Optional

import aiohttp

from ..utils.logging import log_event, track
from .base_provider import BaseHTTPProvider, LLMMessage
from .exceptions import UpstreamError, classify_upstream_status


class CompletionStream:
    """
    An open upstream completion response.

    Request-scoped. Iterate with ``iter_chunks()`` and always ``close()``
    when done, including on cancellation.
    """

    def __init__(self, response: aiohttp.ClientResponse, model: str):
        self._response = response
        self.model = model
        self.bytes_received = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """
        Yield raw body chunks as they arrive.

        Raises:
            UpstreamError: If the transport fails mid-stream
        """
        try:
            async for chunk in self._response.content.iter_any():
                if self._closed:
                    return
                if not chunk:
                    continue
                self.bytes_received += len(chunk)
                yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log_event(
                "completion_stream_interrupted",
                {
                    "error": str(e),
                    "model": self.model,
                    "bytes_received": self.bytes_received,
                },
                level=logging.ERROR,
            )
            raise UpstreamError(
                f"Completion stream interrupted: {e}",
                service="completion",
                original_error=e,
            ) from e

    def close(self) -> None:
        """Stop reading and release the connection. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self._response.close()


class CompletionStreamer(BaseHTTPProvider):
    """Submits prompts to ``{gateway}/chat/completions`` with ``stream: true``."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout_seconds: int = 120,
        read_timeout_seconds: int = 60,
    ):
        super().__init__(base_url, api_key, timeout_seconds)
        self.model = model
        self.read_timeout_seconds = read_timeout_seconds

    async def initialize(self) -> None:
        # No total timeout: a long answer may stream for minutes
        self._initialize_session(
            timeout=self._create_timeout(
                total=None, sock_read=self.read_timeout_seconds
            ),
            max_connections=100,
            max_connections_per_host=30,
        )
        log_event(
            "completion_streamer_initialized",
            {"model": self.model, "read_timeout": self.read_timeout_seconds},
        )

    async def cleanup(self) -> None:
        await self._cleanup_session()

    @track(
        operation="completion_stream_open",
        include_args=False,
        track_performance=True,
        frequency="low_frequency",
    )
    async def stream(
        self, messages: List[LLMMessage], model: Optional[str] = None
    ) -> CompletionStream:
        """
        Open a streaming completion.

        Args:
            messages: Prompt messages, system message first
            model: Override the configured model

        Returns:
            An open ``CompletionStream`` with a 2xx status

        Raises:
            RateLimitError: Upstream answered 429
            QuotaExhaustedError: Upstream answered 402 or reported exhausted quota
            UpstreamError: Any other non-2xx status or transport failure
        """
        session = self._ensure_session()
        model = model or self.model
        url = f"{self.base_url}/chat/completions"
        payload = {
            "model": model,
            "messages": [message.to_dict() for message in messages],
            "stream": True,
        }

        try:
            response = await session.post(url, json=payload)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log_event(
                "completion_connection_error",
                {"error": str(e), "url": url, "model": model},
                level=logging.ERROR,
            )
            raise UpstreamError(
                f"Failed to reach completion service: {e}",
                service="completion",
                original_error=e,
            ) from e

        if not 200 <= response.status < 300:
            try:
                error_text = await response.text()
            except (aiohttp.ClientError, asyncio.TimeoutError):
                error_text = ""
            finally:
                response.release()

            log_event(
                "completion_request_failed",
                {"status": response.status, "error": error_text[:500], "model": model},
                level=logging.ERROR,
            )
            raise classify_upstream_status(
                response.status,
                error_text,
                service="completion",
                retry_after=response.headers.get("Retry-After"),
            )

        return CompletionStream(response, model)
