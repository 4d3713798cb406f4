"""
Shared building blocks for clients of the AI gateway.

The embedding client and the completion streamer both talk to an
OpenAI-compatible HTTP gateway with bearer-token auth, so they share one
session-management mixin and one message format.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

VALID_ROLES = ("system", "user", "assistant")


@dataclass
class LLMMessage:
    """
    One chat message in a completion request.

    Attributes:
        role: Message role ('system', 'user', 'assistant')
        content: Message text
    """

    role: str
    content: str

    def __post_init__(self):
        if self.role not in VALID_ROLES:
            raise ValueError(
                f"Invalid role '{self.role}'. Must be one of: {', '.join(VALID_ROLES)}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


class BaseHTTPProvider:
    """
    Mixin for HTTP clients of the AI gateway.

    Owns one pooled ``aiohttp.ClientSession`` per client. Call
    ``initialize()`` before use and ``cleanup()`` on shutdown.
    """

    def __init__(self, base_url: str, api_key: str, timeout_seconds: int = 120):
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    def _create_connector(
        self,
        max_connections: int = 100,
        max_connections_per_host: int = 30,
        keepalive_timeout: int = 30,
    ) -> aiohttp.TCPConnector:
        return aiohttp.TCPConnector(
            limit=max_connections,
            limit_per_host=max_connections_per_host,
            ttl_dns_cache=300,
            keepalive_timeout=keepalive_timeout,
            enable_cleanup_closed=True,
        )

    def _create_timeout(
        self, total: Optional[int], connect: int = 10, sock_read: Optional[int] = 30
    ) -> aiohttp.ClientTimeout:
        """
        Create timeout configuration.

        Args:
            total: Total request timeout in seconds (None for streaming bodies)
            connect: Connection timeout in seconds
            sock_read: Maximum gap between two reads in seconds
        """
        return aiohttp.ClientTimeout(total=total, connect=connect, sock_read=sock_read)

    def _auth_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _initialize_session(
        self,
        timeout: aiohttp.ClientTimeout,
        max_connections: int = 100,
        max_connections_per_host: int = 30,
    ) -> None:
        if self._session is not None:
            return

        self._session = aiohttp.ClientSession(
            timeout=timeout,
            connector=self._create_connector(max_connections, max_connections_per_host),
            connector_owner=True,
            headers=self._auth_headers(),
        )

    async def _cleanup_session(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            # Let the connector finish closing transports
            await asyncio.sleep(0.25)

        self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        """
        Returns:
            Active ClientSession

        Raises:
            RuntimeError: If the session has not been initialized
        """
        if self._session is None or self._session.closed:
            raise RuntimeError("HTTP session not initialized. Call initialize() first.")
        return self._session

    @property
    def is_initialized(self) -> bool:
        return self._session is not None and not self._session.closed
