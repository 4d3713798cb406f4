"""
Permissive CORS for the browser chat client.

Every response carries the same allow headers, and any ``OPTIONS``
request is answered with an empty 200 before it reaches routing.
Starlette's CORSMiddleware only decorates requests that send an
``Origin`` header and answers preflight with a body, so it is not used.
"""

from typing import Iterable, List, Tuple

from starlette.types import ASGIApp, Message, Receive, Scope, Send

CORS_HEADERS = {
    "access-control-allow-origin": "*",
    "access-control-allow-headers": "authorization, x-client-info, apikey, content-type",
    "access-control-allow-methods": "GET, POST, OPTIONS",
    "access-control-expose-headers": "x-conversation-id",
}


def _encoded(headers: Iterable[Tuple[str, str]]) -> List[Tuple[bytes, bytes]]:
    return [(name.encode("latin-1"), value.encode("latin-1")) for name, value in headers]


class PermissiveCORSMiddleware:
    """Pure ASGI middleware so streaming bodies pass through untouched."""

    def __init__(self, app: ASGIApp, headers: dict = CORS_HEADERS):
        self.app = app
        self.headers = _encoded(headers.items())
        self._header_names = {name for name, _ in self.headers}

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            await send(
                {
                    "type": "http.response.start",
                    "status": 200,
                    "headers": self.headers + [(b"content-length", b"0")],
                }
            )
            await send({"type": "http.response.body", "body": b""})
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                existing = [
                    (name, value)
                    for name, value in message.get("headers", [])
                    if name.lower() not in self._header_names
                ]
                message["headers"] = existing + self.headers
            await send(message)

        await self.app(scope, receive, send_with_cors)
