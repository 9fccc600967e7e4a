"""HTTP middleware for request correlation and request-size limits.

- ``request_id_middleware`` accepts an incoming X-Request-ID header or
  generates a UUID, stores it in contextvars for log correlation and echoes
  it (plus the request duration) on the response.
- ``BodySizeLimitMiddleware`` rejects JSON bodies larger than the configured
  limit, whether declared by Content-Length or counted while streaming.

Usage:
    app.add_middleware(BodySizeLimitMiddleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from cvbot.core.config import settings
from cvbot.core.logging import clear_request_id, get_request_id, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with request_id and
            duration headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    # Read back by the catch-all handler, which runs after the context is cleared
    request.state.request_id = request_id
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


class BodySizeLimitMiddleware:
    """Reject oversized JSON request bodies with 413.

    The declared Content-Length is checked first. Bodies sent without one
    (chunked transfer) are counted as they arrive and held until complete,
    then replayed to the application. Multipart uploads are bounded
    separately while they are read, so only ``application/json`` requests
    are checked here.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        if not headers.get("content-type", "").lower().startswith("application/json"):
            await self.app(scope, receive, send)
            return

        max_bytes = settings.app.max_json_body_mb * 1024 * 1024
        content_length = headers.get("content-length", "")
        if content_length.isdigit() and int(content_length) > max_bytes:
            await self._reject(scope, receive, send, int(content_length), max_bytes)
            return

        messages: list[Message] = []
        received = 0
        while True:
            message = await receive()
            messages.append(message)
            if message["type"] != "http.request":
                break
            received += len(message.get("body", b""))
            if received > max_bytes:
                await self._reject(scope, receive, send, received, max_bytes)
                return
            if not message.get("more_body", False):
                break

        async def replay_receive() -> Message:
            if messages:
                return messages.pop(0)
            return await receive()

        await self.app(scope, replay_receive, send)

    @staticmethod
    async def _reject(scope: Scope, receive: Receive, send: Send, size: int, max_bytes: int) -> None:
        logger.warning(
            "request.body_too_large",
            extra={
                "body_bytes": size,
                "max_bytes": max_bytes,
                "request_path": scope.get("path", ""),
            },
        )
        response = JSONResponse(
            status_code=413,
            content={
                "success": False,
                "error": "Request body too large",
                "code": "payload_too_large",
                "request_id": get_request_id(),
            },
        )
        await response(scope, receive, send)
