# =============================================================================
# app/middleware.py - HTTP Middleware
# =============================================================================
# - BodyLimitMiddleware: rejects request bodies over the configured size
#   (Content-Length and chunked uploads) before any route runs
# - UnhandledErrorMiddleware: 500 JSON for exceptions no handler caught
# - RequestLogMiddleware: one log line per request, tagged with the route
#   group that owns the path
# =============================================================================

import logging
import time

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.exceptions import PayloadTooLargeError
from app.routing import RouteKind, RouteTable

logger = logging.getLogger(__name__)


class BodyTooLargeError(HTTPException):
    """
    Raised from the receive channel once a streamed body crosses the limit.

    It is an HTTPException so FastAPI's body parsing re-raises it unchanged
    instead of reporting a generic 400.
    """

    def __init__(self, max_bytes: int):
        super().__init__(status_code=413)
        self.max_bytes = max_bytes


async def body_too_large_handler(request: Request, exc: BodyTooLargeError) -> JSONResponse:
    """Render a streamed-body overflow like any other PayloadTooLargeError."""
    logger.warning(f"Rejected {request.url.path}: streamed body exceeds {exc.max_bytes} bytes")
    return PayloadTooLargeError(exc.max_bytes).to_response()


class BodyLimitMiddleware:
    """
    Enforces a maximum request body size.

    A declared Content-Length over the limit is rejected without reading the
    body; otherwise the body is counted as it streams in.
    """

    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_bytes:
            logger.warning(
                f"Rejected {scope.get('path')}: Content-Length {content_length} "
                f"exceeds {self.max_bytes} bytes"
            )
            response = PayloadTooLargeError(self.max_bytes).to_response()
            await response(scope, receive, send)
            return

        received = 0

        async def receive_limited() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    raise BodyTooLargeError(self.max_bytes)
            return message

        await self.app(scope, receive_limited, send)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Logs method, path, owning route group, status and latency."""

    def __init__(self, app: ASGIApp, route_table: RouteTable):
        super().__init__(app)
        self.route_table = route_table

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        entry = self.route_table.resolve(request.url.path)
        group = entry.name if entry else "-"

        response = await call_next(request)

        latency_ms = (time.perf_counter() - start) * 1000
        level = logging.DEBUG if entry and entry.kind is RouteKind.HEALTH else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} [{group}] -> "
            f"{response.status_code} ({latency_ms:.1f}ms)"
        )
        return response


class UnhandledErrorMiddleware:
    """
    Turns exceptions that escape every route into a 500 JSON response.

    Installed inside the CORS middleware so browsers can read the error.
    If the response has already started, the exception is re-raised for the
    server to deal with.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_tracking(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_tracking)
        except Exception as e:
            logger.exception(f"Unexpected error: {e}")
            if response_started:
                raise
            response = JSONResponse(
                status_code=500,
                content={
                    "detail": "An unexpected error occurred",
                    "code": "INTERNAL_ERROR",
                },
            )
            await response(scope, receive, send)
