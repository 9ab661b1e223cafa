"""FastAPI application exposing the status relay over WebSocket.

    GET  /health            -> {"status": "ok", "cached_targets": N}
    WS   /v1/ss14status     <-> command protocol (see relay.session)
    GET  /v1/ss14status     -> 400 (not a WebSocket upgrade)

Each accepted WebSocket runs its own receive loop and its own
``CommandSession``. Frames are handled strictly one at a time. The
response cache and upstream fetcher are shared by every connection.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Response, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel

from statusrelay import __version__
from statusrelay.config.settings import Settings
from statusrelay.relay.cache import ResponseCache
from statusrelay.relay.session import CommandSession, ProtocolViolation
from statusrelay.upstream.base import StatusSource
from statusrelay.upstream.http_fetcher import HttpStatusFetcher

logger = logging.getLogger(__name__)

# RFC 6455 limits the close frame reason to 123 bytes of UTF-8.
MAX_CLOSE_REASON_BYTES = 123


class HealthResponse(BaseModel):
    status: str = "ok"
    cached_targets: int = 0


def create_app(
    settings: Settings | None = None,
    source: StatusSource | None = None,
    cache: ResponseCache | None = None,
) -> FastAPI:
    """Create the relay application.

    Args:
        settings: Relay configuration. Defaults to ``Settings()``.
        source: Optional pre-configured status source (for testing).
        cache: Optional pre-configured response cache (for testing).
    """
    if settings is None:
        settings = Settings()
    relay_config = settings.relay

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await app.state.source.open()
        logger.info("Status relay started (path=%s)", relay_config.path)
        yield
        await app.state.source.close()
        logger.info("Status relay stopped")

    app = FastAPI(
        title="statusrelay",
        description="WebSocket relay for HTTP status documents",
        version=__version__,
        lifespan=lifespan,
    )

    if source is None:
        source = HttpStatusFetcher(
            max_response_size=settings.upstream.max_response_size,
            timeout=settings.upstream.timeout,
        )
    if cache is None:
        cache = ResponseCache(freshness_window=relay_config.freshness_window)
    app.state.source = source
    app.state.cache = cache

    @app.get("/health")
    async def health_check() -> HealthResponse:
        return HealthResponse(cached_targets=len(app.state.cache))

    @app.get(relay_config.path)
    async def reject_plain_request() -> Response:
        return Response(status_code=status.HTTP_400_BAD_REQUEST)

    @app.websocket(relay_config.path)
    async def relay_endpoint(websocket: WebSocket) -> None:
        await websocket.accept()
        peer = _describe_peer(websocket)
        logger.info("Connection accepted from %s", peer)

        session = CommandSession(
            cache=app.state.cache,
            source=app.state.source,
            max_message_size=relay_config.max_message_size,
            strict_commands=relay_config.strict_commands,
        )
        try:
            await _serve(websocket, session)
        except ProtocolViolation as e:
            logger.warning("Closing connection from %s: %s", peer, e.reason)
            await websocket.close(code=e.code, reason=truncate_close_reason(e.reason))
        except WebSocketDisconnect:
            logger.info("Connection from %s dropped", peer)

    return app


async def _serve(websocket: WebSocket, session: CommandSession) -> None:
    """Receive loop for one connection. Returns when the client closes."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            logger.info("Client closed connection (code=%s)", message.get("code"))
            return

        text = message.get("text")
        if text is None:
            raise ProtocolViolation(
                "Cannot read binary or non-standard forms.",
                code=status.WS_1003_UNSUPPORTED_DATA,
            )

        reply = await session.handle_frame(text)
        if reply is not None:
            await websocket.send_text(reply)


def truncate_close_reason(reason: str) -> str:
    """Trim ``reason`` so it fits in a WebSocket close frame."""
    encoded = reason.encode("utf-8")
    if len(encoded) <= MAX_CLOSE_REASON_BYTES:
        return reason
    return encoded[:MAX_CLOSE_REASON_BYTES].decode("utf-8", errors="ignore")


def _describe_peer(websocket: WebSocket) -> str:
    if websocket.client is None:
        return "unknown"
    return f"{websocket.client.host}:{websocket.client.port}"
