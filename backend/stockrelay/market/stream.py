"""HTTP endpoints: SSE price stream, one-shot prices, health and info."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from .exceptions import SymbolValidationError
from .service import RelayService
from .session import QueueTransport, StreamSession
from .symbols import SymbolSet

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
}

# How often a live stream checks whether its client is still connected
DISCONNECT_POLL_INTERVAL = 1.0


def create_stream_router(service: RelayService) -> APIRouter:
    """Create the relay router bound to one RelayService.

    This factory pattern lets us inject the service (and its cache) without globals.
    """
    router = APIRouter(tags=["streaming"])

    @router.get("/stream")
    @router.get("/stream-prices", include_in_schema=False)
    async def stream_prices(request: Request, symbols: str | None = None):
        """SSE endpoint for live price updates.

        The client connects with EventSource and receives one event right
        away, then one every update interval:

            data: {"success": true, "data": {"ACB": {...}}, "errors": {}, ...}

        Comment frames (": keep-alive") are sent on their own timer.
        """
        try:
            symbol_set = service.parse_symbols(symbols)
        except SymbolValidationError as e:
            return _client_error(e)

        return StreamingResponse(
            _generate_events(service, symbol_set, request),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    @router.get("/prices")
    async def get_prices(symbols: str | None = None):
        """One FetchResult for the requested symbols, served through the cache."""
        try:
            symbol_set = service.parse_symbols(symbols)
        except SymbolValidationError as e:
            return _client_error(e)

        result = await service.get_prices(symbol_set)
        return result.to_dict()

    @router.get("/health")
    async def health():
        return service.health()

    @router.get("/")
    async def info():
        return service.info()

    return router


def _client_error(exc: SymbolValidationError) -> JSONResponse:
    logger.info("Rejected subscription: %s", exc)
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _generate_events(
    service: RelayService,
    symbols: SymbolSet,
    request: Request,
    disconnect_poll: float = DISCONNECT_POLL_INTERVAL,
) -> AsyncGenerator[str, None]:
    """Async generator that relays one session's frames to the response body.

    Ends when the session closes. A watcher task polls
    request.is_disconnected() and closes the session once the client is
    gone; if the server stops iterating first, the finally block does it.
    """
    transport = QueueTransport()
    client_ip = request.client.host if request.client else "unknown"
    session: StreamSession | None = None
    watcher: asyncio.Task | None = None

    try:
        session = await service.open_stream(symbols, transport)
        logger.info("SSE client connected: %s (%s)", client_ip, symbols.key)
        watcher = asyncio.create_task(_watch_disconnect(request, session, client_ip, disconnect_poll))

        async for frame in transport.frames():
            yield frame
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for: %s", client_ip)
        raise
    finally:
        if watcher is not None:
            watcher.cancel()
        if session is not None:
            session.close()
        transport.close()
        logger.info("SSE client disconnected: %s", client_ip)


async def _watch_disconnect(
    request: Request,
    session: StreamSession,
    client_ip: str,
    interval: float,
) -> None:
    """Close ``session`` as soon as the client behind ``request`` disconnects."""
    while session.is_open:
        if await request.is_disconnected():
            logger.info("SSE client went away: %s", client_ip)
            session.close()
            return
        await asyncio.sleep(interval)
