"""Application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import RelaySettings
from .market import PriceCache, PriceFetcher, RelayService, create_stream_router

logger = logging.getLogger(__name__)


def create_app(
    settings: RelaySettings | None = None,
    cache: PriceCache | None = None,
    fetcher: PriceFetcher | None = None,
) -> FastAPI:
    """Build the FastAPI app around one RelayService.

    The service is created eagerly so routes can close over it; the lifespan
    only tears it down.
    """
    settings = settings or RelaySettings.from_env()
    service = RelayService(settings, cache=cache, fetcher=fetcher)

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        logger.info("Stock relay ready (max %d symbols per request)", settings.max_symbols)
        yield
        await service.shutdown()

    app = FastAPI(
        title="Stock Price Relay",
        description="Server-Sent Events relay for stock prices",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.relay = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.include_router(create_stream_router(service))
    return app


def main() -> None:
    settings = RelaySettings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting stock relay on port %d", settings.port)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
