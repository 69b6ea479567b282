"""Composition root wiring symbols, cache, fetcher and sessions together."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from typing import TYPE_CHECKING

from .cache import PriceCache
from .factory import create_price_fetcher
from .interface import PriceFetcher
from .models import FetchResult
from .session import FrameTransport, SessionManager, StreamSession
from .symbols import SymbolSet, validate_symbols

if TYPE_CHECKING:
    from ..config import RelaySettings

logger = logging.getLogger(__name__)


class RelayService:
    """Owns the shared PriceCache, the PriceFetcher and the SessionManager.

    Pass ``cache`` or ``fetcher`` to inject test doubles; otherwise they are
    built from ``settings``.
    """

    def __init__(
        self,
        settings: RelaySettings,
        cache: PriceCache | None = None,
        fetcher: PriceFetcher | None = None,
    ) -> None:
        self.settings = settings
        self.cache = cache or PriceCache(ttl=settings.cache_ttl, max_size=settings.cache_max_size)
        self.fetcher = fetcher or create_price_fetcher(settings)
        self.sessions = SessionManager(
            cache=self.cache,
            fetcher=self.fetcher,
            update_interval=settings.update_interval,
            heartbeat_interval=settings.heartbeat_interval,
        )
        self._started_at = time.monotonic()

    def parse_symbols(self, raw: str | Iterable[str] | None) -> SymbolSet:
        """Canonicalize and validate a requested symbol list. Raises SymbolValidationError."""
        return validate_symbols(raw, self.settings.max_symbols)

    async def get_prices(self, symbols: SymbolSet) -> FetchResult:
        """One-shot read through the cache. No session is created."""
        return await self.cache.get_or_fetch(symbols, self.fetcher.fetch)

    async def open_stream(self, symbols: SymbolSet, transport: FrameTransport) -> StreamSession:
        return await self.sessions.open(symbols, transport)

    @property
    def uptime(self) -> float:
        return time.monotonic() - self._started_at

    def health(self) -> dict:
        return {
            "status": "ok",
            "uptime": round(self.uptime, 3),
            "cache": {"size": len(self.cache), "maxSize": self.cache.max_size},
            "sessions": {"active": self.sessions.active_count},
            "config": self.settings.public_dict(),
        }

    def info(self) -> dict:
        example = "ACB,FPT,VCB"
        return {
            "message": "SSE relay for stock prices",
            "status": "running",
            "endpoints": {
                "stream": f"/stream?symbols={example}",
                "prices": f"/prices?symbols={example}",
                "health": "/health",
            },
            "limits": {
                "maxSymbols": self.settings.max_symbols,
                "updateInterval": self.settings.update_interval,
                "cacheTtl": self.settings.cache_ttl,
            },
        }

    async def shutdown(self) -> None:
        """Close all sessions, then the fetcher."""
        await self.sessions.shutdown()
        await self.fetcher.close()
        logger.info("Relay service stopped")
