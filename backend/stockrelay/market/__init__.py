"""Price relay subsystem.

Public API:
    SymbolSet            - Canonical, cache-keyable set of ticker symbols
    FetchResult          - Uniform envelope for one price fetch
    PriceCache           - Shared TTL cache keyed by symbol set
    PriceFetcher         - Abstract interface for price sources
    UpstreamClient       - HTTP client for the upstream pricing API
    SessionManager       - Per-client streaming session lifecycle
    RelayService         - Composition root used by the HTTP layer
    create_price_fetcher - Factory that selects upstream or simulator
    create_stream_router - FastAPI router factory for the relay endpoints
"""

from .cache import PriceCache
from .exceptions import SymbolValidationError, TransportClosedError, UpstreamError
from .factory import create_price_fetcher
from .interface import PriceFetcher
from .models import FetchResult, FetchStats, PriceUpdate
from .service import RelayService
from .session import SessionManager, StreamSession
from .stream import create_stream_router
from .symbols import SymbolSet
from .upstream_client import UpstreamClient

__all__ = [
    "SymbolSet",
    "FetchResult",
    "FetchStats",
    "PriceUpdate",
    "PriceCache",
    "PriceFetcher",
    "UpstreamClient",
    "SessionManager",
    "StreamSession",
    "RelayService",
    "SymbolValidationError",
    "TransportClosedError",
    "UpstreamError",
    "create_price_fetcher",
    "create_stream_router",
]
