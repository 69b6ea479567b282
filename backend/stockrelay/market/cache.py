"""Shared time-windowed cache of fetch results keyed by symbol set."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from threading import Lock

from .models import FetchResult
from .symbols import SymbolSet

logger = logging.getLogger(__name__)

FetchFn = Callable[[SymbolSet], Awaitable[FetchResult]]


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: str
    result: FetchResult
    stored_at: float  # clock() reading, not wall time


class PriceCache:
    """In-memory cache of the latest FetchResult for each SymbolSet key.

    Entries expire ``ttl`` seconds after they were stored; expiry is checked
    lazily on read. When a new key would push the cache past ``max_size``
    the oldest-inserted entry is evicted (FIFO, reads do not refresh it).

    Failed results are cached too, so a failing upstream is asked at most
    once per TTL window per key.

    Writers: the fetch-completion path of get_or_fetch().
    Readers: streaming sessions, the one-shot prices endpoint, health checks.
    """

    def __init__(
        self,
        ttl: float = 8.0,
        max_size: int = 50,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._ttl = ttl
        self._max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = Lock()  # Never held across an await

    async def get_or_fetch(self, symbols: SymbolSet, fetch_fn: FetchFn) -> FetchResult:
        """Return the cached result for ``symbols`` or fetch, store and return a new one.

        Concurrent misses for the same key are not coalesced; each will call
        ``fetch_fn`` and the last one to finish wins the slot.
        """
        cached = self.get(symbols)
        if cached is not None:
            logger.debug("Cache hit: %s", symbols.key)
            return cached

        logger.debug("Cache miss: %s", symbols.key)
        result = await fetch_fn(symbols)
        self.put(symbols, result)
        return result

    def get(self, symbols: SymbolSet) -> FetchResult | None:
        """Live cached result for ``symbols``, or None. Drops the entry if it has expired."""
        key = symbols.key
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at >= self._ttl:
                del self._entries[key]
                return None
            return entry.result

    def put(self, symbols: SymbolSet, result: FetchResult) -> None:
        """Store ``result`` as the newest entry for ``symbols``, evicting FIFO if full."""
        key = symbols.key
        entry = CacheEntry(key=key, result=result, stored_at=self._clock())
        with self._lock:
            # A refreshed key counts as a fresh insertion
            self._entries.pop(key, None)
            while len(self._entries) >= self._max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Cache full (%d): evicted %s", self._max_size, evicted)
            self._entries[key] = entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[str]:
        """Cached keys, oldest insertion first. Includes entries not yet lazily expired."""
        with self._lock:
            return list(self._entries)

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, symbols: SymbolSet) -> bool:
        return self.get(symbols) is not None
