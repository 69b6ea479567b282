"""Abstract interface for price sources."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import FetchResult
from .symbols import SymbolSet


class PriceFetcher(ABC):
    """Contract for anything that can price a SymbolSet.

    Implementations are called by PriceCache on a miss and never write to the
    cache themselves. Every failure mode is reported inside the returned
    FetchResult; fetch() must not raise.

    Lifecycle:
        fetcher = create_price_fetcher(settings)
        result = await fetcher.fetch(SymbolSet.parse("ACB,FPT"))
        # ... app shutting down ...
        await fetcher.close()
    """

    @abstractmethod
    async def fetch(self, symbols: SymbolSet) -> FetchResult:
        """Price every symbol in the set. Never raises."""

    async def close(self) -> None:
        """Release network resources. Safe to call multiple times."""
