"""Data models for relayed price data."""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

NO_DATA_MESSAGE = "No data returned for symbol"


@dataclass(frozen=True, slots=True)
class PriceUpdate:
    """Immutable snapshot of a single symbol's price at a point in time."""

    symbol: str
    price: float
    previous_price: float
    timestamp: float = field(default_factory=time.time)  # Unix seconds

    @property
    def change(self) -> float:
        """Absolute price change from the previous snapshot."""
        return round(self.price - self.previous_price, 4)

    @property
    def change_percent(self) -> float:
        """Percentage change from the previous snapshot."""
        if self.previous_price == 0:
            return 0.0
        return round((self.price - self.previous_price) / self.previous_price * 100, 4)

    @property
    def direction(self) -> str:
        """'up', 'down', or 'flat'."""
        if self.price > self.previous_price:
            return "up"
        elif self.price < self.previous_price:
            return "down"
        return "flat"

    def to_dict(self) -> dict:
        """Price record as carried in FetchResult.prices."""
        return {
            "symbol": self.symbol,
            "price": self.price,
            "previous_price": self.previous_price,
            "timestamp": self.timestamp,
            "change": self.change,
            "change_percent": self.change_percent,
            "direction": self.direction,
        }


@dataclass(frozen=True, slots=True)
class FetchStats:
    requested: int
    succeeded: int
    failed: int

    def to_dict(self) -> dict:
        return {"requested": self.requested, "succeeded": self.succeeded, "failed": self.failed}


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Uniform outcome of one price fetch for a symbol set.

    Invariants:
      - success is False  =>  prices is empty and error is set
      - stats.succeeded + stats.failed == stats.requested
    """

    success: bool
    prices: dict[str, Any]
    per_symbol_errors: dict[str, str]
    stats: FetchStats
    timestamp: float = field(default_factory=time.time)
    error: str | None = None

    @classmethod
    def failure(
        cls,
        symbols: Iterable[str],
        error: str,
        per_symbol_errors: Mapping[str, str] | None = None,
    ) -> FetchResult:
        """Whole-fetch failure: nothing priced, every requested symbol counted as failed."""
        requested = len(list(symbols))
        return cls(
            success=False,
            prices={},
            per_symbol_errors=dict(per_symbol_errors or {}),
            stats=FetchStats(requested=requested, succeeded=0, failed=requested),
            error=error,
        )

    @classmethod
    def from_parts(
        cls,
        symbols: Iterable[str],
        prices: Mapping[str, Any],
        errors: Mapping[str, str] | None = None,
    ) -> FetchResult:
        """Merge per-symbol prices and errors into a result for the requested symbols.

        Prices for symbols that were not requested are dropped. Requested
        symbols with neither a price nor an explicit error are reported as
        per-symbol errors. If nothing was priced, the result is a failure.
        """
        requested = list(symbols)
        errors = errors or {}
        kept = {s: prices[s] for s in requested if s in prices}
        per_symbol_errors = {
            s: str(errors.get(s) or NO_DATA_MESSAGE) for s in requested if s not in kept
        }

        if not kept:
            if len(requested) == 1 and per_symbol_errors:
                message = next(iter(per_symbol_errors.values()))
            else:
                message = "No prices returned for any requested symbol"
            return cls.failure(requested, message, per_symbol_errors)

        return cls(
            success=True,
            prices=kept,
            per_symbol_errors=per_symbol_errors,
            stats=FetchStats(
                requested=len(requested),
                succeeded=len(kept),
                failed=len(per_symbol_errors),
            ),
        )

    def to_dict(self) -> dict:
        """Serialize for JSON / SSE transmission."""
        return {
            "success": self.success,
            "data": self.prices,
            "errors": self.per_symbol_errors,
            "timestamp": self.timestamp,
            "stats": self.stats.to_dict(),
            "error": self.error,
        }
