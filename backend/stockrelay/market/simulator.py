"""GBM-based offline price source."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable

import numpy as np

from .interface import PriceFetcher
from .models import FetchResult, PriceUpdate
from .seed_prices import DEFAULT_PARAMS, SEED_PRICES, SYMBOL_PARAMS, UNKNOWN_SEED_RANGE
from .symbols import SymbolSet

logger = logging.getLogger(__name__)

# Anything else is reported as a per-symbol error, like the real provider does
VALID_SYMBOL = re.compile(r"^[A-Z0-9][A-Z0-9.\-]{0,9}$")


class GBMSimulator:
    """Geometric Brownian Motion price generator.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    dt is the wall-clock time since a symbol was last stepped, expressed as a
    fraction of a trading year, so prices drift at a realistic pace no matter
    how often they are requested.
    """

    # 250 trading days * 4.5 hours/day * 3600 seconds/hour
    TRADING_SECONDS_PER_YEAR = 250 * 4.5 * 3600

    def __init__(
        self,
        event_probability: float = 0.001,
        seed: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._event_prob = event_probability
        self._rng = np.random.default_rng(seed)
        self._clock = clock
        self._prices: dict[str, float] = {}
        self._last_step: dict[str, float] = {}

    def step(self, symbols: list[str]) -> dict[str, PriceUpdate]:
        """Advance the given symbols to now. Returns {symbol: PriceUpdate}."""
        if not symbols:
            return {}

        now = self._clock()
        for symbol in symbols:
            self._ensure(symbol, now)

        previous = np.array([self._prices[s] for s in symbols])
        elapsed = np.array([max(now - self._last_step[s], 0.0) for s in symbols])
        sigma = np.array([self._params(s)["sigma"] for s in symbols])
        mu = np.array([self._params(s)["mu"] for s in symbols])

        dt = elapsed / self.TRADING_SECONDS_PER_YEAR
        z = self._rng.standard_normal(len(symbols))
        current = previous * np.exp((mu - 0.5 * sigma**2) * dt + sigma * np.sqrt(dt) * z)

        # Occasional 2-5% shock so the stream has something to show
        shocks = self._rng.random(len(symbols)) < self._event_prob
        if shocks.any():
            magnitude = self._rng.uniform(0.02, 0.05, len(symbols))
            sign = self._rng.choice([-1.0, 1.0], len(symbols))
            current = np.where(shocks, current * (1 + magnitude * sign), current)

        result: dict[str, PriceUpdate] = {}
        for i, symbol in enumerate(symbols):
            price = round(float(current[i]), 2)
            result[symbol] = PriceUpdate(
                symbol=symbol,
                price=price,
                previous_price=round(float(previous[i]), 2),
                timestamp=now,
            )
            self._prices[symbol] = float(current[i])
            self._last_step[symbol] = now
        return result

    def get_price(self, symbol: str) -> float | None:
        """Current price for a symbol, or None if never stepped."""
        return self._prices.get(symbol)

    def _ensure(self, symbol: str, now: float) -> None:
        if symbol in self._prices:
            return
        low, high = UNKNOWN_SEED_RANGE
        self._prices[symbol] = SEED_PRICES.get(symbol, float(self._rng.uniform(low, high)))
        self._last_step[symbol] = now

    @staticmethod
    def _params(symbol: str) -> dict[str, float]:
        return SYMBOL_PARAMS.get(symbol, DEFAULT_PARAMS)


class SimulatedPriceFetcher(PriceFetcher):
    """PriceFetcher backed by the GBM simulator. Needs no network access.

    Symbols that do not look like tickers come back as per-symbol errors, so
    partial-success handling can be exercised offline.
    """

    def __init__(self, event_probability: float = 0.001, seed: int | None = None) -> None:
        self._sim = GBMSimulator(event_probability=event_probability, seed=seed)

    async def fetch(self, symbols: SymbolSet) -> FetchResult:
        valid = [s for s in symbols if VALID_SYMBOL.match(s)]
        errors = {s: f"Unknown symbol: {s}" for s in symbols if s not in valid}
        try:
            updates = self._sim.step(valid)
        except Exception as e:
            logger.exception("Simulator step failed")
            return FetchResult.failure(symbols, f"Simulator error: {e}")

        prices = {symbol: update.to_dict() for symbol, update in updates.items()}
        return FetchResult.from_parts(symbols, prices, errors)
