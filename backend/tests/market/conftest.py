"""Fixtures for relay tests.

Provides an in-memory PriceFetcher that counts calls and a FrameTransport
that records frames, so sessions and the cache can be tested without a
network or an HTTP server.
"""

import asyncio

import pytest

from stockrelay.market.exceptions import TransportClosedError
from stockrelay.market.interface import PriceFetcher
from stockrelay.market.models import FetchResult
from stockrelay.market.session import FrameTransport


class CountingFetcher(PriceFetcher):
    """Prices every symbol at 10.0 unless told to fail, raise or stall for ``delay`` seconds."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.fail_symbols: set[str] = set()
        self.raise_error: Exception | None = None
        self.delay = 0.0
        self.closed = False

    async def fetch(self, symbols):
        self.calls.append(symbols.key)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raise_error is not None:
            raise self.raise_error
        prices = {s: {"price": 10.0} for s in symbols if s not in self.fail_symbols}
        errors = {s: "not found" for s in symbols if s in self.fail_symbols}
        return FetchResult.from_parts(symbols, prices, errors)

    async def close(self) -> None:
        self.closed = True


class RecordingTransport(FrameTransport):
    """Collects frames in memory. Can be told to fail writes after N frames."""

    def __init__(self) -> None:
        self.frames: list[str] = []
        self.fail_after: int | None = None
        self._closed = False

    async def send(self, frame: str) -> None:
        if self._closed:
            raise TransportClosedError("closed")
        if self.fail_after is not None and len(self.frames) >= self.fail_after:
            raise ConnectionResetError("peer reset")
        self.frames.append(frame)

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed


@pytest.fixture
def fetcher():
    return CountingFetcher()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def make_transport():
    """Factory for tests that need several independent transports."""
    return RecordingTransport
