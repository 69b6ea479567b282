"""Per-client streaming sessions."""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, Callable
from enum import Enum

from .cache import PriceCache
from .exceptions import TransportClosedError
from .interface import PriceFetcher
from .models import FetchResult
from .symbols import SymbolSet

logger = logging.getLogger(__name__)

HEARTBEAT_FRAME = ": keep-alive\n\n"
INTERNAL_ERROR_MESSAGE = "Internal error while fetching prices"
DEFAULT_MAX_PENDING_FRAMES = 100


def encode_data_frame(result: FetchResult) -> str:
    """One SSE event carrying a JSON-serialized FetchResult."""
    return f"data: {json.dumps(result.to_dict())}\n\n"


class FrameTransport(ABC):
    """Write side of one subscriber's open stream."""

    @abstractmethod
    async def send(self, frame: str) -> None:
        """Write one frame. Raises TransportClosedError if the stream has ended."""

    @abstractmethod
    def close(self) -> None:
        """End the stream. Safe to call multiple times."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        """True once the stream has ended, from either side."""


class QueueTransport(FrameTransport):
    """Transport that hands frames to a streaming response body through a queue.

    The HTTP layer iterates frames(); the iteration ends once close() is called.
    At most ``max_pending`` frames wait in the queue. When the reader falls
    that far behind, send() blocks until it catches up.
    """

    def __init__(self, max_pending: int = DEFAULT_MAX_PENDING_FRAMES) -> None:
        if max_pending < 1:
            raise ValueError("max_pending must be at least 1")
        self._queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=max_pending)
        self._closed = False

    async def send(self, frame: str) -> None:
        if self._closed:
            raise TransportClosedError("Stream already closed")
        await self._queue.put(frame)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._queue.full():
            # Stalled reader: give up its oldest frame so the end marker fits
            self._queue.get_nowait()
        self._queue.put_nowait(None)  # Wake the reader so it can finish

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def frames(self) -> AsyncGenerator[str, None]:
        while True:
            frame = await self._queue.get()
            if frame is None:
                return
            yield frame


class SessionState(str, Enum):
    CONNECTING = "connecting"
    STREAMING = "streaming"
    CLOSED = "closed"


class StreamSession:
    """Live state of one subscriber's stream.

    Lifecycle: connecting -> streaming -> closed (terminal).

    start() pushes once right away, then arms two independent recurring
    tasks: a data task that pushes a fresh FetchResult every
    ``update_interval`` seconds and a heartbeat task that writes a comment
    frame every ``heartbeat_interval`` seconds. close() cancels both and
    ends the transport.
    """

    def __init__(
        self,
        session_id: int,
        symbols: SymbolSet,
        transport: FrameTransport,
        cache: PriceCache,
        fetcher: PriceFetcher,
        update_interval: float = 10.0,
        heartbeat_interval: float = 30.0,
        on_close: Callable[[StreamSession], None] | None = None,
    ) -> None:
        self.id = session_id
        self.symbols = symbols
        self.state = SessionState.CONNECTING
        self._transport = transport
        self._cache = cache
        self._fetcher = fetcher
        self._update_interval = update_interval
        self._heartbeat_interval = heartbeat_interval
        self._on_close = on_close
        self._data_task: asyncio.Task | None = None
        self._heartbeat_task: asyncio.Task | None = None

    @property
    def is_open(self) -> bool:
        return self.state is not SessionState.CLOSED

    async def start(self) -> None:
        """Push the first frame, then arm the data and heartbeat tasks."""
        if not await self.push():
            return
        self.state = SessionState.STREAMING
        self._data_task = asyncio.create_task(self._data_loop(), name=f"session-{self.id}-data")
        self._heartbeat_task = asyncio.create_task(
            self._heartbeat_loop(), name=f"session-{self.id}-heartbeat"
        )
        logger.info(
            "Session %d streaming %s (every %.1fs, heartbeat %.1fs)",
            self.id,
            self.symbols.key,
            self._update_interval,
            self._heartbeat_interval,
        )

    async def push(self) -> bool:
        """Fetch through the cache and write one data frame. Returns False once closed.

        A fetch that blows up is sent as a failure frame; it never ends the stream.
        """
        try:
            result = await self._cache.get_or_fetch(self.symbols, self._fetcher.fetch)
        except Exception:
            logger.exception("Session %d: fetch failed for %s", self.id, self.symbols.key)
            result = FetchResult.failure(self.symbols, INTERNAL_ERROR_MESSAGE)
        return await self._write(encode_data_frame(result))

    def close(self) -> None:
        """Enter the closed state: cancel both tasks and end the transport. Idempotent."""
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED

        current = asyncio.current_task()
        for task in (self._data_task, self._heartbeat_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
        self._transport.close()

        if self._on_close is not None:
            self._on_close(self)
        logger.info("Session %d closed (%s)", self.id, self.symbols.key)

    async def aclose(self) -> None:
        """close(), then wait for both tasks to finish unwinding."""
        self.close()
        current = asyncio.current_task()
        tasks = [t for t in (self._data_task, self._heartbeat_task) if t is not None and t is not current]
        await asyncio.gather(*tasks, return_exceptions=True)

    # --- Internal ---

    async def _write(self, frame: str) -> bool:
        if not self.is_open:
            return False
        try:
            await self._transport.send(frame)
        except TransportClosedError:
            logger.info("Session %d: client went away", self.id)
            self.close()
            return False
        except Exception as e:
            logger.warning("Session %d: write failed, closing: %s", self.id, e)
            self.close()
            return False
        return True

    async def _data_loop(self) -> None:
        """First push already happened in start()."""
        while True:
            await asyncio.sleep(self._update_interval)
            if self._transport.closed:
                logger.info("Session %d: stream ended, stopping updates", self.id)
                self.close()
                return
            if not await self.push():
                return

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self._heartbeat_interval)
            if not await self._write(HEARTBEAT_FRAME):
                return


class SessionManager:
    """Creates and tracks one StreamSession per connected subscriber.

    Sessions never see each other; the only state they share is the PriceCache.
    """

    def __init__(
        self,
        cache: PriceCache,
        fetcher: PriceFetcher,
        update_interval: float = 10.0,
        heartbeat_interval: float = 30.0,
    ) -> None:
        self._cache = cache
        self._fetcher = fetcher
        self._update_interval = update_interval
        self._heartbeat_interval = heartbeat_interval
        self._sessions: dict[int, StreamSession] = {}
        self._ids = itertools.count(1)

    async def open(self, symbols: SymbolSet, transport: FrameTransport) -> StreamSession:
        """Start streaming ``symbols`` to ``transport``. The first frame is written before returning."""
        session = StreamSession(
            session_id=next(self._ids),
            symbols=symbols,
            transport=transport,
            cache=self._cache,
            fetcher=self._fetcher,
            update_interval=self._update_interval,
            heartbeat_interval=self._heartbeat_interval,
            on_close=self._forget,
        )
        self._sessions[session.id] = session
        logger.info("Session %d opened for %s", session.id, symbols.key)
        try:
            await session.start()
        except BaseException:
            # Cancelled (client gone) or failed before streaming began
            session.close()
            raise
        return session

    async def shutdown(self) -> None:
        """Close every open session. Safe to call multiple times."""
        sessions = list(self._sessions.values())
        for session in sessions:
            await session.aclose()
        if sessions:
            logger.info("Closed %d streaming sessions", len(sessions))

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    def sessions(self) -> list[StreamSession]:
        return list(self._sessions.values())

    def _forget(self, session: StreamSession) -> None:
        self._sessions.pop(session.id, None)
