"""HTTP client for the upstream pricing API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from .exceptions import UpstreamError
from .interface import PriceFetcher
from .models import FetchResult
from .symbols import SymbolSet

logger = logging.getLogger(__name__)

MODE_BATCH = "batch"
MODE_PER_SYMBOL = "per_symbol"
UPSTREAM_MODES = (MODE_BATCH, MODE_PER_SYMBOL)

# Keys that identify the enveloped response shape
_ENVELOPE_KEYS = {"success", "data", "errors", "total_requested", "successful", "failed"}


class UpstreamClient(PriceFetcher):
    """PriceFetcher backed by the upstream pricing REST API.

    Calls GET <base_url>/price?symbols=<csv>. In batch mode a whole SymbolSet
    goes out as one request; in per-symbol mode each symbol gets its own
    sequential request and the answers are merged.

    Every request is bounded by ``timeout`` seconds. A timeout, transport
    error, non-2xx status or malformed payload is retried up to
    ``max_retries`` more times, ``retry_delay`` seconds apart. Once retries
    are exhausted the failure is returned as a FetchResult, never raised.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 25.0,
        max_retries: int = 2,
        retry_delay: float = 2.0,
        mode: str = MODE_BATCH,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if mode not in UPSTREAM_MODES:
            raise ValueError(f"Unknown upstream mode {mode!r}; expected one of {UPSTREAM_MODES}")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._mode = mode
        self._owns_client = client is None
        # The per-phase timeout matches the total bound so httpx never fires first
        self._client = client or httpx.AsyncClient(
            headers={"Accept": "application/json"},
            timeout=httpx.Timeout(timeout),
        )

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def max_attempts(self) -> int:
        return 1 + self._max_retries

    async def fetch(self, symbols: SymbolSet) -> FetchResult:
        if not symbols:
            return FetchResult.failure((), "No symbols requested")
        try:
            if self._mode == MODE_PER_SYMBOL:
                return await self._fetch_per_symbol(symbols)
            return await self._fetch_batch(symbols)
        except Exception as e:
            logger.exception("Unexpected error fetching %s", symbols.key)
            return FetchResult.failure(symbols, f"Unexpected error: {e}")

    async def close(self) -> None:
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()
            logger.info("Upstream client closed")

    # --- Internal ---

    async def _fetch_batch(self, symbols: SymbolSet) -> FetchResult:
        try:
            prices, errors = await self._call_with_retry(list(symbols))
        except UpstreamError as e:
            return FetchResult.failure(symbols, str(e))

        result = FetchResult.from_parts(symbols, prices, errors)
        logger.debug(
            "Upstream batch %s: %d/%d priced",
            symbols.key,
            result.stats.succeeded,
            result.stats.requested,
        )
        return result

    async def _fetch_per_symbol(self, symbols: SymbolSet) -> FetchResult:
        prices: dict[str, Any] = {}
        errors: dict[str, str] = {}
        last_error: str | None = None

        for symbol in symbols:
            try:
                symbol_prices, symbol_errors = await self._call_with_retry([symbol])
            except UpstreamError as e:
                # One symbol failing does not abort the rest
                last_error = str(e)
                errors[symbol] = last_error
                continue
            prices.update(symbol_prices)
            errors.update(symbol_errors)

        if last_error is not None and not any(s in prices for s in symbols):
            return FetchResult.failure(symbols, last_error, errors)
        return FetchResult.from_parts(symbols, prices, errors)

    async def _call_with_retry(self, batch: list[str]) -> tuple[dict[str, Any], dict[str, str]]:
        """Run one upstream call with bounded retries. Raises the last UpstreamError."""
        attempt = 1
        while True:
            try:
                return await self._request(batch)
            except UpstreamError as e:
                if attempt >= self.max_attempts:
                    logger.error(
                        "Upstream gave up on %s after %d attempts: %s",
                        ",".join(batch),
                        attempt,
                        e,
                    )
                    raise
                logger.warning(
                    "Upstream attempt %d/%d for %s failed: %s (retrying in %.1fs)",
                    attempt,
                    self.max_attempts,
                    ",".join(batch),
                    e,
                    self._retry_delay,
                )
            attempt += 1
            await asyncio.sleep(self._retry_delay)

    async def _request(self, batch: list[str]) -> tuple[dict[str, Any], dict[str, str]]:
        """Single upstream call, adapted to (prices, errors)."""
        url = f"{self._base_url}/price"
        logger.debug("Calling upstream %s for %s", url, ",".join(batch))

        try:
            response = await asyncio.wait_for(
                self._client.get(url, params={"symbols": ",".join(batch)}),
                timeout=self._timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamError(f"Upstream request timed out after {self._timeout:g}s") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Cannot reach upstream: {e}") from e

        if not response.is_success:
            raise UpstreamError(
                f"Upstream returned HTTP {response.status_code} {response.reason_phrase}".rstrip()
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError("Upstream returned malformed JSON") from e

        return adapt_payload(payload, batch)


def adapt_payload(payload: Any, batch: list[str]) -> tuple[dict[str, Any], dict[str, str]]:
    """Adapt any known upstream response shape to (prices, errors).

    Shapes:
      - envelope: {"success", "data": {SYM: record}, "errors": {...} | [...], ...}
      - bare map: {SYM: record, ...}

    Raises UpstreamError for anything else, so the call is retried.
    """
    if not isinstance(payload, dict):
        raise UpstreamError("Upstream returned an unexpected payload")

    if not _ENVELOPE_KEYS.intersection(payload):
        return {str(k).strip().upper(): v for k, v in payload.items()}, {}

    data = payload.get("data") or {}
    if not isinstance(data, dict):
        raise UpstreamError("Upstream returned a malformed 'data' field")
    prices = {str(k).strip().upper(): v for k, v in data.items()}
    errors = _normalize_errors(payload.get("errors"))

    if payload.get("success") is False and not prices and not errors:
        message = str(payload.get("error") or payload.get("message") or "Upstream reported failure")
        errors = {symbol: message for symbol in batch}

    return prices, errors


def _normalize_errors(raw: Any) -> dict[str, str]:
    """Errors arrive as {SYM: message} or [{"symbol": SYM, "error": message}, ...]."""
    if not raw:
        return {}
    if isinstance(raw, dict):
        return {str(k).strip().upper(): str(v) for k, v in raw.items()}
    if isinstance(raw, list):
        errors: dict[str, str] = {}
        for item in raw:
            if not isinstance(item, dict):
                continue
            symbol = item.get("symbol") or item.get("ticker")
            if not symbol:
                continue
            message = item.get("error") or item.get("message") or "Unknown error"
            errors[str(symbol).strip().upper()] = str(message)
        return errors
    raise UpstreamError("Upstream returned a malformed 'errors' field")
