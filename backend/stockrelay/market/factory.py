"""Factory for creating price fetchers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .interface import PriceFetcher

if TYPE_CHECKING:
    from ..config import RelaySettings

logger = logging.getLogger(__name__)


def create_price_fetcher(settings: RelaySettings) -> PriceFetcher:
    """Create the price source selected by settings.price_source.

    - "upstream"  → UpstreamClient against settings.stock_api_url
    - "simulator" → SimulatedPriceFetcher (GBM simulation, no network)
    """
    if settings.price_source == "simulator":
        from .simulator import SimulatedPriceFetcher

        logger.info("Price source: GBM simulator")
        return SimulatedPriceFetcher()

    from .upstream_client import UpstreamClient

    logger.info(
        "Price source: upstream %s (%s mode, timeout %.1fs, %d retries)",
        settings.stock_api_url,
        settings.upstream_mode,
        settings.request_timeout,
        settings.max_retries,
    )
    return UpstreamClient(
        base_url=settings.stock_api_url,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
        retry_delay=settings.retry_delay,
        mode=settings.upstream_mode,
    )
