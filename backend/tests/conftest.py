"""Pytest configuration and fixtures."""

import pytest

from stockrelay.config import RelaySettings


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """RelaySettings reads the process environment; keep the host's variables out."""
    for name in RelaySettings.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)


@pytest.fixture
def settings():
    """Fast settings for tests: short intervals, no retry delay, offline source."""
    return RelaySettings(
        price_source="simulator",
        update_interval=0.05,
        heartbeat_interval=10.0,
        request_timeout=1.0,
        cache_ttl=8.0,
        max_retries=2,
        retry_delay=0.0,
    )
