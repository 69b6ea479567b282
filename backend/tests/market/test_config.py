"""Tests for RelaySettings."""

import pytest
from pydantic import ValidationError

from stockrelay.config import DEFAULT_STOCK_API_URL, RelaySettings
from stockrelay.market.exceptions import ConfigError


def _setenv(monkeypatch, env: dict[str, str]) -> None:
    for name, value in env.items():
        monkeypatch.setenv(name, value)


class TestRelaySettings:
    """Environment parsing."""

    def test_defaults(self):
        """Test the documented defaults with an empty environment."""
        settings = RelaySettings.from_env()

        assert settings.port == 5001
        assert settings.stock_api_url == DEFAULT_STOCK_API_URL
        assert settings.price_source == "upstream"
        assert settings.upstream_mode == "batch"
        assert settings.update_interval == 10.0
        assert settings.heartbeat_interval == 30.0
        assert settings.max_symbols == 10
        assert settings.request_timeout == 25.0
        assert settings.cache_ttl == 8.0
        assert settings.cache_max_size == 50
        assert settings.max_retries == 2
        assert settings.retry_delay == 2.0
        assert settings.cors_origins == ("*",)
        assert settings.log_level == "INFO"

    def test_overrides(self, monkeypatch):
        _setenv(
            monkeypatch,
            {
                "PORT": "8080",
                "STOCK_API_URL": "http://localhost:8000/api/stocks",
                "PRICE_SOURCE": "Simulator",
                "UPSTREAM_MODE": "per_symbol",
                "UPDATE_INTERVAL": "2.5",
                "MAX_SYMBOLS": "20",
                "MAX_RETRIES": "0",
                "CORS_ORIGINS": "http://a.test, http://b.test",
                "LOG_LEVEL": "debug",
            },
        )

        settings = RelaySettings.from_env()

        assert settings.port == 8080
        assert settings.stock_api_url == "http://localhost:8000/api/stocks"
        assert settings.price_source == "simulator"
        assert settings.upstream_mode == "per_symbol"
        assert settings.update_interval == 2.5
        assert settings.max_symbols == 20
        assert settings.max_retries == 0
        assert settings.cors_origins == ("http://a.test", "http://b.test")
        assert settings.log_level == "DEBUG"

    def test_empty_values_fall_back_to_defaults(self, monkeypatch):
        """Test that empty variables are treated as unset."""
        _setenv(monkeypatch, {"PORT": "", "CACHE_TTL": ""})

        settings = RelaySettings.from_env()

        assert settings.port == 5001
        assert settings.cache_ttl == 8.0

    @pytest.mark.parametrize(
        "env",
        [
            {"PORT": "http"},
            {"PORT": "70000"},
            {"MAX_SYMBOLS": "0"},
            {"UPDATE_INTERVAL": "0"},
            {"REQUEST_TIMEOUT": "-1"},
            {"RETRY_DELAY": "soon"},
            {"MAX_RETRIES": "-1"},
            {"CACHE_MAX_SIZE": "0"},
            {"PRICE_SOURCE": "carrier-pigeon"},
            {"UPSTREAM_MODE": "parallel"},
        ],
    )
    def test_invalid_values_rejected(self, monkeypatch, env):
        _setenv(monkeypatch, env)
        with pytest.raises(ConfigError) as excinfo:
            RelaySettings.from_env()
        assert isinstance(excinfo.value.__cause__, ValidationError)

    def test_direct_construction_validates(self):
        with pytest.raises(ValidationError):
            RelaySettings(heartbeat_interval=0)

    def test_settings_are_frozen(self):
        settings = RelaySettings()
        with pytest.raises(ValidationError):
            settings.port = 9000

    def test_public_dict_exposes_limits(self):
        data = RelaySettings().public_dict()
        assert data["maxSymbols"] == 10
        assert data["cacheTtl"] == 8.0
        assert "stock_api_url" not in data
