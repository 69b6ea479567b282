"""Environment-driven configuration.

Every setting can be overridden by an environment variable of the same name
in upper case (PORT, STOCK_API_URL, UPDATE_INTERVAL, ...). Empty variables
are treated as unset. Durations are in seconds.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .market.exceptions import ConfigError

DEFAULT_STOCK_API_URL = "https://vn-stock-api-bsjj.onrender.com/api/stocks"


class RelaySettings(BaseSettings):
    """All tunables for the relay.

    Environment overrides:
        PORT: HTTP port (default 5001)
        STOCK_API_URL: upstream base URL; the relay calls <url>/price
        PRICE_SOURCE: upstream or simulator (default upstream)
        UPSTREAM_MODE: batch or per_symbol (default batch)
        UPDATE_INTERVAL: seconds between data frames per stream (default 10)
        HEARTBEAT_INTERVAL: seconds between keep-alive comments (default 30)
        MAX_SYMBOLS: symbols allowed per subscription (default 10)
        REQUEST_TIMEOUT: bound on one upstream call (default 25)
        CACHE_TTL: seconds a cached FetchResult stays fresh (default 8)
        CACHE_MAX_SIZE: cached symbol sets before FIFO eviction (default 50)
        MAX_RETRIES: extra attempts after a failed upstream call (default 2)
        RETRY_DELAY: seconds between attempts (default 2)
        CORS_ORIGINS: comma-separated allowed origins (default *)
        LOG_LEVEL: root log level (default INFO)
    """

    port: int = Field(default=5001, ge=1, le=65535)
    stock_api_url: str = DEFAULT_STOCK_API_URL
    price_source: Literal["upstream", "simulator"] = "upstream"
    upstream_mode: Literal["batch", "per_symbol"] = "batch"
    update_interval: float = Field(default=10.0, gt=0)
    heartbeat_interval: float = Field(default=30.0, gt=0)
    max_symbols: int = Field(default=10, ge=1)
    request_timeout: float = Field(default=25.0, gt=0)
    cache_ttl: float = Field(default=8.0, ge=0)
    cache_max_size: int = Field(default=50, ge=1)
    max_retries: int = Field(default=2, ge=0)
    retry_delay: float = Field(default=2.0, ge=0)
    cors_origins: Annotated[tuple[str, ...], NoDecode] = ("*",)
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        frozen=True,
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )

    @field_validator("price_source", "upstream_mode", mode="before")
    @classmethod
    def _lower(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, v):
        if isinstance(v, str):
            return tuple(o.strip() for o in v.split(",") if o.strip())
        return v

    @classmethod
    def from_env(cls) -> RelaySettings:
        """Read settings from the environment, falling back to defaults.

        Raises ConfigError on unparseable or out-of-range values.
        """
        try:
            return cls()
        except ValidationError as e:
            raise ConfigError(f"Invalid relay configuration: {e}") from e

    def public_dict(self) -> dict:
        """Limits safe to expose on diagnostic endpoints."""
        return {
            "updateInterval": self.update_interval,
            "heartbeatInterval": self.heartbeat_interval,
            "maxSymbols": self.max_symbols,
            "requestTimeout": self.request_timeout,
            "cacheTtl": self.cache_ttl,
            "cacheMaxSize": self.cache_max_size,
            "maxRetries": self.max_retries,
            "retryDelay": self.retry_delay,
            "priceSource": self.price_source,
            "upstreamMode": self.upstream_mode,
        }
