"""Error taxonomy for the price relay."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for all relay errors."""


class SymbolValidationError(RelayError, ValueError):
    """The client asked for an empty or oversized symbol list. Maps to HTTP 400."""


class UpstreamError(RelayError):
    """One upstream call failed: timeout, connection error, non-2xx status or bad payload.

    Retried by UpstreamClient, then downgraded to a failed FetchResult.
    """


class TransportClosedError(RelayError):
    """The subscriber's stream is gone. Fatal to that session only."""


class ConfigError(RelayError, ValueError):
    """An environment variable could not be parsed or is out of range."""
