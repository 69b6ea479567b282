"""Tests for PriceUpdate and FetchResult."""

import pytest

from stockrelay.market.models import NO_DATA_MESSAGE, FetchResult, FetchStats, PriceUpdate
from stockrelay.market.symbols import SymbolSet


class TestPriceUpdate:
    """Unit tests for the PriceUpdate model."""

    def test_change_calculation(self):
        """Test price change calculation."""
        update = PriceUpdate(symbol="FPT", price=128.50, previous_price=128.00, timestamp=1234567890.0)
        assert update.change == 0.50

    def test_change_percent_zero_previous(self):
        """Test percentage change with zero previous price."""
        update = PriceUpdate(symbol="FPT", price=100.00, previous_price=0.00, timestamp=1234567890.0)
        assert update.change_percent == 0.0

    def test_direction(self):
        """Test direction for up, down and flat moves."""
        assert PriceUpdate("FPT", 129.0, 128.0, 0.0).direction == "up"
        assert PriceUpdate("FPT", 127.0, 128.0, 0.0).direction == "down"
        assert PriceUpdate("FPT", 128.0, 128.0, 0.0).direction == "flat"

    def test_to_dict(self):
        """Test serialization to a price record."""
        update = PriceUpdate(symbol="ACB", price=25.00, previous_price=24.00, timestamp=1234567890.0)
        result = update.to_dict()

        assert result["symbol"] == "ACB"
        assert result["price"] == 25.00
        assert result["previous_price"] == 24.00
        assert result["timestamp"] == 1234567890.0
        assert result["change"] == 1.00
        assert result["change_percent"] == 4.1667
        assert result["direction"] == "up"

    def test_immutability(self):
        """Test that PriceUpdate is immutable."""
        update = PriceUpdate(symbol="ACB", price=25.00, previous_price=24.00, timestamp=1234567890.0)

        with pytest.raises(AttributeError):
            update.price = 30.00


class TestFetchResult:
    """Unit tests for the FetchResult envelope."""

    def test_full_success(self):
        symbols = SymbolSet.parse("ACB,FPT")
        result = FetchResult.from_parts(symbols, {"ACB": {"price": 1}, "FPT": {"price": 2}})

        assert result.success is True
        assert result.error is None
        assert result.per_symbol_errors == {}
        assert result.stats == FetchStats(requested=2, succeeded=2, failed=0)

    def test_partial_success(self):
        """Test that one unpriceable symbol does not fail the others."""
        symbols = SymbolSet.parse("A,B")
        result = FetchResult.from_parts(symbols, {"A": {"price": 1}}, {"B": "not found"})

        assert result.success is True
        assert result.prices == {"A": {"price": 1}}
        assert result.per_symbol_errors == {"B": "not found"}
        assert result.stats == FetchStats(requested=2, succeeded=1, failed=1)

    def test_missing_symbol_reported_as_error(self):
        """A requested symbol with neither price nor error is still accounted for."""
        symbols = SymbolSet.parse("A,B")
        result = FetchResult.from_parts(symbols, {"A": {"price": 1}})

        assert result.per_symbol_errors == {"B": NO_DATA_MESSAGE}
        assert result.stats.succeeded + result.stats.failed == result.stats.requested

    def test_unrequested_prices_dropped(self):
        symbols = SymbolSet.parse("A")
        result = FetchResult.from_parts(symbols, {"A": {"price": 1}, "Z": {"price": 9}})
        assert set(result.prices) == {"A"}

    def test_nothing_priced_is_failure(self):
        """Failure invariant: empty prices and a non-null error."""
        symbols = SymbolSet.parse("A,B")
        result = FetchResult.from_parts(symbols, {}, {"A": "x", "B": "y"})

        assert result.success is False
        assert result.prices == {}
        assert result.error is not None
        assert result.per_symbol_errors == {"A": "x", "B": "y"}
        assert result.stats == FetchStats(requested=2, succeeded=0, failed=2)

    def test_single_symbol_failure_uses_its_message(self):
        result = FetchResult.from_parts(SymbolSet.parse("A"), {}, {"A": "delisted"})
        assert result.error == "delisted"

    def test_failure_constructor(self):
        result = FetchResult.failure(SymbolSet.parse("A,B,C"), "timed out")

        assert result.success is False
        assert result.prices == {}
        assert result.error == "timed out"
        assert result.stats == FetchStats(requested=3, succeeded=0, failed=3)

    def test_to_dict(self):
        """Test the JSON wire form."""
        symbols = SymbolSet.parse("A,B")
        result = FetchResult.from_parts(symbols, {"A": {"price": 1}}, {"B": "nope"})
        data = result.to_dict()

        assert data["success"] is True
        assert data["data"] == {"A": {"price": 1}}
        assert data["errors"] == {"B": "nope"}
        assert data["stats"] == {"requested": 2, "succeeded": 1, "failed": 1}
        assert data["error"] is None
        assert isinstance(data["timestamp"], float)
