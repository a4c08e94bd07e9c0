"""Tests for TickCache."""

from unittest.mock import patch

from tickrelay.market.cache import TickCache


class TestTickCache:
    """Unit tests for the TickCache."""

    def test_put_and_get(self):
        """Test storing and reading a tick."""
        cache = TickCache()
        tick = {"symbol": "EURUSD.a", "bid": 1.1}
        entry = cache.put("EURUSD.a", tick)
        assert entry.price is tick
        assert cache.get("EURUSD.a") == entry

    def test_get_unknown_is_none(self):
        """Test that an unseen symbol is absent."""
        assert TickCache().get("EURUSD.a") is None

    def test_lookup_is_case_insensitive(self):
        """Broker spelling and upper-cased request share one entry."""
        cache = TickCache()
        cache.put("EURUSD.a", {"symbol": "EURUSD.a"})
        assert cache.get("EURUSD.A") is not None
        assert "eurusd.A" in cache
        assert len(cache) == 1

    def test_last_write_wins(self):
        """Only the last tick for a symbol is kept."""
        cache = TickCache()
        for bid in (1.1, 1.2, 1.3):
            cache.put("EURUSD.a", {"symbol": "EURUSD.a", "bid": bid})
        entry = cache.get("EURUSD.a")
        assert entry.price["bid"] == 1.3
        assert len(cache) == 1

    def test_timestamps_non_decreasing(self):
        """Test that timestamps never go backwards for a symbol."""
        cache = TickCache()
        timestamps = []
        for i in range(50):
            timestamps.append(cache.put("EURUSD.a", {"symbol": "EURUSD.a", "bid": i}).timestamp)
        assert timestamps == sorted(timestamps)

    def test_clock_step_back_keeps_previous_timestamp(self):
        """A wall clock that steps back does not produce an older entry."""
        cache = TickCache()
        with patch("tickrelay.market.cache.time.time", return_value=1000.0):
            cache.put("EURUSD.a", {"symbol": "EURUSD.a", "bid": 1.1})
        with patch("tickrelay.market.cache.time.time", return_value=990.0):
            entry = cache.put("EURUSD.a", {"symbol": "EURUSD.a", "bid": 1.2})
        assert entry.timestamp == 1000.0
        assert entry.price["bid"] == 1.2

    def test_custom_timestamp(self):
        """Test storing with a custom timestamp."""
        cache = TickCache()
        entry = cache.put("EURUSD.a", {"symbol": "EURUSD.a"}, timestamp=1234567890.0)
        assert entry.timestamp == 1234567890.0

    def test_refresh_restamps_same_tick(self):
        """Refresh keeps the payload and moves the timestamp forward."""
        cache = TickCache()
        tick = {"symbol": "EURUSD.a", "bid": 1.1}
        cache.put("EURUSD.a", tick, timestamp=1000.0)
        with patch("tickrelay.market.cache.time.time", return_value=1005.0):
            entry = cache.refresh("EURUSD.a")
        assert entry.price is tick
        assert entry.timestamp == 1005.0

    def test_refresh_unknown_is_none(self):
        """Refreshing a symbol with no entry does nothing."""
        cache = TickCache()
        assert cache.refresh("EURUSD.a") is None
        assert len(cache) == 0

    def test_get_all(self):
        """Test getting all entries."""
        cache = TickCache()
        cache.put("EURUSD.a", {"symbol": "EURUSD.a"})
        cache.put("BTCUSD.a", {"symbol": "BTCUSD.a"})
        assert set(cache.get_all()) == {"EURUSD.A", "BTCUSD.A"}
