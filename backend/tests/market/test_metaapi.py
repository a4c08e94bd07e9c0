"""Tests for MetaApiTickSource (mocked SDK)."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tickrelay.market.metaapi_client import (
    DEFAULT_MARKET_DATA_SUBSCRIPTIONS,
    MetaApiTickSource,
    PriceListener,
)


def _make_connection() -> MagicMock:
    """Create a mock MetaApi streaming connection."""
    connection = MagicMock()
    connection.connect = AsyncMock()
    connection.wait_synchronized = AsyncMock()
    connection.subscribe_to_market_data = AsyncMock()
    connection.close = AsyncMock()
    return connection


def _make_api(connection: MagicMock) -> MagicMock:
    """Create a mock MetaApi class whose account yields `connection`."""
    account = MagicMock()
    account.get_streaming_connection.return_value = connection
    api = MagicMock()
    api.metatrader_account_api.get_account = AsyncMock(return_value=account)
    return MagicMock(return_value=api)


def _source(ticks: list) -> MetaApiTickSource:
    return MetaApiTickSource(token="test-token", account_id="acc-1", on_tick=ticks.append)


@pytest.mark.asyncio
class TestMetaApiTickSource:
    """Unit tests for MetaApiTickSource with a mocked SDK."""

    async def test_start_connects_then_listens(self):
        """start() connects, waits for sync, then installs the listener."""
        connection = _make_connection()
        api_cls = _make_api(connection)
        source = _source([])

        with patch("tickrelay.market.metaapi_client.MetaApi", api_cls):
            await source.start()

        api_cls.assert_called_once_with("test-token")
        api_cls.return_value.metatrader_account_api.get_account.assert_awaited_once_with("acc-1")
        connection.connect.assert_awaited_once()
        connection.wait_synchronized.assert_awaited_once()
        listener = connection.add_synchronization_listener.call_args.args[0]
        assert isinstance(listener, PriceListener)

    async def test_start_failure_propagates(self):
        """Connect or sync failures are fatal to startup."""
        connection = _make_connection()
        connection.wait_synchronized.side_effect = TimeoutError("not synchronized")
        source = _source([])

        with patch("tickrelay.market.metaapi_client.MetaApi", _make_api(connection)):
            with pytest.raises(TimeoutError):
                await source.start()
        connection.add_synchronization_listener.assert_not_called()

    async def test_subscribe_uses_market_data(self):
        connection = _make_connection()
        source = _source([])
        with patch("tickrelay.market.metaapi_client.MetaApi", _make_api(connection)):
            await source.start()

        await source.subscribe("EURUSD.a")
        connection.subscribe_to_market_data.assert_awaited_once_with(
            "EURUSD.a", DEFAULT_MARKET_DATA_SUBSCRIPTIONS
        )

    async def test_subscribe_before_start(self):
        with pytest.raises(RuntimeError):
            await _source([]).subscribe("EURUSD.a")

    async def test_stop_closes_connection(self):
        connection = _make_connection()
        source = _source([])
        with patch("tickrelay.market.metaapi_client.MetaApi", _make_api(connection)):
            await source.start()

        await source.stop()
        connection.remove_synchronization_listener.assert_called_once()
        connection.close.assert_awaited_once()

    async def test_stop_is_idempotent(self):
        source = _source([])
        await source.stop()
        await source.stop()  # Should not raise

    async def test_singular_price_event(self):
        ticks: list = []
        listener = PriceListener(_source(ticks))

        await listener.on_symbol_price_updated("0", {"symbol": "EURUSD.a", "bid": 1.1})
        assert ticks == [{"symbol": "EURUSD.a", "bid": 1.1}]

    async def test_plural_price_event_in_order(self):
        """A batch becomes one tick per element, in list order."""
        ticks: list = []
        listener = PriceListener(_source(ticks))
        prices = [
            {"symbol": "EURUSD.a", "bid": 1.1},
            {"symbol": "BTCUSD.a", "bid": 65000.0},
            {"symbol": "XAUUSD.a", "bid": 2300.0},
        ]

        await listener.on_symbol_prices_updated("0", prices, 1000.0, 0.0, 1000.0, None, 1.0)
        assert [t["symbol"] for t in ticks] == ["EURUSD.a", "BTCUSD.a", "XAUUSD.a"]

    async def test_batch_delivered_twice_is_ingested_once(self):
        """The SDK reports a batch through both callbacks."""
        ticks: list = []
        listener = PriceListener(_source(ticks))
        prices = [{"symbol": "EURUSD.a", "bid": 1.1}, {"symbol": "BTCUSD.a", "bid": 65000.0}]

        await listener.on_symbol_prices_updated("0", prices)
        for price in prices:
            await listener.on_symbol_price_updated("0", price)
        assert len(ticks) == 2

    async def test_batch_with_repeated_symbol_keeps_order(self):
        """Two prices for one symbol in a batch arrive once each, oldest first."""
        ticks: list = []
        listener = PriceListener(_source(ticks))
        prices = [{"symbol": "EURUSD.a", "bid": 1.1}, {"symbol": "EURUSD.a", "bid": 1.2}]

        await listener.on_symbol_prices_updated("0", prices)
        for price in prices:
            await listener.on_symbol_price_updated("0", price)
        assert [t["bid"] for t in ticks] == [1.1, 1.2]

    async def test_repeated_quote_is_not_dropped(self):
        """An equal quote in a later event is a new tick, not a duplicate."""
        ticks: list = []
        listener = PriceListener(_source(ticks))

        await listener.on_symbol_prices_updated("0", [{"symbol": "EURUSD.a", "bid": 1.1}])
        await listener.on_symbol_price_updated("0", {"symbol": "EURUSD.a", "bid": 1.1})
        await listener.on_symbol_price_updated("0", {"symbol": "EURUSD.a", "bid": 1.1})
        assert [t["bid"] for t in ticks] == [1.1, 1.1, 1.1]

    async def test_next_batch_replaces_previous(self):
        ticks: list = []
        listener = PriceListener(_source(ticks))
        first = {"symbol": "EURUSD.a", "bid": 1.1}
        second = {"symbol": "EURUSD.a", "bid": 1.2}

        await listener.on_symbol_prices_updated("0", [first])
        await listener.on_symbol_prices_updated("0", [second])
        await listener.on_symbol_price_updated("0", second)
        await listener.on_symbol_price_updated("0", first)
        assert [t["bid"] for t in ticks] == [1.1, 1.2, 1.1]

    async def test_prices_without_symbol_are_dropped(self):
        ticks: list = []
        listener = PriceListener(_source(ticks))

        await listener.on_symbol_price_updated("0", {"bid": 1.1})
        await listener.on_symbol_price_updated("0", None)
        await listener.on_symbol_prices_updated("0", [{"bid": 1.1}, {"symbol": "EURUSD.a"}])
        await listener.on_symbol_prices_updated("0", None)
        assert ticks == [{"symbol": "EURUSD.a"}]

    async def test_other_events_are_ignored(self):
        """Account and order events fall through to the SDK's no-op defaults."""
        ticks: list = []
        listener = PriceListener(_source(ticks))

        await listener.on_account_information_updated("0", {"balance": 1000})
        await listener.on_health_status("0", {})
        assert ticks == []
