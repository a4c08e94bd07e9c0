"""MetaApi streaming client for live broker prices."""

from __future__ import annotations

import logging
from typing import Any

from metaapi_cloud_sdk import MetaApi
from metaapi_cloud_sdk.clients.metaapi.synchronization_listener import SynchronizationListener

from .interface import TickCallback, TickSource
from .models import tick_symbol

logger = logging.getLogger(__name__)

DEFAULT_MARKET_DATA_SUBSCRIPTIONS: list[dict[str, Any]] = [
    {"type": "quotes", "intervalInMilliseconds": 250},
]


class PriceListener(SynchronizationListener):
    """Forwards MetaApi price events to a MetaApiTickSource.

    Only the two price callbacks are overridden. Account, position, order,
    health and connection-status events fall through to the SDK's no-op
    defaults.
    """

    def __init__(self, source: MetaApiTickSource) -> None:
        super().__init__()
        self._source = source

    async def on_symbol_price_updated(self, instance_index: str, price: Any) -> None:
        self._source._handle_price(price)

    async def on_symbol_prices_updated(self, instance_index: str, prices: Any, *args: Any, **kwargs: Any) -> None:
        self._source._handle_prices(prices)


class MetaApiTickSource(TickSource):
    """TickSource backed by a MetaApi streaming connection.

    start() connects, waits for the terminal to synchronize, then installs a
    PriceListener. The SDK reports a price batch through the plural callback
    and then hands each of the same price objects to the singular one. The
    objects of the latest batch are remembered by identity and their singular
    repeats are skipped, so each tick reaches `on_tick` once and in order.
    """

    def __init__(
        self,
        token: str,
        account_id: str,
        on_tick: TickCallback,
        sync_timeout: float = 300.0,
        market_data_subscriptions: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(on_tick)
        self._token = token
        self._account_id = account_id
        self._sync_timeout = sync_timeout
        self._market_data = market_data_subscriptions or DEFAULT_MARKET_DATA_SUBSCRIPTIONS
        self._api: Any = None
        self._connection: Any = None
        self._listener: PriceListener | None = None
        # Latest plural batch; holding the objects keeps their ids unique.
        self._batch: list[Any] = []
        self._batch_ids: set[int] = set()

    async def start(self) -> None:
        self._api = MetaApi(self._token)
        account = await self._api.metatrader_account_api.get_account(self._account_id)
        connection = account.get_streaming_connection()

        await connection.connect()
        logger.info("MetaApi: connected, waiting for synchronization")
        await connection.wait_synchronized({"timeoutInSeconds": self._sync_timeout})

        self._listener = PriceListener(self)
        connection.add_synchronization_listener(self._listener)
        self._connection = connection
        logger.info("MetaApi: account %s synchronized and streaming", self._account_id)

    async def stop(self) -> None:
        connection = self._connection
        self._connection = None
        if connection is not None:
            if self._listener is not None:
                connection.remove_synchronization_listener(self._listener)
            await connection.close()
            logger.info("MetaApi: connection closed")
        self._listener = None
        self._api = None

    async def subscribe(self, symbol: str) -> None:
        if self._connection is None:
            raise RuntimeError("MetaApi connection is not started")
        await self._connection.subscribe_to_market_data(symbol, self._market_data)

    # --- Internal ---

    def _handle_prices(self, prices: Any) -> None:
        """Plural form: one ingestion per element, in list order."""
        if not isinstance(prices, (list, tuple)):
            return
        self._batch = list(prices)
        self._batch_ids = {id(price) for price in self._batch}
        for price in self._batch:
            self._ingest(price)

    def _handle_price(self, price: Any) -> None:
        """Singular form. Skips prices already ingested as part of the batch."""
        if id(price) in self._batch_ids:
            self._batch_ids.discard(id(price))
            return
        self._ingest(price)

    def _ingest(self, price: Any) -> None:
        """Prices without a symbol are discarded."""
        if tick_symbol(price) is None:
            return
        self._on_tick(price)
