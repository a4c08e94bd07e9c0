"""TickRelay: owns the cache, subscription tracker and broadcaster."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from .broadcaster import Broadcaster
from .cache import TickCache
from .interface import TickSource
from .models import CacheEntry, PriceTick, tick_symbol
from .subscriptions import SubscriptionTracker
from .symbols import DEFAULT_SYMBOLS, SymbolAllowList

logger = logging.getLogger(__name__)


class TickRelay:
    """Shared state of the relay, created at startup and stopped at shutdown.

    Upstream ticks enter through ingest(); HTTP handlers read the cache,
    open broadcaster connections and drive subscriptions through the tracker.

    The optional refresh loop re-stamps every cached entry each
    `refresh_interval` seconds so pollers see a moving timestamp even when the
    market is quiet. With `refresh_broadcast`, stream clients get the
    re-stamped entry too.
    """

    def __init__(
        self,
        symbols: Iterable[str] = DEFAULT_SYMBOLS,
        refresh_interval: float = 0.0,
        refresh_broadcast: bool = False,
    ) -> None:
        self.allow_list = SymbolAllowList(symbols)
        self.cache = TickCache()
        self.subscriptions = SubscriptionTracker()
        self.broadcaster = Broadcaster()
        self._refresh_interval = refresh_interval
        self._refresh_broadcast = refresh_broadcast
        self._task: asyncio.Task | None = None

    def attach(self, source: TickSource) -> None:
        """Bind the upstream source used for subscriptions."""
        self.subscriptions.attach(source)

    def ingest(self, tick: PriceTick) -> CacheEntry | None:
        """Cache a tick and push it to matching connections.

        Ticks without a symbol are dropped. Returns the cached entry.
        """
        symbol = tick_symbol(tick)
        if symbol is None:
            return None
        entry = self.cache.put(symbol, tick)
        self.broadcaster.broadcast(entry)
        return entry

    async def start(self) -> None:
        if self._refresh_interval > 0 and self._task is None:
            self._task = asyncio.create_task(self._refresh_loop(), name="cache-refresher")
            logger.info(
                "Cache refresher started: %.1fs interval, broadcast=%s",
                self._refresh_interval,
                self._refresh_broadcast,
            )

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

    def refresh_once(self) -> int:
        """Re-stamp every cached entry. Returns how many were refreshed."""
        refreshed = 0
        for symbol in self.cache.get_all():
            entry = self.cache.refresh(symbol)
            if entry is None:
                continue
            refreshed += 1
            if self._refresh_broadcast:
                self.broadcaster.broadcast(entry)
        return refreshed

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self._refresh_interval)
            try:
                self.refresh_once()
            except Exception:
                logger.exception("Cache refresh failed")
