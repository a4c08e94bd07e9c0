"""Abstract interface for upstream tick sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

from .models import PriceTick

TickCallback = Callable[[PriceTick], None]


class TickSource(ABC):
    """Contract for upstream price feeds.

    A source is built with a single ``on_tick`` callback and calls it once per
    price tick, in the order the upstream delivers them. However the upstream
    shapes its events, they reach the rest of the app only through that
    callback.

    Lifecycle:
        source = create_tick_source(settings, relay.ingest)
        await source.start()
        # ... app runs ...
        await source.subscribe("EURUSD.a")
        # ... app shutting down ...
        await source.stop()
    """

    def __init__(self, on_tick: TickCallback) -> None:
        self._on_tick = on_tick

    @abstractmethod
    async def start(self) -> None:
        """Connect to the upstream and begin delivering ticks.

        Raises whatever the upstream raises; a source that fails to start
        must not be served from.
        """

    @abstractmethod
    async def stop(self) -> None:
        """Release the upstream connection. Safe to call multiple times."""

    @abstractmethod
    async def subscribe(self, symbol: str) -> None:
        """Ask the upstream to start streaming prices for a symbol.

        Returns once the upstream has accepted the request. Callers are
        expected to deduplicate; see SubscriptionTracker.
        """
