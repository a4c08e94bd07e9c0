"""Fan-out of cached ticks to live SSE connections."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from fastapi.encoders import jsonable_encoder

from .models import CacheEntry, tick_symbol
from .symbols import normalize_symbol

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_INTERVAL = 2.0


def format_sse(event: str, data: Any) -> str:
    """Render one SSE frame. Upstream ticks may hold datetimes, hence the encoder."""
    payload = json.dumps(jsonable_encoder(data))
    return f"event: {event}\ndata: {payload}\n\n"


@dataclass(eq=False)
class ClientConnection:
    """One live SSE response, bound to a single symbol for its lifetime.

    Hashes by identity so the Broadcaster can key on the connection itself.
    Frames are queued here and drained by the response generator.
    """

    symbol: str
    queue: asyncio.Queue[str] = field(default_factory=asyncio.Queue)
    closed: bool = False

    def send(self, event: str, data: Any) -> bool:
        """Queue a frame. Returns False once the connection is closed."""
        if self.closed:
            return False
        self.queue.put_nowait(format_sse(event, data))
        return True

    async def next_frame(self) -> str:
        return await self.queue.get()


class Broadcaster:
    """Registry of live connections and the symbol each one watches.

    Connections are indexed by normalized symbol so a broadcast only touches
    the connections watching that tick's symbol.
    """

    def __init__(self) -> None:
        self._connections: dict[ClientConnection, str] = {}
        self._by_symbol: dict[str, set[ClientConnection]] = {}

    def register(self, connection: ClientConnection, symbol: str) -> None:
        key = normalize_symbol(symbol)
        self.deregister(connection)
        self._connections[connection] = key
        self._by_symbol.setdefault(key, set()).add(connection)

    def deregister(self, connection: ClientConnection) -> bool:
        """Remove a connection. Returns False if it was not registered."""
        key = self._connections.pop(connection, None)
        if key is None:
            return False
        watchers = self._by_symbol.get(key)
        if watchers is not None:
            watchers.discard(connection)
            if not watchers:
                del self._by_symbol[key]
        return True

    def broadcast(self, entry: CacheEntry) -> int:
        """Push a "price" event to every connection watching the entry's symbol.

        Returns the number of connections the event was queued on.
        """
        symbol = tick_symbol(entry.price)
        if symbol is None:
            return 0
        watchers = self._by_symbol.get(normalize_symbol(symbol))
        if not watchers:
            return 0

        data = entry.to_dict()
        delivered = 0
        for connection in list(watchers):
            if connection.send("price", data):
                delivered += 1
        logger.debug("Broadcast %s to %d connection(s)", symbol, delivered)
        return delivered

    @asynccontextmanager
    async def open_connection(
        self,
        symbol: str,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
        snapshot: CacheEntry | None = None,
    ) -> AsyncIterator[ClientConnection]:
        """Scope of one client connection.

        Queues the snapshot (if any) as the first event, registers the
        connection and starts its heartbeat. Leaving the block deregisters it
        and cancels the heartbeat, whether the client closed, errored, or the
        response task was cancelled.
        """
        connection = ClientConnection(symbol=symbol)
        if snapshot is not None:
            connection.send("price", snapshot.to_dict())
        self.register(connection, symbol)
        heartbeat = asyncio.create_task(
            self._heartbeat(connection, heartbeat_interval),
            name=f"sse-heartbeat-{symbol}",
        )
        try:
            yield connection
        finally:
            self.deregister(connection)
            connection.closed = True
            heartbeat.cancel()
            try:
                await heartbeat
            except asyncio.CancelledError:
                pass

    @staticmethod
    async def _heartbeat(connection: ClientConnection, interval: float) -> None:
        """Queue a heartbeat every `interval` seconds, regardless of tick activity."""
        while not connection.closed:
            await asyncio.sleep(interval)
            connection.send("heartbeat", {"timestamp": time.time(), "symbol": connection.symbol})

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def symbols(self) -> list[str]:
        """Symbols with at least one live connection."""
        return sorted(self._by_symbol)

    def __contains__(self, connection: object) -> bool:
        return connection in self._connections
