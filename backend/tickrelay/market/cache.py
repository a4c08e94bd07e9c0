"""In-memory cache of the latest tick per symbol."""

from __future__ import annotations

import time

from .models import CacheEntry, PriceTick
from .symbols import normalize_symbol


class TickCache:
    """Latest tick for each symbol, last write wins.

    Writers: the TickRelay ingestion path and its refresh loop.
    Readers: SSE streaming endpoint, /latest polling endpoint.

    All access happens on the event loop, so no lock is taken. Keys are
    normalized symbols, so "EURUSD.a" and "EURUSD.A" share one entry.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    def put(self, symbol: str, tick: PriceTick, timestamp: float | None = None) -> CacheEntry:
        """Store a tick, replacing any prior entry. Returns the new CacheEntry.

        Timestamps never go backwards for a symbol: if the wall clock steps
        back, the previous timestamp is reused.
        """
        key = normalize_symbol(symbol)
        entry = CacheEntry(price=tick, timestamp=self._stamp(key, timestamp))
        self._entries[key] = entry
        return entry

    def refresh(self, symbol: str) -> CacheEntry | None:
        """Re-stamp an existing entry with the current time, keeping its tick."""
        key = normalize_symbol(symbol)
        current = self._entries.get(key)
        if current is None:
            return None
        return self.put(key, current.price)

    def get(self, symbol: str) -> CacheEntry | None:
        """Get the latest entry for a symbol, or None if nothing has arrived."""
        return self._entries.get(normalize_symbol(symbol))

    def get_all(self) -> dict[str, CacheEntry]:
        """Snapshot of all current entries. Returns a shallow copy."""
        return dict(self._entries)

    def _stamp(self, key: str, timestamp: float | None) -> float:
        ts = timestamp if timestamp is not None else time.time()
        prev = self._entries.get(key)
        if prev is not None and ts < prev.timestamp:
            return prev.timestamp
        return ts

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, symbol: str) -> bool:
        return normalize_symbol(symbol) in self._entries
