"""Tracks which symbols have been subscribed upstream."""

from __future__ import annotations

import logging

from .interface import TickSource
from .symbols import normalize_symbol

logger = logging.getLogger(__name__)


class SubscriptionTracker:
    """At-most-once upstream subscription per symbol.

    A symbol is marked only after the source's subscribe() has returned, and
    is never unmarked. Two first calls for the same symbol that overlap on
    the event loop can both reach the upstream; the upstream treats repeated
    subscriptions as idempotent.
    """

    def __init__(self, source: TickSource | None = None) -> None:
        self._source = source
        self._subscribed: set[str] = set()

    def attach(self, source: TickSource) -> None:
        """Bind the tick source that receives subscribe calls."""
        self._source = source

    async def ensure_subscribed(self, symbol: str) -> bool:
        """Subscribe upstream unless already done. Returns True if it subscribed now.

        Upstream errors propagate and leave the symbol unmarked, so the next
        call retries.
        """
        key = normalize_symbol(symbol)
        if key in self._subscribed:
            return False
        if self._source is None:
            raise RuntimeError("No tick source attached")

        await self._source.subscribe(symbol)
        self._subscribed.add(key)
        logger.info("Subscribed upstream: %s", symbol)
        return True

    def is_subscribed(self, symbol: str) -> bool:
        return normalize_symbol(symbol) in self._subscribed

    @property
    def subscribed(self) -> list[str]:
        """Sorted list of subscribed symbol keys."""
        return sorted(self._subscribed)

    def __len__(self) -> int:
        return len(self._subscribed)
