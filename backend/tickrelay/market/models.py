"""Data models for relayed market data."""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

# Upstream payloads are forwarded verbatim; only the symbol field is inspected.
PriceTick = Mapping[str, Any]


def tick_symbol(tick: Any) -> str | None:
    """Return the tick's symbol, or None if it has no usable one."""
    if not isinstance(tick, Mapping):
        return None
    symbol = tick.get("symbol")
    if not isinstance(symbol, str) or not symbol.strip():
        return None
    return symbol


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Latest observed tick for one symbol, stamped when it was cached."""

    price: PriceTick
    timestamp: float = field(default_factory=time.time)  # Unix seconds

    def to_dict(self) -> dict:
        """Serialize for JSON / SSE transmission."""
        return {
            "timestamp": self.timestamp,
            "price": self.price,
        }
