"""Market data subsystem for Tick Relay.

Public API:
    CacheEntry          - Latest tick for a symbol plus its cache timestamp
    TickCache           - In-memory latest-tick store
    SymbolAllowList     - Case-insensitive allow-list of requestable symbols
    SubscriptionTracker - At-most-once upstream subscription per symbol
    Broadcaster         - Fan-out of ticks to live SSE connections
    TickRelay           - Owns cache, tracker and broadcaster
    TickSource          - Abstract interface for upstream price feeds
    create_tick_source  - Factory that selects MetaApi or the simulator
    create_stream_router - FastAPI router factory for SSE and polling endpoints
"""

from .broadcaster import Broadcaster, ClientConnection
from .cache import TickCache
from .factory import create_tick_source
from .interface import TickSource
from .models import CacheEntry
from .relay import TickRelay
from .stream import create_stream_router
from .subscriptions import SubscriptionTracker
from .symbols import SymbolAllowList

__all__ = [
    "CacheEntry",
    "TickCache",
    "SymbolAllowList",
    "SubscriptionTracker",
    "Broadcaster",
    "ClientConnection",
    "TickRelay",
    "TickSource",
    "create_tick_source",
    "create_stream_router",
]
