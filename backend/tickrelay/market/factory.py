"""Factory for creating tick sources."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .interface import TickCallback, TickSource

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


def create_tick_source(settings: Settings, on_tick: TickCallback) -> TickSource:
    """Create the tick source selected by settings.tick_source.

    - "metaapi"   → MetaApiTickSource (live broker prices)
    - "simulator" → SimulatorTickSource (GBM simulation)

    Returns an unstarted source. Caller must await source.start().
    """
    if settings.tick_source == "simulator":
        from .simulator import SimulatorTickSource

        logger.info("Tick source: GBM Simulator")
        return SimulatorTickSource(on_tick=on_tick)

    # Lazy import: the MetaApi SDK is only loaded when streaming real prices.
    from .metaapi_client import MetaApiTickSource

    logger.info("Tick source: MetaApi account %s", settings.metaapi_account_id)
    return MetaApiTickSource(
        token=settings.metaapi_token,
        account_id=settings.metaapi_account_id,
        on_tick=on_tick,
        sync_timeout=settings.sync_timeout,
    )
