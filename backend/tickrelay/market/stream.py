"""SSE streaming and polling endpoints for live prices."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response, StreamingResponse

from .broadcaster import DEFAULT_HEARTBEAT_INTERVAL
from .relay import TickRelay

logger = logging.getLogger(__name__)


def create_stream_router(
    relay: TickRelay,
    heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
    latest_subscribes: bool = False,
) -> APIRouter:
    """Create the streaming router bound to a TickRelay.

    This factory pattern lets us inject the relay without globals.
    `latest_subscribes` makes /latest also start the upstream subscription,
    so a polling client can warm a symbol without ever opening a stream.
    """
    router = APIRouter(tags=["streaming"])

    @router.get("/stream/{symbol}")
    async def stream_symbol(symbol: str, request: Request) -> Response:
        """SSE endpoint for one symbol's live prices.

        The client connects with EventSource and receives:

            event: price
            data: {"timestamp": 1717000000.12, "price": {"symbol": "EURUSD.a", ...}}

            event: heartbeat
            data: {"timestamp": 1717000002.12, "symbol": "EURUSD.a"}

        The latest cached price, if any, is sent first.
        """
        resolved = relay.allow_list.resolve(symbol)
        if resolved is None:
            logger.warning("Stream rejected, unknown symbol: %s", symbol)
            return _unknown_symbol()

        try:
            await relay.subscriptions.ensure_subscribed(resolved)
        except Exception:
            logger.exception("Upstream subscription failed for %s", resolved)
            return JSONResponse(status_code=502, content={"error": "Subscription failed"})

        return StreamingResponse(
            _generate_events(relay, resolved, request, heartbeat_interval),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    @router.get("/latest/{symbol}")
    async def latest_price(symbol: str) -> Response:
        """Latest cached entry for a symbol, or null before the first tick."""
        resolved = relay.allow_list.resolve(symbol)
        if resolved is None:
            return _unknown_symbol()

        if latest_subscribes:
            try:
                await relay.subscriptions.ensure_subscribed(resolved)
            except Exception:
                logger.exception("Upstream subscription failed for %s", resolved)
                return JSONResponse(status_code=502, content={"error": "Subscription failed"})

        entry = relay.cache.get(resolved)
        return JSONResponse(content=jsonable_encoder(entry.to_dict() if entry else None))

    @router.get("/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "subscribed": relay.subscriptions.subscribed,
            "connections": relay.broadcaster.connection_count,
            "cached": len(relay.cache),
        }

    return router


def _unknown_symbol() -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Unknown symbol"})


async def _generate_events(
    relay: TickRelay,
    symbol: str,
    request: Request,
    heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
    poll_interval: float = 1.0,
) -> AsyncGenerator[str, None]:
    """Async generator that yields SSE frames for one connection.

    The connection stays registered with the broadcaster for exactly the
    life of this generator. Stops when the client disconnects (detected via
    request.is_disconnected(), checked at least every `poll_interval`).
    """
    # Tell the client to retry after 1 second if the connection drops
    yield "retry: 1000\n\n"

    client_ip = request.client.host if request.client else "unknown"
    snapshot = relay.cache.get(symbol)

    async with relay.broadcaster.open_connection(symbol, heartbeat_interval, snapshot) as connection:
        logger.info("SSE client connected: %s (%s)", client_ip, symbol)
        try:
            while True:
                if await request.is_disconnected():
                    logger.info("SSE client disconnected: %s (%s)", client_ip, symbol)
                    break
                try:
                    frame = await asyncio.wait_for(connection.next_frame(), timeout=poll_interval)
                except asyncio.TimeoutError:
                    continue
                yield frame
        except asyncio.CancelledError:
            logger.info("SSE stream cancelled for: %s (%s)", client_ip, symbol)
            raise
