"""Tick Relay - FastAPI application.

Streams broker prices from MetaApi to browser clients over SSE.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from .config import Settings
from .market import TickRelay, TickSource, create_stream_router, create_tick_source
from .market.interface import TickCallback

logger = logging.getLogger(__name__)

SourceFactory = Callable[[Settings, TickCallback], TickSource]


def create_app(settings: Settings, source_factory: SourceFactory = create_tick_source) -> FastAPI:
    """Build the app around a fresh TickRelay.

    `source_factory` builds the tick source from the settings and the relay's
    ingest callback; tests swap in a fake. The source is started in the
    lifespan; if it fails to connect the exception propagates and the server
    never starts serving.
    """
    relay = TickRelay(
        symbols=settings.symbols,
        refresh_interval=settings.refresh_interval,
        refresh_broadcast=settings.refresh_broadcast,
    )
    source = source_factory(settings, relay.ingest)
    relay.attach(source)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting tick source (%s)...", settings.tick_source)
        await source.start()
        await relay.start()
        logger.info("Tick relay ready: %d symbols allowed", len(relay.allow_list))
        try:
            yield
        finally:
            logger.info("Shutting down tick relay...")
            await relay.stop()
            await source.stop()

    app = FastAPI(
        title="Tick Relay",
        description="Live broker prices over Server-Sent Events",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.include_router(
        create_stream_router(
            relay,
            heartbeat_interval=settings.heartbeat_interval,
            latest_subscribes=settings.latest_subscribes,
        )
    )
    app.state.relay = relay
    app.state.tick_source = source
    return app


def run() -> None:
    """Console entry point: load settings from the environment and serve."""
    try:
        settings = Settings()
    except ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        raise SystemExit(1) from e

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    import uvicorn

    logger.info("Server starting on port %d", settings.port)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
