"""Pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from tickrelay.config import Settings
from tickrelay.market.interface import TickCallback, TickSource


class FakeTickSource(TickSource):
    """In-memory tick source: records subscriptions, emits ticks on demand."""

    def __init__(self, on_tick: TickCallback | None = None, fail_subscribe: bool = False) -> None:
        super().__init__(on_tick or (lambda tick: None))
        self.fail_subscribe = fail_subscribe
        self.started = False
        self.stopped = False
        self.subscribe_calls: list[str] = []

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    async def subscribe(self, symbol: str) -> None:
        self.subscribe_calls.append(symbol)
        if self.fail_subscribe:
            raise ConnectionError("upstream refused subscription")

    def emit(self, tick: dict) -> None:
        self._on_tick(tick)


@pytest.fixture
def fake_source() -> FakeTickSource:
    return FakeTickSource()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        metaapi_token="test-token",
        metaapi_account_id="test-account",
        symbols=("EURUSD.a", "BTCUSD.a", "XAUUSD.a"),
        heartbeat_interval=0.05,
    )
