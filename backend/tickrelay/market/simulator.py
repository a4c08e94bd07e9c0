"""GBM-based tick simulator for running without a broker account."""

from __future__ import annotations

import asyncio
import logging
import math
import random
from datetime import datetime, timezone
from typing import Any

import numpy as np

from .interface import TickCallback, TickSource
from .seed_prices import (
    ASSET_CLASSES,
    CLASS_PARAMS,
    CROSS_CLASS_CORR,
    CRYPTO_CORR,
    DEFAULT_CORR,
    DEFAULT_DIGITS,
    DEFAULT_HALF_SPREAD,
    DEFAULT_PARAMS,
    DIGITS,
    HALF_SPREAD,
    INTRA_CLASS_CORR,
    SEED_PRICES,
)
from .symbols import normalize_symbol

logger = logging.getLogger(__name__)


def asset_class(symbol: str) -> str | None:
    """Asset class of a symbol, or None if it is not in any class."""
    key = normalize_symbol(symbol)
    for name, members in ASSET_CLASSES.items():
        if key in members:
            return name
    return None


class GBMSimulator:
    """Geometric Brownian Motion simulator for correlated mid prices.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Where:
        S(t)   = current mid price
        mu     = annualized drift (expected return)
        sigma  = annualized volatility
        dt     = time step as fraction of a year
        Z      = correlated standard normal random variable

    Markets here trade around the clock, so a year is 365 * 24h of seconds.
    """

    SECONDS_PER_YEAR = 365 * 24 * 3600  # 31,536,000
    DEFAULT_DT = 0.5 / SECONDS_PER_YEAR  # ~1.59e-8

    def __init__(
        self,
        symbols: list[str],
        dt: float = DEFAULT_DT,
        event_probability: float = 0.001,
    ) -> None:
        self._dt = dt
        self._event_prob = event_probability

        # Per-symbol state, keyed by normalized symbol
        self._keys: list[str] = []
        self._names: dict[str, str] = {}
        self._prices: dict[str, float] = {}
        self._params: dict[str, dict[str, float]] = {}

        # Cholesky decomposition of the correlation matrix (for correlated moves)
        self._cholesky: np.ndarray | None = None

        for symbol in symbols:
            self._add_symbol_internal(symbol)
        self._rebuild_cholesky()

    # --- Public API ---

    def step(self) -> dict[str, float]:
        """Advance all symbols by one time step. Returns {symbol: new_mid}."""
        n = len(self._keys)
        if n == 0:
            return {}

        z_independent = np.random.standard_normal(n)
        if self._cholesky is not None:
            z_correlated = self._cholesky @ z_independent
        else:
            z_correlated = z_independent

        result: dict[str, float] = {}
        for i, key in enumerate(self._keys):
            params = self._params[key]
            mu = params["mu"]
            sigma = params["sigma"]

            drift = (mu - 0.5 * sigma**2) * self._dt
            diffusion = sigma * math.sqrt(self._dt) * z_correlated[i]
            self._prices[key] *= math.exp(drift + diffusion)

            # Random event: a sudden 0.5-2% jump
            if random.random() < self._event_prob:
                shock_magnitude = random.uniform(0.005, 0.02)
                shock_sign = random.choice([-1, 1])
                self._prices[key] *= 1 + shock_magnitude * shock_sign
                logger.debug(
                    "Random event on %s: %.2f%% %s",
                    self._names[key],
                    shock_magnitude * 100,
                    "up" if shock_sign > 0 else "down",
                )

            result[self._names[key]] = self._prices[key]

        return result

    def quote(self, symbol: str) -> dict[str, Any] | None:
        """Tick for a symbol shaped like an upstream price: symbol, bid, ask, time."""
        mid = self.get_price(symbol)
        if mid is None:
            return None
        key = normalize_symbol(symbol)
        klass = asset_class(key)
        half_spread = mid * HALF_SPREAD.get(klass, DEFAULT_HALF_SPREAD)
        digits = DIGITS.get(klass, DEFAULT_DIGITS)
        return {
            "symbol": self._names[key],
            "bid": round(mid - half_spread, digits),
            "ask": round(mid + half_spread, digits),
            "time": datetime.now(timezone.utc),
        }

    def add_symbol(self, symbol: str) -> None:
        """Add a symbol to the simulation. Rebuilds the correlation matrix."""
        if normalize_symbol(symbol) in self._prices:
            return
        self._add_symbol_internal(symbol)
        self._rebuild_cholesky()

    def get_price(self, symbol: str) -> float | None:
        """Current mid price for a symbol, or None if not tracked."""
        return self._prices.get(normalize_symbol(symbol))

    @property
    def symbols(self) -> list[str]:
        return [self._names[key] for key in self._keys]

    # --- Internals ---

    def _add_symbol_internal(self, symbol: str) -> None:
        """Add a symbol without rebuilding Cholesky (for batch initialization)."""
        key = normalize_symbol(symbol)
        if key in self._prices:
            return
        self._keys.append(key)
        self._names[key] = symbol
        self._prices[key] = SEED_PRICES.get(key, random.uniform(50.0, 300.0))
        self._params[key] = dict(CLASS_PARAMS.get(asset_class(key), DEFAULT_PARAMS))

    def _rebuild_cholesky(self) -> None:
        """Rebuild the Cholesky decomposition of the symbol correlation matrix.

        Called whenever symbols are added. O(n^2) but n is the allow-list size.
        """
        n = len(self._keys)
        if n <= 1:
            self._cholesky = None
            return

        corr = np.eye(n)
        for i in range(n):
            for j in range(i + 1, n):
                rho = self._pairwise_correlation(self._keys[i], self._keys[j])
                corr[i, j] = rho
                corr[j, i] = rho

        self._cholesky = np.linalg.cholesky(corr)

    @staticmethod
    def _pairwise_correlation(s1: str, s2: str) -> float:
        """Correlation between two symbols based on asset class.

          - Both crypto:          0.7
          - Same other class:     0.5
          - Cross-class:          0.1
          - Unknown symbols:      0.1
        """
        c1 = asset_class(s1)
        c2 = asset_class(s2)
        if c1 is None or c2 is None:
            return DEFAULT_CORR
        if c1 == c2:
            return CRYPTO_CORR if c1 == "crypto" else INTRA_CLASS_CORR
        return CROSS_CLASS_CORR


class SimulatorTickSource(TickSource):
    """TickSource backed by the GBM simulator.

    Symbols enter the simulation when subscribed and get a tick right away.
    A background asyncio task then steps the simulation every
    `update_interval` seconds and emits one tick per subscribed symbol.
    """

    def __init__(
        self,
        on_tick: TickCallback,
        update_interval: float = 0.5,
        event_probability: float = 0.001,
    ) -> None:
        super().__init__(on_tick)
        self._interval = update_interval
        self._event_prob = event_probability
        self._sim: GBMSimulator | None = None
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        self._sim = GBMSimulator(symbols=[], event_probability=self._event_prob)
        self._task = asyncio.create_task(self._run_loop(), name="simulator-loop")
        logger.info("Simulator started: %.2fs interval", self._interval)

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Simulator stopped")

    async def subscribe(self, symbol: str) -> None:
        if self._sim is None:
            raise RuntimeError("Simulator is not started")
        self._sim.add_symbol(symbol)
        tick = self._sim.quote(symbol)
        if tick is not None:
            self._on_tick(tick)
        logger.info("Simulator: added symbol %s (%d tracked)", symbol, len(self._sim.symbols))

    async def _run_loop(self) -> None:
        """Core loop: step the simulation, emit ticks, sleep."""
        while True:
            try:
                if self._sim:
                    for symbol in self._sim.step():
                        tick = self._sim.quote(symbol)
                        if tick is not None:
                            self._on_tick(tick)
            except Exception:
                logger.exception("Simulator step failed")
            await asyncio.sleep(self._interval)
