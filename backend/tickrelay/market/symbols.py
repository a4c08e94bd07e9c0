"""Allow-list of tradable symbols."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

# Broker symbols as the upstream account names them. The ".a" suffix is the
# account's instrument group; matching ignores case.
DEFAULT_SYMBOLS: tuple[str, ...] = (
    # Forex
    "EURUSD.a",
    "GBPUSD.a",
    "USDJPY.a",
    "USDCHF.a",
    "AUDUSD.a",
    "USDCAD.a",
    "NZDUSD.a",
    "EURGBP.a",
    "EURJPY.a",
    "GBPJPY.a",
    # Crypto
    "BTCUSD.a",
    "ETHUSD.a",
    "LTCUSD.a",
    "XRPUSD.a",
    # Indices
    "US30.a",
    "US500.a",
    "NAS100.a",
    "GER40.a",
    "UK100.a",
    # Equities
    "AAPL.a",
    "MSFT.a",
    "TSLA.a",
    "NVDA.a",
    # Commodities
    "XAUUSD.a",
    "XAGUSD.a",
    "USOIL.a",
)


def normalize_symbol(symbol: str) -> str:
    """Canonical lookup key for a symbol: upper-cased, otherwise verbatim."""
    return symbol.upper()


class SymbolAllowList:
    """Case-insensitive set of symbols clients may request.

    Keeps the broker spelling of each symbol so upstream subscriptions use
    the exact name the account expects.
    """

    def __init__(self, symbols: Iterable[str]) -> None:
        self._by_key: dict[str, str] = {}
        for symbol in symbols:
            symbol = symbol.strip()
            if symbol:
                self._by_key.setdefault(normalize_symbol(symbol), symbol)

    def resolve(self, requested: str) -> str | None:
        """Broker symbol for a requested symbol, or None if not allowed."""
        return self._by_key.get(normalize_symbol(requested))

    def __contains__(self, requested: object) -> bool:
        return isinstance(requested, str) and self.resolve(requested) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_key.values())

    def __len__(self) -> int:
        return len(self._by_key)
