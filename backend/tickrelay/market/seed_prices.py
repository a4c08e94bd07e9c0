"""Seed prices and per-symbol parameters for the tick simulator."""

# Starting mid prices, keyed by normalized symbol
SEED_PRICES: dict[str, float] = {
    "EURUSD.A": 1.0850,
    "GBPUSD.A": 1.2700,
    "USDJPY.A": 150.20,
    "USDCHF.A": 0.8850,
    "AUDUSD.A": 0.6550,
    "USDCAD.A": 1.3550,
    "NZDUSD.A": 0.6100,
    "EURGBP.A": 0.8550,
    "EURJPY.A": 163.00,
    "GBPJPY.A": 190.50,
    "BTCUSD.A": 65000.00,
    "ETHUSD.A": 3400.00,
    "LTCUSD.A": 85.00,
    "XRPUSD.A": 0.5200,
    "US30.A": 39000.00,
    "US500.A": 5200.00,
    "NAS100.A": 18200.00,
    "GER40.A": 18000.00,
    "UK100.A": 7900.00,
    "AAPL.A": 190.00,
    "MSFT.A": 420.00,
    "TSLA.A": 250.00,
    "NVDA.A": 800.00,
    "XAUUSD.A": 2300.00,
    "XAGUSD.A": 27.00,
    "USOIL.A": 80.00,
}

# Asset class of each symbol: drives correlation, volatility defaults, spread
# and quote precision.
ASSET_CLASSES: dict[str, set[str]] = {
    "forex": {
        "EURUSD.A", "GBPUSD.A", "USDJPY.A", "USDCHF.A", "AUDUSD.A",
        "USDCAD.A", "NZDUSD.A", "EURGBP.A", "EURJPY.A", "GBPJPY.A",
    },
    "crypto": {"BTCUSD.A", "ETHUSD.A", "LTCUSD.A", "XRPUSD.A"},
    "indices": {"US30.A", "US500.A", "NAS100.A", "GER40.A", "UK100.A"},
    "equities": {"AAPL.A", "MSFT.A", "TSLA.A", "NVDA.A"},
    "commodities": {"XAUUSD.A", "XAGUSD.A", "USOIL.A"},
}

# Per-class GBM parameters
# sigma: annualized volatility (higher = more price movement)
# mu: annualized drift / expected return
CLASS_PARAMS: dict[str, dict[str, float]] = {
    "forex": {"sigma": 0.08, "mu": 0.0},
    "crypto": {"sigma": 0.65, "mu": 0.05},  # High volatility
    "indices": {"sigma": 0.16, "mu": 0.06},
    "equities": {"sigma": 0.30, "mu": 0.06},
    "commodities": {"sigma": 0.22, "mu": 0.02},
}

# Default parameters for symbols outside every class
DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.25, "mu": 0.05}

# Half the typical bid/ask spread as a fraction of mid price
HALF_SPREAD: dict[str, float] = {
    "forex": 0.00005,
    "crypto": 0.0004,
    "indices": 0.0001,
    "equities": 0.0002,
    "commodities": 0.0002,
}
DEFAULT_HALF_SPREAD = 0.0002

# Decimal places of quoted prices
DIGITS: dict[str, int] = {
    "forex": 5,
    "crypto": 2,
    "indices": 1,
    "equities": 2,
    "commodities": 2,
}
DEFAULT_DIGITS = 2

# Correlation coefficients
INTRA_CLASS_CORR = 0.5  # Same asset class moves together
CRYPTO_CORR = 0.7  # Crypto moves together even more
CROSS_CLASS_CORR = 0.1  # Between classes
DEFAULT_CORR = 0.1  # Unknown symbols
