"""Seed prices and per-symbol parameters for the offline price simulator."""

# Starting prices (VND thousands) for commonly watched HOSE tickers
SEED_PRICES: dict[str, float] = {
    "ACB": 24.50,
    "FPT": 128.00,
    "VCB": 91.20,
    "VNM": 66.30,
    "HPG": 27.10,
    "MWG": 61.00,
    "TCB": 23.80,
    "VIC": 42.60,
    "SSI": 33.40,
    "MBB": 22.90,
}

# sigma: annualized volatility, mu: annualized drift
SYMBOL_PARAMS: dict[str, dict[str, float]] = {
    "ACB": {"sigma": 0.22, "mu": 0.06},
    "FPT": {"sigma": 0.28, "mu": 0.10},
    "VCB": {"sigma": 0.18, "mu": 0.05},
    "VNM": {"sigma": 0.17, "mu": 0.03},
    "HPG": {"sigma": 0.35, "mu": 0.05},
    "MWG": {"sigma": 0.38, "mu": 0.06},
    "TCB": {"sigma": 0.30, "mu": 0.05},
    "VIC": {"sigma": 0.40, "mu": 0.02},  # Volatile conglomerate
    "SSI": {"sigma": 0.42, "mu": 0.05},  # Brokerage, trades with market volume
    "MBB": {"sigma": 0.25, "mu": 0.06},
}

# Parameters for symbols not listed above
DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.25, "mu": 0.05}

# Seed range for unknown symbols
UNKNOWN_SEED_RANGE: tuple[float, float] = (10.0, 150.0)
