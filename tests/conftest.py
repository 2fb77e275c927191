"""
Shared candle fixtures for the SMC engine tests
"""
import sys
from pathlib import Path

# Ensure project root on sys.path before importing the packages
sys.path.append(str(Path(__file__).resolve().parents[1]))

import numpy as np
import pandas as pd
import pytest

from smc_engine.models import Candle

BASE_TS = 1_700_000_000_000
MINUTE_MS = 60_000


def _doji(i: int, price: float, spread: float = 0.5) -> Candle:
    return Candle(BASE_TS + i * MINUTE_MS, price, price + spread, price - spread, price, 1.0)


def _zigzag_prices(cycles: int = 5, up: float = 2.0, down: float = 1.5, leg: int = 6,
                   start: float = 100.0):
    prices = [start]
    for _ in range(cycles):
        for _ in range(leg):
            prices.append(prices[-1] + up)
        for _ in range(leg):
            prices.append(prices[-1] - down)
    return prices


@pytest.fixture
def make_candles():
    """Build candles from (open, high, low, close) tuples, one minute apart"""
    def _make(rows):
        return [
            Candle(BASE_TS + i * MINUTE_MS, float(o), float(h), float(l), float(c), 1.0)
            for i, (o, h, l, c) in enumerate(rows)
        ]
    return _make


@pytest.fixture
def flat_candles():
    return [Candle(BASE_TS + i * MINUTE_MS, 100.0, 100.0, 100.0, 100.0, 1.0) for i in range(60)]


@pytest.fixture
def gap_up_candles():
    """Strictly rising candles where every low clears the previous high"""
    candles = []
    for i in range(60):
        low = 100.0 + 2 * i
        high = low + 1.0
        candles.append(Candle(BASE_TS + i * MINUTE_MS, low + 0.2, high, low, high - 0.2, 1.0))
    return candles


@pytest.fixture
def zigzag_prices():
    return _zigzag_prices


@pytest.fixture
def uptrend_candles():
    """Rising zig-zag of doji candles: higher highs and higher lows every 12 bars"""
    return [_doji(i, p) for i, p in enumerate(_zigzag_prices())]


@pytest.fixture
def support_test_candles():
    """
    Zig-zag uptrend whose last trough (low 114.5) is confirmed, followed by
    a candle closing at 114.8, just above that support
    """
    prices = _zigzag_prices()
    prices += [prices[-1] + 2 * (k + 1) for k in range(5)]
    prices.append(114.8)
    return [_doji(i, p) for i, p in enumerate(prices)]


@pytest.fixture
def random_walk():
    """Deterministic random-walk candle frame"""
    def _walk(n: int = 300, seed: int = 42) -> pd.DataFrame:
        rng = np.random.RandomState(seed)
        closes = 100 + np.cumsum(rng.normal(0, 0.5, n))
        opens = np.r_[100.0, closes[:-1]]
        highs = np.maximum(opens, closes) + rng.uniform(0, 0.3, n)
        lows = np.minimum(opens, closes) - rng.uniform(0, 0.3, n)
        return pd.DataFrame({
            'timestamp': BASE_TS + np.arange(n) * MINUTE_MS,
            'open': opens,
            'high': highs,
            'low': lows,
            'close': closes,
            'volume': rng.uniform(1, 10, n),
        })
    return _walk
