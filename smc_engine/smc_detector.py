"""
Smart Money Concepts detection functions

Every detector takes the candle sequence (engine DataFrame or a sequence of
Candle objects) and returns freshly built records. None of them raise on
empty or short input; they return empty lists or neutral defaults instead.
"""
import logging
from typing import List, Sequence, Tuple, TypeVar

import numpy as np
import pandas as pd

from .data_loader import CandleInput, candles_to_frame
from .models import (
    FairValueGap, LiquidityPool, MarketStructure, OrderBlock, PoolKind,
    SwingKind, SwingPoint, Trend
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_LOOKBACK = 5
OB_EDGE_BUFFER = 5
OB_MIN_STRENGTH = 1.5
MAX_ORDER_BLOCKS = 10
MAX_FVGS = 15
LIQUIDITY_WINDOW = 20
LIQUIDITY_TOLERANCE = 0.001
LIQUIDITY_MIN_TOUCHES = 3
LIQUIDITY_DEDUP_TOLERANCE = 0.002
MAX_LIQUIDITY_POOLS = 10
SR_LEVELS = 5


def as_frame(candles: CandleInput) -> pd.DataFrame:
    if isinstance(candles, pd.DataFrame):
        return candles
    return candles_to_frame(candles)


def _timestamps(df: pd.DataFrame) -> np.ndarray:
    """Timestamp column, or the row position when the frame carries none"""
    if 'timestamp' in df.columns:
        return df['timestamp'].to_numpy()
    return np.arange(len(df))


def keep_recent(items: Sequence[T], limit: int) -> List[T]:
    """Keep the `limit` most recent entries (oldest dropped)"""
    if limit <= 0:
        return []
    return list(items[-limit:])


def detect_swings(candles: CandleInput, lookback: int = DEFAULT_LOOKBACK) -> List[SwingPoint]:
    """
    Detect swing highs/lows confirmed by `lookback` candles on both sides

    A swing high must be strictly above every high in the window on each side
    (strictly below for lows), so plateaus of equal extremes yield nothing.
    """
    df = as_frame(candles)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    swings: List[SwingPoint] = []

    for i in range(lookback, len(df) - lookback):
        left_highs = highs[i - lookback:i]
        right_highs = highs[i + 1:i + lookback + 1]
        if (left_highs < highs[i]).all() and (right_highs < highs[i]).all():
            swings.append(SwingPoint(SwingKind.HIGH, float(highs[i]), i))

        left_lows = lows[i - lookback:i]
        right_lows = lows[i + 1:i + lookback + 1]
        if (left_lows > lows[i]).all() and (right_lows > lows[i]).all():
            swings.append(SwingPoint(SwingKind.LOW, float(lows[i]), i))

    logger.debug(f"Detected {len(swings)} swing points over {len(df)} candles")
    return swings


def detect_bos(swings: List[SwingPoint]) -> bool:
    """Break of Structure: last two swings share a kind and extend the move"""
    if len(swings) < 2:
        return False

    prev, last = swings[-2], swings[-1]
    if prev.kind == SwingKind.HIGH and last.kind == SwingKind.HIGH:
        return last.price > prev.price
    if prev.kind == SwingKind.LOW and last.kind == SwingKind.LOW:
        return last.price < prev.price
    return False


def detect_choch(swings: List[SwingPoint]) -> bool:
    """Change of Character: alternating swings where the new extreme fails"""
    if len(swings) < 3:
        return False

    first, middle, last = swings[-3:]
    # Bullish to bearish: lower high
    if first.kind == SwingKind.HIGH and middle.kind == SwingKind.LOW and last.kind == SwingKind.HIGH:
        return last.price < first.price
    # Bearish to bullish: higher low
    if first.kind == SwingKind.LOW and middle.kind == SwingKind.HIGH and last.kind == SwingKind.LOW:
        return last.price > first.price
    return False


def classify_structure(candles: CandleInput, swings: List[SwingPoint]) -> MarketStructure:
    """Derive trend, BOS and CHoCH from the most recent swings"""
    df = as_frame(candles)
    highs = [s.price for s in swings if s.kind == SwingKind.HIGH]
    lows = [s.price for s in swings if s.kind == SwingKind.LOW]

    if highs:
        last_swing_high = highs[-1]
    else:
        last_swing_high = float(df['high'].iloc[-1]) if len(df) else 0.0
    if lows:
        last_swing_low = lows[-1]
    else:
        last_swing_low = float(df['low'].iloc[-1]) if len(df) else 0.0

    trend = Trend.RANGING
    if len(highs) >= 2 and len(lows) >= 2:
        if highs[-1] > highs[-2] and lows[-1] > lows[-2]:
            trend = Trend.BULLISH
        elif highs[-1] < highs[-2] and lows[-1] < lows[-2]:
            trend = Trend.BEARISH

    return MarketStructure(
        trend=trend,
        broke_structure=detect_bos(swings),
        changed_character=detect_choch(swings),
        last_swing_high=last_swing_high,
        last_swing_low=last_swing_low
    )


def detect_order_blocks(candles: CandleInput,
                        min_strength: float = OB_MIN_STRENGTH,
                        edge_buffer: int = OB_EDGE_BUFFER,
                        max_blocks: int = MAX_ORDER_BLOCKS) -> List[OrderBlock]:
    """
    Detect Order Blocks: a candle followed by a much larger opposite candle

    strength = |body(i+1)| / |body(i)|, recorded only above `min_strength`.
    Candles within `edge_buffer` of either end are not scanned.
    """
    df = as_frame(candles)
    opens = df['open'].to_numpy(dtype=float)
    closes = df['close'].to_numpy(dtype=float)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    timestamps = _timestamps(df)
    blocks: List[OrderBlock] = []

    for i in range(edge_buffer, len(df) - edge_buffer):
        body = abs(closes[i] - opens[i])
        reaction = abs(closes[i + 1] - opens[i + 1])

        if closes[i] < opens[i] and closes[i + 1] > opens[i + 1]:
            kind, tag = Trend.BULLISH, 'bull'
        elif closes[i] > opens[i] and closes[i + 1] < opens[i + 1]:
            kind, tag = Trend.BEARISH, 'bear'
        else:
            continue

        strength = reaction / body
        if strength > min_strength:
            blocks.append(OrderBlock(
                id=f"ob_{tag}_{i}",
                kind=kind,
                high=float(highs[i]),
                low=float(lows[i]),
                timestamp=int(timestamps[i]),
                strength=float(strength),
                index=i
            ))

    logger.debug(f"Detected {len(blocks)} order blocks")
    return keep_recent(blocks, max_blocks)


def detect_fvg(candles: CandleInput, max_gaps: int = MAX_FVGS) -> List[FairValueGap]:
    """Detect Fair Value Gaps between the first and third candle of each triple"""
    df = as_frame(candles)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    timestamps = _timestamps(df)
    fvgs: List[FairValueGap] = []

    for i in range(1, len(df) - 1):
        # Bullish FVG: gap up, next low above previous high
        if lows[i + 1] > highs[i - 1]:
            fvgs.append(FairValueGap(
                id=f"fvg_bull_{i}",
                kind=Trend.BULLISH,
                upper=float(lows[i + 1]),
                lower=float(highs[i - 1]),
                start_time=int(timestamps[i - 1]),
                end_time=int(timestamps[i + 1]),
                index=i
            ))

        # Bearish FVG: gap down, next high below previous low
        if highs[i + 1] < lows[i - 1]:
            fvgs.append(FairValueGap(
                id=f"fvg_bear_{i}",
                kind=Trend.BEARISH,
                upper=float(lows[i - 1]),
                lower=float(highs[i + 1]),
                start_time=int(timestamps[i - 1]),
                end_time=int(timestamps[i + 1]),
                index=i
            ))

    logger.debug(f"Detected {len(fvgs)} fair value gaps")
    return keep_recent(fvgs, max_gaps)


def dedupe_pools(pools: List[LiquidityPool],
                 tolerance: float = LIQUIDITY_DEDUP_TOLERANCE) -> List[LiquidityPool]:
    """
    Drop pools priced within `tolerance` of an earlier pool (first one wins)

    The distance is taken relative to the later pool's price.
    """
    unique: List[LiquidityPool] = []
    seen_prices: List[float] = []

    for pool in pools:
        duplicate = any(abs(price - pool.price) < tolerance * pool.price for price in seen_prices)
        if not duplicate and pool.price > 0:
            unique.append(pool)
        if pool.price not in seen_prices:
            seen_prices.append(pool.price)

    return unique


def detect_liquidity_pools(candles: CandleInput,
                           window: int = LIQUIDITY_WINDOW,
                           tolerance: float = LIQUIDITY_TOLERANCE,
                           min_touches: int = LIQUIDITY_MIN_TOUCHES,
                           dedup_tolerance: float = LIQUIDITY_DEDUP_TOLERANCE,
                           max_pools: int = MAX_LIQUIDITY_POOLS) -> List[LiquidityPool]:
    """
    Detect equal highs (sell-side) and equal lows (buy-side) liquidity

    Each window covers candles[i - window:i]. A level touched at least
    `min_touches` times within `tolerance` of the window extreme becomes
    a pool whose strength is the touch count.
    """
    df = as_frame(candles)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    pools: List[LiquidityPool] = []

    for i in range(window, len(df)):
        segment_highs = highs[i - window:i]
        max_high = segment_highs.max()
        equal_highs = int((np.abs(segment_highs - max_high) < tolerance * max_high).sum())
        if equal_highs >= min_touches:
            pools.append(LiquidityPool(
                id=f"liq_sell_{i}",
                kind=PoolKind.SELL_SIDE,
                price=float(max_high),
                strength=equal_highs,
                index=i
            ))

        segment_lows = lows[i - window:i]
        min_low = segment_lows.min()
        equal_lows = int((np.abs(segment_lows - min_low) < tolerance * min_low).sum())
        if equal_lows >= min_touches:
            pools.append(LiquidityPool(
                id=f"liq_buy_{i}",
                kind=PoolKind.BUY_SIDE,
                price=float(min_low),
                strength=equal_lows,
                index=i
            ))

    unique = dedupe_pools(pools, dedup_tolerance)
    logger.debug(f"Detected {len(pools)} liquidity pools, {len(unique)} after dedup")
    return keep_recent(unique, max_pools)


def support_resistance(swings: List[SwingPoint], levels: int = SR_LEVELS) -> Tuple[List[float], List[float]]:
    """Most recent swing lows (support) and swing highs (resistance), oldest first"""
    support = [s.price for s in swings if s.kind == SwingKind.LOW]
    resistance = [s.price for s in swings if s.kind == SwingKind.HIGH]
    return keep_recent(support, levels), keep_recent(resistance, levels)
