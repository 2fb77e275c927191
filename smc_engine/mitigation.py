"""
Zone tracking: mark order blocks mitigated, gaps filled and pools swept

Detectors create every zone untouched. These helpers re-scan the candles
that follow each zone and return updated copies; inputs are left as-is.
"""
import logging
from typing import List, Tuple

from .data_loader import CandleInput
from .models import FairValueGap, LiquidityPool, OrderBlock, PoolKind, Trend
from .smc_detector import as_frame

logger = logging.getLogger(__name__)


def mark_mitigated_order_blocks(candles: CandleInput, order_blocks: List[OrderBlock]) -> List[OrderBlock]:
    """An order block is mitigated once price trades back into it after the reaction candle"""
    df = as_frame(candles)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)

    tracked = []
    for ob in order_blocks:
        start = ob.index + 2
        touched = (lows[start:] <= ob.high) & (highs[start:] >= ob.low)
        tracked.append(ob.with_mitigated(bool(touched.any())))
    return tracked


def mark_filled_fvgs(candles: CandleInput, fvgs: List[FairValueGap]) -> List[FairValueGap]:
    """A gap is filled once a later candle trades through its far edge"""
    df = as_frame(candles)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)

    tracked = []
    for fvg in fvgs:
        # fvg.index is the middle candle; the gap closes at index + 1
        start = fvg.index + 2
        if fvg.kind == Trend.BULLISH:
            filled = (lows[start:] <= fvg.lower).any()
        else:
            filled = (highs[start:] >= fvg.upper).any()
        tracked.append(fvg.with_filled(bool(filled)))
    return tracked


def mark_swept_pools(candles: CandleInput, pools: List[LiquidityPool]) -> List[LiquidityPool]:
    """A pool is swept once price trades beyond it after its detection window"""
    df = as_frame(candles)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)

    tracked = []
    for pool in pools:
        # pool.index is the first candle after the window
        if pool.kind == PoolKind.SELL_SIDE:
            swept = (highs[pool.index:] > pool.price).any()
        else:
            swept = (lows[pool.index:] < pool.price).any()
        tracked.append(pool.with_swept(bool(swept)))
    return tracked


def track_zones(candles: CandleInput,
                order_blocks: List[OrderBlock],
                fvgs: List[FairValueGap],
                pools: List[LiquidityPool]) -> Tuple[List[OrderBlock], List[FairValueGap], List[LiquidityPool]]:
    """Update every zone's flag against the candles that follow it"""
    df = as_frame(candles)
    order_blocks = mark_mitigated_order_blocks(df, order_blocks)
    fvgs = mark_filled_fvgs(df, fvgs)
    pools = mark_swept_pools(df, pools)

    logger.debug(
        f"Zone tracking: {sum(ob.mitigated for ob in order_blocks)}/{len(order_blocks)} OBs mitigated, "
        f"{sum(f.filled for f in fvgs)}/{len(fvgs)} FVGs filled, "
        f"{sum(p.swept for p in pools)}/{len(pools)} pools swept"
    )
    return order_blocks, fvgs, pools
