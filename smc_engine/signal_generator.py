"""
Trade setup generation from SMC confluences
"""
import logging
from typing import List, Optional

from .models import (
    Direction, FairValueGap, LiquidityPool, MarketStructure, OrderBlock,
    PoolKind, TradeSetup, Trend
)

logger = logging.getLogger(__name__)

# Order Block + FVG confluence
OB_FVG_STOP_BUFFER = 0.002
OB_FVG_TARGETS = (0.015, 0.03, 0.05)
OB_FVG_CONFIDENCE = 85

# Liquidity sweep + BOS
SWEEP_ENTRY_OFFSET = 0.002
SWEEP_STOP_OFFSET = 0.005
SWEEP_TARGETS = (0.02, 0.04)
SWEEP_CONFIDENCE = 78

# Support bounce / resistance rejection
BOUNCE_ENTRY_OFFSET = 0.002
BOUNCE_STOP_OFFSET = 0.005
BOUNCE_TARGETS = (0.015, 0.03)
BOUNCE_FALLBACK_TARGET = 0.05
BOUNCE_CONFIDENCE = 72
SUPPORT_PROXIMITY = 0.005


def risk_reward(entry: float, stop: float, target: float, direction: Direction) -> float:
    """Reward to `target` over risk to `stop`; 0 when the stop is on the wrong side"""
    if direction == Direction.BUY:
        risk, reward = entry - stop, target - entry
    else:
        risk, reward = stop - entry, entry - target
    return reward / risk if risk > 0 else 0.0


def _build_setup(rule: int, direction: Direction, technique: str, entry: float, stop: float,
                 targets: List[float], confidence: int, reasoning: str, timestamp: int) -> TradeSetup:
    tp1, tp2, tp3 = targets
    return TradeSetup(
        id=f"setup_{timestamp}_{rule}",
        direction=direction,
        technique=technique,
        entry=entry,
        stop_loss=stop,
        take_profit1=tp1,
        take_profit2=tp2,
        take_profit3=tp3,
        risk_reward_ratio=risk_reward(entry, stop, tp2, direction),
        confidence=confidence,
        reasoning=reasoning,
        timestamp=timestamp
    )


def _nearest_above(levels: List[float], price: float) -> Optional[float]:
    above = [level for level in levels if level > price]
    return min(above) if above else None


def _nearest_below(levels: List[float], price: float) -> Optional[float]:
    below = [level for level in levels if level < price]
    return max(below) if below else None


def _ob_fvg_confluence(structure: MarketStructure, order_blocks: List[OrderBlock],
                       fvgs: List[FairValueGap], kind: Trend, timestamp: int) -> Optional[TradeSetup]:
    blocks = [ob for ob in order_blocks if ob.kind == kind and not ob.mitigated]
    gaps = [fvg for fvg in fvgs if fvg.kind == kind and not fvg.filled]
    if not blocks or not gaps or structure.trend != kind:
        return None

    ob = blocks[0]
    entry = ob.midpoint
    if kind == Trend.BULLISH:
        stop = ob.low * (1 - OB_FVG_STOP_BUFFER)
        targets = [entry * (1 + t) for t in OB_FVG_TARGETS]
        return _build_setup(
            1, Direction.BUY, 'Order Block + FVG Confluence', entry, stop, targets, OB_FVG_CONFIDENCE,
            'Bullish order block aligned with fair value gap in uptrend. '
            'Strong institutional support expected.',
            timestamp
        )

    stop = ob.high * (1 + OB_FVG_STOP_BUFFER)
    targets = [entry * (1 - t) for t in OB_FVG_TARGETS]
    return _build_setup(
        4, Direction.SELL, 'Order Block + FVG Confluence', entry, stop, targets, OB_FVG_CONFIDENCE,
        'Bearish order block aligned with fair value gap in downtrend. '
        'Institutional distribution expected to cap price.',
        timestamp
    )


def _liquidity_sweep(structure: MarketStructure, pools: List[LiquidityPool],
                     kind: PoolKind, timestamp: int) -> Optional[TradeSetup]:
    trend = Trend.BULLISH if kind == PoolKind.BUY_SIDE else Trend.BEARISH
    candidates = [pool for pool in pools if pool.kind == kind and not pool.swept]
    if not candidates or not structure.broke_structure or structure.trend != trend:
        return None

    pool = candidates[0]
    if kind == PoolKind.BUY_SIDE:
        entry = pool.price * (1 + SWEEP_ENTRY_OFFSET)
        stop = pool.price * (1 - SWEEP_STOP_OFFSET)
        targets = [entry * (1 + t) for t in SWEEP_TARGETS] + [structure.last_swing_high]
        return _build_setup(
            2, Direction.BUY, 'Liquidity Sweep + BOS', entry, stop, targets, SWEEP_CONFIDENCE,
            'Buy-side liquidity sweep followed by break of structure. '
            'Institutional accumulation zone.',
            timestamp
        )

    entry = pool.price * (1 - SWEEP_ENTRY_OFFSET)
    stop = pool.price * (1 + SWEEP_STOP_OFFSET)
    targets = [entry * (1 - t) for t in SWEEP_TARGETS] + [structure.last_swing_low]
    return _build_setup(
        5, Direction.SELL, 'Liquidity Sweep + BOS', entry, stop, targets, SWEEP_CONFIDENCE,
        'Sell-side liquidity sweep followed by break of structure. '
        'Institutional distribution zone.',
        timestamp
    )


def _support_bounce(support: List[float], resistance: List[float], current_price: float,
                    proximity: float, timestamp: int) -> Optional[TradeSetup]:
    """Bounce zone is [support, support * (1 + proximity)]; a close below support is not a bounce"""
    if not support:
        return None

    level = support[-1]
    if not level <= current_price <= level * (1 + proximity):
        return None

    entry = level * (1 + BOUNCE_ENTRY_OFFSET)
    stop = level * (1 - BOUNCE_STOP_OFFSET)
    tp3 = _nearest_above(resistance, entry)
    targets = [entry * (1 + t) for t in BOUNCE_TARGETS]
    targets.append(tp3 if tp3 is not None else entry * (1 + BOUNCE_FALLBACK_TARGET))
    return _build_setup(
        3, Direction.BUY, 'Support Zone Bounce', entry, stop, targets, BOUNCE_CONFIDENCE,
        'Price testing strong support level. '
        'High probability bounce expected based on historical data.',
        timestamp
    )


def _resistance_rejection(support: List[float], resistance: List[float], current_price: float,
                          proximity: float, timestamp: int) -> Optional[TradeSetup]:
    if not resistance:
        return None

    level = resistance[-1]
    if not level * (1 - proximity) <= current_price <= level:
        return None

    entry = level * (1 - BOUNCE_ENTRY_OFFSET)
    stop = level * (1 + BOUNCE_STOP_OFFSET)
    tp3 = _nearest_below(support, entry)
    targets = [entry * (1 - t) for t in BOUNCE_TARGETS]
    targets.append(tp3 if tp3 is not None else entry * (1 - BOUNCE_FALLBACK_TARGET))
    return _build_setup(
        6, Direction.SELL, 'Resistance Zone Rejection', entry, stop, targets, BOUNCE_CONFIDENCE,
        'Price testing strong resistance level. '
        'Rejection expected based on historical data.',
        timestamp
    )


def generate_setups(structure: MarketStructure,
                    order_blocks: List[OrderBlock],
                    fvgs: List[FairValueGap],
                    liquidity_pools: List[LiquidityPool],
                    support: List[float],
                    resistance: List[float],
                    current_price: float,
                    timestamp: int = 0,
                    mirror_bearish: bool = False,
                    support_proximity: float = SUPPORT_PROXIMITY) -> List[TradeSetup]:
    """
    Generate trade setups from independent confluence rules

    Args:
        structure: Classified market structure
        order_blocks: Detected order blocks
        fvgs: Detected fair value gaps
        liquidity_pools: Detected liquidity pools
        support: Support levels, oldest first
        resistance: Resistance levels, oldest first
        current_price: Close of the last candle
        timestamp: Timestamp stamped on every setup (last candle's)
        mirror_bearish: Also evaluate the SELL mirror of each rule
        support_proximity: Bounce zone width above support / below resistance

    Returns:
        Setups in rule order; BUY rules first
    """
    candidates = [
        _ob_fvg_confluence(structure, order_blocks, fvgs, Trend.BULLISH, timestamp),
        _liquidity_sweep(structure, liquidity_pools, PoolKind.BUY_SIDE, timestamp),
        _support_bounce(support, resistance, current_price, support_proximity, timestamp),
    ]

    if mirror_bearish:
        candidates += [
            _ob_fvg_confluence(structure, order_blocks, fvgs, Trend.BEARISH, timestamp),
            _liquidity_sweep(structure, liquidity_pools, PoolKind.SELL_SIDE, timestamp),
            _resistance_rejection(support, resistance, current_price, support_proximity, timestamp),
        ]

    setups = [setup for setup in candidates if setup is not None]
    logger.debug(f"Generated {len(setups)} trade setups at price {current_price}")
    return setups
