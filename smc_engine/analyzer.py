"""
SMC analysis pipeline: candles in, AnalysisResult out
"""
import asyncio
import logging
from typing import Dict, Optional

from smc_config import EngineConfig, get_config

from .data_loader import CandleInput, InvalidInputError, candles_to_frame, validate_candles
from .market_report import (
    assess_risks_and_opportunities, calculate_confidence, calculate_sentiment, generate_summary
)
from .mitigation import track_zones
from .models import AnalysisResult
from .signal_generator import generate_setups
from .smc_detector import (
    classify_structure, detect_fvg, detect_liquidity_pools, detect_order_blocks,
    detect_swings, support_resistance
)

logger = logging.getLogger(__name__)


def analyze_market(candles: CandleInput, config: Optional[EngineConfig] = None) -> AnalysisResult:
    """
    Run every detector over one candle slice and synthesize the result

    Args:
        candles: Chronologically ordered candles (Candle objects, dicts or DataFrame)
        config: Engine configuration, process default when omitted

    Returns:
        A fresh AnalysisResult; identical input always yields an identical result

    Raises:
        InvalidInputError: before any processing, for an empty or malformed sequence
    """
    config = config or get_config()
    df = candles_to_frame(candles)

    if config.validate_input:
        validate_candles(df)
    elif df.empty:
        raise InvalidInputError("At least one candle is required")

    swings = detect_swings(df, config.swing_lookback)
    structure = classify_structure(df, swings)
    order_blocks = detect_order_blocks(
        df,
        min_strength=config.ob_min_strength,
        edge_buffer=config.ob_edge_buffer,
        max_blocks=config.max_order_blocks
    )
    fvgs = detect_fvg(df, max_gaps=config.max_fvgs)
    pools = detect_liquidity_pools(
        df,
        window=config.liquidity_window,
        tolerance=config.liquidity_tolerance,
        min_touches=config.liquidity_min_touches,
        dedup_tolerance=config.liquidity_dedup_tolerance,
        max_pools=config.max_liquidity_pools
    )
    support, resistance = support_resistance(swings, config.sr_levels)

    if config.track_mitigation:
        order_blocks, fvgs, pools = track_zones(df, order_blocks, fvgs, pools)

    setups = generate_setups(
        structure, order_blocks, fvgs, pools, support, resistance,
        current_price=float(df['close'].iloc[-1]),
        timestamp=int(df['timestamp'].iloc[-1]),
        mirror_bearish=config.mirror_bearish_setups,
        support_proximity=config.support_proximity
    )

    sentiment = calculate_sentiment(structure, setups)
    confidence = calculate_confidence(setups)
    risks, opportunities = assess_risks_and_opportunities(
        structure, setups,
        high_rr_threshold=config.high_rr_threshold,
        high_confidence_threshold=config.high_confidence_threshold
    )

    logger.info(
        f"Analyzed {len(df)} candles: trend={structure.trend.value}, "
        f"OBs={len(order_blocks)}, FVGs={len(fvgs)}, pools={len(pools)}, "
        f"setups={len(setups)}, confidence={confidence}"
    )

    return AnalysisResult(
        market_structure=structure,
        order_blocks=order_blocks,
        fair_value_gaps=fvgs,
        liquidity_pools=pools,
        trade_setups=setups,
        support_levels=support,
        resistance_levels=resistance,
        sentiment=sentiment,
        confidence=confidence,
        summary=generate_summary(structure, sentiment, confidence),
        risks=risks,
        opportunities=opportunities
    )


async def analyze_many(universe: Dict[str, CandleInput],
                       config: Optional[EngineConfig] = None,
                       max_concurrency: int = 4) -> Dict[str, AnalysisResult]:
    """
    Analyze several symbols concurrently, each in a worker thread

    Args:
        universe: Symbol -> candles mapping
        config: Shared engine configuration
        max_concurrency: Maximum analyses running at once

    Returns:
        Symbol -> AnalysisResult, in the order of `universe`
    """
    config = config or get_config()
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def _run(symbol: str, candles: CandleInput):
        async with semaphore:
            try:
                result = await asyncio.to_thread(analyze_market, candles, config)
            except InvalidInputError as e:
                logger.error(f"Invalid candles for {symbol}: {e}")
                raise
            return symbol, result

    results = await asyncio.gather(*(_run(symbol, candles) for symbol, candles in universe.items()))
    return dict(results)
