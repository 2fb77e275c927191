"""
SMC structure engine: market-structure and pattern detection on price candles
"""

from .models import (
    AnalysisResult, Candle, Direction, FairValueGap, LiquidityPool, MarketStructure,
    OrderBlock, PoolKind, Sentiment, SwingKind, SwingPoint, TradeSetup, Trend
)
from .data_loader import InvalidInputError, candles_to_frame, load_csv, validate_candles
from .smc_detector import (
    classify_structure, detect_bos, detect_choch, detect_fvg, detect_liquidity_pools,
    detect_order_blocks, detect_swings, support_resistance
)
from .mitigation import track_zones
from .signal_generator import generate_setups
from .analyzer import analyze_many, analyze_market

__all__ = [
    'AnalysisResult', 'Candle', 'Direction', 'FairValueGap', 'LiquidityPool',
    'MarketStructure', 'OrderBlock', 'PoolKind', 'Sentiment', 'SwingKind',
    'SwingPoint', 'TradeSetup', 'Trend',
    'InvalidInputError', 'candles_to_frame', 'load_csv', 'validate_candles',
    'classify_structure', 'detect_bos', 'detect_choch', 'detect_fvg',
    'detect_liquidity_pools', 'detect_order_blocks', 'detect_swings',
    'support_resistance', 'track_zones', 'generate_setups',
    'analyze_many', 'analyze_market'
]
