"""
Data models for the Smart Money Concepts structure engine
"""
import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional


class Trend(str, Enum):
    """Market direction, also used as the kind of order blocks and FVGs"""
    BULLISH = "bullish"
    BEARISH = "bearish"
    RANGING = "ranging"


class SwingKind(str, Enum):
    HIGH = "high"
    LOW = "low"


class PoolKind(str, Enum):
    """Side of the book the resting liquidity sits on"""
    BUY_SIDE = "buy"
    SELL_SIDE = "sell"


class Direction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class Sentiment(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Candle:
    """Single OHLC(V) bar, timestamp in ms since epoch"""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp,
            'open': self.open,
            'high': self.high,
            'low': self.low,
            'close': self.close,
            'volume': self.volume
        }


@dataclass(frozen=True)
class SwingPoint:
    """Local pivot high/low confirmed by `lookback` candles on both sides"""
    kind: SwingKind
    price: float
    index: int


@dataclass(frozen=True)
class OrderBlock:
    """Candle preceding a disproportionately strong opposite move"""
    id: str
    kind: Trend  # BULLISH or BEARISH
    high: float
    low: float
    timestamp: int
    strength: float
    index: int
    mitigated: bool = False

    @property
    def midpoint(self) -> float:
        return (self.high + self.low) / 2

    def with_mitigated(self, mitigated: bool = True) -> 'OrderBlock':
        return replace(self, mitigated=mitigated)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'kind': self.kind.value,
            'high': self.high,
            'low': self.low,
            'timestamp': self.timestamp,
            'strength': self.strength,
            'mitigated': self.mitigated,
            'index': self.index
        }


@dataclass(frozen=True)
class FairValueGap:
    """Three-candle imbalance between the first and third candle ranges"""
    id: str
    kind: Trend  # BULLISH or BEARISH
    upper: float
    lower: float
    start_time: int
    end_time: int
    index: int
    filled: bool = False

    def with_filled(self, filled: bool = True) -> 'FairValueGap':
        return replace(self, filled=filled)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'kind': self.kind.value,
            'upper': self.upper,
            'lower': self.lower,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'filled': self.filled,
            'index': self.index
        }


@dataclass(frozen=True)
class LiquidityPool:
    """Cluster of equal highs/lows presumed to hold resting orders"""
    id: str
    kind: PoolKind
    price: float
    strength: int
    index: int
    swept: bool = False

    def with_swept(self, swept: bool = True) -> 'LiquidityPool':
        return replace(self, swept=swept)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'kind': self.kind.value,
            'price': self.price,
            'strength': self.strength,
            'swept': self.swept,
            'index': self.index
        }


@dataclass(frozen=True)
class MarketStructure:
    trend: Trend
    broke_structure: bool
    changed_character: bool
    last_swing_high: float
    last_swing_low: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trend': self.trend.value,
            'brokeStructure': self.broke_structure,
            'changedCharacter': self.changed_character,
            'lastSwingHigh': self.last_swing_high,
            'lastSwingLow': self.last_swing_low
        }


@dataclass(frozen=True)
class TradeSetup:
    """Trade idea produced by a confluence rule"""
    id: str
    direction: Direction
    technique: str
    entry: float
    stop_loss: float
    take_profit1: float
    take_profit2: float
    take_profit3: float
    risk_reward_ratio: float
    confidence: int
    reasoning: str
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'direction': self.direction.value,
            'technique': self.technique,
            'entry': self.entry,
            'stopLoss': self.stop_loss,
            'takeProfit1': self.take_profit1,
            'takeProfit2': self.take_profit2,
            'takeProfit3': self.take_profit3,
            'riskRewardRatio': self.risk_reward_ratio,
            'confidence': self.confidence,
            'reasoning': self.reasoning,
            'timestamp': self.timestamp
        }


@dataclass
class AnalysisResult:
    """Everything derived from one candle slice"""
    market_structure: MarketStructure
    order_blocks: List[OrderBlock] = field(default_factory=list)
    fair_value_gaps: List[FairValueGap] = field(default_factory=list)
    liquidity_pools: List[LiquidityPool] = field(default_factory=list)
    trade_setups: List[TradeSetup] = field(default_factory=list)
    support_levels: List[float] = field(default_factory=list)
    resistance_levels: List[float] = field(default_factory=list)
    sentiment: Sentiment = Sentiment.NEUTRAL
    confidence: int = 0
    summary: str = ""
    risks: List[str] = field(default_factory=list)
    opportunities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses"""
        return {
            'marketStructure': self.market_structure.to_dict(),
            'orderBlocks': [ob.to_dict() for ob in self.order_blocks],
            'fairValueGaps': [fvg.to_dict() for fvg in self.fair_value_gaps],
            'liquidityPools': [pool.to_dict() for pool in self.liquidity_pools],
            'tradeSetups': [setup.to_dict() for setup in self.trade_setups],
            'supportLevels': list(self.support_levels),
            'resistanceLevels': list(self.resistance_levels),
            'sentiment': self.sentiment.value,
            'confidence': self.confidence,
            'summary': self.summary,
            'risks': list(self.risks),
            'opportunities': list(self.opportunities)
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)
