"""
Sentiment, confidence and narrative synthesis for an analysis run
"""
import math
from typing import List, Tuple

from .models import Direction, MarketStructure, Sentiment, TradeSetup, Trend

HIGH_RR_THRESHOLD = 2.0
HIGH_CONFIDENCE_THRESHOLD = 80

RISK_CHOCH = 'Change of character detected - trend reversal possible'
RISK_NO_SETUPS = 'No high-confidence setups available'
RISK_RANGING = 'Market in consolidation - choppy price action expected'
OPPORTUNITY_MOMENTUM = 'Strong momentum with valid trade setups'
OPPORTUNITY_HIGH_RR = 'High risk-reward setups available'
OPPORTUNITY_HIGH_CONFIDENCE = 'High-confidence institutional patterns detected'


def calculate_sentiment(structure: MarketStructure, setups: List[TradeSetup]) -> Sentiment:
    """Trend direction confirmed by a majority of setups on the same side"""
    buys = sum(1 for s in setups if s.direction == Direction.BUY)
    sells = sum(1 for s in setups if s.direction == Direction.SELL)

    if structure.trend == Trend.BULLISH and buys > sells:
        return Sentiment.BULLISH
    if structure.trend == Trend.BEARISH and sells > buys:
        return Sentiment.BEARISH
    return Sentiment.NEUTRAL


def calculate_confidence(setups: List[TradeSetup]) -> int:
    """Mean setup confidence rounded half-up, 0 without setups"""
    if not setups:
        return 0
    average = sum(s.confidence for s in setups) / len(setups)
    return int(math.floor(average + 0.5))


def generate_summary(structure: MarketStructure, sentiment: Sentiment, confidence: int) -> str:
    bos_text = 'Break of Structure confirmed' if structure.broke_structure else 'No BOS detected'
    choch_text = 'Change of Character detected' if structure.changed_character else 'Structure intact'
    return (
        f"Market showing {structure.trend.value.upper()} trend with {confidence}% confidence. "
        f"{bos_text}. {choch_text}. Overall sentiment: {sentiment.value}."
    )


def assess_risks_and_opportunities(structure: MarketStructure,
                                   setups: List[TradeSetup],
                                   high_rr_threshold: float = HIGH_RR_THRESHOLD,
                                   high_confidence_threshold: int = HIGH_CONFIDENCE_THRESHOLD
                                   ) -> Tuple[List[str], List[str]]:
    risks = []
    opportunities = []

    if structure.changed_character:
        risks.append(RISK_CHOCH)
    if not setups:
        risks.append(RISK_NO_SETUPS)
    if structure.trend == Trend.RANGING:
        risks.append(RISK_RANGING)

    if structure.broke_structure and setups:
        opportunities.append(OPPORTUNITY_MOMENTUM)
    if any(s.risk_reward_ratio > high_rr_threshold for s in setups):
        opportunities.append(OPPORTUNITY_HIGH_RR)
    if any(s.confidence > high_confidence_threshold for s in setups):
        opportunities.append(OPPORTUNITY_HIGH_CONFIDENCE)

    return risks, opportunities
