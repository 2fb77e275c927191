import pandas as pd
import pytest

from smc_engine.models import PoolKind, SwingKind, Trend
from smc_engine.smc_detector import (
    dedupe_pools, detect_fvg, detect_liquidity_pools, detect_order_blocks,
    detect_swings, keep_recent, support_resistance
)
from smc_engine.models import LiquidityPool

from conftest import BASE_TS, MINUTE_MS


def fvg_frame(rows):
    return pd.DataFrame(
        [(BASE_TS + i * MINUTE_MS, *row) for i, row in enumerate(rows)],
        columns=["timestamp", "open", "high", "low", "close"]
    )


def test_detect_fvg_bullish():
    df = fvg_frame([(50.0, 51.0, 49.5, 50.8), (50.8, 53.0, 50.6, 52.9), (52.9, 54.0, 51.7, 53.6)])
    fvgs = detect_fvg(df)
    assert len(fvgs) == 1
    fvg = fvgs[0]
    assert (fvg.kind, fvg.id, fvg.index) == (Trend.BULLISH, "fvg_bull_1", 1)
    assert fvg.upper == 51.7
    assert fvg.lower == 51.0
    assert (fvg.start_time, fvg.end_time) == (BASE_TS, BASE_TS + 2 * MINUTE_MS)
    assert fvg.filled is False


def test_detect_fvg_bearish():
    df = fvg_frame([(80.0, 80.4, 79.0, 79.2), (79.2, 79.3, 76.5, 76.8), (76.8, 77.6, 75.9, 76.1)])
    fvgs = detect_fvg(df)
    assert len(fvgs) == 1
    fvg = fvgs[0]
    assert (fvg.kind, fvg.id) == (Trend.BEARISH, "fvg_bear_1")
    assert fvg.upper == 79.0
    assert fvg.lower == 77.6
    assert fvg.end_time - fvg.start_time == 2 * MINUTE_MS


def test_detect_fvg_times_come_from_outer_candles(make_candles):
    candles = make_candles([(20, 20.5, 19.6, 20.2), (20.2, 21.8, 20.1, 21.7), (21.7, 22.4, 20.9, 22.1)])
    fvg = detect_fvg(candles)[0]
    assert fvg.start_time == candles[0].timestamp
    assert fvg.end_time == candles[2].timestamp


def test_detect_fvg_keeps_most_recent_fifteen(gap_up_candles):
    fvgs = detect_fvg(gap_up_candles)
    assert len(fvgs) == 15
    assert all(f.kind == Trend.BULLISH for f in fvgs)
    assert fvgs[-1].id == "fvg_bull_58"
    assert fvgs[0].id == "fvg_bull_44"


def test_detect_fvg_short_input():
    assert detect_fvg([]) == []
    df = pd.DataFrame({"open": [1, 2], "high": [1, 2], "low": [1, 2], "close": [1, 2]})
    assert detect_fvg(df) == []


def test_detect_swings_finds_isolated_peak_and_trough(make_candles):
    rows = [(100, 101, 99, 100)] * 5 + [(100, 110, 99, 100)] + [(100, 101, 99, 100)] * 5
    swings = detect_swings(make_candles(rows))
    assert len(swings) == 1
    assert swings[0].kind == SwingKind.HIGH
    assert swings[0].price == 110
    assert swings[0].index == 5

    rows = [(100, 101, 99, 100)] * 5 + [(100, 101, 90, 100)] + [(100, 101, 99, 100)] * 5
    swings = detect_swings(make_candles(rows))
    assert [(s.kind, s.price, s.index) for s in swings] == [(SwingKind.LOW, 90, 5)]


def test_detect_swings_plateau_is_not_a_swing(make_candles):
    rows = [(100, 101, 99, 100)] * 5 + [(100, 110, 99, 100)] * 2 + [(100, 101, 99, 100)] * 5
    assert detect_swings(make_candles(rows)) == []


@pytest.mark.parametrize("count", [0, 1, 5, 10])
def test_detect_swings_needs_more_than_two_lookbacks(make_candles, count):
    rows = [(100, 100 + i % 3, 99 - i % 3, 100) for i in range(count)]
    assert detect_swings(make_candles(rows)) == []


def test_detect_swings_mirror_symmetry(random_walk):
    df = random_walk(200, seed=7)
    mirrored = df.copy()
    mirrored['high'] = -df['low']
    mirrored['low'] = -df['high']
    mirrored['open'] = -df['open']
    mirrored['close'] = -df['close']

    swings = detect_swings(df)
    mirrored_swings = detect_swings(mirrored)

    assert swings
    flipped = {SwingKind.HIGH: SwingKind.LOW, SwingKind.LOW: SwingKind.HIGH}
    assert sorted((s.index, flipped[s.kind], -s.price) for s in swings) == \
        sorted((s.index, s.kind, s.price) for s in mirrored_swings)


def test_detect_swings_custom_lookback(uptrend_candles):
    assert len(detect_swings(uptrend_candles, lookback=5)) == 9
    # A wider window drops the first peak and the last one
    swings = detect_swings(uptrend_candles, lookback=7)
    assert [s.index for s in swings] == [12, 18, 24, 30, 36, 42, 48]


def test_detect_order_blocks_bullish_strength(make_candles):
    pad = [(100, 100.5, 99.5, 100)] * 5
    rows = pad + [(110, 111, 99, 100), (100, 131, 99.5, 130)] + pad
    blocks = detect_order_blocks(make_candles(rows))
    assert len(blocks) == 1
    ob = blocks[0]
    assert ob.kind == Trend.BULLISH
    assert ob.strength == pytest.approx(3.0)
    assert ob.high == 111
    assert ob.low == 99
    assert ob.id == "ob_bull_5"
    assert ob.mitigated is False


def test_detect_order_blocks_bearish(make_candles):
    pad = [(100, 100.5, 99.5, 100)] * 5
    rows = pad + [(100, 111, 99.5, 110), (110, 110.5, 79, 80)] + pad
    blocks = detect_order_blocks(make_candles(rows))
    assert [(b.kind, b.strength) for b in blocks] == [(Trend.BEARISH, pytest.approx(3.0))]


def test_detect_order_blocks_requires_strength_above_threshold(make_candles):
    pad = [(100, 100.5, 99.5, 100)] * 5
    # reaction body exactly 1.5x is not enough
    rows = pad + [(110, 111, 99, 100), (100, 116, 99.5, 115)] + pad
    assert detect_order_blocks(make_candles(rows)) == []


def test_detect_order_blocks_ignores_edges(make_candles):
    rows = [(110, 111, 99, 100), (100, 131, 99.5, 130)] + [(100, 100.5, 99.5, 100)] * 10
    assert detect_order_blocks(make_candles(rows)) == []


def test_detect_order_blocks_keeps_most_recent_ten(make_candles):
    rows = [(100, 100.5, 99.5, 100)] * 5
    for _ in range(15):
        rows += [(101, 101.5, 99.5, 100), (100, 104.5, 99.5, 104), (100, 100.5, 99.5, 100)]
    rows += [(100, 100.5, 99.5, 100)] * 5
    blocks = detect_order_blocks(make_candles(rows))
    assert len(blocks) == 10
    assert blocks[-1].index == 5 + 14 * 3


def test_liquidity_pool_equal_highs(make_candles):
    rows = [(100, 105, 90 + i * 0.3, 100) for i in range(20)]
    rows += [(100, 102 + i * 0.1, 96 + i * 0.3, 100) for i in range(5)]
    pools = detect_liquidity_pools(make_candles(rows))
    sell = [p for p in pools if p.kind == PoolKind.SELL_SIDE]
    assert len(sell) == 1
    assert sell[0].price == 105
    assert sell[0].strength == 20
    assert sell[0].id == "liq_sell_20"
    assert sell[0].swept is False


def test_liquidity_pool_equal_lows(make_candles):
    rows = [(95.1, 110 - i * 0.3, 95, 95.1) for i in range(3)]
    rows += [(96.1 + i * 0.2, 110 - i * 0.3, 96 + i * 0.2, 96.1 + i * 0.2) for i in range(3, 22)]
    pools = detect_liquidity_pools(make_candles(rows))
    buy = [p for p in pools if p.kind == PoolKind.BUY_SIDE]
    assert len(buy) == 1
    assert buy[0].price == 95
    assert buy[0].strength == 3


def test_liquidity_pool_needs_three_touches(make_candles):
    rows = [(80.1 + i * 0.3, 105 if i < 2 else 100 - i * 0.2, 80 + i * 0.3, 80.1 + i * 0.3) for i in range(25)]
    pools = detect_liquidity_pools(make_candles(rows))
    assert [p for p in pools if p.kind == PoolKind.SELL_SIDE] == []


def test_liquidity_pool_flat_market_dedupes_across_sides(flat_candles):
    pools = detect_liquidity_pools(flat_candles)
    # sell-side and buy-side pools sit at the same price, the first one wins
    assert len(pools) == 1
    assert pools[0].kind == PoolKind.SELL_SIDE
    assert pools[0].strength == 20


def test_liquidity_pool_short_input(make_candles):
    rows = [(100, 105, 95, 100)] * 20
    assert detect_liquidity_pools(make_candles(rows)) == []


def test_dedupe_pools_first_occurrence_wins():
    pools = [
        LiquidityPool("a", PoolKind.SELL_SIDE, 100.0, 3, 20),
        LiquidityPool("b", PoolKind.SELL_SIDE, 100.15, 4, 21),
        LiquidityPool("c", PoolKind.BUY_SIDE, 95.0, 3, 22),
        LiquidityPool("d", PoolKind.SELL_SIDE, 100.5, 3, 23),
    ]
    assert [p.id for p in dedupe_pools(pools)] == ["a", "c", "d"]


def test_support_resistance_most_recent_five(uptrend_candles):
    swings = detect_swings(uptrend_candles)
    support, resistance = support_resistance(swings)
    assert support == [102.5, 105.5, 108.5, 111.5]
    assert resistance == [112.5, 115.5, 118.5, 121.5, 124.5]

    support, resistance = support_resistance(swings, levels=2)
    assert support == [108.5, 111.5]
    assert resistance == [121.5, 124.5]


def test_keep_recent_limits():
    assert keep_recent([1, 2, 3], 2) == [2, 3]
    assert keep_recent([1, 2, 3], 5) == [1, 2, 3]
    assert keep_recent([1, 2, 3], 0) == []
