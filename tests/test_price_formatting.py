#!/usr/bin/env python3
"""
Test price formatting and terminal rendering for different price magnitudes
"""
import pytest
from rich.console import Console

from smc_engine.analyzer import analyze_market
from smc_engine.terminal_report import format_price, render_analysis


@pytest.mark.parametrize("price, expected_decimals", [
    # High value coins
    (123.45, 2),      # BTC-like
    (45678.9, 2),
    # Medium value coins
    (45.67, 4),
    (1.2345, 4),      # USDT-like
    # Low value coins
    (0.9876, 6),
    (0.012345, 6),
    # Very low value (memecoins)
    (0.000023456, 8), # BONK-like
    (0.00000001, 8),
])
def test_price_formatting(price, expected_decimals):
    formatted = format_price(price)
    assert len(formatted.split('.')[1]) == expected_decimals


def test_low_prices_keep_precision():
    assert format_price(0.000023456) == "0.00002346"
    assert format_price(0.0) == "0.00000000"


def test_render_analysis_report(support_test_candles):
    result = analyze_market(support_test_candles)
    console = Console(record=True, width=160)
    render_analysis(result, symbol="btcusdt", console=console)
    output = console.export_text()

    assert "SMC Structure Analysis" in output
    assert "BTCUSDT" in output
    assert "Support Zone Bounce" in output
    assert "114.73" in output
    assert result.summary in output


def test_render_without_setups(flat_candles):
    console = Console(record=True, width=160)
    render_analysis(analyze_market(flat_candles), console=console)
    output = console.export_text()
    assert "No setups" in output
    assert "RANGING" in output
