"""
Rich terminal rendering of an AnalysisResult
"""
from typing import Optional

from rich import box
from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import AnalysisResult, Direction

TREND_COLORS = {
    'bullish': 'green',
    'bearish': 'red',
    'ranging': 'yellow',
    'neutral': 'yellow'
}


def format_price(price: float) -> str:
    """Format a price with enough decimals for its magnitude"""
    magnitude = abs(price)
    if magnitude >= 100:
        decimals = 2
    elif magnitude >= 1:
        decimals = 4
    elif magnitude >= 0.01:
        decimals = 6
    else:
        decimals = 8
    return f"{price:.{decimals}f}"


def _header(result: AnalysisResult, symbol: Optional[str]) -> Panel:
    structure = result.market_structure
    trend = structure.trend.value
    sentiment = result.sentiment.value

    header_text = Text()
    header_text.append("SMC Structure Analysis", style="bold cyan")
    if symbol:
        header_text.append(f" | {symbol.upper()}", style="bold white")
    header_text.append(" | Trend: ", style="white")
    header_text.append(trend.upper(), style=f"bold {TREND_COLORS.get(trend, 'white')}")
    header_text.append(" | Sentiment: ", style="white")
    header_text.append(sentiment.upper(), style=f"bold {TREND_COLORS.get(sentiment, 'white')}")
    header_text.append(f" | Confidence: {result.confidence}%", style="bold white")

    return Panel(Align.center(header_text), box=box.ROUNDED)


def _structure_table(result: AnalysisResult) -> Table:
    structure = result.market_structure
    table = Table(title="Market Structure", box=box.SIMPLE)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Break of Structure", "yes" if structure.broke_structure else "no")
    table.add_row("Change of Character", "yes" if structure.changed_character else "no")
    table.add_row("Last swing high", format_price(structure.last_swing_high))
    table.add_row("Last swing low", format_price(structure.last_swing_low))
    table.add_row("Support", ", ".join(format_price(p) for p in result.support_levels) or "-")
    table.add_row("Resistance", ", ".join(format_price(p) for p in result.resistance_levels) or "-")
    return table


def _setups_table(result: AnalysisResult) -> Table:
    table = Table(title="Trade Setups", box=box.ROUNDED)
    table.add_column("Dir", style="bold", width=5)
    table.add_column("Technique", style="cyan")
    table.add_column("Entry", style="yellow")
    table.add_column("SL", style="red")
    table.add_column("TP1", style="green")
    table.add_column("TP2", style="green")
    table.add_column("TP3", style="green")
    table.add_column("RR", style="magenta", width=6)
    table.add_column("Conf", style="blue", width=5)

    for setup in result.trade_setups:
        dir_style = "bold green" if setup.direction == Direction.BUY else "bold red"
        table.add_row(
            Text(setup.direction.value, style=dir_style),
            setup.technique,
            format_price(setup.entry),
            format_price(setup.stop_loss),
            format_price(setup.take_profit1),
            format_price(setup.take_profit2),
            format_price(setup.take_profit3),
            f"{setup.risk_reward_ratio:.1f}",
            str(setup.confidence)
        )

    if not result.trade_setups:
        table.add_row("-", "[dim]No setups[/]", "-", "-", "-", "-", "-", "-", "-")
    return table


def _zones_table(result: AnalysisResult) -> Table:
    table = Table(title="Zones", box=box.SIMPLE)
    table.add_column("Zone", style="cyan")
    table.add_column("Kind", style="white")
    table.add_column("Range / Price", style="yellow")
    table.add_column("Strength", style="magenta")
    table.add_column("Touched", style="white")

    for ob in result.order_blocks:
        table.add_row("Order block", ob.kind.value, f"{format_price(ob.low)} - {format_price(ob.high)}",
                      f"{ob.strength:.2f}", "yes" if ob.mitigated else "no")
    for fvg in result.fair_value_gaps:
        table.add_row("FVG", fvg.kind.value, f"{format_price(fvg.lower)} - {format_price(fvg.upper)}",
                      "-", "yes" if fvg.filled else "no")
    for pool in result.liquidity_pools:
        table.add_row("Liquidity", f"{pool.kind.value}-side", format_price(pool.price),
                      str(pool.strength), "yes" if pool.swept else "no")
    return table


def build_report(result: AnalysisResult, symbol: Optional[str] = None) -> Group:
    """Compose the full report renderable"""
    notes = Text()
    notes.append(result.summary + "\n", style="bold white")
    for risk in result.risks:
        notes.append(f"  ! {risk}\n", style="red")
    for opportunity in result.opportunities:
        notes.append(f"  + {opportunity}\n", style="green")

    return Group(
        _header(result, symbol),
        _structure_table(result),
        _setups_table(result),
        _zones_table(result),
        Panel(notes, title="Summary", border_style="green")
    )


def render_analysis(result: AnalysisResult, symbol: Optional[str] = None,
                    console: Optional[Console] = None) -> None:
    """Print the analysis report to the terminal"""
    console = console or Console()
    console.print(build_report(result, symbol))
