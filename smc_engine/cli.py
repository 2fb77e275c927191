"""
Command line entry point for the SMC structure engine
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from smc_config import EngineConfig, load_config

from .analyzer import analyze_market
from .data_loader import InvalidInputError, load_csv
from .terminal_report import render_analysis

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='smc-analyze',
        description='SMC Structure Engine - Smart Money Concepts analysis of a candle CSV',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  smc-analyze data/btc_15m.csv
  smc-analyze data/btc_15m.csv --json --out analysis.json
  smc-analyze data/btc_15m.csv --config config/engine.yaml --track-mitigation
        """
    )

    parser.add_argument('candles',
                        help='CSV file with timestamp,open,high,low,close[,volume] columns')
    parser.add_argument('--config', default=None,
                        help='YAML engine configuration file')
    parser.add_argument('--symbol', default=None,
                        help='Symbol shown in the report header')
    parser.add_argument('--lookback', type=int, default=None,
                        help='Swing lookback on each side (default: 5)')
    parser.add_argument('--track-mitigation', action='store_true',
                        help='Mark order blocks mitigated, FVGs filled and pools swept')
    parser.add_argument('--mirror-bearish', action='store_true',
                        help='Also evaluate SELL mirrors of the setup rules')
    parser.add_argument('--json', action='store_true',
                        help='Print the analysis as JSON instead of tables')
    parser.add_argument('--out', default=None,
                        help='Write the JSON analysis to this file')
    parser.add_argument('--log-level', default=None,
                        help='Logging level (default: from config, INFO)')
    return parser


def resolve_config(args: argparse.Namespace) -> EngineConfig:
    """Merge the YAML configuration with command line overrides"""
    config = load_config(args.config) if args.config else EngineConfig()

    overrides = {}
    if args.lookback is not None:
        overrides['swing_lookback'] = args.lookback
    if args.track_mitigation:
        overrides['track_mitigation'] = True
    if args.mirror_bearish:
        overrides['mirror_bearish_setups'] = True
    if args.log_level:
        overrides['log_level'] = args.log_level

    config = EngineConfig.from_dict({**config.to_dict(), **overrides})
    errors = config.validate()
    if errors:
        raise ValueError(f"Configuration validation failed: {errors}")
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main function with command line argument parsing"""
    args = build_parser().parse_args(argv)
    console = Console()

    if not Path(args.candles).exists():
        console.print(f"[red]Error: candle file not found: {args.candles}[/]")
        return 1

    try:
        config = resolve_config(args)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/]")
        return 1

    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)

    try:
        candles = load_csv(args.candles)
        result = analyze_market(candles, config)
    except (InvalidInputError, ValueError) as e:
        logger.error(f"Analysis failed for {args.candles}: {e}")
        console.print(f"[red]Error: {e}[/]")
        return 1

    if args.out:
        Path(args.out).write_text(result.to_json(indent=2), encoding='utf-8')
        logger.info(f"Analysis saved to {args.out}")

    if args.json:
        print(result.to_json(indent=2))
    else:
        render_analysis(result, symbol=args.symbol or Path(args.candles).stem, console=console)

    return 0


if __name__ == '__main__':
    sys.exit(main())
