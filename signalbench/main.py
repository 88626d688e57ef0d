"""
Signalbench - Main Entry Point

Backtests indicator rules against CSV candle data, scans a watchlist for
live signals, and prints indicator values.

Usage:
    # Backtest a single CSV file
    signalbench backtest --csv data/TCS.csv \\
        --buy-rules '[{"indicator": "rsi", "params": {"Period": 14}, "condition": "Crosses Above", "value": 30}]' \\
        --sell-rules '[{"indicator": "rsi", "condition": "Crosses Below", "value": 70}]'

    # Backtest several symbols from the data directory, rules from a file
    signalbench backtest --symbol TCS,INFY --buy-rules @buy.json --show-trades

    # Scan the default watchlist
    signalbench scan --rules @rules.json

    # Print an indicator
    signalbench indicator --csv data/TCS.csv --kind bb --params '{"Period": 20, "StdDev": 2}'

    # List available indicators
    signalbench list-indicators
"""

import argparse
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Any, List

import numpy as np

from .config import settings
from .data import CsvCandleProvider, load_csv
from .engine import BacktestConfig, BacktestSimulator
from .errors import SignalBenchError
from .indicators import IndicatorCache, IndicatorSpec
from .reporting import export_json, print_multi_report, print_report, print_signals
from .reporting.console_report import console
from .scanner import LiveScanner
from .strategies import list_available_indicators, parse_rules

logger = logging.getLogger(__name__)

# Module-level flag for cooperative shutdown between symbols.
_shutdown_requested = False


def parse_symbols(symbols_str: str) -> List[str]:
    """Parse comma-separated symbols."""
    return [s.strip().upper() for s in symbols_str.split(",") if s.strip()]


def load_json_arg(value: str) -> Any:
    """Parse inline JSON, or ``@path`` to read JSON from a file."""
    try:
        if value.startswith("@"):
            return json.loads(Path(value[1:]).read_text())
        return json.loads(value)
    except (OSError, json.JSONDecodeError) as e:
        raise argparse.ArgumentTypeError(f"Invalid JSON argument {value!r}: {e}")


def _handle_shutdown(signum, frame):
    """Handle SIGINT/SIGTERM for graceful shutdown."""
    global _shutdown_requested
    sig_name = signal.Signals(signum).name
    if _shutdown_requested:
        logger.warning(f"Received {sig_name} again, forcing exit")
        sys.exit(1)
    logger.info(f"Received {sig_name}, finishing current symbol then exiting...")
    _shutdown_requested = True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signalbench",
        description="Backtest and scan indicator trading rules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s backtest --csv data/TCS.csv --buy-rules @buy.json --sell-rules @sell.json
  %(prog)s scan --symbols TCS,INFY --rules @rules.json
  %(prog)s indicator --csv data/TCS.csv --kind sma --params '{"Period": 5}'
  %(prog)s list-indicators
        """,
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Minimal output",
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=settings.data_dir,
        help=f"Directory of <SYMBOL>.csv files (default: {settings.data_dir})",
    )

    sub = parser.add_subparsers(dest="command")

    # backtest
    bt = sub.add_parser("backtest", help="Run a rule backtest")
    source = bt.add_mutually_exclusive_group(required=True)
    source.add_argument("--csv", type=str, help="Candle CSV file")
    source.add_argument(
        "--symbol", "-s",
        type=str,
        help="Symbol(s) in the data directory (comma-separated, e.g., TCS,INFY)",
    )
    bt.add_argument(
        "--buy-rules",
        type=load_json_arg,
        required=True,
        help="Buy rules as a JSON list, or @file.json",
    )
    bt.add_argument(
        "--sell-rules",
        type=load_json_arg,
        default=[],
        help="Sell rules as a JSON list, or @file.json (default: none)",
    )
    bt.add_argument(
        "--capital",
        type=float,
        default=settings.default_initial_capital,
        help=f"Initial capital (default: {settings.default_initial_capital:,.0f})",
    )
    bt.add_argument(
        "--position-size",
        type=float,
        default=settings.default_position_size,
        help=f"Fraction of capital per trade (default: {settings.default_position_size})",
    )
    bt.add_argument(
        "--stop-loss",
        type=float,
        default=settings.default_stop_loss_pct,
        help=f"Stop loss percent (default: {settings.default_stop_loss_pct})",
    )
    bt.add_argument(
        "--target",
        type=float,
        default=settings.default_target_pct,
        help=f"Profit target percent (default: {settings.default_target_pct})",
    )
    bt.add_argument(
        "--show-trades", "-t",
        action="store_true",
        help="Show individual trade details",
    )
    bt.add_argument(
        "--trade-limit",
        type=int,
        default=10,
        help="Maximum trades to show (default: 10, 0 = all)",
    )
    bt.add_argument(
        "--output", "-o",
        type=str,
        help="Export results to JSON file",
    )

    # scan
    sc = sub.add_parser("scan", help="Scan a watchlist for live signals")
    sc.add_argument(
        "--symbols",
        type=str,
        help="Comma-separated watchlist (default: configured watchlist)",
    )
    sc.add_argument(
        "--rules",
        type=load_json_arg,
        required=True,
        help="Rules as a JSON list, or @file.json",
    )
    sc.add_argument(
        "--seed",
        type=int,
        help="Seed for the confidence score",
    )
    sc.add_argument(
        "--output", "-o",
        type=str,
        help="Export the scan report to JSON file",
    )

    # indicator
    ind = sub.add_parser("indicator", help="Compute one indicator over a CSV file")
    ind.add_argument("--csv", type=str, required=True, help="Candle CSV file")
    ind.add_argument("--kind", type=str, required=True, help="Indicator kind (sma, ema, rsi, macd, bb, ...)")
    ind.add_argument(
        "--params",
        type=load_json_arg,
        default={},
        help='Parameters as JSON, e.g. \'{"Period": 20}\'',
    )
    ind.add_argument(
        "--tail",
        type=int,
        default=20,
        help="Number of most recent bars to print (default: 20)",
    )

    sub.add_parser("list-indicators", help="List available indicators")
    sub.add_parser("list-symbols", help="List symbols in the data directory")

    return parser


def _run_backtest(args) -> int:
    config = BacktestConfig(
        initial_capital=args.capital,
        position_size=args.position_size,
        stop_loss_pct=args.stop_loss,
        target_pct=args.target,
    )
    buy_rules = parse_rules(args.buy_rules)
    sell_rules = parse_rules(args.sell_rules)
    simulator = BacktestSimulator(config)

    if args.csv:
        result = simulator.run(load_csv(args.csv), buy_rules, sell_rules, symbol=Path(args.csv).stem)
        if not args.quiet:
            print_report(result, show_trades=args.show_trades, trade_limit=args.trade_limit)
        if args.output:
            export_json(result, args.output)
            print(f"Results exported to {args.output}")
        return 0

    provider = CsvCandleProvider(args.data_dir)
    symbols = parse_symbols(args.symbol)
    results = {}
    for symbol in symbols:
        if _shutdown_requested:
            logger.info(
                f"Shutdown requested, skipping remaining symbols "
                f"({len(symbols) - len(results)} of {len(symbols)} left)"
            )
            break
        try:
            results[symbol] = simulator.run(
                provider.get_candles(symbol), buy_rules, sell_rules, symbol=symbol
            )
        except (OSError, SignalBenchError) as e:
            logger.error(f"Failed to backtest {symbol}: {e}")

    if not results:
        if not _shutdown_requested:
            logger.warning("No backtest results produced")
        return 1

    if not args.quiet:
        if len(results) == 1:
            (result,) = results.values()
            print_report(result, show_trades=args.show_trades, trade_limit=args.trade_limit)
        else:
            print_multi_report(results)
            if args.show_trades:
                for res in results.values():
                    print_report(res, show_trades=True, trade_limit=args.trade_limit)

    if args.output:
        export_json(results if len(results) > 1 else next(iter(results.values())), args.output)
        print(f"Results exported to {args.output}")
    return 0


def _run_scan(args) -> int:
    symbols = parse_symbols(args.symbols) if args.symbols else settings.default_watchlist
    rng = np.random.default_rng(args.seed)
    scanner = LiveScanner(CsvCandleProvider(args.data_dir), rng=rng)
    report = scanner.run(symbols, args.rules)

    if not args.quiet:
        print_signals(report)
    if args.output:
        export_json(report, args.output)
        print(f"Scan report exported to {args.output}")
    return 0


def _run_indicator(args) -> int:
    candles = load_csv(args.csv)
    spec = IndicatorSpec.from_wire(args.kind, args.params)
    output = IndicatorCache(candles).get(spec)
    frame = output.to_frame(index=[c.timestamp for c in candles])

    console.print(f"\n[bold]{spec.label}[/bold] over {len(candles)} bars\n")
    console.print(frame.tail(args.tail).to_string(), markup=False)
    console.print()
    return 0


def _list_indicators() -> int:
    print("\nAvailable Indicators:")
    print("=" * 60)
    for name, info in list_available_indicators().items():
        params = ", ".join(f"{k}={v}" for k, v in info["default_params"].items()) or "no parameters"
        print(f"  {name} ({params})")
        print(f"      {info['description']}")
    print()
    return 0


def _list_symbols(args) -> int:
    provider = CsvCandleProvider(args.data_dir)
    symbols = provider.get_available_symbols()
    print(f"\nAvailable Symbols in {provider.directory}:")
    print("=" * 40)
    for sym in symbols:
        print(f"  {sym}")
    if not symbols:
        print("  (none)")
    print()
    return 0


def main(argv=None) -> int:
    """Main entry point for the signalbench CLI."""
    signal.signal(signal.SIGTERM, _handle_shutdown)
    signal.signal(signal.SIGINT, _handle_shutdown)

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 2
    if args.command == "list-indicators":
        return _list_indicators()
    if args.command == "list-symbols":
        return _list_symbols(args)

    try:
        if args.command == "backtest":
            return _run_backtest(args)
        if args.command == "scan":
            return _run_scan(args)
        return _run_indicator(args)
    except (OSError, SignalBenchError) as e:
        logger.error(f"{args.command} failed: {e}")
        if not args.quiet:
            import traceback
            traceback.print_exc()
        return 1
    finally:
        if _shutdown_requested:
            logger.info("Signalbench shut down cleanly")


if __name__ == "__main__":
    sys.exit(main())
