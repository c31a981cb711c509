#!/usr/bin/env python3
"""
Stateful RSI command line host.

Replays a kline series through the indicator the way a chart would: the
buffer grows by ``--batch-size`` bars per update and the indicator only
processes the bars that arrived since the previous update.

Usage:
    # From a CSV/JSON file
    rsicraft --input prices.csv --period 14

    # From Binance
    rsicraft --symbol BTCUSDT --timeframe 1h --limit 200

    # Replay 5 bars per update on a buffer trimmed to the last 100 bars
    rsicraft --input prices.csv --batch-size 5 --window 100 --format json
"""

import argparse
import json
import sys
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from rsicraft.feeds import INTERVAL_MAP, BinanceKlineFeed, load_klines
from rsicraft.models import KLine, RSIPoint
from rsicraft.plugin import StatefulRsiIndicator
from rsicraft.runner import IndicatorRunner
from rsicraft.settings import OVERBOUGHT, OVERSOLD, PERIOD
from rsicraft.utils.exceptions import RsiCraftError
from rsicraft.utils.logger import setup_logger


def replay(
    runner: IndicatorRunner,
    klines: Sequence[KLine],
    symbol: str,
    timeframe: str,
    batch_size: int = 1,
    window: Optional[int] = None,
) -> List[RSIPoint]:
    """
    Feed ``klines`` to ``runner`` in growing batches and collect every RSI point.

    Args:
        runner: Indicator runner
        klines: Complete series, oldest first
        symbol: Chart symbol used to key the state slot
        timeframe: Chart timeframe used to key the state slot
        batch_size: Bars appended per update
        window: If set, only the last ``window`` bars are handed over per update

    Returns:
        RSI points in timestamp order, one per bar
    """
    # a reseed after the window dropped the last processed bar re-emits older bars
    points: Dict[datetime, RSIPoint] = {}
    end = 0
    while end < len(klines):
        end = min(end + batch_size, len(klines))
        start = max(0, end - window) if window else 0
        runner.run(symbol, timeframe, klines[start:end])
        for point in runner.last_points(symbol, timeframe):
            points[point.timestamp] = point
    return list(points.values())


def _zone(value: Decimal, overbought: Decimal, oversold: Decimal) -> str:
    if value >= overbought:
        return "overbought"
    if value <= oversold:
        return "oversold"
    return ""


def format_output(
    points: Sequence[RSIPoint],
    format_type: str,
    overbought: Decimal,
    oversold: Decimal,
) -> None:
    """
    Print RSI points.

    Args:
        points: RSI points
        format_type: Output format ('table', 'csv', 'json')
        overbought: Overbought level used to tag rows
        oversold: Oversold level used to tag rows
    """
    if format_type == "table":
        print("\n" + "=" * 60)
        print(f"{'Timestamp':<20} {'RSI':>14} {'Zone':>20}")
        print("=" * 60)
        for point in points:
            timestamp_str = point.timestamp.strftime("%Y-%m-%d %H:%M:%S")
            zone = _zone(point.value, overbought, oversold)
            print(f"{timestamp_str:<20} {point.value:>14.4f} {zone:>20}")
        print("=" * 60)

    elif format_type == "csv":
        print("timestamp,rsi")
        for point in points:
            print(f"{point.timestamp.isoformat()},{point.value}")

    elif format_type == "json":
        output = {
            "overbought": str(overbought),
            "oversold": str(oversold),
            "points": [
                {"timestamp": point.timestamp.isoformat(), "rsi": str(point.value)}
                for point in points
            ],
        }
        print(json.dumps(output, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rsicraft",
        description="Compute a stateful Wilder RSI over a kline series",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rsicraft --input prices.csv --period 14
  rsicraft --symbol BTCUSDT --timeframe 1h --limit 200
  rsicraft --input prices.json --batch-size 5 --window 100 --format csv
  rsicraft --describe
        """,
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--input", type=str, help="CSV or JSON file with timestamp and close columns")
    source.add_argument("--symbol", type=str, help="Binance symbol (e.g., BTCUSDT)")

    parser.add_argument(
        "--timeframe",
        type=str,
        choices=list(INTERVAL_MAP),
        default="1h",
        help="Kline interval (default: 1h)",
    )
    parser.add_argument("--limit", type=int, default=500, help="Number of candles to fetch from Binance")
    parser.add_argument("--period", type=int, help="RSI period (default: RSI_PERIOD or 14)")
    parser.add_argument("--overbought", type=str, help="Overbought level (default: RSI_OVERBOUGHT or 70)")
    parser.add_argument("--oversold", type=str, help="Oversold level (default: RSI_OVERSOLD or 30)")
    parser.add_argument("--batch-size", type=int, default=1, help="Bars appended per update (default: 1)")
    parser.add_argument("--window", type=int, help="Only hand the last N bars to the indicator per update")
    parser.add_argument(
        "--format",
        type=str,
        choices=["table", "csv", "json"],
        default="table",
        help="Output format (default: table)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument("--describe", action="store_true", help="Print the indicator's parameters and exit")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main function."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logger = setup_logger(log_level=args.log_level)

    if args.describe:
        try:
            description = StatefulRsiIndicator().describe()
        except RsiCraftError as e:
            logger.error(f"✗ {e}")
            return 1
        print(json.dumps(description, indent=2))
        return 0

    if not args.input and not args.symbol:
        parser.error("Either --input or --symbol is required")
    if args.batch_size < 1:
        parser.error("--batch-size must be >= 1")
    if args.window is not None and args.window < 1:
        parser.error("--window must be >= 1")

    settings = {}
    if args.period is not None:
        settings[PERIOD] = args.period
    if args.overbought is not None:
        settings[OVERBOUGHT] = args.overbought
    if args.oversold is not None:
        settings[OVERSOLD] = args.oversold

    try:
        runner = IndicatorRunner(settings=settings)
        if args.input:
            klines = load_klines(args.input)
            symbol = args.input
        else:
            klines = BinanceKlineFeed().fetch_klines(args.symbol, args.timeframe, args.limit)
            symbol = args.symbol.upper()
        points = replay(runner, klines, symbol, args.timeframe, args.batch_size, args.window)
    except RsiCraftError as e:
        logger.error(f"✗ {e}")
        return 1

    resolved = runner.settings
    format_output(points, args.format, resolved[OVERBOUGHT], resolved[OVERSOLD])
    return 0


if __name__ == "__main__":
    sys.exit(main())
