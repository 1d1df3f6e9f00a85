#!/usr/bin/env python3
"""
Strategy Backtest - Demo Runner

Runs the three reference strategies on an equity index against T-bills:
    buy_hold         90% index / 10% T-bills, rebalanced daily
    sma_crossover    index while the 50-day SMA is above the 200-day SMA
    sma_plus_zscore  crossover, minus days after 3 closes stretched below
                     the 200-day SMA (z-score < -0.05)

EXECUTION
    python run_demo.py
    python run_demo.py --symbol ^NDX --start 2000-01-01
    python run_demo.py --csv data/prices.csv --fast 20 --slow 100
    python run_demo.py --config my_config.json --zscore-mode trailing

OUTPUT ARTIFACTS
    outputs/
        growth.csv      Growth of $1 per variant
        returns.csv     Realized daily returns per variant
        summary.json    Configuration and statistics
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from trendbench.config import (
    DEFAULT_ASSET_SYMBOL,
    DEFAULT_RATE_SYMBOL,
    DEFAULT_START,
    VERSION,
    PipelineConfig,
)
from trendbench.data_loader import YahooPriceProvider, load_price_csv
from trendbench.errors import BacktestError
from trendbench.pipeline import StrategyPipeline
from trendbench.report import export_results, format_summary_table


# =============================================================================
# CONSTANTS
# =============================================================================

OUTPUT_DIR = Path("outputs")


# =============================================================================
# DISPLAY COMPONENTS
# =============================================================================

BANNER = r'''
╔═══════════════════════════════════════════════════════════════════════════════╗
║                                                                               ║
║              TRENDBENCH                                                       ║
║                                                                               ║
║              SMA Crossover & Z-Score Strategy Backtests                       ║
║              Equity Index vs. Treasury Bills                                  ║
║                                                                               ║
╚═══════════════════════════════════════════════════════════════════════════════╝
'''


def print_section_header(title: str, char: str = "═") -> None:
    """Print a formatted section header."""
    width = 79
    print()
    print(char * width)
    print(f"  {title}")
    print(char * width)
    print()


# =============================================================================
# CONFIGURATION
# =============================================================================

def build_config(args: argparse.Namespace) -> PipelineConfig:
    """
    Merge the optional JSON config file with command-line overrides.

    Command-line flags win over the file; unset flags keep the file's (or
    the default) value.
    """
    config = PipelineConfig.from_json(args.config) if args.config else PipelineConfig()
    data = config.to_dict()

    overrides = {
        "fast_window": args.fast,
        "slow_window": args.slow,
        "zscore_lookback": args.lookback,
        "zscore_threshold": args.threshold,
        "zscore_mode": args.zscore_mode,
        "zscore_window": args.zscore_window,
        "trend_lag": args.trend_lag,
        "asset_weight": args.weight,
        "variants": args.variants,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    return PipelineConfig.from_dict(data).validate()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="SMA crossover / z-score strategy backtest",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_demo.py                              # ^GSPC vs ^IRX since 1990
  python run_demo.py --symbol ^NDX --start 2000-01-01
  python run_demo.py --csv prices.csv --variants buy_hold sma_crossover
        """
    )

    data = parser.add_argument_group("data")
    data.add_argument("--symbol", "-s", default=DEFAULT_ASSET_SYMBOL,
                      help=f"Asset symbol (default: {DEFAULT_ASSET_SYMBOL})")
    data.add_argument("--rate-symbol", "-r", default=DEFAULT_RATE_SYMBOL,
                      help=f"Risk-free yield symbol in percent (default: {DEFAULT_RATE_SYMBOL})")
    data.add_argument("--start", "-t", default=DEFAULT_START,
                      help=f"Start date YYYY-MM-DD (default: {DEFAULT_START})")
    data.add_argument("--end", default=None, help="End date YYYY-MM-DD (default: today)")
    data.add_argument("--csv", type=Path, default=None,
                      help="Long-format CSV with date,symbol,adjusted_price instead of Yahoo Finance")
    data.add_argument("--fill-rate-gaps", action="store_true",
                      help="Carry the last yield forward over missing rate dates")

    strategy = parser.add_argument_group("strategy")
    strategy.add_argument("--config", type=Path, default=None, help="JSON configuration file")
    strategy.add_argument("--fast", type=int, default=None, help="Fast SMA window (default: 50)")
    strategy.add_argument("--slow", type=int, default=None, help="Slow SMA window (default: 200)")
    strategy.add_argument("--lookback", type=int, default=None, help="Z-score lookback days (default: 3)")
    strategy.add_argument("--threshold", type=float, default=None, help="Z-score threshold (default: -0.05)")
    strategy.add_argument("--zscore-mode", choices=["full_sample", "trailing"], default=None,
                          help="Z-score normalization (default: full_sample)")
    strategy.add_argument("--zscore-window", type=int, default=None,
                          help="Trailing z-score window (default: slow window)")
    strategy.add_argument("--trend-lag", type=int, default=None,
                          help="Extra lag on the trend signal in the combined variant (default: 0)")
    strategy.add_argument("--weight", type=float, default=None,
                          help="Index weight of buy-and-hold (default: 0.9)")
    strategy.add_argument("--variants", nargs="+", default=None,
                          choices=["buy_hold", "sma_crossover", "sma_plus_zscore"],
                          help="Variants to run (default: all)")

    parser.add_argument("--output-dir", "-o", type=Path, default=OUTPUT_DIR,
                        help=f"Output directory (default: {OUTPUT_DIR})")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")

    return parser.parse_args(argv)


# =============================================================================
# MAIN
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the demo runner.

    Returns
    -------
    int
        0 if at least one variant succeeded, 1 otherwise
    """
    start_time = time.time()
    args = parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="  %(asctime)s │ %(levelname)s │ %(message)s",
        datefmt="%H:%M:%S"
    )
    logger = logging.getLogger(__name__)

    print(BANNER)
    print(f"  Execution Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"  Asset:             {args.symbol}")
    print(f"  Risk-free:         {args.rate_symbol}")
    print(f"  Source:            {args.csv if args.csv else 'Yahoo Finance'}")
    print(f"  Version:           {VERSION}")
    print()

    try:
        config = build_config(args)
    except BacktestError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    print_section_header("MARKET DATA")
    try:
        if args.csv:
            market_data = load_price_csv(
                args.csv,
                asset_symbol=args.symbol,
                rate_symbol=args.rate_symbol,
                fill_rate_gaps=args.fill_rate_gaps
            )
        else:
            market_data = YahooPriceProvider().fetch(
                args.symbol,
                args.rate_symbol,
                start=args.start,
                end=args.end,
                fill_rate_gaps=args.fill_rate_gaps
            )
    except BacktestError as e:
        logger.error(f"Could not load market data: {e}")
        return 1

    print_section_header("STRATEGY PIPELINE")
    results = StrategyPipeline(config).run(market_data)
    print(format_summary_table(results, market_data))

    print_section_header("OUTPUT")
    export_results(results, args.output_dir, config, market_data)

    logger.info(f"Total time: {time.time() - start_time:.1f}s")
    return 0 if any(r.succeeded for r in results.values()) else 1


if __name__ == "__main__":
    sys.exit(main())
