"""
Report Generator for Strategy Comparison

Renders pipeline results for people and for downstream tools:
    - Text:  side-by-side comparison table for the terminal
    - JSON:  configuration, period and per-variant statistics
    - CSV:   growth curves and daily returns, one column per variant

The engine itself has no dependency on any output format; this module only
reads VariantResult objects.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from trendbench.config import VERSION, PipelineConfig
from trendbench.pipeline import VariantResult
from trendbench.series import MarketData
from trendbench.signals import signal_exposure

logger = logging.getLogger(__name__)

WIDTH = 79


# =============================================================================
# TEXT REPORT
# =============================================================================

def _row(label: str, values: List[str]) -> str:
    return f"  {label:<22}" + "".join(f"{v:>18}" for v in values)


def format_summary_table(
    results: Dict[str, VariantResult],
    market_data: Optional[MarketData] = None
) -> str:
    """
    Format results as a human-readable comparison table.

    Failed variants are listed underneath with the stage and cause.

    Args:
        results: Output of StrategyPipeline.run
        market_data: Optional, adds symbol and period to the header

    Returns:
        Formatted string report
    """
    lines = [
        "=" * WIDTH,
        "STRATEGY COMPARISON",
        "=" * WIDTH,
    ]
    if market_data is not None and len(market_data):
        lines.extend([
            f"Asset: {market_data.asset_symbol}    Risk-free: {market_data.rate_symbol}",
            f"Period: {market_data.start_date.strftime('%Y-%m-%d')} to "
            f"{market_data.end_date.strftime('%Y-%m-%d')} ({len(market_data):,} days)",
        ])

    ok = [r for r in results.values() if r.succeeded]
    failed = [r for r in results.values() if not r.succeeded]

    if ok:
        lines.extend([
            "",
            "-" * WIDTH,
            _row("", [r.name for r in ok]),
            "-" * WIDTH,
            _row("Start", [r.growth.index[0].strftime('%Y-%m-%d') for r in ok]),
            _row("Observations", [f"{r.summary.observations:,}" for r in ok]),
            _row("Final Growth", [f"{r.growth.iloc[-1]:.4f}" for r in ok]),
            _row("Total Return", [f"{r.summary.total_return:+.2%}" for r in ok]),
            _row("Annual Return", [f"{r.summary.annualized_return:+.2%}" for r in ok]),
            _row("Annual Volatility", [f"{r.summary.annualized_volatility:.2%}" for r in ok]),
            _row("Max Drawdown", [f"{r.summary.max_drawdown:.2%}" for r in ok]),
            "",
            _row("Daily Mean", [f"{r.summary.mean:+.6f}" for r in ok]),
            _row("Daily Std Dev", [f"{r.summary.stddev:.6f}" for r in ok]),
            _row("Skewness", [f"{r.summary.skewness:+.3f}" for r in ok]),
            _row("Excess Kurtosis", [f"{r.summary.kurtosis:.3f}" for r in ok]),
            _row("Sharpe (daily)", [f"{r.summary.sharpe:.4f}" for r in ok]),
            _row("Sharpe (annual)", [f"{r.summary.annualized_sharpe:.3f}" for r in ok]),
            _row("Time in Market", [
                f"{signal_exposure(r.signal):.1%}" if r.signal is not None else "fixed"
                for r in ok
            ]),
        ])

    if failed:
        lines.extend([
            "",
            "-" * WIDTH,
            "FAILED VARIANTS",
            "-" * WIDTH,
        ])
        for r in failed:
            lines.append(f"  {r.name}: [{r.error.stage}] {r.error.error_type}: {r.error.message}")

    lines.extend([
        "",
        "=" * WIDTH,
        f"Version: {VERSION}",
        "=" * WIDTH,
    ])
    return "\n".join(lines)


# =============================================================================
# STRUCTURED OUTPUT
# =============================================================================

def results_to_dict(
    results: Dict[str, VariantResult],
    config: Optional[PipelineConfig] = None,
    market_data: Optional[MarketData] = None
) -> Dict[str, Any]:
    """Convert results to a JSON-ready dictionary."""
    report: Dict[str, Any] = {
        "metadata": {
            "generated_at": datetime.now().isoformat(),
            "version": VERSION,
        },
        "config": config.to_dict() if config is not None else None,
        "variants": {},
    }
    if market_data is not None and len(market_data):
        report["metadata"].update({
            "asset_symbol": market_data.asset_symbol,
            "rate_symbol": market_data.rate_symbol,
            "start_date": market_data.start_date.strftime('%Y-%m-%d'),
            "end_date": market_data.end_date.strftime('%Y-%m-%d'),
            "trading_days": len(market_data),
        })

    for name, result in results.items():
        entry: Dict[str, Any] = {"status": result.status.value}
        if result.succeeded:
            entry.update({
                "start_date": result.growth.index[0].strftime('%Y-%m-%d'),
                "end_date": result.growth.index[-1].strftime('%Y-%m-%d'),
                "final_growth": round(float(result.growth.iloc[-1]), 6),
                "summary": result.summary.to_dict(),
            })
            if result.signal is not None:
                entry["time_in_market"] = round(signal_exposure(result.signal), 4)
        else:
            entry["error"] = {
                "stage": result.error.stage,
                "type": result.error.error_type,
                "message": result.error.message,
            }
        report["variants"][name] = entry

    return report


def _frame(results: Dict[str, VariantResult], attribute: str) -> pd.DataFrame:
    columns = {
        name: getattr(result, attribute)
        for name, result in results.items()
        if result.succeeded
    }
    frame = pd.DataFrame(columns)
    frame.index.name = "date"
    return frame


def export_results(
    results: Dict[str, VariantResult],
    output_dir: Path,
    config: Optional[PipelineConfig] = None,
    market_data: Optional[MarketData] = None
) -> Dict[str, Path]:
    """
    Write growth.csv, returns.csv and summary.json to ``output_dir``.

    Returns:
        Mapping of artifact name to written path
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    outputs: Dict[str, Path] = {}

    growth_path = output_dir / "growth.csv"
    _frame(results, "growth").to_csv(growth_path)
    outputs["growth"] = growth_path

    returns_path = output_dir / "returns.csv"
    _frame(results, "returns").to_csv(returns_path)
    outputs["returns"] = returns_path

    json_path = output_dir / "summary.json"
    with open(json_path, 'w', encoding='utf-8') as f:
        json.dump(results_to_dict(results, config, market_data), f, indent=2, default=str)
    outputs["summary"] = json_path

    for path in outputs.values():
        logger.info(f"Generated: {path}")
    return outputs


__all__ = [
    'format_summary_table',
    'results_to_dict',
    'export_results',
]
