"""
Strategy Pipeline
=================

Orchestrates the named strategy variants over one asset / risk-free pair.

VARIANTS
    buy_hold         w * index + (1 - w) * T-bills, no signal
    sma_crossover    index when fast SMA > slow SMA, else T-bills
    sma_plus_zscore  index when the crossover AND the z-score filter agree

FLOW (per variant)
    rolling (shared) -> signals -> returns -> performance

    1. Rolling:     fast/slow SMAs, computed once and shared via cache
    2. Signals:     crossover, z-score filter, combination
    3. Returns:     one-period-lagged switch between index and T-bills,
                    compounded into a growth curve
    4. Performance: PerformanceSummary of the realized returns

FAILURE ISOLATION
    Each variant runs independently. A BacktestError in one variant is
    recorded on its VariantResult (stage + cause) and the remaining
    variants still run. Invalid configuration is rejected up front.

Usage:
    pipeline = StrategyPipeline(PipelineConfig(fast_window=50, slow_window=200))
    results = pipeline.run(market_data)
    results["sma_crossover"].summary.sharpe
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import pandas as pd

from trendbench.config import PipelineConfig, StrategyVariant, VariantStatus
from trendbench.errors import BacktestError
from trendbench.performance import PerformanceSummary, summarize
from trendbench.returns import (
    annual_pct_to_daily_rate,
    asset_returns,
    buy_and_hold_returns,
    compound_growth,
    strategy_returns,
)
from trendbench.rolling import RollingStatistics
from trendbench.series import MarketData, defined
from trendbench.signals import (
    combined_signal,
    sma_crossover_signal,
    zscore_filter_signal,
)

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT CONTAINERS
# =============================================================================

@dataclass(frozen=True)
class VariantFailure:
    """Where and why a variant failed."""
    stage: str
    error_type: str
    message: str

    @classmethod
    def from_exception(cls, error: BacktestError, default_stage: str) -> 'VariantFailure':
        return cls(
            stage=error.stage or default_stage,
            error_type=type(error).__name__,
            message=str(error)
        )


@dataclass
class VariantResult:
    """
    Outcome of one strategy variant.

    On success ``returns``, ``growth`` and ``summary`` are set (``signal``
    too for signal-driven variants). On failure only ``error`` is set.
    """
    variant: StrategyVariant
    status: VariantStatus
    returns: Optional[pd.Series] = None
    growth: Optional[pd.Series] = None
    signal: Optional[pd.Series] = None
    summary: Optional[PerformanceSummary] = None
    error: Optional[VariantFailure] = None
    execution_time_ms: float = 0.0

    @property
    def name(self) -> str:
        return self.variant.value

    @property
    def succeeded(self) -> bool:
        return self.status == VariantStatus.SUCCESS


# =============================================================================
# PIPELINE
# =============================================================================

class StrategyPipeline:
    """
    Runs every configured variant over one MarketData set.

    Shared inputs (daily returns, risk-free returns, rolling SMAs, the
    crossover signal) are derived once per run and reused by every variant.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = (config or PipelineConfig()).validate()

    def run(self, market_data: MarketData) -> Dict[str, VariantResult]:
        """
        Run all configured variants.

        Args:
            market_data: Aligned asset prices and risk-free yields

        Returns:
            Results keyed by variant name, in configuration order
        """
        logger.info(
            f"Running {len(self.config.variants)} variants on {market_data.asset_symbol} "
            f"({len(market_data)} days)"
        )
        results: Dict[str, VariantResult] = {}
        try:
            context = _RunContext(market_data, self.config)
        except BacktestError as e:
            # Shared inputs are unusable: every variant fails the same way
            failure = VariantFailure.from_exception(e, "returns")
            logger.error(f"Could not derive shared inputs: {failure.error_type}: {failure.message}")
            for variant in self.config.variants:
                results[variant.value] = VariantResult(
                    variant=variant,
                    status=VariantStatus.FAILED,
                    error=failure
                )
            return results

        for variant in self.config.variants:
            results[variant.value] = self._run_variant(variant, context)

        succeeded = sum(1 for r in results.values() if r.succeeded)
        logger.info(f"Pipeline finished: {succeeded}/{len(results)} variants succeeded")
        return results

    def _run_variant(self, variant: StrategyVariant, context: '_RunContext') -> VariantResult:
        start_time = time.time()
        context.stage = "returns"
        try:
            if variant == StrategyVariant.BUY_HOLD:
                signal = None
                returns = buy_and_hold_returns(
                    context.asset_returns,
                    context.risk_free_returns,
                    self.config.asset_weight
                )
            elif variant == StrategyVariant.SMA_CROSSOVER:
                signal = context.trend_signal()
                context.stage = "returns"
                returns = strategy_returns(signal, context.asset_returns, context.risk_free_returns)
            elif variant == StrategyVariant.SMA_PLUS_ZSCORE:
                signal = context.combined_signal()
                context.stage = "returns"
                returns = strategy_returns(signal, context.asset_returns, context.risk_free_returns)
            else:  # pragma: no cover - enum is exhaustive
                raise ValueError(f"Unhandled variant {variant}")

            growth = compound_growth(returns)
            context.stage = "performance"
            summary = summarize(returns, context.sharpe_rate(growth.index))

        except BacktestError as e:
            failure = VariantFailure.from_exception(e, context.stage)
            logger.warning(
                f"Variant {variant.value} failed at {failure.stage}: "
                f"{failure.error_type}: {failure.message}"
            )
            return VariantResult(
                variant=variant,
                status=VariantStatus.FAILED,
                error=failure,
                execution_time_ms=(time.time() - start_time) * 1000
            )

        logger.info(
            f"{variant.value}: {summary.observations} days, "
            f"growth {growth.iloc[-1]:.4f}, Sharpe {summary.sharpe:.4f}"
        )
        return VariantResult(
            variant=variant,
            status=VariantStatus.SUCCESS,
            returns=returns.loc[growth.index],
            growth=growth,
            signal=signal,
            summary=summary,
            execution_time_ms=(time.time() - start_time) * 1000
        )


class _RunContext:
    """Lazily derived inputs shared by the variants of one run."""

    def __init__(self, market_data: MarketData, config: PipelineConfig):
        self.market_data = market_data
        self.config = config
        self.stage = "returns"

        self.asset_returns = asset_returns(market_data.asset_prices)
        self.risk_free_returns = annual_pct_to_daily_rate(market_data.risk_free_annual_pct)
        self.rolling = RollingStatistics(market_data.asset_prices, market_data.asset_symbol)

        self._trend: Optional[pd.Series] = None
        self._combined: Optional[pd.Series] = None

    def sharpe_rate(self, index: pd.Index) -> float:
        """Configured Sharpe rate, else the mean daily risk-free rate over ``index``."""
        if self.config.risk_free_rate_per_period is not None:
            return float(self.config.risk_free_rate_per_period)
        rf = defined(self.risk_free_returns.loc[index])
        return float(rf.mean()) if len(rf) else 0.0

    def trend_signal(self) -> pd.Series:
        if self._trend is None:
            self.stage = "rolling"
            fast = self.rolling.mean(self.config.fast_window)
            slow = self.rolling.mean(self.config.slow_window)
            self.stage = "signals"
            self._trend = sma_crossover_signal(fast, slow)
        return self._trend

    def combined_signal(self) -> pd.Series:
        if self._combined is None:
            trend = self.trend_signal()
            self.stage = "rolling"
            slow = self.rolling.mean(self.config.slow_window)
            self.stage = "signals"
            z_signal = zscore_filter_signal(
                self.market_data.asset_prices,
                slow,
                lookback=self.config.zscore_lookback,
                threshold=self.config.zscore_threshold,
                mode=self.config.zscore_mode,
                window=self.config.effective_zscore_window
            )
            self._combined = combined_signal(trend, z_signal, trend_lag=self.config.trend_lag)
        return self._combined


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def run_strategies(market_data: MarketData, **overrides: Any) -> Dict[str, VariantResult]:
    """
    Convenience function for running the pipeline with keyword overrides.

    Example:
        >>> results = run_strategies(data, fast_window=20, slow_window=100)
        >>> results["buy_hold"].growth.iloc[-1]
    """
    return StrategyPipeline(PipelineConfig(**overrides)).run(market_data)


__all__ = [
    'VariantFailure',
    'VariantResult',
    'StrategyPipeline',
    'run_strategies',
]
