"""
Performance Analyzer
====================

Summary statistics over any daily return series.

DEFINITIONS
    mean, stddev : sample statistics over defined values (ddof = 1)
    skewness     : Fisher-Pearson coefficient, population (biased) form
                   (scipy.stats.skew default)
    kurtosis     : excess kurtosis, population form (normal -> 0)
                   (scipy.stats.kurtosis default, fisher=True)
    sharpe       : mean(r - rf) / stddev(r - rf), per period

    The risk-free rate is subtracted from every observation before both
    moments are taken. For a scalar rf this equals the textbook
    (mean(r) - rf) / stddev(r).

ANNUALIZATION (252 trading days)
    annualized_return     = (1 + mean) ^ 252 - 1
    annualized_volatility = stddev * sqrt(252)
    annualized_sharpe     = sharpe * sqrt(252)

DRAWDOWN
    DD = (growth - running peak) / running peak, with the implicit 1.0
    starting value counted as the first peak.

Reference:
    Sharpe, W.F. (1994). "The Sharpe Ratio." Journal of Portfolio Management.
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import asdict, dataclass
from typing import Any, Dict

import numpy as np
import pandas as pd
from scipy import stats

from trendbench.config import TRADING_DAYS_YEAR
from trendbench.errors import ConfigurationError, StatisticsUndefinedError
from trendbench.series import defined, ensure_series

logger = logging.getLogger(__name__)

STAGE = "performance"


@dataclass(frozen=True)
class PerformanceSummary:
    """
    Distributional and risk-adjusted statistics of one return series.

    Core statistics are per period (daily); annualized figures are derived.
    """
    mean: float
    stddev: float
    skewness: float
    kurtosis: float                 # Excess kurtosis
    sharpe: float                   # Per-period Sharpe ratio
    observations: int
    risk_free_rate_per_period: float

    # Derived
    annualized_return: float
    annualized_volatility: float
    annualized_sharpe: float
    total_return: float             # growth[-1] - 1
    max_drawdown: float             # Positive magnitude, 0.25 = -25%

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


# =============================================================================
# DRAWDOWN
# =============================================================================

def drawdown_series(growth: pd.Series) -> pd.Series:
    """
    Drawdown at each point relative to the running peak.

    Values are <= 0; -0.2 means 20% below the best value seen so far.
    """
    growth = ensure_series(growth, "growth")
    peak = growth.cummax().clip(lower=1.0)
    return ((growth - peak) / peak).rename("drawdown")


def max_drawdown(growth: pd.Series) -> float:
    """Largest peak-to-trough decline as a positive fraction."""
    drawdown = drawdown_series(growth)
    if len(drawdown) == 0:
        return 0.0
    return float(abs(min(drawdown.min(), 0.0)))


# =============================================================================
# SUMMARY
# =============================================================================

def summarize(
    returns: pd.Series,
    risk_free_rate_per_period: float = 0.0
) -> PerformanceSummary:
    """
    Compute the performance summary of a return series.

    Args:
        returns: Daily (simple) returns; undefined rows are excluded
        risk_free_rate_per_period: Scalar per-period rate for the Sharpe ratio

    Returns:
        PerformanceSummary

    Raises:
        StatisticsUndefinedError: fewer than 2 defined observations, or all
            observations identical (stddev = 0), or an annualized return
            too large to represent
        ConfigurationError: non-finite risk-free rate
    """
    if (
        isinstance(risk_free_rate_per_period, bool)
        or not isinstance(risk_free_rate_per_period, numbers.Real)
        or not math.isfinite(risk_free_rate_per_period)
    ):
        raise ConfigurationError(
            f"risk_free_rate_per_period must be a finite number, got {risk_free_rate_per_period!r}",
            parameter="risk_free_rate_per_period",
            stage=STAGE
        )

    returns = ensure_series(returns, "returns")
    values = defined(returns)
    n = len(values)

    if n < 2:
        raise StatisticsUndefinedError(
            f"Standard deviation undefined for {n} observation(s)",
            observations=n,
            stage=STAGE
        )

    # Identical values: the floating-point stddev can come out tiny but nonzero
    if np.ptp(values.to_numpy()) == 0.0:
        raise StatisticsUndefinedError(
            "Return series is constant; standard deviation is zero",
            observations=n,
            stage=STAGE
        )

    mean = float(values.mean())
    stddev = float(values.std(ddof=1))
    skewness = float(stats.skew(values.to_numpy(), bias=True))
    kurtosis = float(stats.kurtosis(values.to_numpy(), fisher=True, bias=True))

    rf = float(risk_free_rate_per_period)
    excess = values - rf
    sharpe = float(excess.mean() / excess.std(ddof=1))

    growth = (1.0 + values).cumprod()
    annual_factor = math.sqrt(TRADING_DAYS_YEAR)
    try:
        annualized_return = float((1.0 + mean) ** TRADING_DAYS_YEAR - 1.0)
    except OverflowError as e:
        raise StatisticsUndefinedError(
            f"Annualized return overflows for mean daily return {mean:.6g}; "
            f"check the price series for scale breaks",
            observations=n,
            stage=STAGE
        ) from e

    summary = PerformanceSummary(
        mean=mean,
        stddev=stddev,
        skewness=skewness,
        kurtosis=kurtosis,
        sharpe=sharpe,
        observations=n,
        risk_free_rate_per_period=rf,
        annualized_return=annualized_return,
        annualized_volatility=stddev * annual_factor,
        annualized_sharpe=sharpe * annual_factor,
        total_return=float(growth.iloc[-1] - 1.0),
        max_drawdown=max_drawdown(growth),
    )
    logger.debug(f"Summarized {n} returns: mean={mean:.6f}, sharpe={sharpe:.4f}")
    return summary


__all__ = [
    'PerformanceSummary',
    'drawdown_series',
    'max_drawdown',
    'summarize',
]
