"""
Signal Generator
================

Derives binary trading signals from rolling statistics:

    SMA CROSSOVER
        1 when the fast SMA is strictly above the slow SMA (golden-cross
        regime), 0 otherwise. Equal SMAs count as "not bullish".

    Z-SCORE FILTER
        spread[i] = price[i] - slow_sma[i]
        z[i]      = (spread[i] - mean(spread)) / stddev(spread)

        0 ("suppress exposure") when z at i-1, ..., i-lookback were ALL
        strictly below the threshold, 1 otherwise.

        FULL_SAMPLE normalization uses the whole spread history. Every
        z-score therefore carries information from later dates; it is kept
        as the reference behavior for exploratory comparison. TRAILING
        normalization uses a trailing window and is causal.

    COMBINED
        Logical AND of the trend and z-score signals.

Signals are float Series of 1.0 / 0.0 with NaN where undefined (warm-up
rows before the slow window is populated). Undefined rows are never
coerced to 0 or 1. The one-period execution lag is NOT applied here; the
return compounder applies it for every variant.
"""

from __future__ import annotations

import logging
import math
import numbers
from typing import Optional

import numpy as np
import pandas as pd

from trendbench.config import (
    DEFAULT_ZSCORE_LOOKBACK,
    DEFAULT_ZSCORE_THRESHOLD,
    ZScoreMode,
)
from trendbench.errors import (
    ConfigurationError,
    InsufficientDataError,
    StatisticsUndefinedError,
)
from trendbench.rolling import trailing_zscore
from trendbench.series import check_aligned, defined, ensure_series

logger = logging.getLogger(__name__)

STAGE = "signals"


# =============================================================================
# HELPERS
# =============================================================================

def _binary(condition: pd.Series, valid: pd.Series) -> pd.Series:
    """1.0/0.0 where ``valid``, NaN elsewhere."""
    return condition.astype(float).where(valid)


def _ensure_signal(signal: pd.Series, name: str) -> pd.Series:
    signal = ensure_series(signal, name)
    values = defined(signal)
    if not values.isin([0.0, 1.0]).all():
        raise ConfigurationError(
            f"{name} must contain only 0, 1 or undefined values",
            parameter=name,
            stage=STAGE
        )
    return signal


def signal_exposure(signal: pd.Series) -> float:
    """Fraction of defined days on which the signal is 1."""
    values = defined(signal)
    if len(values) == 0:
        return float("nan")
    return float(values.mean())


# =============================================================================
# SMA CROSSOVER
# =============================================================================

def sma_crossover_signal(fast_sma: pd.Series, slow_sma: pd.Series) -> pd.Series:
    """
    Trend signal from two moving averages.

    Args:
        fast_sma: Fast moving average (e.g. 50-day)
        slow_sma: Slow moving average (e.g. 200-day)

    Returns:
        1.0 where fast > slow, 0.0 where fast <= slow, NaN where either
        average is undefined
    """
    fast_sma = ensure_series(fast_sma, "fast_sma")
    slow_sma = ensure_series(slow_sma, "slow_sma")
    check_aligned(fast_sma, slow_sma, "fast_sma", "slow_sma")

    valid = fast_sma.notna() & slow_sma.notna()
    signal = _binary(fast_sma > slow_sma, valid).rename("sma_crossover")
    logger.debug(
        f"SMA crossover: {int(valid.sum())} defined days, "
        f"{int((signal == 1).sum())} bullish"
    )
    return signal


# =============================================================================
# Z-SCORE FILTER
# =============================================================================

def spread_zscore(
    price: pd.Series,
    slow_sma: pd.Series,
    mode: ZScoreMode = ZScoreMode.FULL_SAMPLE,
    window: Optional[int] = None
) -> pd.Series:
    """
    Z-score of the price's distance from its slow moving average.

    Args:
        price: Asset price series
        slow_sma: Slow moving average of ``price``
        mode: FULL_SAMPLE (whole history) or TRAILING (rolling window)
        window: Trailing window, required in TRAILING mode

    Returns:
        z-score series, NaN where the spread (or its trailing window) is
        undefined
    """
    price = ensure_series(price, "price")
    slow_sma = ensure_series(slow_sma, "slow_sma")
    check_aligned(price, slow_sma, "price", "slow_sma")
    mode = ZScoreMode(mode)

    spread = price - slow_sma

    if mode == ZScoreMode.TRAILING:
        if window is None:
            raise ConfigurationError(
                "Trailing z-score requires a window",
                parameter="zscore_window",
                stage=STAGE
            )
        return trailing_zscore(spread, window).rename("zscore")

    values = defined(spread)
    if len(values) < 2:
        raise InsufficientDataError(
            "Spread z-score needs at least 2 defined spread values",
            required_count=2,
            available_count=len(values),
            stage=STAGE
        )

    mean = values.mean()
    std = values.std(ddof=1)
    if not np.isfinite(std) or np.ptp(values.to_numpy()) == 0.0:
        raise StatisticsUndefinedError(
            "Spread has zero dispersion; z-score undefined",
            observations=len(values),
            stage=STAGE
        )

    return ((spread - mean) / std).rename("zscore")


def zscore_filter_signal(
    price: pd.Series,
    slow_sma: pd.Series,
    lookback: int = DEFAULT_ZSCORE_LOOKBACK,
    threshold: float = DEFAULT_ZSCORE_THRESHOLD,
    mode: ZScoreMode = ZScoreMode.FULL_SAMPLE,
    window: Optional[int] = None
) -> pd.Series:
    """
    Mean-reversion filter that suppresses exposure after a run of weak days.

    The value at index i looks only at z[i-1], ..., z[i-lookback]: it is 0
    when all of them are strictly below ``threshold`` and 1 otherwise.

    Args:
        price: Asset price series
        slow_sma: Slow moving average of ``price``
        lookback: Number of prior days that must all be below threshold
        threshold: Z-score threshold
        mode: z-score normalization
        window: Trailing normalization window (TRAILING mode)

    Returns:
        Binary signal with NaN where any of the looked-at z-scores is
        undefined
    """
    if isinstance(lookback, bool) or not isinstance(lookback, numbers.Integral) or lookback <= 0:
        raise ConfigurationError(
            f"lookback must be a positive integer, got {lookback!r}",
            parameter="lookback",
            stage=STAGE
        )
    if isinstance(threshold, bool) or not isinstance(threshold, numbers.Real) or not math.isfinite(threshold):
        raise ConfigurationError(
            f"threshold must be a finite number, got {threshold!r}",
            parameter="threshold",
            stage=STAGE
        )

    z = spread_zscore(price, slow_sma, mode=mode, window=window)
    below = _binary(z < threshold, z.notna())

    # Count of the previous `lookback` days below threshold; NaN if any is undefined
    below_count = sum(below.shift(k) for k in range(1, int(lookback) + 1))

    signal = _binary(below_count < lookback, below_count.notna()).rename("zscore_filter")
    logger.debug(
        f"Z-score filter ({ZScoreMode(mode).value}, lookback={lookback}, "
        f"threshold={threshold}): {int((signal == 0).sum())} suppressed days"
    )
    return signal


# =============================================================================
# COMBINATION
# =============================================================================

def combined_signal(
    trend_signal: pd.Series,
    z_signal: pd.Series,
    trend_lag: int = 0
) -> pd.Series:
    """
    Logical AND of a trend signal and a z-score filter signal.

    Args:
        trend_signal: Binary trend signal (e.g. SMA crossover)
        z_signal: Binary z-score filter signal
        trend_lag: Periods to shift the trend signal before combining.
            0 keeps both inputs on the same decision date; 1 delays the trend
            signal by one more day than the z-score signal.

    Returns:
        1.0 only where both inputs are 1, NaN where either is undefined
    """
    if isinstance(trend_lag, bool) or not isinstance(trend_lag, numbers.Integral) or trend_lag < 0:
        raise ConfigurationError(
            f"trend_lag must be a non-negative integer, got {trend_lag!r}",
            parameter="trend_lag",
            stage=STAGE
        )
    trend_signal = _ensure_signal(trend_signal, "trend_signal")
    z_signal = _ensure_signal(z_signal, "z_signal")
    check_aligned(trend_signal, z_signal, "trend_signal", "z_signal")

    if trend_lag:
        trend_signal = trend_signal.shift(int(trend_lag))

    valid = trend_signal.notna() & z_signal.notna()
    both = (trend_signal == 1.0) & (z_signal == 1.0)
    return _binary(both, valid).rename("combined")


__all__ = [
    'sma_crossover_signal',
    'spread_zscore',
    'zscore_filter_signal',
    'combined_signal',
    'signal_exposure',
]
