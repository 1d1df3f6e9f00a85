"""
Rolling Statistics Engine
=========================

Trailing windowed aggregates over a date-ordered series. This is the leaf
dependency of the signal generator.

WINDOW SEMANTICS
    Value at index i summarizes indices [i - window + 1, i]. For
    i < window - 1 the window is not fully inside the series and the
    value is undefined (NaN). It is never zero, and consumers must drop
    those rows rather than treat them as data.

    Standard deviation uses the sample (N - 1) denominator.

VALIDATION
    window <= 0          -> ConfigurationError
    window > len(series) -> InsufficientDataError (no defined value exists)
"""

from __future__ import annotations

import logging
import numbers
from typing import Dict, Tuple

import pandas as pd

from trendbench.errors import ConfigurationError, InsufficientDataError
from trendbench.series import ensure_series

logger = logging.getLogger(__name__)

STAGE = "rolling"


def _validate_window(series: pd.Series, window: int, name: str) -> pd.Series:
    if isinstance(window, bool) or not isinstance(window, numbers.Integral) or window <= 0:
        raise ConfigurationError(
            f"Rolling window must be a positive integer, got {window!r}",
            parameter="window",
            stage=STAGE
        )
    series = ensure_series(series, name)
    if window > len(series):
        raise InsufficientDataError(
            f"{name} has {len(series)} observations, fewer than the "
            f"{window}-period window",
            required_count=int(window),
            available_count=len(series),
            stage=STAGE
        )
    return series


def rolling_mean(series: pd.Series, window: int) -> pd.Series:
    """
    Trailing simple moving average.

    Args:
        series: Date-indexed float series
        window: Window length in observations

    Returns:
        Series of equal length, NaN where the window is incomplete
    """
    series = _validate_window(series, window, "series")
    return series.rolling(window=int(window), min_periods=int(window)).mean()


def rolling_stddev(series: pd.Series, window: int) -> pd.Series:
    """
    Trailing sample standard deviation (ddof=1).

    A window of 1 has no sample dispersion, so every value is NaN.
    """
    series = _validate_window(series, window, "series")
    return series.rolling(window=int(window), min_periods=int(window)).std(ddof=1)


def trailing_zscore(series: pd.Series, window: int) -> pd.Series:
    """
    Causal z-score: (x - trailing mean) / trailing stddev.

    Windows with zero dispersion give NaN instead of +/- inf.
    """
    mean = rolling_mean(series, window)
    std = rolling_stddev(series, window)
    std = std.where(std > 0)
    return (series.astype(float) - mean) / std


class RollingStatistics:
    """
    Memoized rolling statistics over one source series.

    Strategy variants that use the same window share one computation:
    the 200-day SMA feeds both the crossover and the z-score spread.

    Usage:
        stats = RollingStatistics(prices)
        fast = stats.mean(50)
        slow = stats.mean(200)
    """

    def __init__(self, series: pd.Series, name: str = "series"):
        self.series = ensure_series(series, name)
        self.name = name
        self._cache: Dict[Tuple[str, int], pd.Series] = {}
        self.hits = 0

    def _get(self, kind: str, window: int) -> pd.Series:
        key = (kind, window)
        if key in self._cache:
            self.hits += 1
            logger.debug(f"Rolling cache hit: {self.name} {kind}({window})")
            return self._cache[key]

        if kind == "mean":
            result = rolling_mean(self.series, window)
        elif kind == "std":
            result = rolling_stddev(self.series, window)
        else:
            raise ConfigurationError(f"Unknown rolling statistic '{kind}'", stage=STAGE)

        self._cache[key] = result
        return result

    def mean(self, window: int) -> pd.Series:
        """Trailing mean, computed once per window."""
        return self._get("mean", window)

    def std(self, window: int) -> pd.Series:
        """Trailing sample stddev, computed once per window."""
        return self._get("std", window)

    def __len__(self) -> int:
        return len(self._cache)


__all__ = [
    'rolling_mean',
    'rolling_stddev',
    'trailing_zscore',
    'RollingStatistics',
]
