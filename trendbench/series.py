"""
Time-Series Value Objects and Validation

Every quantity in the engine (prices, rolling statistics, signals, returns,
growth) is a separate ``pandas.Series`` indexed by date. This module holds
the checks the core relies on:

    - index strictly increasing and free of duplicates
    - paired series share exactly the same dates
    - undefined values are NaN, never a placeholder zero

plus the ``MarketData`` container that pairs the asset price series with
the risk-free rate series. MarketData sorts and deduplicates its inputs
(logging each repair) before validating them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from trendbench.errors import AlignmentError, ConfigurationError

logger = logging.getLogger(__name__)


def ensure_series(series: pd.Series, name: str = "series") -> pd.Series:
    """
    Validate that ``series`` is a numeric, strictly date-ordered Series.

    Args:
        series: Input series
        name: Label used in error messages

    Returns:
        The series cast to float (a new object; the input is untouched)

    Raises:
        ConfigurationError: not a Series / not numeric
        AlignmentError: index unordered or duplicated
    """
    if not isinstance(series, pd.Series):
        raise ConfigurationError(
            f"{name} must be a pandas Series, got {type(series).__name__}",
            parameter=name
        )
    if not series.index.is_unique:
        dupes = int(series.index.duplicated().sum())
        raise AlignmentError(f"{name} has {dupes} duplicate dates", context={"series": name})
    if not series.index.is_monotonic_increasing:
        raise AlignmentError(f"{name} is not sorted by date", context={"series": name})
    try:
        return series.astype(float)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be numeric: {e}", parameter=name) from e


def check_aligned(
    left: pd.Series,
    right: pd.Series,
    left_name: str = "left",
    right_name: str = "right"
) -> None:
    """Raise AlignmentError unless both series cover exactly the same dates."""
    if left.index.equals(right.index):
        return
    only_left = left.index.difference(right.index)
    only_right = right.index.difference(left.index)
    raise AlignmentError(
        f"{left_name} and {right_name} have mismatched dates "
        f"({len(only_left)} only in {left_name}, {len(only_right)} only in {right_name})",
        missing_left=len(only_right),
        missing_right=len(only_left),
        context={
            "first_only_left": str(only_left[0]) if len(only_left) else None,
            "first_only_right": str(only_right[0]) if len(only_right) else None,
        }
    )


def sort_and_dedupe(series: pd.Series, name: str = "series") -> pd.Series:
    """
    Date-ordered copy of ``series`` with one row per date.

    Duplicate dates keep the last row. Both repairs are logged at WARNING.
    Inputs that are not a Series are returned unchanged for
    ``ensure_series`` to reject.
    """
    if not isinstance(series, pd.Series):
        return series

    if not series.index.is_monotonic_increasing:
        logger.warning(f"{name}: rows were not date-ordered; sorting")
        series = series.sort_index(kind="mergesort")

    dupes = series.index.duplicated(keep="last")
    if dupes.any():
        logger.warning(f"{name}: dropped {int(dupes.sum())} duplicate dates (kept last)")
        series = series[~dupes]

    return series


def defined(series: pd.Series) -> pd.Series:
    """Rows whose value is defined (finite)."""
    return series[np.isfinite(series.to_numpy(dtype=float))]


@dataclass(frozen=True)
class MarketData:
    """
    Daily asset prices paired with the annualized risk-free yield.

    Attributes
    ----------
    asset_prices : pd.Series
        Adjusted closing prices of the asset, one row per trading day
    risk_free_annual_pct : pd.Series
        Annualized risk-free yield in percent (e.g. 5.2 for 5.2%)
    asset_symbol : str
        Ticker of the asset
    rate_symbol : str
        Ticker of the risk-free instrument
    """
    asset_prices: pd.Series
    risk_free_annual_pct: pd.Series
    asset_symbol: str = "ASSET"
    rate_symbol: str = "RATE"

    def __post_init__(self):
        prices = ensure_series(sort_and_dedupe(self.asset_prices, "asset_prices"), "asset_prices")
        rates = ensure_series(
            sort_and_dedupe(self.risk_free_annual_pct, "risk_free_annual_pct"),
            "risk_free_annual_pct"
        )
        check_aligned(prices, rates, "asset_prices", "risk_free_annual_pct")
        # frozen dataclass: assign the validated copies through object.__setattr__
        object.__setattr__(self, "asset_prices", prices.rename(self.asset_symbol))
        object.__setattr__(self, "risk_free_annual_pct", rates.rename(self.rate_symbol))

    def __len__(self) -> int:
        return len(self.asset_prices)

    @property
    def start_date(self) -> Optional[pd.Timestamp]:
        return self.asset_prices.index[0] if len(self) else None

    @property
    def end_date(self) -> Optional[pd.Timestamp]:
        return self.asset_prices.index[-1] if len(self) else None


__all__ = [
    'ensure_series',
    'check_aligned',
    'defined',
    'sort_and_dedupe',
    'MarketData',
]
