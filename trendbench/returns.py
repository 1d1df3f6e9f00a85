"""
Return Compounder
=================

Turns signals and return series into realized daily strategy returns and
compounds them into growth curves.

TIMING (no lookahead)
    The signal is computed from data through the close of day t-1. The
    exposure it selects earns the return of day t:

        realized[t] = asset_return[t]        if signal[t-1] == 1
                    = risk_free_return[t]    if signal[t-1] == 0
                    = undefined              if signal[t-1] is undefined

    Applying the signal to the same-day return would be lookahead bias.

RISK-FREE CONVERSION
    The treasury yield is quoted as an annualized percentage; the daily
    rate is (1 + pct / 100) ^ (1 / 252) - 1.

COMPOUNDING POLICY
    growth[i] = prod_{k <= i} (1 + r[k]), from an implicit base of 1.0.
    Undefined returns are dropped from the output (fail closed) rather
    than multiplied in as NaN.
"""

from __future__ import annotations

import logging
import math
import numbers

import numpy as np
import pandas as pd

from trendbench.config import DEFAULT_ASSET_WEIGHT, TRADING_DAYS_YEAR
from trendbench.errors import ConfigurationError, InsufficientDataError
from trendbench.series import check_aligned, defined, ensure_series

logger = logging.getLogger(__name__)

STAGE = "returns"


# =============================================================================
# RETURN SERIES
# =============================================================================

def asset_returns(prices: pd.Series, method: str = "simple") -> pd.Series:
    """
    Daily returns of a price series.

    Args:
        prices: Adjusted closing prices
        method: "simple" (p[t]/p[t-1] - 1) or "log" (ln(p[t]/p[t-1]))

    Returns:
        Return series; the first observation is undefined
    """
    prices = ensure_series(prices, "prices")
    if (defined(prices) <= 0).any():
        raise ConfigurationError(
            "Prices must be strictly positive to compute returns",
            parameter="prices",
            stage=STAGE
        )

    ratio = prices / prices.shift(1)
    if method == "simple":
        return (ratio - 1.0).rename("returns")
    if method == "log":
        return np.log(ratio).rename("returns")
    raise ConfigurationError(
        f"Unknown return method '{method}' (expected 'simple' or 'log')",
        parameter="method",
        stage=STAGE
    )


def annual_pct_to_daily_rate(
    rates_pct: pd.Series,
    periods_per_year: int = TRADING_DAYS_YEAR
) -> pd.Series:
    """
    Convert an annualized percentage yield to a per-period rate.

    Example:
        5.0 (i.e. 5% a year) -> (1.05) ** (1/252) - 1 ~= 0.000193616
    """
    rates_pct = ensure_series(rates_pct, "rates_pct")
    if (defined(rates_pct) <= -100.0).any():
        raise ConfigurationError(
            "Annual rates must be above -100%",
            parameter="rates_pct",
            stage=STAGE
        )
    return ((1.0 + rates_pct / 100.0) ** (1.0 / periods_per_year) - 1.0).rename("risk_free")


# =============================================================================
# STRATEGY RETURNS
# =============================================================================

def strategy_returns(
    signal: pd.Series,
    asset_returns: pd.Series,
    risk_free_returns: pd.Series
) -> pd.Series:
    """
    Realized daily returns of a signal-driven switch between asset and cash.

    Args:
        signal: Binary signal (1.0 / 0.0 / NaN) observed at each close
        asset_returns: Daily asset returns
        risk_free_returns: Daily risk-free returns (already per period)

    Returns:
        Realized return series, NaN where yesterday's signal is undefined
    """
    signal = ensure_series(signal, "signal")
    asset = ensure_series(asset_returns, "asset_returns")
    risk_free = ensure_series(risk_free_returns, "risk_free_returns")
    check_aligned(signal, asset, "signal", "asset_returns")
    check_aligned(asset, risk_free, "asset_returns", "risk_free_returns")

    if not defined(signal).isin([0.0, 1.0]).all():
        raise ConfigurationError(
            "signal must contain only 0, 1 or undefined values",
            parameter="signal",
            stage=STAGE
        )

    # Decide at close of t-1, earn the return of day t
    position = signal.shift(1)
    realized = asset.where(position == 1.0, risk_free).where(position.notna())
    return realized.rename("strategy")


def buy_and_hold_returns(
    asset_returns: pd.Series,
    risk_free_returns: pd.Series,
    asset_weight: float = DEFAULT_ASSET_WEIGHT
) -> pd.Series:
    """
    Fixed-weight benchmark: w * asset + (1 - w) * risk-free, every day.

    Args:
        asset_returns: Daily asset returns
        risk_free_returns: Daily risk-free returns
        asset_weight: Asset weight in (0, 1]

    Returns:
        Benchmark return series
    """
    if (
        isinstance(asset_weight, bool)
        or not isinstance(asset_weight, numbers.Real)
        or not math.isfinite(asset_weight)
        or not 0.0 < asset_weight <= 1.0
    ):
        raise ConfigurationError(
            f"asset_weight must lie in (0, 1], got {asset_weight!r}",
            parameter="asset_weight",
            stage=STAGE
        )
    asset = ensure_series(asset_returns, "asset_returns")
    risk_free = ensure_series(risk_free_returns, "risk_free_returns")
    check_aligned(asset, risk_free, "asset_returns", "risk_free_returns")

    weight = float(asset_weight)
    return (weight * asset + (1.0 - weight) * risk_free).rename("buy_hold")


# =============================================================================
# COMPOUNDING
# =============================================================================

def compound_growth(returns: pd.Series, log: bool = False) -> pd.Series:
    """
    Cumulative growth of one unit invested.

    Rows with an undefined return are dropped from the output. Leading
    undefined rows are expected (warm-up and the first price diff); any
    interior gap is logged because the growth curve skips that day.

    Args:
        returns: Daily return series
        log: Treat ``returns`` as log returns and compound with exp(cumsum)

    Returns:
        Growth series over the defined rows only

    Raises:
        InsufficientDataError: no defined return at all
    """
    returns = ensure_series(returns, "returns")
    valid = defined(returns)

    if len(valid) == 0:
        raise InsufficientDataError(
            "Return series has no defined values to compound",
            required_count=1,
            available_count=0,
            stage=STAGE
        )

    interior = returns.loc[valid.index[0]:]
    dropped = len(interior) - len(valid)
    if dropped:
        logger.warning(
            f"Dropped {dropped} undefined returns inside the compounding window "
            f"({valid.index[0]} to {valid.index[-1]})"
        )

    if log:
        growth = np.exp(valid.cumsum())
    else:
        growth = (1.0 + valid).cumprod()
    return growth.rename("growth")


__all__ = [
    'asset_returns',
    'annual_pct_to_daily_rate',
    'strategy_returns',
    'buy_and_hold_returns',
    'compound_growth',
]
