"""Pytest configuration and shared fixtures."""

import numpy as np
import pandas as pd
import pytest

from trendbench.series import MarketData


def business_days(n: int, start: str = "2020-01-01") -> pd.DatetimeIndex:
    """n consecutive business days."""
    return pd.bdate_range(start, periods=n)


def make_series(values, start: str = "2020-01-01") -> pd.Series:
    """Float series on consecutive business days."""
    return pd.Series(values, index=business_days(len(values), start), dtype=float)


def trending_prices(n: int, seed: int = 7) -> pd.Series:
    """Rally for 250 days, then a sustained decline, with daily noise."""
    rng = np.random.RandomState(seed)
    drift = np.where(np.arange(n) < 250, 0.002, -0.003)
    log_path = np.cumsum(drift + 0.01 * rng.standard_normal(n))
    return pd.Series(100.0 * np.exp(log_path), index=business_days(n))


def make_market_data(n: int, rate_pct: float = 5.0, seed: int = 7) -> MarketData:
    prices = trending_prices(n, seed)
    rates = pd.Series(rate_pct, index=prices.index)
    return MarketData(prices, rates, asset_symbol="^GSPC", rate_symbol="^IRX")


@pytest.fixture
def market_data() -> MarketData:
    """400 days: long enough for 50/200 SMAs with room to trade."""
    return make_market_data(400)


@pytest.fixture
def short_market_data() -> MarketData:
    """150 days: too short for a 200-day SMA."""
    return make_market_data(150)
