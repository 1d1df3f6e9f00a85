"""Tests for return series, the execution lag and compounding"""

import logging
import math

import numpy as np
import pandas as pd
import pytest

from conftest import make_series
from trendbench.errors import AlignmentError, ConfigurationError, InsufficientDataError
from trendbench.returns import (
    annual_pct_to_daily_rate,
    asset_returns,
    buy_and_hold_returns,
    compound_growth,
    strategy_returns,
)

NAN = float("nan")


class TestAssetReturns:
    """Test price-to-return conversion"""

    def test_simple(self):
        returns = asset_returns(make_series([100.0, 110.0, 99.0]))
        assert math.isnan(returns.iloc[0])
        assert returns.iloc[1:].tolist() == pytest.approx([0.10, -0.10])

    def test_log(self):
        returns = asset_returns(make_series([100.0, 110.0]), method="log")
        assert returns.iloc[1] == pytest.approx(math.log(1.1))

    @pytest.mark.parametrize("price", [0.0, -5.0])
    def test_non_positive_prices(self, price):
        with pytest.raises(ConfigurationError):
            asset_returns(make_series([100.0, price, 101.0]))

    def test_unknown_method(self):
        with pytest.raises(ConfigurationError):
            asset_returns(make_series([100.0, 101.0]), method="excess")


class TestRiskFreeConversion:

    def test_five_percent(self):
        rate = annual_pct_to_daily_rate(make_series([5.0]))
        assert rate.iloc[0] == pytest.approx(1.05 ** (1 / 252) - 1)
        assert rate.iloc[0] == pytest.approx(0.000193616, rel=1e-5)

    def test_zero_and_undefined(self):
        rate = annual_pct_to_daily_rate(make_series([0.0, NAN]))
        assert rate.iloc[0] == 0.0
        assert math.isnan(rate.iloc[1])

    def test_rejects_total_loss_rate(self):
        with pytest.raises(ConfigurationError):
            annual_pct_to_daily_rate(make_series([-100.0]))


class TestStrategyReturns:
    """Test the one-period lag between signal and realized return"""

    def test_signal_applies_next_day(self):
        signal = make_series([0, 0, 0, 1, 1, 1])
        asset = make_series([NAN, 0.01, 0.02, 0.03, 0.04, 0.05])
        rf = make_series([0.001] * 6)

        realized = strategy_returns(signal, asset, rf)

        # signal flips at index 3, the asset return is first earned at index 4
        assert math.isnan(realized.iloc[0])
        assert realized.iloc[1:].tolist() == pytest.approx([0.001, 0.001, 0.001, 0.04, 0.05])

    def test_undefined_signal_gives_undefined_return(self):
        signal = make_series([NAN, NAN, 1, 0])
        asset = make_series([NAN, 0.01, 0.02, 0.03])
        rf = make_series([0.001] * 4)

        realized = strategy_returns(signal, asset, rf)

        assert realized.iloc[:3].isna().all()
        assert realized.iloc[3] == pytest.approx(0.03)

    def test_mismatched_dates(self):
        signal = make_series([0, 1, 1])
        asset = make_series([NAN, 0.01, 0.02], start="2021-06-01")
        rf = make_series([0.001] * 3, start="2021-06-01")
        with pytest.raises(AlignmentError):
            strategy_returns(signal, asset, rf)

    def test_rejects_non_binary_signal(self):
        signal = make_series([0.0, 0.5])
        asset = make_series([NAN, 0.01])
        rf = make_series([0.001, 0.001])
        with pytest.raises(ConfigurationError):
            strategy_returns(signal, asset, rf)

    def test_inputs_not_mutated(self):
        signal = make_series([0, 1, 1])
        asset = make_series([NAN, 0.01, 0.02])
        rf = make_series([0.001] * 3)
        snapshot = signal.copy()

        strategy_returns(signal, asset, rf)

        pd.testing.assert_series_equal(signal, snapshot)


class TestBuyAndHold:

    def test_weighted_mix(self):
        asset = make_series([0.02])
        rf = make_series([0.0001])
        mix = buy_and_hold_returns(asset, rf, asset_weight=0.9)
        assert mix.iloc[0] == pytest.approx(0.9 * 0.02 + 0.1 * 0.0001)
        assert mix.iloc[0] == pytest.approx(0.01801)

    def test_full_weight_is_asset(self):
        asset = make_series([NAN, 0.01, -0.02])
        rf = make_series([0.001] * 3)
        mix = buy_and_hold_returns(asset, rf, asset_weight=1.0)
        assert mix.iloc[1:].tolist() == pytest.approx([0.01, -0.02])

    @pytest.mark.parametrize("weight", [0.0, -0.1, 1.5, NAN, True])
    def test_invalid_weight(self, weight):
        with pytest.raises(ConfigurationError):
            buy_and_hold_returns(make_series([0.01]), make_series([0.001]), asset_weight=weight)


class TestCompoundGrowth:
    """Test cumulative growth from returns"""

    def test_cumulative_product(self):
        growth = compound_growth(make_series([0.01, -0.02, 0.03]))
        assert growth.tolist() == pytest.approx([1.01, 0.9898, 1.019494])

    def test_zero_returns_stay_flat(self):
        growth = compound_growth(make_series([0.0, 0.0, 0.0]))
        assert growth.tolist() == [1.0, 1.0, 1.0]

    def test_leading_undefined_dropped(self, caplog):
        returns = make_series([NAN, NAN, 0.1, 0.1])
        with caplog.at_level(logging.WARNING, logger="trendbench.returns"):
            growth = compound_growth(returns)
        assert growth.tolist() == pytest.approx([1.1, 1.21])
        assert list(growth.index) == list(returns.index[2:])
        assert "Dropped" not in caplog.text

    def test_interior_gap_dropped_and_logged(self, caplog):
        returns = make_series([0.1, NAN, 0.1])
        with caplog.at_level(logging.WARNING, logger="trendbench.returns"):
            growth = compound_growth(returns)
        assert growth.tolist() == pytest.approx([1.1, 1.21])
        assert "Dropped 1 undefined returns" in caplog.text

    def test_all_undefined(self):
        with pytest.raises(InsufficientDataError):
            compound_growth(make_series([NAN, NAN]))

    def test_log_returns(self):
        growth = compound_growth(make_series([math.log(1.1), math.log(1.1)]), log=True)
        assert growth.tolist() == pytest.approx([1.1, 1.21])

    def test_matches_numpy(self):
        values = np.random.RandomState(3).normal(0.0005, 0.01, 250)
        growth = compound_growth(make_series(values))
        assert growth.iloc[-1] == pytest.approx(np.prod(1.0 + values))
