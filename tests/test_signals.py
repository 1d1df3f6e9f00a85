"""Tests for SMA crossover, z-score filter and combined signals"""

import math

import numpy as np
import pandas as pd
import pytest

from conftest import make_series, trending_prices
from trendbench.config import ZScoreMode
from trendbench.errors import (
    AlignmentError,
    ConfigurationError,
    InsufficientDataError,
    StatisticsUndefinedError,
)
from trendbench.rolling import rolling_mean
from trendbench.signals import (
    combined_signal,
    signal_exposure,
    sma_crossover_signal,
    spread_zscore,
    zscore_filter_signal,
)

NAN = float("nan")


def assert_signal(result, expected):
    """Compare signal values, treating NaN == NaN"""
    assert len(result) == len(expected)
    for got, want in zip(result.tolist(), expected):
        if math.isnan(want):
            assert math.isnan(got)
        else:
            assert got == want


class TestSmaCrossover:
    """Test fast/slow SMA crossover signal"""

    def test_strict_inequality(self):
        """Equal SMAs are not bullish"""
        fast = make_series([NAN, 1.0, 2.0, 3.0])
        slow = make_series([NAN, 2.0, 2.0, 2.0])
        assert_signal(sma_crossover_signal(fast, slow), [NAN, 0.0, 0.0, 1.0])

    def test_undefined_when_either_undefined(self):
        fast = make_series([1.0, NAN, 3.0])
        slow = make_series([NAN, 1.0, 1.0])
        assert_signal(sma_crossover_signal(fast, slow), [NAN, NAN, 1.0])

    def test_mismatched_dates(self):
        fast = make_series([1.0, 2.0, 3.0])
        slow = make_series([1.0, 2.0, 3.0], start="2021-01-01")
        with pytest.raises(AlignmentError):
            sma_crossover_signal(fast, slow)

    def test_no_lookahead(self):
        """Changing prices after index k never changes signal[:k+1]"""
        prices = trending_prices(300)
        before = sma_crossover_signal(rolling_mean(prices, 20), rolling_mean(prices, 60))

        changed = prices.copy()
        changed.iloc[151:] = changed.iloc[151:] * 0.5
        after = sma_crossover_signal(rolling_mean(changed, 20), rolling_mean(changed, 60))

        pd.testing.assert_series_equal(before.iloc[:151], after.iloc[:151])


class TestSpreadZScore:
    """Test z-score of price minus slow SMA"""

    def test_full_sample_normalization(self):
        slow = make_series([NAN, 10, 10, 10, 10, 10, 10])
        price = make_series([10, 11, 9, 9, 9, 11, 11])
        z = spread_zscore(price, slow)

        spread = np.array([1, -1, -1, -1, 1, 1], dtype=float)
        expected = (spread - spread.mean()) / spread.std(ddof=1)
        assert math.isnan(z.iloc[0])
        assert z.iloc[1:].tolist() == pytest.approx(expected.tolist())

    def test_constant_spread_undefined(self):
        slow = make_series([10, 10, 10, 10])
        price = make_series([11, 11, 11, 11])
        with pytest.raises(StatisticsUndefinedError):
            spread_zscore(price, slow)

    def test_needs_two_defined_values(self):
        slow = make_series([NAN, NAN, 10])
        price = make_series([10, 10, 11])
        with pytest.raises(InsufficientDataError):
            spread_zscore(price, slow)

    def test_trailing_requires_window(self):
        slow = make_series([10, 10, 10, 10])
        price = make_series([11, 9, 12, 8])
        with pytest.raises(ConfigurationError):
            spread_zscore(price, slow, mode=ZScoreMode.TRAILING)

    def test_trailing_uses_window(self):
        slow = make_series([10, 10, 10, 10, 10])
        price = make_series([11, 12, 13, 14, 15])
        z = spread_zscore(price, slow, mode="trailing", window=3)
        # spread 1,2,3 -> (3 - 2) / 1
        assert z.iloc[2] == pytest.approx(1.0)
        assert z.iloc[:2].isna().all()


class TestZScoreFilter:
    """Test suppression after a run of low z-scores"""

    def setup_method(self):
        # spread: nan, 1, -1, -1, -1, 1, 1 -> z has the same signs
        self.slow = make_series([NAN, 10, 10, 10, 10, 10, 10])
        self.price = make_series([10, 11, 9, 9, 9, 11, 11])

    def test_suppresses_after_three_low_days(self):
        signal = zscore_filter_signal(self.price, self.slow, lookback=3, threshold=-0.05)
        # i=4 looks at z[3], z[2], z[1] (-, -, +) -> 1
        # i=5 looks at z[4], z[3], z[2] (-, -, -) -> 0
        # i=6 looks at z[5], z[4], z[3] (+, -, -) -> 1
        assert_signal(signal, [NAN, NAN, NAN, NAN, 1.0, 0.0, 1.0])

    def test_current_day_not_used(self):
        """Signal at i ignores z[i]"""
        signal = zscore_filter_signal(self.price, self.slow, lookback=1, threshold=-0.05)
        # i=2 looks at z[1] (+) -> 1 although z[2] is low
        assert signal.iloc[2] == 1.0
        assert signal.iloc[3] == 0.0

    def test_threshold_is_strict(self):
        """z exactly at threshold does not count as below"""
        slow = make_series([NAN, 0.0, 0.0, 0.0, 0.0])
        price = make_series([0.0, 1.0, -1.0, 1.0, -1.0])
        z = spread_zscore(price, slow)
        signal = zscore_filter_signal(price, slow, lookback=1, threshold=float(z.iloc[2]))
        assert signal.iloc[3] == 1.0

    @pytest.mark.parametrize("lookback", [0, -1, 1.5, True])
    def test_invalid_lookback(self, lookback):
        with pytest.raises(ConfigurationError):
            zscore_filter_signal(self.price, self.slow, lookback=lookback)

    @pytest.mark.parametrize("threshold", [NAN, float("inf"), "low"])
    def test_invalid_threshold(self, threshold):
        with pytest.raises(ConfigurationError):
            zscore_filter_signal(self.price, self.slow, threshold=threshold)

    def test_trailing_mode_no_lookahead(self):
        prices = trending_prices(300)
        slow = rolling_mean(prices, 60)
        before = zscore_filter_signal(prices, slow, mode=ZScoreMode.TRAILING, window=40)

        changed = prices.copy()
        changed.iloc[201:] = changed.iloc[201:] * 0.5
        slow_changed = rolling_mean(changed, 60)
        after = zscore_filter_signal(changed, slow_changed, mode=ZScoreMode.TRAILING, window=40)

        pd.testing.assert_series_equal(before.iloc[:201], after.iloc[:201])


class TestCombinedSignal:
    """Test logical AND of trend and z-score signals"""

    def test_and(self):
        trend = make_series([1, 1, 0, NAN, 1])
        z = make_series([1, 0, 1, 1, NAN])
        assert_signal(combined_signal(trend, z), [1.0, 0.0, 0.0, NAN, NAN])

    def test_extra_trend_lag(self):
        trend = make_series([1, 1, 0, NAN, 1])
        z = make_series([1, 0, 1, 1, NAN])
        # shifted trend: nan, 1, 1, 0, nan
        assert_signal(combined_signal(trend, z, trend_lag=1), [NAN, 0.0, 1.0, 0.0, NAN])

    def test_rejects_non_binary(self):
        with pytest.raises(ConfigurationError):
            combined_signal(make_series([1, 2]), make_series([1, 1]))

    def test_rejects_negative_lag(self):
        with pytest.raises(ConfigurationError):
            combined_signal(make_series([1, 1]), make_series([1, 1]), trend_lag=-1)


class TestSignalExposure:

    def test_fraction_of_defined_days(self):
        assert signal_exposure(make_series([NAN, 1, 0, 1, 1])) == 0.75

    def test_all_undefined(self):
        assert math.isnan(signal_exposure(make_series([NAN, NAN])))
