"""
Price-Series Provider
=====================

Supplies the engine with one asset price series and one risk-free yield
series, either from Yahoo Finance or from a local CSV file.

SOURCES
    Yahoo Finance   yfinance.download with retry and exponential backoff
                    (asset adjusted close, ^IRX yield in percent)
    CSV             long format with at least {date, symbol, adjusted_price}

CLEANING (build_market_data)
    1. Parse dates, strip timezones
    2. Drop non-finite values
    3. Sort by date, drop duplicate dates (last one wins)
    4. Inner-join asset and rate on date (or forward-fill the rate onto
       asset dates when fill_rate_gaps=True)

Every dropped row is counted and logged so data loss is never silent.
"""

from __future__ import annotations

import logging
import time
import warnings
from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd

from trendbench.config import DEFAULT_ASSET_SYMBOL, DEFAULT_RATE_SYMBOL, DEFAULT_START
from trendbench.errors import DataSourceError, InsufficientDataError
from trendbench.series import MarketData, sort_and_dedupe

# Suppress future warnings for cleaner output
warnings.filterwarnings('ignore', category=FutureWarning)

logger = logging.getLogger(__name__)


# =============================================================================
# CLEANING
# =============================================================================

def _clean_series(series: pd.Series, name: str) -> pd.Series:
    """Date-index, numeric, finite, sorted, deduplicated copy of ``series``."""
    series = series.copy()
    try:
        index = pd.to_datetime(series.index)
    except (TypeError, ValueError) as e:
        raise DataSourceError(f"{name}: unparseable dates ({e})") from e
    if index.tz is not None:
        index = index.tz_localize(None)
    series.index = index.normalize()
    series = pd.to_numeric(series, errors="coerce").astype(float)

    finite = np.isfinite(series.to_numpy())
    n_bad = int((~finite).sum())
    if n_bad:
        logger.warning(f"{name}: dropped {n_bad} missing or non-numeric values")
        series = series[finite]

    return sort_and_dedupe(series, name)


def build_market_data(
    asset_prices: pd.Series,
    rate_pct: pd.Series,
    asset_symbol: str = DEFAULT_ASSET_SYMBOL,
    rate_symbol: str = DEFAULT_RATE_SYMBOL,
    fill_rate_gaps: bool = False
) -> MarketData:
    """
    Clean and align raw provider output into MarketData.

    Args:
        asset_prices: Raw adjusted closing prices
        rate_pct: Raw annualized risk-free yield in percent
        asset_symbol: Asset ticker
        rate_symbol: Rate ticker
        fill_rate_gaps: Carry the last known yield forward onto asset dates
            the rate series lacks, instead of dropping those dates

    Returns:
        MarketData over the common dates

    Raises:
        InsufficientDataError: no common dates remain
    """
    asset = _clean_series(asset_prices, asset_symbol)
    rate = _clean_series(rate_pct, rate_symbol)

    if fill_rate_gaps:
        rate = rate.reindex(rate.index.union(asset.index)).ffill().reindex(asset.index)
        rate = rate.dropna()

    common = asset.index.intersection(rate.index)
    dropped_asset = len(asset) - len(common)
    dropped_rate = len(rate) - len(common)
    if dropped_asset or dropped_rate:
        logger.info(
            f"Aligned on {len(common)} common dates "
            f"(dropped {dropped_asset} {asset_symbol} rows, {dropped_rate} {rate_symbol} rows)"
        )

    if len(common) == 0:
        raise InsufficientDataError(
            f"No overlapping dates between {asset_symbol} and {rate_symbol}",
            required_count=1,
            available_count=0,
            stage="data"
        )

    return MarketData(
        asset_prices=asset.loc[common],
        risk_free_annual_pct=rate.loc[common],
        asset_symbol=asset_symbol,
        rate_symbol=rate_symbol
    )


# =============================================================================
# CSV SOURCE
# =============================================================================

def load_price_csv(
    path: Union[str, Path],
    asset_symbol: str = DEFAULT_ASSET_SYMBOL,
    rate_symbol: str = DEFAULT_RATE_SYMBOL,
    date_col: str = "date",
    symbol_col: str = "symbol",
    price_col: str = "adjusted_price",
    fill_rate_gaps: bool = False
) -> MarketData:
    """
    Load asset and rate series from a long-format CSV file.

    Expected layout (extra columns are ignored):

        date,symbol,adjusted_price
        2020-01-02,^GSPC,3257.85
        2020-01-02,^IRX,1.495

    Args:
        path: CSV file path
        asset_symbol: Symbol of the asset rows
        rate_symbol: Symbol of the risk-free rows
        date_col, symbol_col, price_col: Column names
        fill_rate_gaps: See build_market_data

    Returns:
        MarketData
    """
    path = Path(path)
    try:
        df = pd.read_csv(path, low_memory=False)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DataSourceError(f"Failed to read {path}: {e}", source=str(path)) from e

    missing = [c for c in (date_col, symbol_col, price_col) if c not in df.columns]
    if missing:
        raise DataSourceError(
            f"{path} is missing required columns: {', '.join(missing)}",
            source=str(path)
        )

    logger.info(f"Loaded {len(df)} rows from {path}")
    symbols = df[symbol_col].astype(str).str.strip()

    def _extract(symbol: str) -> pd.Series:
        rows = df[symbols == symbol]
        if rows.empty:
            raise DataSourceError(f"No rows for symbol {symbol} in {path}", source=str(path))
        return pd.Series(rows[price_col].to_numpy(), index=rows[date_col].to_numpy(), name=symbol)

    return build_market_data(
        _extract(asset_symbol),
        _extract(rate_symbol),
        asset_symbol=asset_symbol,
        rate_symbol=rate_symbol,
        fill_rate_gaps=fill_rate_gaps
    )


# =============================================================================
# YAHOO FINANCE SOURCE
# =============================================================================

class YahooPriceProvider:
    """
    Yahoo Finance acquisition with retry logic.

    Fetches the asset's adjusted close and the risk-free yield (``^IRX`` is
    quoted in percent) and aligns them into MarketData.
    """

    def __init__(self, max_retries: int = 3, timeout: int = 30):
        """
        Initialize provider.

        Args:
            max_retries: Maximum attempts per symbol
            timeout: Request timeout in seconds
        """
        self._yf = None
        self.max_retries = max_retries
        self.timeout = timeout

    def _get_yf(self):
        """Lazy load yfinance to avoid import overhead."""
        if self._yf is None:
            import yfinance as yf
            self._yf = yf
        return self._yf

    def fetch_close(self, symbol: str, start: str, end: Optional[str] = None) -> pd.Series:
        """
        Fetch the adjusted closing price series of one symbol.

        Falls back to ``Close`` when the vendor omits ``Adj Close`` (indexes
        and yields carry no adjustments).
        """
        yf = self._get_yf()
        logger.info(f"Fetching {symbol} ({start} to {end or 'today'})")

        data = None
        for attempt in range(self.max_retries):
            try:
                data = yf.download(
                    symbol,
                    start=start,
                    end=end,
                    auto_adjust=False,
                    progress=False,
                    timeout=self.timeout
                )
                if data is None or len(data) == 0:
                    raise DataSourceError(f"No data returned for {symbol}", source="yahoo_finance")
                break
            except Exception as e:
                if attempt < self.max_retries - 1:
                    wait_time = 2 ** attempt
                    logger.warning(f"Fetch of {symbol} failed: {e}, retrying in {wait_time}s...")
                    time.sleep(wait_time)
                else:
                    if isinstance(e, DataSourceError):
                        raise
                    raise DataSourceError(
                        f"Failed to fetch {symbol} after {self.max_retries} attempts: {e}",
                        source="yahoo_finance"
                    ) from e

        return self._extract_close(data, symbol)

    @staticmethod
    def _extract_close(data: pd.DataFrame, symbol: str) -> pd.Series:
        # Recent yfinance returns (field, ticker) MultiIndex columns even for one ticker
        if isinstance(data.columns, pd.MultiIndex):
            if symbol in data.columns.get_level_values(-1):
                data = data.xs(symbol, axis=1, level=-1)
            else:
                data = data.droplevel(-1, axis=1)

        for column in ("Adj Close", "Close"):
            if column in data.columns:
                return data[column].rename(symbol)

        raise DataSourceError(
            f"Downloaded data for {symbol} has no close column "
            f"(columns: {list(data.columns)})",
            source="yahoo_finance"
        )

    def fetch(
        self,
        asset_symbol: str = DEFAULT_ASSET_SYMBOL,
        rate_symbol: str = DEFAULT_RATE_SYMBOL,
        start: str = DEFAULT_START,
        end: Optional[str] = None,
        fill_rate_gaps: bool = False
    ) -> MarketData:
        """Fetch both series and align them into MarketData."""
        asset = self.fetch_close(asset_symbol, start, end)
        rate = self.fetch_close(rate_symbol, start, end)
        market_data = build_market_data(
            asset, rate,
            asset_symbol=asset_symbol,
            rate_symbol=rate_symbol,
            fill_rate_gaps=fill_rate_gaps
        )
        logger.info(
            f"Market data ready: {len(market_data)} days "
            f"({market_data.start_date.date()} to {market_data.end_date.date()})"
        )
        return market_data


__all__ = [
    'build_market_data',
    'load_price_csv',
    'YahooPriceProvider',
]
