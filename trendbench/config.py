"""
Configuration Module for the Strategy Backtesting Engine

This module centralizes the constants, enumerations and the run-level
configuration object used throughout the pipeline.

All "magic numbers" live here so that:
1. There is a single source of truth for every default
2. Analysis code never hard-codes a window or threshold
3. Assumptions (252 trading days, 90/10 benchmark) stay visible
"""

from __future__ import annotations

import json
import math
import numbers
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from trendbench.errors import ConfigurationError


# =============================================================================
# CONSTANTS
# =============================================================================

# Trading calendar
TRADING_DAYS_YEAR: int = 252

# Moving-average crossover ("golden cross" 50/200)
DEFAULT_FAST_WINDOW: int = 50
DEFAULT_SLOW_WINDOW: int = 200

# Z-score filter: stay out after 3 consecutive closes with z < -0.05
DEFAULT_ZSCORE_LOOKBACK: int = 3
DEFAULT_ZSCORE_THRESHOLD: float = -0.05

# Buy-and-hold benchmark: 90% index, 10% T-bills
DEFAULT_ASSET_WEIGHT: float = 0.9

# Market data defaults (S&P 500 index, 13-week T-bill yield in percent)
DEFAULT_ASSET_SYMBOL: str = "^GSPC"
DEFAULT_RATE_SYMBOL: str = "^IRX"
DEFAULT_START: str = "1990-01-01"

VERSION: str = "1.0.0"


# =============================================================================
# ENUMERATIONS
# =============================================================================

class StrategyVariant(Enum):
    """Named strategy variants the pipeline can run."""
    BUY_HOLD = "buy_hold"
    SMA_CROSSOVER = "sma_crossover"
    SMA_PLUS_ZSCORE = "sma_plus_zscore"

    @classmethod
    def parse(cls, value: Union[str, 'StrategyVariant']) -> 'StrategyVariant':
        """Accept an enum member or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(v.value for v in cls)
            raise ConfigurationError(
                f"Unknown strategy variant '{value}' (expected one of: {valid})",
                parameter="variants"
            ) from None


class ZScoreMode(Enum):
    """
    Normalization used for the spread z-score.

    FULL_SAMPLE: mean/stddev over the whole spread history (reference behavior,
                 uses information from after each date)
    TRAILING:    mean/stddev over a trailing window (causal)
    """
    FULL_SAMPLE = "full_sample"
    TRAILING = "trailing"


class VariantStatus(Enum):
    """Outcome of one variant run."""
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


# =============================================================================
# RUN CONFIGURATION
# =============================================================================

ALL_VARIANTS: Tuple[StrategyVariant, ...] = tuple(StrategyVariant)


@dataclass
class PipelineConfig:
    """
    Parameters for one pipeline run.

    Attributes
    ----------
    fast_window : int
        Fast SMA length in trading days
    slow_window : int
        Slow SMA length; also the SMA the price spread is measured against
    zscore_lookback : int
        Number of prior days whose z-score must all be below threshold
    zscore_threshold : float
        Z-score level below which a day counts as "stretched to the downside"
    zscore_mode : ZScoreMode
        Full-sample (reference) or trailing normalization
    zscore_window : Optional[int]
        Trailing normalization window; defaults to ``slow_window``
    trend_lag : int
        Extra lag applied to the trend signal before it is AND-ed with the
        z-score signal. 0 keeps a single lag for every variant.
    asset_weight : float
        Index weight of the buy-and-hold benchmark
    risk_free_rate_per_period : Optional[float]
        Scalar daily rate subtracted in the Sharpe ratio. ``None`` uses the
        mean daily risk-free return over the days each variant holds a
        defined return (after its warm-up).
    variants : Tuple[StrategyVariant, ...]
        Variants to run, in reporting order
    """
    fast_window: int = DEFAULT_FAST_WINDOW
    slow_window: int = DEFAULT_SLOW_WINDOW
    zscore_lookback: int = DEFAULT_ZSCORE_LOOKBACK
    zscore_threshold: float = DEFAULT_ZSCORE_THRESHOLD
    zscore_mode: ZScoreMode = ZScoreMode.FULL_SAMPLE
    zscore_window: Optional[int] = None
    trend_lag: int = 0
    asset_weight: float = DEFAULT_ASSET_WEIGHT
    risk_free_rate_per_period: Optional[float] = None
    variants: Tuple[StrategyVariant, ...] = field(default_factory=lambda: ALL_VARIANTS)

    def __post_init__(self):
        if not isinstance(self.zscore_mode, ZScoreMode):
            mode = self.zscore_mode
            if isinstance(mode, str):
                mode = mode.strip().lower()
            try:
                self.zscore_mode = ZScoreMode(mode)
            except (ValueError, TypeError):
                valid = ", ".join(m.value for m in ZScoreMode)
                raise ConfigurationError(
                    f"Unknown z-score mode {self.zscore_mode!r} (expected one of: {valid})",
                    parameter="zscore_mode"
                ) from None

        if isinstance(self.variants, (str, StrategyVariant)):
            self.variants = (self.variants,)
        if not isinstance(self.variants, Iterable):
            raise ConfigurationError(
                f"variants must be a list of variant names, got {self.variants!r}",
                parameter="variants"
            )
        self.variants = tuple(StrategyVariant.parse(v) for v in self.variants)

    @property
    def effective_zscore_window(self) -> int:
        """Trailing z-score window actually used."""
        return self.zscore_window if self.zscore_window is not None else self.slow_window

    def validate(self) -> 'PipelineConfig':
        """
        Check every parameter range.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigurationError: on the first invalid parameter
        """
        for name in ("fast_window", "slow_window", "zscore_lookback"):
            _require_positive_int(name, getattr(self, name))

        if self.fast_window >= self.slow_window:
            raise ConfigurationError(
                f"fast_window ({self.fast_window}) must be shorter than "
                f"slow_window ({self.slow_window})",
                parameter="fast_window"
            )

        if not _is_finite_number(self.zscore_threshold):
            raise ConfigurationError(
                f"zscore_threshold must be a finite number, got {self.zscore_threshold!r}",
                parameter="zscore_threshold"
            )

        if not isinstance(self.zscore_mode, ZScoreMode):
            raise ConfigurationError(
                f"zscore_mode must be a ZScoreMode, got {self.zscore_mode!r}",
                parameter="zscore_mode"
            )

        if self.zscore_mode == ZScoreMode.TRAILING:
            _require_positive_int("zscore_window", self.effective_zscore_window)
            if self.effective_zscore_window < 2:
                raise ConfigurationError(
                    "zscore_window must be at least 2 for a sample standard deviation",
                    parameter="zscore_window"
                )

        if isinstance(self.trend_lag, bool) or not isinstance(self.trend_lag, numbers.Integral) or self.trend_lag < 0:
            raise ConfigurationError(
                f"trend_lag must be a non-negative integer, got {self.trend_lag!r}",
                parameter="trend_lag"
            )

        if not _is_finite_number(self.asset_weight) or not 0.0 < self.asset_weight <= 1.0:
            raise ConfigurationError(
                f"asset_weight must lie in (0, 1], got {self.asset_weight!r}",
                parameter="asset_weight"
            )

        if self.risk_free_rate_per_period is not None and not _is_finite_number(
            self.risk_free_rate_per_period
        ):
            raise ConfigurationError(
                "risk_free_rate_per_period must be a finite number or None",
                parameter="risk_free_rate_per_period"
            )

        if not self.variants:
            raise ConfigurationError("At least one variant must be requested", parameter="variants")
        if not isinstance(self.variants, (tuple, list)) or not all(
            isinstance(v, StrategyVariant) for v in self.variants
        ):
            raise ConfigurationError("variants must be StrategyVariant members", parameter="variants")
        if len(set(self.variants)) != len(self.variants):
            raise ConfigurationError("Duplicate variants requested", parameter="variants")

        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data = asdict(self)
        data["zscore_mode"] = self.zscore_mode.value
        data["variants"] = [v.value for v in self.variants]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PipelineConfig':
        """Build a config from a plain mapping; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {', '.join(unknown)}",
                parameter=unknown[0]
            )
        return cls(**data)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'PipelineConfig':
        """Load a config from a JSON file."""
        path = Path(path)
        try:
            data = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Could not read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a JSON object")
        return cls.from_dict(data)


def _is_finite_number(value: Any) -> bool:
    return (
        isinstance(value, numbers.Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _require_positive_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value <= 0:
        raise ConfigurationError(
            f"{name} must be a positive integer, got {value!r}",
            parameter=name
        )


__all__ = [
    'TRADING_DAYS_YEAR',
    'DEFAULT_FAST_WINDOW',
    'DEFAULT_SLOW_WINDOW',
    'DEFAULT_ZSCORE_LOOKBACK',
    'DEFAULT_ZSCORE_THRESHOLD',
    'DEFAULT_ASSET_WEIGHT',
    'DEFAULT_ASSET_SYMBOL',
    'DEFAULT_RATE_SYMBOL',
    'DEFAULT_START',
    'VERSION',
    'StrategyVariant',
    'ZScoreMode',
    'VariantStatus',
    'ALL_VARIANTS',
    'PipelineConfig',
]
