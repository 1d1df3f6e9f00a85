"""
Error Hierarchy for the Strategy Backtesting Engine
===================================================

Every component validates its own inputs and raises one of the exceptions
below instead of letting an undefined value flow into compounding, where a
single NaN would corrupt every later point of a growth curve.

HIERARCHY
    BacktestError
        ConfigurationError        Invalid window, weight, lookback, threshold
        InsufficientDataError     Not enough observations for a computation
        StatisticsUndefinedError  Dispersion undefined or zero
        AlignmentError            Date sets of paired series do not match
        DataSourceError           Price provider could not deliver data

The orchestrator catches ``BacktestError`` per strategy variant, so one
variant failing (e.g. 200-day SMA on 150 days of history) leaves the
others intact.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class BacktestError(Exception):
    """Base class for all engine errors."""

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.context = context or {}


class ConfigurationError(BacktestError):
    """A parameter is outside its valid range."""

    def __init__(self, message: str, parameter: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.parameter = parameter


class InsufficientDataError(BacktestError):
    """Not enough defined observations for the requested computation."""

    def __init__(
        self,
        message: str,
        required_count: Optional[int] = None,
        available_count: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.required_count = required_count
        self.available_count = available_count


class StatisticsUndefinedError(BacktestError):
    """Standard deviation (and everything divided by it) is undefined."""

    def __init__(self, message: str, observations: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.observations = observations


class AlignmentError(BacktestError):
    """Two series that must share dates do not."""

    def __init__(
        self,
        message: str,
        missing_left: int = 0,
        missing_right: int = 0,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.missing_left = missing_left
        self.missing_right = missing_right


class DataSourceError(BacktestError):
    """The price-series provider failed."""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.source = source


__all__ = [
    'BacktestError',
    'ConfigurationError',
    'InsufficientDataError',
    'StatisticsUndefinedError',
    'AlignmentError',
    'DataSourceError',
]
