"""
trendbench: moving-average crossover and z-score strategy backtests.

Compares a 90/10 buy-and-hold benchmark against SMA-crossover and
SMA + z-score switching strategies on one equity index and a T-bill yield.

Modules:
    rolling      Rolling Statistics Engine
    signals      Signal Generator
    returns      Return Compounder
    performance  Performance Analyzer
    pipeline     Strategy Pipeline (orchestrator)
    data_loader  Yahoo Finance / CSV price provider
    report       Text, JSON and CSV output
"""

from trendbench.config import VERSION, PipelineConfig, StrategyVariant, ZScoreMode
from trendbench.errors import (
    AlignmentError,
    BacktestError,
    ConfigurationError,
    DataSourceError,
    InsufficientDataError,
    StatisticsUndefinedError,
)
from trendbench.pipeline import StrategyPipeline, VariantResult, run_strategies
from trendbench.series import MarketData

__version__ = VERSION

__all__ = [
    'VERSION',
    'PipelineConfig',
    'StrategyVariant',
    'ZScoreMode',
    'BacktestError',
    'ConfigurationError',
    'InsufficientDataError',
    'StatisticsUndefinedError',
    'AlignmentError',
    'DataSourceError',
    'MarketData',
    'StrategyPipeline',
    'VariantResult',
    'run_strategies',
]
