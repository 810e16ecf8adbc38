"""Engine package: strategy catalog, statistics and the run-state controller."""

from .controller import EngineController
from .errors import (
    AlreadyRunningError,
    EngineError,
    InsufficientBalanceError,
    InsufficientFundsError,
    NotReadyError,
)
from .registry import StrategyRegistry
from .statistics import StatisticsAggregator

__all__ = [
    "AlreadyRunningError",
    "EngineController",
    "EngineError",
    "InsufficientBalanceError",
    "InsufficientFundsError",
    "NotReadyError",
    "StatisticsAggregator",
    "StrategyRegistry",
]
