"""Bundle of the long-lived objects shared by the HTTP API and the Telegram bot."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from engine.controller import EngineController
from engine.registry import StrategyRegistry
from engine.statistics import StatisticsAggregator


@dataclass
class EngineContext:
    registry: StrategyRegistry
    statistics: StatisticsAggregator
    scanner: Any
    controller: EngineController
    withdrawal: Any
    price_client: Any
    provider: Optional[Any] = None
    wallet: Optional[Any] = None
    backend_wallet_address: str = ""
    profit_wallet_address: str = ""
