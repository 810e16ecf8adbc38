"""Dataclasses shared by the scanner, executor and controller."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(slots=True)
class Strategy:
    """A catalog entry; cumulative fields are updated by the trade executor."""
    id: str
    name: str
    type: str
    risk_level: str
    enabled: bool
    priority: int
    success_rate: float
    apy: float
    total_trades: int = 0
    total_profit_usd: float = 0.0


@dataclass(frozen=True, slots=True)
class Opportunity:
    """A point-in-time candidate produced by one scan."""
    id: str
    sequence: int
    type: str
    profit_eth: float
    gas_price_gwei: float
    block_number: int
    timestamp: int  # epoch ms


@dataclass(slots=True)
class TradeStatistics:
    start_time: float
    trades: int = 0
    successful_trades: int = 0
    failed_trades: int = 0
    total_profit_eth: float = 0.0
    total_gas_cost_eth: float = 0.0
    avg_latency_ms: float = 0.0
    last_trade_time: int = 0  # epoch ms, 0 until the first trade
    executed_trades: int = 0
    total_profit_usd: float = 0.0

    @property
    def success_rate(self) -> float:
        """Successful trades as a percentage of all attempts."""
        if self.trades == 0:
            return 0.0
        return self.successful_trades / self.trades * 100

    @property
    def net_profit_eth(self) -> float:
        return self.total_profit_eth - self.total_gas_cost_eth


@dataclass(slots=True)
class EngineState:
    normal_running: bool = False
    high_frequency_running: bool = False

    @property
    def active(self) -> bool:
        return self.normal_running or self.high_frequency_running


@dataclass(slots=True)
class TradeResult:
    success: bool
    strategy_id: str
    profit_eth: float
    gas_cost_eth: float
    latency_ms: float

    @property
    def net_profit_eth(self) -> float:
        return self.profit_eth - self.gas_cost_eth


@dataclass(slots=True)
class SimulatedOutcome:
    profit_eth: float
    gas_cost_eth: float


@dataclass(slots=True)
class WithdrawalResult:
    tx_hash: str
    amount_eth: Decimal
    to: str


@dataclass(slots=True)
class FeeData:
    gas_price_wei: int
    max_fee_per_gas_wei: Optional[int] = None
    max_priority_fee_per_gas_wei: Optional[int] = None

    @property
    def gas_price_gwei(self) -> float:
        return self.gas_price_wei / 1e9


@dataclass(slots=True)
class NetworkInfo:
    name: str
    chain_id: int
