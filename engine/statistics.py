"""Process-wide trade counters."""
from __future__ import annotations

import time
from typing import Callable

from constants import ETH_USD_CONVERSION
from engine.models import Strategy, TradeStatistics


class StatisticsAggregator:
    """Accumulates trade outcomes reported by the trade executor.

    All mutators are synchronous, so an update is applied in full before the
    event loop can switch to a reader.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self.stats = TradeStatistics(start_time=clock())

    def record_attempt(self) -> None:
        self.stats.trades += 1

    def record_failure(self) -> None:
        self.stats.failed_trades += 1

    def record_success(
        self,
        strategy: Strategy,
        profit_eth: float,
        gas_cost_eth: float,
        latency_ms: float,
    ) -> None:
        stats = self.stats
        stats.successful_trades += 1
        stats.total_profit_eth += profit_eth
        stats.total_gas_cost_eth += gas_cost_eth
        stats.last_trade_time = int(self._clock() * 1000)

        # `trades` counts failed attempts too, so failures dilute the average.
        stats.avg_latency_ms = (stats.avg_latency_ms * (stats.trades - 1) + latency_ms) / stats.trades

        profit_usd = profit_eth * ETH_USD_CONVERSION
        strategy.total_trades += 1
        strategy.total_profit_usd += profit_usd
        stats.executed_trades += 1
        stats.total_profit_usd += profit_usd

    def uptime(self) -> float:
        return self._clock() - self.stats.start_time

    def metrics(self) -> dict:
        s = self.stats
        return {
            'trades': s.trades,
            'successfulTrades': s.successful_trades,
            'failedTrades': s.failed_trades,
            'successRate': f"{s.success_rate:.2f}",
            'totalProfitETH': f"{s.total_profit_eth:.6f}",
            'totalGasCostETH': f"{s.total_gas_cost_eth:.6f}",
            'netProfitETH': f"{s.net_profit_eth:.6f}",
            'avgLatencyMs': f"{s.avg_latency_ms:.2f}",
            'lastTradeTime': s.last_trade_time,
            'uptime': self.uptime(),
        }

    def funds(self) -> dict:
        s = self.stats
        return {
            'totalCapital': f"{s.total_profit_eth:.6f}",
            'totalProfitETH': f"{s.total_profit_eth:.6f}",
            'totalProfitUSD': f"{s.total_profit_eth * ETH_USD_CONVERSION:.2f}",
            'totalGasCostETH': f"{s.total_gas_cost_eth:.6f}",
            'netProfitETH': f"{s.net_profit_eth:.6f}",
            'totalTrades': s.trades,
            'successRate': f"{s.success_rate:.2f}",
        }
