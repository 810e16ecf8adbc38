"""Trade execution against the backend wallet with a pluggable outcome simulator."""
from __future__ import annotations

import logging
import random
import time
from decimal import Decimal
from typing import Callable, Optional, Protocol

from constants import MIN_GAS_BALANCE_ETH
from engine.errors import InsufficientFundsError, NotReadyError
from engine.models import SimulatedOutcome, Strategy, TradeResult
from engine.statistics import StatisticsAggregator


class OutcomeSimulator(Protocol):
    def simulate(self, strategy: Strategy) -> SimulatedOutcome: ...


class RandomOutcomeSimulator:
    """Placeholder execution: profit in [0.001, 0.006), gas in [0.0002, 0.0007)."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()

    def simulate(self, strategy: Strategy) -> SimulatedOutcome:
        return SimulatedOutcome(
            profit_eth=self.rng.random() * 0.005 + 0.001,
            gas_cost_eth=self.rng.random() * 0.0005 + 0.0002,
        )


class TradeExecutor:
    """Runs one strategy and folds the outcome into the statistics."""

    def __init__(
        self,
        provider,
        wallet,
        statistics: StatisticsAggregator,
        simulator: Optional[OutcomeSimulator] = None,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.provider = provider
        self.wallet = wallet
        self.statistics = statistics
        self.simulator = simulator or RandomOutcomeSimulator()
        self.timer = timer
        self.min_balance = Decimal(str(MIN_GAS_BALANCE_ETH))
        self.logger = logging.getLogger(__name__)

    @property
    def ready(self) -> bool:
        return self.wallet is not None and self.provider is not None

    async def execute(self, strategy: Strategy) -> TradeResult:
        if not self.ready:
            raise NotReadyError("Wallet not initialized")

        started = self.timer()
        self.statistics.record_attempt()

        try:
            balance = await self.provider.get_balance(self.wallet.address)
            if balance < self.min_balance:
                raise InsufficientFundsError("Insufficient balance for gas")

            outcome = self.simulator.simulate(strategy)
            latency_ms = (self.timer() - started) * 1000
            self.statistics.record_success(strategy, outcome.profit_eth, outcome.gas_cost_eth, latency_ms)
        except BaseException:
            # cancellation counts as a failed attempt
            self.statistics.record_failure()
            raise

        self.logger.debug("[%s] %s profit=%.6f gas=%.6f", strategy.id, strategy.name, outcome.profit_eth, outcome.gas_cost_eth)
        return TradeResult(
            success=True,
            strategy_id=strategy.id,
            profit_eth=outcome.profit_eth,
            gas_cost_eth=outcome.gas_cost_eth,
            latency_ms=latency_ms,
        )
