"""Run-state machine driving the scan/execute loop."""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional

from constants import ERROR_BACKOFF, NORMAL_INTERVAL, UHF_INTERVAL
from engine.errors import AlreadyRunningError
from engine.models import EngineState, TradeResult
from engine.registry import StrategyRegistry
from logger import log_success

logger = logging.getLogger(__name__)


class EngineController:
    """Owns the normal/high-frequency flags and the single trading loop task.

    Commands run on the same event loop as the trading task, so each flag
    transition completes without interleaving. `stop()` is cooperative: it
    wakes a sleeping loop but never cancels a provider call in flight.
    """

    def __init__(
        self,
        scanner,
        executor,
        registry: StrategyRegistry,
        normal_interval: float = NORMAL_INTERVAL,
        uhf_interval: float = UHF_INTERVAL,
        error_backoff: float = ERROR_BACKOFF,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.scanner = scanner
        self.executor = executor
        self.registry = registry
        self.normal_interval = normal_interval
        self.uhf_interval = uhf_interval
        self.error_backoff = error_backoff
        self.rng = rng or random.Random()
        self.state = EngineState()
        self.iterations = 0
        self.last_error: Optional[str] = None
        self._task: Optional[asyncio.Task] = None
        self._wakeup = asyncio.Event()

    # --- Commands ---

    def start(self) -> None:
        if self.state.active:
            raise AlreadyRunningError("Engine already running")
        self.state.normal_running = True
        logger.info("Main trading engine started")
        self._ensure_loop()

    def start_high_frequency(self) -> None:
        if self.state.high_frequency_running:
            raise AlreadyRunningError("UHF engine already running")
        self.state.high_frequency_running = True
        self.state.normal_running = True
        logger.info("Ultra-High-Frequency engine started")
        self._ensure_loop()
        # pick up the short cadence without waiting out a normal sleep
        self._wakeup.set()

    def stop(self) -> None:
        self.state.normal_running = False
        self.state.high_frequency_running = False
        self._wakeup.set()
        logger.info("All engines stopped")

    async def shutdown(self, timeout: float = 15.0) -> None:
        """Stops the engine and waits for the loop task to finish."""
        self.stop()
        task = self._task
        if task is None or task.done():
            return
        try:
            await asyncio.wait_for(task, timeout)
        except asyncio.TimeoutError:
            logger.warning("Trading loop did not exit within %.1fs; cancelling", timeout)

    # --- Queries ---

    @property
    def cadence(self) -> float:
        return self.uhf_interval if self.state.high_frequency_running else self.normal_interval

    @property
    def loop_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def status(self) -> dict:
        return {
            'engineState': 'running' if self.state.normal_running else 'stopped',
            'uhfState': 'running' if self.state.high_frequency_running else 'stopped',
            'loopActive': self.loop_running,
            'iterations': self.iterations,
            'lastError': self.last_error,
        }

    # --- Loop ---

    def _ensure_loop(self) -> None:
        # A loop still finishing its last iteration sees the flags set again
        # at its next check, so it is reused instead of starting a second one.
        if self.loop_running:
            return
        self._wakeup.clear()
        self._task = asyncio.create_task(self._run_loop(), name="trading-loop")

    async def _run_loop(self) -> None:
        logger.debug("Trading loop entered")
        while self.state.active:
            try:
                await self.run_iteration()
                self.last_error = None
                delay = self.cadence
            except Exception as e:
                logger.error("Trading loop error: %s", e)
                self.last_error = str(e)
                delay = self.error_backoff
            await self._sleep(delay)
        logger.debug("Trading loop exited after %d iterations", self.iterations)

    async def run_iteration(self) -> Optional[TradeResult]:
        """One scan, plus one trade when the scan produced an opportunity."""
        self.iterations += 1
        opp = await self.scanner.scan()
        if opp is None or len(self.registry) == 0:
            return None

        strategy = self.registry.pick(self.rng)
        if strategy is None:
            return None

        result = await self.executor.execute(strategy)
        log_success(logger, "Trade executed: %.6f ETH profit (%s)", result.net_profit_eth, strategy.id)
        return result

    async def _sleep(self, delay: float) -> None:
        if not self.state.active:
            return
        self._wakeup.clear()
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
