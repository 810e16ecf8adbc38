"""Fixed catalog of trading strategies."""
from __future__ import annotations

import logging
import random
from typing import Optional

from constants import RISK_LEVELS, STRATEGY_TYPES
from engine.models import Strategy

logger = logging.getLogger(__name__)


class StrategyRegistry:
    """Owns the strategy list; only the trade executor mutates entries."""

    def __init__(self, strategies: Optional[list[Strategy]] = None) -> None:
        self._strategies: list[Strategy] = list(strategies or [])

    @classmethod
    def generate(cls, count: int, rng: Optional[random.Random] = None) -> "StrategyRegistry":
        """Builds `count` strategies cycling through every strategy type.

        Type and risk tier are positional; priority, success rate and APY are
        drawn from `rng` (a fresh unseeded `random.Random` when omitted).
        """
        rng = rng or random.Random()
        strategies = []
        for i in range(count):
            strategy_type = STRATEGY_TYPES[i % len(STRATEGY_TYPES)]
            strategies.append(
                Strategy(
                    id=f"STRAT-{i + 1}",
                    name=f"{strategy_type.upper()} #{i + 1}",
                    type=strategy_type,
                    risk_level=RISK_LEVELS[i % 3],
                    enabled=True,
                    priority=rng.randrange(100),
                    success_rate=0.75 + rng.random() * 0.2,
                    apy=40000 + rng.random() * 20000,
                )
            )
        logger.info("Generated %d strategies", len(strategies))
        return cls(strategies)

    def __len__(self) -> int:
        return len(self._strategies)

    def list(
        self,
        type: Optional[str] = None,
        risk: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> list[Strategy]:
        """Returns strategies matching every filter given; None passes all."""
        result = self._strategies
        if type:
            result = [s for s in result if s.type == type]
        if risk:
            result = [s for s in result if s.risk_level == risk]
        if active is not None:
            result = [s for s in result if s.enabled is active]
        return list(result)

    def pick(self, rng: Optional[random.Random] = None) -> Optional[Strategy]:
        enabled = [s for s in self._strategies if s.enabled]
        if not enabled:
            return None
        return (rng or random).choice(enabled)

    def counts(self) -> dict[str, int]:
        return {
            'total': len(self._strategies),
            'active': sum(1 for s in self._strategies if s.enabled),
        }
