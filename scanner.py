# scanner.py
import itertools
import logging
import random
import time
from collections import deque
from typing import Callable, List, Optional

from constants import OPPORTUNITY_BUFFER_SIZE
from engine.models import Opportunity

logger = logging.getLogger(__name__)


def random_profit_estimate(rng: Optional[random.Random] = None) -> float:
    """Placeholder estimate in [0.001, 0.011) ETH until real detection lands."""
    return 0.001 + (rng or random).random() * 0.01


class OpportunityScanner:
    """Polls the chain for point-in-time data and records candidate opportunities."""

    def __init__(
        self,
        provider,
        estimator: Callable[[], float] = random_profit_estimate,
        capacity: int = OPPORTUNITY_BUFFER_SIZE,
        clock: Callable[[], float] = time.time,
    ):
        self.provider = provider
        self.estimator = estimator
        self.clock = clock
        self._buffer: deque[Opportunity] = deque(maxlen=capacity)
        self._sequence = itertools.count(1)

    async def scan(self) -> Optional[Opportunity]:
        """Returns a new opportunity, or None when the provider is unavailable."""
        if self.provider is None:
            return None

        try:
            block_number = await self.provider.get_block_number()
            fee_data = await self.provider.get_fee_data()
        except Exception as e:
            logger.warning("Scan skipped, provider error: %s", e)
            return None

        now_ms = int(self.clock() * 1000)
        sequence = next(self._sequence)
        opp = Opportunity(
            id=f"OPP-{now_ms}-{sequence}",
            sequence=sequence,
            type='arbitrage',
            profit_eth=self.estimator(),
            gas_price_gwei=fee_data.gas_price_gwei if fee_data else 0.0,
            block_number=block_number,
            timestamp=now_ms,
        )
        # deque(maxlen) drops the oldest entry on overflow
        self._buffer.append(opp)
        return opp

    @property
    def opportunities(self) -> List[Opportunity]:
        return list(self._buffer)

    @property
    def latest(self) -> Optional[Opportunity]:
        return self._buffer[-1] if self._buffer else None

    def __len__(self) -> int:
        return len(self._buffer)

    def average_profit_eth(self) -> float:
        if not self._buffer:
            return 0.0
        return sum(o.profit_eth for o in self._buffer) / len(self._buffer)
