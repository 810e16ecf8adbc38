#!/usr/bin/env python3
import asyncio
import logging
import time
from typing import Optional, Dict

import aiohttp
from constants import COINBASE_API_BASE_URL, FALLBACK_ETH_PRICE

logger = logging.getLogger(__name__)


async def api_get(url: str, session: aiohttp.ClientSession, params: Optional[Dict] = None, retries: int = 3, timeout: int = 10, retry_delay: float = 2) -> Optional[Dict]:
    """Makes an async GET request with retries and timeout."""
    for attempt in range(retries):
        try:
            async with session.get(url, params=params, timeout=aiohttp.ClientTimeout(total=timeout)) as response:
                response.raise_for_status()
                return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            if attempt < retries - 1:
                await asyncio.sleep(retry_delay)
            else:
                logger.error("API request failed after %d attempts: %s", retries, e)
                return None


class CoinbaseClient:
    """Spot price lookups against the public Coinbase API."""

    def __init__(self, session: aiohttp.ClientSession, retries: int = 1, timeout: int = 5):
        self.session = session
        self.retries = retries
        self.timeout = timeout

    async def get_spot_price(self, pair: str = "ETH-USD") -> Optional[float]:
        url = f"{COINBASE_API_BASE_URL}/prices/{pair}/spot"
        data = await api_get(url, self.session, retries=self.retries, timeout=self.timeout)
        try:
            return float(data['data']['amount'])
        except (TypeError, KeyError, ValueError):
            logger.warning("Could not parse %s spot price from Coinbase response.", pair)
            return None

    async def get_price_map(self) -> Dict[str, Dict]:
        """ETH/WETH/USDC prices; falls back to a fixed ETH price, never raises."""
        now = int(time.time() * 1000)
        try:
            eth_price = await self.get_spot_price("ETH-USD")
        except Exception as exc:
            logger.warning("Price feed error: %s", exc)
            eth_price = None

        if eth_price is None:
            return {'ETH': {'price': FALLBACK_ETH_PRICE, 'source': 'fallback', 'timestamp': now}}

        return {
            'ETH': {'price': eth_price, 'source': 'coinbase', 'timestamp': now},
            'WETH': {'price': eth_price, 'source': 'coinbase', 'timestamp': now},
            'USDC': {'price': 1.0, 'source': 'fixed', 'timestamp': now},
        }
