import aiohttp
import pytest

from services.coinbase_client import CoinbaseClient, api_get


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload
        self.status = 200

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    def raise_for_status(self):
        return None

    async def json(self):
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self._responses = list(responses)
        self.urls = []

    def get(self, url, params=None, timeout=None):
        self.urls.append(url)
        if not self._responses:
            raise AssertionError("No more fake responses configured")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return FakeResponse(response)


@pytest.mark.asyncio
async def test_get_spot_price_parses_amount():
    session = FakeSession([{'data': {'base': 'ETH', 'currency': 'USD', 'amount': '3512.27'}}])
    client = CoinbaseClient(session)

    price = await client.get_spot_price()

    assert price == pytest.approx(3512.27)
    assert session.urls == ['https://api.coinbase.com/v2/prices/ETH-USD/spot']


@pytest.mark.asyncio
async def test_price_map_uses_live_price():
    client = CoinbaseClient(FakeSession([{'data': {'amount': '3000'}}]))

    prices = await client.get_price_map()

    assert prices['ETH']['price'] == 3000.0
    assert prices['ETH']['source'] == 'coinbase'
    assert prices['WETH']['price'] == 3000.0
    assert prices['USDC'] == {'price': 1.0, 'source': 'fixed', 'timestamp': prices['USDC']['timestamp']}


@pytest.mark.asyncio
async def test_price_map_falls_back_on_network_error():
    client = CoinbaseClient(FakeSession([aiohttp.ClientConnectionError("offline")]))

    prices = await client.get_price_map()

    assert list(prices) == ['ETH']
    assert prices['ETH']['price'] == 3450
    assert prices['ETH']['source'] == 'fallback'


@pytest.mark.asyncio
async def test_price_map_falls_back_on_malformed_payload():
    client = CoinbaseClient(FakeSession([{'errors': [{'id': 'not_found'}]}]))
    prices = await client.get_price_map()
    assert prices['ETH']['source'] == 'fallback'


@pytest.mark.asyncio
async def test_api_get_retries_before_giving_up():
    session = FakeSession([
        aiohttp.ClientConnectionError("reset"),
        {'ok': True},
    ])
    assert await api_get('http://feed', session, retries=2, retry_delay=0) == {'ok': True}

    failing = FakeSession([aiohttp.ClientConnectionError("reset")] * 2)
    assert await api_get('http://feed', failing, retries=2, retry_delay=0) is None
