from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from engine.errors import InsufficientBalanceError, NotReadyError
from services.withdrawal import WithdrawalService

DESTINATION = '0x00000000000000000000000000000000000000bb'
TX_HASH = '0x' + 'ab' * 32


def _provider(balance):
    provider = AsyncMock()
    provider.get_balance = AsyncMock(return_value=balance)
    provider.await_confirmation = AsyncMock(return_value=TX_HASH)
    return provider


def _wallet():
    wallet = AsyncMock()
    wallet.address = '0x00000000000000000000000000000000000000aa'
    wallet.sign_and_send = AsyncMock(return_value=TX_HASH)
    return wallet


@pytest.mark.asyncio
async def test_withdraw_all_keeps_gas_reserve_and_confirms():
    provider = _provider(Decimal('1.0'))
    wallet = _wallet()
    service = WithdrawalService(provider, wallet, DESTINATION)

    result = await service.withdraw_all()

    assert result.amount_eth == Decimal('0.99')
    assert result.to == DESTINATION
    assert result.tx_hash == TX_HASH
    wallet.sign_and_send.assert_awaited_once_with(DESTINATION, Decimal('0.99'))
    provider.await_confirmation.assert_awaited_once_with(TX_HASH)


@pytest.mark.asyncio
async def test_withdraw_all_below_reserve_fails_without_transfer():
    provider = _provider(Decimal('0.005'))
    wallet = _wallet()
    service = WithdrawalService(provider, wallet, DESTINATION)

    with pytest.raises(InsufficientBalanceError, match="Insufficient balance to withdraw"):
        await service.withdraw_all()

    wallet.sign_and_send.assert_not_awaited()
    provider.await_confirmation.assert_not_awaited()


@pytest.mark.asyncio
async def test_withdraw_all_exactly_reserve_is_insufficient():
    service = WithdrawalService(_provider(Decimal('0.01')), _wallet(), DESTINATION)
    with pytest.raises(InsufficientBalanceError):
        await service.withdraw_all()


@pytest.mark.asyncio
async def test_withdraw_all_requires_wallet_and_provider():
    with pytest.raises(NotReadyError):
        await WithdrawalService(None, _wallet(), DESTINATION).withdraw_all()
    with pytest.raises(NotReadyError):
        await WithdrawalService(_provider(Decimal('1')), None, DESTINATION).withdraw_all()


@pytest.mark.asyncio
async def test_withdraw_all_propagates_submission_errors():
    wallet = _wallet()
    wallet.sign_and_send = AsyncMock(side_effect=ValueError("nonce too low"))
    service = WithdrawalService(_provider(Decimal('1')), wallet, DESTINATION)

    with pytest.raises(ValueError, match="nonce too low"):
        await service.withdraw_all()
