"""Sweeps the backend wallet balance, minus a gas reserve, to the profit wallet."""
from __future__ import annotations

import logging
from decimal import Decimal

from constants import WITHDRAW_GAS_RESERVE_ETH
from engine.errors import InsufficientBalanceError, NotReadyError
from engine.models import WithdrawalResult

logger = logging.getLogger(__name__)


class WithdrawalService:
    def __init__(self, provider, wallet, destination: str, reserve_eth: float = WITHDRAW_GAS_RESERVE_ETH) -> None:
        self.provider = provider
        self.wallet = wallet
        self.destination = destination
        self.reserve = Decimal(str(reserve_eth))

    async def withdraw_all(self) -> WithdrawalResult:
        """Sends everything above the reserve and waits for the receipt.

        Runs alongside the trading loop without locking; the node orders the
        wallet's transactions.
        """
        if self.wallet is None or self.provider is None:
            raise NotReadyError("Wallet not initialized")

        balance = await self.provider.get_balance(self.wallet.address)
        amount = balance - self.reserve
        if amount <= 0:
            raise InsufficientBalanceError("Insufficient balance to withdraw")

        logger.info("Withdrawing %.6f ETH to %s", amount, self.destination)
        tx_hash = await self.wallet.sign_and_send(self.destination, amount)
        logger.info("Withdrawal TX sent: %s", tx_hash)

        confirmed = await self.provider.await_confirmation(tx_hash)
        return WithdrawalResult(tx_hash=confirmed, amount_eth=amount, to=self.destination)
