"""web3.py access to the Ethereum node: reads, signing and submission."""
from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Optional

from web3 import Web3

import constants
from engine.models import FeeData, NetworkInfo

logger = logging.getLogger(__name__)

ERC20_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "payable": False,
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "payable": False,
        "stateMutability": "view",
        "type": "function",
    },
]

CHAIN_NAMES = {1: "mainnet", 5: "goerli", 11155111: "sepolia", 8453: "base", 137: "polygon"}


class ChainClient:
    """Async facade over a blocking web3 HTTP provider.

    Every web3 call runs in a worker thread; nothing here touches engine state.
    """

    def __init__(self, rpc_url: str, timeout: float = 10, web3: Optional[Web3] = None) -> None:
        self.rpc_url = rpc_url
        self.web3 = web3 or Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        self._decimals_cache: dict[str, int] = {}

    async def get_network(self) -> NetworkInfo:
        chain_id = await asyncio.to_thread(lambda: self.web3.eth.chain_id)
        return NetworkInfo(name=CHAIN_NAMES.get(chain_id, "unknown"), chain_id=chain_id)

    async def get_block_number(self) -> int:
        return await asyncio.to_thread(lambda: self.web3.eth.block_number)

    async def get_balance(self, address: str) -> Decimal:
        """Balance of `address` in ETH."""
        address = Web3.to_checksum_address(address)
        wei = await asyncio.to_thread(self.web3.eth.get_balance, address)
        return Decimal(Web3.from_wei(wei, "ether"))

    async def get_fee_data(self) -> FeeData:
        return await asyncio.to_thread(self._get_fee_data_sync)

    def _get_fee_data_sync(self) -> FeeData:
        gas_price = self.web3.eth.gas_price
        block = self.web3.eth.get_block("latest")
        base_fee = block.get("baseFeePerGas")
        if base_fee is None:
            return FeeData(gas_price_wei=gas_price)
        priority_fee = self.web3.eth.max_priority_fee
        return FeeData(
            gas_price_wei=gas_price,
            max_fee_per_gas_wei=base_fee * 2 + priority_fee,
            max_priority_fee_per_gas_wei=priority_fee,
        )

    async def get_token_balance(self, token_address: str, owner: str) -> Decimal:
        return await asyncio.to_thread(self._get_token_balance_sync, token_address, owner)

    def _get_token_balance_sync(self, token_address: str, owner: str) -> Decimal:
        token_address = Web3.to_checksum_address(token_address)
        contract = self.web3.eth.contract(address=token_address, abi=ERC20_ABI)
        if token_address not in self._decimals_cache:
            self._decimals_cache[token_address] = contract.functions.decimals().call()
        raw = contract.functions.balanceOf(Web3.to_checksum_address(owner)).call()
        return Decimal(raw) / (Decimal(10) ** self._decimals_cache[token_address])

    async def get_transaction_count(self, address: str) -> int:
        return await asyncio.to_thread(
            self.web3.eth.get_transaction_count, Web3.to_checksum_address(address), "pending"
        )

    async def get_chain_id(self) -> int:
        return await asyncio.to_thread(lambda: self.web3.eth.chain_id)

    async def send_raw_transaction(self, raw_transaction: bytes) -> str:
        tx_hash = await asyncio.to_thread(self.web3.eth.send_raw_transaction, raw_transaction)
        return Web3.to_hex(tx_hash)

    async def await_confirmation(self, tx_hash: str, timeout: float = constants.RECEIPT_TIMEOUT) -> str:
        """Blocks until the transaction is mined; returns the receipt hash."""
        receipt = await asyncio.to_thread(self.web3.eth.wait_for_transaction_receipt, tx_hash, timeout)
        if receipt.get("status") == 0:
            raise RuntimeError(f"Transaction {tx_hash} reverted")
        return Web3.to_hex(receipt["transactionHash"])


class Wallet:
    """Local signing account bound to a chain client."""

    def __init__(self, client: ChainClient, private_key: str) -> None:
        self.client = client
        self.account = client.web3.eth.account.from_key(private_key)
        self.address: str = self.account.address

    async def sign_and_send(self, to: str, amount_eth: Decimal, gas_limit: int = constants.TRANSFER_GAS_LIMIT) -> str:
        nonce, fee_data, chain_id = await asyncio.gather(
            self.client.get_transaction_count(self.address),
            self.client.get_fee_data(),
            self.client.get_chain_id(),
        )
        tx = {
            "to": Web3.to_checksum_address(to),
            "value": Web3.to_wei(amount_eth, "ether"),
            "gas": gas_limit,
            "gasPrice": fee_data.gas_price_wei,
            "nonce": nonce,
            "chainId": chain_id,
        }
        signed = self.account.sign_transaction(tx)
        return await self.client.send_raw_transaction(signed.raw_transaction)


async def connect_blockchain(rpc_url: str, private_key: Optional[str], timeout: float = 10) -> tuple[Optional[ChainClient], Optional[Wallet]]:
    """Connects to the node; failures leave the backend in degraded mode."""
    try:
        client = ChainClient(rpc_url, timeout=timeout)
        wallet = None
        if private_key and private_key != constants.PLACEHOLDER_PRIVATE_KEY:
            wallet = Wallet(client, private_key)
            logger.info("Wallet initialized: %s", wallet.address)
        else:
            logger.warning("No private key - read-only mode")

        network = await client.get_network()
        logger.info("Connected to network: %s (chainId: %s)", network.name, network.chain_id)
        return client, wallet
    except Exception as exc:
        logger.error("Blockchain init failed: %s", exc)
        return None, None
