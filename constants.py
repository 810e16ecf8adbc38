#!/usr/bin/env python3
from typing import Dict, Tuple

# --- ANSI Color Codes ---
C_GREEN = '\033[92m'
C_RED = '\033[91m'
C_YELLOW = '\033[93m'
C_BLUE = '\033[94m'
C_GREY = '\033[90m'
C_BOLD = '\033[1m'
C_RESET = '\033[0m'

# --- API Configuration ---
COINBASE_API_BASE_URL = 'https://api.coinbase.com/v2'
DEFAULT_RPC_HTTP = 'https://eth.llamarpc.com'
DEFAULT_PORT = 8080
BACKEND_NAME = 'UHF MEV Backend'

# --- Environment Variable Names ---
PORT_ENV_VAR = 'PORT'
RPC_HTTP_ENV_VAR = 'ETHEREUM_RPC_HTTP'
WALLET_PRIVATE_KEY_ENV_VAR = 'WALLET_PRIVATE_KEY'
PROFIT_WALLET_ENV_VAR = 'PROFIT_WALLET_ADDRESS'
BACKEND_WALLET_ENV_VAR = 'BACKEND_WALLET_ADDRESS'
TELEGRAM_BOT_TOKEN_ENV_VAR = 'TELEGRAM_BOT_TOKEN'
LOG_LEVEL_ENV_VAR = 'LOG_LEVEL'

PLACEHOLDER_PRIVATE_KEY = 'your_private_key_here'
DEFAULT_BACKEND_WALLET = '0xe75C82c976Ecc954bfFbbB2e7Fb94652C791bea5'

# --- Strategy Catalog ---
STRATEGY_TYPES: Tuple[str, ...] = (
    'sandwich',
    'frontrun',
    'backrun',
    'arbitrage',
    'liquidation',
    'jit_liquidity',
    'flash_swap',
    'triangular',
    'cross_dex',
)
RISK_LEVELS: Tuple[str, ...] = ('high', 'medium', 'low')
DEFAULT_STRATEGY_COUNT = 450

# --- Engine Timing (seconds) ---
NORMAL_INTERVAL = 5.0
UHF_INTERVAL = 0.1
ERROR_BACKOFF = 10.0

# --- Engine Limits (ETH unless noted) ---
OPPORTUNITY_BUFFER_SIZE = 50
MIN_GAS_BALANCE_ETH = 0.001
WITHDRAW_GAS_RESERVE_ETH = 0.01
TRANSFER_GAS_LIMIT = 21000
RECEIPT_TIMEOUT = 120

# Strategy and summary USD figures use this fixed rate, not the live feed.
ETH_USD_CONVERSION = 3450.0
FALLBACK_ETH_PRICE = 3450.0

# --- Token Addresses (Lowercase for case-insensitive matching) ---
COMMON_TOKEN_ADDRESSES: Dict[str, Dict[str, str]] = {
    'ethereum': {
        'weth': '0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2',
        'usdc': '0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48',
    },
}
