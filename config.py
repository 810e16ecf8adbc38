#!/usr/bin/env python3
import os
import argparse
from typing import NamedTuple, Optional, Sequence
import constants

class AppConfig(NamedTuple):
    """Typed configuration object."""
    host: str
    port: int
    rpc_url: str
    rpc_timeout: float
    strategy_count: int
    interval: float
    uhf_interval: float
    error_backoff: float
    log_level: str
    wallet_private_key: str | None
    backend_wallet_address: str
    profit_wallet_address: str
    telegram_enabled: bool
    telegram_bot_token: str | None


def _env_port() -> int:
    raw = os.environ.get(constants.PORT_ENV_VAR)
    if not raw:
        return constants.DEFAULT_PORT
    try:
        return int(raw)
    except ValueError:
        return constants.DEFAULT_PORT


def load_config(argv: Optional[Sequence[str]] = None) -> AppConfig:
    """
    Parses command-line arguments and loads environment variables to create a configuration object.
    """
    parser = argparse.ArgumentParser(
        description="MEV engine backend: strategy pool, opportunity scanner and HTTP control API.",
        epilog="Example: ./main.py --port 8080 --rpc-url https://eth.llamarpc.com"
    )
    # --- Server ---
    parser.add_argument('--host', default='0.0.0.0', help='Interface to bind the HTTP API to (default: 0.0.0.0).')
    parser.add_argument('--port', type=int, default=_env_port(), help=f'HTTP API port (default: ${constants.PORT_ENV_VAR} or {constants.DEFAULT_PORT}).')

    # --- Blockchain ---
    parser.add_argument('--rpc-url', default=os.environ.get(constants.RPC_HTTP_ENV_VAR) or constants.DEFAULT_RPC_HTTP, help='Ethereum JSON-RPC HTTP endpoint.')
    parser.add_argument('--rpc-timeout', type=float, default=10.0, help='Seconds before an RPC request times out (default: 10).')

    # --- Engine ---
    parser.add_argument('--strategy-count', type=int, default=constants.DEFAULT_STRATEGY_COUNT, help=f'Number of strategies to generate (default: {constants.DEFAULT_STRATEGY_COUNT}).')
    parser.add_argument('--interval', type=float, default=constants.NORMAL_INTERVAL, help=f'Seconds between loop iterations in normal mode (default: {constants.NORMAL_INTERVAL}).')
    parser.add_argument('--uhf-interval', type=float, default=constants.UHF_INTERVAL, help=f'Seconds between loop iterations in high-frequency mode (default: {constants.UHF_INTERVAL}).')
    parser.add_argument('--error-backoff', type=float, default=constants.ERROR_BACKOFF, help=f'Seconds to wait after a loop error (default: {constants.ERROR_BACKOFF}).')
    parser.add_argument('--log-level', default=os.environ.get(constants.LOG_LEVEL_ENV_VAR, 'INFO'), choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], type=str.upper, help='Console log level (default: INFO).')

    # --- Telegram ---
    parser.add_argument('--telegram-enabled', action='store_true', help='Enable the Telegram command bot.')

    args = parser.parse_args(argv)

    if args.strategy_count <= 0:
        parser.error('--strategy-count must be positive.')
    for name in ('interval', 'uhf_interval', 'error_backoff'):
        if getattr(args, name) <= 0:
            parser.error(f"--{name.replace('_', '-')} must be positive.")

    # Load from environment
    telegram_bot_token = os.environ.get(constants.TELEGRAM_BOT_TOKEN_ENV_VAR)
    if args.telegram_enabled and not telegram_bot_token:
        parser.error(f'Telegram is enabled, but {constants.TELEGRAM_BOT_TOKEN_ENV_VAR} is not set.')

    private_key = os.environ.get(constants.WALLET_PRIVATE_KEY_ENV_VAR)
    if private_key == constants.PLACEHOLDER_PRIVATE_KEY:
        private_key = None

    backend_wallet = os.environ.get(constants.BACKEND_WALLET_ENV_VAR) or constants.DEFAULT_BACKEND_WALLET
    profit_wallet = os.environ.get(constants.PROFIT_WALLET_ENV_VAR) or backend_wallet

    return AppConfig(
        host=args.host,
        port=args.port,
        rpc_url=args.rpc_url,
        rpc_timeout=args.rpc_timeout,
        strategy_count=args.strategy_count,
        interval=args.interval,
        uhf_interval=args.uhf_interval,
        error_backoff=args.error_backoff,
        log_level=args.log_level,
        wallet_private_key=private_key or None,
        backend_wallet_address=backend_wallet,
        profit_wallet_address=profit_wallet,
        telegram_enabled=args.telegram_enabled,
        telegram_bot_token=telegram_bot_token,
    )
