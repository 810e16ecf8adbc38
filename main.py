#!/usr/bin/env python3
import asyncio
import logging
import sys

import aiohttp
from telegram import BotCommand
from telegram.ext import Application, CommandHandler
from telegram.error import TimedOut, TelegramError

from config import AppConfig, load_config
from logger import log_success, setup_logging
from api.server import create_app, run_server
from bot.handlers import (
    help_command,
    metrics_command,
    start_engine_command,
    start_uhf_command,
    status_command,
    stop_command,
    withdraw_command,
)
from engine.context import EngineContext
from engine.controller import EngineController
from engine.registry import StrategyRegistry
from engine.statistics import StatisticsAggregator
from scanner import OpportunityScanner
from services.chain_client import connect_blockchain
from services.coinbase_client import CoinbaseClient
from services.trade_executor import TradeExecutor
from services.withdrawal import WithdrawalService

logger = logging.getLogger("main")

BANNER = "═" * 59


def build_context(config: AppConfig, session: aiohttp.ClientSession, provider=None, wallet=None) -> EngineContext:
    """Wires the engine components around an (optional) provider and wallet."""
    registry = StrategyRegistry.generate(config.strategy_count)
    statistics = StatisticsAggregator()
    scanner = OpportunityScanner(provider)
    executor = TradeExecutor(provider, wallet, statistics)
    controller = EngineController(
        scanner,
        executor,
        registry,
        normal_interval=config.interval,
        uhf_interval=config.uhf_interval,
        error_backoff=config.error_backoff,
    )
    return EngineContext(
        registry=registry,
        statistics=statistics,
        scanner=scanner,
        controller=controller,
        withdrawal=WithdrawalService(provider, wallet, config.profit_wallet_address),
        price_client=CoinbaseClient(session),
        provider=provider,
        wallet=wallet,
        backend_wallet_address=config.backend_wallet_address,
        profit_wallet_address=config.profit_wallet_address,
    )


def build_telegram_application(config: AppConfig, engine: EngineContext) -> Application:
    application = Application.builder().token(config.telegram_bot_token).build()
    application.bot_data['engine'] = engine

    # Register command handlers
    application.add_handler(CommandHandler("start", help_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("status", status_command))
    application.add_handler(CommandHandler("metrics", metrics_command))
    application.add_handler(CommandHandler("startengine", start_engine_command))
    application.add_handler(CommandHandler("startuhf", start_uhf_command))
    application.add_handler(CommandHandler("stop", stop_command))
    application.add_handler(CommandHandler("withdraw", withdraw_command))
    return application


async def start_telegram_bot(application: Application) -> None:
    await application.initialize()

    commands = [
        BotCommand("status", "Engine status"),
        BotCommand("metrics", "Trading metrics"),
        BotCommand("startengine", "Start the trading engine"),
        BotCommand("startuhf", "Start ultra-high-frequency mode"),
        BotCommand("stop", "Stop all engines"),
        BotCommand("withdraw", "Withdraw to the profit wallet"),
        BotCommand("help", "Show help message"),
    ]
    try:
        await application.bot.set_my_commands(commands)
    except (TimedOut, TelegramError) as exc:
        logger.warning("Unable to set Telegram bot commands (%s). Continuing without updating commands.", exc)

    await application.start()
    await application.updater.start_polling()
    logger.info("Telegram command bot started.")


async def stop_telegram_bot(application: Application) -> None:
    if application.updater and application.updater.running:
        await application.updater.stop()
    if application.running:
        await application.stop()
    await application.shutdown()


async def run(config: AppConfig) -> None:
    logger.info(BANNER)
    logger.info("UHF MEV BACKEND STARTING...")
    logger.info(BANNER)

    provider, wallet = await connect_blockchain(config.rpc_url, config.wallet_private_key, timeout=config.rpc_timeout)

    async with aiohttp.ClientSession(headers={'User-Agent': 'MevBackend/1.0'}) as session:
        engine = build_context(config, session, provider, wallet)
        runner = await run_server(create_app(engine), config.host, config.port)

        telegram_app = None
        if config.telegram_enabled:
            telegram_app = build_telegram_application(config, engine)
            await start_telegram_bot(telegram_app)

        log_success(logger, "HTTP API Server running on port %s", config.port)
        logger.info("Backend Wallet: %s", config.backend_wallet_address)
        logger.info("Strategies: %d", len(engine.registry))
        logger.info(BANNER)

        try:
            await asyncio.Event().wait()
        finally:
            await engine.controller.shutdown()
            if telegram_app is not None:
                await stop_telegram_bot(telegram_app)
            await runner.cleanup()


def main() -> None:
    """The main synchronous entry point for the application."""
    config = load_config()
    setup_logging(config.log_level)
    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Shutting down.")
    except Exception as exc:
        logger.critical("Fatal error: %s", exc, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
