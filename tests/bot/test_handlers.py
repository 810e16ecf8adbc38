import random
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

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
from engine.errors import InsufficientBalanceError
from engine.models import WithdrawalResult
from engine.registry import StrategyRegistry
from engine.statistics import StatisticsAggregator
from scanner import OpportunityScanner

PROFIT = '0x00000000000000000000000000000000000000bb'


def _engine():
    registry = StrategyRegistry.generate(9, rng=random.Random(1))
    scanner = OpportunityScanner(None)
    controller = EngineController(scanner, MagicMock(), registry, normal_interval=30.0, uhf_interval=30.0)
    return EngineContext(
        registry=registry,
        statistics=StatisticsAggregator(),
        scanner=scanner,
        controller=controller,
        withdrawal=MagicMock(),
        price_client=MagicMock(),
        profit_wallet_address=PROFIT,
    )


def _update_and_context(engine):
    update = MagicMock()
    update.message.reply_text = AsyncMock()
    update.message.reply_html = AsyncMock()
    context = MagicMock()
    context.application.bot_data = {'engine': engine}
    return update, context


@pytest.mark.asyncio
async def test_help_lists_commands():
    update, context = _update_and_context(_engine())
    await help_command(update, context)
    text = update.message.reply_html.await_args.args[0]
    for command in ('/status', '/metrics', '/startengine', '/startuhf', '/stop', '/withdraw'):
        assert command in text


@pytest.mark.asyncio
async def test_status_reports_engine_state():
    engine = _engine()
    engine.controller.last_error = "rpc timeout"
    update, context = _update_and_context(engine)

    await status_command(update, context)

    text = update.message.reply_html.await_args.args[0]
    assert "Engine: <code>stopped</code>" in text
    assert "Strategies: <code>9/9</code>" in text
    assert "Provider: <code>disconnected</code>" in text
    assert "Wallet: <code>not initialized</code>" in text
    assert "rpc timeout" in text


@pytest.mark.asyncio
async def test_status_escapes_error_markup():
    engine = _engine()
    engine.wallet = MagicMock()
    engine.controller.last_error = (
        "HTTPSConnectionPool(host='eth.llamarpc.com', port=443): Max retries exceeded "
        "(Caused by NewConnectionError('<urllib3.connection.HTTPSConnection object at 0x7f3a>: "
        "Failed to establish a new connection'))"
    )
    update, context = _update_and_context(engine)

    await status_command(update, context)

    text = update.message.reply_html.await_args.args[0]
    assert "&lt;urllib3.connection.HTTPSConnection object at 0x7f3a&gt;" in text
    assert "<urllib3" not in text
    assert "Wallet: <code>ready</code>" in text


@pytest.mark.asyncio
async def test_metrics_reports_counters():
    engine = _engine()
    engine.statistics.record_attempt()
    engine.statistics.record_failure()
    update, context = _update_and_context(engine)

    await metrics_command(update, context)

    text = update.message.reply_html.await_args.args[0]
    assert "Trades: <code>1</code>" in text
    assert "❌ 1" in text
    assert "Success Rate: <code>0.00%</code>" in text


@pytest.mark.asyncio
async def test_engine_commands_start_and_stop():
    engine = _engine()
    update, context = _update_and_context(engine)
    try:
        await start_engine_command(update, context)
        update.message.reply_text.assert_awaited_with("Main trading engine started")
        assert engine.controller.state.normal_running is True

        await start_engine_command(update, context)
        update.message.reply_text.assert_awaited_with("⚠️ Engine already running")

        await start_uhf_command(update, context)
        update.message.reply_text.assert_awaited_with("UHF engine started")
        await start_uhf_command(update, context)
        update.message.reply_text.assert_awaited_with("⚠️ UHF engine already running")

        await stop_command(update, context)
        update.message.reply_text.assert_awaited_with("All engines stopped")
        assert engine.controller.state.active is False
    finally:
        await engine.controller.shutdown()


@pytest.mark.asyncio
async def test_withdraw_reports_transaction():
    engine = _engine()
    engine.withdrawal.withdraw_all = AsyncMock(
        return_value=WithdrawalResult(tx_hash='0xfeed', amount_eth=Decimal('0.49'), to=PROFIT)
    )
    update, context = _update_and_context(engine)

    await withdraw_command(update, context)

    text = update.message.reply_html.await_args.args[0]
    assert "0.490000 ETH" in text
    assert "0xfeed" in text


@pytest.mark.asyncio
async def test_withdraw_reports_engine_errors_and_hides_others():
    engine = _engine()
    engine.withdrawal.withdraw_all = AsyncMock(side_effect=InsufficientBalanceError("Insufficient balance to withdraw"))
    update, context = _update_and_context(engine)

    await withdraw_command(update, context)
    update.message.reply_text.assert_awaited_with("⚠️ Insufficient balance to withdraw")

    engine.withdrawal.withdraw_all = AsyncMock(side_effect=RuntimeError("nonce too low"))
    await withdraw_command(update, context)
    update.message.reply_text.assert_awaited_with("An error occurred while sending the withdrawal.")
