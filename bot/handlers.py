# bot/handlers.py
import html
import logging
import time

from telegram import Update
from telegram.ext import ContextTypes

from engine.context import EngineContext
from engine.errors import AlreadyRunningError, EngineError

logger = logging.getLogger(__name__)

# --- Command Handlers ---

def _engine(context: ContextTypes.DEFAULT_TYPE) -> EngineContext:
    return context.application.bot_data['engine']


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Displays a help message with all available commands."""
    help_text = """
    <b>MEV Engine Backend</b>

    <b><u>Available Commands:</u></b>
    /status - Engine state, strategies and opportunities
    /metrics - Trade counters and profit
    /startengine - Start the trading loop (normal cadence)
    /startuhf - Switch to ultra-high-frequency cadence
    /stop - Stop all engines
    /withdraw - Send the wallet balance to the profit wallet
    /help - Show this help message
    """
    await update.message.reply_html(help_text)


async def status_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Reports engine flags, loop state and catalog counts."""
    engine = _engine(context)
    state = engine.controller.status()
    counts = engine.registry.counts()

    uptime_str = time.strftime('%H:%M:%S', time.gmtime(engine.statistics.uptime()))
    loop_status = "✅ Running" if state['loopActive'] else "⏹️ Stopped"

    status_text = (
        f"<b>🤖 Engine Status</b>\n"
        f"Uptime: <code>{uptime_str}</code>\n\n"
        f"Loop: {loop_status}\n"
        f"Engine: <code>{state['engineState']}</code>\n"
        f"UHF: <code>{state['uhfState']}</code>\n"
        f"Strategies: <code>{counts['active']}/{counts['total']}</code>\n"
        f"Opportunities: <code>{len(engine.scanner)}</code>\n"
        f"Provider: <code>{'connected' if engine.provider is not None else 'disconnected'}</code>\n"
        f"Wallet: <code>{'ready' if engine.wallet is not None else 'not initialized'}</code>\n"
    )
    if state['lastError']:
        status_text += f"Last Error: <pre>{html.escape(state['lastError'])}</pre>\n"

    await update.message.reply_html(status_text)


async def metrics_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Shows the running trade statistics."""
    m = _engine(context).statistics.metrics()
    response = (
        f"<b>📊 Trading Metrics</b>\n\n"
        f"Trades: <code>{m['trades']}</code> "
        f"(✅ {m['successfulTrades']} / ❌ {m['failedTrades']})\n"
        f"Success Rate: <code>{m['successRate']}%</code>\n"
        f"Profit: <code>{m['totalProfitETH']} ETH</code>\n"
        f"Gas: <code>{m['totalGasCostETH']} ETH</code>\n"
        f"Net: <code>{m['netProfitETH']} ETH</code>\n"
        f"Avg Latency: <code>{m['avgLatencyMs']} ms</code>"
    )
    await update.message.reply_html(response)


async def start_engine_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    try:
        _engine(context).controller.start()
    except AlreadyRunningError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return
    await update.message.reply_text("Main trading engine started")


async def start_uhf_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    try:
        _engine(context).controller.start_high_frequency()
    except AlreadyRunningError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return
    await update.message.reply_text("UHF engine started")


async def stop_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    _engine(context).controller.stop()
    await update.message.reply_text("All engines stopped")


async def withdraw_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Sweeps the wallet to the profit address and replies with the tx hash."""
    engine = _engine(context)
    await update.message.reply_text(f"Withdrawing to {engine.profit_wallet_address}...")
    try:
        result = await engine.withdrawal.withdraw_all()
    except EngineError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return
    except Exception as e:
        logger.error("Error in /withdraw command: %s", e)
        await update.message.reply_text("An error occurred while sending the withdrawal.")
        return

    await update.message.reply_html(
        f"<b>💸 Withdrawal confirmed</b>\n"
        f"Amount: <code>{result.amount_eth:.6f} ETH</code>\n"
        f"To: <code>{result.to}</code>\n"
        f"TX: <code>{result.tx_hash}</code>"
    )
