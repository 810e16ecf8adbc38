"""
aiohttp application exposing the engine's command/query API.

All handlers run on the engine's event loop; reads of statistics and flags may
be one iteration stale but never see a half-applied trade.
"""
from __future__ import annotations

import logging
import time
from decimal import Decimal
from typing import Optional

from aiohttp import web

import constants
from engine.context import EngineContext
from engine.errors import AlreadyRunningError, InsufficientBalanceError, NotReadyError
from engine.models import Opportunity, Strategy

logger = logging.getLogger(__name__)

CONTEXT_KEY = web.AppKey("engine_context", EngineContext)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _now_ms() -> int:
    return int(time.time() * 1000)


def format_ether(value: Decimal) -> str:
    text = format(Decimal(value).normalize(), "f")
    return text if "." in text else f"{text}.0"


def strategy_to_dict(strategy: Strategy) -> dict:
    return {
        "id": strategy.id,
        "name": strategy.name,
        "type": strategy.type,
        "riskLevel": strategy.risk_level,
        "enabled": strategy.enabled,
        "priority": strategy.priority,
        "successRate": strategy.success_rate,
        "totalTrades": strategy.total_trades,
        "totalProfitUSD": strategy.total_profit_usd,
        "apy": strategy.apy,
    }


def opportunity_to_dict(opp: Opportunity) -> dict:
    return {
        "id": opp.id,
        "type": opp.type,
        "profitETH": f"{opp.profit_eth:.6f}",
        "gasPrice": f"{opp.gas_price_gwei:.9f}".rstrip("0").rstrip("."),
        "blockNumber": opp.block_number,
        "timestamp": opp.timestamp,
    }


def _parse_active(raw: Optional[str]) -> Optional[bool]:
    if raw is None:
        return None
    raw = raw.strip().lower()
    if raw == "true":
        return True
    if raw == "false":
        return False
    return None


# --- Middlewares ---

@web.middleware
async def cors_middleware(request: web.Request, handler):
    if request.method == "OPTIONS":
        return web.Response(status=204, headers=CORS_HEADERS)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        # router 404/405 responses need the headers too
        exc.headers.update(CORS_HEADERS)
        raise
    response.headers.update(CORS_HEADERS)
    return response


@web.middleware
async def error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception as exc:
        logger.error("Unhandled error on %s %s: %s", request.method, request.path, exc)
        return web.json_response({"error": str(exc)}, status=500)


# --- Queries ---

async def health(request: web.Request) -> web.Response:
    ctx = request.app[CONTEXT_KEY]
    return web.json_response({
        "status": "ok",
        "timestamp": _now_ms(),
        "uptime": ctx.statistics.uptime(),
        "backend": constants.BACKEND_NAME,
        "wallet": ctx.backend_wallet_address,
    })


async def status(request: web.Request) -> web.Response:
    ctx = request.app[CONTEXT_KEY]
    balance = "0"
    block_number = 0
    try:
        if ctx.provider is not None:
            balance = format_ether(await ctx.provider.get_balance(ctx.backend_wallet_address))
            block_number = await ctx.provider.get_block_number()
    except Exception as exc:
        logger.error("Status query failed: %s", exc)
        return web.json_response({"error": str(exc)}, status=500)

    engine = ctx.controller.status()
    counts = ctx.registry.counts()
    stats = ctx.statistics.stats
    return web.json_response({
        "engineState": engine["engineState"],
        "uhfState": engine["uhfState"],
        "walletBalance": balance,
        "blockNumber": block_number,
        "totalStrategies": counts["total"],
        "activeStrategies": counts["active"],
        "opportunities": len(ctx.scanner),
        "totalTrades": stats.executed_trades,
        "totalProfitUSD": stats.total_profit_usd,
        "providerHealth": "connected" if ctx.provider is not None else "disconnected",
    })


async def metrics(request: web.Request) -> web.Response:
    return web.json_response(request.app[CONTEXT_KEY].statistics.metrics())


async def strategies(request: web.Request) -> web.Response:
    ctx = request.app[CONTEXT_KEY]
    query = request.query
    filtered = ctx.registry.list(
        type=query.get("type") or None,
        risk=query.get("risk") or None,
        active=_parse_active(query.get("active")),
    )
    return web.json_response({
        "total": len(filtered),
        "strategies": [strategy_to_dict(s) for s in filtered],
    })


async def prices(request: web.Request) -> web.Response:
    ctx = request.app[CONTEXT_KEY]
    return web.json_response(await ctx.price_client.get_price_map())


async def flashloans(request: web.Request) -> web.Response:
    scanner = request.app[CONTEXT_KEY].scanner
    opportunities = scanner.opportunities
    latest = scanner.latest
    return web.json_response({
        "total": len(opportunities),
        "opportunities": [opportunity_to_dict(o) for o in opportunities],
        "best": opportunity_to_dict(latest) if latest else None,
        "statistics": {
            "detected": len(opportunities),
            "avgProfitETH": f"{scanner.average_profit_eth():.6f}" if opportunities else "0",
        },
    })


async def wallet_balance(request: web.Request) -> web.Response:
    ctx = request.app[CONTEXT_KEY]
    if ctx.provider is None:
        return web.json_response({"error": "Provider not initialized"}, status=503)

    address = ctx.backend_wallet_address
    try:
        eth = await ctx.provider.get_balance(address)
    except Exception as exc:
        logger.error("Wallet balance query failed: %s", exc)
        return web.json_response({"error": str(exc)}, status=500)

    balances = {"ETH": format_ether(eth)}
    for symbol, token in (("WETH", "weth"), ("USDC", "usdc")):
        token_address = constants.COMMON_TOKEN_ADDRESSES["ethereum"][token]
        try:
            balances[symbol] = format_ether(await ctx.provider.get_token_balance(token_address, address))
        except Exception as exc:
            logger.warning("%s balance unavailable: %s", symbol, exc)
            balances[symbol] = "0"

    return web.json_response({"address": address, "balances": balances})


async def funds_stats(request: web.Request) -> web.Response:
    return web.json_response(request.app[CONTEXT_KEY].statistics.funds())


# --- Commands ---

def _command_ok(message: str) -> web.Response:
    return web.json_response({"success": True, "message": message, "timestamp": _now_ms()})


async def start_engine(request: web.Request) -> web.Response:
    try:
        request.app[CONTEXT_KEY].controller.start()
    except AlreadyRunningError as exc:
        return web.json_response({"error": str(exc)}, status=400)
    return _command_ok("Main trading engine started")


async def stop_engine(request: web.Request) -> web.Response:
    request.app[CONTEXT_KEY].controller.stop()
    return _command_ok("All engines stopped")


async def start_uhf(request: web.Request) -> web.Response:
    try:
        request.app[CONTEXT_KEY].controller.start_high_frequency()
    except AlreadyRunningError as exc:
        return web.json_response({"error": str(exc)}, status=400)
    return _command_ok("UHF engine started")


async def withdraw_all(request: web.Request) -> web.Response:
    ctx = request.app[CONTEXT_KEY]
    try:
        result = await ctx.withdrawal.withdraw_all()
    except NotReadyError as exc:
        return web.json_response({"error": str(exc)}, status=503)
    except InsufficientBalanceError as exc:
        return web.json_response({"error": str(exc)}, status=400)
    except Exception as exc:
        logger.error("Withdrawal error: %s", exc)
        return web.json_response({"error": str(exc)}, status=500)

    return web.json_response({
        "success": True,
        "txHash": result.tx_hash,
        "amount": f"{result.amount_eth:.6f}",
        "to": result.to,
    })


def create_app(context: EngineContext) -> web.Application:
    """Build the aiohttp application around an engine context."""
    app = web.Application(middlewares=[cors_middleware, error_middleware])
    app[CONTEXT_KEY] = context
    app.router.add_get("/health", health)
    app.router.add_get("/api/status", status)
    app.router.add_get("/api/metrics", metrics)
    app.router.add_get("/api/strategies", strategies)
    app.router.add_get("/api/prices", prices)
    app.router.add_get("/api/flashloans", flashloans)
    app.router.add_get("/api/wallet/balance", wallet_balance)
    app.router.add_get("/api/funds/stats", funds_stats)
    app.router.add_post("/api/start", start_engine)
    app.router.add_post("/api/stop", stop_engine)
    app.router.add_post("/api/start-uhf", start_uhf)
    app.router.add_post("/api/withdraw-all", withdraw_all)
    return app


async def run_server(app: web.Application, host: str, port: int) -> web.AppRunner:
    """Starts serving `app`; the caller owns the returned runner's cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.debug("Listening on %s:%s", host, port)
    return runner
