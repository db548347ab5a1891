from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from gold_rsi_bot.engine.trader import SignalBot
from gold_rsi_bot.errors import ComputeError, FetchError, PersistenceError
from gold_rsi_bot.log_sink import LogSink
from gold_rsi_bot.logging_utils import get_logger
from gold_rsi_bot.recorder import TradeRecorder, trade_to_response

logger = get_logger("API")


router = APIRouter()


def _bot(request: Request) -> SignalBot:
    return request.app.state.bot


@router.get("/api/price")
async def get_price(request: Request):
    try:
        price = await _bot(request).fetch_price()
    except FetchError as exc:
        logger.error(f"Error fetching gold price: {exc}")
        return JSONResponse({"error": "Failed to fetch gold price"}, status_code=500)
    return {"price": price}


@router.get("/api/logs")
async def get_logs(request: Request):
    log_sink: LogSink = request.app.state.log_sink
    return {"logs": [entry.to_dict() for entry in log_sink.recent()]}


@router.get("/api/trades")
async def get_trades(request: Request):
    recorder: TradeRecorder = request.app.state.recorder
    limit = request.app.state.settings.trades_query_limit
    try:
        trades = await recorder.recent(limit)
    except PersistenceError as exc:
        logger.error(f"Error fetching trades: {exc}")
        return JSONResponse({"error": "Failed to fetch trades"}, status_code=500)
    return [trade_to_response(t) for t in trades]


@router.post("/api/trade")
async def execute_trade(request: Request):
    try:
        result = await _bot(request).run_cycle()
    except ComputeError as exc:
        logger.warning(f"Trade skipped: {exc}")
        return JSONResponse(
            {"error": "Insufficient data for RSI calculation", "current_price": exc.current_price},
            status_code=400,
        )
    except Exception as exc:  # noqa: BLE001
        logger.error(f"Error executing trade: {exc}")
        return JSONResponse({"error": "Failed to execute trade"}, status_code=500)

    decision = result.decision
    if result.record is None:
        return {
            "signal": decision.signal,
            "message": "No trade executed as RSI is within the neutral range.",
            "current_price": result.current_price,
            "rsi": result.rsi,
        }
    return {
        "signal": decision.signal,
        "stop_loss": decision.stop_loss,
        "take_profit": decision.take_profit,
        "current_price": result.current_price,
        "rsi": result.rsi,
        "inserted_id": str(result.record.id),
    }


@router.get("/api/status")
async def get_status(request: Request):
    bot = _bot(request)
    settings = request.app.state.settings
    return {
        "status": bot.status,
        "strategy_id": bot.strategy_id,
        "run_mode": settings.run_mode,
        "scheduler_enabled": settings.scheduler_enabled(),
        "poll_interval_seconds": settings.poll_interval_seconds,
        "cycle_in_flight": bot.cycle_in_flight,
        "skipped_ticks": bot.skipped_ticks,
        "last_price": bot.last_price,
        "last_rsi": bot.last_rsi,
        "last_signal": bot.last_signal,
        "rsi_buy_below": settings.rsi_buy_below,
        "rsi_sell_above": settings.rsi_sell_above,
    }
