from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from pydantic import ValidationError

from gold_rsi_bot.config import load_rsi_threshold_run_config, params_from_settings
from gold_rsi_bot.db import Database
from gold_rsi_bot.engine.trader import SignalBot
from gold_rsi_bot.errors import CycleError
from gold_rsi_bot.feeds import SwissquoteClient
from gold_rsi_bot.log_sink import LogSink
from gold_rsi_bot.logging_utils import configure_logging
from gold_rsi_bot.recorder import TradeRecorder, trade_to_response
from gold_rsi_bot.settings import Settings
from gold_rsi_bot.strategies import RsiThresholdStrategy

app = typer.Typer(no_args_is_help=True, add_completion=False)
logger = logging.getLogger("gold_rsi_bot")

_ENV_TEMPLATE = """\
# Persistence (required)
DATABASE_URL=sqlite+aiosqlite://
DATABASE_NAME=gold_rsi_bot.db

# Scheduler: development | production run the minute loop, test disables it
RUN_MODE=development
POLL_INTERVAL_SECONDS=60

# Signal policy
RSI_BUY_BELOW=30
RSI_SELL_ABOVE=70
STOP_LOSS_OFFSET=10
TAKE_PROFIT_OFFSET=20

LOG_LEVEL=INFO
# LOG_FILE=gold_rsi_bot.log
"""


def _load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        typer.echo(f"invalid settings: {e}", err=True)
        raise typer.Exit(code=2) from e


def _build_bot(settings: Settings, feed: SwissquoteClient, database: Database) -> SignalBot:
    return SignalBot(
        settings=settings,
        feed=feed,
        strategy=RsiThresholdStrategy(params_from_settings(settings)),
        recorder=TradeRecorder(database),
        log_sink=LogSink(capacity=settings.log_buffer_size, read_limit=settings.log_read_limit),
    )


def _feed(settings: Settings) -> SwissquoteClient:
    return SwissquoteClient(
        url=settings.quote_feed_url,
        timeout_seconds=settings.quote_feed_timeout_seconds,
    )


@app.command()
def config_init(
    path: Path = typer.Option(Path(".env"), help="Path to write a starter .env file."),
    overwrite: bool = typer.Option(False, "--overwrite", help="Overwrite if exists."),
) -> None:
    """Write a starter .env file."""
    if path.exists() and not overwrite:
        typer.echo(f"{path} already exists (use --overwrite)", err=True)
        raise typer.Exit(code=1)
    path.write_text(_ENV_TEMPLATE, encoding="utf-8")
    typer.echo(f"Wrote {path}")


@app.command()
def show_config() -> None:
    """Print effective settings with credentials redacted."""
    settings = _load_settings()
    data = settings.model_dump()
    url = settings.sqlalchemy_url()
    data["database_url"] = url.render_as_string(hide_password=True)
    typer.echo(json.dumps(data, indent=2, default=str))


@app.command()
def price() -> None:
    """Fetch the current prime bid once."""
    settings = _load_settings()
    configure_logging(settings.log_level, log_file=settings.log_file)

    async def _run() -> float:
        feed = _feed(settings)
        try:
            return await feed.fetch_prime_bid()
        finally:
            await feed.aclose()

    try:
        bid = asyncio.run(_run())
    except CycleError as e:
        typer.echo(json.dumps({"error": str(e)}), err=True)
        raise typer.Exit(code=1) from e
    typer.echo(json.dumps({"price": bid}))


@app.command()
def once() -> None:
    """Run a single cycle and print the outcome."""
    settings = _load_settings()
    configure_logging(settings.log_level, log_file=settings.log_file)

    async def _run() -> dict[str, object]:
        database = Database(settings.sqlalchemy_url())
        feed = _feed(settings)
        try:
            await database.init()
            result = await _build_bot(settings, feed, database).run_cycle()
        finally:
            await feed.aclose()
            await database.dispose()
        out: dict[str, object] = {
            "signal": result.decision.signal,
            "current_price": result.current_price,
            "rsi": result.rsi,
        }
        if result.record is not None:
            out.update(
                stop_loss=result.decision.stop_loss,
                take_profit=result.decision.take_profit,
                inserted_id=str(result.record.id),
            )
        return out

    try:
        outcome = asyncio.run(_run())
    except CycleError as e:
        typer.echo(json.dumps({"error": str(e)}), err=True)
        raise typer.Exit(code=1) from e
    typer.echo(json.dumps(outcome))


@app.command()
def trades(
    limit: Optional[int] = typer.Option(None, min=1, help="Number of trades (default from settings)."),
) -> None:
    """List the most recent recorded trades, newest first."""
    settings = _load_settings()
    configure_logging(settings.log_level, log_file=settings.log_file)

    async def _run() -> list[dict[str, object]]:
        database = Database(settings.sqlalchemy_url())
        try:
            await database.init()
            records = await TradeRecorder(database).recent(limit or settings.trades_query_limit)
        finally:
            await database.dispose()
        return [trade_to_response(r) for r in records]

    try:
        records = asyncio.run(_run())
    except CycleError as e:
        typer.echo(json.dumps({"error": str(e)}), err=True)
        raise typer.Exit(code=1) from e
    typer.echo(json.dumps(records, indent=2))


@app.command()
def run(
    config: Optional[Path] = typer.Option(
        None,
        help="TOML file overriding feed/policy/scheduler settings.",
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON log lines."),
) -> None:
    """Run the scheduler without the web dashboard."""
    settings = _load_settings()
    if config is not None:
        if not config.exists():
            raise typer.BadParameter(f"config file not found: {config}")
        try:
            settings = load_rsi_threshold_run_config(config).apply_to(settings)
        except (ValidationError, ValueError) as e:
            raise typer.BadParameter(f"invalid config: {e}") from e
    configure_logging(settings.log_level, json_logs=json_logs, log_file=settings.log_file)

    async def _run() -> None:
        database = Database(settings.sqlalchemy_url())
        feed = _feed(settings)
        try:
            await database.init()
            await _build_bot(settings, feed, database).run()
        finally:
            await feed.aclose()
            await database.dispose()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        logger.info("scheduler_interrupted")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
) -> None:
    """Serve the dashboard and API with the scheduler running in-process."""
    settings = _load_settings()
    configure_logging(settings.log_level, log_file=settings.log_file)
    uvicorn.run("gold_rsi_bot.app.main:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
    app()
