import asyncio
import logging
import random
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from starlette.requests import Request

from gold_rsi_bot.app.api.routes import router
from gold_rsi_bot.config import params_from_settings
from gold_rsi_bot.db import Database
from gold_rsi_bot.engine.trader import Oscillator, PriceFeed, SignalBot
from gold_rsi_bot.feeds import SwissquoteClient
from gold_rsi_bot.log_sink import LogSink
from gold_rsi_bot.logging_utils import EndpointFilter, get_logger
from gold_rsi_bot.recorder import TradeRecorder
from gold_rsi_bot.settings import Settings
from gold_rsi_bot.strategies import RsiThresholdStrategy

logger = get_logger("Main")

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def create_app(
    settings: Optional[Settings] = None,
    *,
    feed: Optional[PriceFeed] = None,
    oscillator: Optional[Oscillator] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Suppress uvicorn access logs for polling endpoints
        logging.getLogger("uvicorn.access").addFilter(
            EndpointFilter("/api/logs", "/api/trades", "/api/status")
        )

        cfg = settings or Settings()
        logger.info("Starting gold-rsi-bot...")
        database = Database(cfg.sqlalchemy_url())
        await database.init()
        logger.info("Database initialized")

        owned_feed: Optional[SwissquoteClient] = None
        price_feed = feed
        if price_feed is None:
            owned_feed = SwissquoteClient(
                url=cfg.quote_feed_url,
                timeout_seconds=cfg.quote_feed_timeout_seconds,
            )
            price_feed = owned_feed

        log_sink = LogSink(capacity=cfg.log_buffer_size, read_limit=cfg.log_read_limit)
        recorder = TradeRecorder(database)
        bot = SignalBot(
            settings=cfg,
            feed=price_feed,
            strategy=RsiThresholdStrategy(params_from_settings(cfg)),
            recorder=recorder,
            log_sink=log_sink,
            oscillator=oscillator,
            rng=rng,
        )
        app.state.settings = cfg
        app.state.recorder = recorder
        app.state.log_sink = log_sink
        app.state.bot = bot
        task = asyncio.create_task(bot.run())
        app.state.bot_task = task
        logger.info("Trading bot task started")
        try:
            yield
        finally:
            logger.info("Shutting down...")
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
            if owned_feed is not None:
                await owned_feed.aclose()
            await database.dispose()
            logger.info("gold-rsi-bot stopped")

    app = FastAPI(title="gold-rsi-bot", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/", response_class=HTMLResponse)
    async def root(request: Request):
        return templates.TemplateResponse(request, "index.html")

    return app


app = create_app()
