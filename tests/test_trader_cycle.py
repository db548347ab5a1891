import asyncio
import random
from typing import Optional

import httpx
import pytest

from conftest import StaticFeed, feed_payload
from gold_rsi_bot.config import params_from_settings
from gold_rsi_bot.db import Database
from gold_rsi_bot.engine.trader import SignalBot
from gold_rsi_bot.errors import ComputeError, FetchError
from gold_rsi_bot.feeds import SwissquoteClient
from gold_rsi_bot.log_sink import LogSink
from gold_rsi_bot.recorder import TradeRecorder
from gold_rsi_bot.settings import Settings
from gold_rsi_bot.strategies import RsiThresholdStrategy


def _bot(settings: Settings, database: Database, feed, oscillator=None) -> SignalBot:
    return SignalBot(
        settings=settings,
        feed=feed,
        strategy=RsiThresholdStrategy(params_from_settings(settings)),
        recorder=TradeRecorder(database),
        log_sink=LogSink(),
        oscillator=oscillator,
        rng=random.Random(3),
    )


def _fixed(value: Optional[float]):
    return lambda values: value


def test_forced_oversold_cycle_records_buy(make_settings) -> None:
    settings = make_settings()

    async def main():
        database = Database(settings.sqlalchemy_url())
        await database.init()
        bot = _bot(settings, database, StaticFeed(1900.0), oscillator=_fixed(25.0))
        try:
            result = await bot.run_cycle()
            trades = await TradeRecorder(database).recent()
        finally:
            await database.dispose()
        return bot, result, trades

    bot, result, trades = asyncio.run(main())

    assert result.decision.signal == "Buy"
    assert result.decision.stop_loss == 1890.0
    assert result.decision.take_profit == 1920.0
    assert result.record is not None
    assert len(trades) == 1
    assert trades[0].id == result.record.id
    assert bot.last_signal == "Buy"
    (entry,) = bot._log_sink.recent()
    assert entry.message == "Executed trade: Buy at 1900.0, RSI: 25.0"


def test_forced_overbought_cycle_records_sell(make_settings) -> None:
    settings = make_settings()

    async def main():
        database = Database(settings.sqlalchemy_url())
        await database.init()
        try:
            return await _bot(settings, database, StaticFeed(1900.0), oscillator=_fixed(80.0)).run_cycle()
        finally:
            await database.dispose()

    result = asyncio.run(main())

    assert result.decision.signal == "Sell"
    assert result.decision.stop_loss == 1910.0
    assert result.decision.take_profit == 1880.0


def test_neutral_cycle_logs_without_recording(make_settings) -> None:
    settings = make_settings()

    async def main():
        database = Database(settings.sqlalchemy_url())
        await database.init()
        bot = _bot(settings, database, StaticFeed(1900.0), oscillator=_fixed(50.0))
        try:
            result = await bot.run_cycle()
            trades = await TradeRecorder(database).recent()
        finally:
            await database.dispose()
        return bot, result, trades

    bot, result, trades = asyncio.run(main())

    assert result.decision.signal == "Hold"
    assert result.record is None
    assert trades == []
    assert bot._log_sink.recent()[0].message == (
        "No trade executed, RSI is within neutral range: 50.0"
    )


def test_missing_prime_profile_logs_error_and_records_nothing(make_settings) -> None:
    settings = make_settings()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=feed_payload(("standard", 1900.0)))

    async def main():
        database = Database(settings.sqlalchemy_url())
        await database.init()
        feed = SwissquoteClient(url="https://feed.test", transport=httpx.MockTransport(handler))
        bot = _bot(settings, database, feed)
        try:
            with pytest.raises(FetchError):
                await bot.run_cycle()
            trades = await TradeRecorder(database).recent()
        finally:
            await feed.aclose()
            await database.dispose()
        return bot, trades

    bot, trades = asyncio.run(main())

    assert trades == []
    assert len(bot._log_sink) == 1
    assert bot._log_sink.recent()[0].message.startswith("Error executing trade:")


def test_short_window_raises_compute_error_with_price(make_settings) -> None:
    settings = make_settings(PRICE_WINDOW_SIZE="10")

    async def main():
        database = Database(settings.sqlalchemy_url())
        await database.init()
        bot = _bot(settings, database, StaticFeed(1850.5))
        try:
            with pytest.raises(ComputeError) as exc_info:
                await bot.run_cycle()
        finally:
            await database.dispose()
        return bot, exc_info.value

    bot, error = asyncio.run(main())

    assert error.current_price == 1850.5
    assert "Insufficient data" in bot._log_sink.recent()[0].message


def test_default_window_always_produces_an_rsi(make_settings) -> None:
    settings = make_settings(PRICE_JITTER="5.0")

    async def main():
        database = Database(settings.sqlalchemy_url())
        await database.init()
        try:
            return await _bot(settings, database, StaticFeed(1900.0)).run_cycle()
        finally:
            await database.dispose()

    result = asyncio.run(main())

    assert 0.0 <= result.rsi <= 100.0
    assert result.current_price == 1900.0


def test_tick_swallows_failures_and_marks_error(make_settings) -> None:
    settings = make_settings()

    class _BrokenFeed:
        async def fetch_prime_bid(self) -> float:
            raise FetchError("Failed to fetch gold price data")

    async def main():
        database = Database(settings.sqlalchemy_url())
        await database.init()
        bot = _bot(settings, database, _BrokenFeed())
        try:
            return bot, await bot.tick()
        finally:
            await database.dispose()

    bot, result = asyncio.run(main())

    assert result is None
    assert bot.status == "Error"
    assert len(bot._log_sink) == 1


def test_run_is_disabled_outside_runtime_modes(make_settings) -> None:
    settings = make_settings(RUN_MODE="test")
    feed = StaticFeed()

    async def main():
        database = Database(settings.sqlalchemy_url())
        bot = _bot(settings, database, feed, oscillator=_fixed(25.0))
        try:
            await asyncio.wait_for(bot.run(), timeout=1.0)
        finally:
            await database.dispose()
        return bot

    bot = asyncio.run(main())

    assert bot.status == "Disabled"
    assert feed.calls == 0
