from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Optional, Protocol

from gold_rsi_bot.errors import ComputeError
from gold_rsi_bot.log_sink import LogSink
from gold_rsi_bot.math_utils import jitter_window, rsi
from gold_rsi_bot.models import TradeRecord
from gold_rsi_bot.recorder import TradeRecorder
from gold_rsi_bot.settings import Settings
from gold_rsi_bot.strategies.base import Strategy
from gold_rsi_bot.types import Decision

logger = logging.getLogger("gold_rsi_bot.trader")

Oscillator = Callable[[Sequence[float]], Optional[float]]


class PriceFeed(Protocol):
    async def fetch_prime_bid(self) -> float: ...


@dataclass(frozen=True)
class CycleResult:
    current_price: float
    rsi: float
    decision: Decision
    record: Optional[TradeRecord] = None


class SignalBot:
    def __init__(
        self,
        *,
        settings: Settings,
        feed: PriceFeed,
        strategy: Strategy,
        recorder: TradeRecorder,
        log_sink: LogSink,
        oscillator: Optional[Oscillator] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._settings = settings
        self._feed = feed
        self._strategy = strategy
        self._recorder = recorder
        self._log_sink = log_sink
        self._oscillator = oscillator or (lambda values: rsi(values, settings.rsi_min_points))
        self._rng = rng or random.Random()
        self._cycle_lock = asyncio.Lock()
        self._ticks: set[asyncio.Task[Optional[CycleResult]]] = set()
        self.status = "Stopped"
        self.last_price: Optional[float] = None
        self.last_rsi: Optional[float] = None
        self.last_signal: Optional[str] = None
        self.skipped_ticks = 0

    @property
    def strategy_id(self) -> str:
        return self._strategy.strategy_id

    @property
    def cycle_in_flight(self) -> bool:
        return self._cycle_lock.locked()

    async def fetch_price(self) -> float:
        price = await self._feed.fetch_prime_bid()
        self.last_price = price
        return price

    async def run_cycle(self) -> CycleResult:
        """Run one fetch, compute, decide, record cycle.

        Waits for any cycle already in flight. Every outcome lands in the log
        sink; failures are re-raised to the caller.
        """
        async with self._cycle_lock:
            try:
                return await self._cycle()
            except Exception as e:
                self._log_sink.append(f"Error executing trade: {e}")
                raise

    async def _cycle(self) -> CycleResult:
        current_price = await self.fetch_price()
        window = jitter_window(
            current_price,
            self._settings.price_window_size,
            self._settings.price_jitter,
            self._rng,
        )
        closes = [p.price for p in window]
        value = self._oscillator(closes)
        if value is None:
            logger.warning("RSI calculation returned null", extra={"price": current_price})
            raise ComputeError(
                "Insufficient data for RSI calculation",
                current_price=current_price,
            )
        self.last_rsi = value

        decision = self._strategy.decide(rsi=value, price=current_price)
        self.last_signal = decision.signal
        if not decision.is_trade:
            message = f"No trade executed, RSI is within neutral range: {value}"
            logger.info(message, extra={"price": current_price, "rsi": value})
            self._log_sink.append(message)
            return CycleResult(current_price=current_price, rsi=value, decision=decision)

        record = await self._recorder.insert(decision=decision, price=current_price, rsi=value)
        message = f"Executed trade: {decision.signal} at {current_price}, RSI: {value}"
        logger.info(
            message,
            extra={
                "price": current_price,
                "rsi": value,
                "signal": decision.signal,
                "trade_id": record.id,
                "strategy_id": self.strategy_id,
            },
        )
        self._log_sink.append(message)
        return CycleResult(current_price=current_price, rsi=value, decision=decision, record=record)

    async def tick(self) -> Optional[CycleResult]:
        """Scheduled entry point: skips when a cycle is still running."""
        if self._cycle_lock.locked():
            self.skipped_ticks += 1
            logger.warning("tick_skipped_cycle_in_flight")
            return None
        logger.info("Running trade bot...")
        try:
            result = await self.run_cycle()
        except asyncio.CancelledError:
            raise
        except Exception:
            self.status = "Error"
            logger.exception("cycle_failed")
            return None
        self.status = "Active"
        return result

    async def run(self) -> None:
        if not self._settings.scheduler_enabled():
            logger.info("scheduler_disabled", extra={"run_mode": self._settings.run_mode})
            self.status = "Disabled"
            return

        interval = float(self._settings.poll_interval_seconds)
        loop = asyncio.get_running_loop()
        next_fire = loop.time()
        self.status = "Active"
        logger.info("scheduler_started", extra={"run_mode": self._settings.run_mode})
        try:
            while True:
                task = asyncio.create_task(self.tick())
                self._ticks.add(task)
                task.add_done_callback(self._ticks.discard)
                next_fire += interval
                await asyncio.sleep(max(0.0, next_fire - loop.time()))
        finally:
            for task in list(self._ticks):
                task.cancel()
            if self._ticks:
                await asyncio.gather(*self._ticks, return_exceptions=True)
            self.status = "Stopped"
            logger.info("scheduler_stopped")
