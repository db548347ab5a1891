from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from gold_rsi_bot.settings import Settings
from gold_rsi_bot.strategies.rsi_threshold import RsiThresholdParams


class FeedConfig(BaseModel):
    url: Optional[str] = None
    window_size: int = Field(default=15, ge=1)
    jitter: float = Field(default=5.0, ge=0)


class PolicyConfig(BaseModel):
    buy_below: float = Field(default=30.0, ge=0, le=100)
    sell_above: float = Field(default=70.0, ge=0, le=100)
    stop_loss_offset: float = Field(default=10.0, ge=0)
    take_profit_offset: float = Field(default=20.0, ge=0)


class SchedulerConfig(BaseModel):
    poll_interval_seconds: int = Field(default=60, ge=1)


class RsiThresholdRunConfig(BaseModel):
    feed: FeedConfig = Field(default_factory=FeedConfig)
    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)

    def validate_logic(self) -> None:
        if self.policy.buy_below >= self.policy.sell_above:
            raise ValueError("policy.buy_below must be < policy.sell_above")

    def to_params(self) -> RsiThresholdParams:
        return RsiThresholdParams(
            buy_below=self.policy.buy_below,
            sell_above=self.policy.sell_above,
            stop_loss_offset=self.policy.stop_loss_offset,
            take_profit_offset=self.policy.take_profit_offset,
        )

    def apply_to(self, settings: Settings) -> Settings:
        """Return a copy of ``settings`` with this file's values layered on top."""
        update = {
            "price_window_size": self.feed.window_size,
            "price_jitter": self.feed.jitter,
            "poll_interval_seconds": self.scheduler.poll_interval_seconds,
            "rsi_buy_below": self.policy.buy_below,
            "rsi_sell_above": self.policy.sell_above,
            "stop_loss_offset": self.policy.stop_loss_offset,
            "take_profit_offset": self.policy.take_profit_offset,
        }
        if self.feed.url:
            update["quote_feed_url"] = self.feed.url
        return settings.model_copy(update=update)


def params_from_settings(settings: Settings) -> RsiThresholdParams:
    return RsiThresholdParams(
        buy_below=settings.rsi_buy_below,
        sell_above=settings.rsi_sell_above,
        stop_loss_offset=settings.stop_loss_offset,
        take_profit_offset=settings.take_profit_offset,
    )


def load_rsi_threshold_run_config(path: Path) -> RsiThresholdRunConfig:
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    cfg = RsiThresholdRunConfig.model_validate(raw)
    cfg.validate_logic()
    return cfg
