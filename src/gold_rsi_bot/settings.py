from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

SWISSQUOTE_XAU_USD_URL = (
    "https://forex-data-feed.swissquote.com/public-quotes/bboquotes/instrument/XAU/USD"
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Persistence (required at startup)
    database_url: str = Field(min_length=1, validation_alias="DATABASE_URL")
    database_name: str = Field(min_length=1, validation_alias="DATABASE_NAME")

    # Quote feed
    quote_feed_url: str = Field(default=SWISSQUOTE_XAU_USD_URL, validation_alias="QUOTE_FEED_URL")
    quote_feed_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias="QUOTE_FEED_TIMEOUT_SECONDS",
    )

    # Scheduler
    run_mode: Literal["development", "production", "test"] = Field(
        default="development",
        validation_alias="RUN_MODE",
    )
    poll_interval_seconds: int = Field(default=60, ge=1, validation_alias="POLL_INTERVAL_SECONDS")

    # Oscillator
    price_window_size: int = Field(default=15, ge=1, validation_alias="PRICE_WINDOW_SIZE")
    price_jitter: float = Field(default=5.0, ge=0, validation_alias="PRICE_JITTER")
    rsi_min_points: int = Field(default=14, ge=2, validation_alias="RSI_MIN_POINTS")

    # Signal policy
    rsi_buy_below: float = Field(default=30.0, ge=0, le=100, validation_alias="RSI_BUY_BELOW")
    rsi_sell_above: float = Field(default=70.0, ge=0, le=100, validation_alias="RSI_SELL_ABOVE")
    stop_loss_offset: float = Field(default=10.0, ge=0, validation_alias="STOP_LOSS_OFFSET")
    take_profit_offset: float = Field(default=20.0, ge=0, validation_alias="TAKE_PROFIT_OFFSET")

    # Read limits
    log_buffer_size: int = Field(default=100, ge=1, validation_alias="LOG_BUFFER_SIZE")
    log_read_limit: int = Field(default=5, ge=1, validation_alias="LOG_READ_LIMIT")
    trades_query_limit: int = Field(default=10, ge=1, validation_alias="TRADES_QUERY_LIMIT")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, validation_alias="LOG_FILE")

    @model_validator(mode="after")
    def check_thresholds(self) -> Settings:
        if self.rsi_buy_below >= self.rsi_sell_above:
            raise ValueError("RSI_BUY_BELOW must be < RSI_SELL_ABOVE")
        return self

    def scheduler_enabled(self) -> bool:
        return self.run_mode in ("development", "production")

    def sqlalchemy_url(self) -> URL:
        return make_url(self.database_url).set(database=self.database_name)
