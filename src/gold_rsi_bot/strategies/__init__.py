__all__ = ["RsiThresholdParams", "RsiThresholdStrategy", "Strategy"]

from gold_rsi_bot.strategies.base import Strategy
from gold_rsi_bot.strategies.rsi_threshold import RsiThresholdParams, RsiThresholdStrategy
