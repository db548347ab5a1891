__all__ = ["CycleResult", "SignalBot"]

from gold_rsi_bot.engine.trader import CycleResult, SignalBot
