__all__ = ["TradeRecord"]

from gold_rsi_bot.models.trade_record import TradeRecord
