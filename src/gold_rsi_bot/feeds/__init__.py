__all__ = ["FetchError", "Quote", "SwissquoteClient"]

from gold_rsi_bot.feeds.swissquote import FetchError, Quote, SwissquoteClient
