from __future__ import annotations

from dataclasses import dataclass

from gold_rsi_bot.strategies.base import Strategy
from gold_rsi_bot.types import Decision


@dataclass(frozen=True)
class RsiThresholdParams:
    buy_below: float = 30.0
    sell_above: float = 70.0
    stop_loss_offset: float = 10.0
    take_profit_offset: float = 20.0


class RsiThresholdStrategy(Strategy):
    strategy_id = "rsi_threshold"

    def __init__(self, params: RsiThresholdParams) -> None:
        if not (0 <= params.buy_below < params.sell_above <= 100):
            raise ValueError("thresholds must satisfy 0 <= buy_below < sell_above <= 100")
        if params.stop_loss_offset < 0 or params.take_profit_offset < 0:
            raise ValueError("offsets must be >= 0")
        self._params = params

    @property
    def params(self) -> RsiThresholdParams:
        return self._params

    def decide(self, *, rsi: float, price: float) -> Decision:
        p = self._params
        if rsi < p.buy_below:
            return Decision(
                signal="Buy",
                reason="rsi_oversold",
                stop_loss=price - p.stop_loss_offset,
                take_profit=price + p.take_profit_offset,
            )
        if rsi > p.sell_above:
            return Decision(
                signal="Sell",
                reason="rsi_overbought",
                stop_loss=price + p.stop_loss_offset,
                take_profit=price - p.take_profit_offset,
            )
        return Decision(signal="Hold", reason="rsi_neutral")
