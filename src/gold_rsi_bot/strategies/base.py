from __future__ import annotations

from abc import ABC, abstractmethod

from gold_rsi_bot.types import Decision


class Strategy(ABC):
    strategy_id: str

    @abstractmethod
    def decide(self, *, rsi: float, price: float) -> Decision:
        raise NotImplementedError
