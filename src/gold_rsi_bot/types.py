from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

Side = Literal["Buy", "Sell"]
SignalName = Literal["Buy", "Sell", "Hold"]


@dataclass(frozen=True)
class PricePoint:
    price: float


@dataclass(frozen=True)
class Decision:
    signal: SignalName
    reason: str
    # Hold carries no levels.
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None

    @property
    def is_trade(self) -> bool:
        return self.signal != "Hold"
