from datetime import UTC, datetime
from typing import Optional

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TradeRecord(SQLModel, table=True):
    __tablename__ = "trades"

    id: Optional[int] = Field(default=None, primary_key=True)
    signal: str = Field(max_length=10)
    stop_loss: float
    take_profit: float
    current_price: float
    rsi: float
    timestamp: datetime = Field(default_factory=_utcnow, index=True)
