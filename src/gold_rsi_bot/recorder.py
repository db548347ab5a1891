from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from gold_rsi_bot.db import Database
from gold_rsi_bot.errors import PersistenceError
from gold_rsi_bot.models import TradeRecord
from gold_rsi_bot.types import Decision

logger = logging.getLogger("gold_rsi_bot.recorder")

DEFAULT_QUERY_LIMIT = 10


def _iso_utc(ts: datetime) -> str:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.isoformat()


def trade_to_response(record: TradeRecord) -> dict[str, Any]:
    return {
        "id": str(record.id),
        "signal": record.signal,
        "stop_loss": record.stop_loss,
        "take_profit": record.take_profit,
        "current_price": record.current_price,
        "rsi": record.rsi,
        "timestamp": _iso_utc(record.timestamp),
    }


class TradeRecorder:
    """Insert-only store of executed (non-Hold) decisions."""

    def __init__(self, database: Database) -> None:
        self._database = database

    async def insert(self, *, decision: Decision, price: float, rsi: float) -> TradeRecord:
        if not decision.is_trade or decision.stop_loss is None or decision.take_profit is None:
            raise ValueError("only Buy/Sell decisions with levels are recorded")
        record = TradeRecord(
            signal=decision.signal,
            stop_loss=decision.stop_loss,
            take_profit=decision.take_profit,
            current_price=price,
            rsi=rsi,
        )
        try:
            async with self._database.session() as session:
                session.add(record)
                await session.commit()
                await session.refresh(record)
        except SQLAlchemyError as e:
            logger.error("Error recording trade: %s", e)
            raise PersistenceError("Failed to execute trade") from e
        return record

    async def recent(self, limit: int = DEFAULT_QUERY_LIMIT) -> list[TradeRecord]:
        stmt = (
            select(TradeRecord)
            .order_by(col(TradeRecord.timestamp).desc(), col(TradeRecord.id).desc())
            .limit(limit)
        )
        try:
            async with self._database.session() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching trades: %s", e)
            raise PersistenceError("Failed to fetch trades") from e
