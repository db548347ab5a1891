import logging

from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from gold_rsi_bot.errors import PersistenceError

# Registers the table on SQLModel.metadata before create_all.
from gold_rsi_bot.models import TradeRecord  # noqa: F401

logger = logging.getLogger("gold_rsi_bot.db")


class Database:
    """Owns the async engine and session factory for one process lifetime."""

    def __init__(self, url: str | URL, *, echo: bool = False) -> None:
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, future=True)
        self.sessionmaker = async_sessionmaker(bind=self.engine, expire_on_commit=False)

    async def init(self) -> None:
        """Create database tables."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        except SQLAlchemyError as e:
            logger.error("Error initializing database: %s", e)
            raise PersistenceError("Database unavailable") from e

    async def dispose(self) -> None:
        await self.engine.dispose()

    def session(self) -> AsyncSession:
        return self.sessionmaker()
