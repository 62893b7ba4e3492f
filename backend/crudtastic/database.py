"""
Crudtastic: Database Engine & Transaction Management
====================================================

What:  Async SQLAlchemy engine plus the two connection scopes the rest of the
       application uses: plain reads and transactional units of work.
How:   `Database.transaction()` yields a connection inside BEGIN, commits on
       normal exit and rolls back when the body raises. The yielded
       `AsyncConnection` is the transaction handle threaded through route
       handlers and data models.
Who:   Created once by the Server; shared by every TableModel.

Connection Pooling:
    PostgreSQL: pool_size / max_overflow / pre_ping come from Settings.
    SQLite:     SQLAlchemy picks the pool for aiosqlite; sizing is skipped.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from crudtastic.config import Settings

logger = logging.getLogger(__name__)


def create_engine_from_settings(config: Settings) -> AsyncEngine:
    """Build the async engine, applying pool sizing for server databases."""
    options = {
        # SQL echo only when the application itself logs at DEBUG
        "echo": False,
        "pool_pre_ping": config.db_pool_pre_ping,
    }
    if not config.is_sqlite:
        options.update(
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_recycle=3600,
        )
    return create_async_engine(config.database_url, **options)


class Database:
    """
    Owns the engine and hands out connections.

    Example:
        async with database.transaction() as tx:
            await record.save(transaction=tx)
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @classmethod
    def from_settings(cls, config: Settings) -> "Database":
        return cls(create_engine_from_settings(config))

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncConnection]:
        """
        One atomic unit of work.

        Commits when the block finishes, rolls back on any exception and
        re-raises it so the error handlers can respond. The connection is
        returned to the pool in both cases.
        """
        async with self.engine.connect() as connection:
            trans = await connection.begin()
            try:
                yield connection
                await trans.commit()
            except Exception:
                await trans.rollback()
                logger.debug("Transaction rolled back")
                raise

    @asynccontextmanager
    async def connection(
        self, transaction: Optional[AsyncConnection] = None
    ) -> AsyncIterator[AsyncConnection]:
        """Reuse the caller's transaction if given, else borrow a pooled connection."""
        if transaction is not None:
            yield transaction
            return
        async with self.engine.connect() as connection:
            yield connection

    async def ping(self) -> bool:
        """SELECT 1 against the database; used by the health check."""
        async with self.engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        return True

    async def dispose(self) -> None:
        """Close all pooled connections (application shutdown)."""
        await self.engine.dispose()
