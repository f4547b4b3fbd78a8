"""
Connection pool for the PostgreSQL / AlloyDB server backing the vector store.

A thin layer over asyncpg: one pool per process, sized from settings, with
helpers for single statements and for work that must share a connection or
a transaction. Extensions and tables are not touched here; see
storage.table for DDL.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import TracebackType
from typing import Any

import asyncpg

from alloydb_vectorstore.config.settings import get_settings

logger = logging.getLogger(__name__)

VECTOR_EXTENSION_QUERY = "SELECT extversion FROM pg_extension WHERE extname = 'vector'"


class Database:
    """
    Owns the asyncpg pool that every vector store operation borrows from.

    Usage:
        async with Database() as db:
            async with db.transaction() as conn:
                await conn.executemany(sql, rows)

            version = await db.vector_extension_version()
    """

    def __init__(
        self,
        database_url: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
        command_timeout: float | None = 60,
    ):
        """
        Args:
            database_url: Connection URL; DATABASE_URL from settings if omitted
            min_size: Connections opened eagerly (0 is allowed)
            max_size: Upper bound on pooled connections
            command_timeout: Seconds before a statement is abandoned, None for no limit
        """
        settings = get_settings()

        self._database_url = database_url or str(settings.database_url)
        self._min_size = settings.db_pool_min_size if min_size is None else min_size
        self._max_size = max_size or settings.db_pool_max_size
        self._command_timeout = command_timeout
        self._pool: asyncpg.Pool | None = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        """Open the pool. Connection errors from asyncpg propagate."""
        try:
            self._pool = await asyncpg.create_pool(
                self._database_url,
                min_size=self._min_size,
                max_size=self._max_size,
                command_timeout=self._command_timeout,
            )
        except Exception as e:
            logger.error(f"Could not open connection pool: {e}")
            raise

        logger.info(f"Connection pool open (size {self._min_size}..{self._max_size})")

    async def close(self) -> None:
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        await pool.close()
        logger.info("Connection pool closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a pooled connection; it goes back to the pool on exit."""
        async with self.pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Borrow a connection with an open transaction.

        Commits when the block exits normally, rolls back when it raises.
        """
        async with self.acquire() as conn:
            async with conn.transaction():
                yield conn

    async def execute(self, query: str, *args: Any) -> str:
        """Run one statement and return its command status (e.g. 'DELETE 3')."""
        async with self.acquire() as conn:
            return await conn.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def vector_extension_version(self) -> str | None:
        """Installed pgvector version, or None when the extension is absent."""
        return await self.fetchval(VECTOR_EXTENSION_QUERY)

    async def health_check(self) -> bool:
        """True when the server answers a trivial query."""
        try:
            return await self.fetchval("SELECT 1") == 1
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, RuntimeError) as e:
            logger.warning(f"Database health check failed: {e}")
            return False
