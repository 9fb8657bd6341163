import aiosqlite
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, path: str):
        self.path = path

    def exists(self) -> bool:
        """True once the database file has been created on disk."""
        return self.path != ":memory:" and Path(self.path).exists()

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(self.path)
        await conn.execute("PRAGMA journal_mode=WAL;")
        try:
            yield conn
        finally:
            await conn.close()

    async def execute(self, query: str, params: tuple = ()) -> None:
        async with self.connect() as conn:
            await conn.execute(query, params)
            await conn.commit()

    async def fetchone(self, query: str, params: tuple = ()):
        async with self.connect() as conn:
            cursor = await conn.execute(query, params)
            return await cursor.fetchone()

    async def init_tables(self) -> None:
        """Initialize database tables for API usage tracking."""
        async with self.connect() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS api_usage (
                    provider TEXT PRIMARY KEY,
                    count INTEGER NOT NULL DEFAULT 0,
                    first_used_at INTEGER NOT NULL DEFAULT 0,
                    last_used_at INTEGER NOT NULL DEFAULT 0,
                    disabled INTEGER NOT NULL DEFAULT 0
                )
            """)
            await conn.commit()
            logger.info("Database tables initialized")

    async def get_usage(self, provider: str) -> Optional[Tuple[int, int, int, int]]:
        """Return (count, first_used_at, last_used_at, disabled) for a provider."""
        return await self.fetchone(
            "SELECT count, first_used_at, last_used_at, disabled FROM api_usage WHERE provider = ?",
            (provider,)
        )

    async def save_usage(
        self,
        provider: str,
        count: int,
        first_used_at: int,
        last_used_at: int,
        disabled: bool,
    ) -> None:
        await self.execute(
            """
            INSERT OR REPLACE INTO api_usage
            (provider, count, first_used_at, last_used_at, disabled)
            VALUES (?, ?, ?, ?, ?)
            """,
            (provider, count, first_used_at, last_used_at, int(disabled))
        )
