"""Connection management for SQLite sinks."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite


class AsyncConnectionManager:
    """Manages async (aiosqlite) database connections.

    Handles schema initialization and connection lifecycle. For :memory:
    databases, maintains a persistent connection since SQLite in-memory
    databases are connection-scoped.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        self._db_path = db_path
        self._schema = schema
        self._initialized = False
        self._init_lock: asyncio.Lock | None = None
        self._persistent_conn: aiosqlite.Connection | None = None

    def _get_lock(self) -> asyncio.Lock:
        """Get or create the initialization lock (lazy to avoid event loop issues)."""
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    @property
    def _is_memory(self) -> bool:
        return self._db_path == ":memory:"

    async def _ensure_initialized(self) -> None:
        """Initialize database schema once."""
        if self._initialized:
            return
        async with self._get_lock():
            if self._initialized:
                return
            if self._is_memory:
                self._persistent_conn = await aiosqlite.connect(":memory:")
                await self._persistent_conn.executescript(self._schema)
            else:
                async with aiosqlite.connect(self._db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.executescript(self._schema)
            self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Context manager for database connections.

        Closes connections for file-based databases; the :memory:
        connection stays open until close().
        """
        await self._ensure_initialized()
        if self._is_memory:
            if self._persistent_conn is None:
                raise RuntimeError("Memory database connection not initialized")
            yield self._persistent_conn
            return
        db = await aiosqlite.connect(self._db_path)
        try:
            yield db
        finally:
            await db.close()

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        if self._persistent_conn is not None:
            await self._persistent_conn.close()
            self._persistent_conn = None
            self._initialized = False
