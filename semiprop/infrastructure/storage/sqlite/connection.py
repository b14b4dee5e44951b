"""
Async SQLite connection pool with aiosqlite.

Provides connection management with proper async context handling.
A transaction opened with ``transaction()`` is bound to the current task
context; any ``acquire()`` or ``transaction()`` made inside it reuses the
same connection, so several stores can take part in one atomic unit.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from pathlib import Path

import aiosqlite

from semiprop.config import Settings, get_logger
from semiprop.core.interfaces.transaction import ITransactionManager

logger = get_logger(__name__)


@dataclass
class _ActiveTransaction:
    """Connection and deferred callbacks of an open transaction."""

    conn: aiosqlite.Connection
    on_commit: list[Callable[[], Awaitable[None]]] = field(default_factory=list)


class ConnectionPool(ITransactionManager):
    """
    Async SQLite connection pool.

    Manages a pool of connections with configurable size.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._pool: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._connections: list[aiosqlite.Connection] = []
        self._initialized = False
        self._lock = asyncio.Lock()
        self._background: set[asyncio.Task[None]] = set()
        self._active: ContextVar[_ActiveTransaction | None] = ContextVar(
            f"semiprop_tx_{id(self)}", default=None
        )

    async def initialize(self) -> None:
        """Initialize the connection pool."""
        async with self._lock:
            if self._initialized:
                return

            # Ensure database directory exists
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            for _ in range(self.pool_size):
                conn = await self._create_connection()
                self._connections.append(conn)
                await self._pool.put(conn)

            self._initialized = True
            logger.info(
                "connection_pool_initialized",
                db_path=str(self.db_path),
                pool_size=self.pool_size,
            )

    async def _create_connection(self) -> aiosqlite.Connection:
        """Create a new database connection with optimized settings."""
        # Autocommit mode: transactions are opened explicitly with BEGIN IMMEDIATE
        conn = await aiosqlite.connect(self.db_path, isolation_level=None)

        # Enable WAL mode for better concurrency
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")

        # Enable foreign keys
        await conn.execute("PRAGMA foreign_keys=ON")

        # Row factory for dict-like access
        conn.row_factory = aiosqlite.Row

        return conn

    @property
    def in_transaction(self) -> bool:
        return self._active.get() is not None

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection from the pool.

        Inside an open transaction the transaction's connection is returned.

        Usage:
            async with pool.acquire() as conn:
                await conn.execute(...)
        """
        active = self._active.get()
        if active is not None:
            yield active.conn
            return

        if not self._initialized:
            await self.initialize()

        conn = await self._pool.get()
        try:
            yield conn
        finally:
            await self._pool.put(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection with transaction context.

        Automatically commits on success, rolls back on exception.
        Nested calls join the outer transaction.
        """
        active = self._active.get()
        if active is not None:
            yield active.conn
            return

        async with self.acquire() as conn:
            await conn.execute("BEGIN IMMEDIATE")
            state = _ActiveTransaction(conn=conn)
            token = self._active.set(state)
            try:
                yield conn
            except BaseException:
                await conn.execute("ROLLBACK")
                logger.debug("transaction_rolled_back")
                raise
            else:
                await conn.execute("COMMIT")
            finally:
                self._active.reset(token)

        for callback in state.on_commit:
            try:
                await callback()
            except Exception as e:
                logger.warning("after_commit_callback_failed", error=str(e))

    def after_commit(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Defer callback until the open transaction commits, or run it soon."""
        active = self._active.get()
        if active is not None:
            active.on_commit.append(callback)
            return
        task = asyncio.get_running_loop().create_task(callback())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def close(self) -> None:
        """Close all connections in the pool."""
        async with self._lock:
            for conn in self._connections:
                await conn.close()
            self._connections.clear()
            self._pool = asyncio.Queue(maxsize=self.pool_size)
            self._initialized = False
            logger.info("connection_pool_closed")


async def create_pool(settings: Settings) -> ConnectionPool:
    """Build and initialize a pool from settings."""
    pool = ConnectionPool(
        db_path=settings.storage.db_path,
        pool_size=settings.storage.pool_size,
        busy_timeout=settings.storage.busy_timeout,
    )
    await pool.initialize()
    return pool
