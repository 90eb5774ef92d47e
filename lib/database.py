# =============================================================================
# lib/database.py - MySQL Connection Pool
# =============================================================================
# This module owns the gateway's database connections. It wraps an
# aiomysql pool that:
# - Opens connections lazily, up to a fixed limit (10 by default)
# - Hands each connection to exactly one caller at a time
# - Makes callers beyond the limit wait (cooperatively) for a release
# - Recycles connections that sat idle past DB_POOL_RECYCLE seconds
#
# The wrapper adds the application lifecycle on top: the aiomysql pool is
# created on open() inside the running event loop and torn down on close(),
# so one wrapper can be opened again after a shutdown. It also runs the
# one-shot startup diagnostic, which never crashes the process.
#
# Usage:
#   from lib.database import ConnectionPool
#   pool = ConnectionPool.from_settings(settings)
#   await pool.open()
#
#   async with pool.connection() as conn:
#       async with conn.cursor() as cur:
#           await cur.execute("SELECT 1")
#
#   await pool.close()
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import aiomysql
import pymysql

from app.config import Settings

# Set up logging for this module
logger = logging.getLogger(__name__)

DEFAULT_CONNECTION_LIMIT = 10
DEFAULT_POOL_RECYCLE = 3600


class ConnectionPoolError(Exception):
    """
    Error during connection pool operations.

    Provides actionable error messages:
    "Errors should tell HOW to fix, not just WHAT failed."
    """

    def __init__(
        self,
        message: str,
        code: str = "POOL_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class PoolClosedError(ConnectionPoolError):
    """Raised when acquiring from a pool that is not open."""

    def __init__(self):
        super().__init__(
            message="Connection pool is not open",
            code="POOL_CLOSED",
            suggestion="The server is starting up or shutting down; retry against a running instance",
        )


class PoolTimeoutError(ConnectionPoolError):
    """Raised when no connection became free within the acquire timeout."""

    def __init__(self, timeout: float, limit: int):
        super().__init__(
            message=f"No database connection became available within {timeout}s",
            code="POOL_TIMEOUT",
            suggestion=f"All {limit} connections are busy; raise DB_CONNECTION_LIMIT or DB_ACQUIRE_TIMEOUT",
            details={"timeout": timeout, "limit": limit},
        )


def describe_error(exc: BaseException) -> tuple[str, Any]:
    """
    Split a driver error into (message, code) for logging.

    MySQL errors carry (errno, message) in their args; socket errors carry errno.
    """
    if isinstance(exc, pymysql.err.MySQLError) and exc.args:
        code = exc.args[0]
        message = exc.args[1] if len(exc.args) > 1 else str(exc)
        return str(message), code
    code = getattr(exc, "errno", None) or getattr(exc, "code", None)
    return str(exc) or type(exc).__name__, code or type(exc).__name__


class ConnectionPool:
    """
    Bounded pool of reusable MySQL connections.

    Limits, waiting and dropping dead connections are aiomysql's; this class
    owns when the pool exists and how its failures are reported.

    Example:
        pool = ConnectionPool(limit=10, host="localhost", db="codevimarsh")
        await pool.open()
        conn = await pool.acquire()
        try:
            ...
        finally:
            await pool.release(conn)
    """

    def __init__(
        self,
        limit: int = DEFAULT_CONNECTION_LIMIT,
        acquire_timeout: float | None = None,
        recycle: int = DEFAULT_POOL_RECYCLE,
        **connect_kwargs: Any,
    ):
        if limit < 1:
            raise ValueError("Connection limit must be at least 1")

        self._limit = limit
        self._acquire_timeout = acquire_timeout
        self._recycle = recycle
        self._connect_kwargs = connect_kwargs
        self._pool: aiomysql.Pool | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConnectionPool":
        """Create a pool targeting the MySQL server described by settings."""
        return cls(
            limit=settings.DB_CONNECTION_LIMIT,
            acquire_timeout=settings.DB_ACQUIRE_TIMEOUT,
            recycle=settings.DB_POOL_RECYCLE,
            host=settings.DB_HOST,
            port=settings.DB_PORT,
            user=settings.DB_USER,
            password=settings.DB_PASSWORD,
            db=settings.DB_NAME,
            connect_timeout=settings.DB_CONNECT_TIMEOUT,
            charset="utf8mb4",
            autocommit=True,
        )

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def database(self) -> str | None:
        return self._connect_kwargs.get("db")

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    @property
    def size(self) -> int:
        """Number of live connections (idle, checked out or being opened)."""
        return self._pool.size if self._pool is not None else 0

    @property
    def free_count(self) -> int:
        return self._pool.freesize if self._pool is not None else 0

    @property
    def in_use_count(self) -> int:
        return self.size - self.free_count

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def open(self) -> None:
        """
        Create the underlying aiomysql pool in the running event loop.

        No connection is opened here (minsize=0). Calling open() on an open
        pool does nothing.
        """
        if self._pool is not None:
            return
        self._pool = await aiomysql.create_pool(
            minsize=0,
            maxsize=self._limit,
            pool_recycle=self._recycle,
            **self._connect_kwargs,
        )
        logger.debug(f"Database connection pool opened (limit {self._limit})")

    async def close(self) -> None:
        """
        Shut the pool down. Idempotent.

        New acquires fail with PoolClosedError at once; idle connections are
        closed, and checked-out ones are awaited and closed as they come back.
        """
        pool = self._pool
        if pool is None:
            return
        pool.close()
        await pool.wait_closed()
        if self._pool is pool:
            self._pool = None
            logger.info("Database connection pool closed")

    # -------------------------------------------------------------------------
    # Acquire / Release
    # -------------------------------------------------------------------------

    async def acquire(self, timeout: float | None = None) -> Any:
        """
        Check out a connection, waiting for one if the pool is exhausted.

        Args:
            timeout: Max seconds to wait. Defaults to the pool's acquire
                timeout; None waits indefinitely.

        Returns:
            A driver connection owned by the caller until release()

        Raises:
            PoolClosedError: If the pool is not open or is shutting down
            PoolTimeoutError: If the wait exceeds the timeout
            Exception: Whatever the driver raises when a new connection fails
        """
        pool = self._pool
        if pool is None:
            raise PoolClosedError()
        if timeout is None:
            timeout = self._acquire_timeout

        try:
            if timeout is None:
                return await pool.acquire()
            return await asyncio.wait_for(pool.acquire(), timeout)
        except asyncio.TimeoutError:
            raise PoolTimeoutError(timeout, self._limit) from None
        except RuntimeError as e:
            # aiomysql refuses acquires once close() has started
            raise PoolClosedError() from e

    async def release(self, conn: Any) -> None:
        """Return a checked-out connection; closed ones are dropped, not reused."""
        pool = self._pool
        if pool is None:
            conn.close()
            return
        await pool.release(conn)

    @asynccontextmanager
    async def connection(self, timeout: float | None = None) -> AsyncIterator[Any]:
        """Acquire a connection for the duration of an `async with` block."""
        conn = await self.acquire(timeout=timeout)
        try:
            yield conn
        finally:
            await self.release(conn)

    # -------------------------------------------------------------------------
    # Diagnostic
    # -------------------------------------------------------------------------

    async def check_connection(self) -> bool:
        """
        Run the startup diagnostic: open (or reuse) one connection and release it.

        Never raises; the gateway must stay up for routes that don't need
        the database, notably the health check.

        Returns:
            True if a connection could be established
        """
        try:
            await self.open()
            async with self.connection():
                pass
        except Exception as e:
            message, code = describe_error(e)
            logger.error(f"MySQL connection error: {message}")
            logger.error(f"Error code: {code}")
            logger.error(
                "Please check: "
                "1. MySQL service is running; "
                f"2. Database name is correct ({self.database}); "
                "3. Username and password are correct; "
                "4. Database and tables are created"
            )
            return False

        logger.info("MySQL connected successfully")
        logger.info(f"Database: {self.database}")
        return True
