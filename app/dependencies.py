# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# Handler groups inject these into their route handlers using Depends().
#
# Usage:
#   from app.dependencies import ConnectionDep
#
#   @router.get("/")
#   async def list_events(conn: ConnectionDep):
#       async with conn.cursor() as cur:
#           ...
# =============================================================================

import asyncio
import logging
from typing import Annotated, Any, AsyncIterator

import pymysql
from fastapi import Depends, Request

from app.exceptions import DatabaseUnavailableError
from lib.database import ConnectionPool, ConnectionPoolError, describe_error

logger = logging.getLogger(__name__)


def get_db_pool(request: Request) -> ConnectionPool:
    """
    Get the application's connection pool.

    The pool is created by create_app(), stored on app.state and opened
    by the application lifespan.
    """
    return request.app.state.db_pool


async def get_db_connection(
    pool: ConnectionPool = Depends(get_db_pool),
) -> AsyncIterator[Any]:
    """
    Check out a pooled connection for the duration of a request.

    Raises:
        DatabaseUnavailableError: If the pool cannot provide a connection
    """
    try:
        conn = await pool.acquire()
    except (ConnectionPoolError, pymysql.err.MySQLError, OSError, asyncio.TimeoutError) as e:
        message, code = describe_error(e)
        logger.error(f"Could not acquire database connection: {message} (code: {code})")
        raise DatabaseUnavailableError(message) from e

    try:
        yield conn
    finally:
        await pool.release(conn)


# Type aliases for dependency injection
DatabaseDep = Annotated[ConnectionPool, Depends(get_db_pool)]
ConnectionDep = Annotated[Any, Depends(get_db_connection)]
