# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable infrastructure:
# - database.py: MySQL connection pool lifecycle and startup diagnostic
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.database import (
    ConnectionPool,
    ConnectionPoolError,
    PoolClosedError,
    PoolTimeoutError,
    describe_error,
)

__all__ = [
    "ConnectionPool",
    "ConnectionPoolError",
    "PoolClosedError",
    "PoolTimeoutError",
    "describe_error",
]
