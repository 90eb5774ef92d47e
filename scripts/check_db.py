#!/usr/bin/env python3
# =============================================================================
# scripts/check_db.py - Database Connectivity Check
# =============================================================================
# Runs the same diagnostic the API runs at startup: opens one pooled MySQL
# connection with the DB_* settings and reports the outcome.
#
# Usage:
#   python scripts/check_db.py
#
# Exit code is 0 when the database is reachable, 1 otherwise.
# =============================================================================

import asyncio
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from app.config import Settings
from lib.database import ConnectionPool


async def check(settings: Settings) -> bool:
    """Run the pool diagnostic and close the pool afterwards."""
    pool = ConnectionPool.from_settings(settings)
    try:
        return await pool.check_connection()
    finally:
        await pool.close()


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    settings = Settings()
    print("=" * 60)
    print(f"Checking MySQL at {settings.DB_HOST}:{settings.DB_PORT} (database: {settings.DB_NAME})")
    print("=" * 60)

    ok = asyncio.run(check(settings))
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
