# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up environment variables before any imports
# - Fake database connections so no MySQL server is needed
# - Sample handler groups standing in for the external route modules
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("NODE_ENV", "production")
os.environ.setdefault("DB_HOST", "127.0.0.1")
os.environ.setdefault("DB_CONNECT_TIMEOUT", "1")
os.environ.setdefault("HANDLERS_PACKAGE", "tests_missing_handlers")

import asyncio
import itertools

import pymysql
import pytest
from fastapi import APIRouter

from app.config import Settings
from app.dependencies import ConnectionDep
from lib.database import ConnectionPool


# =============================================================================
# Fake Database Driver
# =============================================================================
# aiomysql's Pool is used for real; only the connect() it calls is replaced.

class FakeReader:
    """Stream state aiomysql checks before reusing an idle connection."""

    def __init__(self, conn):
        self._conn = conn
        self.eof_received = False

    def at_eof(self):
        return self._conn.closed

    def exception(self):
        return None


class FakeConnection:
    """Stands in for an aiomysql connection."""

    _ids = itertools.count(1)

    def __init__(self, last_usage: float = 0.0):
        self.id = next(self._ids)
        self.closed = False
        self.last_usage = last_usage
        self._reader = FakeReader(self)

    def close(self):
        self.closed = True

    async def ensure_closed(self):
        self.closed = True

    def get_transaction_status(self):
        return False


class FakeConnector:
    """Replacement for aiomysql's connect(); can be told to fail."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls = 0
        self.kwargs: dict = {}
        self.created: list[FakeConnection] = []

    async def __call__(self, **kwargs) -> FakeConnection:
        self.calls += 1
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        conn = FakeConnection(last_usage=asyncio.get_running_loop().time())
        self.created.append(conn)
        return conn


def mysql_down_error() -> pymysql.err.OperationalError:
    return pymysql.err.OperationalError(2003, "Can't connect to MySQL server on '127.0.0.1'")


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def make_settings(tmp_path):
    """Build Settings without reading a .env file."""

    def _make(**overrides) -> Settings:
        overrides.setdefault("NODE_ENV", "production")
        overrides.setdefault("UPLOADS_DIR", tmp_path / "uploads")
        return Settings(_env_file=None, **overrides)

    return _make


@pytest.fixture
def connector(monkeypatch):
    """Patch the driver so every pool in the test gets fake connections."""
    fake = FakeConnector()
    monkeypatch.setattr("aiomysql.pool.connect", fake)
    return fake


@pytest.fixture
def pool(connector):
    return ConnectionPool(limit=10, db="codevimarsh_test")


@pytest.fixture
def handler_calls():
    """Records which handler group endpoints actually ran."""
    return []


@pytest.fixture
def handler_groups(handler_calls):
    """Sample handler groups mounted the way the real route modules are."""
    auth = APIRouter()

    @auth.post("/login")
    async def login(payload: dict):
        handler_calls.append("auth.login")
        return {"group": "auth", "email": payload.get("email")}

    events = APIRouter()

    @events.get("")
    async def list_events(conn: ConnectionDep):
        handler_calls.append("events.list")
        return {"group": "events", "connection": conn.id}

    contact = APIRouter()

    @contact.post("/contact")
    async def send_message(payload: dict):
        handler_calls.append("contact.send")
        return {"group": "contact", "received": payload}

    @contact.get("/{page}")
    async def contact_page(page: str):
        handler_calls.append("contact.page")
        return {"group": "contact", "page": page}

    return {"auth": auth, "events": events, "contact": contact}
