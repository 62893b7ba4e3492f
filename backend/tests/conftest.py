"""
Crudtastic: Test Configuration (conftest.py)
============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Unit tests drive handlers with AsyncMock/MagicMock collaborators;
       model and API tests run against a throwaway SQLite database
       (aiosqlite) created fresh for each test.

Fixture Hierarchy:
    Function-scoped:
    ├── mock_model / handler_factory: handler unit tests without a database
    ├── spy_transaction: records begin/commit/rollback
    ├── database: Database bound to tmp SQLite with the fixture tables
    ├── server: Server with resources mapped
    └── client: HTTPX AsyncClient over ASGITransport
"""

import os
from contextlib import asynccontextmanager

# Must run before any crudtastic module reads the environment
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ENVIRONMENT"] = "test"

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from crudtastic.config import Settings
from crudtastic.context import RequestContext
from crudtastic.database import Database
from crudtastic.responses import ResponseBuilder
from crudtastic.server import Server


FIXTURE_TABLES = [
    """
    CREATE TABLE books (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        author TEXT,
        pages INTEGER
    )
    """,
    """
    CREATE TABLE counters (
        id INTEGER PRIMARY KEY,
        a INTEGER,
        b INTEGER
    )
    """,
    # Non-integer primary keys
    "CREATE TABLE events (day DATE PRIMARY KEY, name TEXT)",
    "CREATE TABLE prices (code NUMERIC PRIMARY KEY, label TEXT)",
    # No primary key: must not be mounted
    "CREATE TABLE book_tags (book_id INTEGER, tag TEXT)",
    # Excluded by default settings
    "CREATE TABLE alembic_version (version_num VARCHAR(32) PRIMARY KEY)",
]

SEED_ROWS = [
    "INSERT INTO books (title, author, pages) VALUES ('Dune', 'Frank Herbert', 412)",
    "INSERT INTO books (title, author, pages) VALUES ('Emma', 'Jane Austen', 474)",
    "INSERT INTO counters (id, a, b) VALUES (1, 1, 2)",
    "INSERT INTO events (day, name) VALUES ('2020-01-01', 'New Year')",
    "INSERT INTO prices (code, label) VALUES (7, 'seven')",
]


# ══════════════════════════════════════════════════════════════════════════
# Handler Unit-Test Fixtures (no database)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_model():
    """
    A MagicMock standing in for TableModel.

    Usage:
        mock_model.fetch.side_effect = NotFoundError("books", "9")
    """
    model = MagicMock()
    model.name = "books"
    model.primary_key = "id"
    model.fetch_all = AsyncMock(return_value=[])
    model.fetch = AsyncMock()
    model.count_where = AsyncMock(return_value=0)
    model.count = AsyncMock(return_value=0)
    return model


@pytest.fixture
def handler_factory(mock_model):
    """Builds a handler variant with mock collaborators."""

    def make(handler_cls, **overrides):
        collaborators = {
            "context": RequestContext(request_id="test1234"),
            "responses": ResponseBuilder(),
            "model": mock_model,
            "log": MagicMock(),
            "url_for": lambda record: f"http://test/books/{record.id}",
        }
        collaborators.update(overrides)
        return handler_cls(**collaborators)

    return make


class SpyTransaction:
    """Transaction scope double that records what happened to it."""

    def __init__(self):
        self.events = []

    @asynccontextmanager
    async def scope(self):
        self.events.append("begin")
        try:
            yield self
        except Exception:
            self.events.append("rollback")
            raise
        self.events.append("commit")


@pytest.fixture
def spy_transaction():
    return SpyTransaction()


# ══════════════════════════════════════════════════════════════════════════
# Database-Backed Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'crudtastic_test.db'}"


@pytest_asyncio.fixture
async def database(database_url):
    """A Database with the fixture tables created and seeded."""
    db = Database(create_async_engine(database_url))
    async with db.engine.begin() as conn:
        for ddl in FIXTURE_TABLES:
            await conn.execute(text(ddl))
        for row in SEED_ROWS:
            await conn.execute(text(row))
    yield db
    await db.dispose()


@pytest.fixture
def test_settings(database_url):
    return Settings(
        database_url=database_url,
        environment="test",
        log_level="WARNING",
        log_body=False,
        stack_trace_500=True,
    )


@pytest_asyncio.fixture
async def server(test_settings, database):
    srv = Server(settings=test_settings, database=database)
    await srv.map_resources()
    return srv


@pytest_asyncio.fixture
async def client(server):
    """
    HTTPX AsyncClient talking to the app in-process.

    raise_app_exceptions=False: unexpected errors come back as the 500
    response the exception handler rendered instead of being re-raised.
    """
    transport = ASGITransport(app=server.app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
