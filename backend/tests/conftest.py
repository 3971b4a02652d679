"""
Citizen Notify — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_store:       AsyncMock DocumentStore (no database needed)
    ├── result_iterator:  builds the async iterator a mocked query returns
    ├── test_settings:    Settings pointing at a temporary SQLite file
    └── sqlite_store:     real SqlDocumentStore over that file, schema created
"""

import os
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Override settings for testing BEFORE any package imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["STARTUP_RETRY_MAX_ATTEMPTS"] = "1"

from citizen_notify.config import Settings  # noqa: E402
from citizen_notify.database import (  # noqa: E402
    create_engine,
    create_session_factory,
    dispose_engine,
    init_schema,
)
from citizen_notify.store.sql import SqlDocumentStore  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Store doubles
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def result_iterator():
    """
    Returns a factory for the async iterator a mocked `query_documents`
    hands back.

    Usage:
        mock_store.query_documents.side_effect = lambda *a, **k: result_iterator([Success(doc)])
    """

    def build(items):
        async def iterate():
            for item in items:
                yield item

        return iterate()

    return build


@pytest.fixture
def mock_store():
    """
    Provides a mock DocumentStore.

    create_document / read_document are AsyncMocks; query_documents is a plain
    MagicMock because the real one is an async generator, not a coroutine.
    """
    store = AsyncMock()
    store.create_document = AsyncMock()
    store.read_document = AsyncMock()
    store.query_documents = MagicMock()
    return store


# ══════════════════════════════════════════════════════════════════════════
# Real store over SQLite
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """A file database per test; :memory: would give each connection its own DB."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'documents.db'}",
        store_timeout_seconds=10.0,
        query_page_size=2,
        startup_retry_max_attempts=1,
    )


@pytest_asyncio.fixture
async def sqlite_store(test_settings) -> AsyncGenerator[SqlDocumentStore, None]:
    """
    SqlDocumentStore on a fresh schema.

    page_size is 2 so that multi-page streaming is exercised by small tests.
    """
    engine = create_engine(test_settings)
    await init_schema(engine, test_settings)
    yield SqlDocumentStore(
        create_session_factory(engine),
        database_name="testdb",
        page_size=test_settings.query_page_size,
    )
    await dispose_engine(engine)
