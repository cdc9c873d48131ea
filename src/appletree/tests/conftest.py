"""
Core pytest configuration for the whole suite.

Most tests run without a database: repositories get a scripted FakeSession
(see test_fixtures/repository_fixtures.py). Tests marked `postgres` need a
real PostgreSQL server, because the schema relies on text[] and tsvector, and
are skipped when none is configured.

Database URL resolution:
  1. TEST_DATABASE_URL environment variable (CI override)
  2. Settings.DATABASE_URL when TESTING=true and TEST_POSTGRES_DB is set
"""

import logging
import os
from typing import AsyncGenerator
from urllib.parse import urlparse

# Silence noisy third-party loggers before they are imported.
NOISY_LOGGERS = (
    "faker",
    "faker.factory",
    "sqlalchemy",
    "sqlalchemy.engine",
    "asyncio",
    "httpx",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from appletree.config import get_settings
from appletree.core.logging.builder import setup_logging
from appletree.database.base import Base
from appletree.models import School  # noqa: F401 – registers the table on Base.metadata

settings = get_settings()
logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Install the application's dictConfig once for the session."""
    setup_logging(settings)
    yield


def safe_log_db_url(db_url: str) -> str:
    """Drop credentials from a database URL before it is logged."""
    parsed = urlparse(db_url)
    return f"{parsed.scheme}://{parsed.hostname}:{parsed.port or ''}/{parsed.path.lstrip('/')}"


def get_test_database_url() -> str | None:
    if test_url := os.getenv("TEST_DATABASE_URL"):
        return test_url
    if settings.TESTING and settings.TEST_POSTGRES_DB:
        return settings.DATABASE_URL
    return None


TEST_DATABASE_URL = get_test_database_url()
if TEST_DATABASE_URL:
    logger.info(f"Using test DB: {safe_log_db_url(TEST_DATABASE_URL)}")


def pytest_collection_modifyitems(config, items):
    if TEST_DATABASE_URL:
        return
    skip_pg = pytest.mark.skip(reason="no PostgreSQL configured (set TEST_DATABASE_URL)")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_pg)


# ------------------------------------------------------------------------------------------------
# Database fixtures (PostgreSQL only)
# ------------------------------------------------------------------------------------------------

@pytest.fixture()
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Engine bound to the test database, with the schema created if missing.

    Function-scoped so each test's engine lives on that test's event loop.
    """
    if not TEST_DATABASE_URL:
        pytest.skip("no PostgreSQL configured (set TEST_DATABASE_URL)")

    engine = create_async_engine(TEST_DATABASE_URL, pool_pre_ping=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture()
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    Transaction-per-test using a SAVEPOINT.

    Everything the test writes, commits included, is rolled back on teardown.
    """
    async with async_engine.connect() as connection:
        await connection.begin()
        await connection.begin_nested()

        maker = async_sessionmaker(bind=connection, class_=AsyncSession, expire_on_commit=False)
        session: AsyncSession = maker()

        # After a commit ends the SAVEPOINT, open a new one so the outer transaction survives.
        def _restart_savepoint(sync_session, transaction):
            if transaction.nested and not getattr(transaction._parent, "nested", False):
                sync_session.begin_nested()

        event.listen(session.sync_session, "after_transaction_end", _restart_savepoint)

        try:
            yield session
        finally:
            event.remove(session.sync_session, "after_transaction_end", _restart_savepoint)
            await session.close()
            await connection.rollback()


# Register shared fixtures globally.
from .test_fixtures.repository_fixtures import (  # noqa: E402,F401
    fake_session,
    make_school,
    school_repository,
    pg_school_repository,
    insert_school,
)
