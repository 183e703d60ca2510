"""
Core pytest configuration for the entire test suite.

This module provides only the database setup and logging installation needed
across all tests (query, repositories, API, logging).

Domain-specific fixtures (repositories, sample rows) are located in:
- tests/test_fixtures/repository_fixtures.py
- tests/test_fixtures/models.py (test-only models)
"""

# -------------------------------
# Standard library imports
# -------------------------------
import os
import logging
from urllib.parse import urlparse
from typing import AsyncGenerator

# -------------------------------
# Early logging tuning (IMPORTANT)
# -------------------------------
# Set the level for noisy third-party loggers at import time, before importing modules
# that might initialize them.
NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
    "httpx",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

# -------------------------------
# Third-party / project imports
# -------------------------------
import pytest
from pytest import FixtureRequest
from sqlalchemy.pool import StaticPool
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
    AsyncEngine,
)

from common_repository.config.settings import Settings
from common_repository.core.logging.builder import setup_logging
from common_repository.database.base import Base
from common_repository.database.session import enable_sqlite_savepoints
from common_repository.tests.test_fixtures import models  # noqa: F401 – import to register models with Base.metadata

logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging(request: FixtureRequest):
    """
    Install application logging for the entire test session.

    dictConfig replaces root handlers, so pytest's capture handler is re-attached
    afterwards for tests that assert on caplog.records.
    """
    setup_logging(Settings(ENV="testing", LOG_FORMAT="text", LOG_LEVEL="DEBUG", LOG_TO_STDOUT=True))

    caplog_plugin = request.config.pluginmanager.getplugin("logging-plugin")
    for handler_name in ("caplog_handler", "report_handler"):
        handler = getattr(caplog_plugin, handler_name, None)
        if handler is not None:
            logging.getLogger().addHandler(handler)

    yield


# ------------------------------------------------------------------------------------------------
# Determining the Test Database URL
# ------------------------------------------------------------------------------------------------


def safe_log_db_url(db_url: str) -> str:
    """
    Return the database URL without credentials, for logging.
    """
    parsed = urlparse(db_url)
    return f"{parsed.scheme}://{parsed.hostname or ''}:{parsed.port or ''}/{parsed.path.lstrip('/')}"


def get_test_database_url() -> str:
    """
    Determine the test database URL.

    1. `TEST_DATABASE_URL` environment variable (CI/CD override)
    2. in-memory SQLite, fresh for every test
    """
    if test_url := os.getenv("TEST_DATABASE_URL"):
        return test_url
    return "sqlite+aiosqlite://"


TEST_DATABASE_URL = get_test_database_url()
logger.info(f"Using test DB: {safe_log_db_url(TEST_DATABASE_URL)}")


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------


@pytest.fixture()
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    One engine (and schema) per test so committed rows never leak between tests.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        # StaticPool: every connection shares the one in-memory database
        engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        enable_sqlite_savepoints(engine)
    else:
        engine = create_async_engine(TEST_DATABASE_URL, pool_pre_ping=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture()
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    maker = async_sessionmaker(bind=async_engine, class_=AsyncSession, expire_on_commit=False)

    async with maker() as session:
        yield session
        await session.rollback()


# Repository test fixtures
from common_repository.tests.test_fixtures.repository_fixtures import (  # noqa: E402,F401
    base_repo,
    city_repo,
    resident_repo,
    sample_user_data,
    create_user,
    created_user,
    multiple_users,
)
