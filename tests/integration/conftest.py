"""
Shared fixtures for integration tests.

Requires PostgreSQL reachable at DATABASE_URL. Tests are
skipped when the configured database cannot be reached.
"""

from collections.abc import Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresUserDirectory, run_migrations
from src.config.settings import get_settings


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if "tests/integration/" in item.nodeid and "test_openapi" not in item.nodeid:
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests, migrating the schema once."""
    settings = get_settings()
    try:
        psycopg.connect(settings.database_url, connect_timeout=2).close()
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def directory(pool: ConnectionPool) -> PostgresUserDirectory:
    """Create directory instance for each test."""
    return PostgresUserDirectory(pool)


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean account tables before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM accounts")
        conn.commit()
    yield
