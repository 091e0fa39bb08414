"""
Pytest configuration for sqlshift.

Provides fixtures for:
- A sqlite3-backed PoolProvider so pool, executor and migration behaviour is
  exercised against a real DB-API driver without a server
- Tables seeded for migration tests
- Settings and DSN for the PostgreSQL integration tests
"""

from __future__ import annotations

import os
import sqlite3
from pathlib import Path
from typing import Generator

import psycopg
import pytest
from sqlite_support import SQLITE_ACQUIRE_TIMEOUT, SQLITE_POOL_MAX, SQLiteProvider

from sqlshift.config import Settings
from sqlshift.domain.models import ConnectionParameters
from sqlshift.execution.executor import SQLExecutor
from sqlshift.infrastructure.db_factory import build_dsn
from sqlshift.infrastructure.pool import DatabasePool


@pytest.fixture
def sqlite_path(tmp_path: Path) -> Path:
    return tmp_path / "sqlshift.db"


@pytest.fixture
def sqlite_provider(sqlite_path: Path) -> SQLiteProvider:
    return SQLiteProvider(sqlite_path)


@pytest.fixture
def sqlite_conn(sqlite_path: Path) -> Generator[sqlite3.Connection, None, None]:
    conn = sqlite3.connect(sqlite_path, check_same_thread=False)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def users_table(sqlite_conn: sqlite3.Connection) -> sqlite3.Connection:
    """`users (id INT, name TEXT)` holding three rows."""
    sqlite_conn.execute("CREATE TABLE users (id INT, name TEXT)")
    sqlite_conn.executemany(
        "INSERT INTO users (id, name) VALUES (?, ?)",
        [(1, "ada"), (2, "grace"), (3, "linus")],
    )
    sqlite_conn.commit()
    return sqlite_conn


@pytest.fixture
def db_pool(sqlite_provider: SQLiteProvider) -> Generator[DatabasePool, None, None]:
    pool = DatabasePool(
        sqlite_provider,
        max_size=SQLITE_POOL_MAX,
        min_idle=1,
        connection_timeout=SQLITE_ACQUIRE_TIMEOUT,
        probe_timeout=SQLITE_ACQUIRE_TIMEOUT,
    )
    try:
        yield pool
    finally:
        pool.shutdown()


@pytest.fixture
def executor(db_pool: DatabasePool) -> Generator[SQLExecutor, None, None]:
    sql_executor = SQLExecutor(db_pool)
    try:
        yield sql_executor
    finally:
        sql_executor.shutdown()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "postgres"),
        pool_max_size=4,
        probe_timeout=5.0,
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return build_dsn(ConnectionParameters.from_settings(test_settings))


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except Exception:
        return False
