"""
Database facade tying the pool, the executor and the migration registry together.

Usage:
    from sqlshift import Database

    with Database.connect() as db:
        db.create_migration("users", "id INT, name TEXT", "id INT, name TEXT, age INT DEFAULT 0")
        db.migrate()
        result = db.query("SELECT name FROM users WHERE id = %s", 7).result()
        if result.succeeded and not result.is_empty:
            print(result.value.column("name"))
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import Any, List, Optional

from sqlshift.config import Settings, get_settings
from sqlshift.domain.models import MigrationDescriptor, MigrationOutcome, SQLResult
from sqlshift.execution.executor import SQLExecutor
from sqlshift.infrastructure.db_factory import PoolProvider
from sqlshift.infrastructure.pool import DatabasePool
from sqlshift.migration.checkpoints import CheckpointStore
from sqlshift.migration.registry import MigrationRegistry


class Database:
    def __init__(
        self,
        pool: DatabasePool,
        executor: Optional[SQLExecutor] = None,
        registry: Optional[MigrationRegistry] = None,
    ) -> None:
        self.pool = pool
        self.executor = executor if executor is not None else SQLExecutor(pool)
        if registry is None:
            registry = MigrationRegistry(placeholder=pool.placeholder)
        self.registry = registry

    @classmethod
    def connect(
        cls,
        settings: Optional[Settings] = None,
        provider: Optional[PoolProvider] = None,
    ) -> "Database":
        """
        Build the pool (running its startup probe), an executor sized to it,
        and a migration registry configured from settings.
        """
        settings = settings or get_settings()
        pool = DatabasePool.from_settings(settings, provider=provider)
        checkpoints = None
        if settings.migration_checkpoints:
            checkpoints = CheckpointStore(settings.checkpoint_table, placeholder=pool.placeholder)
        registry = MigrationRegistry(placeholder=pool.placeholder, checkpoints=checkpoints)
        return cls(pool, registry=registry)

    def query(self, sql: str, *params: Any) -> "Future[SQLResult]":
        return self.executor.query(sql, *params)

    def update(self, sql: str, *params: Any) -> "Future[SQLResult]":
        return self.executor.update(sql, *params)

    def bulk_update(self, sql: str, *params: Any) -> "Future[SQLResult]":
        return self.executor.bulk_update(sql, *params)

    def create_migration(
        self, table: str, legacy_definition: str, target_definition: str
    ) -> MigrationDescriptor:
        return self.registry.register(table, legacy_definition, target_definition)

    def migrate(self) -> List[MigrationOutcome]:
        """
        Run all registered migrations on one pooled connection.

        Raises
        ------
        ConnectionError
            If no connection could be acquired.
        """
        with self.pool.acquire() as conn:
            return self.registry.migrate(conn)

    def close(self) -> None:
        self.executor.shutdown(wait=True)
        self.pool.shutdown()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["Database"]
