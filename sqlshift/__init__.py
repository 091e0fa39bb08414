"""
sqlshift - pooled asynchronous SQL execution and online table migrations.

This package provides:

- A health-checked connection pool wrapper with scoped connection leases
- Typed positional parameter binding with a fixed category priority
- An executor that runs queries and updates on a bounded worker pool and
  resolves every task to an explicit success/empty/failure result
- A legacy-swap migration engine with checkpointed, resumable steps, and a
  registry that drives migrations in order
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from sqlshift.config import Settings, get_settings
from sqlshift.database import Database
from sqlshift.domain.models import (
    ConnectionParameters,
    MigrationDescriptor,
    MigrationOutcome,
    MigrationStep,
    ResultRows,
    ResultStatus,
    SQLResult,
)
from sqlshift.exceptions import (
    BindingError,
    ConnectionError,
    MigrationStepError,
    SQLError,
    StatementError,
)
from sqlshift.execution.binder import Param, ParamKind
from sqlshift.execution.executor import SQLExecutor
from sqlshift.infrastructure.db_factory import PoolProvider, PostgresPoolProvider
from sqlshift.infrastructure.pool import DatabasePool
from sqlshift.migration.checkpoints import CheckpointStore
from sqlshift.migration.engine import MigrationEngine
from sqlshift.migration.registry import MigrationRegistry
from sqlshift.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Facade
    "Database",
    # Pool
    "DatabasePool",
    "PoolProvider",
    "PostgresPoolProvider",
    "ConnectionParameters",
    # Execution
    "SQLExecutor",
    "Param",
    "ParamKind",
    "SQLResult",
    "ResultStatus",
    "ResultRows",
    # Migration
    "MigrationRegistry",
    "MigrationEngine",
    "MigrationDescriptor",
    "MigrationOutcome",
    "MigrationStep",
    "CheckpointStore",
    # Errors
    "SQLError",
    "ConnectionError",
    "BindingError",
    "StatementError",
    "MigrationStepError",
    # Logging
    "configure_logging",
    "get_logger",
]
