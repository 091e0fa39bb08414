"""
Infrastructure package for sqlshift.

Centralizes database connectivity concerns (pool providers, the health-checked
pool wrapper). Keep this layer focused on I/O and resource management,
decoupled from execution and migration logic.
"""

from sqlshift.infrastructure.db_factory import (
    Pool,
    PoolProvider,
    PostgresPoolProvider,
    build_dsn,
)
from sqlshift.infrastructure.pool import DatabasePool

__all__ = [
    "DatabasePool",
    "Pool",
    "PoolProvider",
    "PostgresPoolProvider",
    "build_dsn",
]
