"""
Domain package for sqlshift.

Exports the result, migration and connection models shared by the executor,
the migration engine and the pool layer.
"""

from sqlshift.domain.models import (
    ConnectionParameters,
    MigrationDescriptor,
    MigrationEntry,
    MigrationOutcome,
    MigrationStep,
    ResultRows,
    ResultStatus,
    SQLResult,
)

__all__ = [
    "ConnectionParameters",
    "MigrationDescriptor",
    "MigrationEntry",
    "MigrationOutcome",
    "MigrationStep",
    "ResultRows",
    "ResultStatus",
    "SQLResult",
]
