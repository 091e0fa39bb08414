"""
Migration package for sqlshift: the per-table engine, its checkpoint store,
and the registry that drives them in order.
"""

from sqlshift.migration.checkpoints import DEFAULT_CHECKPOINT_TABLE, CheckpointStore
from sqlshift.migration.engine import MigrationEngine
from sqlshift.migration.registry import MigrationRegistry

__all__ = [
    "CheckpointStore",
    "DEFAULT_CHECKPOINT_TABLE",
    "MigrationEngine",
    "MigrationRegistry",
]
