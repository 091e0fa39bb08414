"""
Persisted migration progress.

One row per table under migration records the last step that completed. The
engine writes the row in the same transaction as the step it describes, so
after a crash the row names exactly where to resume.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlshift.domain.models import MigrationStep
from sqlshift.utils.sql import execute

DEFAULT_CHECKPOINT_TABLE = "sqlshift_migration_checkpoints"


class CheckpointStore:
    def __init__(self, table_name: str = DEFAULT_CHECKPOINT_TABLE, placeholder: str = "%s") -> None:
        self.table_name = table_name
        self.placeholder = placeholder

    def ensure(self, connection: Any) -> None:
        execute(
            connection,
            f"CREATE TABLE IF NOT EXISTS {self.table_name} ("
            "table_name VARCHAR(255) PRIMARY KEY, "
            "step VARCHAR(32) NOT NULL, "
            "updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)",
        )
        connection.commit()

    def load(self, connection: Any, table: str) -> Optional[MigrationStep]:
        """Last completed step for `table`, or None when no migration is in flight."""
        rows = execute(
            connection,
            f"SELECT step FROM {self.table_name} WHERE table_name = {self.placeholder}",
            (table,),
        )
        if not rows:
            return None
        return MigrationStep[rows[0][0]]

    def save(self, connection: Any, table: str, step: MigrationStep) -> None:
        """Record `step` as completed. Does not commit."""
        p = self.placeholder
        execute(
            connection,
            f"INSERT INTO {self.table_name} (table_name, step, updated_at) "
            f"VALUES ({p}, {p}, CURRENT_TIMESTAMP) "
            "ON CONFLICT (table_name) DO UPDATE "
            "SET step = excluded.step, updated_at = excluded.updated_at",
            (table, step.name),
        )

    def clear(self, connection: Any, table: str) -> None:
        """Forget `table`'s progress. Does not commit."""
        execute(
            connection,
            f"DELETE FROM {self.table_name} WHERE table_name = {self.placeholder}",
            (table,),
        )


__all__ = ["CheckpointStore", "DEFAULT_CHECKPOINT_TABLE"]
