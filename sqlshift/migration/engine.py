"""
Legacy-swap migration of a single table.

The table's rows are parked in a shadow table (`legacy_<table>`) built from
the legacy definition, the table is dropped and recreated from the target
definition, and the parked rows are replayed into it before the shadow is
dropped. Each step commits on its own; a failed step is rolled back and
reported as MigrationStepError, leaving earlier steps applied.

Rows move by ordinal position: the shadow is filled positionally from the
live table, and value i of each shadow row is replayed into the column named
at position i of the shadow table. A legacy definition whose column order
differs from the live table puts values in the wrong columns.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from sqlshift.domain.models import MigrationDescriptor, MigrationStep
from sqlshift.exceptions import MigrationStepError
from sqlshift.migration.checkpoints import CheckpointStore
from sqlshift.utils.logging import get_logger
from sqlshift.utils.sql import execute

log = get_logger(__name__)

PREFIX = "[Migration] "

_STEP_MESSAGES: Dict[MigrationStep, str] = {
    MigrationStep.SHADOW_CREATE: "Creating legacy table",
    MigrationStep.SHADOW_COPY: "Inserting rows into legacy table",
    MigrationStep.DROP_ORIGINAL: "Dropping old table",
    MigrationStep.RECREATE: "Creating new table",
    MigrationStep.REPLAY: "Migrating rows",
    MigrationStep.DROP_SHADOW: "Dropping legacy table",
}


class MigrationEngine:
    """
    Drives one MigrationDescriptor through the migration steps.

    Parameters
    ----------
    descriptor : MigrationDescriptor
        The table and its legacy/target definitions.
    placeholder : str
        The driver's positional parameter marker, used by the replay insert.
    checkpoints : CheckpointStore | None
        When given, progress is recorded after every step and a later run
        resumes after the last completed step. Without it every run starts
        from the first step.
    """

    def __init__(
        self,
        descriptor: MigrationDescriptor,
        placeholder: str = "%s",
        checkpoints: Optional[CheckpointStore] = None,
    ) -> None:
        self.descriptor = descriptor
        self.placeholder = placeholder
        self.checkpoints = checkpoints
        self.step = MigrationStep.IDLE
        self._actions: Dict[MigrationStep, Callable[[Any], None]] = {
            MigrationStep.SHADOW_CREATE: self._shadow_create,
            MigrationStep.SHADOW_COPY: self._shadow_copy,
            MigrationStep.DROP_ORIGINAL: self._drop_original,
            MigrationStep.RECREATE: self._recreate,
            MigrationStep.REPLAY: self._replay,
            MigrationStep.DROP_SHADOW: self._drop_shadow,
        }

    @property
    def table(self) -> str:
        return self.descriptor.table

    def run(self, connection: Any) -> MigrationStep:
        """
        Execute the remaining steps on `connection` and return the final step.

        Raises
        ------
        MigrationStepError
            If a step fails. `self.step` then holds the last completed step.
        """
        extra = {"table": self.table}
        if self.descriptor.is_noop:
            log.info(PREFIX + "There are no changes", extra=extra)
            self.step = MigrationStep.DONE
            return self.step

        self.step = self._resume_point(connection)
        if self.step is not MigrationStep.IDLE:
            log.warning(
                PREFIX + "Resuming interrupted migration after %s",
                self.step.name,
                extra={**extra, "step": self.step.name},
            )

        for step in MigrationStep:
            if step <= self.step or step is MigrationStep.DONE:
                continue
            self._apply(connection, step)

        self.step = MigrationStep.DONE
        log.info(PREFIX + "Migration succeeded", extra=extra)
        return self.step

    def _resume_point(self, connection: Any) -> MigrationStep:
        if self.checkpoints is None:
            return MigrationStep.IDLE
        try:
            self.checkpoints.ensure(connection)
            return self.checkpoints.load(connection, self.table) or MigrationStep.IDLE
        except Exception as exc:  # noqa: BLE001 - driver errors become step errors
            self._rollback(connection)
            raise MigrationStepError(self.table, MigrationStep.IDLE, str(exc)) from exc

    def _apply(self, connection: Any, step: MigrationStep) -> None:
        log.info(PREFIX + _STEP_MESSAGES[step], extra={"table": self.table, "step": step.name})
        try:
            self._actions[step](connection)
            if self.checkpoints is not None:
                if step is MigrationStep.DROP_SHADOW:
                    self.checkpoints.clear(connection, self.table)
                else:
                    self.checkpoints.save(connection, self.table, step)
            connection.commit()
        except Exception as exc:  # noqa: BLE001 - driver errors become step errors
            self._rollback(connection)
            raise MigrationStepError(self.table, step, str(exc)) from exc
        self.step = step

    def _rollback(self, connection: Any) -> None:
        try:
            connection.rollback()
        except Exception:  # noqa: BLE001 - report the step failure, not the rollback
            log.warning(PREFIX + "Rollback failed", exc_info=True, extra={"table": self.table})

    def _shadow_create(self, connection: Any) -> None:
        execute(
            connection,
            f"CREATE TABLE IF NOT EXISTS {self.descriptor.shadow_table} "
            f"({self.descriptor.legacy_definition})",
        )

    def _shadow_copy(self, connection: Any) -> None:
        execute(
            connection,
            f"INSERT INTO {self.descriptor.shadow_table} SELECT * FROM {self.table}",
        )

    def _drop_original(self, connection: Any) -> None:
        execute(connection, f"DROP TABLE {self.table}")

    def _recreate(self, connection: Any) -> None:
        execute(
            connection,
            f"CREATE TABLE IF NOT EXISTS {self.table} ({self.descriptor.target_definition})",
        )

    def _replay(self, connection: Any) -> None:
        cursor = connection.cursor()
        try:
            cursor.execute(f"SELECT * FROM {self.descriptor.shadow_table}")
            columns = [column[0] for column in cursor.description]
            rows = cursor.fetchall()
        finally:
            cursor.close()
        if not rows:
            return

        markers = ", ".join([self.placeholder] * len(columns))
        insert = f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({markers})"
        cursor = connection.cursor()
        try:
            cursor.executemany(insert, [tuple(row) for row in rows])
        finally:
            cursor.close()
        log.debug(
            PREFIX + "Replayed %d rows",
            len(rows),
            extra={"table": self.table, "rows": len(rows)},
        )

    def _drop_shadow(self, connection: Any) -> None:
        execute(connection, f"DROP TABLE {self.descriptor.shadow_table}")


__all__ = ["MigrationEngine", "PREFIX"]
