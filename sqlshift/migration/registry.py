"""
Ordered collection of table migrations.

Descriptors are registered once and drained in registration order on every
`migrate()` call. A failing descriptor is logged and skipped; the remaining
descriptors still run.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional, Tuple

from pydantic import TypeAdapter

from sqlshift.domain.models import (
    MigrationDescriptor,
    MigrationEntry,
    MigrationOutcome,
    MigrationStep,
)
from sqlshift.exceptions import MigrationStepError
from sqlshift.migration.checkpoints import CheckpointStore
from sqlshift.migration.engine import PREFIX, MigrationEngine
from sqlshift.utils.logging import get_logger

log = get_logger(__name__)

_ENTRIES = TypeAdapter(List[MigrationEntry])


class MigrationRegistry:
    def __init__(
        self,
        placeholder: str = "%s",
        checkpoints: Optional[CheckpointStore] = None,
    ) -> None:
        self.placeholder = placeholder
        self.checkpoints = checkpoints
        self._descriptors: List[MigrationDescriptor] = []

    @property
    def descriptors(self) -> Tuple[MigrationDescriptor, ...]:
        return tuple(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def register(
        self, table: str, legacy_definition: str, target_definition: str
    ) -> MigrationDescriptor:
        """
        Append a migration of `table` from `legacy_definition` to `target_definition`.
        """
        descriptor = MigrationDescriptor(table, legacy_definition, target_definition)
        self._descriptors.append(descriptor)
        return descriptor

    def load_descriptors(self, path: Path | str) -> List[MigrationDescriptor]:
        """
        Register every entry of a JSON file shaped like
        ``[{"table": ..., "legacy": ..., "target": ...}, ...]``.
        """
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        entries = _ENTRIES.validate_python(raw)
        return [self.register(e.table, e.legacy, e.target) for e in entries]

    def migrate(self, connection: Any) -> List[MigrationOutcome]:
        """
        Run every registered descriptor against `connection`, in order.

        Returns one outcome per descriptor; failed descriptors carry the error
        message and the last step they completed.
        """
        if not self._descriptors:
            log.warning(PREFIX + "There is nothing to migrate!")
            return []

        outcomes: List[MigrationOutcome] = []
        for descriptor in self._descriptors:
            engine = MigrationEngine(
                descriptor, placeholder=self.placeholder, checkpoints=self.checkpoints
            )
            try:
                step = engine.run(connection)
            except MigrationStepError as exc:
                log.error(
                    PREFIX + "An error occurred while trying to migrate table %s",
                    descriptor.table,
                    exc_info=True,
                    extra={"table": descriptor.table, "step": exc.step.name},
                )
                outcomes.append(MigrationOutcome(descriptor.table, engine.step, str(exc)))
            else:
                outcomes.append(MigrationOutcome(descriptor.table, step))
        return outcomes


__all__ = ["MigrationRegistry"]
