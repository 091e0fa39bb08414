"""
Exception hierarchy for sqlshift.

Driver exceptions never leak out of the library unwrapped; they are chained
(`raise ... from exc`) onto one of the classes below.
"""

from __future__ import annotations

import builtins
from typing import Any, Optional


class SQLError(Exception):
    """Base class for every error raised by sqlshift."""


class ConnectionError(SQLError, builtins.ConnectionError):  # noqa: A001
    """A pooled connection could not be obtained (exhausted, closed, timed out, failed probe)."""


class BindingError(SQLError):
    """A parameter value could not be converted for its binding category."""

    def __init__(self, index: int, kind: Any, value: Any, reason: str = "") -> None:
        self.index = index
        self.kind = kind
        self.value = value
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Cannot bind parameter {index} as {getattr(kind, 'name', kind)} "
            f"(value={value!r}){detail}"
        )


class StatementError(SQLError):
    """The database rejected or failed to execute a statement."""

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        self.sql = sql
        super().__init__(message)


class MigrationStepError(SQLError):
    """One step of a table migration failed; earlier steps stay applied."""

    def __init__(self, table: str, step: Any, reason: str = "") -> None:
        self.table = table
        self.step = step
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Migration of table '{table}' failed at step {getattr(step, 'name', step)}{detail}"
        )


__all__ = [
    "SQLError",
    "ConnectionError",
    "BindingError",
    "StatementError",
    "MigrationStepError",
]
