"""
Domain models for sqlshift.

Defines the result contract handed back by the executor, the cursor-like
query result, the migration descriptor/step/outcome types, and the
connection parameters consumed by pool providers.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field


class ResultStatus(str, enum.Enum):
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class SQLResult:
    """
    Outcome of one executor task.

    Distinguishes success with a value, success with nothing (no rows found,
    no rows affected) and failure with its cause.
    """

    status: ResultStatus
    operation: str
    value: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def ok(cls, operation: str, value: Any) -> "SQLResult":
        return cls(ResultStatus.OK, operation, value=value)

    @classmethod
    def empty(cls, operation: str) -> "SQLResult":
        return cls(ResultStatus.EMPTY, operation)

    @classmethod
    def failure(cls, operation: str, error: BaseException) -> "SQLResult":
        return cls(ResultStatus.FAILED, operation, error=error)

    @property
    def succeeded(self) -> bool:
        return self.status is not ResultStatus.FAILED

    @property
    def failed(self) -> bool:
        return self.status is ResultStatus.FAILED

    @property
    def is_empty(self) -> bool:
        return self.status is ResultStatus.EMPTY

    def unwrap(self) -> Any:
        """Return the value, re-raising the captured error for failed results."""
        if self.error is not None:
            raise self.error
        return self.value


class ResultRows:
    """
    Cursor-like view over the rows a query returned.

    Starts positioned at the first row. Rows are fetched from the driver
    before the pooled connection is handed back.
    """

    def __init__(self, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
        self.columns: Tuple[str, ...] = tuple(columns)
        self.rows: List[Tuple[Any, ...]] = [tuple(row) for row in rows]
        self._position = 0

    @property
    def current(self) -> Optional[Tuple[Any, ...]]:
        if self._position < len(self.rows):
            return self.rows[self._position]
        return None

    def column(self, name: str) -> Any:
        """Value of column `name` on the current row."""
        row = self.current
        if row is None:
            raise IndexError("cursor is past the last row")
        try:
            return row[self.columns.index(name)]
        except ValueError:
            raise KeyError(name) from None

    def fetchone(self) -> Optional[Tuple[Any, ...]]:
        row = self.current
        if row is not None:
            self._position += 1
        return row

    def fetchall(self) -> List[Tuple[Any, ...]]:
        remaining = self.rows[self._position :]
        self._position = len(self.rows)
        return remaining

    def __iter__(self) -> Iterator[Tuple[Any, ...]]:
        while True:
            row = self.fetchone()
            if row is None:
                return
            yield row

    def __len__(self) -> int:
        return len(self.rows)

    def __repr__(self) -> str:
        return f"ResultRows(columns={self.columns!r}, rows={len(self.rows)})"


class MigrationStep(enum.IntEnum):
    """Migration progress, in execution order."""

    IDLE = 0
    SHADOW_CREATE = 1
    SHADOW_COPY = 2
    DROP_ORIGINAL = 3
    RECREATE = 4
    REPLAY = 5
    DROP_SHADOW = 6
    DONE = 7


@dataclass(frozen=True)
class MigrationDescriptor:
    """
    One table rewrite: move `table` from `legacy_definition` to `target_definition`.

    Definitions are column-definition lists as they appear between the
    parentheses of CREATE TABLE.
    """

    table: str
    legacy_definition: str
    target_definition: str

    @property
    def shadow_table(self) -> str:
        return f"legacy_{self.table}"

    @property
    def is_noop(self) -> bool:
        return (
            self.legacy_definition == ""
            or self.legacy_definition == self.target_definition
        )


@dataclass(frozen=True)
class MigrationOutcome:
    table: str
    step: MigrationStep
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.step is MigrationStep.DONE


class ConnectionParameters(BaseModel):
    """
    Backend connection parameters handed to a pool provider.
    """

    host: str = Field("localhost", description="Database server host.")
    port: int = Field(0, description="Server port; 0 selects the backend default.")
    database: str = Field(..., description="Database name.")
    user: str = Field(..., description="Login role.")
    password: str = Field("", description="Login password.")
    options: Optional[str] = Field(None, description="Extra key=value&... options.")

    model_config = {
        "frozen": True,
    }

    @classmethod
    def from_settings(cls, settings: Any) -> "ConnectionParameters":
        return cls(
            host=settings.db_host,
            port=settings.db_port,
            database=settings.db_name,
            user=settings.db_user,
            password=settings.db_password,
            options=settings.db_options,
        )


class MigrationEntry(BaseModel):
    """One entry of a migration descriptor file."""

    table: str = Field(..., min_length=1)
    legacy: str = Field("", description="Current column definition.")
    target: str = Field(..., description="Desired column definition.")


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
