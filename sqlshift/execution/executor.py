"""
Asynchronous SQL execution on a bounded worker pool.

Each call returns a Future immediately. The work (acquire a pooled
connection, prepare, bind, execute, release) runs on a fixed-size thread
pool sized to the connection pool, and submission blocks while every worker
slot is taken. Futures never raise: they resolve to an SQLResult that is OK,
EMPTY, or FAILED with the cause, and failures are logged.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, Sequence

from sqlshift.domain.models import ResultRows, SQLResult
from sqlshift.exceptions import SQLError, StatementError
from sqlshift.execution.binder import prepare
from sqlshift.infrastructure.pool import DatabasePool
from sqlshift.utils.logging import get_logger

log = get_logger(__name__)

_FAILURE_MESSAGES = {
    "query": "A SQL error occurred while running a query",
    "update": "A SQL error occurred while executing an update",
    "bulk_update": "A SQL error occurred while executing a bulk update",
}


def _execute(cursor: Any, sql: str, arguments: Sequence[Any]) -> None:
    # Without arguments the binder is skipped and no parameter list is sent,
    # so literal percent signs in parameterless SQL stay untouched.
    if not arguments:
        cursor.execute(sql)
        return
    statement = prepare(sql, arguments)
    cursor.execute(statement.sql, statement.parameters())


def _column_names(cursor: Any) -> list:
    return [column[0] for column in (cursor.description or ())]


class SQLExecutor:
    """
    Runs query / update / bulk_update tasks against a DatabasePool.

    Parameters
    ----------
    pool : DatabasePool
        Source of connections; each task leases its own.
    max_workers : int | None
        Worker threads and in-flight task limit. Defaults to the pool's
        maximum size so tasks never outnumber connections.
    """

    def __init__(self, pool: DatabasePool, max_workers: Optional[int] = None) -> None:
        self.pool = pool
        self.max_workers = max_workers or pool.max_size
        self._workers = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="sqlshift-worker"
        )
        self._slots = threading.BoundedSemaphore(self.max_workers)
        self._shutdown = False

    def query(self, sql: str, *params: Any) -> "Future[SQLResult]":
        """
        Run a SELECT. Resolves to OK with a ResultRows positioned at the first
        row, or EMPTY when the query returned no rows.
        """
        return self._submit("query", self._run_query, sql, params)

    def update(self, sql: str, *params: Any) -> "Future[SQLResult]":
        """
        Run a data-modifying statement. Resolves to OK with the affected row
        count, or EMPTY when no rows were affected.
        """
        return self._submit("update", self._run_update, sql, params)

    def bulk_update(self, sql: str, *params: Any) -> "Future[SQLResult]":
        """Same contract as `update`, for statements touching many rows."""
        return self._submit("bulk_update", self._run_update, sql, params)

    def _submit(
        self,
        operation: str,
        runner: Callable[[str, str, Sequence[Any]], SQLResult],
        sql: str,
        params: Sequence[Any],
    ) -> "Future[SQLResult]":
        if self._shutdown:
            raise RuntimeError("executor has been shut down")
        self._slots.acquire()
        try:
            future = self._workers.submit(self._guarded, operation, runner, sql, params)
        except BaseException:
            self._slots.release()
            raise
        future.add_done_callback(lambda _: self._slots.release())
        return future

    def _guarded(
        self,
        operation: str,
        runner: Callable[[str, str, Sequence[Any]], SQLResult],
        sql: str,
        params: Sequence[Any],
    ) -> SQLResult:
        try:
            try:
                return runner(operation, sql, params)
            except SQLError:
                raise
            except Exception as exc:  # noqa: BLE001 - any driver error fails the task
                raise StatementError(str(exc), sql=sql) from exc
        except SQLError as exc:
            log.error(
                "%s: %s",
                _FAILURE_MESSAGES[operation],
                exc,
                exc_info=True,
                extra={"operation": operation},
            )
            return SQLResult.failure(operation, exc)

    def _run_query(self, operation: str, sql: str, params: Sequence[Any]) -> SQLResult:
        with self.pool.acquire() as conn:
            cursor = conn.cursor()
            try:
                _execute(cursor, sql, params)
                rows = cursor.fetchall()
                columns = _column_names(cursor)
            finally:
                cursor.close()
        if not rows:
            return SQLResult.empty(operation)
        return SQLResult.ok(operation, ResultRows(columns, rows))

    def _run_update(self, operation: str, sql: str, params: Sequence[Any]) -> SQLResult:
        with self.pool.acquire() as conn:
            cursor = conn.cursor()
            try:
                _execute(cursor, sql, params)
                affected = cursor.rowcount
            finally:
                cursor.close()
        if affected is None or affected <= 0:
            return SQLResult.empty(operation)
        return SQLResult.ok(operation, affected)

    def shutdown(self, wait: bool = True) -> None:
        self._shutdown = True
        self._workers.shutdown(wait=wait)

    def __enter__(self) -> "SQLExecutor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()


__all__ = ["SQLExecutor"]
