"""
sqlite3-backed stand-ins for the pool layer.

SQLiteProvider satisfies the PoolProvider protocol with a bounded pool over a
single database file, so the pool wrapper, executor and migration engine run
against a real DB-API driver without a server.
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Any, List, Optional

from psycopg_pool import PoolClosed, PoolTimeout

SQLITE_POOL_MAX = 4
SQLITE_ACQUIRE_TIMEOUT = 0.2


class SQLitePool:
    """
    Minimal bounded pool over one sqlite database file, with the
    getconn/putconn/close surface of psycopg_pool.ConnectionPool.
    """

    def __init__(self, path: Path, max_size: int, min_size: int, timeout: float) -> None:
        self.path = path
        self.max_size = max_size
        self.min_size = min_size
        self.timeout = timeout
        self.closed = False
        self.peak_in_use = 0
        self._in_use = 0
        self._idle: List[sqlite3.Connection] = []
        self._slots = threading.BoundedSemaphore(max_size)
        self._lock = threading.Lock()

    def getconn(self, timeout: Optional[float] = None) -> sqlite3.Connection:
        if self.closed:
            raise PoolClosed("the pool is already closed")
        wait = self.timeout if timeout is None else timeout
        if not self._slots.acquire(timeout=wait):
            raise PoolTimeout(f"couldn't get a connection after {wait:.2f} sec")
        with self._lock:
            conn = self._idle.pop() if self._idle else sqlite3.connect(
                self.path, check_same_thread=False
            )
            self._in_use += 1
            self.peak_in_use = max(self.peak_in_use, self._in_use)
        return conn

    def putconn(self, conn: sqlite3.Connection) -> None:
        with self._lock:
            self._in_use -= 1
            if self.closed:
                conn.close()
            else:
                self._idle.append(conn)
        self._slots.release()

    def close(self, timeout: float = 5.0) -> None:
        del timeout
        with self._lock:
            self.closed = True
            for conn in self._idle:
                conn.close()
            self._idle.clear()


class SQLiteProvider:
    placeholder = "?"

    def __init__(self, path: Path, fail_ping: bool = False) -> None:
        self.path = path
        self.fail_ping = fail_ping
        self.pool: Optional[SQLitePool] = None
        self.pings = 0

    def create_pool(self, max_size: int, min_idle: int, timeout: float) -> SQLitePool:
        self.pool = SQLitePool(self.path, max_size=max_size, min_size=min_idle, timeout=timeout)
        return self.pool

    def ping(self, connection: sqlite3.Connection, timeout: float) -> None:
        del timeout
        self.pings += 1
        if self.fail_ping:
            raise sqlite3.OperationalError("unable to open database file")
        connection.execute("/* ping */ SELECT 1")


class _RecordingCursor:
    def __init__(self, owner: "RecordingConnection", cursor: sqlite3.Cursor) -> None:
        self._owner = owner
        self._cursor = cursor

    def execute(self, sql: str, params: Any = ()) -> Any:
        self._owner.record(sql)
        return self._cursor.execute(sql, params)

    def executemany(self, sql: str, rows: Any) -> Any:
        self._owner.record(sql)
        return self._cursor.executemany(sql, rows)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._cursor, name)


class RecordingConnection:
    """
    Wraps a sqlite3 connection, recording every statement. When `fail_on` is
    set, the first statement starting with it raises OperationalError once.
    """

    def __init__(self, conn: sqlite3.Connection, fail_on: Optional[str] = None) -> None:
        self._conn = conn
        self.fail_on = fail_on
        self.statements: List[str] = []

    def record(self, sql: str) -> None:
        if self.fail_on and sql.startswith(self.fail_on):
            self.fail_on = None
            raise sqlite3.OperationalError("simulated outage")
        self.statements.append(sql)

    def cursor(self) -> _RecordingCursor:
        return _RecordingCursor(self, self._conn.cursor())

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()


def table_exists(conn: sqlite3.Connection, name: str) -> bool:
    row = conn.execute(
        "SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name = ?", (name,)
    ).fetchone()
    return row[0] == 1
