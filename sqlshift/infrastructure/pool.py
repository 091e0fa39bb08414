"""
Health-checked connection pool wrapper.

DatabasePool owns one pool handle produced by a PoolProvider, probes it once
at construction, and hands out connections through a scoped `acquire()` that
always returns the connection to the pool. Acquisition failures surface as
sqlshift.exceptions.ConnectionError.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Generator, Optional

import psycopg
from psycopg_pool import PoolClosed, PoolTimeout
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from sqlshift.config import Settings, get_settings
from sqlshift.domain.models import ConnectionParameters
from sqlshift.exceptions import ConnectionError
from sqlshift.infrastructure.db_factory import Pool, PoolProvider, PostgresPoolProvider
from sqlshift.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_MAX_SIZE = 8
DEFAULT_MIN_IDLE = 1
DEFAULT_CONNECTION_TIMEOUT = 7.5
DEFAULT_PROBE_TIMEOUT = 15.0

_ACQUIRE_ERRORS = (PoolTimeout, PoolClosed, psycopg.OperationalError)


class DatabasePool:
    """
    Owns a pool handle and performs a startup health check.

    Parameters
    ----------
    provider : PoolProvider
        Builds the pool handle and knows how to ping a connection.
    max_size : int
        Maximum number of connections the pool may hold.
    min_idle : int
        Minimum number of idle connections kept open.
    connection_timeout : float
        Seconds `acquire()` waits for a free connection.
    probe_timeout : float
        Seconds the startup probe waits for a connection, and the server-side
        statement timeout applied to the probe query.
    probe_attempts : int
        Probe attempts before giving up, with exponential backoff in between.
    strict : bool
        Raise ConnectionError when the probe fails. When False the wrapper
        stays constructed in a degraded state where every `acquire()` fails.
    """

    def __init__(
        self,
        provider: PoolProvider,
        max_size: int = DEFAULT_MAX_SIZE,
        min_idle: int = DEFAULT_MIN_IDLE,
        connection_timeout: float = DEFAULT_CONNECTION_TIMEOUT,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        probe_attempts: int = 1,
        strict: bool = True,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.provider = provider
        self.max_size = max_size
        self.min_idle = min_idle
        self.connection_timeout = connection_timeout
        self.probe_timeout = probe_timeout
        self.probe_attempts = max(probe_attempts, 1)

        self._lock = threading.Lock()
        self._leased = 0
        self._closed = False
        self.healthy = False

        self._pool: Pool = provider.create_pool(
            max_size=max_size, min_idle=min_idle, timeout=connection_timeout
        )

        try:
            self._run_probe()
        except Exception as exc:  # noqa: BLE001 - any probe failure degrades the pool
            self.shutdown()
            log.error("Connection test failed", exc_info=True)
            if strict:
                raise ConnectionError(f"Connection test failed: {exc}") from exc
        else:
            self.healthy = True
            log.info(
                "Connection pool ready",
                extra={"max_size": max_size, "min_idle": min_idle},
            )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        provider: Optional[PoolProvider] = None,
    ) -> "DatabasePool":
        """
        Build a pool from Settings, defaulting to the PostgreSQL provider.
        """
        settings = settings or get_settings()
        if provider is None:
            provider = PostgresPoolProvider(ConnectionParameters.from_settings(settings))
        return cls(
            provider,
            max_size=settings.pool_max_size,
            min_idle=settings.pool_min_idle,
            connection_timeout=settings.connection_timeout,
            probe_timeout=settings.probe_timeout,
            probe_attempts=settings.probe_attempts,
            strict=settings.strict_startup,
        )

    @property
    def placeholder(self) -> str:
        return self.provider.placeholder

    @property
    def leased(self) -> int:
        """Connections currently handed out by `acquire()`."""
        with self._lock:
            return self._leased

    @property
    def closed(self) -> bool:
        return self._closed

    def _run_probe(self) -> None:
        for attempt in Retrying(
            stop=stop_after_attempt(self.probe_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(_ACQUIRE_ERRORS),
            reraise=True,
        ):
            with attempt:
                self._probe()

    def _probe(self) -> None:
        conn = self._pool.getconn(timeout=self.probe_timeout)
        try:
            self.provider.ping(conn, self.probe_timeout)
        finally:
            self._pool.putconn(conn)

    @contextmanager
    def acquire(self) -> Generator[Any, None, None]:
        """
        Lease a connection for the duration of the block.

        The transaction is committed when the block exits normally and rolled
        back when it raises; the connection goes back to the pool either way.

        Raises
        ------
        ConnectionError
            If the pool is closed, exhausted past `connection_timeout`, or the
            connection cannot be established.
        """
        if self._closed:
            raise ConnectionError("Connection pool is closed")
        try:
            conn = self._pool.getconn(timeout=self.connection_timeout)
        except _ACQUIRE_ERRORS as exc:
            raise ConnectionError(f"Could not acquire a pooled connection: {exc}") from exc

        with self._lock:
            self._leased += 1
        try:
            yield conn
            conn.commit()
        except BaseException:
            try:
                conn.rollback()
            except Exception:  # noqa: BLE001 - the pending exception is the one to report
                log.warning("Rollback failed while releasing a connection", exc_info=True)
            raise
        finally:
            with self._lock:
                self._leased -= 1
            self._pool.putconn(conn)

    def shutdown(self, timeout: float = 5.0) -> None:
        """
        Close the pool. Safe to call more than once.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self.healthy = False
            leased = self._leased

        if leased:
            log.error(
                "The connection pool was shut down with connections still leased",
                extra={"leased": leased},
            )
        try:
            self._pool.close(timeout=timeout)
        except Exception:  # noqa: BLE001 - best-effort close
            log.error("An error occurred while closing the connection pool", exc_info=True)

    def __enter__(self) -> "DatabasePool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()


__all__ = ["DatabasePool"]
