"""
Pool providers for sqlshift.

A provider is the only place that knows which database backend is in use:
it turns connection parameters into a pool handle, knows how to ping a
connection with a server-side statement timeout, and names the driver's
positional placeholder. The PostgreSQL provider builds a psycopg_pool
ConnectionPool.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable
from urllib.parse import quote

from psycopg import Connection
from psycopg_pool import ConnectionPool

from sqlshift.domain.models import ConnectionParameters

POSTGRES_DEFAULT_PORT = 5432


@runtime_checkable
class Pool(Protocol):
    """
    The subset of psycopg_pool.ConnectionPool the pool wrapper relies on.
    """

    min_size: int
    max_size: int

    @property
    def closed(self) -> bool: ...

    def getconn(self, timeout: Optional[float] = None) -> Any: ...

    def putconn(self, conn: Any) -> None: ...

    def close(self, timeout: float = 5.0) -> None: ...


@runtime_checkable
class PoolProvider(Protocol):
    """
    Given connection parameters, produce a working pool handle.

    Attributes
    ----------
    placeholder : str
        Positional parameter marker understood by the driver ("%s", "?").
    """

    placeholder: str

    def create_pool(self, max_size: int, min_idle: int, timeout: float) -> Pool:
        """Build and open a pool bounded by `max_size` connections."""
        ...

    def ping(self, connection: Any, timeout: float) -> None:
        """Run a trivial statement with a server-side timeout of `timeout` seconds."""
        ...


def build_dsn(parameters: ConnectionParameters) -> str:
    """
    Compose a PostgreSQL DSN from connection parameters.

    A port of 0 selects the default port and `options` is appended verbatim as
    the query string.
    """
    port = parameters.port or POSTGRES_DEFAULT_PORT
    credentials = quote(parameters.user, safe="")
    if parameters.password:
        credentials += ":" + quote(parameters.password, safe="")
    dsn = f"postgresql://{credentials}@{parameters.host}:{port}/{parameters.database}"
    if parameters.options:
        dsn += "?" + parameters.options.lstrip("?")
    return dsn


class PostgresPoolProvider:
    """
    psycopg_pool-backed provider for PostgreSQL.
    """

    placeholder: str = "%s"

    def __init__(self, parameters: ConnectionParameters, pool_name: str = "sqlshift") -> None:
        self.parameters = parameters
        self.pool_name = pool_name

    def create_pool(self, max_size: int, min_idle: int, timeout: float) -> ConnectionPool:
        """
        Open a ConnectionPool keeping `min_idle` connections warm.

        Connections are established in the pool's background workers, so this
        does not fail on an unreachable server; the startup probe does.
        """
        return ConnectionPool(
            conninfo=build_dsn(self.parameters),
            min_size=min(min_idle, max_size),
            max_size=max_size,
            timeout=timeout,
            name=self.pool_name,
            open=True,
        )

    def ping(self, connection: Connection, timeout: float) -> None:
        timeout_ms = str(int(timeout * 1000))
        with connection.transaction():
            connection.execute("SELECT set_config('statement_timeout', %s, true)", (timeout_ms,))
            connection.execute("/* ping */ SELECT 1")


__all__ = [
    "POSTGRES_DEFAULT_PORT",
    "Pool",
    "PoolProvider",
    "PostgresPoolProvider",
    "build_dsn",
]
