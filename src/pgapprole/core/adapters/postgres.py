"""psycopg-backed connection provider.

Opens one autocommit connection per database with the requested
transport-security policy. ``prefer`` is an explicit two-attempt strategy:
try an encrypted connection, and on failure log a warning and retry
without encryption.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence, Union

import psycopg

from pgapprole.core.errors import ConnectivityError
from pgapprole.core.session import ConnectionConfig, SslMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Secured:
    """An encrypted connection was established."""

    connection: psycopg.Connection


@dataclass(frozen=True)
class Unsecured:
    """An unencrypted connection was established (disabled, or fallen back)."""

    connection: psycopg.Connection
    fallback_reason: str | None = None


@dataclass(frozen=True)
class Failed:
    """No connection could be established."""

    error: Exception


ConnectResult = Union[Secured, Unsecured, Failed]
ConnectFn = Callable[..., psycopg.Connection]


def _connect_kwargs(config: ConnectionConfig, sslmode: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "host": config.host,
        "port": config.port,
        "user": config.user,
        "password": config.password,
        "dbname": config.database,
        "sslmode": sslmode,
        "connect_timeout": config.connect_timeout,
        "autocommit": True,
    }
    if config.statement_timeout_ms > 0:
        kwargs["options"] = f"-c statement_timeout={config.statement_timeout_ms}"
    return kwargs


def _attempt(
    config: ConnectionConfig, sslmode: str, *, encrypted: bool, connect_fn: ConnectFn
) -> ConnectResult:
    try:
        conn = connect_fn(**_connect_kwargs(config, sslmode))
    except psycopg.OperationalError as exc:
        return Failed(error=exc)
    return Secured(connection=conn) if encrypted else Unsecured(connection=conn)


def open_connection(
    config: ConnectionConfig, *, connect_fn: ConnectFn = psycopg.connect
) -> ConnectResult:
    """
    Open a connection according to the configured SSL mode.

    Returns:
        Secured, Unsecured or Failed. Never raises for connection failures.
    """
    if config.sslmode is SslMode.DISABLE:
        return _attempt(config, "disable", encrypted=False, connect_fn=connect_fn)
    if config.sslmode is SslMode.REQUIRE:
        return _attempt(config, "require", encrypted=True, connect_fn=connect_fn)

    first = _attempt(config, "require", encrypted=True, connect_fn=connect_fn)
    if not isinstance(first, Failed):
        return first

    logger.warning(
        "TLS connection failed (%s), falling back to unencrypted connection",
        str(first.error).strip(),
    )
    second = _attempt(config, "disable", encrypted=False, connect_fn=connect_fn)
    if isinstance(second, Unsecured):
        return Unsecured(connection=second.connection, fallback_reason=str(first.error))
    return second


class PgSession:
    """Session over a psycopg connection; logs every statement it issues."""

    def __init__(self, connection: psycopg.Connection, database: str, *, secured: bool):
        self.connection = connection
        self.database = database
        self.secured = secured

    def __enter__(self) -> "PgSession":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _log(self, sql: str, params: Sequence[Any] | None, level: int) -> None:
        if not logger.isEnabledFor(level):
            return
        if params:
            joined = ", ".join(str(p) for p in params)
            logger.log(level, "[SQL] %s -- params: [%s] (database: %s)", sql, joined, self.database)
        else:
            logger.log(level, "[SQL] %s (database: %s)", sql, self.database)

    def execute(
        self, sql: str, params: Sequence[Any] | None = None, *, level: int = logging.INFO
    ) -> int:
        self._log(sql, params, level)
        with self.connection.cursor() as cur:
            cur.execute(sql, params)
            return cur.rowcount

    def fetch_all(
        self, sql: str, params: Sequence[Any] | None = None, *, level: int = logging.INFO
    ) -> list[tuple]:
        self._log(sql, params, level)
        with self.connection.cursor() as cur:
            cur.execute(sql, params)
            return list(cur.fetchall())

    def fetch_one(
        self, sql: str, params: Sequence[Any] | None = None, *, level: int = logging.INFO
    ) -> tuple | None:
        self._log(sql, params, level)
        with self.connection.cursor() as cur:
            cur.execute(sql, params)
            return cur.fetchone()

    def close(self) -> None:
        if not self.connection.closed:
            self.connection.close()


def connect(config: ConnectionConfig, *, connect_fn: ConnectFn = psycopg.connect) -> PgSession:
    """
    Open a session to ``config.database``.

    Raises:
        ConnectivityError: If no connection could be established.
    """
    result = open_connection(config, connect_fn=connect_fn)
    if isinstance(result, Failed):
        raise ConnectivityError(
            f"Failed to connect to database '{config.database}' at "
            f"{config.host}:{config.port}: {str(result.error).strip()}"
        ) from result.error
    return PgSession(result.connection, config.database, secured=isinstance(result, Secured))
