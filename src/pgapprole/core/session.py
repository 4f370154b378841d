"""Connection configuration and the session interface used by the core.

The core never talks to psycopg directly; it receives a ``Session`` from a
connection provider (see ``pgapprole.core.adapters.postgres``) and tests pass
in-memory stubs implementing the same protocol.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Protocol, Sequence

DEFAULT_ADMIN_DATABASE = "postgres"


class SslMode(str, Enum):
    """Transport-security policy for a connection."""

    DISABLE = "disable"
    PREFER = "prefer"
    REQUIRE = "require"

    @classmethod
    def parse(cls, value: str) -> "SslMode":
        """Parse a user-provided mode, case-insensitively."""
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            raise ValueError(
                f"Invalid SSL mode '{value}'. Valid options are: disable, prefer, require."
            ) from exc


@dataclass(frozen=True)
class ConnectionConfig:
    """Connection target for one command invocation. Never persisted."""

    host: str = "localhost"
    port: int = 5432
    user: str | None = None
    password: str | None = None
    dbname: str | None = None
    sslmode: SslMode = SslMode.PREFER
    connect_timeout: int = 10
    statement_timeout_ms: int = 0

    @property
    def database(self) -> str:
        """Database to connect to, falling back to the administrative database."""
        return self.dbname or DEFAULT_ADMIN_DATABASE

    def with_database(self, dbname: str) -> "ConnectionConfig":
        """Return a copy bound to another database."""
        return replace(self, dbname=dbname)


class Session(Protocol):
    """Interface for one open database session."""

    database: str

    def execute(
        self, sql: str, params: Sequence[Any] | None = None, *, level: int = logging.INFO
    ) -> int:
        """Execute a statement and return the affected row count."""
        ...

    def fetch_all(
        self, sql: str, params: Sequence[Any] | None = None, *, level: int = logging.INFO
    ) -> list[tuple]:
        """Run a query and return all rows."""
        ...

    def fetch_one(
        self, sql: str, params: Sequence[Any] | None = None, *, level: int = logging.INFO
    ) -> tuple | None:
        """Run a query and return the first row, or None."""
        ...

    def close(self) -> None:
        """Release the underlying connection."""
        ...

    def __enter__(self) -> "Session": ...

    def __exit__(self, *exc: object) -> None: ...


Connector = Callable[[ConnectionConfig], Session]
