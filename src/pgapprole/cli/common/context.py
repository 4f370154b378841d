"""Application context management for the CLI."""

from dataclasses import dataclass

from pgapprole.cli.common.exits import die
from pgapprole.core.adapters.postgres import connect as pg_connect
from pgapprole.core.session import ConnectionConfig, Connector, SslMode


@dataclass
class AppContext:
    """Global connection options for one invocation plus the connection provider."""

    host: str
    port: int
    user: str | None
    password: str | None
    dbname: str | None
    sslmode: SslMode
    connect_timeout: int
    statement_timeout_ms: int
    connect: Connector

    def config(self, database: str | None = None) -> ConnectionConfig:
        """Return the connection config, bound to ``database`` when given.

        Exits with a usage error if no user was provided.
        """
        if not self.user:
            die("Missing user. Provide --user or set PGUSER.")
        cfg = ConnectionConfig(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            dbname=self.dbname,
            sslmode=self.sslmode,
            connect_timeout=self.connect_timeout,
            statement_timeout_ms=self.statement_timeout_ms,
        )
        return cfg.with_database(database) if database else cfg


def build_context(
    *,
    host: str,
    port: int,
    user: str | None,
    password: str | None,
    dbname: str | None,
    sslmode: str,
    connect_timeout: int,
    statement_timeout_ms: int,
) -> AppContext:
    """Validate global options and return the application context."""
    try:
        mode = SslMode.parse(sslmode)
    except ValueError as exc:
        die(str(exc))
    if connect_timeout < 0 or statement_timeout_ms < 0:
        die("Timeouts must not be negative.")
    return AppContext(
        host=host,
        port=port,
        user=user,
        password=password,
        dbname=dbname,
        sslmode=mode,
        connect_timeout=connect_timeout,
        statement_timeout_ms=statement_timeout_ms,
        connect=pg_connect,
    )
