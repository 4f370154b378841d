import logging

import psycopg
import pytest

from pgapprole.core.adapters.postgres import (
    Failed,
    PgSession,
    Secured,
    Unsecured,
    connect,
    open_connection,
)
from pgapprole.core.errors import ConnectivityError
from pgapprole.core.session import ConnectionConfig, SslMode


class _Cursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = 2

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return None

    def execute(self, sql, params=None):
        self.conn.calls.append((sql, params))

    def fetchall(self):
        return [("a",), ("b",)]

    def fetchone(self):
        return ("a",)


class _Conn:
    def __init__(self):
        self.calls = []
        self.closed = False

    def cursor(self):
        return _Cursor(self)

    def close(self):
        self.closed = True


class _ConnectFn:
    """Records attempted sslmodes and fails for the ones listed."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.attempts: list[dict] = []

    def __call__(self, **kwargs):
        self.attempts.append(kwargs)
        if kwargs["sslmode"] in self.failing:
            raise psycopg.OperationalError(f"{kwargs['sslmode']} failed")
        return _Conn()

    @property
    def modes(self) -> list[str]:
        return [a["sslmode"] for a in self.attempts]


def _config(mode: SslMode, **kwargs) -> ConnectionConfig:
    return ConnectionConfig(user="admin", password="secret", sslmode=mode, **kwargs)


def test_disable_connects_unencrypted_once():
    fn = _ConnectFn()

    result = open_connection(_config(SslMode.DISABLE), connect_fn=fn)

    assert isinstance(result, Unsecured)
    assert result.fallback_reason is None
    assert fn.modes == ["disable"]


def test_require_does_not_fall_back():
    fn = _ConnectFn(failing={"require"})

    result = open_connection(_config(SslMode.REQUIRE), connect_fn=fn)

    assert isinstance(result, Failed)
    assert fn.modes == ["require"]


def test_prefer_uses_tls_when_available():
    fn = _ConnectFn()

    result = open_connection(_config(SslMode.PREFER), connect_fn=fn)

    assert isinstance(result, Secured)
    assert fn.modes == ["require"]


def test_prefer_falls_back_with_warning(caplog):
    fn = _ConnectFn(failing={"require"})

    with caplog.at_level(logging.WARNING, logger="pgapprole"):
        result = open_connection(_config(SslMode.PREFER), connect_fn=fn)

    assert isinstance(result, Unsecured)
    assert "require failed" in (result.fallback_reason or "")
    assert fn.modes == ["require", "disable"]
    assert "falling back to unencrypted connection" in caplog.text


def test_prefer_fails_when_both_attempts_fail():
    fn = _ConnectFn(failing={"require", "disable"})

    result = open_connection(_config(SslMode.PREFER), connect_fn=fn)

    assert isinstance(result, Failed)
    assert "disable failed" in str(result.error)


def test_connect_raises_connectivity_error_with_context():
    fn = _ConnectFn(failing={"disable"})

    with pytest.raises(ConnectivityError, match="database 'appdb' at localhost:5432"):
        connect(_config(SslMode.DISABLE, dbname="appdb"), connect_fn=fn)


def test_connect_kwargs_carry_deadlines_and_autocommit():
    fn = _ConnectFn()

    session = connect(
        _config(SslMode.REQUIRE, connect_timeout=3, statement_timeout_ms=5000),
        connect_fn=fn,
    )

    kwargs = fn.attempts[0]
    assert kwargs["dbname"] == "postgres"
    assert kwargs["connect_timeout"] == 3
    assert kwargs["autocommit"] is True
    assert kwargs["options"] == "-c statement_timeout=5000"
    assert session.secured is True


def test_connect_omits_statement_timeout_by_default():
    fn = _ConnectFn()

    connect(_config(SslMode.DISABLE), connect_fn=fn)

    assert "options" not in fn.attempts[0]


def test_session_executes_and_logs_statements(caplog):
    conn = _Conn()
    session = PgSession(conn, "appdb", secured=False)

    with caplog.at_level(logging.INFO, logger="pgapprole"):
        affected = session.execute("DELETE FROM t WHERE x = %s", ("billing",))
        session.fetch_all("SELECT hidden", level=logging.DEBUG)

    assert affected == 2
    assert conn.calls[0] == ("DELETE FROM t WHERE x = %s", ("billing",))
    assert "[SQL] DELETE FROM t WHERE x = %s -- params: [billing]" in caplog.text
    assert "SELECT hidden" not in caplog.text


def test_session_closes_connection_on_exit():
    conn = _Conn()

    with PgSession(conn, "appdb", secured=True) as session:
        assert session.fetch_one("SELECT 1") == ("a",)

    assert conn.closed is True


def test_sslmode_parse_is_case_insensitive():
    assert SslMode.parse("Require") is SslMode.REQUIRE
    with pytest.raises(ValueError, match="Valid options"):
        SslMode.parse("verify-full")
