"""In-memory stand-ins for a PostgreSQL server used by the core tests."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from psycopg import errors as pg_errors

from pgapprole.core import probes
from pgapprole.core.errors import ConnectivityError
from pgapprole.core.mappings import (
    DELETE_MAPPING_SQL,
    LIST_DATABASES_SQL,
    LIST_MAPPINGS_SQL,
    ROLE_MEMBERS_SQL,
    UPSERT_MAPPING_SQL,
)
from pgapprole.core.reconcile import CONFIG_TABLE, EVENT_TRIGGER_NAME

_IDENT_RE = re.compile(r'"((?:[^"]|"")*)"')
_LITERAL_RE = re.compile(r"'((?:[^']|'')*)'")


def _first_ident(sql: str) -> str:
    return _IDENT_RE.search(sql).group(1).replace('""', '"')


@dataclass
class FakeDatabase:
    schemas: set[str] = field(default_factory=lambda: {"public"})
    triggers: set[str] = field(default_factory=set)
    config_table: bool = False
    mappings: dict[str, list] = field(default_factory=dict)


class FakeServer:
    """A whole server: databases, cluster-wide roles and role memberships."""

    def __init__(self, databases=("postgres",), roles=(), members=None):
        self.databases: dict[str, FakeDatabase] = {name: FakeDatabase() for name in databases}
        self.roles: set[str] = set(roles)
        self.members: dict[str, list[str]] = dict(members or {})
        self.unreachable: set[str] = set()
        self.fail_on: dict[str, Exception] = {}
        self.connections: list[str] = []
        self.sessions: list[FakeSession] = []
        self._clock = datetime(2024, 1, 1, 12, 0, 0)

    def now(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def initialize(self, database: str, mappings: dict[str, str] | None = None) -> FakeDatabase:
        db = self.databases.setdefault(database, FakeDatabase())
        db.config_table = True
        for schema, role in (mappings or {}).items():
            db.schemas.add(schema)
            self.roles.add(role)
            ts = self.now()
            db.mappings[schema] = [role, ts, ts]
        return db

    def connect(self, config) -> "FakeSession":
        name = config.database
        if name in self.unreachable or name not in self.databases:
            raise ConnectivityError(f"Failed to connect to database '{name}'")
        self.connections.append(name)
        session = FakeSession(self, name)
        self.sessions.append(session)
        return session

    def executed(self) -> list[str]:
        return [sql for s in self.sessions for sql, _, _ in s.executed]


class FakeSession:
    """Implements the Session protocol against a FakeServer."""

    def __init__(self, server: FakeServer, database: str):
        self.server = server
        self.database = database
        self.executed: list[tuple[str, tuple | None, int]] = []
        self.closed = False

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self.closed = True

    @property
    def db(self) -> FakeDatabase:
        return self.server.databases[self.database]

    def _record(self, sql, params, level) -> None:
        self.executed.append((sql, params, level))
        for needle, exc in self.server.fail_on.items():
            if needle in sql:
                raise exc

    def _require_table(self) -> None:
        if not self.db.config_table:
            raise pg_errors.UndefinedTable(f'relation "{CONFIG_TABLE}" does not exist')

    def execute(self, sql, params=None, *, level=logging.INFO) -> int:
        self._record(sql, params, level)
        if sql.startswith("CREATE DATABASE "):
            self.server.databases[_first_ident(sql)] = FakeDatabase()
        elif sql.startswith("CREATE SCHEMA "):
            self.db.schemas.add(_first_ident(sql))
        elif sql.startswith("CREATE ROLE "):
            self.server.roles.add(_first_ident(sql))
        elif sql.startswith(f"CREATE TABLE IF NOT EXISTS {CONFIG_TABLE}"):
            self.db.config_table = True
        elif sql.startswith("CREATE EVENT TRIGGER "):
            if EVENT_TRIGGER_NAME in self.db.triggers:
                raise pg_errors.DuplicateObject("event trigger already exists")
            self.db.triggers.add(EVENT_TRIGGER_NAME)
        elif sql.startswith(f"INSERT INTO {CONFIG_TABLE}") and params is None:
            self._require_table()
            schema, role = (v.replace("''", "'") for v in _LITERAL_RE.findall(sql))
            if schema not in self.db.mappings:
                ts = self.server.now()
                self.db.mappings[schema] = [role, ts, ts]
                return 1
            return 0
        elif sql == UPSERT_MAPPING_SQL:
            self._require_table()
            schema, role = params
            ts = self.server.now()
            if schema in self.db.mappings:
                self.db.mappings[schema][0] = role
                self.db.mappings[schema][2] = ts
            else:
                self.db.mappings[schema] = [role, ts, ts]
            return 1
        elif sql == DELETE_MAPPING_SQL:
            self._require_table()
            return 1 if self.db.mappings.pop(params[0], None) else 0
        return 0

    def fetch_one(self, sql, params=None, *, level=logging.INFO):
        self._record(sql, params, level)
        value = params[0] if params else None
        found = {
            probes.DATABASE_EXISTS_SQL: lambda: value in self.server.databases,
            probes.SCHEMA_EXISTS_SQL: lambda: value in self.db.schemas,
            probes.ROLE_EXISTS_SQL: lambda: value in self.server.roles,
            probes.EVENT_TRIGGER_EXISTS_SQL: lambda: value in self.db.triggers,
            probes.TABLE_EXISTS_SQL: lambda: self.db.config_table,
        }[sql]()
        return (1,) if found else None

    def fetch_all(self, sql, params=None, *, level=logging.INFO):
        self._record(sql, params, level)
        if sql == LIST_DATABASES_SQL:
            return [(name,) for name in sorted(self.server.databases)]
        if sql == LIST_MAPPINGS_SQL:
            self._require_table()
            return [
                (schema, role, created, updated)
                for schema, (role, created, updated) in sorted(self.db.mappings.items())
            ]
        if sql == ROLE_MEMBERS_SQL:
            return [(m,) for m in sorted(self.server.members.get(params[0], []))]
        raise AssertionError(f"unexpected query: {sql}")
