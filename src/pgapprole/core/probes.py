"""Existence probes against the system catalog.

Each probe is a parameterized, read-only lookup returning a boolean. An
empty result means "does not exist"; any other failure propagates to the
caller and aborts the operation.
"""

from __future__ import annotations

from pgapprole.core.reconcile import CONFIG_TABLE
from pgapprole.core.session import Session

DATABASE_EXISTS_SQL = "SELECT 1 FROM pg_database WHERE datname = %s"
SCHEMA_EXISTS_SQL = "SELECT 1 FROM pg_namespace WHERE nspname = %s"
ROLE_EXISTS_SQL = "SELECT 1 FROM pg_roles WHERE rolname = %s"
EVENT_TRIGGER_EXISTS_SQL = "SELECT 1 FROM pg_event_trigger WHERE evtname = %s"
TABLE_EXISTS_SQL = "SELECT 1 WHERE to_regclass(%s) IS NOT NULL"


def _exists(session: Session, sql: str, value: str) -> bool:
    return session.fetch_one(sql, (value,)) is not None


def database_exists(session: Session, database: str) -> bool:
    return _exists(session, DATABASE_EXISTS_SQL, database)


def schema_exists(session: Session, schema: str) -> bool:
    return _exists(session, SCHEMA_EXISTS_SQL, schema)


def role_exists(session: Session, role: str) -> bool:
    return _exists(session, ROLE_EXISTS_SQL, role)


def event_trigger_exists(session: Session, trigger_name: str) -> bool:
    return _exists(session, EVENT_TRIGGER_EXISTS_SQL, trigger_name)


def config_table_exists(session: Session) -> bool:
    """Return True if the mapping table exists in the session's database."""
    return _exists(session, TABLE_EXISTS_SQL, CONFIG_TABLE)
