"""Mapping store maintenance and listing.

The mapping table holds one row per schema recording the role that should
own every object in it. This module upserts and deletes rows, reads them
back for one database, and aggregates them across every non-system
database on a server.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

import psycopg
from psycopg import errors as pg_errors

from pgapprole.core import probes
from pgapprole.core.errors import (
    NotInitializedError,
    PartialFetchError,
    PgAppRoleError,
    StepError,
    ValidationError,
)
from pgapprole.core.identifiers import validate_identifier
from pgapprole.core.models import (
    ActionOutcome,
    DatabaseFailure,
    ListingResult,
    MappingRow,
    SchemaMapping,
)
from pgapprole.core.reconcile import CONFIG_TABLE
from pgapprole.core.report import ActionReport
from pgapprole.core.session import (
    DEFAULT_ADMIN_DATABASE,
    ConnectionConfig,
    Connector,
    Session,
)

logger = logging.getLogger(__name__)

# PostgreSQL core plus cloud provider (AWS RDS, Azure, GCP) maintenance databases.
BLOCKED_DATABASES = frozenset(
    {
        "postgres",
        "template0",
        "template1",
        "rdsadmin",
        "azure_maintenance",
        "cloudsqladmin",
    }
)

LIST_DATABASES_SQL = (
    "SELECT datname FROM pg_database WHERE datistemplate = false ORDER BY datname"
)
LIST_MAPPINGS_SQL = (
    f"SELECT schema_name, target_role, created_at, updated_at FROM {CONFIG_TABLE} "
    "ORDER BY schema_name"
)
UPSERT_MAPPING_SQL = (
    f"INSERT INTO {CONFIG_TABLE} (schema_name, target_role) VALUES (%s, %s) "
    "ON CONFLICT (schema_name) DO UPDATE "
    "SET target_role = EXCLUDED.target_role, updated_at = now()"
)
DELETE_MAPPING_SQL = f"DELETE FROM {CONFIG_TABLE} WHERE schema_name = %s"
ROLE_MEMBERS_SQL = (
    "SELECT r.rolname "
    "FROM pg_roles r "
    "JOIN pg_auth_members m ON m.member = r.oid "
    "JOIN pg_roles g ON m.roleid = g.oid "
    "WHERE g.rolname = %s "
    "ORDER BY r.rolname"
)


def add_mapping(session: Session, schema: str, role: str, report: ActionReport) -> None:
    """
    Insert or update the mapping for ``schema``.

    Both the schema and the role must exist in the session's database.

    Raises:
        ValidationError: If a name is invalid or the schema/role does not exist.
        NotInitializedError: If the mapping table does not exist.
        StepError: On any other database error.
    """
    validate_identifier(schema, kind="schema")
    validate_identifier(role, kind="role")

    try:
        if not probes.schema_exists(session, schema):
            raise ValidationError(f"Schema '{schema}' does not exist")
        if not probes.role_exists(session, role):
            raise ValidationError(f"Role '{role}' does not exist")
        session.execute(UPSERT_MAPPING_SQL, (schema, role))
    except pg_errors.UndefinedTable as exc:
        raise NotInitializedError(session.database) from exc
    except psycopg.Error as exc:
        raise StepError("Failed to insert mapping", exc) from exc

    report.record(f"Mapping: schema '{schema}' -> role '{role}'", ActionOutcome.UPDATED)


def remove_mapping(session: Session, schema: str, report: ActionReport) -> None:
    """
    Delete the mapping for ``schema``; records NOT_FOUND when there is none.

    Raises:
        NotInitializedError: If the mapping table does not exist.
        StepError: On any other database error.
    """
    validate_identifier(schema, kind="schema")

    try:
        affected = session.execute(DELETE_MAPPING_SQL, (schema,))
    except pg_errors.UndefinedTable as exc:
        raise NotInitializedError(session.database) from exc
    except psycopg.Error as exc:
        raise StepError("Failed to delete mapping", exc) from exc

    outcome = ActionOutcome.REMOVED if affected else ActionOutcome.NOT_FOUND
    report.record(f"Mapping for schema '{schema}'", outcome)


def fetch_mappings(session: Session) -> list[SchemaMapping]:
    """
    Read every mapping row in the session's database, ordered by schema.

    Raises:
        NotInitializedError: If the mapping table does not exist.
    """
    try:
        rows = session.fetch_all(LIST_MAPPINGS_SQL)
    except pg_errors.UndefinedTable as exc:
        raise NotInitializedError(session.database) from exc
    return [
        SchemaMapping(schema_name=r[0], target_role=r[1], created_at=r[2], updated_at=r[3])
        for r in rows
    ]


def role_members(session: Session, role: str) -> tuple[str, ...]:
    """Return the roles granted membership in ``role``, sorted by name."""
    rows = session.fetch_all(ROLE_MEMBERS_SQL, (role,), level=logging.DEBUG)
    return tuple(r[0] for r in rows)


def list_database_mappings(session: Session) -> list[MappingRow]:
    """
    Return the listing view of every mapping in the session's database.

    A failed membership lookup leaves that row's ``granted_to`` empty.
    """
    rows: list[MappingRow] = []
    for m in fetch_mappings(session):
        try:
            granted_to = role_members(session, m.target_role)
        except psycopg.Error as exc:
            logger.info("Failed to query role members for '%s': %s", m.target_role, exc)
            granted_to = ()
        rows.append(
            MappingRow(
                database=session.database,
                schema_name=m.schema_name,
                target_role=m.target_role,
                granted_to=granted_to,
                created_at=m.created_at,
                updated_at=m.updated_at,
            )
        )
    return rows


def list_databases(session: Session) -> list[str]:
    """Return non-template databases on the server, minus the blocked names."""
    rows = session.fetch_all(LIST_DATABASES_SQL)
    return [r[0] for r in rows if r[0] not in BLOCKED_DATABASES]


def _fetch_database(connect: Connector, config: ConnectionConfig, database: str) -> list[MappingRow]:
    """Read one database's mappings; failures become PartialFetchError."""
    try:
        with connect(config.with_database(database)) as session:
            return list_database_mappings(session)
    except NotInitializedError:
        logger.info("No %s in database '%s'", CONFIG_TABLE, database)
        return []
    except (PgAppRoleError, psycopg.Error) as exc:
        raise PartialFetchError(database, str(exc).strip()) from exc


def _fetch_all(
    connect: Connector,
    config: ConnectionConfig,
    databases: Iterable[str],
    max_parallel: int,
) -> list[tuple[str, list[MappingRow] | PartialFetchError]]:
    def _one(db: str) -> tuple[str, list[MappingRow] | PartialFetchError]:
        try:
            return db, _fetch_database(connect, config, db)
        except PartialFetchError as exc:
            return db, exc

    if max_parallel == 1:
        return [_one(db) for db in databases]

    with ThreadPoolExecutor(max_workers=max_parallel) as pool:
        return list(pool.map(_one, databases))


def list_server_mappings(
    connect: Connector,
    config: ConnectionConfig,
    *,
    max_parallel: int = 1,
) -> ListingResult:
    """
    Aggregate mappings across every non-system database on the server.

    Databases are read independently: one that cannot be reached or queried
    is logged and left out, never aborting the listing. Rows are ordered by
    database name, then schema name.

    Args:
        connect: Connection provider returning a Session for a config.
        config: Base connection settings.
        max_parallel: Maximum number of databases read concurrently.

    Raises:
        ValueError: If max_parallel is smaller than 1.
        ConnectivityError: If the administrative database cannot be reached.
    """
    if max_parallel < 1:
        raise ValueError("max_parallel must be >= 1")

    with connect(config.with_database(DEFAULT_ADMIN_DATABASE)) as admin:
        try:
            databases = list_databases(admin)
        except psycopg.Error as exc:
            raise StepError("Failed to query pg_database", exc) from exc

    result = ListingResult(scanned=databases)
    for database, outcome in _fetch_all(connect, config, databases, max_parallel):
        if isinstance(outcome, PartialFetchError):
            logger.info("Warning: %s", outcome)
            result.failures.append(DatabaseFailure(database=database, reason=outcome.reason))
            continue
        result.rows.extend(outcome)

    result.rows.sort(key=lambda r: (r.database, r.schema_name))
    return result
