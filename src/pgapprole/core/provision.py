"""Idempotent provisioning of the schema ownership convention.

The ``init`` sequence brings a database, schema, role, grants, default
privileges, the mapping table and the reconciliation event trigger into the
target state regardless of the starting state. Steps run in strict order;
the first failure aborts the rest. Nothing is rolled back: every step
tolerates re-execution, so recovery is running ``init`` again.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import psycopg

from pgapprole.core import probes
from pgapprole.core.errors import StepError
from pgapprole.core.models import ActionOutcome
from pgapprole.core.reconcile import EVENT_TRIGGER_NAME
from pgapprole.core.report import ActionReport
from pgapprole.core.session import (
    DEFAULT_ADMIN_DATABASE,
    ConnectionConfig,
    Connector,
    Session,
)
from pgapprole.core.sql_templates import SqlTemplates

logger = logging.getLogger(__name__)


@contextmanager
def _step(description: str) -> Iterator[None]:
    """Wrap database errors raised inside a step with the step's context."""
    try:
        yield
    except psycopg.Error as exc:
        raise StepError(f"Failed at step '{description}'", exc) from exc


def _ensure(
    session: Session,
    report: ActionReport,
    description: str,
    exists: bool,
    create_sql: str,
) -> None:
    if exists:
        report.record(description, ActionOutcome.SKIPPED)
        return
    session.execute(create_sql)
    report.record(description, ActionOutcome.CREATED)


def _apply(
    session: Session,
    report: ActionReport,
    description: str,
    sql: str,
    *,
    level: int = logging.INFO,
) -> None:
    with _step(description):
        session.execute(sql, level=level)
    report.record(description, ActionOutcome.UPDATED)


def provision(
    connect: Connector,
    config: ConnectionConfig,
    templates: SqlTemplates,
    report: ActionReport,
) -> ActionReport:
    """
    Run the full provisioning sequence for ``templates``.

    Args:
        connect: Connection provider returning a Session for a config.
        config: Base connection settings; the database is overridden per phase.
        templates: Statement renderer bound to (database, schema, role).
        report: Report receiving one record per step.

    Returns:
        The same report, for chaining.

    Raises:
        ConnectivityError: If a connection cannot be opened.
        StepError: If any step fails; earlier steps are left applied.
    """
    database, schema, role = templates.database, templates.schema, templates.role

    with connect(config.with_database(DEFAULT_ADMIN_DATABASE)) as admin:
        desc = f"Database '{database}'"
        with _step(desc):
            _ensure(admin, report, desc, probes.database_exists(admin, database),
                    templates.create_database())

    logger.debug("Reconnecting to target database '%s'", database)

    with connect(config.with_database(database)) as session:
        desc = f"Schema '{schema}'"
        with _step(desc):
            _ensure(session, report, desc, probes.schema_exists(session, schema),
                    templates.create_schema())

        desc = f"Role '{role}'"
        with _step(desc):
            _ensure(session, report, desc, probes.role_exists(session, role),
                    templates.create_role())

        for statement in templates.privilege_statements():
            _apply(session, report, statement.description, statement.sql)

        with _step("Config table"):
            _ensure(session, report, "Config table", probes.config_table_exists(session),
                    templates.create_config_table())

        # The function body is only shown at the highest verbosity.
        _apply(session, report, "Trigger function", templates.create_trigger_function(),
               level=logging.DEBUG)

        with _step("Event trigger"):
            _ensure(session, report, "Event trigger",
                    probes.event_trigger_exists(session, EVENT_TRIGGER_NAME),
                    templates.create_event_trigger())

        _apply(session, report, "Initial mapping", templates.insert_initial_mapping())

    return report
