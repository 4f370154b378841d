"""Command for provisioning the schema ownership pattern."""

import typer

from pgapprole.cli.common.context import AppContext
from pgapprole.cli.common.exits import die, fail, warn_exit
from pgapprole.cli.common.options import DatabaseOpt, DryRunOpt, RoleOpt, SchemaOpt
from pgapprole.cli.common.output import out
from pgapprole.core.errors import PgAppRoleError
from pgapprole.core.provision import provision
from pgapprole.core.report import ActionReport
from pgapprole.core.sql_templates import SqlTemplates


def init(
    ctx: typer.Context,
    database: str | None = DatabaseOpt,
    schema: str = SchemaOpt,
    role: str = RoleOpt,
    dry_run: bool = DryRunOpt,
):
    """
    Create database, schema and role, apply grants and install the ownership trigger.
    """
    appctx: AppContext = ctx.obj

    target = database or appctx.dbname
    if not target:
        die("Database must be specified via --database flag or PGDATABASE environment variable")

    report = ActionReport("Init", listener=out.action)
    try:
        templates = SqlTemplates(database=target, schema=schema, role=role)
        if dry_run:
            out.header(f"Statements for database '{target}'")
            out.statements(templates.all_statements())
            warn_exit("Dry-run enabled: no statements were executed")
        provision(appctx.connect, appctx.config(), templates, report)
    except PgAppRoleError as exc:
        fail(exc)

    out.report_summary(report)
    out.success(f"Schema '{schema}' in database '{target}' is owned by role '{role}'")
