"""Commands for listing and maintaining schema-to-role mappings."""

import typer

from pgapprole.cli.common.context import AppContext
from pgapprole.cli.common.exits import EXIT_OK, die, fail, ok_exit, warn_exit
from pgapprole.cli.common.options import (
    ConfirmOpt,
    DatabaseOpt,
    ParallelOpt,
    RoleOpt,
    SchemaOpt,
)
from pgapprole.cli.common.output import out
from pgapprole.core.errors import PgAppRoleError
from pgapprole.core.mappings import (
    add_mapping as core_add_mapping,
    list_database_mappings,
    list_server_mappings,
    remove_mapping as core_remove_mapping,
)
from pgapprole.core.report import ActionReport


def _list_single(appctx: AppContext, database: str) -> None:
    """List mappings in one database."""
    try:
        with out.status(f"Loading mappings from '{database}'..."):
            with appctx.connect(appctx.config(database)) as session:
                rows = list_database_mappings(session)
    except PgAppRoleError as exc:
        fail(exc, not_initialized=EXIT_OK)

    if not rows:
        warn_exit(f"No schema-to-role mappings found in database '{database}'.")

    out.mappings_table(rows, title="Schema ownership mappings")
    out.info(f"Total mappings: {len(rows)} in database '{database}'")


def _list_all(appctx: AppContext, parallel: int) -> None:
    """List mappings across every non-system database on the server."""
    try:
        with out.status("Loading mappings from all databases..."):
            result = list_server_mappings(appctx.connect, appctx.config(), max_parallel=parallel)
    except PgAppRoleError as exc:
        fail(exc)

    if not result.scanned:
        warn_exit("No non-system databases found.")

    if result.failures:
        out.warn(
            f"Skipped {len(result.failures)} database(s) that could not be read "
            "(use -v for details)."
        )

    if not result.rows:
        out.warn("No schema-to-role mappings found in any database.")
        ok_exit("Run 'init' command to set up the pattern in a database.")

    out.mappings_table(result.rows, title="Schema ownership mappings")
    out.info(
        f"Total mappings: {len(result.rows)} across "
        f"{result.contributing_databases} database(s)"
    )


def list_mappings(
    ctx: typer.Context,
    database: str | None = DatabaseOpt,
    parallel: int = ParallelOpt,
):
    """
    List schema-to-role mappings (all databases unless --database is given).
    """
    appctx: AppContext = ctx.obj

    if parallel < 1:
        die("--parallel must be >= 1")

    if database:
        _list_single(appctx, database)
    else:
        _list_all(appctx, parallel)


def add_mapping(
    ctx: typer.Context,
    schema: str = SchemaOpt,
    role: str = RoleOpt,
    database: str | None = DatabaseOpt,
):
    """
    Map a schema to the role that should own its objects (insert or update).
    """
    appctx: AppContext = ctx.obj
    report = ActionReport("Add Mapping", listener=out.action)

    try:
        with appctx.connect(appctx.config(database)) as session:
            core_add_mapping(session, schema, role, report)
    except PgAppRoleError as exc:
        fail(exc)

    out.report_summary(report)


def remove_mapping(
    ctx: typer.Context,
    schema: str = SchemaOpt,
    database: str | None = DatabaseOpt,
    confirm: bool = ConfirmOpt,
):
    """
    Remove the mapping for a schema. Existing object ownership is left as is.
    """
    appctx: AppContext = ctx.obj

    if confirm and out.can_prompt() and not out.confirm(f"Remove mapping for schema '{schema}'?"):
        ok_exit("Cancelled")

    report = ActionReport("Remove Mapping", listener=out.action)
    try:
        with appctx.connect(appctx.config(database)) as session:
            core_remove_mapping(session, schema, report)
    except PgAppRoleError as exc:
        fail(exc)

    out.report_summary(report)
