"""CLI application for the PostgreSQL schema ownership pattern."""

from importlib import metadata

import typer

from pgapprole.cli.commands.init import init
from pgapprole.cli.commands.mappings import add_mapping, list_mappings, remove_mapping
from pgapprole.cli.common.context import build_context
from pgapprole.cli.common.log import configure_logging
from pgapprole.cli.common.options import (
    ConnectTimeoutOpt,
    DbNameOpt,
    HostOpt,
    PasswordOpt,
    PortOpt,
    SslModeOpt,
    StatementTimeoutOpt,
    UserOpt,
    VerboseOpt,
)

DIST_NAME = "pg-app-role-manager"

app = typer.Typer(
    help="pg-app-role-manager - PostgreSQL schema ownership pattern manager",
    no_args_is_help=True,
)


@app.callback()
def _init(
    ctx: typer.Context,
    host: str = HostOpt,
    port: int = PortOpt,
    user: str | None = UserOpt,
    password: str | None = PasswordOpt,
    dbname: str | None = DbNameOpt,
    sslmode: str = SslModeOpt,
    connect_timeout: int = ConnectTimeoutOpt,
    statement_timeout: int = StatementTimeoutOpt,
    verbose: int = VerboseOpt,
):
    """Bind global connection options (most also read from PG* environment variables)."""
    configure_logging(verbose)
    ctx.obj = build_context(
        host=host,
        port=port,
        user=user,
        password=password,
        dbname=dbname,
        sslmode=sslmode,
        connect_timeout=connect_timeout,
        statement_timeout_ms=statement_timeout,
    )


app.command("init")(init)
app.command("list-mappings")(list_mappings)
app.command("add-mapping")(add_mapping)
app.command("remove-mapping")(remove_mapping)


@app.command()
def version():
    """Print the installed version."""
    try:
        typer.echo(metadata.version(DIST_NAME))
    except metadata.PackageNotFoundError:
        typer.echo("unknown")


if __name__ == "__main__":
    app()
