"""Common CLI options for the CLI."""

import typer

HostOpt = typer.Option(
    "localhost",
    "--host",
    envvar="PGHOST",
    help="Database server host",
)

PortOpt = typer.Option(
    5432,
    "--port",
    envvar="PGPORT",
    help="Database server port",
)

UserOpt = typer.Option(
    None,
    "--user",
    envvar="PGUSER",
    help="Database user (required for database commands)",
)

PasswordOpt = typer.Option(
    None,
    "--password",
    envvar="PGPASSWORD",
    help="Database password",
    show_envvar=False,
)

DbNameOpt = typer.Option(
    None,
    "--dbname",
    envvar="PGDATABASE",
    help="Default database for commands without --database",
)

SslModeOpt = typer.Option(
    "prefer",
    "--sslmode",
    envvar="PGSSLMODE",
    help="SSL mode: disable, prefer, or require",
)

ConnectTimeoutOpt = typer.Option(
    10,
    "--connect-timeout",
    envvar="PGCONNECT_TIMEOUT",
    help="Seconds to wait for a connection before giving up",
)

StatementTimeoutOpt = typer.Option(
    0,
    "--statement-timeout",
    help="Per-statement timeout in milliseconds (0 = no limit)",
)

VerboseOpt = typer.Option(
    0,
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for SQL statements, -vv includes trigger function)",
)

DatabaseOpt = typer.Option(
    None,
    "--database",
    "-d",
    help="Target database (defaults to --dbname / PGDATABASE)",
)

SchemaOpt = typer.Option(
    ...,
    "--schema",
    "-s",
    help="Schema name",
)

RoleOpt = typer.Option(
    ...,
    "--role",
    "-r",
    help="Role that owns every object in the schema",
)

ParallelOpt = typer.Option(
    1,
    "--parallel",
    "-n",
    help="Number of databases to read in parallel",
)

ConfirmOpt = typer.Option(
    True,
    "--confirm/--no-confirm",
    help="Ask for confirmation before removing the mapping (only when stdin is a terminal)",
)

DryRunOpt = typer.Option(
    False,
    "--dry-run",
    help="Print the statements that would run, but don't connect",
)
