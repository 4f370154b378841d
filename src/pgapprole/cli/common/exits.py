"""Exit codes and the translation of core errors into process exits.

0 means success (including warnings and cancelled prompts), 1 means a
command failed against the server, and 2 means the invocation itself was
unusable: a missing or malformed argument, or a name that failed
validation.
"""

from typing import NoReturn

import typer

from pgapprole.cli.common.output import out
from pgapprole.core.errors import NotInitializedError, PgAppRoleError, ValidationError

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def ok_exit(msg: str | None = None) -> NoReturn:
    """Exit successfully, optionally printing an info line first."""
    if msg:
        out.info(msg)
    raise typer.Exit(EXIT_OK)


def warn_exit(msg: str) -> NoReturn:
    """Print a warning and exit successfully; nothing needs to be done."""
    out.warn(msg)
    raise typer.Exit(EXIT_OK)


def die(msg: str, code: int = EXIT_USAGE) -> NoReturn:
    """Print an error and exit; defaults to the usage exit code."""
    out.error(msg)
    raise typer.Exit(code)


def exit_code_for(exc: PgAppRoleError, *, not_initialized: int = EXIT_FAILURE) -> int:
    """
    Pick the process exit code for a core error.

    Args:
        exc: The error raised by a core operation.
        not_initialized: Code used when the mapping table is missing. Read-only
            commands pass EXIT_OK since there is simply nothing to show.
    """
    if isinstance(exc, ValidationError):
        return EXIT_USAGE
    if isinstance(exc, NotInitializedError):
        return not_initialized
    return EXIT_FAILURE


def fail(exc: PgAppRoleError, *, not_initialized: int = EXIT_FAILURE) -> NoReturn:
    """Report a core error and exit with the code chosen by exit_code_for."""
    code = exit_code_for(exc, not_initialized=not_initialized)
    if code == EXIT_OK:
        out.warn(str(exc))
    else:
        out.error(str(exc))
    raise typer.Exit(code) from exc
