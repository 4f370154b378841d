"""Logging setup for the CLI.

Core modules log through the standard library; the CLI routes those records
to the shared rich console. The ``-v`` count selects the level: issued SQL
is logged at INFO, the trigger function body and role-membership lookups at
DEBUG.
"""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from pgapprole.cli.common.output import console

_ROOT_LOGGER = "pgapprole"


def level_for(verbose: int) -> int:
    """Map the -v count to a logging level."""
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(verbose: int) -> None:
    """Install a single rich handler on the package logger."""
    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger(_ROOT_LOGGER)
    logger.handlers[:] = [handler]
    logger.setLevel(level_for(verbose))
