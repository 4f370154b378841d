import pytest
import typer

from pgapprole.cli.common.exits import EXIT_FAILURE, EXIT_OK, EXIT_USAGE, exit_code_for, fail
from pgapprole.core.errors import (
    ConnectivityError,
    NotInitializedError,
    StepError,
    ValidationError,
)


@pytest.mark.parametrize(
    "exc, expected",
    [
        (ValidationError("Role 'nobody' does not exist"), EXIT_USAGE),
        (NotInitializedError("appdb"), EXIT_FAILURE),
        (ConnectivityError("Failed to connect to database 'appdb'"), EXIT_FAILURE),
        (StepError("Failed to delete mapping", RuntimeError("boom")), EXIT_FAILURE),
    ],
)
def test_exit_code_for_error_kinds(exc, expected):
    assert exit_code_for(exc) == expected


def test_not_initialized_code_can_be_relaxed_for_read_only_commands():
    assert exit_code_for(NotInitializedError("appdb"), not_initialized=EXIT_OK) == EXIT_OK
    assert exit_code_for(ValidationError("bad"), not_initialized=EXIT_OK) == EXIT_USAGE


def test_fail_chains_the_original_error():
    exc = ConnectivityError("Failed to connect to database 'appdb'")

    with pytest.raises(typer.Exit) as info:
        fail(exc)

    assert info.value.exit_code == EXIT_FAILURE
    assert info.value.__cause__ is exc
