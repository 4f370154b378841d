"""Error taxonomy for schema ownership operations."""

from __future__ import annotations

NOT_INITIALIZED_HINT = (
    "Schema ownership pattern not initialized in this database. "
    "Run 'init' command first."
)


class PgAppRoleError(RuntimeError):
    """Base class for all errors surfaced to the user."""


class ValidationError(PgAppRoleError):
    """Raised when a name is invalid or a referenced schema/role does not exist."""


class NotInitializedError(PgAppRoleError):
    """Raised when the mapping table does not exist in the target database."""

    def __init__(self, database: str | None = None):
        self.database = database
        msg = NOT_INITIALIZED_HINT
        if database:
            msg = f"{msg} (database: '{database}')"
        super().__init__(msg)


class ConnectivityError(PgAppRoleError):
    """Raised when a connection cannot be established or authenticated."""


class PartialFetchError(PgAppRoleError):
    """Raised when a single database cannot be read during multi-database listing."""

    def __init__(self, database: str, reason: str):
        self.database = database
        self.reason = reason
        super().__init__(f"Failed to read database '{database}': {reason}")


class StepError(PgAppRoleError):
    """Raised when one step of a command fails; carries the step context."""

    def __init__(self, step: str, cause: Exception):
        self.step = step
        self.cause = cause
        super().__init__(f"{step}: {cause}")
