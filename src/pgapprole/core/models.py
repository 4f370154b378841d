"""Core domain models for schema ownership management.

These models describe the mapping convention ("every object in schema S is
owned by role R") and the outcome of idempotent steps. They are free of
psycopg types and CLI concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ActionOutcome(str, Enum):
    """
    Effect of a single idempotent step.

    Values:
        CREATED: The object did not exist and was created.
        SKIPPED: The object already existed; nothing was done.
        UPDATED: A declarative statement was (re)applied.
        REMOVED: The object existed and was deleted.
        NOT_FOUND: The object to remove did not exist.
    """

    CREATED = "Created"
    SKIPPED = "Skipped"
    UPDATED = "Updated"
    REMOVED = "Removed"
    NOT_FOUND = "Not Found"


@dataclass(frozen=True)
class ActionRecord:
    """A human-readable step description paired with its outcome."""

    description: str
    outcome: ActionOutcome


@dataclass(frozen=True)
class SchemaMapping:
    """One row of the mapping table inside a single database."""

    schema_name: str
    target_role: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class MappingRow:
    """
    Listing view of a mapping, assembled at query time.

    Attributes:
        database: Database the mapping table lives in.
        schema_name: Schema the convention applies to.
        target_role: Role that should own every object in the schema.
        granted_to: Roles that are members of the target role, sorted.
        created_at: When the mapping was first inserted.
        updated_at: When the mapping was last upserted.
    """

    database: str
    schema_name: str
    target_role: str
    granted_to: tuple[str, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class DatabaseFailure:
    """A database skipped during multi-database listing."""

    database: str
    reason: str


@dataclass
class ListingResult:
    """Flattened result of a (multi-)database mapping listing."""

    rows: list[MappingRow] = field(default_factory=list)
    scanned: list[str] = field(default_factory=list)
    failures: list[DatabaseFailure] = field(default_factory=list)

    @property
    def contributing_databases(self) -> int:
        """Number of databases that contributed at least one mapping."""
        return len({r.database for r in self.rows})
