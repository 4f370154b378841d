"""Statement rendering for the provisioning sequence.

Pure functions from (database, schema, role) to statement text. Nothing in
this module performs I/O.
"""

from __future__ import annotations

from dataclasses import dataclass

from pgapprole.core.identifiers import quote_identifier, quote_literal, validate_identifier
from pgapprole.core.reconcile import (
    CONFIG_TABLE,
    render_event_trigger,
    render_trigger_function,
)


@dataclass(frozen=True)
class Statement:
    """A rendered statement with the report description it is recorded under."""

    description: str
    sql: str


@dataclass(frozen=True)
class SqlTemplates:
    """Statement renderer bound to one (database, schema, role) triple."""

    database: str
    schema: str
    role: str

    def __post_init__(self) -> None:
        validate_identifier(self.database, kind="database")
        validate_identifier(self.schema, kind="schema")
        validate_identifier(self.role, kind="role")

    @property
    def _db(self) -> str:
        return quote_identifier(self.database)

    @property
    def _schema(self) -> str:
        return quote_identifier(self.schema)

    @property
    def _role(self) -> str:
        return quote_identifier(self.role)

    def create_database(self) -> str:
        return f"CREATE DATABASE {self._db}"

    def create_schema(self) -> str:
        return f"CREATE SCHEMA {self._schema}"

    def create_role(self) -> str:
        return f"CREATE ROLE {self._role} NOLOGIN"

    def privilege_statements(self) -> list[Statement]:
        """
        Return the declarative grant/ownership statements in application order.

        Every statement is safe to reapply; the provisioner runs all of them
        on every invocation.
        """
        s, r = self._schema, self._role
        return [
            Statement("CONNECT privilege", f"GRANT CONNECT ON DATABASE {self._db} TO {r}"),
            Statement("Schema ownership", f"ALTER SCHEMA {s} OWNER TO {r}"),
            Statement("USAGE on schema", f"GRANT USAGE ON SCHEMA {s} TO {r}"),
            Statement("CREATE on schema", f"GRANT CREATE ON SCHEMA {s} TO {r}"),
            Statement(
                "ALL on tables",
                f"GRANT ALL PRIVILEGES ON ALL TABLES IN SCHEMA {s} TO {r}",
            ),
            Statement(
                "ALL on sequences",
                f"GRANT ALL PRIVILEGES ON ALL SEQUENCES IN SCHEMA {s} TO {r}",
            ),
            Statement(
                "ALL on functions",
                f"GRANT ALL PRIVILEGES ON ALL FUNCTIONS IN SCHEMA {s} TO {r}",
            ),
            Statement(
                "Default privileges for tables",
                f"ALTER DEFAULT PRIVILEGES IN SCHEMA {s} GRANT ALL PRIVILEGES ON TABLES TO {r}",
            ),
            Statement(
                "Default privileges for sequences",
                f"ALTER DEFAULT PRIVILEGES IN SCHEMA {s} GRANT ALL PRIVILEGES ON SEQUENCES TO {r}",
            ),
            Statement(
                "Default privileges for functions",
                f"ALTER DEFAULT PRIVILEGES IN SCHEMA {s} GRANT ALL PRIVILEGES ON FUNCTIONS TO {r}",
            ),
        ]

    @staticmethod
    def create_config_table() -> str:
        return (
            f"CREATE TABLE IF NOT EXISTS {CONFIG_TABLE} (\n"
            "    schema_name name PRIMARY KEY,\n"
            "    target_role name NOT NULL,\n"
            "    created_at timestamptz DEFAULT now(),\n"
            "    updated_at timestamptz DEFAULT now()\n"
            ")"
        )

    @staticmethod
    def create_trigger_function() -> str:
        return render_trigger_function()

    @staticmethod
    def create_event_trigger() -> str:
        return render_event_trigger()

    def insert_initial_mapping(self) -> str:
        return (
            f"INSERT INTO {CONFIG_TABLE} (schema_name, target_role) "
            f"VALUES ({quote_literal(self.schema)}, {quote_literal(self.role)}) "
            "ON CONFLICT (schema_name) DO NOTHING"
        )

    def all_statements(self) -> list[str]:
        """Return every statement of the provisioning sequence, in order."""
        return [
            self.create_database(),
            self.create_schema(),
            self.create_role(),
            *(st.sql for st in self.privilege_statements()),
            self.create_config_table(),
            self.create_trigger_function(),
            self.create_event_trigger(),
            self.insert_initial_mapping(),
        ]
