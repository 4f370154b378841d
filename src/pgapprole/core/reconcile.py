"""Server-resident ownership reconciliation.

The reconciliation runs inside the database as a SECURITY DEFINER event
trigger function fired on ``ddl_command_end``. For every object created or
altered by the DDL statement it looks up the object's schema in the mapping
table and, when a target role is configured and still exists, transfers
ownership of the object to that role unless it already owns it.

The set of reconciled object categories is closed. Each category carries
the catalog used to look up its current owner and the ALTER statement used
to transfer it; the PL/pgSQL body is rendered from that table.
"""

from __future__ import annotations

from enum import Enum

CONFIG_TABLE = "public.schema_ownership_config"
FUNCTION_NAME = "auto_transfer_schema_ownership"
EVENT_TRIGGER_NAME = "auto_transfer_schema_ownership_trigger"


class ObjectCategory(Enum):
    """
    Object categories whose ownership is reconciled.

    The value is the ``object_type`` tag reported by
    ``pg_event_trigger_ddl_commands()``.
    """

    TABLE = "table"
    SEQUENCE = "sequence"
    VIEW = "view"
    MATERIALIZED_VIEW = "materialized view"
    FUNCTION = "function"
    TYPE = "type"

    @property
    def owner_catalog(self) -> tuple[str, str]:
        """Return (catalog table, owner column) used to find the current owner."""
        if self is ObjectCategory.FUNCTION:
            return ("pg_proc", "proowner")
        if self is ObjectCategory.TYPE:
            return ("pg_type", "typowner")
        return ("pg_class", "relowner")

    @property
    def alter_keyword(self) -> str:
        """Object keyword used in ``ALTER <keyword> ... OWNER TO``."""
        return self.value.upper()


def _sql_tags(categories: list[ObjectCategory]) -> str:
    return ", ".join(f"'{c.value}'" for c in categories)


def _owner_lookup_branches() -> list[str]:
    """One WHEN branch per owner catalog, in first-seen category order."""
    grouped: dict[tuple[str, str], list[ObjectCategory]] = {}
    for category in ObjectCategory:
        grouped.setdefault(category.owner_catalog, []).append(category)

    lines: list[str] = []
    for (catalog, column), categories in grouped.items():
        lines.extend(
            [
                f"                WHEN {_sql_tags(categories)} THEN",
                f"                    SELECT {column} INTO current_owner_oid",
                f"                    FROM {catalog}",
                "                    WHERE oid = obj.objid;",
                "",
            ]
        )
    return lines


def _transfer_branches() -> list[str]:
    lines: list[str] = []
    for category in ObjectCategory:
        lines.extend(
            [
                f"                    WHEN '{category.value}' THEN",
                f"                        EXECUTE format('ALTER {category.alter_keyword} %s OWNER TO %I',",
                "                                       obj.object_identity, target_role_name);",
            ]
        )
    return lines


def render_trigger_function() -> str:
    """Return the CREATE OR REPLACE FUNCTION statement for the reconciliation."""
    lines = [
        f"CREATE OR REPLACE FUNCTION {FUNCTION_NAME}()",
        "RETURNS event_trigger",
        "LANGUAGE plpgsql",
        "SECURITY DEFINER",
        "AS $$",
        "DECLARE",
        "    obj record;",
        "    target_role_name name;",
        "    target_role_oid oid;",
        "    current_owner_oid oid;",
        "BEGIN",
        "    FOR obj IN SELECT * FROM pg_event_trigger_ddl_commands()",
        "    LOOP",
        "        IF obj.schema_name IS NULL THEN",
        "            CONTINUE;",
        "        END IF;",
        "",
        "        target_role_name := NULL;",
        "        SELECT target_role INTO target_role_name",
        f"        FROM {CONFIG_TABLE}",
        "        WHERE schema_name = obj.schema_name;",
        "",
        "        IF target_role_name IS NOT NULL THEN",
        "            target_role_oid := NULL;",
        "            SELECT oid INTO target_role_oid",
        "            FROM pg_roles",
        "            WHERE rolname = target_role_name;",
        "",
        "            IF target_role_oid IS NULL THEN",
        "                CONTINUE;",
        "            END IF;",
        "",
        "            current_owner_oid := NULL;",
        "",
        "            CASE obj.object_type",
        *_owner_lookup_branches(),
        "                ELSE",
        "                    NULL;",
        "            END CASE;",
        "",
        "            IF current_owner_oid IS NOT NULL AND current_owner_oid != target_role_oid THEN",
        "                CASE obj.object_type",
        *_transfer_branches(),
        "                    ELSE",
        "                        NULL;",
        "                END CASE;",
        "            END IF;",
        "        END IF;",
        "    END LOOP;",
        "END;",
        "$$",
    ]
    return "\n".join(lines)


def render_event_trigger() -> str:
    """Return the CREATE EVENT TRIGGER statement bound to the function."""
    return (
        f"CREATE EVENT TRIGGER {EVENT_TRIGGER_NAME}\n"
        "ON ddl_command_end\n"
        f"EXECUTE FUNCTION {FUNCTION_NAME}()"
    )
