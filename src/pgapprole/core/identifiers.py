"""Identifier validation and quoting.

Names given on the command line end up inside string-built DDL. They are
validated up front and then quoted with PostgreSQL's rules: identifiers are
wrapped in double quotes with embedded double quotes doubled, literals are
wrapped in single quotes with embedded single quotes doubled.
"""

from __future__ import annotations

from pgapprole.core.errors import ValidationError

# NAMEDATALEN - 1; longer names are silently truncated by the server.
MAX_IDENTIFIER_BYTES = 63


def validate_identifier(name: str, *, kind: str = "identifier") -> str:
    """
    Return the name unchanged if it can be embedded safely, else raise.

    Raises:
        ValidationError: If the name is empty, contains a NUL character or
                         exceeds the server's identifier length.
    """
    if name is None or name == "":
        raise ValidationError(f"{kind.capitalize()} name must not be empty.")
    if "\x00" in name:
        raise ValidationError(f"{kind.capitalize()} name must not contain NUL characters.")
    size = len(name.encode("utf-8"))
    if size > MAX_IDENTIFIER_BYTES:
        raise ValidationError(
            f"{kind.capitalize()} name '{name}' is {size} bytes long "
            f"(maximum is {MAX_IDENTIFIER_BYTES})."
        )
    return name


def quote_identifier(name: str) -> str:
    """Quote a name for use as an SQL identifier."""
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    """Quote a value for use as an SQL string literal."""
    return "'" + value.replace("'", "''") + "'"
