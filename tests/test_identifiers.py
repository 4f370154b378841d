import pytest

from pgapprole.core.errors import ValidationError
from pgapprole.core.identifiers import (
    MAX_IDENTIFIER_BYTES,
    quote_identifier,
    quote_literal,
    validate_identifier,
)


def test_quote_identifier_wraps_and_doubles_embedded_quotes():
    assert quote_identifier("billing") == '"billing"'
    assert quote_identifier('we"ird') == '"we""ird"'


def test_quote_literal_doubles_single_quotes():
    assert quote_literal("o'brien") == "'o''brien'"


@pytest.mark.parametrize("value", ["", "bad\x00name", "x" * (MAX_IDENTIFIER_BYTES + 1)])
def test_validate_identifier_rejects_unsafe_names(value: str):
    with pytest.raises(ValidationError):
        validate_identifier(value, kind="schema")


def test_validate_identifier_counts_bytes_not_characters():
    # 32 two-byte characters = 64 bytes
    with pytest.raises(ValidationError, match="64 bytes"):
        validate_identifier("é" * 32, kind="role")


def test_validate_identifier_accepts_special_characters():
    assert validate_identifier('Mixed Case "name"', kind="role") == 'Mixed Case "name"'
