"""SQL identifier validation.

Identifiers (schema, table, alias, column names) are the only caller-chosen
text ever placed into generated SQL; values always travel as parameters.
"""
import re
from typing import Optional

from .exceptions import InvalidIdentifierError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_QUALIFIED_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def validate_identifier(value: str, role: str = "identifier") -> str:
    """Return ``value`` if it is a plain identifier, else raise."""
    if not isinstance(value, str) or not _IDENTIFIER.match(value):
        raise InvalidIdentifierError(str(value), role)
    return value


def validate_qualified_identifier(value: str, role: str = "identifier") -> str:
    """Like validate_identifier but allows one ``schema.name`` qualifier."""
    if not isinstance(value, str) or not _QUALIFIED_IDENTIFIER.match(value):
        raise InvalidIdentifierError(str(value), role)
    return value


def qualify_column(column: str, table_alias: Optional[str] = None) -> str:
    """Render ``alias.column`` (or ``column``) after validating both parts."""
    validate_identifier(column, "column")
    if table_alias:
        return f"{validate_identifier(table_alias, 'table alias')}.{column}"
    return column
