"""
SQLite dialect implementation.
"""

from __future__ import annotations

from typing import Final

from .base import DialectCapabilities


class SQLiteDialect:
    """
    SQLite dialect using qmark placeholders and minimal capabilities.
    """

    name: Final[str] = "SQLite"
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        supports_multi_row_values=False,
        supports_truncate=False,
        supports_drop_column=False,
    )

    # Engine bookkeeping tables and pragmas.
    catalog_table: Final[str] = "sqlite_master"
    sequence_table: Final[str] = "sqlite_sequence"
    journal_pragma: Final[str] = "PRAGMA journal_mode=WAL;"
    foreign_keys_pragma: Final[str] = "PRAGMA foreign_keys = ON"

    def quote_identifier(self, identifier: str) -> str:
        escaped = identifier.replace('"', '""')
        return f'"{escaped}"'

    def parameter_placeholder(self, position: int | None = None) -> str:
        return "?"
