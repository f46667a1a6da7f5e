"""
Query grammars translating descriptors into SQL text and parameters.

``Grammar`` carries the helpers every dialect shares (identifier wrapping,
column lists, placeholders, inserts and truncates shaped by the dialect's
capabilities).  Dialect grammars override only the statements their engine
spells differently.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, List, Mapping, Sequence

from ..dialects.base import Dialect
from ..dialects.sqlite import SQLiteDialect
from .descriptors import CompiledStatement, OrderSpec, QueryDescriptor

_ALIAS_RE = re.compile(r"\s+as\s+", re.IGNORECASE)


class Grammar:
    """
    Dialect-neutral compilation helpers.
    """

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect

    # ------------------------------------------------------------------ #
    # Identifiers
    # ------------------------------------------------------------------ #
    def wrap_value(self, value: str) -> str:
        return self.dialect.quote_identifier(value)

    def wrap(self, value: str) -> str:
        parts = _ALIAS_RE.split(value, maxsplit=1)
        if len(parts) == 2:
            return f"{self.wrap(parts[0])} as {self.wrap_value(parts[1])}"
        return ".".join(self.wrap_value(segment) for segment in value.split("."))

    def wrap_table(self, table: Any) -> str:
        # Blueprints and descriptors both expose the table name as ``table``.
        name = getattr(table, "table", table)
        return self.wrap(name)

    def columnize(self, columns: Iterable[str]) -> str:
        return ", ".join(self.wrap(column) for column in columns)

    # ------------------------------------------------------------------ #
    # Parameters
    # ------------------------------------------------------------------ #
    def parameter(self, value: Any = None) -> str:
        return self.dialect.parameter_placeholder()

    def parameterize(self, values: Iterable[Any]) -> str:
        return ", ".join(self.parameter(value) for value in values)

    @staticmethod
    def row_keys(rows: Sequence[Mapping[str, Any]]) -> List[str]:
        return list(rows[0].keys()) if rows else []

    @staticmethod
    def row_major_params(rows: Sequence[Mapping[str, Any]], keys: Sequence[str]) -> List[Any]:
        return [row[key] for row in rows for key in keys]

    # ------------------------------------------------------------------ #
    # Statements
    # ------------------------------------------------------------------ #
    def compile_orders(self, orders: Sequence[OrderSpec]) -> str | None:
        if not orders:
            return None
        return "order by " + ", ".join(
            f"{self.wrap(order.column)} {order.direction.value}" for order in orders
        )

    def compile_select(self, query: QueryDescriptor) -> CompiledStatement:
        columns = self.columnize(query.columns) if query.columns else "*"
        sql = f"select {columns} from {self.wrap_table(query.table)}"
        orders = self.compile_orders(query.orders)
        if orders:
            sql = f"{sql} {orders}"
        return CompiledStatement(sql, [])

    def compile_insert(self, query: QueryDescriptor) -> CompiledStatement:
        table = self.wrap_table(query.table)
        rows = query.rows
        if not rows:
            return CompiledStatement(f"insert into {table} default values", [])

        # Every row is assumed to share the first row's keys.
        keys = self.row_keys(rows)
        params = self.row_major_params(rows, keys)
        if len(rows) > 1 and not self.dialect.capabilities.supports_multi_row_values:
            selects = ", ".join(f"{self.parameter()} as {self.wrap(key)}" for key in keys)
            unioned = " union select ".join(selects for _ in rows)
            sql = f"insert into {table} ({self.columnize(keys)}) select {unioned}"
            return CompiledStatement(sql, params)

        values = ", ".join(f"({self.parameterize(keys)})" for _ in rows)
        sql = f"insert into {table} ({self.columnize(keys)}) values {values}"
        return CompiledStatement(sql, params)

    def compile_truncate(self, query: QueryDescriptor) -> List[CompiledStatement]:
        table = self.wrap_table(query.table)
        if self.dialect.capabilities.supports_truncate:
            return [CompiledStatement(f"truncate {table}", [])]

        statements = []
        sequence = self.dialect.sequence_table
        if sequence:
            statements.append(
                CompiledStatement(f"delete from {sequence} where name = {self.parameter()}", [query.table])
            )
        statements.append(CompiledStatement(f"delete from {table}", []))
        return statements


class SQLiteQueryGrammar(Grammar):
    """
    SQLite flavour of the query grammar.

    SQLite orders strings byte-wise, so ordering is case-folded.  The insert
    and truncate rewrites follow from the dialect's capabilities.
    """

    def __init__(self, dialect: SQLiteDialect | None = None) -> None:
        super().__init__(dialect or SQLiteDialect())

    def wrap_value(self, value: str) -> str:
        if value == "*":
            return value
        return self.dialect.quote_identifier(value)

    def compile_orders(self, orders: Sequence[OrderSpec]) -> str | None:
        if not orders:
            return None
        return "order by " + ", ".join(
            f"{self.wrap(order.column)} collate nocase {order.direction.value}" for order in orders
        )

