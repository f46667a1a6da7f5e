"""
SQLite DDL compilation for blueprints.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from ..query.descriptors import CompiledStatement
from ..query.grammar import SQLiteQueryGrammar
from ..utils import get_logger
from .blueprint import (
    AddColumns,
    Blueprint,
    ColumnDefinition,
    ColumnType,
    Command,
    CreateTable,
    DropColumn,
    DropIndex,
    DropTable,
    DropTableIfExists,
    DropUnique,
    Foreign,
    Index,
    Primary,
    Rename,
    Unique,
)


class UnsupportedOperationError(NotImplementedError):
    """Raised for schema changes the dialect cannot express."""


SQLITE_TYPES: Dict[ColumnType, str] = {
    ColumnType.STRING: "varchar",
    ColumnType.TEXT: "text",
    ColumnType.INTEGER: "integer",
    ColumnType.FLOAT: "float",
    # No fixed-point type; precision and scale are dropped.
    ColumnType.DECIMAL: "float",
    ColumnType.BOOLEAN: "tinyint",
    ColumnType.ENUM: "varchar",
    ColumnType.DATE: "date",
    ColumnType.DATETIME: "datetime",
    ColumnType.TIME: "time",
    ColumnType.TIMESTAMP: "datetime",
    ColumnType.BINARY: "blob",
}


class SQLiteSchemaGrammar:
    """
    Produces SQLite DDL for blueprints.

    Quoting and identifier helpers come from the query grammar handed in at
    construction.  SQLite only accepts primary and foreign keys while a table
    is being created, so both are folded into ``create table``.
    """

    def __init__(self, query_grammar: SQLiteQueryGrammar | None = None) -> None:
        self.query_grammar = query_grammar or SQLiteQueryGrammar()
        self.dialect = self.query_grammar.dialect
        self.logger = get_logger("schema.grammar")
        self.modifiers: List[Callable[[Blueprint, ColumnDefinition], Optional[str]]] = [
            self.modify_nullable,
            self.modify_default,
            self.modify_increment,
        ]

    # Shared quoting primitives ---------------------------------------- #
    def wrap(self, value: str) -> str:
        return self.query_grammar.wrap(value)

    def wrap_table(self, table) -> str:
        return self.query_grammar.wrap_table(table)

    def columnize(self, columns) -> str:
        return self.query_grammar.columnize(columns)

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #
    def to_sql(self, blueprint: Blueprint) -> List[CompiledStatement]:
        statements: List[CompiledStatement] = []
        for command in blueprint.commands:
            compiled = self.compile_command(blueprint, command)
            if compiled is None:
                continue
            if isinstance(compiled, str):
                compiled = [compiled]
            statements.extend(CompiledStatement(sql, []) for sql in compiled)
        return statements

    def compile_command(self, blueprint: Blueprint, command: Command) -> str | List[str] | None:
        if isinstance(command, CreateTable):
            return self.compile_create_table(blueprint, command)
        if isinstance(command, AddColumns):
            return self.compile_add(blueprint, command)
        if isinstance(command, Unique):
            return self.compile_unique(blueprint, command)
        if isinstance(command, Index):
            return self.compile_index(blueprint, command)
        if isinstance(command, Foreign):
            return self.compile_foreign(blueprint, command)
        if isinstance(command, Primary):
            # Folded into ``create table``.
            return None
        if isinstance(command, Rename):
            return self.compile_rename(blueprint, command)
        if isinstance(command, DropTable):
            return self.compile_drop_table(blueprint, command)
        if isinstance(command, DropTableIfExists):
            return self.compile_drop_table_if_exists(blueprint, command)
        if isinstance(command, DropColumn):
            return self.compile_drop_column(blueprint, command)
        if isinstance(command, DropUnique):
            return self.compile_drop_unique(blueprint, command)
        if isinstance(command, DropIndex):
            return self.compile_drop_index(blueprint, command)
        raise TypeError(f"Unknown schema command {command!r}")

    # ------------------------------------------------------------------ #
    # Tables
    # ------------------------------------------------------------------ #
    def compile_table_exists(self, table: str) -> CompiledStatement:
        catalog = self.dialect.catalog_table
        return CompiledStatement(f"select * from {catalog} where type = 'table' and name = ?", [table])

    def compile_create_table(self, blueprint: Blueprint, command: CreateTable | None = None) -> str:
        columns = ", ".join(self.get_columns(blueprint))
        sql = f"create table {self.wrap_table(blueprint)} ({columns}"
        sql += self.add_foreign_keys(blueprint)
        sql += self.add_primary_keys(blueprint)
        sql += ")"
        return sql

    def add_foreign_keys(self, blueprint: Blueprint) -> str:
        sql = ""
        for foreign in blueprint.commands_of(Foreign):
            on = self.wrap_table(foreign.on)
            columns = self.columnize(foreign.columns)
            on_columns = self.columnize(foreign.references)
            sql += f", foreign key({columns}) references {on}({on_columns})"
        return sql

    def add_primary_keys(self, blueprint: Blueprint) -> str:
        primary = blueprint.command_of(Primary)
        if primary is None:
            return ""
        return f", primary key ({self.columnize(primary.columns)})"

    def compile_add(self, blueprint: Blueprint, command: AddColumns | None = None) -> List[str]:
        table = self.wrap_table(blueprint)
        return [f"alter table {table} add column {column}" for column in self.get_columns(blueprint)]

    def compile_rename(self, blueprint: Blueprint, command: Rename) -> str:
        return f"alter table {self.wrap_table(blueprint)} rename to {self.wrap_table(command.to)}"

    def compile_drop_table(self, blueprint: Blueprint, command: DropTable | None = None) -> str:
        table = self.wrap_table(blueprint)
        self.logger.warning(
            "DROP TABLE generated for %s; confirm destructive migration before applying.", table
        )
        return f"drop table {table}"

    def compile_drop_table_if_exists(
        self, blueprint: Blueprint, command: DropTableIfExists | None = None
    ) -> str:
        table = self.wrap_table(blueprint)
        self.logger.warning(
            "DROP TABLE generated for %s; confirm destructive migration before applying.", table
        )
        return f"drop table if exists {table}"

    def compile_drop_column(self, blueprint: Blueprint, command: DropColumn) -> List[str]:
        if not self.dialect.capabilities.supports_drop_column:
            raise UnsupportedOperationError(f"Drop column not supported for {self.dialect.name}.")
        table = self.wrap_table(blueprint)
        return [f"alter table {table} drop column {self.wrap(column)}" for column in command.columns]

    # ------------------------------------------------------------------ #
    # Indexes and keys
    # ------------------------------------------------------------------ #
    def compile_unique(self, blueprint: Blueprint, command: Unique) -> str:
        columns = self.columnize(command.columns)
        return f"create unique index {command.index} on {self.wrap_table(blueprint)} ({columns})"

    def compile_index(self, blueprint: Blueprint, command: Index) -> str:
        columns = self.columnize(command.columns)
        return f"create index {command.index} on {self.wrap_table(blueprint)} ({columns})"

    def compile_foreign(self, blueprint: Blueprint, command: Foreign) -> None:
        # Foreign keys only exist as part of ``create table``.
        return None

    def compile_drop_unique(self, blueprint: Blueprint, command: DropUnique) -> str:
        return f"drop index {command.index}"

    def compile_drop_index(self, blueprint: Blueprint, command: DropIndex) -> str:
        return f"drop index {command.index}"

    # ------------------------------------------------------------------ #
    # Columns
    # ------------------------------------------------------------------ #
    def get_columns(self, blueprint: Blueprint) -> List[str]:
        columns: List[str] = []
        for column in blueprint.columns:
            sql = f"{self.wrap(column.name)} {self.get_type(column)}"
            for modifier in self.modifiers:
                sql += modifier(blueprint, column) or ""
            columns.append(sql)
        return columns

    def get_type(self, column: ColumnDefinition) -> str:
        return SQLITE_TYPES[column.type]

    def modify_nullable(self, blueprint: Blueprint, column: ColumnDefinition) -> str:
        return " null" if column.nullable else " not null"

    def modify_default(self, blueprint: Blueprint, column: ColumnDefinition) -> Optional[str]:
        if column.default is None:
            return None
        return f" default '{self.get_default_value(column.default)}'"

    def modify_increment(self, blueprint: Blueprint, column: ColumnDefinition) -> Optional[str]:
        if column.type is ColumnType.INTEGER and column.auto_increment:
            return " primary key autoincrement"
        return None

    @staticmethod
    def get_default_value(value) -> str:
        if isinstance(value, bool):
            return "1" if value else "0"
        return str(value).replace("'", "''")
