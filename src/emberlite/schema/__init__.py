"""
Schema blueprints, DDL grammar and builder.
"""

from .blueprint import Blueprint, BlueprintError, ColumnDefinition, ColumnType
from .builder import SchemaBuilder
from .grammar import SQLiteSchemaGrammar, UnsupportedOperationError

__all__ = [
    "Blueprint",
    "BlueprintError",
    "ColumnDefinition",
    "ColumnType",
    "SchemaBuilder",
    "SQLiteSchemaGrammar",
    "UnsupportedOperationError",
]
