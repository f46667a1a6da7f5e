"""
emberlite public package initialization.

SQLite grammars for query and schema descriptors, plus an asyncio connection
manager that executes the compiled SQL.
"""

from .adapters import (  # noqa: F401
    ConnectionConfig,
    ConnectionManager,
    ExecutionMode,
    PoolConfig,
    PoolTimeoutError,
    QueryError,
    WriteResult,
)
from .query import CompiledStatement, Direction, OrderSpec, QueryDescriptor, SQLiteQueryGrammar  # noqa: F401
from .schema import (  # noqa: F401
    Blueprint,
    ColumnType,
    SchemaBuilder,
    SQLiteSchemaGrammar,
    UnsupportedOperationError,
)

__all__ = [
    "ConnectionConfig",
    "ConnectionManager",
    "ExecutionMode",
    "PoolConfig",
    "PoolTimeoutError",
    "QueryError",
    "WriteResult",
    "CompiledStatement",
    "Direction",
    "OrderSpec",
    "QueryDescriptor",
    "SQLiteQueryGrammar",
    "Blueprint",
    "ColumnType",
    "SchemaBuilder",
    "SQLiteSchemaGrammar",
    "UnsupportedOperationError",
]
