"""
Connection configuration, pooling and execution for SQLite.
"""

from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterError,
    ConnectionConfig,
    PoolClosedError,
    PoolConfig,
    PoolError,
    PoolTimeoutError,
    QueryError,
)
from .manager import ConnectionManager
from .pool import ConnectionPool, PooledConnection
from .sqlite import ExecutionMode, SQLiteAdapter, WriteResult

__all__ = [
    "ConnectionConfig",
    "PoolConfig",
    "AdapterError",
    "AdapterConfigurationError",
    "AdapterConnectionError",
    "QueryError",
    "PoolError",
    "PoolTimeoutError",
    "PoolClosedError",
    "ConnectionManager",
    "ConnectionPool",
    "PooledConnection",
    "ExecutionMode",
    "SQLiteAdapter",
    "WriteResult",
]
