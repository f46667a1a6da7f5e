"""
SQLite database adapter built on aiosqlite.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Sequence, Union

import aiosqlite

from ..dialects.sqlite import SQLiteDialect
from ..utils import get_logger, redact_params, time_call
from .base import AdapterConnectionError, ConnectionConfig, QueryError


class ExecutionMode(str, Enum):
    READ = "read"
    INSERT = "insert"
    UPDATE = "update"

    @property
    def mutating(self) -> bool:
        return self in (ExecutionMode.INSERT, ExecutionMode.UPDATE)


@dataclass(frozen=True)
class WriteResult:
    insert_id: int | None
    changes: int


Rows = List[Dict[str, Any]]
ExecutionResult = Union[WriteResult, Rows]


class SQLiteAdapter:
    """
    Opens, drives and closes aiosqlite connections for one database file.
    """

    def __init__(self, config: ConnectionConfig, *, slow_query_ms: int = 100) -> None:
        self.config = config
        self.dialect = SQLiteDialect()
        self.slow_query_ms = slow_query_ms
        self.logger = get_logger("adapters.sqlite")

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    async def connect(self, *, wal: bool = False) -> aiosqlite.Connection:
        timeout = self.config.timeout if self.config.timeout is not None else 5.0
        try:
            handle = await aiosqlite.connect(
                self.config.filename,
                timeout=timeout,
                isolation_level=None,
            )
        except sqlite3.Error as exc:
            raise AdapterConnectionError(
                f"Could not open {self.config.descriptive_label()}: {exc}"
            ) from exc
        handle.row_factory = sqlite3.Row
        await handle.execute(self.dialect.foreign_keys_pragma)
        if wal:
            # One writer alongside many readers across pooled connections.
            await handle.execute(self.dialect.journal_pragma)
        self.logger.debug("Opened connection to %s", self.config.descriptive_label())
        return handle

    async def close(self, handle: aiosqlite.Connection) -> None:
        await handle.close()

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    async def run(
        self,
        handle: aiosqlite.Connection,
        sql: str,
        params: Sequence[Any] | None = None,
        mode: ExecutionMode = ExecutionMode.READ,
    ) -> ExecutionResult:
        params = list(params or ())
        self.logger.debug("SQL executing", extra={"sql": sql, "params": redact_params(params)})
        try:
            with time_call("sqlite.execute", self.logger, sql=sql, threshold_ms=self.slow_query_ms):
                async with handle.execute(sql, params) as cursor:
                    if mode.mutating:
                        return WriteResult(insert_id=cursor.lastrowid, changes=cursor.rowcount)
                    rows = await cursor.fetchall()
        except sqlite3.Error as exc:
            raise QueryError(str(exc), sql=sql) from exc
        return [dict(row) for row in rows]
