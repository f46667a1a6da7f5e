"""
Connection manager owning either a pool or one long-lived connection.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, List, Optional, Sequence, Union

from ..query.descriptors import CompiledStatement
from ..utils import correlation_scope, get_logger
from .base import ConnectionConfig, PoolConfig, PoolError
from .pool import ConnectionPool, PooledConnection
from .sqlite import ExecutionMode, ExecutionResult, SQLiteAdapter


class ConnectionManager:
    """
    Hands out SQLite connections and runs compiled statements on them.

    Construct it, ``await initialize(...)`` it, and ``await shutdown()`` when
    done (or use it as an async context manager).  Without a connection
    config the manager stays disabled and every operation is a no-op.
    """

    def __init__(self) -> None:
        self.logger = get_logger("adapters.manager")
        self.adapter: Optional[SQLiteAdapter] = None
        self.pool: Optional[ConnectionPool] = None
        self._single: Optional[PooledConnection] = None
        self._single_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.adapter is not None

    @property
    def pooled(self) -> bool:
        return self.pool is not None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    async def initialize(
        self,
        connection_config: Optional[ConnectionConfig],
        pool_config: Union[PoolConfig, bool, None] = None,
    ) -> "ConnectionManager":
        if connection_config is None:
            self.logger.warning(
                "No connection configuration supplied; connection manager stays disabled."
            )
            return self
        if self.enabled:
            raise PoolError("Connection manager is already initialized.")

        self.adapter = SQLiteAdapter(connection_config)
        if pool_config is False or (isinstance(pool_config, PoolConfig) and not pool_config.enabled):
            handle = await self.adapter.connect()
            self._single = PooledConnection(handle)
            self.logger.info(
                "Using single connection %s to %s",
                self._single.id,
                connection_config.descriptive_label(),
            )
            return self

        config = pool_config if isinstance(pool_config, PoolConfig) else PoolConfig()
        adapter = self.adapter

        async def create() -> Any:
            return await adapter.connect(wal=True)

        self.pool = ConnectionPool(create, adapter.close, config)
        self.logger.info(
            "Pool configured for %s (min=%s, max=%s, idle_timeout_ms=%s)",
            connection_config.descriptive_label(),
            config.min_connections,
            config.max_connections,
            config.idle_timeout_ms,
        )
        return self

    async def shutdown(self) -> None:
        # The closed pool stays attached so late releases close their connection.
        if self.pool is not None:
            await self.pool.close()
        if self._single is not None and self.adapter is not None:
            async with self._single_lock:
                await self.adapter.close(self._single.handle)
            self._single = None
        self.adapter = None

    async def __aenter__(self) -> "ConnectionManager":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    # ------------------------------------------------------------------ #
    # Acquisition
    # ------------------------------------------------------------------ #
    async def acquire(self) -> Optional[PooledConnection]:
        if self.pool is not None:
            return await self.pool.acquire()
        if self._single is not None:
            await self._single_lock.acquire()
            self._single.in_use = True
            return self._single
        return None

    def release(self, connection: Optional[PooledConnection]) -> None:
        if connection is None:
            return
        if self.pool is not None:
            self.pool.release(connection)
            return
        if connection is not self._single or not connection.in_use:
            raise PoolError(f"Connection {connection.id} is not checked out from this manager.")
        connection.in_use = False
        self._single_lock.release()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[Optional[PooledConnection]]:
        conn = await self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    async def execute(
        self,
        sql: str,
        params: Sequence[Any] | None = None,
        mode: Union[ExecutionMode, str] = ExecutionMode.READ,
    ) -> Optional[ExecutionResult]:
        if not self.enabled:
            self.logger.debug("Connection manager disabled; skipping statement")
            return None
        mode = ExecutionMode(mode)
        with correlation_scope():
            async with self.connection() as conn:
                return await self.adapter.run(conn.handle, sql, params, mode)

    async def execute_statements(
        self,
        statements: Iterable[CompiledStatement],
        mode: Union[ExecutionMode, str] = ExecutionMode.READ,
    ) -> List[ExecutionResult]:
        """
        Run several statements in order on one connection.
        """

        if not self.enabled:
            self.logger.debug("Connection manager disabled; skipping statements")
            return []
        mode = ExecutionMode(mode)
        results: List[ExecutionResult] = []
        with correlation_scope():
            async with self.connection() as conn:
                for statement in statements:
                    results.append(
                        await self.adapter.run(conn.handle, statement.sql, statement.params, mode)
                    )
        return results
