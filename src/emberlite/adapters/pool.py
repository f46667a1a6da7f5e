"""
Bounded asyncio connection pool.

Released connections are handed straight to the longest waiting caller, so
waiters are served strictly first-in-first-out and an idle connection is
never raced for by a newcomer.
"""

from __future__ import annotations

import asyncio
import itertools
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Dict, Set

from ..utils import get_logger
from .base import AdapterConnectionError, PoolClosedError, PoolConfig, PoolError, PoolTimeoutError

_cid_counter = itertools.count(1)


def _next_cid() -> str:
    return f"__cid{next(_cid_counter)}"


@dataclass(eq=False)
class PooledConnection:
    handle: Any
    id: str = field(default_factory=_next_cid)
    in_use: bool = False
    created_at: float = field(default_factory=time.monotonic)
    released_at: float = field(default_factory=time.monotonic)

    def idle_for(self, now: float | None = None) -> float:
        return (now if now is not None else time.monotonic()) - self.released_at


Factory = Callable[[], Awaitable[Any]]
Destroyer = Callable[[Any], Awaitable[None]]


class ConnectionPool:
    """
    Keeps between ``min_connections`` and ``max_connections`` connections.
    """

    def __init__(self, create: Factory, destroy: Destroyer, config: PoolConfig | None = None) -> None:
        self._create = create
        self._destroy = destroy
        self.config = config or PoolConfig()
        self.logger = get_logger("adapters.pool")
        self._connections: Dict[str, PooledConnection] = {}
        self._idle: Deque[PooledConnection] = deque()
        self._waiters: Deque[asyncio.Future] = deque()
        # Slots reserved for connections still being opened; `_spawned` is the
        # share of those opened in the background on behalf of the queue.
        self._pending = 0
        self._spawned = 0
        self._started = False
        self._closed = False
        self._reaper: asyncio.Task | None = None
        self._background: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #
    @property
    def size(self) -> int:
        """Live connections plus ones still being opened."""
        return len(self._connections) + self._pending

    @property
    def idle_count(self) -> int:
        return len(self._idle)

    @property
    def in_use_count(self) -> int:
        return sum(1 for conn in self._connections.values() if conn.in_use)

    @property
    def waiting(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------ #
    # Acquire / release
    # ------------------------------------------------------------------ #
    async def acquire(self) -> PooledConnection:
        if self._closed:
            raise PoolClosedError("Connection pool has been shut down.")
        self._start()

        if self._idle:
            return self._checkout(self._idle.pop())

        # Queued callers keep their place; newcomers only open when nobody waits.
        if not self.waiting and self.size < self.config.max_connections:
            self._pending += 1
            try:
                conn = await self._open()
            except BaseException:
                # The reserved slot is free again; let a queued caller use it.
                self._grow_for_waiters()
                raise
            self._ensure_minimum()
            return self._checkout(conn)

        return await self._wait()

    def release(self, conn: PooledConnection) -> None:
        if self._connections.get(conn.id) is not conn:
            raise PoolError(f"Connection {conn.id} does not belong to this pool.")
        if not conn.in_use:
            raise PoolError(f"Connection {conn.id} was released twice.")
        if self._closed:
            conn.in_use = False
            self._spawn(self.destroy(conn))
            return
        self._checkin(conn)

    async def destroy(self, conn: PooledConnection) -> None:
        """
        Close a connection and drop it from the pool.
        """

        if self._connections.pop(conn.id, None) is None:
            return
        try:
            self._idle.remove(conn)
        except ValueError:
            pass
        conn.in_use = False
        try:
            await self._destroy(conn.handle)
        finally:
            self.logger.debug("Destroyed connection %s", conn.id)
            self._grow_for_waiters()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    async def evict_idle(self) -> int:
        """
        Close idle connections past the idle timeout, never below the minimum.
        """

        timeout = self.config.idle_timeout_ms / 1000
        now = time.monotonic()
        expired = [conn for conn in list(self._idle) if conn.idle_for(now) >= timeout]
        evicted = 0
        for conn in expired:
            if conn not in self._idle:
                continue
            if len(self._connections) <= self.config.min_connections:
                break
            await self.destroy(conn)
            evicted += 1
        if evicted:
            self.logger.debug("Evicted %s idle connection(s)", evicted)
        return evicted

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._reaper is not None:
            self._reaper.cancel()
            try:
                await self._reaper
            except asyncio.CancelledError:
                pass
            self._reaper = None

        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_exception(PoolClosedError("Connection pool has been shut down."))

        for conn in list(self._idle):
            await self.destroy(conn)
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
        self.logger.debug("Pool closed; %s connection(s) still checked out", self.in_use_count)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _start(self) -> None:
        if self._started:
            return
        self._started = True
        self._reaper = asyncio.get_running_loop().create_task(self._reap())

    async def _open(self) -> PooledConnection:
        """
        Open a connection into a slot the caller already reserved in `_pending`.
        """

        try:
            handle = await self._create()
        except AdapterConnectionError:
            raise
        except Exception as exc:
            raise AdapterConnectionError(f"Could not create pooled connection: {exc}") from exc
        finally:
            self._pending -= 1
        conn = PooledConnection(handle)
        self._connections[conn.id] = conn
        self.logger.debug("Created connection %s (%s/%s)", conn.id, self.size, self.config.max_connections)
        return conn

    def _checkout(self, conn: PooledConnection) -> PooledConnection:
        conn.in_use = True
        return conn

    def _checkin(self, conn: PooledConnection) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                conn.in_use = True
                waiter.set_result(conn)
                return
        conn.in_use = False
        conn.released_at = time.monotonic()
        self._idle.append(conn)

    async def _wait(self) -> PooledConnection:
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        self._grow_for_waiters()
        timeout_ms = self.config.acquire_timeout_ms
        timeout = timeout_ms / 1000 if timeout_ms is not None else None
        try:
            return await asyncio.wait_for(waiter, timeout)
        except BaseException as exc:
            try:
                self._waiters.remove(waiter)
            except ValueError:
                pass
            if waiter.done() and not waiter.cancelled() and waiter.exception() is None:
                # Handed a connection just as the wait was abandoned.
                self._checkin(waiter.result())
            if isinstance(exc, asyncio.TimeoutError):
                raise PoolTimeoutError(
                    f"Timed out after {timeout_ms}ms waiting for a connection "
                    f"({self.config.max_connections} in use)."
                ) from None
            raise

    def _grow_for_waiters(self) -> None:
        if self._closed:
            return
        deficit = min(
            self.waiting - self._spawned,
            self.config.max_connections - self.size,
        )
        for _ in range(max(deficit, 0)):
            self._spawn_open()

    def _ensure_minimum(self) -> None:
        if self._closed:
            return
        for _ in range(max(self.config.min_connections - self.size, 0)):
            self._spawn_open()

    def _spawn_open(self) -> None:
        # Reserve before the task runs so concurrent acquires see the slot as taken.
        self._pending += 1
        self._spawned += 1
        self._spawn(self._open_into_pool())

    async def _open_into_pool(self) -> None:
        try:
            conn = await self._open()
        except AdapterConnectionError as exc:
            self._spawned -= 1
            self.logger.warning("Background connection creation failed: %s", exc)
            self._fail_first_waiter(exc)
            self._grow_for_waiters()
            return
        except BaseException:
            self._spawned -= 1
            raise
        self._spawned -= 1
        if self._closed:
            await self.destroy(conn)
            return
        self._checkin(conn)

    def _fail_first_waiter(self, exc: Exception) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_exception(exc)
                return

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _reap(self) -> None:
        interval = self.config.reap_interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            try:
                await self.evict_idle()
            except Exception:
                self.logger.exception("Idle eviction failed")
            self._ensure_minimum()
