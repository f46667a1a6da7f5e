import asyncio

import pytest

from emberlite.adapters import (
    AdapterConnectionError,
    ConnectionPool,
    PoolClosedError,
    PoolConfig,
    PoolError,
    PoolTimeoutError,
)


class FakeDriver:
    """Hands out plain objects instead of database handles."""

    def __init__(self, fail: bool = False) -> None:
        self.created: list[object] = []
        self.destroyed: list[object] = []
        self.fail = fail

    async def create(self) -> object:
        await asyncio.sleep(0)
        if self.fail:
            raise RuntimeError("disk on fire")
        handle = object()
        self.created.append(handle)
        return handle

    async def destroy(self, handle: object) -> None:
        self.destroyed.append(handle)


def make_pool(driver: FakeDriver, **settings) -> ConnectionPool:
    settings.setdefault("min_connections", 0)
    return ConnectionPool(driver.create, driver.destroy, PoolConfig(**settings))


async def wait_until(predicate, attempts: int = 100) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


def test_connection_ids_are_unique():
    async def scenario():
        driver = FakeDriver()
        pool = make_pool(driver, max_connections=3)
        conns = [await pool.acquire() for _ in range(3)]
        for conn in conns:
            pool.release(conn)
        await pool.close()
        return conns

    conns = asyncio.run(scenario())
    ids = [conn.id for conn in conns]
    assert len(set(ids)) == 3
    assert all(cid.startswith("__cid") for cid in ids)


def test_idle_connection_is_reused():
    async def scenario():
        driver = FakeDriver()
        pool = make_pool(driver, max_connections=2)
        first = await pool.acquire()
        pool.release(first)
        second = await pool.acquire()
        pool.release(second)
        await pool.close()
        return driver, first, second

    driver, first, second = asyncio.run(scenario())
    assert first is second
    assert len(driver.created) == 1


def test_waiters_are_served_fifo():
    async def scenario():
        driver = FakeDriver()
        pool = make_pool(driver, max_connections=1)
        held = await pool.acquire()
        order: list[str] = []

        async def worker(name: str) -> None:
            conn = await pool.acquire()
            order.append(name)
            await asyncio.sleep(0)
            pool.release(conn)

        tasks = [asyncio.create_task(worker(name)) for name in ("a", "b", "c")]
        await wait_until(lambda: pool.waiting == 3)
        assert order == []
        pool.release(held)
        await asyncio.gather(*tasks)
        await pool.close()
        return order, driver

    order, driver = asyncio.run(scenario())
    assert order == ["a", "b", "c"]
    assert len(driver.created) == 1


def test_pool_never_exceeds_max():
    async def scenario():
        driver = FakeDriver()
        pool = make_pool(driver, max_connections=2)
        peak = 0

        async def worker() -> None:
            nonlocal peak
            conn = await pool.acquire()
            try:
                peak = max(peak, pool.in_use_count)
                assert pool.size <= 2
                await asyncio.sleep(0.01)
            finally:
                pool.release(conn)

        await asyncio.gather(*(worker() for _ in range(6)))
        await pool.close()
        return peak, driver

    peak, driver = asyncio.run(scenario())
    assert peak == 2
    assert len(driver.created) == 2


def test_acquire_timeout_leaves_pool_consistent():
    async def scenario():
        driver = FakeDriver()
        pool = make_pool(driver, max_connections=1, acquire_timeout_ms=20)
        held = await pool.acquire()
        with pytest.raises(PoolTimeoutError):
            await pool.acquire()
        assert pool.waiting == 0
        pool.release(held)
        again = await pool.acquire()
        pool.release(again)
        await pool.close()
        return held, again

    held, again = asyncio.run(scenario())
    assert held is again


def test_cancelled_waiter_does_not_consume_connection():
    async def scenario():
        driver = FakeDriver()
        pool = make_pool(driver, max_connections=1)
        held = await pool.acquire()
        task = asyncio.create_task(pool.acquire())
        await wait_until(lambda: pool.waiting == 1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        pool.release(held)
        idle = pool.idle_count
        await pool.close()
        return idle

    assert asyncio.run(scenario()) == 1


def test_double_release_and_foreign_release_raise():
    async def scenario():
        driver = FakeDriver()
        pool = make_pool(driver, max_connections=1)
        other = make_pool(FakeDriver(), max_connections=1)
        conn = await pool.acquire()
        pool.release(conn)
        with pytest.raises(PoolError):
            pool.release(conn)
        stranger = await other.acquire()
        with pytest.raises(PoolError):
            pool.release(stranger)
        other.release(stranger)
        await pool.close()
        await other.close()

    asyncio.run(scenario())


def test_minimum_is_filled_lazily_after_first_acquire():
    async def scenario():
        driver = FakeDriver()
        pool = ConnectionPool(
            driver.create, driver.destroy, PoolConfig(max_connections=5, min_connections=3)
        )
        await asyncio.sleep(0)
        before = len(driver.created)
        conn = await pool.acquire()
        await wait_until(lambda: pool.idle_count == 2)
        idle = pool.idle_count
        pool.release(conn)
        await pool.close()
        return before, idle

    before, idle = asyncio.run(scenario())
    assert before == 0
    assert idle == 2


def test_idle_eviction_stops_at_minimum():
    async def scenario():
        driver = FakeDriver()
        pool = make_pool(driver, max_connections=3, min_connections=1, idle_timeout_ms=0)
        conns = [await pool.acquire() for _ in range(3)]
        for conn in conns:
            pool.release(conn)
        evicted = await pool.evict_idle()
        remaining = pool.size
        await pool.close()
        return evicted, remaining, driver

    evicted, remaining, driver = asyncio.run(scenario())
    assert evicted == 2
    assert remaining == 1
    assert len(driver.destroyed) == 3


def test_idle_eviction_skips_fresh_connections():
    async def scenario():
        driver = FakeDriver()
        pool = make_pool(driver, max_connections=2, idle_timeout_ms=60000)
        conn = await pool.acquire()
        pool.release(conn)
        evicted = await pool.evict_idle()
        await pool.close()
        return evicted

    assert asyncio.run(scenario()) == 0


def test_background_sweep_evicts_idle_connections():
    async def scenario():
        driver = FakeDriver()
        pool = make_pool(driver, max_connections=2, idle_timeout_ms=5, reap_interval_ms=5)
        conn = await pool.acquire()
        pool.release(conn)
        for _ in range(100):
            if pool.size == 0:
                break
            await asyncio.sleep(0.005)
        size = pool.size
        await pool.close()
        return size

    assert asyncio.run(scenario()) == 0


def test_destroy_wakes_waiter_with_new_connection():
    async def scenario():
        driver = FakeDriver()
        pool = make_pool(driver, max_connections=1)
        held = await pool.acquire()
        task = asyncio.create_task(pool.acquire())
        await wait_until(lambda: pool.waiting == 1)
        await pool.destroy(held)
        replacement = await asyncio.wait_for(task, 1)
        pool.release(replacement)
        await pool.close()
        return held, replacement, driver

    held, replacement, driver = asyncio.run(scenario())
    assert replacement is not held
    assert len(driver.created) == 2


def test_minimum_top_up_counts_against_max():
    async def scenario():
        driver = FakeDriver()
        pool = ConnectionPool(
            driver.create, driver.destroy, PoolConfig(max_connections=2, min_connections=2)
        )
        first = await pool.acquire()
        second = await pool.acquire()
        sizes = []
        for _ in range(20):
            sizes.append(pool.size)
            await asyncio.sleep(0)
        pool.release(first)
        pool.release(second)
        await pool.close()
        return sizes, driver

    sizes, driver = asyncio.run(scenario())
    assert max(sizes) <= 2
    assert len(driver.created) == 2


def test_newcomer_queues_behind_waiter_after_destroy():
    async def scenario():
        driver = FakeDriver()
        pool = make_pool(driver, max_connections=1)
        held = await pool.acquire()
        waiter = asyncio.create_task(pool.acquire())
        await wait_until(lambda: pool.waiting == 1)
        await pool.destroy(held)
        newcomer = asyncio.create_task(pool.acquire())
        first = await asyncio.wait_for(waiter, 1)
        newcomer_blocked = not newcomer.done()
        size = pool.size
        pool.release(first)
        second = await asyncio.wait_for(newcomer, 1)
        pool.release(second)
        await pool.close()
        return first, second, newcomer_blocked, size, driver

    first, second, newcomer_blocked, size, driver = asyncio.run(scenario())
    assert newcomer_blocked
    assert size == 1
    assert first is second
    assert len(driver.created) == 2


def test_close_fails_waiters_and_rejects_acquire():
    async def scenario():
        driver = FakeDriver()
        pool = make_pool(driver, max_connections=1)
        held = await pool.acquire()
        task = asyncio.create_task(pool.acquire())
        await wait_until(lambda: pool.waiting == 1)
        await pool.close()
        with pytest.raises(PoolClosedError):
            await task
        with pytest.raises(PoolClosedError):
            await pool.acquire()
        pool.release(held)
        await wait_until(lambda: held.handle in driver.destroyed)

    asyncio.run(scenario())


def test_failed_creation_frees_capacity():
    async def scenario():
        driver = FakeDriver(fail=True)
        pool = make_pool(driver, max_connections=1)
        with pytest.raises(AdapterConnectionError):
            await pool.acquire()
        size = pool.size
        driver.fail = False
        conn = await pool.acquire()
        pool.release(conn)
        await pool.close()
        return size

    assert asyncio.run(scenario()) == 0
