"""
Library example: schema, bulk inserts and ordered reads through one pool.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from emberlite.adapters import ConnectionConfig, ConnectionManager, ExecutionMode, PoolConfig
from emberlite.query import OrderSpec, QueryDescriptor, SQLiteQueryGrammar
from emberlite.schema import Blueprint, SchemaBuilder

WRITERS = [
    {"name": "Octavia Butler", "country": "USA"},
    {"name": "haruki Murakami", "country": "Japan"},
]

BOOKS = [
    ("Octavia Butler", "Kindred"),
    ("Octavia Butler", "parable of the Sower"),
    ("haruki Murakami", "Kafka on the Shore"),
]


def _writers(table: Blueprint) -> None:
    table.increments()
    table.string("name")
    table.string("country", nullable=True)
    table.unique("name")


def _books(table: Blueprint) -> None:
    table.increments()
    table.integer("writer_id")
    table.string("title")
    table.boolean("published", default=True)
    table.foreign("writer_id", on="writers")


async def bootstrap(url: str = "sqlite:///library.db") -> ConnectionManager:
    manager = await ConnectionManager().initialize(
        ConnectionConfig.from_url(url), PoolConfig(max_connections=4, min_connections=1)
    )
    builder = SchemaBuilder(manager)
    if not await builder.has_table("writers"):
        await builder.create("writers", _writers)
        await builder.create("books", _books)
    return manager


async def seed_sample_data(manager: ConnectionManager) -> Dict[str, int]:
    grammar = SQLiteQueryGrammar()
    insert = grammar.compile_insert(QueryDescriptor("writers", rows=list(WRITERS)))
    writers = await manager.execute(insert.sql, insert.params, ExecutionMode.INSERT)

    select = grammar.compile_select(QueryDescriptor("writers", columns=("id", "name")))
    ids = {row["name"]: row["id"] for row in await manager.execute(select.sql, select.params)}
    rows = [{"writer_id": ids[author], "title": title} for author, title in BOOKS]
    insert = grammar.compile_insert(QueryDescriptor("books", rows=rows))
    books = await manager.execute(insert.sql, insert.params, ExecutionMode.INSERT)
    return {"writers": writers.changes, "books": books.changes}


async def fetch_books_with_authors(manager: ConnectionManager) -> List[Dict[str, Any]]:
    grammar = SQLiteQueryGrammar()
    orders = grammar.compile_orders([OrderSpec("w.name"), OrderSpec("b.title")])
    sql = (
        f"select {grammar.columnize(['b.title', 'w.name as author'])} "
        f"from {grammar.wrap_table('books as b')} "
        f"join {grammar.wrap_table('writers as w')} "
        f"on {grammar.wrap('w.id')} = {grammar.wrap('b.writer_id')} {orders}"
    )
    return await manager.execute(sql)


async def reset(manager: ConnectionManager) -> None:
    grammar = SQLiteQueryGrammar()
    statements = grammar.compile_truncate(QueryDescriptor("books"))
    statements += grammar.compile_truncate(QueryDescriptor("writers"))
    await manager.execute_statements(statements)


async def _demo(url: str) -> List[Dict[str, Any]]:
    manager = await bootstrap(url)
    try:
        await reset(manager)
        await seed_sample_data(manager)
        return await fetch_books_with_authors(manager)
    finally:
        await manager.shutdown()


def run_demo(url: str = "sqlite:///library.db") -> List[Dict[str, Any]]:
    return asyncio.run(_demo(url))


if __name__ == "__main__":
    for entry in run_demo():
        print(f"{entry['author']}: {entry['title']}")
