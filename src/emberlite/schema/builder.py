"""
Schema builder running blueprints through the grammar and a connection manager.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from ..adapters.manager import ConnectionManager
from ..query.descriptors import CompiledStatement
from ..utils import get_logger
from .blueprint import Blueprint
from .grammar import SQLiteSchemaGrammar

BlueprintCallback = Callable[[Blueprint], None]


class SchemaBuilder:
    """
    Compiles blueprints to DDL and applies them.

    Every statement of a blueprint is compiled before the first one runs, so a
    command the dialect cannot express aborts the whole change up front.
    """

    def __init__(self, manager: ConnectionManager, grammar: Optional[SQLiteSchemaGrammar] = None) -> None:
        self.manager = manager
        self.grammar = grammar or SQLiteSchemaGrammar()
        self.logger = get_logger("schema.builder")

    def to_sql(self, blueprint: Blueprint) -> List[CompiledStatement]:
        return self.grammar.to_sql(blueprint)

    async def build(self, blueprint: Blueprint) -> List[CompiledStatement]:
        statements = self.to_sql(blueprint)
        self.logger.debug("Applying %s statement(s) to %s", len(statements), blueprint.table)
        await self.manager.execute_statements(statements)
        return statements

    async def create(self, table: str, callback: BlueprintCallback) -> List[CompiledStatement]:
        blueprint = Blueprint(table).create()
        callback(blueprint)
        return await self.build(blueprint)

    async def table(self, table: str, callback: BlueprintCallback) -> List[CompiledStatement]:
        blueprint = Blueprint(table)
        callback(blueprint)
        return await self.build(blueprint)

    async def drop(self, table: str) -> List[CompiledStatement]:
        return await self.build(Blueprint(table).drop())

    async def drop_if_exists(self, table: str) -> List[CompiledStatement]:
        return await self.build(Blueprint(table).drop_if_exists())

    async def rename(self, table: str, to: str) -> List[CompiledStatement]:
        return await self.build(Blueprint(table).rename(to))

    async def has_table(self, table: str) -> bool:
        statement = self.grammar.compile_table_exists(table)
        rows = await self.manager.execute(statement.sql, statement.params)
        return bool(rows)
