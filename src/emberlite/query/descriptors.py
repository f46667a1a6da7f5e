"""
Query descriptors handed to the grammars by the query builder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Sequence


class Direction(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class OrderSpec:
    column: str
    direction: Direction = Direction.ASC

    def __post_init__(self) -> None:
        if not isinstance(self.direction, Direction):
            object.__setattr__(self, "direction", Direction(str(self.direction).lower()))


@dataclass
class QueryDescriptor:
    """
    Transient description of a single query against one table.
    """

    table: str
    rows: List[Mapping[str, Any]] = field(default_factory=list)
    orders: List[OrderSpec] = field(default_factory=list)
    columns: Sequence[str] = ()

    def order_by(self, column: str, direction: Direction | str = Direction.ASC) -> "QueryDescriptor":
        self.orders.append(OrderSpec(column, direction))
        return self


@dataclass
class CompiledStatement:
    """
    SQL text paired with its positional parameters.
    """

    sql: str
    params: List[Any] = field(default_factory=list)

    def __iter__(self):
        yield self.sql
        yield self.params
