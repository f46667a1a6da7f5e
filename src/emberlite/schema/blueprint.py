"""
Blueprint describing the desired shape of one table.

A blueprint is an ordered list of column definitions plus an ordered list of
commands.  Commands form a closed set of variants; the schema grammar
dispatches over every one of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple, Type, TypeVar, Union, get_args


class BlueprintError(ValueError):
    """Raised when a blueprint is assembled inconsistently."""


class ColumnType(str, Enum):
    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    ENUM = "enum"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    TIMESTAMP = "timestamp"
    BINARY = "binary"


@dataclass
class ColumnDefinition:
    name: str
    type: ColumnType
    nullable: bool = False
    default: Any = None
    auto_increment: bool = False
    # Carried for dialects that use them; SQLite ignores all four.
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    allowed: Tuple[str, ...] = ()


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #
@dataclass(frozen=True)
class CreateTable:
    pass


@dataclass(frozen=True)
class AddColumns:
    pass


@dataclass(frozen=True)
class Unique:
    index: str
    columns: Tuple[str, ...]


@dataclass(frozen=True)
class Index:
    index: str
    columns: Tuple[str, ...]


@dataclass(frozen=True)
class Foreign:
    index: str
    columns: Tuple[str, ...]
    on: str
    references: Tuple[str, ...]


@dataclass(frozen=True)
class Primary:
    index: str
    columns: Tuple[str, ...]


@dataclass(frozen=True)
class Rename:
    to: str


@dataclass(frozen=True)
class DropTable:
    pass


@dataclass(frozen=True)
class DropTableIfExists:
    pass


@dataclass(frozen=True)
class DropColumn:
    columns: Tuple[str, ...]


@dataclass(frozen=True)
class DropUnique:
    index: str


@dataclass(frozen=True)
class DropIndex:
    index: str


Command = Union[
    CreateTable,
    AddColumns,
    Unique,
    Index,
    Foreign,
    Primary,
    Rename,
    DropTable,
    DropTableIfExists,
    DropColumn,
    DropUnique,
    DropIndex,
]

COMMAND_TYPES: Tuple[type, ...] = get_args(Command)

C = TypeVar("C")


def _as_tuple(columns: Union[str, Sequence[str]]) -> Tuple[str, ...]:
    if isinstance(columns, str):
        return (columns,)
    return tuple(columns)


@dataclass
class Blueprint:
    """
    Transient schema description for a single table.
    """

    table: str
    columns: List[ColumnDefinition] = field(default_factory=list)
    commands: List[Command] = field(default_factory=list)

    # ------------------------------------------------------------------ #
    # Command lookup
    # ------------------------------------------------------------------ #
    def commands_of(self, kind: Type[C]) -> List[C]:
        return [command for command in self.commands if isinstance(command, kind)]

    def command_of(self, kind: Type[C]) -> Optional[C]:
        matches = self.commands_of(kind)
        return matches[0] if matches else None

    def creating(self) -> bool:
        return self.command_of(CreateTable) is not None

    # ------------------------------------------------------------------ #
    # Table commands
    # ------------------------------------------------------------------ #
    def create(self) -> "Blueprint":
        self.commands = [c for c in self.commands if not isinstance(c, AddColumns)]
        self.commands.insert(0, CreateTable())
        return self

    def drop(self) -> "Blueprint":
        self.commands.append(DropTable())
        return self

    def drop_if_exists(self) -> "Blueprint":
        self.commands.append(DropTableIfExists())
        return self

    def rename(self, to: str) -> "Blueprint":
        self.commands.append(Rename(to))
        return self

    def drop_column(self, columns: Union[str, Sequence[str]]) -> "Blueprint":
        self.commands.append(DropColumn(_as_tuple(columns)))
        return self

    # ------------------------------------------------------------------ #
    # Keys and indexes
    # ------------------------------------------------------------------ #
    def primary(self, columns: Union[str, Sequence[str]], name: Optional[str] = None) -> "Blueprint":
        if self.command_of(Primary) is not None:
            raise BlueprintError(f"Table '{self.table}' already declares a primary key.")
        incrementing = self.incrementing_column()
        if incrementing is not None:
            raise BlueprintError(
                f"Column '{incrementing.name}' on '{self.table}' is already an auto-increment primary key."
            )
        cols = _as_tuple(columns)
        self.commands.append(Primary(name or self._index_name("primary", cols), cols))
        return self

    def unique(self, columns: Union[str, Sequence[str]], name: Optional[str] = None) -> "Blueprint":
        cols = _as_tuple(columns)
        self.commands.append(Unique(name or self._index_name("unique", cols), cols))
        return self

    def index(self, columns: Union[str, Sequence[str]], name: Optional[str] = None) -> "Blueprint":
        cols = _as_tuple(columns)
        self.commands.append(Index(name or self._index_name("index", cols), cols))
        return self

    def foreign(
        self,
        columns: Union[str, Sequence[str]],
        *,
        on: str,
        references: Union[str, Sequence[str]] = "id",
        name: Optional[str] = None,
    ) -> "Blueprint":
        cols = _as_tuple(columns)
        self.commands.append(
            Foreign(name or self._index_name("foreign", cols), cols, on, _as_tuple(references))
        )
        return self

    def drop_unique(self, name: str) -> "Blueprint":
        self.commands.append(DropUnique(name))
        return self

    def drop_index(self, name: str) -> "Blueprint":
        self.commands.append(DropIndex(name))
        return self

    def _index_name(self, kind: str, columns: Sequence[str]) -> str:
        return "_".join([self.table, *columns, kind]).lower().replace("-", "_").replace(".", "_")

    # ------------------------------------------------------------------ #
    # Columns
    # ------------------------------------------------------------------ #
    def add_column(self, name: str, column_type: ColumnType, **options: Any) -> ColumnDefinition:
        column = ColumnDefinition(name, ColumnType(column_type), **options)
        self.columns.append(column)
        # Columns declared on an existing table need an alter command.
        if not self.creating() and self.command_of(AddColumns) is None:
            self.commands.insert(0, AddColumns())
        return column

    def incrementing_column(self) -> Optional[ColumnDefinition]:
        for column in self.columns:
            if column.type is ColumnType.INTEGER and column.auto_increment:
                return column
        return None

    def increments(self, name: str = "id") -> ColumnDefinition:
        if self.command_of(Primary) is not None:
            raise BlueprintError(f"Table '{self.table}' already declares a primary key.")
        return self.add_column(name, ColumnType.INTEGER, auto_increment=True)

    def string(self, name: str, length: int = 255, **options: Any) -> ColumnDefinition:
        return self.add_column(name, ColumnType.STRING, length=length, **options)

    def text(self, name: str, **options: Any) -> ColumnDefinition:
        return self.add_column(name, ColumnType.TEXT, **options)

    def integer(self, name: str, **options: Any) -> ColumnDefinition:
        return self.add_column(name, ColumnType.INTEGER, **options)

    def float(self, name: str, **options: Any) -> ColumnDefinition:
        return self.add_column(name, ColumnType.FLOAT, **options)

    def decimal(self, name: str, precision: int = 8, scale: int = 2, **options: Any) -> ColumnDefinition:
        return self.add_column(name, ColumnType.DECIMAL, precision=precision, scale=scale, **options)

    def boolean(self, name: str, **options: Any) -> ColumnDefinition:
        return self.add_column(name, ColumnType.BOOLEAN, **options)

    def enum(self, name: str, allowed: Sequence[str], **options: Any) -> ColumnDefinition:
        return self.add_column(name, ColumnType.ENUM, allowed=tuple(allowed), **options)

    def date(self, name: str, **options: Any) -> ColumnDefinition:
        return self.add_column(name, ColumnType.DATE, **options)

    def datetime(self, name: str, **options: Any) -> ColumnDefinition:
        return self.add_column(name, ColumnType.DATETIME, **options)

    def time(self, name: str, **options: Any) -> ColumnDefinition:
        return self.add_column(name, ColumnType.TIME, **options)

    def timestamp(self, name: str, **options: Any) -> ColumnDefinition:
        return self.add_column(name, ColumnType.TIMESTAMP, **options)

    def timestamps(self) -> Tuple[ColumnDefinition, ColumnDefinition]:
        return self.timestamp("created_at"), self.timestamp("updated_at")

    def binary(self, name: str, **options: Any) -> ColumnDefinition:
        return self.add_column(name, ColumnType.BINARY, **options)
