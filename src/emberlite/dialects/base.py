"""
Dialect strategy interfaces consumed by the query and schema grammars.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class DialectCapabilities:
    """
    Feature flags the grammars branch on when an engine lacks a statement form.
    """

    # ``insert ... values (...), (...)``; otherwise rows become unioned selects.
    supports_multi_row_values: bool = True
    # ``truncate <table>``; otherwise rows are deleted and the sequence reset.
    supports_truncate: bool = True
    supports_drop_column: bool = True


class Dialect(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def capabilities(self) -> DialectCapabilities: ...

    @property
    def sequence_table(self) -> Optional[str]: ...

    def quote_identifier(self, identifier: str) -> str: ...

    def parameter_placeholder(self, position: int | None = None) -> str: ...
