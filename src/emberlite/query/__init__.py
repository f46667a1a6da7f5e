"""
Query descriptors and grammars.
"""

from .descriptors import CompiledStatement, Direction, OrderSpec, QueryDescriptor
from .grammar import Grammar, SQLiteQueryGrammar

__all__ = [
    "CompiledStatement",
    "Direction",
    "OrderSpec",
    "QueryDescriptor",
    "Grammar",
    "SQLiteQueryGrammar",
]
