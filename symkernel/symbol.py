"""
Symbols and their commutativity classes.

    x = Symbol("x")              # scalar, commutative
    A = Symbol.matrix("A")       # noncommutative under multiplication
    H = Symbol.operator("H")

Equality and hashing are by (name, class), so a scalar `A` and a matrix `A`
are different symbols.
"""

import sys
from enum import Enum


class SymbolType(Enum):
    SCALAR = "scalar"
    MATRIX = "matrix"
    OPERATOR = "operator"
    QUATERNION = "quaternion"


class Symbol:
    """An immutable named indeterminate."""

    __slots__ = ('_name', '_type')

    def __init__(self, name: str, symbol_type: SymbolType = SymbolType.SCALAR):
        if not isinstance(name, str) or not name:
            raise ValueError(f"Symbol name must be a non-empty string, got {name!r}")
        if not isinstance(symbol_type, SymbolType):
            symbol_type = SymbolType(symbol_type)
        self._name = sys.intern(name)
        self._type = symbol_type

    @classmethod
    def scalar(cls, name: str) -> "Symbol":
        return cls(name, SymbolType.SCALAR)

    @classmethod
    def matrix(cls, name: str) -> "Symbol":
        return cls(name, SymbolType.MATRIX)

    @classmethod
    def operator(cls, name: str) -> "Symbol":
        return cls(name, SymbolType.OPERATOR)

    @classmethod
    def quaternion(cls, name: str) -> "Symbol":
        return cls(name, SymbolType.QUATERNION)

    @property
    def name(self) -> str:
        return self._name

    @property
    def symbol_type(self) -> SymbolType:
        return self._type

    @property
    def is_commutative(self) -> bool:
        """Only scalar symbols commute under multiplication."""
        return self._type is SymbolType.SCALAR

    def __eq__(self, other):
        if isinstance(other, Symbol):
            return self._name == other._name and self._type is other._type
        return NotImplemented

    def __hash__(self):
        return hash((self._name, self._type.value))

    def __repr__(self) -> str:
        if self._type is SymbolType.SCALAR:
            return f"Symbol({self._name!r})"
        return f"Symbol({self._name!r}, {self._type})"

    def __str__(self) -> str:
        return self._name
