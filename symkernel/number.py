"""
Number domain for symkernel.

A Number is one of four kinds:

    SMALL_INT  - integer that fits in a signed 64-bit word (the fast path)
    BIG_INT    - any larger integer
    RATIONAL   - reduced fraction p/q with q > 1
    FLOAT      - native IEEE double, only from inexact input or approximation

Python integers are unbounded, so "checked arithmetic with promotion on
overflow" is simply ordinary int arithmetic followed by re-tagging. Values
are always stored in tight form: a rational with denominator 1 becomes an
integer and the integer kind follows the magnitude.

Exact combined with exact stays exact; anything combined with a float is a
float. NaN is never stored.
"""

import math
from enum import Enum
from fractions import Fraction
from typing import Optional, Union

from .errors import DivisionByZero, DomainError, NumericOverflow

# Raw Python values a Number can hold
RawNumber = Union[int, Fraction, float]

I64_MIN = -(2 ** 63)
I64_MAX = 2 ** 63 - 1


class NumberKind(Enum):
    SMALL_INT = "small_int"
    BIG_INT = "big_int"
    RATIONAL = "rational"
    FLOAT = "float"


def _tighten(value: RawNumber):
    """Return (value, kind) in tight form."""
    if isinstance(value, bool):
        raise TypeError("booleans are not numbers")
    if isinstance(value, int):
        if I64_MIN <= value <= I64_MAX:
            return value, NumberKind.SMALL_INT
        return value, NumberKind.BIG_INT
    if isinstance(value, Fraction):
        if value.denominator == 1:
            return _tighten(value.numerator)
        return value, NumberKind.RATIONAL
    if isinstance(value, float):
        if math.isnan(value):
            raise DomainError("number", value, "NaN cannot be stored as a number")
        return value, NumberKind.FLOAT
    raise TypeError(f"Cannot convert {type(value).__name__} to Number")


def integer_root(value: int, n: int) -> Optional[int]:
    """
    Exact n-th root of a non-negative integer.

    Returns:
        r with r**n == value, or None when value is not a perfect power
    """
    if value < 0 or n < 1:
        return None
    if value < 2 or n == 1:
        return value
    # Newton iteration on integers, starting above the root
    guess = 1 << ((value.bit_length() + n - 1) // n)
    while True:
        nxt = ((n - 1) * guess + value // guess ** (n - 1)) // n
        if nxt >= guess:
            break
        guess = nxt
    return guess if guess ** n == value else None


class Number:
    """
    Immutable tagged number.

    Examples:
        Number(3).kind              # => NumberKind.SMALL_INT
        Number(2 ** 80).kind        # => NumberKind.BIG_INT
        Number(Fraction(4, 2))      # => Number(2), an integer
        Number(1) / Number(3)       # => Number(1/3), exact
        Number(1) + Number(0.5)     # => Number(1.5), float contaminates
    """

    __slots__ = ('_value', '_kind')

    def __init__(self, value: Union[RawNumber, "Number"]):
        if isinstance(value, Number):
            self._value, self._kind = value._value, value._kind
        else:
            self._value, self._kind = _tighten(value)

    # ============================================================
    # Constructors
    # ============================================================

    @classmethod
    def integer(cls, value: int) -> "Number":
        return cls(int(value))

    @classmethod
    def rational(cls, numerator: int, denominator: int = 1) -> "Number":
        """Build a reduced rational; a zero denominator raises DivisionByZero."""
        if denominator == 0:
            raise DivisionByZero()
        return cls(Fraction(numerator, denominator))

    @classmethod
    def float(cls, value: float) -> "Number":
        return cls(float(value))

    # ============================================================
    # Accessors and predicates
    # ============================================================

    @property
    def value(self) -> RawNumber:
        return self._value

    @property
    def kind(self) -> NumberKind:
        return self._kind

    @property
    def numerator(self) -> int:
        if self._kind is NumberKind.FLOAT:
            raise TypeError("floats have no exact numerator")
        return self._value.numerator if isinstance(self._value, Fraction) else self._value

    @property
    def denominator(self) -> int:
        if self._kind is NumberKind.FLOAT:
            raise TypeError("floats have no exact denominator")
        return self._value.denominator if isinstance(self._value, Fraction) else 1

    def is_integer(self) -> bool:
        return self._kind in (NumberKind.SMALL_INT, NumberKind.BIG_INT)

    def is_rational(self) -> bool:
        """True for a non-integer exact fraction."""
        return self._kind is NumberKind.RATIONAL

    def is_float(self) -> bool:
        return self._kind is NumberKind.FLOAT

    def is_exact(self) -> bool:
        return self._kind is not NumberKind.FLOAT

    def is_zero(self) -> bool:
        return self._value == 0

    def is_one(self) -> bool:
        return self._value == 1

    def is_negative(self) -> bool:
        return self._value < 0

    def is_positive(self) -> bool:
        return self._value > 0

    def is_finite(self) -> bool:
        return not (self.is_float() and math.isinf(self._value))

    def sign(self) -> int:
        if self._value > 0:
            return 1
        if self._value < 0:
            return -1
        return 0

    # ============================================================
    # Arithmetic
    # ============================================================

    @staticmethod
    def _coerce(other) -> Optional["Number"]:
        if isinstance(other, Number):
            return other
        if isinstance(other, (int, float, Fraction)) and not isinstance(other, bool):
            return Number(other)
        return None

    def _combine(self, other, op) -> "Number":
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        a, b = self._value, other._value
        if self.is_float() or other.is_float():
            a, b = float(a), float(b)
        return Number(op(a, b))

    def __add__(self, other):
        return self._combine(other, lambda a, b: a + b)

    __radd__ = __add__

    def __sub__(self, other):
        return self._combine(other, lambda a, b: a - b)

    def __rsub__(self, other):
        return self._combine(other, lambda a, b: b - a)

    def __mul__(self, other):
        return self._combine(other, lambda a, b: a * b)

    __rmul__ = __mul__

    def __truediv__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        if other.is_zero():
            raise DivisionByZero()
        if self.is_float() or other.is_float():
            return Number(float(self._value) / float(other._value))
        return Number(Fraction(self._value) / Fraction(other._value))

    def __rtruediv__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return other / self

    def __neg__(self) -> "Number":
        return Number(-self._value)

    def __abs__(self) -> "Number":
        return Number(abs(self._value))

    def pow_int(self, exponent: int) -> "Number":
        """
        Raise to an integer power.

        Exact bases stay exact (negative exponents give rationals); a zero
        base with a negative exponent raises DivisionByZero; float overflow
        raises NumericOverflow.
        """
        if exponent < 0 and self.is_zero():
            raise DivisionByZero()
        if self.is_float():
            try:
                result = self._value ** exponent
            except OverflowError:
                raise NumericOverflow("float power") from None
            return Number(float(result))
        if exponent >= 0:
            return Number(Fraction(self._value) ** exponent)
        return Number(Fraction(1) / Fraction(self._value) ** (-exponent))

    def exact_root(self, n: int) -> Optional["Number"]:
        """
        Exact n-th root of a non-negative exact number, if one exists.

        Examples:
            Number(4).exact_root(2)               # => Number(2)
            Number(Fraction(9, 4)).exact_root(2)  # => Number(3/2)
            Number(2).exact_root(2)               # => None
        """
        if not self.is_exact() or self.is_negative():
            return None
        num = integer_root(self.numerator, n)
        den = integer_root(self.denominator, n)
        if num is None or den is None:
            return None
        return Number(Fraction(num, den))

    def to_float(self) -> float:
        """Convert to a finite float, raising NumericOverflow when impossible."""
        if self.is_float():
            return self._value
        try:
            return float(self._value)
        except OverflowError:
            raise NumericOverflow(f"{self._kind.value} to float conversion") from None

    # ============================================================
    # Comparison, hashing, display
    # ============================================================

    def __eq__(self, other):
        if isinstance(other, Number):
            return self.is_float() == other.is_float() and self._value == other._value
        return NotImplemented

    def __hash__(self):
        return hash((self.is_float(), self._value))

    def __lt__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self._value < other._value

    def __le__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self._value <= other._value

    def __gt__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self._value > other._value

    def __ge__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self._value >= other._value

    def __float__(self) -> float:
        return self.to_float()

    def __repr__(self) -> str:
        return f"Number({self})"

    def __str__(self) -> str:
        return str(self._value)


ZERO = Number(0)
ONE = Number(1)
MINUS_ONE = Number(-1)
