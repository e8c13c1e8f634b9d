"""
Error taxonomy for symkernel.

Every failure the kernel reports is a structured value: the exception class
is the tag and the attributes carry the offending sub-expression, so callers
can inspect (and compare) errors the same way they inspect expressions.

    try:
        evaluate(sqrt(integer(-1)))
    except DomainError as err:
        print(err.operation, err.value, err.reason)

Canonicalization and substitution never raise these errors; `evaluate`,
`evaluate_to_f64`, `div_checked` and `pow_checked` do.
"""

from typing import Any, Tuple


class MathError(Exception):
    """Base class for all kernel errors."""

    _fields: Tuple[str, ...] = ()

    def _values(self) -> Tuple[Any, ...]:
        return tuple(getattr(self, name) for name in self._fields)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._values() == other._values()

    def __hash__(self):
        return hash((type(self).__name__,) + self._values())

    def __repr__(self) -> str:
        args = ", ".join(f"{name}={getattr(self, name)!r}" for name in self._fields)
        return f"{type(self).__name__}({args})"


class DivisionByZero(MathError):
    """Division by an exact zero, a zero base with negative exponent, or undefined()."""

    _fields = ("expression",)

    def __init__(self, expression=None):
        self.expression = expression
        if expression is None:
            super().__init__("division by zero")
        else:
            super().__init__(f"division by zero in {expression!r}")


class DomainError(MathError):
    """Elementary-function argument outside its real-valued domain."""

    _fields = ("operation", "value", "reason")

    def __init__(self, operation: str, value, reason: str):
        self.operation = operation
        self.value = value
        self.reason = reason
        super().__init__(f"{operation}({value!r}): {reason}")


class Pole(MathError):
    """Singularity of a function at a specific argument."""

    _fields = ("function", "at")

    def __init__(self, function: str, at):
        self.function = function
        self.at = at
        super().__init__(f"{function} has a pole at {at!r}")


class BranchCut(MathError):
    """Real-domain logarithm of a negative value."""

    _fields = ("function", "value")

    def __init__(self, function: str, value):
        self.function = function
        self.value = value
        super().__init__(f"{function}({value!r}) lies on the branch cut")


class NumericOverflow(MathError):
    """Float overflow or an exact value that does not fit in a float."""

    _fields = ("operation",)

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"numeric overflow in {operation}")


class NonNumericalResult(MathError):
    """A float was demanded but evaluation left symbolic residue."""

    _fields = ("expression",)

    def __init__(self, expression):
        self.expression = expression
        super().__init__(f"expression is not numerical: {expression!r}")
