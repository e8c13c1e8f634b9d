"""
Function application and its simplifier.

`function(name, args)` canonicalizes its arguments, then tries, in order:

1. a purely symbolic identity table (exp(log x) -> x, sqrt 4 -> 2, ...),
   including exact trigonometric values at multiples of pi/6 and pi/4
2. the function dispatch registry; a reply that is itself a function call
   counts as a refusal

and otherwise keeps the call symbolic. Exact arguments never produce float
results here: `sin(integer(1))` stays `(sin 1)` rather than drifting to
0.8414...; floats only come from float inputs or from numeric evaluation.
A float within POLE_TOLERANCE of a tan, sec, csc or cot singularity also
stays symbolic, so `evaluate` can report the pole.

    sin(div(pi(), 6))        # => 1/2
    cos(div(pi(), 4))        # => (* 1/2 (sqrt 2))
    exp(log(x))              # => x
    sqrt(integer(2))         # => (sqrt 2)
    sqrt(float_(2.0))        # => 1.4142135623730951

`transpose` and `inverse` reverse noncommutative products:

    A, B = symbols("A B", SymbolType.MATRIX)
    inverse(mul([A, B]))     # => (* (^ B -1) (^ A -1))
    transpose(mul([A, B]))   # => (* (transpose B) (transpose A))
"""

from fractions import Fraction
from typing import Iterable, Optional

from .analysis import Commutativity, commutativity
from .canonical import add, div, integer, mul, neg, pow, rational
from .expression import (
    Add, Const, Expression, ExprLike, Function, MathConstant, MatrixExpr, Mul,
    Num, Pow, as_expression, walk,
)
from .matrix import transpose as matrix_transpose
from .registry import REGISTRY, FunctionRegistry


def _has_float(expr: Expression) -> bool:
    return any(isinstance(node, Num) and node.value.is_float() for node in walk(expr))


def function(name: str, args: Iterable[ExprLike] = (),
             registry: Optional[FunctionRegistry] = None) -> Expression:
    """Canonical function application."""
    args = tuple(as_expression(a) for a in args)
    simplified = _apply_identities(name, args)
    if simplified is not None:
        return simplified

    if registry is None:
        registry = REGISTRY
    reply = registry.dispatch(name, args)
    if reply is not None and not isinstance(reply, Function):
        exact_input = not any(_has_float(a) for a in args)
        if not (exact_input and _has_float(reply)):
            return reply
    return Function(name, args)


# ============================================================
# Symbolic identity table
# ============================================================

_LOGARITHMS = ("log", "ln")


def _sole_argument(expr: Expression, name) -> Optional[Expression]:
    """The argument of a one-argument call to `name` (a name or tuple of names)."""
    names = (name,) if isinstance(name, str) else name
    if isinstance(expr, Function) and expr.name in names and len(expr.args) == 1:
        return expr.args[0]
    return None


def _apply_identities(name: str, args) -> Optional[Expression]:
    if len(args) != 1:
        return None
    arg = args[0]

    if name == "transpose":
        return _transpose(arg)
    if name == "exp":
        inner = _sole_argument(arg, _LOGARITHMS)
        if inner is not None:
            return inner
    if name in _LOGARITHMS:
        inner = _sole_argument(arg, "exp")
        if inner is not None:
            return inner
        if isinstance(arg, Const) and arg.constant is MathConstant.E:
            return integer(1)

    if isinstance(arg, Num) and arg.value.is_exact():
        value = arg.value
        if value.is_zero() and name in ("sin", "tan", "sqrt", "sinh", "tanh", "asin", "atan"):
            return arg
        if value.is_zero() and name in ("cos", "exp", "cosh", "sec"):
            return integer(1)
        if value.is_one() and name in _LOGARITHMS:
            return integer(0)
        if name == "sqrt":
            root = value.exact_root(2)
            return Num(root) if root is not None else None
        if name == "factorial" and value.is_integer() and 0 <= value.value <= 1:
            return integer(1)
        if name == "abs":
            return Num(abs(value))
        return None

    if name in _TRIG:
        return _exact_trig(name, arg)
    return None


# ============================================================
# Exact trigonometric values
# ============================================================

_TRIG = frozenset(["sin", "cos", "tan", "cot", "sec", "csc"])


def _sqrt_of(n: int) -> Function:
    return Function("sqrt", (integer(n),))


def _pi_multiple(arg: Expression) -> Optional[Fraction]:
    """k when arg is k*pi with exact rational k."""
    if isinstance(arg, Const) and arg.constant is MathConstant.PI:
        return Fraction(1)
    if (isinstance(arg, Mul) and len(arg.factors) == 2
            and isinstance(arg.factors[0], Num) and arg.factors[0].value.is_exact()
            and isinstance(arg.factors[1], Const) and arg.factors[1].constant is MathConstant.PI):
        return Fraction(arg.factors[0].value.value)
    return None


def _sin_degrees(degrees: int) -> Expression:
    degrees %= 360
    if degrees >= 180:
        return neg(_sin_degrees(degrees - 180))
    if degrees > 90:
        degrees = 180 - degrees
    if degrees == 0:
        return integer(0)
    if degrees == 30:
        return rational(1, 2)
    if degrees == 45:
        return mul([rational(1, 2), _sqrt_of(2)])
    if degrees == 60:
        return mul([rational(1, 2), _sqrt_of(3)])
    return integer(1)


def _exact_trig(name: str, arg: Expression) -> Optional[Expression]:
    k = _pi_multiple(arg)
    if k is None:
        return None
    twelfths = k * 12
    if twelfths.denominator != 1:
        return None
    degrees = (twelfths.numerator % 24) * 15
    if degrees % 30 and degrees % 45:
        return None

    s = _sin_degrees(degrees)
    c = _sin_degrees(degrees + 90)
    if name == "sin":
        return s
    if name == "cos":
        return c
    # Poles stay symbolic; evaluate() reports them
    if name == "tan":
        return None if c.is_zero() else div(s, c)
    if name == "cot":
        return None if s.is_zero() else div(c, s)
    if name == "sec":
        return None if c.is_zero() else div(integer(1), c)
    return None if s.is_zero() else div(integer(1), s)


# ============================================================
# Transpose and inverse
# ============================================================

def _transpose(expr: Expression) -> Expression:
    if commutativity(expr) is Commutativity.COMMUTATIVE:
        return expr
    if isinstance(expr, MatrixExpr):
        return MatrixExpr(matrix_transpose(expr.matrix))
    inner = _sole_argument(expr, "transpose")
    if inner is not None:
        return inner
    if isinstance(expr, Add):
        return add([_transpose(t) for t in expr.terms])
    if isinstance(expr, Mul):
        return mul([_transpose(f) for f in reversed(expr.factors)])
    if (isinstance(expr, Pow) and isinstance(expr.exponent, Num)
            and expr.exponent.value.is_integer()):
        return pow(_transpose(expr.base), expr.exponent)
    return Function("transpose", (expr,))


def transpose(expr: ExprLike) -> Expression:
    """Transpose: (A B)^T = B^T A^T, distributes over sums, scalars unchanged."""
    return _transpose(as_expression(expr))


def inverse(expr: ExprLike) -> Expression:
    """Multiplicative inverse: (A B)^-1 = B^-1 A^-1 for noncommutative factors."""
    return pow(expr, integer(-1))


# ============================================================
# Convenience constructors
# ============================================================

def sqrt(x: ExprLike) -> Expression:
    return function("sqrt", [x])


def exp(x: ExprLike) -> Expression:
    return function("exp", [x])


def log(x: ExprLike) -> Expression:
    """Natural logarithm."""
    return function("log", [x])


def ln(x: ExprLike) -> Expression:
    return function("ln", [x])


def sin(x: ExprLike) -> Expression:
    return function("sin", [x])


def cos(x: ExprLike) -> Expression:
    return function("cos", [x])


def tan(x: ExprLike) -> Expression:
    return function("tan", [x])


def cot(x: ExprLike) -> Expression:
    return function("cot", [x])


def sec(x: ExprLike) -> Expression:
    return function("sec", [x])


def csc(x: ExprLike) -> Expression:
    return function("csc", [x])


def asin(x: ExprLike) -> Expression:
    return function("asin", [x])


def acos(x: ExprLike) -> Expression:
    return function("acos", [x])


def atan(x: ExprLike) -> Expression:
    return function("atan", [x])


def sinh(x: ExprLike) -> Expression:
    return function("sinh", [x])


def cosh(x: ExprLike) -> Expression:
    return function("cosh", [x])


def tanh(x: ExprLike) -> Expression:
    return function("tanh", [x])


def asinh(x: ExprLike) -> Expression:
    return function("asinh", [x])


def acosh(x: ExprLike) -> Expression:
    return function("acosh", [x])


def atanh(x: ExprLike) -> Expression:
    return function("atanh", [x])


def abs_(x: ExprLike) -> Expression:
    return function("abs", [x])


def factorial(x: ExprLike) -> Expression:
    return function("factorial", [x])


def gamma(x: ExprLike) -> Expression:
    return function("gamma", [x])
