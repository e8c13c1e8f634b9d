"""
Constructors and canonicalization for symkernel.

These constructors are the only supported way to build expressions. Each one
returns canonical form, so two structurally different inputs that denote the
same sum, product or power come out equal:

    x, y = symbols("x y")
    add([integer(3), x, integer(2), x])      # => (+ 3 (* 2 x))
    mul([x, integer(0), y])                  # => 0
    add([add([1, x]), add([2, y])])          # => (+ 3 x y)
    div(mul([3, x]), 2)                      # => (* 3/2 x)

Canonical form:
- sums and products are flat, ordered, and have at least two children
- numeric terms of a sum and numeric factors of a product are folded
  exactly (an inexact float operand makes the result a float)
- like terms are collected by coefficient, like factors by exponent
- commutative factors are sorted; noncommutative factors (matrix, operator
  and quaternion symbols, explicit matrices) keep their relative order and
  only merge with an adjacent equal base

Canonicalization never raises a MathError. A literal division by zero such
as `pow(0, -1)` stays symbolic; `div_checked`, `pow_checked` and
`symkernel.evaluation.evaluate` are where it is reported.
"""

import math
import operator
from fractions import Fraction
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .analysis import Commutativity, commutativity
from .errors import DivisionByZero, DomainError, NumericOverflow
from .expression import (
    Add, Calculus, CalculusKind, Complex, Const, EXACT_POWER_MAX_BITS,
    Expression, ExprLike, Function, Interval, LimitDirection, MathConstant,
    MatrixExpr, MethodCall, Mul, Num, Piecewise, Pow, Relation, RelationType,
    SetExpr, Sym, as_expression,
)
from .matrix import (
    Matrix, MatrixKind, matrix_add, matrix_multiply, matrix_power,
    scalar_multiply,
)
from .number import Number, ONE, ZERO
from .symbol import Symbol, SymbolType


# ============================================================
# Leaves
# ============================================================

def integer(value: int) -> Num:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"integer() expects an int, got {type(value).__name__}")
    return Num(Number(value))


def rational(numerator: int, denominator: int = 1) -> Num:
    """Exact reduced fraction; a zero denominator raises DivisionByZero."""
    return Num(Number.rational(numerator, denominator))


def float_(value: float) -> Num:
    return Num(Number.float(value))


def number(value: Union[int, float, Fraction, Number]) -> Num:
    return Num(Number(value))


def symbol(name: str, symbol_type: SymbolType = SymbolType.SCALAR) -> Sym:
    return Sym(Symbol(name, symbol_type))


def symbols(names: Union[str, Iterable[str]],
            symbol_type: SymbolType = SymbolType.SCALAR) -> List[Sym]:
    """
    Several symbols at once.

    Examples:
        x, y = symbols("x y")
        A, B = symbols("A, B", SymbolType.MATRIX)
    """
    if isinstance(names, str):
        names = names.replace(",", " ").split()
    return [symbol(name, symbol_type) for name in names]


def constant(value: Union[MathConstant, str]) -> Const:
    return Const(MathConstant(value))


def pi() -> Const:
    return Const(MathConstant.PI)


def e() -> Const:
    return Const(MathConstant.E)


def i() -> Const:
    return Const(MathConstant.I)


def infinity() -> Const:
    return Const(MathConstant.INFINITY)


def negative_infinity() -> Const:
    return Const(MathConstant.NEGATIVE_INFINITY)


def undefined() -> Const:
    return Const(MathConstant.UNDEFINED)


def golden_ratio() -> Const:
    return Const(MathConstant.GOLDEN_RATIO)


def euler_gamma() -> Const:
    return Const(MathConstant.EULER_GAMMA)


_ZERO = Num(ZERO)
_ONE = Num(ONE)
_MINUS_ONE = Num(Number(-1))


def _flatten(items: Iterable[ExprLike], node_type) -> List[Expression]:
    out = []
    for item in items:
        item = as_expression(item)
        if isinstance(item, node_type):
            out.extend(item.children())
        else:
            out.append(item)
    return out


def _fold(op, a: Number, b: Number) -> Optional[Number]:
    """Combine two numbers; None when the float result is NaN."""
    try:
        return op(a, b)
    except DomainError:
        return None


# ============================================================
# Addition
# ============================================================

def _split_coefficient(term: Expression) -> Tuple[Number, Expression]:
    """Factor a term as (numeric coefficient, rest)."""
    if isinstance(term, Mul) and isinstance(term.factors[0], Num):
        rest = term.factors[1:]
        return term.factors[0].value, rest[0] if len(rest) == 1 else Mul(rest)
    return ONE, term


def _scale(coefficient: Number, base: Expression) -> Expression:
    if coefficient.is_one():
        return base
    if isinstance(base, Mul):
        return Mul((Num(coefficient),) + base.factors)
    return Mul((Num(coefficient), base))


def add(terms: Iterable[ExprLike]) -> Expression:
    """Canonical n-ary sum."""
    flat = _flatten(terms, Add)
    total = ZERO
    collected: Dict[Expression, Number] = {}
    matrices: List[Matrix] = []

    for term in flat:
        if isinstance(term, Num):
            total = _fold(operator.add, total, term.value)
            if total is None:
                return undefined()
        elif isinstance(term, MatrixExpr):
            matrices.append(term.matrix)
        else:
            coefficient, base = _split_coefficient(term)
            previous = collected.get(base)
            if previous is not None:
                coefficient = _fold(operator.add, previous, coefficient)
                if coefficient is None:
                    return undefined()
            collected[base] = coefficient

    out = [_scale(c, base) for base, c in collected.items() if not c.is_zero()]
    if matrices:
        summed = matrices[0]
        for m in matrices[1:]:
            summed = matrix_add(summed, m)
        if summed.kind is not MatrixKind.ZERO or not out:
            out.append(MatrixExpr(summed))
    out.sort(key=lambda t: t.sort_key())

    if not total.is_zero():
        out.insert(0, Num(total))
    if not out:
        return Num(total)
    if len(out) == 1:
        return out[0]
    return Add(tuple(out))


def sub(a: ExprLike, b: ExprLike) -> Expression:
    return add([a, mul([_MINUS_ONE, b])])


def neg(a: ExprLike) -> Expression:
    return mul([_MINUS_ONE, a])


# ============================================================
# Multiplication
# ============================================================

def _split_power(factor: Expression) -> Tuple[Expression, Expression]:
    if isinstance(factor, Pow):
        return factor.base, factor.exponent
    return factor, _ONE


def mul(factors: Iterable[ExprLike]) -> Expression:
    """Canonical n-ary product."""
    flat = _flatten(factors, Mul)
    coefficient = ONE
    exact_zero = False
    others: List[Expression] = []
    for factor in flat:
        if isinstance(factor, Num):
            exact_zero = exact_zero or (factor.value.is_exact() and factor.is_zero())
            coefficient = _fold(operator.mul, coefficient, factor.value)
            if coefficient is None:
                return undefined()
        else:
            others.append(factor)

    if exact_zero or coefficient.is_zero():
        explicit = [f.matrix for f in others if isinstance(f, MatrixExpr)]
        if explicit:
            return MatrixExpr(Matrix.zero(explicit[0].nrows, explicit[-1].ncols))
        return _ZERO if exact_zero else Num(coefficient)

    commuting: Dict[Expression, Expression] = {}
    ordered: List[List[Expression]] = []
    for factor in others:
        base, exponent = _split_power(factor)
        if commutativity(base) is Commutativity.COMMUTATIVE:
            previous = commuting.get(base)
            commuting[base] = exponent if previous is None else add([previous, exponent])
        elif (isinstance(base, MatrixExpr) and exponent.is_one() and ordered
              and isinstance(ordered[-1][0], MatrixExpr) and ordered[-1][1].is_one()):
            # adjacent literals multiply, even when equal
            ordered[-1][0] = MatrixExpr(matrix_multiply(ordered[-1][0].matrix, base.matrix))
        elif ordered and ordered[-1][0] == base:
            merged = add([ordered[-1][1], exponent])
            if merged.is_zero():
                ordered.pop()
            else:
                ordered[-1][1] = merged
        else:
            ordered.append([base, exponent])

    refold = False
    front = []
    for base, exponent in commuting.items():
        if exponent.is_zero():
            continue
        factor = pow(base, exponent)
        refold = refold or isinstance(factor, (Num, Mul))
        front.append(factor)
    back = []
    for base, exponent in ordered:
        factor = pow(base, exponent)
        refold = refold or isinstance(factor, (Num, Mul))
        back.append(factor)
    if refold:
        # a recombined power folded to a number or a product
        return mul([Num(coefficient)] + front + back)

    front.sort(key=lambda f: f.sort_key())
    result = front + back
    if len(result) == 1 and isinstance(result[0], MatrixExpr) and not coefficient.is_one():
        return MatrixExpr(scalar_multiply(Num(coefficient), result[0].matrix))
    if not coefficient.is_one():
        result.insert(0, Num(coefficient))
    if not result:
        return Num(coefficient)
    if len(result) == 1:
        return result[0]
    return Mul(tuple(result))


# ============================================================
# Power
# ============================================================

def _float_power(base: float, exponent: float) -> Optional[Number]:
    if base < 0 and not float(exponent).is_integer():
        return None
    try:
        result = math.pow(base, exponent)
    except (OverflowError, ValueError, ZeroDivisionError):
        return None
    if not math.isfinite(result):
        return None
    return Number(result)


def _numeric_power(base: Number, exponent: Number) -> Optional[Number]:
    """Fold base**exponent when the result is exact, or a finite real float."""
    if exponent.is_integer():
        n = exponent.value
        if base.is_exact():
            bits = max(base.numerator.bit_length(), base.denominator.bit_length(), 1)
            if bits * abs(n) > EXACT_POWER_MAX_BITS:
                return None
            return base.pow_int(n)
        return _float_power(base.value, n)
    if exponent.is_rational() and base.is_exact():
        if base.is_negative():
            return None
        root = base.exact_root(exponent.denominator)
        if root is None:
            return None
        return _numeric_power(root, Number(exponent.numerator))
    try:
        return _float_power(base.to_float(), exponent.to_float())
    except NumericOverflow:
        return None


def _imaginary_power(n: int) -> Expression:
    return [_ONE, i(), _MINUS_ONE, Mul((_MINUS_ONE, i()))][n % 4]


def pow(base: ExprLike, exponent: ExprLike) -> Expression:
    """
    Canonical power.

    Examples:
        pow(x, 0)                 # => 1
        pow(2, 3)                 # => 8
        pow(2, -1)                # => 1/2
        pow(4, rational(1, 2))    # => 2
        pow(pow(x, 2), 3)         # => (^ x 6)
        pow(mul([2, x]), 2)       # => (* 4 (^ x 2))
        pow(mul([A, B]), -1)      # => (* (^ B -1) (^ A -1)) for matrix symbols
        pow(0, -1)                # => (^ 0 -1), reported by evaluate()
    """
    base = as_expression(base)
    exponent = as_expression(exponent)

    if isinstance(exponent, Num):
        if exponent.is_zero():
            return _ONE
        if exponent.is_one():
            return base
    if isinstance(base, Num):
        if base.is_one():
            return base
        if isinstance(exponent, Num):
            if base.is_zero():
                if exponent.value.is_positive():
                    return base
                return Pow(base, exponent)
            folded = _numeric_power(base.value, exponent.value)
            if folded is not None:
                return Num(folded)

    if isinstance(exponent, Num) and exponent.value.is_integer():
        n = exponent.value.value
        if isinstance(base, Pow):
            return pow(base.base, mul([base.exponent, exponent]))
        if isinstance(base, Mul):
            if commutativity(base) is Commutativity.COMMUTATIVE:
                return mul([pow(f, exponent) for f in base.factors])
            if n == -1:
                return mul([pow(f, exponent) for f in reversed(base.factors)])
        if isinstance(base, MatrixExpr):
            try:
                return MatrixExpr(matrix_power(base.matrix, n))
            except DivisionByZero:
                return Pow(base, exponent)
        if isinstance(base, Const) and base.constant is MathConstant.I:
            return _imaginary_power(n)
        if isinstance(base, Function) and base.name == "sqrt" and len(base.args) == 1 and n % 2 == 0:
            return pow(base.args[0], integer(n // 2))

    return Pow(base, exponent)


def pow_checked(base: ExprLike, exponent: ExprLike) -> Expression:
    """Like pow(), but a zero base with a negative exponent raises DivisionByZero."""
    base = as_expression(base)
    exponent = as_expression(exponent)
    if (isinstance(base, Num) and base.is_zero()
            and isinstance(exponent, Num) and exponent.value.is_negative()):
        raise DivisionByZero(Pow(base, exponent))
    return pow(base, exponent)


def div(a: ExprLike, b: ExprLike) -> Expression:
    """a / b as a * b**-1; always succeeds symbolically."""
    return mul([a, pow(b, _MINUS_ONE)])


def div_checked(a: ExprLike, b: ExprLike) -> Expression:
    """Like div(), but an exact zero denominator raises DivisionByZero."""
    b = as_expression(b)
    if isinstance(b, Num) and b.is_zero():
        raise DivisionByZero(Pow(b, _MINUS_ONE))
    return div(a, b)


# ============================================================
# Other composites
# ============================================================

def complex_(real: ExprLike, imag: ExprLike) -> Expression:
    """Cartesian complex number; a zero imaginary part gives the real part."""
    real = as_expression(real)
    imag = as_expression(imag)
    if isinstance(imag, Num) and imag.value.is_exact() and imag.is_zero():
        return real
    return Complex(real, imag)


def matrix(rows: Sequence[Sequence[ExprLike]]) -> MatrixExpr:
    return MatrixExpr(Matrix.dense(rows))


def identity_matrix(n: int) -> MatrixExpr:
    return MatrixExpr(Matrix.identity(n))


def zero_matrix(nrows: int, ncols: Optional[int] = None) -> MatrixExpr:
    return MatrixExpr(Matrix.zero(nrows, ncols))


def diagonal_matrix(entries: Sequence[ExprLike]) -> MatrixExpr:
    return MatrixExpr(Matrix.diagonal(entries))


def scalar_matrix(n: int, value: ExprLike) -> MatrixExpr:
    return MatrixExpr(Matrix.scalar(n, value))


def set_(elements: Iterable[ExprLike]) -> SetExpr:
    """Finite set with duplicates removed and elements in canonical order."""
    unique = {}
    for element in elements:
        element = as_expression(element)
        unique[element] = element
    return SetExpr(tuple(sorted(unique.values(), key=lambda x: x.sort_key())))


def interval(start: ExprLike, end: ExprLike,
             start_inclusive: bool = True, end_inclusive: bool = True) -> Interval:
    return Interval(as_expression(start), as_expression(end), start_inclusive, end_inclusive)


def relation(lhs: ExprLike, rhs: ExprLike,
             relation_type: Union[RelationType, str] = RelationType.EQUAL) -> Relation:
    return Relation(as_expression(lhs), as_expression(rhs), RelationType(relation_type))


def equation(lhs: ExprLike, rhs: ExprLike) -> Relation:
    return relation(lhs, rhs, RelationType.EQUAL)


def piecewise(pieces: Iterable[Tuple[ExprLike, ExprLike]],
              default: Optional[ExprLike] = None) -> Expression:
    """
    Piecewise expression from (value, condition) pairs.

    With no pieces the default itself is returned.
    """
    pieces = tuple((as_expression(v), as_expression(c)) for v, c in pieces)
    default = as_expression(default) if default is not None else None
    if not pieces:
        if default is None:
            raise ValueError("piecewise needs at least one piece or a default")
        return default
    return Piecewise(pieces, default)


# ============================================================
# Calculus and deferred calls
# ============================================================

def _bound_variable(variable: Union[ExprLike, str]) -> Sym:
    if isinstance(variable, str):
        return symbol(variable)
    variable = as_expression(variable)
    if not isinstance(variable, Sym):
        raise TypeError(f"Bound variable must be a symbol, got {variable!r}")
    return variable


def derivative(expr: ExprLike, variable, order: int = 1) -> Expression:
    if order < 0:
        raise ValueError(f"Derivative order must be non-negative, got {order}")
    if order == 0:
        return as_expression(expr)
    return Calculus(CalculusKind.DERIVATIVE, as_expression(expr),
                    _bound_variable(variable), order=order)


def integral(expr: ExprLike, variable, lower: Optional[ExprLike] = None,
             upper: Optional[ExprLike] = None) -> Calculus:
    if (lower is None) != (upper is None):
        raise ValueError("A definite integral needs both bounds")
    return Calculus(CalculusKind.INTEGRAL, as_expression(expr), _bound_variable(variable),
                    lower=None if lower is None else as_expression(lower),
                    upper=None if upper is None else as_expression(upper))


def limit(expr: ExprLike, variable, point: ExprLike,
          direction: LimitDirection = LimitDirection.BOTH) -> Calculus:
    return Calculus(CalculusKind.LIMIT, as_expression(expr), _bound_variable(variable),
                    point=as_expression(point), direction=LimitDirection(direction))


def summation(expr: ExprLike, variable, start: ExprLike, end: ExprLike) -> Calculus:
    return Calculus(CalculusKind.SUM, as_expression(expr), _bound_variable(variable),
                    lower=as_expression(start), upper=as_expression(end))


def product(expr: ExprLike, variable, start: ExprLike, end: ExprLike) -> Calculus:
    return Calculus(CalculusKind.PRODUCT, as_expression(expr), _bound_variable(variable),
                    lower=as_expression(start), upper=as_expression(end))


def method_call(obj: ExprLike, name: str, args: Iterable[ExprLike] = ()) -> MethodCall:
    return MethodCall(as_expression(obj), name, tuple(as_expression(a) for a in args))
