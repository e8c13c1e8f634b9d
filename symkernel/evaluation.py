"""
Evaluation of expressions.

Three entry points:

    evaluate(expr)                     domain-checked exact reduction
    evaluate_with_context(expr, ctx)   substitute, simplify, then optionally
                                       reduce numerically
    evaluate_to_f64(expr)              a Python float or an error

`evaluate` keeps symbols symbolic and never approximates; it raises where a
value does not exist:

    evaluate(sqrt(integer(-1)))        # raises DomainError
    evaluate(log(integer(0)))          # raises Pole
    evaluate(div(1, 0))                # raises DivisionByZero

`eval_numeric` turns constants and irrational values into floats:

    ctx = EvalContext.numerical({"x": 3})
    evaluate_with_context(x**2 + 2*x + 1, ctx)    # => 16
    eval_numeric(sqrt(integer(2)))                # => 1.4142135623730951
"""

import logging
import math
from typing import Dict, Mapping, Optional

from .canonical import float_, pow
from .analysis import free_symbols
from .errors import (
    BranchCut, DivisionByZero, DomainError, NonNumericalResult, NumericOverflow, Pole,
)
from .expression import (
    Calculus, Const, Expression, ExprLike, Function, MethodCall, Num, Pow,
    ZERO_TOLERANCE, as_expression, fold_tree, near_multiple_of_pi,
)
from .functions import function
from .number import Number
from .registry import REGISTRY
from .substitution import rebuild, simplify, substitute

logger = logging.getLogger(__name__)


# ============================================================
# Domain-checked evaluation
# ============================================================

def evaluate(expr: ExprLike) -> Expression:
    """
    Reduce an expression exactly, raising on domain violations.

    Raises:
        DivisionByZero: zero base with a negative exponent, or a call to "undefined"
        DomainError: sqrt of a negative, asin/acos outside [-1, 1]
        Pole: log of zero; tan, sec, csc, cot at (or within POLE_TOLERANCE of)
            a singularity
        BranchCut: log of a negative number
    """
    return fold_tree(as_expression(expr), _evaluate_node)


def _evaluate_node(expr: Expression, children) -> Expression:
    if isinstance(expr, Function):
        return _evaluate_function(expr.name, children)
    if isinstance(expr, Pow):
        base, exponent = children
        if (isinstance(base, Num) and base.is_zero()
                and isinstance(exponent, Num) and exponent.value.is_negative()):
            raise DivisionByZero(Pow(base, exponent))
        return pow(base, exponent)
    return rebuild(expr, children)


def _approximate(expr: Expression) -> Optional[float]:
    """Float value of a closed numeric expression, or None."""
    if free_symbols(expr):
        return None
    approx = expr if isinstance(expr, Num) else eval_numeric(expr)
    if not isinstance(approx, Num):
        return None
    try:
        return approx.value.to_float()
    except NumericOverflow:
        return None


# Singularities of the reciprocal trig functions sit at offset + k*pi
_POLE_OFFSETS = {"tan": math.pi / 2, "sec": math.pi / 2, "csc": 0.0, "cot": 0.0}


def _check_pole(name: str, arg: Expression):
    offset = _POLE_OFFSETS[name]
    if isinstance(arg, Num) and arg.value.is_integer():
        # pi is irrational: 0 is the only integer pole
        if offset == 0.0 and arg.is_zero():
            raise Pole(name, arg)
        return
    value = _approximate(arg)
    if value is not None and near_multiple_of_pi(value, offset):
        raise Pole(name, arg)


def _check_domain(name: str, arg: Expression):
    if name == "sqrt" and isinstance(arg, Num) and arg.value.is_negative():
        raise DomainError("sqrt", arg, "square root of a negative number")

    if name in ("log", "ln", "log10", "log2") and isinstance(arg, Num):
        if arg.is_zero() or (arg.value.is_float() and abs(arg.value.value) < ZERO_TOLERANCE):
            raise Pole(name, arg)
        if arg.value.is_negative():
            raise BranchCut(name, arg)

    if name in ("asin", "arcsin", "acos", "arccos") and isinstance(arg, Num):
        if abs(arg.value) > Number(1):
            raise DomainError(name, arg, "argument outside [-1, 1]")

    if name in _POLE_OFFSETS:
        _check_pole(name, arg)


def _evaluate_function(name: str, args) -> Expression:
    if name == "undefined":
        raise DivisionByZero(Function(name, tuple(args)))
    if len(args) == 1:
        _check_domain(name, args[0])
    return function(name, args)


# ============================================================
# Evaluation context
# ============================================================

class EvalContext:
    """
    Settings for evaluate_with_context.

    Attributes:
        variables: name -> replacement expression
        numeric: run the numeric pass at the end
        precision: requested precision in bits (floats carry 53)
        simplify_first: re-canonicalize after substitution

    Examples:
        EvalContext.symbolic()
        EvalContext.numerical({"x": 3}).with_precision(64)
    """

    def __init__(self, variables: Optional[Mapping] = None, numeric: bool = False,
                 precision: int = 53, simplify_first: bool = False):
        self.variables: Dict[str, Expression] = _normalize_variables(variables or {})
        self.numeric = numeric
        self.precision = precision
        self.simplify_first = simplify_first

    @classmethod
    def symbolic(cls) -> "EvalContext":
        """No substitution, no simplification pass, no numeric pass."""
        return cls()

    @classmethod
    def numerical(cls, variables: Optional[Mapping] = None) -> "EvalContext":
        """Substitute `variables`, simplify, then reduce numerically."""
        return cls(variables, numeric=True, simplify_first=True)

    def _replace(self, **changes) -> "EvalContext":
        settings = dict(variables=self.variables, numeric=self.numeric,
                        precision=self.precision, simplify_first=self.simplify_first)
        settings.update(changes)
        return EvalContext(**settings)

    def with_variables(self, variables: Mapping) -> "EvalContext":
        return self._replace(variables=variables)

    def with_numeric(self, numeric: bool = True) -> "EvalContext":
        return self._replace(numeric=numeric)

    def with_precision(self, bits: int) -> "EvalContext":
        if bits < 1:
            raise ValueError(f"Precision must be positive, got {bits}")
        return self._replace(precision=bits)

    def with_simplify(self, simplify_first: bool = True) -> "EvalContext":
        return self._replace(simplify_first=simplify_first)

    def __eq__(self, other):
        if not isinstance(other, EvalContext):
            return NotImplemented
        return (self.variables, self.numeric, self.precision, self.simplify_first) == \
            (other.variables, other.numeric, other.precision, other.simplify_first)

    def __repr__(self) -> str:
        return (f"EvalContext(variables={sorted(self.variables)}, numeric={self.numeric}, "
                f"precision={self.precision}, simplify_first={self.simplify_first})")


def _normalize_variables(variables: Mapping) -> Dict[str, Expression]:
    out = {}
    for key, value in variables.items():
        name = key if isinstance(key, str) else getattr(key, "name", None)
        if name is None:
            raise TypeError(f"Variable key must be a name or symbol, got {type(key).__name__}")
        out[name] = as_expression(value)
    return out


def evaluate_with_context(expr: ExprLike, ctx: EvalContext) -> Expression:
    """Substitute, optionally simplify, optionally reduce numerically."""
    logger.debug("Evaluating with %r", ctx)
    result = as_expression(expr)
    if ctx.variables:
        result = substitute(result, ctx.variables)
    if ctx.simplify_first:
        result = simplify(result)
    if ctx.numeric:
        result = eval_numeric(result, ctx.precision)
    return result


# ============================================================
# Numeric reduction
# ============================================================

def _numeric_power(base: Num, exponent: Num) -> Optional[Expression]:
    """Float value of base**exponent when it is finite and real."""
    try:
        b = base.value.to_float()
        if exponent.value.is_integer():
            result = b ** exponent.value.value
        else:
            result = b ** exponent.value.to_float()
    except (ArithmeticError, NumericOverflow):
        logger.debug("Numeric power %r ^ %r left symbolic", base, exponent)
        return None
    if isinstance(result, complex) or not math.isfinite(result):
        logger.debug("Numeric power %r ^ %r left symbolic", base, exponent)
        return None
    return float_(float(result))


def _dispatch_numeric(name: str, args) -> Optional[Expression]:
    reply = REGISTRY.dispatch(name, args)
    if reply is not None and not isinstance(reply, Function):
        return reply
    if all(isinstance(a, Num) for a in args) and any(a.value.is_exact() for a in args):
        # retry handlers that only reduce float arguments
        try:
            floats = [a if a.value.is_float() else float_(a.value.to_float()) for a in args]
        except NumericOverflow:
            return None
        reply = REGISTRY.dispatch(name, floats)
        if reply is not None and not isinstance(reply, Function):
            return reply
    return None


def eval_numeric(expr: ExprLike, precision: int = 53) -> Expression:
    """
    Reduce an expression numerically.

    Constants with a float value become floats; i, the infinities and
    undefined stay symbolic. Numeric powers become floats when the result is
    finite; otherwise they stay symbolic. Function calls are reduced through
    the registry. Calculus operations and method calls are left as they are.
    Sums, products and structured values (sets, intervals, relations,
    piecewise, complex numbers and matrices) reduce pointwise.

    `precision` is accepted for API symmetry; computation uses Python floats
    (53-bit mantissa).

    Raises:
        DivisionByZero: zero base with a negative exponent
    """
    return fold_tree(as_expression(expr), _numeric_node, prune=_numeric_leaf)


def _numeric_leaf(expr: Expression) -> Optional[Expression]:
    if isinstance(expr, Const):
        value = expr.constant.float_value
        return float_(value) if value is not None else expr
    if isinstance(expr, (Calculus, MethodCall)):
        return expr
    return None


def _numeric_node(expr: Expression, children) -> Expression:
    if isinstance(expr, Pow):
        base, exponent = children
        if isinstance(base, Num) and isinstance(exponent, Num):
            if base.is_zero() and exponent.value.is_negative():
                raise DivisionByZero(Pow(base, exponent))
            folded = _numeric_power(base, exponent)
            if folded is not None:
                return folded
        return pow(base, exponent)
    if isinstance(expr, Function):
        reply = _dispatch_numeric(expr.name, children)
        if reply is not None:
            return eval_numeric(reply)
        return function(expr.name, children)
    return rebuild(expr, children)


def evaluate_to_f64(expr: ExprLike) -> float:
    """
    Evaluate to a Python float.

    Raises:
        NonNumericalResult: symbolic residue remains
        NumericOverflow: the exact result does not fit in a float
        and anything evaluate() raises
    """
    result = eval_numeric(evaluate(expr))
    if isinstance(result, Num):
        return result.value.to_float()
    raise NonNumericalResult(result)
