"""
Function dispatch registry.

A registry maps a function name to a handler:

    handler(args: List[Expression]) -> Optional[Expression]

Handlers receive canonical arguments and return a value, or None to leave
the call symbolic. They are pure and decide between exact and float
behaviour from the kind of their inputs:

    REGISTRY.dispatch("sqrt", [integer(9)])     # => 3
    REGISTRY.dispatch("sqrt", [float_(2.0)])    # => 1.4142135623730951
    REGISTRY.dispatch("sqrt", [symbol("x")])    # => None

A registry starts from a prelude (a plain dict of handlers). Extend the
process-wide registry with `register_function`, or build a private one:

    registry = FunctionRegistry(ELEMENTARY_PRELUDE)
    registry.register("double", unary_only(lambda v: mul([2, v])))

Reads go through an immutable snapshot and take no lock; writes take a lock
and swap in a new snapshot.
"""

import logging
import math
import threading
from fractions import Fraction
from typing import Callable, Dict, List, Optional, Sequence

from .canonical import e as e_constant, euler_gamma, integer, mul
from .errors import MathError
from .expression import Expression, Num, as_expression, near_multiple_of_pi
from .number import Number

logger = logging.getLogger(__name__)

Handler = Callable[[List[Expression]], Optional[Expression]]
PreludeType = Dict[str, Handler]

# Largest argument for which factorial and gamma are computed exactly
EXACT_FACTORIAL_LIMIT = 1000


# ============================================================
# Handler builders
# ============================================================

def unary_only(f: Callable[[Expression], Optional[Expression]]) -> Handler:
    """Create a one-argument handler (e.g., a symbolic rewrite of f(x))."""
    def handler(args: List[Expression]) -> Optional[Expression]:
        if len(args) != 1:
            return None
        return f(args[0])
    return handler


def binary_only(f: Callable[[Expression, Expression], Optional[Expression]]) -> Handler:
    """Create a two-argument handler."""
    def handler(args: List[Expression]) -> Optional[Expression]:
        if len(args) != 2:
            return None
        return f(args[0], args[1])
    return handler


def _float_result(value) -> Optional[Expression]:
    if isinstance(value, complex):
        return None
    if isinstance(value, int):
        return integer(value)
    if not math.isfinite(value):
        return None
    return Num(Number.float(value))


def numeric_unary(
    float_fn: Callable[[float], float],
    exact: Optional[Callable[[Number], Optional[object]]] = None,
) -> Handler:
    """Create a handler for a numeric function of one argument.

    Args:
        float_fn: Float implementation, e.g., math.sin
        exact: Optional exact implementation tried first for exact inputs;
            returns an Expression, a Number, a Python number, or None

    Examples:
        numeric_unary(math.exp, exact=lambda n: 1 if n.is_zero() else None)
    """
    def handler(args: List[Expression]) -> Optional[Expression]:
        if len(args) != 1 or not isinstance(args[0], Num):
            return None
        value = args[0].value
        if exact is not None and value.is_exact():
            result = exact(value)
            if result is not None:
                return as_expression(result)
        return _float_result(float_fn(value.to_float()))
    return handler


def numeric_binary(
    float_fn: Callable[[float, float], float],
    exact: Optional[Callable[[Number, Number], Optional[object]]] = None,
) -> Handler:
    """Two-argument counterpart of numeric_unary."""
    def handler(args: List[Expression]) -> Optional[Expression]:
        if len(args) != 2 or not all(isinstance(a, Num) for a in args):
            return None
        a, b = args[0].value, args[1].value
        if exact is not None and a.is_exact() and b.is_exact():
            result = exact(a, b)
            if result is not None:
                return as_expression(result)
        return _float_result(float_fn(a.to_float(), b.to_float()))
    return handler


# ============================================================
# Exact helpers
# ============================================================

def _exact_sqrt(n: Number):
    return n.exact_root(2)


def _exact_when(value, result):
    """Exact reply for one specific input value."""
    return lambda n: result if n.value == value else None


def _exact_abs(n: Number):
    return abs(n)


def _exact_sign(n: Number):
    return n.sign()


def _exact_floor(n: Number):
    return math.floor(Fraction(n.value))


def _exact_ceil(n: Number):
    return math.ceil(Fraction(n.value))


def _exact_round(n: Number):
    return round(Fraction(n.value))


def _exact_factorial(n: Number):
    if n.is_integer() and 0 <= n.value <= EXACT_FACTORIAL_LIMIT:
        return math.factorial(n.value)
    return None


def _exact_gamma(n: Number):
    if n.is_integer() and 1 <= n.value <= EXACT_FACTORIAL_LIMIT + 1:
        return math.factorial(n.value - 1)
    return None


def _float_factorial(x: float) -> float:
    return math.gamma(x + 1)


def _exact_beta(a: Number, b: Number):
    if a.is_integer() and b.is_integer() and a.value >= 1 and b.value >= 1 \
            and a.value + b.value <= EXACT_FACTORIAL_LIMIT:
        p, q = a.value, b.value
        return Number(Fraction(math.factorial(p - 1) * math.factorial(q - 1),
                               math.factorial(p + q - 1)))
    return None


def _float_beta(a: float, b: float) -> float:
    return math.gamma(a) * math.gamma(b) / math.gamma(a + b)


def _exact_digamma(n: Number):
    if n.value == 1:
        return mul([integer(-1), euler_gamma()])
    return None


def _float_digamma(x: float) -> float:
    """Digamma by upward recurrence and the asymptotic series."""
    if x <= 0 and x == math.floor(x):
        raise ValueError("digamma has poles at non-positive integers")
    if x < 0:
        # reflection: psi(1 - x) - psi(x) = pi cot(pi x)
        return _float_digamma(1 - x) - math.pi / math.tan(math.pi * x)
    result = 0.0
    while x < 6:
        result -= 1 / x
        x += 1
    inv = 1 / x
    inv2 = inv * inv
    result += math.log(x) - inv / 2 - inv2 * (1 / 12 - inv2 * (1 / 120 - inv2 / 252))
    return result


def _exact_exp(n: Number):
    if n.is_zero():
        return 1
    if n.is_one():
        return e_constant()
    return None


def _exact_log_one(n: Number):
    return 0 if n.is_one() else None


def _pole_guarded(float_fn: Callable[[float], float], offset: float) -> Callable[[float], float]:
    """Float function that declines within POLE_TOLERANCE of offset + k*pi."""
    def guarded(x: float) -> float:
        if near_multiple_of_pi(x, offset):
            raise ValueError(f"{x!r} is at a pole")
        return float_fn(x)
    return guarded


def _cot(x: float) -> float:
    return 1 / math.tan(x)


def _sec(x: float) -> float:
    return 1 / math.cos(x)


def _csc(x: float) -> float:
    return 1 / math.sin(x)


def _integer_pair(f: Callable[[int, int], int]):
    def exact(a: Number, b: Number):
        if a.is_integer() and b.is_integer():
            return f(a.value, b.value)
        return None
    return exact


def _lcm(a: int, b: int) -> int:
    if a == 0 or b == 0:
        return 0
    return abs(a * b) // math.gcd(a, b)


def _exact_mod(a: Number, b: Number):
    if b.is_zero():
        raise ZeroDivisionError("mod by zero")
    return Number(Fraction(a.value) % Fraction(b.value))


def _float_mod(a: float, b: float) -> float:
    return a % b


def _integers_only(a: float, b: float):
    raise ValueError("expected integer arguments")


# ============================================================
# Standard Preludes
# ============================================================

# Elementary functions: roots, exponentials, logarithms, trig, hyperbolic
ELEMENTARY_PRELUDE: PreludeType = {
    "sqrt": numeric_unary(math.sqrt, exact=_exact_sqrt),
    "exp": numeric_unary(math.exp, exact=_exact_exp),
    "log": numeric_unary(math.log, exact=_exact_log_one),
    "ln": numeric_unary(math.log, exact=_exact_log_one),
    "log10": numeric_unary(math.log10, exact=_exact_log_one),
    "log2": numeric_unary(math.log2, exact=_exact_log_one),
    "sin": numeric_unary(math.sin, exact=_exact_when(0, 0)),
    "cos": numeric_unary(math.cos, exact=_exact_when(0, 1)),
    "tan": numeric_unary(_pole_guarded(math.tan, math.pi / 2), exact=_exact_when(0, 0)),
    "cot": numeric_unary(_pole_guarded(_cot, 0.0)),
    "sec": numeric_unary(_pole_guarded(_sec, math.pi / 2), exact=_exact_when(0, 1)),
    "csc": numeric_unary(_pole_guarded(_csc, 0.0)),
    "asin": numeric_unary(math.asin, exact=_exact_when(0, 0)),
    "arcsin": numeric_unary(math.asin, exact=_exact_when(0, 0)),
    "acos": numeric_unary(math.acos, exact=_exact_when(1, 0)),
    "arccos": numeric_unary(math.acos, exact=_exact_when(1, 0)),
    "atan": numeric_unary(math.atan, exact=_exact_when(0, 0)),
    "arctan": numeric_unary(math.atan, exact=_exact_when(0, 0)),
    "sinh": numeric_unary(math.sinh, exact=_exact_when(0, 0)),
    "cosh": numeric_unary(math.cosh, exact=_exact_when(0, 1)),
    "tanh": numeric_unary(math.tanh, exact=_exact_when(0, 0)),
    "asinh": numeric_unary(math.asinh, exact=_exact_when(0, 0)),
    "acosh": numeric_unary(math.acosh, exact=_exact_when(1, 0)),
    "atanh": numeric_unary(math.atanh, exact=_exact_when(0, 0)),
    "abs": numeric_unary(abs, exact=_exact_abs),
    "sign": numeric_unary(lambda x: (x > 0) - (x < 0), exact=_exact_sign),
    "floor": numeric_unary(math.floor, exact=_exact_floor),
    "ceil": numeric_unary(math.ceil, exact=_exact_ceil),
    "round": numeric_unary(round, exact=_exact_round),
}

# Special functions
SPECIAL_PRELUDE: PreludeType = {
    "gamma": numeric_unary(math.gamma, exact=_exact_gamma),
    "beta": numeric_binary(_float_beta, exact=_exact_beta),
    "digamma": numeric_unary(_float_digamma, exact=_exact_digamma),
    "factorial": numeric_unary(_float_factorial, exact=_exact_factorial),
    "erf": numeric_unary(math.erf, exact=_exact_when(0, 0)),
    "erfc": numeric_unary(math.erfc, exact=_exact_when(0, 1)),
}

# Integer arithmetic
NUMBER_THEORY_PRELUDE: PreludeType = {
    "gcd": numeric_binary(_integers_only, exact=_integer_pair(math.gcd)),
    "lcm": numeric_binary(_integers_only, exact=_integer_pair(_lcm)),
    "mod": numeric_binary(_float_mod, exact=_exact_mod),
}

# Everything the kernel ships with
DEFAULT_PRELUDE: PreludeType = {
    **ELEMENTARY_PRELUDE,
    **SPECIAL_PRELUDE,
    **NUMBER_THEORY_PRELUDE,
}

# Empty prelude (every call stays symbolic)
NO_PRELUDE: PreludeType = {}


# ============================================================
# Registry
# ============================================================

class FunctionRegistry:
    """
    Read-mostly map from function name to handler.

    Examples:
        registry = FunctionRegistry(DEFAULT_PRELUDE)
        "sin" in registry                          # => True
        registry.dispatch("gamma", [integer(5)])   # => 24
    """

    def __init__(self, prelude: Optional[PreludeType] = None):
        self._handlers: PreludeType = dict(prelude or {})
        self._lock = threading.RLock()

    def register(self, name: str, handler: Handler, replace: bool = False) -> "FunctionRegistry":
        """
        Add a handler. Registering an existing name needs replace=True.

        Returns self for chaining.
        """
        if not callable(handler):
            raise TypeError(f"Handler for {name!r} must be callable")
        with self._lock:
            exists = name in self._handlers
            if exists and not replace:
                raise ValueError(f"Function {name!r} is already registered")
            updated = dict(self._handlers)
            updated[name] = handler
            self._handlers = updated
        if exists:
            logger.warning("Replaced handler for function %r", name)
        else:
            logger.debug("Registered handler for function %r", name)
        return self

    def unregister(self, name: str) -> bool:
        """Remove a handler; returns whether one was registered."""
        with self._lock:
            if name not in self._handlers:
                return False
            updated = dict(self._handlers)
            del updated[name]
            self._handlers = updated
        logger.debug("Unregistered handler for function %r", name)
        return True

    def get(self, name: str) -> Optional[Handler]:
        return self._handlers.get(name)

    def names(self) -> List[str]:
        return sorted(self._handlers)

    def copy(self) -> "FunctionRegistry":
        return FunctionRegistry(self._handlers)

    def __contains__(self, name: str) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def dispatch(self, name: str, args: Sequence[Expression]) -> Optional[Expression]:
        """
        Run the handler for `name`, or return None.

        A handler that fails with an arithmetic or domain error is treated
        as declining to reduce.
        """
        handler = self._handlers.get(name)
        if handler is None:
            return None
        try:
            result = handler(list(args))
        except (ValueError, ArithmeticError, MathError) as exc:
            logger.debug("Handler for %r declined %r: %s", name, list(args), exc)
            return None
        if result is None:
            return None
        return as_expression(result)

    def __repr__(self) -> str:
        return f"FunctionRegistry({len(self._handlers)} functions)"


# Process-wide registry used by function() and the evaluators
REGISTRY = FunctionRegistry(DEFAULT_PRELUDE)


def register_function(name: str, handler: Handler, replace: bool = False) -> FunctionRegistry:
    """Register a handler in the process-wide registry."""
    return REGISTRY.register(name, handler, replace=replace)


def get_registry() -> FunctionRegistry:
    return REGISTRY
