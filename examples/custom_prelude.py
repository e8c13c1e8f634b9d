"""
Example custom prelude for SYMKERNEL.

This file demonstrates how to build a function registry that extends the
kernel's shipped handlers.

Usage:
    from symkernel import FunctionRegistry, function, integer, symbol
    from custom_prelude import PRELUDE

    registry = FunctionRegistry(PRELUDE)
    function("fib", [integer(10)], registry=registry)      # => 55
    function("double", [symbol("x")], registry=registry)   # => (* 2 x)

Or install the handlers process-wide:
    install()
"""

import math

from symkernel import (
    DEFAULT_PRELUDE, Function, binary_only, mul, numeric_binary,
    numeric_unary, pow, rational, register_function, unary_only,
)


def _exact_fib(n):
    if not n.is_integer() or n.is_negative():
        return None
    a, b = 0, 1
    for _ in range(n.value):
        a, b = b, a + b
    return a


def _unwrap_square(v):
    # square(sqrt(a)) = a
    if isinstance(v, Function) and v.name == "sqrt" and len(v.args) == 1:
        return v.args[0]
    return pow(v, 2)


def _hypot(a, b):
    return pow(a * a + b * b, rational(1, 2))


def _integers_only(a, b):
    raise ValueError("expected integer arguments")


# Start with the default prelude and extend it
PRELUDE = {
    **DEFAULT_PRELUDE,

    # Number theory
    "fib": numeric_unary(lambda v: math.nan, exact=_exact_fib),
    "comb": numeric_binary(_integers_only, exact=lambda n, k: math.comb(n.value, k.value)
                           if n.is_integer() and k.is_integer() else None),

    # Symbolic rewrites
    "double": unary_only(lambda v: mul([2, v])),
    "square": unary_only(_unwrap_square),
    "hypot": binary_only(_hypot),

    # Min/max of numbers
    "min": numeric_binary(min, exact=lambda a, b: min(a, b)),
    "max": numeric_binary(max, exact=lambda a, b: max(a, b)),
}


def install():
    """Register the extra handlers in the process-wide registry."""
    for name, handler in PRELUDE.items():
        if name not in DEFAULT_PRELUDE:
            register_function(name, handler, replace=True)
