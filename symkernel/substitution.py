"""
Substitution and re-canonicalization.

Every rebuilt node goes back through its canonical constructor, so
substituting a number can trigger folding:

    subs(add([x, 1]), x, 5)                    # => 6
    subs_multiple(add([x, mul([2, y])]), {x: y, y: x})   # => (+ y (* 2 x))
    substitute(x**2 + 2*x + 1, {"x": 3})       # => 16

Replacements are never searched again, so `{x: y, y: x}` swaps the two
symbols instead of collapsing them. Products keep the positional order of
noncommutative factors:

    subs(mul([A, B, A]), A, C)                 # => (* C B C)

Substitution never raises a MathError. Trees are rebuilt on an explicit
stack (`fold_tree`), so nesting depth is not bounded by the interpreter's
recursion limit.
"""

from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from .canonical import (
    add, complex_, interval, method_call, mul, piecewise, pow, relation, set_,
)
from .expression import (
    Add, Calculus, Complex, Expression, ExprLike, Function, Interval,
    MatrixExpr, MethodCall, Mul, Piecewise, Pow, Relation, SetExpr, Sym,
    as_expression, fold_tree,
)
from .functions import function
from .symbol import Symbol

Transform = Callable[[Expression], Expression]


def rebuild(expr: Expression, children: Sequence[Expression]) -> Expression:
    """
    Rebuild `expr` around new children, given in `children()` order, through
    the node's canonical constructor. Calculus bound variables are left alone.
    """
    if not expr.children():
        return expr
    if isinstance(expr, Add):
        return add(children)
    if isinstance(expr, Mul):
        return mul(children)
    if isinstance(expr, Pow):
        return pow(children[0], children[1])
    if isinstance(expr, Function):
        return function(expr.name, children)
    if isinstance(expr, Complex):
        return complex_(children[0], children[1])
    if isinstance(expr, MatrixExpr):
        return MatrixExpr(expr.matrix.with_elements(children))
    if isinstance(expr, SetExpr):
        return set_(children)
    if isinstance(expr, Interval):
        return interval(children[0], children[1], expr.start_inclusive, expr.end_inclusive)
    if isinstance(expr, Relation):
        return relation(children[0], children[1], expr.relation)
    if isinstance(expr, Piecewise):
        count = len(expr.pieces)
        pieces = [(children[2 * k], children[2 * k + 1]) for k in range(count)]
        default = children[2 * count] if expr.default is not None else None
        return piecewise(pieces, default)
    if isinstance(expr, Calculus):
        extras = iter(children[2:])
        return Calculus(
            expr.operation, children[0], expr.variable, order=expr.order,
            lower=None if expr.lower is None else next(extras),
            upper=None if expr.upper is None else next(extras),
            point=None if expr.point is None else next(extras),
            direction=expr.direction,
        )
    if isinstance(expr, MethodCall):
        return method_call(children[0], expr.name, children[1:])
    return expr


def map_children(expr: Expression, fn: Transform) -> Expression:
    """Rebuild `expr` from `fn` applied to each direct child."""
    return rebuild(expr, [fn(child) for child in expr.children()])


def subs(expr: ExprLike, old: ExprLike, new: ExprLike) -> Expression:
    """Replace every subtree structurally equal to `old` with `new`."""
    expr, old, new = as_expression(expr), as_expression(old), as_expression(new)
    return fold_tree(expr, rebuild, prune=lambda node: new if node == old else None)


PairsType = Union[Mapping[ExprLike, ExprLike], Iterable[Tuple[ExprLike, ExprLike]]]


def subs_multiple(expr: ExprLike, pairs: PairsType) -> Expression:
    """Apply several replacements in one simultaneous pass."""
    items = pairs.items() if isinstance(pairs, Mapping) else pairs
    table: Dict[Expression, Expression] = {
        as_expression(old): as_expression(new) for old, new in items
    }
    return fold_tree(as_expression(expr), rebuild, prune=table.get)


def _variable_name(key) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, Symbol):
        return key.name
    if isinstance(key, Sym):
        return key.name
    raise TypeError(f"Variable key must be a name or symbol, got {type(key).__name__}")


def substitute(expr: ExprLike, variables: Mapping) -> Expression:
    """
    Replace symbols by name.

    Keys may be names, Symbols or symbol expressions; every symbol with a
    matching name is replaced, whatever its commutativity class.
    """
    table = {_variable_name(k): as_expression(v) for k, v in variables.items()}

    def replacement(node: Expression) -> Optional[Expression]:
        if isinstance(node, Sym):
            return table.get(node.name)
        return None

    return fold_tree(as_expression(expr), rebuild, prune=replacement)


def simplify(expr: ExprLike) -> Expression:
    """Rebuild the whole tree bottom-up through the canonical constructors."""
    return fold_tree(as_expression(expr), rebuild)
