"""
Expression tree for symkernel.

Every expression is an immutable node. Leaves are numbers, symbols and
named constants; composites hold a tuple of children. Nodes compare and
hash by structure, so equal subtrees built along different paths are
interchangeable and may be shared freely (also across threads).

Node classes are not meant to be instantiated directly: the constructors in
`symkernel.canonical` and `symkernel.functions` are the only supported way
to build expressions, and they always return canonical form. Arithmetic
operators on expressions route to those constructors:

    x = symbol("x")
    x + 1 + x          # => (+ 1 (* 2 x))
    (x * 3) / 2        # => (* 3/2 x)

Expressions render as s-expressions for diagnostics:

    format_sexpr(add([x, integer(1)]))   # => "(+ 1 x)"
"""

import math
from enum import Enum
from fractions import Fraction
from typing import Any, Callable, List, Optional, Tuple, Union

from .number import Number
from .symbol import Symbol


# ============================================================
# Kernel limits and tolerances
# ============================================================

# Deepest expression to_json/from_json accept; the json module recurses once
# per nesting level. Tree traversals in the kernel use explicit work stacks.
MAX_DEPTH = 250

# Exact numeric powers are folded only when the result stays below this size
EXACT_POWER_MAX_BITS = 100_000

# Distance from a singularity treated as hitting it (tan, sec, csc, cot)
POLE_TOLERANCE = 1e-10

# Magnitude below which a float log argument counts as zero
ZERO_TOLERANCE = 1e-15


def near_multiple_of_pi(value: float, offset: float = 0.0) -> bool:
    """Whether value is within POLE_TOLERANCE of offset + k*pi."""
    if not math.isfinite(value):
        return False
    r = math.fmod(value - offset, math.pi)
    if r < 0:
        r += math.pi
    return r < POLE_TOLERANCE or math.pi - r < POLE_TOLERANCE


# ============================================================
# Enumerations
# ============================================================

class ExprKind(Enum):
    NUMBER = "number"
    SYMBOL = "symbol"
    CONSTANT = "constant"
    ADD = "add"
    MUL = "mul"
    POW = "pow"
    FUNCTION = "function"
    COMPLEX = "complex"
    MATRIX = "matrix"
    SET = "set"
    INTERVAL = "interval"
    RELATION = "relation"
    PIECEWISE = "piecewise"
    CALCULUS = "calculus"
    METHOD_CALL = "method_call"


class MathConstant(Enum):
    PI = "pi"
    E = "e"
    I = "i"
    INFINITY = "infinity"
    NEGATIVE_INFINITY = "-infinity"
    UNDEFINED = "undefined"
    GOLDEN_RATIO = "golden_ratio"
    EULER_GAMMA = "euler_gamma"
    TRIBONACCI = "tribonacci"

    @property
    def float_value(self) -> Optional[float]:
        """Float approximation, or None for constants that stay symbolic."""
        return _CONSTANT_VALUES.get(self)

    @property
    def is_exact_symbolic(self) -> bool:
        return self not in _CONSTANT_VALUES


_CONSTANT_VALUES = {
    MathConstant.PI: math.pi,
    MathConstant.E: math.e,
    MathConstant.GOLDEN_RATIO: (1 + math.sqrt(5)) / 2,
    MathConstant.EULER_GAMMA: 0.5772156649015329,
    MathConstant.TRIBONACCI: 1.8392867552141612,
}

_CONSTANT_ORDER = {c: index for index, c in enumerate(MathConstant)}


class RelationType(Enum):
    EQUAL = "="
    NOT_EQUAL = "!="
    LESS = "<"
    LESS_EQUAL = "<="
    GREATER = ">"
    GREATER_EQUAL = ">="
    APPROX = "~="
    SIMILAR = "~"
    PROPORTIONAL = "propto"


class CalculusKind(Enum):
    DERIVATIVE = "derivative"
    INTEGRAL = "integral"
    LIMIT = "limit"
    SUM = "sum"
    PRODUCT = "product"


class LimitDirection(Enum):
    BOTH = "both"
    LEFT = "left"
    RIGHT = "right"


# Ordering ranks: numbers < constants < symbols < products < sums
# < functions < other composites
_RANKS = {
    ExprKind.NUMBER: 0,
    ExprKind.CONSTANT: 1,
    ExprKind.SYMBOL: 2,
    ExprKind.MUL: 3,
    ExprKind.ADD: 4,
    ExprKind.FUNCTION: 5,
    ExprKind.COMPLEX: 6,
    ExprKind.MATRIX: 7,
    ExprKind.SET: 8,
    ExprKind.INTERVAL: 9,
    ExprKind.RELATION: 10,
    ExprKind.PIECEWISE: 11,
    ExprKind.CALCULUS: 12,
    ExprKind.METHOD_CALL: 13,
}


# ============================================================
# Base class
# ============================================================

class Expression:
    """
    Base class of all expression nodes.

    Subclasses define `kind`, `_fields()` (the structural content used for
    equality and hashing) and `children()` (direct sub-expressions in
    positional order).
    """

    __slots__ = ('_hash', '_key')

    kind: ExprKind

    def __init__(self):
        self._hash = None
        self._key = None

    def _fields(self) -> Tuple:
        raise NotImplementedError

    def children(self) -> Tuple["Expression", ...]:
        return ()

    def _body(self) -> Tuple:
        raise NotImplementedError

    def sort_key(self) -> Tuple:
        """
        Canonical ordering key `(rank, body, exponent-key)`.

        Deterministic across processes: built from structure only, never
        from salted string hashes.
        """
        if self._key is None:
            _fill_cache(self, '_key', _node_key)
        return self._key

    def _compute_key(self) -> Tuple:
        # children's keys are already cached
        return (_RANKS[self.kind], self._body(), ())

    # -- predicates -------------------------------------------------

    def is_number(self) -> bool:
        return False

    def is_zero(self) -> bool:
        return False

    def is_one(self) -> bool:
        return False

    def is_symbol(self, name: Optional[str] = None) -> bool:
        return False

    def is_constant(self) -> bool:
        return False

    # -- structural equality ----------------------------------------

    def __eq__(self, other):
        if self is other:
            return True
        if type(other) is not type(self):
            if isinstance(other, Expression):
                return False
            return NotImplemented
        return _structurally_equal(self, other)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        if self._hash is None:
            _fill_cache(self, '_hash', _structural_hash)
        return self._hash

    def __repr__(self) -> str:
        return format_sexpr(self)

    # -- arithmetic routes to the canonical constructors ----------------

    def __add__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        from .canonical import add
        return add([self, other])

    def __radd__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        from .canonical import add
        return add([other, self])

    def __sub__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        from .canonical import sub
        return sub(self, other)

    def __rsub__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        from .canonical import sub
        return sub(other, self)

    def __mul__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        from .canonical import mul
        return mul([self, other])

    def __rmul__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        from .canonical import mul
        return mul([other, self])

    def __truediv__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        from .canonical import div
        return div(self, other)

    def __rtruediv__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        from .canonical import div
        return div(other, self)

    def __pow__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        from .canonical import pow
        return pow(self, other)

    def __rpow__(self, other):
        other = _lift(other)
        if other is None:
            return NotImplemented
        from .canonical import pow
        return pow(other, self)

    def __neg__(self):
        from .canonical import neg
        return neg(self)

    def __pos__(self):
        return self


# ============================================================
# Cached structure
# ============================================================

def _fill_cache(root: Expression, slot: str, compute) -> None:
    """Fill a per-node cache slot for root and every uncached descendant, children first."""
    pending = []
    stack = [root]
    while stack:
        node = stack.pop()
        if getattr(node, slot) is None:
            pending.append(node)
            stack.extend(node.children())
    # reversed pre-order visits every node after its descendants
    for node in reversed(pending):
        if getattr(node, slot) is None:
            setattr(node, slot, compute(node))


def _structural_hash(node: Expression) -> int:
    return hash((type(node).__name__,) + node._fields())


def _node_key(node: Expression) -> Tuple:
    return node._compute_key()


def _structurally_equal(a: Expression, b: Expression) -> bool:
    pairs = [(a, b)]
    while pairs:
        a, b = pairs.pop()
        if a is b:
            continue
        if type(a) is not type(b) or hash(a) != hash(b):
            return False
        fields_a, fields_b = a._fields(), b._fields()
        if len(fields_a) != len(fields_b):
            return False
        for fa, fb in zip(fields_a, fields_b):
            if isinstance(fa, Expression) and isinstance(fb, Expression):
                pairs.append((fa, fb))
            elif fa != fb:
                return False
    return True


# ============================================================
# Leaves
# ============================================================

class Num(Expression):
    """Numeric leaf."""

    __slots__ = ('value',)
    kind = ExprKind.NUMBER

    def __init__(self, value: Number):
        super().__init__()
        self.value = value

    def _fields(self):
        return (self.value,)

    def _body(self):
        return (self.value.value, 1 if self.value.is_float() else 0)

    def is_number(self) -> bool:
        return True

    def is_zero(self) -> bool:
        return self.value.is_zero()

    def is_one(self) -> bool:
        return self.value.is_one()


class Sym(Expression):
    """Symbolic leaf."""

    __slots__ = ('symbol',)
    kind = ExprKind.SYMBOL

    def __init__(self, symbol: Symbol):
        super().__init__()
        self.symbol = symbol

    @property
    def name(self) -> str:
        return self.symbol.name

    def _fields(self):
        return (self.symbol,)

    def _body(self):
        return (self.symbol.name, self.symbol.symbol_type.value)

    def is_symbol(self, name: Optional[str] = None) -> bool:
        return name is None or self.symbol.name == name


class Const(Expression):
    """Named mathematical constant."""

    __slots__ = ('constant',)
    kind = ExprKind.CONSTANT

    def __init__(self, constant: MathConstant):
        super().__init__()
        self.constant = constant

    def _fields(self):
        return (self.constant,)

    def _body(self):
        return (_CONSTANT_ORDER[self.constant],)

    def is_constant(self) -> bool:
        return True


# ============================================================
# Arithmetic composites
# ============================================================

class Add(Expression):
    """Flat n-ary sum in canonical order (at least two terms)."""

    __slots__ = ('terms',)
    kind = ExprKind.ADD

    def __init__(self, terms: Tuple[Expression, ...]):
        super().__init__()
        self.terms = tuple(terms)

    def _fields(self):
        return self.terms

    def children(self):
        return self.terms

    def _body(self):
        return tuple(t.sort_key() for t in self.terms)


class Mul(Expression):
    """Flat n-ary product: coefficient, commutative factors, then noncommutative ones."""

    __slots__ = ('factors',)
    kind = ExprKind.MUL

    def __init__(self, factors: Tuple[Expression, ...]):
        super().__init__()
        self.factors = tuple(factors)

    def _fields(self):
        return self.factors

    def children(self):
        return self.factors

    def _body(self):
        return tuple(f.sort_key() for f in self.factors)


class Pow(Expression):
    """Binary power."""

    __slots__ = ('base', 'exponent')
    kind = ExprKind.POW

    def __init__(self, base: Expression, exponent: Expression):
        super().__init__()
        self.base = base
        self.exponent = exponent

    def _fields(self):
        return (self.base, self.exponent)

    def children(self):
        return (self.base, self.exponent)

    def _compute_key(self):
        # A power sorts next to its base: x < x**2 < y
        rank, body, exp_key = self.base.sort_key()
        return (rank, body, exp_key + (self.exponent.sort_key(),))


class Function(Expression):
    """Named function application."""

    __slots__ = ('name', 'args')
    kind = ExprKind.FUNCTION

    def __init__(self, name: str, args: Tuple[Expression, ...]):
        super().__init__()
        self.name = name
        self.args = tuple(args)

    def _fields(self):
        return (self.name,) + self.args

    def children(self):
        return self.args

    def _body(self):
        return (self.name, tuple(a.sort_key() for a in self.args))


class Complex(Expression):
    """Cartesian complex number real + imag*i."""

    __slots__ = ('real', 'imag')
    kind = ExprKind.COMPLEX

    def __init__(self, real: Expression, imag: Expression):
        super().__init__()
        self.real = real
        self.imag = imag

    def _fields(self):
        return (self.real, self.imag)

    def children(self):
        return (self.real, self.imag)

    def _body(self):
        return (self.real.sort_key(), self.imag.sort_key())


# ============================================================
# Structured values
# ============================================================

class MatrixExpr(Expression):
    """Explicit matrix value; see `symkernel.matrix.Matrix`."""

    __slots__ = ('matrix',)
    kind = ExprKind.MATRIX

    def __init__(self, matrix):
        super().__init__()
        self.matrix = matrix

    def _fields(self):
        return (self.matrix,)

    def children(self):
        return self.matrix.stored_elements()

    def _body(self):
        return self.matrix.sort_body()


class SetExpr(Expression):
    """Finite set; elements are deduplicated and kept in canonical order."""

    __slots__ = ('elements',)
    kind = ExprKind.SET

    def __init__(self, elements: Tuple[Expression, ...]):
        super().__init__()
        self.elements = tuple(elements)

    def _fields(self):
        return self.elements

    def children(self):
        return self.elements

    def _body(self):
        return tuple(e.sort_key() for e in self.elements)


class Interval(Expression):
    __slots__ = ('start', 'end', 'start_inclusive', 'end_inclusive')
    kind = ExprKind.INTERVAL

    def __init__(self, start: Expression, end: Expression,
                 start_inclusive: bool = True, end_inclusive: bool = True):
        super().__init__()
        self.start = start
        self.end = end
        self.start_inclusive = bool(start_inclusive)
        self.end_inclusive = bool(end_inclusive)

    def _fields(self):
        return (self.start, self.end, self.start_inclusive, self.end_inclusive)

    def children(self):
        return (self.start, self.end)

    def _body(self):
        return (self.start.sort_key(), self.end.sort_key(),
                self.start_inclusive, self.end_inclusive)


class Relation(Expression):
    __slots__ = ('lhs', 'rhs', 'relation')
    kind = ExprKind.RELATION

    def __init__(self, lhs: Expression, rhs: Expression, relation: RelationType):
        super().__init__()
        self.lhs = lhs
        self.rhs = rhs
        self.relation = relation

    def _fields(self):
        return (self.lhs, self.rhs, self.relation)

    def children(self):
        return (self.lhs, self.rhs)

    def _body(self):
        return (self.relation.value, self.lhs.sort_key(), self.rhs.sort_key())


class Piecewise(Expression):
    """Ordered (value, condition) pieces with an optional default."""

    __slots__ = ('pieces', 'default')
    kind = ExprKind.PIECEWISE

    def __init__(self, pieces: Tuple[Tuple[Expression, Expression], ...],
                 default: Optional[Expression] = None):
        super().__init__()
        self.pieces = tuple((v, c) for v, c in pieces)
        self.default = default

    def _fields(self):
        return (self.pieces, self.default)

    def children(self):
        flat = [part for piece in self.pieces for part in piece]
        if self.default is not None:
            flat.append(self.default)
        return tuple(flat)

    def _body(self):
        pieces = tuple((v.sort_key(), c.sort_key()) for v, c in self.pieces)
        default = self.default.sort_key() if self.default is not None else ()
        return (pieces, default)


class Calculus(Expression):
    """
    Unevaluated calculus operation.

    Which optional fields are set depends on the operation:

        DERIVATIVE  expression, variable, order
        INTEGRAL    expression, variable, lower and upper (both or neither)
        LIMIT       expression, variable, point, direction
        SUM         expression, variable, lower, upper
        PRODUCT     expression, variable, lower, upper
    """

    __slots__ = ('operation', 'expression', 'variable', 'order',
                 'lower', 'upper', 'point', 'direction')
    kind = ExprKind.CALCULUS

    def __init__(self, operation: CalculusKind, expression: Expression,
                 variable: "Sym", order: int = 1,
                 lower: Optional[Expression] = None,
                 upper: Optional[Expression] = None,
                 point: Optional[Expression] = None,
                 direction: LimitDirection = LimitDirection.BOTH):
        super().__init__()
        self.operation = operation
        self.expression = expression
        self.variable = variable
        self.order = order
        self.lower = lower
        self.upper = upper
        self.point = point
        self.direction = direction

    def _fields(self):
        return (self.operation, self.expression, self.variable, self.order,
                self.lower, self.upper, self.point, self.direction)

    def children(self):
        parts = [self.expression, self.variable]
        for extra in (self.lower, self.upper, self.point):
            if extra is not None:
                parts.append(extra)
        return tuple(parts)

    def _body(self):
        return (self.operation.value, tuple(c.sort_key() for c in self.children()),
                self.order, self.direction.value)


class MethodCall(Expression):
    """Deferred member-style call: obj.name(args)."""

    __slots__ = ('obj', 'name', 'args')
    kind = ExprKind.METHOD_CALL

    def __init__(self, obj: Expression, name: str, args: Tuple[Expression, ...]):
        super().__init__()
        self.obj = obj
        self.name = name
        self.args = tuple(args)

    def _fields(self):
        return (self.obj, self.name) + self.args

    def children(self):
        return (self.obj,) + self.args

    def _body(self):
        return (self.obj.sort_key(), self.name, tuple(a.sort_key() for a in self.args))


# ============================================================
# Lifting Python values
# ============================================================

ExprLike = Union[Expression, Number, Symbol, int, float, Fraction]


def _lift(value) -> Optional[Expression]:
    if isinstance(value, Expression):
        return value
    if isinstance(value, Number):
        return Num(value)
    if isinstance(value, Symbol):
        return Sym(value)
    if isinstance(value, (int, float, Fraction)) and not isinstance(value, bool):
        return Num(Number(value))
    return None


def as_expression(value: ExprLike) -> Expression:
    """
    Lift a Python value into an expression leaf.

    Examples:
        as_expression(3)               # => Num(3)
        as_expression(Fraction(1, 2))  # => Num(1/2)
        as_expression(Symbol("x"))     # => Sym(x)
    """
    result = _lift(value)
    if result is None:
        raise TypeError(f"Cannot convert {type(value).__name__} to Expression")
    return result


# ============================================================
# S-expression display
# ============================================================

_OPERATOR_HEADS = {
    ExprKind.ADD: "+",
    ExprKind.MUL: "*",
    ExprKind.POW: "^",
}


def format_sexpr(expr: Expression) -> str:
    """
    Render an expression as an s-expression string.

    Examples:
        format_sexpr(add([x, integer(1)]))   # => "(+ 1 x)"
        format_sexpr(pow(x, integer(-1)))    # => "(^ x -1)"
        format_sexpr(sin(x))                 # => "(sin x)"
    """
    return fold_tree(expr, _format_node)


def _format_node(expr: Expression, parts: List[str]) -> str:
    if isinstance(expr, Num):
        return str(expr.value)
    if isinstance(expr, Sym):
        return expr.symbol.name
    if isinstance(expr, Const):
        return expr.constant.value
    if isinstance(expr, Function):
        return _sexpr(expr.name, parts)
    if isinstance(expr, MatrixExpr):
        return repr(expr.matrix)
    if isinstance(expr, SetExpr):
        return _sexpr("set", parts)
    if isinstance(expr, Interval):
        left = "[" if expr.start_inclusive else "("
        right = "]" if expr.end_inclusive else ")"
        return f"(interval {left}{parts[0]} {parts[1]}{right})"
    if isinstance(expr, Relation):
        return _sexpr(expr.relation.value, parts)
    if isinstance(expr, Piecewise):
        count = len(expr.pieces)
        pieces = [f"({parts[2 * k]} {parts[2 * k + 1]})" for k in range(count)]
        if expr.default is not None:
            pieces.append(f"(otherwise {parts[2 * count]})")
        return "(piecewise " + " ".join(pieces) + ")"
    if isinstance(expr, Calculus):
        text = _sexpr(expr.operation.value, parts)
        if expr.operation is CalculusKind.DERIVATIVE and expr.order != 1:
            text = text[:-1] + f" {expr.order})"
        if expr.operation is CalculusKind.LIMIT and expr.direction is not LimitDirection.BOTH:
            text = text[:-1] + f" {expr.direction.value})"
        return text
    if isinstance(expr, MethodCall):
        return _sexpr("." + expr.name, parts)
    if isinstance(expr, Complex):
        return _sexpr("complex", parts)
    return _sexpr(_OPERATOR_HEADS[expr.kind], parts)


def _sexpr(head: str, parts: List[str]) -> str:
    if not parts:
        return f"({head})"
    return f"({head} " + " ".join(parts) + ")"


# ============================================================
# Traversal
# ============================================================

def walk(expr: Expression) -> List[Expression]:
    """Pre-order list of every node in the tree."""
    out: List[Any] = []
    stack = [expr]
    while stack:
        node = stack.pop()
        out.append(node)
        stack.extend(reversed(node.children()))
    return out


def fold_tree(expr: Expression,
              combine: Callable[[Expression, List[Any]], Any],
              prune: Optional[Callable[[Expression], Any]] = None) -> Any:
    """
    Combine a tree bottom-up on an explicit stack.

    `combine(node, results)` receives the results already computed for the
    node's children, in `children()` order. When `prune(node)` returns
    something other than None, that value is the node's result and its
    children are never visited.

    Examples:
        fold_tree(expr, lambda node, depths: 1 + max(depths, default=0))
        fold_tree(expr, rebuild, prune=lambda node: new if node == old else None)
    """
    results: List[Any] = []
    stack: List[Tuple[Expression, bool]] = [(expr, False)]
    while stack:
        node, expanded = stack.pop()
        if expanded:
            start = len(results) - len(node.children())
            value = combine(node, results[start:])
            del results[start:]
            results.append(value)
            continue
        if prune is not None:
            value = prune(node)
            if value is not None:
                results.append(value)
                continue
        stack.append((node, True))
        stack.extend((child, False) for child in reversed(node.children()))
    return results[-1]


def expression_depth(expr: Expression) -> int:
    """Number of nodes on the longest root-to-leaf path; a leaf has depth 1."""
    return fold_tree(expr, lambda node, depths: 1 + max(depths, default=0))
