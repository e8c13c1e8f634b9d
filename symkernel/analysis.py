"""
Read-only analysis of expression trees.

- commutativity inference, which drives the ordering of product factors
- variable occurrence counting and free symbols
- polynomial checks and classification for algorithm routing
- predicates formatters use to print `a - b` and `a / b`

Nothing in this module mutates or re-canonicalizes its input, except for
the small pieces of output built by `negated_term` and `as_division`.
"""

from enum import Enum
from typing import Iterable, List, Optional, Set, Tuple, Union

from .expression import (
    Add, Calculus, CalculusKind, Const, Expression, Function, MatrixExpr, Mul,
    Num, Pow, Sym, fold_tree, walk,
)
from .symbol import Symbol


# ============================================================
# Commutativity
# ============================================================

class Commutativity(Enum):
    COMMUTATIVE = "commutative"
    NONCOMMUTATIVE = "noncommutative"

    def join(self, other: "Commutativity") -> "Commutativity":
        """Least upper bound: any noncommutative operand poisons the result."""
        if self is Commutativity.NONCOMMUTATIVE or other is Commutativity.NONCOMMUTATIVE:
            return Commutativity.NONCOMMUTATIVE
        return Commutativity.COMMUTATIVE


def commutativity(expr: Expression) -> Commutativity:
    """
    Commutativity class of an expression.

    Numbers and constants commute; a symbol has its declared class; explicit
    matrices never commute; a power takes its base's class; every other
    composite joins the classes of its children.
    """
    stack = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, (Num, Const)):
            continue
        if isinstance(node, Sym):
            if not node.symbol.is_commutative:
                return Commutativity.NONCOMMUTATIVE
            continue
        if isinstance(node, MatrixExpr):
            return Commutativity.NONCOMMUTATIVE
        if isinstance(node, Pow):
            stack.append(node.base)
        else:
            stack.extend(node.children())
    return Commutativity.COMMUTATIVE


# ============================================================
# Symbols
# ============================================================

SymbolLike = Union[Symbol, Sym, str]


def _as_symbol(variable: SymbolLike) -> Symbol:
    if isinstance(variable, Symbol):
        return variable
    if isinstance(variable, Sym):
        return variable.symbol
    if isinstance(variable, str):
        return Symbol(variable)
    raise TypeError(f"Expected a symbol, got {type(variable).__name__}")


def count_variable_occurrences(expr: Expression, variable: SymbolLike) -> int:
    """
    Number of leaves equal to `variable`.

    Bound variables of calculus nodes count too, once per appearance:

        count_variable_occurrences(derivative(x**2, x), x)   # => 2
    """
    target = _as_symbol(variable)
    return sum(1 for node in walk(expr) if isinstance(node, Sym) and node.symbol == target)


def contains_symbol(expr: Expression, variable: SymbolLike) -> bool:
    target = _as_symbol(variable)
    return any(isinstance(node, Sym) and node.symbol == target for node in walk(expr))


_BINDING_OPERATIONS = (CalculusKind.SUM, CalculusKind.PRODUCT, CalculusKind.LIMIT)


def free_symbols(expr: Expression) -> Set[Symbol]:
    """Symbols not bound by a sum, product, limit or definite integral."""
    return fold_tree(expr, _free_in)


def _free_in(node: Expression, inner: List[Set[Symbol]]) -> Set[Symbol]:
    if isinstance(node, Sym):
        return {node.symbol}
    if isinstance(node, Calculus):
        # children: expression, variable, then any bounds or point
        result = set(inner[0])
        bound = (node.operation in _BINDING_OPERATIONS
                 or (node.operation is CalculusKind.INTEGRAL and node.lower is not None))
        if bound:
            result.discard(node.variable.symbol)
        else:
            result.add(node.variable.symbol)
        for extra in inner[2:]:
            result |= extra
        return result
    result = set()
    for symbols in inner:
        result |= symbols
    return result


# ============================================================
# Polynomials
# ============================================================

def _nonnegative_integer(expr: Expression) -> Optional[int]:
    if isinstance(expr, Num) and expr.value.is_integer() and not expr.value.is_negative():
        return expr.value.value
    return None


def is_polynomial(expr: Expression) -> bool:
    """
    True when expr is built only from numbers, symbols, sums, products and
    non-negative integer powers.
    """
    if isinstance(expr, (Num, Sym)):
        return True
    if isinstance(expr, (Add, Mul)):
        return all(is_polynomial(c) for c in expr.children())
    if isinstance(expr, Pow):
        return _nonnegative_integer(expr.exponent) is not None and is_polynomial(expr.base)
    return False


def is_polynomial_in(expr: Expression, variables: Iterable[SymbolLike]) -> bool:
    """
    True when expr is a polynomial in `variables`, treating every
    sub-expression free of them as a coefficient.

        is_polynomial_in(mul([x, sin(y)]), [x])   # => True
        is_polynomial_in(mul([x, sin(y)]), [y])   # => False
    """
    targets = {_as_symbol(v) for v in variables}
    return _polynomial_in(expr, targets)


def _polynomial_in(expr: Expression, targets: Set[Symbol]) -> bool:
    if isinstance(expr, (Num, Sym)):
        return True
    if not any(isinstance(n, Sym) and n.symbol in targets for n in walk(expr)):
        return True
    if isinstance(expr, (Add, Mul)):
        return all(_polynomial_in(c, targets) for c in expr.children())
    if isinstance(expr, Pow):
        return _nonnegative_integer(expr.exponent) is not None and _polynomial_in(expr.base, targets)
    return False


def polynomial_variables(expr: Expression) -> List[Symbol]:
    """Symbols of a polynomial, sorted by name; empty for non-polynomials."""
    if not is_polynomial(expr):
        return []
    found = {node.symbol for node in walk(expr) if isinstance(node, Sym)}
    return sorted(found, key=lambda s: (s.name, s.symbol_type.value))


def degree(expr: Expression, variable: SymbolLike) -> Optional[int]:
    """Degree in one variable, or None if expr is not polynomial in it."""
    target = _as_symbol(variable)
    if isinstance(expr, Num):
        return 0
    if isinstance(expr, Sym):
        return 1 if expr.symbol == target else 0
    if isinstance(expr, (Add, Mul)):
        degrees = [degree(c, target) for c in expr.children()]
        if any(d is None for d in degrees):
            return None
        return max(degrees) if isinstance(expr, Add) else sum(degrees)
    if isinstance(expr, Pow):
        n = _nonnegative_integer(expr.exponent)
        base_degree = degree(expr.base, target)
        if n is None or base_degree is None:
            return None
        return base_degree * n
    return None


def total_degree(expr: Expression) -> Optional[int]:
    """Largest total degree over all monomials; None for non-polynomials."""
    if isinstance(expr, Num):
        return 0
    if isinstance(expr, Sym):
        return 1
    if isinstance(expr, (Add, Mul)):
        degrees = [total_degree(c) for c in expr.children()]
        if any(d is None for d in degrees):
            return None
        return max(degrees) if isinstance(expr, Add) else sum(degrees)
    if isinstance(expr, Pow):
        n = _nonnegative_integer(expr.exponent)
        base_degree = total_degree(expr.base)
        if n is None or base_degree is None:
            return None
        return base_degree * n
    return None


class ClassCategory(Enum):
    INTEGER = "integer"
    RATIONAL = "rational"
    UNIVARIATE_POLYNOMIAL = "univariate_polynomial"
    MULTIVARIATE_POLYNOMIAL = "multivariate_polynomial"
    TRANSCENDENTAL = "transcendental"
    SYMBOLIC = "symbolic"


class ExpressionClass:
    """
    Result of polynomial_classify.

    `variables` and `degree` are set for polynomial categories only; for a
    multivariate polynomial `degree` is the total degree.
    """

    __slots__ = ('category', 'variables', 'degree')

    def __init__(self, category: ClassCategory, variables: Tuple[Symbol, ...] = (),
                 degree: Optional[int] = None):
        self.category = category
        self.variables = tuple(variables)
        self.degree = degree

    @property
    def variable(self) -> Optional[Symbol]:
        """The single variable of a univariate polynomial."""
        if self.category is ClassCategory.UNIVARIATE_POLYNOMIAL:
            return self.variables[0]
        return None

    def __eq__(self, other):
        if isinstance(other, ExpressionClass):
            return (self.category, self.variables, self.degree) == \
                (other.category, other.variables, other.degree)
        return False

    def __hash__(self):
        return hash((self.category, self.variables, self.degree))

    def __repr__(self) -> str:
        if self.variables:
            names = ", ".join(s.name for s in self.variables)
            return f"ExpressionClass({self.category.name}, [{names}], degree={self.degree})"
        return f"ExpressionClass({self.category.name})"


TRANSCENDENTAL_FUNCTIONS = frozenset([
    "sin", "cos", "tan", "cot", "sec", "csc",
    "asin", "acos", "atan", "arcsin", "arccos", "arctan",
    "sinh", "cosh", "tanh", "asinh", "acosh", "atanh",
    "exp", "log", "ln", "log10", "log2",
])


def _is_transcendental(expr: Expression) -> bool:
    for node in walk(expr):
        if isinstance(node, Function) and node.name in TRANSCENDENTAL_FUNCTIONS:
            return True
        if isinstance(node, Pow) and free_symbols(node.exponent):
            return True
    return False


def polynomial_classify(expr: Expression) -> ExpressionClass:
    """
    Classify an expression for algorithm routing.

    Examples:
        polynomial_classify(integer(5))             # => INTEGER
        polynomial_classify(x**2 + 2*x + 1)         # => UNIVARIATE_POLYNOMIAL [x], degree 2
        polynomial_classify(x*y + 1)                # => MULTIVARIATE_POLYNOMIAL [x, y], degree 2
        polynomial_classify(sin(x))                 # => TRANSCENDENTAL
    """
    if isinstance(expr, Num):
        if expr.value.is_integer():
            return ExpressionClass(ClassCategory.INTEGER)
        return ExpressionClass(ClassCategory.RATIONAL)
    if not is_polynomial(expr):
        if _is_transcendental(expr):
            return ExpressionClass(ClassCategory.TRANSCENDENTAL)
        return ExpressionClass(ClassCategory.SYMBOLIC)
    variables = polynomial_variables(expr)
    if len(variables) == 1:
        return ExpressionClass(ClassCategory.UNIVARIATE_POLYNOMIAL, variables,
                               degree(expr, variables[0]))
    return ExpressionClass(ClassCategory.MULTIVARIATE_POLYNOMIAL, variables, total_degree(expr))


# ============================================================
# Formatter predicates
# ============================================================

def is_negated(term: Expression) -> bool:
    """True for a negative number or a product with a negative coefficient."""
    if isinstance(term, Num):
        return term.value.is_negative()
    if isinstance(term, Mul) and isinstance(term.factors[0], Num):
        return term.factors[0].value.is_negative()
    return False


def negated_term(term: Expression) -> Optional[Expression]:
    """The positive counterpart of a negated term, so `a + (-b)` prints as `a - b`."""
    if not is_negated(term):
        return None
    from .canonical import neg
    return neg(term)


def as_division(expr: Expression) -> Optional[Tuple[Expression, Expression]]:
    """
    Split a division-shaped product into (numerator, denominator).

    Factors with a negative numeric exponent and the denominator of a
    rational coefficient go below the line. Returns None when nothing does.

        as_division(div(x, y))     # => (x, y)
        as_division(mul([x, y]))   # => None
    """
    from .canonical import integer, mul, pow
    factors = expr.factors if isinstance(expr, Mul) else (expr,)
    numerator, denominator = [], []
    for factor in factors:
        if isinstance(factor, Num) and factor.value.is_rational():
            numerator.append(integer(factor.value.numerator))
            denominator.append(integer(factor.value.denominator))
        elif (isinstance(factor, Pow) and isinstance(factor.exponent, Num)
              and factor.exponent.value.is_negative()):
            denominator.append(pow(factor.base, Num(-factor.exponent.value)))
        else:
            numerator.append(factor)
    if not denominator:
        return None
    return mul(numerator), mul(denominator)
