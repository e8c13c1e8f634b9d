"""Tests for read-only expression analysis."""

from symkernel import (
    ClassCategory, Commutativity, SymbolType,
    add, commutativity, contains_symbol, count_variable_occurrences,
    degree, derivative, div, float_, free_symbols, integer, integral,
    is_negated, is_polynomial, is_polynomial_in, matrix, mul, neg,
    negated_term, as_division, pi, polynomial_classify, polynomial_variables,
    pow, rational, sin, sqrt, sub, summation, symbol, symbols, total_degree,
)


x, y, n = symbols("x y n")
A, B = symbols("A B", SymbolType.MATRIX)
P = symbol("P", SymbolType.OPERATOR)
q = symbol("q", SymbolType.QUATERNION)


class TestCommutativity:
    """Tests for commutativity inference."""

    def test_leaves(self):
        """Scalars commute, other symbol types do not."""
        assert commutativity(integer(2)) is Commutativity.COMMUTATIVE
        assert commutativity(pi()) is Commutativity.COMMUTATIVE
        assert commutativity(x) is Commutativity.COMMUTATIVE
        assert commutativity(A) is Commutativity.NONCOMMUTATIVE
        assert commutativity(P) is Commutativity.NONCOMMUTATIVE
        assert commutativity(q) is Commutativity.NONCOMMUTATIVE

    def test_composites(self):
        """Any noncommutative child makes the whole noncommutative."""
        assert commutativity(mul([x, y])) is Commutativity.COMMUTATIVE
        assert commutativity(mul([x, A])) is Commutativity.NONCOMMUTATIVE
        assert commutativity(add([x, A])) is Commutativity.NONCOMMUTATIVE
        assert commutativity(sin(A)) is Commutativity.NONCOMMUTATIVE

    def test_power_takes_base(self):
        """A power has the class of its base."""
        assert commutativity(pow(A, 2)) is Commutativity.NONCOMMUTATIVE
        assert commutativity(pow(x, A)) is Commutativity.COMMUTATIVE

    def test_matrix_literal(self):
        """Explicit matrices never commute."""
        assert commutativity(matrix([[1, 2], [3, 4]])) is Commutativity.NONCOMMUTATIVE

    def test_join(self):
        """join is a least upper bound."""
        c, nc = Commutativity.COMMUTATIVE, Commutativity.NONCOMMUTATIVE
        assert c.join(c) is c
        assert c.join(nc) is nc
        assert nc.join(c) is nc


class TestSymbols:
    """Tests for occurrence counting and free symbols."""

    def test_count(self):
        """Each leaf occurrence counts."""
        assert count_variable_occurrences(mul([x, sin(x)]), x) == 2
        assert count_variable_occurrences(add([x, y]), "y") == 1
        assert count_variable_occurrences(integer(3), x) == 0

    def test_count_bound_variable(self):
        """The bound variable of a calculus node is a leaf too."""
        assert count_variable_occurrences(derivative(pow(x, 2), x), x) == 2

    def test_contains(self):
        """contains_symbol matches name and type."""
        assert contains_symbol(sin(add([x, 1])), x)
        assert not contains_symbol(sin(y), x)
        assert not contains_symbol(mul([A, B]), symbol("A"))

    def test_free_symbols(self):
        """Plain expressions report every symbol."""
        assert free_symbols(add([x, mul([2, y])])) == {x.symbol, y.symbol}
        assert free_symbols(integer(1)) == set()

    def test_derivative_keeps_variable(self):
        """A derivative depends on its variable."""
        assert free_symbols(derivative(y, x)) == {x.symbol, y.symbol}

    def test_bound_variables(self):
        """Sums and definite integrals bind their variable."""
        assert free_symbols(summation(x, x, 1, n)) == {n.symbol}
        assert free_symbols(integral(mul([x, y]), x, 0, 1)) == {y.symbol}
        assert free_symbols(integral(mul([x, y]), x)) == {x.symbol, y.symbol}


class TestPolynomials:
    """Tests for polynomial predicates and degrees."""

    def setup_method(self):
        self.quadratic = add([pow(x, 2), mul([2, x]), 1])

    def test_is_polynomial(self):
        """Only non-negative integer powers are allowed."""
        assert is_polynomial(self.quadratic)
        assert is_polynomial(integer(7))
        assert not is_polynomial(pow(x, -1))
        assert not is_polynomial(pow(x, rational(1, 2)))
        assert not is_polynomial(sin(x))

    def test_is_polynomial_in(self):
        """Sub-expressions free of the variables are coefficients."""
        expr = mul([x, sin(y)])
        assert is_polynomial_in(expr, [x])
        assert not is_polynomial_in(expr, [y])
        assert is_polynomial_in(add([pow(x, 3), sqrt(y)]), ["x"])

    def test_polynomial_variables(self):
        """Variables come back sorted by name."""
        assert polynomial_variables(add([y, x])) == [x.symbol, y.symbol]
        assert polynomial_variables(sin(x)) == []

    def test_degree(self):
        """Degree in one variable."""
        assert degree(self.quadratic, x) == 2
        assert degree(mul([x, pow(y, 2)]), y) == 2
        assert degree(mul([x, pow(y, 2)]), x) == 1
        assert degree(integer(5), x) == 0
        assert degree(sin(x), x) is None

    def test_total_degree(self):
        """Total degree is the largest monomial degree."""
        assert total_degree(add([mul([x, y]), pow(x, 3)])) == 3
        assert total_degree(add([mul([x, pow(y, 2)]), x])) == 3
        assert total_degree(pow(x, -1)) is None


class TestClassify:
    """Tests for polynomial_classify."""

    def test_numbers(self):
        """Integers and other numbers."""
        assert polynomial_classify(integer(5)).category is ClassCategory.INTEGER
        assert polynomial_classify(rational(1, 2)).category is ClassCategory.RATIONAL
        assert polynomial_classify(float_(1.5)).category is ClassCategory.RATIONAL

    def test_univariate(self):
        """One variable reports its degree."""
        result = polynomial_classify(add([pow(x, 2), mul([2, x]), 1]))
        assert result.category is ClassCategory.UNIVARIATE_POLYNOMIAL
        assert result.variable == x.symbol
        assert result.degree == 2

    def test_multivariate(self):
        """Several variables report the total degree."""
        result = polynomial_classify(add([mul([x, y]), 1]))
        assert result.category is ClassCategory.MULTIVARIATE_POLYNOMIAL
        assert result.variables == (x.symbol, y.symbol)
        assert result.degree == 2
        assert result.variable is None

    def test_transcendental(self):
        """Transcendental functions and variable exponents."""
        assert polynomial_classify(sin(x)).category is ClassCategory.TRANSCENDENTAL
        assert polynomial_classify(add([x, sin(x)])).category is ClassCategory.TRANSCENDENTAL
        assert polynomial_classify(pow(2, x)).category is ClassCategory.TRANSCENDENTAL

    def test_symbolic(self):
        """Everything else is symbolic."""
        assert polynomial_classify(pow(x, -1)).category is ClassCategory.SYMBOLIC
        assert polynomial_classify(sqrt(x)).category is ClassCategory.SYMBOLIC

    def test_repr(self):
        """repr lists the variables."""
        result = polynomial_classify(pow(x, 3))
        assert repr(result) == "ExpressionClass(UNIVARIATE_POLYNOMIAL, [x], degree=3)"


class TestFormatterPredicates:
    """Tests for subtraction and division detection."""

    def test_is_negated(self):
        """Negative numbers and negative coefficients."""
        assert is_negated(integer(-3))
        assert is_negated(neg(x))
        assert is_negated(mul([-2, x, y]))
        assert not is_negated(x)
        assert not is_negated(sub(x, y))

    def test_negated_term(self):
        """The positive counterpart of a negated term."""
        assert negated_term(neg(x)) == x
        assert negated_term(mul([-2, x])) == mul([2, x])
        assert negated_term(x) is None

    def test_as_division(self):
        """Negative powers and rational denominators go below the line."""
        assert as_division(div(x, y)) == (x, y)
        assert as_division(div(mul([3, x]), 4)) == (mul([3, x]), integer(4))
        assert as_division(rational(3, 4)) == (integer(3), integer(4))

    def test_not_a_division(self):
        """Plain products are not divisions."""
        assert as_division(mul([x, y])) is None
        assert as_division(mul([2, x])) is None
