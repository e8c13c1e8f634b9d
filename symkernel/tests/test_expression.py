"""Tests for expression nodes, ordering, display and operators."""

import math
from fractions import Fraction

import pytest
from symkernel import (
    Add, Function, MathConstant, Mul, Num, Pow, Sym,
    add, as_expression, derivative, div, format_sexpr, integer, interval,
    limit, method_call, mul, neg, pi, piecewise, pow, rational, relation,
    sin, symbol, symbols, walk, SymbolType, LimitDirection, Symbol, Number,
)


x, y = symbols("x y")
A = symbol("A", SymbolType.MATRIX)


class TestStructuralEquality:
    """Tests for equality and hashing by structure."""

    def test_equal_trees(self):
        """Trees built along different paths are equal."""
        assert add([x, y]) == add([y, x])
        assert hash(add([x, y])) == hash(add([y, x]))

    def test_different_kinds_not_equal(self):
        """Nodes of different kinds are never equal."""
        assert integer(1) != x
        assert not (integer(2) == symbol("2"))

    def test_int_and_float_leaves_differ(self):
        """2 and 2.0 are different leaves."""
        assert integer(2) != as_expression(2.0)

    def test_usable_as_dict_keys(self):
        """Expressions hash by structure."""
        table = {mul([2, x]): "a"}
        assert table[mul([x, 2])] == "a"


class TestPredicates:
    """Tests for the convenience predicates."""

    def test_number_predicates(self):
        """is_number, is_zero and is_one on numbers."""
        assert integer(0).is_number()
        assert integer(0).is_zero()
        assert integer(1).is_one()
        assert not x.is_number()

    def test_symbol_predicate(self):
        """is_symbol optionally checks the name."""
        assert x.is_symbol()
        assert x.is_symbol("x")
        assert not x.is_symbol("y")
        assert not integer(1).is_symbol()

    def test_constant_predicate(self):
        """Named constants report is_constant."""
        assert pi().is_constant()
        assert not x.is_constant()


class TestOrdering:
    """Tests for the canonical sort key."""

    def test_rank_order(self):
        """Numbers < constants < symbols < products < sums < functions."""
        keys = [integer(5).sort_key(), pi().sort_key(), x.sort_key(),
                Mul((integer(2), x)).sort_key(), Add((integer(1), x)).sort_key(),
                sin(x).sort_key()]
        assert keys == sorted(keys)

    def test_power_sorts_next_to_base(self):
        """x < x**2 < y."""
        assert x.sort_key() < pow(x, 2).sort_key() < y.sort_key()

    def test_functions_order_by_name(self):
        """Functions order by name, then arguments."""
        f = Function("f", (x,))
        g = Function("g", (x,))
        assert f.sort_key() < g.sort_key()

    def test_deterministic(self):
        """Sort keys contain no salted hashes."""
        assert symbol("zeta").sort_key() == symbol("zeta").sort_key()
        assert add([x, y]).terms == (x, y)


class TestDisplay:
    """Tests for s-expression rendering."""

    def test_sum(self):
        """Sums render with the number first."""
        assert format_sexpr(add([x, integer(1)])) == "(+ 1 x)"
        assert repr(add([x, integer(1)])) == "(+ 1 x)"

    def test_power(self):
        """Powers render with ^."""
        assert format_sexpr(pow(x, integer(-1))) == "(^ x -1)"

    def test_rational_coefficient(self):
        """Rational coefficients render as p/q."""
        assert format_sexpr(div(mul([3, x]), 2)) == "(* 3/2 x)"

    def test_function(self):
        """Function calls render with their name as head."""
        assert format_sexpr(sin(x)) == "(sin x)"

    def test_interval(self):
        """Intervals show their open and closed ends."""
        assert format_sexpr(interval(0, 1, True, False)) == "(interval [0 1))"

    def test_relation(self):
        """Relations render with their operator."""
        assert format_sexpr(relation(x, 1, "<")) == "(< x 1)"

    def test_piecewise(self):
        """Piecewise renders pieces then the default."""
        expr = piecewise([(x, relation(x, 0, ">"))], neg(x))
        assert format_sexpr(expr) == "(piecewise (x (> x 0)) (otherwise (* -1 x)))"

    def test_calculus(self):
        """Calculus nodes render their operation and order or direction."""
        assert format_sexpr(derivative(sin(x), x)) == "(derivative (sin x) x)"
        assert format_sexpr(derivative(sin(x), x, 2)) == "(derivative (sin x) x 2)"
        assert format_sexpr(limit(x, x, 0, LimitDirection.LEFT)) == "(limit x x 0 left)"

    def test_method_call(self):
        """Method calls render as (.name obj args)."""
        assert format_sexpr(method_call(A, "det")) == "(.det A)"


class TestOperators:
    """Tests for Python operator overloading."""

    def test_add_collects(self):
        """x + 1 + x collects like terms."""
        assert x + 1 + x == add([integer(1), mul([integer(2), x])])

    def test_division(self):
        """(x * 3) / 2 has a rational coefficient."""
        assert (x * 3) / 2 == mul([rational(3, 2), x])

    def test_reflected(self):
        """Reflected operators keep operand order."""
        assert 2 - x == add([integer(2), neg(x)])
        assert 1 / x == pow(x, -1)
        assert 2 ** x == Pow(integer(2), x)

    def test_negation(self):
        """Unary minus multiplies by -1; unary plus is the identity."""
        assert -x == mul([integer(-1), x])
        assert +x is x

    def test_lifting(self):
        """Python numbers, Fractions and Symbols are lifted."""
        assert x + Fraction(1, 2) == add([rational(1, 2), x])
        assert x * Symbol("y") == mul([x, y])
        assert x + Number(3) == add([integer(3), x])

    def test_unsupported_operand(self):
        """Strings are not lifted."""
        with pytest.raises(TypeError):
            x + "a"

    def test_as_expression_rejects(self):
        """as_expression raises TypeError on unknown values."""
        with pytest.raises(TypeError):
            as_expression("x")
        with pytest.raises(TypeError):
            as_expression(True)

    def test_as_expression_lifts(self):
        """as_expression wraps numbers and symbols."""
        assert as_expression(3) == Num(Number(3))
        assert as_expression(Symbol("x")) == Sym(Symbol("x"))
        assert as_expression(x) is x


class TestWalk:
    """Tests for tree traversal."""

    def test_pre_order(self):
        """walk lists every node in pre-order."""
        expr = add([integer(1), mul([integer(2), x])])
        nodes = walk(expr)
        assert nodes[0] == expr
        assert nodes[1] == integer(1)
        assert len(nodes) == 5

    def test_leaf(self):
        """A leaf walks to itself."""
        assert walk(x) == [x]


class TestConstants:
    """Tests for MathConstant values."""

    def test_float_values(self):
        """Approximable constants have float values."""
        assert MathConstant.PI.float_value == math.pi
        assert MathConstant.E.float_value == math.e
        assert MathConstant.GOLDEN_RATIO.float_value == pytest.approx(1.618033988749895)

    def test_exact_symbolic(self):
        """i, infinities and undefined stay symbolic."""
        assert MathConstant.I.float_value is None
        assert MathConstant.I.is_exact_symbolic
        assert MathConstant.UNDEFINED.is_exact_symbolic
        assert not MathConstant.PI.is_exact_symbolic
