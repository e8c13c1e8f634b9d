"""Tests for canonical powers."""

import math

from symkernel import (
    Function, MatrixExpr, Pow, SymbolType,
    diagonal_matrix, float_, i, identity_matrix, integer, matrix, mul, neg,
    pow, rational, sqrt, symbols,
)


x, y = symbols("x y")
A, B = symbols("A B", SymbolType.MATRIX)


class TestIdentityRules:
    """Tests for the exponent 0 and 1 and base 0 and 1 rules."""

    def test_zero_exponent(self):
        """Anything to the 0 is 1, including 0**0."""
        assert pow(x, 0) == integer(1)
        assert pow(0, 0) == integer(1)
        assert pow(A, 0) == integer(1)

    def test_unit_exponent(self):
        """b**1 is b."""
        assert pow(x, 1) == x

    def test_unit_base(self):
        """1**e is 1."""
        assert pow(1, x) == integer(1)
        assert pow(1, -5) == integer(1)

    def test_zero_base(self):
        """0**positive is 0; 0**negative stays symbolic."""
        assert pow(0, 3) == integer(0)
        result = pow(0, -1)
        assert isinstance(result, Pow)
        assert result.base == integer(0)


class TestNumericPowers:
    """Tests for numeric folding."""

    def test_integer_powers(self):
        """Exact integer powers fold."""
        assert pow(2, 3) == integer(8)
        assert pow(2, -1) == rational(1, 2)
        assert pow(rational(2, 3), 2) == rational(4, 9)
        assert pow(-2, 3) == integer(-8)

    def test_large_exact_power(self):
        """Results within the size bound stay exact."""
        assert pow(2, 1000) == integer(2 ** 1000)

    def test_oversized_power_stays_symbolic(self):
        """Results beyond the size bound stay symbolic."""
        assert isinstance(pow(2, 200000), Pow)

    def test_exact_roots(self):
        """Rational exponents fold when an exact root exists."""
        assert pow(4, rational(1, 2)) == integer(2)
        assert pow(8, rational(2, 3)) == integer(4)
        assert pow(rational(1, 4), rational(1, 2)) == rational(1, 2)

    def test_inexact_roots_stay_symbolic(self):
        """Irrational and negative-base roots stay symbolic."""
        assert isinstance(pow(2, rational(1, 2)), Pow)
        assert isinstance(pow(-4, rational(1, 2)), Pow)

    def test_float_powers(self):
        """Floats fold when the result is finite and real."""
        assert pow(float_(4.0), float_(0.5)) == float_(2.0)
        assert pow(float_(2.0), 3) == float_(8.0)

    def test_float_overflow_stays_symbolic(self):
        """An overflowing float power stays symbolic."""
        assert isinstance(pow(float_(10.0), 400), Pow)

    def test_negative_float_base_fractional_exponent(self):
        """A complex result stays symbolic."""
        assert isinstance(pow(float_(-8.0), rational(1, 3)), Pow)


class TestSymbolicPowers:
    """Tests for structural power rules."""

    def test_power_of_power(self):
        """(x**k)**n = x**(k*n) for integer n."""
        assert pow(pow(x, 2), 3) == pow(x, 6)
        assert pow(pow(x, rational(1, 2)), 2) == x

    def test_distributes_over_commutative_product(self):
        """(2x)**2 = 4 x**2."""
        assert pow(mul([2, x]), 2) == mul([4, pow(x, 2)])
        assert pow(mul([x, y]), -1) == mul([pow(x, -1), pow(y, -1)])

    def test_noncommutative_product_power(self):
        """(AB)**2 is not distributed."""
        assert isinstance(pow(mul([A, B]), 2), Pow)

    def test_noncommutative_inverse_reverses(self):
        """(AB)**-1 = B**-1 A**-1."""
        result = pow(mul([A, B]), -1)
        assert result == mul([pow(B, -1), pow(A, -1)])
        assert result.factors[0] == pow(B, -1)

    def test_imaginary_unit_cycles(self):
        """Integer powers of i cycle with period 4."""
        assert pow(i(), 2) == integer(-1)
        assert pow(i(), 3) == neg(i())
        assert pow(i(), 4) == integer(1)
        assert pow(i(), 5) == i()

    def test_square_of_square_root(self):
        """sqrt(a)**2n = a**n."""
        assert pow(sqrt(x), 2) == x
        assert pow(sqrt(x), 4) == pow(x, 2)
        assert pow(sqrt(2), 2) == integer(2)

    def test_symbolic_exponent(self):
        """Symbolic exponents stay as Pow."""
        result = pow(x, y)
        assert isinstance(result, Pow)
        assert result.exponent == y


class TestMatrixPowers:
    """Tests for powers of explicit matrices."""

    def test_repeated_multiplication(self):
        """Dense powers multiply out."""
        m = matrix([[1, 1], [0, 1]])
        assert pow(m, 3) == matrix([[1, 3], [0, 1]])

    def test_identity_power(self):
        """Identity to any power is identity."""
        assert pow(identity_matrix(3), 7) == identity_matrix(3)

    def test_inverse(self):
        """A diagonal matrix inverts entrywise."""
        assert pow(diagonal_matrix([1, 2]), -1) == diagonal_matrix([1, rational(1, 2)])

    def test_singular_inverse_stays_symbolic(self):
        """A singular matrix to the -1 stays symbolic."""
        result = pow(matrix([[1, 2], [2, 4]]), -1)
        assert isinstance(result, Pow)
        assert isinstance(result.base, MatrixExpr)


class TestSqrtValues:
    """Tests for square roots as powers and functions."""

    def test_irrational_sqrt_is_function(self):
        """sqrt(2) stays a function call."""
        root = sqrt(2)
        assert isinstance(root, Function)
        assert root.name == "sqrt"

    def test_float_sqrt(self):
        """sqrt of a float is a float."""
        assert sqrt(float_(2.0)) == float_(math.sqrt(2.0))
