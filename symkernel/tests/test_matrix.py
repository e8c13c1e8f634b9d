"""Tests for specialized matrices and their algebra."""

import pytest
from symkernel import (
    DivisionByZero, Matrix, MatrixExpr, MatrixKind,
    add, determinant, diagonal_matrix, identity_matrix, integer, matrix,
    matrix_add, matrix_multiply, matrix_power, mul, pow, rational,
    scalar_matrix, scalar_multiply, symbols, trace, zero_matrix,
)
from symkernel.matrix import inverse, transpose


x, y = symbols("x y")


class TestNormalization:
    """Tests for dense literals normalizing to specialized kinds."""

    def test_identity(self):
        """[[1, 0], [0, 1]] is an identity."""
        assert Matrix.dense([[1, 0], [0, 1]]).kind is MatrixKind.IDENTITY

    def test_zero(self):
        """All-zero literals are zero matrices, square or not."""
        assert Matrix.dense([[0, 0], [0, 0]]).kind is MatrixKind.ZERO
        m = Matrix.dense([[0, 0, 0], [0, 0, 0]])
        assert m.kind is MatrixKind.ZERO
        assert m.shape == (2, 3)

    def test_diagonal_and_scalar(self):
        """Diagonal literals specialize further when entries are equal."""
        assert Matrix.dense([[2, 0], [0, 3]]).kind is MatrixKind.DIAGONAL
        assert Matrix.dense([[5, 0], [0, 5]]).kind is MatrixKind.SCALAR
        assert Matrix.dense([[x, 0], [0, x]]) == Matrix.scalar(2, x)

    def test_dense(self):
        """Other literals stay dense."""
        m = Matrix.dense([[1, 2], [3, 4]])
        assert m.kind is MatrixKind.DENSE
        assert m.element(1, 0) == integer(3)

    def test_ragged_rows(self):
        """Rows of different lengths are rejected."""
        with pytest.raises(ValueError):
            Matrix.dense([[1, 2], [3]])

    def test_scalar_constructor(self):
        """Scalar 0 and 1 specialize to zero and identity."""
        assert Matrix.scalar(2, 0) == Matrix.zero(2)
        assert Matrix.scalar(2, 1) == Matrix.identity(2)


class TestAccess:
    """Tests for element access and display."""

    def test_implicit_entries(self):
        """Specialized kinds materialize implicit zeros and ones."""
        eye = Matrix.identity(3)
        assert eye.element(0, 1) == integer(0)
        assert eye.element(2, 2) == integer(1)
        assert Matrix.scalar(2, x).element(1, 1) == x

    def test_out_of_range(self):
        """Indices outside the shape raise IndexError."""
        with pytest.raises(IndexError):
            Matrix.identity(2).element(2, 0)

    def test_rows(self):
        """rows() materializes every entry."""
        assert Matrix.diagonal([1, 2]).rows() == [[integer(1), integer(0)],
                                                   [integer(0), integer(2)]]

    def test_repr(self):
        """Each kind has a compact display."""
        assert repr(Matrix.identity(2)) == "(identity 2)"
        assert repr(Matrix.zero(2, 3)) == "(zero 2 3)"
        assert repr(Matrix.dense([[1, 2], [3, 4]])) == "(matrix [1 2] [3 4])"

    def test_non_square_specialization(self):
        """Identity, diagonal and scalar matrices must be square."""
        with pytest.raises(ValueError):
            Matrix(MatrixKind.IDENTITY, 2, 3)


class TestAlgebra:
    """Tests for specialization-preserving algebra."""

    def test_identity_product(self):
        """I * I stays an identity."""
        eye = Matrix.identity(2)
        assert matrix_multiply(eye, eye).kind is MatrixKind.IDENTITY

    def test_dense_product(self):
        """Dense products multiply out exactly."""
        a = Matrix.dense([[1, 2], [3, 4]])
        b = Matrix.dense([[5, 6], [7, 8]])
        assert matrix_multiply(a, b) == Matrix.dense([[19, 22], [43, 50]])

    def test_diagonal_product(self):
        """Diagonal times diagonal stays diagonal."""
        a = Matrix.diagonal([2, 3])
        b = Matrix.diagonal([5, 7])
        assert matrix_multiply(a, b) == Matrix.diagonal([10, 21])

    def test_zero_product_shape(self):
        """A zero factor gives a zero matrix of the product shape."""
        a = Matrix.zero(2, 3)
        b = Matrix.dense([[1], [2], [3]])
        result = matrix_multiply(a, b)
        assert result.kind is MatrixKind.ZERO
        assert result.shape == (2, 1)

    def test_dimension_mismatch(self):
        """Incompatible shapes raise ValueError."""
        with pytest.raises(ValueError):
            matrix_multiply(Matrix.identity(2), Matrix.identity(3))
        with pytest.raises(ValueError):
            matrix_add(Matrix.identity(2), Matrix.identity(3))

    def test_scalar_sum(self):
        """Scalar plus identity is scalar."""
        assert matrix_add(Matrix.scalar(2, 3), Matrix.identity(2)) == Matrix.scalar(2, 4)

    def test_zero_is_additive_identity(self):
        """Adding a zero matrix changes nothing."""
        m = Matrix.dense([[1, 2], [3, 4]])
        assert matrix_add(m, Matrix.zero(2)) is m

    def test_scalar_multiply(self):
        """Scaling keeps the kind where possible."""
        assert scalar_multiply(3, Matrix.identity(2)) == Matrix.scalar(2, 3)
        assert scalar_multiply(0, Matrix.identity(2)) == Matrix.zero(2)
        assert scalar_multiply(2, Matrix.dense([[1, 2], [3, 4]])) == \
            Matrix.dense([[2, 4], [6, 8]])

    def test_power(self):
        """matrix_power uses repeated squaring."""
        m = Matrix.diagonal([1, 2])
        assert matrix_power(m, 10) == Matrix.diagonal([1, 1024])
        assert matrix_power(m, 0) == Matrix.identity(2)
        with pytest.raises(ValueError):
            matrix_power(Matrix.zero(2, 3), 2)

    def test_transpose(self):
        """Transpose swaps rows and columns."""
        assert transpose(Matrix.dense([[1, 2], [3, 4]])) == Matrix.dense([[1, 3], [2, 4]])
        assert transpose(Matrix.zero(2, 3)).shape == (3, 2)
        assert transpose(Matrix.diagonal([1, 2])) == Matrix.diagonal([1, 2])


class TestScalarFunctions:
    """Tests for trace, determinant and inverse."""

    def test_trace(self):
        """Trace sums the diagonal."""
        assert trace(Matrix.identity(3)) == integer(3)
        assert trace(Matrix.dense([[1, 2], [3, 4]])) == integer(5)
        assert trace(Matrix.scalar(2, x)) == mul([2, x])

    def test_determinant(self):
        """Determinants by closed form or cofactor expansion."""
        assert determinant(Matrix.dense([[1, 2], [3, 4]])) == integer(-2)
        assert determinant(Matrix.dense([[1, 2, 3], [0, 1, 4], [5, 6, 0]])) == integer(1)
        assert determinant(Matrix.diagonal([2, 3])) == integer(6)
        assert determinant(Matrix.scalar(3, x)) == pow(x, 3)

    def test_symbolic_determinant(self):
        """Determinants of symbolic entries are canonical expressions."""
        m = Matrix.dense([[x, 1], [1, y]])
        assert determinant(m) == add([mul([x, y]), integer(-1)])

    def test_dense_inverse(self):
        """Dense matrices invert by exact elimination."""
        m = Matrix.dense([[1, 2], [3, 4]])
        expected = Matrix.dense([[-2, 1], [rational(3, 2), rational(-1, 2)]])
        assert inverse(m) == expected
        assert matrix_multiply(m, inverse(m)) == Matrix.identity(2)

    def test_closed_form_inverses(self):
        """Identity, scalar and diagonal matrices invert in closed form."""
        assert inverse(Matrix.identity(2)) == Matrix.identity(2)
        assert inverse(Matrix.scalar(2, 4)) == Matrix.scalar(2, rational(1, 4))

    def test_singular(self):
        """Singular matrices raise DivisionByZero."""
        with pytest.raises(DivisionByZero):
            inverse(Matrix.dense([[1, 2], [2, 4]]))
        with pytest.raises(DivisionByZero):
            inverse(Matrix.zero(2))
        with pytest.raises(DivisionByZero):
            inverse(Matrix.diagonal([1, 0]))

    def test_non_square_inverse(self):
        """Non-square matrices have no inverse."""
        with pytest.raises(ValueError):
            inverse(Matrix.dense([[1, 2, 3], [4, 5, 6]]))


class TestWithElements:
    """Tests for Matrix.with_elements."""

    def test_dense(self):
        """Dense values are taken row-major and renormalized."""
        m = Matrix.dense([[x, y], [y, x]])
        assert m.with_elements([integer(1), integer(0), integer(0), integer(1)]) \
            == Matrix.identity(2)

    def test_diagonal_and_scalar(self):
        """Diagonal and scalar matrices keep their kind."""
        d = Matrix.diagonal([x, y])
        assert d.with_elements([integer(2), integer(3)]) == Matrix.diagonal([2, 3])
        s = Matrix.scalar(3, x)
        assert s.with_elements([y]) == Matrix.scalar(3, y)

    def test_structural_kinds(self):
        """Identity and zero matrices have no stored elements."""
        assert Matrix.identity(2).with_elements([]) == Matrix.identity(2)
        assert Matrix.zero(2, 3).with_elements([]) == Matrix.zero(2, 3)


class TestMatrixExpressions:
    """Tests for matrices inside canonical sums and products."""

    def test_product_of_literals(self):
        """Adjacent matrix literals multiply."""
        a = matrix([[1, 2], [3, 4]])
        b = matrix([[5, 6], [7, 8]])
        assert mul([a, b]) == matrix([[19, 22], [43, 50]])

    def test_equal_literals_multiply(self):
        """A literal times itself is a matrix product, not a power."""
        a = matrix([[1, 2], [3, 4]])
        assert mul([a, a]) == matrix([[7, 10], [15, 22]])

    def test_equal_nonsquare_literals(self):
        """Incompatible equal literals fail as a multiplication."""
        m = matrix([[1, 2, 3], [4, 5, 6]])
        with pytest.raises(ValueError, match="Cannot multiply 2x3 by 2x3"):
            mul([m, m])

    def test_coefficient_absorbed(self):
        """A coefficient scales a lone matrix."""
        assert mul([2, identity_matrix(2)]) == scalar_matrix(2, 2)

    def test_zero_coefficient(self):
        """Multiplying a matrix by 0 gives a zero matrix."""
        assert mul([0, matrix([[1, 2], [3, 4]])]) == zero_matrix(2)

    def test_sum_of_literals(self):
        """Matrix literals add elementwise."""
        assert add([identity_matrix(2), identity_matrix(2)]) == scalar_matrix(2, 2)
        m = matrix([[1, 2], [3, 4]])
        assert add([m, zero_matrix(2)]) == m

    def test_entries_canonical(self):
        """Matrix entries are canonical expressions."""
        m = matrix([[add([x, x]), 1], [2, 3]])
        assert isinstance(m, MatrixExpr)
        assert m.matrix.element(0, 0) == mul([2, x])

    def test_diagonal_constructor(self):
        """diagonal_matrix of equal entries is a scalar matrix."""
        assert diagonal_matrix([x, x]) == scalar_matrix(2, x)
