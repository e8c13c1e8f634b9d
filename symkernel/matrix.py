"""
Specialized matrix values.

A Matrix is one of five kinds; the kind and the dimensions are part of the
value:

    DENSE     explicit rows of expressions
    IDENTITY  n x n identity
    ZERO      r x c zero matrix
    DIAGONAL  n x n with an explicit diagonal
    SCALAR    n x n, a single value times the identity

The algebra below keeps the most specialized kind it can: the product of two
identities is an identity, the sum of two scalar matrices is a scalar
matrix, and so on. A dense literal that happens to be an identity, zero,
diagonal or scalar matrix is normalized to that kind on construction.

    m = Matrix.dense([[1, 0], [0, 1]])
    m.kind                  # => MatrixKind.IDENTITY
    matrix_multiply(m, m)   # => identity(2)

Element arithmetic goes through the canonical constructors, so entries are
always canonical expressions.
"""

from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import DivisionByZero
from .expression import Expression, Num, as_expression
from .number import Number


class MatrixKind(Enum):
    DENSE = "dense"
    IDENTITY = "identity"
    ZERO = "zero"
    DIAGONAL = "diagonal"
    SCALAR = "scalar"


def _is_exact_zero(expr: Expression) -> bool:
    return isinstance(expr, Num) and expr.value.is_exact() and expr.value.is_zero()


def _is_exact_one(expr: Expression) -> bool:
    return isinstance(expr, Num) and expr.value.is_exact() and expr.value.is_one()


class Matrix:
    """Immutable matrix value. Build with the classmethod constructors."""

    __slots__ = ('kind', 'nrows', 'ncols', '_data')

    def __init__(self, kind: MatrixKind, nrows: int, ncols: int, data=None):
        if nrows < 1 or ncols < 1:
            raise ValueError(f"Matrix dimensions must be positive, got {nrows}x{ncols}")
        if kind is not MatrixKind.DENSE and kind is not MatrixKind.ZERO and nrows != ncols:
            raise ValueError(f"{kind.value} matrix must be square, got {nrows}x{ncols}")
        self.kind = kind
        self.nrows = nrows
        self.ncols = ncols
        self._data = data

    # ============================================================
    # Constructors
    # ============================================================

    @classmethod
    def dense(cls, rows: Sequence[Sequence]) -> "Matrix":
        """Build from explicit rows, normalizing to a specialized kind if possible."""
        rows = [list(row) for row in rows]
        if not rows or not rows[0]:
            raise ValueError("Matrix must have at least one row and one column")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError("Matrix rows must all have the same length")
        data = tuple(tuple(as_expression(v) for v in row) for row in rows)
        return _normalize(data)

    @classmethod
    def identity(cls, n: int) -> "Matrix":
        return cls(MatrixKind.IDENTITY, n, n)

    @classmethod
    def zero(cls, nrows: int, ncols: Optional[int] = None) -> "Matrix":
        return cls(MatrixKind.ZERO, nrows, nrows if ncols is None else ncols)

    @classmethod
    def diagonal(cls, entries: Sequence) -> "Matrix":
        entries = tuple(as_expression(v) for v in entries)
        if not entries:
            raise ValueError("Diagonal matrix needs at least one entry")
        n = len(entries)
        if all(_is_exact_zero(v) for v in entries):
            return cls.zero(n)
        if all(v == entries[0] for v in entries):
            return cls.scalar(n, entries[0])
        return cls(MatrixKind.DIAGONAL, n, n, entries)

    @classmethod
    def scalar(cls, n: int, value) -> "Matrix":
        value = as_expression(value)
        if _is_exact_zero(value):
            return cls.zero(n)
        if _is_exact_one(value):
            return cls.identity(n)
        return cls(MatrixKind.SCALAR, n, n, value)

    # ============================================================
    # Access
    # ============================================================

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.nrows, self.ncols)

    def is_square(self) -> bool:
        return self.nrows == self.ncols

    def element(self, i: int, j: int) -> Expression:
        if not (0 <= i < self.nrows and 0 <= j < self.ncols):
            raise IndexError(f"({i}, {j}) is outside a {self.nrows}x{self.ncols} matrix")
        if self.kind is MatrixKind.DENSE:
            return self._data[i][j]
        if i != j or self.kind is MatrixKind.ZERO:
            return Num(Number(0))
        if self.kind is MatrixKind.IDENTITY:
            return Num(Number(1))
        if self.kind is MatrixKind.DIAGONAL:
            return self._data[i]
        return self._data

    def rows(self) -> List[List[Expression]]:
        """Materialize every entry as a list of rows."""
        return [[self.element(i, j) for j in range(self.ncols)] for i in range(self.nrows)]

    def diagonal_entries(self) -> List[Expression]:
        return [self.element(k, k) for k in range(min(self.nrows, self.ncols))]

    def stored_elements(self) -> Tuple[Expression, ...]:
        """The expressions this value actually stores (no implicit zeros)."""
        if self.kind is MatrixKind.DENSE:
            return tuple(v for row in self._data for v in row)
        if self.kind is MatrixKind.DIAGONAL:
            return self._data
        if self.kind is MatrixKind.SCALAR:
            return (self._data,)
        return ()

    def map(self, fn: Callable[[Expression], Expression]) -> "Matrix":
        """Apply fn to each stored element and renormalize."""
        return self.with_elements([fn(v) for v in self.stored_elements()])

    def with_elements(self, values: Sequence[Expression]) -> "Matrix":
        """Same kind and shape with new stored elements, in stored_elements() order."""
        if self.kind is MatrixKind.DENSE:
            return _normalize(tuple(
                tuple(values[i * self.ncols:(i + 1) * self.ncols]) for i in range(self.nrows)
            ))
        if self.kind is MatrixKind.DIAGONAL:
            return Matrix.diagonal(values)
        if self.kind is MatrixKind.SCALAR:
            return Matrix.scalar(self.nrows, values[0])
        return self

    def sort_body(self) -> Tuple:
        return (self.nrows, self.ncols, self.kind.value,
                tuple(v.sort_key() for v in self.stored_elements()))

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return (self.kind is other.kind and self.shape == other.shape
                and self._data == other._data)

    def __hash__(self):
        return hash((self.kind.value, self.nrows, self.ncols, self._data))

    def __repr__(self) -> str:
        if self.kind is MatrixKind.IDENTITY:
            return f"(identity {self.nrows})"
        if self.kind is MatrixKind.ZERO:
            return f"(zero {self.nrows} {self.ncols})"
        if self.kind is MatrixKind.SCALAR:
            return f"(scalar {self.nrows} {self._data!r})"
        if self.kind is MatrixKind.DIAGONAL:
            return "(diagonal " + " ".join(repr(v) for v in self._data) + ")"
        rows = ["[" + " ".join(repr(v) for v in row) + "]" for row in self._data]
        return "(matrix " + " ".join(rows) + ")"


def _normalize(data: Tuple[Tuple[Expression, ...], ...]) -> Matrix:
    nrows, ncols = len(data), len(data[0])
    off_diagonal_zero = all(
        _is_exact_zero(data[i][j])
        for i in range(nrows) for j in range(ncols) if i != j
    )
    if nrows != ncols:
        if off_diagonal_zero and all(_is_exact_zero(data[k][k]) for k in range(min(nrows, ncols))):
            return Matrix.zero(nrows, ncols)
        return Matrix(MatrixKind.DENSE, nrows, ncols, data)
    if off_diagonal_zero:
        return Matrix.diagonal([data[k][k] for k in range(nrows)])
    return Matrix(MatrixKind.DENSE, nrows, ncols, data)


# ============================================================
# Algebra
# ============================================================

def _check_same_shape(a: Matrix, b: Matrix, operation: str):
    if a.shape != b.shape:
        raise ValueError(f"Cannot {operation} {a.nrows}x{a.ncols} and {b.nrows}x{b.ncols} matrices")


def _is_diagonal_like(m: Matrix) -> bool:
    return m.kind in (MatrixKind.IDENTITY, MatrixKind.DIAGONAL, MatrixKind.SCALAR)


def matrix_add(a: Matrix, b: Matrix) -> Matrix:
    """Elementwise sum, keeping the most specialized kind."""
    from .canonical import add
    _check_same_shape(a, b, "add")
    if a.kind is MatrixKind.ZERO:
        return b
    if b.kind is MatrixKind.ZERO:
        return a
    if _is_diagonal_like(a) and _is_diagonal_like(b):
        if a.kind is not MatrixKind.DIAGONAL and b.kind is not MatrixKind.DIAGONAL:
            return Matrix.scalar(a.nrows, add([a.element(0, 0), b.element(0, 0)]))
        return Matrix.diagonal([add([x, y]) for x, y in
                                zip(a.diagonal_entries(), b.diagonal_entries())])
    ra, rb = a.rows(), b.rows()
    return _normalize(tuple(
        tuple(add([ra[i][j], rb[i][j]]) for j in range(a.ncols))
        for i in range(a.nrows)
    ))


def scalar_multiply(scalar, m: Matrix) -> Matrix:
    """Multiply every entry by a scalar expression."""
    from .canonical import mul
    scalar = as_expression(scalar)
    if _is_exact_one(scalar) or m.kind is MatrixKind.ZERO:
        return m
    if _is_exact_zero(scalar):
        return Matrix.zero(m.nrows, m.ncols)
    if m.kind is MatrixKind.IDENTITY:
        return Matrix.scalar(m.nrows, scalar)
    if m.kind is MatrixKind.SCALAR:
        return Matrix.scalar(m.nrows, mul([scalar, m._data]))
    return m.map(lambda v: mul([scalar, v]))


def matrix_multiply(a: Matrix, b: Matrix) -> Matrix:
    """Matrix product, keeping the most specialized kind."""
    from .canonical import add, mul
    if a.ncols != b.nrows:
        raise ValueError(f"Cannot multiply {a.nrows}x{a.ncols} by {b.nrows}x{b.ncols}")
    if a.kind is MatrixKind.ZERO or b.kind is MatrixKind.ZERO:
        return Matrix.zero(a.nrows, b.ncols)
    if a.kind is MatrixKind.IDENTITY:
        return b
    if b.kind is MatrixKind.IDENTITY:
        return a
    if a.kind is MatrixKind.SCALAR:
        return scalar_multiply(a._data, b)
    if b.kind is MatrixKind.SCALAR:
        # entries may not commute, so the scalar stays on the right
        return a.map(lambda v: mul([v, b._data]))
    if a.kind is MatrixKind.DIAGONAL and b.kind is MatrixKind.DIAGONAL:
        return Matrix.diagonal([mul([x, y]) for x, y in zip(a._data, b._data)])
    ra, rb = a.rows(), b.rows()
    return _normalize(tuple(
        tuple(add([mul([ra[i][k], rb[k][j]]) for k in range(a.ncols)])
              for j in range(b.ncols))
        for i in range(a.nrows)
    ))


def matrix_power(m: Matrix, n: int) -> Matrix:
    """Integer power by repeated squaring; negative powers invert first."""
    if not m.is_square():
        raise ValueError(f"Cannot raise a {m.nrows}x{m.ncols} matrix to a power")
    if n < 0:
        m = inverse(m)
        n = -n
    result = Matrix.identity(m.nrows)
    while n:
        if n & 1:
            result = matrix_multiply(result, m)
        n >>= 1
        if n:
            m = matrix_multiply(m, m)
    return result


def transpose(m: Matrix) -> Matrix:
    if m.kind is MatrixKind.ZERO:
        return Matrix.zero(m.ncols, m.nrows)
    if m.kind is not MatrixKind.DENSE:
        return m
    return _normalize(tuple(zip(*m._data)))


def trace(m: Matrix) -> Expression:
    from .canonical import add, integer, mul
    if not m.is_square():
        raise ValueError("trace is only defined for square matrices")
    if m.kind is MatrixKind.IDENTITY:
        return integer(m.nrows)
    if m.kind is MatrixKind.ZERO:
        return integer(0)
    if m.kind is MatrixKind.SCALAR:
        return mul([integer(m.nrows), m._data])
    return add(m.diagonal_entries())


def determinant(m: Matrix) -> Expression:
    from .canonical import integer, mul, pow
    if not m.is_square():
        raise ValueError("determinant is only defined for square matrices")
    if m.kind is MatrixKind.IDENTITY:
        return integer(1)
    if m.kind is MatrixKind.ZERO:
        return integer(0)
    if m.kind is MatrixKind.SCALAR:
        return pow(m._data, integer(m.nrows))
    if m.kind is MatrixKind.DIAGONAL:
        return mul(list(m._data))
    return _cofactor_determinant(m.rows())


def _cofactor_determinant(rows: List[List[Expression]]) -> Expression:
    from .canonical import add, integer, mul
    n = len(rows)
    if n == 1:
        return rows[0][0]
    if n == 2:
        return add([mul([rows[0][0], rows[1][1]]),
                    mul([integer(-1), rows[0][1], rows[1][0]])])
    terms = []
    for j in range(n):
        if _is_exact_zero(rows[0][j]):
            continue
        minor = [row[:j] + row[j + 1:] for row in rows[1:]]
        sign = integer(1 if j % 2 == 0 else -1)
        terms.append(mul([sign, rows[0][j], _cofactor_determinant(minor)]))
    return add(terms)


def inverse(m: Matrix) -> Matrix:
    """
    Matrix inverse.

    Identity, scalar and diagonal matrices invert in closed form; dense
    matrices use exact Gauss-Jordan elimination over canonical expressions.

    Raises:
        ValueError: if the matrix is not square
        DivisionByZero: if the matrix is singular (an exact zero pivot)
    """
    from .canonical import div, integer
    if not m.is_square():
        raise ValueError("inverse is only defined for square matrices")
    if m.kind is MatrixKind.IDENTITY:
        return m
    if m.kind is MatrixKind.ZERO:
        raise DivisionByZero()
    if m.kind is MatrixKind.SCALAR:
        return Matrix.scalar(m.nrows, div(integer(1), m._data))
    if m.kind is MatrixKind.DIAGONAL:
        if any(_is_exact_zero(v) for v in m._data):
            raise DivisionByZero()
        return Matrix.diagonal([div(integer(1), v) for v in m._data])
    return _gauss_jordan_inverse(m.rows())


def _gauss_jordan_inverse(rows: List[List[Expression]]) -> Matrix:
    from .canonical import div, integer, mul, sub
    n = len(rows)
    aug = [row + [integer(1 if i == j else 0) for j in range(n)]
           for i, row in enumerate(rows)]
    for col in range(n):
        pivot_row = next((r for r in range(col, n) if not _is_exact_zero(aug[r][col])), None)
        if pivot_row is None:
            raise DivisionByZero()
        aug[col], aug[pivot_row] = aug[pivot_row], aug[col]
        pivot = aug[col][col]
        aug[col] = [div(v, pivot) for v in aug[col]]
        for r in range(n):
            if r == col or _is_exact_zero(aug[r][col]):
                continue
            factor = aug[r][col]
            aug[r] = [sub(v, mul([factor, p])) for v, p in zip(aug[r], aug[col])]
    return Matrix.dense([row[n:] for row in aug])
