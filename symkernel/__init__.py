"""
SYMKERNEL - a symbolic mathematics kernel

Immutable expression trees that are always in canonical form, a function
simplifier backed by a dispatch registry, substitution, domain-checked
evaluation and JSON serialization.

Quick Start:
    from symkernel import symbols, integer, add, mul, div, sin, pi

    x, y = symbols("x y")
    add([integer(3), x, integer(2), x])   # => (+ 3 (* 2 x))
    mul([x, integer(0), y])               # => 0
    div(mul([3, x]), 2)                   # => (* 3/2 x)
    sin(div(pi(), 6))                     # => 1/2

Operators build canonical expressions too:
    x**2 + 2*x + 1                        # => (+ 1 (^ x 2) (* 2 x))

Noncommutative symbols keep their order:
    A, B = symbols("A B", SymbolType.MATRIX)
    inverse(A * B)                        # => (* (^ B -1) (^ A -1))
    transpose(A * B)                      # => (* (transpose B) (transpose A))

Evaluation:
    ctx = EvalContext.numerical({"x": 3})
    evaluate_with_context(x**2 + 2*x + 1, ctx)   # => 16
    evaluate(sqrt(integer(-1)))                   # raises DomainError

Custom functions:
    register_function("double", unary_only(lambda v: mul([2, v])))
    function("double", [x])               # => (* 2 x)
"""

__version__ = "0.1.0"

# Errors
from .errors import (
    MathError,
    DivisionByZero,
    DomainError,
    Pole,
    BranchCut,
    NumericOverflow,
    NonNumericalResult,
)

# Numbers and symbols
from .number import Number, NumberKind
from .symbol import Symbol, SymbolType

# Expression tree
from .expression import (
    Expression,
    ExprKind,
    ExprLike,
    Num,
    Sym,
    Const,
    Add,
    Mul,
    Pow,
    Function,
    Complex,
    MatrixExpr,
    SetExpr,
    Interval,
    Relation,
    Piecewise,
    Calculus,
    MethodCall,
    MathConstant,
    RelationType,
    CalculusKind,
    LimitDirection,
    MAX_DEPTH,
    EXACT_POWER_MAX_BITS,
    POLE_TOLERANCE,
    ZERO_TOLERANCE,
    as_expression,
    format_sexpr,
    walk,
    fold_tree,
    expression_depth,
)

# Matrices
from .matrix import (
    Matrix,
    MatrixKind,
    matrix_add,
    matrix_multiply,
    matrix_power,
    scalar_multiply,
    trace,
    determinant,
)

# Constructors
from .canonical import (
    integer,
    rational,
    float_,
    number,
    symbol,
    symbols,
    constant,
    pi,
    e,
    i,
    infinity,
    negative_infinity,
    undefined,
    golden_ratio,
    euler_gamma,
    add,
    sub,
    neg,
    mul,
    pow,
    pow_checked,
    div,
    div_checked,
    complex_,
    matrix,
    identity_matrix,
    zero_matrix,
    diagonal_matrix,
    scalar_matrix,
    set_,
    interval,
    relation,
    equation,
    piecewise,
    derivative,
    integral,
    limit,
    summation,
    product,
    method_call,
)

# Function registry
from .registry import (
    Handler,
    PreludeType,
    FunctionRegistry,
    REGISTRY,
    register_function,
    get_registry,
    unary_only,
    binary_only,
    numeric_unary,
    numeric_binary,
    ELEMENTARY_PRELUDE,
    SPECIAL_PRELUDE,
    NUMBER_THEORY_PRELUDE,
    DEFAULT_PRELUDE,
    NO_PRELUDE,
)

# Functions
from .functions import (
    function,
    transpose,
    inverse,
    sqrt,
    exp,
    log,
    ln,
    sin,
    cos,
    tan,
    cot,
    sec,
    csc,
    asin,
    acos,
    atan,
    sinh,
    cosh,
    tanh,
    asinh,
    acosh,
    atanh,
    abs_,
    factorial,
    gamma,
)

# Analysis
from .analysis import (
    Commutativity,
    commutativity,
    count_variable_occurrences,
    contains_symbol,
    free_symbols,
    is_polynomial,
    is_polynomial_in,
    polynomial_variables,
    degree,
    total_degree,
    ClassCategory,
    ExpressionClass,
    polynomial_classify,
    is_negated,
    negated_term,
    as_division,
)

# Substitution
from .substitution import (
    rebuild,
    map_children,
    subs,
    subs_multiple,
    substitute,
    simplify,
)

# Evaluation
from .evaluation import (
    EvalContext,
    evaluate,
    evaluate_with_context,
    eval_numeric,
    evaluate_to_f64,
)

# Serialization
from .serialize import (
    to_dict,
    from_dict,
    to_json,
    from_json,
)

# Public API
__all__ = [
    # Version
    "__version__",
    # Errors
    "MathError",
    "DivisionByZero",
    "DomainError",
    "Pole",
    "BranchCut",
    "NumericOverflow",
    "NonNumericalResult",
    # Numbers and symbols
    "Number",
    "NumberKind",
    "Symbol",
    "SymbolType",
    # Expression tree
    "Expression",
    "ExprKind",
    "ExprLike",
    "Num",
    "Sym",
    "Const",
    "Add",
    "Mul",
    "Pow",
    "Function",
    "Complex",
    "MatrixExpr",
    "SetExpr",
    "Interval",
    "Relation",
    "Piecewise",
    "Calculus",
    "MethodCall",
    "MathConstant",
    "RelationType",
    "CalculusKind",
    "LimitDirection",
    "MAX_DEPTH",
    "EXACT_POWER_MAX_BITS",
    "POLE_TOLERANCE",
    "ZERO_TOLERANCE",
    "as_expression",
    "format_sexpr",
    "walk",
    "fold_tree",
    "expression_depth",
    # Matrices
    "Matrix",
    "MatrixKind",
    "matrix_add",
    "matrix_multiply",
    "matrix_power",
    "scalar_multiply",
    "trace",
    "determinant",
    # Constructors
    "integer",
    "rational",
    "float_",
    "number",
    "symbol",
    "symbols",
    "constant",
    "pi",
    "e",
    "i",
    "infinity",
    "negative_infinity",
    "undefined",
    "golden_ratio",
    "euler_gamma",
    "add",
    "sub",
    "neg",
    "mul",
    "pow",
    "pow_checked",
    "div",
    "div_checked",
    "complex_",
    "matrix",
    "identity_matrix",
    "zero_matrix",
    "diagonal_matrix",
    "scalar_matrix",
    "set_",
    "interval",
    "relation",
    "equation",
    "piecewise",
    "derivative",
    "integral",
    "limit",
    "summation",
    "product",
    "method_call",
    # Function registry
    "Handler",
    "PreludeType",
    "FunctionRegistry",
    "REGISTRY",
    "register_function",
    "get_registry",
    "unary_only",
    "binary_only",
    "numeric_unary",
    "numeric_binary",
    "ELEMENTARY_PRELUDE",
    "SPECIAL_PRELUDE",
    "NUMBER_THEORY_PRELUDE",
    "DEFAULT_PRELUDE",
    "NO_PRELUDE",
    # Functions
    "function",
    "transpose",
    "inverse",
    "sqrt",
    "exp",
    "log",
    "ln",
    "sin",
    "cos",
    "tan",
    "cot",
    "sec",
    "csc",
    "asin",
    "acos",
    "atan",
    "sinh",
    "cosh",
    "tanh",
    "asinh",
    "acosh",
    "atanh",
    "abs_",
    "factorial",
    "gamma",
    # Analysis
    "Commutativity",
    "commutativity",
    "count_variable_occurrences",
    "contains_symbol",
    "free_symbols",
    "is_polynomial",
    "is_polynomial_in",
    "polynomial_variables",
    "degree",
    "total_degree",
    "ClassCategory",
    "ExpressionClass",
    "polynomial_classify",
    "is_negated",
    "negated_term",
    "as_division",
    # Substitution
    "rebuild",
    "map_children",
    "subs",
    "subs_multiple",
    "substitute",
    "simplify",
    # Evaluation
    "EvalContext",
    "evaluate",
    "evaluate_with_context",
    "eval_numeric",
    "evaluate_to_f64",
    # Serialization
    "to_dict",
    "from_dict",
    "to_json",
    "from_json",
]
