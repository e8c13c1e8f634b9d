"""
JSON serialization of expressions.

Every node becomes a dict with a "type" discriminant:

    to_dict(add([integer(3), mul([integer(2), x])]))
    # => {"type": "add", "terms": [
    #        {"type": "number", "kind": "int", "value": 3},
    #        {"type": "mul", "factors": [
    #            {"type": "number", "kind": "int", "value": 2},
    #            {"type": "symbol", "name": "x", "symbol_type": "scalar"}]}]}

Numbers keep their exact value: integers outside the signed 64-bit range
and rational parts are written as decimal strings, floats as their repr (or
"inf" / "-inf"). Loading rebuilds through the canonical constructors, so
`from_dict(to_dict(expr)) == expr` for every canonical expression.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from .canonical import (
    add, complex_, constant, float_, integer, interval, method_call, mul,
    piecewise, pow, rational, relation, set_, symbol,
)
from .expression import (
    Add, Calculus, CalculusKind, Complex, Const, Expression, Function,
    Interval, LimitDirection, MatrixExpr, MethodCall, Mul, Num, Piecewise, Pow,
    MAX_DEPTH, Relation, SetExpr, Sym, expression_depth, fold_tree,
)
from .functions import function
from .matrix import Matrix, MatrixKind
from .number import I64_MAX, I64_MIN, Number
from .symbol import SymbolType


# ============================================================
# Numbers
# ============================================================

def _int_to_json(value: int):
    return value if I64_MIN <= value <= I64_MAX else str(value)


def _number_to_dict(value: Number) -> Dict[str, Any]:
    if value.is_integer():
        return {"type": "number", "kind": "int", "value": _int_to_json(value.value)}
    if value.is_rational():
        return {"type": "number", "kind": "rational",
                "value": [str(value.numerator), str(value.denominator)]}
    f = value.value
    if f == float("inf"):
        encoded = "inf"
    elif f == float("-inf"):
        encoded = "-inf"
    else:
        encoded = repr(f)
    return {"type": "number", "kind": "float", "value": encoded}


def _number_from_dict(data: Dict[str, Any]) -> Num:
    kind = data["kind"]
    value = data["value"]
    if kind == "int":
        return integer(int(value))
    if kind == "rational":
        return rational(int(value[0]), int(value[1]))
    if kind == "float":
        return float_(float(value))
    raise ValueError(f"Unknown number kind: {kind!r}")


# ============================================================
# Matrices
# ============================================================

def _matrix_to_dict(m: Matrix, parts: List[Dict[str, Any]]) -> Dict[str, Any]:
    result = {"type": "matrix", "kind": m.kind.value, "rows": m.nrows, "cols": m.ncols}
    if m.kind is MatrixKind.DENSE:
        result["data"] = [parts[i * m.ncols:(i + 1) * m.ncols] for i in range(m.nrows)]
    elif m.kind is MatrixKind.DIAGONAL:
        result["data"] = parts
    elif m.kind is MatrixKind.SCALAR:
        result["data"] = parts[0]
    return result


def _matrix_parts(data: Dict[str, Any]) -> List[Any]:
    kind = MatrixKind(data["kind"])
    if kind is MatrixKind.DENSE:
        return [v for row in data["data"] for v in row]
    if kind is MatrixKind.DIAGONAL:
        return list(data["data"])
    if kind is MatrixKind.SCALAR:
        return [data["data"]]
    return []


def _matrix_from_dict(data: Dict[str, Any], parts: List[Expression]) -> MatrixExpr:
    kind = MatrixKind(data["kind"])
    if kind is MatrixKind.DENSE:
        width = len(data["data"][0])
        rows = [parts[i:i + width] for i in range(0, len(parts), width)]
        return MatrixExpr(Matrix.dense(rows))
    if kind is MatrixKind.IDENTITY:
        return MatrixExpr(Matrix.identity(data["rows"]))
    if kind is MatrixKind.ZERO:
        return MatrixExpr(Matrix.zero(data["rows"], data["cols"]))
    if kind is MatrixKind.DIAGONAL:
        return MatrixExpr(Matrix.diagonal(parts))
    return MatrixExpr(Matrix.scalar(data["rows"], parts[0]))


# ============================================================
# Expressions
# ============================================================

def to_dict(expr: Expression) -> Dict[str, Any]:
    """Convert an expression to a JSON-compatible dictionary."""
    return fold_tree(expr, _node_to_dict)


def _node_to_dict(expr: Expression, parts: List[Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(expr, Num):
        return _number_to_dict(expr.value)
    if isinstance(expr, Sym):
        return {"type": "symbol", "name": expr.name,
                "symbol_type": expr.symbol.symbol_type.value}
    if isinstance(expr, Const):
        return {"type": "constant", "name": expr.constant.value}
    if isinstance(expr, Add):
        return {"type": "add", "terms": parts}
    if isinstance(expr, Mul):
        return {"type": "mul", "factors": parts}
    if isinstance(expr, Pow):
        return {"type": "pow", "base": parts[0], "exponent": parts[1]}
    if isinstance(expr, Function):
        return {"type": "function", "name": expr.name, "args": parts}
    if isinstance(expr, Complex):
        return {"type": "complex", "real": parts[0], "imag": parts[1]}
    if isinstance(expr, MatrixExpr):
        return _matrix_to_dict(expr.matrix, parts)
    if isinstance(expr, SetExpr):
        return {"type": "set", "elements": parts}
    if isinstance(expr, Interval):
        return {"type": "interval", "start": parts[0], "end": parts[1],
                "start_inclusive": expr.start_inclusive, "end_inclusive": expr.end_inclusive}
    if isinstance(expr, Relation):
        return {"type": "relation", "relation": expr.relation.value,
                "lhs": parts[0], "rhs": parts[1]}
    if isinstance(expr, Piecewise):
        count = len(expr.pieces)
        result = {"type": "piecewise",
                  "pieces": [[parts[2 * k], parts[2 * k + 1]] for k in range(count)]}
        if expr.default is not None:
            result["default"] = parts[2 * count]
        return result
    if isinstance(expr, Calculus):
        return _calculus_to_dict(expr, parts)
    if isinstance(expr, MethodCall):
        return {"type": "method_call", "object": parts[0], "name": expr.name,
                "args": parts[1:]}
    raise TypeError(f"Cannot serialize {type(expr).__name__}")


_CALCULUS_EXTRAS = ("lower", "upper", "point")


def _calculus_to_dict(expr: Calculus, parts: List[Dict[str, Any]]) -> Dict[str, Any]:
    result = {"type": "calculus", "operation": expr.operation.value,
              "expression": parts[0], "variable": parts[1]}
    if expr.operation is CalculusKind.DERIVATIVE:
        result["order"] = expr.order
    if expr.operation is CalculusKind.LIMIT:
        result["direction"] = expr.direction.value
    extras = iter(parts[2:])
    for field in _CALCULUS_EXTRAS:
        if getattr(expr, field) is not None:
            result[field] = next(extras)
    return result


def _calculus_from_dict(data: Dict[str, Any], parts: List[Expression]) -> Expression:
    variable = parts[1]
    if not isinstance(variable, Sym):
        raise ValueError("Calculus variable must be a symbol")
    extras = iter(parts[2:])
    bounds = {field: next(extras) if field in data else None for field in _CALCULUS_EXTRAS}
    return Calculus(
        CalculusKind(data["operation"]), parts[0], variable,
        order=data.get("order", 1),
        direction=LimitDirection(data.get("direction", LimitDirection.BOTH.value)),
        **bounds,
    )


def _nested(data: Dict[str, Any]) -> List[Any]:
    """Nested expression dicts of a tagged dict, in construction order."""
    if not isinstance(data, dict) or "type" not in data:
        raise ValueError(f"Expected a tagged expression dict, got {data!r}")
    tag = data["type"]
    if tag in ("number", "symbol", "constant"):
        return []
    if tag == "add":
        return list(data["terms"])
    if tag == "mul":
        return list(data["factors"])
    if tag == "pow":
        return [data["base"], data["exponent"]]
    if tag == "function":
        return list(data["args"])
    if tag == "complex":
        return [data["real"], data["imag"]]
    if tag == "matrix":
        return _matrix_parts(data)
    if tag == "set":
        return list(data["elements"])
    if tag == "interval":
        return [data["start"], data["end"]]
    if tag == "relation":
        return [data["lhs"], data["rhs"]]
    if tag == "piecewise":
        parts = [part for piece in data["pieces"] for part in piece]
        if "default" in data:
            parts.append(data["default"])
        return parts
    if tag == "calculus":
        return ([data["expression"], data["variable"]]
                + [data[field] for field in _CALCULUS_EXTRAS if field in data])
    if tag == "method_call":
        return [data["object"]] + list(data["args"])
    raise ValueError(f"Unknown expression type: {tag!r}")


def _build(data: Dict[str, Any], parts: List[Expression]) -> Expression:
    tag = data["type"]
    if tag == "number":
        return _number_from_dict(data)
    if tag == "symbol":
        return symbol(data["name"], SymbolType(data.get("symbol_type", "scalar")))
    if tag == "constant":
        return constant(data["name"])
    if tag == "add":
        return add(parts)
    if tag == "mul":
        return mul(parts)
    if tag == "pow":
        return pow(parts[0], parts[1])
    if tag == "function":
        return function(data["name"], parts)
    if tag == "complex":
        return complex_(parts[0], parts[1])
    if tag == "matrix":
        return _matrix_from_dict(data, parts)
    if tag == "set":
        return set_(parts)
    if tag == "interval":
        return interval(parts[0], parts[1],
                        data.get("start_inclusive", True), data.get("end_inclusive", True))
    if tag == "relation":
        return relation(parts[0], parts[1], data["relation"])
    if tag == "piecewise":
        count = len(data["pieces"])
        pieces = [(parts[2 * k], parts[2 * k + 1]) for k in range(count)]
        return piecewise(pieces, parts[2 * count] if "default" in data else None)
    if tag == "calculus":
        return _calculus_from_dict(data, parts)
    return method_call(parts[0], data["name"], parts[1:])


def from_dict(data: Dict[str, Any]) -> Expression:
    """
    Rebuild an expression from to_dict() output.

    Nested dicts are loaded children first on an explicit stack.

    Raises:
        ValueError: unknown "type" tag or malformed content
    """
    results: List[Expression] = []
    stack: List[Tuple[Any, Optional[List[Any]]]] = [(data, None)]
    while stack:
        node, nested = stack.pop()
        if nested is None:
            nested = _nested(node)
            stack.append((node, nested))
            stack.extend((child, None) for child in reversed(nested))
            continue
        start = len(results) - len(nested)
        built = _build(node, results[start:])
        del results[start:]
        results.append(built)
    return results[-1]


def to_json(expr: Expression, indent: Optional[int] = None) -> str:
    """
    Serialize an expression to a JSON string.

    Args:
        expr: Expression to serialize
        indent: JSON indentation (None for compact)

    Raises:
        ValueError: the expression is nested deeper than MAX_DEPTH
    """
    depth = expression_depth(expr)
    if depth > MAX_DEPTH:
        raise ValueError(f"Expression depth {depth} exceeds the JSON limit of {MAX_DEPTH}")
    return json.dumps(to_dict(expr), indent=indent)


def from_json(text: str) -> Expression:
    """
    Load an expression from to_json() output.

    Raises:
        ValueError: malformed content, or nesting too deep for the json module
    """
    try:
        data = json.loads(text)
    except RecursionError as exc:
        raise ValueError(f"JSON nesting exceeds the limit of {MAX_DEPTH} expression levels") from exc
    return from_dict(data)
