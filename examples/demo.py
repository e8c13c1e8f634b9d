#!/usr/bin/env python3
"""
SYMKERNEL Feature Demonstration

This script walks through the major features of the kernel.
"""

from symkernel import (
    DomainError, EvalContext, MathError, SymbolType,
    add, cos, determinant, div, eval_numeric, evaluate, evaluate_with_context, exp,
    format_sexpr, identity_matrix, integer, log, matrix, mul, pi, pow,
    polynomial_classify, rational, sin, sqrt, subs, subs_multiple, symbol, symbols,
    tan, to_json, transpose,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def show(label: str, expr):
    print(f"  {label:28} => {format_sexpr(expr)}")


def demo_canonical_form():
    """Demonstrate canonical sums and products."""
    section("Canonical Form")

    x, y = symbols("x y")

    show("3 + x + 2 + x", add([3, x, 2, x]))
    show("x * 0 * y", mul([x, 0, y]))
    show("(1 + x) + (2 + y)", add([add([1, x]), add([2, y])]))
    show("(3x) / 2", div(mul([3, x]), 2))
    show("x * x * x", mul([x, x, x]))
    show("x**2 + 2*x + 1", x**2 + 2*x + 1)


def demo_exact_numbers():
    """Demonstrate exact arithmetic."""
    section("Exact Numbers")

    show("1/2 + 1/3", add([rational(1, 2), rational(1, 3)]))
    show("2**100", pow(2, 100))
    show("8**(2/3)", pow(8, rational(2, 3)))
    show("sqrt(2)", sqrt(2))
    show("sqrt(9/4)", sqrt(rational(9, 4)))


def demo_noncommutative():
    """Demonstrate matrix symbols."""
    section("Noncommutative Algebra")

    A, B, C = symbols("A B C", SymbolType.MATRIX)

    show("A B", mul([A, B]))
    show("B A", mul([B, A]))
    show("(A B)^-1", pow(mul([A, B]), -1))
    show("(A B)^T", transpose(mul([A, B])))
    show("A B A with A -> C", subs(mul([A, B, A]), A, C))


def demo_matrices():
    """Demonstrate specialized matrices."""
    section("Matrices")

    m = matrix([[1, 2], [3, 4]])
    show("[[1 2] [3 4]]", m)
    show("[[1 0] [0 1]]", matrix([[1, 0], [0, 1]]))
    show("I * I", mul([identity_matrix(3), identity_matrix(3)]))
    show("M^-1", pow(m, -1))
    show("M M^-1", mul([m, pow(m, -1)]))
    print(f"  {'det M':28} => {format_sexpr(determinant(m.matrix))}")


def demo_functions():
    """Demonstrate function simplification."""
    section("Functions")

    x = symbol("x")

    show("sin(pi/6)", sin(div(pi(), 6)))
    show("cos(pi/4)", cos(div(pi(), 4)))
    show("tan(pi/3)", tan(div(pi(), 3)))
    show("sin(1)", sin(1))
    show("log(exp(x))", log(exp(x)))


def demo_evaluation():
    """Demonstrate evaluation and its errors."""
    section("Evaluation")

    x, y = symbols("x y")
    expr = x**2 + 2*x + 1

    ctx = EvalContext.numerical({"x": 3})
    show("x**2 + 2x + 1 at x = 3", evaluate_with_context(expr, ctx))
    show("numeric 2 pi", eval_numeric(mul([2, pi()])))
    show("numeric sqrt(2)", eval_numeric(sqrt(2)))
    show("swap x and y", subs_multiple(add([x, mul([2, y])]), {x: y, y: x}))

    for label, bad in [("sqrt(-1)", sqrt(integer(-1))),
                       ("log(0)", log(integer(0))),
                       ("1/0", div(1, 0))]:
        try:
            evaluate(bad)
        except DomainError as exc:
            print(f"  {label:28} => domain error: {exc}")
        except MathError as exc:
            print(f"  {label:28} => {type(exc).__name__}: {exc}")


def demo_analysis():
    """Demonstrate classification and serialization."""
    section("Analysis and Serialization")

    x, y = symbols("x y")

    for expr in [integer(5), x**2 + 2*x + 1, x*y + 1, sin(x)]:
        print(f"  {format_sexpr(expr):28} => {polynomial_classify(expr)!r}")

    print(f"\n  JSON: {to_json(add([x, 1]))}")


def main():
    """Run all demonstrations."""
    print("SYMKERNEL - a symbolic mathematics kernel")
    print("Feature Demonstration")

    demo_canonical_form()
    demo_exact_numbers()
    demo_noncommutative()
    demo_matrices()
    demo_functions()
    demo_evaluation()
    demo_analysis()

    print("\n" + "="*60)
    print(" Demo complete!")
    print("="*60)


if __name__ == "__main__":
    main()
