#!/usr/bin/env python3
"""
TEXALG Feature Demonstration

This script demonstrates the major features of the TEXALG library.
"""

import logging
from pathlib import Path

from texalg import (
    FormulaEngine, E,
    parse, emit, simplify, evaluate,
    parse_and_simplify, parse_and_evaluate,
    load_custom_constants, TexalgError,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_simplify():
    """Collect like terms, fold rationals, expand products."""
    section("Simplification")

    examples = [
        "2x + 3x",
        "x - x",
        "\\frac{1}{2} + \\frac{1}{3}",
        "(x + 1)(x - 1)",
        "x \\cdot x \\cdot y",
        "(2ab)^2",
    ]

    for text in examples:
        print(f"  {text} => {parse_and_simplify(text)}")


def demo_cancellation():
    """Cancel shared factors in quotients."""
    section("Quotients")

    examples = [
        "\\frac{xy}{x}",
        "\\frac{4x}{2}",
        "\\frac{x^3}{x}",
        "\\frac{xy + x}{x}",
        "\\frac{x + y}{x}",
    ]

    for text in examples:
        print(f"  {text} => {parse_and_simplify(text)}")


def demo_trees():
    """Build expressions in code with E."""
    section("Expression Builder")

    x, y = E.vars("x", "y")
    expr = E.mul(E.add(x, y), E.add(x, E.neg(y)))
    print(f"  tree:       {expr!r}")
    print(f"  emitted:    {emit(expr)}")
    print(f"  simplified: {emit(simplify(expr))}")

    parsed = parse("\\sqrt{x}\\sqrt{x}")
    print(f"  \\sqrt{{x}}\\sqrt{{x}} => {emit(simplify(parsed))}")


def demo_evaluation():
    """Evaluate formulas numerically."""
    section("Evaluation")

    examples = [
        ("x^2", {"x": 3.0}),
        ("\\frac{1}{2}mv^2", {"m": 2.0, "v": 3.0}),
        ("mc^2", {"m": 1.0}),
        ("\\hbar", None),
    ]

    for text, bindings in examples:
        value = parse_and_evaluate(text, bindings)
        print(f"  {text} with {bindings or 'physics constants'} => {value:.6g}")

    # Division by zero gives an infinity, not an exception
    quotient = parse("\\frac{1}{0}")
    print(f"  {emit(quotient)} => {evaluate(quotient)}")


def demo_engine():
    """Use a configured FormulaEngine."""
    section("Formula Engine")

    explicit = FormulaEngine(implicit_multiplication=False)
    print(f"  explicit mode: 2*ab*ab => {explicit('2*ab*ab')}")

    bare = FormulaEngine().with_constants({"k": 2.0})
    print(f"  custom table:  3k => {bare.evaluate('3k')}")

    try:
        bare.evaluate("c")
    except TexalgError as e:
        print(f"  without physics constants: {e}")


def demo_custom_constants():
    """Load a constants table from a file."""
    section("Custom Constants")

    path = Path(__file__).parent / "custom_constants.py"
    table = load_custom_constants(str(path))
    print(f"  Loaded {len(table)} constants from {path.name}")

    engine = FormulaEngine().with_constants(table)
    ratio = engine.evaluate("\\frac{M_s}{M_e}")
    print(f"  M_sun / M_earth = {ratio:.1f}")


def demo_tracing():
    """Log simplification steps."""
    section("Tracing")

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("    [%(name)s] %(message)s"))
    logger = logging.getLogger("texalg")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        result = parse_and_simplify("\\frac{2ab}{4a}")
        print(f"  result: {result}")
    finally:
        logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)


def main():
    """Run all demonstrations."""
    print("TEXALG - Exact algebra over a LaTeX subset")
    print("Feature Demonstration")

    demo_simplify()
    demo_cancellation()
    demo_trees()
    demo_evaluation()
    demo_engine()
    demo_custom_constants()
    demo_tracing()

    print("\n" + "="*60)
    print(" Demo complete!")
    print("="*60)


if __name__ == "__main__":
    main()
