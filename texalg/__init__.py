"""
TEXALG - Exact algebra over a LaTeX subset

Parses formulas written in a subset of LaTeX, simplifies them to a
canonical form with exact rational arithmetic, and evaluates them.

Quick Start:
    from texalg import parse_and_simplify, parse_and_evaluate

    parse_and_simplify("2x + 3x")                    # => "5x"
    parse_and_simplify("\\frac{x y}{x}")              # => "y"
    parse_and_evaluate("x^2", {"x": 3.0})            # => 9.0

Working with trees:
    from texalg import E, simplify, emit

    x = E.var("x")
    expr = E.mul(E.add(x, 1), E.add(x, -1))
    emit(simplify(expr))                             # => "-1+x^{2}"

Engine with settings:
    from texalg import FormulaEngine

    engine = FormulaEngine(implicit_multiplication=False)
    engine("x*x")                                    # => "x^{2}"
    engine.evaluate("m*c^2", {"m": 1.0})             # c from PHYSICS_CONSTANTS

Supported notation:
    + - * / ^ =   \\frac{a}{b}   \\sqrt{x}   \\ln(x) \\sin(x) \\cos(x)
    \\pi  e  \\vec{v}  x_0  \\hbar   decimals (0.25 is exactly 1/4)
"""

import logging

__version__ = "0.1.0"
__author__ = "spinoza"

# Errors
from .errors import (
    TexalgError,
    ParseError,
    MalformedInputError,
    UnsupportedConstructError,
    UnboundVariableError,
    InvalidOperationError,
    FactorNotPresentError,
)

# Expression model
from .expression import (
    Expression,
    Variable,
    Integer,
    Rational,
    Constant,
    Letter,
    Vector,
    MathConstant,
    Negative,
    Addition,
    Multiplication,
    Division,
    Power,
    Ln,
    Sin,
    Cos,
    Equals,
    literal,
    literal_value,
    is_literal,
    ZERO,
    ONE,
    MINUS_ONE,
)

# Evaluation, factors, simplification
from .evaluate import evaluate, try_exact_value, BindingsType
from .factors import has_factor, all_factors, shared_factors, remove_factor
from .simplify import simplify, multiply_by

# Text
from .latex import parse, emit, IR, BracketType

# Constants and engine
from .constants import (
    PHYSICS_CONSTANTS,
    NO_CONSTANTS,
    BUILTIN_CONSTANTS,
    load_custom_constants,
)
from .engine import (
    FormulaEngine,
    E,
    parse_and_simplify,
    parse_and_evaluate,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [
    # Version
    "__version__",
    # Errors
    "TexalgError",
    "ParseError",
    "MalformedInputError",
    "UnsupportedConstructError",
    "UnboundVariableError",
    "InvalidOperationError",
    "FactorNotPresentError",
    # Expression model
    "Expression",
    "Variable",
    "Integer",
    "Rational",
    "Constant",
    "Letter",
    "Vector",
    "MathConstant",
    "Negative",
    "Addition",
    "Multiplication",
    "Division",
    "Power",
    "Ln",
    "Sin",
    "Cos",
    "Equals",
    "literal",
    "literal_value",
    "is_literal",
    "ZERO",
    "ONE",
    "MINUS_ONE",
    # Core operations
    "evaluate",
    "try_exact_value",
    "BindingsType",
    "has_factor",
    "all_factors",
    "shared_factors",
    "remove_factor",
    "simplify",
    "multiply_by",
    # Text
    "parse",
    "emit",
    "IR",
    "BracketType",
    # Constants
    "PHYSICS_CONSTANTS",
    "NO_CONSTANTS",
    "BUILTIN_CONSTANTS",
    "load_custom_constants",
    # Engine
    "FormulaEngine",
    "E",
    "parse_and_simplify",
    "parse_and_evaluate",
]
