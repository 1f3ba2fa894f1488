"""
Exact and floating-point evaluation for TEXALG.

TEXALG - Exact algebra over a LaTeX subset

try_exact_value() folds purely rational subtrees to a Fraction and is the
only constant-folding mechanism the simplifier uses. evaluate() computes a
float for any expression given bindings for its names.
"""

import math
from fractions import Fraction
from typing import Mapping, Optional

from .errors import InvalidOperationError, UnboundVariableError
from .expression import (
    Expression, Integer, Rational, Constant, Letter, Vector, MathConstant,
    Negative, Addition, Multiplication, Division, Power, Ln, Sin, Cos, Equals,
)

BindingsType = Mapping[str, float]

# Rational literals are 64-bit; exact results outside this range are not folded
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

CONSTANT_VALUES = {
    MathConstant.PI: math.pi,
    MathConstant.E: math.e,
}


# ============================================================
# Exact evaluation
# ============================================================

def _in_range(value: Fraction) -> bool:
    return (INT64_MIN <= value.numerator <= INT64_MAX
            and value.denominator <= INT64_MAX)


def _exact_power(base: Fraction, exponent: Fraction) -> Optional[Fraction]:
    if exponent.denominator != 1:
        return None  # Roots are not rational in general
    n = exponent.numerator
    if base == 0 and n < 0:
        return None
    if abs(n) > 64 and abs(base) not in (0, 1):
        return None  # Certain to leave the 64-bit range
    return base ** n


def try_exact_value(expr: Expression) -> Optional[Fraction]:
    """
    Fold an expression to an exact rational value.

    Succeeds only when every leaf is an Integer or Rational literal and every
    operator is Addition, Multiplication, Division, Negative or Power with
    an integer exponent.

    Args:
        expr: Expression to fold

    Returns:
        The value as a Fraction, or None if the expression is not purely
        rational (names, constants, transcendental functions, division by
        zero, results outside the 64-bit range).

    Examples:
        try_exact_value(Addition([Rational(1, 2), Rational(1, 3)])) -> Fraction(5, 6)
        try_exact_value(Letter("x")) -> None
    """
    value = _exact(expr)
    if value is None or not _in_range(value):
        return None
    return value


def _exact(expr: Expression) -> Optional[Fraction]:
    if isinstance(expr, Integer):
        return Fraction(expr.value)

    if isinstance(expr, Rational):
        if expr.denominator == 0:
            return None
        return Fraction(expr.numerator, expr.denominator)

    if isinstance(expr, Negative):
        value = _exact(expr.operand)
        return None if value is None else -value

    if isinstance(expr, (Addition, Multiplication)):
        values = []
        for term in expr.terms:
            value = _exact(term)
            if value is None or not _in_range(value):
                return None
            values.append(value)
        if isinstance(expr, Addition):
            return sum(values, Fraction(0))
        result = Fraction(1)
        for value in values:
            result *= value
        return result

    if isinstance(expr, Division):
        numerator = _exact(expr.numerator)
        denominator = _exact(expr.denominator)
        if numerator is None or denominator is None or denominator == 0:
            return None
        return numerator / denominator

    if isinstance(expr, Power):
        base = _exact(expr.base)
        exponent = _exact(expr.exponent)
        if base is None or exponent is None:
            return None
        if not (_in_range(base) and _in_range(exponent)):
            return None
        return _exact_power(base, exponent)

    return None


# ============================================================
# Floating-point evaluation
# ============================================================

def _divide(numerator: float, denominator: float) -> float:
    try:
        return numerator / denominator
    except ZeroDivisionError:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def _power(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except ValueError:
        if base == 0 and exponent < 0:
            return math.inf
        return math.nan  # Negative base with a non-integer exponent
    except OverflowError:
        if base < 0 and exponent.is_integer() and int(exponent) % 2 == 1:
            return -math.inf
        return math.inf


def _ln(value: float) -> float:
    if value == 0:
        return -math.inf
    if value < 0:
        return math.nan
    return math.log(value)


def _periodic(func, value: float) -> float:
    if math.isinf(value):
        return math.nan
    return func(value)


def evaluate(expr: Expression, bindings: Optional[BindingsType] = None) -> float:
    """
    Evaluate an expression to a float.

    Division, powers and logarithms follow IEEE semantics: x/0 is an
    infinity, a negative base with a fractional exponent is nan, ln(0) is
    -inf.

    Args:
        expr: Expression to evaluate
        bindings: Values for Letter and Vector names

    Returns:
        The numeric value

    Raises:
        UnboundVariableError: If a name has no binding
        InvalidOperationError: If the expression is an equation

    Examples:
        evaluate(Power(Letter("x"), Integer(2)), {"x": 3.0}) -> 9.0
    """
    if bindings is None:
        bindings = {}

    if isinstance(expr, Integer):
        return float(expr.value)

    if isinstance(expr, Rational):
        return _divide(float(expr.numerator), float(expr.denominator))

    if isinstance(expr, Constant):
        return CONSTANT_VALUES[expr.constant]

    if isinstance(expr, (Letter, Vector)):
        if expr.name not in bindings:
            raise UnboundVariableError(expr.name)
        return float(bindings[expr.name])

    if isinstance(expr, Negative):
        return -evaluate(expr.operand, bindings)

    if isinstance(expr, Addition):
        return sum((evaluate(term, bindings) for term in expr.terms), 0.0)

    if isinstance(expr, Multiplication):
        result = 1.0
        for factor in expr.factors:
            result *= evaluate(factor, bindings)
        return result

    if isinstance(expr, Division):
        return _divide(evaluate(expr.numerator, bindings),
                       evaluate(expr.denominator, bindings))

    if isinstance(expr, Power):
        return _power(evaluate(expr.base, bindings),
                      evaluate(expr.exponent, bindings))

    if isinstance(expr, Ln):
        return _ln(evaluate(expr.operand, bindings))

    if isinstance(expr, Sin):
        return _periodic(math.sin, evaluate(expr.operand, bindings))

    if isinstance(expr, Cos):
        return _periodic(math.cos, evaluate(expr.operand, bindings))

    if isinstance(expr, Equals):
        raise InvalidOperationError("Cannot evaluate an equation to a number")

    raise InvalidOperationError(f"Cannot evaluate {type(expr).__name__}")
