"""
Structural factor analysis for TEXALG.

TEXALG - Exact algebra over a LaTeX subset

A factor is a sub-expression that structurally divides another. The rules
are structural: a factor may only be cancelled out of a sum
when every addend carries it.
"""

from typing import List

from .errors import FactorNotPresentError
from .expression import (
    Expression, Negative, Addition, Multiplication, Power, ONE, MINUS_ONE,
)


def has_factor(expr: Expression, factor: Expression) -> bool:
    """
    Check if factor structurally divides expr.

    Args:
        expr: Expression to test
        factor: Candidate factor

    Returns:
        True if expr is the factor, a power of it, a product with a child
        that has it, a sum whose every addend has it, or a negation of one
        of those.

    Examples:
        has_factor(x*y, x) -> True
        has_factor(x*y + x, x) -> True
        has_factor(x*y + y, x) -> False
    """
    if expr == factor:
        return True
    if isinstance(expr, Power):
        return expr.base == factor
    if isinstance(expr, Multiplication):
        return any(has_factor(child, factor) for child in expr.factors)
    if isinstance(expr, Addition):
        return all(has_factor(child, factor) for child in expr.terms)
    if isinstance(expr, Negative):
        return has_factor(expr.operand, factor)
    return False


def _candidates(expr: Expression) -> List[Expression]:
    candidates = [expr]
    if isinstance(expr, Multiplication):
        candidates.extend(expr.factors)
    elif isinstance(expr, Power):
        candidates.append(expr.base)
    return candidates


def all_factors(expr: Expression) -> List[Expression]:
    """First-level factors of expr: itself, its product children, its power base."""
    return [c for c in _candidates(expr) if has_factor(expr, c)]


def shared_factors(expr: Expression, other: Expression) -> List[Expression]:
    """First-level factors of expr that other also has."""
    return [c for c in _candidates(expr) if has_factor(other, c)]


def remove_factor(expr: Expression, factor: Expression) -> Expression:
    """
    Divide a factor out of an expression structurally.

    The result is not simplified: removing x from x^3 gives x^(3 + -1).

    Args:
        expr: Expression that has the factor
        factor: Factor to remove

    Returns:
        A new expression equal to expr / factor

    Raises:
        FactorNotPresentError: If has_factor(expr, factor) is False
    """
    if not has_factor(expr, factor):
        raise FactorNotPresentError(f"{factor!r} is not a factor of {expr!r}")

    if expr == factor:
        return ONE

    if isinstance(expr, Negative):
        return Negative(remove_factor(expr.operand, factor))

    if isinstance(expr, Multiplication):
        # Only the first carrier gives up the factor
        remaining = list(expr.factors)
        for i, child in enumerate(remaining):
            if has_factor(child, factor):
                remaining[i] = remove_factor(child, factor)
                break
        return Multiplication(remaining) if remaining else ONE

    if isinstance(expr, Power):
        return Power(expr.base, Addition([expr.exponent, MINUS_ONE]))

    if isinstance(expr, Addition):
        return Addition(remove_factor(child, factor) for child in expr.terms)

    return expr
