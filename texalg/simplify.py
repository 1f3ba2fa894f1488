"""
Canonicalizing simplifier for TEXALG.

TEXALG - Exact algebra over a LaTeX subset

simplify() rewrites an expression bottom-up into a canonical form:

    - purely rational subtrees fold to a single Integer or Rational
    - sums collect like terms: 2x + 3x => 5x, x - x => 0
    - products collect a numeric coefficient and repeated factors:
      x * x => x^2, 2 * x * 3 => 6x
    - products of sums are expanded: (a + b) * c => a*c + b*c
    - quotients cancel shared factors: (a*b) / a => b
    - powers of products distribute: (a*b)^2 => a^2 * b^2, and x^0 => 1

Terms and factors are grouped in the canonical order of sort_key(), so the
result does not depend on the order of the input.
"""

import logging
from fractions import Fraction
from typing import Dict, List, Tuple

from .evaluate import try_exact_value
from .expression import (
    Expression, Variable, Integer, Rational,
    Negative, Addition, Multiplication, Division, Power, Ln, Sin, Cos, Equals,
    literal, literal_value, is_literal, ZERO, ONE,
)
from .factors import remove_factor, shared_factors

logger = logging.getLogger(__name__)


# ============================================================
# Term Combiner
# ============================================================

def _group(left: Expression, right: Expression) -> Multiplication:
    factors: List[Expression] = []
    for operand in (left, right):
        if isinstance(operand, Multiplication):
            factors.extend(operand.factors)
        else:
            factors.append(operand)
    return Multiplication(factors)


def multiply_by(accumulated: Expression, factor: Expression) -> Expression:
    """
    Multiply two terms, expanding over sums.

    Args:
        accumulated: Product built so far
        factor: Next factor

    Returns:
        An Addition of every pairwise product if either operand is an
        Addition, otherwise a single Multiplication of both operands.

    Examples:
        multiply_by(x, y) -> Multiplication([x, y])
        multiply_by(a + b, c) -> Addition([a*c, b*c])
    """
    if isinstance(accumulated, Addition) or isinstance(factor, Addition):
        left = accumulated.terms if isinstance(accumulated, Addition) else (accumulated,)
        right = factor.terms if isinstance(factor, Addition) else (factor,)
        return Addition(_group(l, r) for l in left for r in right)
    return _group(accumulated, factor)


# ============================================================
# Helpers
# ============================================================

def _negate(expr: Expression) -> Expression:
    """Negate an already simplified expression."""
    if isinstance(expr, Negative):
        return expr.operand
    value = literal_value(expr)
    if value is not None:
        return literal(-value)
    return Negative(expr)


def _split_term(expr: Expression) -> Tuple[Expression, Fraction]:
    """
    Split a simplified addend into (term, coefficient).

    Examples:
        3 -> (1, 3)
        -x -> (x, -1)
        2*x*y -> (x*y, 2)
    """
    value = literal_value(expr)
    if value is not None:
        return ONE, value
    if isinstance(expr, Negative):
        term, coefficient = _split_term(expr.operand)
        return term, -coefficient
    if isinstance(expr, Multiplication) and expr.factors:
        value = literal_value(expr.factors[0])
        if value is not None:
            rest = expr.factors[1:]
            if not rest:
                return ONE, value
            return (rest[0] if len(rest) == 1 else Multiplication(rest)), value
    return expr, Fraction(1)


def _flatten_sum(expr: Expression) -> List[Expression]:
    if isinstance(expr, Addition):
        return list(expr.terms)
    if isinstance(expr, Negative) and isinstance(expr.operand, Addition):
        return [_negate(term) for term in expr.operand.terms]
    return [expr]


def _weight(expr: Expression) -> int:
    """Node count, with a positive integer exponent n counted as n and 1 as 0."""
    if expr == ONE:
        return 0
    if (isinstance(expr, Power) and isinstance(expr.exponent, Integer)
            and expr.exponent.value > 0):
        return _weight(expr.base) + expr.exponent.value
    return 1 + sum(_weight(child) for child in expr.children)


def _same_numeric_kind(a: Expression, b: Expression) -> bool:
    return ((isinstance(a, Integer) and isinstance(b, Integer))
            or (isinstance(a, Rational) and isinstance(b, Rational)))


# ============================================================
# Per-variant rules
# ============================================================

def _simplify_addition(expr: Addition) -> Expression:
    addends: List[Expression] = []
    for term in expr.terms:
        addends.extend(_flatten_sum(simplify(term)))

    # Summed directly; a total may lie outside the 64-bit range
    groups: Dict[Expression, Fraction] = {}
    for addend in addends:
        term, coefficient = _split_term(addend)
        groups[term] = groups.get(term, Fraction(0)) + coefficient

    contributions = []
    for term in sorted(groups):
        total = groups[term]
        if total == 0:
            continue
        if term == ONE:
            contributions.append(literal(total))
        else:
            contributions.append(simplify(Multiplication([literal(total), term])))

    if not contributions:
        return ZERO
    if len(contributions) == 1:
        return contributions[0]
    return Addition(contributions)


def _simplify_multiplication(expr: Multiplication) -> Expression:
    simplified = [simplify(factor) for factor in expr.factors]
    if any(factor == ZERO for factor in simplified):
        return ZERO

    negative = False
    coefficient = Fraction(1)
    counts: Dict[Expression, int] = {}
    stack = list(reversed(simplified))
    while stack:
        factor = stack.pop()
        if isinstance(factor, Negative):
            negative = not negative
            stack.append(factor.operand)
        elif isinstance(factor, Multiplication):
            stack.extend(reversed(factor.factors))
        else:
            value = literal_value(factor)
            if value is None:
                counts[factor] = counts.get(factor, 0) + 1
            elif value == 0:
                return ZERO
            else:
                coefficient *= value

    if coefficient < 0:
        negative = not negative
        coefficient = -coefficient

    factors = []
    for factor in sorted(counts):
        count = counts[factor]
        factors.append(factor if count == 1 else simplify(Power(factor, Integer(count))))
    factors.sort()

    collided = len(set(factors)) != len(factors) or any(
        isinstance(f, (Multiplication, Negative)) or literal_value(f) is not None
        for f in factors)
    if collided:
        # Raising a factor to its multiplicity produced something that must
        # be collected again (x^2 * x^2 * x^4 => x^4 * x^4)
        result = simplify(Multiplication([literal(coefficient)] + factors))
        return _negate(result) if negative else result

    if coefficient != 1:
        factors.insert(0, literal(coefficient))

    if not factors:
        result = ONE
    elif len(factors) == 1:
        result = factors[0]
    else:
        result = factors[0]
        for factor in factors[1:]:
            result = multiply_by(result, factor)
        if isinstance(result, Addition):
            logger.debug("expanded product into %d terms", len(result.terms))
            result = simplify(result)

    return _negate(result) if negative else result


def _move_coefficient(numerator: Expression,
                      denominator: Expression) -> Tuple[Expression, Expression]:
    """Move the numeric coefficient of the denominator into the numerator."""
    term, coefficient = _split_term(denominator)
    if coefficient == 1 or coefficient == 0:
        return numerator, denominator
    numerator = simplify(Multiplication([literal(1 / coefficient), numerator]))
    return numerator, term


def _cancel_shared_factors(numerator: Expression,
                           denominator: Expression) -> Tuple[Expression, Expression]:
    weight = _weight(numerator) + _weight(denominator)
    while True:
        candidates = shared_factors(denominator, numerator) + shared_factors(numerator, denominator)
        for factor in candidates:
            if factor == ONE:
                continue
            new_numerator = simplify(remove_factor(numerator, factor))
            new_denominator = simplify(remove_factor(denominator, factor))
            new_weight = _weight(new_numerator) + _weight(new_denominator)
            # Weight must strictly drop; x^a / x^b never does
            if new_weight < weight:
                logger.debug("cancelled %r from %r / %r", factor, numerator, denominator)
                numerator, denominator, weight = new_numerator, new_denominator, new_weight
                break
        else:
            return numerator, denominator


def _simplify_division(expr: Division) -> Expression:
    numerator = simplify(expr.numerator)
    denominator = simplify(expr.denominator)
    if denominator == ZERO:
        return Division(numerator, denominator)

    numerator, denominator = _move_coefficient(numerator, denominator)
    numerator, denominator = _cancel_shared_factors(numerator, denominator)
    numerator, denominator = _move_coefficient(numerator, denominator)

    if numerator == ZERO:
        return ZERO
    if denominator == ONE:
        return numerator
    return Division(numerator, denominator)


def _simplify_power(expr: Power) -> Expression:
    base = simplify(expr.base)
    exponent = simplify(expr.exponent)

    if exponent == ONE:
        return base
    if exponent == ZERO:
        return ONE

    if isinstance(base, Multiplication):
        logger.debug("distributing exponent %r over %r", exponent, base)
        return simplify(Multiplication([Power(factor, exponent) for factor in base.factors]))

    # Merging nested exponents is only done within one numeric kind
    if isinstance(base, Power) and _same_numeric_kind(base.exponent, exponent):
        return simplify(Power(base.base, Multiplication([exponent, base.exponent])))

    return Power(base, exponent)


# ============================================================
# Entry point
# ============================================================

def simplify(expr: Expression) -> Expression:
    """
    Rewrite an expression into canonical simplified form.

    Exact evaluation is tried first at every node; a purely rational
    subtree becomes a single literal. The result is a new tree and
    simplify(simplify(e)) == simplify(e).

    Args:
        expr: Expression to simplify

    Returns:
        The canonical form of expr

    Examples:
        simplify(Addition([Rational(1, 2), Rational(1, 3)])) -> Rational(5, 6)
        simplify(Multiplication([x, x])) -> Power(x, Integer(2))
        simplify(Division(Multiplication([a, b]), a)) -> b
    """
    value = try_exact_value(expr)
    if value is not None:
        if not is_literal(expr):
            logger.debug("folded %r to %s", expr, value)
        return literal(value)

    if isinstance(expr, Variable):
        return expr
    if isinstance(expr, Negative):
        return _negate(simplify(expr.operand))
    if isinstance(expr, Addition):
        return _simplify_addition(expr)
    if isinstance(expr, Multiplication):
        return _simplify_multiplication(expr)
    if isinstance(expr, Division):
        return _simplify_division(expr)
    if isinstance(expr, Power):
        return _simplify_power(expr)
    if isinstance(expr, Ln):
        return Ln(simplify(expr.operand))
    if isinstance(expr, Sin):
        return Sin(simplify(expr.operand))
    if isinstance(expr, Cos):
        return Cos(simplify(expr.operand))
    if isinstance(expr, Equals):
        return Equals(simplify(expr.lhs), simplify(expr.rhs))
    raise TypeError(f"simplify: not an expression: {expr!r}")
