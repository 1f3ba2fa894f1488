"""Tests for the simplifier and term combiner."""

import logging
import math
import random

import pytest

from texalg import (
    Integer, Rational, Constant, Letter, MathConstant,
    Negative, Addition, Multiplication, Division, Power, Ln, Sin, Cos, Equals,
    simplify, multiply_by, evaluate, parse, ZERO, ONE,
)
from texalg.evaluate import INT64_MAX


a, b, x, y, z = (Letter(n) for n in "abxyz")
two, three = Integer(2), Integer(3)


class TestExactFolding:
    """Purely rational subtrees collapse to a literal."""

    def test_rational_sum(self):
        """1/2 + 1/3 = 5/6."""
        assert simplify(Addition([Rational(1, 2), Rational(1, 3)])) == Rational(5, 6)

    def test_integer_product(self):
        """2 * 3 = 6."""
        assert simplify(Multiplication([two, three])) == Integer(6)

    def test_denominator_one(self):
        """A whole result becomes an Integer."""
        assert simplify(Division(Integer(4), two)) == two
        assert simplify(Rational(4, 2)) == two

    def test_reduces_rational(self):
        """Rationals are reduced."""
        assert simplify(Rational(2, 4)) == Rational(1, 2)

    def test_nested_fold(self):
        """Rational subtrees fold inside symbolic ones."""
        assert simplify(Addition([x, Multiplication([two, three])])) == Addition([Integer(6), x])

    def test_sum_beyond_64_bits(self):
        """A literal sum past the 64-bit range still collapses to one literal."""
        assert simplify(Addition([Integer(INT64_MAX), ONE])) == Integer(2 ** 63)
        assert simplify(Addition([Integer(10 ** 20), Integer(-1)])) == Integer(10 ** 20 - 1)

    def test_coefficients_beyond_64_bits(self):
        """Like terms combine even when the coefficient overflows."""
        expr = Addition([Multiplication([Integer(INT64_MAX), x]), x])
        assert simplify(expr) == Multiplication([Integer(2 ** 63), x])

    def test_product_beyond_64_bits(self):
        """An overflowing product becomes one coefficient."""
        big = Integer(2 ** 32)
        assert simplify(Multiplication([big, big, x])) == Multiplication([Integer(2 ** 64), x])
        assert simplify(Addition([Multiplication([big, big]), x])) == Addition([Integer(2 ** 64), x])

    def test_power_beyond_64_bits(self):
        """2^70 stays a power and collects like any other factor."""
        big = Power(two, Integer(70))
        assert simplify(big) == big
        assert simplify(Addition([big, big])) == Multiplication([two, big])
        expr = Addition([Multiplication([big, x]), Multiplication([x, big])])
        once = simplify(expr)
        assert once == simplify(Multiplication([two, x, big]))
        assert simplify(once) == once


class TestNegative:
    """Tests for negation rules."""

    def test_double_negation(self):
        """--x = x."""
        assert simplify(Negative(Negative(x))) == x

    def test_negated_literal(self):
        """A literal is negated in place."""
        assert simplify(Negative(three)) == Integer(-3)
        assert simplify(Negative(Integer(0))) == ZERO

    def test_wraps_symbol(self):
        """Negation of a name stays."""
        assert simplify(Negative(x)) == Negative(x)


class TestAddition:
    """Tests for collecting like terms."""

    def test_x_plus_x(self):
        """x + x = 2x."""
        assert simplify(Addition([x, x])) == Multiplication([two, x])

    def test_cancellation(self):
        """x - x = 0."""
        assert simplify(Addition([x, Negative(x)])) == ZERO

    def test_coefficients_combine(self):
        """2x + 3x = 5x."""
        expr = Addition([Multiplication([two, x]), Multiplication([three, x])])
        assert simplify(expr) == Multiplication([Integer(5), x])

    def test_numbers_combine(self):
        """x + 2 + 3 = 5 + x."""
        assert simplify(Addition([x, two, three])) == Addition([Integer(5), x])

    def test_many_terms_group(self):
        """Interleaved terms group completely."""
        expr = Addition([x, y, x, y, x])
        assert simplify(expr) == Addition([
            Multiplication([three, x]),
            Multiplication([two, y]),
        ])

    def test_nested_sums_flatten(self):
        """(x + y) + (x - y) = 2x."""
        expr = Addition([Addition([x, y]), Addition([x, Negative(y)])])
        assert simplify(expr) == Multiplication([two, x])

    def test_negated_sum_flattens(self):
        """x + y - (x + y) = 0."""
        expr = Addition([x, y, Negative(Addition([x, y]))])
        assert simplify(expr) == ZERO

    def test_order_independent(self):
        """Addend order does not matter."""
        assert simplify(Addition([y, x])) == simplify(Addition([x, y])) == Addition([x, y])

    def test_single_contribution(self):
        """A sum with one surviving term is that term."""
        assert simplify(Addition([x, y, Negative(y)])) == x

    def test_negative_coefficient(self):
        """x - 3x = -2x."""
        expr = Addition([x, Negative(Multiplication([three, x]))])
        assert simplify(expr) == Negative(Multiplication([two, x]))


class TestMultiplication:
    """Tests for collecting factors."""

    def test_x_times_x(self):
        """x * x = x^2."""
        assert simplify(Multiplication([x, x])) == Power(x, two)

    def test_many_factors_group(self):
        """Coefficients fold, repeated factors become powers."""
        expr = Multiplication([x, y, x, two, y, x])
        assert simplify(expr) == Multiplication([two, Power(x, three), Power(y, two)])

    def test_zero_short_circuits(self):
        """0 * anything = 0."""
        assert simplify(Multiplication([x, Integer(0), Ln(y)])) == ZERO

    def test_signs(self):
        """Negatives are collected into one sign."""
        assert simplify(Multiplication([Negative(x), Negative(y)])) == Multiplication([x, y])
        assert simplify(Multiplication([Negative(x), y])) == Negative(Multiplication([x, y]))
        assert simplify(Multiplication([Integer(-2), x])) == Negative(Multiplication([two, x]))

    def test_order_independent(self):
        """Factor order does not matter."""
        assert simplify(Multiplication([y, x])) == simplify(Multiplication([x, y]))

    def test_nested_products_flatten(self):
        """(x * y) * x = x^2 y."""
        expr = Multiplication([Multiplication([x, y]), x])
        assert simplify(expr) == Multiplication([y, Power(x, two)])

    def test_distributes_over_sum(self):
        """2(x + 1) = 2 + 2x."""
        expr = Multiplication([two, Addition([x, ONE])])
        assert simplify(expr) == Addition([two, Multiplication([two, x])])

    def test_difference_of_squares(self):
        """(x + 1)(x - 1) = -1 + x^2."""
        expr = Multiplication([Addition([x, ONE]), Addition([x, Integer(-1)])])
        assert simplify(expr) == Addition([Integer(-1), Power(x, two)])

    def test_repeated_power_factors(self):
        """x^2 * x^2 becomes (x^2)^2 = x^4."""
        expr = Multiplication([Power(x, two), Power(x, two)])
        assert simplify(expr) == Power(x, Integer(4))

    def test_no_exponent_merging(self):
        """x * x^2 keeps both factors."""
        expr = Multiplication([x, Power(x, two)])
        assert simplify(expr) == Multiplication([x, Power(x, two)])


class TestDivision:
    """Tests for quotient cancellation."""

    def test_cancel_shared_factor(self):
        """(a*b)/a = b."""
        assert simplify(Division(Multiplication([a, b]), a)) == simplify(b)

    def test_self_quotient(self):
        """x/x = 1."""
        assert simplify(Division(x, x)) == ONE

    def test_other_self_quotients(self):
        """pi/pi, (x + 1)/(x + 1) and x^a/x^a are 1."""
        pi = Constant(MathConstant.PI)
        assert simplify(Division(pi, pi)) == ONE
        assert simplify(Division(Addition([x, ONE]), Addition([ONE, x]))) == ONE
        assert simplify(Division(Power(x, a), Power(x, a))) == ONE
        assert simplify(Division(Multiplication([x, y]), Multiplication([y, x]))) == ONE

    def test_root_over_base(self):
        """x^(1/2) / x = x^(-1/2)."""
        expr = Division(Power(x, Rational(1, 2)), x)
        assert simplify(expr) == Power(x, Rational(-1, 2))

    def test_power_over_base(self):
        """x^3 / x = x^2."""
        assert simplify(Division(Power(x, three), x)) == Power(x, two)

    def test_base_over_power(self):
        """x / x^2 = 1/x."""
        assert simplify(Division(x, Power(x, two))) == Division(ONE, x)

    def test_denominator_coefficient(self):
        """4x/2 = 2x and x/2 = x/2 as a coefficient."""
        assert simplify(Division(Multiplication([Integer(4), x]), two)) == Multiplication([two, x])
        assert simplify(Division(x, two)) == Multiplication([Rational(1, 2), x])

    def test_coefficients_cancel(self):
        """2x / 4x = 1/2."""
        expr = Division(Multiplication([two, x]), Multiplication([Integer(4), x]))
        assert simplify(expr) == Rational(1, 2)

    def test_common_factor_of_sum(self):
        """(xy + x) / x = 1 + y."""
        expr = Division(Addition([Multiplication([x, y]), x]), x)
        assert simplify(expr) == Addition([ONE, y])

    def test_partial_factor_kept(self):
        """(x + y) / x does not cancel."""
        expr = Division(Addition([x, y]), x)
        assert simplify(expr) == expr

    def test_symbolic_exponents_terminate(self):
        """x^a / x^b is left alone."""
        expr = Division(Power(x, a), Power(x, b))
        assert simplify(expr) == expr

    def test_zero_numerator(self):
        """0 / x = 0."""
        assert simplify(Division(Integer(0), x)) == ZERO

    def test_zero_denominator_kept(self):
        """x / 0 and 0 / 0 stay divisions."""
        assert simplify(Division(x, Integer(0))) == Division(x, Integer(0))
        assert simplify(Division(Integer(0), Integer(0))) == Division(Integer(0), Integer(0))


class TestPower:
    """Tests for power rules."""

    def test_exponent_one(self):
        """x^1 = x."""
        assert simplify(Power(x, ONE)) == x

    def test_exponent_zero(self):
        """x^0 = 1, and 0^0 folds to 1."""
        assert simplify(Power(x, Integer(0))) == ONE
        assert simplify(Power(Addition([x, y]), Addition([a, Negative(a)]))) == ONE
        assert simplify(Power(Integer(0), Integer(0))) == ONE

    def test_distributes_over_product(self):
        """(ab)^2 = a^2 b^2."""
        assert simplify(Power(Multiplication([a, b]), two)) == \
            simplify(Multiplication([Power(a, two), Power(b, two)]))

    def test_coefficient_raised(self):
        """(2x)^2 = 4x^2."""
        expr = Power(Multiplication([two, x]), two)
        assert simplify(expr) == Multiplication([Integer(4), Power(x, two)])

    def test_integer_exponents_merge(self):
        """(x^2)^3 = x^6."""
        assert simplify(Power(Power(x, two), three)) == Power(x, Integer(6))

    def test_rational_exponents_merge(self):
        """(x^(1/2))^(1/3) = x^(1/6)."""
        expr = Power(Power(x, Rational(1, 2)), Rational(1, 3))
        assert simplify(expr) == Power(x, Rational(1, 6))

    def test_mixed_exponents_kept(self):
        """(x^2)^(1/2) is not x."""
        expr = Power(Power(x, two), Rational(1, 2))
        assert simplify(expr) == expr

    def test_sum_base_not_expanded(self):
        """(x + y)^2 stays a power."""
        expr = Power(Addition([x, y]), two)
        assert simplify(expr) == expr


class TestOtherNodes:
    """Functions and equations simplify their operands."""

    def test_functions(self):
        """Operands simplify, the function stays."""
        assert simplify(Ln(Addition([x, x]))) == Ln(Multiplication([two, x]))
        assert simplify(Sin(Multiplication([x, x]))) == Sin(Power(x, two))
        assert simplify(Cos(Negative(Negative(x)))) == Cos(x)

    def test_function_of_literal(self):
        """ln(1) is not folded."""
        assert simplify(Ln(ONE)) == Ln(ONE)

    def test_equation(self):
        """Both sides simplify."""
        expr = Equals(Addition([x, x]), Addition([two, three]))
        assert simplify(expr) == Equals(Multiplication([two, x]), Integer(5))

    def test_constants_kept(self):
        """pi is a symbol, not a number."""
        pi = Constant(MathConstant.PI)
        assert simplify(Addition([pi, pi])) == Multiplication([two, pi])


class TestMultiplyBy:
    """Tests for the term combiner."""

    def test_plain_product(self):
        """Two non-sums group into one product."""
        assert multiply_by(x, y) == Multiplication([x, y])

    def test_product_stays_flat(self):
        """A product operand contributes its factors."""
        assert multiply_by(Multiplication([two, x]), y) == Multiplication([two, x, y])

    def test_distributes_left(self):
        """(a + b) c = ac + bc."""
        assert multiply_by(Addition([a, b]), x) == Addition([
            Multiplication([a, x]),
            Multiplication([b, x]),
        ])

    def test_distributes_both(self):
        """(a + b)(x + y) has four terms."""
        result = multiply_by(Addition([a, b]), Addition([x, y]))
        assert result == Addition([
            Multiplication([a, x]),
            Multiplication([a, y]),
            Multiplication([b, x]),
            Multiplication([b, y]),
        ])


class TestLogging:
    """The simplifier reports its steps at DEBUG level."""

    def test_cancellation_logged(self, caplog):
        """Cancelled factors are logged."""
        with caplog.at_level(logging.DEBUG, logger="texalg.simplify"):
            simplify(Division(Multiplication([a, b]), a))
        assert any("cancelled" in record.getMessage() for record in caplog.records)

    def test_quiet_by_default(self, caplog):
        """Nothing is logged above DEBUG."""
        with caplog.at_level(logging.INFO, logger="texalg"):
            simplify(Division(Multiplication([a, b]), a))
        assert not caplog.records


# ============================================================
# Idempotence and soundness
# ============================================================

IDEMPOTENCE_CORPUS = [
    "x+x",
    "2x+3y-x",
    "(x+1)(x-1)",
    "\\frac{xy}{x}",
    "x^2x^3",
    "(ab)^2",
    "\\frac{4x}{2}",
    "\\sqrt{x}\\sqrt{x}",
    "\\ln(x+x)",
    "x=2+3",
    "-(-(x))",
    "\\frac{x^a}{x^b}",
    "(x+y)^2",
    "2\\pi r",
    "\\frac{1}{2}mv^2+mgh",
    "(x+y)(x-y)(x+1)",
    "\\frac{x}{x}",
    "x^0+y",
    "9223372036854775807x+x+1",
]


def _random_expression(rng: random.Random, depth: int):
    leaves = [x, y, two, Integer(-1), Rational(1, 2)]
    if depth == 0 or rng.random() < 0.3:
        return rng.choice(leaves)
    kind = rng.randrange(4)
    if kind == 0:
        return Addition([_random_expression(rng, depth - 1) for _ in range(rng.randint(2, 3))])
    if kind == 1:
        return Multiplication([_random_expression(rng, depth - 1) for _ in range(rng.randint(2, 3))])
    if kind == 2:
        return Negative(_random_expression(rng, depth - 1))
    return Power(_random_expression(rng, depth - 1), Integer(rng.randint(2, 3)))


def _generated_corpus(count=150, seed=20240611):
    rng = random.Random(seed)
    return [_random_expression(rng, 3) for _ in range(count)]


QUOTIENT_FACTORS = [
    x, y, two, three,
    Power(x, two),
    Power(x, Rational(1, 2)),
    Power(y, Rational(-1, 3)),
    Addition([x, ONE]),
]


def _random_product(rng: random.Random):
    factors = [rng.choice(QUOTIENT_FACTORS) for _ in range(rng.randint(1, 3))]
    return factors[0] if len(factors) == 1 else Multiplication(factors)


def _quotient_corpus(count=100, seed=20240612):
    rng = random.Random(seed)
    corpus = []
    for _ in range(count):
        numerator = _random_product(rng)
        if rng.random() < 0.3:
            numerator = Addition([numerator, _random_product(rng)])
        corpus.append(Division(numerator, _random_product(rng)))
    return corpus


class TestIdempotence:
    """simplify(simplify(e)) == simplify(e)."""

    @pytest.mark.parametrize("text", IDEMPOTENCE_CORPUS)
    def test_parsed_corpus(self, text):
        """Hand-written formulas."""
        once = simplify(parse(text))
        assert simplify(once) == once

    def test_generated_corpus(self):
        """Random sums, products, negations and powers."""
        for expr in _generated_corpus():
            once = simplify(expr)
            assert simplify(once) == once, repr(expr)

    def test_generated_values_preserved(self):
        """Simplification does not change the value."""
        bindings = {"x": 1.3, "y": -0.7}
        for expr in _generated_corpus():
            before = evaluate(expr, bindings)
            after = evaluate(simplify(expr), bindings)
            assert math.isclose(before, after, rel_tol=1e-9, abs_tol=1e-9), repr(expr)

    def test_quotient_corpus(self):
        """Random quotients with fractional exponents."""
        for expr in _quotient_corpus():
            once = simplify(expr)
            assert simplify(once) == once, repr(expr)

    def test_quotient_values_preserved(self):
        """Cancellation does not change the value for positive names."""
        bindings = {"x": 1.3, "y": 0.7}
        for expr in _quotient_corpus():
            before = evaluate(expr, bindings)
            after = evaluate(simplify(expr), bindings)
            assert math.isclose(before, after, rel_tol=1e-9, abs_tol=1e-9), repr(expr)
