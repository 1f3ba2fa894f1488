"""
Formula engine and expression builder for TEXALG.

TEXALG - Exact algebra over a LaTeX subset

This module is the boundary host applications use:

    parse_and_simplify("x + x")             -> "2x"
    parse_and_evaluate("\\frac{1}{2} m v^2", {"m": 2.0, "v": 3.0}) -> 9.0

FormulaEngine wraps the same operations with persistent configuration
(implicit multiplication, constants table), and E builds expression trees
in code.
"""

from fractions import Fraction
from typing import Dict, Mapping, Optional, Tuple, Union

from .constants import PHYSICS_CONSTANTS, ConstantsType, merge_bindings
from .evaluate import evaluate as _evaluate
from .expression import (
    Expression, Integer, Rational, Constant, Letter, Vector, MathConstant,
    Negative, Addition, Multiplication, Division, Power, Ln, Sin, Cos, Equals,
    literal,
)
from .latex import parse, emit
from .simplify import simplify as _simplify

OperandType = Union[Expression, int, Fraction, str]


# ============================================================
# Expression Builder
# ============================================================

def _coerce(value: OperandType) -> Expression:
    """Turn builder arguments into expressions: ints are literals, strings are letters."""
    if isinstance(value, Expression):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Cannot use {value!r} as an expression")
    if isinstance(value, (int, Fraction)):
        return literal(value)
    if isinstance(value, str):
        return Letter(value)
    raise TypeError(f"Cannot use {value!r} as an expression")


class _ExprBuilder:
    """
    Expression builder for TEXALG.

    Examples:
        from texalg import E

        # Parse LaTeX
        expr = E("\\frac{x}{2} + 1")

        # Build programmatically
        x, y = E.vars("x", "y")
        expr = E.add(x, E.mul(2, y))

        # Plain ints become literals and strings become letters
        E.pow("x", 2) -> Power(Letter('x'), Integer(2))
    """

    def __call__(self, text: str, implicit_multiplication: bool = True) -> Expression:
        """
        Parse LaTeX text.

        Examples:
            E("x^2") -> Power(Letter('x'), Integer(2))
        """
        return parse(text, implicit_multiplication)

    def int(self, value: int) -> Integer:
        return Integer(value)

    def frac(self, numerator: int, denominator: int) -> Rational:
        """
        Create a rational literal, as written (not reduced).

        Example:
            E.frac(2, 4) -> Rational(2, 4)
        """
        return Rational(numerator, denominator)

    def var(self, name: str) -> Letter:
        return Letter(name)

    def vars(self, *names: str) -> Tuple[Letter, ...]:
        """
        Create multiple letters for unpacking.

        Example:
            x, y, z = E.vars("x", "y", "z")
        """
        return tuple(Letter(name) for name in names)

    def vec(self, name: str) -> Vector:
        return Vector(name)

    @property
    def pi(self) -> Constant:
        return Constant(MathConstant.PI)

    @property
    def e(self) -> Constant:
        return Constant(MathConstant.E)

    def add(self, *terms: OperandType) -> Addition:
        return Addition(_coerce(t) for t in terms)

    def mul(self, *factors: OperandType) -> Multiplication:
        return Multiplication(_coerce(f) for f in factors)

    def div(self, numerator: OperandType, denominator: OperandType) -> Division:
        return Division(_coerce(numerator), _coerce(denominator))

    def pow(self, base: OperandType, exponent: OperandType) -> Power:
        return Power(_coerce(base), _coerce(exponent))

    def neg(self, operand: OperandType) -> Negative:
        return Negative(_coerce(operand))

    def ln(self, operand: OperandType) -> Ln:
        return Ln(_coerce(operand))

    def sin(self, operand: OperandType) -> Sin:
        return Sin(_coerce(operand))

    def cos(self, operand: OperandType) -> Cos:
        return Cos(_coerce(operand))

    def eq(self, lhs: OperandType, rhs: OperandType) -> Equals:
        return Equals(_coerce(lhs), _coerce(rhs))

    def __repr__(self) -> str:
        return "E (expression builder)"


# Singleton instance
E = _ExprBuilder()


# ============================================================
# Formula Engine
# ============================================================

class FormulaEngine:
    """
    Parses, simplifies, emits and evaluates formulas with fixed settings.

    Example:
        from texalg import FormulaEngine

        engine = FormulaEngine()
        engine.simplify("2x + 3x")              # "5x"
        engine.evaluate("m c^2", {"m": 1.0})    # 8.987551787368176e16

        explicit = FormulaEngine(implicit_multiplication=False)
        explicit.simplify("2*x*y")              # "2*x*y"

        # No physics constants
        bare = FormulaEngine().with_constants({})
    """

    def __init__(self, implicit_multiplication: bool = True,
                 constants: Optional[ConstantsType] = None):
        """
        Initialize a FormulaEngine.

        Args:
            implicit_multiplication: Whether adjacent operands (2x, ab)
                denote a product when parsing, and are written that way
                when emitting.
            constants: Name -> value table merged under the bindings of
                every evaluate() call. Default: PHYSICS_CONSTANTS.
        """
        self.implicit_multiplication = implicit_multiplication
        self._constants: Dict[str, float] = dict(
            PHYSICS_CONSTANTS if constants is None else constants)

    @property
    def constants(self) -> Dict[str, float]:
        """A copy of the constants table."""
        return dict(self._constants)

    def with_constants(self, constants: ConstantsType) -> 'FormulaEngine':
        """
        Replace the constants table.

        Returns:
            self for chaining
        """
        self._constants = dict(constants)
        return self

    def with_implicit_multiplication(self, enabled: bool = True) -> 'FormulaEngine':
        """
        Switch implicit multiplication on or off.

        Returns:
            self for chaining
        """
        self.implicit_multiplication = enabled
        return self

    def copy(self) -> 'FormulaEngine':
        """Create a copy of this engine."""
        return FormulaEngine(self.implicit_multiplication, self._constants)

    def parse(self, text: str) -> Expression:
        return parse(text, self.implicit_multiplication)

    def emit(self, expr: Expression) -> str:
        return emit(expr, self.implicit_multiplication)

    def simplify(self, expr: Union[str, Expression]) -> Union[str, Expression]:
        """
        Simplify a formula.

        Args:
            expr: LaTeX text or an Expression

        Returns:
            Text in, text out; Expression in, Expression out
        """
        if isinstance(expr, str):
            return self.emit(_simplify(self.parse(expr)))
        return _simplify(expr)

    def evaluate(self, expr: Union[str, Expression],
                 bindings: Optional[Mapping[str, float]] = None) -> float:
        """
        Evaluate a formula numerically.

        Args:
            expr: LaTeX text or an Expression
            bindings: Values for names; these win over the constants table

        Raises:
            UnboundVariableError: If a name has neither a binding nor a constant
            InvalidOperationError: If the formula is an equation
        """
        if isinstance(expr, str):
            expr = self.parse(expr)
        return _evaluate(expr, merge_bindings(self._constants, bindings))

    def __call__(self, expr: Union[str, Expression]) -> Union[str, Expression]:
        """Make engine callable: engine(expr) is shorthand for engine.simplify(expr)."""
        return self.simplify(expr)

    def __repr__(self) -> str:
        mode = "implicit" if self.implicit_multiplication else "explicit"
        return f"FormulaEngine({mode}, {len(self._constants)} constants)"


# ============================================================
# Boundary functions
# ============================================================

def parse_and_simplify(text: str, implicit_multiplication: bool = True) -> str:
    """
    Parse, simplify and re-emit a formula.

    Examples:
        parse_and_simplify("x*x") -> "x^{2}"
        parse_and_simplify("\\frac{1}{2}+\\frac{1}{2}") -> "1"
    """
    return emit(_simplify(parse(text, implicit_multiplication)), implicit_multiplication)


def parse_and_evaluate(text: str, bindings: Optional[Mapping[str, float]] = None,
                       constants: Optional[ConstantsType] = None,
                       implicit_multiplication: bool = True) -> float:
    """
    Parse a formula and evaluate it.

    Args:
        text: Formula text
        bindings: Values for names, merged over the constants table
        constants: Constants table; default PHYSICS_CONSTANTS
        implicit_multiplication: Parsing mode

    Examples:
        parse_and_evaluate("x^2", {"x": 3.0}) -> 9.0
        parse_and_evaluate("2c", constants={"c": 1.5}) -> 3.0
    """
    table = PHYSICS_CONSTANTS if constants is None else constants
    return _evaluate(parse(text, implicit_multiplication), merge_bindings(table, bindings))
