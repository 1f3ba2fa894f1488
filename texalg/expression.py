"""
Expression model for TEXALG.

TEXALG - Exact algebra over a LaTeX subset

An expression is a tree of immutable nodes. Leaves are Variables:

    Integer(3)               - integer literal
    Rational(1, 2)           - rational literal (not necessarily reduced)
    Constant(MathConstant.PI)
    Letter("x")              - scalar variable
    Vector("v")              - vector variable

Composite nodes own their children:

    Negative(x)              Addition([a, b, ...])
    Multiplication([a, ...]) Division(numerator, denominator)
    Power(base, exponent)    Ln(x)  Sin(x)  Cos(x)
    Equals(lhs, rhs)

Equality, ordering and hashing all come from sort_key(), a nested tuple of
(variant tag, payload). The ordering has no numeric meaning; it only makes
term grouping deterministic.
"""

from enum import Enum
from fractions import Fraction
from functools import total_ordering
from typing import Iterable, Optional, Set, Tuple, Union

NumberType = Union[int, Fraction]


class MathConstant(Enum):
    """Named mathematical constants."""
    PI = 0
    E = 1


# Variant tags, in sort order
_VARIABLE = 0
_NEGATIVE = 1
_ADDITION = 2
_MULTIPLICATION = 3
_DIVISION = 4
_POWER = 5
_LN = 6
_EQUALS = 7
_SIN = 8
_COS = 9


@total_ordering
class Expression:
    """Base class of every expression node."""

    __slots__ = ('_key',)

    def sort_key(self) -> Tuple:
        """Canonical (tag, payload) key. Computed once per node."""
        try:
            return self._key
        except AttributeError:
            self._key = self._make_key()
            return self._key

    def _make_key(self) -> Tuple:
        raise NotImplementedError

    @property
    def children(self) -> Tuple['Expression', ...]:
        """Direct sub-expressions, in order."""
        return ()

    def size(self) -> int:
        """Number of nodes in the tree."""
        return 1 + sum(child.size() for child in self.children)

    def letters(self) -> Set[str]:
        """Names of every Letter and Vector in the tree."""
        names: Set[str] = set()
        for child in self.children:
            names |= child.letters()
        return names

    def __eq__(self, other):
        if not isinstance(other, Expression):
            return NotImplemented
        return self.sort_key() == other.sort_key()

    def __lt__(self, other):
        if not isinstance(other, Expression):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __hash__(self):
        return hash(self.sort_key())

    def __str__(self) -> str:
        from .latex import emit
        return emit(self)


# ============================================================
# Variables (leaves)
# ============================================================

class Variable(Expression):
    """Base class of leaf expressions."""

    __slots__ = ()


class Integer(Variable):
    __slots__ = ('value',)

    def __init__(self, value: int):
        self.value = int(value)

    def _make_key(self) -> Tuple:
        return (_VARIABLE, 0, self.value)

    def __repr__(self) -> str:
        return f"Integer({self.value})"


class Rational(Variable):
    __slots__ = ('numerator', 'denominator')

    def __init__(self, numerator: int, denominator: int):
        self.numerator = int(numerator)
        self.denominator = int(denominator)

    def _make_key(self) -> Tuple:
        return (_VARIABLE, 1, self.numerator, self.denominator)

    def __repr__(self) -> str:
        return f"Rational({self.numerator}, {self.denominator})"


class Constant(Variable):
    __slots__ = ('constant',)

    def __init__(self, constant: MathConstant):
        self.constant = constant

    def _make_key(self) -> Tuple:
        return (_VARIABLE, 2, self.constant.value)

    def __repr__(self) -> str:
        return f"Constant({self.constant.name})"


class Letter(Variable):
    __slots__ = ('name',)

    def __init__(self, name: str):
        self.name = name

    def _make_key(self) -> Tuple:
        return (_VARIABLE, 3, self.name)

    def letters(self) -> Set[str]:
        return {self.name}

    def __repr__(self) -> str:
        return f"Letter({self.name!r})"


class Vector(Variable):
    __slots__ = ('name',)

    def __init__(self, name: str):
        self.name = name

    def _make_key(self) -> Tuple:
        return (_VARIABLE, 4, self.name)

    def letters(self) -> Set[str]:
        return {self.name}

    def __repr__(self) -> str:
        return f"Vector({self.name!r})"


# ============================================================
# Composite nodes
# ============================================================

class _Unary(Expression):
    """A node with exactly one operand."""

    __slots__ = ('operand',)
    _TAG = -1

    def __init__(self, operand: Expression):
        self.operand = operand

    def _make_key(self) -> Tuple:
        return (self._TAG, self.operand.sort_key())

    @property
    def children(self) -> Tuple[Expression, ...]:
        return (self.operand,)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.operand!r})"


class _Nary(Expression):
    """A node with an ordered list of operands."""

    __slots__ = ('terms',)
    _TAG = -1

    def __init__(self, terms: Iterable[Expression]):
        self.terms = tuple(terms)

    def _make_key(self) -> Tuple:
        return (self._TAG, tuple(term.sort_key() for term in self.terms))

    @property
    def children(self) -> Tuple[Expression, ...]:
        return self.terms

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self.terms)!r})"


class _Binary(Expression):
    """A node with an ordered pair of operands."""

    __slots__ = ('first', 'second')
    _TAG = -1

    def __init__(self, first: Expression, second: Expression):
        self.first = first
        self.second = second

    def _make_key(self) -> Tuple:
        return (self._TAG, (self.first.sort_key(), self.second.sort_key()))

    @property
    def children(self) -> Tuple[Expression, ...]:
        return (self.first, self.second)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.first!r}, {self.second!r})"


class Negative(_Unary):
    __slots__ = ()
    _TAG = _NEGATIVE


class Addition(_Nary):
    __slots__ = ()
    _TAG = _ADDITION


class Multiplication(_Nary):
    __slots__ = ()
    _TAG = _MULTIPLICATION

    @property
    def factors(self) -> Tuple[Expression, ...]:
        return self.terms


class Division(_Binary):
    __slots__ = ()
    _TAG = _DIVISION

    @property
    def numerator(self) -> Expression:
        return self.first

    @property
    def denominator(self) -> Expression:
        return self.second


class Power(_Binary):
    __slots__ = ()
    _TAG = _POWER

    @property
    def base(self) -> Expression:
        return self.first

    @property
    def exponent(self) -> Expression:
        return self.second


class Ln(_Unary):
    __slots__ = ()
    _TAG = _LN


class Equals(_Binary):
    __slots__ = ()
    _TAG = _EQUALS

    @property
    def lhs(self) -> Expression:
        return self.first

    @property
    def rhs(self) -> Expression:
        return self.second


class Sin(_Unary):
    __slots__ = ()
    _TAG = _SIN


class Cos(_Unary):
    __slots__ = ()
    _TAG = _COS


# ============================================================
# Literal helpers
# ============================================================

def literal(value: NumberType) -> Variable:
    """
    Build the canonical literal for a number.

    Integers (and fractions with denominator 1) become Integer, everything
    else a reduced Rational with a positive denominator.

    Examples:
        literal(3) -> Integer(3)
        literal(Fraction(2, 4)) -> Rational(1, 2)
    """
    value = Fraction(value)
    if value.denominator == 1:
        return Integer(value.numerator)
    return Rational(value.numerator, value.denominator)


def literal_value(expr: Expression) -> Optional[Fraction]:
    """Value of an Integer or Rational literal, None for anything else."""
    if isinstance(expr, Integer):
        return Fraction(expr.value)
    if isinstance(expr, Rational):
        if expr.denominator == 0:
            return None
        return Fraction(expr.numerator, expr.denominator)
    return None


def is_literal(expr: Expression) -> bool:
    """Check if an expression is an Integer or Rational literal."""
    return isinstance(expr, (Integer, Rational))


ZERO = Integer(0)
ONE = Integer(1)
MINUS_ONE = Integer(-1)
