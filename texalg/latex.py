"""
LaTeX parser and emitter for TEXALG.

TEXALG - Exact algebra over a LaTeX subset

Text is turned into an Expression in two stages. The text is first split
into an IR tree: every node has a name token ('+', '*', 'frac', 'x', '3',
...), an ordered list of child nodes and the bracket style it was written
in. The IR is then lowered to the expression model.

Supported notation:

    a + b - c       sums and differences
    a * b / c       products and quotients (\\cdot is the same as *)
    2x, xy, 2(a+b)  implicit multiplication (can be switched off)
    x^2, x^{n+1}    powers
    \\frac{a}{b}     quotient
    \\sqrt{x}        square root
    \\ln(x)  \\sin(x)  \\cos(x)
    \\vec{v}         vector variable
    \\pi  e          constants
    \\hbar, x_1      other names, with optional subscript
    a = b           equation

Emission goes the other way, choosing brackets by precedence so that the
text parses back to an equivalent tree.
"""

import logging
import re
from enum import Enum
from fractions import Fraction
from typing import List, Optional

from .errors import MalformedInputError, UnsupportedConstructError
from .expression import (
    Expression, Integer, Rational, Constant, Letter, Vector, MathConstant,
    Negative, Addition, Multiplication, Division, Power, Ln, Sin, Cos, Equals,
    literal,
)

logger = logging.getLogger(__name__)


# ============================================================
# Brackets
# ============================================================

class BracketType(Enum):
    """Bracket style an IR node was written in."""
    NONE = ("", "")
    CURLY = ("{", "}")
    SQUARE = ("[", "]")
    ROUND = ("(", ")")
    ANGLE = ("⟨", "⟩")

    def opening(self) -> str:
        return self.value[0]

    def closing(self) -> str:
        return self.value[1]

    @classmethod
    def from_opening(cls, char: str) -> 'BracketType':
        for style in cls:
            if style is not cls.NONE and style.opening() == char:
                return style
        raise ValueError(f"Not an opening bracket: {char!r}")


OPENING = "{[(⟨"
CLOSING = "}])⟩"

# Characters after which a + or - is a sign, not an operator
_OPERATOR_CHARS = "+-*/^=_"

# Commands taking bracketed arguments, with their argument count
_FUNCTIONS = {
    'frac': 2,
    'sqrt': 1,
    'vec': 1,
    'ln': 1,
    'sin': 1,
    'cos': 1,
}

_DIGITS = "0123456789"

_CDOT = re.compile(r'\\cdot(?![A-Za-z])')
_SIZING = re.compile(r'\\(?:left|right)(?![A-Za-z])')
_COMMAND_GAP = re.compile(r'(\\[A-Za-z]+)\s+(?=[^\s{\[(⟨^_])')
_WHITESPACE = re.compile(r'\s+')
_UNSUPPORTED = re.compile(r'\\(int|iint|iiint|oint|sum|prod|lim)(?![A-Za-z])')

_COMMAND = re.compile(r'\\([A-Za-z]+)')
_SUBSCRIPT = re.compile(r'_(?:[A-Za-z0-9]|\{[A-Za-z0-9]+\})')
_INTEGER = re.compile(r'[0-9]+')
_DECIMAL = re.compile(r'[0-9]+\.[0-9]*|\.[0-9]+')
_NAME = re.compile(r'[A-Za-z]+(?:_(?:[A-Za-z0-9]|\{[A-Za-z0-9]+\}))?')
_TRAILING_COMMAND = re.compile(r'\\[A-Za-z]+$')


# ============================================================
# Text utilities
# ============================================================

def preprocess(text: str) -> str:
    """
    Normalize raw input before splitting.

    Examples:
        "2 \\cdot x" -> "2*x"
        "\\left( a \\right)" -> "(a)"
        "\\pi r^2" -> "{\\pi}r^2"
    """
    text = _CDOT.sub('*', text)
    text = _SIZING.sub('', text)
    text = _COMMAND_GAP.sub(r'{\1}', text)
    return _WHITESPACE.sub('', text)


def check_balance(text: str) -> None:
    """
    Raise MalformedInputError unless brackets balance.

    A closing bracket with nothing open before it is also rejected.
    """
    depth = 0
    for c in text:
        if c in OPENING:
            depth += 1
        elif c in CLOSING:
            depth -= 1
            if depth < 0:
                raise MalformedInputError(f"Unmatched closing bracket in {text!r}", text)
    if depth != 0:
        raise MalformedInputError(f"Unbalanced brackets in {text!r}", text)


def _matching_close(text: str, start: int) -> int:
    """Index of the bracket closing the one opened at start."""
    depth = 0
    for i in range(start, len(text)):
        if text[i] in OPENING:
            depth += 1
        elif text[i] in CLOSING:
            depth -= 1
            if depth == 0:
                return i
    raise MalformedInputError(f"Unbalanced brackets in {text!r}", text)


def _is_group(text: str) -> bool:
    return bool(text) and text[0] in OPENING and _matching_close(text, 0) == len(text) - 1


def _scan_operators(fragment: str):
    """
    Find top-level operator positions.

    Returns:
        (equals, additive, multiplicative, powers) lists of indices
    """
    equals, additive, multiplicative, powers = [], [], [], []
    depth = 0
    for i, c in enumerate(fragment):
        if c in OPENING:
            depth += 1
        elif c in CLOSING:
            depth -= 1
        elif depth:
            continue
        elif c == '=':
            equals.append(i)
        elif c in '+-':
            if i > 0 and fragment[i - 1] not in _OPERATOR_CHARS:
                additive.append(i)
        elif c in '*/':
            multiplicative.append(i)
        elif c == '^':
            powers.append(i)
    return equals, additive, multiplicative, powers


# ============================================================
# Operand splitting (implicit multiplication)
# ============================================================

def _skip_command(text: str, i: int) -> int:
    match = _COMMAND.match(text, i)
    if not match:
        return -1
    i = match.end()
    for _ in range(_FUNCTIONS.get(match.group(1), 0)):
        if i < len(text) and text[i] in OPENING:
            i = _matching_close(text, i) + 1
    return i


def _skip_atom(text: str, i: int, exponent: bool) -> int:
    """Skip a subscript or exponent argument, returning -1 if there is none."""
    if exponent:
        while i < len(text) and text[i] in '+-':
            i += 1
    if i >= len(text):
        return -1
    c = text[i]
    if c in OPENING:
        return _matching_close(text, i) + 1
    if c == '\\':
        return _skip_command(text, i)
    if exponent and c in _DIGITS:
        while i < len(text) and text[i] in _DIGITS:
            i += 1
        return i
    if c.isalpha() or c in _DIGITS:
        return i + 1
    return -1


def _split_operands(fragment: str) -> Optional[List[str]]:
    """
    Cut a fragment into adjacent operands.

    Each operand is a number, a single letter, a command with its
    arguments or a bracket group, together with any trailing subscript and
    exponent. Returns None when the fragment contains something that is
    not an operand.

    Examples:
        "2xy" -> ["2", "x", "y"]
        "\\pi r^2" -> ["\\pi", "r^2"]
        "(a+b)(a-b)" -> ["(a+b)", "(a-b)"]
    """
    operands = []
    i = 0
    while i < len(fragment):
        start = i
        c = fragment[i]
        if c in _DIGITS or c == '.':
            while i < len(fragment) and (fragment[i] in _DIGITS or fragment[i] == '.'):
                i += 1
        elif c.isalpha():
            i += 1
        elif c == '\\':
            i = _skip_command(fragment, i)
        elif c in OPENING:
            i = _matching_close(fragment, i) + 1
        else:
            return None
        while 0 <= i < len(fragment) and fragment[i] in '_^':
            i = _skip_atom(fragment, i + 1, exponent=fragment[i] == '^')
        if i < 0:
            return None
        operands.append(fragment[start:i])
    return operands


# ============================================================
# Intermediate representation
# ============================================================

class IR:
    """
    Intermediate parse tree node.

    Attributes:
        name: Operator ('+', '-', '*', '/', '^', '='), command name
              ('frac', 'sqrt', 'vec', 'ln', 'sin', 'cos') or leaf token
        parameters: Child nodes; empty for a leaf
        brackets: Bracket style the node was written in
    """

    __slots__ = ('name', 'parameters', 'brackets')

    def __init__(self, name: str, parameters: Optional[List['IR']] = None,
                 brackets: BracketType = BracketType.NONE):
        self.name = name
        self.parameters = list(parameters) if parameters else []
        self.brackets = brackets

    def __eq__(self, other):
        if not isinstance(other, IR):
            return NotImplemented
        return (self.name == other.name and self.parameters == other.parameters
                and self.brackets == other.brackets)

    def __repr__(self) -> str:
        parts = [repr(self.name)]
        if self.parameters:
            parts.append(repr(self.parameters))
        if self.brackets is not BracketType.NONE:
            parts.append(f"BracketType.{self.brackets.name}")
        return f"IR({', '.join(parts)})"

    def is_negation(self) -> bool:
        return self.name == '-' and len(self.parameters) == 1 and self.brackets is BracketType.NONE

    # --------------------------------------------------------
    # Text -> IR
    # --------------------------------------------------------

    @classmethod
    def latex_to_ir(cls, text: str, implicit: bool = True,
                    brackets: BracketType = BracketType.NONE) -> 'IR':
        """
        Parse LaTeX text into an IR tree.

        Args:
            text: Raw input
            implicit: Whether adjacent operands denote multiplication
            brackets: Bracket style to record on the root node

        Raises:
            MalformedInputError: Unbalanced brackets or an empty fragment
            UnsupportedConstructError: Unsupported command or stray text
        """
        text = preprocess(text)
        if not text:
            raise MalformedInputError("Empty input", text)
        check_balance(text)
        match = _UNSUPPORTED.search(text)
        if match:
            raise UnsupportedConstructError(f"\\{match.group(1)} is not supported", text)
        node = _build(text, implicit)
        node.brackets = brackets
        return node

    # --------------------------------------------------------
    # IR -> Expression
    # --------------------------------------------------------

    def to_expression(self) -> Expression:
        """Lower this IR tree to an Expression."""
        if not self.parameters:
            return _leaf_expression(self.name)

        name = self.name
        if name == 'vec':
            target = self.parameters[0]
            if target.parameters or not _NAME.fullmatch(target.name):
                raise UnsupportedConstructError("\\vec needs a plain name", target.name)
            return Vector(target.name)

        children = [p.to_expression() for p in self.parameters]
        if name == '+':
            return Addition(children)
        if name == '-':
            if len(children) == 1:
                return Negative(children[0])
            return Addition([children[0]] + [Negative(c) for c in children[1:]])
        if name == '*':
            return Multiplication(children)
        if name == '=':
            return Equals(children[0], children[1])
        if name in ('/', '^'):
            variant = Division if name == '/' else Power
            result = variant(children[0], children[1])
            if len(children) > 2:
                return Multiplication([result] + children[2:])
            return result
        if name == 'frac':
            return Division(children[0], children[1])
        if name == 'sqrt':
            return Power(children[0], Rational(1, 2))
        if name == 'ln':
            return Ln(children[0])
        if name == 'sin':
            return Sin(children[0])
        if name == 'cos':
            return Cos(children[0])
        raise UnsupportedConstructError(f"Unknown IR node {name!r}", name)

    # --------------------------------------------------------
    # Expression -> IR -> text
    # --------------------------------------------------------

    @classmethod
    def from_expression(cls, expr: Expression) -> 'IR':
        """Build an IR tree for emitting expr, choosing brackets by precedence."""
        if isinstance(expr, Integer):
            if expr.value < 0:
                return cls('-', [cls(str(-expr.value))])
            return cls(str(expr.value))

        if isinstance(expr, Rational):
            fraction = cls('frac', [cls(str(abs(expr.numerator)), brackets=BracketType.CURLY),
                                    cls(str(abs(expr.denominator)), brackets=BracketType.CURLY)])
            if (expr.numerator < 0) != (expr.denominator < 0):
                return cls('-', [fraction])
            return fraction

        if isinstance(expr, Constant):
            return cls('\\pi' if expr.constant is MathConstant.PI else 'e')

        if isinstance(expr, Letter):
            return cls(expr.name)

        if isinstance(expr, Vector):
            return cls('vec', [cls(expr.name, brackets=BracketType.CURLY)])

        if isinstance(expr, Negative):
            return cls('-', [_operand(expr.operand, 2)])

        if isinstance(expr, Addition):
            if not expr.terms:
                return cls('0')
            if len(expr.terms) == 1:
                return cls.from_expression(expr.terms[0])
            return cls('+', [_operand(term, 1) for term in expr.terms])

        if isinstance(expr, Multiplication):
            if not expr.factors:
                return cls('1')
            if len(expr.factors) == 1:
                return cls.from_expression(expr.factors[0])
            return cls('*', [_operand(factor, 2) for factor in expr.factors])

        if isinstance(expr, Division):
            return cls('frac', [_wrapped(expr.numerator, BracketType.CURLY),
                                _wrapped(expr.denominator, BracketType.CURLY)])

        if isinstance(expr, Power):
            exponent = expr.exponent
            if isinstance(exponent, Rational) and (exponent.numerator, exponent.denominator) == (1, 2):
                return cls('sqrt', [_wrapped(expr.base, BracketType.CURLY)])
            base = expr.base
            if isinstance(base, (Letter, Constant, Vector)) or (isinstance(base, Integer) and base.value >= 0):
                base_ir = cls.from_expression(base)
            else:
                base_ir = _wrapped(base, BracketType.ROUND)
            return cls('^', [base_ir, _wrapped(exponent, BracketType.CURLY)])

        if isinstance(expr, (Ln, Sin, Cos)):
            return cls(type(expr).__name__.lower(), [_wrapped(expr.operand, BracketType.ROUND)])

        if isinstance(expr, Equals):
            return cls('=', [_operand(expr.lhs, 0), _operand(expr.rhs, 0)])

        raise TypeError(f"Cannot emit {expr!r}")

    def to_latex(self, implicit: bool = True) -> str:
        """Render this IR tree as LaTeX text."""
        return self.brackets.opening() + self._body(implicit) + self.brackets.closing()

    def _body(self, implicit: bool) -> str:
        if not self.parameters:
            return self.name

        parts = [p.to_latex(implicit) for p in self.parameters]
        name = self.name
        if name == '+':
            text = parts[0]
            for param, part in zip(self.parameters[1:], parts[1:]):
                text += part if param.is_negation() else '+' + part
            return text
        if name == '-':
            if len(parts) == 1:
                return '-' + parts[0]
            return '-'.join(parts)
        if name == '*':
            return _join_product(parts, implicit)
        if name in ('/', '^', '='):
            return name.join(parts)
        return '\\' + name + ''.join(parts)


# ============================================================
# Fragment parsing
# ============================================================

def _build(fragment: str, implicit: bool) -> IR:
    """Parse a preprocessed fragment."""
    if not fragment:
        raise MalformedInputError("Empty expression", fragment)

    equals, additive, multiplicative, powers = _scan_operators(fragment)

    if equals:
        pos = equals[0]
        return IR('=', [_build(fragment[:pos], implicit), _build(fragment[pos + 1:], implicit)])

    for positions, chains in ((additive, '+-'), (multiplicative, '*')):
        if positions:
            pos = positions[-1]
            op = fragment[pos]
            left = _build(fragment[:pos], implicit)
            right = _build(fragment[pos + 1:], implicit)
            if (op in chains and left.name == op and len(left.parameters) > 1
                    and left.brackets is BracketType.NONE):
                return IR(op, left.parameters + [right])
            return IR(op, [left, right])

    if fragment[0] == '-':
        return IR('-', [_build(fragment[1:], implicit)])
    if fragment[0] == '+':
        return _build(fragment[1:], implicit)

    if implicit:
        operands = _split_operands(fragment)
        if operands is not None and len(operands) > 1:
            return IR('*', [_build(operand, implicit) for operand in operands])

    if powers:
        return IR('^', [_build(segment, implicit)
                        for segment in _power_segments(fragment, powers, implicit)])

    return _leaf(fragment, implicit)


def _power_segments(fragment: str, powers: List[int], implicit: bool) -> List[str]:
    """
    Cut a fragment at the ^ positions that start a new power.

    A later ^ only starts a new power if the text since the previous ^ is a
    bracket group (or, with implicit multiplication, a run of letters).
    Otherwise it belongs to the exponent: x^2^3 is x^(2^3).
    """
    cuts = [powers[0]]
    for previous, pos in zip(powers, powers[1:]):
        between = fragment[previous + 1:pos]
        if _is_group(between) or (implicit and between.isalpha()):
            cuts.append(pos)

    segments = []
    start = 0
    for cut in cuts:
        segments.append(fragment[start:cut])
        start = cut + 1
    segments.append(fragment[start:])
    return segments


def _group(text: str, implicit: bool) -> IR:
    node = _build(text[1:-1], implicit)
    node.brackets = BracketType.from_opening(text[0])
    return node


def _command(fragment: str, implicit: bool) -> IR:
    match = _COMMAND.match(fragment)
    if not match:
        raise UnsupportedConstructError(f"Expected a command name: {fragment!r}", fragment)
    name = match.group(1)
    i = match.end()

    if name in _FUNCTIONS:
        if name == 'sqrt' and fragment.startswith('[', i):
            raise UnsupportedConstructError("\\sqrt with an index is not supported", fragment)
        arity = _FUNCTIONS[name]
        parameters = []
        for _ in range(arity):
            if i >= len(fragment) or fragment[i] not in OPENING:
                raise UnsupportedConstructError(
                    f"\\{name} needs {arity} bracketed argument{'s' if arity > 1 else ''}", fragment)
            end = _matching_close(fragment, i)
            parameters.append(_group(fragment[i:end + 1], implicit))
            i = end + 1
        node = IR(name, parameters)
        if i < len(fragment):
            return IR('*', [node, _build(fragment[i:], implicit)])
        return node

    subscript = _SUBSCRIPT.match(fragment, i)
    if subscript:
        i = subscript.end()
    if i != len(fragment):
        raise UnsupportedConstructError(
            f"Unexpected text after \\{name}: {fragment[i:]!r}", fragment)
    return IR(fragment)


def _leaf(fragment: str, implicit: bool) -> IR:
    if _is_group(fragment):
        return _group(fragment, implicit)
    if fragment[0] == '\\':
        return _command(fragment, implicit)
    if (_INTEGER.fullmatch(fragment) or _DECIMAL.fullmatch(fragment)
            or _NAME.fullmatch(fragment)):
        return IR(fragment)
    raise UnsupportedConstructError(f"Cannot parse {fragment!r}", fragment)


def _leaf_expression(token: str) -> Expression:
    if _INTEGER.fullmatch(token):
        return Integer(int(token))
    if _DECIMAL.fullmatch(token):
        return literal(Fraction(token))
    if token == '\\pi':
        return Constant(MathConstant.PI)
    if token == 'e':
        return Constant(MathConstant.E)
    return Letter(token)


# ============================================================
# Emission helpers
# ============================================================

def _precedence(expr: Expression) -> int:
    if isinstance(expr, Equals):
        return 0
    if isinstance(expr, Addition):
        return 1
    if isinstance(expr, Negative):
        return 2
    if isinstance(expr, Integer):
        return 2 if expr.value < 0 else 5
    if isinstance(expr, Rational):
        return 2 if (expr.numerator < 0) != (expr.denominator < 0) else 5
    if isinstance(expr, Multiplication):
        return 3
    if isinstance(expr, Power):
        return 4
    return 5


def _wrapped(expr: Expression, brackets: BracketType) -> IR:
    node = IR.from_expression(expr)
    node.brackets = brackets
    return node


def _operand(expr: Expression, at_most: int) -> IR:
    """IR for an operand, in round brackets if its precedence is at most at_most."""
    if _precedence(expr) <= at_most:
        return _wrapped(expr, BracketType.ROUND)
    return IR.from_expression(expr)


def _join_product(parts: List[str], implicit: bool) -> str:
    if not implicit:
        return '*'.join(parts)
    text = parts[0]
    for part in parts[1:]:
        if not (part[0].isalpha() or part[0] == '\\' or part[0] in OPENING):
            text += ' \\cdot ' + part
        elif part[0].isalpha() and _TRAILING_COMMAND.search(text):
            # "\pi r" is read back as {\pi}r, "\pir" would be one name
            text += ' ' + part
        else:
            text += part
    return text


# ============================================================
# Public API
# ============================================================

def parse(text: str, implicit_multiplication: bool = True) -> Expression:
    """
    Parse LaTeX text into an Expression.

    Args:
        text: Formula text
        implicit_multiplication: Whether adjacent operands (2x, ab) multiply

    Returns:
        The expression tree (not simplified)

    Raises:
        MalformedInputError: Unbalanced brackets or an empty fragment
        UnsupportedConstructError: Unsupported command or stray text

    Examples:
        parse("x^2") -> Power(Letter('x'), Integer(2))
        parse("\\frac{1}{2}") -> Division(Integer(1), Integer(2))
    """
    expr = IR.latex_to_ir(text, implicit_multiplication).to_expression()
    logger.debug("parsed %r as %r", text, expr)
    return expr


def emit(expr: Expression, implicit_multiplication: bool = True) -> str:
    """
    Render an Expression as LaTeX text.

    Examples:
        emit(Power(Letter('x'), Integer(2))) -> "x^{2}"
        emit(Addition([Letter('a'), Negative(Letter('b'))])) -> "a-b"
    """
    return IR.from_expression(expr).to_latex(implicit_multiplication)
