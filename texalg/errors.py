"""
Error types for TEXALG.

TEXALG - Exact algebra over a LaTeX subset

Every failure the library can report derives from TexalgError, and also
from the closest built-in exception so that callers catching ValueError,
LookupError or TypeError keep working.

    TexalgError
        ParseError (ValueError)
            MalformedInputError
            UnsupportedConstructError
        UnboundVariableError (LookupError)
        InvalidOperationError (TypeError)
        FactorNotPresentError (ValueError)
"""

from typing import Optional


class TexalgError(Exception):
    """Base class for all TEXALG errors."""


class ParseError(TexalgError, ValueError):
    """
    Text could not be turned into an expression.

    Attributes:
        text: The fragment that was being parsed when the error occurred
    """

    def __init__(self, message: str, text: Optional[str] = None):
        super().__init__(message)
        self.text = text


class MalformedInputError(ParseError):
    """Brackets do not balance, or a fragment is empty."""


class UnsupportedConstructError(ParseError):
    """A recognized but unimplemented construct, or text left unconsumed."""


class UnboundVariableError(TexalgError, LookupError):
    """Numeric evaluation reached a name with no binding."""

    def __init__(self, name: str):
        super().__init__(f"No value bound for '{name}'")
        self.name = name

    def __str__(self) -> str:
        return self.args[0]


class InvalidOperationError(TexalgError, TypeError):
    """The operation is not defined for this kind of expression."""


class FactorNotPresentError(TexalgError, ValueError):
    """remove_factor() was asked to remove a factor the expression lacks."""
