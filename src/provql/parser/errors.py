"""Parse error type for the query parser.

Parse errors carry the character span of the offending region so the
dispatcher can point at it when reporting.
"""
from __future__ import annotations

from dataclasses import dataclass

from provql.ast.nodes import Span
from provql.grammar.tokens import Token


@dataclass(frozen=True)
class ParseError(Exception):
    """A recognised query form with malformed operands.

    Parameters
    ----------
    message:
        Human-readable description of the error.
    span:
        Location of the offending token or region in the input line.
    found:
        The token that was encountered, if available.
    """

    message: str
    span: Span
    found: Token | None = None

    def __str__(self) -> str:
        if self.found is not None and self.found.value:
            return f"{self.message} at column {self.span.col} (found {self.found.value!r})"
        return f"{self.message} at column {self.span.col}"

    # dataclass(frozen=True) doesn't call Exception.__init__ automatically
    def __post_init__(self) -> None:
        object.__setattr__(self, "args", (str(self),))
