"""Token definitions for the provenance query language.

Defines the token vocabulary used by the query lexer.  The language is
small: a statement names a result, optionally a target graph, a verb
and a parenthesised argument list.  Everything the lexer does not
recognise is kept as ``TEXT`` so that opaque filter expressions can be
recovered verbatim from the source by offset.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Exhaustive enumeration of query token types."""

    # -----------------------------------------------------------------
    # Punctuation
    # -----------------------------------------------------------------
    ASSIGN = auto()     # =
    DOT = auto()        # .
    LPAREN = auto()     # (
    RPAREN = auto()     # )
    COMMA = auto()      # ,
    SEMICOLON = auto()  # ;

    # -----------------------------------------------------------------
    # Literals / names
    # -----------------------------------------------------------------
    IDENT = auto()
    NUMBER = auto()

    # Any run of characters the grammar gives no meaning to
    TEXT = auto()

    EOF = auto()


# Verbs that introduce a query form.
VERBS: frozenset[str] = frozenset({
    "getVertices",
    "getEdges",
    "getPaths",
    "getLineage",
    "getChildren",
    "getParents",
    "print",
})

# Direction words accepted by getLineage, mapped to their canonical spelling.
DIRECTION_ALIASES: dict[str, str] = {
    "ancestors": "ancestors",
    "anc": "ancestors",
    "a": "ancestors",
    "descendants": "descendants",
    "desc": "descendants",
    "d": "descendants",
    "both": "both",
    "b": "both",
}

PUNCTUATION: dict[str, TokenType] = {
    "=": TokenType.ASSIGN,
    ".": TokenType.DOT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
}


@dataclass(frozen=True, slots=True)
class Token:
    """A single scanned token with its source offset.

    Parameters
    ----------
    type:
        The ``TokenType`` variant for this token.
    value:
        The raw text as it appeared in the source.
    offset:
        0-based offset of the first character in the source line.
    """

    type: TokenType
    value: str
    offset: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, @{self.offset})"

    @property
    def end(self) -> int:
        """Offset one past the last character of the token."""
        return self.offset + len(self.value)

    @property
    def is_verb(self) -> bool:
        """Return True if this token is an identifier naming a query verb."""
        return self.type is TokenType.IDENT and self.value in VERBS
