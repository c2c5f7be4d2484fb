"""Query lexer: converts one input line into a flat list of tokens.

The lexer is a single-pass character scanner.  It never fails: any run
of characters that is not punctuation, a name or an integer is emitted
as a ``TEXT`` token.  Filter expressions in the store's native predicate
syntax are therefore tokenized harmlessly, and the parser recovers their
exact text from the token offsets rather than from the token values.

Names are runs of ``[A-Za-z0-9_]`` with at least one non-digit, so
``1g`` is a name; integers are runs of ASCII digits.
"""
from __future__ import annotations

import re
from typing import Final

from provql.grammar.tokens import PUNCTUATION, Token, TokenType

_WORD: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9_]")


class Lexer:
    """Single-pass query lexer.

    Parameters
    ----------
    source:
        One line of query text.
    """

    __slots__ = ("_source", "_pos", "_tokens")

    def __init__(self, source: str) -> None:
        self._source: str = source
        self._pos: int = 0
        self._tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Scan the whole line and return the token list, terminated by ``EOF``."""
        while self._pos < len(self._source):
            self._scan_one()
        self._tokens.append(Token(TokenType.EOF, "", len(self._source)))
        return self._tokens

    # ------------------------------------------------------------------
    # Internal scanner
    # ------------------------------------------------------------------

    def _current(self) -> str:
        return self._source[self._pos] if self._pos < len(self._source) else ""

    def _scan_one(self) -> None:
        ch = self._current()

        if ch.isspace():
            self._pos += 1
            return

        if ch in PUNCTUATION:
            self._tokens.append(Token(PUNCTUATION[ch], ch, self._pos))
            self._pos += 1
            return

        if _WORD.match(ch):
            self._scan_word()
            return

        self._scan_text()

    def _scan_word(self) -> None:
        start = self._pos
        while self._pos < len(self._source) and _WORD.match(self._current()):
            self._pos += 1
        word = self._source[start : self._pos]
        token_type = TokenType.NUMBER if word.isdigit() else TokenType.IDENT
        self._tokens.append(Token(token_type, word, start))

    def _scan_text(self) -> None:
        start = self._pos
        while self._pos < len(self._source):
            ch = self._current()
            if ch.isspace() or ch in PUNCTUATION or _WORD.match(ch):
                break
            self._pos += 1
        self._tokens.append(Token(TokenType.TEXT, self._source[start : self._pos], start))


def tokenize(source: str) -> list[Token]:
    """Tokenize one query line and return the complete token list.

    Example
    -------
    ::

        from provql.lexer import tokenize
        tokens = tokenize("g1 = getVertices(type:Process)")
    """
    return Lexer(source).tokenize()
