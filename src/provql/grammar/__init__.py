"""Query grammar module.

Exports token definitions and formal grammar constants.
"""
from __future__ import annotations

from provql.grammar.grammar import (
    FULL_GRAMMAR,
    GRAMMAR_COMMANDS,
    GRAMMAR_QUERY,
    GRAMMAR_STATEMENT,
)
from provql.grammar.tokens import DIRECTION_ALIASES, PUNCTUATION, VERBS, Token, TokenType

__all__ = [
    # Token types
    "TokenType",
    "Token",
    "VERBS",
    "DIRECTION_ALIASES",
    "PUNCTUATION",
    # Grammar constants
    "FULL_GRAMMAR",
    "GRAMMAR_STATEMENT",
    "GRAMMAR_QUERY",
    "GRAMMAR_COMMANDS",
]
