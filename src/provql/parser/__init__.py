"""Query parser module.

Exports the ``Parser`` class, the ``parse_statement`` convenience
function, and the parse error type.
"""
from __future__ import annotations

from provql.parser.errors import ParseError
from provql.parser.parser import Parser, parse_statement

__all__ = [
    "Parser",
    "parse_statement",
    "ParseError",
]
