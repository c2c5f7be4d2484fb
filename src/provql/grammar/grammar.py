"""Formal grammar of the provenance query language.

The grammar is implemented by the hand-written recursive-descent parser
in ``provql.parser``; these constants are the reference documentation
for it and are shown by ``provql grammar``.

Grammar notation used here:
    ``::=``     production rule
    ``|``       alternation
    ``[ ]``     optional (zero or one)
    ``RAW``     the verbatim source text up to the closing ``)``
    ``NUMBER``  terminal: non-negative integer
    ``IDENT``   terminal: word chars [A-Za-z0-9_], not all digits
"""
from __future__ import annotations

GRAMMAR_STATEMENT = """
statement ::= [ IDENT '=' ] [ IDENT '.' ] query [ ';' ] EOF
"""

GRAMMAR_QUERY = """
query ::= 'getVertices' '(' RAW ')'
        | 'getEdges'    '(' RAW ')'
        | 'getPaths'    '(' NUMBER ',' NUMBER ',' NUMBER ')'
        | 'getLineage'  '(' origin ',' NUMBER ',' direction [ ',' RAW ] ')'
        | 'getChildren' '(' RAW ')'
        | 'getParents'  '(' RAW ')'
        | 'print'       '(' [ RAW ] ')'          (comma-separated annotation keys)

origin    ::= NUMBER | IDENT
direction ::= 'ancestors' | 'anc' | 'a'
            | 'descendants' | 'desc' | 'd'
            | 'both' | 'b'
"""

GRAMMAR_COMMANDS = """
command ::= 'exit'
          | 'list'
          | 'storage' IDENT
          | 'export' IDENT PATH
          | statement
"""

FULL_GRAMMAR = "\n".join([GRAMMAR_STATEMENT, GRAMMAR_QUERY, GRAMMAR_COMMANDS])
