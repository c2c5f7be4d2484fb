"""Query Recursive-Descent Parser.

Converts the token list of one input line into a ``Statement``.

A line is *recognised* once the parser reaches a query verb followed by
``(``; before that point anything unexpected means the line is not a
query at all and ``parse`` returns ``None``.  After that point every
problem is a ``ParseError``: the user clearly meant one of the query
forms and should be told what is wrong with it.

Argument lists are delimited by the verb's ``(`` and the *last* ``)`` on
the line (optionally followed by ``;``), so filter expressions may
themselves contain parentheses.  Opaque arguments are sliced out of the
source text by token offset.
"""
from __future__ import annotations

from provql.ast.nodes import (
    Direction,
    GetChildren,
    GetEdges,
    GetLineage,
    GetParents,
    GetPaths,
    GetVertices,
    PrintGraph,
    Query,
    Span,
    Statement,
)
from provql.grammar.tokens import DIRECTION_ALIASES, Token, TokenType
from provql.lexer.lexer import tokenize
from provql.parser.errors import ParseError


class Parser:
    """Recursive descent parser producing a ``Statement`` from one line.

    Parameters
    ----------
    source:
        The input line the tokens were scanned from.
    tokens:
        The token list produced by the lexer, ending with ``EOF``.
    """

    def __init__(self, source: str, tokens: list[Token]) -> None:
        self._source = source
        self._tokens = tokens
        self._pos = 0

    # ------------------------------------------------------------------
    # Navigation helpers
    # ------------------------------------------------------------------

    def _current(self) -> Token:
        return self._tokens[self._pos]

    def _peek(self, offset: int = 1) -> Token:
        idx = self._pos + offset
        if idx < len(self._tokens):
            return self._tokens[idx]
        return self._tokens[-1]

    def _advance(self) -> Token:
        tok = self._current()
        if tok.type is not TokenType.EOF:
            self._pos += 1
        return tok

    def _error(self, message: str, tok: Token | None = None) -> ParseError:
        if tok is None:
            return ParseError(message=message, span=Span(len(self._source), len(self._source)))
        return ParseError(message=message, span=Span(tok.offset, tok.end), found=tok)

    # ------------------------------------------------------------------
    # Top-level parse
    # ------------------------------------------------------------------

    def parse(self) -> Statement | None:
        """Parse the line; return ``None`` if it is not a query.

        Raises
        ------
        ParseError
            If the line names a query verb but its operands are malformed.
        """
        result: str | None = None
        target: str | None = None
        expression_start = 0

        if self._current().type is TokenType.IDENT and self._peek().type is TokenType.ASSIGN:
            result = self._advance().value
            expression_start = self._advance().end

        if self._current().type is TokenType.IDENT and self._peek().type is TokenType.DOT:
            target = self._advance().value
            self._advance()

        if not (self._current().is_verb and self._peek().type is TokenType.LPAREN):
            return None

        verb = self._advance()
        lparen = self._advance()
        close_index = self._closing_paren_index(verb)
        args = self._tokens[self._pos : close_index]
        rparen = self._tokens[close_index]
        raw = self._source[lparen.end : rparen.offset]
        span = Span(verb.offset, rparen.end)

        query = self._parse_query(verb, args, raw, span)
        self._check_placement(verb, query, result, target)

        return Statement(
            query=query,
            source=self._source,
            expression=self._source[expression_start:].strip(),
            result=result,
            target=target,
        )

    def _closing_paren_index(self, verb: Token) -> int:
        """Return the index of the ``)`` that ends the argument list."""
        end = len(self._tokens) - 1  # EOF
        if end > 0 and self._tokens[end - 1].type is TokenType.SEMICOLON:
            end -= 1
        if end > self._pos and self._tokens[end - 1].type is TokenType.RPAREN:
            return end - 1
        found = self._tokens[end - 1] if end > self._pos else None
        raise self._error(f"Expected ')' to close {verb.value}(...)", found)

    def _check_placement(
        self, verb: Token, query: Query, result: str | None, target: str | None
    ) -> None:
        if isinstance(query, PrintGraph):
            if result is not None:
                raise self._error("print(...) cannot be assigned to a result", verb)
            if target is None:
                raise self._error("print(...) needs a graph: use <graph>.print(...)", verb)
        if isinstance(query, (GetChildren, GetParents)):
            if target is None:
                raise self._error(f"{verb.value}(...) needs a graph: use <graph>.{verb.value}(...)", verb)
            if result is None:
                raise self._error(f"{verb.value}(...) must be assigned to a result", verb)

    # ------------------------------------------------------------------
    # Query forms
    # ------------------------------------------------------------------

    def _parse_query(self, verb: Token, args: list[Token], raw: str, span: Span) -> Query:
        name = verb.value
        if name == "getVertices":
            return GetVertices(expression=self._expression(verb, raw), span=span)
        if name == "getEdges":
            return GetEdges(expression=self._expression(verb, raw), span=span)
        if name == "getChildren":
            return GetChildren(expression=self._expression(verb, raw), span=span)
        if name == "getParents":
            return GetParents(expression=self._expression(verb, raw), span=span)
        if name == "getPaths":
            return self._parse_paths(verb, args, span)
        if name == "getLineage":
            return self._parse_lineage(verb, args, span)
        return self._parse_print(raw, span)

    def _expression(self, verb: Token, raw: str) -> str:
        expression = raw.strip()
        if not expression:
            raise self._error(f"{verb.value}(...) requires an expression", verb)
        return expression

    def _parse_paths(self, verb: Token, args: list[Token], span: Span) -> GetPaths:
        """Parse: ``NUMBER ',' NUMBER ',' NUMBER``"""
        groups = _split_on_commas(args)
        if len(groups) != 3:
            raise self._error(
                "getPaths(...) expects three arguments: source id, destination id, maximum length",
                verb,
            )
        source, destination, max_length = (self._integer(g, verb) for g in groups)
        return GetPaths(source=source, destination=destination, max_length=max_length, span=span)

    def _parse_lineage(self, verb: Token, args: list[Token], span: Span) -> GetLineage:
        """Parse: ``origin ',' NUMBER ',' direction [ ',' RAW ]``"""
        groups = _split_on_commas(args, limit=3)
        if len(groups) < 3:
            raise self._error(
                "getLineage(...) expects at least three arguments: origin, depth, direction",
                verb,
            )

        origin_group = groups[0]
        if len(origin_group) != 1 or origin_group[0].type not in (TokenType.NUMBER, TokenType.IDENT):
            raise self._error(
                "Expected a vertex id or graph name as lineage origin",
                origin_group[0] if origin_group else verb,
            )
        origin_tok = origin_group[0]
        origin: int | str = (
            int(origin_tok.value) if origin_tok.type is TokenType.NUMBER else origin_tok.value
        )

        depth = self._integer(groups[1], verb)
        direction = self._direction(groups[2], verb)

        terminating: str | None = None
        if len(groups) == 4:
            rest = groups[3]
            if not rest:
                raise self._error("Expected a terminating expression after ','", verb)
            # groups[3] starts right after the third comma
            start = rest[0].offset
            end = args[-1].end
            terminating = self._source[start:end].strip()

        return GetLineage(
            origin=origin,
            depth=depth,
            direction=direction,
            terminating_expression=terminating,
            span=span,
        )

    def _parse_print(self, raw: str, span: Span) -> PrintGraph:
        keys = [key.strip() for key in raw.split(",")]
        # Unique, in the order given
        annotations = tuple(dict.fromkeys(key for key in keys if key))
        return PrintGraph(annotations=annotations, span=span)

    # ------------------------------------------------------------------
    # Operand helpers
    # ------------------------------------------------------------------

    def _integer(self, group: list[Token], verb: Token) -> int:
        if len(group) == 1 and group[0].type is TokenType.NUMBER:
            return int(group[0].value)
        if not group:
            raise self._error(f"Missing integer argument in {verb.value}(...)", verb)
        bad = group[0]
        text = self._source[bad.offset : group[-1].end]
        raise ParseError(
            message=f"Expected a non-negative integer, found {text!r}",
            span=Span(bad.offset, group[-1].end),
        )

    def _direction(self, group: list[Token], verb: Token) -> Direction:
        if len(group) == 1 and group[0].value.lower() in DIRECTION_ALIASES:
            return Direction(DIRECTION_ALIASES[group[0].value.lower()])
        raise self._error(
            "Expected a direction (ancestors, descendants or both)",
            group[0] if group else verb,
        )


def _split_on_commas(tokens: list[Token], limit: int | None = None) -> list[list[Token]]:
    """Split ``tokens`` into comma-separated groups.

    With ``limit`` set, at most ``limit`` commas are split on and the
    remainder (possibly containing more commas) forms the last group.
    """
    groups: list[list[Token]] = [[]]
    splits = 0
    for tok in tokens:
        if tok.type is TokenType.COMMA and (limit is None or splits < limit):
            groups.append([])
            splits += 1
        else:
            groups[-1].append(tok)
    if groups == [[]]:
        return []
    return groups


def parse_statement(source: str) -> Statement | None:
    """Parse one query line.

    Returns
    -------
    Statement | None
        The parsed statement, or ``None`` if the line is not a query.

    Raises
    ------
    ParseError
        If the line names a query verb but its operands are malformed.

    Example
    -------
    ::

        from provql.parser import parse_statement
        stmt = parse_statement("g2 = g1.getVertices(name:bash)")
        assert stmt.target == "g1"
    """
    return Parser(source, tokenize(source)).parse()
