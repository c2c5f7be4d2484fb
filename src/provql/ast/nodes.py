"""AST node definitions for the provenance query language.

Every statement the parser accepts becomes a ``Statement`` wrapping one
of seven frozen query nodes.  The ``Query`` union covers all of them;
downstream code dispatches with ``isinstance`` checks.

Filter and terminating expressions are carried as the verbatim source
text: their syntax belongs to the remote store, not to this language.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


# ---------------------------------------------------------------------------
# Source location
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open character range ``[start, end)`` within the input line."""

    start: int
    end: int

    def __repr__(self) -> str:
        return f"Span({self.start}:{self.end})"

    @property
    def col(self) -> int:
        """1-based column of the first character."""
        return self.start + 1

    @classmethod
    def unknown(cls) -> "Span":
        """Return a sentinel span used when position info is unavailable."""
        return cls(start=0, end=0)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Direction(Enum):
    """Traversal direction of a lineage query."""

    ANCESTORS = "ancestors"
    DESCENDANTS = "descendants"
    BOTH = "both"


# Sentinel sent on the wire when a lineage query has no terminating expression.
NO_TERMINATION = "null"


# ---------------------------------------------------------------------------
# Query forms
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GetVertices:
    """``getVertices(expression)``: vertices matching a store predicate."""

    expression: str
    span: Span


@dataclass(frozen=True, slots=True)
class GetEdges:
    """``getEdges(expression)``: edges matching a store predicate."""

    expression: str
    span: Span


@dataclass(frozen=True, slots=True)
class GetPaths:
    """``getPaths(src, dst, maxLength)``: all paths between two vertices."""

    source: int
    destination: int
    max_length: int
    span: Span


@dataclass(frozen=True, slots=True)
class GetLineage:
    """``getLineage(origin, depth, direction[, terminatingExpression])``.

    ``origin`` is an ``int`` when it is a store identifier and a ``str``
    when it names a bound graph.
    """

    origin: int | str
    depth: int
    direction: Direction
    span: Span
    terminating_expression: str | None = None

    @property
    def origin_is_name(self) -> bool:
        """Return True if the origin refers to a bound graph."""
        return isinstance(self.origin, str)

    @property
    def termination(self) -> str:
        """The terminating expression, or the no-termination sentinel."""
        return self.terminating_expression if self.terminating_expression else NO_TERMINATION


@dataclass(frozen=True, slots=True)
class PrintGraph:
    """``target.print(key, ...)``; an empty key tuple means all keys."""

    annotations: tuple[str, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class GetChildren:
    """``target.getChildren(expression)``: one-hop descendants, filtered."""

    expression: str
    span: Span


@dataclass(frozen=True, slots=True)
class GetParents:
    """``target.getParents(expression)``: one-hop ancestors, filtered."""

    expression: str
    span: Span


Query = Union[
    GetVertices,
    GetEdges,
    GetPaths,
    GetLineage,
    PrintGraph,
    GetChildren,
    GetParents,
]


# ---------------------------------------------------------------------------
# Statement
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Statement:
    """One parsed input line.

    Parameters
    ----------
    query:
        The query form.
    source:
        The complete input line.
    expression:
        The source text after the ``=`` (or the whole line when there is
        no assignment); recorded next to the bound result for ``list``.
    result:
        Name the output is bound to, if any.
    target:
        Bound graph the query composes against, if any.
    """

    query: Query
    source: str
    expression: str
    result: str | None = None
    target: str | None = None

    @property
    def is_local(self) -> bool:
        """Return True if the query runs against a bound graph."""
        return self.target is not None
