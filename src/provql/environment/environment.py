"""Binding environment: the session-local table of named query results.

Two co-indexed mappings share one key space: name to result ``Graph``
and name to the source expression that produced it.  Rebinding a name
silently replaces both entries.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from provql.graph.model import Graph

logger = logging.getLogger(__name__)


class UnboundNameError(KeyError):
    """Raised when a query references a name with no bound graph."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"graph {self.name} does not exist"


class BindingEnvironment:
    """Name to graph bindings, with the expression each came from."""

    def __init__(self) -> None:
        self._graphs: dict[str, Graph] = {}
        self._expressions: dict[str, str] = {}

    def bind(self, name: str, graph: "Graph", expression: str) -> None:
        """Bind ``name`` to ``graph``, overwriting any earlier binding."""
        if name in self._graphs:
            logger.debug("Rebinding %r (was %r)", name, self.expression(name))
        self._graphs[name] = graph
        self._expressions[name] = expression
        logger.debug(
            "Bound %r: %d vertices, %d edges",
            name,
            len(graph.vertex_set()),
            len(graph.edge_set()),
        )

    def graph(self, name: str) -> "Graph":
        """Return the graph bound to ``name``.

        Raises
        ------
        UnboundNameError
            If ``name`` is not bound.
        """
        try:
            return self._graphs[name]
        except KeyError:
            raise UnboundNameError(name) from None

    def expression(self, name: str) -> str:
        """Return the source expression recorded for ``name``."""
        try:
            return self._expressions[name]
        except KeyError:
            raise UnboundNameError(name) from None

    def entries(self) -> list[tuple[str, str]]:
        """Return ``(name, expression)`` pairs, sorted by name."""
        return sorted(self._expressions.items())

    def __contains__(self, name: object) -> bool:
        return name in self._graphs

    def __iter__(self) -> Iterator[str]:
        return iter(self._graphs)

    def __len__(self) -> int:
        return len(self._graphs)
