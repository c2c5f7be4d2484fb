"""Provenance graph model backed by NetworkX.

A ``Graph`` is immutable by convention: every query method returns a new
graph and never touches the receiver.  Vertices are keyed by their id;
edges point from the child (effect) vertex to the parent (cause) vertex,
so ancestors are reached along out-edges and descendants along in-edges.

Filter expressions accepted by :meth:`Graph.get_vertices` are
``key:value`` terms joined with ``AND`` / ``OR`` (``AND`` binds tighter).
Values may use shell-style wildcards (``name:*bash*``).
"""
from __future__ import annotations

import fnmatch
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

import networkx as nx

from provql.ast.nodes import NO_TERMINATION, Direction

logger = logging.getLogger(__name__)

_Graph = nx.MultiDiGraph

_OR = re.compile(r"\s+or\s+", re.IGNORECASE)
_AND = re.compile(r"\s+and\s+", re.IGNORECASE)


@dataclass(frozen=True)
class Vertex:
    """A provenance vertex: an id plus string annotations."""

    id: str
    annotations: Mapping[str, str] = field(default_factory=dict, hash=False)

    def get_annotation(self, key: str) -> str | None:
        return self.annotations.get(key)


@dataclass(frozen=True)
class Edge:
    """A provenance edge from ``source`` (child) to ``destination`` (parent)."""

    source: str
    destination: str
    annotations: Mapping[str, str] = field(default_factory=dict, hash=False)

    @property
    def key(self) -> tuple[tuple[str, str], ...]:
        """Identity of the edge among parallel edges between the same vertices."""
        return tuple(sorted(self.annotations.items()))

    def get_annotation(self, key: str) -> str | None:
        return self.annotations.get(key)


def matches(annotations: Mapping[str, str], expression: str | None) -> bool:
    """Return True if ``annotations`` satisfy the filter ``expression``.

    A missing expression or the no-termination sentinel matches nothing.
    """
    if expression is None or expression.strip() in ("", NO_TERMINATION):
        return False
    for clause in _OR.split(expression.strip()):
        if all(_term_matches(annotations, term) for term in _AND.split(clause)):
            return True
    return False


def _term_matches(annotations: Mapping[str, str], term: str) -> bool:
    key, sep, pattern = term.partition(":")
    if not sep:
        raise ValueError(f"Invalid filter term {term.strip()!r}: expected key:value")
    value = annotations.get(key.strip())
    return value is not None and fnmatch.fnmatchcase(value, pattern.strip())


def _merge_vertices(a: Vertex, b: Vertex) -> Vertex:
    merged = dict(a.annotations)
    for key, value in b.annotations.items():
        merged[key] = max(merged[key], value) if key in merged else value
    return Vertex(id=a.id, annotations=dict(sorted(merged.items())))


class Graph:
    """An immutable-by-convention provenance graph."""

    def __init__(
        self,
        vertices: Iterable[Vertex] = (),
        edges: Iterable[Edge] = (),
    ) -> None:
        g: _Graph = nx.MultiDiGraph()
        for vertex in vertices:
            g.add_node(vertex.id, vertex=vertex)
        for edge in edges:
            # Endpoints missing from the vertex list are added bare
            for end in (edge.source, edge.destination):
                if end not in g:
                    g.add_node(end, vertex=Vertex(end))
            g.add_edge(edge.source, edge.destination, key=edge.key, edge=edge)
        self._g = g

    @classmethod
    def _wrap(cls, g: _Graph) -> "Graph":
        graph = cls.__new__(cls)
        graph._g = g
        return graph

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def vertex_set(self) -> set[Vertex]:
        return {data["vertex"] for _, data in self._g.nodes(data=True)}

    def edge_set(self) -> set[Edge]:
        return {data["edge"] for _, _, data in self._g.edges(data=True)}

    def vertex(self, vertex_id: str) -> Vertex | None:
        if vertex_id not in self._g:
            return None
        return self._g.nodes[vertex_id]["vertex"]

    def is_empty(self) -> bool:
        return self._g.number_of_nodes() == 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return self.vertex_set() == other.vertex_set() and self.edge_set() == other.edge_set()

    def __hash__(self) -> int:
        return hash((frozenset(self.vertex_set()), frozenset(self.edge_set())))

    def __repr__(self) -> str:
        return f"Graph(vertices={self._g.number_of_nodes()}, edges={self._g.number_of_edges()})"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_vertices(self, expression: str) -> "Graph":
        """Return the vertices matching ``expression``, without edges."""
        return Graph(vertices=[v for v in self.vertex_set() if matches(v.annotations, expression)])

    def get_paths(self, source: int | str, destination: int | str, max_length: int) -> "Graph":
        """Return every vertex and edge on a path of at most ``max_length`` edges."""
        src, dst = str(source), str(destination)
        if src not in self._g or dst not in self._g:
            return Graph()
        if src == dst:
            return Graph._wrap(self._g.subgraph([src]).copy())
        edges: set[tuple[str, str, object]] = set()
        for path in nx.all_simple_edge_paths(self._g, src, dst, cutoff=max_length):
            edges.update(path)
        return Graph._wrap(self._g.edge_subgraph(edges).copy() if edges else nx.MultiDiGraph())

    def get_lineage(
        self,
        vertex_id: int | str,
        depth: int,
        direction: Direction | str,
        terminating_expression: str | None = None,
    ) -> "Graph":
        """Return the lineage of one vertex up to ``depth`` hops.

        Vertices matching ``terminating_expression`` are included but not
        expanded further.
        """
        start = str(vertex_id)
        if start not in self._g:
            return Graph()
        direction = Direction(direction)

        kept_edges: set[tuple[str, str, object]] = set()
        seen = {start}
        frontier = [start]
        for _ in range(depth):
            next_frontier: list[str] = []
            for node in frontier:
                if node != start and matches(self._g.nodes[node]["vertex"].annotations, terminating_expression):
                    continue
                for u, v, k in self._neighbour_edges(node, direction):
                    kept_edges.add((u, v, k))
                    other = v if u == node else u
                    if other not in seen:
                        seen.add(other)
                        next_frontier.append(other)
            frontier = next_frontier

        g: _Graph = self._g.subgraph(seen).copy()
        g.remove_edges_from([e for e in list(g.edges(keys=True)) if e not in kept_edges])
        return Graph._wrap(g)

    def _neighbour_edges(self, node: str, direction: Direction) -> list[tuple[str, str, object]]:
        found: list[tuple[str, str, object]] = []
        if direction in (Direction.ANCESTORS, Direction.BOTH):
            found.extend(self._g.out_edges(node, keys=True))
        if direction in (Direction.DESCENDANTS, Direction.BOTH):
            found.extend(self._g.in_edges(node, keys=True))
        return found

    @staticmethod
    def union(a: "Graph", b: "Graph") -> "Graph":
        """Return the union of two graphs; the empty graph is the identity.

        A vertex present in both operands keeps the annotations of both;
        where they disagree on a key the greater value wins, so the result
        does not depend on operand order.
        """
        g: _Graph = nx.compose(a._g, b._g)
        for node in a._g.nodes.keys() & b._g.nodes.keys():
            g.nodes[node]["vertex"] = _merge_vertices(
                a._g.nodes[node]["vertex"], b._g.nodes[node]["vertex"]
            )
        return Graph._wrap(g)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_graph(self, path: str | Path) -> None:
        """Write the graph to ``path``.

        ``.json`` and ``.yaml``/``.yml`` suffixes write the serialized
        form; anything else is written as Graphviz DOT.
        """
        from provql.graph.serializer import GraphSerializer

        target = Path(path)
        serializer = GraphSerializer()
        suffix = target.suffix.lower()
        if suffix == ".json":
            text = serializer.to_json(self)
        elif suffix in (".yaml", ".yml"):
            text = serializer.to_yaml(self)
        else:
            text = serializer.to_dot(self)
        target.write_text(text, encoding="utf-8")
        logger.debug("Exported %r to %s", self, target)
