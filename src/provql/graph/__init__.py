"""Provenance graph module.

Exports the ``Graph`` collaborator, its vertex and edge types, and the
serializer used by the wire codec and by ``export``.
"""
from __future__ import annotations

from provql.graph.model import Edge, Graph, Vertex, matches
from provql.graph.serializer import GraphDecodeError, GraphSerializer

__all__ = [
    "Graph",
    "Vertex",
    "Edge",
    "matches",
    "GraphSerializer",
    "GraphDecodeError",
]
