"""Query AST module.

Exports all AST node types and the serializer for dumping statements
to JSON/YAML.
"""
from __future__ import annotations

from provql.ast.nodes import (
    NO_TERMINATION,
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
from provql.ast.serializer import AstSerializer

__all__ = [
    "Span",
    "Statement",
    # Enums / constants
    "Direction",
    "NO_TERMINATION",
    # Query forms
    "Query",
    "GetVertices",
    "GetEdges",
    "GetPaths",
    "GetLineage",
    "PrintGraph",
    "GetChildren",
    "GetParents",
    # Serializer
    "AstSerializer",
]
