"""AST serialization for parsed query statements.

Provides conversion of ``Statement`` objects to plain dicts and from
there to JSON and YAML, for ``provql parse`` and for debug logging.

Usage
-----
::

    from provql.ast.serializer import AstSerializer

    serializer = AstSerializer()
    data = serializer.to_dict(statement)
    json_text = serializer.to_json(statement)
"""
from __future__ import annotations

import json

import yaml

from provql.ast.nodes import (
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


class AstSerializer:
    """Converts ``Statement`` AST objects into JSON-compatible dicts.

    Each query dict carries a ``"kind"`` discriminator naming the form.
    """

    def to_dict(self, statement: Statement) -> dict[str, object]:
        """Serialize a ``Statement`` to a JSON-compatible dict."""
        return {
            "kind": "Statement",
            "result": statement.result,
            "target": statement.target,
            "expression": statement.expression,
            "query": self._query_to_dict(statement.query),
        }

    def _span_to_dict(self, span: Span) -> dict[str, int]:
        return {"start": span.start, "end": span.end}

    def _query_to_dict(self, query: Query) -> dict[str, object]:
        if isinstance(query, (GetVertices, GetEdges, GetChildren, GetParents)):
            return {
                "kind": type(query).__name__,
                "expression": query.expression,
                "span": self._span_to_dict(query.span),
            }
        if isinstance(query, GetPaths):
            return {
                "kind": "GetPaths",
                "source": query.source,
                "destination": query.destination,
                "max_length": query.max_length,
                "span": self._span_to_dict(query.span),
            }
        if isinstance(query, GetLineage):
            return {
                "kind": "GetLineage",
                "origin": query.origin,
                "depth": query.depth,
                "direction": query.direction.value,
                "terminating_expression": query.terminating_expression,
                "span": self._span_to_dict(query.span),
            }
        if isinstance(query, PrintGraph):
            return {
                "kind": "PrintGraph",
                "annotations": list(query.annotations),
                "span": self._span_to_dict(query.span),
            }
        raise TypeError(f"Unknown query node: {type(query).__name__}")

    # ------------------------------------------------------------------
    # JSON / YAML helpers
    # ------------------------------------------------------------------

    def to_json(self, statement: Statement, indent: int = 2) -> str:
        """Serialize a ``Statement`` to a JSON string."""
        return json.dumps(self.to_dict(statement), indent=indent, ensure_ascii=False)

    def to_yaml(self, statement: Statement) -> str:
        """Serialize a ``Statement`` to a YAML string."""
        return yaml.dump(
            self.to_dict(statement), default_flow_style=False, allow_unicode=True, sort_keys=False
        )
