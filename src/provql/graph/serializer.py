"""Graph serialization: dict, JSON, YAML and Graphviz DOT.

The dict form is the wire representation of a graph value::

    {
        "vertices": [{"id": "1", "annotations": {"type": "Process"}}],
        "edges": [{"source": "2", "destination": "1", "annotations": {"type": "Used"}}],
    }

Usage
-----
::

    from provql.graph.serializer import GraphSerializer

    serializer = GraphSerializer()
    graph = serializer.from_dict(payload)
    text = serializer.to_json(graph)
"""
from __future__ import annotations

import json
from collections.abc import Mapping

import yaml

from provql.graph.model import Edge, Graph, Vertex


class GraphDecodeError(ValueError):
    """Raised when a graph document has the wrong shape."""


class GraphSerializer:
    """Converts between ``Graph`` objects and plain Python dicts."""

    # ------------------------------------------------------------------
    # Serialization (Graph → dict)
    # ------------------------------------------------------------------

    def to_dict(self, graph: Graph) -> dict[str, object]:
        """Serialize a ``Graph`` to a JSON-compatible dict, in a stable order."""
        vertices = sorted(graph.vertex_set(), key=lambda v: v.id)
        edges = sorted(graph.edge_set(), key=lambda e: (e.source, e.destination, e.key))
        return {
            "vertices": [
                {"id": v.id, "annotations": dict(v.annotations)} for v in vertices
            ],
            "edges": [
                {
                    "source": e.source,
                    "destination": e.destination,
                    "annotations": dict(e.annotations),
                }
                for e in edges
            ],
        }

    # ------------------------------------------------------------------
    # Deserialization (dict → Graph)
    # ------------------------------------------------------------------

    def from_dict(self, data: object) -> Graph:
        """Deserialize a ``Graph`` from a dict.

        Raises
        ------
        GraphDecodeError
            If ``data`` is not a graph document.
        """
        if not isinstance(data, Mapping):
            raise GraphDecodeError(f"Expected a graph object, got {type(data).__name__}")
        try:
            vertices = [
                Vertex(id=str(v["id"]), annotations=self._annotations(v))
                for v in data.get("vertices", [])
            ]
            edges = [
                Edge(
                    source=str(e["source"]),
                    destination=str(e["destination"]),
                    annotations=self._annotations(e),
                )
                for e in data.get("edges", [])
            ]
        except (KeyError, TypeError) as exc:
            raise GraphDecodeError(f"Malformed graph document: {exc}") from exc
        return Graph(vertices=vertices, edges=edges)

    def _annotations(self, item: Mapping[str, object]) -> dict[str, str]:
        raw = item.get("annotations") or {}
        if not isinstance(raw, Mapping):
            raise GraphDecodeError("annotations must be an object")
        return {str(k): str(v) for k, v in raw.items()}

    # ------------------------------------------------------------------
    # Text formats
    # ------------------------------------------------------------------

    def to_json(self, graph: Graph, indent: int | None = 2) -> str:
        """Serialize a ``Graph`` to a JSON string."""
        return json.dumps(self.to_dict(graph), indent=indent, ensure_ascii=False)

    def from_json(self, text: str) -> Graph:
        """Deserialize a ``Graph`` from a JSON string."""
        return self.from_dict(json.loads(text))

    def to_yaml(self, graph: Graph) -> str:
        """Serialize a ``Graph`` to a YAML string."""
        return yaml.dump(self.to_dict(graph), default_flow_style=False, allow_unicode=True)

    def from_yaml(self, text: str) -> Graph:
        """Deserialize a ``Graph`` from a YAML string."""
        return self.from_dict(yaml.safe_load(text))

    def to_dot(self, graph: Graph) -> str:
        """Render a ``Graph`` as a Graphviz ``digraph``."""
        data = self.to_dict(graph)
        lines = ["digraph provenance {"]
        for v in data["vertices"]:  # type: ignore[union-attr]
            lines.append(f"  {_quote(v['id'])} [label={_quote(_label(v['annotations']))}];")
        for e in data["edges"]:  # type: ignore[union-attr]
            lines.append(
                f"  {_quote(e['source'])} -> {_quote(e['destination'])}"
                f" [label={_quote(_label(e['annotations']))}];"
            )
        lines.append("}")
        return "\n".join(lines) + "\n"


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def _label(annotations: Mapping[str, str]) -> str:
    return "\n".join(f"{k}:{v}" for k, v in sorted(annotations.items()))
