"""Unit tests for provql.graph.model — filters, paths, lineage and union."""
from __future__ import annotations

import json

import pytest
import yaml

from conftest import edge, make_graph, vertex
from provql.ast.nodes import Direction
from provql.graph import Graph
from provql.graph.model import matches


def ids(graph: Graph) -> set[str]:
    return {v.id for v in graph.vertex_set()}


def pairs(graph: Graph) -> set[tuple[str, str]]:
    return {(e.source, e.destination) for e in graph.edge_set()}


# ---------------------------------------------------------------------------
# Filter expressions
# ---------------------------------------------------------------------------


class TestMatches:
    def test_single_term(self) -> None:
        assert matches({"type": "Process"}, "type:Process")
        assert not matches({"type": "Artifact"}, "type:Process")

    def test_wildcard(self) -> None:
        assert matches({"name": "/bin/bash"}, "name:*bash")

    def test_and_or(self) -> None:
        annotations = {"type": "Process", "name": "ls"}
        assert matches(annotations, "type:Process AND name:ls")
        assert not matches(annotations, "type:Process and name:cat")
        assert matches(annotations, "name:cat OR name:ls")

    def test_missing_key(self) -> None:
        assert not matches({"type": "Process"}, "name:bash")

    @pytest.mark.parametrize("expression", [None, "", "null"])
    def test_no_expression_matches_nothing(self, expression) -> None:
        assert not matches({"type": "Process"}, expression)

    def test_term_without_colon(self) -> None:
        with pytest.raises(ValueError, match="key:value"):
            matches({"type": "Process"}, "Process")


# ---------------------------------------------------------------------------
# Union
# ---------------------------------------------------------------------------


class TestUnion:
    def test_empty_is_identity(self, lineage_graph: Graph) -> None:
        assert Graph.union(Graph(), lineage_graph) == lineage_graph
        assert Graph.union(lineage_graph, Graph()) == lineage_graph

    def test_associative_and_commutative(self) -> None:
        a = make_graph([vertex("1"), vertex("2")], [edge("2", "1", type="Used")])
        b = make_graph([vertex("2"), vertex("3")], [edge("3", "2", type="Used")])
        c = make_graph([vertex("4")])
        assert Graph.union(Graph.union(a, b), c) == Graph.union(a, Graph.union(b, c))
        assert Graph.union(a, b) == Graph.union(b, a)

    def test_union_merges_shared_vertices(self) -> None:
        a = make_graph([vertex("1")])
        b = make_graph([vertex("1"), vertex("2")])
        assert ids(Graph.union(a, b)) == {"1", "2"}

    def test_annotated_vertex_beats_edge_placeholder(self) -> None:
        annotated = make_graph([vertex("1", type="Artifact")])
        placeholder = make_graph([vertex("2")], [edge("2", "1")])
        for merged in (Graph.union(annotated, placeholder), Graph.union(placeholder, annotated)):
            assert merged.vertex("1").annotations["type"] == "Artifact"
        assert Graph.union(annotated, placeholder) == Graph.union(placeholder, annotated)

    def test_conflicting_annotations_merge_in_either_order(self) -> None:
        a = make_graph([vertex("1", name="bash", pid="10")])
        b = make_graph([vertex("1", name="sh", uid="0")])
        ab, ba = Graph.union(a, b), Graph.union(b, a)
        assert ab == ba
        assert ab.vertex("1").annotations == {
            "name": "sh", "pid": "10", "storage_identifier": "1", "uid": "0",
        }

    def test_union_does_not_mutate_operands(self) -> None:
        a = make_graph([vertex("1")])
        Graph.union(a, make_graph([vertex("2")]))
        assert ids(a) == {"1"}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestGetVertices:
    def test_filters_and_drops_edges(self, lineage_graph: Graph) -> None:
        result = lineage_graph.get_vertices("type:Process")
        assert ids(result) == {"2", "4", "5"}
        assert result.edge_set() == set()

    def test_no_match_is_empty(self, lineage_graph: Graph) -> None:
        assert lineage_graph.get_vertices("type:Agent").is_empty()

    def test_receiver_unchanged(self, lineage_graph: Graph) -> None:
        lineage_graph.get_vertices("type:Process")
        assert len(lineage_graph.vertex_set()) == 5


class TestGetPaths:
    def test_path_within_limit(self, lineage_graph: Graph) -> None:
        result = lineage_graph.get_paths(4, 1, 3)
        assert ids(result) == {"4", "3", "2", "1"}
        assert pairs(result) == {("4", "3"), ("3", "2"), ("2", "1")}

    def test_path_too_long(self, lineage_graph: Graph) -> None:
        assert lineage_graph.get_paths(4, 1, 2).is_empty()

    def test_unknown_endpoint(self, lineage_graph: Graph) -> None:
        assert lineage_graph.get_paths(4, 99, 5).is_empty()

    def test_same_endpoint(self, lineage_graph: Graph) -> None:
        assert ids(lineage_graph.get_paths(3, 3, 1)) == {"3"}


class TestGetLineage:
    def test_ancestors(self, lineage_graph: Graph) -> None:
        result = lineage_graph.get_lineage(4, 2, Direction.ANCESTORS)
        assert ids(result) == {"4", "3", "2"}
        assert pairs(result) == {("4", "3"), ("3", "2")}

    def test_descendants(self, lineage_graph: Graph) -> None:
        result = lineage_graph.get_lineage("3", 1, "descendants")
        assert ids(result) == {"3", "4", "5"}
        assert pairs(result) == {("4", "3"), ("5", "3")}

    def test_both(self, lineage_graph: Graph) -> None:
        result = lineage_graph.get_lineage(3, 1, Direction.BOTH)
        assert ids(result) == {"2", "3", "4", "5"}

    def test_depth_zero_is_origin_only(self, lineage_graph: Graph) -> None:
        result = lineage_graph.get_lineage(3, 0, Direction.BOTH)
        assert ids(result) == {"3"}
        assert result.edge_set() == set()

    def test_terminating_vertex_not_expanded(self, lineage_graph: Graph) -> None:
        result = lineage_graph.get_lineage(4, 5, Direction.ANCESTORS, "name:output.txt")
        assert ids(result) == {"4", "3"}

    def test_null_termination_expands_fully(self, lineage_graph: Graph) -> None:
        result = lineage_graph.get_lineage(4, 5, Direction.ANCESTORS, "null")
        assert ids(result) == {"4", "3", "2", "1"}

    def test_unknown_origin(self, lineage_graph: Graph) -> None:
        assert lineage_graph.get_lineage(42, 3, Direction.BOTH).is_empty()


# ---------------------------------------------------------------------------
# Construction and export
# ---------------------------------------------------------------------------


def test_edge_endpoints_added_when_missing() -> None:
    graph = make_graph([], [edge("2", "1")])
    assert ids(graph) == {"1", "2"}


def test_parallel_edges_kept() -> None:
    graph = make_graph(
        [vertex("1"), vertex("2")],
        [edge("2", "1", type="Used"), edge("2", "1", type="WasInformedBy")],
    )
    assert len(graph.edge_set()) == 2


def test_export_json(tmp_path, lineage_graph: Graph) -> None:
    target = tmp_path / "g.json"
    lineage_graph.export_graph(target)
    data = json.loads(target.read_text(encoding="utf-8"))
    assert [v["id"] for v in data["vertices"]] == ["1", "2", "3", "4", "5"]
    assert len(data["edges"]) == 4


def test_export_yaml(tmp_path, three_process_graph: Graph) -> None:
    target = tmp_path / "g.yaml"
    three_process_graph.export_graph(str(target))
    data = yaml.safe_load(target.read_text(encoding="utf-8"))
    assert len(data["vertices"]) == 3


def test_export_dot_by_default(tmp_path, lineage_graph: Graph) -> None:
    target = tmp_path / "g.dot"
    lineage_graph.export_graph(target)
    text = target.read_text(encoding="utf-8")
    assert text.startswith("digraph provenance {")
    assert '"4" -> "3"' in text
