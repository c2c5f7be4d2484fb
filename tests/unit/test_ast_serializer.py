"""Unit tests for provql.ast.serializer — statement dumps."""
from __future__ import annotations

import json

import yaml

from provql.ast import AstSerializer
from provql.parser import parse_statement


def test_lineage_to_dict() -> None:
    data = AstSerializer().to_dict(parse_statement("l = g.getLineage(3, 2, anc, type:File)"))
    assert data["kind"] == "Statement"
    assert data["result"] == "l"
    assert data["target"] == "g"
    query = data["query"]
    assert query["kind"] == "GetLineage"
    assert query["origin"] == 3
    assert query["direction"] == "ancestors"
    assert query["terminating_expression"] == "type:File"


def test_print_to_json() -> None:
    text = AstSerializer().to_json(parse_statement("g.print(name, type)"))
    data = json.loads(text)
    assert data["query"] == {
        "kind": "PrintGraph",
        "annotations": ["name", "type"],
        "span": {"start": 2, "end": 19},
    }


def test_paths_to_yaml() -> None:
    text = AstSerializer().to_yaml(parse_statement("p = getPaths(1, 2, 3)"))
    data = yaml.safe_load(text)
    assert data["query"]["kind"] == "GetPaths"
    assert (data["query"]["source"], data["query"]["destination"], data["query"]["max_length"]) == (1, 2, 3)


def test_filter_forms_share_shape() -> None:
    serializer = AstSerializer()
    for line, kind in [
        ("g = getVertices(x:y)", "GetVertices"),
        ("g = getEdges(x:y)", "GetEdges"),
        ("g = h.getChildren(x:y)", "GetChildren"),
        ("g = h.getParents(x:y)", "GetParents"),
    ]:
        query = serializer.to_dict(parse_statement(line))["query"]
        assert query["kind"] == kind
        assert query["expression"] == "x:y"
