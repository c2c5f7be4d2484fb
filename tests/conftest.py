"""Shared test fixtures for provql.

Fixtures defined here are available to all tests in the suite without
needing an explicit import.  The query service is simulated by a
scripted response stream: every value the server would send is encoded
up front, and the requests the client writes are captured for
inspection.
"""
from __future__ import annotations

import io
import json

import pytest
from rich.console import Console

from provql.config.settings import Settings
from provql.dispatcher import Dispatcher
from provql.graph.model import Edge, Graph, Vertex
from provql.graph.serializer import GraphSerializer
from provql.protocol.channel import Channel
from provql.session import Session


# ---------------------------------------------------------------------------
# Graph builders
# ---------------------------------------------------------------------------


def vertex(vid: str, **annotations: str) -> Vertex:
    """Build a vertex whose store identifier equals its id unless given."""
    annotations.setdefault("storage_identifier", vid)
    return Vertex(id=vid, annotations=annotations)


def edge(source: str, destination: str, **annotations: str) -> Edge:
    return Edge(source=source, destination=destination, annotations=annotations)


def make_graph(vertices: list[Vertex], edges: list[Edge] | None = None) -> Graph:
    return Graph(vertices=vertices, edges=edges or [])


# ---------------------------------------------------------------------------
# Scripted server
# ---------------------------------------------------------------------------


def encode_values(*values: object) -> bytes:
    """Encode server values; a ``Graph`` becomes the ``"graph"`` tag plus its document."""
    serializer = GraphSerializer()
    lines: list[str] = []
    for value in values:
        if isinstance(value, Graph):
            lines.append(json.dumps("graph"))
            lines.append(json.dumps(serializer.to_dict(value)))
        else:
            lines.append(json.dumps(value))
    return "".join(line + "\n" for line in lines).encode("utf-8")


class ScriptedServer:
    """A channel whose responses are fixed in advance."""

    def __init__(self, *values: object) -> None:
        self.reader = io.BytesIO(encode_values(*values))
        self.writer = io.BytesIO()
        self.channel = Channel(self.reader, self.writer)

    @property
    def requests(self) -> list[str]:
        """Lines the client has sent so far."""
        return self.writer.getvalue().decode("utf-8").splitlines()


def text_console() -> Console:
    return Console(file=io.StringIO(), width=200, color_system=None, force_terminal=False)


def output_of(console: Console) -> str:
    return console.file.getvalue()  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def three_process_graph() -> Graph:
    return make_graph([
        vertex("1", type="Process", name="bash"),
        vertex("2", type="Process", name="ls"),
        vertex("3", type="Process", name="cat"),
    ])


@pytest.fixture()
def lineage_graph() -> Graph:
    """A small provenance chain: 4 -> 3 -> 2 -> 1 (child to parent) plus 5 -> 3."""
    return make_graph(
        [
            vertex("1", type="Artifact", name="input.txt"),
            vertex("2", type="Process", name="bash"),
            vertex("3", type="Artifact", name="output.txt"),
            vertex("4", type="Process", name="cat"),
            vertex("5", type="Process", name="grep"),
        ],
        [
            edge("2", "1", type="Used"),
            edge("3", "2", type="WasGeneratedBy"),
            edge("4", "3", type="Used"),
            edge("5", "3", type="Used"),
        ],
    )


@pytest.fixture()
def make_dispatcher():
    """Factory: ``make_dispatcher(*server_values, settings=...)`` -> (dispatcher, server)."""

    def _make(*values: object, settings: Settings | None = None) -> tuple[Dispatcher, ScriptedServer]:
        server = ScriptedServer(*values)
        session = Session(channel=server.channel, settings=settings or Settings())
        dispatcher = Dispatcher(session, console=text_console(), err_console=text_console())
        return dispatcher, server

    return _make
