"""Unit tests for provql.protocol.channel — framing over in-memory streams."""
from __future__ import annotations

import io
import socket

import pytest

from conftest import ScriptedServer, make_graph, vertex
from provql.protocol import Channel, ChannelClosedError, ProtocolError, ResponseKind


def test_send_writes_one_line() -> None:
    server = ScriptedServer()
    server.channel.send("query Neo4j vertices type:Process")
    assert server.writer.getvalue() == b"query Neo4j vertices type:Process\n"


def test_message_response() -> None:
    server = ScriptedServer("No result found")
    response = server.channel.request("query Neo4j vertices x:y")
    assert response.kind is ResponseKind.MESSAGE
    assert response.message == "No result found"
    assert server.requests == ["query Neo4j vertices x:y"]


def test_graph_response(three_process_graph) -> None:
    server = ScriptedServer(three_process_graph)
    response = server.channel.request("query Neo4j vertices type:Process")
    assert response.kind is ResponseKind.GRAPH
    assert response.graph == three_process_graph


def test_wrong_accessor_raises() -> None:
    response = ScriptedServer("hello").channel.receive_response()
    with pytest.raises(ProtocolError):
        response.graph


def test_handshake_sends_empty_line() -> None:
    server = ScriptedServer("Welcome to the query service")
    assert server.channel.handshake() == "Welcome to the query service"
    assert server.writer.getvalue() == b"\n"


def test_handshake_rejects_non_string() -> None:
    with pytest.raises(ProtocolError):
        ScriptedServer({"not": "a banner"}).channel.handshake()


def test_end_of_stream_is_channel_closed() -> None:
    with pytest.raises(ChannelClosedError):
        ScriptedServer().channel.receive()


def test_undecodable_line() -> None:
    channel = Channel(io.BytesIO(b"not json\n"), io.BytesIO())
    with pytest.raises(ProtocolError):
        channel.receive()


def test_non_string_tag() -> None:
    with pytest.raises(ProtocolError, match="expected a string"):
        ScriptedServer(42).channel.receive_response()


def test_graph_tag_with_bad_document() -> None:
    channel = Channel(io.BytesIO(b'"graph"\n[1, 2]\n'), io.BytesIO())
    with pytest.raises(ProtocolError):
        channel.receive_response()


def test_responses_read_in_order() -> None:
    graph = make_graph([vertex("1")])
    server = ScriptedServer(graph, "done")
    assert server.channel.receive_response().graph == graph
    assert server.channel.receive_response().message == "done"


class _BrokenWriter(io.BytesIO):
    def write(self, data):  # type: ignore[override]
        raise BrokenPipeError("pipe closed")


def test_broken_pipe_is_channel_closed() -> None:
    channel = Channel(io.BytesIO(), _BrokenWriter())
    with pytest.raises(ChannelClosedError):
        channel.send("exit")


def test_close_closes_streams() -> None:
    server = ScriptedServer()
    server.channel.close()
    assert server.reader.closed
    assert server.writer.closed


class _TimingOutReader(io.BytesIO):
    def readline(self, size=-1):  # type: ignore[override]
        raise TimeoutError("timed out")


def test_read_timeout_is_channel_closed() -> None:
    channel = Channel(_TimingOutReader(), io.BytesIO())
    with pytest.raises(ChannelClosedError, match="timeout"):
        channel.receive()


def test_silent_socket_times_out() -> None:
    client, peer = socket.socketpair()
    client.settimeout(0.05)
    channel = Channel.from_socket(client)
    try:
        with pytest.raises(ChannelClosedError):
            channel.request("query Neo4j vertices type:Process")
        assert peer.recv(1024) == b"query Neo4j vertices type:Process\n"
    finally:
        channel.close()
        peer.close()
