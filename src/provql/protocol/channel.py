"""Transport channel: typed request/response framing over a byte stream.

Requests are single newline-terminated lines, flushed as soon as they
are written.  Responses are one JSON document per line.  A response is
either a terminal message (any string) or the string ``"graph"``
followed by exactly one graph document; ``receive_response`` folds the
two shapes into a ``Response`` envelope.

The channel is stop-and-wait: there is no request identifier on the
wire, so callers must read the response to one request before sending
the next.  Nothing here retries.
"""
from __future__ import annotations

import json
import logging
import socket
from dataclasses import dataclass
from enum import Enum, auto
from typing import BinaryIO, Union

from provql.graph.model import Graph
from provql.graph.serializer import GraphDecodeError, GraphSerializer
from provql.protocol.errors import ChannelClosedError, ProtocolError

logger = logging.getLogger(__name__)

GRAPH_TAG = "graph"
EXIT_COMMAND = "exit"


class ResponseKind(Enum):
    """The two response shapes the query service can produce."""

    GRAPH = auto()
    MESSAGE = auto()


@dataclass(frozen=True)
class Response:
    """A decoded response: a ``Graph`` or a human-readable message."""

    kind: ResponseKind
    payload: Union[Graph, str]

    @property
    def graph(self) -> Graph:
        if self.kind is not ResponseKind.GRAPH:
            raise ProtocolError("response carries a message, not a graph")
        return self.payload  # type: ignore[return-value]

    @property
    def message(self) -> str:
        if self.kind is not ResponseKind.MESSAGE:
            raise ProtocolError("response carries a graph, not a message")
        return self.payload  # type: ignore[return-value]


class Channel:
    """A request sink and response source over one bidirectional stream.

    Parameters
    ----------
    reader:
        Binary stream the service's responses are read from.
    writer:
        Binary stream requests are written to.
    """

    def __init__(self, reader: BinaryIO, writer: BinaryIO) -> None:
        self._reader = reader
        self._writer = writer
        self._serializer = GraphSerializer()
        self._socket: socket.socket | None = None

    @classmethod
    def from_socket(cls, sock: socket.socket) -> "Channel":
        """Wrap a connected (and already encrypted) socket."""
        channel = cls(sock.makefile("rb"), sock.makefile("wb"))
        channel._socket = sock
        return channel

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def send(self, text: str) -> None:
        """Write one request line and flush it."""
        logger.debug("-> %s", text)
        try:
            self._writer.write(text.encode("utf-8") + b"\n")
            self._writer.flush()
        except OSError as exc:
            raise ChannelClosedError(f"connection lost while sending: {exc}") from exc

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def receive(self) -> object:
        """Block until one value is available and return it decoded.

        Raises
        ------
        ChannelClosedError
            If the stream ends, the connection drops or the read times out.
        ProtocolError
            If the line is not a JSON document.
        """
        try:
            line = self._reader.readline()
        except TimeoutError as exc:
            # a timed-out socket file cannot be read again
            raise ChannelClosedError(
                "no response from the query service before the timeout"
            ) from exc
        except OSError as exc:
            raise ChannelClosedError(f"connection lost while receiving: {exc}") from exc
        if not line:
            raise ChannelClosedError("connection closed by the query service")
        try:
            value = json.loads(line.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProtocolError(f"undecodable response: {exc}") from exc
        logger.debug("<- %s", type(value).__name__)
        return value

    def receive_response(self) -> Response:
        """Read one complete response: a tag, plus a graph if tagged ``graph``."""
        tag = self.receive()
        if not isinstance(tag, str):
            raise ProtocolError(f"expected a string response, got {type(tag).__name__}")
        if tag != GRAPH_TAG:
            return Response(ResponseKind.MESSAGE, tag)
        try:
            graph = self._serializer.from_dict(self.receive())
        except GraphDecodeError as exc:
            raise ProtocolError(str(exc)) from exc
        return Response(ResponseKind.GRAPH, graph)

    def request(self, text: str) -> Response:
        """Send one request and return its response."""
        self.send(text)
        return self.receive_response()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def handshake(self) -> str:
        """Send the empty greeting line and return the service's banner."""
        self.send("")
        banner = self.receive()
        if not isinstance(banner, str):
            raise ProtocolError(f"expected a banner string, got {type(banner).__name__}")
        return banner

    def close(self) -> None:
        """Close the underlying streams (and socket, if any)."""
        for stream in (self._writer, self._reader):
            try:
                stream.close()
            except OSError as exc:
                logger.debug("Ignoring error while closing stream: %s", exc)
        if self._socket is not None:
            self._socket.close()
