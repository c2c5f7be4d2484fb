"""Wire protocol module: transport channel, response envelope, TLS bootstrap."""
from __future__ import annotations

from provql.protocol.channel import (
    EXIT_COMMAND,
    GRAPH_TAG,
    Channel,
    Response,
    ResponseKind,
)
from provql.protocol.errors import ChannelClosedError, ProtocolError
from provql.protocol.tls import open_channel

__all__ = [
    "Channel",
    "Response",
    "ResponseKind",
    "GRAPH_TAG",
    "EXIT_COMMAND",
    "ProtocolError",
    "ChannelClosedError",
    "open_channel",
]
