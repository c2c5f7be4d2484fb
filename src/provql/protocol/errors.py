"""Error types raised by the transport channel."""
from __future__ import annotations


class ProtocolError(ValueError):
    """Raised when a value read from the channel cannot be decoded,
    or has a shape the protocol does not allow at that point."""


class ChannelClosedError(ConnectionError):
    """Raised when the remote peer closes or drops the session."""
