"""provql — query client for a remote provenance store.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import provql

    # Parse one query line into a Statement AST
    stmt = provql.parse("g2 = g1.getVertices(name:bash)")
    assert stmt.target == "g1"

    # Open a session and run commands against it
    settings = provql.load_settings("provql.yaml")
    session = provql.connect(settings)
    dispatcher = provql.Dispatcher(session)
    dispatcher.execute("g1 = getVertices(type:Process)")
    dispatcher.execute("exit")

    provql.__version__
    '0.1.0'
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from provql.config.settings import Settings, load_settings
from provql.dispatcher import Dispatcher
from provql.session import Session

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from provql.ast.nodes import Statement


def parse(line: str) -> "Statement | None":
    """Parse one query line into a ``Statement``.

    Returns
    -------
    Statement | None
        The parsed statement, or ``None`` if the line is not a query.

    Raises
    ------
    provql.parser.ParseError
        If the line names a query verb but its operands are malformed.
    """
    from provql.parser.parser import parse_statement

    return parse_statement(line)


def connect(settings: Settings) -> Session:
    """Open a TLS session to the query service and return it.

    The caller consumes the service's banner with
    ``session.channel.handshake()`` before issuing commands.

    Raises
    ------
    OSError
        If the connection cannot be established.
    """
    from provql.protocol.tls import open_channel

    return Session(channel=open_channel(settings), settings=settings)


__all__ = [
    "__version__",
    "parse",
    "connect",
    "load_settings",
    "Settings",
    "Session",
    "Dispatcher",
]
