"""TLS bootstrap: open an encrypted connection to the query service.

Credential provisioning is the operator's business; this module only
turns the configured PEM files into an ``ssl.SSLContext`` and a
connected ``Channel``.
"""
from __future__ import annotations

import logging
import socket
import ssl

from provql.config.settings import Settings
from provql.protocol.channel import Channel

logger = logging.getLogger(__name__)


def create_context(settings: Settings) -> ssl.SSLContext:
    """Build a client ``SSLContext`` from the configured certificate files."""
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cafile=settings.cafile)
    if settings.certfile:
        context.load_cert_chain(settings.certfile, settings.keyfile)
    if settings.insecure:
        logger.warning("Server certificate verification is disabled")
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def open_channel(settings: Settings) -> Channel:
    """Connect to ``settings.host:settings.port`` over TLS.

    Raises
    ------
    OSError
        If the connection or the TLS handshake fails (``ssl.SSLError`` is
        an ``OSError``).
    """
    context = create_context(settings)
    raw = socket.create_connection((settings.host, settings.port), timeout=settings.timeout)
    try:
        sock = context.wrap_socket(raw, server_hostname=settings.host)
    except OSError:
        raw.close()
        raise
    logger.debug("Connected to %s:%d (%s)", settings.host, settings.port, sock.version())
    return Channel.from_socket(sock)
