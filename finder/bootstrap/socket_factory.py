"""Listening socket creation and TLS wrapping."""

import argparse
import logging
import socket
import ssl
import sys

from finder.domain.correlation_id import CorrelationLoggerAdapter

SOCKET_LOGGER = CorrelationLoggerAdapter(logging.getLogger("finder.socket"), {})

ACCEPT_POLL_SECONDS = 0.5


def create_server_socket(args: argparse.Namespace) -> socket.socket:
    """Bind the listening socket; the short timeout lets the loop see shutdown."""
    server_socket = socket.create_server((args.host, args.port), reuse_port=True)
    server_socket.settimeout(ACCEPT_POLL_SECONDS)
    if not (args.cert and args.key):
        return server_socket
    try:
        tls_context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        tls_context.load_cert_chain(args.cert, args.key)
    except (ssl.SSLError, OSError) as error:
        SOCKET_LOGGER.critical(
            "Failed to load TLS certificates",
            extra={"event": "tls_load_failed", "error_type": type(error).__name__},
        )
        server_socket.close()
        sys.exit(1)
    return tls_context.wrap_socket(server_socket, server_side=True)
