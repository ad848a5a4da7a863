"""Per-connection worker run on the shared pool."""

import logging
import socket
from typing import Optional

from finder.bootstrap.config import ALLOWED_METHODS, SECURITY_HEADERS
from finder.domain.correlation_id import (
    CorrelationLoggerAdapter,
    clear_correlation_id,
    generate_correlation_id,
    set_correlation_id,
)
from finder.domain.http_types import HttpRequest
from finder.domain.response_builders import (
    bad_request_response,
    draining_response,
    entity_too_large_response,
)
from finder.pipeline.io import receive_request, send_response
from finder.pipeline.router import route_request
from finder.pipeline.validation import RequestEntityTooLarge, validate_request
from finder.transport.context import WorkerContext

WORKER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("finder.transport.worker"), {}
)


def _read_request(
    client_socket: socket.socket, buffer: bytes, client_addr_str: str
) -> tuple[Optional[HttpRequest], bytes, bool]:
    """Read one request; the flag is True when the connection must end."""
    try:
        request, buffer = receive_request(client_socket, buffer)
    except RequestEntityTooLarge:
        WORKER_LOGGER.warning(
            "Request size exceeded limit",
            extra={"event": "request_too_large", "client": client_addr_str},
        )
        send_response(client_socket, entity_too_large_response(SECURITY_HEADERS))
        return None, b"", True
    except ValueError:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={"event": "malformed_request", "client": client_addr_str},
        )
        send_response(client_socket, bad_request_response(None, SECURITY_HEADERS))
        return None, b"", True

    if request is None:
        if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            WORKER_LOGGER.debug(
                "Client disconnected",
                extra={"event": "client_disconnected", "client": client_addr_str},
            )
        return None, buffer, True
    return request, buffer, False


def _process_request(
    request: HttpRequest, context: WorkerContext, client_socket: socket.socket
) -> bool:
    """Validate, route and answer one request; return True to close."""
    response = validate_request(request, ALLOWED_METHODS, SECURITY_HEADERS)
    if response is None:
        response = route_request(
            request,
            context.service,
            context.config.principal_header,
            context.lifecycle,
        )
    send_response(client_socket, response)
    return response.close_connection


def _close_socket(client_socket: socket.socket, client_addr_str: str) -> None:
    try:
        client_socket.shutdown(socket.SHUT_WR)
    except OSError:
        pass
    client_socket.close()
    if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        WORKER_LOGGER.debug(
            "Socket closed",
            extra={"event": "socket_closed", "client": client_addr_str},
        )


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Process requests on a client socket until the connection is closed."""
    buffer = b""
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    lifecycle = context.lifecycle
    client_socket.settimeout(context.config.socket_timeout)

    try:
        while True:
            set_correlation_id(generate_correlation_id())

            if lifecycle is not None and lifecycle.is_draining():
                send_response(client_socket, draining_response(SECURITY_HEADERS))
                break

            request, buffer, should_terminate = _read_request(
                client_socket, buffer, client_addr_str
            )
            if should_terminate or request is None:
                break

            if _process_request(request, context, client_socket):
                break
            clear_correlation_id()
    except (ConnectionError, TimeoutError, OSError, UnicodeDecodeError) as error:
        WORKER_LOGGER.error(
            "Error handling client connection",
            extra={
                "event": "connection_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
            },
        )
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in worker",
            extra={
                "event": "worker_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
            },
            exc_info=True,
        )
    finally:
        _close_socket(client_socket, client_addr_str)
        clear_correlation_id()
