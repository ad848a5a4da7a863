"""Main connection acceptance loop."""

import argparse
import logging
import socket

from finder.bootstrap.config import SECURITY_HEADERS, ServerConfig
from finder.bootstrap.socket_factory import create_server_socket
from finder.domain.correlation_id import CorrelationLoggerAdapter
from finder.domain.response_builders import draining_response
from finder.lifecycle.state import ServerLifecycle
from finder.pipeline.io import send_response
from finder.transport.context import WorkerContext
from finder.transport.worker import handle_client
from finder.volume.service import FinderService

ACCEPT_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("finder.transport.accept"), {}
)


def _reject_while_draining(client_socket: socket.socket) -> None:
    try:
        send_response(client_socket, draining_response(SECURITY_HEADERS))
    except OSError:
        pass
    finally:
        client_socket.close()


def run_server(
    args: argparse.Namespace,
    config: ServerConfig,
    lifecycle: ServerLifecycle,
    service: FinderService,
) -> None:
    """Accept connections and hand each one to the worker pool until shutdown."""
    server_socket = create_server_socket(args)
    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": args.host,
            "port": args.port,
            "tls": bool(args.cert and args.key),
            "max_workers": config.max_workers,
        },
    )
    context = WorkerContext(service=service, config=config, lifecycle=lifecycle)

    try:
        while True:
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                if lifecycle.should_stop():
                    break
                continue
            except OSError as error:
                if lifecycle.should_stop():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            if lifecycle.is_draining():
                _reject_while_draining(client_socket)
                continue

            if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
                ACCEPT_LOGGER.debug(
                    "Client connection accepted",
                    extra={
                        "event": "client_accepted",
                        "client": f"{client_address[0]}:{client_address[1]}",
                    },
                )
            lifecycle.submit(handle_client, client_socket, client_address, context)
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "shutdown_grace_seconds": config.shutdown_grace_seconds,
            },
        )
        lifecycle.wait_for_workers(config.shutdown_grace_seconds)
        ACCEPT_LOGGER.info(
            "Server shutdown complete", extra={"event": "server_stopped"}
        )
