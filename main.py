"""Sandboxed file manager connector server."""

import logging
import signal
import sys

from finder.bootstrap.config import (
    build_server_config,
    build_volume_config,
    parse_cli_args,
)
from finder.bootstrap.logging_setup import configure_logging
from finder.domain.correlation_id import CorrelationLoggerAdapter
from finder.lifecycle.state import ServerLifecycle
from finder.transport.accept_loop import run_server
from finder.volume.errors import StorageUnavailable
from finder.volume.registry import VolumeConfig, VolumeRegistry, ensure_sandbox_root
from finder.volume.service import FinderService

SERVER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("finder.server"), {})


def main() -> None:
    """Parse configuration, prepare the sandbox root and serve until signalled."""
    args = parse_cli_args(sys.argv[1:])
    configure_logging(args.log_level, args.log_destination)

    config = build_server_config(args)
    volume_config = build_volume_config(args)
    try:
        sandbox_root = ensure_sandbox_root(volume_config.sandbox_root)
    except StorageUnavailable as error:
        SERVER_LOGGER.critical(
            "Finder root is unusable",
            extra={"event": "sandbox_unavailable", "error": str(error)},
        )
        sys.exit(1)

    registry = VolumeRegistry(
        VolumeConfig(sandbox_root=sandbox_root, naming=volume_config.naming)
    )
    service = FinderService(registry)
    lifecycle = ServerLifecycle(config.max_workers)

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal", extra={"event": "signal", "signal": signum}
        )
        lifecycle.begin_draining()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting finder server",
        extra={
            "event": "server_starting",
            "host": args.host,
            "port": args.port,
            "finder_root": str(sandbox_root),
            "log_destination": args.log_destination,
            "log_level": args.log_level,
            "tls": bool(args.cert and args.key),
            "socket_timeout": config.socket_timeout,
            "shutdown_grace_seconds": config.shutdown_grace_seconds,
            "max_workers": config.max_workers,
        },
    )
    run_server(args, config, lifecycle, service)


if __name__ == "__main__":
    main()
