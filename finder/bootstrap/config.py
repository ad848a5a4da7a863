"""Server configuration and CLI argument parsing."""

import argparse
import os
from dataclasses import dataclass
from pathlib import Path

from finder.volume.registry import VolumeConfig


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


MAX_BODY_BYTES = _env_int("FINDER_MAX_BODY_BYTES", 64 * 1024)
DEFAULT_FINDER_ROOT = _env_str("FINDER_ROOT", "./finder-root")
DEFAULT_PRINCIPAL_HEADER = _env_str("FINDER_PRINCIPAL_HEADER", "X-Principal-Id")
DEFAULT_MAX_WORKERS = _env_int("FINDER_MAX_WORKERS", 32)
DEFAULT_SOCKET_TIMEOUT = _env_int("FINDER_SOCKET_TIMEOUT", 60)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_int("FINDER_SHUTDOWN_GRACE_SECONDS", 30)

HEADER_DELIMITER = b"\r\n\r\n"
CONNECTOR_PATH = "/finder"
HEALTHZ_PATH = "/healthz"
ALLOWED_METHODS = {"GET"}

SECURITY_HEADERS = {
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains",
    "Content-Security-Policy": "default-src 'self'",
    "X-Content-Type-Options": "nosniff",
    "Cache-Control": "no-store",
}


@dataclass
class ServerConfig:
    """Runtime knobs shared by the accept loop and workers."""

    socket_timeout: int
    shutdown_grace_seconds: int
    max_workers: int
    principal_header: str


def build_server_config(args: argparse.Namespace) -> ServerConfig:
    return ServerConfig(
        socket_timeout=args.socket_timeout,
        shutdown_grace_seconds=args.shutdown_grace_seconds,
        max_workers=max(1, args.max_workers),
        principal_header=args.principal_header.lower(),
    )


def build_volume_config(args: argparse.Namespace) -> VolumeConfig:
    return VolumeConfig(sandbox_root=Path(args.finder_root).expanduser())


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(description="Sandboxed file manager connector")
    parser.add_argument(
        "--finder-root",
        default=DEFAULT_FINDER_ROOT,
        help="Directory holding one volume per principal (env FINDER_ROOT)",
    )
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--port", type=int, default=4221)
    parser.add_argument("--cert", help="Path to TLS certificate file")
    parser.add_argument("--key", help="Path to TLS private key file")
    parser.add_argument(
        "--principal-header",
        default=DEFAULT_PRINCIPAL_HEADER,
        help="Trusted header carrying the authenticated principal UUID",
    )
    default_log_level = os.getenv("FINDER_LOG_LEVEL", "INFO").upper()
    default_destination = os.getenv("FINDER_LOG_DESTINATION", "stdout")
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stdout or a file path",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=DEFAULT_MAX_WORKERS,
        help="Size of the worker pool serving connections",
    )
    parser.add_argument(
        "--socket-timeout",
        type=int,
        default=DEFAULT_SOCKET_TIMEOUT,
        help="Socket timeout in seconds for request processing",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=int,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Grace period in seconds for graceful shutdown",
    )
    return parser.parse_args(argv)
