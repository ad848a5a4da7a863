"""Connector endpoint: turns ``/finder`` requests into volume queries."""

import logging
import time
import uuid
from typing import Optional

from finder.bootstrap.config import SECURITY_HEADERS
from finder.domain.correlation_id import CorrelationLoggerAdapter
from finder.domain.http_types import HttpRequest, HttpResponse
from finder.domain.response_builders import (
    connector_error_response,
    finder_error_response,
    json_response,
)
from finder.volume.errors import FinderError, PathEscape
from finder.volume.queries import (
    IdentifierTarget,
    InfoQuery,
    InitializeQuery,
    NavigateQuery,
    OpenQuery,
    PathTarget,
    Target,
)
from finder.volume.service import KNOWN_COMMANDS, FinderService

FINDER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("finder.handlers.finder"), {}
)

TRUTHY = {"1", "true", "yes", "on"}


class InvalidParams(Exception):
    """Raised when the query string does not describe a valid command."""


def principal_from_headers(
    headers: dict[str, str], principal_header: str
) -> Optional[uuid.UUID]:
    """Return the authenticated principal or None when absent or malformed."""
    raw = headers.get(principal_header.lower(), "").strip()
    if not raw:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        return None


def target_from_request(request: HttpRequest) -> Optional[Target]:
    """Read ``target`` (an identifier) or ``path`` (relative path text)."""
    identifier = request.query_value("target")
    if identifier:
        return IdentifierTarget(identifier)
    path = request.query_value("path")
    if path is not None:
        return PathTarget(path)
    return None


def parse_open_query(request: HttpRequest, principal: uuid.UUID) -> OpenQuery:
    """Build an initialize or navigate query from the request parameters."""
    target = target_from_request(request)
    init = (request.query_value("init") or "").lower() in TRUTHY
    if init:
        return InitializeQuery(principal, target)
    if target is None:
        raise InvalidParams("open requires target or path unless init is set")
    return NavigateQuery(principal, target)


def parse_info_query(request: HttpRequest, principal: uuid.UUID) -> InfoQuery:
    identifiers = request.query_values("targets[]") or request.query_values("targets")
    if not identifiers:
        raise InvalidParams("info requires targets[]")
    return InfoQuery(principal, tuple(IdentifierTarget(i) for i in identifiers))


def _log_failure(error: FinderError, command: str) -> None:
    if isinstance(error, PathEscape):
        FINDER_LOGGER.warning(
            "Request rejected: path escapes volume",
            extra={"event": "path_escape", "command": command},
        )
    elif error.code == "errFileNotFound":
        FINDER_LOGGER.info(
            "Entry not found",
            extra={"event": "entry_not_found", "command": command},
        )
    else:
        FINDER_LOGGER.warning(
            "Command failed",
            extra={
                "event": "command_failed",
                "command": command,
                "error_type": type(error).__name__,
            },
        )


def _dispatch(
    request: HttpRequest, service: FinderService, principal: uuid.UUID, command: str
) -> HttpResponse:
    if command == "open":
        result = service.open(parse_open_query(request, principal))
        return json_response(
            "HTTP/1.1 200 OK",
            result.to_dict(),
            request,
            SECURITY_HEADERS,
            FINDER_LOGGER,
        )
    if command == "info":
        entries = service.info(parse_info_query(request, principal))
        return json_response(
            "HTTP/1.1 200 OK",
            {"files": [entry.to_dict() for entry in entries]},
            request,
            SECURITY_HEADERS,
            FINDER_LOGGER,
        )
    service.ensure_supported(principal, command)
    # A command advertised by the volume but without a handler here.
    raise InvalidParams(f"No handler for {command}")


def handle_connector(
    request: HttpRequest, service: FinderService, principal_header: str
) -> HttpResponse:
    """Run the ``cmd`` named in the query string for the calling principal."""
    start = time.perf_counter()
    principal = principal_from_headers(request.headers, principal_header)
    if principal is None:
        FINDER_LOGGER.warning(
            "Missing or malformed principal", extra={"event": "principal_rejected"}
        )
        return connector_error_response(
            "HTTP/1.1 401 Unauthorized", "errPerm", request, SECURITY_HEADERS
        )

    command = request.query_value("cmd") or ""
    if command not in KNOWN_COMMANDS:
        FINDER_LOGGER.info(
            "Unknown command", extra={"event": "command_unknown", "command": command}
        )
        return connector_error_response(
            "HTTP/1.1 400 Bad Request", "errUnknownCmd", request, SECURITY_HEADERS
        )

    try:
        response = _dispatch(request, service, principal, command)
    except InvalidParams:
        FINDER_LOGGER.info(
            "Invalid command parameters",
            extra={"event": "invalid_params", "command": command},
        )
        return connector_error_response(
            "HTTP/1.1 400 Bad Request", "errCmdParams", request, SECURITY_HEADERS
        )
    except FinderError as error:
        _log_failure(error, command)
        return finder_error_response(error, request, SECURITY_HEADERS)

    FINDER_LOGGER.info(
        "Command complete",
        extra={
            "event": "command_complete",
            "command": command,
            "status_code": response.status_code,
            "duration_ms": int((time.perf_counter() - start) * 1000),
        },
    )
    return response
