"""Pure HTTP response builders."""

import gzip
import json
from typing import Any, Optional, Tuple

from finder.domain.http_types import HttpRequest, HttpResponse, should_close
from finder.volume.errors import (
    FinderError,
    IoFailure,
    NotADirectory,
    NotFound,
    PathEscape,
    StorageUnavailable,
    Unsupported,
)

# Order matters: subclasses must precede their bases.
ERROR_STATUS_LINES: tuple[tuple[type[FinderError], str], ...] = (
    (PathEscape, "HTTP/1.1 404 Not Found"),
    (NotFound, "HTTP/1.1 404 Not Found"),
    (NotADirectory, "HTTP/1.1 400 Bad Request"),
    (StorageUnavailable, "HTTP/1.1 503 Service Unavailable"),
    (Unsupported, "HTTP/1.1 501 Not Implemented"),
    (IoFailure, "HTTP/1.1 500 Internal Server Error"),
)


def accepts_gzip(headers: dict[str, str]) -> bool:
    """Return True when the Accept-Encoding header includes gzip with q>0."""
    encodings = headers.get("accept-encoding", "")
    for token in encodings.split(","):
        value = token.strip()
        if not value:
            continue
        algorithm, _, params = value.partition(";")
        if algorithm.strip().lower() != "gzip":
            continue
        quality = 1.0
        for param in params.split(";") if params else []:
            key, _, raw_value = param.strip().partition("=")
            if key.lower() == "q" and raw_value:
                try:
                    quality = float(raw_value)
                except ValueError:
                    quality = 0.0
                break
        if quality > 0:
            return True
    return False


def compress_if_gzip_supported(
    payload: bytes, headers: dict[str, str], compression_logger
) -> Tuple[bytes, dict[str, str]]:
    """Compress the payload when the request advertises gzip support."""
    if not accepts_gzip(headers):
        return payload, {}
    compression_logger.debug(
        "Compressed payload",
        extra={"event": "payload_compressed", "bytes_in": len(payload)},
    )
    return gzip.compress(payload), {"Content-Encoding": "gzip"}


def json_response(
    status_line: str,
    payload: Any,
    request: Optional[HttpRequest],
    security_headers: dict[str, str],
    compression_logger=None,
) -> HttpResponse:
    """Serialize ``payload`` as JSON, gzip-compressed when the client accepts it."""
    body = json.dumps(payload, separators=(",", ":")).encode()
    encoding_headers: dict[str, str] = {}
    if request is not None and compression_logger is not None:
        body, encoding_headers = compress_if_gzip_supported(
            body, request.headers, compression_logger
        )
    headers = {
        "Content-Type": "application/json; charset=utf-8",
        **encoding_headers,
        **security_headers,
    }
    close = should_close(request.headers) if request is not None else True
    return HttpResponse(status_line, headers, body, close)


def error_status_line(error: FinderError) -> str:
    """Return the status line for a volume error."""
    for error_type, status_line in ERROR_STATUS_LINES:
        if isinstance(error, error_type):
            return status_line
    return "HTTP/1.1 500 Internal Server Error"


def finder_error_response(
    error: FinderError, request: HttpRequest, security_headers: dict[str, str]
) -> HttpResponse:
    """Map a volume error to a connector error body.

    Escapes and misses share the same status and body so a caller cannot
    probe where the sandbox ends.
    """
    response = json_response(
        error_status_line(error), {"error": error.code}, request, security_headers
    )
    if isinstance(error, StorageUnavailable):
        response.headers["Retry-After"] = "1"
    return response


def connector_error_response(
    status_line: str,
    code: str,
    request: Optional[HttpRequest],
    security_headers: dict[str, str],
) -> HttpResponse:
    """Produce a connector error outside the volume error taxonomy."""
    return json_response(status_line, {"error": code}, request, security_headers)


def not_found_response(
    request: HttpRequest, security_headers: dict[str, str]
) -> HttpResponse:
    """Return a 404 response reusing the connection preference."""
    return HttpResponse(
        "HTTP/1.1 404 Not Found",
        security_headers.copy(),
        b"",
        should_close(request.headers),
    )


def bad_request_response(
    request: Optional[HttpRequest], security_headers: dict[str, str]
) -> HttpResponse:
    """Produce a 400 response honoring the caller's connection preference."""
    return HttpResponse(
        "HTTP/1.1 400 Bad Request",
        security_headers.copy(),
        b"",
        should_close(request.headers) if request is not None else True,
    )


def entity_too_large_response(security_headers: dict[str, str]) -> HttpResponse:
    """Produce a 413 response that always closes the connection."""
    return HttpResponse(
        "HTTP/1.1 413 Payload Too Large", security_headers.copy(), b"", True
    )


def method_not_allowed_response(
    request: HttpRequest, security_headers: dict[str, str], allowed_methods
) -> HttpResponse:
    """Produce a 405 response enumerating the supported HTTP methods."""
    headers = {"Allow": ", ".join(sorted(allowed_methods)), **security_headers}
    return HttpResponse(
        "HTTP/1.1 405 Method Not Allowed",
        headers,
        b"",
        should_close(request.headers),
    )


def draining_response(security_headers: dict[str, str]) -> HttpResponse:
    """Produce a 503 response indicating the server is draining."""
    headers = {"Connection": "close", **security_headers}
    return HttpResponse("HTTP/1.1 503 Service Unavailable", headers, b"draining", True)


def healthz_response(
    is_draining: bool, security_headers: dict[str, str]
) -> HttpResponse:
    """Produce a health check response based on server state."""
    if is_draining:
        return draining_response(security_headers)
    return HttpResponse("HTTP/1.1 200 OK", security_headers.copy(), b"", False)
