"""Unit tests for request routing."""

import logging
import uuid

from finder.domain.http_types import HttpRequest
from finder.lifecycle.state import ServerLifecycle
from finder.pipeline.router import route_request
from finder.volume.service import FinderService


def make_request(path: str, query=None, headers=None) -> HttpRequest:
    return HttpRequest("GET", path, headers or {}, b"", query or {})


def test_healthz_is_ok_while_serving(service: FinderService) -> None:
    """Health checks answer 200 with an empty body."""
    response = route_request(make_request("/healthz"), service, "x-principal-id")
    assert response.status_line == "HTTP/1.1 200 OK"
    assert response.body == b""
    assert "Strict-Transport-Security" in response.headers


def test_healthz_reports_draining(service: FinderService) -> None:
    """Health checks answer 503 once draining begins."""
    lifecycle = ServerLifecycle(max_workers=1)
    lifecycle.begin_draining()
    try:
        response = route_request(
            make_request("/healthz"), service, "x-principal-id", lifecycle
        )
    finally:
        lifecycle.wait_for_workers(0)
    assert response.status_code == 503
    assert response.body == b"draining"
    assert response.close_connection


def test_connector_path_with_and_without_trailing_slash(
    service: FinderService,
) -> None:
    """Both spellings of the connector path reach the handler."""
    headers = {"x-principal-id": str(uuid.uuid4())}
    query = {"cmd": ["open"], "init": ["1"]}
    for path in ("/finder", "/finder/"):
        response = route_request(
            make_request(path, query, headers), service, "x-principal-id"
        )
        assert response.status_code == 200


def test_unknown_route_is_not_found(service: FinderService, caplog) -> None:
    """Anything else is a 404 and is logged."""
    caplog.set_level(logging.INFO, logger="finder")
    response = route_request(make_request("/files/secret"), service, "x-principal-id")

    assert response.status_code == 404
    assert response.body == b""
    record = next(
        r for r in caplog.records if getattr(r, "event", None) == "route_not_found"
    )
    assert record.route == "/files/secret"
