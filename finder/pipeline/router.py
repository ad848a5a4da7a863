"""Request routing logic."""

import logging
from typing import Optional

from finder.bootstrap.config import CONNECTOR_PATH, HEALTHZ_PATH, SECURITY_HEADERS
from finder.domain.correlation_id import CorrelationLoggerAdapter
from finder.domain.http_types import HttpRequest, HttpResponse
from finder.domain.response_builders import not_found_response
from finder.handlers.finder_handler import handle_connector
from finder.handlers.system_handlers import handle_healthz
from finder.lifecycle.state import ServerLifecycle
from finder.volume.service import FinderService

ROUTER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("finder.pipeline.router"), {}
)


def _log_match(route: str) -> None:
    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug(
            "Route matched", extra={"event": "route_matched", "route": route}
        )


def route_request(
    request: HttpRequest,
    service: FinderService,
    principal_header: str,
    lifecycle: Optional[ServerLifecycle] = None,
) -> HttpResponse:
    """Route the request to the appropriate handler and return a response."""
    if request.path == HEALTHZ_PATH:
        _log_match(HEALTHZ_PATH)
        return handle_healthz(lifecycle)

    if request.path in (CONNECTOR_PATH, CONNECTOR_PATH + "/"):
        _log_match(CONNECTOR_PATH)
        return handle_connector(request, service, principal_header)

    ROUTER_LOGGER.info(
        "No matching route found",
        extra={
            "event": "route_not_found",
            "route": request.path,
            "method": request.method,
        },
    )
    return not_found_response(request, SECURITY_HEADERS)
