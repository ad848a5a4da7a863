"""System handlers: health checks."""

import logging
from typing import Optional

from finder.bootstrap.config import SECURITY_HEADERS
from finder.domain.correlation_id import CorrelationLoggerAdapter
from finder.domain.http_types import HttpResponse
from finder.domain.response_builders import healthz_response
from finder.lifecycle.state import ServerLifecycle

SYSTEM_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("finder.handlers.system"), {}
)


def handle_healthz(lifecycle: Optional[ServerLifecycle]) -> HttpResponse:
    """Handle /healthz requests with current server state."""
    is_draining = lifecycle.is_draining() if lifecycle is not None else False
    if SYSTEM_LOGGER.logger.isEnabledFor(logging.DEBUG):
        SYSTEM_LOGGER.debug(
            "Health check performed",
            extra={"event": "healthz_check", "draining": is_draining},
        )
    return healthz_response(is_draining, SECURITY_HEADERS)
