"""Per-request correlation ids carried through log records via contextvars."""

import contextvars
import logging
import uuid
from typing import Any, MutableMapping, Optional

ROOT_LOGGER_NAME = "finder"

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def generate_correlation_id() -> str:
    """Generate a new correlation ID using UUID4."""
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


def component_for(logger_name: str) -> str:
    """Strip the project prefix from a logger name."""
    prefix = f"{ROOT_LOGGER_NAME}."
    if logger_name.startswith(prefix):
        return logger_name[len(prefix) :]
    return logger_name


class CorrelationLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that injects the correlation id and component into records."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        correlation_id = get_correlation_id()
        extra["correlation_id"] = correlation_id if correlation_id is not None else "-"
        extra["component"] = component_for(self.logger.name)
        kwargs["extra"] = extra
        return msg, kwargs
