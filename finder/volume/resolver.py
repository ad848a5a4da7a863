"""Containment-checked path resolution inside a volume."""

import logging
from pathlib import Path

from finder.domain.correlation_id import CorrelationLoggerAdapter
from finder.volume.errors import NotFound, PathEscape, translate_os_error
from finder.volume.types import Volume

RESOLVER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("finder.volume.resolver"), {}
)


def is_contained(root: Path, candidate: Path) -> bool:
    """Return True when ``candidate`` is ``root`` or one of its descendants."""
    return candidate == root or root in candidate.parents


def resolve(volume: Volume, requested_path: str) -> Path:
    """Resolve a caller-supplied relative path inside the volume.

    The joined path is canonicalized first (``.``, ``..`` and symlinks) and
    only then compared against the canonical root. Paths that do not exist
    yet resolve as long as their canonical form stays inside the root.
    A canonical path holds no symlinks, so one that still does has hit a
    loop and reads as a missing entry.
    """
    if "\x00" in requested_path:
        raise PathEscape("Path contains a NUL byte")

    root = volume.root.resolve()
    relative_part = requested_path.lstrip("/")
    try:
        target = (root / relative_part).resolve()
        looped = any(
            candidate.is_symlink()
            for candidate in (target, *target.parents)
            if candidate != root and is_contained(root, candidate)
        )
    except RuntimeError:
        looped = True
    except OSError as error:
        raise translate_os_error(error, requested_path) from error
    if looped:
        RESOLVER_LOGGER.info(
            "Symlink loop while resolving path",
            extra={"event": "symlink_loop", "requested_path": requested_path},
        )
        raise NotFound(f"Symlink loop: {requested_path!r}")
    if not is_contained(root, target):
        RESOLVER_LOGGER.warning(
            "Path escapes volume root",
            extra={"event": "path_escape", "requested_path": requested_path},
        )
        raise PathEscape("Path escapes volume root")

    if RESOLVER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        RESOLVER_LOGGER.debug(
            "Path resolved",
            extra={"event": "path_resolved", "requested_path": requested_path},
        )
    return target
