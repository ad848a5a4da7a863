"""One-level directory enumeration."""

import logging
import os
from pathlib import Path

from finder.domain.correlation_id import CorrelationLoggerAdapter
from finder.volume import identifiers, metadata
from finder.volume.errors import NotADirectory, NotFound, translate_os_error
from finder.volume.types import EntryDescriptor, Volume

LISTER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("finder.volume.lister"), {}
)


def list_children(volume: Volume, path: Path) -> list[EntryDescriptor]:
    """Describe every immediate child of the directory at ``path``.

    Order follows the filesystem and is not guaranteed. A child removed
    between enumeration and stat is no longer present and is skipped.
    """
    rel_path = identifiers.relative_path(volume, path)
    if not path.exists():
        raise NotFound(f"Not found: {rel_path!r}")
    if not path.is_dir():
        raise NotADirectory(f"Not a directory: {rel_path!r}")

    phash = identifiers.encode(volume, path)
    try:
        with os.scandir(path) as entries:
            names = [entry.name for entry in entries]
    except OSError as error:
        raise translate_os_error(error, rel_path) from error

    children: list[EntryDescriptor] = []
    for name in names:
        child = path / name
        try:
            children.append(metadata.synthesize(volume, child, phash))
        except NotFound:
            if os.path.lexists(child):
                raise
            if LISTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
                LISTER_LOGGER.debug(
                    "Child vanished during listing",
                    extra={"event": "child_vanished", "rel_path": rel_path},
                )
    if LISTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        LISTER_LOGGER.debug(
            "Directory listed",
            extra={
                "event": "directory_listed",
                "rel_path": rel_path,
                "entries": len(children),
            },
        )
    return children
