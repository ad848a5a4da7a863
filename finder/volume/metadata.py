"""Entry descriptor synthesis from filesystem metadata."""

import logging
import os
import stat
from pathlib import Path
from typing import Optional

from finder.domain.correlation_id import CorrelationLoggerAdapter
from finder.volume import identifiers
from finder.volume.errors import (
    DanglingParent,
    DataAnomaly,
    IoFailure,
    NotFound,
    translate_os_error,
)
from finder.volume.resolver import is_contained
from finder.volume.types import MIME_DIRECTORY, MIME_FILE, EntryDescriptor, Volume

METADATA_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("finder.volume.metadata"), {}
)

READ_BITS = stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH
WRITE_BITS = stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH


def has_subdirectories(path: Path) -> bool:
    """Return True as soon as one immediate child is a directory.

    Children are not followed through symlinks. A directory that cannot be
    read reports no subdirectories.
    """
    try:
        with os.scandir(path) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    return True
    except PermissionError:
        return False
    return False


def modified_millis(st: os.stat_result, rel_path: str) -> int:
    """Return the modification time in milliseconds since the epoch."""
    millis = st.st_mtime_ns // 1_000_000
    if millis < 0:
        raise DataAnomaly(f"Modification time before epoch for {rel_path!r}")
    return millis


def parent_identifier(volume: Volume, path: Path) -> Optional[str]:
    """Return the parent's identifier, or None when ``path`` is the volume root.

    Raises:
        DanglingParent: the containing directory no longer exists.
    """
    if path == volume.root:
        return None
    parent = path.parent
    if not parent.is_dir():
        raise DanglingParent(
            f"Parent of {identifiers.relative_path(volume, path)!r} is missing"
        )
    return identifiers.encode(volume, parent)


def _stat_entry(
    volume: Volume, path: Path, rel_path: str
) -> tuple[os.stat_result, bool]:
    """Stat ``path``, following symlinks only to live targets inside the volume.

    A link that cannot be followed to a live entry inside the volume is
    described from the link itself and reported as not followed.
    """
    try:
        if not path.is_symlink():
            return path.stat(), True
        link_stat = path.lstat()
    except OSError as error:
        raise translate_os_error(error, rel_path) from error

    event = "symlink_escape"
    try:
        if is_contained(volume.root, path.resolve()):
            return path.stat(), True
    except (OSError, RuntimeError):
        event = "symlink_unresolved"
    METADATA_LOGGER.info(
        "Symlink described from link",
        extra={"event": event, "rel_path": rel_path},
    )
    return link_stat, False


def synthesize(
    volume: Volume, path: Path, phash: Optional[str]
) -> EntryDescriptor:
    """Build a descriptor for ``path`` with an already known parent identifier."""
    rel_path = identifiers.relative_path(volume, path)
    st, followed = _stat_entry(volume, path, rel_path)
    is_dir = followed and stat.S_ISDIR(st.st_mode)

    if is_dir:
        try:
            dirs = 1 if has_subdirectories(path) else 0
        except OSError as error:
            raise translate_os_error(error, rel_path) from error
    else:
        dirs = None

    readable = 1 if followed and st.st_mode & READ_BITS else 0
    writable = 1 if followed and st.st_mode & WRITE_BITS else 0

    return EntryDescriptor(
        name=path.name,
        hash=identifiers.encode(volume, path),
        phash=phash,
        mime=MIME_DIRECTORY if is_dir else MIME_FILE,
        ts=modified_millis(st, rel_path),
        size=0 if is_dir else int(st.st_size),
        read=readable,
        write=writable,
        dirs=dirs,
        volumeid=volume.volume_id if is_dir else None,
    )


def describe(volume: Volume, path: Path) -> EntryDescriptor:
    """Describe a single entry inside the volume.

    Raises:
        NotFound: the entry does not exist.
        DanglingParent: the entry's parent could not be confirmed.
        IoFailure: any other filesystem error.
    """
    if not os.path.lexists(path):
        raise NotFound(f"Not found: {identifiers.relative_path(volume, path)!r}")
    try:
        phash = parent_identifier(volume, path)
    except OSError as error:
        raise IoFailure(f"{type(error).__name__} while checking parent") from error
    return synthesize(volume, path, phash)
