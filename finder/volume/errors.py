"""Error taxonomy for volume operations."""

import errno


class FinderError(Exception):
    """Base class for every failure raised by the volume layer."""

    code = "errUnknown"


class PathEscape(FinderError):
    """Raised when a requested path resolves outside the volume root."""

    code = "errFileNotFound"


class NotFound(FinderError):
    """Raised when the requested entry does not exist."""

    code = "errFileNotFound"


class InvalidIdentifier(NotFound):
    """Raised when an identifier is malformed or belongs to another volume."""


class DanglingParent(NotFound):
    """Raised when an entry's containing directory can no longer be confirmed."""


class NotADirectory(FinderError):
    """Raised when a directory was expected."""

    code = "errNotFolder"


class IoFailure(FinderError):
    """Wraps an unexpected filesystem fault."""

    code = "errOpen"


class DataAnomaly(IoFailure):
    """Raised when filesystem metadata is out of range, such as a pre-epoch mtime."""


class StorageUnavailable(FinderError):
    """Raised when the sandbox root itself cannot be used."""

    code = "errConf"


class Unsupported(FinderError):
    """Raised for commands this connector does not implement."""

    code = "errCmdNoSupport"


def translate_os_error(error: OSError, rel_path: str) -> FinderError:
    """Map an ``OSError`` to the matching volume error."""
    if isinstance(error, FileNotFoundError):
        return NotFound(f"Not found: {rel_path!r}")
    if error.errno == errno.ELOOP:
        return NotFound(f"Symlink loop: {rel_path!r}")
    if isinstance(error, NotADirectoryError):
        return NotADirectory(f"Not a directory: {rel_path!r}")
    return IoFailure(f"{type(error).__name__} on {rel_path!r}")
