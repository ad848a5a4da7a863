"""Opaque, reversible identifiers for paths inside a volume.

An identifier is the volume id followed by the unpadded URL-safe base64 of the
entry's path relative to the volume root, written with a leading ``/``. The
root itself is ``/``, so its identifier ends in ``Lw``.

Decoding canonicalizes through symlinks, so ``decode(encode(p)) == p`` holds
for canonical paths only. The identifier of an in-volume link such as
``alias -> real`` decodes to ``real``, and opening it reports the target
directory as ``cwd``.
"""

import base64
import binascii
import os
from pathlib import Path, PurePosixPath

from finder.volume import resolver
from finder.volume.errors import InvalidIdentifier, PathEscape
from finder.volume.types import Volume


def relative_path(volume: Volume, path: Path) -> str:
    """Return ``path`` relative to the volume root as POSIX text.

    The root is returned as the empty string.
    """
    try:
        relative = path.relative_to(volume.root)
    except ValueError:
        raise PathEscape("Path is not under the volume root") from None
    text = relative.as_posix()
    return "" if text == "." else text


def encode(volume: Volume, path: Path) -> str:
    """Encode an absolute path under the volume root as an identifier."""
    raw = os.fsencode("/" + relative_path(volume, path))
    token = base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
    return f"{volume.volume_id}{token}"


def decode_relative(volume: Volume, identifier: str) -> str:
    """Decode an identifier back to its relative path text without resolving it."""
    if not identifier.startswith(volume.volume_id):
        raise InvalidIdentifier("Identifier does not belong to this volume")
    token = identifier[len(volume.volume_id) :]
    padding = "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode((token + padding).encode("ascii"))
    except (binascii.Error, UnicodeEncodeError, ValueError):
        raise InvalidIdentifier("Identifier is not valid base64") from None
    text = os.fsdecode(raw)
    if not text.startswith("/"):
        raise InvalidIdentifier("Identifier does not encode a volume path")
    return str(PurePosixPath(text)).lstrip("/")


def decode(volume: Volume, identifier: str) -> Path:
    """Decode an identifier and re-check containment of the resulting path."""
    return resolver.resolve(volume, decode_relative(volume, identifier))
