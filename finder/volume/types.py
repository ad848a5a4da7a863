"""Volume and entry descriptor types."""

import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

API_VERSION = 2.1

MIME_DIRECTORY = "directory"
MIME_FILE = "file"

SUPPORTED_COMMANDS = frozenset({"open", "info"})


@dataclass(frozen=True)
class Volume:
    """A principal's sandbox root and the commands it supports."""

    principal: uuid.UUID
    root: Path
    volume_id: str
    commands: frozenset[str] = SUPPORTED_COMMANDS

    def supports(self, command: str) -> bool:
        """Return True when the volume implements ``command``."""
        return command in self.commands


@dataclass(frozen=True)
class EntryDescriptor:
    """Protocol-facing description of a single filesystem entry."""

    # pylint: disable=too-many-instance-attributes
    name: str
    hash: str
    phash: Optional[str]
    mime: str
    ts: int
    size: int
    read: int
    write: int
    dirs: Optional[int] = None
    locked: int = 0
    isowner: bool = True
    volumeid: Optional[str] = None

    @property
    def is_dir(self) -> bool:
        return self.mime == MIME_DIRECTORY

    def to_dict(self) -> dict[str, Any]:
        """Serialize using elFinder wire keys, omitting absent fields."""
        payload: dict[str, Any] = {
            "name": self.name,
            "hash": self.hash,
            "mime": self.mime,
            "ts": self.ts,
            "size": self.size,
            "read": self.read,
            "write": self.write,
            "locked": self.locked,
            "isowner": self.isowner,
        }
        if self.phash is not None:
            payload["phash"] = self.phash
        if self.dirs is not None:
            payload["dirs"] = self.dirs
        if self.volumeid is not None:
            payload["volumeid"] = self.volumeid
        return payload


@dataclass
class OpenResult:
    """Result of an ``open`` command."""

    cwd: EntryDescriptor
    files: list[EntryDescriptor]
    options: Optional[dict[str, Any]] = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "api": API_VERSION,
            "cwd": self.cwd.to_dict(),
            "files": [entry.to_dict() for entry in self.files],
        }
        if self.options is not None:
            payload["options"] = self.options
        return payload
