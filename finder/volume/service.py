"""Connector commands executed against a principal's volume."""

import logging
import uuid
from pathlib import Path

from finder.domain.correlation_id import CorrelationLoggerAdapter
from finder.volume import identifiers, lister, metadata, resolver
from finder.volume.errors import NotADirectory, Unsupported
from finder.volume.queries import (
    IdentifierTarget,
    InfoQuery,
    InitializeQuery,
    OpenQuery,
    PathTarget,
    Target,
)
from finder.volume.registry import VolumeRegistry
from finder.volume.types import EntryDescriptor, OpenResult, Volume

SERVICE_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("finder.volume.service"), {}
)

# Commands elFinder clients send; anything not in Volume.commands is disabled.
KNOWN_COMMANDS = frozenset(
    {
        "open",
        "info",
        "tree",
        "parents",
        "ls",
        "file",
        "mkdir",
        "mkfile",
        "rm",
        "rename",
        "duplicate",
        "paste",
        "upload",
        "get",
        "put",
        "archive",
        "extract",
        "search",
        "resize",
        "chmod",
        "dim",
        "size",
        "tmb",
    }
)


class FinderService:
    """Runs the read-only connector commands."""

    def __init__(self, registry: VolumeRegistry) -> None:
        self._registry = registry

    def volume_for(self, principal: uuid.UUID) -> Volume:
        return self._registry.resolve_volume(principal)

    def require_command(self, volume: Volume, command: str) -> None:
        """Raise ``Unsupported`` when the volume does not implement ``command``."""
        if not volume.supports(command):
            SERVICE_LOGGER.info(
                "Unsupported command requested",
                extra={"event": "command_unsupported", "command": command},
            )
            raise Unsupported(f"Command not supported: {command}")

    @staticmethod
    def resolve_target(volume: Volume, target: Target) -> Path:
        if isinstance(target, IdentifierTarget):
            return identifiers.decode(volume, target.identifier)
        if isinstance(target, PathTarget):
            return resolver.resolve(volume, target.path)
        raise TypeError(f"Unknown target type: {type(target).__name__}")

    def open(self, query: OpenQuery) -> OpenResult:
        """List a directory and describe it as the current working directory."""
        volume = self.volume_for(query.principal)
        self.require_command(volume, "open")

        if query.target is None:
            path = volume.root
        else:
            path = self.resolve_target(volume, query.target)

        cwd = metadata.describe(volume, path)
        if not cwd.is_dir:
            raise NotADirectory(
                f"Not a directory: {identifiers.relative_path(volume, path)!r}"
            )
        files = lister.list_children(volume, path)

        options = None
        if isinstance(query, InitializeQuery):
            options = {
                "path": "/" + identifiers.relative_path(volume, path),
                "separator": "/",
                "disabled": sorted(KNOWN_COMMANDS - volume.commands),
            }
        SERVICE_LOGGER.info(
            "Directory opened",
            extra={
                "event": "directory_opened",
                "volume_id": volume.volume_id,
                "init": isinstance(query, InitializeQuery),
                "entries": len(files),
            },
        )
        return OpenResult(cwd=cwd, files=files, options=options)

    def info(self, query: InfoQuery) -> list[EntryDescriptor]:
        """Describe each requested target."""
        volume = self.volume_for(query.principal)
        self.require_command(volume, "info")
        return [
            metadata.describe(volume, self.resolve_target(volume, target))
            for target in query.targets
        ]

    def ensure_supported(self, principal: uuid.UUID, command: str) -> None:
        """Raise ``Unsupported`` unless the principal's volume has ``command``."""
        volume = self.volume_for(principal)
        self.require_command(volume, command)
