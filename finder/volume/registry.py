"""Principal to volume mapping with lazy, race-tolerant creation."""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from finder.domain.correlation_id import CorrelationLoggerAdapter
from finder.volume.errors import StorageUnavailable
from finder.volume.types import Volume

REGISTRY_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("finder.volume.registry"), {}
)


def principal_dirname(principal: uuid.UUID) -> str:
    """Render a principal id as a fixed-width, filesystem-safe directory name."""
    return principal.hex


def volume_id_for(principal: uuid.UUID) -> str:
    """Return the identifier prefix used for a principal's volume."""
    return f"v{principal.hex}_"


@dataclass(frozen=True)
class VolumeConfig:
    """Where volumes live and how principals map to directory names."""

    sandbox_root: Path
    naming: Callable[[uuid.UUID], str] = field(default=principal_dirname)


def ensure_sandbox_root(sandbox_root: Path) -> Path:
    """Create the sandbox root if needed and return its canonical path."""
    try:
        sandbox_root.mkdir(parents=True, exist_ok=True)
        canonical = sandbox_root.resolve(strict=True)
    except OSError as error:
        raise StorageUnavailable(
            f"Sandbox root unusable: {type(error).__name__}"
        ) from error
    if not canonical.is_dir():
        raise StorageUnavailable("Sandbox root is not a directory")
    return canonical


class VolumeRegistry:
    """Hands out one volume per principal under a shared sandbox root."""

    def __init__(self, config: VolumeConfig) -> None:
        self._config = config
        self._lock = threading.Lock()
        self._volumes: dict[uuid.UUID, Volume] = {}

    @property
    def sandbox_root(self) -> Path:
        return self._config.sandbox_root

    def _canonical_sandbox_root(self) -> Path:
        try:
            root = self._config.sandbox_root.resolve(strict=True)
        except OSError as error:
            REGISTRY_LOGGER.error(
                "Sandbox root unavailable",
                extra={
                    "event": "sandbox_unavailable",
                    "error_type": type(error).__name__,
                },
            )
            raise StorageUnavailable("Sandbox root unavailable") from error
        if not root.is_dir():
            REGISTRY_LOGGER.error(
                "Sandbox root is not a directory",
                extra={
                    "event": "sandbox_unavailable",
                    "error_type": "NotADirectory",
                },
            )
            raise StorageUnavailable("Sandbox root is not a directory")
        return root

    def _create_volume_dir(self, path: Path) -> None:
        try:
            path.mkdir(exist_ok=True)
        except FileExistsError:
            # A non-directory occupies the name.
            raise StorageUnavailable("Volume path is not a directory") from None
        except OSError as error:
            raise StorageUnavailable(
                f"Volume creation failed: {type(error).__name__}"
            ) from error
        if not path.is_dir():
            raise StorageUnavailable("Volume path is not a directory")

    def resolve_volume(self, principal: uuid.UUID) -> Volume:
        """Return the principal's volume, creating its directory on first use."""
        with self._lock:
            cached = self._volumes.get(principal)
        if cached is not None and cached.root.is_dir():
            return cached

        root = self._canonical_sandbox_root()
        volume_root = root / self._config.naming(principal)
        created = not volume_root.exists()
        self._create_volume_dir(volume_root)

        volume = Volume(
            principal=principal,
            root=volume_root.resolve(),
            volume_id=volume_id_for(principal),
        )
        with self._lock:
            volume = self._volumes.setdefault(principal, volume)
        if created:
            REGISTRY_LOGGER.info(
                "Volume created",
                extra={"event": "volume_created", "volume_id": volume.volume_id},
            )
        return volume
