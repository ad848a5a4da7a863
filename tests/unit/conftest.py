"""Shared fixtures for unit tests."""

import logging
import uuid
from pathlib import Path

import pytest

from finder.volume.registry import VolumeConfig, VolumeRegistry
from finder.volume.service import FinderService
from finder.volume.types import Volume


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Ensure logs propagate to root so caplog can catch them."""
    logger = logging.getLogger("finder")
    old_propagate = logger.propagate
    old_level = logger.level
    old_handlers = list(logger.handlers)
    logger.propagate = True
    yield
    for handler in logger.handlers:
        if handler not in old_handlers:
            handler.close()
    logger.handlers[:] = old_handlers
    logger.setLevel(old_level)
    logger.propagate = old_propagate


@pytest.fixture(name="sandbox_root")
def sandbox_root_fixture(tmp_path: Path) -> Path:
    root = tmp_path / "sandbox"
    root.mkdir()
    return root.resolve()


@pytest.fixture(name="registry")
def registry_fixture(sandbox_root: Path) -> VolumeRegistry:
    return VolumeRegistry(VolumeConfig(sandbox_root=sandbox_root))


@pytest.fixture(name="service")
def service_fixture(registry: VolumeRegistry) -> FinderService:
    return FinderService(registry)


@pytest.fixture(name="volume")
def volume_fixture(registry: VolumeRegistry) -> Volume:
    """An empty volume for a fresh principal."""
    return registry.resolve_volume(uuid.uuid4())
