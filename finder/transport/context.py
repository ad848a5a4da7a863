"""Context object shared across worker threads."""

from dataclasses import dataclass
from typing import Optional

from finder.bootstrap.config import ServerConfig
from finder.lifecycle.state import ServerLifecycle
from finder.volume.service import FinderService


@dataclass
class WorkerContext:
    """Dependencies shared across handler threads."""

    service: FinderService
    config: ServerConfig
    lifecycle: Optional[ServerLifecycle] = None
