"""Tagged connector queries."""

import uuid
from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class PathTarget:
    """A target given as path text relative to the volume root."""

    path: str


@dataclass(frozen=True)
class IdentifierTarget:
    """A target given as an identifier previously handed to the client."""

    identifier: str


Target = Union[PathTarget, IdentifierTarget]


@dataclass(frozen=True)
class InitializeQuery:
    """Open the volume, at ``target`` when given and at the root otherwise."""

    principal: uuid.UUID
    target: Optional[Target] = None


@dataclass(frozen=True)
class NavigateQuery:
    """Open an explicit directory."""

    principal: uuid.UUID
    target: Target


@dataclass(frozen=True)
class InfoQuery:
    """Describe one or more entries."""

    principal: uuid.UUID
    targets: tuple[Target, ...]


OpenQuery = Union[InitializeQuery, NavigateQuery]
