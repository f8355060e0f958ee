"""Data structures exposed by the declaration index."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, Field

from tshero.modules.parser.models import Declaration

__all__ = [
    "DeclarationIndexPartial",
    "DeclarationIndexSnapshot",
    "DeclarationInfo",
    "IndexBuildFailure",
    "IndexBuildReport",
]


@dataclass(frozen=True, slots=True)
class DeclarationInfo:
    """A declaration paired with the module it can be imported from.

    ``origin`` is a workspace-absolute module path (``/src/models``) for
    workspace files and a package name (``lodash``) for libraries.
    """

    declaration: Declaration
    origin: str

    @property
    def name(self) -> str:
        return self.declaration.name


class DeclarationIndexPartial(BaseModel):
    """Transport form of one index key and its declarations."""

    index: str
    infos: tuple[DeclarationInfo, ...] = ()

    model_config = {"frozen": True}


class DeclarationIndexSnapshot(BaseModel):
    """Serializable image of a whole index, persisted by the CLI."""

    root: str
    generation: int = 0
    files: tuple[str, ...] = ()
    partials: tuple[DeclarationIndexPartial, ...] = ()

    model_config = {"frozen": True}


@dataclass(frozen=True, slots=True)
class IndexBuildFailure:
    """A file skipped during a build because it could not be extracted."""

    path: Path
    error: str


@dataclass(slots=True)
class IndexBuildReport:
    """Outcome of :meth:`DeclarationIndex.build`."""

    indexed: tuple[Path, ...] = ()
    failures: tuple[IndexBuildFailure, ...] = field(default_factory=tuple)
    cancelled: bool = False
    generation: int = 0

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)
