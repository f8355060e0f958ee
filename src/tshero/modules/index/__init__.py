"""Workspace declaration index."""

from __future__ import annotations

from .discovery import ModuleDiscovery, WorkspaceDiscovery
from .errors import DeclarationIndexError
from .models import (
    DeclarationIndexPartial,
    DeclarationIndexSnapshot,
    DeclarationInfo,
    IndexBuildFailure,
    IndexBuildReport,
)
from .service import DeclarationIndex, resolve_concurrency

__all__ = [
    "DeclarationIndex",
    "DeclarationIndexError",
    "DeclarationIndexPartial",
    "DeclarationIndexSnapshot",
    "DeclarationInfo",
    "IndexBuildFailure",
    "IndexBuildReport",
    "ModuleDiscovery",
    "WorkspaceDiscovery",
    "resolve_concurrency",
]
