"""Workspace path helpers for :mod:`tshero`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

__all__ = [
    "STATE_DIRNAME",
    "WorkspacePaths",
    "resolve_workspace",
]

STATE_DIRNAME = ".tshero"


@dataclass(frozen=True, slots=True)
class WorkspacePaths:
    """Resolved locations for a TypeScript workspace.

    The workspace is the project root whose sources get indexed; tool state
    lives in a hidden directory below it.

    Example:
        >>> from pathlib import Path
        >>> from tshero.core.paths import WorkspacePaths
        >>> paths = WorkspacePaths(
        ...     workspace=Path("/tmp/app"),
        ...     config_file=Path("/tmp/app/tshero.toml"),
        ...     state_dir=Path("/tmp/app/.tshero"),
        ...     logs_dir=Path("/tmp/app/.tshero/logs"),
        ...     cache_dir=Path("/tmp/app/.tshero/cache"),
        ... )
        >>> paths.index_cache.name
        'declaration-index.json'
    """

    workspace: Path
    config_file: Path
    state_dir: Path
    logs_dir: Path
    cache_dir: Path

    @property
    def index_cache(self) -> Path:
        """Return the location of the serialized declaration index."""

        return self.cache_dir / "declaration-index.json"

    def iter_state_dirs(self) -> Iterable[Path]:
        """Yield the directories managed by ``tshero`` inside the workspace."""

        yield from (self.state_dir, self.logs_dir, self.cache_dir)

    def ensure_directories(self) -> None:
        """Create the state directories if they are missing."""

        for directory in self.iter_state_dirs():
            directory.mkdir(parents=True, exist_ok=True)


def resolve_workspace(
    *,
    workspace_override: Path | None = None,
    env_override: Path | None = None,
) -> WorkspacePaths:
    """Resolve canonical workspace locations.

    Args:
        workspace_override: Optional override provided by CLI flags.
        env_override: Optional override from ``TSHERO_WORKSPACE``.

    Returns:
        Resolved workspace paths; the current directory is used when no
        override is supplied.

    Raises:
        ValueError: If the resolved workspace points to a regular file.
    """

    base = workspace_override or env_override or Path.cwd()
    raw = Path(base).expanduser()
    if not raw.is_absolute():
        raw = Path.cwd() / raw
    workspace = raw.resolve(strict=False)

    if workspace.exists() and workspace.is_file():
        raise ValueError(f"Workspace file path not allowed: {workspace}")

    state_dir = workspace / STATE_DIRNAME
    return WorkspacePaths(
        workspace=workspace,
        config_file=workspace / "tshero.toml",
        state_dir=state_dir,
        logs_dir=state_dir / "logs",
        cache_dir=state_dir / "cache",
    )
