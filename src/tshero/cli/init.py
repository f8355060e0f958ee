"""Helpers for the ``tshero init`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from tshero.core.config import (
    AppConfig,
    load_config,
    load_packaged_defaults,
    read_user_config,
    render_user_config,
)
from tshero.core.paths import resolve_workspace


def init_workspace(
    *,
    workspace: Path,
    force: bool = False,
    log_level: str | None = None,
    env_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Create the state directories and seed ``tshero.toml``.

    Example:
        >>> from pathlib import Path
        >>> config = init_workspace(workspace=Path("/tmp/tshero-example"))
        >>> config.imports.tab_size
        4

    Args:
        workspace: Root directory of the TypeScript project.
        force: Rewrite ``tshero.toml`` even when it already exists.
        log_level: Optional override for the configured logging level.
        env_overrides: Settings derived from ``TSHERO_*`` variables.

    Returns:
        The resolved configuration after applying overrides.
    """

    paths = resolve_workspace(workspace_override=workspace)
    paths.workspace.mkdir(parents=True, exist_ok=True)
    paths.ensure_directories()

    cli_overrides: dict[str, Any] = {"workspace": str(paths.workspace)}
    if log_level:
        cli_overrides["log_level"] = log_level

    existing = None if force else read_user_config(paths.config_file)
    config = load_config(
        defaults=load_packaged_defaults(),
        user_config=existing,
        env_config=env_overrides,
        cli_overrides=cli_overrides,
    )

    if force or not paths.config_file.exists():
        paths.config_file.write_text(render_user_config(config), encoding="utf-8")

    return config


__all__ = ["init_workspace"]
