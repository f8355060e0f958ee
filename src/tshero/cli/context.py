"""Shared workspace/config/logging bootstrap for ``tshero`` commands."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn

import typer
from pydantic import ValidationError

from tshero.core.config import (
    AppConfig,
    load_config,
    load_packaged_defaults,
    read_user_config,
)
from tshero.core.logging import (
    Logger,
    bind_command_context,
    configure_logging,
    get_logger,
)
from tshero.core.paths import WorkspacePaths, resolve_workspace

ENV_WORKSPACE = "TSHERO_WORKSPACE"
ENV_LOG_LEVEL = "TSHERO_LOG_LEVEL"


@dataclass(slots=True)
class CLIContext:
    """Resolved state shared by a single command invocation."""

    paths: WorkspacePaths
    config: AppConfig
    logger: Logger

    def resolve_file(self, file: Path) -> Path:
        """Return ``file`` as an absolute path inside the workspace.

        Raises:
            typer.Exit: If the file is missing or outside the workspace.
        """

        candidate = file.expanduser()
        if not candidate.is_absolute():
            candidate = Path.cwd() / candidate
        candidate = candidate.resolve(strict=False)
        if not candidate.is_file():
            fail(f"File not found: {candidate}")
        if not candidate.is_relative_to(self.paths.workspace):
            fail(
                f"File {candidate} is outside the workspace "
                f"{self.paths.workspace}."
            )
        return candidate


def fail(message: str, *, error: BaseException | None = None) -> NoReturn:
    """Print ``message`` in red and exit with status 1."""

    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from error


def resolve_paths(workspace: Path | None) -> WorkspacePaths:
    env_workspace = os.environ.get(ENV_WORKSPACE)
    env_override = Path(env_workspace).expanduser() if env_workspace else None
    try:
        return resolve_workspace(
            workspace_override=workspace,
            env_override=env_override,
        )
    except ValueError as exc:
        fail(f"Workspace error: {exc}", error=exc)


def env_config() -> dict[str, Any] | None:
    level = os.environ.get(ENV_LOG_LEVEL)
    return {"log_level": level} if level else None


def load_context(
    *,
    workspace: Path | None,
    log_level: str | None,
    command: str,
) -> CLIContext:
    """Resolve the workspace, load ``tshero.toml`` and configure logging.

    Precedence: CLI flags > ``TSHERO_*`` environment > ``tshero.toml`` >
    packaged defaults. A missing ``tshero.toml`` is not an error; the
    defaults apply.
    """

    paths = resolve_paths(workspace)
    if not paths.workspace.is_dir():
        fail(f"Workspace directory not found: {paths.workspace}")

    cli_overrides: dict[str, Any] = {"workspace": str(paths.workspace)}
    if log_level:
        cli_overrides["log_level"] = log_level

    try:
        config = load_config(
            defaults=load_packaged_defaults(),
            user_config=read_user_config(paths.config_file),
            env_config=env_config(),
            cli_overrides=cli_overrides,
        )
    except (RuntimeError, ValidationError) as exc:
        fail(f"Failed to load workspace config: {exc}", error=exc)

    try:
        configure_logging(level=config.log_level, logs_dir=paths.logs_dir)
    except ValueError as exc:
        fail(f"Invalid log level: {exc}", error=exc)

    bind_command_context(command=command, workspace=str(paths.workspace))
    logger = get_logger(__name__)
    return CLIContext(paths=paths, config=config, logger=logger)


__all__ = [
    "CLIContext",
    "ENV_LOG_LEVEL",
    "ENV_WORKSPACE",
    "env_config",
    "fail",
    "load_context",
    "resolve_paths",
]
