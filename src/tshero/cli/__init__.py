"""Command-line interface primitives for :mod:`tshero`.

This module exposes the Typer application behind the ``tshero`` console
script and wires the commands into the index, resolver and import services.

Example:
    >>> import typer
    >>> from tshero.cli import create_app
    >>> app = create_app()
    >>> isinstance(app, typer.Typer)
    True
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError

from tshero.cli.context import env_config, fail, load_context, resolve_paths
from tshero.cli.imports import run_organize, run_resolve
from tshero.cli.index import build_index, emit_failures, write_snapshot
from tshero.cli.init import init_workspace
from tshero.core.config import DEFAULTS_RESOURCE_NAME
from tshero.core.logging import (
    bind_command_context,
    configure_logging,
    get_logger,
)

_app_help = (
    "Index TypeScript declarations, add missing imports and organize import "
    "blocks."
    "\n\n"
    "Use `tshero init` inside a project to write `tshero.toml`."
)

_WORKSPACE_HELP = (
    "Project root to operate on (defaults to TSHERO_WORKSPACE or the "
    "current directory)."
)
_LOG_LEVEL_HELP = "Override the logging level (DEBUG/INFO/WARNING/ERROR)."


def create_app() -> "typer.Typer":
    """Return the Typer application powering the ``tshero`` CLI.

    Example:
        >>> import typer
        >>> from tshero.cli import create_app
        >>> cli = create_app()
        >>> isinstance(cli, typer.Typer)
        True
    """

    app = typer.Typer(
        help=_app_help,
        no_args_is_help=True,
        rich_markup_mode="rich",
        invoke_without_command=False,
        cls=typer.core.TyperGroup,
    )

    @app.callback()
    def main_callback() -> None:
        """Top-level CLI callback ensuring subcommands are dispatched."""

        return None

    @app.command("init", help="Seed tshero.toml and the state directory.")
    def init_command(
        workspace: Path | None = typer.Option(
            None, "--workspace", "-w", help=_WORKSPACE_HELP
        ),
        force: bool = typer.Option(
            False,
            "--force",
            help="Overwrite an existing tshero.toml with regenerated values.",
        ),
        log_level: str | None = typer.Option(
            None, "--log-level", "-l", help=_LOG_LEVEL_HELP
        ),
    ) -> None:
        """Initialize (or refresh) the project configuration."""

        paths = resolve_paths(workspace)
        existing = paths.config_file.exists()

        try:
            config = init_workspace(
                workspace=paths.workspace,
                force=force,
                log_level=log_level,
                env_overrides=env_config(),
            )
        except (OSError, RuntimeError, ValidationError) as exc:
            fail(f"Failed to initialize workspace: {exc}", error=exc)

        try:
            configure_logging(level=config.log_level, logs_dir=paths.logs_dir)
        except ValueError as exc:
            fail(f"Invalid log level: {exc}", error=exc)
        bind_command_context(command="init", workspace=str(config.workspace))
        logger = get_logger(__name__)
        logger.info("init-complete", force=force)

        typer.secho("Workspace initialized", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  workspace: {config.workspace}")
        typer.echo(f"  config: {paths.config_file}")
        typer.echo(f"  defaults: packaged resource ({DEFAULTS_RESOURCE_NAME})")
        typer.echo(f"  log level: {config.log_level}")
        if existing and not force:
            typer.echo("  note: existing tshero.toml left untouched")

    @app.command("index", help="Index workspace declarations and cache them.")
    def index_command(
        workspace: Path | None = typer.Option(
            None, "--workspace", "-w", help=_WORKSPACE_HELP
        ),
        concurrency: int | None = typer.Option(
            None,
            "--concurrency",
            "-c",
            min=1,
            help="Worker threads used for extraction (overrides config).",
        ),
        log_level: str | None = typer.Option(
            None, "--log-level", "-l", help=_LOG_LEVEL_HELP
        ),
    ) -> None:
        """Build the declaration index and persist it under ``.tshero``."""

        context = load_context(
            workspace=workspace, log_level=log_level, command="index"
        )
        try:
            index, report = build_index(context, concurrency=concurrency)
        except (FileNotFoundError, NotADirectoryError) as exc:
            fail(f"Indexing failed: {exc}", error=exc)

        emit_failures(report, context.paths.workspace)
        try:
            write_snapshot(index, context.paths.index_cache)
        except OSError as exc:
            fail(f"Failed to write index cache: {exc}", error=exc)

        typer.secho(
            f"Indexed {len(report.indexed)} file(s), {len(index)} name(s)",
            fg=typer.colors.GREEN,
        )
        if report.has_failures:
            typer.secho(
                f"{len(report.failures)} file(s) could not be parsed",
                fg=typer.colors.YELLOW,
            )
        typer.echo(f"  cache: {context.paths.index_cache}")

    @app.command("resolve", help="List the imports a file is missing.")
    def resolve_command(
        file: Path = typer.Argument(..., help="TypeScript file to inspect."),
        apply: bool = typer.Option(
            False,
            "--apply",
            help="Add the unambiguous (and chosen) imports to the file.",
        ),
        choose: list[str] = typer.Option(
            None,
            "--choose",
            metavar="NAME=MODULE",
            help="Pick the module for an ambiguous name.",
        ),
        rebuild: bool = typer.Option(
            False,
            "--rebuild",
            help="Rebuild the index instead of reading the cache.",
        ),
        workspace: Path | None = typer.Option(
            None, "--workspace", "-w", help=_WORKSPACE_HELP
        ),
        log_level: str | None = typer.Option(
            None, "--log-level", "-l", help=_LOG_LEVEL_HELP
        ),
    ) -> None:
        """Resolve unbound usages of ``FILE`` against the declaration index."""

        context = load_context(
            workspace=workspace, log_level=log_level, command="resolve"
        )
        run_resolve(
            context,
            file,
            apply=apply,
            choices=choose or (),
            rebuild=rebuild,
        )

    @app.command("organize", help="Organize the import block of a file.")
    def organize_command(
        file: Path = typer.Argument(..., help="TypeScript file to organize."),
        write: bool = typer.Option(
            False,
            "--write",
            help="Rewrite the file instead of printing the import block.",
        ),
        workspace: Path | None = typer.Option(
            None, "--workspace", "-w", help=_WORKSPACE_HELP
        ),
        log_level: str | None = typer.Option(
            None, "--log-level", "-l", help=_LOG_LEVEL_HELP
        ),
    ) -> None:
        """Remove unused imports, merge duplicates and regroup the rest."""

        context = load_context(
            workspace=workspace, log_level=log_level, command="organize"
        )
        run_organize(context, file, write=write)

    return app


__all__ = ["create_app"]
