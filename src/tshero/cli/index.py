"""Index build and cache helpers behind ``tshero index``."""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError

from tshero.cli.context import CLIContext, fail
from tshero.modules.index import (
    DeclarationIndex,
    DeclarationIndexError,
    DeclarationIndexSnapshot,
    IndexBuildReport,
    ModuleDiscovery,
    WorkspaceDiscovery,
    resolve_concurrency,
)


def build_index(
    context: CLIContext,
    *,
    concurrency: int | None = None,
) -> tuple[DeclarationIndex, IndexBuildReport]:
    """Discover workspace sources and library typings, then index them."""

    settings = context.config.index
    discovery = WorkspaceDiscovery(
        root=context.paths.workspace,
        gitignore_behavior=settings.gitignore_behavior,
        ignore_patterns=settings.ignore_patterns,
        extensions=settings.extensions,
    )
    modules = ModuleDiscovery(
        root=context.paths.workspace,
        ignore_patterns=settings.module_ignore_patterns,
        logger=context.logger,
    )
    files = tuple(dict.fromkeys((*discovery.discover(), *modules.discover())))
    context.logger.debug("index-files-discovered", files=len(files))
    workers = resolve_concurrency(
        concurrency or settings.max_concurrency,
        target_count=len(files),
    )
    index = DeclarationIndex(context.paths.workspace)
    report = index.build(files, max_workers=workers)
    return index, report


def write_snapshot(index: DeclarationIndex, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(index.snapshot().model_dump_json(indent=2), encoding="utf-8")


def read_snapshot(path: Path) -> DeclarationIndexSnapshot:
    """Load a cached snapshot.

    Raises:
        DeclarationIndexError: If the cache is unreadable or malformed.
    """

    try:
        return DeclarationIndexSnapshot.model_validate_json(
            path.read_text(encoding="utf-8")
        )
    except (OSError, ValidationError) as exc:
        raise DeclarationIndexError(
            f"Failed to read index cache {path}: {exc}"
        ) from exc


def emit_failures(report: IndexBuildReport, workspace: Path) -> None:
    for failure in report.failures:
        try:
            shown = failure.path.relative_to(workspace)
        except ValueError:
            shown = failure.path
        typer.secho(
            f"  skipped {shown}: {failure.error}",
            fg=typer.colors.YELLOW,
            err=True,
        )


def load_index(context: CLIContext, *, rebuild: bool = False) -> DeclarationIndex:
    """Return the cached index, building (and caching) it when needed."""

    cache = context.paths.index_cache
    if not rebuild and cache.exists():
        try:
            snapshot = read_snapshot(cache)
            index = DeclarationIndex.from_snapshot(
                snapshot, root=context.paths.workspace
            )
        except DeclarationIndexError as exc:
            context.logger.warning(
                "index-cache-invalid", path=str(cache), error=str(exc)
            )
        else:
            context.logger.debug(
                "index-cache-loaded", path=str(cache), keys=len(index)
            )
            return index

    try:
        index, report = build_index(context)
    except (FileNotFoundError, NotADirectoryError) as exc:
        fail(f"Indexing failed: {exc}", error=exc)
    emit_failures(report, context.paths.workspace)
    write_snapshot(index, cache)
    return index


__all__ = [
    "build_index",
    "emit_failures",
    "load_index",
    "read_snapshot",
    "write_snapshot",
]
