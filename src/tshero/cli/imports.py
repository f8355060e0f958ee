"""Helpers behind ``tshero resolve`` and ``tshero organize``."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import typer

from tshero.cli.context import CLIContext, fail
from tshero.cli.index import load_index
from tshero.modules.imports import ImportGroupError, ImportManager
from tshero.modules.parser import ParserError
from tshero.modules.resolver import (
    ImportUserDecision,
    MissingImportsReport,
    ResolverError,
    UsageResolver,
)


def _parse_choice(raw: str) -> tuple[str, str]:
    usage, sep, origin = raw.partition("=")
    if not sep or not usage.strip() or not origin.strip():
        raise typer.BadParameter(
            f"Expected NAME=MODULE, got {raw!r}",
            param_hint="--choose",
        )
    return usage.strip(), origin.strip()


def _open_manager(context: CLIContext, path: Path) -> ImportManager:
    try:
        return ImportManager.from_file(
            path,
            root=context.paths.workspace,
            settings=context.config.imports,
        )
    except ParserError as exc:
        fail(f"Cannot parse {path}: {exc}", error=exc)
    except ImportGroupError as exc:
        fail(f"Invalid import grouping: {exc}", error=exc)
    except (OSError, UnicodeDecodeError) as exc:
        fail(f"Cannot read {path}: {exc}", error=exc)


def _write(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        fail(f"Cannot write {path}: {exc}", error=exc)


def _emit_report(report: MissingImportsReport) -> None:
    if report.is_empty:
        typer.secho("No missing imports.", fg=typer.colors.GREEN)
        return
    for decision in report.resolvable:
        typer.echo(f"  {decision.usage}: {decision.declaration.origin}")
    for usage, candidates in report.ambiguous.items():
        choices = ", ".join(info.origin for info in candidates)
        typer.secho(f"  {usage}: ambiguous ({choices})", fg=typer.colors.YELLOW)
    for usage in report.unresolved:
        typer.secho(f"  {usage}: not found", fg=typer.colors.RED)


def run_resolve(
    context: CLIContext,
    file: Path,
    *,
    apply: bool = False,
    choices: Sequence[str] = (),
    rebuild: bool = False,
) -> MissingImportsReport:
    """List (and optionally add) the imports ``file`` is missing."""

    path = context.resolve_file(file)
    parsed_choices = [_parse_choice(raw) for raw in choices]
    manager = _open_manager(context, path)
    index = load_index(context, rebuild=rebuild)
    report = UsageResolver(index).missing_imports(manager.resource, path)
    _emit_report(report)

    decisions: list[ImportUserDecision] = list(report.resolvable)
    for usage, origin in parsed_choices:
        try:
            decisions.append(report.choose(usage, origin))
        except ResolverError as exc:
            fail(str(exc), error=exc)

    if apply and decisions:
        manager.add_decisions(decisions)
        updated = manager.commit()
        if updated != manager.source:
            _write(path, updated)
        context.logger.info(
            "resolve-applied", path=str(path), added=len(decisions)
        )
        typer.secho(
            f"Added {len(decisions)} import(s) to {path}",
            fg=typer.colors.GREEN,
        )
    return report


def run_organize(context: CLIContext, file: Path, *, write: bool = False) -> None:
    """Print the organized import block of ``file`` or write it back."""

    path = context.resolve_file(file)
    manager = _open_manager(context, path).organize_imports()
    edit = manager.calculate_edit()

    if not write:
        typer.echo(edit.text, nl=False)
        return

    if edit.is_noop(manager.source):
        typer.echo(f"Imports already organized in {path}")
        return
    _write(path, edit.apply(manager.source))
    context.logger.info("organize-written", path=str(path))
    typer.secho(f"Organized imports in {path}", fg=typer.colors.GREEN)


__all__ = ["run_organize", "run_resolve"]
