"""Tests for :mod:`tshero.modules.resolver.service`."""

from __future__ import annotations

from pathlib import Path

import pytest

from tshero.modules.index import DeclarationIndex
from tshero.modules.parser import (
    Declaration,
    DeclarationKind,
    Import,
    Resource,
    ResourceKind,
    SymbolSpecifier,
)
from tshero.modules.resolver import (
    MissingImportsReport,
    ResolverError,
    UsageResolver,
    filter_by_imports,
    resolve_missing,
)


def _exports(*names: str, kind: DeclarationKind = DeclarationKind.CLASS) -> Resource:
    return Resource(
        kind=ResourceKind.FILE,
        name="file.ts",
        declarations=[Declaration(kind, name, is_exported=True) for name in names],
    )


@pytest.fixture
def index(project: Path) -> DeclarationIndex:
    index = DeclarationIndex(project)
    index.update(project / "src/anotherFile.ts", _exports("Helper", "Shared"))
    index.update(project / "src/other.ts", _exports("Shared"))
    index.update(project / "src/myFile.ts", _exports("Local"))
    index.update(
        project / "src/defaults.ts",
        _exports("Widget", kind=DeclarationKind.DEFAULT),
    )
    return index


def test_relative_import_filters_already_imported_candidates(
    index: DeclarationIndex,
    project: Path,
) -> None:
    imports = [Import.named("./anotherFile", (SymbolSpecifier("Shared"),))]

    remaining = filter_by_imports(
        index.get("Shared"),
        imports,
        project / "src/myFile.ts",
        project,
    )

    assert [info.origin for info in remaining] == ["/src/other"]


def test_namespace_import_filters_every_candidate_of_module(
    index: DeclarationIndex,
    project: Path,
) -> None:
    imports = [Import.namespace("./anotherFile", "another")]

    remaining = filter_by_imports(
        index.get("Helper"),
        imports,
        project / "src/myFile.ts",
        project,
    )

    assert remaining == []


def test_default_import_filters_default_candidates(
    index: DeclarationIndex,
    project: Path,
) -> None:
    imports = [Import.named("./defaults", default_alias="Widget")]

    remaining = filter_by_imports(
        index.get("Widget"),
        imports,
        project / "src/myFile.ts",
        project,
    )

    assert remaining == []


def test_resolve_missing_maps_usages_to_candidates(
    index: DeclarationIndex,
    project: Path,
) -> None:
    imports = [Import.named("./anotherFile", (SymbolSpecifier("Helper"),))]

    result = resolve_missing(
        ["Helper", "Shared", "Unknown", "Local", "Shared"],
        imports,
        index,
        project / "src/myFile.ts",
        project,
    )

    assert list(result) == ["Shared", "Unknown", "Local"]
    assert [info.origin for info in result["Shared"]] == [
        "/src/anotherFile",
        "/src/other",
    ]
    assert result["Unknown"] == []
    # Declarations of the current file never become candidates.
    assert result["Local"] == []


def test_aliased_import_binds_local_name(
    index: DeclarationIndex,
    project: Path,
) -> None:
    imports = [
        Import.named("./other", (SymbolSpecifier("Shared", "Common"),)),
    ]

    result = resolve_missing(
        ["Common"],
        imports,
        index,
        project / "src/myFile.ts",
        project,
    )

    assert result == {}


def test_report_partitions_candidates(
    index: DeclarationIndex,
    project: Path,
) -> None:
    resource = Resource(
        kind=ResourceKind.FILE,
        name="main.ts",
        usages=["Helper", "Shared", "Missing"],
    )

    report = UsageResolver(index).missing_imports(
        resource, project / "src/main.ts"
    )

    assert [(d.usage, d.declaration.origin) for d in report.resolvable] == [
        ("Helper", "/src/anotherFile"),
    ]
    assert list(report.ambiguous) == ["Shared"]
    assert report.unresolved == ("Missing",)
    assert not report.is_empty

    decision = report.choose("Shared", "/src/other")
    assert decision.usage == "Shared"
    assert decision.declaration.origin == "/src/other"


def test_choose_rejects_unknown_choices(
    index: DeclarationIndex,
    project: Path,
) -> None:
    report = MissingImportsReport.from_result(
        resolve_missing(
            ["Shared", "Helper"],
            [],
            index,
            project / "src/main.ts",
            project,
        )
    )

    with pytest.raises(ResolverError, match="choose one of"):
        report.choose("Shared", "/src/nowhere")
    with pytest.raises(ResolverError, match="no ambiguous candidates"):
        report.choose("Helper", "/src/anotherFile")


def test_empty_report() -> None:
    assert MissingImportsReport().is_empty
    assert MissingImportsReport.from_result({}).is_empty
