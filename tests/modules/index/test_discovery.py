"""Tests for :mod:`tshero.modules.index.discovery`."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from tshero.core.config import GitignoreBehavior
from tshero.modules.index import ModuleDiscovery, WorkspaceDiscovery


@pytest.fixture
def layout(
    project: Path,
    write_source: Callable[[str, str], Path],
) -> Path:
    write_source("src/main.ts", "export const main = 1;\n")
    write_source("src/view.tsx", "export const View = 1;\n")
    write_source("src/styles.css", "body {}\n")
    write_source("src/generated/api.ts", "export const api = 1;\n")
    write_source("dist/main.js", "exports.main = 1;\n")
    write_source("dist/main.d.ts", "export declare const main: number;\n")
    write_source("node_modules/lib/index.d.ts", "export declare const x: 1;\n")
    write_source(".gitignore", "src/generated/\n")
    return project


def _relative(paths: tuple[Path, ...], root: Path) -> list[str]:
    return [path.relative_to(root).as_posix() for path in paths]


def test_combined_behavior_applies_patterns_and_gitignore(layout: Path) -> None:
    discovery = WorkspaceDiscovery(
        root=layout,
        ignore_patterns=("dist", "node_modules"),
    )

    assert _relative(discovery.discover(), layout) == [
        "src/main.ts",
        "src/view.tsx",
    ]


def test_workspace_behavior_ignores_repository_gitignore(layout: Path) -> None:
    discovery = WorkspaceDiscovery(
        root=layout,
        gitignore_behavior=GitignoreBehavior.WORKSPACE,
        ignore_patterns=("dist", "node_modules"),
    )

    assert _relative(discovery.discover(), layout) == [
        "src/generated/api.ts",
        "src/main.ts",
        "src/view.tsx",
    ]


def test_repo_behavior_ignores_configured_patterns(layout: Path) -> None:
    discovery = WorkspaceDiscovery(
        root=layout,
        gitignore_behavior=GitignoreBehavior.REPO,
        ignore_patterns=("dist", "node_modules"),
        extensions=(".ts",),
    )

    assert _relative(discovery.discover(), layout) == [
        "dist/main.d.ts",
        "node_modules/lib/index.d.ts",
        "src/main.ts",
    ]


def test_nested_gitignore_is_relative_to_its_directory(
    project: Path,
    write_source: Callable[[str, str], Path],
) -> None:
    write_source("packages/app/src/keep.ts", "export const keep = 1;\n")
    write_source("packages/app/src/skip.ts", "export const skip = 1;\n")
    write_source("packages/app/.gitignore", "/src/skip.ts\n")

    discovery = WorkspaceDiscovery(root=project)

    assert _relative(discovery.discover(), project) == [
        "packages/app/src/keep.ts",
    ]


def test_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        WorkspaceDiscovery(root=tmp_path / "missing")


@pytest.fixture
def libraries(
    project: Path,
    write_source: Callable[[str, str], Path],
) -> Path:
    write_source(
        "package.json",
        json.dumps(
            {
                "dependencies": {"@angular/core": "^17.0.0"},
                "devDependencies": {"lib-a": "1.0.0", "missing-lib": "2.0.0"},
            }
        ),
    )
    write_source("node_modules/@angular/core/index.d.ts", "export {};\n")
    write_source("node_modules/@angular/core/src/di.d.ts", "export {};\n")
    write_source("node_modules/@angular/core/bundle.js", "module.exports = {};\n")
    write_source(
        "node_modules/@angular/core/node_modules/tslib/tslib.d.ts", "export {};\n"
    )
    write_source("node_modules/lib-a/lib-a.d.ts", "export {};\n")
    write_source("node_modules/lib-a/test/spec.d.ts", "export {};\n")
    write_source("node_modules/unlisted/index.d.ts", "export {};\n")
    write_source("typings/globals.d.ts", "declare const VERSION: string;\n")
    write_source("typings/vendor/lib-x.d.ts", "declare module 'lib-x' {}\n")
    write_source("typings/notes.ts", "export {};\n")
    return project


def test_module_discovery_follows_package_manifest(libraries: Path) -> None:
    discovery = ModuleDiscovery(
        root=libraries,
        ignore_patterns=("node_modules", "test/"),
    )

    assert discovery.dependencies() == ("@angular/core", "lib-a", "missing-lib")
    assert _relative(discovery.discover(), libraries) == [
        "typings/globals.d.ts",
        "typings/vendor/lib-x.d.ts",
        "node_modules/@angular/core/index.d.ts",
        "node_modules/@angular/core/src/di.d.ts",
        "node_modules/lib-a/lib-a.d.ts",
    ]


def test_module_discovery_without_manifest_only_reads_typings(
    project: Path,
    write_source: Callable[[str, str], Path],
) -> None:
    write_source("node_modules/lib-a/index.d.ts", "export {};\n")
    write_source("typings/globals.d.ts", "declare const VERSION: string;\n")

    discovery = ModuleDiscovery(root=project)

    assert discovery.dependencies() == ()
    assert _relative(discovery.discover(), project) == ["typings/globals.d.ts"]


def test_module_discovery_tolerates_malformed_manifest(
    project: Path,
    write_source: Callable[[str, str], Path],
) -> None:
    write_source("package.json", "{not json")
    write_source("node_modules/lib-a/index.d.ts", "export {};\n")

    discovery = ModuleDiscovery(root=project)

    assert discovery.discover() == ()


def test_module_discovery_rejects_escaping_package_names(
    project: Path,
    write_source: Callable[[str, str], Path],
) -> None:
    write_source(
        "package.json",
        json.dumps({"dependencies": {"../outside": "1.0.0", "ok": "1.0.0"}}),
    )

    assert ModuleDiscovery(root=project).dependencies() == ("ok",)
