"""Tests for :mod:`tshero.modules.parser.naming`."""

from __future__ import annotations

from pathlib import Path

import pytest

from tshero.modules.parser.naming import (
    absolute_library_name,
    is_workspace_path,
    module_path_for,
    namespace_alias,
    relative_library_name,
    strip_trailing_index,
)


@pytest.mark.parametrize(
    ("file_path", "expected"),
    [
        ("/repo/src/models/user.ts", "/src/models/user"),
        ("/repo/src/models/index.ts", "/src/models"),
        ("/repo/src/view.tsx", "/src/view"),
        ("/repo/typings/globals.d.ts", "/typings/globals"),
        ("/repo/index.ts", "/"),
        ("/repo/node_modules/lodash/index.d.ts", "lodash"),
        ("/repo/node_modules/@types/node/fs.d.ts", "node/fs"),
        ("/repo/node_modules/@scope/pkg/pkg.d.ts", "@scope/pkg"),
        ("/repo/node_modules/rxjs/operators/index.d.ts", "rxjs/operators"),
    ],
)
def test_module_path_for(file_path: str, expected: str) -> None:
    assert module_path_for(Path(file_path), Path("/repo")) == expected


def test_relative_import_normalizes_to_workspace_absolute_path() -> None:
    assert (
        absolute_library_name(
            "./anotherFile", Path("/root/src/myFile.ts"), Path("/root")
        )
        == "/src/anotherFile"
    )


@pytest.mark.parametrize(
    ("library", "expected"),
    [
        ("../index", "/src"),
        ("./models/index", "/src/app/models"),
        ("../../lib/util.ts", "/lib/util"),
        ("lodash", "lodash"),
        ("/src/shared", "/src/shared"),
    ],
)
def test_absolute_library_name(library: str, expected: str) -> None:
    file_path = Path("/repo/src/app/main.ts")

    assert absolute_library_name(library, file_path, Path("/repo")) == expected


def test_relative_specifiers_from_different_files_compare_equal() -> None:
    root = Path("/repo")

    first = absolute_library_name("../models", root / "src/app/a.ts", root)
    second = absolute_library_name("./models", root / "src/b.ts", root)

    assert first == second == "/src/models"


@pytest.mark.parametrize(
    ("module", "file_path", "expected"),
    [
        ("/src/models", "/repo/src/main.ts", "./models"),
        ("/src/models", "/repo/src/app/main.ts", "../models"),
        ("/src", "/repo/src/app/main.ts", ".."),
        ("/src/app/helpers/format", "/repo/src/app/main.ts", "./helpers/format"),
        ("@angular/core", "/repo/src/main.ts", "@angular/core"),
    ],
)
def test_relative_library_name(module: str, file_path: str, expected: str) -> None:
    assert relative_library_name(module, Path(file_path), Path("/repo")) == expected


def test_strip_trailing_index() -> None:
    assert strip_trailing_index("/src/util/index") == "/src/util"
    assert strip_trailing_index("/index") == "/"
    assert strip_trailing_index("./index") == "."
    assert strip_trailing_index("/src/indexer") == "/src/indexer"


@pytest.mark.parametrize(
    ("library", "expected"),
    [
        ("lodash", "lodash"),
        ("lodash-es", "lodashEs"),
        ("@angular/core", "angularCore"),
        ("date_fns.locale", "dateFnsLocale"),
    ],
)
def test_namespace_alias(library: str, expected: str) -> None:
    assert namespace_alias(library) == expected


def test_is_workspace_path() -> None:
    assert is_workspace_path("./local")
    assert is_workspace_path("../up")
    assert is_workspace_path("/src/abs")
    assert not is_workspace_path("react")
    assert not is_workspace_path("@scope/pkg")
