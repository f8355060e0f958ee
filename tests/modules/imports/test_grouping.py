"""Tests for :mod:`tshero.modules.imports.grouping`."""

from __future__ import annotations

import re

import pytest

from tshero.modules.imports import (
    ImportGroupIdentifierInvalidError,
    ImportGroupKeyword,
    ImportGroupOrder,
    ImportGroupPolicy,
    ImportGroupPolicyError,
    KeywordImportGroup,
    RegexImportGroup,
    organize,
    parse_group_setting,
    sort_group_imports,
)
from tshero.modules.parser import GenerationOptions, Import, SymbolSpecifier


def _named(library: str, *names: str) -> Import:
    return Import.named(library, tuple(SymbolSpecifier(name) for name in names))


def test_workspace_group_renders_before_modules() -> None:
    policy = ImportGroupPolicy.from_settings(["Workspace", "Modules", "Remaining"])
    imports = [
        _named("lib-b", "b"),
        _named("./local", "local"),
        _named("lib-a", "a"),
    ]

    block = organize(imports, policy, GenerationOptions())

    assert block == (
        "import { local } from './local';\n"
        "\n"
        "import { a } from 'lib-a';\n"
        "import { b } from 'lib-b';\n"
    )


def test_regex_group_matches_library_names() -> None:
    group = parse_group_setting("/(@angular|react)/core/(.*)/")

    assert isinstance(group, RegexImportGroup)
    assert group.pattern.pattern == "(@angular|react)/core/(.*)"
    assert group.matches(_named("@angular/core/testing", "TestBed"))
    assert not group.matches(_named("@angular/common", "NgIf"))


def test_regex_flags_are_honored() -> None:
    group = parse_group_setting({"identifier": "/^RXJS/i", "order": "desc"})

    assert isinstance(group, RegexImportGroup)
    assert group.pattern.flags & re.IGNORECASE
    assert group.order is ImportGroupOrder.DESC
    assert group.matches(_named("rxjs/operators", "map"))


def test_keyword_tables_parse_order() -> None:
    group = parse_group_setting({"identifier": "Modules", "order": "semantic"})

    assert group == KeywordImportGroup(
        ImportGroupKeyword.MODULES, ImportGroupOrder.SEMANTIC
    )


@pytest.mark.parametrize(
    "identifier",
    ["Libraries", "", "/", "//", "/abc/x", "/(unclosed/"],
)
def test_invalid_identifiers_are_rejected(identifier: str) -> None:
    with pytest.raises(ImportGroupIdentifierInvalidError):
        parse_group_setting(identifier)


def test_invalid_order_is_rejected() -> None:
    with pytest.raises(ImportGroupPolicyError, match="invalid order"):
        parse_group_setting({"identifier": "Plains", "order": "random"})


@pytest.mark.parametrize(
    "settings",
    [
        ["Plains", "Modules"],
        ["Remaining", "Modules", "Remaining"],
    ],
)
def test_policy_requires_exactly_one_remaining(settings: list[str]) -> None:
    with pytest.raises(ImportGroupPolicyError):
        ImportGroupPolicy.from_settings(settings)


def test_classification_follows_configured_order() -> None:
    policy = ImportGroupPolicy.from_settings(
        ["/^@app/", "Modules", "Workspace", "Plains", "Remaining"]
    )
    imports = [
        Import.string("./polyfills"),
        _named("@app/shared", "Shared"),
        _named("rxjs", "of"),
        _named("../models", "User"),
        _named("https://cdn.example.com/lib.js", "cdn"),
        _named("/src/absolute", "Absolute"),
        _named("node:fs", "readFile"),
    ]

    groups = {
        group.identifier: [member.library_name for member in members]
        for group, members in policy.classify(imports)
    }

    assert groups == {
        "/^@app/": ["@app/shared"],
        "Modules": ["rxjs", "node:fs"],
        "Workspace": ["../models", "/src/absolute"],
        "Plains": ["./polyfills"],
        "Remaining": ["https://cdn.example.com/lib.js"],
    }


def test_string_imports_never_join_modules_or_workspace() -> None:
    policy = ImportGroupPolicy.from_settings(["Modules", "Workspace", "Remaining"])

    (_, modules), (_, workspace), (_, remaining) = policy.classify(
        [Import.string("reflect-metadata"), Import.string("./styles")]
    )

    assert modules == [] and workspace == []
    assert [i.library_name for i in remaining] == ["reflect-metadata", "./styles"]


def test_sort_orders() -> None:
    imports = [_named("b", "x"), _named("a", "y"), _named("c", "z")]
    descending = KeywordImportGroup(ImportGroupKeyword.MODULES, ImportGroupOrder.DESC)

    ordered = sort_group_imports(descending, imports)

    assert [i.library_name for i in ordered] == ["c", "b", "a"]


def test_semantic_order_puts_plains_then_modules_then_workspace() -> None:
    group = KeywordImportGroup(
        ImportGroupKeyword.REMAINING, ImportGroupOrder.SEMANTIC
    )
    imports = [
        _named("./b", "b"),
        _named("zlib", "z"),
        Import.string("./setup"),
        _named("axios", "a"),
    ]

    ordered = sort_group_imports(group, imports)

    assert [i.library_name for i in ordered] == ["./setup", "axios", "zlib", "./b"]


def test_catch_all_lists_string_imports_first() -> None:
    group = KeywordImportGroup(ImportGroupKeyword.REMAINING)
    imports = [_named("a-lib", "a"), Import.string("z-side-effect")]

    ordered = sort_group_imports(group, imports)

    assert [i.library_name for i in ordered] == ["z-side-effect", "a-lib"]


def test_sort_by_first_specifier_ignores_case() -> None:
    group = KeywordImportGroup(ImportGroupKeyword.MODULES)
    imports = [
        _named("lib-a", "zeta"),
        Import.namespace("lib-b", "Alpha"),
        _named("lib-c", "beta"),
    ]

    ordered = sort_group_imports(group, imports, by_first_specifier=True)

    assert [i.library_name for i in ordered] == ["lib-b", "lib-c", "lib-a"]


def test_organize_sorts_specifiers_and_skips_empty_groups() -> None:
    policy = ImportGroupPolicy.default()
    imports = [_named("react", "useState", "Component")]

    block = organize(imports, policy, GenerationOptions())

    assert block == "import { Component, useState } from 'react';\n"
    assert organize([], policy, GenerationOptions()) == ""


def test_organize_without_sorting_keeps_input_order() -> None:
    policy = ImportGroupPolicy.from_settings(["Remaining"])
    imports = [_named("b", "b"), _named("a", "a")]

    block = organize(imports, policy, GenerationOptions(), sort=False)

    assert block == "import { b } from 'b';\nimport { a } from 'a';\n"
