"""Tests for :mod:`tshero.modules.parser.extractor`."""

from __future__ import annotations

from pathlib import Path

import pytest

pytest.importorskip("tree_sitter_typescript")

from tshero.modules.parser import (  # noqa: E402
    DeclarationKind,
    ExportKind,
    ImportKind,
    NotParseableError,
    ResourceKind,
    SymbolSpecifier,
    TypeScriptExtractor,
    Visibility,
    extract,
)


@pytest.fixture
def extractor() -> TypeScriptExtractor:
    return TypeScriptExtractor()


def test_multi_declarator_statement_yields_one_declaration_each(
    extractor: TypeScriptExtractor,
) -> None:
    resource = extractor.extract("export let a = '', b = '';")

    assert [(d.kind, d.name, d.is_exported) for d in resource.declarations] == [
        (DeclarationKind.VARIABLE, "a", True),
        (DeclarationKind.VARIABLE, "b", True),
    ]
    assert not any(d.is_const for d in resource.declarations)


def test_import_statement_variants(extractor: TypeScriptExtractor) -> None:
    source = (
        "import 'reflect-metadata';\n"
        "import * as fs from 'fs';\n"
        "import React, { useState as useS, Component } from 'react';\n"
        "import lodash = require('lodash');\n"
        "import Widget from './widget';\n"
    )

    imports = extractor.extract(source).imports

    assert [(i.kind, i.library_name) for i in imports] == [
        (ImportKind.STRING, "reflect-metadata"),
        (ImportKind.NAMESPACE, "fs"),
        (ImportKind.NAMED, "react"),
        (ImportKind.EXTERNAL_MODULE, "lodash"),
        (ImportKind.NAMED, "./widget"),
    ]
    assert imports[1].alias == "fs"
    assert imports[2].default_alias == "React"
    assert imports[2].specifiers == (
        SymbolSpecifier("useState", "useS"),
        SymbolSpecifier("Component"),
    )
    assert imports[3].alias == "lodash"
    assert imports[4].default_alias == "Widget"
    assert imports[4].specifiers == ()
    first = imports[0]
    assert source.encode("utf-8")[first.start : first.end] == (
        b"import 'reflect-metadata';"
    )


def test_type_only_imports_keep_their_modifier(
    extractor: TypeScriptExtractor,
) -> None:
    source = (
        "import type { Config } from './config';\n"
        "import type * as Types from './types';\n"
        "import { type User, load } from './users';\n"
        "import { Store } from './store';\n"
    )

    imports = extractor.extract(source).imports

    assert [(i.kind, i.is_type_only) for i in imports] == [
        (ImportKind.NAMED, True),
        (ImportKind.NAMESPACE, True),
        (ImportKind.NAMED, False),
        (ImportKind.NAMED, False),
    ]
    assert imports[0].specifiers == (SymbolSpecifier("Config"),)
    assert imports[2].specifiers == (
        SymbolSpecifier("User", is_type_only=True),
        SymbolSpecifier("load"),
    )
    assert imports[3].specifiers == (SymbolSpecifier("Store"),)


def test_class_members_and_usages(extractor: TypeScriptExtractor) -> None:
    source = (
        "import { Injectable } from '@angular/core';\n"
        "\n"
        "@Injectable()\n"
        "export class Service extends Base implements Contract {\n"
        "    constructor(private readonly repo: Repository) { super(); }\n"
        "    run(input: Input): Output {\n"
        "        const local = helper(input);\n"
        "        return local;\n"
        "    }\n"
        "}\n"
    )

    resource = extractor.extract(source)

    (service,) = resource.declarations
    assert service.kind is DeclarationKind.CLASS
    assert service.is_exported
    assert [m.name for m in service.methods] == ["constructor", "run"]
    (repo,) = service.properties
    assert repo.name == "repo"
    assert repo.visibility is Visibility.PRIVATE
    assert "readonly" in repo.modifiers
    run = service.methods[1]
    assert [p.name for p in run.parameters] == ["input"]
    assert run.parameters[0].type == "Input"
    assert run.return_type == "Output"

    assert set(resource.non_local_usages) == {
        "Injectable",
        "Base",
        "Contract",
        "Repository",
        "Input",
        "Output",
        "helper",
    }


def test_interface_and_generic_function_bind_local_names(
    extractor: TypeScriptExtractor,
) -> None:
    source = (
        "export interface User extends Entity {\n"
        "    name: string;\n"
        "    greet(other: User): void;\n"
        "}\n"
        "function identity<T>(value: T): T { return value; }\n"
    )

    resource = extractor.extract(source)

    user, identity = resource.declarations
    assert user.kind is DeclarationKind.INTERFACE
    assert [p.name for p in user.properties] == ["name"]
    assert user.properties[0].type == "string"
    assert [m.name for m in user.methods] == ["greet"]
    assert identity.kind is DeclarationKind.FUNCTION
    assert not identity.is_exported
    assert resource.non_local_usages == ("Entity",)


def test_enums_and_type_aliases(extractor: TypeScriptExtractor) -> None:
    source = (
        "export const enum Color { Red, Green = 2 }\n"
        "enum Size { Small }\n"
        "export type Palette = Record<Color, Shade>;\n"
    )

    color, size, palette = extractor.extract(source).declarations

    assert color.kind is DeclarationKind.ENUM
    assert color.members == ("Red", "Green")
    assert color.is_const and color.is_exported
    assert size.kind is DeclarationKind.ENUM and not size.is_const
    assert palette.kind is DeclarationKind.TYPE_ALIAS
    assert palette.type == "Record<Color, Shade>"


def test_default_and_local_exports(extractor: TypeScriptExtractor) -> None:
    source = (
        "const a = 1;\n"
        "function b() {}\n"
        "export { a, b as c };\n"
        "export default class Main {}\n"
    )

    declarations = extractor.extract(source).declarations

    summary = [(d.kind, d.name, d.is_exported) for d in declarations]
    assert (DeclarationKind.VARIABLE, "a", True) in summary
    assert (DeclarationKind.FUNCTION, "b", False) in summary
    assert (DeclarationKind.FUNCTION, "c", True) in summary
    assert (DeclarationKind.DEFAULT, "Main", True) in summary


def test_default_export_of_identifier(extractor: TypeScriptExtractor) -> None:
    resource = extractor.extract("const value = 1;\nexport default value;\n")

    defaults = [
        d for d in resource.declarations if d.kind is DeclarationKind.DEFAULT
    ]
    assert [d.name for d in defaults] == ["value"]
    assert resource.non_local_usages == ()


def test_re_exports(extractor: TypeScriptExtractor) -> None:
    source = (
        "export * from './models';\n"
        "export * as utils from './utils';\n"
        "export { A, B as C } from './ab';\n"
    )

    exports = extractor.extract(source).exports

    assert [(e.kind, e.library_name, e.alias) for e in exports] == [
        (ExportKind.ALL, "./models", None),
        (ExportKind.ALL, "./utils", "utils"),
        (ExportKind.NAMED, "./ab", None),
    ]
    assert exports[2].specifiers == (
        SymbolSpecifier("A"),
        SymbolSpecifier("B", "C"),
    )


def test_assigned_export(extractor: TypeScriptExtractor) -> None:
    resource = extractor.extract("class Api {}\nexport = Api;\n")

    (export,) = resource.exports
    assert export.kind is ExportKind.ASSIGNED
    assert export.declaration_name == "Api"


def test_namespaces_and_ambient_modules(extractor: TypeScriptExtractor) -> None:
    source = (
        "export namespace Shapes {\n"
        "    export class Circle {}\n"
        "    class Hidden {}\n"
        "}\n"
        "declare module 'lib-x' {\n"
        "    export function run(): void;\n"
        "}\n"
    )

    resource = extractor.extract(source)

    shapes, library = resource.resources
    assert shapes.kind is ResourceKind.NAMESPACE
    assert shapes.is_exported and not shapes.is_ambient
    assert [(d.name, d.is_exported) for d in shapes.declarations] == [
        ("Circle", True),
        ("Hidden", False),
    ]
    assert library.kind is ResourceKind.MODULE
    assert library.name == "lib-x"
    assert library.is_external and library.is_ambient
    assert [d.name for d in library.declarations] == ["run"]


def test_tsx_components_are_usages(tmp_path: Path) -> None:
    path = tmp_path / "App.tsx"
    path.write_text(
        "export const App = () => <div><Button label='go' /></div>;\n",
        encoding="utf-8",
    )

    resource = TypeScriptExtractor().extract_file(path, root=tmp_path)

    assert resource.module_path == "/App"
    assert "Button" in resource.non_local_usages
    assert "div" not in resource.non_local_usages


def test_module_path_uses_workspace_root(extractor: TypeScriptExtractor) -> None:
    resource = extractor.extract(
        "export const x = 1;",
        file_path=Path("/repo/src/util/index.ts"),
        root=Path("/repo"),
    )

    assert resource.module_path == "/src/util"
    assert resource.kind is ResourceKind.FILE


def test_syntax_errors_are_not_parseable(extractor: TypeScriptExtractor) -> None:
    with pytest.raises(NotParseableError, match="syntax errors"):
        extractor.extract("export class {", file_path=Path("broken.ts"))


def test_invalid_utf8_is_not_parseable() -> None:
    with pytest.raises(NotParseableError, match="UTF-8"):
        extract(b"export const a = '\xff';")
