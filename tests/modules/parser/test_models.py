"""Tests for :mod:`tshero.modules.parser.models`."""

from __future__ import annotations

from tshero.modules.parser import (
    Declaration,
    DeclarationKind,
    Import,
    Resource,
    ResourceKind,
    SymbolSpecifier,
)


def test_import_bound_names_per_kind() -> None:
    named = Import.named(
        "react",
        (SymbolSpecifier("useState"), SymbolSpecifier("Component", "Base")),
        default_alias="React",
    )

    assert named.bound_names == ("React", "useState", "Base")
    assert Import.namespace("fs", "fs").bound_names == ("fs",)
    assert Import.external_module("lodash", "_").bound_names == ("_",)
    assert Import.string("./polyfills").bound_names == ()


def test_import_deduplicates_specifiers_and_tracks_novelty() -> None:
    import_ = Import.named(
        "lib",
        (SymbolSpecifier("a"), SymbolSpecifier("a"), SymbolSpecifier("b")),
        start=0,
        end=30,
    )

    assert [spec.specifier for spec in import_.specifiers] == ["a", "b"]
    assert not import_.is_new
    assert import_.detached().is_new


def test_symbol_specifier_render() -> None:
    assert SymbolSpecifier("a").render() == "a"
    assert SymbolSpecifier("a", "a").render() == "a"
    assert SymbolSpecifier("a", "b").render() == "a as b"
    assert SymbolSpecifier("a", "b").local_name == "b"


def test_resource_non_local_usages_skip_local_names() -> None:
    child = Resource(
        kind=ResourceKind.NAMESPACE,
        name="Shapes",
        declarations=[Declaration(DeclarationKind.CLASS, "Circle")],
        usages=["Circle", "Renderer", "Helper"],
    )
    resource = Resource(
        kind=ResourceKind.FILE,
        name="main.ts",
        declarations=[Declaration(DeclarationKind.FUNCTION, "Helper")],
        resources=[child],
        usages=["Shapes", "Logger", "Renderer"],
    )

    assert resource.non_local_usages == ("Logger", "Renderer")
    assert child.non_local_usages == ("Renderer", "Helper")
    assert [r.name for r in resource.iter_resources()] == ["main.ts", "Shapes"]
    assert resource.find_resource("Shapes") is child
    assert resource.find_declaration("Helper") is not None


def test_declaration_exported_copy() -> None:
    declaration = Declaration(DeclarationKind.VARIABLE, "value")

    renamed = declaration.exported("alias")

    assert renamed.is_exported
    assert renamed.name == "alias"
    assert not declaration.is_exported
