"""Render import models back into TypeScript source text."""

from __future__ import annotations

from dataclasses import dataclass

from tshero.core.config import ImportsSettings

from .models import Import, ImportKind

__all__ = ["GenerationOptions", "render_import"]


@dataclass(frozen=True, slots=True)
class GenerationOptions:
    """Formatting choices applied uniformly to generated imports.

    Example:
        >>> from tshero.modules.parser.models import Import
        >>> render_import(Import.string("./polyfills"), GenerationOptions())
        "import './polyfills';"
    """

    quote: str = "'"
    semicolons: bool = True
    space_braces: bool = True
    wrap_threshold: int = 125
    tab_size: int = 4
    trailing_comma: bool = True

    @classmethod
    def from_settings(cls, settings: ImportsSettings) -> "GenerationOptions":
        return cls(
            quote=settings.string_quote_style,
            semicolons=settings.insert_semicolons,
            space_braces=settings.insert_space_before_and_after_import_braces,
            wrap_threshold=settings.multi_line_wrap_threshold,
            tab_size=settings.tab_size,
            trailing_comma=settings.multi_line_trailing_comma,
        )

    @property
    def eol(self) -> str:
        return ";" if self.semicolons else ""

    def quoted(self, library_name: str) -> str:
        return f"{self.quote}{library_name}{self.quote}"


def _keyword(import_: Import) -> str:
    return "import type " if import_.is_type_only else "import "


def _render_named(import_: Import, options: GenerationOptions) -> str:
    lib = options.quoted(import_.library_name)
    keyword = _keyword(import_)
    specifiers = [spec.render() for spec in import_.specifiers]
    prefix = f"{import_.default_alias}, " if import_.default_alias else ""

    if not specifiers:
        if import_.default_alias:
            return f"{keyword}{import_.default_alias} from {lib}{options.eol}"
        return f"import {lib}{options.eol}"

    space = " " if options.space_braces else ""
    single = (
        f"{keyword}{prefix}{{{space}{', '.join(specifiers)}{space}}} "
        f"from {lib}{options.eol}"
    )
    if len(single) <= options.wrap_threshold:
        return single

    indent = " " * options.tab_size
    trailing = "," if options.trailing_comma else ""
    body = f",\n{indent}".join(specifiers)
    return (
        f"{keyword}{prefix}{{\n{indent}{body}{trailing}\n}} "
        f"from {lib}{options.eol}"
    )


def render_import(import_: Import, options: GenerationOptions) -> str:
    """Return the statement text for ``import_`` without a trailing newline."""

    lib = options.quoted(import_.library_name)
    if import_.kind is ImportKind.STRING:
        return f"import {lib}{options.eol}"
    if import_.kind is ImportKind.NAMESPACE:
        return f"{_keyword(import_)}* as {import_.alias} from {lib}{options.eol}"
    if import_.kind is ImportKind.EXTERNAL_MODULE:
        return f"{_keyword(import_)}{import_.alias} = require({lib}){options.eol}"
    return _render_named(import_, options)
