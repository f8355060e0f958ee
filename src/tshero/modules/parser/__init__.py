"""TypeScript syntax extraction, resource models and import rendering."""

from __future__ import annotations

from .errors import NotParseableError, ParserError
from .extractor import TypeScriptExtractor, extract
from .generation import GenerationOptions, render_import
from .models import (
    Declaration,
    DeclarationKind,
    Export,
    ExportKind,
    Import,
    ImportKind,
    Method,
    Parameter,
    Property,
    Resource,
    ResourceKind,
    SymbolSpecifier,
    Visibility,
)

__all__ = [
    "Declaration",
    "DeclarationKind",
    "Export",
    "ExportKind",
    "GenerationOptions",
    "Import",
    "ImportKind",
    "Method",
    "NotParseableError",
    "Parameter",
    "ParserError",
    "Property",
    "Resource",
    "ResourceKind",
    "SymbolSpecifier",
    "TypeScriptExtractor",
    "Visibility",
    "extract",
    "render_import",
]
