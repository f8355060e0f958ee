"""Usage resolution against the declaration index."""

from __future__ import annotations

from tshero.modules.parser.naming import (
    absolute_library_name,
    relative_library_name,
)

from .service import (
    ImportUserDecision,
    MissingImportsReport,
    ResolverError,
    UsageResolver,
    filter_by_imports,
    resolve_missing,
)

__all__ = [
    "ImportUserDecision",
    "MissingImportsReport",
    "ResolverError",
    "UsageResolver",
    "absolute_library_name",
    "filter_by_imports",
    "relative_library_name",
    "resolve_missing",
]
