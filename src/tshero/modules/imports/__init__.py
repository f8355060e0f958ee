"""Import grouping, sorting and document-level import management."""

from __future__ import annotations

from .errors import (
    ImportGroupError,
    ImportGroupIdentifierInvalidError,
    ImportGroupPolicyError,
)
from .grouping import (
    ImportGroup,
    ImportGroupKeyword,
    ImportGroupOrder,
    ImportGroupPolicy,
    KeywordImportGroup,
    RegexImportGroup,
    organize,
    parse_group_setting,
    sort_group_imports,
)
from .organizer import ImportBlockEdit, ImportManager

__all__ = [
    "ImportBlockEdit",
    "ImportGroup",
    "ImportGroupError",
    "ImportGroupIdentifierInvalidError",
    "ImportGroupKeyword",
    "ImportGroupOrder",
    "ImportGroupPolicy",
    "ImportGroupPolicyError",
    "ImportManager",
    "KeywordImportGroup",
    "RegexImportGroup",
    "organize",
    "parse_group_setting",
    "sort_group_imports",
]
