"""Import group policies: parse, classify, sort and render.

A policy is the ordered list of groups from the ``[imports].grouping``
setting. Every import lands in exactly one group: the first non catch-all
group whose predicate matches, otherwise the single ``Remaining`` group.

Example:
    >>> from tshero.modules.parser import Import, SymbolSpecifier
    >>> from tshero.modules.parser.generation import GenerationOptions
    >>> policy = ImportGroupPolicy.from_settings(
    ...     ["Workspace", "Modules", "Remaining"]
    ... )
    >>> imports = [
    ...     Import.named("lib-a", (SymbolSpecifier("a"),)),
    ...     Import.named("./local", (SymbolSpecifier("b"),)),
    ... ]
    >>> print(organize(imports, policy, GenerationOptions()), end="")
    import { b } from './local';
    <BLANKLINE>
    import { a } from 'lib-a';
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Iterable, Mapping, Sequence

from tshero.modules.parser.generation import GenerationOptions, render_import
from tshero.modules.parser.models import Import, ImportKind
from tshero.modules.parser.naming import is_workspace_path

from .errors import ImportGroupIdentifierInvalidError, ImportGroupPolicyError

__all__ = [
    "ImportGroup",
    "ImportGroupKeyword",
    "ImportGroupOrder",
    "ImportGroupPolicy",
    "KeywordImportGroup",
    "RegexImportGroup",
    "organize",
    "parse_group_setting",
    "sort_group_imports",
]

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    # JavaScript-only flags with no effect on a single search.
    "g": 0,
    "u": 0,
}


class ImportGroupOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"
    SEMANTIC = "semantic"


class ImportGroupKeyword(StrEnum):
    PLAINS = "Plains"
    MODULES = "Modules"
    WORKSPACE = "Workspace"
    REMAINING = "Remaining"


@dataclass(frozen=True, slots=True)
class KeywordImportGroup:
    """Group selected by one of the :class:`ImportGroupKeyword` predicates."""

    keyword: ImportGroupKeyword
    order: ImportGroupOrder = ImportGroupOrder.ASC

    @property
    def identifier(self) -> str:
        return self.keyword.value

    @property
    def is_catch_all(self) -> bool:
        return self.keyword is ImportGroupKeyword.REMAINING

    def matches(self, import_: Import) -> bool:
        if self.keyword is ImportGroupKeyword.PLAINS:
            return import_.kind is ImportKind.STRING
        if import_.kind is ImportKind.STRING:
            return False
        library = import_.library_name
        if self.keyword is ImportGroupKeyword.MODULES:
            return not is_workspace_path(library) and not _SCHEME_RE.match(library)
        if self.keyword is ImportGroupKeyword.WORKSPACE:
            return is_workspace_path(library)
        return True


@dataclass(frozen=True, slots=True)
class RegexImportGroup:
    """Group selected by searching the library name with a pattern."""

    identifier: str
    pattern: re.Pattern[str]
    order: ImportGroupOrder = ImportGroupOrder.ASC

    @property
    def is_catch_all(self) -> bool:
        return False

    def matches(self, import_: Import) -> bool:
        return self.pattern.search(import_.library_name) is not None


ImportGroup = KeywordImportGroup | RegexImportGroup


# ----------------------------------------------------------------------
# Setting parsing
# ----------------------------------------------------------------------
def _last_unescaped_slash(text: str) -> int:
    for index in range(len(text) - 1, 0, -1):
        if text[index] != "/":
            continue
        backslashes = 0
        cursor = index - 1
        while cursor >= 0 and text[cursor] == "\\":
            backslashes += 1
            cursor -= 1
        if backslashes % 2 == 0:
            return index
    return -1


def _parse_regex(identifier: str, order: ImportGroupOrder) -> RegexImportGroup:
    close = _last_unescaped_slash(identifier)
    if close <= 1:
        raise ImportGroupIdentifierInvalidError(
            identifier, "regex groups must look like /pattern/flags"
        )
    body = identifier[1:close]
    flags = 0
    for flag in identifier[close + 1 :]:
        if flag not in _REGEX_FLAGS:
            raise ImportGroupIdentifierInvalidError(
                identifier, f"unknown regex flag {flag!r}"
            )
        flags |= _REGEX_FLAGS[flag]
    try:
        pattern = re.compile(body, flags)
    except re.error as exc:
        raise ImportGroupIdentifierInvalidError(identifier, str(exc)) from exc
    return RegexImportGroup(identifier=identifier, pattern=pattern, order=order)


def _parse_order(value: object, identifier: str) -> ImportGroupOrder:
    try:
        return ImportGroupOrder(str(value).strip().lower())
    except ValueError as exc:
        raise ImportGroupPolicyError(
            f"Import group {identifier!r} has invalid order {value!r}; "
            "expected asc, desc or semantic."
        ) from exc


def parse_group_setting(setting: str | Mapping[str, object]) -> ImportGroup:
    """Parse one ``grouping`` entry.

    Entries are a keyword (``"Modules"``), a regex literal
    (``"/^@angular/i"``) or a table ``{identifier = ..., order = ...}``.
    The closing delimiter of a regex is its *last* unescaped ``/``.

    Raises:
        ImportGroupIdentifierInvalidError: For unknown keywords and
            malformed regex literals.
        ImportGroupPolicyError: For an unknown sort order.
    """

    if isinstance(setting, Mapping):
        identifier = setting.get("identifier")
        raw_order = setting.get("order", ImportGroupOrder.ASC.value)
    else:
        identifier = setting
        raw_order = ImportGroupOrder.ASC.value
    if not isinstance(identifier, str) or not identifier.strip():
        raise ImportGroupIdentifierInvalidError(str(identifier))
    identifier = identifier.strip()
    order = _parse_order(raw_order, identifier)

    if identifier.startswith("/"):
        return _parse_regex(identifier, order)
    try:
        keyword = ImportGroupKeyword(identifier)
    except ValueError:
        raise ImportGroupIdentifierInvalidError(identifier) from None
    return KeywordImportGroup(keyword=keyword, order=order)


@dataclass(frozen=True, slots=True)
class ImportGroupPolicy:
    """Validated, ordered list of import groups."""

    groups: tuple[ImportGroup, ...]

    def __post_init__(self) -> None:
        catch_all = sum(1 for group in self.groups if group.is_catch_all)
        if catch_all == 0:
            raise ImportGroupPolicyError(
                "Import grouping must contain the 'Remaining' group."
            )
        if catch_all > 1:
            raise ImportGroupPolicyError(
                "Import grouping must contain 'Remaining' exactly once."
            )

    @classmethod
    def from_settings(
        cls,
        settings: Iterable[str | Mapping[str, object]],
    ) -> "ImportGroupPolicy":
        return cls(tuple(parse_group_setting(entry) for entry in settings))

    @classmethod
    def default(cls) -> "ImportGroupPolicy":
        return cls.from_settings(["Plains", "Modules", "Workspace", "Remaining"])

    def classify(
        self,
        imports: Iterable[Import],
    ) -> list[tuple[ImportGroup, list[Import]]]:
        """Assign each import to exactly one group, preserving input order."""

        buckets: list[list[Import]] = [[] for _ in self.groups]
        catch_all = next(
            index for index, group in enumerate(self.groups) if group.is_catch_all
        )
        for import_ in imports:
            for index, group in enumerate(self.groups):
                if not group.is_catch_all and group.matches(import_):
                    buckets[index].append(import_)
                    break
            else:
                buckets[catch_all].append(import_)
        return list(zip(self.groups, buckets))


# ----------------------------------------------------------------------
# Sorting and rendering
# ----------------------------------------------------------------------
def _library_key(import_: Import) -> str:
    return import_.library_name


def _first_specifier_key(import_: Import) -> tuple[str, str]:
    marker: str | None = None
    if import_.kind in (ImportKind.NAMESPACE, ImportKind.EXTERNAL_MODULE):
        marker = import_.alias
    elif import_.kind is ImportKind.NAMED:
        names = [spec.local_name for spec in import_.specifiers]
        marker = names[0] if names else import_.default_alias
    if not marker:
        marker = posixpath.basename(import_.library_name)
    return marker.casefold(), marker


def _semantic_bucket(import_: Import) -> int:
    if import_.kind is ImportKind.STRING:
        return 0
    if not is_workspace_path(import_.library_name):
        return 1
    return 2


def sort_group_imports(
    group: ImportGroup,
    imports: Sequence[Import],
    *,
    by_first_specifier: bool = False,
) -> list[Import]:
    """Order the members of one group according to its sort order."""

    key = _first_specifier_key if by_first_specifier else _library_key
    if group.order is ImportGroupOrder.SEMANTIC:
        ordered = sorted(imports, key=lambda i: (_semantic_bucket(i), key(i)))
    else:
        ordered = sorted(
            imports,
            key=key,
            reverse=group.order is ImportGroupOrder.DESC,
        )
    if isinstance(group, RegexImportGroup) or group.is_catch_all:
        ordered = [i for i in ordered if i.kind is ImportKind.STRING] + [
            i for i in ordered if i.kind is not ImportKind.STRING
        ]
    return ordered


def _with_sorted_specifiers(import_: Import) -> Import:
    if import_.kind is not ImportKind.NAMED or len(import_.specifiers) < 2:
        return import_
    return import_.with_specifiers(
        tuple(sorted(import_.specifiers, key=lambda spec: spec.specifier)),
        default_alias=import_.default_alias,
    )


def organize(
    imports: Iterable[Import],
    policy: ImportGroupPolicy,
    options: GenerationOptions,
    *,
    sort: bool = True,
    by_first_specifier: bool = False,
) -> str:
    """Render ``imports`` as a grouped import block.

    Returns an empty string when there is nothing to render, otherwise the
    groups separated by one blank line and terminated by a newline.
    """

    blocks: list[str] = []
    for group, members in policy.classify(imports):
        if not members:
            continue
        if sort:
            members = sort_group_imports(
                group, members, by_first_specifier=by_first_specifier
            )
        blocks.append(
            "\n".join(
                render_import(_with_sorted_specifiers(member), options)
                for member in members
            )
        )
    if not blocks:
        return ""
    return "\n\n".join(blocks) + "\n"
