"""Document-level import editing: add, organize and emit one text edit."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import re
from typing import Iterable

from tshero.core.config import ImportsSettings
from tshero.core.logging import Logger, get_logger
from tshero.modules.index import DeclarationInfo
from tshero.modules.parser import (
    DeclarationKind,
    GenerationOptions,
    Import,
    ImportKind,
    Resource,
    SymbolSpecifier,
    TypeScriptExtractor,
)
from tshero.modules.parser.naming import (
    absolute_library_name,
    namespace_alias,
    relative_library_name,
)
from tshero.modules.resolver import ImportUserDecision

from .grouping import ImportGroupPolicy, organize

__all__ = ["ImportBlockEdit", "ImportManager"]

# Leading lines an inserted import block goes below.
_IGNORED_LINE_RE = re.compile(r"""^\s*(?://|/\*\*|\*/|\*|(['"])use strict\1)""")


@dataclass(frozen=True, slots=True)
class ImportBlockEdit:
    """Single replacement of ``[start, end)`` (UTF-8 byte offsets) by ``text``."""

    text: str
    start: int
    end: int

    def apply(self, source: str) -> str:
        encoded = source.encode("utf-8")
        return (
            encoded[: self.start] + self.text.encode("utf-8") + encoded[self.end :]
        ).decode("utf-8")

    def is_noop(self, source: str) -> bool:
        encoded = source.encode("utf-8")
        return encoded[self.start : self.end] == self.text.encode("utf-8")


def _insert_offset(encoded: bytes) -> int:
    offset = 0
    for line in encoded.splitlines(keepends=True):
        if not _IGNORED_LINE_RE.match(line.decode("utf-8")):
            break
        offset += len(line)
    return offset


def _line_ending(source: str) -> str:
    newline = source.find("\n")
    return "\r\n" if newline > 0 and source[newline - 1] == "\r" else "\n"


def _with_line_ending(text: str, eol: str) -> str:
    if eol == "\n":
        return text
    return text.replace("\r\n", "\n").replace("\n", eol)


def _skip_trailing_blank_lines(encoded: bytes, position: int) -> int:
    """Advance past the rest of the current line and any blank lines.

    Code sharing the line with the last import stays, minus its leading
    horizontal whitespace.
    """

    newline = encoded.find(b"\n", position)
    rest = encoded[position:] if newline == -1 else encoded[position:newline]
    if rest.strip():
        return position + len(rest) - len(rest.lstrip(b" \t"))
    if newline == -1:
        return len(encoded)
    cursor = newline + 1
    while cursor < len(encoded):
        newline = encoded.find(b"\n", cursor)
        line_end = len(encoded) if newline == -1 else newline + 1
        if encoded[cursor:line_end].strip():
            break
        cursor = line_end
    return cursor


class ImportManager:
    """Manage the imports of one parsed document.

    The manager keeps a working copy of the document's file-level imports.
    :meth:`add_declaration_import` and :meth:`organize_imports` change that
    copy; :meth:`calculate_edit` renders it through the group policy and
    returns the single edit replacing the original import block.

    Raises:
        ImportGroupError: At construction when the grouping policy is
            invalid, before any import is touched.
    """

    def __init__(
        self,
        source: str,
        resource: Resource,
        *,
        file_path: Path | str,
        root: Path | str,
        settings: ImportsSettings | None = None,
        policy: ImportGroupPolicy | None = None,
        logger: Logger | None = None,
    ) -> None:
        self._source = source
        self._resource = resource
        self._file_path = Path(file_path)
        self._root = Path(root)
        self._settings = settings or ImportsSettings()
        self._policy = policy or ImportGroupPolicy.from_settings(
            self._settings.grouping
        )
        self._options = GenerationOptions.from_settings(self._settings)
        self._imports: list[Import] = list(resource.imports)
        self._logger = logger or get_logger(
            __name__,
            component="import-manager",
            path=str(self._file_path),
        )

    @classmethod
    def from_source(
        cls,
        source: str,
        *,
        file_path: Path | str,
        root: Path | str,
        settings: ImportsSettings | None = None,
        extractor: TypeScriptExtractor | None = None,
        logger: Logger | None = None,
    ) -> "ImportManager":
        resource = (extractor or TypeScriptExtractor()).extract(
            source, file_path=file_path, root=root
        )
        return cls(
            source,
            resource,
            file_path=file_path,
            root=root,
            settings=settings,
            logger=logger,
        )

    @classmethod
    def from_file(
        cls,
        path: Path | str,
        *,
        root: Path | str,
        settings: ImportsSettings | None = None,
        extractor: TypeScriptExtractor | None = None,
        logger: Logger | None = None,
    ) -> "ImportManager":
        source = Path(path).read_text(encoding="utf-8")
        return cls.from_source(
            source,
            file_path=path,
            root=root,
            settings=settings,
            extractor=extractor,
            logger=logger,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def source(self) -> str:
        return self._source

    @property
    def resource(self) -> Resource:
        return self._resource

    @property
    def imports(self) -> tuple[Import, ...]:
        return tuple(self._imports)

    def add_declaration_import(self, info: DeclarationInfo) -> "ImportManager":
        """Import ``info`` into the document.

        An existing named import of the same module absorbs the new
        specifier (or default alias) unless it is an ``import type``.
        Otherwise a new import is created: a namespace import for library
        module declarations, a default import for default declarations and
        a named import for the rest.
        """

        declaration = info.declaration
        for position, current in enumerate(self._imports):
            if current.kind is not ImportKind.NAMED or current.is_type_only:
                continue
            library = absolute_library_name(
                current.library_name, self._file_path, self._root
            )
            if library != info.origin:
                continue
            if declaration.kind is DeclarationKind.DEFAULT:
                updated = current.with_specifiers(
                    current.specifiers, default_alias=declaration.name
                )
            elif any(
                spec.specifier == declaration.name for spec in current.specifiers
            ):
                return self
            else:
                updated = current.with_specifiers(
                    (*current.specifiers, SymbolSpecifier(declaration.name)),
                    default_alias=current.default_alias,
                )
            self._imports[position] = updated
            self._logger.debug(
                "import-merged",
                library=current.library_name,
                name=declaration.name,
            )
            return self

        library = self._library_name(info.origin)
        if (
            declaration.kind is DeclarationKind.MODULE
            and declaration.name == namespace_alias(info.origin)
        ):
            new_import = Import.namespace(library, declaration.name)
        elif declaration.kind is DeclarationKind.DEFAULT:
            new_import = Import.named(library, default_alias=declaration.name)
        else:
            new_import = Import.named(
                library, (SymbolSpecifier(declaration.name),)
            )
        self._imports.append(new_import)
        self._logger.debug(
            "import-added",
            library=library,
            name=declaration.name,
        )
        return self

    def add_decision(self, decision: ImportUserDecision) -> "ImportManager":
        return self.add_declaration_import(decision.declaration)

    def add_decisions(
        self,
        decisions: Iterable[ImportUserDecision],
    ) -> "ImportManager":
        for decision in decisions:
            self.add_declaration_import(decision.declaration)
        return self

    def organize_imports(self) -> "ImportManager":
        """Drop unused imports and merge named imports of the same module.

        Type-only imports only merge with other type-only imports.

        String imports, newly added imports and libraries listed in
        ``ignored_from_removal`` are always kept. Removal is skipped
        entirely when ``disable_import_removal_on_organize`` is set.
        """

        usages = set(self._resource.non_local_usages)
        ignored = set(self._settings.ignored_from_removal)
        remove_unused = not self._settings.disable_import_removal_on_organize

        keep: list[Import] = []
        removed = 0
        for import_ in self._imports:
            prunable = (
                remove_unused
                and import_.kind is not ImportKind.STRING
                and not import_.is_new
                and import_.library_name not in ignored
            )
            if prunable:
                pruned = self._prune(import_, usages)
                if pruned is None:
                    removed += 1
                    continue
                import_ = pruned
            self._merge_into(keep, import_)

        if self._settings.remove_trailing_index:
            keep = [self._without_trailing_index(import_) for import_ in keep]

        self._imports = keep
        self._logger.debug(
            "imports-organized",
            kept=len(keep),
            removed=removed,
        )
        return self

    def calculate_edit(self) -> ImportBlockEdit:
        """Return the edit that writes the current imports into the source.

        The edit spans from the first to the last original file-level
        import (plus the blank lines after it). Text found between imports
        that is not itself an import is kept, right below the new block.
        Without original imports the block is inserted after leading
        comments and ``"use strict"`` lines. The block uses the line ending
        of the document's first line.
        """

        block = organize(
            self._imports,
            self._policy,
            self._options,
            sort=not self._settings.disable_imports_sorting,
            by_first_specifier=self._settings.organize_sorts_by_first_specifier,
        )
        eol = _line_ending(self._source)
        encoded = self._source.encode("utf-8")
        originals = sorted(
            (
                import_
                for import_ in self._resource.imports
                if import_.start is not None and import_.end is not None
            ),
            key=lambda import_: import_.start,
        )

        if not originals:
            offset = _insert_offset(encoded)
            text = block
            rest = encoded[offset:]
            if text and rest.strip() and not rest.startswith((b"\n", b"\r\n")):
                text += "\n"
            if text and offset > 0 and not encoded[:offset].endswith(b"\n"):
                text = "\n" + text
            return ImportBlockEdit(
                text=_with_line_ending(text, eol), start=offset, end=offset
            )

        start = originals[0].start
        cursor = start
        kept_text: list[str] = []
        for import_ in originals:
            if import_.start > cursor:
                gap = encoded[cursor : import_.start].decode("utf-8").strip()
                if gap:
                    kept_text.append(gap)
            cursor = max(cursor, import_.end)
        end = _skip_trailing_blank_lines(encoded, cursor)

        text = block
        if kept_text:
            if text:
                text += "\n"
            text += "".join(f"{chunk}\n" for chunk in kept_text)
        if text and end < len(encoded):
            text += "\n"
        return ImportBlockEdit(
            text=_with_line_ending(text, eol), start=start, end=end
        )

    def commit(self) -> str:
        """Return the document text with :meth:`calculate_edit` applied."""

        return self.calculate_edit().apply(self._source)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _library_name(self, origin: str) -> str:
        library = relative_library_name(origin, self._file_path, self._root)
        if self._settings.remove_trailing_index and library.endswith("/index"):
            library = library[: -len("/index")]
        return library

    @staticmethod
    def _prune(import_: Import, usages: set[str]) -> Import | None:
        if import_.kind in (ImportKind.NAMESPACE, ImportKind.EXTERNAL_MODULE):
            return import_ if import_.alias in usages else None
        specifiers = tuple(
            spec for spec in import_.specifiers if spec.local_name in usages
        )
        default_alias = (
            import_.default_alias if import_.default_alias in usages else None
        )
        if not specifiers and not default_alias:
            return None
        return import_.with_specifiers(specifiers, default_alias=default_alias)

    @staticmethod
    def _merge_into(keep: list[Import], import_: Import) -> None:
        if import_.kind is ImportKind.NAMED:
            for position, existing in enumerate(keep):
                if (
                    existing.kind is ImportKind.NAMED
                    and existing.library_name == import_.library_name
                    and existing.is_type_only == import_.is_type_only
                ):
                    keep[position] = existing.with_specifiers(
                        (*existing.specifiers, *import_.specifiers),
                        default_alias=import_.default_alias
                        or existing.default_alias,
                    )
                    return
        keep.append(import_)

    @staticmethod
    def _without_trailing_index(import_: Import) -> Import:
        if import_.library_name.endswith("/index"):
            return replace(
                import_, library_name=import_.library_name[: -len("/index")]
            )
        return import_
