"""Workspace-wide reverse index from symbol name to declaring module."""

from __future__ import annotations

import concurrent.futures
import os
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Iterable, Sequence

from tshero.core.logging import Logger, get_logger
from tshero.modules.parser import (
    Declaration,
    DeclarationKind,
    ExportKind,
    ParserError,
    Resource,
    TypeScriptExtractor,
)
from tshero.modules.parser.naming import (
    absolute_library_name,
    module_path_for,
    namespace_alias,
)

from .errors import DeclarationIndexError
from .models import (
    DeclarationIndexPartial,
    DeclarationIndexSnapshot,
    DeclarationInfo,
    IndexBuildFailure,
    IndexBuildReport,
)

__all__ = ["DeclarationIndex", "resolve_concurrency"]

_Entry = tuple[str, DeclarationInfo]


def resolve_concurrency(setting: int | str, *, target_count: int) -> int:
    """Translate a ``max_concurrency`` setting into a worker count."""

    if target_count <= 0:
        return 0
    if isinstance(setting, int):
        return max(1, min(setting, target_count))
    cpu_count = os.cpu_count() or 1
    return max(1, min(cpu_count, target_count))


@dataclass(frozen=True, slots=True)
class _IndexedFile:
    path: Path
    module_path: str
    resource: Resource
    own: tuple[_Entry, ...]


def _module_declaration(name: str, resource: Resource) -> Declaration:
    return Declaration(
        kind=DeclarationKind.MODULE,
        name=name,
        is_exported=True,
        start=resource.start,
        end=resource.end,
    )


def _flatten_child(
    resource: Resource,
    origin: str,
    prefix: str,
    *,
    ambient: bool,
) -> list[_Entry]:
    if resource.is_external:
        library = resource.name
        alias = namespace_alias(library)
        entries: list[_Entry] = [
            (alias, DeclarationInfo(_module_declaration(alias, resource), library))
        ]
        for declaration in resource.declarations:
            entries.append(
                (declaration.name, DeclarationInfo(declaration.exported(), library))
            )
        for child in resource.resources:
            entries.extend(_flatten_child(child, library, "", ambient=True))
        return entries

    ambient = ambient or resource.is_ambient
    if not (resource.is_exported or ambient):
        return []
    name = f"{prefix}{resource.name}"
    entries = [(name, DeclarationInfo(_module_declaration(name, resource), origin))]
    for declaration in resource.declarations:
        if declaration.is_exported or ambient:
            entries.append(
                (f"{name}.{declaration.name}", DeclarationInfo(declaration, origin))
            )
    for child in resource.resources:
        entries.extend(_flatten_child(child, origin, f"{name}.", ambient=ambient))
    return entries


def flatten_resource(resource: Resource, origin: str) -> list[_Entry]:
    """Return the ``(key, info)`` pairs a file resource contributes."""

    entries: list[_Entry] = [
        (declaration.name, DeclarationInfo(declaration, origin))
        for declaration in resource.declarations
        if declaration.is_exported
    ]
    for child in resource.resources:
        entries.extend(_flatten_child(child, origin, "", ambient=False))
    return entries


class DeclarationIndex:
    """Aggregate exported declarations of many files by name.

    Every write (build, update, remove, restore) runs under a single lock
    and bumps :attr:`generation`. Lookups read the most recently published
    mapping, which is replaced wholesale after each write.
    """

    def __init__(self, root: Path | str, *, logger: Logger | None = None) -> None:
        self._root = Path(root).absolute()
        self._logger = logger or get_logger(__name__, component="index")
        self._lock = threading.RLock()
        self._generation = 0
        self._files: dict[str, _IndexedFile] = {}
        self._module_files: dict[str, str] = {}
        self._restored: tuple[_Entry, ...] = ()
        self._restored_paths: tuple[str, ...] = ()
        self._entries: dict[str, tuple[DeclarationInfo, ...]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def root(self) -> Path:
        return self._root

    @property
    def generation(self) -> int:
        return self._generation

    def build(
        self,
        files: Iterable[Path | str],
        *,
        extractor: TypeScriptExtractor | None = None,
        cancel_event: threading.Event | None = None,
        max_workers: int | None = None,
    ) -> IndexBuildReport:
        """Rebuild the index from ``files``.

        Extraction runs on a thread pool; results are merged sequentially in
        path order once every worker has finished. Files that fail to parse
        are reported and skipped. When ``cancel_event`` is set, pending
        files are abandoned and the files already extracted are merged into
        the current contents, which are otherwise kept as they were.
        """

        paths = sorted(
            {self._absolute(path) for path in files},
            key=lambda p: p.as_posix(),
        )
        extractor = extractor or TypeScriptExtractor()
        workers = max_workers or resolve_concurrency(
            "auto", target_count=len(paths)
        )
        self._logger.info(
            "index-build-start",
            root=str(self._root),
            files=len(paths),
            workers=workers,
        )

        resources: dict[Path, Resource] = {}
        failures: list[IndexBuildFailure] = []
        cancelled = False

        if workers <= 1:
            for path in paths:
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    break
                self._collect(
                    path,
                    lambda path=path: self._extract(extractor, path),
                    resources,
                    failures,
                )
        else:
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=workers,
                thread_name_prefix="index",
            ) as executor:
                future_map: dict[
                    concurrent.futures.Future[Resource | None], Path
                ] = {
                    executor.submit(
                        self._extract, extractor, path, cancel_event
                    ): path
                    for path in paths
                }
                for future in concurrent.futures.as_completed(future_map):
                    if future.cancelled():
                        continue
                    self._collect(
                        future_map[future],
                        future.result,
                        resources,
                        failures,
                    )
                    if (
                        not cancelled
                        and cancel_event is not None
                        and cancel_event.is_set()
                    ):
                        cancelled = True
                        for pending in future_map:
                            pending.cancel()

        if cancel_event is not None and cancel_event.is_set():
            cancelled = True

        with self._lock:
            # A cancelled rebuild overlays its finished files on the
            # previous generation instead of replacing it.
            if not cancelled:
                self._files.clear()
                self._module_files.clear()
                self._restored = ()
                self._restored_paths = ()
            for path in paths:
                resource = resources.get(path)
                if resource is not None:
                    self._store(path, resource)
            self._publish()
            generation = self._generation

        if cancelled:
            self._logger.warning(
                "index-build-cancelled",
                merged=len(resources),
                total=len(paths),
            )
        self._logger.info(
            "index-build-complete",
            indexed=len(resources),
            failures=len(failures),
            keys=len(self._entries),
            generation=generation,
        )
        return IndexBuildReport(
            indexed=tuple(path for path in paths if path in resources),
            failures=tuple(failures),
            cancelled=cancelled,
            generation=generation,
        )

    def update(
        self,
        path: Path | str,
        resource: Resource | None = None,
        *,
        extractor: TypeScriptExtractor | None = None,
    ) -> None:
        """Replace every entry attributed to ``path``.

        When ``resource`` is omitted the file is re-extracted from disk.
        Files that re-export from ``path`` see the change as well.

        Raises:
            DeclarationIndexError: If ``path`` lies outside the workspace.
            NotParseableError: If the file must be extracted and cannot be.
        """

        absolute = self._absolute(path)
        if resource is None:
            resource = (extractor or TypeScriptExtractor()).extract_file(
                absolute, root=self._root
            )
        with self._lock:
            self._store(absolute, resource)
            self._publish()
            generation = self._generation
        self._logger.debug(
            "index-file-updated",
            path=str(absolute),
            generation=generation,
        )

    def remove(self, path: Path | str) -> bool:
        """Drop ``path`` from the index; return whether it was indexed."""

        absolute = self._absolute(path)
        key = absolute.as_posix()
        with self._lock:
            indexed = self._files.pop(key, None)
            if indexed is None:
                return False
            if self._module_files.get(indexed.module_path) == key:
                del self._module_files[indexed.module_path]
            self._drop_restored(indexed.module_path, key)
            self._publish()
            generation = self._generation
        self._logger.debug(
            "index-file-removed",
            path=str(absolute),
            generation=generation,
        )
        return True

    def get(self, name: str) -> tuple[DeclarationInfo, ...]:
        return self._entries.get(name, ())

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._entries))

    def all_paths(self) -> tuple[Path, ...]:
        """Return every file currently contributing to the index."""

        keys = set(self._files) | set(self._restored_paths)
        return tuple(Path(key) for key in sorted(keys))

    @property
    def declaration_infos(self) -> tuple[DeclarationInfo, ...]:
        return tuple(
            info
            for name in sorted(self._entries)
            for info in self._entries[name]
        )

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def to_partials(self) -> list[DeclarationIndexPartial]:
        entries = self._entries
        return [
            DeclarationIndexPartial(index=name, infos=entries[name])
            for name in sorted(entries)
        ]

    @classmethod
    def from_partials(
        cls,
        root: Path | str,
        partials: Iterable[DeclarationIndexPartial],
        *,
        files: Sequence[str] = (),
        logger: Logger | None = None,
    ) -> "DeclarationIndex":
        """Restore an index from its transport form.

        Restored entries are attributed to their origin module; updating or
        removing the file behind that module replaces them.
        """

        index = cls(root, logger=logger)
        restored = tuple(
            (partial.index, info)
            for partial in partials
            for info in partial.infos
        )
        with index._lock:
            index._restored = restored
            index._restored_paths = tuple(files)
            index._publish()
        return index

    def snapshot(self) -> DeclarationIndexSnapshot:
        with self._lock:
            return DeclarationIndexSnapshot(
                root=self._root.as_posix(),
                generation=self._generation,
                files=tuple(path.as_posix() for path in self.all_paths()),
                partials=tuple(self.to_partials()),
            )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: DeclarationIndexSnapshot,
        *,
        root: Path | str | None = None,
        logger: Logger | None = None,
    ) -> "DeclarationIndex":
        """Restore a persisted snapshot.

        Raises:
            DeclarationIndexError: If ``root`` differs from the snapshot root.
        """

        expected = Path(root).absolute().as_posix() if root is not None else None
        if expected is not None and expected != snapshot.root:
            raise DeclarationIndexError(
                f"Index snapshot belongs to {snapshot.root}, not {expected}"
            )
        return cls.from_partials(
            snapshot.root,
            snapshot.partials,
            files=snapshot.files,
            logger=logger,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _absolute(self, path: Path | str) -> Path:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self._root / candidate
        try:
            candidate.relative_to(self._root)
        except ValueError as exc:
            raise DeclarationIndexError(
                f"{candidate} is outside the indexed workspace {self._root}"
            ) from exc
        return candidate

    def _extract(
        self,
        extractor: TypeScriptExtractor,
        path: Path,
        cancel_event: threading.Event | None = None,
    ) -> Resource | None:
        if cancel_event is not None and cancel_event.is_set():
            return None
        return extractor.extract_file(path, root=self._root)

    def _collect(
        self,
        path: Path,
        produce: Callable[[], Resource | None],
        resources: dict[Path, Resource],
        failures: list[IndexBuildFailure],
    ) -> None:
        try:
            resource = produce()
        except (ParserError, OSError) as exc:
            self._logger.warning(
                "index-extract-failed",
                path=str(path),
                error=str(exc),
            )
            failures.append(IndexBuildFailure(path=path, error=str(exc)))
            return
        if resource is not None:
            resources[path] = resource

    def _store(self, path: Path, resource: Resource) -> None:
        key = path.as_posix()
        module_path = resource.module_path or module_path_for(path, self._root)
        previous = self._files.get(key)
        if previous is not None and self._module_files.get(
            previous.module_path
        ) == key:
            del self._module_files[previous.module_path]
        self._files[key] = _IndexedFile(
            path=path,
            module_path=module_path,
            resource=resource,
            own=tuple(flatten_resource(resource, module_path)),
        )
        self._module_files.setdefault(module_path, key)
        self._drop_restored(module_path, key)

    def _drop_restored(self, module_path: str, key: str) -> None:
        if self._restored:
            self._restored = tuple(
                entry for entry in self._restored if entry[1].origin != module_path
            )
        if key in self._restored_paths:
            self._restored_paths = tuple(
                path for path in self._restored_paths if path != key
            )

    def _publish(self) -> None:
        """Recompute the public mapping from per-file contributions."""

        memo: dict[str, list[_Entry]] = {}
        merged: dict[str, list[DeclarationInfo]] = {}
        seen: set[tuple[str, str]] = set()

        def add(entries: Iterable[_Entry]) -> None:
            for name, info in entries:
                marker = (name, info.origin)
                if marker in seen:
                    continue
                seen.add(marker)
                merged.setdefault(name, []).append(info)

        for key in sorted(self._files):
            add(self._contributions(key, memo, set()))
        add(self._restored)

        self._entries = {name: tuple(infos) for name, infos in merged.items()}
        self._generation += 1

    def _contributions(
        self,
        key: str,
        memo: dict[str, list[_Entry]],
        visiting: set[str],
    ) -> list[_Entry]:
        if key in memo:
            return memo[key]
        indexed = self._files[key]
        entries = list(indexed.own)
        if key in visiting:
            return entries
        visiting.add(key)
        try:
            entries.extend(self._reexports(indexed, memo, visiting))
        finally:
            visiting.discard(key)
        memo[key] = entries
        return entries

    def _reexports(
        self,
        indexed: _IndexedFile,
        memo: dict[str, list[_Entry]],
        visiting: set[str],
    ) -> list[_Entry]:
        origin = indexed.module_path
        entries: list[_Entry] = []
        for export in indexed.resource.exports:
            if export.kind is ExportKind.ASSIGNED:
                entries.extend(self._assigned_export(indexed, export.declaration_name))
                continue
            if export.library_name is None:
                continue
            target = absolute_library_name(
                export.library_name, indexed.path, self._root
            )
            target_key = self._module_files.get(target)
            if target_key is None:
                continue
            source = self._contributions(target_key, memo, visiting)
            if export.kind is ExportKind.ALL:
                entries.extend(self._all_export(source, origin, export.alias, indexed))
            else:
                for specifier in export.specifiers:
                    entries.extend(
                        self._named_export(
                            source,
                            origin,
                            specifier.specifier,
                            specifier.local_name,
                        )
                    )
        return entries

    @staticmethod
    def _all_export(
        source: Sequence[_Entry],
        origin: str,
        alias: str | None,
        indexed: _IndexedFile,
    ) -> list[_Entry]:
        entries: list[_Entry] = []
        if alias:
            entries.append(
                (
                    alias,
                    DeclarationInfo(
                        _module_declaration(alias, indexed.resource), origin
                    ),
                )
            )
        for name, info in source:
            if info.declaration.kind is DeclarationKind.DEFAULT:
                continue
            key = f"{alias}.{name}" if alias else name
            entries.append((key, DeclarationInfo(info.declaration, origin)))
        return entries

    @staticmethod
    def _named_export(
        source: Sequence[_Entry],
        origin: str,
        specifier: str,
        exported_as: str,
    ) -> list[_Entry]:
        entries: list[_Entry] = []
        for name, info in source:
            declaration = info.declaration
            is_default = declaration.kind is DeclarationKind.DEFAULT
            if specifier == "default":
                if not is_default:
                    continue
                if exported_as == "default":
                    entries.append((name, DeclarationInfo(declaration, origin)))
                else:
                    # `export { default as Foo }` exposes a named binding.
                    binding = replace(
                        declaration,
                        kind=DeclarationKind.VARIABLE,
                        name=exported_as,
                    )
                    entries.append((exported_as, DeclarationInfo(binding, origin)))
                continue
            if is_default:
                continue
            if name == specifier:
                if exported_as == "default":
                    renamed = replace(declaration, kind=DeclarationKind.DEFAULT)
                    entries.append((renamed.name, DeclarationInfo(renamed, origin)))
                else:
                    renamed = declaration.exported(exported_as)
                    entries.append((exported_as, DeclarationInfo(renamed, origin)))
            elif name.startswith(f"{specifier}."):
                suffix = name[len(specifier):]
                entries.append(
                    (f"{exported_as}{suffix}", DeclarationInfo(declaration, origin))
                )
        return entries

    def _assigned_export(
        self,
        indexed: _IndexedFile,
        name: str | None,
    ) -> list[_Entry]:
        if not name:
            return []
        origin = indexed.module_path
        resource = indexed.resource
        declaration = resource.find_declaration(name)
        if declaration is not None:
            return [(declaration.name, DeclarationInfo(declaration.exported(), origin))]
        namespace = resource.find_resource(name)
        if namespace is None:
            return []
        return [
            (member.name, DeclarationInfo(member, origin))
            for member in namespace.declarations
            if member.is_exported or namespace.is_ambient
        ]

