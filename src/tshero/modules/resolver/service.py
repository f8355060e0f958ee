"""Match unresolved symbol usages against the declaration index."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from tshero.core.logging import Logger, get_logger
from tshero.modules.index import DeclarationIndex, DeclarationInfo
from tshero.modules.parser import DeclarationKind, Import, ImportKind, Resource
from tshero.modules.parser.naming import absolute_library_name, module_path_for

__all__ = [
    "ImportUserDecision",
    "MissingImportsReport",
    "ResolverError",
    "UsageResolver",
    "filter_by_imports",
    "resolve_missing",
]


class ResolverError(RuntimeError):
    """Raised when a resolution request cannot be satisfied."""


@dataclass(frozen=True, slots=True)
class ImportUserDecision:
    """Request to import ``declaration`` so that ``usage`` resolves."""

    declaration: DeclarationInfo
    usage: str


def filter_by_imports(
    infos: Iterable[DeclarationInfo],
    imports: Sequence[Import],
    file_path: Path | str,
    root: Path | str,
) -> list[DeclarationInfo]:
    """Drop candidates that an existing import already provides."""

    candidates = list(infos)
    for import_ in imports:
        library = absolute_library_name(import_.library_name, file_path, root)
        if import_.kind is ImportKind.NAMED:
            names = {spec.specifier for spec in import_.specifiers}
            candidates = [
                info
                for info in candidates
                if info.origin != library or info.name not in names
            ]
            if import_.default_alias:
                candidates = [
                    info
                    for info in candidates
                    if not (
                        info.declaration.kind is DeclarationKind.DEFAULT
                        and info.origin == library
                    )
                ]
        elif import_.kind in (ImportKind.NAMESPACE, ImportKind.EXTERNAL_MODULE):
            candidates = [info for info in candidates if info.origin != library]
    return candidates


def resolve_missing(
    usages: Iterable[str],
    current_imports: Sequence[Import],
    index: DeclarationIndex,
    current_file_path: Path | str,
    workspace_root: Path | str,
) -> dict[str, list[DeclarationInfo]]:
    """Return import candidates for every usage no import satisfies.

    Usages bound by an existing import are skipped entirely. Every other
    usage maps to its (possibly empty) list of candidates, excluding
    declarations that live in the current file.
    """

    bound: set[str] = set()
    for import_ in current_imports:
        bound.update(import_.bound_names)
    own_module = module_path_for(current_file_path, workspace_root)

    result: dict[str, list[DeclarationInfo]] = {}
    for usage in usages:
        if usage in bound or usage in result:
            continue
        candidates = filter_by_imports(
            index.get(usage),
            current_imports,
            current_file_path,
            workspace_root,
        )
        result[usage] = [info for info in candidates if info.origin != own_module]
    return result


@dataclass(frozen=True, slots=True)
class MissingImportsReport:
    """Partition of :func:`resolve_missing` results.

    ``resolvable`` holds usages with exactly one candidate, ``ambiguous``
    those with several (for the caller to choose from) and ``unresolved``
    those the index knows nothing about.
    """

    resolvable: tuple[ImportUserDecision, ...] = ()
    ambiguous: Mapping[str, tuple[DeclarationInfo, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    unresolved: tuple[str, ...] = ()

    @classmethod
    def from_result(
        cls,
        result: Mapping[str, Sequence[DeclarationInfo]],
    ) -> "MissingImportsReport":
        resolvable: list[ImportUserDecision] = []
        ambiguous: dict[str, tuple[DeclarationInfo, ...]] = {}
        unresolved: list[str] = []
        for usage, candidates in result.items():
            if not candidates:
                unresolved.append(usage)
            elif len(candidates) == 1:
                resolvable.append(ImportUserDecision(candidates[0], usage))
            else:
                ambiguous[usage] = tuple(candidates)
        return cls(
            resolvable=tuple(resolvable),
            ambiguous=MappingProxyType(ambiguous),
            unresolved=tuple(unresolved),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.resolvable or self.ambiguous or self.unresolved)

    def choose(self, usage: str, origin: str) -> ImportUserDecision:
        """Pick the ambiguous candidate of ``usage`` declared in ``origin``.

        Raises:
            ResolverError: If ``usage`` is not ambiguous or ``origin`` is
                not among its candidates.
        """

        candidates = self.ambiguous.get(usage)
        if candidates is None:
            raise ResolverError(f"'{usage}' has no ambiguous candidates")
        for info in candidates:
            if info.origin == origin:
                return ImportUserDecision(info, usage)
        choices = ", ".join(info.origin for info in candidates)
        raise ResolverError(
            f"'{usage}' is not declared in {origin}; choose one of: {choices}"
        )


class UsageResolver:
    """Resolve a parsed document's missing imports against an index."""

    def __init__(
        self,
        index: DeclarationIndex,
        *,
        logger: Logger | None = None,
    ) -> None:
        self._index = index
        self._logger = logger or get_logger(__name__, component="resolver")

    @property
    def index(self) -> DeclarationIndex:
        return self._index

    def missing_imports(
        self,
        resource: Resource,
        file_path: Path | str,
    ) -> MissingImportsReport:
        result = resolve_missing(
            resource.non_local_usages,
            resource.imports,
            self._index,
            file_path,
            self._index.root,
        )
        report = MissingImportsReport.from_result(result)
        self._logger.debug(
            "resolver-missing-imports",
            path=str(file_path),
            resolvable=len(report.resolvable),
            ambiguous=len(report.ambiguous),
            unresolved=len(report.unresolved),
        )
        return report
