"""Workspace file discovery for the declaration index."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator, Sequence

from pathspec import PathSpec

from tshero.core.config import GitignoreBehavior
from tshero.core.logging import Logger, get_logger

__all__ = ["ModuleDiscovery", "WorkspaceDiscovery"]

PACKAGE_MANIFEST = "package.json"
TYPINGS_DIR = "typings"
NODE_MODULES_DIR = "node_modules"
DECLARATION_SUFFIX = ".d.ts"
_DEPENDENCY_SECTIONS = ("dependencies", "devDependencies")


class WorkspaceDiscovery:
    """Enumerate TypeScript sources under a workspace honoring ignore rules.

    Configured ``ignore_patterns`` use gitignore semantics relative to the
    workspace root. Depending on ``gitignore_behavior`` the repository's own
    ``.gitignore`` files (at any depth) are applied as well.

    Example:
        >>> discovery = WorkspaceDiscovery(root=Path("."))  # doctest: +SKIP
        >>> sorted(discovery.iter_files())  # doctest: +SKIP
        [PosixPath('src/main.ts')]
    """

    def __init__(
        self,
        *,
        root: Path,
        gitignore_behavior: GitignoreBehavior = GitignoreBehavior.COMBINED,
        ignore_patterns: Sequence[str] = (),
        extensions: Sequence[str] = (".ts", ".tsx"),
        follow_symlinks: bool = False,
    ) -> None:
        if not root.exists():
            raise FileNotFoundError(f"Workspace root not found: {root}")
        if not root.is_dir():
            raise NotADirectoryError(
                f"Workspace root must be a directory: {root}"
            )
        self._root = root.resolve()
        self._extensions = tuple(ext.lower() for ext in extensions)
        self._workspace_spec = (
            PathSpec.from_lines("gitwildmatch", ignore_patterns)
            if ignore_patterns
            and gitignore_behavior
            in (GitignoreBehavior.WORKSPACE, GitignoreBehavior.COMBINED)
            else None
        )
        self._repo_enabled = gitignore_behavior in (
            GitignoreBehavior.REPO,
            GitignoreBehavior.COMBINED,
        )
        self._follow_symlinks = follow_symlinks
        self._gitignore_cache: dict[Path, PathSpec | None] = {}

    @property
    def root(self) -> Path:
        return self._root

    def iter_files(self) -> Iterator[Path]:
        """Yield absolute paths of source files in deterministic order."""

        yield from self._walk(self._root, [])

    def discover(self) -> tuple[Path, ...]:
        return tuple(self.iter_files())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _walk(
        self,
        directory: Path,
        stack: list[tuple[Path, PathSpec]],
    ) -> Iterator[Path]:
        local_spec = self._load_gitignore(directory)
        if local_spec is not None:
            stack = [*stack, (directory, local_spec)]

        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except PermissionError:
            return

        for entry in entries:
            if entry.is_symlink() and not self._follow_symlinks:
                continue
            try:
                is_dir = entry.is_dir()
            except OSError:
                continue

            if self._is_ignored(entry, stack, is_dir=is_dir):
                continue

            if is_dir:
                yield from self._walk(entry, stack)
                continue

            if entry.is_file() and self._has_source_suffix(entry):
                yield entry

    def _has_source_suffix(self, path: Path) -> bool:
        name = path.name.lower()
        return any(name.endswith(ext) for ext in self._extensions)

    def _is_ignored(
        self,
        path: Path,
        stack: Sequence[tuple[Path, PathSpec]],
        *,
        is_dir: bool,
    ) -> bool:
        suffix = "/" if is_dir else ""
        candidate = f"{path.relative_to(self._root).as_posix()}{suffix}"
        if (
            self._workspace_spec is not None
            and self._workspace_spec.match_file(candidate)
        ):
            return True
        # Each .gitignore matches paths relative to its own directory.
        return any(
            spec.match_file(f"{path.relative_to(base).as_posix()}{suffix}")
            for base, spec in stack
        )

    def _load_gitignore(self, directory: Path) -> PathSpec | None:
        if not self._repo_enabled:
            return None
        if directory in self._gitignore_cache:
            return self._gitignore_cache[directory]
        gitignore = directory / ".gitignore"
        spec: PathSpec | None = None
        if gitignore.is_file():
            try:
                lines = gitignore.read_text(encoding="utf-8").splitlines()
            except OSError:
                lines = []
            if lines:
                spec = PathSpec.from_lines("gitwildmatch", lines)
        self._gitignore_cache[directory] = spec
        return spec


class ModuleDiscovery:
    """Enumerate the declaration files of installed libraries.

    Yields ``typings/**/*.d.ts`` plus the ``.d.ts`` files of every package
    listed under ``dependencies`` or ``devDependencies`` in the workspace
    ``package.json``. ``ignore_patterns`` use gitignore semantics relative to
    each package directory. Without a manifest no ``node_modules`` file is
    returned.
    """

    def __init__(
        self,
        *,
        root: Path,
        ignore_patterns: Sequence[str] = (),
        follow_symlinks: bool = False,
        logger: Logger | None = None,
    ) -> None:
        if not root.is_dir():
            raise NotADirectoryError(
                f"Workspace root must be a directory: {root}"
            )
        self._root = root.resolve()
        self._module_spec = (
            PathSpec.from_lines("gitwildmatch", ignore_patterns)
            if ignore_patterns
            else None
        )
        self._follow_symlinks = follow_symlinks
        self._logger = logger or get_logger(__name__, component="discovery")

    @property
    def root(self) -> Path:
        return self._root

    def dependencies(self) -> tuple[str, ...]:
        """Return the package names declared in ``package.json``."""

        manifest = self._root / PACKAGE_MANIFEST
        if not manifest.is_file():
            return ()
        try:
            data = json.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            self._logger.warning(
                "package-manifest-invalid",
                path=str(manifest),
                error=str(exc),
            )
            return ()
        if not isinstance(data, dict):
            return ()

        names: dict[str, None] = {}
        for section in _DEPENDENCY_SECTIONS:
            entries = data.get(section)
            if not isinstance(entries, dict):
                continue
            for name in entries:
                # Package names never leave node_modules.
                if not name or name.startswith("/") or ".." in name.split("/"):
                    continue
                names[name] = None
        return tuple(names)

    def iter_files(self) -> Iterator[Path]:
        yield from self._declarations(self._root / TYPINGS_DIR, None)
        for package in self.dependencies():
            package_dir = self._root / NODE_MODULES_DIR / package
            if not package_dir.is_dir():
                self._logger.debug("package-not-installed", package=package)
                continue
            yield from self._declarations(package_dir, self._module_spec)

    def discover(self) -> tuple[Path, ...]:
        return tuple(self.iter_files())

    def _declarations(
        self,
        base: Path,
        spec: PathSpec | None,
        directory: Path | None = None,
    ) -> Iterator[Path]:
        directory = directory or base
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except (FileNotFoundError, NotADirectoryError, PermissionError):
            return

        for entry in entries:
            if entry.is_symlink() and not self._follow_symlinks:
                continue
            try:
                is_dir = entry.is_dir()
            except OSError:
                continue
            if spec is not None:
                suffix = "/" if is_dir else ""
                if spec.match_file(f"{entry.relative_to(base).as_posix()}{suffix}"):
                    continue
            if is_dir:
                yield from self._declarations(base, spec, entry)
            elif entry.name.lower().endswith(DECLARATION_SUFFIX):
                yield entry
