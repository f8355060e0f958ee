"""Module-path naming rules shared by the index, resolver and import manager.

Workspace files are addressed by a *workspace-absolute* module path: the file
path relative to the workspace root, prefixed with ``/``, without its
TypeScript extension and without a trailing ``/index`` segment. Files inside
``node_modules`` are addressed by the package name a user would import.

Example:
    >>> from pathlib import Path
    >>> module_path_for(Path("/repo/src/util/index.ts"), Path("/repo"))
    '/src/util'
    >>> absolute_library_name("../models", Path("/repo/src/app/main.ts"), Path("/repo"))
    '/src/models'
    >>> relative_library_name("/src/models", Path("/repo/src/app/main.ts"), Path("/repo"))
    '../models'
"""

from __future__ import annotations

import os
import posixpath
import re
from pathlib import Path, PurePosixPath

__all__ = [
    "absolute_library_name",
    "is_workspace_path",
    "module_path_for",
    "namespace_alias",
    "node_library_name",
    "relative_library_name",
    "strip_trailing_index",
]

_EXTENSION_RE = re.compile(r"(\.d)?\.(tsx?|mts|cts)$")
_ALIAS_SPLIT_RE = re.compile(r"[-_./@]+")
_NODE_MODULES = "node_modules"


def strip_trailing_index(path: str) -> str:
    """Drop a trailing ``/index`` segment; the workspace root becomes ``/``."""

    if path == "index":
        return "."
    if path.endswith("/index"):
        trimmed = path[: -len("/index")]
        return trimmed or "/"
    return path


def _strip_extension(path: str) -> str:
    return _EXTENSION_RE.sub("", path)


def node_library_name(parts: tuple[str, ...]) -> str:
    """Return the importable package name for a path inside ``node_modules``.

    ``parts`` are the path segments following the last ``node_modules``.
    Declarations shipped under ``@types`` map to the typed package.
    """

    segments = list(parts)
    if segments and segments[0] == "@types":
        segments = segments[1:]
    if not segments:
        return ""
    package_len = 2 if segments[0].startswith("@") else 1
    package = "/".join(segments[:package_len])
    name = _strip_extension("/".join(segments))
    name = strip_trailing_index(name)
    # ``node_modules/foo/foo.d.ts`` is the package entry point.
    package_tail = segments[package_len - 1]
    if name == f"{package}/{package_tail}":
        return package
    return name


def _relative_parts(path: Path, root: Path) -> tuple[str, ...]:
    try:
        relative = path.relative_to(root)
    except ValueError:
        relative = Path(os.path.relpath(path, root))
    return PurePosixPath(relative.as_posix()).parts


def module_path_for(file_path: Path | str, root: Path | str) -> str:
    """Return the workspace-absolute module path of ``file_path``."""

    parts = _relative_parts(Path(file_path), Path(root))
    if _NODE_MODULES in parts:
        index = len(parts) - 1 - parts[::-1].index(_NODE_MODULES)
        return node_library_name(parts[index + 1 :])
    path = "/" + _strip_extension("/".join(parts))
    return strip_trailing_index(path)


def _module_directory(file_path: Path | str, root: Path | str) -> str:
    parts = _relative_parts(Path(file_path), Path(root))
    return "/" + "/".join(parts[:-1])


def is_workspace_path(library_name: str) -> bool:
    return library_name.startswith(".") or library_name.startswith("/")


def absolute_library_name(
    library_name: str,
    file_path: Path | str,
    root: Path | str,
) -> str:
    """Normalize an import specifier to its workspace-absolute form.

    Bare package names (and already absolute paths) are returned unchanged,
    so relative specifiers written from different files compare equal when
    they point at the same module.
    """

    if not library_name.startswith("."):
        return library_name
    directory = _module_directory(file_path, root)
    joined = posixpath.normpath(posixpath.join(directory, library_name))
    if not joined.startswith("/"):
        joined = "/" + joined
    joined = _strip_extension(joined.rstrip("/")) or "/"
    return strip_trailing_index(joined)


def relative_library_name(
    library_name: str,
    file_path: Path | str,
    root: Path | str,
) -> str:
    """Return the specifier ``file_path`` should use to import a module."""

    if not library_name.startswith("/"):
        return library_name
    directory = _module_directory(file_path, root)
    relative = posixpath.relpath(library_name, directory)
    if relative == ".":
        return "."
    if relative == ".." or relative.startswith("../"):
        return relative
    return f"./{relative}"


def namespace_alias(library_name: str) -> str:
    """Return a camel-cased identifier for a module name.

    Example:
        >>> namespace_alias("lodash-es")
        'lodashEs'
    """

    parts = [part for part in _ALIAS_SPLIT_RE.split(library_name) if part]
    if not parts:
        return library_name
    head, *tail = parts
    return head[0].lower() + head[1:] + "".join(
        part[0].upper() + part[1:] for part in tail
    )
