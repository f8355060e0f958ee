"""Files shipped inside the :mod:`tshero` package (packaged defaults)."""

from __future__ import annotations

from importlib import resources
from importlib.resources.abc import Traversable


def get_resource(relative_path: str) -> Traversable:
    """Return a handle to a packaged file.

    Raises:
        FileNotFoundError: If no such file ships with the package.

    Example:
        >>> get_resource("tshero.defaults.toml").name
        'tshero.defaults.toml'
    """

    candidate = resources.files(__package__).joinpath(relative_path)
    if not candidate.is_file():
        raise FileNotFoundError(
            f"Packaged resource not found: {relative_path}"
        )
    return candidate


def read_resource_text(relative_path: str) -> str:
    return get_resource(relative_path).read_text(encoding="utf-8")


__all__ = ["get_resource", "read_resource_text"]
