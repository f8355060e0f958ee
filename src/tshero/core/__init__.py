"""Core utilities shared across :mod:`tshero` modules.

The core namespace provides the seams for configuration loading, logging
setup, and workspace path resolution so feature modules stay small.

Example:
    >>> from tshero.core import get_logger
    >>> logger = get_logger(__name__)
    >>> isinstance(logger, object)
    True
"""

from __future__ import annotations

from .config import AppConfig, ImportsSettings, IndexSettings, load_config
from .logging import configure_logging, get_logger
from .paths import WorkspacePaths, resolve_workspace

__all__ = [
    "AppConfig",
    "ImportsSettings",
    "IndexSettings",
    "configure_logging",
    "get_logger",
    "load_config",
    "WorkspacePaths",
    "resolve_workspace",
]
