"""Shared pytest fixtures for TypeScript workspace tests."""

from __future__ import annotations

import logging
import textwrap
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
import structlog


def _clear_root_handlers() -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep ``TSHERO_*`` variables and file log handlers out of each test."""

    monkeypatch.delenv("TSHERO_WORKSPACE", raising=False)
    monkeypatch.delenv("TSHERO_LOG_LEVEL", raising=False)
    yield
    structlog.contextvars.clear_contextvars()
    _clear_root_handlers()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Return an empty TypeScript project root."""

    root = tmp_path / "project"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def write_source(project: Path) -> Callable[[str, str], Path]:
    """Write dedented source text below ``project`` and return its path."""

    def _write(relative: str, text: str) -> Path:
        path = project / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
        return path

    return _write
