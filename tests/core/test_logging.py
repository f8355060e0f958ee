"""Tests for :mod:`tshero.core.logging`."""

from __future__ import annotations

import gzip
import io
import json
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest
from rich.console import Console
from rich.logging import RichHandler

from tshero.core.logging import (
    LOG_FILENAME,
    bind_command_context,
    configure_logging,
    get_logger,
)


def _build_console() -> Console:
    """Return a console that writes to an in-memory buffer for tests."""

    return Console(file=io.StringIO(), width=120, record=True)


def test_configure_logging_writes_json_lines(tmp_path: Path) -> None:
    logs_dir = tmp_path / "logs"

    configure_logging(level="debug", logs_dir=logs_dir, console=_build_console())

    root = logging.getLogger()
    rich_handlers = [h for h in root.handlers if isinstance(h, RichHandler)]
    file_handlers = [
        h for h in root.handlers if isinstance(h, TimedRotatingFileHandler)
    ]
    assert len(rich_handlers) == 1
    assert len(file_handlers) == 1

    logger = get_logger(__name__, component="index")
    logger.info("index-build-start", files=3)
    for handler in root.handlers:
        handler.flush()

    log_file = logs_dir / LOG_FILENAME
    payload = json.loads(log_file.read_text(encoding="utf-8").strip())
    assert payload["event"] == "index-build-start"
    assert payload["component"] == "index"
    assert payload["files"] == 3
    assert payload["level"] == "info"


def test_configure_logging_without_logs_dir_is_console_only() -> None:
    configure_logging(level="info", console=_build_console())

    root = logging.getLogger()
    assert root.level == logging.INFO
    assert any(isinstance(h, RichHandler) for h in root.handlers)
    assert not any(
        isinstance(h, TimedRotatingFileHandler) for h in root.handlers
    )


def test_configure_logging_replaces_previous_handlers(tmp_path: Path) -> None:
    configure_logging(level="info", logs_dir=tmp_path, console=_build_console())
    configure_logging(level="warning", console=_build_console())

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.level == logging.WARNING


def test_configure_logging_rejects_unknown_level() -> None:
    with pytest.raises(ValueError):
        configure_logging(level="chatty", console=_build_console())


def test_configure_logging_rotates_with_compression(tmp_path: Path) -> None:
    logs_dir = tmp_path / "logs"
    configure_logging(level="warning", logs_dir=logs_dir, console=_build_console())
    root = logging.getLogger()
    file_handler = next(
        h for h in root.handlers if isinstance(h, TimedRotatingFileHandler)
    )

    get_logger("rotate", task="rotation").warning("pre-rotation", sample=True)
    for handler in root.handlers:
        handler.flush()

    file_handler.doRollover()

    archives = sorted(logs_dir.glob(f"{LOG_FILENAME}.*.gz"))
    assert archives, "Expected a compressed log archive after rollover"
    with gzip.open(archives[-1], "rt", encoding="utf-8") as fh:
        archived = fh.read()
    assert "pre-rotation" in archived


def test_command_context_is_merged_into_records(tmp_path: Path) -> None:
    configure_logging(level="info", logs_dir=tmp_path, console=_build_console())
    bind_command_context(command="index", workspace="/repo")
    bind_command_context(command="resolve")

    get_logger("context").info("resolve-applied", added=1)
    for handler in logging.getLogger().handlers:
        handler.flush()

    payload = json.loads((tmp_path / LOG_FILENAME).read_text(encoding="utf-8"))
    assert payload["command"] == "resolve"
    assert "workspace" not in payload
    assert payload["added"] == 1
