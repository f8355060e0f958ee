"""Structured logging for :mod:`tshero` commands and services.

Records flow through structlog into stdlib logging and fan out to a Rich
console handler on stderr. Commands bound to a workspace also append JSON
lines to ``.tshero/logs/tshero.log``, which rolls over at midnight (UTC)
into gzip archives.
"""

from __future__ import annotations

import gzip
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
import shutil
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
import structlog

Logger = structlog.stdlib.BoundLogger

LOG_FILENAME = "tshero.log"
ARCHIVE_RETENTION_DAYS = 7

_SHARED_PROCESSORS: tuple[Any, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
)


def _level_number(level: str) -> int:
    try:
        return logging.getLevelNamesMapping()[level.strip().upper()]
    except KeyError:
        raise ValueError(f"Unsupported log level: {level!r}") from None


def _formatter(renderer: Any) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=list(_SHARED_PROCESSORS),
    )


def _compress_archive(source: str, dest: str) -> None:
    with open(source, "rb") as plain, gzip.open(dest, "wb") as packed:
        shutil.copyfileobj(plain, packed)
    Path(source).unlink(missing_ok=True)


def _file_handler(logs_dir: Path, level: int) -> TimedRotatingFileHandler:
    logs_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        logs_dir / LOG_FILENAME,
        when="midnight",
        backupCount=ARCHIVE_RETENTION_DAYS,
        utc=True,
        encoding="utf-8",
        delay=True,
    )
    # Archives are named tshero.log.YYYY-MM-DD.gz
    handler.suffix = "%Y-%m-%d"
    handler.namer = lambda name: f"{name}.gz"
    handler.rotator = _compress_archive
    handler.setLevel(level)
    handler.setFormatter(
        _formatter(structlog.processors.JSONRenderer(sort_keys=True))
    )
    return handler


def _console_handler(level: int, console: Console | None) -> RichHandler:
    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
        markup=False,
        enable_link_path=False,
        log_time_format="%H:%M:%S",
    )
    handler.setLevel(level)
    handler.setFormatter(_formatter(structlog.dev.ConsoleRenderer(colors=False)))
    return handler


def configure_logging(
    *,
    level: str = "WARNING",
    logs_dir: str | Path | None = None,
    console: Console | None = None,
) -> None:
    """Route structlog through the root logger and (re)install its handlers.

    Calling it again replaces the handlers installed by the previous call,
    so each command invocation starts from a clean slate.

    Args:
        level: Log level name applied to the root logger (case-insensitive).
        logs_dir: Optional directory receiving the rotating JSON log file.
        console: Optional Rich console override, primarily for testing.

    Raises:
        ValueError: If ``level`` is not a recognized log level name.
    """

    numeric = _level_number(level)
    handlers: list[logging.Handler] = [_console_handler(numeric, console)]
    if logs_dir is not None:
        directory = Path(logs_dir).expanduser().resolve(strict=False)
        handlers.append(_file_handler(directory, numeric))

    structlog.reset_defaults()
    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(numeric)
    logging.captureWarnings(True)


def bind_command_context(**values: Any) -> None:
    """Replace the context merged into every record of the running command.

    Example:
        >>> bind_command_context(command="index", workspace="/tmp/app")
        >>> structlog.contextvars.get_contextvars()["command"]
        'index'
    """

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)


def get_logger(name: str | None = None, **initial_context: Any) -> Logger:
    """Return a structured logger bound to an optional context.

    Example:
        >>> logger = get_logger(__name__, component="index")
        >>> isinstance(logger, structlog.stdlib.BoundLogger)
        True
    """

    return structlog.get_logger(name).bind(**initial_context)


__all__ = [
    "ARCHIVE_RETENTION_DAYS",
    "LOG_FILENAME",
    "Logger",
    "bind_command_context",
    "configure_logging",
    "get_logger",
]
