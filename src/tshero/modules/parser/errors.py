"""Exceptions raised while extracting TypeScript resources."""

from __future__ import annotations

from pathlib import Path


class ParserError(RuntimeError):
    """Base error for extraction failures."""


class NotParseableError(ParserError):
    """Raised when a source cannot be turned into a complete resource tree."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        self.path = path
        location = f"{path}: " if path is not None else ""
        super().__init__(f"{location}{message}")


__all__ = ["NotParseableError", "ParserError"]
