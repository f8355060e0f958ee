"""Exceptions raised while parsing import grouping policies."""

from __future__ import annotations


class ImportGroupError(ValueError):
    """Base error for invalid import grouping configuration."""


class ImportGroupIdentifierInvalidError(ImportGroupError):
    """Raised for a group identifier that is neither a keyword nor a regex."""

    def __init__(self, identifier: str, reason: str | None = None) -> None:
        self.identifier = identifier
        message = (
            f"Import group identifier {identifier!r} is invalid. "
            "Use one of Plains, Modules, Workspace, Remaining or a /regex/."
        )
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ImportGroupPolicyError(ImportGroupError):
    """Raised when the group list as a whole is unusable."""


__all__ = [
    "ImportGroupError",
    "ImportGroupIdentifierInvalidError",
    "ImportGroupPolicyError",
]
