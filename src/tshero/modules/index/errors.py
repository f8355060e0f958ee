"""Exceptions raised by the declaration index."""

from __future__ import annotations


class DeclarationIndexError(RuntimeError):
    """Raised when the index cannot accept or restore the requested state."""


__all__ = ["DeclarationIndexError"]
