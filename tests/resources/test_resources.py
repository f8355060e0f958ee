"""Tests for :mod:`tshero.resources`."""

from __future__ import annotations

import pytest

from tshero.resources import get_resource, read_resource_text


def test_get_resource_returns_packaged_defaults() -> None:
    resource = get_resource("tshero.defaults.toml")

    assert "[imports]" in resource.read_text(encoding="utf-8")


def test_get_resource_missing_file_raises() -> None:
    with pytest.raises(FileNotFoundError):
        get_resource("does-not-exist.toml")


def test_read_resource_text_matches_handle() -> None:
    expected = get_resource("tshero.defaults.toml").read_text(encoding="utf-8")

    assert read_resource_text("tshero.defaults.toml") == expected
