"""Configuration models and loaders for :mod:`tshero`."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from enum import StrEnum
from pathlib import Path
from typing import Any, Literal, Mapping

import tomllib
import tomlkit
from pydantic import BaseModel, Field, field_validator, model_validator

from tshero.resources import read_resource_text

DEFAULTS_RESOURCE_NAME = "tshero.defaults.toml"

ConcurrencyValue = int | Literal["auto"]
GroupSettingValue = str | dict[str, str]


class GitignoreBehavior(StrEnum):
    """How repository ``.gitignore`` files combine with configured patterns."""

    REPO = "repo"
    WORKSPACE = "workspace"
    COMBINED = "combined"


class IndexSettings(BaseModel):
    """Controls which files feed the declaration index."""

    ignore_patterns: tuple[str, ...] = Field(
        default=("build", "out", "dist", "node_modules", ".tshero"),
        description="gitignore-style patterns excluded from discovery.",
    )
    module_ignore_patterns: tuple[str, ...] = Field(
        default=("node_modules",),
        description=(
            "gitignore-style patterns excluded inside each dependency "
            "package listed in package.json."
        ),
    )
    gitignore_behavior: GitignoreBehavior = Field(
        default=GitignoreBehavior.COMBINED,
        description=(
            "Whether repository .gitignore files, the configured patterns, "
            "or both decide which files are skipped."
        ),
    )
    extensions: tuple[str, ...] = Field(
        default=(".ts", ".tsx"),
        description="File suffixes treated as TypeScript sources.",
    )
    max_concurrency: ConcurrencyValue = Field(
        default="auto",
        description="Worker threads used for extraction, or 'auto'.",
    )

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @field_validator("extensions")
    @classmethod
    def _normalize_extensions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        normalized: list[str] = []
        for raw in value:
            suffix = raw.strip().lower()
            if not suffix:
                continue
            if not suffix.startswith("."):
                suffix = f".{suffix}"
            normalized.append(suffix)
        if not normalized:
            raise ValueError("At least one source extension is required.")
        return tuple(dict.fromkeys(normalized))

    @field_validator("max_concurrency")
    @classmethod
    def _validate_max_concurrency(
        cls,
        value: ConcurrencyValue,
    ) -> ConcurrencyValue:
        if isinstance(value, str):
            if value.strip().lower() != "auto":
                raise ValueError(
                    "Index max_concurrency must be a positive integer or 'auto'."
                )
            return "auto"
        if value < 1:
            raise ValueError("Index max_concurrency must be >= 1.")
        return value


class ImportsSettings(BaseModel):
    """Import generation and organization preferences."""

    string_quote_style: Literal["'", '"'] = Field(
        default="'",
        description="Quote character used around module specifiers.",
    )
    insert_semicolons: bool = Field(
        default=True,
        description="Terminate generated import statements with ';'.",
    )
    insert_space_before_and_after_import_braces: bool = Field(
        default=True,
        description="Render `{ a }` instead of `{a}`.",
    )
    multi_line_wrap_threshold: int = Field(
        default=125,
        ge=1,
        description="Single-line length after which named imports wrap.",
    )
    multi_line_trailing_comma: bool = Field(
        default=True,
        description="Add a trailing comma to wrapped specifier lists.",
    )
    tab_size: int = Field(
        default=4,
        ge=0,
        description="Indentation width for wrapped specifiers.",
    )
    remove_trailing_index: bool = Field(
        default=True,
        description="Strip a trailing '/index' from generated module paths.",
    )
    disable_import_removal_on_organize: bool = Field(
        default=False,
        description="Keep unused imports when organizing.",
    )
    disable_imports_sorting: bool = Field(
        default=False,
        description="Keep imports in source order inside each group.",
    )
    organize_sorts_by_first_specifier: bool = Field(
        default=False,
        description=(
            "Sort imports by their first specifier or alias instead of by "
            "library name."
        ),
    )
    ignored_from_removal: tuple[str, ...] = Field(
        default=("react",),
        description="Libraries whose imports are never removed as unused.",
    )
    grouping: tuple[GroupSettingValue, ...] = Field(
        default=("Plains", "Modules", "Workspace", "Remaining"),
        description=(
            "Ordered import groups: keywords, /regex/ patterns, or "
            "{identifier, order} tables."
        ),
    )

    model_config = {
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @field_validator("grouping")
    @classmethod
    def _validate_grouping(
        cls,
        value: tuple[GroupSettingValue, ...],
    ) -> tuple[GroupSettingValue, ...]:
        for entry in value:
            if isinstance(entry, dict) and "identifier" not in entry:
                raise ValueError(
                    "Import group tables require an 'identifier' key."
                )
        return value


class AppConfig(BaseModel):
    """Root configuration for the :mod:`tshero` application."""

    workspace: Path = Field(
        default_factory=Path.cwd,
        description="Root directory of the TypeScript project.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Default logging level for the application runtime.",
    )
    index: IndexSettings = Field(default_factory=IndexSettings)
    imports: ImportsSettings = Field(default_factory=ImportsSettings)

    model_config = {
        "str_strip_whitespace": True,
        "validate_assignment": True,
    }

    @model_validator(mode="after")
    def _post_process(self) -> "AppConfig":
        object.__setattr__(self, "log_level", self.log_level.upper())
        object.__setattr__(self, "workspace", self.workspace.expanduser())
        return self


def read_packaged_defaults_text() -> str:
    """Return the raw packaged defaults TOML content.

    Example:
        >>> read_packaged_defaults_text().startswith("#")
        True
    """

    return read_resource_text(DEFAULTS_RESOURCE_NAME)


def load_packaged_defaults() -> dict[str, Any]:
    """Load the packaged defaults as a plain dictionary.

    Example:
        >>> load_packaged_defaults()["imports"]["tab_size"]
        4
    """

    return tomllib.loads(read_packaged_defaults_text())


def read_user_config(path: Path) -> dict[str, Any] | None:
    """Parse a user ``tshero.toml`` if present.

    Raises:
        RuntimeError: If the file exists but cannot be read or parsed.
    """

    if not path.exists():
        return None
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(f"Failed to read config file {path}: {exc}") from exc
    if not text.strip():
        return None
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise RuntimeError(
            f"Failed to parse config file {path}: TOML error: {exc}"
        ) from exc


def _deep_merge(
    base: Mapping[str, Any],
    overlay: Mapping[str, Any],
) -> dict[str, Any]:
    """Recursively merge ``overlay`` into ``base`` returning a new dict."""

    merged: dict[str, Any] = dict(base)
    for key, value in overlay.items():
        if (
            key in merged
            and isinstance(merged[key], MappingABC)
            and isinstance(value, MappingABC)
        ):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    *,
    defaults: Mapping[str, Any],
    user_config: Mapping[str, Any] | None = None,
    env_config: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Load configuration according to the precedence stack.

    Args:
        defaults: Packaged defaults shipped with the application.
        user_config: Parsed user ``tshero.toml`` content.
        env_config: Settings derived from ``TSHERO_*`` environment variables.
        cli_overrides: Settings supplied via CLI flags.

    Returns:
        A validated :class:`AppConfig` instance.
    """

    stack = dict(defaults)
    for layer in (user_config, env_config, cli_overrides):
        if layer:
            stack = _deep_merge(stack, layer)
    return AppConfig(**stack)


def _grouping_item(entry: GroupSettingValue) -> Any:
    if isinstance(entry, dict):
        table = tomlkit.inline_table()
        table.update(entry)
        return table
    return entry


def render_user_config(
    config: AppConfig,
    *,
    include_defaults: bool = True,
) -> str:
    """Render a ``tshero.toml`` template for users to customize.

    Args:
        config: Configuration instance to serialize.
        include_defaults: Whether to include the explanatory header.

    Returns:
        A TOML-formatted string ready to persist for the user.
    """

    document = tomlkit.document()

    if include_defaults:
        document.add(tomlkit.comment("Generated by tshero init"))
        document.add(
            tomlkit.comment(
                "Precedence: CLI flags > env vars > tshero.toml > defaults"
            )
        )
        document.add(tomlkit.comment("Environment overrides:"))
        document.add(tomlkit.comment("  TSHERO_WORKSPACE=/path/to/project"))
        document.add(tomlkit.comment("  TSHERO_LOG_LEVEL=info"))
        document.add(tomlkit.nl())

    document["log_level"] = config.log_level

    index = config.index
    index_table = tomlkit.table()
    index_table["ignore_patterns"] = list(index.ignore_patterns)
    index_table["module_ignore_patterns"] = list(index.module_ignore_patterns)
    index_table["gitignore_behavior"] = index.gitignore_behavior.value
    index_table["extensions"] = list(index.extensions)
    index_table["max_concurrency"] = index.max_concurrency
    document["index"] = index_table

    imports = config.imports
    imports_table = tomlkit.table()
    imports_table["string_quote_style"] = imports.string_quote_style
    imports_table["insert_semicolons"] = imports.insert_semicolons
    imports_table["insert_space_before_and_after_import_braces"] = (
        imports.insert_space_before_and_after_import_braces
    )
    imports_table["multi_line_wrap_threshold"] = (
        imports.multi_line_wrap_threshold
    )
    imports_table["multi_line_trailing_comma"] = (
        imports.multi_line_trailing_comma
    )
    imports_table["tab_size"] = imports.tab_size
    imports_table["remove_trailing_index"] = imports.remove_trailing_index
    imports_table["disable_import_removal_on_organize"] = (
        imports.disable_import_removal_on_organize
    )
    imports_table["disable_imports_sorting"] = imports.disable_imports_sorting
    imports_table["organize_sorts_by_first_specifier"] = (
        imports.organize_sorts_by_first_specifier
    )
    imports_table["ignored_from_removal"] = list(imports.ignored_from_removal)
    grouping = tomlkit.array()
    for entry in imports.grouping:
        grouping.append(_grouping_item(entry))
    imports_table["grouping"] = grouping
    document["imports"] = imports_table

    return tomlkit.dumps(document)


__all__ = [
    "AppConfig",
    "DEFAULTS_RESOURCE_NAME",
    "GitignoreBehavior",
    "ImportsSettings",
    "IndexSettings",
    "load_config",
    "load_packaged_defaults",
    "read_packaged_defaults_text",
    "read_user_config",
    "render_user_config",
]
