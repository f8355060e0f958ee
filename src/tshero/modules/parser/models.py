"""Resource tree produced by the TypeScript extractor.

Declarations, imports and exports are tagged records: each carries a ``kind``
discriminant and the fields that only some variants use default to empty
values. Consumers switch on ``kind`` instead of on Python types.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Iterator

__all__ = [
    "Declaration",
    "DeclarationKind",
    "Export",
    "ExportKind",
    "Import",
    "ImportKind",
    "Method",
    "Parameter",
    "Property",
    "Resource",
    "ResourceKind",
    "SymbolSpecifier",
    "Visibility",
]


class ResourceKind(StrEnum):
    """Scope units a resource can represent."""

    FILE = "file"
    NAMESPACE = "namespace"
    MODULE = "module"


class DeclarationKind(StrEnum):
    """Declaration variants recognized by the extractor."""

    CLASS = "class"
    INTERFACE = "interface"
    FUNCTION = "function"
    ENUM = "enum"
    VARIABLE = "variable"
    TYPE_ALIAS = "type_alias"
    MODULE = "module"
    DEFAULT = "default"


class ImportKind(StrEnum):
    """Import statement variants."""

    NAMED = "named"
    NAMESPACE = "namespace"
    EXTERNAL_MODULE = "external_module"
    STRING = "string"


class ExportKind(StrEnum):
    """Re-export statement variants."""

    ALL = "all"
    NAMED = "named"
    ASSIGNED = "assigned"


class Visibility(StrEnum):
    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"


@dataclass(frozen=True, slots=True)
class Parameter:
    name: str
    type: str | None = None
    optional: bool = False
    default: str | None = None


@dataclass(frozen=True, slots=True)
class Property:
    """Class or interface property (including constructor properties)."""

    name: str
    type: str | None = None
    visibility: Visibility = Visibility.PUBLIC
    modifiers: tuple[str, ...] = ()
    optional: bool = False


@dataclass(frozen=True, slots=True)
class Method:
    """Class or interface method signature."""

    name: str
    parameters: tuple[Parameter, ...] = ()
    return_type: str | None = None
    visibility: Visibility = Visibility.PUBLIC
    modifiers: tuple[str, ...] = ()

    @property
    def is_abstract(self) -> bool:
        return "abstract" in self.modifiers


@dataclass(frozen=True, slots=True)
class Declaration:
    """A named program entity owned by exactly one resource.

    ``start``/``end`` are byte offsets into the UTF-8 encoded source.
    """

    kind: DeclarationKind
    name: str
    is_exported: bool = False
    start: int | None = None
    end: int | None = None
    properties: tuple[Property, ...] = ()
    methods: tuple[Method, ...] = ()
    parameters: tuple[Parameter, ...] = ()
    return_type: str | None = None
    type: str | None = None
    members: tuple[str, ...] = ()
    is_const: bool = False

    def exported(self, name: str | None = None) -> "Declaration":
        """Return a copy flagged as exported, optionally renamed."""

        return replace(self, is_exported=True, name=name or self.name)


@dataclass(frozen=True, slots=True)
class SymbolSpecifier:
    """One ``name`` or ``name as alias`` entry of an import/export list.

    ``is_type_only`` marks an inline ``type`` modifier (``{ type T }``).
    """

    specifier: str
    alias: str | None = None
    is_type_only: bool = False

    @property
    def local_name(self) -> str:
        return self.alias or self.specifier

    def render(self) -> str:
        prefix = "type " if self.is_type_only else ""
        if self.alias and self.alias != self.specifier:
            return f"{prefix}{self.specifier} as {self.alias}"
        return f"{prefix}{self.specifier}"


@dataclass(frozen=True, slots=True)
class Import:
    """An import statement.

    Imports without ``start``/``end`` do not exist in the source yet. The
    library name is fixed at construction; edits produce new instances.
    ``is_type_only`` marks an ``import type`` statement.
    """

    kind: ImportKind
    library_name: str
    start: int | None = None
    end: int | None = None
    specifiers: tuple[SymbolSpecifier, ...] = ()
    default_alias: str | None = None
    alias: str | None = None
    is_type_only: bool = False

    def __post_init__(self) -> None:
        if self.specifiers:
            unique = tuple(dict.fromkeys(self.specifiers))
            object.__setattr__(self, "specifiers", unique)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def named(
        cls,
        library_name: str,
        specifiers: tuple[SymbolSpecifier, ...] = (),
        *,
        default_alias: str | None = None,
        start: int | None = None,
        end: int | None = None,
        type_only: bool = False,
    ) -> "Import":
        return cls(
            kind=ImportKind.NAMED,
            library_name=library_name,
            specifiers=tuple(specifiers),
            default_alias=default_alias,
            start=start,
            end=end,
            is_type_only=type_only,
        )

    @classmethod
    def namespace(
        cls,
        library_name: str,
        alias: str,
        *,
        start: int | None = None,
        end: int | None = None,
        type_only: bool = False,
    ) -> "Import":
        return cls(
            kind=ImportKind.NAMESPACE,
            library_name=library_name,
            alias=alias,
            start=start,
            end=end,
            is_type_only=type_only,
        )

    @classmethod
    def external_module(
        cls,
        library_name: str,
        alias: str,
        *,
        start: int | None = None,
        end: int | None = None,
        type_only: bool = False,
    ) -> "Import":
        return cls(
            kind=ImportKind.EXTERNAL_MODULE,
            library_name=library_name,
            alias=alias,
            start=start,
            end=end,
            is_type_only=type_only,
        )

    @classmethod
    def string(
        cls,
        library_name: str,
        *,
        start: int | None = None,
        end: int | None = None,
    ) -> "Import":
        return cls(
            kind=ImportKind.STRING,
            library_name=library_name,
            start=start,
            end=end,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def is_new(self) -> bool:
        return self.start is None and self.end is None

    @property
    def bound_names(self) -> tuple[str, ...]:
        """Local identifiers this import brings into scope."""

        if self.kind is ImportKind.NAMED:
            names = [spec.local_name for spec in self.specifiers]
            if self.default_alias:
                names.insert(0, self.default_alias)
            return tuple(names)
        if self.kind in (ImportKind.NAMESPACE, ImportKind.EXTERNAL_MODULE):
            return (self.alias,) if self.alias else ()
        return ()

    def with_specifiers(
        self,
        specifiers: tuple[SymbolSpecifier, ...],
        *,
        default_alias: str | None = None,
    ) -> "Import":
        return replace(
            self,
            specifiers=tuple(specifiers),
            default_alias=default_alias,
        )

    def detached(self) -> "Import":
        """Return a copy without source offsets."""

        return replace(self, start=None, end=None)


@dataclass(frozen=True, slots=True)
class Export:
    """A re-export or assignment export statement.

    ``library_name`` is ``None`` for local export lists (``export { a }``),
    which only flag declarations of the owning resource as exported.
    """

    kind: ExportKind
    library_name: str | None = None
    specifiers: tuple[SymbolSpecifier, ...] = ()
    alias: str | None = None
    declaration_name: str | None = None
    start: int | None = None
    end: int | None = None


@dataclass(slots=True)
class Resource:
    """A lexical scope: the file itself, a namespace, or a module block.

    ``is_ambient`` marks ``declare``d scopes whose members are visible
    without an ``export`` keyword. ``is_external`` marks string-named module
    declarations (``declare module 'pkg'``), whose name is the library a
    consumer imports from.
    """

    kind: ResourceKind
    name: str
    start: int | None = None
    end: int | None = None
    module_path: str | None = None
    is_exported: bool = False
    is_ambient: bool = False
    is_external: bool = False
    imports: list[Import] = field(default_factory=list)
    exports: list[Export] = field(default_factory=list)
    declarations: list[Declaration] = field(default_factory=list)
    resources: list["Resource"] = field(default_factory=list)
    usages: list[str] = field(default_factory=list)

    @property
    def non_local_usages(self) -> tuple[str, ...]:
        """Usages not satisfied by this resource or its children.

        Child resources contribute their own non-local usages, which are then
        filtered against this resource's declarations as well.
        """

        local = {decl.name for decl in self.declarations}
        local.update(
            child.name
            for child in self.resources
            if child.kind is not ResourceKind.FILE
        )
        combined: dict[str, None] = dict.fromkeys(self.usages)
        for child in self.resources:
            combined.update(dict.fromkeys(child.non_local_usages))
        return tuple(name for name in combined if name not in local)

    def iter_resources(self) -> Iterator["Resource"]:
        """Yield this resource and all nested resources depth-first."""

        yield self
        for child in self.resources:
            yield from child.iter_resources()

    def find_declaration(self, name: str) -> Declaration | None:
        for declaration in self.declarations:
            if declaration.name == name:
                return declaration
        return None

    def find_resource(self, name: str) -> "Resource | None":
        for child in self.resources:
            if child.name == name:
                return child
        return None
