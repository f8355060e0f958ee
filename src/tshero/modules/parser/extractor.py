"""TypeScript resource extraction backed by tree-sitter.

The extractor walks a syntax tree once, depth first. Two stacks drive the
walk: a stack of resource frames (the file, then nested namespaces/modules)
that receive declarations, imports and exports, and a stack of lexical scopes
holding local bindings (parameters, type parameters, block-scoped variables)
so that references to them are not reported as usages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
import threading
from typing import Any, Callable, Iterable

import tree_sitter
import tree_sitter_typescript

from tshero.core.logging import Logger, get_logger

from .errors import NotParseableError
from .models import (
    Declaration,
    DeclarationKind,
    Export,
    ExportKind,
    Import,
    Method,
    Parameter,
    Property,
    Resource,
    ResourceKind,
    SymbolSpecifier,
    Visibility,
)
from .naming import module_path_for

__all__ = ["TypeScriptExtractor", "extract"]

_TSX_SUFFIXES = frozenset({".tsx", ".jsx"})

_CLASS_NODES = frozenset({"class_declaration", "abstract_class_declaration"})
_FUNCTION_NODES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_signature",
    }
)
_VARIABLE_NODES = frozenset({"lexical_declaration", "variable_declaration"})
_MODULE_NODES = frozenset({"module", "internal_module"})
_METHOD_NODES = frozenset(
    {"method_definition", "method_signature", "abstract_method_signature"}
)
_CALLABLE_NODES = frozenset(
    {
        "function_expression",
        "function",
        "arrow_function",
        "generator_function",
        "function_declaration",
        "generator_function_declaration",
        "function_signature",
        "method_definition",
        "method_signature",
        "abstract_method_signature",
        "call_signature",
        "construct_signature",
        "function_type",
        "constructor_type",
    }
)
_PARAMETER_NODES = frozenset({"required_parameter", "optional_parameter"})
_IDENTIFIER_NODES = frozenset(
    {"identifier", "type_identifier", "shorthand_property_identifier"}
)
_SKIPPED_NODES = frozenset(
    {
        "comment",
        "string",
        "regex",
        "import",
        "statement_identifier",
        "property_identifier",
        "private_property_identifier",
        "shorthand_property_identifier_pattern",
        "jsx_closing_element",
        "jsx_text",
    }
)
_MODIFIER_NODES = frozenset(
    {"accessibility_modifier", "override_modifier"}
)
_MEMBER_MODIFIERS = frozenset(
    {"abstract", "static", "readonly", "async", "declare", "override"}
)

_thread_state = threading.local()


@lru_cache(maxsize=None)
def _language(dialect: str) -> tree_sitter.Language:
    if dialect == "tsx":
        return tree_sitter.Language(tree_sitter_typescript.language_tsx())
    return tree_sitter.Language(tree_sitter_typescript.language_typescript())


def _parser(dialect: str) -> tree_sitter.Parser:
    """Return a parser for ``dialect`` owned by the calling thread."""

    parsers: dict[str, tree_sitter.Parser] | None = getattr(
        _thread_state, "parsers", None
    )
    if parsers is None:
        parsers = {}
        _thread_state.parsers = parsers
    parser = parsers.get(dialect)
    if parser is None:
        parser = tree_sitter.Parser(_language(dialect))
        parsers[dialect] = parser
    return parser


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    return text


def _first_child(node: Any, type_name: str) -> Any | None:
    for child in node.children:
        if child.type == type_name:
            return child
    return None


def _has_child(node: Any, type_name: str) -> bool:
    return _first_child(node, type_name) is not None


def _type_modifier(node: Any, name: Any | None = None) -> bool:
    """Whether ``node`` carries a `type` keyword ahead of ``name``."""

    limit = name.start_byte if name is not None else node.end_byte
    return any(
        child.type == "type" and not child.is_named and child.start_byte < limit
        for child in node.children
    )


@dataclass(slots=True)
class _Frame:
    resource: Resource
    seen_usages: dict[str, None] = field(default_factory=dict)
    local_exports: list[SymbolSpecifier] = field(default_factory=list)


class _ResourceBuilder:
    """Single-use walker filling a file resource from a syntax tree."""

    def __init__(self, source: bytes) -> None:
        self._source = source
        self._frames: list[_Frame] = []
        # The base scope only ever receives type-level bindings such as
        # mapped type keys and ``infer`` variables.
        self._scopes: list[set[str]] = [set()]

    def build(self, root: Any, resource: Resource) -> Resource:
        self._enter(resource)
        try:
            self._visit_statements(root.named_children)
        finally:
            self._leave()
        return resource

    # ------------------------------------------------------------------
    # Frames and scopes
    # ------------------------------------------------------------------
    @property
    def _frame(self) -> _Frame:
        return self._frames[-1]

    def _enter(self, resource: Resource) -> None:
        self._frames.append(_Frame(resource))

    def _leave(self) -> None:
        frame = self._frames.pop()
        self._apply_local_exports(frame)

    def _push_scope(self, names: Iterable[str]) -> None:
        self._scopes.append(set(names))

    def _pop_scope(self) -> None:
        self._scopes.pop()

    def _bind(self, name: str) -> None:
        self._scopes[-1].add(name)

    def _is_bound(self, name: str) -> bool:
        return any(name in scope for scope in reversed(self._scopes))

    def _record_usage(self, name: str) -> None:
        if not name or self._is_bound(name):
            return
        frame = self._frame
        if name in frame.seen_usages:
            return
        frame.seen_usages[name] = None
        frame.resource.usages.append(name)

    def _add(self, declaration: Declaration | None) -> None:
        if declaration is not None:
            self._frame.resource.declarations.append(declaration)

    def _text(self, node: Any | None) -> str:
        if node is None:
            return ""
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    def _type_text(self, node: Any | None) -> str | None:
        if node is None:
            return None
        text = self._text(node).strip()
        if node.type.endswith("annotation") and text.startswith(":"):
            text = text[1:].strip()
        return text or None

    # ------------------------------------------------------------------
    # Resource-level statements
    # ------------------------------------------------------------------
    def _visit_statements(self, nodes: Iterable[Any]) -> None:
        for node in nodes:
            self._visit_statement(node)

    def _visit_statement(
        self,
        node: Any,
        *,
        exported: bool = False,
        ambient: bool = False,
    ) -> None:
        kind = node.type
        if kind == "comment":
            return
        if kind == "import_statement":
            self._handle_import(node)
        elif kind == "export_statement":
            self._handle_export(node)
        elif kind in _CLASS_NODES:
            self._add(self._class_declaration(node, exported))
        elif kind == "interface_declaration":
            self._add(self._interface_declaration(node, exported))
        elif kind in _FUNCTION_NODES:
            self._add(self._function_declaration(node, exported))
        elif kind == "enum_declaration":
            self._add(self._enum_declaration(node, exported))
        elif kind == "type_alias_declaration":
            self._add(self._type_alias_declaration(node, exported))
        elif kind in _VARIABLE_NODES:
            for declaration in self._variable_declarations(node, exported):
                self._add(declaration)
        elif kind in _MODULE_NODES:
            self._handle_module(node, exported=exported, ambient=ambient)
        elif kind == "ambient_declaration":
            self._handle_ambient(node, exported=exported)
        elif kind == "import_alias":
            self._add(self._import_alias(node, exported))
        elif kind == "expression_statement" and self._wrapped_module(node):
            self._handle_module(
                self._wrapped_module(node),
                exported=exported,
                ambient=ambient,
            )
        else:
            self._visit(node)

    @staticmethod
    def _wrapped_module(node: Any) -> Any | None:
        named = node.named_children
        if len(named) == 1 and named[0].type in _MODULE_NODES:
            return named[0]
        return None

    def _handle_module(self, node: Any, *, exported: bool, ambient: bool) -> None:
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        external = name_node is not None and name_node.type == "string"
        ambient = ambient or self._frame.resource.is_ambient
        is_module = node.type == "module" or ambient or external
        resource = Resource(
            kind=ResourceKind.MODULE if is_module else ResourceKind.NAMESPACE,
            name=_unquote(self._text(name_node)),
            start=node.start_byte,
            end=node.end_byte,
            is_exported=exported,
            is_ambient=ambient or external,
            is_external=external,
        )
        self._frame.resource.resources.append(resource)
        self._enter(resource)
        try:
            if body is not None:
                self._visit_statements(body.named_children)
        finally:
            self._leave()

    def _handle_ambient(self, node: Any, *, exported: bool) -> None:
        for child in node.named_children:
            if child.type == "statement_block":
                # ``declare global { ... }``
                self._visit_statements(child.named_children)
            elif child.type in _MODULE_NODES:
                self._handle_module(child, exported=exported, ambient=True)
            else:
                self._visit_statement(child, exported=exported, ambient=True)

    # ------------------------------------------------------------------
    # Imports and exports
    # ------------------------------------------------------------------
    def _handle_import(self, node: Any) -> None:
        imports = self._frame.resource.imports
        start, end = node.start_byte, node.end_byte
        type_only = _type_modifier(node)

        require = _first_child(node, "import_require_clause")
        if require is not None:
            alias = _first_child(require, "identifier")
            source = require.child_by_field_name("source") or _first_child(
                require, "string"
            )
            imports.append(
                Import.external_module(
                    _unquote(self._text(source)),
                    self._text(alias),
                    start=start,
                    end=end,
                    type_only=type_only,
                )
            )
            return

        source = node.child_by_field_name("source")
        if source is None:
            return
        library = _unquote(self._text(source))
        clause = _first_child(node, "import_clause")
        if clause is None:
            imports.append(Import.string(library, start=start, end=end))
            return

        default_alias: str | None = None
        namespace: str | None = None
        specifiers: list[SymbolSpecifier] = []
        has_named = False
        for child in clause.named_children:
            if child.type == "identifier":
                default_alias = self._text(child)
            elif child.type == "namespace_import":
                namespace = self._text(_first_child(child, "identifier"))
            elif child.type == "named_imports":
                has_named = True
                specifiers.extend(self._specifiers(child, "import_specifier"))

        if namespace:
            imports.append(
                Import.namespace(
                    library,
                    namespace,
                    start=start,
                    end=end,
                    type_only=type_only,
                )
            )
        if default_alias or has_named or not namespace:
            imports.append(
                Import.named(
                    library,
                    tuple(specifiers),
                    default_alias=default_alias,
                    start=start,
                    end=end,
                    type_only=type_only,
                )
            )

    def _specifiers(self, node: Any, type_name: str) -> list[SymbolSpecifier]:
        result: list[SymbolSpecifier] = []
        for child in node.named_children:
            if child.type != type_name:
                continue
            name = child.child_by_field_name("name")
            alias = child.child_by_field_name("alias")
            result.append(
                SymbolSpecifier(
                    _unquote(self._text(name)),
                    _unquote(self._text(alias)) if alias is not None else None,
                    is_type_only=_type_modifier(child, name),
                )
            )
        return result

    def _handle_export(self, node: Any) -> None:
        for child in node.children:
            if child.type == "decorator":
                self._visit(child)
        declaration = node.child_by_field_name("declaration")
        source = node.child_by_field_name("source")
        is_default = _has_child(node, "default")

        if declaration is not None:
            if is_default:
                self._handle_default_declaration(declaration)
            else:
                self._visit_statement(declaration, exported=True)
            return
        if is_default:
            self._handle_default_value(node, node.child_by_field_name("value"))
            return
        if _has_child(node, "="):
            self._handle_assigned_export(node)
            return

        library = _unquote(self._text(source)) if source is not None else None
        clause = _first_child(node, "export_clause")
        if clause is not None:
            specifiers = tuple(self._specifiers(clause, "export_specifier"))
            if library is None:
                self._frame.local_exports.extend(specifiers)
                for specifier in specifiers:
                    self._record_usage(specifier.specifier)
                return
            self._frame.resource.exports.append(
                Export(
                    kind=ExportKind.NAMED,
                    library_name=library,
                    specifiers=specifiers,
                    start=node.start_byte,
                    end=node.end_byte,
                )
            )
            return
        if library is not None:
            namespace = _first_child(node, "namespace_export")
            alias = (
                self._text(_first_child(namespace, "identifier"))
                if namespace is not None
                else None
            )
            self._frame.resource.exports.append(
                Export(
                    kind=ExportKind.ALL,
                    library_name=library,
                    alias=alias or None,
                    start=node.start_byte,
                    end=node.end_byte,
                )
            )
        # ``export as namespace X`` carries nothing indexable.

    def _handle_default_declaration(self, declaration: Any) -> None:
        owned = self._frame.resource.declarations
        before = len(owned)
        self._visit_statement(declaration, exported=False)
        for added in list(owned[before:]):
            self._add(
                Declaration(
                    kind=DeclarationKind.DEFAULT,
                    name=added.name,
                    is_exported=True,
                    start=added.start,
                    end=added.end,
                )
            )

    def _handle_default_value(self, node: Any, value: Any | None) -> None:
        if value is None:
            return
        name: str | None = None
        if value.type == "identifier":
            name = self._text(value)
            self._record_usage(name)
        else:
            self._visit(value)
            name_node = value.child_by_field_name("name")
            if name_node is not None and value.type in (
                "class",
                "function_expression",
                "function",
                "generator_function",
            ):
                name = self._text(name_node)
        if name:
            self._add(
                Declaration(
                    kind=DeclarationKind.DEFAULT,
                    name=name,
                    is_exported=True,
                    start=node.start_byte,
                    end=node.end_byte,
                )
            )

    def _handle_assigned_export(self, node: Any) -> None:
        expression = next(
            (child for child in node.named_children if child.type != "comment"),
            None,
        )
        if expression is None:
            return
        if expression.type == "identifier":
            self._record_usage(self._text(expression))
        else:
            self._visit(expression)
        self._frame.resource.exports.append(
            Export(
                kind=ExportKind.ASSIGNED,
                declaration_name=self._text(expression),
                start=node.start_byte,
                end=node.end_byte,
            )
        )

    def _apply_local_exports(self, frame: _Frame) -> None:
        """Flag declarations listed in ``export { ... }`` as exported."""

        if not frame.local_exports:
            return
        aliases: dict[str, list[str]] = {}
        for specifier in frame.local_exports:
            aliases.setdefault(specifier.specifier, []).append(
                specifier.local_name
            )

        resource = frame.resource
        updated: list[Declaration] = []
        additions: list[Declaration] = []
        for declaration in resource.declarations:
            names = aliases.get(declaration.name)
            if not names:
                updated.append(declaration)
                continue
            if declaration.name in names:
                updated.append(declaration.exported())
            else:
                updated.append(declaration)
            for alias in names:
                if alias == declaration.name:
                    continue
                if alias == "default":
                    additions.append(
                        Declaration(
                            kind=DeclarationKind.DEFAULT,
                            name=declaration.name,
                            is_exported=True,
                            start=declaration.start,
                            end=declaration.end,
                        )
                    )
                else:
                    additions.append(declaration.exported(alias))
        resource.declarations[:] = updated + additions

        for child in resource.resources:
            if child.name in aliases:
                child.is_exported = True

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------
    def _class_declaration(
        self, node: Any, exported: bool
    ) -> Declaration | None:
        name_node = node.child_by_field_name("name")
        properties, methods = self._class_members(node)
        if name_node is None:
            return None
        return Declaration(
            kind=DeclarationKind.CLASS,
            name=self._text(name_node),
            is_exported=exported,
            start=node.start_byte,
            end=node.end_byte,
            properties=properties,
            methods=methods,
        )

    def _class_members(
        self, node: Any
    ) -> tuple[tuple[Property, ...], tuple[Method, ...]]:
        name_node = node.child_by_field_name("name")
        type_params = node.child_by_field_name("type_parameters")
        bindings = set(self._type_parameter_names(type_params))
        if name_node is not None:
            bindings.add(self._text(name_node))

        properties: list[Property] = []
        methods: list[Method] = []
        self._push_scope(bindings)
        try:
            if type_params is not None:
                self._visit_type_parameters(type_params)
            for child in node.children:
                if child.type in ("decorator", "class_heritage"):
                    self._visit(child)
            body = node.child_by_field_name("body")
            if body is not None:
                for member in body.named_children:
                    self._class_member(member, properties, methods)
        finally:
            self._pop_scope()
        return tuple(properties), tuple(methods)

    def _class_member(
        self,
        member: Any,
        properties: list[Property],
        methods: list[Method],
    ) -> None:
        if member.type in _METHOD_NODES:
            method = self._method(member)
            if method.name == "constructor":
                properties.extend(self._constructor_properties(member))
            methods.append(method)
        elif member.type == "public_field_definition":
            properties.append(self._property(member))
        else:
            self._visit(member)

    def _member_modifiers(
        self, member: Any
    ) -> tuple[Visibility, tuple[str, ...]]:
        visibility = Visibility.PUBLIC
        modifiers: list[str] = []
        for child in member.children:
            text = self._text(child)
            if child.type == "accessibility_modifier":
                visibility = Visibility(text)
                modifiers.append(text)
            elif child.type == "override_modifier":
                modifiers.append("override")
            elif child.type in _MEMBER_MODIFIERS:
                modifiers.append(text)
        name_node = member.child_by_field_name("name")
        if name_node is not None and name_node.type == "private_property_identifier":
            visibility = Visibility.PRIVATE
        return visibility, tuple(modifiers)

    def _method(self, member: Any) -> Method:
        name_node = member.child_by_field_name("name")
        if name_node is not None and name_node.type == "computed_property_name":
            self._visit(name_node)
        visibility, modifiers = self._member_modifiers(member)
        parameters = self._visit_callable(member)
        return Method(
            name=self._text(name_node),
            parameters=parameters,
            return_type=self._type_text(member.child_by_field_name("return_type")),
            visibility=visibility,
            modifiers=modifiers,
        )

    def _constructor_properties(self, member: Any) -> list[Property]:
        params = member.child_by_field_name("parameters")
        if params is None:
            return []
        result: list[Property] = []
        for param in params.named_children:
            if param.type not in _PARAMETER_NODES:
                continue
            visibility, modifiers = self._member_modifiers(param)
            if not modifiers:
                continue
            result.append(
                Property(
                    name=self._text(param.child_by_field_name("pattern")),
                    type=self._type_text(param.child_by_field_name("type")),
                    visibility=visibility,
                    modifiers=modifiers,
                    optional=param.type == "optional_parameter",
                )
            )
        return result

    def _property(self, member: Any) -> Property:
        name_node = member.child_by_field_name("name")
        type_node = member.child_by_field_name("type")
        value = member.child_by_field_name("value")
        for child in member.children:
            if child.type == "decorator":
                self._visit(child)
        if name_node is not None and name_node.type == "computed_property_name":
            self._visit(name_node)
        if type_node is not None:
            self._visit(type_node)
        if value is not None:
            self._visit(value)
        visibility, modifiers = self._member_modifiers(member)
        return Property(
            name=self._text(name_node),
            type=self._type_text(type_node),
            visibility=visibility,
            modifiers=modifiers,
            optional=_has_child(member, "?"),
        )

    def _interface_declaration(
        self, node: Any, exported: bool
    ) -> Declaration | None:
        name_node = node.child_by_field_name("name")
        type_params = node.child_by_field_name("type_parameters")
        bindings = set(self._type_parameter_names(type_params))
        bindings.add(self._text(name_node))

        properties: list[Property] = []
        methods: list[Method] = []
        self._push_scope(bindings)
        try:
            if type_params is not None:
                self._visit_type_parameters(type_params)
            for child in node.named_children:
                if child.type == "extends_type_clause":
                    self._visit(child)
            body = node.child_by_field_name("body")
            if body is not None:
                for member in body.named_children:
                    if member.type == "property_signature":
                        properties.append(self._property(member))
                    elif member.type == "method_signature":
                        methods.append(self._method(member))
                    else:
                        self._visit(member)
        finally:
            self._pop_scope()

        if name_node is None:
            return None
        return Declaration(
            kind=DeclarationKind.INTERFACE,
            name=self._text(name_node),
            is_exported=exported,
            start=node.start_byte,
            end=node.end_byte,
            properties=tuple(properties),
            methods=tuple(methods),
        )

    def _function_declaration(
        self, node: Any, exported: bool
    ) -> Declaration | None:
        name_node = node.child_by_field_name("name")
        parameters = self._visit_callable(node)
        if name_node is None:
            return None
        return Declaration(
            kind=DeclarationKind.FUNCTION,
            name=self._text(name_node),
            is_exported=exported,
            start=node.start_byte,
            end=node.end_byte,
            parameters=parameters,
            return_type=self._type_text(node.child_by_field_name("return_type")),
        )

    def _enum_declaration(self, node: Any, exported: bool) -> Declaration:
        members: list[str] = []
        body = node.child_by_field_name("body")
        if body is not None:
            for member in body.named_children:
                if member.type == "enum_assignment":
                    members.append(
                        _unquote(self._text(member.child_by_field_name("name")))
                    )
                    value = member.child_by_field_name("value")
                    if value is not None:
                        self._visit(value)
                elif member.type != "comment":
                    members.append(_unquote(self._text(member)))
        return Declaration(
            kind=DeclarationKind.ENUM,
            name=self._text(node.child_by_field_name("name")),
            is_exported=exported,
            start=node.start_byte,
            end=node.end_byte,
            members=tuple(members),
            is_const=_has_child(node, "const"),
        )

    def _type_alias_declaration(self, node: Any, exported: bool) -> Declaration:
        name_node = node.child_by_field_name("name")
        type_params = node.child_by_field_name("type_parameters")
        value = node.child_by_field_name("value")
        bindings = set(self._type_parameter_names(type_params))
        bindings.add(self._text(name_node))
        self._push_scope(bindings)
        try:
            if type_params is not None:
                self._visit_type_parameters(type_params)
            if value is not None:
                self._visit(value)
        finally:
            self._pop_scope()
        return Declaration(
            kind=DeclarationKind.TYPE_ALIAS,
            name=self._text(name_node),
            is_exported=exported,
            start=node.start_byte,
            end=node.end_byte,
            type=self._type_text(value),
        )

    def _variable_declarations(
        self, node: Any, exported: bool
    ) -> list[Declaration]:
        is_const = bool(node.children) and node.children[0].type == "const"
        declarations: list[Declaration] = []
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                self._visit(declarator)
                continue
            name_node = declarator.child_by_field_name("name")
            type_node = declarator.child_by_field_name("type")
            value = declarator.child_by_field_name("value")
            if name_node is not None:
                self._visit_pattern_defaults(name_node)
            if type_node is not None:
                self._visit(type_node)
            if value is not None:
                self._visit(value)
            for name in self._pattern_names(name_node):
                declarations.append(
                    Declaration(
                        kind=DeclarationKind.VARIABLE,
                        name=name,
                        is_exported=exported,
                        start=declarator.start_byte,
                        end=declarator.end_byte,
                        type=self._type_text(type_node),
                        is_const=is_const,
                    )
                )
        return declarations

    def _import_alias(self, node: Any, exported: bool) -> Declaration | None:
        named = node.named_children
        if not named:
            return None
        for target in named[1:]:
            self._visit(target)
        return Declaration(
            kind=DeclarationKind.VARIABLE,
            name=self._text(named[0]),
            is_exported=exported,
            start=node.start_byte,
            end=node.end_byte,
        )

    # ------------------------------------------------------------------
    # Callables, parameters and patterns
    # ------------------------------------------------------------------
    def _visit_callable(self, node: Any) -> tuple[Parameter, ...]:
        name_node = node.child_by_field_name("name")
        single = node.child_by_field_name("parameter")
        params_node = _first_child(node, "formal_parameters")
        type_params = _first_child(node, "type_parameters")

        bindings = set(self._type_parameter_names(type_params))
        if params_node is not None:
            for param in params_node.named_children:
                if param.type in _PARAMETER_NODES:
                    bindings.update(
                        self._pattern_names(param.child_by_field_name("pattern"))
                    )
        if single is not None:
            bindings.update(self._pattern_names(single))
        if name_node is not None and node.type in (
            "function_expression",
            "function",
            "generator_function",
        ):
            bindings.add(self._text(name_node))

        parameters: list[Parameter] = []
        self._push_scope(bindings)
        try:
            for child in node.named_children:
                if child == name_node or child == single:
                    continue
                if child.type == "formal_parameters":
                    for param in child.named_children:
                        if param.type in _PARAMETER_NODES:
                            parameters.append(self._parameter(param))
                        else:
                            self._visit(param)
                elif child.type == "type_parameters":
                    self._visit_type_parameters(child)
                elif child.type in _MODIFIER_NODES:
                    continue
                else:
                    self._visit(child)
        finally:
            self._pop_scope()
        return tuple(parameters)

    def _parameter(self, node: Any) -> Parameter:
        pattern = node.child_by_field_name("pattern")
        type_node = node.child_by_field_name("type")
        value = node.child_by_field_name("value")
        for child in node.children:
            if child.type == "decorator":
                self._visit(child)
        if pattern is not None:
            self._visit_pattern_defaults(pattern)
        if type_node is not None:
            self._visit(type_node)
        if value is not None:
            self._visit(value)
        return Parameter(
            name=self._text(pattern) if pattern is not None else self._text(node),
            type=self._type_text(type_node),
            optional=node.type == "optional_parameter",
            default=self._text(value) if value is not None else None,
        )

    def _type_parameter_names(self, node: Any | None) -> list[str]:
        if node is None:
            return []
        return [
            self._text(child.child_by_field_name("name"))
            for child in node.named_children
            if child.type == "type_parameter"
        ]

    def _visit_type_parameters(self, node: Any) -> None:
        for child in node.named_children:
            if child.type != "type_parameter":
                self._visit(child)
                continue
            name_node = child.child_by_field_name("name")
            for part in child.named_children:
                if part != name_node:
                    self._visit(part)

    def _pattern_names(self, node: Any | None) -> list[str]:
        if node is None:
            return []
        kind = node.type
        if kind in ("identifier", "shorthand_property_identifier_pattern"):
            return [self._text(node)]
        if kind == "pair_pattern":
            return self._pattern_names(node.child_by_field_name("value"))
        if kind in ("object_assignment_pattern", "assignment_pattern"):
            return self._pattern_names(node.child_by_field_name("left"))
        if kind in ("object_pattern", "array_pattern", "rest_pattern"):
            names: list[str] = []
            for child in node.named_children:
                names.extend(self._pattern_names(child))
            return names
        return []

    def _visit_pattern_defaults(self, node: Any) -> None:
        """Scan default values and computed keys inside a binding pattern."""

        kind = node.type
        if kind in ("object_assignment_pattern", "assignment_pattern"):
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")
            if right is not None:
                self._visit(right)
            if left is not None:
                self._visit_pattern_defaults(left)
        elif kind == "pair_pattern":
            key = node.child_by_field_name("key")
            value = node.child_by_field_name("value")
            if key is not None and key.type == "computed_property_name":
                self._visit(key)
            if value is not None:
                self._visit_pattern_defaults(value)
        elif kind in ("object_pattern", "array_pattern", "rest_pattern"):
            for child in node.named_children:
                self._visit_pattern_defaults(child)

    # ------------------------------------------------------------------
    # Usage scanning
    # ------------------------------------------------------------------
    def _visit(self, node: Any) -> None:
        kind = node.type
        if kind in _IDENTIFIER_NODES:
            self._record_usage(self._text(node))
            return
        if kind in _SKIPPED_NODES:
            return
        handler = _VISITORS.get(kind)
        if handler is not None:
            handler(self, node)
            return
        for child in node.named_children:
            self._visit(child)

    def _visit_field(self, node: Any, field_name: str) -> None:
        target = node.child_by_field_name(field_name)
        if target is None and node.named_children:
            target = node.named_children[0]
        if target is not None:
            self._visit(target)

    def _visit_member_expression(self, node: Any) -> None:
        self._visit_field(node, "object")

    def _visit_nested_type_identifier(self, node: Any) -> None:
        self._visit_field(node, "module")

    def _visit_pair(self, node: Any) -> None:
        key = node.child_by_field_name("key")
        value = node.child_by_field_name("value")
        if key is not None and key.type == "computed_property_name":
            self._visit(key)
        if value is not None:
            self._visit(value)

    def _visit_callable_node(self, node: Any) -> None:
        self._visit_callable(node)

    def _visit_local_class(self, node: Any) -> None:
        self._class_members(node)

    def _visit_local_interface(self, node: Any) -> None:
        self._interface_declaration(node, False)

    def _visit_local_type_alias(self, node: Any) -> None:
        self._type_alias_declaration(node, False)

    def _visit_local_enum(self, node: Any) -> None:
        self._enum_declaration(node, False)

    def _visit_local_variables(self, node: Any) -> None:
        self._variable_declarations(node, False)

    def _visit_local_module(self, node: Any) -> None:
        body = node.child_by_field_name("body")
        if body is not None:
            self._visit(body)

    def _visit_import_alias(self, node: Any) -> None:
        for target in node.named_children[1:]:
            self._visit(target)

    def _visit_block(self, node: Any) -> None:
        self._push_scope(self._hoisted_names(node.named_children))
        try:
            for child in node.named_children:
                self._visit(child)
        finally:
            self._pop_scope()

    def _visit_switch_body(self, node: Any) -> None:
        statements: list[Any] = []
        for case in node.named_children:
            statements.extend(case.named_children)
        self._push_scope(self._hoisted_names(statements))
        try:
            for child in node.named_children:
                self._visit(child)
        finally:
            self._pop_scope()

    def _visit_catch_clause(self, node: Any) -> None:
        parameter = node.child_by_field_name("parameter")
        self._push_scope(self._pattern_names(parameter))
        try:
            for child in node.named_children:
                if child != parameter:
                    self._visit(child)
        finally:
            self._pop_scope()

    def _visit_for_statement(self, node: Any) -> None:
        initializer = node.child_by_field_name("initializer")
        bindings: list[str] = []
        if initializer is not None and initializer.type in _VARIABLE_NODES:
            bindings = list(self._hoisted_names([initializer]))
        self._push_scope(bindings)
        try:
            for child in node.named_children:
                self._visit(child)
        finally:
            self._pop_scope()

    def _visit_for_in_statement(self, node: Any) -> None:
        left = node.child_by_field_name("left")
        declares = node.child_by_field_name("kind") is not None
        self._push_scope(self._pattern_names(left) if declares else ())
        try:
            for child in node.named_children:
                if child == left and declares:
                    self._visit_pattern_defaults(child)
                    continue
                self._visit(child)
        finally:
            self._pop_scope()

    def _visit_mapped_type_clause(self, node: Any) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is not None:
            self._bind(self._text(name_node))
        for child in node.named_children:
            if child != name_node:
                self._visit(child)

    def _visit_infer_type(self, node: Any) -> None:
        for child in node.named_children:
            if child.type == "type_identifier":
                self._bind(self._text(child))
            else:
                self._visit(child)

    def _visit_index_signature(self, node: Any) -> None:
        name_node = node.child_by_field_name("name")
        for child in node.named_children:
            if child != name_node:
                self._visit(child)

    def _visit_jsx_element(self, node: Any) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is not None:
            if name_node.type == "identifier":
                # Lower-case tags are intrinsic elements, not references.
                text = self._text(name_node)
                if text[:1].isupper():
                    self._record_usage(text)
            else:
                self._visit(name_node)
        for child in node.named_children:
            if child != name_node:
                self._visit(child)

    def _hoisted_names(self, statements: Iterable[Any]) -> set[str]:
        names: set[str] = set()
        for statement in statements:
            kind = statement.type
            if kind == "expression_statement" and self._wrapped_module(statement):
                statement = self._wrapped_module(statement)
                kind = statement.type
            if kind in _VARIABLE_NODES:
                for declarator in statement.named_children:
                    if declarator.type == "variable_declarator":
                        names.update(
                            self._pattern_names(
                                declarator.child_by_field_name("name")
                            )
                        )
            elif kind == "import_alias":
                if statement.named_children:
                    names.add(self._text(statement.named_children[0]))
            elif kind in _CLASS_NODES or kind in _FUNCTION_NODES or kind in (
                "interface_declaration",
                "type_alias_declaration",
                "enum_declaration",
                "internal_module",
                "module",
            ):
                name_node = statement.child_by_field_name("name")
                if name_node is not None:
                    names.add(_unquote(self._text(name_node)))
        return names


_VISITORS: dict[str, Callable[[_ResourceBuilder, Any], None]] = {
    "member_expression": _ResourceBuilder._visit_member_expression,
    "nested_identifier": _ResourceBuilder._visit_member_expression,
    "nested_type_identifier": _ResourceBuilder._visit_nested_type_identifier,
    "pair": _ResourceBuilder._visit_pair,
    "class": _ResourceBuilder._visit_local_class,
    "class_declaration": _ResourceBuilder._visit_local_class,
    "abstract_class_declaration": _ResourceBuilder._visit_local_class,
    "interface_declaration": _ResourceBuilder._visit_local_interface,
    "type_alias_declaration": _ResourceBuilder._visit_local_type_alias,
    "enum_declaration": _ResourceBuilder._visit_local_enum,
    "lexical_declaration": _ResourceBuilder._visit_local_variables,
    "variable_declaration": _ResourceBuilder._visit_local_variables,
    "module": _ResourceBuilder._visit_local_module,
    "internal_module": _ResourceBuilder._visit_local_module,
    "import_alias": _ResourceBuilder._visit_import_alias,
    "statement_block": _ResourceBuilder._visit_block,
    "class_static_block": _ResourceBuilder._visit_block,
    "switch_body": _ResourceBuilder._visit_switch_body,
    "catch_clause": _ResourceBuilder._visit_catch_clause,
    "for_statement": _ResourceBuilder._visit_for_statement,
    "for_in_statement": _ResourceBuilder._visit_for_in_statement,
    "mapped_type_clause": _ResourceBuilder._visit_mapped_type_clause,
    "infer_type": _ResourceBuilder._visit_infer_type,
    "index_signature": _ResourceBuilder._visit_index_signature,
    "type_parameters": _ResourceBuilder._visit_type_parameters,
    "jsx_opening_element": _ResourceBuilder._visit_jsx_element,
    "jsx_self_closing_element": _ResourceBuilder._visit_jsx_element,
}
_VISITORS.update(
    {kind: _ResourceBuilder._visit_callable_node for kind in _CALLABLE_NODES}
)


class TypeScriptExtractor:
    """Extract :class:`Resource` trees from TypeScript or TSX sources.

    Instances are stateless apart from the logger and may be shared across
    threads; each thread lazily gets its own tree-sitter parser.

    Example:
        >>> extractor = TypeScriptExtractor()
        >>> resource = extractor.extract("export let a = '', b = '';")
        >>> [(d.name, d.is_exported) for d in resource.declarations]
        [('a', True), ('b', True)]
    """

    def __init__(self, *, logger: Logger | None = None) -> None:
        self._logger = logger or get_logger(__name__, component="extractor")

    def extract(
        self,
        source: str | bytes,
        *,
        file_path: Path | str | None = None,
        root: Path | str | None = None,
        tsx: bool | None = None,
    ) -> Resource:
        """Parse ``source`` into a file-level resource.

        Args:
            source: Source text, or raw bytes that must decode as UTF-8.
            file_path: Optional path used for naming and dialect detection.
            root: Optional workspace root used to compute the module path.
            tsx: Force (or forbid) the TSX grammar; inferred from the file
                suffix when omitted.

        Raises:
            NotParseableError: If the source cannot be decoded or contains
                syntax errors. No partial resource is ever returned.
        """

        path = Path(file_path) if file_path is not None else None
        if isinstance(source, bytes):
            try:
                source.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise NotParseableError(
                    f"source is not valid UTF-8: {exc}", path=path
                ) from exc
            encoded = source
        else:
            encoded = source.encode("utf-8")

        if tsx is None:
            tsx = path is not None and path.suffix.lower() in _TSX_SUFFIXES
        tree = _parser("tsx" if tsx else "typescript").parse(encoded)
        if tree.root_node.has_error:
            raise NotParseableError("source contains syntax errors", path=path)

        module_path = (
            module_path_for(path, root)
            if path is not None and root is not None
            else None
        )
        resource = Resource(
            kind=ResourceKind.FILE,
            name=str(path) if path is not None else "<source>",
            module_path=module_path,
        )
        try:
            _ResourceBuilder(encoded).build(tree.root_node, resource)
        except RecursionError as exc:
            raise NotParseableError("source nests too deeply", path=path) from exc

        self._logger.debug(
            "extract-complete",
            path=str(path) if path is not None else None,
            declarations=len(resource.declarations),
            imports=len(resource.imports),
            usages=len(resource.usages),
        )
        return resource

    def extract_file(
        self,
        path: Path | str,
        *,
        root: Path | str | None = None,
    ) -> Resource:
        """Read ``path`` and extract it.

        Raises:
            OSError: If the file cannot be read.
            NotParseableError: If the content cannot be parsed.
        """

        raw = Path(path).read_bytes()
        return self.extract(raw, file_path=path, root=root)


def extract(source: str | bytes, **kwargs: Any) -> Resource:
    """Extract ``source`` with a throwaway :class:`TypeScriptExtractor`."""

    return TypeScriptExtractor().extract(source, **kwargs)
