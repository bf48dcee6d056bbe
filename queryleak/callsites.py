"""
Call-site extraction for Java method bodies.

For every method or constructor, MethodScope builds a flow-insensitive table
of the names declared in (and around) the method, types expressions against
the TypeSystem, and produces one CallSite per method invocation in the body.

The body walk covers nested expressions, chained receivers and lambda bodies,
but does not enter nested or anonymous class bodies: their methods are
enumerated, and scanned, on their own.

Typical usage:
    for method in iter_method_bodies(context.root_node):
        scope = MethodScope(context, method, type_system)
        for site in scope.call_sites():
            ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from tree_sitter import Node as TSNode

from queryleak.context import METHOD_NODE_TYPES, FileContext, get_source_span
from queryleak.typesystem import TypeDescriptor, TypeSystem, simple_name

logger = logging.getLogger(__name__)

CLASS_BODY_TYPES = frozenset({"class_body", "interface_body", "enum_body", "annotation_type_body"})
TYPE_DECLARATION_TYPES = frozenset(
    {"class_declaration", "interface_declaration", "enum_declaration", "record_declaration"}
)


@dataclass(frozen=True)
class CallSite:
    """A method invocation with its statically resolved receiver and return types."""

    method_name: str
    receiver_type: Optional[TypeDescriptor]
    return_type: Optional[TypeDescriptor]
    node: Any = None


def walk_body(node: TSNode) -> Iterator[TSNode]:
    """Yield node and its descendants in document order, skipping nested class bodies."""
    yield node
    for child in node.children:
        if child.type in CLASS_BODY_TYPES:
            continue
        yield from walk_body(child)


def iter_method_bodies(root: TSNode) -> Iterator[TSNode]:
    """Yield every method/constructor declaration that has a body (abstract methods are skipped)."""
    if root.type in METHOD_NODE_TYPES and root.child_by_field_name("body") is not None:
        yield root
    for child in root.children:
        yield from iter_method_bodies(child)


def unwrap_expression(node: TSNode) -> TSNode:
    """Look through parentheses and casts to the expression that produces the value."""
    while True:
        if node.type == "parenthesized_expression" and node.named_child_count:
            node = node.named_children[0]
        elif node.type == "cast_expression" and node.child_by_field_name("value") is not None:
            node = node.child_by_field_name("value")
        else:
            return node


def _annotations(decl: TSNode) -> Iterator[TSNode]:
    for child in decl.children:
        if child.type == "modifiers":
            for mod in child.named_children:
                if mod.type in ("marker_annotation", "annotation"):
                    yield mod


def annotation_names(context: FileContext, decl: TSNode) -> set[str]:
    """Simple names of the annotations on a declaration (e.g. {"Override", "MustBeClosed"})."""
    names: set[str] = set()
    for ann in _annotations(decl):
        name = ann.child_by_field_name("name")
        if name is not None:
            names.add(simple_name(get_source_span(context, name).strip()))
    return names


def suppressed_warnings(context: FileContext, decl: TSNode) -> set[str]:
    """String values of any @SuppressWarnings annotation on a declaration."""
    keys: set[str] = set()
    for ann in _annotations(decl):
        name = ann.child_by_field_name("name")
        if name is None or simple_name(get_source_span(context, name).strip()) != "SuppressWarnings":
            continue
        args = ann.child_by_field_name("arguments")
        if args is None:
            continue
        stack = [args]
        while stack:
            node = stack.pop()
            if node.type == "string_literal":
                keys.add(get_source_span(context, node).strip().strip('"'))
                continue
            stack.extend(node.children)
    return keys


def enclosing_declarations(node: TSNode) -> Iterator[TSNode]:
    """Yield the type declarations (innermost first) that contain node."""
    current = node.parent
    while current is not None:
        if current.type in TYPE_DECLARATION_TYPES:
            yield current
        current = current.parent


class MethodScope:
    """
    Name and expression typing for one method body.

    Unknown names and untyped expressions resolve to None; nothing here raises
    on unresolvable input.
    """

    def __init__(self, context: FileContext, method: TSNode, type_system: TypeSystem) -> None:
        self.context = context
        self.method = method
        self.type_system = type_system
        self.body = method.child_by_field_name("body")
        self.fields: dict[str, Optional[TypeDescriptor]] = {}
        self.symbols: dict[str, Optional[TypeDescriptor]] = {}
        self.enclosing_type = self._resolve_enclosing_type()
        self._invocations: dict[tuple[int, int], tuple[Optional[TypeDescriptor], Optional[TypeDescriptor]]] = {}
        self._collect_fields()
        self.symbols.update(self.fields)
        self._collect_parameters(method.child_by_field_name("parameters"))
        if self.body is not None:
            self._collect_locals()

    # --- helpers -----------------------------------------------------------

    def _text(self, node: TSNode) -> str:
        return get_source_span(self.context, node).strip()

    def resolve_type(self, type_node: Optional[TSNode]) -> Optional[TypeDescriptor]:
        if type_node is None:
            return None
        return self.type_system.resolve(self._text(type_node), self.context.imports)

    def _resolve_enclosing_type(self) -> Optional[TypeDescriptor]:
        current = self.method.parent
        while current is not None:
            if current.type in TYPE_DECLARATION_TYPES:
                return self.resolve_type(current.child_by_field_name("name"))
            if current.type == "object_creation_expression":
                # anonymous class: `this` is the instantiated type
                return self.resolve_type(current.child_by_field_name("type"))
            current = current.parent
        return None

    def _declare(self, table: dict[str, Optional[TypeDescriptor]], type_node: Optional[TSNode], declarator: TSNode) -> None:
        name_node = declarator.child_by_field_name("name")
        if name_node is None:
            return
        declared = self.resolve_type(type_node)
        if declared is None and type_node is not None and self._text(type_node) == "var":
            value = declarator.child_by_field_name("value")
            declared = self.type_of(value) if value is not None else None
        table[self._text(name_node)] = declared

    # --- symbol collection -------------------------------------------------

    def _collect_fields(self) -> None:
        # outermost first so inner classes shadow outer fields
        for decl in reversed(list(enclosing_declarations(self.method))):
            body = decl.child_by_field_name("body")
            if body is None:
                continue
            for member in body.named_children:
                if member.type not in ("field_declaration", "constant_declaration"):
                    continue
                type_node = member.child_by_field_name("type")
                for declarator in member.children_by_field_name("declarator"):
                    self._declare(self.fields, type_node, declarator)

    def _collect_parameters(self, params: Optional[TSNode]) -> None:
        if params is None:
            return
        for param in params.named_children:
            if param.type == "formal_parameter":
                self._declare(self.symbols, param.child_by_field_name("type"), param)
            elif param.type == "spread_parameter":
                # varargs are arrays; record the name as unresolved
                for child in param.named_children:
                    if child.type == "variable_declarator":
                        name = child.child_by_field_name("name")
                        if name is not None:
                            self.symbols[self._text(name)] = None

    def _collect_locals(self) -> None:
        for node in walk_body(self.body):
            if node.type == "local_variable_declaration":
                type_node = node.child_by_field_name("type")
                for declarator in node.children_by_field_name("declarator"):
                    self._declare(self.symbols, type_node, declarator)
            elif node.type in ("enhanced_for_statement", "resource", "catch_formal_parameter"):
                if node.child_by_field_name("name") is not None:
                    type_node = node.child_by_field_name("type")
                    if node.type == "enhanced_for_statement" and type_node is not None and self._text(type_node) == "var":
                        self.symbols[self._text(node.child_by_field_name("name"))] = None
                    else:
                        self._declare(self.symbols, type_node, node)
            elif node.type == "lambda_expression":
                params = node.child_by_field_name("parameters")
                if params is not None and params.type == "formal_parameters":
                    self._collect_parameters(params)

    # --- expression typing -------------------------------------------------

    def type_of(self, node: Optional[TSNode]) -> Optional[TypeDescriptor]:
        """Static type of an expression, or None when it cannot be determined."""
        if node is None:
            return None
        kind = node.type
        if kind == "identifier":
            return self.symbols.get(self._text(node))
        if kind == "parenthesized_expression":
            return self.type_of(node.named_children[0]) if node.named_child_count else None
        if kind in ("cast_expression", "object_creation_expression"):
            return self.resolve_type(node.child_by_field_name("type"))
        if kind == "this":
            return self.enclosing_type
        if kind == "field_access":
            obj = node.child_by_field_name("object")
            field_node = node.child_by_field_name("field")
            if obj is not None and obj.type == "this" and field_node is not None:
                return self.fields.get(self._text(field_node))
            return None
        if kind == "method_invocation":
            return self.invocation_types(node)[1]
        return None

    def _static_owner(self, obj: TSNode) -> Optional[TypeDescriptor]:
        """Type named by a receiver expression such as `DSL` or `org.jooq.impl.DSL`."""
        if obj.type == "identifier" and self._text(obj) in self.symbols:
            return None
        if obj.type not in ("identifier", "field_access", "scoped_identifier"):
            return None
        return self.type_system.resolve(self._text(obj), self.context.imports)

    def invocation_types(self, node: TSNode) -> tuple[Optional[TypeDescriptor], Optional[TypeDescriptor]]:
        """
        Return (receiver type, return type) for a method_invocation node.

        Static calls have no receiver instance: their receiver type is None and
        the return type comes from the named type's method table.
        """
        key = (node.start_byte, node.end_byte)
        cached = self._invocations.get(key)
        if cached is not None:
            return cached

        name_node = node.child_by_field_name("name")
        method_name = self._text(name_node) if name_node is not None else ""
        obj = node.child_by_field_name("object")

        receiver: Optional[TypeDescriptor]
        owner: Optional[TypeDescriptor]
        if obj is None:
            receiver = owner = self.enclosing_type
        else:
            receiver = self.type_of(obj)
            owner = receiver
            if receiver is None:
                owner = self._static_owner(obj)

        returned = self.type_system.method_return_type(owner.name, method_name) if owner is not None else None
        result = (receiver, returned)
        self._invocations[key] = result
        return result

    def call_sites(self) -> list[CallSite]:
        """One CallSite per method invocation in the body, in document order."""
        if self.body is None:
            return []
        sites: list[CallSite] = []
        for node in walk_body(self.body):
            if node.type != "method_invocation":
                continue
            receiver, returned = self.invocation_types(node)
            name_node = node.child_by_field_name("name")
            sites.append(
                CallSite(
                    method_name=self._text(name_node) if name_node is not None else "",
                    receiver_type=receiver,
                    return_type=returned,
                    node=node,
                )
            )
        logger.debug("Enumerated %d call site(s) in method at byte %d", len(sites), self.method.start_byte)
        return sites
