# Closure proof for flagged call sites: decide whether the resource a call produces
# is released on every exit path of its method, and report a finding when it is not.

from __future__ import annotations

import logging
from typing import Iterable, Optional

from tree_sitter import Node as TSNode

from queryleak.callsites import CallSite, annotation_names, unwrap_expression, walk_body
from queryleak.context import FileContext, get_line_col, get_source_span
from queryleak.findings.models import Finding, Location, Severity
from queryleak.typesystem import CapabilityNames, simple_name

logger = logging.getLogger(__name__)

MUST_BE_CLOSED = "MustBeClosed"

# Expression wrappers that pass the produced value through unchanged
_TRANSPARENT = frozenset({"parenthesized_expression", "cast_expression"})
_TRY_STATEMENTS = frozenset({"try_statement", "try_with_resources_statement"})
_COMMENTS = frozenset({"line_comment", "block_comment"})


def _value_parent(node: TSNode) -> tuple[TSNode, Optional[TSNode]]:
    """Climb out of parentheses/casts; return (outermost wrapper, its parent)."""
    current = node
    parent = current.parent
    while parent is not None and parent.type in _TRANSPARENT:
        current = parent
        parent = current.parent
    return current, parent


class ResourceEscapeScanner:
    """
    Closure-proof collaborator for one method body.

    Called with the must-close call sites of the method; returns one Finding
    for every site whose resource is not provably closed. A resource counts as
    closed when it (or a local it is stored in) is a try-with-resources
    resource, is closed in a finally block, is closed immediately, or is
    handed to the caller from a method annotated @MustBeClosed.
    """

    def __init__(
        self,
        context: FileContext,
        method: TSNode,
        rule_id: str,
        names: Optional[CapabilityNames] = None,
        severity: Severity = "warning",
    ) -> None:
        self.context = context
        self.method = method
        self.rule_id = rule_id
        self.names = names or CapabilityNames()
        self.severity = severity
        self.returns_to_caller = MUST_BE_CLOSED in annotation_names(context, method)

    def __call__(self, flagged: Iterable[CallSite]) -> list[Finding]:
        findings: list[Finding] = []
        for site in flagged:
            if site.node is None:
                continue
            if self.is_closed(site.node):
                logger.debug("Closure proven for %s at byte %d", site.method_name, site.node.start_byte)
                continue
            findings.append(self._finding(site))
        return findings

    def _text(self, node: TSNode) -> str:
        return get_source_span(self.context, node).strip()

    # --- proof -------------------------------------------------------------

    def is_closed(self, call: TSNode) -> bool:
        value, parent = _value_parent(call)
        if parent is None:
            return False

        # try (Stream<R> s = query.fetchStream()) { ... }
        if parent.type == "resource" and parent.child_by_field_name("value") == value:
            return True

        # query.fetchStream().close()
        if parent.type == "method_invocation" and parent.child_by_field_name("object") == value:
            name = parent.child_by_field_name("name")
            return name is not None and self._text(name) == "close"

        if parent.type == "return_statement":
            return self._returns_from_method(parent)

        # Stream<R> s = query.fetchStream();
        if parent.type == "variable_declarator" and parent.child_by_field_name("value") == value:
            declaration = parent.parent
            name = parent.child_by_field_name("name")
            if declaration is not None and declaration.type == "local_variable_declaration" and name is not None:
                return self._local_is_closed(self._text(name), declaration)
            return False

        # s = query.fetchStream();
        if parent.type == "assignment_expression" and parent.child_by_field_name("right") == value:
            left = parent.child_by_field_name("left")
            statement = parent.parent
            if (
                left is not None
                and left.type == "identifier"
                and statement is not None
                and statement.type == "expression_statement"
            ):
                return self._local_is_closed(self._text(left), statement)
            return False

        return False

    def _returns_from_method(self, statement: TSNode) -> bool:
        """A return hands the resource to the caller only from the method itself, not a lambda."""
        current = statement.parent
        while current is not None and current != self.method:
            if current.type == "lambda_expression":
                return False
            current = current.parent
        return self.returns_to_caller

    def _is_identifier(self, node: Optional[TSNode], name: str) -> bool:
        if node is None:
            return False
        node = unwrap_expression(node)
        return node.type == "identifier" and self._text(node) == name

    def _local_is_closed(self, name: str, statement: TSNode) -> bool:
        """
        A local holding the resource is closed when the statement right after
        the one that stores it hands it off, or when the store sits in the body
        of a try whose finally closes it and nothing reassigns it afterwards.
        A try further down, or one nested in a branch, does not count.
        """
        following = statement.next_named_sibling
        while following is not None and following.type in _COMMENTS:
            following = following.next_named_sibling
        if following is not None and self._hands_off(following, name):
            return True
        return self._closed_by_enclosing_try(statement, name)

    def _hands_off(self, statement: TSNode, name: str) -> bool:
        if statement.type == "return_statement":
            return (
                statement.named_child_count > 0
                and self._is_identifier(statement.named_children[0], name)
                and self._returns_from_method(statement)
            )
        if statement.type not in _TRY_STATEMENTS:
            return False
        resources = statement.child_by_field_name("resources")
        if resources is not None:
            for resource in resources.named_children:
                if resource.type != "resource":
                    continue
                # try (s) { ... }  or  try (Stream<R> t = s) { ... }
                if self._is_identifier(resource.child_by_field_name("value"), name):
                    return True
                if resource.named_child_count == 1 and self._is_identifier(resource.named_children[0], name):
                    return True
        return self._finally_closes(statement, name)

    def _closed_by_enclosing_try(self, statement: TSNode, name: str) -> bool:
        # Stream<R> s = null; try { s = query.fetchStream(); ... } finally { s.close(); }
        child = statement
        current = statement.parent
        while current is not None and current != self.method:
            if current.type == "lambda_expression":
                return False
            if current.type in _TRY_STATEMENTS and current.child_by_field_name("body") == child:
                if self._finally_closes(current, name) and not self._reassigned_after(
                    child, name, statement.end_byte
                ):
                    return True
            child = current
            current = current.parent
        return False

    def _finally_closes(self, statement: TSNode, name: str) -> bool:
        for child in statement.named_children:
            if child.type == "finally_clause":
                return self._closes_in(child, name)
        return False

    def _reassigned_after(self, scope: TSNode, name: str, after: int) -> bool:
        for node in walk_body(scope):
            if node.start_byte < after or node.type != "assignment_expression":
                continue
            if self._is_identifier(node.child_by_field_name("left"), name):
                return True
        return False

    def _closes_in(self, block: TSNode, name: str) -> bool:
        for node in walk_body(block):
            if node.type != "method_invocation":
                continue
            method = node.child_by_field_name("name")
            if method is not None and self._text(method) == "close" and self._is_identifier(
                node.child_by_field_name("object"), name
            ):
                return True
        return False

    # --- reporting ---------------------------------------------------------

    def _finding(self, site: CallSite) -> Finding:
        line, col = get_line_col(site.node)
        end_row, end_col = site.node.end_point
        return_type = site.return_type.simple_name if site.return_type is not None else "a resource"
        message = (
            f"'{site.method_name}' returns {return_type}, which is {simple_name(self.names.closeable)} "
            f"but not a {simple_name(self.names.query_part)}; close it with try-with-resources to avoid "
            "leaking database resources (connections, cursors) on paths that throw or never call close()."
        )
        logger.debug("Unclosed resource from %s at %s:%d:%d", site.method_name, self.context.path, line, col)
        return Finding(
            rule_id=self.rule_id,
            message=message,
            location=Location(
                path=self.context.path,
                line=line,
                column=col,
                end_line=end_row + 1,
                end_column=end_col + 1,
                snippet=get_source_span(self.context, site.node),
            ),
            severity=self.severity,
        )
