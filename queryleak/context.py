# Per-file analysis context: store file path, source code, AST, imports, and helper methods.
# Handles reading/parsing Java files, error handling for unreadable/malformed files,
# and logging of node/method counts so ASTs are ready for rules.

import logging
from functools import cached_property
from pathlib import Path
from typing import Optional

from queryleak.parser import create_parser, parse_bytes
from queryleak.typesystem import ImportScope
from tree_sitter import Parser, Tree
from tree_sitter import Node as TSNode

logger = logging.getLogger(__name__)

METHOD_NODE_TYPES = frozenset({"method_declaration", "constructor_declaration"})
TYPE_DECLARATION_NODE_TYPES = frozenset(
    {
        "class_declaration",
        "interface_declaration",
        "enum_declaration",
        "record_declaration",
        "annotation_type_declaration",
    }
)


def _count_nodes(node: TSNode) -> int:
    """Count all descendants of node (including node itself)."""
    count = 1
    for child in node.children:
        count += _count_nodes(child)
    return count


def _count_methods(root: TSNode) -> int:
    """Count method and constructor declarations under root."""
    count = 0
    if root.type in METHOD_NODE_TYPES:
        count += 1
    for child in root.children:
        count += _count_methods(child)
    return count


def count_tree_stats(root: TSNode) -> tuple[int, int]:
    """
    Return (total node count, method declaration count) for the tree.

    Useful for logging how much was parsed (nodes and methods).
    """
    return _count_nodes(root), _count_methods(root)


def _qualified_name(source: bytes, decl: TSNode) -> Optional[str]:
    for child in decl.named_children:
        if child.type in ("identifier", "scoped_identifier"):
            return "".join(source[child.start_byte : child.end_byte].decode("utf-8", errors="replace").split())
    return None


def _declared_type_names(source: bytes, node: TSNode, found: set[str]) -> None:
    if node.type in TYPE_DECLARATION_NODE_TYPES:
        name = node.child_by_field_name("name")
        if name is not None:
            found.add(source[name.start_byte : name.end_byte].decode("utf-8", errors="replace"))
    for child in node.named_children:
        _declared_type_names(source, child, found)


def build_import_scope(source: bytes, root: TSNode) -> ImportScope:
    """
    Collect the package, type imports and declared type names of a compilation unit.

    Static imports bring in members, not types, and are ignored.
    """
    declared: set[str] = set()
    _declared_type_names(source, root, declared)
    package = ""
    single: dict[str, str] = {}
    on_demand: list[str] = []
    for child in root.named_children:
        if child.type == "package_declaration":
            package = _qualified_name(source, child) or ""
        elif child.type == "import_declaration":
            if any(c.type == "static" for c in child.children):
                continue
            name = _qualified_name(source, child)
            if not name:
                continue
            if any(c.type == "asterisk" for c in child.children):
                on_demand.append(name)
            else:
                single[name.rsplit(".", 1)[-1]] = name
    return ImportScope(package=package, single=single, on_demand=tuple(on_demand), declared=frozenset(declared))


class FileContext:
    """
    Per-file state for static analysis: path, raw source bytes, and AST.

    Rules use context.path, context.source, context.tree and context.imports.
    Use get_source_span(context, node) and get_line_col(node) for locations/snippets.
    """

    def __init__(
        self,
        path: Path,
        source: bytes,
        tree: Tree,
        *,
        has_parse_errors: bool = False,
    ) -> None:
        self.path = path
        self.source = source
        self.tree = tree
        self.has_parse_errors = has_parse_errors

    @property
    def root_node(self) -> TSNode:
        """Convenience access to the AST root."""
        return self.tree.root_node

    @cached_property
    def imports(self) -> ImportScope:
        """Package and import declarations used to resolve simple type names."""
        return build_import_scope(self.source, self.root_node)


def get_source_span(context: FileContext, node: TSNode) -> str:
    """
    Return the substring of context.source for the given node's byte range.

    Decodes with errors="replace" so bad UTF-8 does not crash.
    """
    return context.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def get_line_col(node: TSNode, one_based: bool = True) -> tuple[int, int]:
    """
    Return (line, column) for the node's start position.

    Tree-sitter uses 0-based (row, col). If one_based=True (default),
    returns 1-based line and column for display.
    """
    row, col = node.start_point
    if one_based:
        return row + 1, col + 1
    return row, col


def create_context(
    path: Path,
    parser: Optional[Parser] = None,
) -> Optional[FileContext]:
    """
    Read a Java file and parse it into a FileContext (path, source, AST).

    - Unreadable file (permission, missing): returns None and logs error.
    - Malformed Java (syntax errors): still returns a FileContext with the tree
      and sets has_parse_errors=True; logs a warning and node/method counts.
    - Success: returns FileContext and logs node count and method count.
    """
    if parser is None:
        parser = create_parser()

    try:
        source = path.read_bytes()
    except OSError as e:
        logger.error("Failed to read file %s: %s", path, e)
        return None

    tree = parse_bytes(source, parser=parser)
    has_errors = tree.root_node.has_error
    if has_errors:
        logger.warning("File %s parsed with syntax errors; AST may be incomplete", path)

    node_count, method_count = count_tree_stats(tree.root_node)
    logger.info(
        "Parsed %s: %d nodes, %d method(s)%s",
        path,
        node_count,
        method_count,
        " (with parse errors)" if has_errors else "",
    )

    return FileContext(
        path=path,
        source=source,
        tree=tree,
        has_parse_errors=has_errors,
    )


def load_contexts(
    paths: list[Path],
    parser: Optional[Parser] = None,
) -> list[FileContext]:
    """
    Read and parse multiple Java files into FileContexts.

    Unreadable or missing files are skipped (logged); malformed files still
    get a context with has_parse_errors=True. Order matches input order.
    """
    if parser is None:
        parser = create_parser()

    contexts: list[FileContext] = []
    for path in paths:
        ctx = create_context(path, parser=parser)
        if ctx is not None:
            contexts.append(ctx)
    return contexts
