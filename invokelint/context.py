# Per-file analysis context: file path, source bytes, C# AST and location helpers.
# Unreadable files are logged and skipped; malformed files still get a context
# (has_parse_errors=True) so rules can work on whatever the parser recovered.

import logging
from pathlib import Path
from typing import Optional

from tree_sitter import Node as TSNode
from tree_sitter import Parser, Tree

from invokelint.csharp.parser import create_parser, parse_bytes

logger = logging.getLogger(__name__)

METHOD_LIKE = frozenset({"method_declaration", "constructor_declaration", "local_function_statement"})


def count_tree_stats(root: TSNode) -> tuple[int, int]:
    """
    Return (total node count, method-like declaration count) for the tree.

    Iterative so that deeply nested expressions do not hit the recursion limit.
    """
    nodes = 0
    methods = 0
    stack = [root]
    while stack:
        node = stack.pop()
        nodes += 1
        if node.type in METHOD_LIKE:
            methods += 1
        stack.extend(node.children)
    return nodes, methods


class FileContext:
    """
    Per-file state for static analysis: path, raw source bytes, and AST.

    Rules use context.path, context.source, and context.tree. Use
    get_source_span(context, node) and get_line_col(node) for locations/snippets.
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
        return self.tree.root_node


def get_source_span(context: FileContext, node: TSNode) -> str:
    """Return the source text of node, decoding bad UTF-8 with replacement characters."""
    return context.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def get_line_col(node: TSNode, one_based: bool = True) -> tuple[int, int]:
    """
    Return (line, column) for the node's start position.

    Tree-sitter uses 0-based (row, col); one_based=True (default) converts
    for display.
    """
    row, col = node.start_point
    if one_based:
        return row + 1, col + 1
    return row, col


def get_end_line_col(node: TSNode) -> tuple[int, int]:
    """Return the 1-based (line, column) of the node's end position."""
    row, col = node.end_point
    return row + 1, col + 1


def create_context(
    path: Path,
    parser: Optional[Parser] = None,
) -> Optional[FileContext]:
    """
    Read a C# file and parse it into a FileContext.

    Returns:
        FileContext if the file was read (parse errors are flagged, not fatal),
        None if the file could not be read.
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

    return FileContext(path=path, source=source, tree=tree, has_parse_errors=has_errors)


def load_contexts(
    paths: list[Path],
    parser: Optional[Parser] = None,
) -> list[FileContext]:
    """
    Read and parse several C# files, keeping input order and omitting
    files that could not be read.
    """
    if parser is None:
        parser = create_parser()

    contexts: list[FileContext] = []
    for path in paths:
        ctx = create_context(path, parser=parser)
        if ctx is not None:
            contexts.append(ctx)
    return contexts
