# Generated-code detection: file name conventions, <auto-generated> headers and
# code-generation attributes on enclosing declarations.

from __future__ import annotations

import logging
from pathlib import Path

from tree_sitter import Node as TSNode

logger = logging.getLogger(__name__)

GENERATED_FILE_SUFFIXES = (
    ".designer.cs",
    ".generated.cs",
    ".g.cs",
    ".g.i.cs",
    ".assemblyattributes.cs",
)
GENERATED_FILE_NAMES = frozenset({"assemblyinfo.cs"})
GENERATED_FILE_PREFIXES = ("temporarygeneratedfile_",)

GENERATED_ATTRIBUTES = frozenset({"GeneratedCode", "DebuggerNonUserCode", "CompilerGenerated"})

AUTO_GENERATED_MARKER = "<auto-generated"


def is_generated_file_name(path: Path) -> bool:
    name = path.name.lower()
    if name in GENERATED_FILE_NAMES:
        return True
    if name.startswith(GENERATED_FILE_PREFIXES):
        return True
    return name.endswith(GENERATED_FILE_SUFFIXES)


def has_auto_generated_header(root: TSNode, source: bytes) -> bool:
    """True if a comment before the first declaration contains an <auto-generated> tag."""
    for child in root.children:
        if child.type != "comment":
            break
        text = source[child.start_byte : child.end_byte].decode("utf-8", errors="replace")
        if AUTO_GENERATED_MARKER in text.lower():
            return True
    return False


def _attribute_name(attribute: TSNode, source: bytes) -> str:
    name = attribute.child_by_field_name("name")
    if name is None:
        name = attribute.named_children[0] if attribute.named_children else attribute
    text = source[name.start_byte : name.end_byte].decode("utf-8", errors="replace")
    # System.CodeDom.Compiler.GeneratedCodeAttribute -> GeneratedCode
    text = text.rsplit(".", 1)[-1].rsplit("::", 1)[-1].strip()
    if text.endswith("Attribute"):
        text = text[: -len("Attribute")]
    return text


def has_generated_code_attribute(node: TSNode, source: bytes) -> bool:
    """True if node or any ancestor declaration carries a code-generation attribute."""
    current = node
    while current is not None:
        for child in current.children:
            if child.type != "attribute_list":
                continue
            for attribute in child.named_children:
                if attribute.type == "attribute" and _attribute_name(attribute, source) in GENERATED_ATTRIBUTES:
                    return True
        current = current.parent
    return False


def is_generated_file(path: Path, root: TSNode, source: bytes) -> bool:
    """File-level check: generated file name or <auto-generated> header."""
    if is_generated_file_name(path):
        logger.debug("%s: generated by file name", path)
        return True
    if has_auto_generated_header(root, source):
        logger.debug("%s: generated by <auto-generated> header", path)
        return True
    return False
