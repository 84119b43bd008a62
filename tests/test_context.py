"""Tests for invokelint.context: FileContext, create_context, load_contexts, node/method counts."""

from pathlib import Path

from invokelint.context import (
    FileContext,
    count_tree_stats,
    create_context,
    get_end_line_col,
    get_line_col,
    get_source_span,
    load_contexts,
)
from invokelint.csharp.parser import create_parser, parse_bytes

SOURCE = b"class C\n{\n    C() { }\n    void M() { void Local() { } }\n}\n"


def test_count_tree_stats():
    tree = parse_bytes(SOURCE, parser=create_parser())
    nodes, methods = count_tree_stats(tree.root_node)
    assert nodes > 1
    # constructor, method and local function
    assert methods == 3


def test_create_context(tmp_path):
    cs_file = tmp_path / "C.cs"
    cs_file.write_bytes(SOURCE)
    ctx = create_context(cs_file)
    assert ctx is not None
    assert ctx.path == cs_file
    assert ctx.source == SOURCE
    assert ctx.root_node.type == "compilation_unit"
    assert ctx.has_parse_errors is False


def test_create_context_logs_counts(tmp_path, caplog):
    cs_file = tmp_path / "C.cs"
    cs_file.write_bytes(SOURCE)
    with caplog.at_level("INFO"):
        create_context(cs_file)
    assert "3 method(s)" in caplog.text


def test_create_context_nonexistent():
    assert create_context(Path("/nonexistent/File.cs")) is None


def test_create_context_malformed_still_returns_context(tmp_path):
    cs_file = tmp_path / "Bad.cs"
    cs_file.write_bytes(b"class C { void M( { }\n")
    ctx = create_context(cs_file)
    assert ctx is not None
    assert ctx.has_parse_errors is True


def test_get_source_span():
    source = b"class C { int x = 42; }"
    tree = parse_bytes(source)
    ctx = FileContext(path=Path("C.cs"), source=source, tree=tree)
    assert get_source_span(ctx, ctx.root_node) == "class C { int x = 42; }"


def test_line_col():
    source = b"class A { }\nclass B { }"
    tree = parse_bytes(source)
    second = tree.root_node.named_children[1]
    assert get_line_col(second) == (2, 1)
    assert get_line_col(second, one_based=False) == (1, 0)
    assert get_end_line_col(second) == (2, 12)


def test_load_contexts(tmp_path):
    a = tmp_path / "A.cs"
    b = tmp_path / "B.cs"
    a.write_bytes(b"class A { }\n")
    b.write_bytes(b"class B { }\n")
    contexts = load_contexts([a, b])
    assert [c.path for c in contexts] == [a, b]


def test_load_contexts_skips_unreadable(tmp_path):
    a = tmp_path / "A.cs"
    a.write_bytes(b"class A { }\n")
    contexts = load_contexts([a, tmp_path / "Missing.cs"])
    assert len(contexts) == 1
    assert contexts[0].path == a
