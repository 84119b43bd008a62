"""Tests for tree-sitter C# parser wrapper."""

import logging
from pathlib import Path


from invokelint.csharp.parser import (
    create_parser,
    get_csharp_language,
    parse_bytes,
)


def test_get_csharp_language_returns_language():
    """get_csharp_language() returns a tree-sitter Language object."""
    lang = get_csharp_language()
    assert lang is not None
    assert lang


def test_create_parser_returns_parser():
    """create_parser() returns a configured Parser."""
    parser = create_parser()
    assert parser is not None
    assert parser.language is not None


def test_parse_bytes_success(caplog):
    """Parsing valid C# source succeeds and logs."""
    source = b"class C { void M(System.Action a) { a?.Invoke(); } }"
    parser = create_parser()
    with caplog.at_level(logging.DEBUG):
        tree = parse_bytes(source, parser=parser)
    assert tree is not None
    assert not tree.root_node.has_error
    assert tree.root_node.type == "compilation_unit"
    assert "Parse succeeded" in caplog.text


def test_parse_bytes_invalid_logs_failure(caplog):
    """Parsing broken C# logs a warning when the tree has ERROR nodes."""
    source = b"class C { void M( { broken"
    with caplog.at_level(logging.WARNING):
        tree = parse_bytes(source)
    assert tree.root_node is not None
    assert tree.root_node.has_error
    assert "Parse completed with errors" in caplog.text


def test_parse_sample_cs():
    """Parser parses the small C# sample file successfully."""
    sample_path = Path(__file__).parent / "sample.cs"
    assert sample_path.exists(), "tests/sample.cs must exist"
    tree = parse_bytes(sample_path.read_bytes())
    assert not tree.root_node.has_error
    assert tree.root_node.type == "compilation_unit"
