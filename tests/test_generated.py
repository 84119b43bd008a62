"""Tests for generated-code detection."""

from pathlib import Path

import pytest

from invokelint.csharp.generated import (
    has_auto_generated_header,
    has_generated_code_attribute,
    is_generated_file,
    is_generated_file_name,
)
from invokelint.csharp.parser import parse_bytes


@pytest.mark.parametrize(
    "name",
    [
        "Form1.Designer.cs",
        "Resources.designer.cs",
        "App.g.cs",
        "App.g.i.cs",
        "Client.generated.cs",
        "MyApp.AssemblyAttributes.cs",
        "AssemblyInfo.cs",
        "TemporaryGeneratedFile_036C0B5B-1481-4323-8D20-8F5ADCB23D92.cs",
    ],
)
def test_generated_file_names(name):
    assert is_generated_file_name(Path("src") / name)


@pytest.mark.parametrize("name", ["Program.cs", "Designer.cs", "Generator.cs", "Blog.cs"])
def test_authored_file_names(name):
    assert not is_generated_file_name(Path(name))


def test_auto_generated_header():
    source = b"// <auto-generated />\nclass C { }\n"
    tree = parse_bytes(source)
    assert has_auto_generated_header(tree.root_node, source)
    assert is_generated_file(Path("C.cs"), tree.root_node, source)


def test_comment_after_code_is_not_a_header():
    source = b"class C { }\n// <auto-generated />\n"
    tree = parse_bytes(source)
    assert not has_auto_generated_header(tree.root_node, source)
    assert not is_generated_file(Path("C.cs"), tree.root_node, source)


def test_plain_header_comment():
    source = b"// Copyright (c) Contoso\nclass C { }\n"
    tree = parse_bytes(source)
    assert not has_auto_generated_header(tree.root_node, source)


def _first(node, kind):
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == kind:
            return current
        stack.extend(reversed(current.children))
    return None


@pytest.mark.parametrize(
    "attribute",
    [
        "[GeneratedCode(\"tool\", \"1.0\")]",
        "[System.CodeDom.Compiler.GeneratedCodeAttribute(\"tool\", \"1.0\")]",
        "[DebuggerNonUserCode]",
        "[Serializable, CompilerGenerated]",
    ],
)
def test_generated_code_attributes(attribute):
    source = f"{attribute}\nclass C {{ void M() {{ }} }}\n".encode()
    tree = parse_bytes(source)
    method = _first(tree.root_node, "method_declaration")
    assert has_generated_code_attribute(method, source)


def test_attribute_on_method_only_covers_that_method():
    source = b"class C { [DebuggerNonUserCode] void A() { } void B() { } }"
    tree = parse_bytes(source)
    methods = []
    stack = [tree.root_node]
    while stack:
        current = stack.pop()
        if current.type == "method_declaration":
            methods.append(current)
        stack.extend(reversed(current.children))
    first, second = methods
    assert has_generated_code_attribute(first, source)
    assert not has_generated_code_attribute(second, source)


def test_unrelated_attribute():
    source = b"[Obsolete]\nclass C { void M() { } }\n"
    tree = parse_bytes(source)
    assert not has_generated_code_attribute(_first(tree.root_node, "method_declaration"), source)
