"""Tests for the tree-sitter backed SemanticModel: name lookup, types and navigation."""

from pathlib import Path

import pytest

from invokelint.analysis.semantics import CancellationToken, OperationCanceledError, SymbolKind
from invokelint.context import FileContext
from invokelint.csharp.parser import create_parser, parse_bytes
from invokelint.csharp.semantic_model import TreeSitterSemanticModel


def _model(source: bytes, path: str = "Test.cs") -> TreeSitterSemanticModel:
    tree = parse_bytes(source, parser=create_parser())
    return TreeSitterSemanticModel(FileContext(path=Path(path), source=source, tree=tree))


def _callees(model: TreeSitterSemanticModel, name: str) -> list:
    """Identifier nodes invoked as `name(...)`, in document order."""
    found = []
    stack = [model.context.root_node]
    while stack:
        node = stack.pop()
        if node.type == "invocation_expression":
            function = node.child_by_field_name("function")
            if function is not None and function.type == "identifier" and model.text_of(function) == name:
                found.append(function)
        stack.extend(reversed(node.children))
    return found


def _symbol_kind(source: bytes, name: str):
    model = _model(source)
    (callee,) = _callees(model, name)
    symbol = model.symbol_of(callee)
    return symbol.kind if symbol else None


def test_parameter():
    source = b"class C { void M(System.Action a) { a(); } }"
    model = _model(source)
    (callee,) = _callees(model, "a")
    symbol = model.symbol_of(callee)
    assert symbol.kind is SymbolKind.PARAMETER
    assert symbol.type_name == "System.Action"


def test_local():
    assert _symbol_kind(b"class C { void M() { Action a = null; a(); } }", "a") is SymbolKind.LOCAL


def test_field_property_event():
    source = b"""
class C
{
    Action _field;
    Action Prop { get; set; }
    event Action Raised;
    void M() { _field(); Prop(); Raised(); }
}
"""
    assert _symbol_kind(source, "_field") is SymbolKind.FIELD
    assert _symbol_kind(source, "Prop") is SymbolKind.PROPERTY
    assert _symbol_kind(source, "Raised") is SymbolKind.EVENT


def test_method_and_local_function():
    source = b"class C { void Helper() { } void M() { void Local() { } Helper(); Local(); } }"
    assert _symbol_kind(source, "Helper") is SymbolKind.METHOD
    assert _symbol_kind(source, "Local") is SymbolKind.LOCAL_FUNCTION


def test_lambda_parameter_shadows_field():
    source = b"class C { Action a; void M() { Action<Action> run = a => a(); } }"
    assert _symbol_kind(source, "a") is SymbolKind.PARAMETER


def test_foreach_variable():
    source = b"class C { void M(Action[] all) { foreach (Action h in all) { h(); } } }"
    assert _symbol_kind(source, "h") is SymbolKind.LOCAL


def test_setter_value():
    source = b"class C { Action _a; public Action A { set { value(); _a = value; } } }"
    model = _model(source)
    (callee,) = _callees(model, "value")
    symbol = model.symbol_of(callee)
    assert symbol.kind is SymbolKind.PARAMETER
    assert model.type_of(callee).is_multicast_delegate


def test_unresolved_identifier():
    assert _symbol_kind(b"class C : Base { void M() { InheritedHandler(); } }", "InheritedHandler") is None


def test_same_symbol_for_guard_and_call():
    source = b"class C { Action a; void M() { if (a == null) return; a(); } }"
    model = _model(source)
    (callee,) = _callees(model, "a")
    method = model.enclosing_method_of(callee)
    guard = model.child_statements_of(method)[0]
    compared = guard.child_by_field_name("condition").child_by_field_name("left")
    assert model.symbol_of(compared) == model.symbol_of(callee)


def test_type_of_delegates():
    source = b"class C { void M(Func<int> f, Func<string> g, string s) { f(); g(); s(); } }"
    model = _model(source)
    (f,) = _callees(model, "f")
    (g,) = _callees(model, "g")
    (s,) = _callees(model, "s")
    assert model.type_of(f).invoke_method.returns_reference_type is False
    assert model.type_of(g).invoke_method.returns_reference_type is True
    assert model.type_of(s).is_multicast_delegate is False


def test_type_of_method_group_and_var():
    source = b"class C { void Helper() { } void M() { var v = new Action(Helper); Helper(); v(); } }"
    model = _model(source)
    (helper,) = _callees(model, "Helper")
    (v,) = _callees(model, "v")
    assert model.type_of(helper) is None
    assert model.type_of(v) is None


def test_enclosing_method():
    source = b"""
class C
{
    public C(Action a) { a(); }
    void M(Action b) { Task.Run(() => b()); }
}
"""
    model = _model(source)
    (a,) = _callees(model, "a")
    (b,) = _callees(model, "b")
    assert model.enclosing_method_of(a) is None
    method = model.enclosing_method_of(b)
    assert method is not None
    assert method.type == "method_declaration"


def test_child_statements_skip_comments():
    source = b"class C { void M(Action a) { // first\n if (a == null) return; /* call */ a(); } }"
    model = _model(source)
    (a,) = _callees(model, "a")
    statements = model.child_statements_of(model.enclosing_method_of(a))
    assert [s.type for s in statements] == ["if_statement", "expression_statement"]


def test_child_statements_of_expression_body():
    model = _model(b"class C { void M(Action a) => a(); }")
    (a,) = _callees(model, "a")
    assert model.child_statements_of(model.enclosing_method_of(a)) == []


def test_generated_checks():
    source = b"class C { void M(Action a) { a(); } }"
    plain = _model(source)
    designer = _model(source, path="Main.Designer.cs")
    (a,) = _callees(plain, "a")
    (b,) = _callees(designer, "a")
    assert plain.is_generated(a) is False
    assert designer.is_generated(b) is True
    designer.analyze_generated_code = True
    assert designer.is_generated(b) is False


def test_cancelled_query_raises():
    model = _model(b"class C { void M(Action a) { a(); } }")
    (a,) = _callees(model, "a")
    token = CancellationToken()
    token.cancel()
    with pytest.raises(OperationCanceledError):
        model.symbol_of(a, token)
    with pytest.raises(OperationCanceledError):
        model.type_of(a, token)


def test_pattern_and_out_variables_are_locals():
    source = b"""
class C
{
    Action a, b, c;
    bool TryGet(out Action x) { x = null; return false; }
    void M(object o)
    {
        if (o is Action a) a();
        if (TryGet(out Action b)) b();
        if (o is var c) c();
    }
}
"""
    assert _symbol_kind(source, "a") is SymbolKind.LOCAL
    assert _symbol_kind(source, "b") is SymbolKind.LOCAL
    assert _symbol_kind(source, "c") is SymbolKind.LOCAL


def test_pattern_variable_type():
    model = _model(b"class C { void M(object o) { if (o is Func<string> f) f(); } }")
    (f,) = _callees(model, "f")
    assert model.type_of(f).invoke_method.returns_reference_type


def test_pattern_variable_in_lambda_does_not_leak():
    source = b"class C { Action a; void M() { Func<object, bool> run = o => o is Action a && Run(a); a(); } }"
    model = _model(source)
    (call,) = _callees(model, "a")
    assert model.symbol_of(call).kind is SymbolKind.FIELD
