"""
C# type names as the parser sees them, and what the analysis needs to know
about them: is it a delegate, what does its Invoke method return, and is
that a reference type.

Resolution is file-local. Delegates, structs and enums declared in the
compilation unit are recognized together with the common BCL delegates and
value types; any other named type is assumed to be a class.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple

from tree_sitter import Node as TSNode

from invokelint.analysis.semantics import DelegateSignature, TypeInfo

logger = logging.getLogger(__name__)

PREDEFINED_VALUE_TYPES = frozenset(
    {
        "bool", "byte", "sbyte", "char", "decimal", "double", "float",
        "int", "uint", "long", "ulong", "short", "ushort", "nint", "nuint",
    }
)

# BCL structs, by simple name (System.* and friends).
KNOWN_VALUE_TYPES = frozenset(
    {
        "Boolean", "Byte", "SByte", "Char", "Decimal", "Double", "Single", "Half",
        "Int16", "Int32", "Int64", "Int128", "UInt16", "UInt32", "UInt64", "UInt128",
        "IntPtr", "UIntPtr", "DateTime", "DateTimeOffset", "DateOnly", "TimeOnly",
        "TimeSpan", "Guid", "CancellationToken", "ValueTask", "ValueTuple",
        "Nullable", "KeyValuePair", "Span", "ReadOnlySpan", "Memory",
        "ReadOnlyMemory", "Index", "Range", "Color", "Point", "Size", "Rectangle",
    }
)


@dataclass(frozen=True)
class TypeName:
    """A type reference such as `Func<string, int>?` or `global::System.Action`, by simple name."""

    name: str
    arguments: Tuple["TypeName", ...] = ()
    nullable: bool = False
    array_rank: int = 0
    pointer: bool = False
    tuple_elements: Tuple["TypeName", ...] = ()

    @property
    def is_tuple(self) -> bool:
        return bool(self.tuple_elements)

    def render(self) -> str:
        if self.is_tuple:
            text = "(" + ", ".join(t.render() for t in self.tuple_elements) + ")"
        else:
            text = self.name
            if self.arguments:
                text += "<" + ", ".join(a.render() for a in self.arguments) + ">"
        if self.pointer:
            text += "*"
        if self.array_rank:
            text += "[]" * self.array_rank
        if self.nullable:
            text += "?"
        return text


VOID = TypeName("void")

# Wrappers whose inner type is what the declaration means.
_TRANSPARENT_TYPES = frozenset({"ref_type", "scoped_type"})


def _node_text(source: bytes, node) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _inner_type(node: TSNode) -> Optional[TSNode]:
    inner = node.child_by_field_name("type")
    if inner is None:
        inner = next(iter(node.named_children), None)
    return inner


def type_name_from_node(node: TSNode, source: bytes) -> TypeName:
    """
    Read a TypeName off a tree-sitter type node.

    Qualified and alias-qualified names keep their last segment. Node kinds
    not listed here are kept whole, as source text, so callers still get a
    usable (unknown) type.
    """
    kind = node.type
    if kind == "identifier":
        return TypeName(_node_text(source, node).lstrip("@"))
    if kind in ("predefined_type", "implicit_type"):
        return TypeName(_node_text(source, node))
    if kind == "generic_name":
        name = next((c for c in node.named_children if c.type == "identifier"), None)
        arguments = next((c for c in node.named_children if c.type == "type_argument_list"), None)
        return TypeName(
            name=_node_text(source, name).lstrip("@") if name is not None else _node_text(source, node),
            arguments=tuple(type_name_from_node(a, source) for a in arguments.named_children) if arguments else (),
        )
    if kind in ("qualified_name", "alias_qualified_name"):
        last = node.child_by_field_name("name")
        if last is None and node.named_children:
            last = node.named_children[-1]
        if last is not None:
            return type_name_from_node(last, source)
    if kind == "nullable_type":
        inner = _inner_type(node)
        if inner is not None:
            return replace(type_name_from_node(inner, source), nullable=True)
    if kind == "array_type":
        inner = _inner_type(node)
        if inner is not None:
            element = type_name_from_node(inner, source)
            ranks = sum(1 for c in node.named_children if c.type == "array_rank_specifier")
            return replace(element, array_rank=element.array_rank + max(ranks, 1))
    if kind == "pointer_type":
        inner = _inner_type(node)
        if inner is not None:
            return replace(type_name_from_node(inner, source), pointer=True)
    if kind == "tuple_type":
        elements = []
        for element in node.named_children:
            if element.type != "tuple_element":
                continue
            inner = _inner_type(element)
            if inner is not None:
                elements.append(type_name_from_node(inner, source))
        if elements:
            return TypeName(name="ValueTuple", tuple_elements=tuple(elements))
    if kind in _TRANSPARENT_TYPES:
        inner = _inner_type(node)
        if inner is not None:
            return type_name_from_node(inner, source)
    logger.debug("Unrecognized type node %s: %r", kind, _node_text(source, node))
    return TypeName(_node_text(source, node).strip())


def _void(arguments: Tuple[TypeName, ...]) -> Optional[TypeName]:
    return VOID


def _func(arguments: Tuple[TypeName, ...]) -> Optional[TypeName]:
    return arguments[-1] if arguments else None


def _converter(arguments: Tuple[TypeName, ...]) -> Optional[TypeName]:
    return arguments[1] if len(arguments) == 2 else None


def _fixed(return_type: str, arity: int) -> Callable[[Tuple[TypeName, ...]], Optional[TypeName]]:
    def resolve(arguments: Tuple[TypeName, ...]) -> Optional[TypeName]:
        return TypeName(return_type) if len(arguments) == arity else None

    return resolve


# Simple name -> Invoke return type for the given type arguments (None: not that delegate).
KNOWN_DELEGATES: Dict[str, Callable[[Tuple[TypeName, ...]], Optional[TypeName]]] = {
    "Action": _void,
    "Func": _func,
    "EventHandler": _void,
    "Predicate": _fixed("bool", 1),
    "Comparison": _fixed("int", 1),
    "Converter": _converter,
    "AsyncCallback": _fixed("void", 0),
    "ThreadStart": _fixed("void", 0),
    "ParameterizedThreadStart": _fixed("void", 0),
    "WaitCallback": _fixed("void", 0),
    "TimerCallback": _fixed("void", 0),
    "SendOrPostCallback": _fixed("void", 0),
    "ElapsedEventHandler": _fixed("void", 0),
    "PropertyChangedEventHandler": _fixed("void", 0),
    "PropertyChangingEventHandler": _fixed("void", 0),
    "NotifyCollectionChangedEventHandler": _fixed("void", 0),
    "UnhandledExceptionEventHandler": _fixed("void", 0),
    "ResolveEventHandler": _fixed("Assembly", 0),
}
@dataclass(frozen=True)
class DeclaredDelegate:
    name: str
    type_parameters: Tuple[str, ...]
    return_type: TypeName


class TypeTable:
    """
    Type facts for one compilation unit: delegates, structs and enums it
    declares, on top of the built-in tables above.
    """

    def __init__(
        self,
        delegates: Mapping[str, DeclaredDelegate] | None = None,
        value_types: frozenset[str] = frozenset(),
    ) -> None:
        self.delegates: Dict[str, DeclaredDelegate] = dict(delegates or {})
        self.value_types = value_types

    def describe(self, type_name: TypeName, type_parameters: Mapping[str, bool] | None = None) -> TypeInfo:
        """
        Build the TypeInfo of a declared type.

        type_parameters maps the type parameter names in scope to whether each
        is constrained to a reference type.
        """
        type_parameters = type_parameters or {}
        return_type = self._invoke_return_type(type_name, type_parameters)
        if return_type is None:
            return TypeInfo(converted_type=type_name.render())
        returns_void = return_type == VOID
        signature = DelegateSignature(
            return_type=return_type.render(),
            returns_void=returns_void,
            returns_reference_type=not returns_void and self.is_reference_type(return_type, type_parameters),
        )
        return TypeInfo(converted_type=type_name.render(), is_multicast_delegate=True, invoke_method=signature)

    def _invoke_return_type(self, type_name: TypeName, type_parameters: Mapping[str, bool]) -> Optional[TypeName]:
        # A nullable annotation on a delegate (Action?) converts to the delegate itself.
        if type_name.is_tuple or type_name.array_rank or type_name.pointer:
            return None
        if type_name.name in type_parameters:
            return None
        declared = self.delegates.get(type_name.name)
        if declared is not None and len(declared.type_parameters) == len(type_name.arguments):
            return _substitute(declared.return_type, dict(zip(declared.type_parameters, type_name.arguments)))
        resolve = KNOWN_DELEGATES.get(type_name.name)
        if resolve is None:
            return None
        return resolve(type_name.arguments)

    def is_reference_type(self, type_name: TypeName, type_parameters: Mapping[str, bool] | None = None) -> bool:
        type_parameters = type_parameters or {}
        if type_name.array_rank:
            return True
        if type_name.pointer or type_name.is_tuple:
            return False
        if type_name.name == "void":
            return False
        if type_name.name in type_parameters:
            # `T?` on an unconstrained T is still not known to be a reference type.
            return type_parameters[type_name.name]
        if self._is_value_type_name(type_name.name):
            return False
        return True

    def _is_value_type_name(self, name: str) -> bool:
        return name in PREDEFINED_VALUE_TYPES or name in KNOWN_VALUE_TYPES or name in self.value_types


def _substitute(type_name: TypeName, mapping: Mapping[str, TypeName]) -> TypeName:
    """Replace type parameters of a generic delegate's return type with its type arguments."""
    if type_name.is_tuple:
        return replace(type_name, tuple_elements=tuple(_substitute(t, mapping) for t in type_name.tuple_elements))
    replacement = mapping.get(type_name.name)
    if replacement is None or type_name.arguments:
        return replace(type_name, arguments=tuple(_substitute(a, mapping) for a in type_name.arguments))
    return replace(
        replacement,
        nullable=type_name.nullable or replacement.nullable,
        array_rank=replacement.array_rank + type_name.array_rank,
        pointer=replacement.pointer or type_name.pointer,
    )


VALUE_TYPE_DECLARATIONS = frozenset({"struct_declaration", "enum_declaration", "record_struct_declaration"})


def _walk(node) -> Iterator:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def return_type_node(declaration):
    """The return type of a method or delegate declaration (field name varies by grammar version)."""
    return declaration.child_by_field_name("returns") or declaration.child_by_field_name("type")


def type_parameter_names(declaration, source: bytes) -> Tuple[str, ...]:
    type_parameters = declaration.child_by_field_name("type_parameters")
    if type_parameters is None:
        type_parameters = next((c for c in declaration.named_children if c.type == "type_parameter_list"), None)
    if type_parameters is None:
        return ()
    names = []
    for parameter in type_parameters.named_children:
        if parameter.type != "type_parameter":
            continue
        name = parameter.child_by_field_name("name")
        if name is None:
            name = next((c for c in parameter.named_children if c.type == "identifier"), None)
        if name is not None:
            names.append(_node_text(source, name))
    return tuple(names)


def build_type_table(root, source: bytes) -> TypeTable:
    """Collect the delegates and value types declared anywhere in the compilation unit."""
    delegates: Dict[str, DeclaredDelegate] = {}
    value_types = set()
    for node in _walk(root):
        if node.type == "delegate_declaration":
            name = node.child_by_field_name("name")
            returns = return_type_node(node)
            if name is None or returns is None:
                continue
            delegate = DeclaredDelegate(
                name=_node_text(source, name),
                type_parameters=type_parameter_names(node, source),
                return_type=type_name_from_node(returns, source),
            )
            delegates[delegate.name] = delegate
        elif node.type in VALUE_TYPE_DECLARATIONS:
            name = node.child_by_field_name("name")
            if name is not None:
                value_types.add(_node_text(source, name))
        elif node.type == "record_declaration" and any(c.type == "struct" for c in node.children):
            name = node.child_by_field_name("name")
            if name is not None:
                value_types.add(_node_text(source, name))
    logger.debug("Type table: %d delegate(s), %d value type(s)", len(delegates), len(value_types))
    return TypeTable(delegates=delegates, value_types=frozenset(value_types))
