"""
SemanticModel backed by a tree-sitter C# tree.

Names are resolved lexically within the file: walking outwards from the
identifier through blocks, pattern and out variables, loop/using/catch
variables, lambda and local function parameters, method parameters,
accessor `value`, and finally the members of the enclosing (and outer) type
declarations. Inherited members and other files are not visible; such
identifiers stay unresolved and the analysis leaves them alone.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterator, Optional, Sequence

from tree_sitter import Node as TSNode

from invokelint.analysis.semantics import (
    CancellationToken,
    SemanticModel,
    Symbol,
    SymbolKind,
    TypeInfo,
)
from invokelint.context import FileContext
from invokelint.csharp.generated import has_generated_code_attribute, is_generated_file
from invokelint.csharp.types import TypeName, build_type_table, type_name_from_node, type_parameter_names

logger = logging.getLogger(__name__)

TYPE_DECLARATIONS = frozenset(
    {
        "class_declaration",
        "struct_declaration",
        "record_declaration",
        "record_struct_declaration",
        "interface_declaration",
    }
)
NESTED_TYPE_DECLARATIONS = TYPE_DECLARATIONS | {"enum_declaration", "delegate_declaration"}

# Declarations whose parameter list is in scope for their body.
PARAMETERIZED = frozenset(
    {
        "method_declaration",
        "constructor_declaration",
        "local_function_statement",
        "operator_declaration",
        "conversion_operator_declaration",
        "indexer_declaration",
        "anonymous_method_expression",
    }
)
PARAMETER_LISTS = frozenset({"parameter_list", "bracketed_parameter_list"})
VARIABLE_SCOPES = frozenset({"for_statement", "using_statement", "fixed_statement"})
# Statements whose condition variables are not visible after the statement.
STATEMENT_SCOPES = frozenset(
    {
        "while_statement",
        "do_statement",
        "for_statement",
        "foreach_statement",
        "using_statement",
        "lock_statement",
        "fixed_statement",
        "switch_statement",
    }
)
STATEMENT_CONTAINERS = frozenset({"block", "switch_section", "compilation_unit", "global_statement"})
EXPRESSION_VARIABLE_DECLARATIONS = frozenset(
    {"declaration_pattern", "recursive_pattern", "var_pattern", "declaration_expression"}
)
EXPRESSION_VARIABLE_BOUNDARIES = frozenset(
    {"block", "lambda_expression", "anonymous_method_expression", "declaration_list"}
)
VALUE_ACCESSORS = frozenset({"set", "init", "add", "remove"})
UNTYPED_SYMBOLS = frozenset({SymbolKind.METHOD, SymbolKind.LOCAL_FUNCTION, SymbolKind.TYPE})

_CONSTRAINT_RE = re.compile(r"where\s+@?(\w+)\s*:\s*(.+)", re.DOTALL)


class TreeSitterSemanticModel(SemanticModel):
    """Semantic queries over one parsed C# file."""

    def __init__(self, context: FileContext, *, analyze_generated_code: bool = False) -> None:
        self.context = context
        self.source = context.source
        self.analyze_generated_code = analyze_generated_code
        self.types = build_type_table(context.root_node, context.source)
        self.generated_file = is_generated_file(context.path, context.root_node, context.source)
        self._declared_types: Dict[Symbol, TypeName] = {}

    # --- navigation -----------------------------------------------------------

    def text_of(self, node: TSNode) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def is_generated(self, node: TSNode) -> bool:
        if self.analyze_generated_code:
            return False
        return self.generated_file or has_generated_code_attribute(node, self.source)

    def enclosing_method_of(self, node: TSNode) -> Optional[TSNode]:
        current = node.parent
        while current is not None:
            if current.type == "method_declaration":
                return current
            current = current.parent
        return None

    def child_statements_of(self, node: TSNode) -> Sequence[TSNode]:
        # Expression-bodied and abstract methods have no statement list.
        body = node.child_by_field_name("body")
        if body is None or body.type != "block":
            return []
        return [child for child in body.named_children if child.type != "comment"]

    # --- semantic queries -----------------------------------------------------

    def symbol_of(
        self, expression: TSNode, cancellation: Optional[CancellationToken] = None
    ) -> Optional[Symbol]:
        if cancellation is not None:
            cancellation.raise_if_cancellation_requested()
        if expression is None or expression.type != "identifier":
            return None
        name = self.text_of(expression)
        scope = expression.parent
        while scope is not None:
            symbol = self._lookup(scope, name)
            if symbol is not None:
                return symbol
            scope = scope.parent
        logger.debug("Unresolved identifier '%s' at byte %d", name, expression.start_byte)
        return None

    def type_of(
        self, expression: TSNode, cancellation: Optional[CancellationToken] = None
    ) -> Optional[TypeInfo]:
        symbol = self.symbol_of(expression, cancellation)
        if symbol is None or symbol.kind in UNTYPED_SYMBOLS:
            return None
        type_name = self._declared_types.get(symbol)
        if type_name is None or type_name.name == "var":
            return None
        return self.types.describe(type_name, self.type_parameters_in_scope(expression))

    def type_parameters_in_scope(self, node: TSNode) -> Dict[str, bool]:
        """Map each type parameter visible at node to whether it is constrained to a reference type."""
        scope: Dict[str, bool] = {}
        current = node.parent
        while current is not None:
            names = type_parameter_names(current, self.source)
            if names:
                constraints = self._reference_constraints(current)
                for name in names:
                    scope.setdefault(name, constraints.get(name, False))
            current = current.parent
        return scope

    def _reference_constraints(self, declaration: TSNode) -> Dict[str, bool]:
        constraints: Dict[str, bool] = {}
        for child in declaration.named_children:
            if child.type != "type_parameter_constraints_clause":
                continue
            match = _CONSTRAINT_RE.match(self.text_of(child).strip())
            if match is None:
                continue
            parts = [part.strip() for part in match.group(2).split(",")]
            constraints[match.group(1)] = any(part in ("class", "class?") for part in parts)
        return constraints

    # --- scope lookup ---------------------------------------------------------

    def _lookup(self, scope: TSNode, name: str) -> Optional[Symbol]:
        kind = scope.type
        if kind in STATEMENT_SCOPES or self._is_embedded_statement(scope) or kind == "arrow_expression_clause":
            symbol = self._expression_variable(scope, name)
            if symbol is not None:
                return symbol
        if kind in ("block", "switch_section", "compilation_unit"):
            for statement in scope.named_children:
                symbol = self._declared_by_statement(statement, name)
                if symbol is not None:
                    return symbol
            return None
        if kind in VARIABLE_SCOPES:
            for child in scope.named_children:
                if child.type == "variable_declaration":
                    symbol = self._find_declarator(child, name, SymbolKind.LOCAL)
                    if symbol is not None:
                        return symbol
            return None
        if kind == "foreach_statement":
            left = scope.child_by_field_name("left")
            if left is not None and left.type == "identifier" and self.text_of(left) == name:
                return self._symbol(left, SymbolKind.LOCAL, scope.child_by_field_name("type"))
            return None
        if kind == "catch_clause":
            for child in scope.named_children:
                if child.type == "catch_declaration":
                    declared = child.child_by_field_name("name")
                    if declared is not None and self.text_of(declared) == name:
                        return self._symbol(declared, SymbolKind.LOCAL, child.child_by_field_name("type"))
            return None
        if kind == "lambda_expression":
            return self._lambda_symbol(scope, name)
        if kind in PARAMETERIZED:
            for child in scope.named_children:
                if child.type in PARAMETER_LISTS:
                    symbol = self._find_parameter(child, name)
                    if symbol is not None:
                        return symbol
            return None
        if kind == "accessor_declaration":
            return self._accessor_value(scope, name)
        if kind in TYPE_DECLARATIONS:
            return self._find_member(scope, name)
        return None

    @staticmethod
    def _is_embedded_statement(node: TSNode) -> bool:
        """A statement that is the body of an if/while/... rather than an entry of a block."""
        return (
            node.type.endswith("_statement")
            and node.parent is not None
            and node.parent.type not in STATEMENT_CONTAINERS
        )

    def _lambda_symbol(self, scope: TSNode, name: str) -> Optional[Symbol]:
        parameters = scope.child_by_field_name("parameters")
        if parameters is None:
            parameters = next(
                (c for c in scope.named_children if c.type in ("parameter_list", "implicit_parameter", "identifier")),
                None,
            )
        if parameters is not None:
            if parameters.type in ("identifier", "implicit_parameter"):
                if self.text_of(parameters) == name:
                    return self._symbol(parameters, SymbolKind.PARAMETER, None)
            else:
                symbol = self._find_parameter(parameters, name)
                if symbol is not None:
                    return symbol
        body = scope.child_by_field_name("body")
        if body is not None and body.type != "block":
            return self._expression_variable(body, name)
        return None

    def _declared_by_statement(self, statement: TSNode, name: str) -> Optional[Symbol]:
        if statement.type == "global_statement":
            inner = statement.named_children
            return self._declared_by_statement(inner[0], name) if inner else None
        if statement.type == "local_declaration_statement":
            for child in statement.named_children:
                if child.type == "variable_declaration":
                    symbol = self._find_declarator(child, name, SymbolKind.LOCAL)
                    if symbol is not None:
                        return symbol
        if statement.type == "local_function_statement":
            declared = statement.child_by_field_name("name")
            if declared is not None and self.text_of(declared) == name:
                return self._symbol(declared, SymbolKind.LOCAL_FUNCTION, None)
            return None
        if statement.type in STATEMENT_SCOPES:
            return None
        # Pattern and out variables in an if condition or expression statement
        # stay in scope for the rest of the block.
        return self._expression_variable(statement, name)

    def _expression_variable(self, root: TSNode, name: str) -> Optional[Symbol]:
        """
        Find a pattern (`o is Action a`, `var a`) or out variable (`out Action a`)
        named name declared in root, not looking into nested statements, blocks,
        lambdas or local functions.
        """
        stack = [root]
        while stack:
            node = stack.pop()
            if node is not root and (node.type.endswith("_statement") or node.type in EXPRESSION_VARIABLE_BOUNDARIES):
                continue
            if node.type in EXPRESSION_VARIABLE_DECLARATIONS:
                for declared in self._designated_names(node):
                    if self.text_of(declared) == name:
                        return self._symbol(declared, SymbolKind.LOCAL, node.child_by_field_name("type"))
            stack.extend(reversed(node.named_children))
        return None

    @staticmethod
    def _designated_names(declaration: TSNode) -> Iterator[TSNode]:
        designation = declaration.child_by_field_name("name") or declaration.child_by_field_name("designation")
        if designation is None and declaration.named_children:
            designation = declaration.named_children[-1]
        pending = [designation] if designation is not None else []
        while pending:
            node = pending.pop()
            if node.type == "identifier":
                yield node
            elif node.type == "single_variable_designation":
                yield next((c for c in node.named_children if c.type == "identifier"), node)
            elif node.type == "parenthesized_variable_designation":
                pending.extend(reversed(node.named_children))

    def _find_member(self, declaration: TSNode, name: str) -> Optional[Symbol]:
        # Primary constructor parameters: class C(Action onDone) { ... }
        for child in declaration.named_children:
            if child.type == "parameter_list":
                symbol = self._find_parameter(child, name)
                if symbol is not None:
                    return symbol

        body = declaration.child_by_field_name("body")
        if body is None:
            body = next((c for c in declaration.named_children if c.type == "declaration_list"), None)
        if body is None:
            return None

        for member in body.named_children:
            kind = member.type
            if kind in ("field_declaration", "event_field_declaration"):
                symbol_kind = SymbolKind.FIELD if kind == "field_declaration" else SymbolKind.EVENT
                for child in member.named_children:
                    if child.type == "variable_declaration":
                        symbol = self._find_declarator(child, name, symbol_kind)
                        if symbol is not None:
                            return symbol
            elif kind in ("property_declaration", "event_declaration"):
                declared = member.child_by_field_name("name")
                if declared is not None and self.text_of(declared) == name:
                    symbol_kind = SymbolKind.PROPERTY if kind == "property_declaration" else SymbolKind.EVENT
                    return self._symbol(declared, symbol_kind, member.child_by_field_name("type"))
            elif kind == "method_declaration" or kind in NESTED_TYPE_DECLARATIONS:
                declared = member.child_by_field_name("name")
                if declared is not None and self.text_of(declared) == name:
                    symbol_kind = SymbolKind.METHOD if kind == "method_declaration" else SymbolKind.TYPE
                    return self._symbol(declared, symbol_kind, None)
        return None

    def _accessor_value(self, accessor: TSNode, name: str) -> Optional[Symbol]:
        if name != "value":
            return None
        keyword = accessor.child_by_field_name("name")
        if keyword is None:
            keyword = next((c for c in accessor.children if c.type in VALUE_ACCESSORS), None)
        if keyword is None or self.text_of(keyword) not in VALUE_ACCESSORS:
            return None
        owner = accessor.parent.parent if accessor.parent is not None else None
        if owner is None:
            return None
        return self._declare(name, SymbolKind.PARAMETER, accessor.start_byte, owner.child_by_field_name("type"))

    def _find_parameter(self, parameters: TSNode, name: str) -> Optional[Symbol]:
        for parameter in parameters.named_children:
            if parameter.type not in ("parameter", "parameter_array"):
                continue
            declared = parameter.child_by_field_name("name")
            if declared is None:
                identifiers = [c for c in parameter.named_children if c.type == "identifier"]
                declared = identifiers[-1] if identifiers else None
            if declared is not None and self.text_of(declared) == name:
                return self._symbol(declared, SymbolKind.PARAMETER, parameter.child_by_field_name("type"))
        return None

    def _find_declarator(self, declaration: TSNode, name: str, kind: SymbolKind) -> Optional[Symbol]:
        type_node = declaration.child_by_field_name("type")
        for declared in self._declarator_names(declaration):
            if self.text_of(declared) == name:
                return self._symbol(declared, kind, type_node)
        return None

    @staticmethod
    def _declarator_names(declaration: TSNode) -> Iterator[TSNode]:
        for declarator in declaration.named_children:
            if declarator.type != "variable_declarator":
                continue
            declared = declarator.child_by_field_name("name")
            if declared is None:
                declared = next((c for c in declarator.named_children if c.type == "identifier"), None)
            if declared is not None:
                yield declared

    def _symbol(self, declared: TSNode, kind: SymbolKind, type_node: Optional[TSNode]) -> Symbol:
        return self._declare(self.text_of(declared), kind, declared.start_byte, type_node)

    def _declare(self, name: str, kind: SymbolKind, declared_at: int, type_node: Optional[TSNode]) -> Symbol:
        symbol = Symbol(
            name=name,
            kind=kind,
            declared_at=declared_at,
            type_name=self.text_of(type_node) if type_node is not None else None,
        )
        if type_node is not None:
            self._declared_types.setdefault(symbol, type_name_from_node(type_node, self.source))
        return symbol
