"""
Guard scanner: looks for an `if (x == null) return/throw` that precedes a
delegate invocation in the same method.

Only the direct statements of the method body are inspected and only their
textual position is compared with the invocation. Nested branches, lambdas,
local functions, `!=` guards with positive bodies and pattern-based checks
are not recognized.
"""

from __future__ import annotations

from typing import Any, Optional

from invokelint.analysis.semantics import (
    CancellationToken,
    CandidateSite,
    SemanticModel,
)

EXIT_STATEMENTS = frozenset({"return_statement", "throw_statement"})


def has_preceding_guard(
    site: CandidateSite,
    model: SemanticModel,
    cancellation: Optional[CancellationToken] = None,
) -> bool:
    """True if an earlier top-level `if` in the enclosing method null-checks the delegate and exits."""
    method = model.enclosing_method_of(site.invocation)
    if method is None:
        return False

    for statement in model.child_statements_of(method):
        if statement.type != "if_statement":
            continue
        if statement.start_byte >= site.start_byte:
            return False
        compared = null_compared_identifier(statement.child_by_field_name("condition"))
        if compared is None:
            continue
        if site.symbol != model.symbol_of(compared, cancellation):
            continue
        if exits_on_null(statement.child_by_field_name("consequence")):
            return True
    return False


def null_compared_identifier(condition: Any) -> Any | None:
    """
    For `x == null` or `null == x` return the node of x, otherwise None.
    """
    if condition is None or condition.type != "binary_expression":
        return None
    operator = condition.child_by_field_name("operator")
    if operator is None or operator.type != "==":
        return None
    left = condition.child_by_field_name("left")
    right = condition.child_by_field_name("right")
    if left is None or right is None:
        return None
    if right.type == "null_literal" and left.type == "identifier":
        return left
    if left.type == "null_literal" and right.type == "identifier":
        return right
    return None


def exits_on_null(body: Any) -> bool:
    """True if body is a return/throw, or a block directly containing one."""
    if body is None:
        return False
    if body.type == "block":
        return any(child.type in EXIT_STATEMENTS for child in body.named_children)
    return body.type in EXIT_STATEMENTS

