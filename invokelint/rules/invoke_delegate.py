# Unguarded delegate invocation: `handler(args)` where `handler?.Invoke(args)` is safe.

from __future__ import annotations

from tree_sitter import Node as TSNode

from invokelint.analysis.classifier import classify
from invokelint.analysis.guards import has_preceding_guard
from invokelint.analysis.semantics import CancellationToken, SemanticModel
from invokelint.context import FileContext, get_end_line_col, get_line_col, get_source_span
from invokelint.findings.models import DiagnosticDescriptor, Location, help_link_for
from invokelint.rules.base import ReportFn, SyntaxNodeRule

RULE_ID = "CC0031"

DESCRIPTOR = DiagnosticDescriptor(
    id=RULE_ID,
    title="Use Invoke Method To call on delegate",
    message_format="Use ?.Invoke operator and method to call on '{0}' delegate.",
    category="Design",
    default_severity="warning",
    enabled_by_default=True,
    description=(
        "In C#6 a delegate can be invoked using the null-propagating operator (?.) and its"
        " Invoke method to avoid throwing a NullReferenceException when there is no method"
        " attached to the delegate."
    ),
    help_link=help_link_for(RULE_ID),
)


class UseInvokeMethodToFireEventRule(SyntaxNodeRule):
    """
    Flags `handler(args)` on a field, property, event or parameter of delegate
    type when the enclosing method has no earlier `if (handler == null)`
    guard that returns or throws. Locals and delegates returning a non-void
    value type are never flagged.
    """

    id = RULE_ID
    name = "Use ?.Invoke to call a delegate"
    min_language_version = 6
    descriptor = DESCRIPTOR
    node_kinds = frozenset({"invocation_expression"})

    def analyze_node(
        self,
        node: TSNode,
        context: FileContext,
        model: SemanticModel,
        cancellation: CancellationToken,
        report: ReportFn,
    ) -> None:
        site = classify(node, model, cancellation)
        if site is None:
            return
        if has_preceding_guard(site, model, cancellation):
            return

        line, col = get_line_col(node)
        end_line, end_col = get_end_line_col(node)
        location = Location(
            path=context.path,
            line=line,
            column=col,
            end_line=end_line,
            end_column=end_col,
            snippet=get_source_span(context, node),
        )
        report(self.descriptor.create_finding(location, site.name))
