# Rule interface: Rule is the contract the CLI runs per file; SyntaxNodeRule
# registers for node kinds and is called back once per matching node.

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, FrozenSet, Iterator

from tree_sitter import Node as TSNode

from invokelint.analysis.semantics import CancellationToken, SemanticModel
from invokelint.context import FileContext
from invokelint.csharp.semantic_model import TreeSitterSemanticModel
from invokelint.findings.models import DiagnosticDescriptor, Finding

logger = logging.getLogger(__name__)

ReportFn = Callable[[Finding], None]


class Rule(ABC):
    """
    Abstract base class for all analysis rules.

    Subclasses must define:
    - id: str: unique rule identifier (e.g. "CC0031")
    - name: str: human-readable rule name
    - run(context, config) -> list[Finding]: analyze one file and return findings

    min_language_version is the lowest C# version the rule's suggestion
    compiles under; the config drops rules above the configured version.
    """

    id: str
    name: str
    min_language_version: ClassVar[int] = 1

    @abstractmethod
    def run(self, context: FileContext, config: Any) -> list[Finding]:
        """
        Analyze one file and return any findings.

        Args:
            context: Per-file state (path, source bytes, AST tree).
            config: Config, or None for defaults.

        Returns:
            List of Finding objects; empty if no issues.
        """
        ...


def _walk(node: TSNode) -> Iterator[TSNode]:
    """Yield node and its descendants in document order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


class SyntaxNodeRule(Rule):
    """
    A rule driven by syntax node callbacks.

    run() builds the file's semantic model and cancellation token, then calls
    analyze_node() once for every node whose type is in node_kinds. Findings
    passed to report() get the configured severity and are collected.
    OperationCanceledError is not caught here; the caller decides what a
    cancelled file means.
    """

    descriptor: ClassVar[DiagnosticDescriptor]
    node_kinds: ClassVar[FrozenSet[str]] = frozenset()

    def run(self, context: FileContext, config: Any) -> list[Finding]:
        analyze_generated = bool(getattr(config, "analyze_generated_code", False))
        timeout = getattr(config, "timeout", None)
        cancellation = CancellationToken.with_timeout(timeout) if timeout else CancellationToken.none()
        model = TreeSitterSemanticModel(context, analyze_generated_code=analyze_generated)

        severity = self.severity(config)
        findings: list[Finding] = []

        def report(finding: Finding) -> None:
            if finding.severity != severity:
                finding = finding.model_copy(update={"severity": severity})
            findings.append(finding)

        for node in _walk(context.root_node):
            if node.type not in self.node_kinds:
                continue
            cancellation.raise_if_cancellation_requested()
            self.analyze_node(node, context, model, cancellation, report)
        logger.debug("Rule %s: %d finding(s) in %s", self.id, len(findings), context.path)
        return findings

    def severity(self, config: Any) -> str:
        severity_for = getattr(config, "severity_for", None)
        if severity_for is None:
            return self.descriptor.default_severity
        return severity_for(self.id, self.descriptor.default_severity)

    @abstractmethod
    def analyze_node(
        self,
        node: TSNode,
        context: FileContext,
        model: SemanticModel,
        cancellation: CancellationToken,
        report: ReportFn,
    ) -> None:
        """Inspect one matching node and report zero or more findings."""
        ...
