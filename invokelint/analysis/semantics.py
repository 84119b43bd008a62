"""
Host capability interface consumed by the delegate-invocation analysis.

The classifier and guard scanner never parse text or resolve names
themselves. They walk syntax nodes that follow the tree-sitter node protocol
(``type``, ``start_byte``, ``end_byte``, ``parent``, ``named_children``,
``child_by_field_name``) and ask a SemanticModel for everything else.

Node kinds are the tree-sitter C# grammar names, e.g. ``invocation_expression``,
``identifier``, ``if_statement``, ``binary_expression``, ``null_literal``.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence


class OperationCanceledError(Exception):
    """Raised by a semantic query when its cancellation token was signalled."""


class CancellationToken:
    """
    Cooperative cancellation signal checked by semantic queries.

    A token is cancelled explicitly with cancel() or implicitly once its
    deadline (time.monotonic() based) has passed.
    """

    def __init__(self, deadline: Optional[float] = None) -> None:
        self._deadline = deadline
        self._cancelled = False

    @classmethod
    def none(cls) -> "CancellationToken":
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancellationToken":
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancellation_requested(self) -> bool:
        if self._cancelled:
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancellation_requested(self) -> None:
        if self.is_cancellation_requested:
            raise OperationCanceledError("analysis was cancelled")


class SymbolKind(str, Enum):
    FIELD = "field"
    PROPERTY = "property"
    EVENT = "event"
    PARAMETER = "parameter"
    LOCAL = "local"
    METHOD = "method"
    LOCAL_FUNCTION = "local_function"
    TYPE = "type"


@dataclass(frozen=True)
class Symbol:
    """
    A declared name. Two symbols are the same symbol when name, kind and
    declaration position match; the declared type text is informational.
    """

    name: str
    kind: SymbolKind
    declared_at: int
    type_name: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class DelegateSignature:
    """The Invoke method of a delegate type."""

    return_type: str
    returns_void: bool
    returns_reference_type: bool


@dataclass(frozen=True)
class TypeInfo:
    converted_type: Optional[str]
    is_multicast_delegate: bool = False
    invoke_method: Optional[DelegateSignature] = None


@dataclass(frozen=True)
class CandidateSite:
    """An invocation provisionally eligible for a diagnostic."""

    invocation: Any
    identifier: Any
    symbol: Symbol
    name: str
    start_byte: int
    end_byte: int


class SemanticModel(ABC):
    """
    Type/symbol resolution and tree navigation supplied by the host.

    Implementations must be safe to query from several threads for
    different nodes; the analysis keeps no state of its own between calls.
    """

    @abstractmethod
    def type_of(
        self, expression: Any, cancellation: Optional[CancellationToken] = None
    ) -> Optional[TypeInfo]:
        """Return the converted type of expression, or None if unresolved."""
        ...

    @abstractmethod
    def symbol_of(
        self, expression: Any, cancellation: Optional[CancellationToken] = None
    ) -> Optional[Symbol]:
        """Return the symbol expression binds to, or None if unresolved."""
        ...

    @abstractmethod
    def enclosing_method_of(self, node: Any) -> Optional[Any]:
        """Return the nearest method_declaration ancestor of node, or None."""
        ...

    @abstractmethod
    def child_statements_of(self, node: Any) -> Sequence[Any]:
        """Return the direct statements of a method body (empty if it has none)."""
        ...

    @abstractmethod
    def is_generated(self, node: Any) -> bool:
        """True if node sits in generated (non-authored) code."""
        ...

    @abstractmethod
    def text_of(self, node: Any) -> str:
        ...
