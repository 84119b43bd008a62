# Site classifier: decides whether an invocation calls a delegate the rule applies to.

from __future__ import annotations

import logging
from typing import Any, Optional

from invokelint.analysis.semantics import (
    CancellationToken,
    CandidateSite,
    SemanticModel,
    SymbolKind,
)

logger = logging.getLogger(__name__)


def invoked_identifier(invocation: Any) -> Any | None:
    """Return the identifier node of a `name(args)` invocation, or None for any other shape."""
    if invocation is None or invocation.type != "invocation_expression":
        return None
    function = invocation.child_by_field_name("function")
    if function is None or function.type != "identifier":
        return None
    return function


def classify(
    invocation: Any,
    model: SemanticModel,
    cancellation: Optional[CancellationToken] = None,
) -> Optional[CandidateSite]:
    """
    Return a CandidateSite for a delegate invocation the rule applies to, else None.

    Rules are checked in order and the first failing one disqualifies the site:
    generated code, non-identifier callee, non-delegate type, local variable,
    and an Invoke method returning a non-void value type. OperationCanceledError
    raised by the model is not caught.
    """
    if model.is_generated(invocation):
        return None

    identifier = invoked_identifier(invocation)
    if identifier is None:
        return None

    type_info = model.type_of(identifier, cancellation)
    if type_info is None or type_info.converted_type is None:
        return None
    if not type_info.is_multicast_delegate:
        return None

    name = model.text_of(identifier)
    symbol = model.symbol_of(identifier, cancellation)
    if symbol is None:
        logger.debug("Skipping '%s': symbol not resolved", name)
        return None
    if symbol.kind is SymbolKind.LOCAL:
        logger.debug("Skipping '%s': local variable", name)
        return None

    invoke = type_info.invoke_method
    if invoke is None:
        return None
    if not invoke.returns_void and not invoke.returns_reference_type:
        logger.debug("Skipping '%s': Invoke returns value type %s", name, invoke.return_type)
        return None

    return CandidateSite(
        invocation=invocation,
        identifier=identifier,
        symbol=symbol,
        name=name,
        start_byte=invocation.start_byte,
        end_byte=invocation.end_byte,
    )
