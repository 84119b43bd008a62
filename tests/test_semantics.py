"""Tests for the glue types in invokelint.analysis.semantics."""

import pytest

from invokelint.analysis.semantics import (
    CancellationToken,
    OperationCanceledError,
    Symbol,
    SymbolKind,
)


def test_token_not_cancelled_by_default():
    token = CancellationToken.none()
    assert not token.is_cancellation_requested
    token.raise_if_cancellation_requested()


def test_cancel_raises():
    token = CancellationToken()
    token.cancel()
    assert token.is_cancellation_requested
    with pytest.raises(OperationCanceledError):
        token.raise_if_cancellation_requested()


def test_expired_deadline_counts_as_cancelled():
    token = CancellationToken.with_timeout(0)
    assert token.is_cancellation_requested


def test_long_deadline_not_cancelled():
    assert not CancellationToken.with_timeout(3600).is_cancellation_requested


def test_symbol_identity_ignores_type_text():
    a = Symbol("a", SymbolKind.PARAMETER, 10, type_name="Action")
    b = Symbol("a", SymbolKind.PARAMETER, 10, type_name="System.Action")
    assert a == b
    assert hash(a) == hash(b)


def test_symbols_declared_elsewhere_differ():
    assert Symbol("a", SymbolKind.FIELD, 10) != Symbol("a", SymbolKind.FIELD, 40)
    assert Symbol("a", SymbolKind.FIELD, 10) != Symbol("a", SymbolKind.PARAMETER, 10)
