"""Translate adapter and signer errors into user-facing UseCaseError instances."""

from __future__ import annotations

from deedsync.adapters.api_errors import (
    ApiClientError,
    ApiError,
    ApiExecutionError,
    ApiRpcError,
    ApiServerError,
    ApiTimeoutError,
    extract_error_hint,
)
from deedsync.domain.errors import LedgerRejection, NetworkError
from deedsync.domain.ports import UseCaseError

# Request timeout and rate limiting; outcome unknown.
_TRANSIENT_CLIENT_STATUSES = frozenset({408, 429})


def map_ledger_error(exc: Exception) -> UseCaseError:
    """Map adapter exceptions onto the ledger error taxonomy.

    Domain errors pass through untouched. Anything that does not prove the
    ledger refused the call is a ``NetworkError``, since the write may still
    have been applied.

    Args:
        exc: Exception raised by a ledger adapter, wallet session, or signer.

    Returns:
        UseCaseError: ``LedgerRejection`` or ``NetworkError`` for adapter
        failures, ``exc`` itself when it already is a ``UseCaseError``.
    """
    if isinstance(exc, UseCaseError):
        return exc
    if isinstance(exc, ApiTimeoutError):
        return NetworkError("Request timed out. Check connection.", cause=exc)
    if isinstance(exc, ApiExecutionError):
        return LedgerRejection(str(exc), cause=exc)
    if isinstance(exc, ApiRpcError):
        return LedgerRejection(str(exc), cause=exc)
    if isinstance(exc, ApiClientError) and exc.status in _TRANSIENT_CLIENT_STATUSES:
        label = f"Ledger node busy or timed out (HTTP {exc.status})"
        return NetworkError(_compose_error_message(label, exc.hint), cause=exc)
    if isinstance(exc, ApiClientError):
        status = exc.status or 0
        hint = exc.hint or extract_error_hint(getattr(exc, "payload", None))
        label = f"Ledger refused the request (HTTP {status})"
        return LedgerRejection(_compose_error_message(label, hint), cause=exc)
    if isinstance(exc, ApiServerError):
        return NetworkError("Ledger node error, try again.", cause=exc)
    if isinstance(exc, ApiError):
        return NetworkError(str(exc), cause=exc)

    message = str(exc) or exc.__class__.__name__
    return NetworkError(message, cause=exc)


def _compose_error_message(base: str, hint: str | None) -> str:
    hint_text = (hint or "").strip()
    if hint_text:
        return f"{base}: {hint_text}"
    if base.endswith("."):
        return base
    return f"{base}."


__all__ = ["map_ledger_error"]
