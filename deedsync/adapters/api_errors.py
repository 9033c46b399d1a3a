"""Typed failures raised by the ledger RPC adapter.

HTTP status problems, JSON-RPC ``error`` envelopes and failed execution
effects each get their own class; ``deedsync.usecases.error_mapping`` turns
them into domain errors.
"""

from __future__ import annotations

from typing import Any, Optional

_MESSAGE_KEYS = ("message", "detail", "error", "title")
_HINT_KEYS = ("hint", "data", "details", "errors")


class ApiError(RuntimeError):
    """Base class for ledger RPC adapter failures."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.hint = hint
        self.payload = payload
        self.context = context


class ApiClientError(ApiError):
    """HTTP 4xx from the ledger node."""


class ApiServerError(ApiError):
    """HTTP 5xx from the ledger node."""


class ApiTimeoutError(ApiError):
    """Transport level timeout or connectivity failure."""


class ApiRpcError(ApiError):
    """JSON-RPC ``error`` object returned with HTTP 200."""


class ApiExecutionError(ApiError):
    """Transaction executed but its effects report ``failure``."""

    def __init__(self, message: str, *, digest: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.digest = digest


def parse_error_payload(resp: Any) -> Any:
    """Body of an error response as JSON, or a text snippet, never raising."""
    try:
        return resp.json()
    except ValueError:
        snippet = (getattr(resp, "text", "") or "").strip()
        return snippet[:400] or None


def build_error_message(ctx: str, status: int, payload: Any) -> str:
    detail = first_message(payload)
    return f"{ctx}: {detail} (HTTP {status})" if detail else f"{ctx}: HTTP {status}"


def extract_error_code(payload: Any) -> Optional[str]:
    """``code`` of a JSON-RPC error object, also when nested under ``error``.

    Numeric codes such as ``-32602`` come back as strings.
    """
    if not isinstance(payload, dict):
        return None
    for key in ("code", "error"):
        value = payload.get(key)
        if isinstance(value, dict):
            nested = extract_error_code(value)
            if nested:
                return nested
        elif isinstance(value, (str, int)) and not isinstance(value, bool):
            return str(value)
    return None


def extract_error_hint(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        for key in _HINT_KEYS:
            text = summarize(payload.get(key))
            if text:
                return text
        return None
    if isinstance(payload, (list, str)):
        return summarize(payload)
    return None


def first_message(payload: Any) -> Optional[str]:
    """First non-empty message string found in an error payload."""
    if isinstance(payload, str):
        return payload.strip() or None
    if isinstance(payload, dict):
        candidates = [payload.get(key) for key in _MESSAGE_KEYS]
    elif isinstance(payload, list):
        candidates = list(payload)
    else:
        return None
    for candidate in candidates:
        text = first_message(candidate)
        if text:
            return text
    return None


def summarize(data: Any, *, limit: int = 200) -> Optional[str]:
    """Short single-line rendering of an arbitrary payload fragment."""
    if data is None:
        return None
    if isinstance(data, list):
        parts = [text for text in (summarize(item, limit=limit) for item in data[:3]) if text]
        text = "; ".join(parts)
    elif isinstance(data, dict):
        pairs = []
        for key, value in list(data.items())[:4]:
            value_text = summarize(value, limit=limit)
            if value_text:
                pairs.append(f"{key}={value_text}")
        text = ", ".join(pairs)
    else:
        text = str(data).strip()
    return text[:limit] or None


__all__ = [
    "ApiClientError",
    "ApiError",
    "ApiExecutionError",
    "ApiRpcError",
    "ApiServerError",
    "ApiTimeoutError",
    "build_error_message",
    "extract_error_code",
    "extract_error_hint",
    "first_message",
    "parse_error_payload",
    "summarize",
]
