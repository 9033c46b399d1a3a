"""Pooled ``requests`` transport for JSON-RPC POSTs.

Used only by ``deedsync/adapters/ledger_rpc.py``. Connection failures and
timeouts are retried here; HTTP status and RPC error handling stay with the
adapter.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from requests import exceptions as req_exc

from deedsync.adapters.api_errors import ApiTimeoutError


@dataclass
class HttpConfig:
    """Per-call timeout in seconds and retry count after the first attempt."""

    request_timeout_s: int = 10
    retries: int = 2


class RetryingSession:
    """One ``requests.Session`` per ledger node, optionally sending ``X-API-Key``."""

    def __init__(self, api_key: Optional[str], cfg: HttpConfig) -> None:
        self.session = requests.Session()
        self.api_key = api_key
        self.cfg = cfg

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    def post(
        self,
        url: str,
        *,
        json_body: Dict[str, Any],
        timeout: Optional[int] = None,
        retries: Optional[int] = None,
    ) -> requests.Response:
        """POST ``json_body`` and return the first response that arrives.

        Args:
            url: Absolute JSON-RPC endpoint URL.
            json_body: JSON-RPC envelope, serialized with ``json.dumps``.
            timeout: Per-attempt timeout override in seconds.
            retries: Retry override; ``0`` sends exactly once, as transaction
                submission requires.

        Returns:
            The ``requests.Response`` of the first attempt that got one,
            whatever its HTTP status.

        Raises:
            ApiTimeoutError: Every attempt timed out or failed to connect.
        """
        data = json.dumps(json_body)
        attempts = (self.cfg.retries if retries is None else max(0, retries)) + 1
        failure: Optional[Exception] = None
        for _ in range(attempts):
            try:
                return self.session.post(
                    url,
                    data=data,
                    headers=self._headers(),
                    timeout=timeout or self.cfg.request_timeout_s,
                )
            except (req_exc.Timeout, req_exc.ConnectionError) as exc:
                failure = exc
        raise ApiTimeoutError(
            f"Timeout contacting {url} after {attempts} attempt(s): {failure}",
            context=f"POST {url}",
        )


__all__ = ["HttpConfig", "RetryingSession"]
