"""JSON-RPC adapter for the ledger full node.

Read path: ``suix_getOwnedObjects`` pages through every object owned by an
address and keeps only those whose struct tag matches the configured deed
type. Write path: ``sui_executeTransactionBlock`` submits signed transaction
bytes and turns the effects block into an :class:`OperationReceipt`.

Transaction submission is sent exactly once. A timeout there does not prove
the transaction was dropped, so resending is left to the user.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from deedsync.domain.entities import OperationReceipt, SignedOperation, matches_asset_type
from deedsync.domain.ports import Address, LedgerPort

from .api_errors import (
    ApiClientError,
    ApiError,
    ApiExecutionError,
    ApiRpcError,
    ApiServerError,
    build_error_message,
    extract_error_code,
    extract_error_hint,
    parse_error_payload,
)
from .http_client import HttpConfig, RetryingSession

DEFAULT_RPC_URL = "https://fullnode.testnet.sui.io:443"


class LedgerRpcAdapter(LedgerPort):
    """Stateless RPC wrapper exposing owned-object queries and submission."""

    def __init__(
        self,
        rpc_url: str,
        *,
        asset_type: str,
        api_key: Optional[str] = None,
        request_timeout_s: int = 10,
        retries: int = 2,
        page_size: int = 50,
    ) -> None:
        if not rpc_url or not rpc_url.strip():
            raise ValueError("LedgerRpcAdapter requires an RPC URL")
        self.rpc_url = rpc_url.strip()
        self.asset_type = asset_type
        self.page_size = max(1, int(page_size))
        self.cfg = HttpConfig(request_timeout_s=request_timeout_s, retries=retries)
        self.session = RetryingSession(api_key, self.cfg)
        self._ids = itertools.count(1)
        self._log = logging.getLogger(__name__)

    def query_owned_assets(self, address: Address) -> List[Dict[str, Any]]:
        """Return every deed object owned by ``address``, across all pages.

        Args:
            address: Owner account address.

        Returns:
            Normalized records ``{"objectId", "typeTag", "fields", "owner"}``
            whose ``typeTag`` matches the configured deed type; an empty list
            when the address owns no deeds.

        Raises:
            ValueError: ``address`` is blank.
            ApiTimeoutError: The node could not be reached after retries.
            ApiClientError / ApiServerError: Non-2xx HTTP status.
            ApiRpcError: The node answered with a JSON-RPC error object.
            ApiError: The response body is not the expected JSON shape.

        Call Chain:
            ``AssetRegistryView.refresh`` -> ``query_owned_assets`` ->
            ``suix_getOwnedObjects`` until ``hasNextPage`` is false.
        """
        owner = str(address or "").strip()
        if not owner:
            raise ValueError("query_owned_assets requires an owner address")

        records: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        while True:
            page = self._call(
                "suix_getOwnedObjects",
                [
                    owner,
                    {"options": {"showType": True, "showContent": True, "showOwner": True}},
                    cursor,
                    self.page_size,
                ],
                ctx=f"owned_objects[{owner}]",
            )
            if not isinstance(page, Mapping):
                raise ApiError(f"owned_objects[{owner}]: expected object result")
            for entry in page.get("data") or []:
                record = self._normalize_object(entry)
                if record is None:
                    continue
                if not matches_asset_type(record["typeTag"], self.asset_type):
                    continue
                records.append(record)
            next_cursor = page.get("nextCursor")
            if not page.get("hasNextPage") or not next_cursor or next_cursor == cursor:
                break
            cursor = next_cursor

        self._log.debug("Fetched %d deed objects for %s", len(records), owner)
        return records

    def submit_operation(self, signed: SignedOperation) -> OperationReceipt:
        """Execute a signed transaction once and wait for local execution.

        Raises:
            ApiExecutionError: Effects report a status other than ``success``.
            ApiTimeoutError: No response; the transaction may still execute.
        """
        result = self._call(
            "sui_executeTransactionBlock",
            [
                signed.tx_bytes,
                list(signed.signatures),
                {"showEffects": True},
                "WaitForLocalExecution",
            ],
            ctx="execute_transaction",
            retries=0,
        )
        if not isinstance(result, Mapping):
            raise ApiError("execute_transaction: expected object result")
        receipt = OperationReceipt.from_payload(result)
        if receipt.status != "success":
            effects = result.get("effects") or {}
            status = effects.get("status") if isinstance(effects, Mapping) else None
            reason = ""
            if isinstance(status, Mapping):
                reason = str(status.get("error") or "").strip()
            raise ApiExecutionError(
                f"Transaction {receipt.digest} failed: {reason or 'execution aborted'}",
                digest=receipt.digest,
                payload=result,
                context="execute_transaction",
            )
        self._log.info("Transaction %s executed", receipt.digest)
        return receipt

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _call(
        self,
        method: str,
        params: List[Any],
        *,
        ctx: str,
        retries: Optional[int] = None,
    ) -> Any:
        body = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        resp = self.session.post(self.rpc_url, json_body=body, retries=retries)
        self._ensure_ok(resp, ctx)
        payload = self._json_any(resp, ctx)
        if not isinstance(payload, Mapping):
            raise ApiError(f"{ctx}: expected JSON-RPC envelope", payload=payload, context=ctx)
        error = payload.get("error")
        if error:
            message = f"{ctx}: {error.get('message') if isinstance(error, Mapping) else error}"
            raise ApiRpcError(
                message,
                code=extract_error_code(error) if isinstance(error, Mapping) else None,
                payload=error,
                context=ctx,
            )
        return payload.get("result")

    @staticmethod
    def _normalize_object(entry: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(entry, Mapping):
            return None
        data = entry.get("data")
        if not isinstance(data, Mapping):
            return None
        object_id = str(data.get("objectId") or "").strip()
        if not object_id:
            return None
        content = data.get("content") if isinstance(data.get("content"), Mapping) else {}
        type_tag = str(content.get("type") or data.get("type") or "")
        fields = content.get("fields") if isinstance(content.get("fields"), Mapping) else {}
        owner = data.get("owner")
        if isinstance(owner, Mapping):
            owner = owner.get("AddressOwner") or owner.get("ObjectOwner")
        return {
            "objectId": object_id,
            "typeTag": type_tag,
            "fields": dict(fields),
            "owner": str(owner or ""),
        }

    @staticmethod
    def _ensure_ok(resp: requests.Response, ctx: str) -> None:
        if 200 <= resp.status_code < 300:
            return
        status = resp.status_code
        payload = parse_error_payload(resp)
        message = build_error_message(ctx, status, payload)
        code = extract_error_code(payload)
        hint = extract_error_hint(payload)
        if 400 <= status < 500:
            raise ApiClientError(
                message,
                status=status,
                code=code,
                hint=hint,
                payload=payload,
                context=ctx,
            )
        if 500 <= status < 600:
            raise ApiServerError(
                message,
                status=status,
                payload=payload,
                context=ctx,
            )
        raise ApiError(message, status=status, payload=payload, context=ctx)

    @staticmethod
    def _json_any(resp: requests.Response, ctx: str) -> Any:
        try:
            return resp.json()
        except ValueError:
            snippet = (getattr(resp, "text", "") or "")[:400]
            raise ApiError(f"{ctx}: invalid JSON response: {snippet}", context=ctx)


__all__ = ["DEFAULT_RPC_URL", "LedgerRpcAdapter"]
