from __future__ import annotations

import base64
import json
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import uuid4

from deedsync.domain.cancellation import CancelToken
from deedsync.domain.entities import (
    DeedModule,
    MoveCall,
    OperationReceipt,
    SignedOperation,
    matches_asset_type,
)
from deedsync.domain.ports import Address, LedgerPort, ObjectId

from .api_errors import ApiExecutionError, ApiRpcError


def _new_object_id() -> ObjectId:
    return "0x" + uuid4().hex + uuid4().hex


@dataclass
class LedgerMock(LedgerPort):
    """Offline substitute for ``LedgerRpcAdapter`` running the deed contract in memory.

    ``sign`` encodes a call plus its sender into opaque bytes, ``submit_operation``
    decodes and executes them, so the signed-submit path matches the real node.
    """

    deed_module: DeedModule
    objects: Dict[ObjectId, Dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._failures: List[tuple] = []
        self.query_calls: List[Address] = []
        self.submitted: List[Dict[str, Any]] = []

    # ---------- LedgerPort ----------

    def query_owned_assets(self, address: Address) -> List[Dict[str, Any]]:
        with self._lock:
            self.query_calls.append(address)
            failure = self._pop_failure("query")
            if failure is not None:
                raise failure[1]
            return [
                {
                    "objectId": obj["objectId"],
                    "typeTag": obj["typeTag"],
                    "fields": dict(obj["fields"]),
                    "owner": obj["owner"],
                }
                for obj in self.objects.values()
                if obj["owner"] == address
                and matches_asset_type(obj["typeTag"], self.deed_module.asset_type)
            ]

    def submit_operation(self, signed: SignedOperation) -> OperationReceipt:
        envelope = json.loads(base64.b64decode(signed.tx_bytes).decode("utf-8"))
        with self._lock:
            self.submitted.append(envelope)
            failure = self._pop_failure("submit")
            if failure is not None and not failure[2]:
                raise failure[1]
            receipt = self._execute(envelope)
            if failure is not None:
                # Applied on-ledger, but the caller only sees the transport error.
                raise failure[1]
            return receipt

    # ---------- Signing ----------

    def sign(self, call: MoveCall, sender: Address) -> SignedOperation:
        envelope = {"sender": sender, "call": call.to_payload()}
        tx_bytes = base64.b64encode(json.dumps(envelope).encode("utf-8")).decode("ascii")
        return SignedOperation(tx_bytes=tx_bytes, signatures=(f"mock-sig:{sender}",))

    def signer(
        self, call: MoveCall, sender: Address, cancel_token: Optional[CancelToken] = None
    ) -> OperationReceipt:
        """Approve immediately, sign, and submit; usable as a ``WalletSession`` signer."""
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        return self.submit_operation(self.sign(call, sender))

    # ---------- Test helpers ----------

    def fail_next(self, exc: Exception, *, path: str = "submit", applied: bool = False) -> None:
        """Raise ``exc`` on the next ``path`` call; ``applied`` still executes a submit."""
        self._failures.append((path, exc, applied))

    def put_object(
        self,
        owner: Address,
        fields: Dict[str, Any],
        *,
        type_tag: Optional[str] = None,
        object_id: Optional[ObjectId] = None,
    ) -> ObjectId:
        object_id = object_id or _new_object_id()
        with self._lock:
            self.objects[object_id] = {
                "objectId": object_id,
                "typeTag": type_tag or self.deed_module.asset_type,
                "owner": owner,
                "fields": dict(fields),
            }
        return object_id

    def move_object(self, object_id: ObjectId, new_owner: Address) -> None:
        with self._lock:
            self.objects[object_id]["owner"] = new_owner

    # ---------- Contract execution ----------

    def _pop_failure(self, path: str) -> Optional[tuple]:
        for idx, entry in enumerate(self._failures):
            if entry[0] == path:
                return self._failures.pop(idx)
        return None

    def _execute(self, envelope: Dict[str, Any]) -> OperationReceipt:
        sender = envelope.get("sender")
        call = envelope.get("call") or {}
        target = str(call.get("target") or "")
        args = [arg.get("value") for arg in call.get("arguments") or []]
        digest = uuid4().hex
        prefix = f"{self.deed_module.package_id}::{self.deed_module.module}::"
        if not self.deed_module.configured or not target.startswith(prefix):
            raise ApiRpcError(f"execute_transaction: unknown package for {target}")
        function = target[len(prefix):]

        if function == "mint_deed":
            owner, property_address, title_status, value = args
            object_id = _new_object_id()
            self.objects[object_id] = {
                "objectId": object_id,
                "typeTag": self.deed_module.asset_type,
                "owner": owner,
                "fields": {
                    "id": {"id": object_id},
                    "owner": owner,
                    "property_address": property_address,
                    "title_status": title_status,
                    "property_value": str(value),
                },
            }
            return OperationReceipt(digest=digest, created=(object_id,))

        object_id = args[0] if args else None
        obj = self.objects.get(object_id)
        if obj is None or obj["owner"] != sender:
            raise ApiExecutionError(
                f"Transaction {digest} failed: object {object_id} not owned by sender",
                digest=digest,
            )
        if function == "transfer_deed":
            obj["owner"] = args[1]
            obj["fields"]["owner"] = args[1]
        elif function == "update_title_status":
            obj["fields"]["title_status"] = args[1]
        elif function == "update_property_value":
            obj["fields"]["property_value"] = str(args[1])
        else:
            raise ApiRpcError(f"execute_transaction: unknown function {function}")
        return OperationReceipt(digest=digest, mutated=(object_id,))


__all__ = ["LedgerMock"]
