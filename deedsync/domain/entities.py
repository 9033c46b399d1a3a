from __future__ import annotations

"""Domain value objects shared across adapters, use-cases, and view models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Literal, Mapping, Optional, Tuple

from .ports import Address, ObjectId

IntentKind = Literal["mint", "transfer", "update_status", "update_value"]
ArgKind = Literal["address", "string", "u64", "object"]
WalletEventKind = Literal["connected", "disconnected", "account_changed"]

U64_MAX = 2**64 - 1


@dataclass(frozen=True)
class DeedModule:
    """Location of the deployed deed contract on the ledger."""

    package_id: str
    """Identifier of the published package (the registry id); may be empty."""
    module: str = "deed"
    struct: str = "RealEstateDeed"

    @property
    def configured(self) -> bool:
        return bool(self.package_id.strip())

    @property
    def asset_type(self) -> str:
        """Fully qualified struct tag of deed objects, empty when unconfigured."""
        if not self.configured:
            return ""
        return f"{self.package_id.strip()}::{self.module}::{self.struct}"

    def target(self, function: str) -> str:
        return f"{self.package_id.strip()}::{self.module}::{function}"


def matches_asset_type(type_tag: Optional[str], asset_type: str) -> bool:
    """Return whether ``type_tag`` names ``asset_type`` (generic params allowed)."""
    if not type_tag or not asset_type:
        return False
    tag = type_tag.strip().lower()
    expected = asset_type.strip().lower()
    return tag == expected or tag.startswith(expected + "<")


@dataclass(frozen=True)
class Deed:
    """Tokenized title record owned by a ledger address."""

    id: ObjectId
    owner: Address
    property_address: str
    title_status: str
    property_value: int

    @classmethod
    def from_ledger_object(cls, record: Mapping[str, Any]) -> "Deed":
        """Build a deed from a normalized ledger record.

        Raises ``ValueError`` when the record lacks an id or a numeric value.
        """
        object_id = str(record.get("objectId") or "").strip()
        if not object_id:
            raise ValueError("Ledger object is missing objectId.")
        fields = record.get("fields") if isinstance(record.get("fields"), Mapping) else {}
        owner = str(fields.get("owner") or record.get("owner") or "").strip()
        property_address = fields.get("property_address", fields.get("address", ""))
        raw_value = fields.get("property_value", fields.get("value"))
        try:
            value = int(str(raw_value).strip())
        except (TypeError, ValueError):
            raise ValueError(f"Deed {object_id} has non-numeric property_value: {raw_value!r}")
        if value < 0 or value > U64_MAX:
            raise ValueError(f"Deed {object_id} property_value out of range: {value}")
        return cls(
            id=object_id,
            owner=owner,
            property_address=str(property_address or ""),
            title_status=str(fields.get("title_status") or ""),
            property_value=value,
        )


@dataclass(frozen=True)
class CallArgument:
    """Positional argument of a contract call, tagged with its ledger type."""

    kind: ArgKind
    value: Any

    def to_payload(self) -> Dict[str, Any]:
        value = str(self.value) if self.kind == "u64" else self.value
        return {"kind": self.kind, "value": value}


@dataclass(frozen=True)
class MoveCall:
    """Call descriptor ``{target, ordered arguments}`` handed to the wallet."""

    target: str
    arguments: Tuple[CallArgument, ...] = ()

    @property
    def function(self) -> str:
        return self.target.rsplit("::", 1)[-1]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "arguments": [arg.to_payload() for arg in self.arguments],
        }


@dataclass(frozen=True)
class SignedOperation:
    """Transaction bytes plus signatures, ready for submission."""

    tx_bytes: str
    signatures: Tuple[str, ...]


@dataclass(frozen=True)
class OperationReceipt:
    """Ledger confirmation returned after an operation executed."""

    digest: str
    status: str = "success"
    created: Tuple[ObjectId, ...] = ()
    mutated: Tuple[ObjectId, ...] = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "OperationReceipt":
        digest = str(payload.get("digest") or "").strip()
        if not digest:
            raise ValueError("Missing digest in execution response.")
        effects = payload.get("effects") if isinstance(payload.get("effects"), Mapping) else {}
        status_raw = effects.get("status") if isinstance(effects.get("status"), Mapping) else {}
        status = str(status_raw.get("status") or "success").strip().lower()
        return cls(
            digest=digest,
            status=status,
            created=_object_refs(effects.get("created")),
            mutated=_object_refs(effects.get("mutated")),
        )


def _object_refs(raw: Any) -> Tuple[ObjectId, ...]:
    if not isinstance(raw, list):
        return ()
    ids = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        ref = entry.get("reference") if isinstance(entry.get("reference"), Mapping) else entry
        object_id = str(ref.get("objectId") or "").strip()
        if object_id:
            ids.append(object_id)
    return tuple(ids)


@dataclass(frozen=True)
class PendingOperation:
    """The single in-flight mutating call."""

    kind: IntentKind
    target_deed_id: Optional[ObjectId]
    payload: Dict[str, Any]
    call: MoveCall
    submitted_at: datetime


@dataclass(frozen=True)
class WalletEvent:
    """Lifecycle event emitted by the wallet session."""

    kind: WalletEventKind
    address: Optional[Address] = None
    previous: Optional[Address] = field(default=None, compare=False)


__all__ = [
    "ArgKind",
    "CallArgument",
    "Deed",
    "DeedModule",
    "IntentKind",
    "MoveCall",
    "OperationReceipt",
    "PendingOperation",
    "SignedOperation",
    "U64_MAX",
    "WalletEvent",
    "WalletEventKind",
    "matches_asset_type",
]
