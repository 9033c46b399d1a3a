from __future__ import annotations
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Protocol

if TYPE_CHECKING:  # pragma: no cover - type checking helper
    from .cancellation import CancelToken
    from .entities import MoveCall, OperationReceipt, SignedOperation, WalletEvent

Address = str
ObjectId = str


# ---- Error model ----
class UseCaseError(Exception):
    """Base class for use case level errors (user-presentable)."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


# ---- Ports (Hexagonal boundaries) ----
class LedgerPort(Protocol):
    """Read and write access to the remote ledger node.

    Reads return normalized records ``{"objectId", "typeTag", "fields", "owner"}``
    already restricted to the configured asset type.
    """

    def query_owned_assets(self, address: Address) -> List[Dict[str, Any]]: ...
    def submit_operation(self, signed: "SignedOperation") -> "OperationReceipt": ...


class WalletPort(Protocol):
    """Wallet capability consumed by the orchestrator, never implemented by it."""

    @property
    def is_connected(self) -> bool: ...
    @property
    def active_address(self) -> Optional[Address]: ...
    def sign_and_submit(
        self, call: "MoveCall", *, cancel_token: Optional["CancelToken"] = None
    ) -> "OperationReceipt": ...
    def add_listener(
        self, listener: Callable[["WalletEvent"], None]
    ) -> Callable[[], None]: ...


class StoragePort(Protocol):
    """Persistence for user preferences."""

    def save_user_prefs(self, prefs: Dict) -> None: ...
    def load_user_prefs(self) -> Dict: ...
