"""Domain package exports for value objects, ports, and errors."""

from .cancellation import CancelToken
from .entities import (
    CallArgument,
    Deed,
    DeedModule,
    IntentKind,
    MoveCall,
    OperationReceipt,
    PendingOperation,
    SignedOperation,
    WalletEvent,
    matches_asset_type,
)
from .errors import (
    InvalidInput,
    LedgerRejection,
    MisconfiguredRegistry,
    NetworkError,
    NotConnected,
    OperationInProgress,
    UserDeclined,
)
from .ports import UseCaseError

__all__ = [
    "CallArgument",
    "CancelToken",
    "Deed",
    "DeedModule",
    "IntentKind",
    "InvalidInput",
    "LedgerRejection",
    "MisconfiguredRegistry",
    "MoveCall",
    "NetworkError",
    "NotConnected",
    "OperationInProgress",
    "OperationReceipt",
    "PendingOperation",
    "SignedOperation",
    "UseCaseError",
    "UserDeclined",
    "WalletEvent",
    "matches_asset_type",
]
