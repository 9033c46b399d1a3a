"""Domain-level error types for use-case and adapter mapping.

Every condition an intent can end in has its own class so presentation can
tell a missing wallet from a bad form field or a rejected transaction. All of
them are :class:`~deedsync.domain.ports.UseCaseError` instances and carry a
stable ``code`` plus a user-presentable ``message``.
"""

from __future__ import annotations

from typing import Optional

from .ports import UseCaseError


class NotConnected(UseCaseError):
    """No wallet session is connected."""

    def __init__(self, message: str = "Please connect your wallet first") -> None:
        super().__init__("NOT_CONNECTED", message)


class MisconfiguredRegistry(UseCaseError):
    """The deployed deed package identifier is missing."""

    def __init__(
        self,
        message: str = "PACKAGE_ID is not set. Please check your environment variables.",
    ) -> None:
        super().__init__("MISCONFIGURED_REGISTRY", message)


class InvalidInput(UseCaseError):
    """A required field is empty or a numeric field does not parse."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__("INVALID_INPUT", message)
        self.field = field


class OperationInProgress(UseCaseError):
    """Another mutating intent already holds the pending slot."""

    def __init__(
        self, message: str = "Another deed operation is still in progress."
    ) -> None:
        super().__init__("OPERATION_IN_PROGRESS", message)


class UserDeclined(UseCaseError):
    """The signer was cancelled, declined, or ran past its deadline."""

    def __init__(self, message: str = "Transaction cancelled in wallet.") -> None:
        super().__init__("USER_DECLINED", message)


class LedgerRejection(UseCaseError):
    """The ledger executed the call and rejected it."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__("LEDGER_REJECTED", message)
        self.cause = cause


class NetworkError(UseCaseError):
    """Transport or confirmation failure; the write may or may not have landed."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__("NETWORK_ERROR", message)
        self.cause = cause


__all__ = [
    "InvalidInput",
    "LedgerRejection",
    "MisconfiguredRegistry",
    "NetworkError",
    "NotConnected",
    "OperationInProgress",
    "UserDeclined",
]
