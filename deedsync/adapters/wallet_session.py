"""Wallet session tracking connection state and delegating signatures.

Key custody and the signature scheme live in an external signer; this module
only remembers which account is connected, fans out lifecycle events, and
hands call descriptors to the signer together with a cancel token.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from deedsync.domain.cancellation import CancelToken
from deedsync.domain.entities import MoveCall, OperationReceipt, WalletEvent
from deedsync.domain.errors import NotConnected
from deedsync.domain.ports import Address, WalletPort

Signer = Callable[[MoveCall, Address, CancelToken], OperationReceipt]
WalletListener = Callable[[WalletEvent], None]


class WalletSession(WalletPort):
    """Connection status, active account, and signing capability."""

    def __init__(self, signer: Optional[Signer] = None) -> None:
        self._log = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._signer = signer
        self._address: Optional[Address] = None
        self._listeners: List[WalletListener] = []

    @property
    def is_connected(self) -> bool:
        return self._address is not None

    @property
    def active_address(self) -> Optional[Address]:
        return self._address

    def set_signer(self, signer: Optional[Signer]) -> None:
        self._signer = signer

    def add_listener(self, listener: WalletListener) -> Callable[[], None]:
        """Register ``listener`` for lifecycle events and return an unsubscribe hook."""
        with self._lock:
            self._listeners.append(listener)

        def _remove() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _remove

    def connect(self, address: Address) -> None:
        """Mark ``address`` as the active account.

        Emits ``connected`` on first connection and ``account_changed`` when a
        different account replaces the current one; reconnecting the same
        account is silent.

        Raises:
            ValueError: ``address`` is blank.
        """
        account = str(address or "").strip()
        if not account:
            raise ValueError("connect requires a non-empty account address")
        with self._lock:
            previous = self._address
            self._address = account
        if previous is None:
            self._log.info("Wallet connected: %s", account)
            self._emit(WalletEvent("connected", account))
        elif previous != account:
            self._log.info("Wallet account changed: %s -> %s", previous, account)
            self._emit(WalletEvent("account_changed", account, previous=previous))

    def disconnect(self) -> None:
        """Forget the active account; emits ``disconnected`` only if one was set."""
        with self._lock:
            previous = self._address
            self._address = None
        if previous is None:
            return
        self._log.info("Wallet disconnected: %s", previous)
        self._emit(WalletEvent("disconnected", None, previous=previous))

    def sign_and_submit(
        self, call: MoveCall, *, cancel_token: Optional[CancelToken] = None
    ) -> OperationReceipt:
        """Ask the signer to approve, sign, and submit ``call``.

        Raises:
            NotConnected: No account is connected or no signer is attached.
            UserDeclined: The token was already tripped, or the signer reports
                that the user declined.
        """
        sender = self._address
        if sender is None:
            raise NotConnected()
        if self._signer is None:
            raise NotConnected("Wallet has no signer attached.")
        token = cancel_token or CancelToken()
        token.raise_if_cancelled()
        self._log.debug("Requesting signature for %s from %s", call.target, sender)
        return self._signer(call, sender, token)

    def _emit(self, event: WalletEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(event)


__all__ = ["Signer", "WalletListener", "WalletSession"]
