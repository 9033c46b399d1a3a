"""Local cache of the connected account's deeds.

The cache is only ever replaced as a whole from one ledger query, or
cleared. No field of a cached :class:`Deed` is patched in place, so the
snapshot always reflects a single point-in-time read of the ledger.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Optional, Tuple

from deedsync.domain.entities import Deed, DeedModule, WalletEvent, matches_asset_type
from deedsync.domain.errors import MisconfiguredRegistry
from deedsync.domain.ports import Address, LedgerPort, ObjectId, WalletPort
from deedsync.usecases.error_mapping import map_ledger_error

DeedSnapshot = Tuple[Deed, ...]


class AssetRegistryView:
    """Typed, wholesale-replaced view of the deeds owned by the active account.

    Call chain:
        ``TransactionOrchestrator`` calls :meth:`refresh` after each settled
        intent; presentation may call it directly. Wallet ``disconnected`` and
        ``account_changed`` events clear the cache without re-querying.
    """

    def __init__(
        self,
        ledger_port: LedgerPort,
        wallet: WalletPort,
        deed_module: DeedModule,
        *,
        on_update: Optional[Callable[[DeedSnapshot], None]] = None,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.ledger_port = ledger_port
        self.wallet = wallet
        self.deed_module = deed_module
        self.on_update = on_update
        self._lock = threading.Lock()
        self._deeds: DeedSnapshot = ()
        self._issued = 0
        self._applied = 0
        self._unsubscribe = wallet.add_listener(self._on_wallet_event)

    @property
    def deeds(self) -> DeedSnapshot:
        return self._deeds

    def refresh(self) -> DeedSnapshot:
        """Re-query the ledger and replace the cache.

        The generation is taken before the wallet is read, so a clear that
        lands at any point after that outranks this query. A result is also
        dropped when the wallet is no longer connected to the queried account.

        Returns:
            DeedSnapshot: The snapshot in effect after the call, which is the
            previous one when this query's result was discarded.

        Raises:
            MisconfiguredRegistry: No deed package is configured.
            NetworkError / LedgerRejection: The query failed; the cache is
                left untouched.
        """
        with self._lock:
            self._issued += 1
            generation = self._issued

        address = self._connected_address()
        if not address:
            self.clear()
            return self._deeds
        asset_type = self.deed_module.asset_type
        if not asset_type:
            raise MisconfiguredRegistry()

        try:
            records = self.ledger_port.query_owned_assets(address)
        except Exception as exc:
            mapped = map_ledger_error(exc)
            self._log.warning("Error fetching deeds for %s: %s", address, mapped.message)
            raise mapped from exc

        deeds: Dict[ObjectId, Deed] = {}
        for record in records:
            if not matches_asset_type(record.get("typeTag"), asset_type):
                continue
            try:
                deed = Deed.from_ledger_object(record)
            except ValueError as exc:
                self._log.warning("Skipping malformed deed object: %s", exc)
                continue
            deeds.setdefault(deed.id, deed)

        snapshot: DeedSnapshot = tuple(deeds.values())
        still_connected = self._connected_address() == address
        with self._lock:
            if generation < self._applied or not still_connected:
                self._log.debug("Discarding stale deed query (generation %d)", generation)
                return self._deeds
            self._applied = generation
            self._deeds = snapshot
        self._log.info("Fetched %d deeds for %s", len(snapshot), address)
        self._notify(snapshot)
        return snapshot

    def clear(self) -> None:
        with self._lock:
            # Outstanding queries belong to the previous session.
            self._issued += 1
            self._applied = self._issued
            changed = bool(self._deeds)
            self._deeds = ()
        if changed:
            self._notify(())

    def close(self) -> None:
        """Detach from wallet events."""
        self._unsubscribe()

    def _connected_address(self) -> Optional[Address]:
        return self.wallet.active_address if self.wallet.is_connected else None

    def _on_wallet_event(self, event: WalletEvent) -> None:
        if event.kind in ("disconnected", "account_changed"):
            self._log.debug("Clearing deeds on wallet %s", event.kind)
            self.clear()

    def _notify(self, snapshot: DeedSnapshot) -> None:
        if self.on_update:
            self.on_update(snapshot)


__all__ = ["AssetRegistryView", "DeedSnapshot"]
