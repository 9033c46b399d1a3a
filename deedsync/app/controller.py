"""Adapter and use-case wiring for the deed client runtime.

This module owns lazy construction of the ledger adapter, wallet session,
registry view, orchestrator, and view models from values in
:class:`deedsync.viewmodels.settings_vm.SettingsVM`.
"""

from __future__ import annotations

from typing import Optional

from ..adapters.ledger_rpc import LedgerRpcAdapter
from ..adapters.wallet_session import Signer, WalletSession
from ..domain.ports import LedgerPort
from ..usecases.asset_registry import AssetRegistryView
from ..usecases.transaction_orchestrator import TransactionOrchestrator
from ..viewmodels.deeds_vm import DeedsVM
from ..viewmodels.feedback import FeedbackChannel
from ..viewmodels.settings_vm import SettingsVM


class AppController:
    """Create and cache runtime adapters/use-cases from settings state.

    Call chain:
        ``deedsync.app.main`` (or a GUI shell) creates one instance, attaches
        the wallet's signer, and calls ``ensure_ready`` before reading deeds
        or dispatching intents through :attr:`deeds_vm`.
    """

    def __init__(
        self,
        settings_vm: SettingsVM,
        *,
        signer: Optional[Signer] = None,
        ledger_port: Optional[LedgerPort] = None,
    ) -> None:
        """Initialize controller with settings-backed lazy dependencies.

        Args:
            settings_vm: Settings state with RPC URL, package id, and timeouts.
            signer: External wallet signer handed to the wallet session.
            ledger_port: Optional pre-built ledger port (offline double);
                when omitted a JSON-RPC adapter is built from settings.
        """
        self.settings_vm = settings_vm
        self.wallet = WalletSession(signer)
        self.feedback = FeedbackChannel()
        self._ledger: Optional[LedgerPort] = ledger_port
        self.registry: Optional[AssetRegistryView] = None
        self.orchestrator: Optional[TransactionOrchestrator] = None
        self.deeds_vm: Optional[DeedsVM] = None

    @property
    def ledger(self) -> Optional[LedgerPort]:
        """Return the cached ledger port used for reads and submissions."""
        return self._ledger

    def reset(self) -> None:
        """Drop cached use-cases so the next ``ensure_ready`` rebuilds from settings.

        The wallet session and feedback channel survive a reset.
        """
        if self.registry is not None:
            self.registry.close()
        self._ledger = None
        self.registry = None
        self.orchestrator = None
        self.deeds_vm = None

    def ensure_ready(self) -> bool:
        """Ensure adapters/use-cases are available.

        Returns:
            ``True`` when dependencies are available, ``False`` when the
            settings are not usable (for example a malformed RPC URL). A
            missing package id is not checked here; intents report it as
            ``MisconfiguredRegistry``.
        """
        if self.deeds_vm is not None:
            return True
        if self._ledger is None:
            if not self.settings_vm.is_valid():
                return False
            config = self.settings_vm.config
            self._ledger = LedgerRpcAdapter(
                config.rpc_url,
                asset_type=self.settings_vm.deed_module.asset_type,
                api_key=self.settings_vm.api_key or None,
                request_timeout_s=config.request_timeout_s,
                retries=config.retries,
                page_size=config.page_size,
            )

        deed_module = self.settings_vm.deed_module
        self.registry = AssetRegistryView(self._ledger, self.wallet, deed_module)
        self.orchestrator = TransactionOrchestrator(
            self.wallet,
            self.registry,
            self.feedback,
            deed_module,
            sign_timeout_s=self.settings_vm.sign_timeout_s,
        )
        self.deeds_vm = DeedsVM(
            orchestrator=self.orchestrator,
            registry=self.registry,
            feedback=self.feedback,
            wallet=self.wallet,
        )
        return True
