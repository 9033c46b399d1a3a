from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..domain.entities import Deed
from ..domain.errors import MisconfiguredRegistry
from ..domain.ports import UseCaseError, WalletPort
from ..usecases.asset_registry import AssetRegistryView
from ..usecases.transaction_orchestrator import IntentResult, TransactionOrchestrator
from .feedback import FeedbackChannel, FeedbackState

DeedRow = Tuple[str, str, str, str, str]


@dataclass
class DeedsVM:
    """Read-only projection of deeds, feedback, and busy state plus intent commands.

    Views never touch the orchestrator's pending operation; they render
    :meth:`snapshot` and forward raw form strings to the ``cmd_*`` methods.
    """

    orchestrator: TransactionOrchestrator
    registry: AssetRegistryView
    feedback: FeedbackChannel
    wallet: WalletPort
    on_update: Optional[Callable[[Dict[str, Any]], None]] = None

    @property
    def busy(self) -> bool:
        return self.orchestrator.busy

    @property
    def feedback_state(self) -> FeedbackState:
        return self.feedback.state

    @property
    def connected_address(self) -> str:
        return (self.wallet.active_address or "") if self.wallet.is_connected else ""

    def rows(self) -> List[DeedRow]:
        """Deed table rows: id, property address, title status, value, owner."""
        return [self._row(deed) for deed in self.registry.deeds]

    def snapshot(self) -> Dict[str, Any]:
        state = self.feedback_state
        return {
            "address": self.connected_address,
            "busy": self.busy,
            "deeds": self.rows(),
            "feedback": {"kind": state.kind, "message": state.message},
        }

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def cmd_mint(self, property_address: str, title_status: str, property_value: str) -> IntentResult:
        result = self.orchestrator.mint(
            self.connected_address, property_address, title_status, property_value
        )
        self._emit()
        return result

    def cmd_transfer(self, deed_id: str, recipient_address: str) -> IntentResult:
        result = self.orchestrator.transfer(deed_id, recipient_address)
        self._emit()
        return result

    def cmd_update_title_status(self, deed_id: str, new_status: str) -> IntentResult:
        result = self.orchestrator.update_title_status(deed_id, new_status)
        self._emit()
        return result

    def cmd_update_property_value(self, deed_id: str, new_value: str) -> IntentResult:
        result = self.orchestrator.update_property_value(deed_id, new_value)
        self._emit()
        return result

    def cmd_refresh(self) -> None:
        try:
            self.registry.refresh()
        except MisconfiguredRegistry as exc:
            self.feedback.error(exc.message)
        except UseCaseError:
            self.feedback.error("Error fetching deeds. Please try again.")
        self._emit()

    def cmd_cancel(self) -> bool:
        return self.orchestrator.cancel("Transaction cancelled by user.")

    # ------------------------------------------------------------------
    def _emit(self) -> None:
        if self.on_update:
            self.on_update(self.snapshot())

    @staticmethod
    def _row(deed: Deed) -> DeedRow:
        return (
            deed.id,
            deed.property_address,
            deed.title_status or "-",
            f"{deed.property_value:,}",
            deed.owner,
        )


__all__ = ["DeedRow", "DeedsVM"]
