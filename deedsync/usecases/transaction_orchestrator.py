from __future__ import annotations

"""Orchestrates deed intents from validation through ledger settlement."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Literal, Optional, Tuple

from deedsync.domain.cancellation import CancelToken
from deedsync.domain.entities import (
    DeedModule,
    IntentKind,
    MoveCall,
    OperationReceipt,
    PendingOperation,
)
from deedsync.domain.errors import (
    LedgerRejection,
    MisconfiguredRegistry,
    NetworkError,
    NotConnected,
    OperationInProgress,
    UserDeclined,
)
from deedsync.domain.ports import ObjectId, UseCaseError, WalletPort
from deedsync.domain.validation import parse_u64, require_text
from deedsync.usecases.asset_registry import AssetRegistryView
from deedsync.usecases.deed_calls import (
    build_mint_call,
    build_transfer_call,
    build_update_status_call,
    build_update_value_call,
)
from deedsync.usecases.error_mapping import map_ledger_error
from deedsync.viewmodels.feedback import FeedbackChannel

OrchestratorState = Literal["idle", "validating", "submitting", "settling", "failed"]
IntentStatus = Literal["success", "cancelled", "failed", "rejected"]
_Built = Tuple[Optional[ObjectId], Dict[str, Any], MoveCall]

_PROGRESS_MESSAGES: Dict[IntentKind, str] = {
    "mint": "Minting deed...",
    "transfer": "Transferring deed...",
    "update_status": "Updating deed title status...",
    "update_value": "Updating deed property value...",
}
_SUCCESS_MESSAGES: Dict[IntentKind, str] = {
    "mint": "Deed minted successfully!",
    "transfer": "Deed transferred successfully!",
    "update_status": "Deed title status updated successfully!",
    "update_value": "Deed property value updated successfully!",
}
_AMBIGUOUS_MINT_HINT = (
    " The deed may still have been minted; check your deeds before retrying."
)


@dataclass(frozen=True)
class IntentResult:
    """Outcome of one intent, returned after the orchestrator is idle again."""

    kind: IntentKind
    status: IntentStatus
    receipt: Optional[OperationReceipt] = None
    error: Optional[UseCaseError] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


class TransactionOrchestrator:
    """Serializes deed intents and reconciles the registry after each one.

    Every intent walks ``idle -> validating -> submitting -> settling -> idle``
    on success or ``... -> submitting -> failed -> idle`` on ledger failure.
    One pending operation exists at most, across all intents; a second intent
    arriving meanwhile is rejected with ``OperationInProgress`` and touches
    nothing.
    """

    def __init__(
        self,
        wallet: WalletPort,
        registry: AssetRegistryView,
        feedback: FeedbackChannel,
        deed_module: DeedModule,
        *,
        sign_timeout_s: Optional[float] = None,
        on_state_change: Optional[Callable[[OrchestratorState], None]] = None,
    ) -> None:
        """Wire the orchestrator to its collaborators.

        Args:
            wallet: Session used for signing; also checked for a connection.
            registry: View refreshed after each settled intent.
            feedback: Channel receiving progress and outcome messages.
            deed_module: Deployed deed contract; unconfigured means every
                intent fails with ``MisconfiguredRegistry``.
            sign_timeout_s: Deadline for wallet approval, ``None`` for none.
            on_state_change: Called with each new orchestrator state.
        """
        self._log = logging.getLogger(__name__)
        self.wallet = wallet
        self.registry = registry
        self.feedback = feedback
        self.deed_module = deed_module
        self.sign_timeout_s = sign_timeout_s
        self.on_state_change = on_state_change
        self._slot = threading.Lock()
        self._state: OrchestratorState = "idle"
        self._pending: Optional[PendingOperation] = None
        self._token: Optional[CancelToken] = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state != "idle"

    @property
    def pending_operation(self) -> Optional[PendingOperation]:
        """The in-flight operation; for diagnostics, not for presentation."""
        return self._pending

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------
    def mint(
        self,
        owner_address: Any,
        property_address: Any,
        title_status: Any,
        property_value: Any,
    ) -> IntentResult:
        def build() -> _Built:
            owner = require_text(owner_address, "owner_address", label="Owner address")
            address = require_text(property_address, "property_address", label="Property address")
            status = "" if title_status is None else str(title_status).strip()
            value = parse_u64(property_value, "property_value", label="Property value")
            payload = {
                "owner": owner,
                "property_address": address,
                "title_status": status,
                "property_value": value,
            }
            call = build_mint_call(self.deed_module, owner, address, status, value)
            return None, payload, call

        return self._run("mint", build)

    def transfer(self, deed_id: Any, recipient_address: Any) -> IntentResult:
        def build() -> _Built:
            target = require_text(deed_id, "deed_id", label="Deed id")
            recipient = require_text(
                recipient_address, "recipient_address", label="Recipient address"
            )
            call = build_transfer_call(self.deed_module, target, recipient)
            return target, {"recipient": recipient}, call

        return self._run("transfer", build)

    def update_title_status(self, deed_id: Any, new_status: Any) -> IntentResult:
        def build() -> _Built:
            target = require_text(deed_id, "deed_id", label="Deed id")
            status = require_text(new_status, "title_status", label="Title status")
            call = build_update_status_call(self.deed_module, target, status)
            return target, {"title_status": status}, call

        return self._run("update_status", build)

    def update_property_value(self, deed_id: Any, new_value: Any) -> IntentResult:
        def build() -> _Built:
            target = require_text(deed_id, "deed_id", label="Deed id")
            value = parse_u64(new_value, "property_value", label="Property value")
            call = build_update_value_call(self.deed_module, target, value)
            return target, {"property_value": value}, call

        return self._run("update_value", build)

    def cancel(self, reason: str = "Transaction cancelled.") -> bool:
        """Trip the cancel token of the in-flight operation, if any.

        The signer observes the token and reports ``UserDeclined``. Returns
        ``False`` when nothing is awaiting a signature.
        """
        token = self._token
        pending = self._pending
        if token is None or self._state != "submitting":
            return False
        self._log.info("Cancelling pending %s", pending.kind if pending else "operation")
        token.cancel(reason)
        return True

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------
    def _run(self, kind: IntentKind, build: Callable[[], _Built]) -> IntentResult:
        """Drive one intent through the state machine.

        Args:
            kind: Intent being run; selects progress and success messages.
            build: Validates the raw intent arguments and returns
                ``(target_deed_id, payload, call)``. Raises ``UseCaseError``
                on bad input.

        Returns:
            IntentResult: ``rejected`` when another intent holds the slot
            (nothing else is touched), ``failed`` on validation or ledger
            failure, ``cancelled`` when the wallet declined, else ``success``.

        Call Chain:
            ``mint``/``transfer``/``update_*`` -> ``_run`` ->
            ``WalletPort.sign_and_submit`` -> ``_settle_success`` or
            ``_settle_failure`` -> ``AssetRegistryView.refresh``.

        Side Effects:
            Publishes to the feedback channel and fires ``on_state_change``
            for every transition; always returns to ``idle``.
        """
        if not self._slot.acquire(blocking=False):
            self._log.info("Rejected %s: another operation is in progress", kind)
            return IntentResult(kind, "rejected", error=OperationInProgress())
        try:
            self._set_state("validating")
            try:
                self._check_session()
                target_id, payload, call = build()
            except UseCaseError as exc:
                self._log.info("Validation failed for %s: %s", kind, exc.message)
                self.feedback.error(exc.message)
                return IntentResult(kind, "failed", error=exc)

            token = CancelToken(self.sign_timeout_s)
            self._pending = PendingOperation(
                kind=kind,
                target_deed_id=target_id,
                payload=payload,
                call=call,
                submitted_at=datetime.now(timezone.utc),
            )
            self._token = token
            self._set_state("submitting")
            self.feedback.in_progress(_PROGRESS_MESSAGES[kind])
            self._log.info("Submitting %s via %s", kind, call.target)
            self._log.debug("Call arguments: %s", call.to_payload()["arguments"])
            try:
                receipt = self.wallet.sign_and_submit(call, cancel_token=token)
            except Exception as exc:
                return self._settle_failure(kind, map_ledger_error(exc))
            return self._settle_success(kind, receipt)
        finally:
            self._pending = None
            self._token = None
            self._set_state("idle")
            self._slot.release()

    def _check_session(self) -> None:
        if not self.wallet.is_connected:
            raise NotConnected()
        if not self.deed_module.configured:
            raise MisconfiguredRegistry()

    def _settle_success(self, kind: IntentKind, receipt: OperationReceipt) -> IntentResult:
        self._set_state("settling")
        self._log.info("%s settled in transaction %s", kind, receipt.digest)
        message = _SUCCESS_MESSAGES[kind]
        refresh_error = self._refresh_quietly()
        if refresh_error is not None:
            message = f"{message} Error fetching deeds: {refresh_error.message}"
            self.feedback.error(message)
        else:
            self.feedback.success(message)
        return IntentResult(kind, "success", receipt=receipt)

    def _settle_failure(self, kind: IntentKind, error: UseCaseError) -> IntentResult:
        if isinstance(error, UserDeclined):
            self._log.info("%s cancelled: %s", kind, error.message)
            self.feedback.cancelled(error.message)
            return IntentResult(kind, "cancelled", error=error)

        self._set_state("failed")
        if isinstance(error, (LedgerRejection, NetworkError)):
            self._log.warning("%s failed (%s): %s", kind, error.code, error.message)
        else:
            self._log.error("%s failed (%s): %s", kind, error.code, error.message)
        # A network failure does not prove the write was dropped.
        self._refresh_quietly()
        message = f"Error: {error.message}"
        if kind == "mint" and isinstance(error, NetworkError):
            message += _AMBIGUOUS_MINT_HINT
        self.feedback.error(message)
        return IntentResult(kind, "failed", error=error)

    def _refresh_quietly(self) -> Optional[UseCaseError]:
        try:
            self.registry.refresh()
        except UseCaseError as exc:
            self._log.warning("Refresh after settlement failed: %s", exc.message)
            return exc
        return None

    def _set_state(self, state: OrchestratorState) -> None:
        self._state = state
        if self.on_state_change:
            self.on_state_change(state)


__all__ = ["IntentResult", "OrchestratorState", "TransactionOrchestrator"]
