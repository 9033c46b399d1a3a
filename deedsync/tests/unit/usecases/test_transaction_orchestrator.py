from __future__ import annotations

from typing import List
from unittest.mock import MagicMock

import pytest

from deedsync.adapters.api_errors import ApiExecutionError, ApiTimeoutError
from deedsync.adapters.ledger_mock import LedgerMock
from deedsync.adapters.wallet_session import WalletSession
from deedsync.domain.entities import DeedModule
from deedsync.domain.errors import (
    InvalidInput,
    LedgerRejection,
    MisconfiguredRegistry,
    NetworkError,
    NotConnected,
    UserDeclined,
)
from deedsync.usecases.asset_registry import AssetRegistryView
from deedsync.usecases.transaction_orchestrator import TransactionOrchestrator
from deedsync.viewmodels.feedback import FeedbackChannel

PKG = "0xpkg"
ALICE = "0xa11ce"
BOB = "0xb0b"
DEED_FIELDS = {"property_address": "1 Elm St", "title_status": "clear", "property_value": "100"}


class _Harness:
    def __init__(self, module: DeedModule = DeedModule(PKG), *, connect: bool = True, **kwargs):
        self.ledger = LedgerMock(DeedModule(PKG))
        self.ledger_port = MagicMock(wraps=self.ledger)
        self.signer = MagicMock(side_effect=self.ledger.signer)
        self.wallet = WalletSession(self.signer)
        if connect:
            self.wallet.connect(ALICE)
        self.feedback_log: List = []
        self.feedback = FeedbackChannel(on_change=self.feedback_log.append)
        self.registry = AssetRegistryView(self.ledger_port, self.wallet, module)
        self.states: List[str] = []
        self.orchestrator = TransactionOrchestrator(
            self.wallet,
            self.registry,
            self.feedback,
            module,
            on_state_change=self.states.append,
            **kwargs,
        )

    @property
    def refresh_count(self) -> int:
        return self.ledger_port.query_owned_assets.call_count


@pytest.fixture
def harness() -> _Harness:
    return _Harness()


def test_mint_success_refreshes_once_and_reports_success(harness: _Harness) -> None:
    result = harness.orchestrator.mint(ALICE, "12 Main St", "clear", "250000")

    assert result.ok
    assert result.receipt.created
    assert harness.refresh_count == 1
    assert harness.states == ["validating", "submitting", "settling", "idle"]
    assert [s.kind for s in harness.feedback_log] == ["in_progress", "success"]
    assert harness.feedback.state.message == "Deed minted successfully!"
    (deed,) = harness.registry.deeds
    assert deed.id == result.receipt.created[0]
    assert (deed.property_address, deed.title_status, deed.property_value) == (
        "12 Main St",
        "clear",
        250000,
    )
    assert harness.orchestrator.pending_operation is None
    assert harness.orchestrator.busy is False


def test_mint_allows_empty_title_status(harness: _Harness) -> None:
    assert harness.orchestrator.mint(ALICE, "12 Main St", "", 1).ok
    assert harness.registry.deeds[0].title_status == ""


def test_update_value_rejects_bad_input_without_ledger_call(harness: _Harness) -> None:
    deed_id = harness.ledger.put_object(ALICE, DEED_FIELDS)

    result = harness.orchestrator.update_property_value(deed_id, "-5")

    assert result.status == "failed"
    assert isinstance(result.error, InvalidInput)
    assert result.error.field == "property_value"
    harness.signer.assert_not_called()
    assert harness.ledger.submitted == []
    assert harness.refresh_count == 0
    assert harness.feedback.state.is_error
    assert harness.orchestrator.state == "idle"


@pytest.mark.parametrize(
    "call",
    [
        lambda o: o.update_title_status("0xd1", "   "),
        lambda o: o.transfer("", BOB),
        lambda o: o.transfer("0xd1", None),
        lambda o: o.mint(ALICE, "", "clear", 1),
        lambda o: o.mint(ALICE, "12 Main St", "clear", "12.5"),
    ],
)
def test_invalid_intents_fail_validation(harness: _Harness, call) -> None:
    result = call(harness.orchestrator)

    assert isinstance(result.error, InvalidInput)
    harness.signer.assert_not_called()


def test_mint_with_unconfigured_registry_makes_no_ledger_call() -> None:
    harness = _Harness(DeedModule(""))

    result = harness.orchestrator.mint(ALICE, "12 Main St", "clear", 1)

    assert isinstance(result.error, MisconfiguredRegistry)
    assert harness.feedback.state.message == (
        "PACKAGE_ID is not set. Please check your environment variables."
    )
    harness.signer.assert_not_called()
    assert harness.refresh_count == 0


def test_intent_requires_connected_wallet() -> None:
    harness = _Harness(connect=False)

    result = harness.orchestrator.transfer("0xd1", BOB)

    assert isinstance(result.error, NotConnected)
    assert harness.feedback.state.message == "Please connect your wallet first"
    harness.signer.assert_not_called()


def test_network_error_on_transfer_still_reconciles(harness: _Harness) -> None:
    deed_id = harness.ledger.put_object(ALICE, DEED_FIELDS)
    harness.registry.refresh()
    harness.ledger.fail_next(ApiTimeoutError("timeout"), applied=True)

    result = harness.orchestrator.transfer(deed_id, BOB)

    assert result.status == "failed"
    assert isinstance(result.error, NetworkError)
    assert harness.refresh_count == 2
    assert deed_id not in {d.id for d in harness.registry.deeds}
    assert harness.feedback.state.message == "Error: Request timed out. Check connection."
    assert harness.states[-2:] == ["failed", "idle"]


def test_ledger_rejection_refreshes_and_reports(harness: _Harness) -> None:
    deed_id = harness.ledger.put_object(BOB, DEED_FIELDS)

    result = harness.orchestrator.update_title_status(deed_id, "lien")

    assert isinstance(result.error, LedgerRejection)
    assert harness.refresh_count == 1
    assert harness.feedback.state.is_error
    assert harness.feedback.state.message.startswith("Error: Transaction ")


def test_ambiguous_mint_failure_warns_about_duplicates(harness: _Harness) -> None:
    harness.ledger.fail_next(ApiTimeoutError("timeout"), applied=True)

    result = harness.orchestrator.mint(ALICE, "12 Main St", "clear", 1)

    assert isinstance(result.error, NetworkError)
    assert "check your deeds before retrying" in harness.feedback.state.message
    # The write landed, so the reconciling refresh shows it.
    assert len(harness.registry.deeds) == 1


def test_rejected_mint_has_no_duplicate_hint(harness: _Harness) -> None:
    harness.ledger.fail_next(ApiExecutionError("Transaction X failed: MoveAbort(2)"))

    harness.orchestrator.mint(ALICE, "12 Main St", "clear", 1)

    assert harness.feedback.state.message == "Error: Transaction X failed: MoveAbort(2)"


def test_user_declined_reports_cancelled_without_refresh(harness: _Harness) -> None:
    harness.signer.side_effect = UserDeclined()

    result = harness.orchestrator.mint(ALICE, "12 Main St", "clear", 1)

    assert result.status == "cancelled"
    assert harness.refresh_count == 0
    assert harness.feedback.state.kind == "cancelled"
    assert harness.feedback.state.message == "Transaction cancelled in wallet."
    assert harness.states == ["validating", "submitting", "idle"]


def test_success_with_failed_refresh_reports_both(harness: _Harness) -> None:
    harness.ledger.fail_next(ApiTimeoutError("timeout"), path="query")

    result = harness.orchestrator.mint(ALICE, "12 Main St", "clear", 1)

    assert result.ok
    assert harness.feedback.state.is_error
    assert harness.feedback.state.message == (
        "Deed minted successfully! Error fetching deeds: Request timed out. Check connection."
    )


def test_sign_timeout_surfaces_as_cancelled() -> None:
    harness = _Harness(sign_timeout_s=0.05)

    def slow_signer(call, sender, token):
        token.wait(5)
        token.raise_if_cancelled()
        raise AssertionError("token never expired")

    harness.wallet.set_signer(slow_signer)

    result = harness.orchestrator.mint(ALICE, "12 Main St", "clear", 1)

    assert result.status == "cancelled"
    assert result.error.message == "Wallet approval timed out."
    assert harness.ledger.submitted == []


def test_cancel_is_noop_when_idle(harness: _Harness) -> None:
    assert harness.orchestrator.cancel() is False


def test_pending_operation_describes_in_flight_intent(harness: _Harness) -> None:
    seen = []

    def inspecting_signer(call, sender, token):
        seen.append(harness.orchestrator.pending_operation)
        return harness.ledger.signer(call, sender, token)

    harness.wallet.set_signer(inspecting_signer)
    deed_id = harness.ledger.put_object(ALICE, DEED_FIELDS)

    harness.orchestrator.update_property_value(deed_id, "300")

    (pending,) = seen
    assert pending.kind == "update_value"
    assert pending.target_deed_id == deed_id
    assert pending.payload == {"property_value": 300}
    assert pending.call.function == "update_property_value"
    assert harness.orchestrator.pending_operation is None
    assert [d.property_value for d in harness.registry.deeds if d.id == deed_id] == [300]
