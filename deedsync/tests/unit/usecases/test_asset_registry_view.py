from __future__ import annotations

import threading
from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest

from deedsync.adapters.api_errors import ApiTimeoutError
from deedsync.adapters.wallet_session import WalletSession
from deedsync.domain.entities import DeedModule
from deedsync.domain.errors import MisconfiguredRegistry, NetworkError
from deedsync.usecases.asset_registry import AssetRegistryView

MODULE = DeedModule("0xpkg")
DEED_TYPE = MODULE.asset_type


def _record(object_id: str, value: int = 1, *, type_tag: str = DEED_TYPE, owner: str = "0xa") -> Dict[str, Any]:
    return {
        "objectId": object_id,
        "typeTag": type_tag,
        "owner": owner,
        "fields": {
            "property_address": f"{object_id} street",
            "title_status": "clear",
            "property_value": str(value),
        },
    }


def _view(records: List[Dict[str, Any]], *, connect: bool = True):
    port = MagicMock()
    port.query_owned_assets.return_value = records
    wallet = WalletSession()
    if connect:
        wallet.connect("0xa")
    updates = []
    view = AssetRegistryView(port, wallet, MODULE, on_update=updates.append)
    return view, port, wallet, updates


def test_starts_empty_and_replaces_on_refresh() -> None:
    view, port, _, updates = _view([_record("0xd1"), _record("0xd2")])

    assert view.deeds == ()
    snapshot = view.refresh()

    port.query_owned_assets.assert_called_once_with("0xa")
    assert [d.id for d in snapshot] == ["0xd1", "0xd2"]
    assert view.deeds == snapshot
    assert updates == [snapshot]


def test_refresh_replaces_wholesale_without_field_bleed() -> None:
    view, port, _, _ = _view([_record("0xd1", 100), _record("0xd2", 200)])
    (first, _) = view.refresh()

    port.query_owned_assets.return_value = [_record("0xd1", 150)]
    (updated,) = view.refresh()

    assert updated.id == "0xd1"
    assert updated.property_value == 150
    assert updated is not first
    assert view.deeds == (updated,)


def test_refresh_drops_foreign_types_and_malformed_objects() -> None:
    view, _, _, _ = _view(
        [
            _record("0xd1"),
            _record("0xcoin", type_tag="0x2::coin::Coin<0x2::sui::SUI>"),
            {"objectId": "0xbad", "typeTag": DEED_TYPE, "fields": {"property_value": "x"}},
        ]
    )

    assert [d.id for d in view.refresh()] == ["0xd1"]


def test_refresh_while_disconnected_clears_without_query() -> None:
    view, port, wallet, _ = _view([_record("0xd1")])
    view.refresh()

    wallet.disconnect()
    port.query_owned_assets.reset_mock()
    assert view.refresh() == ()
    port.query_owned_assets.assert_not_called()


def test_disconnect_clears_and_reconnect_does_not_auto_populate() -> None:
    view, port, wallet, updates = _view([_record("0xd1")])
    view.refresh()

    wallet.disconnect()
    assert view.deeds == ()
    assert updates[-1] == ()

    port.query_owned_assets.reset_mock()
    wallet.connect("0xa")
    assert view.deeds == ()
    port.query_owned_assets.assert_not_called()

    view.refresh()
    assert [d.id for d in view.deeds] == ["0xd1"]


def test_account_switch_clears_cache() -> None:
    view, _, wallet, _ = _view([_record("0xd1")])
    view.refresh()

    wallet.connect("0xb")

    assert view.deeds == ()


def test_refresh_failure_maps_to_network_error_and_keeps_cache() -> None:
    view, port, _, _ = _view([_record("0xd1")])
    view.refresh()
    port.query_owned_assets.side_effect = ApiTimeoutError("timeout")

    with pytest.raises(NetworkError):
        view.refresh()
    assert [d.id for d in view.deeds] == ["0xd1"]


def test_refresh_requires_configured_registry() -> None:
    port = MagicMock()
    wallet = WalletSession()
    wallet.connect("0xa")
    view = AssetRegistryView(port, wallet, DeedModule(""))

    with pytest.raises(MisconfiguredRegistry):
        view.refresh()
    port.query_owned_assets.assert_not_called()


def test_query_started_before_disconnect_is_discarded() -> None:
    entered = threading.Event()
    release = threading.Event()
    wallet = WalletSession()
    wallet.connect("0xa")

    class _SlowPort:
        def query_owned_assets(self, address):
            entered.set()
            release.wait(5)
            return [_record("0xd1")]

    view = AssetRegistryView(_SlowPort(), wallet, MODULE)
    worker = threading.Thread(target=view.refresh)
    worker.start()
    assert entered.wait(5)

    wallet.disconnect()
    release.set()
    worker.join(5)

    assert view.deeds == ()


class _DisconnectsOnRead(WalletSession):
    """Disconnects right after handing out the address once."""

    def __init__(self) -> None:
        super().__init__()
        self.armed = False

    @property
    def active_address(self):
        address = super().active_address
        if self.armed:
            self.armed = False
            self.disconnect()
        return address


def test_disconnect_while_reading_address_keeps_cache_empty() -> None:
    port = MagicMock()
    port.query_owned_assets.return_value = [_record("0xd1")]
    wallet = _DisconnectsOnRead()
    wallet.connect("0xa")
    view = AssetRegistryView(port, wallet, MODULE)
    wallet.armed = True

    assert view.refresh() == ()

    assert wallet.is_connected is False
    assert view.deeds == ()


def test_account_switch_during_query_discards_result() -> None:
    wallet = WalletSession()
    wallet.connect("0xa")

    class _SwitchingPort:
        def query_owned_assets(self, address):
            wallet.connect("0xb")
            return [_record("0xd1", owner=address)]

    view = AssetRegistryView(_SwitchingPort(), wallet, MODULE)

    assert view.refresh() == ()
    assert view.deeds == ()
    assert wallet.active_address == "0xb"


def test_close_detaches_from_wallet_events() -> None:
    view, _, wallet, _ = _view([_record("0xd1")])
    view.refresh()

    view.close()
    wallet.disconnect()

    assert [d.id for d in view.deeds] == ["0xd1"]
