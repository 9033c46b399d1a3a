"""Command line entry point.

``deedsync list <address>`` prints the deeds held by an address using the
configured ledger node. ``deedsync demo`` runs a mint, update and transfer
against the in-memory ledger so the whole flow can be seen without a wallet.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from ..adapters.ledger_mock import LedgerMock
from ..adapters.storage_local import StorageLocal
from ..domain.ports import UseCaseError
from ..utils.logging import apply_preferences, configure_root
from ..viewmodels.deeds_vm import DeedRow
from ..viewmodels.settings_vm import SettingsVM
from .controller import AppController

_log = logging.getLogger(__name__)

DEMO_OWNER = "0x" + "a1" * 32
DEMO_BUYER = "0x" + "b2" * 32
DEMO_PACKAGE = "0x" + "de" * 32


def load_settings(prefs_dir: str, args: argparse.Namespace) -> SettingsVM:
    """Layer saved preferences, ``DEEDSYNC_*`` env vars, then CLI flags."""
    settings = SettingsVM()
    settings.apply_dict(StorageLocal(prefs_dir).load_user_prefs())
    settings.apply_env()
    if getattr(args, "rpc_url", None):
        settings.rpc_url = args.rpc_url
    if getattr(args, "package_id", None):
        settings.package_id = args.package_id
    return settings


def format_rows(rows: Sequence[DeedRow]) -> List[str]:
    if not rows:
        return ["No deeds found."]
    lines = []
    for deed_id, property_address, title_status, value, owner in rows:
        lines.append(f"{deed_id}  {property_address}  [{title_status}]  {value}  owner={owner}")
    return lines


def cmd_list(settings: SettingsVM, address: str) -> int:
    controller = AppController(settings)
    if not controller.ensure_ready():
        print(f"Invalid settings: RPC URL {settings.rpc_url!r}", file=sys.stderr)
        return 2
    # Read-only session: no signer is attached.
    controller.wallet.connect(address)
    try:
        controller.registry.refresh()
    except UseCaseError as exc:
        print(f"Error fetching deeds: {exc.message}", file=sys.stderr)
        return 1
    for line in format_rows(controller.deeds_vm.rows()):
        print(line)
    return 0


def cmd_demo(settings: SettingsVM) -> int:
    settings.package_id = settings.package_id or DEMO_PACKAGE
    ledger = LedgerMock(settings.deed_module)
    controller = AppController(settings, signer=ledger.signer, ledger_port=ledger)
    controller.ensure_ready()
    vm = controller.deeds_vm
    controller.wallet.connect(DEMO_OWNER)

    steps = [
        lambda: vm.cmd_mint("12 Main St", "clear", "250000"),
        lambda: vm.cmd_update_property_value(vm.rows()[0][0], "275000"),
        lambda: vm.cmd_update_title_status(vm.rows()[0][0], "lien recorded"),
        lambda: vm.cmd_transfer(vm.rows()[0][0], DEMO_BUYER),
    ]
    for step in steps:
        result = step()
        print(f"{result.kind}: {vm.feedback_state.message}")
        for line in format_rows(vm.rows()):
            print(f"  {line}")
        if not result.ok:
            return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="deedsync", description="Real-estate deed ledger client")
    parser.add_argument("--prefs-dir", default=".", help="Directory holding deedsync_prefs.json")
    parser.add_argument("--log-level", default="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="List deeds owned by an address")
    list_parser.add_argument("address")
    list_parser.add_argument("--rpc-url")
    list_parser.add_argument("--package-id")

    sub.add_parser("demo", help="Run the mint/update/transfer flow on an in-memory ledger")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_root(args.log_level)
    settings = load_settings(args.prefs_dir, args)
    if settings.debug_logging:
        apply_preferences(True)
    _log.debug("Settings: %s", settings.config)

    if args.command == "list":
        return cmd_list(settings, args.address)
    return cmd_demo(settings)


if __name__ == "__main__":
    sys.exit(main())
