"""Marshal deed intents into contract call descriptors.

Pure functions: each intent maps to exactly one named function on the deed
module with positionally typed arguments. Inputs are expected to be
validated already; no effect of the call is interpreted here.
"""

from __future__ import annotations

from deedsync.domain.entities import CallArgument, DeedModule, MoveCall
from deedsync.domain.ports import Address, ObjectId

MINT_FUNCTION = "mint_deed"
TRANSFER_FUNCTION = "transfer_deed"
UPDATE_STATUS_FUNCTION = "update_title_status"
UPDATE_VALUE_FUNCTION = "update_property_value"


def build_mint_call(
    module: DeedModule,
    owner: Address,
    property_address: str,
    title_status: str,
    property_value: int,
) -> MoveCall:
    return MoveCall(
        target=module.target(MINT_FUNCTION),
        arguments=(
            CallArgument("address", owner),
            CallArgument("string", property_address),
            CallArgument("string", title_status),
            CallArgument("u64", property_value),
        ),
    )


def build_transfer_call(module: DeedModule, deed_id: ObjectId, recipient: Address) -> MoveCall:
    return MoveCall(
        target=module.target(TRANSFER_FUNCTION),
        arguments=(CallArgument("object", deed_id), CallArgument("address", recipient)),
    )


def build_update_status_call(module: DeedModule, deed_id: ObjectId, new_status: str) -> MoveCall:
    return MoveCall(
        target=module.target(UPDATE_STATUS_FUNCTION),
        arguments=(CallArgument("object", deed_id), CallArgument("string", new_status)),
    )


def build_update_value_call(module: DeedModule, deed_id: ObjectId, new_value: int) -> MoveCall:
    return MoveCall(
        target=module.target(UPDATE_VALUE_FUNCTION),
        arguments=(CallArgument("object", deed_id), CallArgument("u64", new_value)),
    )


__all__ = [
    "MINT_FUNCTION",
    "TRANSFER_FUNCTION",
    "UPDATE_STATUS_FUNCTION",
    "UPDATE_VALUE_FUNCTION",
    "build_mint_call",
    "build_transfer_call",
    "build_update_status_call",
    "build_update_value_call",
]
