"""Receipt issuing and lookup."""

from __future__ import annotations

from typing import Any

from error_map import ObjectNotFound, PreconditionError
from object_changes import first_change, require_success
from object_queries import get_object, get_owned_objects_by_type, move_fields, move_type
from ptb import move_call, object_ref, pure, target
from recrd_config import RecrdConfig
from sui_transport import RpcCaller

RECEIPT_FIELDS = {"masterId": "master_id", "userProfile": "user_profile"}


def receipt_type(config: RecrdConfig) -> str:
    return f"{config.package_id}::receipt::Receipt"


def build_new_receipt(config: RecrdConfig, master_id: str, profile_id: str) -> list[dict]:
    if not config.registry:
        raise PreconditionError("REGISTRY must be configured to issue receipts")
    return [
        move_call(
            target(config.package_id, "receipt", "new"),
            [
                object_ref(config.admin_cap),
                pure(master_id, "id"),
                pure(profile_id, "id"),
                object_ref(config.registry),
            ],
        )
    ]


def project_receipt(data: dict[str, Any]) -> dict[str, Any]:
    fields = move_fields(data)
    out: dict[str, Any] = {"id": data.get("objectId")}
    for camel, raw in RECEIPT_FIELDS.items():
        out[camel] = fields.get(raw)
    return out


def get_receipt_by_id(call: RpcCaller, receipt_id: str) -> dict[str, Any]:
    data = get_object(call, receipt_id)
    if "::receipt::Receipt" not in move_type(data):
        raise ObjectNotFound(f"object {receipt_id} is not a Receipt")
    return project_receipt({**data, "objectId": receipt_id})


def find_receipts(call: RpcCaller, config: RecrdConfig, profile_id: str) -> list[dict[str, Any]]:
    """Receipts held by a profile object."""
    owned = get_owned_objects_by_type(call, profile_id, receipt_type(config))
    return [project_receipt(data) for data in owned]


def new_receipt(session, master_id: str, profile_id: str) -> dict[str, Any]:
    steps = build_new_receipt(session.config, master_id, profile_id)
    response = session.submit(steps, signer_key=session.admin_key, action="receipt mint")
    require_success(response, action="Receipt creation")
    return first_change(response, "::receipt::Receipt", "created", action="Receipt creation")
