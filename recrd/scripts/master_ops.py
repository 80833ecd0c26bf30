"""Master / Metadata batch builders, operations and projections.

Masters owned by a Profile are mutated through a borrow: the first step
borrows the Master and a promise from the Profile, the middle step mutates
the borrowed Master, and the last step returns both to the Profile. All
three steps travel in one batch.
"""

from __future__ import annotations

import logging
from typing import Any

from error_map import ObjectNotFound, PreconditionError
from event_log import log_event
from object_changes import find_changes, require_created, require_success, type_argument
from object_queries import get_object, move_fields, move_type
from ptb import move_call, object_ref, pure, receiving_ref, step_result, target, transfer_objects
from recrd_config import MEDIA_TYPES, SALE_STATUS, RecrdConfig
from sui_transport import RpcCaller

OPTION_NONE = "0x1::option::none"
OBJECT_ID_TYPE = "0x2::object::ID"
MAX_ROYALTY_BP = 10_000

MINT_FIELDS = (
    "title",
    "description",
    "image_url",
    "media_url",
    "hashtags",
    "creator_profile_id",
    "royalty_percentage_bp",
    "sale_status",
)

SHARED_FIELDS = {
    "title": "title",
    "description": "description",
    "imageUrl": "image_url",
    "mediaUrl": "media_url",
    "hashtags": "hashtags",
    "creatorProfileId": "creator_profile_id",
    "royaltyPercentageBp": "royalty_percentage_bp",
}
MASTER_FIELDS = {**SHARED_FIELDS, "metadataRef": "metadata_ref", "saleStatus": "sale_status"}
METADATA_FIELDS = {
    **SHARED_FIELDS,
    "masterMetadataParent": "master_metadata_parent",
    "masterMetadataOrigin": "master_metadata_origin",
}

log = logging.getLogger("recrd.master")


def _check_sale_status(status: Any) -> int:
    if status not in SALE_STATUS.values() or isinstance(status, bool):
        raise PreconditionError(f"sale status must be one of {SALE_STATUS}, got {status!r}")
    return status


def object_media_type(call: RpcCaller, object_id: str, wrapper: str = "Master") -> str:
    """Media type tag T of a `Master<T>` or `Metadata<T>` object."""
    media_type = type_argument(move_type(get_object(call, object_id)), wrapper)
    if not media_type:
        raise ObjectNotFound(f"object {object_id} is not a {wrapper}")
    return media_type


# === builders ===


def build_mint_master(config: RecrdConfig, params: dict[str, Any]) -> list[dict]:
    missing = [key for key in ("kind", *MINT_FIELDS) if key not in params]
    if missing:
        raise PreconditionError(f"mint params missing: {', '.join(missing)}")
    if params["kind"] not in MEDIA_TYPES:
        raise PreconditionError(f"media type must be one of {list(MEDIA_TYPES)}, got {params['kind']!r}")
    royalty = params["royalty_percentage_bp"]
    if isinstance(royalty, bool) or not isinstance(royalty, int) or not 0 <= royalty <= MAX_ROYALTY_BP:
        raise PreconditionError(f"royalty_percentage_bp must be within 0..{MAX_ROYALTY_BP}, got {royalty!r}")

    creator = params["creator_profile_id"]
    return [
        move_call(OPTION_NONE, [], [OBJECT_ID_TYPE]),
        move_call(OPTION_NONE, [], [OBJECT_ID_TYPE]),
        move_call(
            target(config.package_id, "master", "new"),
            [
                object_ref(config.admin_cap),
                pure(params["title"], "string"),
                pure(params["description"], "string"),
                pure(params["image_url"], "string"),
                pure(params["media_url"], "string"),
                pure(list(params["hashtags"]), "vector<string>"),
                pure(creator, "id"),
                pure(royalty, "u16"),
                step_result(0),
                step_result(1),
                pure(_check_sale_status(params["sale_status"]), "u8"),
            ],
            [config.media_type(params["kind"])],
        ),
        transfer_objects([step_result(2)], pure(creator, "address")),
    ]


def _borrowed(
    config: RecrdConfig,
    profile_id: str,
    master_id: str,
    media_type: str,
    mutate: dict[str, Any],
) -> list[dict]:
    borrow = move_call(
        target(config.package_id, "profile", "borrow_master"),
        [object_ref(profile_id), receiving_ref(master_id)],
        [media_type],
    )
    give_back = move_call(
        target(config.package_id, "profile", "return_master"),
        [object_ref(profile_id), step_result(0, 0), step_result(0, 1)],
        [media_type],
    )
    return [borrow, mutate, give_back]


def build_set_sale_status(
    config: RecrdConfig,
    profile_id: str,
    master_id: str,
    media_type: str,
    status: int,
) -> list[dict]:
    mutate = move_call(
        target(config.package_id, "master", "set_sale_status"),
        [step_result(0, 0), pure(_check_sale_status(status), "u8")],
        [media_type],
    )
    return _borrowed(config, profile_id, master_id, media_type, mutate)


def build_retain_master(config: RecrdConfig, profile_id: str, master_id: str, media_type: str) -> list[dict]:
    return build_set_sale_status(config, profile_id, master_id, media_type, SALE_STATUS["RETAINED"])


def build_set_metadata_title(config: RecrdConfig, metadata_id: str, media_type: str, title: str) -> list[dict]:
    return [
        move_call(
            target(config.package_id, "master", "set_metadata_title"),
            [object_ref(config.admin_cap), object_ref(metadata_id), pure(title, "string")],
            [media_type],
        )
    ]


def build_sync_master_title(
    config: RecrdConfig,
    profile_id: str,
    master_id: str,
    metadata_id: str,
    media_type: str,
) -> list[dict]:
    mutate = move_call(
        target(config.package_id, "master", "sync_title"),
        [step_result(0, 0), object_ref(metadata_id)],
        [media_type],
    )
    return _borrowed(config, profile_id, master_id, media_type, mutate)


def build_burn_master(config: RecrdConfig, master_id: str, media_type: str) -> list[dict]:
    return [
        move_call(
            target(config.package_id, "master", "burn"),
            [object_ref(config.admin_cap), object_ref(master_id)],
            [media_type],
        )
    ]


def build_receive_and_burn(
    config: RecrdConfig,
    profile_id: str,
    master_id: str,
    media_type: str,
) -> list[dict]:
    """Pull a Master out of its Profile and burn it in the same batch."""
    return [
        move_call(
            target(config.package_id, "profile", "admin_receive_master"),
            [object_ref(config.admin_cap), object_ref(profile_id), receiving_ref(master_id)],
            [media_type],
        ),
        move_call(
            target(config.package_id, "master", "burn"),
            [object_ref(config.admin_cap), step_result(0)],
            [media_type],
        ),
    ]


def build_burn_metadata(config: RecrdConfig, metadata_id: str, media_type: str) -> list[dict]:
    return [
        move_call(
            target(config.package_id, "master", "burn_metadata"),
            [object_ref(config.admin_cap), object_ref(metadata_id)],
            [media_type],
        )
    ]


# === projections ===


def _project(call: RpcCaller, object_id: str, wrapper: str, field_map: dict[str, str]) -> dict[str, Any]:
    data = get_object(call, object_id)
    object_type = move_type(data)
    if f"::master::{wrapper}<" not in object_type:
        raise ObjectNotFound(f"object {object_id} is not a {wrapper}", details={"type": object_type})
    fields = move_fields(data)
    out: dict[str, Any] = {
        "id": object_id,
        "type": object_type,
        "mediaType": type_argument(object_type, wrapper),
    }
    for camel, raw in field_map.items():
        out[camel] = fields.get(raw)
    return out


def get_master_by_id(call: RpcCaller, master_id: str) -> dict[str, Any]:
    return _project(call, master_id, "Master", MASTER_FIELDS)


def get_metadata_by_id(call: RpcCaller, metadata_id: str) -> dict[str, Any]:
    return _project(call, metadata_id, "Metadata", METADATA_FIELDS)


# === operations ===


def mint_master(session, params: dict[str, Any]) -> dict[str, Any]:
    steps = build_mint_master(session.config, params)
    response = session.submit(steps, signer_key=session.admin_key, action="master mint")
    require_created(response, action="Master minting")
    masters = find_changes(response, "::master::Master<", "created")
    if not masters:
        raise ObjectNotFound(
            "Master minting failed or did not return expected result.",
            details={"digest": response.get("digest")},
        )
    metadata = find_changes(response, "::master::Metadata<", "created")
    if not metadata:
        log_event(log, "master.mint_without_metadata", digest=response.get("digest"))
    return {
        "digest": response.get("digest"),
        "master": masters[0],
        "metadata": metadata[0] if metadata else None,
    }


def set_sale_status(session, profile_id: str, master_id: str, status: int) -> dict[str, Any]:
    media_type = object_media_type(session.call, master_id)
    steps = build_set_sale_status(session.config, profile_id, master_id, media_type, status)
    response = session.submit(steps, signer_key=session.admin_key, action="master set sale status")
    require_success(response, action="Updating Master sale status")
    return get_master_by_id(session.call, master_id)


def retain_master(session, profile_id: str, master_id: str) -> dict[str, Any]:
    return set_sale_status(session, profile_id, master_id, SALE_STATUS["RETAINED"])


def set_metadata_title(session, metadata_id: str, title: str) -> dict[str, Any]:
    media_type = object_media_type(session.call, metadata_id, "Metadata")
    steps = build_set_metadata_title(session.config, metadata_id, media_type, title)
    response = session.submit(steps, signer_key=session.admin_key, action="metadata set title")
    require_success(response, action="Updating Metadata title")
    return get_metadata_by_id(session.call, metadata_id)


def sync_master_title(session, profile_id: str, master_id: str, metadata_id: str) -> dict[str, Any]:
    media_type = object_media_type(session.call, master_id)
    steps = build_sync_master_title(session.config, profile_id, master_id, metadata_id, media_type)
    response = session.submit(steps, signer_key=session.admin_key, action="master sync title")
    require_success(response, action="Syncing Master title")
    return get_master_by_id(session.call, master_id)


def receive_and_burn(session, profile_id: str, master_id: str) -> dict[str, Any]:
    media_type = object_media_type(session.call, master_id)
    steps = build_receive_and_burn(session.config, profile_id, master_id, media_type)
    response = session.submit(steps, signer_key=session.admin_key, action="master receive and burn")
    return require_success(response, action="Receiving and burning Master")


def burn_metadata(session, metadata_id: str) -> dict[str, Any]:
    media_type = object_media_type(session.call, metadata_id, "Metadata")
    steps = build_burn_metadata(session.config, metadata_id, media_type)
    response = session.submit(steps, signer_key=session.admin_key, action="metadata burn")
    return require_success(response, action="Burning Master Metadata")
