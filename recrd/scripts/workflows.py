"""End-to-end operator scenarios.

Each workflow is a straight line: read handed-off ids, build one batch,
submit it, check the object changes, and persist any new ids for the next
run. Options not supplied fall back to the literal values below.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable

import display_ops
import master_ops
import profile_ops
import receipt_ops
from error_map import ObjectNotFound
from event_log import log_event
from id_store import read_id, read_ids, write_ids
from recrd_config import ACCESS, SALE_STATUS
from sui_keys import address_from_private_key, generate_addresses

DEFAULT_USER_ID = "ab12345"
DEFAULT_USERNAME = "alina-chan"
MINT_USER_ID = "testUserId"
MINT_USERNAME = "testUsername"
BUYER_USER_ID = "buyer12345"
BUYER_USERNAME = "buyer-chan"
DEFAULT_NEW_TITLE = "This is a new title"
DEFAULT_BATCH_SIZE = 100
DEFAULT_COMBO_NEW = 81
DEFAULT_COMBO_AUTHORIZE = 19

DEFAULT_MINT = {
    "kind": "Video",
    "title": "Test Video",
    "description": "This is a test video",
    "image_url": "https://example.com/image.jpg",
    "media_url": "https://example.com/video.mp4",
    "hashtags": ["test", "video"],
    "royalty_percentage_bp": 1000,
    "sale_status": SALE_STATUS["RETAINED"],
}

Workflow = Callable[..., dict[str, Any]]

log = logging.getLogger("recrd.workflow")


def _scratch_id(session, options: dict[str, Any], key: str, name: str) -> str:
    value = options.get(key)
    return value if value else read_id(session.config.scratch_dir, name)


def _object_ids(changes: list[dict[str, Any]]) -> list[str]:
    return [change["objectId"] for change in changes]


def _user_address(session) -> str:
    return address_from_private_key(session.user_key)


# === profile ===


def profile_new(session, **options: Any) -> dict[str, Any]:
    created = profile_ops.create_profiles(
        session,
        options.get("user_id") or DEFAULT_USER_ID,
        options.get("username") or DEFAULT_USERNAME,
    )
    ids = _object_ids(created)
    write_ids(session.config.scratch_dir, "profile", ids[0])
    log_event(log, "workflow.profile_new", profile_id=ids[0])
    return {"profile": created[0]}


def profile_batch_new(session, **options: Any) -> dict[str, Any]:
    count = int(options.get("count") or DEFAULT_BATCH_SIZE)
    user_ids = [str(uuid.uuid4()) for _ in range(count)]
    created = profile_ops.create_profiles(session, user_ids, [""] * count)
    ids = _object_ids(created)
    write_ids(session.config.scratch_dir, "profile", ids)
    return {"profile_ids": ids, "count": len(ids)}


def profile_update(session, **options: Any) -> dict[str, Any]:
    profile_id = _scratch_id(session, options, "profile_id", "profile")
    field = options.get("field") or "watchTime"
    value = options.get("value", 3600)
    return profile_ops.update_profile(session, profile_id, field, value, options.get("address"))


def profile_get(session, **options: Any) -> dict[str, Any]:
    profile_id = _scratch_id(session, options, "profile_id", "profile")
    return profile_ops.get_profile_by_id(session.call, profile_id)


def profile_authorize(session, **options: Any) -> dict[str, Any]:
    profile_id = _scratch_id(session, options, "profile_id", "profile")
    user = options.get("user") or _user_address(session)
    level = options.get("access_level", ACCESS["DEFAULT_ACCESS"])
    response = profile_ops.authorize_users(session, profile_id, user, level)
    return {"digest": response.get("digest"), "profile": profile_ops.get_profile_by_id(session.call, profile_id)}


def profile_batch_authorize(session, **options: Any) -> dict[str, Any]:
    profile_ids = options.get("profile_ids") or read_ids(session.config.scratch_dir, "profile")
    users = [entry["address"] for entry in generate_addresses(len(profile_ids))]
    levels = [options.get("access_level", ACCESS["UPDATE_ACCESS"])] * len(profile_ids)
    response = profile_ops.authorize_users(session, profile_ids, users, levels)
    return {"digest": response.get("digest"), "authorized": dict(zip(profile_ids, users))}


def profile_deauthorize(session, **options: Any) -> dict[str, Any]:
    profile_id = _scratch_id(session, options, "profile_id", "profile")
    user = options.get("user") or _user_address(session)
    return profile_ops.deauthorize_user(session, profile_id, user)


def profile_batch_combo(session, **options: Any) -> dict[str, Any]:
    new_count = int(options.get("new_count", DEFAULT_COMBO_NEW))
    authorize_count = int(options.get("authorize_count", DEFAULT_COMBO_AUTHORIZE))
    user_ids = [str(uuid.uuid4()) for _ in range(new_count)]
    profile_ids = read_ids(session.config.scratch_dir, "profile")[:authorize_count] if authorize_count else []
    addresses = [entry["address"] for entry in generate_addresses(len(profile_ids))]
    response = profile_ops.batch_combo(
        session,
        user_ids,
        [""] * new_count,
        profile_ids,
        addresses,
        [ACCESS["UPDATE_ACCESS"]] * len(profile_ids),
    )
    created = _object_ids(profile_ops.find_changes(response, profile_ops.profile_type(session.config), "created"))
    return {"digest": response.get("digest"), "created": created, "authorized": dict(zip(profile_ids, addresses))}


def profile_batch_burn(session, **options: Any) -> dict[str, Any]:
    profile_ids = options.get("profile_ids") or read_ids(session.config.scratch_dir, "profile")
    response = profile_ops.batch_burn(session, profile_ids)
    return {"digest": response.get("digest"), "burned": profile_ids}


def profile_receive(session, **options: Any) -> dict[str, Any]:
    profile_id = _scratch_id(session, options, "profile_id", "profile")
    master_id = _scratch_id(session, options, "master_id", "master")
    response = profile_ops.receive_master(session, profile_id, master_id, session.user_key)
    return {"digest": response.get("digest"), "master_id": master_id, "recipient": _user_address(session)}


# === master / metadata ===


def master_mint(session, **options: Any) -> dict[str, Any]:
    profile_id = options.get("profile_id")
    if not profile_id:
        created = profile_ops.create_profiles(session, MINT_USER_ID, MINT_USERNAME)
        profile_id = created[0]["objectId"]
        write_ids(session.config.scratch_dir, "profile", profile_id)
        log_event(log, "workflow.creator_profile", profile_id=profile_id)

    params = {**DEFAULT_MINT, **{k: v for k, v in options.items() if k in DEFAULT_MINT and v is not None}}
    params["creator_profile_id"] = profile_id
    minted = master_ops.mint_master(session, params)
    write_ids(session.config.scratch_dir, "master", minted["master"]["objectId"])
    if minted["metadata"]:
        write_ids(session.config.scratch_dir, "metadata", minted["metadata"]["objectId"])
    return {"profile_id": profile_id, **minted}


def master_get(session, **options: Any) -> dict[str, Any]:
    return master_ops.get_master_by_id(session.call, _scratch_id(session, options, "master_id", "master"))


def metadata_get(session, **options: Any) -> dict[str, Any]:
    return master_ops.get_metadata_by_id(session.call, _scratch_id(session, options, "metadata_id", "metadata"))


def master_set_on_sale(session, **options: Any) -> dict[str, Any]:
    return master_ops.set_sale_status(
        session,
        _scratch_id(session, options, "profile_id", "profile"),
        _scratch_id(session, options, "master_id", "master"),
        SALE_STATUS["ON_SALE"],
    )


def master_retain(session, **options: Any) -> dict[str, Any]:
    return master_ops.retain_master(
        session,
        _scratch_id(session, options, "profile_id", "profile"),
        _scratch_id(session, options, "master_id", "master"),
    )


def metadata_set_title_and_sync(session, **options: Any) -> dict[str, Any]:
    profile_id = _scratch_id(session, options, "profile_id", "profile")
    master_id = _scratch_id(session, options, "master_id", "master")
    metadata_id = _scratch_id(session, options, "metadata_id", "metadata")
    metadata = master_ops.set_metadata_title(session, metadata_id, options.get("title") or DEFAULT_NEW_TITLE)
    master = master_ops.sync_master_title(session, profile_id, master_id, metadata_id)
    return {"metadata": metadata, "master": master}


def master_receive_and_burn(session, **options: Any) -> dict[str, Any]:
    master_id = _scratch_id(session, options, "master_id", "master")
    response = master_ops.receive_and_burn(session, _scratch_id(session, options, "profile_id", "profile"), master_id)
    return {"digest": response.get("digest"), "burned": master_id}


def metadata_burn(session, **options: Any) -> dict[str, Any]:
    metadata_id = _scratch_id(session, options, "metadata_id", "metadata")
    response = master_ops.burn_metadata(session, metadata_id)
    return {"digest": response.get("digest"), "burned": metadata_id}


# === receipt / buy ===


def receipt_mint(session, **options: Any) -> dict[str, Any]:
    master_id = _scratch_id(session, options, "master_id", "master")
    buyer_profile = options.get("buyer_profile_id")
    if not buyer_profile:
        created = profile_ops.create_profiles(session, BUYER_USER_ID, BUYER_USERNAME)
        buyer_profile = created[0]["objectId"]
    write_ids(session.config.scratch_dir, "buyer_profile", buyer_profile)
    receipt = receipt_ops.new_receipt(session, master_id, buyer_profile)
    return {"buyer_profile_id": buyer_profile, "receipt": receipt}


def master_buy(session, **options: Any) -> dict[str, Any]:
    seller_profile = _scratch_id(session, options, "profile_id", "profile")
    buyer_profile = _scratch_id(session, options, "buyer_profile_id", "buyer_profile")
    receipts = receipt_ops.find_receipts(session.call, session.config, buyer_profile)
    if not receipts:
        raise ObjectNotFound("No Receipt objects found for the buyer profile.", details={"profile": buyer_profile})
    receipt = receipts[0]
    response = profile_ops.buy_master(session, seller_profile, receipt["masterId"], buyer_profile, receipt["id"])
    return {"digest": response.get("digest"), "receipt": receipt}


def display_update(session, **options: Any) -> dict[str, Any]:
    return display_ops.update_displays(session)


WORKFLOWS: dict[str, Workflow] = {
    "profile-new": profile_new,
    "profile-batch-new": profile_batch_new,
    "profile-update": profile_update,
    "profile-get": profile_get,
    "profile-authorize": profile_authorize,
    "profile-batch-authorize": profile_batch_authorize,
    "profile-deauthorize": profile_deauthorize,
    "profile-batch-combo": profile_batch_combo,
    "profile-batch-burn": profile_batch_burn,
    "profile-receive": profile_receive,
    "master-mint": master_mint,
    "master-get": master_get,
    "metadata-get": metadata_get,
    "master-set-on-sale": master_set_on_sale,
    "master-retain": master_retain,
    "metadata-set-title-and-sync": metadata_set_title_and_sync,
    "master-receive-and-burn": master_receive_and_burn,
    "metadata-burn": metadata_burn,
    "receipt-mint": receipt_mint,
    "master-buy": master_buy,
    "display-update": display_update,
}


def run_workflow(name: str, session, **options: Any) -> dict[str, Any]:
    log_event(log, "workflow.start", workflow=name)
    result = WORKFLOWS[name](session, **options)
    log_event(log, "workflow.done", workflow=name)
    return result
