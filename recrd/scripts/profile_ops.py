"""Profile batch builders, profile operations and the Profile projection."""

from __future__ import annotations

import logging
from typing import Any

from error_map import ObjectNotFound, PreconditionError
from event_log import log_event
from master_ops import object_media_type
from object_changes import find_changes, first_change, require_created, require_success
from object_queries import get_dynamic_fields, get_object, move_fields
from ptb import move_call, object_ref, pure, receiving_ref, step_result, target, transfer_objects
from recrd_config import MAX_ACCESS_LEVEL, MIN_ACCESS_LEVEL, RecrdConfig
from sui_keys import address_from_private_key
from sui_transport import RpcCaller

# Contract functions for updating a single profile field.
PROFILE_UPDATE_FUNCTIONS = {
    "userId": "update_user_id",
    "username": "update_username",
    "watchTime": "update_watch_time",
    "videosWatched": "update_videos_watched",
    "advertsWatched": "update_adverts_watched",
    "numberOfFollowers": "update_number_of_followers",
    "numberOfFollowing": "update_number_of_following",
    "adRevenue": "update_ad_revenue",
    "commissionRevenue": "update_commission_revenue",
    "authorization": "update_authorization",
}

PROFILE_FIELDS = {
    "userId": "user_id",
    "username": "username",
    "watchTime": "watch_time",
    "videosWatched": "videos_watched",
    "advertsWatched": "adverts_watched",
    "numberOfFollowers": "number_of_followers",
    "numberOfFollowing": "number_of_following",
    "adRevenue": "ad_revenue",
    "commissionRevenue": "commission_revenue",
}

log = logging.getLogger("recrd.profile")


def profile_type(config: RecrdConfig) -> str:
    return f"{config.package_id}::profile::Profile"


def _parallel(**columns: Any) -> list[tuple[Any, ...]]:
    """Zip scalar-or-list columns; all must be lists of one length, or all scalars."""
    names = list(columns)
    is_list = [isinstance(columns[name], list) for name in names]
    joined = ", ".join(names)
    if any(is_list) and not all(is_list):
        raise PreconditionError(f"If one of {joined} is provided as an array, all must be arrays.")
    if not any(is_list):
        return [tuple(columns[name] for name in names)]
    lengths = {len(columns[name]) for name in names}
    if len(lengths) != 1:
        raise PreconditionError(f"The arrays for {joined} must be of the same length.")
    if lengths == {0}:
        raise PreconditionError(f"The arrays for {joined} must not be empty.")
    return list(zip(*(columns[name] for name in names)))


def _check_access_level(level: Any) -> int:
    if isinstance(level, bool) or not isinstance(level, int):
        raise PreconditionError(f"access level must be an integer, got {level!r}")
    if level < MIN_ACCESS_LEVEL or level > MAX_ACCESS_LEVEL:
        raise PreconditionError(
            f"Invalid access level specified: {level} (allowed {MIN_ACCESS_LEVEL}..{MAX_ACCESS_LEVEL})."
        )
    return level


def _new_profile_step(config: RecrdConfig, user_id: str, username: str) -> dict[str, Any]:
    return move_call(
        target(config.package_id, "profile", "new"),
        [object_ref(config.admin_cap), pure(user_id, "string"), pure(username, "string")],
    )


def _authorize_step(config: RecrdConfig, profile_id: str, user: str, level: Any) -> dict[str, Any]:
    return move_call(
        target(config.package_id, "profile", "authorize"),
        [
            object_ref(config.admin_cap),
            object_ref(profile_id),
            pure(user, "address"),
            pure(_check_access_level(level), "u8"),
        ],
    )


# === builders ===


def build_new_profiles(config: RecrdConfig, user_ids: str | list[str], usernames: str | list[str]) -> list[dict]:
    rows = _parallel(userId=user_ids, username=usernames)
    return [_new_profile_step(config, user_id, username) for user_id, username in rows]


def build_update_profile(
    config: RecrdConfig,
    profile_id: str,
    field: str,
    value: Any,
    address: str | None = None,
) -> list[dict]:
    function = PROFILE_UPDATE_FUNCTIONS.get(field)
    if not function:
        raise PreconditionError(
            f"Invalid update type specified: {field!r}; expected one of {sorted(PROFILE_UPDATE_FUNCTIONS)}"
        )
    call_target = target(config.package_id, "profile", function)

    if field == "userId":
        args = [object_ref(config.admin_cap), object_ref(profile_id), pure(value, "string")]
    elif field == "username":
        args = [object_ref(profile_id), pure(value, "string")]
    elif field == "authorization":
        if not address:
            raise PreconditionError("authorization update requires an address")
        args = [
            object_ref(config.admin_cap),
            object_ref(profile_id),
            pure(address, "address"),
            pure(_check_access_level(value), "u8"),
        ]
    else:
        args = [object_ref(profile_id), pure(value, "u64")]
    return [move_call(call_target, args)]


def build_authorize(
    config: RecrdConfig,
    profile_ids: str | list[str],
    users: str | list[str],
    access_levels: int | list[int],
) -> list[dict]:
    rows = _parallel(profileId=profile_ids, user=users, accessLevel=access_levels)
    return [_authorize_step(config, profile_id, user, level) for profile_id, user, level in rows]


def build_deauthorize(config: RecrdConfig, profile_id: str, user: str) -> list[dict]:
    return [
        move_call(
            target(config.package_id, "profile", "deauthorize"),
            [object_ref(config.admin_cap), object_ref(profile_id), pure(user, "address")],
        )
    ]


def build_batch_combo(
    config: RecrdConfig,
    user_ids: list[str],
    usernames: list[str],
    profile_ids: list[str],
    authorization_addresses: list[str],
    access_levels: list[int],
) -> list[dict]:
    """New profiles followed by authorizations on existing ones, in one batch."""
    if len(user_ids) != len(usernames):
        raise PreconditionError("The arrays for userId and username must be of the same length.")
    if len(profile_ids) != len(authorization_addresses) or len(profile_ids) != len(access_levels):
        raise PreconditionError(
            "The arrays for profileId, authorizationAddress, and accessLevel must be of the same length."
        )
    if not user_ids and not profile_ids:
        raise PreconditionError("batch combo requires at least one profile or authorization")
    steps = [_new_profile_step(config, user_id, username) for user_id, username in zip(user_ids, usernames)]
    steps.extend(
        _authorize_step(config, profile_id, user, level)
        for profile_id, user, level in zip(profile_ids, authorization_addresses, access_levels)
    )
    return steps


def build_batch_burn(config: RecrdConfig, profile_ids: list[str]) -> list[dict]:
    if not profile_ids:
        raise PreconditionError("batch burn requires at least one profile id")
    return [
        move_call(
            target(config.package_id, "profile", "burn"),
            [object_ref(config.admin_cap), object_ref(profile_id)],
        )
        for profile_id in profile_ids
    ]


def build_buy_master(
    config: RecrdConfig,
    seller_profile: str,
    master_id: str,
    master_media_type: str,
    buyer_profile: str,
    receipt_id: str,
) -> list[dict]:
    return [
        move_call(
            target(config.package_id, "profile", "buy"),
            [
                object_ref(seller_profile),
                receiving_ref(master_id),
                object_ref(buyer_profile),
                object_ref(receipt_id),
            ],
            [master_media_type],
        )
    ]


def build_receive_master(
    config: RecrdConfig,
    profile_id: str,
    master_id: str,
    master_media_type: str,
    recipient: str,
) -> list[dict]:
    """Admin-receive a Master held by a profile and transfer it to `recipient`."""
    return [
        move_call(
            target(config.package_id, "profile", "admin_receive_master"),
            [object_ref(config.admin_cap), object_ref(profile_id), receiving_ref(master_id)],
            [master_media_type],
        ),
        transfer_objects([step_result(0)], pure(recipient, "address")),
    ]


# === projection ===


def _authorizations(call: RpcCaller, fields: dict[str, Any]) -> dict[str, Any]:
    table = fields.get("authorizations")
    table_fields = table.get("fields", {}) if isinstance(table, dict) else {}
    if int(table_fields.get("size", 0) or 0) <= 0:
        return {}

    parent_id = (table_fields.get("id") or {}).get("id")
    authorizations: dict[str, Any] = {}
    for entry in get_dynamic_fields(call, parent_id):
        data = get_object(call, entry["objectId"])
        try:
            entry_fields = move_fields(data)
        except ObjectNotFound:
            log_event(log, "profile.authorization_skipped", object_id=entry.get("objectId"))
            continue
        authorizations[entry_fields["name"]] = entry_fields["value"]
    return authorizations


def get_profile_by_id(call: RpcCaller, profile_id: str) -> dict[str, Any]:
    fields = move_fields(get_object(call, profile_id))
    profile: dict[str, Any] = {"id": profile_id}
    for camel, raw in PROFILE_FIELDS.items():
        profile[camel] = fields.get(raw)
    profile["authorizations"] = _authorizations(call, fields)
    return profile


# === operations ===


def create_profiles(session, user_ids: str | list[str], usernames: str | list[str]) -> list[dict]:
    steps = build_new_profiles(session.config, user_ids, usernames)
    response = session.submit(steps, signer_key=session.admin_key, action="profile creation")
    require_created(response, action="Profile creation")
    first_change(response, profile_type(session.config), "created", action="Profile creation")
    return find_changes(response, profile_type(session.config), "created")


def update_profile(session, profile_id: str, field: str, value: Any, address: str | None = None) -> dict:
    steps = build_update_profile(session.config, profile_id, field, value, address)
    response = session.submit(steps, signer_key=session.admin_key, action=f"profile update {field}")
    require_success(response, action="Profile update")
    first_change(response, "Profile", "mutated", action="Profile update")
    return get_profile_by_id(session.call, profile_id)


def authorize_users(session, profile_ids, users, access_levels) -> dict:
    steps = build_authorize(session.config, profile_ids, users, access_levels)
    response = session.submit(steps, signer_key=session.admin_key, action="profile authorize")
    return require_success(response, action="Authorizing user")


def deauthorize_user(session, profile_id: str, user: str) -> dict:
    steps = build_deauthorize(session.config, profile_id, user)
    response = session.submit(steps, signer_key=session.admin_key, action="profile deauthorize")
    require_success(response, action="Deauthorizing user")
    profile = get_profile_by_id(session.call, profile_id)
    if user in profile["authorizations"]:
        raise ObjectNotFound("User was not deauthorized successfully.", details={"profile_id": profile_id})
    return profile


def batch_combo(session, user_ids, usernames, profile_ids, authorization_addresses, access_levels) -> dict:
    steps = build_batch_combo(
        session.config, user_ids, usernames, profile_ids, authorization_addresses, access_levels
    )
    response = session.submit(steps, signer_key=session.admin_key, action="profile batch combo")
    return require_created(response, action="Batch combo")


def batch_burn(session, profile_ids: list[str]) -> dict:
    steps = build_batch_burn(session.config, profile_ids)
    response = session.submit(steps, signer_key=session.admin_key, action="profile batch burn")
    return require_success(response, action="Batch burn")


def buy_master(session, seller_profile: str, master_id: str, buyer_profile: str, receipt_id: str) -> dict:
    steps = build_buy_master(
        session.config,
        seller_profile,
        master_id,
        object_media_type(session.call, master_id),
        buyer_profile,
        receipt_id,
    )
    response = session.submit(steps, signer_key=session.user_key, action="profile buy master")
    return require_success(response, action="Buying Master")


def receive_master(session, profile_id: str, master_id: str, signer_key: str) -> dict:
    steps = build_receive_master(
        session.config,
        profile_id,
        master_id,
        object_media_type(session.call, master_id),
        address_from_private_key(signer_key),
    )
    response = session.submit(steps, signer_key=signer_key, action="profile receive master")
    return require_success(response, action="Receiving Master")
