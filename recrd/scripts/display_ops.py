"""Display object discovery and field rewrites for Master / Metadata types."""

from __future__ import annotations

from typing import Any

from error_map import ObjectNotFound, PreconditionError
from object_changes import normalize_response, require_success
from object_queries import get_transaction_block
from ptb import move_call, object_ref, pure, target
from recrd_config import RecrdConfig
from sui_transport import RpcCaller

FRAMEWORK = "0x2"
DISPLAY_OPS = ("add", "edit", "remove")
PROJECT_URL = "https://www.recrd.com/"
CREATOR = "RECRD"

# Display name -> (wrapper, media kind)
DISPLAY_TARGETS = {
    "masterVideoDisplay": ("Master", "Video"),
    "masterSoundDisplay": ("Master", "Audio"),
    "metadataVideoDisplay": ("Metadata", "Video"),
    "metadataSoundDisplay": ("Metadata", "Audio"),
}


def display_object_type(config: RecrdConfig, wrapper: str, kind: str) -> str:
    if wrapper == "Master":
        return config.master_type(kind)
    return config.metadata_type(kind)


def get_display_objects(call: RpcCaller, config: RecrdConfig) -> dict[str, dict[str, str]]:
    """Find the four Display objects created by the package publish transaction."""
    if not config.publish_digest:
        raise PreconditionError("PUBLISH_DIGEST must be configured to locate Display objects")
    response = normalize_response(get_transaction_block(call, config.publish_digest))
    created = [c for c in response["object_changes"] if c.get("type") == "created"]

    found: dict[str, dict[str, str]] = {}
    for name, (wrapper, kind) in DISPLAY_TARGETS.items():
        object_type = display_object_type(config, wrapper, kind)
        suffix = f"::display::Display<{object_type}>"
        match = next((c for c in created if str(c.get("objectType", "")).endswith(suffix)), None)
        if match:
            found[name] = {"id": match["objectId"], "type": object_type}

    missing = sorted(set(DISPLAY_TARGETS) - set(found))
    if missing:
        raise ObjectNotFound("Display object(s) not found", details={"missing": missing})
    return found


def default_plan(first_name_field: str) -> list[tuple[str, ...]]:
    return [
        ("remove", first_name_field),
        ("add", "name", "{title}"),
        ("remove", "Image URL"),
        ("add", "image_url", "{image_url}"),
        ("add", "project_url", PROJECT_URL),
        ("add", "creator", CREATOR),
    ]


def default_display_plan(displays: dict[str, dict[str, str]]) -> list[dict[str, Any]]:
    """Lower-case `name`/`image_url` keys plus project_url and creator on every Display."""
    plan = []
    for name in DISPLAY_TARGETS:
        display = displays[name]
        first = "Name" if name.startswith("master") else "Title"
        plan.append({"id": display["id"], "type": display["type"], "ops": default_plan(first)})
    return plan


def _display_step(display_id: str, object_type: str, op: tuple[str, ...]) -> dict[str, Any]:
    action, *values = op
    if action not in DISPLAY_OPS:
        raise PreconditionError(f"unknown display op {action!r}")
    expected = 1 if action == "remove" else 2
    if len(values) != expected:
        raise PreconditionError(f"display {action} takes {expected} value(s), got {len(values)}")
    return move_call(
        target(FRAMEWORK, "display", action),
        [object_ref(display_id), *(pure(value, "string") for value in values)],
        [object_type],
    )


def build_display_update(plan: list[dict[str, Any]]) -> list[dict]:
    """Apply each display's field ops in order, then bump every display version."""
    if not plan:
        raise PreconditionError("display plan is empty")
    steps = []
    for entry in plan:
        for op in entry["ops"]:
            steps.append(_display_step(entry["id"], entry["type"], tuple(op)))
    for entry in plan:
        steps.append(
            move_call(target(FRAMEWORK, "display", "update_version"), [object_ref(entry["id"])], [entry["type"]])
        )
    return steps


def update_displays(session) -> dict[str, Any]:
    displays = get_display_objects(session.call, session.config)
    steps = build_display_update(default_display_plan(displays))
    response = session.submit(steps, signer_key=session.admin_key, action="display update")
    require_success(response, action="Display update")
    return {"digest": response.get("digest"), "displays": displays, "steps": len(steps)}
