"""Locate and project object changes in an executed batch response."""

from __future__ import annotations

import re
from typing import Any

from error_map import MOVE_ABORT_MESSAGES, ExecutionFailure, ObjectNotFound

CHANGE_TYPES = {"created", "mutated", "deleted", "wrapped", "transferred", "published"}
ABORT_CODE_RE = re.compile(r", (\d+)\) in command")


def normalize_response(raw: dict[str, Any]) -> dict[str, Any]:
    """Flatten a transaction block response into the fields callers inspect."""
    effects = raw.get("effects") if isinstance(raw.get("effects"), dict) else {}
    status_obj = effects.get("status") if isinstance(effects.get("status"), dict) else {}
    changes = raw.get("objectChanges")
    return {
        "digest": raw.get("digest"),
        "status": str(status_obj.get("status", "unknown")),
        "error": status_obj.get("error"),
        "created_count": len(effects.get("created") or []),
        "object_changes": [c for c in changes if isinstance(c, dict)] if isinstance(changes, list) else [],
    }


def find_changes(
    response: dict[str, Any],
    type_pattern: str,
    change_type: str | None = None,
) -> list[dict[str, Any]]:
    if change_type is not None and change_type not in CHANGE_TYPES:
        raise ValueError(f"unknown change type: {change_type}")
    out: list[dict[str, Any]] = []
    for change in response.get("object_changes", []):
        if change_type is not None and change.get("type") != change_type:
            continue
        if type_pattern in str(change.get("objectType", "")):
            out.append(change)
    return out


def first_change(
    response: dict[str, Any],
    type_pattern: str,
    change_type: str | None = None,
    *,
    action: str = "batch",
) -> dict[str, Any]:
    matches = find_changes(response, type_pattern, change_type)
    if not matches:
        expected = f"{change_type} {type_pattern}" if change_type else type_pattern
        raise ObjectNotFound(
            f"{action}: expected {expected} object not found in response",
            details={"digest": response.get("digest")},
        )
    return matches[0]


def friendly_abort_message(error: str | None) -> str | None:
    if not error or "MoveAbort" not in error:
        return None
    match = ABORT_CODE_RE.search(error)
    return MOVE_ABORT_MESSAGES.get(match.group(1)) if match else None


def require_success(response: dict[str, Any], *, action: str) -> dict[str, Any]:
    if response.get("status") == "success":
        return response
    raw_error = response.get("error")
    message = friendly_abort_message(raw_error) or raw_error or f"status={response.get('status')}"
    raise ExecutionFailure(
        f"{action} failed: {message}",
        details={"digest": response.get("digest"), "raw_error": raw_error},
    )


def require_created(response: dict[str, Any], *, action: str) -> dict[str, Any]:
    require_success(response, action=action)
    if not response.get("created_count") and not find_changes(response, "", "created"):
        raise ObjectNotFound(
            f"{action} failed or did not return expected result",
            details={"digest": response.get("digest")},
        )
    return response


def type_argument(object_type: str, wrapper: str) -> str | None:
    """Return T from `...::Wrapper<T>`, e.g. the media type of Master<T>."""
    match = re.search(rf"{re.escape(wrapper)}<(.+)>", object_type or "")
    return match.group(1) if match else None
