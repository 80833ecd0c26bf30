"""Read helpers over the Sui JSON-RPC read API."""

from __future__ import annotations

from typing import Any

from error_map import ERR_RPC_TRUNCATED, ObjectNotFound, RpcError
from sui_transport import RpcCaller

OBJECT_OPTIONS = {"showContent": True, "showType": True, "showOwner": True}
MAX_PAGES = 1000


def get_object(call: RpcCaller, object_id: str) -> dict[str, Any]:
    """Return the `data` section of sui_getObject; every call re-fetches."""
    result = call("sui_getObject", [object_id, OBJECT_OPTIONS])
    if not isinstance(result, dict) or result.get("error") or not isinstance(result.get("data"), dict):
        error = result.get("error") if isinstance(result, dict) else None
        raise ObjectNotFound(f"object {object_id} not found", details={"error": error})
    return result["data"]


def move_fields(data: dict[str, Any]) -> dict[str, Any]:
    content = data.get("content")
    if not isinstance(content, dict) or content.get("dataType") != "moveObject":
        raise ObjectNotFound(f"object {data.get('objectId')} is not a move object")
    fields = content.get("fields")
    return fields if isinstance(fields, dict) else {}


def move_type(data: dict[str, Any]) -> str:
    content = data.get("content")
    if isinstance(content, dict) and content.get("type"):
        return str(content["type"])
    return str(data.get("type", ""))


def _paged(call: RpcCaller, method: str, build_params, *, max_pages: int = MAX_PAGES) -> list[Any]:
    """Collect every page of a cursor-paged read; raise rather than return a partial list."""
    items: list[Any] = []
    cursor: str | None = None
    for _ in range(max_pages):
        page = call(method, build_params(cursor))
        if not isinstance(page, dict):
            break
        items.extend(page.get("data") or [])
        next_cursor = page.get("nextCursor")
        if not page.get("hasNextPage") or not isinstance(next_cursor, str) or not next_cursor:
            break
        cursor = next_cursor
    else:
        raise RpcError(
            f"{method}: still more pages after {max_pages} page(s)",
            code=ERR_RPC_TRUNCATED,
            details={"items_read": len(items), "next_cursor": cursor},
        )
    return items


def get_owned_objects_by_type(call: RpcCaller, owner: str, object_type: str) -> list[dict[str, Any]]:
    """All objects of `object_type` owned by `owner`, following pagination."""
    if not owner:
        return []

    def _params(cursor: str | None) -> list[Any]:
        query = {"filter": {"StructType": object_type}, "options": OBJECT_OPTIONS}
        return [owner, query, cursor, None]

    rows = _paged(call, "suix_getOwnedObjects", _params)
    return [row["data"] for row in rows if isinstance(row, dict) and isinstance(row.get("data"), dict)]


def get_dynamic_fields(call: RpcCaller, parent_id: str) -> list[dict[str, Any]]:
    return _paged(call, "suix_getDynamicFields", lambda cursor: [parent_id, cursor, None])


def get_transaction_block(call: RpcCaller, digest: str) -> dict[str, Any]:
    result = call(
        "sui_getTransactionBlock",
        [digest, {"showEffects": True, "showObjectChanges": True}],
    )
    if not isinstance(result, dict):
        raise ObjectNotFound(f"transaction {digest} not found")
    return result
