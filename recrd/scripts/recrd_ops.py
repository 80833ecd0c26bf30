#!/usr/bin/env python3
"""Operator-facing JSON wrapper around RECRD contract workflows."""

from __future__ import annotations

import argparse
import json
import sys
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Local imports for script execution (python3 scripts/recrd_ops.py ...)
SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from call_schema import load_call_schema, schema_summary  # noqa: E402
from error_map import (  # noqa: E402
    ERR_INTERNAL,
    ERR_INVALID_REQUEST,
    EXIT_INVALID,
    EXIT_OK,
    EXIT_REMOTE_FAILURE,
    RecrdError,
)
from event_log import configure_logging  # noqa: E402
from profile_ops import PROFILE_UPDATE_FUNCTIONS  # noqa: E402
from recrd_config import DEFAULT_CALL_SCHEMA, MEDIA_TYPES, load_config_or_exit  # noqa: E402
from recrd_session import build_session  # noqa: E402
from sui_keys import address_from_private_key  # noqa: E402
from workflows import WORKFLOWS, run_workflow  # noqa: E402

WORKFLOW_HELP = {
    "profile-new": "Create one profile and record its id",
    "profile-batch-new": "Create many profiles in one batch and record their ids",
    "profile-update": "Update one profile field and re-fetch the profile",
    "profile-get": "Fetch a profile with its authorizations",
    "profile-authorize": "Authorize an address on a profile",
    "profile-batch-authorize": "Authorize generated addresses on every recorded profile",
    "profile-deauthorize": "Remove an address from a profile and verify removal",
    "profile-batch-combo": "Create profiles and authorize existing ones in one batch",
    "profile-batch-burn": "Burn recorded profiles in one batch",
    "profile-receive": "Receive a Master held by a profile into the user account",
    "master-mint": "Mint a Master (and its Metadata) to a creator profile",
    "master-get": "Fetch a Master",
    "metadata-get": "Fetch a Metadata object",
    "master-set-on-sale": "Set a profile-held Master on sale",
    "master-retain": "Mark a profile-held Master as retained",
    "metadata-set-title-and-sync": "Retitle Metadata and sync the title into its Master",
    "master-receive-and-burn": "Pull a Master out of its profile and burn it",
    "metadata-burn": "Burn a Metadata object",
    "receipt-mint": "Create a buyer profile and issue a Receipt for the recorded Master",
    "master-buy": "Buy the Master named by the buyer's first Receipt",
    "display-update": "Rewrite Display fields for Master and Metadata types",
}

OPTION_KEYS = (
    "user_id",
    "username",
    "count",
    "profile_id",
    "profile_ids",
    "field",
    "value",
    "address",
    "user",
    "access_level",
    "new_count",
    "authorize_count",
    "master_id",
    "metadata_id",
    "buyer_profile_id",
    "kind",
    "title",
    "description",
    "image_url",
    "media_url",
    "hashtags",
    "royalty_percentage_bp",
    "sale_status",
)

TEXT_UPDATE_FIELDS = {"userId", "username"}


def _json_dump(payload: Any, pretty: bool = True) -> str:
    return json.dumps(payload, indent=2 if pretty else None, sort_keys=False, default=str)


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


def _base_response(method: str) -> dict[str, Any]:
    return {
        "timestamp_utc": _timestamp(),
        "method": method,
        "status": "error",
        "ok": False,
        "error_code": ERR_INTERNAL,
        "error_message": "unset",
    }


def _build_error_payload(
    *,
    method: str,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    duration_ms: int | None = None,
) -> dict[str, Any]:
    payload = _base_response(method)
    payload.update({"error_code": code, "error_message": message})
    details = dict(details or {})
    hint = details.pop("hint", None)
    if details:
        payload["details"] = details
    if hint:
        payload["hint"] = hint
    if duration_ms is not None:
        payload["duration_ms"] = duration_ms
    return payload


def _print_selected_value(value: Any, *, compact: bool) -> None:
    if isinstance(value, (dict, list)):
        print(_json_dump(value, pretty=not compact))
        return
    if value is None:
        print("null")
        return
    print(str(value))


def _render_for_args(args: argparse.Namespace, payload: dict[str, Any], exit_code: int) -> int:
    compact = bool(getattr(args, "compact", False))
    if getattr(args, "result_only", False) and payload.get("ok"):
        _print_selected_value(payload.get("result"), compact=compact)
    else:
        print(_json_dump(payload, pretty=not compact))
    return int(exit_code)


def _csv_list(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _workflow_options(args: argparse.Namespace) -> dict[str, Any]:
    options = {key: getattr(args, key) for key in OPTION_KEYS if getattr(args, key, None) is not None}
    value = options.get("value")
    if value is not None and options.get("field", "watchTime") not in TEXT_UPDATE_FIELDS:
        try:
            options["value"] = int(value)
        except ValueError as err:
            raise RecrdError(
                f"--value must be an integer for field {options.get('field')}",
                code=ERR_INVALID_REQUEST,
            ) from err
    return options


def cmd_workflow(args: argparse.Namespace) -> int:
    method = args.workflow
    configure_logging(args.verbose)
    config = load_config_or_exit()
    started = time.perf_counter()

    def _elapsed() -> int:
        return int((time.perf_counter() - started) * 1000)

    try:
        options = _workflow_options(args)
        session = build_session(config)
        result = run_workflow(method, session, **options)
    except RecrdError as err:
        payload = _build_error_payload(
            method=method,
            code=err.code,
            message=str(err),
            details=err.details,
            duration_ms=_elapsed(),
        )
        return _render_for_args(args, payload, err.exit_code)
    except ValueError as err:
        payload = _build_error_payload(
            method=method,
            code=ERR_INVALID_REQUEST,
            message=str(err),
            duration_ms=_elapsed(),
        )
        return _render_for_args(args, payload, EXIT_INVALID)
    except Exception as err:  # noqa: BLE001
        payload = _build_error_payload(
            method=method,
            code=ERR_INTERNAL,
            message=f"{type(err).__name__}: {err}",
            duration_ms=_elapsed(),
        )
        return _render_for_args(args, payload, EXIT_REMOTE_FAILURE)

    payload = _base_response(method)
    payload.update(
        {
            "status": "ok",
            "ok": True,
            "error_code": None,
            "error_message": None,
            "result": result,
            "duration_ms": _elapsed(),
        }
    )
    return _render_for_args(args, payload, EXIT_OK)


def cmd_call_schema(args: argparse.Namespace) -> int:
    try:
        schema = load_call_schema(Path(args.schema).resolve())
    except (OSError, RecrdError) as err:
        code = err.code if isinstance(err, RecrdError) else ERR_INVALID_REQUEST
        print(_json_dump(_build_error_payload(method="call-schema", code=code, message=str(err))))
        return EXIT_INVALID
    payload = {"schema": str(Path(args.schema).resolve()), **schema_summary(schema)}
    print(_json_dump(payload, pretty=not args.compact))
    return EXIT_OK


def cmd_address(args: argparse.Namespace) -> int:
    config = load_config_or_exit()
    key = config.user_private_key if args.user else config.recrd_private_key
    method = "address"
    if not key:
        payload = _build_error_payload(
            method=method,
            code=ERR_INVALID_REQUEST,
            message="USER_PRIVATE_KEY is not configured",
        )
        return _render_for_args(args, payload, EXIT_INVALID)
    try:
        address = address_from_private_key(key)
    except ValueError as err:
        return _render_for_args(
            args,
            _build_error_payload(method=method, code=ERR_INVALID_REQUEST, message=str(err)),
            EXIT_INVALID,
        )
    payload = _base_response(method)
    payload.update(
        {
            "status": "ok",
            "ok": True,
            "error_code": None,
            "error_message": None,
            "result": {"role": "user" if args.user else "admin", "address": address},
        }
    )
    return _render_for_args(args, payload, EXIT_OK)


def _add_output_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--compact", action="store_true", help="compact JSON output")
    parser.add_argument("--result-only", action="store_true", help="print only result field")
    parser.add_argument("--verbose", action="store_true", help="progress events on stderr")


def _add_workflow_args(name: str, parser: argparse.ArgumentParser) -> None:
    if name == "profile-new":
        parser.add_argument("--user-id")
        parser.add_argument("--username")
    if name == "profile-batch-new":
        parser.add_argument("--count", type=int, help="number of profiles to create")
    if name in {
        "profile-update",
        "profile-get",
        "profile-authorize",
        "profile-deauthorize",
        "profile-receive",
        "master-mint",
        "master-set-on-sale",
        "master-retain",
        "metadata-set-title-and-sync",
        "master-receive-and-burn",
        "master-buy",
    }:
        parser.add_argument("--profile-id", help="profile id (defaults to the recorded one)")
    if name in {"profile-batch-authorize", "profile-batch-burn"}:
        parser.add_argument("--profile-ids", type=_csv_list, help="comma separated profile ids")
    if name == "profile-update":
        parser.add_argument("--field", choices=sorted(PROFILE_UPDATE_FUNCTIONS), help="profile field to update")
        parser.add_argument("--value", help="new value (integer for numeric fields and authorization)")
        parser.add_argument("--address", help="target address for authorization updates")
    if name in {"profile-authorize", "profile-deauthorize"}:
        parser.add_argument("--user", help="address (defaults to the USER_PRIVATE_KEY address)")
    if name in {"profile-authorize", "profile-batch-authorize"}:
        parser.add_argument("--access-level", type=int)
    if name == "profile-batch-combo":
        parser.add_argument("--new-count", type=int)
        parser.add_argument("--authorize-count", type=int)
    if name in {
        "profile-receive",
        "master-get",
        "master-set-on-sale",
        "master-retain",
        "metadata-set-title-and-sync",
        "master-receive-and-burn",
        "receipt-mint",
    }:
        parser.add_argument("--master-id", help="master id (defaults to the recorded one)")
    if name in {"metadata-get", "metadata-set-title-and-sync", "metadata-burn"}:
        parser.add_argument("--metadata-id", help="metadata id (defaults to the recorded one)")
    if name in {"receipt-mint", "master-buy"}:
        parser.add_argument("--buyer-profile-id")
    if name in {"master-mint", "metadata-set-title-and-sync"}:
        parser.add_argument("--title")
    if name == "master-mint":
        parser.add_argument("--kind", choices=MEDIA_TYPES)
        parser.add_argument("--description")
        parser.add_argument("--image-url")
        parser.add_argument("--media-url")
        parser.add_argument("--hashtags", type=_csv_list, help="comma separated hashtags")
        parser.add_argument("--royalty-bp", dest="royalty_percentage_bp", type=int)
        parser.add_argument("--sale-status", type=int)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    for name in WORKFLOWS:
        wf_parser = sub.add_parser(name, help=WORKFLOW_HELP.get(name))
        _add_workflow_args(name, wf_parser)
        _add_output_args(wf_parser)
        wf_parser.set_defaults(func=cmd_workflow, workflow=name)

    schema_parser = sub.add_parser("call-schema", help="Print the pinned contract call schema summary")
    schema_parser.add_argument("--schema", default=str(DEFAULT_CALL_SCHEMA), help="call schema path")
    schema_parser.add_argument("--compact", action="store_true", help="compact JSON output")
    schema_parser.set_defaults(func=cmd_call_schema)

    address_parser = sub.add_parser("address", help="Derive the Sui address of a configured key")
    address_parser.add_argument("--user", action="store_true", help="use USER_PRIVATE_KEY instead of RECRD_PRIVATE_KEY")
    _add_output_args(address_parser)
    address_parser.set_defaults(func=cmd_address)

    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
