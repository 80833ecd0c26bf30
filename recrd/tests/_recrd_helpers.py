from __future__ import annotations

import json
import os
import stat
import subprocess
import sys
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from typing import Any


ROOT = Path(__file__).resolve().parents[1]
SCRIPTS = ROOT / "scripts"
CALL_SCHEMA = ROOT / "references" / "call-schema.yaml"

if str(SCRIPTS) not in sys.path:
    sys.path.insert(0, str(SCRIPTS))

PACKAGE_ID = "0x" + "ab" * 32
ADMIN_CAP = "0x" + "c1" * 32
REGISTRY = "0x" + "e9" * 32
PUBLISH_DIGEST = "9Qk2pXb1ZsPublishDigest"

# base64(flag 0x00 || seed 0x01 * 32) and its derived address.
ADMIN_KEY = "AAEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEBAQEB"
ADMIN_ADDRESS = "0x29dfbf688abce7ab43bb8e70cae158ae961196e721440f515482f8ba1684390f"
# base64(flag 0x00 || seed 0x02 * 32) and its derived address.
USER_KEY = "AAICAgICAgICAgICAgICAgICAgICAgICAgICAgICAgIC"
USER_ADDRESS = "0x7799ea80594c35644321148485238c7a7a1c6549809e1795e6747c6d4da2504c"

PROFILE_ID = "0x" + "01" * 32
BUYER_PROFILE_ID = "0x" + "02" * 32
MASTER_ID = "0x" + "03" * 32
METADATA_ID = "0x" + "04" * 32
RECEIPT_ID = "0x" + "05" * 32
AUTH_TABLE_ID = "0x" + "06" * 32

VIDEO = f"{PACKAGE_ID}::master::Video"
MASTER_VIDEO_TYPE = f"{PACKAGE_ID}::master::Master<{VIDEO}>"
METADATA_VIDEO_TYPE = f"{PACKAGE_ID}::master::Metadata<{VIDEO}>"
PROFILE_TYPE = f"{PACKAGE_ID}::profile::Profile"
RECEIPT_TYPE = f"{PACKAGE_ID}::receipt::Receipt"

LOCAL_RPC = "http://127.0.0.1:1"
# `sui client envs --json` output: [environments, active alias].
LOCAL_ENVS = [[{"alias": "localnet", "rpc": LOCAL_RPC, "ws": None}], "localnet"]

RECRD_ENV_KEYS = (
    "SUI_NETWORK",
    "RECRD_PACKAGE_ID",
    "CORE_ADMIN_CAP",
    "RECRD_PRIVATE_KEY",
    "MASTER_PUBLISHER",
    "REGISTRY",
    "USER_PRIVATE_KEY",
    "PUBLISH_DIGEST",
    "SUI_BINARY",
    "RECRD_SCRATCH_DIR",
    "RECRD_GAS_BUDGET",
    "RECRD_CALL_SCHEMA",
    "RECRD_LOG_LEVEL",
)


def _env(tmp_path: Path, **overrides: str) -> dict[str, str]:
    env = {
        "SUI_NETWORK": LOCAL_RPC,
        "RECRD_PACKAGE_ID": PACKAGE_ID,
        "CORE_ADMIN_CAP": ADMIN_CAP,
        "RECRD_PRIVATE_KEY": ADMIN_KEY,
        "USER_PRIVATE_KEY": USER_KEY,
        "REGISTRY": REGISTRY,
        "PUBLISH_DIGEST": PUBLISH_DIGEST,
        "RECRD_SCRATCH_DIR": str(tmp_path / "scratch"),
    }
    env.update(overrides)
    return env


def _config(tmp_path: Path, **overrides: str):
    from recrd_config import load_config

    ok, config, missing = load_config(_env(tmp_path, **overrides))
    assert ok, missing
    return config


def _session(tmp_path: Path, *, responses: list[dict[str, Any]] | None = None, chain: "FakeChain | None" = None):
    from call_schema import load_call_schema
    from recrd_session import Session

    config = _config(tmp_path)
    return Session(
        config=config,
        execute=FakeExecutor(responses or []),
        call=chain or FakeChain(),
        schema=load_call_schema(CALL_SCHEMA),
    )


# === canned chain data ===


def _change(change_type: str, object_id: str, object_type: str, **extra: Any) -> dict[str, Any]:
    change = {"type": change_type, "objectId": object_id, "objectType": object_type, "version": "7"}
    change.update(extra)
    return change


def _batch_response(
    *changes: dict[str, Any],
    status: str = "success",
    error: str | None = None,
    digest: str = "DigestA1",
) -> dict[str, Any]:
    return {
        "digest": digest,
        "status": status,
        "error": error,
        "created_count": sum(1 for c in changes if c.get("type") == "created"),
        "object_changes": list(changes),
    }


def _raw_ptb_output(*changes: dict[str, Any], status: str = "success", error: str | None = None) -> dict[str, Any]:
    effects_status: dict[str, Any] = {"status": status}
    if error:
        effects_status["error"] = error
    return {
        "digest": "DigestCli1",
        "effects": {
            "status": effects_status,
            "created": [{"reference": {"objectId": c["objectId"]}} for c in changes if c["type"] == "created"],
        },
        "objectChanges": list(changes),
    }


def _move_object(object_id: str, object_type: str, fields: dict[str, Any]) -> dict[str, Any]:
    return {
        "objectId": object_id,
        "version": "12",
        "type": object_type,
        "content": {"dataType": "moveObject", "type": object_type, "hasPublicTransfer": False, "fields": fields},
    }


def _profile_fields(*, auth_size: int = 0, **overrides: Any) -> dict[str, Any]:
    fields = {
        "id": {"id": PROFILE_ID},
        "user_id": "ab12345",
        "username": "alina-chan",
        "watch_time": "0",
        "videos_watched": "0",
        "adverts_watched": "0",
        "number_of_followers": "0",
        "number_of_following": "0",
        "ad_revenue": "0",
        "commission_revenue": "0",
        "authorizations": {
            "type": "0x2::table::Table<address, u8>",
            "fields": {"id": {"id": AUTH_TABLE_ID}, "size": str(auth_size)},
        },
    }
    fields.update(overrides)
    return fields


def _master_fields(**overrides: Any) -> dict[str, Any]:
    fields = {
        "id": {"id": MASTER_ID},
        "title": "Test Video",
        "description": "This is a test video",
        "image_url": "https://example.com/image.jpg",
        "media_url": "https://example.com/video.mp4",
        "hashtags": ["test", "video"],
        "creator_profile_id": PROFILE_ID,
        "royalty_percentage_bp": 1000,
        "metadata_ref": METADATA_ID,
        "sale_status": 1,
    }
    fields.update(overrides)
    return fields


def _metadata_fields(**overrides: Any) -> dict[str, Any]:
    fields = _master_fields(id={"id": METADATA_ID})
    fields.pop("metadata_ref")
    fields.pop("sale_status")
    fields.update({"master_metadata_parent": None, "master_metadata_origin": None})
    fields.update(overrides)
    return fields


class FakeExecutor:
    """Batch executor that returns queued, already-normalized responses."""

    def __init__(self, responses: list[dict[str, Any]]) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[list[dict[str, Any]], str]] = []

    def __call__(self, steps: list[dict[str, Any]], signer_key: str) -> dict[str, Any]:
        self.calls.append((steps, signer_key))
        if not self.responses:
            raise AssertionError("unexpected batch submission")
        return self.responses.pop(0)


class FakeChain:
    """In-memory stand-in for the JSON-RPC read methods."""

    def __init__(self) -> None:
        self.objects: dict[str, dict[str, Any]] = {}
        self.dynamic_fields: dict[str, list[dict[str, Any]]] = {}
        self.owned: dict[str, list[dict[str, Any]]] = {}
        self.transactions: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, list[Any]]] = []

    def add_object(self, object_id: str, object_type: str, fields: dict[str, Any]) -> None:
        self.objects[object_id] = _move_object(object_id, object_type, fields)

    def __call__(self, method: str, params: list[Any]) -> Any:
        self.calls.append((method, params))
        if method == "sui_getObject":
            data = self.objects.get(params[0])
            return {"data": data} if data else {"error": {"code": "notExists", "object_id": params[0]}}
        if method == "suix_getDynamicFields":
            return {"data": self.dynamic_fields.get(params[0], []), "hasNextPage": False, "nextCursor": None}
        if method == "suix_getOwnedObjects":
            wanted = params[1]["filter"]["StructType"]
            rows = [o for o in self.owned.get(params[0], []) if o["type"] == wanted]
            return {"data": [{"data": o} for o in rows], "hasNextPage": False, "nextCursor": None}
        if method == "sui_getTransactionBlock":
            return self.transactions[params[0]]
        raise AssertionError(f"unexpected rpc method {method}")


# === subprocess runners ===


def _run_cmd(
    command: str,
    args: list[str],
    extra_env: dict[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    cmd = [
        sys.executable,
        str(SCRIPTS / "recrd_ops.py"),
        command,
        *args,
    ]
    env = os.environ.copy()
    for key in RECRD_ENV_KEYS:
        env.pop(key, None)
    if extra_env:
        env.update(extra_env)
    return subprocess.run(cmd, capture_output=True, text=True, check=False, env=env)


def _write_fake_sui(
    tmp_path: Path,
    ptb_output: dict[str, Any],
    *,
    switch_rc: int = 0,
    envs: list[Any] | None = None,
) -> tuple[Path, Path]:
    """Executable `sui` shim that logs its argv and prints canned `client ptb` / `client envs` output."""
    log_path = tmp_path / "sui_calls.jsonl"
    output_path = tmp_path / "ptb_output.json"
    output_path.write_text(json.dumps(ptb_output), encoding="utf-8")
    envs_path = tmp_path / "envs.json"
    envs_path.write_text(json.dumps(envs if envs is not None else LOCAL_ENVS), encoding="utf-8")
    shim = tmp_path / "sui"
    shim.write_text(
        "\n".join(
            [
                f"#!{sys.executable}",
                "import json, sys",
                f"with open({str(log_path)!r}, 'a', encoding='utf-8') as fh:",
                "    fh.write(json.dumps(sys.argv[1:]) + '\\n')",
                "if sys.argv[1:3] == ['client', 'switch']:",
                f"    sys.exit({switch_rc})",
                "if sys.argv[1:3] == ['client', 'envs']:",
                f"    print(open({str(envs_path)!r}, encoding='utf-8').read())",
                "    sys.exit(0)",
                "if sys.argv[1:3] == ['client', 'ptb']:",
                f"    print(open({str(output_path)!r}, encoding='utf-8').read())",
                "    sys.exit(0)",
                "sys.exit(2)",
                "",
            ]
        ),
        encoding="utf-8",
    )
    shim.chmod(shim.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return shim, log_path


def _read_sui_calls(log_path: Path) -> list[list[str]]:
    if not log_path.exists():
        return []
    return [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines() if line.strip()]


class _RPCHandler(BaseHTTPRequestHandler):
    responses: list[Any] = []
    calls: list[dict[str, Any]] = []

    def do_POST(self) -> None:  # noqa: N802
        length = int(self.headers.get("Content-Length", "0"))
        body = self.rfile.read(length).decode("utf-8")
        try:
            payload = json.loads(body)
        except Exception:  # noqa: BLE001
            payload = {"raw": body}
        _RPCHandler.calls.append(payload)

        status_code = 200
        if _RPCHandler.responses:
            next_response = _RPCHandler.responses.pop(0)
            if isinstance(next_response, tuple) and len(next_response) == 2:
                status_code = int(next_response[0])
                response_payload = next_response[1]
            else:
                response_payload = next_response
        else:
            response_payload = {"jsonrpc": "2.0", "id": payload.get("id", 1), "result": None}

        encoded = json.dumps(response_payload).encode("utf-8")
        self.send_response(status_code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)

    def log_message(self, format: str, *args) -> None:  # noqa: A003
        return


def _serve(responses: list[Any]) -> tuple[HTTPServer, str]:
    _RPCHandler.responses = list(responses)
    _RPCHandler.calls = []
    server = HTTPServer(("127.0.0.1", 0), _RPCHandler)
    url = f"http://127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server, url


def _stop(server: HTTPServer) -> None:
    server.shutdown()
    server.server_close()


def _rpc_result(result: Any, rpc_id: int = 1) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}
