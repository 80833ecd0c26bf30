from __future__ import annotations

import json

from ._recrd_helpers import (
    ADMIN_ADDRESS,
    PROFILE_ID,
    PROFILE_TYPE,
    USER_ADDRESS,
    _change,
    _env,
    _move_object,
    _profile_fields,
    _raw_ptb_output,
    _read_sui_calls,
    _rpc_result,
    _RPCHandler,
    _run_cmd,
    _serve,
    _stop,
    _write_fake_sui,
)


def test_profile_get_envelope_over_rpc(tmp_path):
    profile = _move_object(PROFILE_ID, PROFILE_TYPE, _profile_fields(watch_time="3600"))
    server, url = _serve([_rpc_result({"data": profile})])
    try:
        proc = _run_cmd("profile-get", ["--profile-id", PROFILE_ID, "--compact"], _env(tmp_path, SUI_NETWORK=url))
        assert proc.returncode == 0, proc.stdout + proc.stderr
        payload = json.loads(proc.stdout)
        assert payload["ok"] is True
        assert payload["method"] == "profile-get"
        assert payload["error_code"] is None
        assert isinstance(payload["duration_ms"], int)
        assert payload["result"]["id"] == PROFILE_ID
        assert payload["result"]["watchTime"] == "3600"
        assert payload["result"]["authorizations"] == {}
        assert "watch_time" not in payload["result"]
        assert [call["method"] for call in _RPCHandler.calls] == ["sui_getObject"]
    finally:
        _stop(server)


def test_profile_new_submits_through_sui_cli_and_records_id(tmp_path):
    shim, log_path = _write_fake_sui(tmp_path, _raw_ptb_output(_change("created", PROFILE_ID, PROFILE_TYPE)))
    env = _env(tmp_path, SUI_BINARY=str(shim))

    proc = _run_cmd("profile-new", ["--username", "mika", "--result-only"], env)
    assert proc.returncode == 0, proc.stdout + proc.stderr
    assert json.loads(proc.stdout)["profile"]["objectId"] == PROFILE_ID
    assert (tmp_path / "scratch" / "profile_id.txt").read_text(encoding="utf-8").strip() == PROFILE_ID

    calls = _read_sui_calls(log_path)
    assert calls[0] == ["client", "envs", "--json"]
    assert calls[1] == ["client", "switch", "--address", ADMIN_ADDRESS]
    assert '"mika"' in calls[2]
    assert '"ab12345"' in calls[2]


def test_invalid_access_level_fails_before_any_submission(tmp_path):
    shim, log_path = _write_fake_sui(tmp_path, _raw_ptb_output())
    args = ["--profile-id", PROFILE_ID, "--user", USER_ADDRESS, "--access-level", "251"]
    proc = _run_cmd("profile-authorize", args, _env(tmp_path, SUI_BINARY=str(shim)))
    assert proc.returncode == 2, proc.stdout + proc.stderr
    payload = json.loads(proc.stdout)
    assert payload["ok"] is False
    assert payload["error_code"] == "PRECONDITION_FAILED"
    assert "Invalid access level" in payload["error_message"]
    assert _read_sui_calls(log_path) == []


def test_failed_batch_reports_execution_failure(tmp_path):
    error = "MoveAbort(MoveLocation { module: profile }, 2) in command 0"
    shim, _ = _write_fake_sui(tmp_path, _raw_ptb_output(status="failure", error=error))
    proc = _run_cmd(
        "profile-deauthorize",
        ["--profile-id", PROFILE_ID, "--user", USER_ADDRESS],
        _env(tmp_path, SUI_BINARY=str(shim)),
    )
    assert proc.returncode == 1, proc.stdout + proc.stderr
    payload = json.loads(proc.stdout)
    assert payload["error_code"] == "EXECUTION_FAILED"
    assert "not of the expected type" in payload["error_message"]
    assert payload["details"]["digest"] == "DigestCli1"


def test_missing_scratch_id_is_a_usage_error(tmp_path):
    proc = _run_cmd("master-get", ["--compact"], _env(tmp_path))
    assert proc.returncode == 2, proc.stdout + proc.stderr
    payload = json.loads(proc.stdout)
    assert payload["error_code"] == "SCRATCH_ID_MISSING"
    assert payload["hint"]


def test_non_integer_value_for_numeric_field(tmp_path):
    proc = _run_cmd(
        "profile-update",
        ["--profile-id", PROFILE_ID, "--field", "watchTime", "--value", "soon"],
        _env(tmp_path),
    )
    assert proc.returncode == 2, proc.stdout + proc.stderr
    assert json.loads(proc.stdout)["error_code"] == "INVALID_REQUEST"
