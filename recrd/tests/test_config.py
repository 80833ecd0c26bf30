from __future__ import annotations

import json
from pathlib import Path

import pytest

from ._recrd_helpers import (
    ADMIN_ADDRESS,
    PACKAGE_ID,
    USER_ADDRESS,
    _env,
    _run_cmd,
)

from error_map import PreconditionError, ScratchIdMissing  # noqa: E402
from id_store import read_id, read_ids, write_ids  # noqa: E402
from recrd_config import (  # noqa: E402
    DEFAULT_CALL_SCHEMA,
    DEFAULT_GAS_BUDGET,
    REQUIRED_ENV,
    load_config,
    load_config_or_exit,
)


def test_load_config_reports_missing_required_values(tmp_path):
    env = _env(tmp_path)
    env.pop("CORE_ADMIN_CAP")
    env["RECRD_PRIVATE_KEY"] = "   "
    ok, config, missing = load_config(env)
    assert ok is False
    assert config is None
    assert missing == ["CORE_ADMIN_CAP", "RECRD_PRIVATE_KEY"]


def test_load_config_defaults_and_types(tmp_path):
    ok, config, missing = load_config(_env(tmp_path))
    assert ok is True
    assert missing == []
    assert config.package_id == PACKAGE_ID
    assert config.gas_budget == DEFAULT_GAS_BUDGET
    assert config.sui_binary == "sui"
    assert config.call_schema_path == DEFAULT_CALL_SCHEMA
    assert config.scratch_dir == tmp_path / "scratch"
    assert config.media_type("Audio") == f"{PACKAGE_ID}::master::Audio"
    assert config.master_type("Video") == f"{PACKAGE_ID}::master::Master<{PACKAGE_ID}::master::Video>"
    with pytest.raises(ValueError):
        config.media_type("Image")


def test_invalid_gas_budget_is_treated_as_missing(tmp_path):
    ok, _, missing = load_config(_env(tmp_path, RECRD_GAS_BUDGET="lots"))
    assert ok is False
    assert missing == ["RECRD_GAS_BUDGET"]

    ok, config, _ = load_config(_env(tmp_path, RECRD_GAS_BUDGET="5000000"))
    assert ok is True
    assert config.gas_budget == 5_000_000


def test_load_config_or_exit_prints_diagnostic(tmp_path, capsys):
    env = {"SUI_NETWORK": "http://127.0.0.1:1"}
    with pytest.raises(SystemExit) as excinfo:
        load_config_or_exit(env)
    assert excinfo.value.code == 3
    payload = json.loads(capsys.readouterr().out)
    assert payload["error_code"] == "CONFIG_MISSING"
    assert payload["present"] == ["SUI_NETWORK"]
    assert payload["missing"] == [key for key in REQUIRED_ENV if key != "SUI_NETWORK"]


def test_load_config_or_exit_is_silent_on_success(tmp_path, capsys):
    config = load_config_or_exit(_env(tmp_path))
    assert config.admin_cap.startswith("0x")
    assert capsys.readouterr().out == ""


def test_cli_exits_3_when_config_missing(tmp_path):
    proc = _run_cmd("address", [], {"SUI_NETWORK": "http://127.0.0.1:1", "RECRD_PACKAGE_ID": PACKAGE_ID})
    assert proc.returncode == 3, proc.stdout + proc.stderr
    payload = json.loads(proc.stdout)
    assert payload["ok"] is False
    assert payload["error_code"] == "CONFIG_MISSING"
    assert payload["missing"] == ["CORE_ADMIN_CAP", "RECRD_PRIVATE_KEY"]
    assert "RECRD_PACKAGE_ID" in payload["present"]


def test_cli_address_derives_configured_keys(tmp_path):
    proc = _run_cmd("address", ["--compact"], _env(tmp_path))
    assert proc.returncode == 0, proc.stdout + proc.stderr
    payload = json.loads(proc.stdout)
    assert payload["ok"] is True
    assert payload["result"] == {"role": "admin", "address": ADMIN_ADDRESS}

    proc = _run_cmd("address", ["--user", "--result-only"], _env(tmp_path))
    assert proc.returncode == 0, proc.stdout + proc.stderr
    assert json.loads(proc.stdout)["address"] == USER_ADDRESS


def test_scratch_ids_round_trip_and_missing(tmp_path: Path):
    scratch = tmp_path / "scratch"
    with pytest.raises(ScratchIdMissing):
        read_id(scratch, "master")

    write_ids(scratch, "profile", ["0x1", "0x2", "0x3"])
    assert read_ids(scratch, "profile") == ["0x1", "0x2", "0x3"]
    assert read_id(scratch, "profile") == "0x3"

    write_ids(scratch, "master", "0xabc")
    assert read_id(scratch, "master") == "0xabc"

    with pytest.raises(PreconditionError):
        write_ids(scratch, "identity", "0x1")
    with pytest.raises(PreconditionError):
        write_ids(scratch, "profile", [])
