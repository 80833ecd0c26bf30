"""Deployment configuration loaded from `.env` + process environment."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Mapping

from dotenv import load_dotenv

from error_map import ERR_CONFIG_MISSING, EXIT_CONFIG_MISSING

SKILL_DIR = Path(__file__).resolve().parents[1]
DEFAULT_DOTENV = SKILL_DIR / ".env"
DEFAULT_SCRATCH_DIR = SKILL_DIR / ".scratch"
DEFAULT_CALL_SCHEMA = SKILL_DIR / "references" / "call-schema.yaml"
DEFAULT_GAS_BUDGET = 100_000_000

REQUIRED_ENV = (
    "SUI_NETWORK",
    "RECRD_PACKAGE_ID",
    "CORE_ADMIN_CAP",
    "RECRD_PRIVATE_KEY",
)
OPTIONAL_ENV = (
    "MASTER_PUBLISHER",
    "REGISTRY",
    "USER_PRIVATE_KEY",
    "PUBLISH_DIGEST",
    "SUI_BINARY",
    "RECRD_SCRATCH_DIR",
    "RECRD_GAS_BUDGET",
    "RECRD_CALL_SCHEMA",
)

# Access levels and sale status values as defined by the contract.
ACCESS = {
    "DEFAULT_ACCESS": 100,
    "BORROW_ACCESS": 110,
    "UPDATE_ACCESS": 120,
    "REMOVE_ACCESS": 150,
    "ADMIN_ACCESS": 200,
}
MIN_ACCESS_LEVEL = 0
MAX_ACCESS_LEVEL = 250

SALE_STATUS = {
    "RETAINED": 1,
    "ON_SALE": 2,
    "SUSPENDED": 3,
    "CLAIMED": 4,
}

MEDIA_TYPES = ("Video", "Audio")

log = logging.getLogger("recrd.config")


@dataclass(frozen=True)
class RecrdConfig:
    sui_network: str
    package_id: str
    admin_cap: str
    recrd_private_key: str
    publisher: str = ""
    registry: str = ""
    user_private_key: str = ""
    publish_digest: str = ""
    sui_binary: str = "sui"
    scratch_dir: Path = DEFAULT_SCRATCH_DIR
    gas_budget: int = DEFAULT_GAS_BUDGET
    call_schema_path: Path = DEFAULT_CALL_SCHEMA

    def media_type(self, kind: str) -> str:
        """Fully qualified `master::Video` / `master::Audio` type tag."""
        if kind not in MEDIA_TYPES:
            raise ValueError(f"media type must be one of {list(MEDIA_TYPES)}, got {kind!r}")
        return f"{self.package_id}::master::{kind}"

    def master_type(self, kind: str) -> str:
        return f"{self.package_id}::master::Master<{self.media_type(kind)}>"

    def metadata_type(self, kind: str) -> str:
        return f"{self.package_id}::master::Metadata<{self.media_type(kind)}>"


def _clean(env: Mapping[str, str], key: str) -> str:
    return str(env.get(key, "") or "").strip()


def env_presence(env: Mapping[str, str]) -> dict[str, bool]:
    return {key: bool(_clean(env, key)) for key in (*REQUIRED_ENV, *OPTIONAL_ENV)}


def load_config(env: Mapping[str, str]) -> tuple[bool, RecrdConfig | None, list[str]]:
    missing = [key for key in REQUIRED_ENV if not _clean(env, key)]
    if missing:
        return False, None, missing

    raw_budget = _clean(env, "RECRD_GAS_BUDGET")
    if raw_budget and not raw_budget.isdigit():
        return False, None, ["RECRD_GAS_BUDGET"]

    config = RecrdConfig(
        sui_network=_clean(env, "SUI_NETWORK"),
        package_id=_clean(env, "RECRD_PACKAGE_ID"),
        admin_cap=_clean(env, "CORE_ADMIN_CAP"),
        recrd_private_key=_clean(env, "RECRD_PRIVATE_KEY"),
        publisher=_clean(env, "MASTER_PUBLISHER"),
        registry=_clean(env, "REGISTRY"),
        user_private_key=_clean(env, "USER_PRIVATE_KEY"),
        publish_digest=_clean(env, "PUBLISH_DIGEST"),
        sui_binary=_clean(env, "SUI_BINARY") or "sui",
        scratch_dir=Path(_clean(env, "RECRD_SCRATCH_DIR") or DEFAULT_SCRATCH_DIR),
        gas_budget=int(raw_budget) if raw_budget else DEFAULT_GAS_BUDGET,
        call_schema_path=Path(_clean(env, "RECRD_CALL_SCHEMA") or DEFAULT_CALL_SCHEMA),
    )
    return True, config, []


def load_config_or_exit(
    env: Mapping[str, str] | None = None,
    *,
    dotenv_path: Path | None = None,
) -> RecrdConfig:
    """Load config or terminate with exit code 3 and a presence diagnostic."""
    if env is None:
        load_dotenv(dotenv_path or DEFAULT_DOTENV, override=False)
        env = os.environ

    presence = env_presence(env)
    for key in REQUIRED_ENV:
        log.debug("env contains %s: %s", key, presence[key])

    ok, config, missing = load_config(env)
    if ok and config is not None:
        return config

    payload: dict[str, Any] = {
        "timestamp_utc": datetime.now(UTC).isoformat(),
        "method": "config",
        "status": "error",
        "ok": False,
        "error_code": ERR_CONFIG_MISSING,
        "error_message": "critical environment variable(s) missing or invalid: " + ", ".join(missing),
        "present": sorted(key for key, seen in presence.items() if seen),
        "missing": missing,
        "hint": f"set the missing values in {dotenv_path or DEFAULT_DOTENV} or export them.",
    }
    print(json.dumps(payload, indent=2))
    raise SystemExit(EXIT_CONFIG_MISSING)
