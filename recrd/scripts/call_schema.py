"""Pinned contract call schema: loading and batch validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from error_map import CallSchemaError

FRAMEWORK_ALIASES = {
    "0x1": "0x1",
    "0x2": "0x2",
    "0x" + "0" * 63 + "1": "0x1",
    "0x" + "0" * 63 + "2": "0x2",
}
ARG_KINDS = {"object", "receiving", "result"}


def load_call_schema(path: Path) -> dict[str, Any]:
    raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise CallSchemaError(f"call schema must be a YAML mapping: {path}")

    package_alias = str(raw.get("package_alias", "recrd"))
    entries: dict[str, dict[str, Any]] = {}
    for idx, entry in enumerate(raw.get("entries", [])):
        call = str(entry.get("call", "")).strip()
        package = str(entry.get("package", package_alias)).strip()
        if call.count("::") != 1 or not package:
            raise CallSchemaError(f"call schema entries[{idx}] has malformed call {call!r}")
        args = entry.get("args", [])
        if not isinstance(args, list):
            raise CallSchemaError(f"call schema entries[{idx}].args must be a list")
        for arg in args:
            for option in str(arg).split("|"):
                if option not in ARG_KINDS and not option.startswith("pure:"):
                    raise CallSchemaError(f"call schema entries[{idx}] has unknown arg kind {option!r}")
        entries[f"{package}::{call}"] = {
            "call": call,
            "package": package,
            "type_params": int(entry.get("type_params", 0)),
            "args": [str(arg) for arg in args],
        }

    return {
        "contract_version": raw.get("contract_version"),
        "package_alias": package_alias,
        "entries": entries,
    }


def schema_key(call_target: str, *, package_id: str, package_alias: str) -> str:
    package, module, function = call_target.split("::")
    if package == package_id:
        alias = package_alias
    else:
        alias = FRAMEWORK_ALIASES.get(package.lower(), package)
    return f"{alias}::{module}::{function}"


def _arg_matches(arg: dict[str, Any], expected: str) -> bool:
    for option in expected.split("|"):
        kind = arg.get("kind")
        if option == "object" and kind == "object" and not arg.get("receiving"):
            return True
        if option == "receiving" and kind == "object" and arg.get("receiving"):
            return True
        if option == "result" and kind == "result":
            return True
        if option.startswith("pure:") and kind == "pure" and arg.get("type") == option[len("pure:"):]:
            return True
    return False


def _describe_arg(arg: dict[str, Any]) -> str:
    if arg.get("kind") == "pure":
        return f"pure:{arg.get('type')}"
    if arg.get("kind") == "object" and arg.get("receiving"):
        return "receiving"
    return str(arg.get("kind"))


def validate_batch(steps: list[dict[str, Any]], schema: dict[str, Any], *, package_id: str) -> None:
    """Raise CallSchemaError unless every move call fits the pinned schema."""
    entries = schema["entries"]
    alias = schema["package_alias"]
    for idx, step in enumerate(steps):
        if step.get("kind") != "move_call":
            continue
        key = schema_key(step["target"], package_id=package_id, package_alias=alias)
        entry = entries.get(key)
        if entry is None:
            raise CallSchemaError(
                f"steps[{idx}] target {key} is not part of contract version {schema['contract_version']}"
            )
        if len(step["type_arguments"]) != entry["type_params"]:
            raise CallSchemaError(
                f"steps[{idx}] {key} expects {entry['type_params']} type argument(s), "
                f"got {len(step['type_arguments'])}"
            )
        if len(step["arguments"]) != len(entry["args"]):
            raise CallSchemaError(
                f"steps[{idx}] {key} expects {len(entry['args'])} argument(s), got {len(step['arguments'])}"
            )
        for pos, (arg, expected) in enumerate(zip(step["arguments"], entry["args"])):
            if not _arg_matches(arg, expected):
                raise CallSchemaError(
                    f"steps[{idx}] {key} argument {pos} expects {expected}, got {_describe_arg(arg)}"
                )


def schema_summary(schema: dict[str, Any]) -> dict[str, Any]:
    module_counts: dict[str, int] = {}
    for entry in schema["entries"].values():
        module = f"{entry['package']}::{entry['call'].split('::')[0]}"
        module_counts[module] = module_counts.get(module, 0) + 1
    return {
        "contract_version": schema["contract_version"],
        "count": len(schema["entries"]),
        "module_counts": module_counts,
        "calls": sorted(schema["entries"].keys()),
    }
