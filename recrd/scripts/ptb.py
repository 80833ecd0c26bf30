"""Tagged step descriptors for one programmable transaction batch.

A batch is an ordered list of steps. Arguments are tagged descriptors:

* ``{"kind": "object", "id": ...}``          owned/shared object reference
* ``{"kind": "pure", "type": ..., "value": ...}``  declared value
* ``{"kind": "result", "step": i, "index": j}``    output of an earlier step

Later steps reference earlier ones by position, so step order is part of the
batch's meaning and must never be changed once built.
"""

from __future__ import annotations

import re
from typing import Any

from error_map import PreconditionError

HEX_ID_RE = re.compile(r"^0x[0-9a-fA-F]{1,64}$")
UINT_BITS = {"u8": 8, "u16": 16, "u32": 32, "u64": 64, "u128": 128, "u256": 256}

STEP_KINDS = {"move_call", "transfer_objects"}


def target(package: str, module: str, function: str) -> str:
    return f"{package}::{module}::{function}"


def object_ref(object_id: str, *, receiving: bool = False) -> dict[str, Any]:
    if not isinstance(object_id, str) or not HEX_ID_RE.fullmatch(object_id):
        raise PreconditionError(f"object id must be 0x-prefixed hex, got {object_id!r}")
    ref: dict[str, Any] = {"kind": "object", "id": object_id}
    if receiving:
        ref["receiving"] = True
    return ref


def receiving_ref(object_id: str) -> dict[str, Any]:
    return object_ref(object_id, receiving=True)


def _check_pure(value: Any, type_tag: str) -> None:
    if type_tag in UINT_BITS:
        if isinstance(value, bool) or not isinstance(value, int):
            raise PreconditionError(f"{type_tag} value must be an integer, got {value!r}")
        if value < 0 or value >= (1 << UINT_BITS[type_tag]):
            raise PreconditionError(f"{type_tag} value out of range: {value}")
        return
    if type_tag == "bool":
        if not isinstance(value, bool):
            raise PreconditionError(f"bool value expected, got {value!r}")
        return
    if type_tag == "string":
        if not isinstance(value, str):
            raise PreconditionError(f"string value expected, got {value!r}")
        return
    if type_tag in {"address", "id"}:
        if not isinstance(value, str) or not HEX_ID_RE.fullmatch(value):
            raise PreconditionError(f"{type_tag} value must be 0x-prefixed hex, got {value!r}")
        return
    if type_tag == "vector<string>":
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise PreconditionError("vector<string> value must be a list of strings")
        return
    if type_tag == "vector<u8>":
        if not isinstance(value, list) or not all(
            isinstance(v, int) and not isinstance(v, bool) and 0 <= v < 256 for v in value
        ):
            raise PreconditionError("vector<u8> value must be a list of byte integers")
        return
    raise PreconditionError(f"unsupported pure type: {type_tag}")


def pure(value: Any, type_tag: str) -> dict[str, Any]:
    _check_pure(value, type_tag)
    return {"kind": "pure", "type": type_tag, "value": value}


def step_result(step: int, index: int | None = None) -> dict[str, Any]:
    if isinstance(step, bool) or not isinstance(step, int) or step < 0:
        raise PreconditionError("step_result.step must be a non-negative integer")
    if index is not None and (isinstance(index, bool) or not isinstance(index, int) or index < 0):
        raise PreconditionError("step_result.index must be a non-negative integer")
    return {"kind": "result", "step": step, "index": index}


def move_call(
    call_target: str,
    arguments: list[dict[str, Any]],
    type_arguments: list[str] | None = None,
) -> dict[str, Any]:
    if call_target.count("::") != 2:
        raise PreconditionError(f"move call target must be package::module::function, got {call_target!r}")
    return {
        "kind": "move_call",
        "target": call_target,
        "type_arguments": list(type_arguments or []),
        "arguments": list(arguments),
    }


def transfer_objects(objects: list[dict[str, Any]], recipient: dict[str, Any]) -> dict[str, Any]:
    if not objects:
        raise PreconditionError("transfer_objects requires at least one object")
    return {"kind": "transfer_objects", "objects": list(objects), "recipient": recipient}


def _step_arguments(step: dict[str, Any]) -> list[dict[str, Any]]:
    if step["kind"] == "move_call":
        return list(step["arguments"])
    return [*step["objects"], step["recipient"]]


def validate_steps(steps: list[dict[str, Any]]) -> None:
    """Raise when a step is malformed or references a step that has not run yet."""
    if not isinstance(steps, list) or not steps:
        raise PreconditionError("batch must contain at least one step")
    for idx, step in enumerate(steps):
        if not isinstance(step, dict) or step.get("kind") not in STEP_KINDS:
            raise PreconditionError(f"steps[{idx}] has unknown kind")
        for arg in _step_arguments(step):
            kind = arg.get("kind") if isinstance(arg, dict) else None
            if kind == "result":
                if arg["step"] >= idx:
                    raise PreconditionError(
                        f"steps[{idx}] references result of step {arg['step']} which does not precede it"
                    )
                if steps[arg["step"]]["kind"] != "move_call":
                    raise PreconditionError(f"steps[{idx}] references a step without outputs")
            elif kind not in {"object", "pure"}:
                raise PreconditionError(f"steps[{idx}] has an argument with unknown kind: {kind!r}")


def summarize(steps: list[dict[str, Any]]) -> list[str]:
    out: list[str] = []
    for step in steps:
        if step["kind"] == "move_call":
            out.append(step["target"])
        else:
            out.append("transfer_objects")
    return out
