"""Thin adapter that submits a step batch through `sui client ptb`."""

from __future__ import annotations

import json
import logging
import subprocess
from typing import Any, Callable

from error_map import (
    ERR_RPC_TIMEOUT,
    ERR_SUI_CLI_NOT_FOUND,
    ERR_SUI_NETWORK_MISMATCH,
    PreconditionError,
    SuiCliError,
)
from event_log import log_event
from object_changes import normalize_response
from ptb import UINT_BITS, validate_steps
from sui_keys import address_from_private_key

DEFAULT_TIMEOUT_SECONDS = 120.0

BatchExecutor = Callable[[list[dict[str, Any]], str], dict[str, Any]]

log = logging.getLogger("recrd.ptb")


def _quote(text: str) -> str:
    """PTB string literal; non-ASCII text is passed through as UTF-8."""
    return json.dumps(text, ensure_ascii=False)


def render_pure(arg: dict[str, Any]) -> str:
    type_tag = arg["type"]
    value = arg["value"]
    if type_tag in UINT_BITS:
        return f"{value}{type_tag}"
    if type_tag == "bool":
        return "true" if value else "false"
    if type_tag == "string":
        return _quote(value)
    if type_tag in {"address", "id"}:
        return f"@{value}"
    if type_tag == "vector<string>":
        return "vector[" + ",".join(_quote(item) for item in value) + "]"
    if type_tag == "vector<u8>":
        return "vector[" + ",".join(f"{item}u8" for item in value) + "]"
    raise PreconditionError(f"cannot render pure type {type_tag}")


def render_arg(arg: dict[str, Any]) -> str:
    kind = arg.get("kind")
    if kind == "object":
        return f"@{arg['id']}"
    if kind == "pure":
        return render_pure(arg)
    if kind == "result":
        name = f"s{arg['step']}"
        return name if arg.get("index") is None else f"{name}.{arg['index']}"
    raise PreconditionError(f"cannot render argument kind {kind!r}")


def render_steps(steps: list[dict[str, Any]], *, gas_budget: int) -> list[str]:
    """PTB CLI tokens; every move call result is bound to `s<index>`."""
    validate_steps(steps)
    tokens: list[str] = []
    for idx, step in enumerate(steps):
        if step["kind"] == "move_call":
            tokens.extend(["--move-call", step["target"]])
            if step["type_arguments"]:
                tokens.append("<" + ",".join(step["type_arguments"]) + ">")
            tokens.extend(render_arg(arg) for arg in step["arguments"])
            tokens.extend(["--assign", f"s{idx}"])
        else:
            objects = ",".join(render_arg(arg) for arg in step["objects"])
            tokens.extend(["--transfer-objects", f"[{objects}]", render_arg(step["recipient"])])
    tokens.extend(["--gas-budget", str(int(gas_budget)), "--json"])
    return tokens


def _maybe_parse_json(text: str) -> Any:
    text = text.strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        if start < 0:
            return None
        try:
            return json.loads(text[start:])
        except json.JSONDecodeError:
            return None


def _same_rpc(left: str, right: str) -> bool:
    return left.strip().rstrip("/").lower() == right.strip().rstrip("/").lower()


class SuiCliExecutor:
    """Submit batches with the local Sui CLI keystore.

    Signer keys must already be imported into the keystore; the executor only
    switches the active address to the one derived from the given key.
    When `rpc_url` is set, the CLI environment with that RPC url is made
    active before the first batch.
    """

    def __init__(
        self,
        *,
        sui_binary: str = "sui",
        gas_budget: int,
        rpc_url: str | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        env: dict[str, str] | None = None,
    ) -> None:
        self.sui_binary = sui_binary
        self.gas_budget = gas_budget
        self.rpc_url = rpc_url
        self.timeout_seconds = timeout_seconds
        self.env = env
        self._active_address: str | None = None
        self._network_ready = False

    def _run(self, args: list[str]) -> tuple[int, str, str]:
        cmd = [self.sui_binary, *args]
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout_seconds,
                env=self.env,
            )
        except FileNotFoundError as err:
            raise SuiCliError(f"sui binary not found: {self.sui_binary}", code=ERR_SUI_CLI_NOT_FOUND) from err
        except subprocess.TimeoutExpired as err:
            raise SuiCliError(f"sui command timed out: {' '.join(args[:2])}", code=ERR_RPC_TIMEOUT) from err
        return proc.returncode, proc.stdout.strip(), proc.stderr.strip()

    def ensure_network(self) -> None:
        if not self.rpc_url or self._network_ready:
            return
        rc, stdout, stderr = self._run(["client", "envs", "--json"])
        parsed = _maybe_parse_json(stdout)
        if rc != 0 or not isinstance(parsed, list) or len(parsed) != 2 or not isinstance(parsed[0], list):
            raise SuiCliError(
                f"could not list sui client environments: {stderr or stdout}",
                details={"exit_code": rc},
            )
        envs, active = parsed
        alias = next(
            (
                entry.get("alias")
                for entry in envs
                if isinstance(entry, dict) and _same_rpc(str(entry.get("rpc", "")), self.rpc_url)
            ),
            None,
        )
        if alias is None:
            raise SuiCliError(
                f"no sui client environment points at {self.rpc_url} (active: {active})",
                code=ERR_SUI_NETWORK_MISMATCH,
                details={
                    "active_env": active,
                    "hint": f"add one with `sui client new-env --alias recrd --rpc {self.rpc_url}`.",
                },
            )
        if alias != active:
            rc, stdout, stderr = self._run(["client", "switch", "--env", str(alias)])
            if rc != 0:
                raise SuiCliError(
                    f"could not switch sui client environment to {alias}: {stderr or stdout}",
                    code=ERR_SUI_NETWORK_MISMATCH,
                )
            log_event(log, "sui.env_switch", previous=active, alias=alias, rpc=self.rpc_url)
        self._network_ready = True

    def switch_signer(self, signer_key: str) -> str:
        address = address_from_private_key(signer_key)
        if address == self._active_address:
            return address
        rc, stdout, stderr = self._run(["client", "switch", "--address", address])
        if rc != 0:
            raise SuiCliError(
                f"could not switch active address to {address}: {stderr or stdout}",
                details={"hint": "import the key with `sui keytool import` first."},
            )
        self._active_address = address
        return address

    def __call__(self, steps: list[dict[str, Any]], signer_key: str) -> dict[str, Any]:
        tokens = render_steps(steps, gas_budget=self.gas_budget)
        self.ensure_network()
        sender = self.switch_signer(signer_key)
        log.debug("submitting %d step(s) as %s", len(steps), sender)
        rc, stdout, stderr = self._run(["client", "ptb", *tokens])
        parsed = _maybe_parse_json(stdout)
        if not isinstance(parsed, dict) or "effects" not in parsed:
            raise SuiCliError(
                stderr or stdout or f"sui client ptb failed with exit code {rc}",
                details={"exit_code": rc},
            )
        return normalize_response(parsed)


def build_cli_executor(config) -> SuiCliExecutor:
    return SuiCliExecutor(
        sui_binary=config.sui_binary,
        gas_budget=config.gas_budget,
        rpc_url=config.sui_network,
    )
