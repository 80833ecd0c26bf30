"""HTTP JSON-RPC transport to a Sui full node, bounded retries for reads."""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.request
from itertools import count
from typing import Any, Callable

from error_map import ERR_RPC_RATE_LIMITED, ERR_RPC_REMOTE, ERR_RPC_TIMEOUT, ERR_RPC_TRANSPORT, RpcError
from event_log import log_event

RETRYABLE_HTTP_CODES = {429, 502, 503, 504}
BACKOFF_SECONDS = (0.15, 0.40, 1.0)
MAX_RETRY_AFTER_SECONDS = 5.0
DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_RETRIES = 2

RATE_LIMIT_HINT = (
    "the full node is rate limiting this client; wait and retry, or point SUI_NETWORK at a "
    "dedicated RPC provider."
)

RpcCaller = Callable[[str, list[Any]], Any]

log = logging.getLogger("recrd.rpc")


def _retry_delay(attempt: int, retry_after: str | None) -> float:
    """Seconds to wait before the next attempt; a numeric Retry-After wins, capped."""
    if retry_after:
        try:
            return min(max(float(retry_after), 0.0), MAX_RETRY_AFTER_SECONDS)
        except ValueError:
            pass
    return BACKOFF_SECONDS[min(attempt, len(BACKOFF_SECONDS) - 1)]


def _failure(code: str, message: str, *, rpc_response: Any = None, hint: str | None = None) -> dict[str, Any]:
    failure = {"ok": False, "error_code": code, "error_message": message, "rpc_response": rpc_response}
    if hint:
        failure["hint"] = hint
    return failure


def _is_timeout(err: urllib.error.URLError) -> bool:
    return isinstance(err.reason, TimeoutError)


def invoke_rpc(
    *,
    rpc_url: str,
    payload: dict[str, Any],
    timeout_seconds: float,
    retries: int,
) -> dict[str, Any]:
    """POST one JSON-RPC request.

    Returns ``{"ok", "error_code", "error_message", "rpc_response"}`` plus
    ``attempts``; a ``hint`` is added when the operator can act on the failure.
    A JSON-RPC ``error`` member is a successful transport round trip and is left
    for the caller to interpret.
    """
    body = json.dumps(payload).encode("utf-8")
    method = payload.get("method")
    outcome: dict[str, Any] = _failure(ERR_RPC_TRANSPORT, "no attempt made")

    for attempt in range(retries + 1):
        req = urllib.request.Request(
            rpc_url,
            data=body,
            method="POST",
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )
        retry_after: str | None = None
        try:
            with urllib.request.urlopen(req, timeout=timeout_seconds) as resp:
                text = resp.read().decode("utf-8")
            try:
                outcome = {
                    "ok": True,
                    "error_code": None,
                    "error_message": None,
                    "rpc_response": json.loads(text),
                }
            except json.JSONDecodeError:
                outcome = _failure(
                    ERR_RPC_TRANSPORT,
                    "full node returned a non-json body",
                    rpc_response={"raw": text[:500]},
                    hint="check that SUI_NETWORK is a JSON-RPC endpoint, not an explorer or GraphQL url.",
                )
            break
        except TimeoutError as err:
            outcome = _failure(ERR_RPC_TIMEOUT, f"{method} timed out after {timeout_seconds}s: {err}")
            break
        except urllib.error.HTTPError as err:
            text = err.read().decode("utf-8", errors="replace")
            retry_after = err.headers.get("Retry-After") if err.headers else None
            if err.code == 429:
                outcome = _failure(
                    ERR_RPC_RATE_LIMITED,
                    f"{method} rate limited (http 429)",
                    rpc_response={"status": err.code, "raw": text[:500]},
                    hint=RATE_LIMIT_HINT,
                )
            else:
                outcome = _failure(
                    ERR_RPC_TRANSPORT,
                    f"http error {err.code}",
                    rpc_response={"status": err.code, "raw": text[:500]},
                )
            if err.code not in RETRYABLE_HTTP_CODES:
                break
        except urllib.error.URLError as err:
            if _is_timeout(err):
                outcome = _failure(ERR_RPC_TIMEOUT, f"{method} timed out after {timeout_seconds}s")
                break
            outcome = _failure(
                ERR_RPC_TRANSPORT,
                str(err.reason),
                hint=f"could not reach {rpc_url}; check SUI_NETWORK.",
            )

        if attempt < retries:
            delay = _retry_delay(attempt, retry_after)
            log_event(
                log,
                "rpc.retry",
                method=method,
                attempt=attempt + 1,
                error_code=outcome["error_code"],
                delay_s=delay,
            )
            time.sleep(delay)

    outcome["attempts"] = attempt + 1
    return outcome


def build_rpc_caller(
    rpc_url: str,
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    retries: int = DEFAULT_RETRIES,
) -> RpcCaller:
    """Return `call(method, params) -> result`, raising RpcError on any failure."""
    ids = count(1)

    def _call(method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(ids), "method": method, "params": params}
        transport = invoke_rpc(
            rpc_url=rpc_url,
            payload=payload,
            timeout_seconds=timeout_seconds,
            retries=retries,
        )
        if not transport["ok"]:
            details: dict[str, Any] = {
                "rpc_response": transport.get("rpc_response"),
                "attempts": transport.get("attempts"),
            }
            if transport.get("hint"):
                details["hint"] = transport["hint"]
            raise RpcError(
                f"{method}: {transport['error_message']}",
                code=transport["error_code"],
                details=details,
            )
        rpc_response = transport["rpc_response"]
        if not isinstance(rpc_response, dict):
            raise RpcError(f"{method}: rpc response must be an object", code=ERR_RPC_TRANSPORT)
        if "error" in rpc_response:
            err = rpc_response["error"]
            message = err.get("message", "") if isinstance(err, dict) else str(err)
            raise RpcError(
                f"{method}: {message or 'rpc returned an error response'}",
                code=ERR_RPC_REMOTE,
                details={"rpc_response": rpc_response},
            )
        return rpc_response.get("result")

    return _call
