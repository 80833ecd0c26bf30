"""Bundle of config, batch executor and RPC reader shared by workflows."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from call_schema import load_call_schema, validate_batch
from event_log import log_event
from ptb import summarize, validate_steps
from ptb_cli import BatchExecutor, build_cli_executor
from recrd_config import RecrdConfig
from sui_transport import RpcCaller, build_rpc_caller

log = logging.getLogger("recrd.session")


@dataclass
class Session:
    config: RecrdConfig
    execute: BatchExecutor
    call: RpcCaller
    schema: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.schema:
            self.schema = load_call_schema(self.config.call_schema_path)

    @property
    def admin_key(self) -> str:
        return self.config.recrd_private_key

    @property
    def user_key(self) -> str:
        return self.config.user_private_key or self.config.recrd_private_key

    def check(self, steps: list[dict[str, Any]]) -> None:
        validate_steps(steps)
        validate_batch(steps, self.schema, package_id=self.config.package_id)

    def submit(self, steps: list[dict[str, Any]], *, signer_key: str, action: str) -> dict[str, Any]:
        """Validate locally, then submit the batch as one round trip."""
        self.check(steps)
        log_event(log, "batch.submit", action=action, steps=summarize(steps))
        start = time.perf_counter()
        response = self.execute(steps, signer_key)
        log_event(
            log,
            "batch.done",
            action=action,
            digest=response.get("digest"),
            status=response.get("status"),
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
        return response


def build_session(config: RecrdConfig) -> Session:
    return Session(
        config=config,
        execute=build_cli_executor(config),
        call=build_rpc_caller(config.sui_network),
    )
