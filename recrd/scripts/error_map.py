"""Stable error codes and the exceptions that carry them."""

from __future__ import annotations

ERR_CONFIG_MISSING = "CONFIG_MISSING"
ERR_INVALID_REQUEST = "INVALID_REQUEST"
ERR_PRECONDITION = "PRECONDITION_FAILED"
ERR_CALL_SCHEMA_MISMATCH = "CALL_SCHEMA_MISMATCH"
ERR_RPC_TRANSPORT = "RPC_TRANSPORT_ERROR"
ERR_RPC_TIMEOUT = "RPC_TIMEOUT"
ERR_RPC_REMOTE = "RPC_REMOTE_ERROR"
ERR_RPC_RATE_LIMITED = "RPC_RATE_LIMITED"
ERR_RPC_TRUNCATED = "RPC_RESULT_TRUNCATED"
ERR_EXECUTION_FAILED = "EXECUTION_FAILED"
ERR_OBJECT_NOT_FOUND = "OBJECT_NOT_FOUND"
ERR_SCRATCH_ID_MISSING = "SCRATCH_ID_MISSING"
ERR_SUI_CLI_NOT_FOUND = "SUI_CLI_NOT_FOUND"
ERR_SUI_CLI_FAILED = "SUI_CLI_FAILED"
ERR_SUI_NETWORK_MISMATCH = "SUI_NETWORK_MISMATCH"
ERR_INTERNAL = "INTERNAL_ERROR"

EXIT_OK = 0
EXIT_REMOTE_FAILURE = 1
EXIT_INVALID = 2
EXIT_CONFIG_MISSING = 3

EXIT_CODE_BY_ERROR = {
    ERR_CONFIG_MISSING: EXIT_CONFIG_MISSING,
    ERR_INVALID_REQUEST: EXIT_INVALID,
    ERR_PRECONDITION: EXIT_INVALID,
    ERR_CALL_SCHEMA_MISMATCH: EXIT_INVALID,
    ERR_SCRATCH_ID_MISSING: EXIT_INVALID,
    ERR_SUI_NETWORK_MISMATCH: EXIT_INVALID,
}

# MoveAbort codes raised by the profile module.
MOVE_ABORT_MESSAGES = {
    "1": "Sender is not authorized to access the Profile",
    "2": "The object being received is not of the expected type.",
}


class RecrdError(Exception):
    code = ERR_INTERNAL

    def __init__(self, message: str, *, code: str | None = None, details: dict | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code
        self.details = details or {}

    @property
    def exit_code(self) -> int:
        return EXIT_CODE_BY_ERROR.get(self.code, EXIT_REMOTE_FAILURE)


class PreconditionError(RecrdError, ValueError):
    code = ERR_PRECONDITION


class CallSchemaError(RecrdError):
    code = ERR_CALL_SCHEMA_MISMATCH


class RpcError(RecrdError):
    code = ERR_RPC_REMOTE


class ExecutionFailure(RecrdError):
    code = ERR_EXECUTION_FAILED


class ObjectNotFound(RecrdError):
    code = ERR_OBJECT_NOT_FOUND


class ScratchIdMissing(RecrdError):
    code = ERR_SCRATCH_ID_MISSING


class SuiCliError(RecrdError):
    code = ERR_SUI_CLI_FAILED
