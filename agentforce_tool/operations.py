"""Fixed registry of backend operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from agentforce_tool.errors import ErrorCode, UnknownToolError

CALL_TOOL_PATH = "/mcp/call-tool"


class ForwardPolicy(str, Enum):
    VERBATIM = "verbatim"
    CREDENTIALS = "credentials"


@dataclass(frozen=True)
class OperationSpec:
    """Static description of one outbound call."""

    name: str
    label: str
    timeout: float
    error_code: ErrorCode
    policy: ForwardPolicy = ForwardPolicy.VERBATIM
    path: str = CALL_TOOL_PATH


class Operation(str, Enum):
    AUTHENTICATE = "agentforce_authenticate"
    CREATE_SESSION = "agentforce_create_session"
    SEND_MESSAGE = "agentforce_send_message"
    GET_STATUS = "agentforce_get_status"
    RESET = "agentforce_reset"

    @property
    def spec(self) -> OperationSpec:
        return REGISTRY[self]


REGISTRY: dict[Operation, OperationSpec] = {
    Operation.AUTHENTICATE: OperationSpec(
        name=Operation.AUTHENTICATE.value,
        label="Authentication",
        timeout=30.0,
        error_code=ErrorCode.AUTHENTICATION_ERROR,
        policy=ForwardPolicy.CREDENTIALS,
    ),
    Operation.CREATE_SESSION: OperationSpec(
        name=Operation.CREATE_SESSION.value,
        label="Session creation",
        timeout=60.0,
        error_code=ErrorCode.SESSION_CREATION_ERROR,
        policy=ForwardPolicy.CREDENTIALS,
    ),
    Operation.SEND_MESSAGE: OperationSpec(
        name=Operation.SEND_MESSAGE.value,
        label="Message sending",
        timeout=300.0,
        error_code=ErrorCode.MESSAGE_SENDING_ERROR,
        policy=ForwardPolicy.CREDENTIALS,
    ),
    Operation.GET_STATUS: OperationSpec(
        name=Operation.GET_STATUS.value,
        label="Status check",
        timeout=10.0,
        error_code=ErrorCode.STATUS_CHECK_ERROR,
    ),
    Operation.RESET: OperationSpec(
        name=Operation.RESET.value,
        label="Reset",
        timeout=10.0,
        error_code=ErrorCode.RESET_ERROR,
    ),
}


def resolve_operation(name: str) -> Operation:
    """Return the operation for ``name``; matching is exact and case-sensitive."""
    try:
        return Operation(name)
    except ValueError:
        raise UnknownToolError(name) from None
