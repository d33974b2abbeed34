"""Error codes and the exception hierarchy for request handling."""

from __future__ import annotations

from enum import Enum
from typing import Any

from agentforce_tool.exit_codes import ExitCode


class ErrorCode(str, Enum):
    PARSE_ERROR = "parse_error"
    INVALID_REQUEST = "invalid_request"
    UNKNOWN_TOOL = "unknown_tool"
    AUTHENTICATION_ERROR = "authentication_error"
    SESSION_CREATION_ERROR = "session_creation_error"
    MESSAGE_SENDING_ERROR = "message_sending_error"
    STATUS_CHECK_ERROR = "status_check_error"
    RESET_ERROR = "reset_error"
    PROCESSING_ERROR = "processing_error"


class EnvelopeError(Exception):
    """Base error that is reported to the caller as a response envelope."""

    summary_prefix = "Error"

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        exit_code: ExitCode | int = ExitCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.exit_code = int(exit_code)
        self.details = details or {}

    @property
    def summary(self) -> str:
        return f"{self.summary_prefix}: {self.message}"


class ParseError(EnvelopeError):
    """Input could not be parsed as a JSON document."""

    summary_prefix = "Invalid JSON input"

    def __init__(self, message: str, exit_code: ExitCode | int = ExitCode.INVALID_INPUT) -> None:
        super().__init__(message, ErrorCode.PARSE_ERROR, exit_code=exit_code)


class InvalidRequestError(EnvelopeError):
    """Input parsed but is missing a required field."""

    summary_prefix = "Invalid request"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            ErrorCode.INVALID_REQUEST,
            exit_code=ExitCode.INVALID_INPUT,
            details=details,
        )


class UnknownToolError(EnvelopeError):
    """The requested tool name is not in the operation registry."""

    def __init__(self, name: Any) -> None:
        super().__init__(
            f"Unknown tool: {name}",
            ErrorCode.UNKNOWN_TOOL,
            exit_code=ExitCode.INVALID_INPUT,
            details={"name": name},
        )

    @property
    def summary(self) -> str:
        return self.message


class ProcessingError(EnvelopeError):
    """Unexpected failure while handling a request."""

    summary_prefix = "Error processing request"

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorCode.PROCESSING_ERROR, exit_code=ExitCode.INTERNAL_ERROR)
