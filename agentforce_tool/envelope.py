"""JSON envelope models for the stdin/stdout protocol."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from agentforce_tool.errors import EnvelopeError, ErrorCode


class ToolCall(BaseModel):
    """The ``tool`` member of a request envelope."""

    model_config = ConfigDict(frozen=True)

    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ErrorInfo(BaseModel):
    code: str
    message: str


class ToolResult(BaseModel):
    """Locally built result; backend results are passed through as plain dicts."""

    content: list[TextContent] = Field(min_length=1, max_length=1)
    error: ErrorInfo | None = None


class ResponseEnvelope(BaseModel):
    result: Any


def reject_constant(name: str) -> Any:
    """Refuse the NaN and Infinity literals Python's json module accepts."""
    raise ValueError(f"Invalid JSON constant: {name}")


def failure_result(summary: str, code: ErrorCode | str, message: str) -> dict[str, Any]:
    """Build the single result shape shared by every failure path."""
    code_value = code.value if isinstance(code, ErrorCode) else code
    result = ToolResult(
        content=[TextContent(text=summary)],
        error=ErrorInfo(code=code_value, message=message),
    )
    return result.model_dump(exclude_none=True)


def error_result(error: EnvelopeError) -> dict[str, Any]:
    return failure_result(error.summary, error.code, error.message)


def has_error(result: Any) -> bool:
    return isinstance(result, dict) and result.get("error") is not None


def render_response(result: Any) -> str:
    return ResponseEnvelope(result=result).model_dump_json()
