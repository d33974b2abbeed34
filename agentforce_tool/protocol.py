"""Envelope protocol: one request in on stdin, one response out on stdout."""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

from agentforce_tool.envelope import ToolCall, error_result, has_error, reject_constant, render_response
from agentforce_tool.errors import EnvelopeError, InvalidRequestError, ParseError, ProcessingError
from agentforce_tool.exit_codes import ExitCode
from agentforce_tool.operations import resolve_operation

if TYPE_CHECKING:
    from agentforce_tool.dispatcher import Dispatcher

logger = logging.getLogger(__name__)


def parse_request(raw: str) -> ToolCall:
    """Parse and validate a request envelope.

    Raises:
        ParseError: input is empty or not JSON.
        InvalidRequestError: ``tool``, ``tool.name`` or ``tool.args`` is missing.
    """
    if not raw.strip():
        raise ParseError("No input received", exit_code=ExitCode.INPUT_MISSING)

    try:
        request = json.loads(raw, parse_constant=reject_constant)
    except RecursionError as exc:
        raise ParseError("Input is nested too deeply") from exc
    except ValueError as exc:
        raise ParseError(str(exc)) from exc

    tool = request.get("tool") if isinstance(request, dict) else None
    if not isinstance(tool, dict):
        raise InvalidRequestError("Missing tool field")

    name = tool.get("name")
    if not isinstance(name, str):
        raise InvalidRequestError("Missing name field")

    if "args" not in tool or tool["args"] is None:
        raise InvalidRequestError("Missing args field", details={"tool": name})
    args = tool["args"]
    if not isinstance(args, dict):
        raise InvalidRequestError("Invalid args field: expected an object", details={"tool": name})

    return ToolCall(name=name, args=args)


def handle_request(raw: str, dispatcher: Dispatcher) -> tuple[Any, int]:
    """Run one request through validation and dispatch.

    Returns the response ``result`` payload and the process exit code. Never
    raises for request-level failures; every path yields exactly one result.
    """
    try:
        call = parse_request(raw)
        operation = resolve_operation(call.name)
        logger.info("Dispatching %s", operation.value)
        result = dispatcher.dispatch(operation, call.args)
    except EnvelopeError as exc:
        logger.error("%s", exc.summary)
        if exc.details:
            logger.debug("Error details: %s", exc.details)
        return error_result(exc), exc.exit_code
    except Exception as exc:
        logger.exception("Error processing request")
        error = ProcessingError(str(exc) or exc.__class__.__name__)
        return error_result(error), error.exit_code

    if has_error(result):
        return result, int(ExitCode.OPERATION_FAILED)
    return result, int(ExitCode.SUCCESS)


def run(
    dispatcher: Dispatcher,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    """Consume stdin to end-of-stream, write one response, return the exit code."""
    source = stdin or sys.stdin
    sink = stdout or sys.stdout
    try:
        raw = source.read()
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Failed to read from stdin: %s", exc)
        error = ParseError(f"Failed to read from stdin: {exc}", exit_code=ExitCode.INPUT_MISSING)
        result, exit_code = error_result(error), error.exit_code
    else:
        result, exit_code = handle_request(raw, dispatcher)

    sink.write(render_response(result))
    sink.write("\n")
    sink.flush()
    return exit_code
