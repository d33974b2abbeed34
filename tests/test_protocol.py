"""Tests for request parsing, validation and the response cycle."""

from __future__ import annotations

import io
import json

import httpx
import pytest

from agentforce_tool.errors import ErrorCode, InvalidRequestError, ParseError
from agentforce_tool.exit_codes import ExitCode
from agentforce_tool.protocol import handle_request, parse_request, run


def _request(name: str = "agentforce_get_status", args: object = None) -> str:
    return json.dumps({"tool": {"name": name, "args": {} if args is None else args}})


class TestParseRequest:
    def test_valid_envelope(self) -> None:
        call = parse_request(_request(args={"clientId": "c1"}))
        assert call.name == "agentforce_get_status"
        assert call.args == {"clientId": "c1"}

    @pytest.mark.parametrize("raw", ["", "   ", "\n\t\n"])
    def test_empty_input(self, raw: str) -> None:
        with pytest.raises(ParseError) as excinfo:
            parse_request(raw)
        assert excinfo.value.message == "No input received"
        assert excinfo.value.exit_code == ExitCode.INPUT_MISSING

    def test_malformed_json(self) -> None:
        with pytest.raises(ParseError) as excinfo:
            parse_request('{"tool": ')
        assert excinfo.value.code is ErrorCode.PARSE_ERROR
        assert excinfo.value.exit_code == ExitCode.INVALID_INPUT

    @pytest.mark.parametrize("raw", ["{}", "[]", "42", '{"tool": null}', '{"tool": "x"}'])
    def test_missing_tool(self, raw: str) -> None:
        with pytest.raises(InvalidRequestError, match="Missing tool field"):
            parse_request(raw)

    def test_missing_name(self) -> None:
        with pytest.raises(InvalidRequestError, match="Missing name field"):
            parse_request('{"tool": {"args": {}}}')

    @pytest.mark.parametrize("raw", ['{"tool": {"name": "agentforce_reset"}}', '{"tool": {"name": "agentforce_reset", "args": null}}'])
    def test_missing_args_even_when_operation_ignores_them(self, raw: str) -> None:
        with pytest.raises(InvalidRequestError) as excinfo:
            parse_request(raw)
        assert excinfo.value.message == "Missing args field"

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_constants_are_parse_errors(self, constant: str) -> None:
        raw = '{"tool": {"name": "agentforce_get_status", "args": {"x": ' + constant + "}}}"
        with pytest.raises(ParseError) as excinfo:
            parse_request(raw)
        assert excinfo.value.message == f"Invalid JSON constant: {constant}"
        assert excinfo.value.exit_code == ExitCode.INVALID_INPUT

    def test_deeply_nested_input_is_parse_error(self) -> None:
        with pytest.raises(ParseError) as excinfo:
            parse_request("[" * 100000 + "]" * 100000)
        assert excinfo.value.message == "Input is nested too deeply"

    def test_args_must_be_object(self) -> None:
        with pytest.raises(InvalidRequestError, match="expected an object"):
            parse_request('{"tool": {"name": "agentforce_reset", "args": [1, 2]}}')


class TestHandleRequest:
    def test_status_scenario(self, dispatcher, backend) -> None:
        backend.respond_result("ok")
        result, exit_code = handle_request(_request(args={"clientId": "c1"}), dispatcher)
        assert result == {"content": [{"type": "text", "text": "ok"}]}
        assert exit_code == 0
        assert len(backend.requests) == 1

    def test_unknown_tool(self, dispatcher, backend) -> None:
        result, exit_code = handle_request(_request("bogus_tool"), dispatcher)
        assert result["error"] == {"code": "unknown_tool", "message": "Unknown tool: bogus_tool"}
        assert result["content"] == [{"type": "text", "text": "Unknown tool: bogus_tool"}]
        assert exit_code != 0
        assert backend.requests == []

    def test_missing_args_is_checked_before_name_lookup(self, dispatcher, backend) -> None:
        result, exit_code = handle_request('{"tool": {"name": "bogus_tool"}}', dispatcher)
        assert result["error"] == {"code": "invalid_request", "message": "Missing args field"}
        assert exit_code == ExitCode.INVALID_INPUT
        assert backend.requests == []

    def test_parse_error_message(self, dispatcher) -> None:
        result, exit_code = handle_request("not json", dispatcher)
        assert result["error"]["code"] == "parse_error"
        assert result["error"]["message"]
        assert len(result["content"]) == 1
        assert exit_code != 0

    def test_nan_argument_never_reaches_backend(self, dispatcher, backend) -> None:
        result, exit_code = handle_request('{"tool": {"name": "agentforce_get_status", "args": {"x": NaN}}}', dispatcher)
        assert result["error"]["code"] == "parse_error"
        assert exit_code == ExitCode.INVALID_INPUT
        assert backend.requests == []

    def test_backend_unreachable_during_send_message(self, dispatcher, backend) -> None:
        backend.fail(httpx.ConnectError("Connection refused"))
        result, exit_code = handle_request(_request("agentforce_send_message", {"message": "hi"}), dispatcher)
        assert result["content"][0]["text"].startswith("Message sending failed:")
        assert result["error"]["code"] == "message_sending_error"
        assert exit_code == ExitCode.OPERATION_FAILED

    def test_backend_reported_error_in_result_sets_failure_exit(self, dispatcher, backend) -> None:
        backend.respond(
            json_body={"result": {"content": [{"type": "text", "text": "nope"}], "error": {"code": "x", "message": "y"}}}
        )
        result, exit_code = handle_request(_request(), dispatcher)
        assert result["error"] == {"code": "x", "message": "y"}
        assert exit_code != 0

    def test_unexpected_fault_becomes_processing_error(self) -> None:
        class BrokenDispatcher:
            def dispatch(self, operation, args):
                raise RuntimeError("boom")

        result, exit_code = handle_request(_request(), BrokenDispatcher())
        assert result == {
            "content": [{"type": "text", "text": "Error processing request: boom"}],
            "error": {"code": "processing_error", "message": "boom"},
        }
        assert exit_code == ExitCode.INTERNAL_ERROR

    def test_repeated_status_calls_are_independent(self, dispatcher, backend) -> None:
        backend.respond_result("first").respond_result("second")
        first, first_code = handle_request(_request(), dispatcher)
        second, second_code = handle_request(_request(), dispatcher)
        assert first_code == second_code == 0
        assert set(first) == set(second) == {"content"}
        assert len(backend.requests) == 2
        ids = {request.headers["x-request-id"] for request in backend.requests}
        assert len(ids) == 2


class TestRun:
    def test_writes_exactly_one_document(self, dispatcher, backend) -> None:
        backend.respond_result("ok")
        stdout = io.StringIO()
        exit_code = run(dispatcher, stdin=io.StringIO(_request(args={"clientId": "c1"})), stdout=stdout)
        assert exit_code == 0
        assert stdout.getvalue() == '{"result":{"content":[{"type":"text","text":"ok"}]}}\n'

    def test_empty_stdin(self, dispatcher, backend) -> None:
        stdout = io.StringIO()
        exit_code = run(dispatcher, stdin=io.StringIO(""), stdout=stdout)
        payload = json.loads(stdout.getvalue())
        assert payload["result"]["error"]["code"] == "parse_error"
        assert exit_code == ExitCode.INPUT_MISSING
        assert backend.requests == []
