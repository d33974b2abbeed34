"""Test utilities: a stub backend and a CLI client with envelope assertions."""

from __future__ import annotations

import json
import time
from collections import deque
from collections.abc import Iterator
from typing import Any

import httpx
from typer.testing import CliRunner, Result

from agentforce_tool.cli import cli


class _DripStream(httpx.SyncByteStream):
    def __init__(self, body: bytes, delay: float) -> None:
        self.body = body
        self.delay = delay

    def __iter__(self) -> Iterator[bytes]:
        for index in range(len(self.body)):
            time.sleep(self.delay)
            yield self.body[index : index + 1]


class BackendStub:
    """Records outbound requests and replays queued responses.

    Queue ``httpx.Response`` objects or exceptions with :meth:`respond` and
    :meth:`fail`. With an empty queue, every call succeeds with a text result.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._queue: deque[httpx.Response | Exception] = deque()

    def respond(self, status_code: int = 200, *, json_body: Any = None, text: str | None = None) -> BackendStub:
        if text is not None:
            self._queue.append(httpx.Response(status_code, text=text))
        else:
            self._queue.append(httpx.Response(status_code, json=json_body))
        return self

    def respond_result(self, text: str) -> BackendStub:
        return self.respond(json_body={"result": {"content": [{"type": "text", "text": text}]}})

    def respond_slowly(self, body: bytes, *, delay: float, status_code: int = 200) -> BackendStub:
        """Send ``body`` one byte at a time, sleeping ``delay`` seconds before each."""
        self._queue.append(httpx.Response(status_code, stream=_DripStream(body, delay)))
        return self

    def fail(self, error: Exception) -> BackendStub:
        self._queue.append(error)
        return self

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._queue:
            return httpx.Response(200, json={"result": {"content": [{"type": "text", "text": "ok"}]}})
        outcome = self._queue.popleft()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def body(self, index: int = -1) -> dict[str, Any]:
        return json.loads(self.requests[index].content)


class ToolTestClient:
    """Wrapper around CliRunner for the stdin protocol."""

    def __init__(self) -> None:
        self.runner = CliRunner()

    def invoke(self, request: Any, *args: str, **kwargs: Any) -> Result:
        stdin = request if isinstance(request, str) else json.dumps(request)
        return self.runner.invoke(cli, list(args), input=stdin, **kwargs)

    def assert_response_envelope(self, result: Result) -> dict[str, Any]:
        """Verify stdout holds exactly one response envelope and return its result."""
        try:
            lines = [line for line in result.stdout.splitlines() if line.strip()]
            assert len(lines) == 1, f"expected one document, got {len(lines)}"
            payload = json.loads(lines[0])
            assert set(payload) == {"result"}
            assert "content" in payload["result"]
            return payload["result"]
        except (json.JSONDecodeError, KeyError, AssertionError) as e:
            raise AssertionError(f"Invalid response envelope: {e}\nOutput: {result.stdout}") from e

    def assert_exit_code(self, result: Result, expected_code: int) -> None:
        assert result.exit_code == expected_code, (
            f"Expected exit code {expected_code}, got {result.exit_code}. Output: {result.stdout}"
        )
