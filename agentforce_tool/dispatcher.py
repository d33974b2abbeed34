"""Translate a validated tool call into one authenticated backend request."""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from collections.abc import Mapping  # noqa: TC003
from typing import Any

import httpx

from agentforce_tool.config import ConnectionProfile  # noqa: TC001
from agentforce_tool.envelope import failure_result, reject_constant
from agentforce_tool.operations import ForwardPolicy, Operation, OperationSpec

DEFAULT_SF_BASE_URL = "https://login.salesforce.com"
PROBE_TIMEOUT = 10.0

# Key in the forwarded ``config`` object -> environment variable.
CREDENTIAL_ENV_VARS = {
    "sfBaseUrl": "SF_BASE_URL",
    "apiUrl": "SF_API_URL",
    "agentId": "SF_AGENT_ID",
    "clientId": "SF_CLIENT_ID",
    "clientSecret": "SF_CLIENT_SECRET",
    "clientEmail": "SF_CLIENT_EMAIL",
}


class BackendError(Exception):
    """The backend answered, but not with a usable result."""


def credentials_from_env(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    env = os.environ if environ is None else environ
    credentials = {key: env[var] for key, var in CREDENTIAL_ENV_VARS.items() if env.get(var)}
    credentials.setdefault("sfBaseUrl", DEFAULT_SF_BASE_URL)
    return credentials


class Dispatcher:
    """Issues exactly one backend call per :meth:`dispatch`.

    Args:
        profile: Endpoint and API key for the backend.
        logger: Diagnostic sink; defaults to this module's logger.
        forward_credentials: Merge profile and ``SF_*`` credentials into args.
        transport: Optional httpx transport, used by tests to stub the backend.
        environ: Environment used for credential forwarding.
    """

    def __init__(
        self,
        profile: ConnectionProfile,
        *,
        logger: logging.Logger | None = None,
        forward_credentials: bool = False,
        transport: httpx.BaseTransport | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.profile = profile
        self.logger = logger or logging.getLogger(__name__)
        self.forward_credentials = forward_credentials
        self.transport = transport
        self.environ = environ

    def endpoint(self, spec: OperationSpec) -> str:
        return self.profile.server_url.rstrip("/") + spec.path

    def build_args(self, spec: OperationSpec, args: Mapping[str, Any]) -> dict[str, Any]:
        forwarded = dict(args)
        if not self.forward_credentials:
            return forwarded
        forwarded.setdefault("clientId", self.profile.client_id)
        if spec.policy is ForwardPolicy.CREDENTIALS:
            forwarded.setdefault("config", credentials_from_env(self.environ))
        return forwarded

    def dispatch(self, operation: Operation, args: Mapping[str, Any]) -> Any:
        """Call the backend and return its ``result`` or a normalized failure."""
        spec = operation.spec
        if operation is Operation.SEND_MESSAGE:
            message = args.get("message")
            self.logger.debug("Sending message of length %d", len(message) if isinstance(message, str) else 0)
        try:
            return self._call(spec, self.build_args(spec, args))
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError, BackendError) as exc:
            message = _describe(exc)
            self.logger.error("%s error: %s", spec.label, message)
            return failure_result(f"{spec.label} failed: {message}", spec.error_code, message)

    def _call(self, spec: OperationSpec, args: dict[str, Any]) -> Any:
        request_id = str(uuid.uuid4())
        headers = {
            "x-api-key": self.profile.api_key,
            "x-request-id": request_id,
            "Content-Type": "application/json",
        }
        body = {"tool": {"name": spec.name, "args": args}}
        url = self.endpoint(spec)
        self.logger.debug("POST %s tool=%s request_id=%s timeout=%ss", url, spec.name, request_id, spec.timeout)

        deadline = time.monotonic() + spec.timeout
        with httpx.Client(timeout=spec.timeout, transport=self.transport) as client:
            request = client.build_request("POST", url, json=body, headers=headers)
            response = client.send(request, stream=True)
            try:
                response.raise_for_status()
                content = _read_before(response, deadline, spec.timeout)
            finally:
                response.close()

        try:
            payload = json.loads(content, parse_constant=reject_constant)
        except (ValueError, RecursionError) as exc:
            raise BackendError(f"Invalid JSON in backend response: {exc}") from exc
        if not isinstance(payload, dict):
            raise BackendError("Backend response is not a JSON object")
        if "result" not in payload:
            reported = payload.get("error")
            if isinstance(reported, dict):
                reported = reported.get("message")
            raise BackendError(str(reported) if reported else "Backend response has no result field")
        self.logger.debug("Backend answered %s for request_id=%s", response.status_code, request_id)
        return payload["result"]


def _read_before(response: httpx.Response, deadline: float, timeout: float) -> bytes:
    """Read the body, failing once the whole call has used up ``timeout``."""
    chunks: list[bytes] = []
    for chunk in response.iter_bytes():
        if time.monotonic() > deadline:
            raise httpx.ReadTimeout(f"no complete response within {timeout}s", request=response.request)
        chunks.append(chunk)
    if time.monotonic() > deadline:
        raise httpx.ReadTimeout(f"no complete response within {timeout}s", request=response.request)
    return b"".join(chunks)


def _describe(exc: Exception) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        return f"Request failed with status code {exc.response.status_code}"
    if isinstance(exc, httpx.TimeoutException):
        return f"Request timed out: {exc}" if str(exc) else "Request timed out"
    return str(exc) or exc.__class__.__name__


def probe_backend(
    profile: ConnectionProfile,
    *,
    timeout: float = PROBE_TIMEOUT,
    transport: httpx.BaseTransport | None = None,
) -> dict[str, Any]:
    """``GET`` the server root to check connectivity and the API key."""
    with httpx.Client(timeout=timeout, transport=transport) as client:
        response = client.get(profile.server_url, headers={"x-api-key": profile.api_key})
        response.raise_for_status()
    try:
        info = response.json()
    except ValueError as exc:
        raise BackendError(f"Invalid JSON in backend response: {exc}") from exc
    return info if isinstance(info, dict) else {}
