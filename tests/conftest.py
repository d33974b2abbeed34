"""Shared test fixtures for agentforce-tool tests."""

from __future__ import annotations

import json
import logging
import os

import pytest

from agentforce_tool.config import ConnectionProfile
from agentforce_tool.dispatcher import Dispatcher
from agentforce_tool.logs import LOGGER_NAME
from agentforce_tool.testing import BackendStub

SERVER_URL = "http://backend.test"
API_KEY = "sk-test-0123456789"


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Keep the user's config file and credentials out of every test."""
    for key in list(os.environ):
        if key.startswith(("AGENTFORCE_", "SF_")):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("AGENTFORCE_CONFIG", str(tmp_path / "config.json"))
    yield
    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True


@pytest.fixture
def backend() -> BackendStub:
    return BackendStub()


@pytest.fixture
def profile() -> ConnectionProfile:
    return ConnectionProfile(serverUrl=SERVER_URL, apiKey=API_KEY, clientId="client-42")


@pytest.fixture
def dispatcher(profile: ConnectionProfile, backend: BackendStub) -> Dispatcher:
    return Dispatcher(profile, transport=backend.transport)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"serverUrl": SERVER_URL, "apiKey": API_KEY, "clientId": "client-42"}),
        encoding="utf-8",
    )
    return path
