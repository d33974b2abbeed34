"""Configuration precedence system for the connection profile."""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".agentforce-reliable-client"
CONFIG_PATH = CONFIG_DIR / "config.json"
DEFAULT_SERVER_URL = "http://localhost:3001"
ENV_PREFIX = "AGENTFORCE_"

# Environment variable suffix -> persisted config key.
_ENV_KEYS = {
    "SERVER_URL": "serverUrl",
    "API_KEY": "apiKey",
    "CLIENT_ID": "clientId",
    "FORWARD_CREDENTIALS": "forwardCredentials",
    "LOG_FILE": "logFile",
}


def generate_client_id() -> str:
    return f"client-{int(time.time() * 1000)}"


class ConnectionProfile(BaseModel):
    """Backend endpoint and credential."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    server_url: str = Field(default=DEFAULT_SERVER_URL, alias="serverUrl")
    api_key: str = Field(default="", alias="apiKey")
    client_id: str = Field(default_factory=generate_client_id, alias="clientId")


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "on")


def _profile_from(values: dict[str, Any]) -> ConnectionProfile:
    return ConnectionProfile(
        serverUrl=str(values["serverUrl"]),
        apiKey=str(values["apiKey"]),
        clientId=str(values["clientId"]),
    )


def default_config_path() -> Path:
    override = os.getenv(f"{ENV_PREFIX}CONFIG")
    return Path(override).expanduser() if override else CONFIG_PATH


class ClientConfig:
    """Resolves configuration through the precedence chain.

    Defaults, then the JSON config file, then ``AGENTFORCE_*`` variables.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or default_config_path()
        self._config: dict[str, Any] = {}
        self.file_data: dict[str, Any] = {}
        self._load_defaults()
        self._load_file()
        self._persisted = dict(self._config)
        self._load_env_vars()

    def _load_defaults(self) -> None:
        self._config = {
            "serverUrl": DEFAULT_SERVER_URL,
            "apiKey": "",
            "clientId": generate_client_id(),
            "forwardCredentials": False,
            "logFile": None,
        }

    def _load_file(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Error loading config %s: %s", self.path, exc)
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: expected a JSON object", self.path)
            return
        self.file_data = data
        self._config.update({k: v for k, v in data.items() if v is not None})

    def _load_env_vars(self) -> None:
        for suffix, key in _ENV_KEYS.items():
            value = os.getenv(f"{ENV_PREFIX}{suffix}")
            if value is not None:
                self._config[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    @property
    def profile(self) -> ConnectionProfile:
        return _profile_from(self._config)

    @property
    def persisted_profile(self) -> ConnectionProfile:
        """The profile from defaults and the config file only, ignoring env overrides."""
        return _profile_from(self._persisted)

    @property
    def forward_credentials(self) -> bool:
        return _parse_bool(self._config.get("forwardCredentials", False))

    @property
    def log_file(self) -> Path | None:
        value = self._config.get("logFile")
        return Path(value).expanduser() if value else None


def save_config(profile: ConnectionProfile, path: Path | None = None, extra: dict[str, Any] | None = None) -> Path:
    """Persist ``profile`` (plus any ``extra`` keys) as indented JSON."""
    target = path or default_config_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    data = dict(extra or {})
    data.update(profile.model_dump(by_alias=True))
    target.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return target
