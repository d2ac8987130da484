"""Configuration loading and saving.

The config file is YAML::

    active_server: local
    refresh_ticks: 10
    tick_rate_ms: 200
    servers:
      - name: local
        endpoint: http://localhost:8080
        version: airflow2
        auth:
          basic: {username: airflow, password: airflow}
      - name: prod
        endpoint: https://airflow.example.com
        version: airflow3
        auth:
          token: {cmd: "gcloud auth print-access-token"}
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml

from .filter import FilterableField

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

AirflowVersion = Literal["airflow2", "airflow3"]

AIRFLOW_VERSIONS: list[AirflowVersion] = ["airflow2", "airflow3"]

DEFAULT_TIMEOUT_SECS = 30
DEFAULT_REFRESH_TICKS = 10
DEFAULT_TICK_RATE_MS = 200

CONFIG_ENV_VAR = "DAGDASH_CONFIG"


class ConfigError(ValueError):
    """Raised when the config file or a server entry is malformed."""


def get_config_path() -> Path:
    """Return the config file path.

    Can be overridden via the DAGDASH_CONFIG environment variable.
    """
    env_override = os.environ.get(CONFIG_ENV_VAR)
    if env_override:
        return Path(env_override)
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "dagdash" / "config.yaml"


def get_state_dir() -> Path:
    """Directory for logs and other runtime state."""
    base = os.environ.get("XDG_STATE_HOME")
    root = Path(base) if base else Path.home() / ".local" / "state"
    return root / "dagdash"


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@dataclass
class BasicAuth:
    username: str
    password: str

    def to_dict(self) -> dict[str, Any]:
        return {"basic": {"username": self.username, "password": self.password}}


@dataclass
class TokenAuth:
    """A bearer token, either given directly or printed by a shell command."""

    token: str | None = None
    cmd: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.cmd:
            return {"token": {"cmd": self.cmd}}
        return {"token": {"token": self.token}}


AuthConfig = BasicAuth | TokenAuth


def _parse_auth(server_name: str, data: dict[str, Any] | None) -> AuthConfig | None:
    if not data:
        return None
    if "basic" in data:
        basic = data["basic"] or {}
        try:
            return BasicAuth(username=basic["username"], password=basic["password"])
        except KeyError as e:
            raise ConfigError(f"Server '{server_name}': basic auth is missing {e.args[0]}") from e
    if "token" in data:
        token = data["token"] or {}
        if isinstance(token, str):
            return TokenAuth(token=token)
        if not token.get("token") and not token.get("cmd"):
            raise ConfigError(f"Server '{server_name}': token auth needs 'token' or 'cmd'")
        return TokenAuth(token=token.get("token"), cmd=token.get("cmd"))
    raise ConfigError(f"Server '{server_name}': unknown auth type {sorted(data)}")


# ---------------------------------------------------------------------------
# Servers
# ---------------------------------------------------------------------------


@dataclass
class ServerConfig:
    """One configured Airflow target. Also a row in the config panel."""

    name: str
    endpoint: str
    version: AirflowVersion = "airflow2"
    auth: AuthConfig | None = None
    timeout_secs: int = DEFAULT_TIMEOUT_SECS

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServerConfig:
        name = data.get("name")
        endpoint = data.get("endpoint")
        if not name or not endpoint:
            raise ConfigError(f"Server entries need 'name' and 'endpoint': {data!r}")
        version = data.get("version", "airflow2")
        if version not in AIRFLOW_VERSIONS:
            raise ConfigError(
                f"Server '{name}': invalid version '{version}' (must be airflow2 or airflow3)"
            )
        return cls(
            name=name,
            endpoint=endpoint,
            version=version,
            auth=_parse_auth(name, data.get("auth")),
            timeout_secs=int(data.get("timeout_secs", DEFAULT_TIMEOUT_SECS)),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "endpoint": self.endpoint,
            "version": self.version,
        }
        if self.auth is not None:
            data["auth"] = self.auth.to_dict()
        if self.timeout_secs != DEFAULT_TIMEOUT_SECS:
            data["timeout_secs"] = self.timeout_secs
        return data

    @classmethod
    def primary_field(cls) -> str:
        return "name"

    @classmethod
    def filterable_fields(cls) -> list[FilterableField]:
        return [
            FilterableField.primary("name"),
            FilterableField.free_text("endpoint"),
            FilterableField.enumerated("version", AIRFLOW_VERSIONS),
        ]

    def get_field_value(self, name: str) -> str | None:
        if name == "name":
            return self.name
        if name == "endpoint":
            return self.endpoint
        if name == "version":
            return self.version
        return None


@dataclass
class DashConfig:
    servers: list[ServerConfig] = field(default_factory=list)
    active_server: str | None = None
    refresh_ticks: int = DEFAULT_REFRESH_TICKS
    tick_rate_ms: int = DEFAULT_TICK_RATE_MS
    path: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: Path | None = None) -> DashConfig:
        servers = [ServerConfig.from_dict(s) for s in data.get("servers") or []]
        names = [s.name for s in servers]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigError(f"Duplicate server names: {', '.join(duplicates)}")
        return cls(
            servers=servers,
            active_server=data.get("active_server"),
            refresh_ticks=max(1, int(data.get("refresh_ticks", DEFAULT_REFRESH_TICKS))),
            tick_rate_ms=max(10, int(data.get("tick_rate_ms", DEFAULT_TICK_RATE_MS))),
            path=path,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.active_server:
            data["active_server"] = self.active_server
        data["refresh_ticks"] = self.refresh_ticks
        data["tick_rate_ms"] = self.tick_rate_ms
        data["servers"] = [s.to_dict() for s in self.servers]
        return data

    @property
    def tick_rate(self) -> float:
        return self.tick_rate_ms / 1000

    def get_server(self, name: str | None) -> ServerConfig | None:
        if name is None:
            return None
        for server in self.servers:
            if server.name == name:
                return server
        return None

    def add_server(self, server: ServerConfig) -> None:
        """Add or replace a server entry by name."""
        self.servers = [s for s in self.servers if s.name != server.name]
        self.servers.append(server)

    def update_server(self, name: str, server: ServerConfig) -> None:
        """Replace the entry called ``name`` in place, following a rename."""
        self.servers = [server if s.name == name else s for s in self.servers]
        if self.active_server == name:
            self.active_server = server.name

    def remove_server(self, name: str) -> bool:
        before = len(self.servers)
        self.servers = [s for s in self.servers if s.name != name]
        if self.active_server == name:
            self.active_server = None
        return len(self.servers) != before


def load_config(path: Path | None = None) -> DashConfig:
    """Load the config file. A missing file yields an empty config."""
    path = path or get_config_path()
    if not path.exists():
        logger.info("No config file at %s, starting with no servers", path)
        return DashConfig(path=path)
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    return DashConfig.from_dict(data, path=path)


def save_config(config: DashConfig, path: Path | None = None) -> Path:
    path = path or config.path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
    logger.debug("Wrote config to %s", path)
    return path
