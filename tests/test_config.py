"""Tests for dagdash.config."""

import pytest
import yaml

from dagdash.config import (
    BasicAuth,
    ConfigError,
    DashConfig,
    ServerConfig,
    TokenAuth,
    get_config_path,
    get_state_dir,
    load_config,
    save_config,
)


class TestLoadConfig:
    """Reading the YAML config file."""

    def test_loads_servers(self, config_file):
        config = load_config(config_file)
        assert config.active_server == "local"
        assert config.refresh_ticks == 5
        assert [s.name for s in config.servers] == ["local", "prod"]
        assert config.servers[0].auth == BasicAuth("airflow", "airflow")
        assert config.servers[1].auth == TokenAuth(cmd="echo token")
        assert config.servers[1].version == "airflow3"
        assert config.path == config_file

    def test_missing_file_is_empty(self, tmp_path):
        config = load_config(tmp_path / "nope.yaml")
        assert config.servers == []
        assert config.active_server is None

    def test_empty_file_is_empty(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path).servers == []

    def test_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("servers:\n  - {name: a, endpoint: 'http://a'}\n")
        config = load_config(path)
        assert config.refresh_ticks == 10
        assert config.tick_rate == 0.2
        assert config.servers[0].version == "airflow2"
        assert config.servers[0].auth is None
        assert config.servers[0].timeout_secs == 30

    def test_token_as_plain_string(self):
        server = ServerConfig.from_dict(
            {"name": "a", "endpoint": "http://a", "auth": {"token": "abc"}}
        )
        assert server.auth == TokenAuth(token="abc")

    @pytest.mark.parametrize("text, message", [
        ("servers:\n  - {name: a, endpoint: 'http://a', version: airflow1}\n", "invalid version"),
        ("servers:\n  - {name: a}\n", "need 'name' and 'endpoint'"),
        ("servers:\n  - {name: a, endpoint: x}\n  - {name: a, endpoint: y}\n", "Duplicate server names: a"),
        ("servers:\n  - {name: a, endpoint: x, auth: {basic: {username: u}}}\n", "missing password"),
        ("servers:\n  - {name: a, endpoint: x, auth: {token: {}}}\n", "needs 'token' or 'cmd'"),
        ("servers:\n  - {name: a, endpoint: x, auth: {oauth: {}}}\n", "unknown auth type"),
        ("- just\n- a list\n", "expected a mapping"),
        ("servers: [unclosed\n", "Could not parse"),
    ])
    def test_invalid(self, tmp_path, text, message):
        path = tmp_path / "config.yaml"
        path.write_text(text)
        with pytest.raises(ConfigError, match=message):
            load_config(path)

    def test_tick_settings_clamped(self):
        config = DashConfig.from_dict({"refresh_ticks": 0, "tick_rate_ms": 1})
        assert config.refresh_ticks == 1
        assert config.tick_rate_ms == 10


class TestSaveConfig:
    """Writing the config back."""

    def test_round_trip(self, config_file, tmp_path):
        config = load_config(config_file)
        out = save_config(config, tmp_path / "out" / "config.yaml")
        assert out.exists()
        reloaded = load_config(out)
        assert reloaded.servers == config.servers
        assert reloaded.active_server == "local"

    def test_defaults_omitted(self, dash_config):
        path = save_config(dash_config)
        data = yaml.safe_load(path.read_text())
        assert "active_server" not in data
        assert "timeout_secs" not in data["servers"][0]
        assert data["servers"][1]["auth"] == {"token": {"token": "secret"}}


class TestServers:
    """Adding and removing servers."""

    def test_add_replaces_by_name(self, dash_config):
        dash_config.add_server(ServerConfig(name="local", endpoint="http://other:8080"))
        assert [s.name for s in dash_config.servers] == ["prod", "local"]
        assert dash_config.get_server("local").endpoint == "http://other:8080"

    def test_remove_clears_active(self, dash_config):
        dash_config.active_server = "prod"
        assert dash_config.remove_server("prod")
        assert dash_config.active_server is None
        assert not dash_config.remove_server("prod")

    def test_get_server(self, dash_config):
        assert dash_config.get_server("prod").version == "airflow3"
        assert dash_config.get_server("missing") is None
        assert dash_config.get_server(None) is None

    def test_filterable(self, servers):
        assert servers[1].get_field_value("version") == "airflow3"
        assert servers[1].get_field_value("auth") is None


class TestPaths:
    """Config and state locations."""

    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DAGDASH_CONFIG", str(tmp_path / "custom.yaml"))
        assert get_config_path() == tmp_path / "custom.yaml"

    def test_xdg_config_home(self, monkeypatch, tmp_path):
        monkeypatch.delenv("DAGDASH_CONFIG", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_config_path() == tmp_path / "dagdash" / "config.yaml"

    def test_state_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))
        assert get_state_dir() == tmp_path / "dagdash"

    def test_load_uses_env_path(self, monkeypatch, config_file):
        monkeypatch.setenv("DAGDASH_CONFIG", str(config_file))
        assert load_config().path == config_file
