"""Tests for config loading."""

import pytest
from timetable_cache.config import load_config, AppConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CONFIG_PATH", "UPSTREAM_BASE_URL", "DB_PATH", "PORT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def valid_config_yaml(tmp_path):
    """Write a minimal valid config.yaml and return its path."""
    content = """\
upstream_base_url: "http://localhost:9999"
upstream_timeout: 2.5
db_path: "/tmp/timetable.db"
port: 9000
"""
    p = tmp_path / "config.yaml"
    p.write_text(content)
    return str(p)


class TestLoadConfig:
    def test_loads_valid_config(self, valid_config_yaml):
        config = load_config(valid_config_yaml)
        assert config.upstream_base_url == "http://localhost:9999"
        assert config.upstream_timeout == 2.5
        assert config.db_path == "/tmp/timetable.db"
        assert config.port == 9000

    def test_defaults_applied(self, tmp_path):
        p = tmp_path / "config.yaml"
        p.write_text("")
        config = load_config(str(p))
        assert config.upstream_base_url == "http://rozklady.lodz.pl"
        assert config.upstream_timeout == 10.0
        assert config.db_path == "cache.db"
        assert config.host == "0.0.0.0"
        assert config.port == 8080

    def test_env_overrides_yaml(self, valid_config_yaml, monkeypatch):
        monkeypatch.setenv("UPSTREAM_BASE_URL", "http://upstream.test")
        monkeypatch.setenv("DB_PATH", "/data/cache.db")
        monkeypatch.setenv("PORT", "8181")
        config = load_config(valid_config_yaml)
        assert config.upstream_base_url == "http://upstream.test"
        assert config.db_path == "/data/cache.db"
        assert config.port == 8181

    def test_explicit_file_not_found(self):
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/config.yaml")

    def test_config_path_env_not_found(self, monkeypatch):
        monkeypatch.setenv("CONFIG_PATH", "/nonexistent/config.yaml")
        with pytest.raises(FileNotFoundError):
            load_config()

    def test_default_file_optional(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert config == AppConfig()

    def test_config_path_from_env(self, valid_config_yaml, monkeypatch):
        monkeypatch.setenv("CONFIG_PATH", valid_config_yaml)
        config = load_config()
        assert config.port == 9000

    def test_invalid_timeout_raises(self, tmp_path):
        p = tmp_path / "config.yaml"
        p.write_text("upstream_timeout: 0\n")
        with pytest.raises(Exception):  # ValidationError
            load_config(str(p))

    def test_invalid_port_raises(self, tmp_path):
        p = tmp_path / "config.yaml"
        p.write_text("port: 70000\n")
        with pytest.raises(Exception):  # ValidationError
            load_config(str(p))
