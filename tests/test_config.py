"""
Tests for configuration system.

Added: Tests for Config defaults, YAML loading and the port override.
"""

from pathlib import Path

import pytest

from common.config import HTTP_PORT_ENV, Config, load_config


@pytest.fixture(autouse=True)
def clear_port_env(monkeypatch):
    monkeypatch.delenv(HTTP_PORT_ENV, raising=False)


def test_config_creation():
    """Test basic Config creation."""
    config = Config()

    assert config.server.name == "simple-mcp-server"
    assert config.server.version == "1.0.0"
    assert config.http.host == "0.0.0.0"
    assert config.http.port == 8080
    assert config.log_level == "INFO"


def test_config_yaml_file_exists():
    """Test that config.yaml file exists."""
    config_path = Path("config.yaml")
    assert config_path.exists(), "config.yaml file should exist in the project root"


def test_missing_file_uses_defaults(tmp_path):
    config = load_config(tmp_path / "absent.yaml")

    assert config == Config()


def test_load_yaml(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "server:\n"
        "  name: test-server\n"
        "http:\n"
        "  port: 9000\n"
        "logging:\n"
        "  level: DEBUG\n"
        "  enable_pretty_print: true\n"
        "  backup_count: 2\n",
        encoding="utf-8",
    )

    config = load_config(config_path)

    assert config.server.name == "test-server"
    assert config.server.version == "1.0.0"
    assert config.http.port == 9000
    assert config.log_level == "DEBUG"
    assert config.enable_pretty_print is True
    assert config.backup_count == 2


def test_empty_yaml(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("", encoding="utf-8")

    assert load_config(config_path) == Config()


def test_port_env_override(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("http:\n  host: 127.0.0.1\n  port: 9000\n", encoding="utf-8")
    monkeypatch.setenv(HTTP_PORT_ENV, "9191")

    config = load_config(config_path)

    assert config.http.port == 9191
    assert config.http.host == "127.0.0.1"


def test_invalid_port_env(tmp_path, monkeypatch):
    monkeypatch.setenv(HTTP_PORT_ENV, "not-a-port")

    with pytest.raises(ValueError):
        load_config(tmp_path / "absent.yaml")
