"""Tests for loading connection settings from YAML."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from pydantic import ValidationError

from splunk_sdk.config import ContextSettings
from splunk_sdk.context import Context, Scheme


def write_config(tmp_path: Path, text: str) -> Path:
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir(parents=True, exist_ok=True)
    config_file = conf_dir / "splunk.yml"
    config_file.write_text(text.strip())
    return config_file


def test_from_file_success(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SPLUNK_CONFIG_PATH", raising=False)
    config_file = write_config(
        tmp_path,
        """
splunk_host: splunk.example.com
SPLUNK_PORT: 8090
SPLUNK_SCHEME: http
SPLUNK_USERNAME: admin
SPLUNK_PASSWORD: changeme
SPLUNK_VERIFY: false
""",
    )

    settings = ContextSettings.from_file(config_file)

    assert settings.host == "splunk.example.com"
    assert settings.port == 8090
    assert settings.scheme is Scheme.HTTP
    assert settings.verify is False
    assert settings.session_key is None
    assert settings.timeout is None
    credentials = settings.credentials()
    assert (credentials.username, credentials.password) == ("admin", "changeme")


def test_from_file_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SPLUNK_CONFIG_PATH", raising=False)
    settings = ContextSettings.from_file(write_config(tmp_path, "SPLUNK_HOST: localhost"))

    assert settings.scheme is Scheme.HTTPS
    assert settings.port == 8089
    assert settings.verify is True


def test_environment_path_takes_precedence(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / "env.yml"
    env_file.write_text("SPLUNK_HOST: from-env\n")
    monkeypatch.setenv("SPLUNK_CONFIG_PATH", str(env_file))
    other = write_config(tmp_path, "SPLUNK_HOST: from-path")

    assert ContextSettings.from_file(other).host == "from-env"


def test_default_path_is_relative_to_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SPLUNK_CONFIG_PATH", raising=False)
    write_config(tmp_path, "SPLUNK_HOST: cwd-host")
    monkeypatch.chdir(tmp_path)

    assert ContextSettings.from_file().host == "cwd-host"


def test_missing_file_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SPLUNK_CONFIG_PATH", raising=False)
    with pytest.raises(FileNotFoundError, match="Splunk config file not found"):
        ContextSettings.from_file(tmp_path / "conf" / "splunk.yml")


def test_missing_host_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SPLUNK_CONFIG_PATH", raising=False)
    config_file = write_config(tmp_path, "SPLUNK_PORT: 8089")

    with pytest.raises(ValueError, match="SPLUNK_HOST"):
        ContextSettings.from_file(config_file)


def test_invalid_port_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SPLUNK_CONFIG_PATH", raising=False)
    config_file = write_config(tmp_path, "SPLUNK_HOST: localhost\nSPLUNK_PORT: 70000")

    with pytest.raises(ValidationError):
        ContextSettings.from_file(config_file)


def test_credentials_require_username_and_password() -> None:
    settings = ContextSettings(host="localhost", username="admin")

    with pytest.raises(ValueError, match="password"):
        settings.credentials()


def test_context_from_settings_applies_session_key() -> None:
    settings = ContextSettings(host="localhost", scheme="http", port=8000, session_key="abc")
    context = Context.from_settings(settings)

    assert str(context) == "http://localhost:8000"
    assert context.session_key == "abc"
    assert context._authorization_headers() == {"Authorization": "Splunk abc"}
    asyncio.run(context.close())
