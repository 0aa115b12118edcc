"""Connection settings for a Splunk server, loaded from YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from omegaconf import OmegaConf
from pydantic import BaseModel, Field, field_validator

from .context import Scheme

CONFIG_PATH_ENV = "SPLUNK_CONFIG_PATH"
DEFAULT_CONFIG_PATH = "conf/splunk.yml"


def _candidate_paths(raw: Path) -> tuple[Path, ...]:
    if raw.is_absolute():
        return (raw,)
    return (Path.cwd() / raw,)


def _resolve_config_location(value: Path | str, *, source: str) -> Path:
    raw = Path(value).expanduser()
    for candidate in _candidate_paths(raw):
        if candidate.exists():
            return candidate.resolve()
    checked = "\n".join(str(candidate) for candidate in _candidate_paths(raw))
    raise FileNotFoundError(
        f"Splunk config file not found for {source}: {raw}\nChecked:\n{checked}"
    )


def _load_normalized(location: Path) -> dict[str, Any]:
    raw_config = OmegaConf.load(location)
    config = OmegaConf.to_container(raw_config, resolve=True)
    if not isinstance(config, dict):
        raise ValueError("Splunk config file must contain a mapping of settings.")
    return {str(key).upper(): value for key, value in config.items()}


def _optional_str(normalized: dict[str, Any], key: str) -> str | None:
    value = normalized.get(key)
    return str(value) if value is not None and value != "" else None


class Credentials(BaseModel):
    """Username and password for ``auth/login``."""

    username: str = Field(min_length=1, examples=["admin"])
    password: str = Field(examples=["changeme"])


class ContextSettings(BaseModel):
    """Validated settings for building a `Context`.

    Keys in the YAML file are the upper-cased field names prefixed with
    ``SPLUNK_``, e.g. ``SPLUNK_HOST`` or ``SPLUNK_SESSION_KEY``.
    """

    scheme: Scheme = Field(default=Scheme.HTTPS, description="Protocol keyword")
    host: str = Field(min_length=1, description="Splunk server host", examples=["localhost"])
    port: int = Field(default=8089, ge=0, le=65535, description="Management port")
    username: str | None = Field(default=None, description="Login name")
    password: str | None = Field(default=None, description="Login password")
    session_key: str | None = Field(
        default=None, description="Existing session key; skips login when set"
    )
    verify: bool = Field(default=True, description="Verify TLS certificates")
    timeout: float | None = Field(default=None, description="Request timeout in seconds")

    @field_validator("scheme", mode="before")
    @classmethod
    def _lowercase_scheme(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @classmethod
    def from_file(cls, path: Path | str | None = None) -> ContextSettings:
        """Load settings from YAML; ``SPLUNK_CONFIG_PATH`` takes precedence."""
        env_path = os.environ.get(CONFIG_PATH_ENV)
        if env_path:
            location = _resolve_config_location(env_path, source=CONFIG_PATH_ENV)
        elif path is not None:
            location = _resolve_config_location(path, source="path")
        else:
            location = _resolve_config_location(DEFAULT_CONFIG_PATH, source="default")

        normalized = _load_normalized(location)
        if not normalized.get("SPLUNK_HOST"):
            raise ValueError("Missing Splunk setting: SPLUNK_HOST")

        kwargs: dict[str, Any] = {"host": str(normalized["SPLUNK_HOST"])}
        for field in ("scheme", "port", "verify", "timeout"):
            value = normalized.get(f"SPLUNK_{field.upper()}")
            if value is not None:
                kwargs[field] = value
        for field in ("username", "password", "session_key"):
            kwargs[field] = _optional_str(normalized, f"SPLUNK_{field.upper()}")
        return cls(**kwargs)

    def credentials(self) -> Credentials:
        """Return login credentials; raises ``ValueError`` when incomplete."""
        missing = [name for name in ("username", "password") if getattr(self, name) is None]
        if missing:
            raise ValueError(f"Missing Splunk settings: {', '.join(missing)}")
        return Credentials(username=self.username or "", password=self.password or "")
