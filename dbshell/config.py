"""App configuration loading helpers."""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path

import tomllib

from pydantic import BaseModel, Field, ValidationError, field_validator

from .models import DEFAULT_PROMPT, ServerAddress

LOG = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DBSHELL_CONFIG"
CONFIG_FILE = Path.home() / ".config" / "dbshell" / "config.toml"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080


class AuthMode(str, Enum):
    """How the client authenticates before entering the REPL."""

    INTERACTIVE = "interactive"
    HANDSHAKE = "handshake"


class AuthConfig(BaseModel):
    """Authentication settings."""

    mode: AuthMode = AuthMode.INTERACTIVE
    username: str | None = None


class AppConfig(BaseModel):
    """Shape of the application configuration file."""

    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    prompt: str = DEFAULT_PROMPT
    log_level: str = "WARNING"
    connect_timeout: float | None = Field(default=None, gt=0)
    read_timeout: float | None = Field(default=None, gt=0)
    auth: AuthConfig = Field(default_factory=AuthConfig)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def address(self) -> ServerAddress:
        """Default server address when none is given on the command line."""

        return ServerAddress(self.host, self.port)


def config_path() -> Path:
    """Config file location, honouring the override environment variable."""

    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return CONFIG_FILE


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from disk; fall back to defaults if missing."""

    target = path or config_path()
    try:
        with target.open("rb") as handle:
            raw = tomllib.load(handle)
    except FileNotFoundError:
        return AppConfig()
    except (tomllib.TOMLDecodeError, OSError) as exc:
        LOG.warning("Ignoring unreadable config %s: %s", target, exc)
        return AppConfig()
    try:
        return AppConfig.model_validate(raw)
    except ValidationError as exc:
        LOG.warning("Ignoring invalid config %s: %s", target, exc)
        return AppConfig()


__all__ = [
    "AppConfig",
    "AuthConfig",
    "AuthMode",
    "CONFIG_ENV_VAR",
    "CONFIG_FILE",
    "config_path",
    "load_config",
]
