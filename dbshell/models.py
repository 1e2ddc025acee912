"""Shared dataclasses used across connection/session modules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_PROMPT = "db> "


class PromptClass(str, Enum):
    """Kinds of lines a server may send back."""

    USERNAME_REQUEST = "username_request"
    PASSWORD_REQUEST = "password_request"
    YES_NO_AUTH_REQUEST = "yes_no_auth_request"
    DATABASE_SELECTION_NOTICE = "database_selection_notice"
    PLAIN_OUTPUT = "plain_output"

    @property
    def is_input_request(self) -> bool:
        """True when the server is waiting for the user to answer."""

        return self in {
            PromptClass.USERNAME_REQUEST,
            PromptClass.PASSWORD_REQUEST,
            PromptClass.YES_NO_AUTH_REQUEST,
        }


@dataclass(frozen=True, slots=True)
class ServerAddress:
    """Validated host/port pair for the remote server."""

    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True, slots=True)
class Credentials:
    """Username/password pair sent during the AUTH handshake."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


@dataclass(slots=True)
class Session:
    """Live state of the single client/server connection."""

    address: ServerAddress
    prompt: str = DEFAULT_PROMPT
    authenticated: bool = False

    def use_database(self, name: str) -> None:
        self.prompt = f"{name}> "


__all__ = ["Credentials", "DEFAULT_PROMPT", "PromptClass", "ServerAddress", "Session"]
