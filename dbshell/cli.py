"""Command-line argument parsing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence
from urllib.parse import unquote, urlsplit

from .errors import DbShellError
from .models import Credentials, ServerAddress

URI_SCHEME = "db"
URI_DEFAULT_HOST = "localhost"
URI_DEFAULT_PORT = 8080

USAGE = """\
Usage: dbshell [--<host>:<port> | db://<username>:<password>@<host>:<port>]

  --<host>:<port>   connect and let the server drive authentication
  db://...          connect and send an AUTH handshake first
With no argument the host and port come from the config file."""


class UsageError(DbShellError):
    """Raised when the command line does not match any accepted shape."""


@dataclass(frozen=True, slots=True)
class Target:
    """Where to connect, as requested on the command line."""

    address: ServerAddress | None = None
    credentials: Credentials | None = None


def parse_args(argv: Sequence[str]) -> Target:
    """Turn ``argv`` (without the program name) into a Target."""

    if not argv:
        return Target()
    if len(argv) > 1:
        raise UsageError(f"Expected at most one argument, got {len(argv)}.")
    arg = argv[0]
    if arg.startswith(f"{URI_SCHEME}://"):
        return _parse_uri(arg)
    if arg.startswith("--"):
        return Target(address=parse_address(arg[2:]))
    raise UsageError(f"Unrecognised argument: {arg}")


def parse_address(value: str) -> ServerAddress:
    """Parse ``host:port``."""

    host, sep, port_text = value.rpartition(":")
    if not sep or not host or not port_text:
        raise UsageError(f"Expected <host>:<port>, got {value!r}.")
    return ServerAddress(host.strip("[]"), _parse_port(port_text))


def _parse_uri(uri: str) -> Target:
    parts = urlsplit(uri)
    try:
        port = parts.port
    except ValueError as exc:
        raise UsageError(f"Invalid port in {uri!r}.") from exc
    if not parts.username:
        raise UsageError("The db:// form requires a username.")
    credentials = Credentials(unquote(parts.username), unquote(parts.password or ""))
    address = ServerAddress(parts.hostname or URI_DEFAULT_HOST, port or URI_DEFAULT_PORT)
    return Target(address=address, credentials=credentials)


def _parse_port(text: str) -> int:
    if not text.isdigit():
        raise UsageError(f"Port must be a number, got {text!r}.")
    port = int(text)
    if not 1 <= port <= 65535:
        raise UsageError(f"Port out of range: {port}.")
    return port


__all__ = ["Target", "USAGE", "UsageError", "parse_address", "parse_args"]
