"""Command-line entry point for dbshell."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Sequence

from .cli import USAGE, Target, UsageError, parse_args
from .config import AppConfig, AuthMode, load_config
from .connections import (
    AuthenticationError,
    ConnectionEstablishError,
    SessionTimeout,
    authenticate,
    open_connection,
)
from .models import Credentials, Session
from .repl import ReplEngine
from .terminal import ConsoleTerminal, Terminal

LOG = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    """Send log records to stderr so they never mix with REPL output."""

    logging.basicConfig(level=level, stream=sys.stderr, format=LOG_FORMAT)


async def run_session(target: Target, config: AppConfig, terminal: Terminal) -> int:
    """Connect, optionally authenticate, then run the REPL; return an exit code."""

    address = target.address or config.address
    credentials = target.credentials
    if credentials is None and config.auth.mode is AuthMode.HANDSHAKE:
        credentials = await _ask_credentials(config, terminal)
        if credentials is None:
            return EXIT_OK

    try:
        transport = await open_connection(
            address,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
        )
    except (ConnectionEstablishError, SessionTimeout) as exc:
        print(exc, file=sys.stderr)
        return EXIT_FAILURE
    terminal.write(f"Connected to {address}")

    session = Session(address, prompt=config.prompt)
    try:
        if credentials is not None:
            try:
                await authenticate(transport, credentials)
            except AuthenticationError as exc:
                print(exc, file=sys.stderr)
                return EXIT_OK
            session.authenticated = True
            terminal.write("Authentication successful. Entering REPL mode. Type 'exit' to quit.")
        reason = await ReplEngine(transport, terminal, session).run()
    except SessionTimeout as exc:
        print(exc, file=sys.stderr)
        return EXIT_FAILURE
    except OSError as exc:
        LOG.debug("Session with %s failed", address, exc_info=True)
        print(f"Connection error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        await transport.close()
    LOG.info("Session ended: %s", reason.value)
    return EXIT_OK


async def _ask_credentials(config: AppConfig, terminal: Terminal) -> Credentials | None:
    username = config.auth.username or await terminal.read_line("Username: ")
    if username is None:
        return None
    password = await terminal.read_secret("Password: ")
    if password is None:
        return None
    return Credentials(username.strip(), password)


def run(argv: Sequence[str] | None = None, *, terminal: Terminal | None = None) -> int:
    """Parse arguments, load config and run one session."""

    config = load_config()
    configure_logging(config.log_level)
    try:
        target = parse_args(sys.argv[1:] if argv is None else argv)
    except UsageError as exc:
        print(exc, file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return EXIT_USAGE
    try:
        return asyncio.run(run_session(target, config, terminal or ConsoleTerminal()))
    except KeyboardInterrupt:
        print(file=sys.stderr)
        return EXIT_INTERRUPTED


def main() -> None:
    """Console-script entry point."""

    sys.exit(run())


__all__ = ["EXIT_FAILURE", "EXIT_INTERRUPTED", "EXIT_OK", "EXIT_USAGE", "main", "run", "run_session"]
