"""Connection establishment and the line-oriented transport."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Protocol, TypeVar, runtime_checkable

from .errors import DbShellError
from .models import Credentials, ServerAddress

LOG = logging.getLogger(__name__)

AUTH_OK = "AUTH OK"
ENCODING = "utf-8"

T = TypeVar("T")


class ConnectionEstablishError(DbShellError):
    """Raised when the TCP connection cannot be opened."""


class AuthenticationError(DbShellError):
    """Raised when the server rejects the AUTH handshake."""

    def __init__(self, server_message: str) -> None:
        super().__init__(f"Authentication failed: {server_message}")
        self.server_message = server_message


class SessionTimeout(DbShellError):
    """Raised when a configured connect/read timeout expires."""


class ServerClosed(DbShellError):
    """Raised when the server closes the stream (zero-length read)."""


@runtime_checkable
class Transport(Protocol):
    """Protocol implemented by line transports."""

    async def readline(self) -> str:
        """Return the next server line without its newline."""

    async def write_line(self, text: str) -> None:
        """Send ``text`` followed by a newline."""

    async def close(self) -> None:
        """Release the underlying stream."""


class LineTransport:
    """Newline-delimited UTF-8 text over an asyncio stream pair."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        read_timeout: float | None = None,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._read_timeout = read_timeout

    async def readline(self) -> str:
        raw = await _with_timeout(self._read_raw_line(), self._read_timeout, "read")
        if not raw:
            raise ServerClosed("Server closed the connection.")
        line = raw.decode(ENCODING, errors="replace").rstrip("\r\n")
        LOG.debug("recv %r", line)
        return line

    async def _read_raw_line(self) -> bytes:
        # Lines longer than the stream buffer limit arrive in several chunks.
        chunks: list[bytes] = []
        while True:
            try:
                chunks.append(await self._reader.readuntil(b"\n"))
            except asyncio.IncompleteReadError as exc:
                chunks.append(exc.partial)
            except asyncio.LimitOverrunError as exc:
                chunks.append(await self._reader.readexactly(exc.consumed))
                continue
            return b"".join(chunks)

    async def write_line(self, text: str) -> None:
        payload = text if text.endswith("\n") else f"{text}\n"
        self._writer.write(payload.encode(ENCODING))
        await self._writer.drain()

    async def close(self) -> None:
        if self._writer.is_closing():
            return
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (ConnectionError, OSError):  # pragma: no cover - peer already gone
            LOG.debug("Transport closed with pending error", exc_info=True)


async def open_connection(
    address: ServerAddress,
    *,
    connect_timeout: float | None = None,
    read_timeout: float | None = None,
) -> LineTransport:
    """Open a TCP stream to ``address``."""

    LOG.debug("Connecting to %s", address)
    try:
        reader, writer = await _with_timeout(
            asyncio.open_connection(address.host, address.port),
            connect_timeout,
            "connect",
        )
    except OSError as exc:
        raise ConnectionEstablishError(f"Failed to connect to {address}: {exc}") from exc
    LOG.info("Connected to %s", address)
    return LineTransport(reader, writer, read_timeout=read_timeout)


async def authenticate(transport: Transport, credentials: Credentials) -> None:
    """Run the AUTH handshake; raise AuthenticationError unless ``AUTH OK``."""

    LOG.debug("Sending AUTH for user %r", credentials.username)
    await transport.write_line(f"AUTH {credentials.username} {credentials.password}")
    try:
        response = await transport.readline()
    except ServerClosed:
        raise AuthenticationError("") from None
    if response.strip() != AUTH_OK:
        raise AuthenticationError(response.strip())
    LOG.info("Authenticated as %r", credentials.username)


async def _with_timeout(awaitable: Awaitable[T], timeout: float | None, action: str) -> T:
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as exc:
        raise SessionTimeout(f"Timed out after {timeout:g}s waiting to {action}.") from exc


__all__ = [
    "AUTH_OK",
    "AuthenticationError",
    "ConnectionEstablishError",
    "LineTransport",
    "ServerClosed",
    "SessionTimeout",
    "Transport",
    "authenticate",
    "open_connection",
]
