"""Test doubles for the terminal, the transport and the remote server."""

from __future__ import annotations

import asyncio
import contextlib
import socket
from collections import deque
from typing import AsyncIterator, Awaitable, Callable, Iterable

from dbshell.connections import ServerClosed

StreamHandler = Callable[[asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]]


class ScriptedTerminal:
    """Terminal double that replays canned input and records everything else."""

    def __init__(
        self,
        lines: Iterable[str] = (),
        *,
        secrets: Iterable[str] = (),
        events: list[tuple[str, str]] | None = None,
    ) -> None:
        self._lines = deque(lines)
        self._secrets = deque(secrets)
        self.prompts: list[str] = []
        self.secret_prompts: list[str] = []
        self.output: list[str] = []
        self.events = events if events is not None else []

    async def read_line(self, prompt: str) -> str | None:
        self.prompts.append(prompt)
        self.events.append(("input", prompt))
        return self._lines.popleft() if self._lines else None

    async def read_secret(self, prompt: str) -> str | None:
        self.secret_prompts.append(prompt)
        self.events.append(("secret", prompt))
        return self._secrets.popleft() if self._secrets else None

    def write(self, text: str) -> None:
        self.output.append(text)


class FakeTransport:
    """Transport double fed with server lines; an exception item is raised."""

    def __init__(
        self,
        replies: Iterable[str | BaseException] = (),
        *,
        events: list[tuple[str, str]] | None = None,
    ) -> None:
        self._replies = deque(replies)
        self.sent: list[str] = []
        self.closed = False
        self.events = events if events is not None else []

    async def readline(self) -> str:
        if not self._replies:
            raise ServerClosed("Server closed the connection.")
        item = self._replies.popleft()
        if isinstance(item, BaseException):
            raise item
        return item

    async def write_line(self, text: str) -> None:
        self.sent.append(text)
        self.events.append(("send", text))

    async def close(self) -> None:
        self.closed = True


@contextlib.asynccontextmanager
async def serve(handler: StreamHandler) -> AsyncIterator[int]:
    """Run a loopback stub server for the duration of the block; yield its port."""

    # Before Python 3.12, Server.wait_closed() does not wait for handler
    # tasks, so track them and await them explicitly on exit.
    handler_tasks: set[asyncio.Task[None]] = set()

    async def _tracked(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        task = asyncio.current_task()
        assert task is not None
        handler_tasks.add(task)
        await handler(reader, writer)

    server = await asyncio.start_server(_tracked, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield port
    finally:
        server.close()
        await server.wait_closed()
        if handler_tasks:
            await asyncio.gather(*handler_tasks, return_exceptions=True)


def unused_port() -> int:
    """A loopback port with nothing listening on it."""

    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
