"""Interactive surface used by the REPL engine."""

from __future__ import annotations

import asyncio
import getpass
import logging
import sys
import threading
from typing import Callable, Protocol, TextIO, runtime_checkable

LOG = logging.getLogger(__name__)


@runtime_checkable
class Terminal(Protocol):
    """Line-based input/output surface."""

    async def read_line(self, prompt: str) -> str | None:
        """Show ``prompt`` and return one line, or None at end of input."""

    async def read_secret(self, prompt: str) -> str | None:
        """Like ``read_line`` but without echoing typed characters."""

    def write(self, text: str) -> None:
        """Print one line of output."""


class ConsoleTerminal:
    """Terminal backed by stdin/stdout and :mod:`getpass`.

    Blocking reads run in a daemon thread so the event loop stays free to
    service the socket while the user is typing, and Ctrl-C is not held up
    by a read that never returns.
    """

    def __init__(
        self,
        *,
        stdout: TextIO | None = None,
        line_reader: Callable[[str], str] = input,
        secret_reader: Callable[[str], str] = getpass.getpass,
    ) -> None:
        self._stdout = stdout or sys.stdout
        self._line_reader = line_reader
        self._secret_reader = secret_reader

    async def read_line(self, prompt: str) -> str | None:
        self._stdout.write(prompt)
        self._stdout.flush()
        return await self._read(self._line_reader, "")

    async def read_secret(self, prompt: str) -> str | None:
        return await self._read(self._secret_reader, prompt)

    def write(self, text: str) -> None:
        print(text, file=self._stdout, flush=True)

    @staticmethod
    async def _read(reader: Callable[[str], str], prompt: str) -> str | None:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[str] = loop.create_future()
        thread = threading.Thread(
            target=_read_into,
            args=(reader, prompt, loop, future),
            name="dbshell-input",
            daemon=True,
        )
        thread.start()
        try:
            return await future
        except EOFError:
            return None


def _read_into(
    reader: Callable[[str], str],
    prompt: str,
    loop: asyncio.AbstractEventLoop,
    future: asyncio.Future[str],
) -> None:
    # Daemon thread: interpreter shutdown does not wait for a read blocked in input().
    # The stream stays referenced from this frame so shutdown never frees it mid-read.
    stdin = sys.stdin
    try:
        result = reader(prompt)
    except Exception as exc:
        deliver = _settle(future, exception=exc)
    else:
        deliver = _settle(future, result=result)
    del stdin
    try:
        loop.call_soon_threadsafe(deliver)
    except RuntimeError:
        LOG.debug("Input arrived after the event loop closed")


def _settle(
    future: asyncio.Future[str],
    *,
    result: str | None = None,
    exception: BaseException | None = None,
) -> Callable[[], None]:
    def _callback() -> None:
        if future.done():
            return
        if exception is not None:
            future.set_exception(exception)
        else:
            future.set_result(result)

    return _callback


__all__ = ["ConsoleTerminal", "Terminal"]
