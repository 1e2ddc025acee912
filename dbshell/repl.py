"""Read-eval-print loop that multiplexes user input and server replies."""

from __future__ import annotations

import logging
from enum import Enum

from .classify import classify_line, extract_database
from .connections import ServerClosed, Transport
from .models import PromptClass, Session
from .terminal import Terminal

LOG = logging.getLogger(__name__)

EXIT_COMMAND = "exit"
FAREWELL = "Bye!"
DISCONNECT_NOTICE = "Server closed the connection."


class ExitReason(str, Enum):
    """Why the loop stopped."""

    USER_EXIT = "user_exit"
    SERVER_CLOSED = "server_closed"


class ReplEngine:
    """Drives one session until the user exits or the server disconnects.

    Each iteration shows the session prompt, forwards one user line and then
    consumes server lines until a line of output has been printed. Username,
    password and yes/no prompts sent by the server are answered inline and
    never printed as output.
    """

    def __init__(self, transport: Transport, terminal: Terminal, session: Session) -> None:
        self._transport = transport
        self._terminal = terminal
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    async def run(self) -> ExitReason:
        """Loop until a terminal condition; I/O errors propagate."""

        while True:
            reason = await self.step()
            if reason is not None:
                return reason

    async def step(self) -> ExitReason | None:
        """Run one command cycle; return an ExitReason when the session ends."""

        line = await self._terminal.read_line(self._session.prompt)
        if line is None or line.strip().lower() == EXIT_COMMAND:
            self._terminal.write(FAREWELL)
            return ExitReason.USER_EXIT
        LOG.debug("send %r", line)
        await self._transport.write_line(line)
        try:
            await self._await_response()
        except ServerClosed:
            LOG.info("Server closed the connection")
            self._terminal.write(DISCONNECT_NOTICE)
            return ExitReason.SERVER_CLOSED
        return None

    async def _await_response(self) -> None:
        while True:
            line = await self._transport.readline()
            kind = classify_line(line)
            LOG.debug("classified %r as %s", line, kind.value)
            if kind.is_input_request:
                await self._answer_prompt(line, kind)
                continue
            self._terminal.write(line.strip())
            if kind is PromptClass.DATABASE_SELECTION_NOTICE:
                self._select_database(line)
            return

    async def _answer_prompt(self, line: str, kind: PromptClass) -> None:
        prompt = f"{line.strip()} "
        if kind is PromptClass.PASSWORD_REQUEST:
            answer = await self._terminal.read_secret(prompt)
            LOG.debug("send <password>")
        else:
            answer = await self._terminal.read_line(prompt)
            LOG.debug("send %r", answer)
        await self._transport.write_line(answer or "")

    def _select_database(self, line: str) -> None:
        name = extract_database(line)
        if not name:
            return
        self._session.use_database(name)
        LOG.debug("Prompt switched to %r", self._session.prompt)


__all__ = ["DISCONNECT_NOTICE", "EXIT_COMMAND", "ExitReason", "FAREWELL", "ReplEngine"]
