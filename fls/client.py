"""Client side of the fls command protocol.

StackClient turns the request/reply conversations in daemon/protocol.py
into method calls. Error replies raise ProtocolError carrying the daemon's
reason; anything that breaks the conversation itself raises TransportError.
"""

from __future__ import annotations

import logging
import socket

from .config import FILEPATH_MAX, MSG_MAX
from .daemon import protocol
from .daemon.protocol import (
    CMD_PEEK,
    CMD_PICK,
    CMD_POP,
    CMD_PUSH,
    CMD_SIZE,
    CMD_STOP,
    MSG_ERROR,
    MSG_SUCCESS,
)
from .errors import ProtocolError, TransportError

logger = logging.getLogger(__name__)


class StackClient:
    """One connection to the daemon."""

    def __init__(self, conn: socket.socket):
        self.conn = conn

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> StackClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _read(self, limit: int, what: str) -> str:
        n, text = protocol.receive(self.conn, limit)
        if n < 0:
            raise TransportError(f"quitting for read error ({what})")
        if n == 0:
            raise TransportError(f"daemon closed the connection ({what})")
        return text

    def _read_reply(self, what: str) -> tuple[bool, str]:
        """Read a status token and the payload that follows it."""
        status = self._read(MSG_MAX, what)
        if status not in (MSG_SUCCESS, MSG_ERROR):
            raise ProtocolError(f"unexpected reply `{status}' ({what})")
        payload = self._read(FILEPATH_MAX, what)
        return status == MSG_SUCCESS, payload

    def _expect(self, what: str) -> str:
        ok, payload = self._read_reply(what)
        if not ok:
            raise ProtocolError(payload, reason=payload)
        return payload

    def size(self) -> int:
        """Current stack depth."""
        protocol.send(self.conn, CMD_SIZE)
        text = self._read(MSG_MAX, CMD_SIZE)
        try:
            return int(text)
        except ValueError:
            raise ProtocolError(f"unexpected size reply `{text}'") from None

    def push(self, path: str) -> str:
        """Push `path` and return the path the daemon stored."""
        protocol.send(self.conn, CMD_PUSH)
        status = self._read(MSG_MAX, CMD_PUSH)
        if status != MSG_SUCCESS:
            reason = self._read(FILEPATH_MAX, CMD_PUSH)
            raise ProtocolError(f"Could not push; received error: `{reason}'", reason=reason)

        protocol.send(self.conn, path)
        ok, payload = self._read_reply(CMD_PUSH)
        if not ok:
            raise ProtocolError(f"received error `{payload}' (stack not altered)", reason=payload)
        return payload

    def pop(self) -> str:
        protocol.send(self.conn, CMD_POP)
        return self._expect(CMD_POP)

    def peek(self) -> str:
        protocol.send(self.conn, CMD_PEEK)
        return self._expect(CMD_PEEK)

    def pick(self, index: int) -> str:
        """Entry `index` places below the top (0 = top)."""
        protocol.send(self.conn, CMD_PICK)
        if not protocol.read_ack(self.conn):
            raise ProtocolError(f"daemon refused {CMD_PICK}")
        protocol.send(self.conn, str(index))
        return self._expect(CMD_PICK)

    def stop(self) -> bool:
        """Ask the daemon to exit; True if it acknowledged."""
        protocol.send(self.conn, CMD_STOP)
        return protocol.read_ack(self.conn)

    # Raw access for interactive mode

    def send_line(self, line: str) -> None:
        protocol.send(self.conn, line)

    def receive_line(self) -> tuple[int, str]:
        return protocol.receive(self.conn, FILEPATH_MAX)

    def has_more(self, timeout: float) -> bool:
        return protocol.wait_ready(self.conn, timeout)
