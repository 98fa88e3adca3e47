"""Wire protocol shared by fls clients and the daemon.

Messages are strings terminated by a single NUL byte; there is no length
prefix. Because the transport is a byte stream, successive writes may
arrive coalesced or split at any point, so the receiver recognizes the
terminator one byte at a time and never assumes one message per recv().

Conversation shapes (client -> daemon, then daemon -> client):

    push  ->  okay | (error, reason)
          path  ->  (okay, path) | (error, reason)
    pop   ->  (okay, path) | (error, reason)
    peek  ->  (okay, path) | (error, reason)
    pick  ->  okay
          index  ->  (okay, path) | (error, reason)
    size  ->  depth
    stop  ->  okay
    other ->  (error, reason)
"""

from __future__ import annotations

import logging
import os
import select
import socket

from ..config import MSG_MAX

logger = logging.getLogger(__name__)

TERMINATOR = b"\0"

# receive() result for socket errors, truncated and overflowed messages
READ_FAILED = -1

# Commands
CMD_PUSH = "push"
CMD_POP = "pop"
CMD_PEEK = "peek"
CMD_PICK = "pick"
CMD_SIZE = "size"
CMD_STOP = "stop"

COMMANDS = (CMD_PUSH, CMD_POP, CMD_PEEK, CMD_PICK, CMD_SIZE, CMD_STOP)

# Status tokens
MSG_SUCCESS = "okay"
MSG_ERROR = "error"

# Error reasons
MSG_ERR_STACK_EMPTY = "file stack empty"
MSG_ERR_STACK_FULL = "file stack full"
MSG_ERR_LENGTH = "file path too long"
MSG_ERR_INDEX = "stack is not quite that deep"


def unknown_command_reason(cmd: str) -> str:
    return f"unknown command `{cmd}'"


def send(conn: socket.socket, text: str) -> None:
    """Write `text` plus the terminator in a single send.

    A short write or a socket error is logged and otherwise ignored; the
    peer notices the damage on its side. A vanished peer therefore never
    raises here.
    """
    data = os.fsencode(text) + TERMINATOR
    logger.debug(f"send `{text}'")
    try:
        n = conn.send(data)
    except OSError as e:
        logger.warning(f"send failed: {e}")
        return
    if n != len(data):
        # not retried; the peer sees a truncated message
        logger.warning(f"send short by {len(data) - n} bytes")


def receive(conn: socket.socket, limit: int) -> tuple[int, str]:
    """Read one terminated string of at most `limit - 1` payload bytes.

    Returns:
        (payload length + 1, text) on success,
        (0, "") if the peer closed before sending another byte,
        (READ_FAILED, partial text) on socket error, a peer closing
        mid-message, or overflow.

    On overflow everything up to the next terminator is read and thrown
    away, so the following call starts on a message boundary. The
    overflowed message itself is lost.
    """
    if limit < 1:
        logger.error(f"unacceptable buffer size of {limit}")
        return READ_FAILED, ""

    buf = bytearray()
    garbage = False
    while True:
        try:
            byte = conn.recv(1)
        except OSError as e:
            logger.error(f"recv failed: {e}")
            return READ_FAILED, os.fsdecode(bytes(buf))

        if not byte:
            if not buf and not garbage:
                return 0, ""
            logger.error(f"didn't get full string ({len(buf)} bytes, no terminator)")
            if buf:
                logger.error(f"partial message: `{os.fsdecode(bytes(buf))}'")
            return READ_FAILED, os.fsdecode(bytes(buf))

        if byte == TERMINATOR:
            break

        if garbage:
            continue
        buf += byte
        if len(buf) >= limit:
            # keep reading until the terminator; what's left is garbage
            garbage = True
            lost = os.fsdecode(bytes(buf[: limit - 1]))
            logger.error(f"filled buffer before getting full string ({len(buf)} bytes, no terminator)")
            logger.error(f"first {limit - 1} bytes of lost message: `{lost}'")

    if garbage:
        return READ_FAILED, ""

    text = os.fsdecode(bytes(buf))
    logger.debug(f"recv `{text}'")
    return len(buf) + 1, text


def wait_ready(conn: socket.socket, timeout: float) -> bool:
    """Return whether `conn` becomes readable within `timeout` seconds."""
    readable, _, _ = select.select([conn], [], [], timeout)
    return bool(readable)


def read_ack(conn: socket.socket) -> bool:
    """Read one status message; True only if it is the success token."""
    n, text = receive(conn, MSG_MAX)
    return n > 0 and text == MSG_SUCCESS
