"""
fls daemon core - the FileStackDaemon server class.

Holds the file stack in memory and serves one client connection at a
time over a Unix socket. Connections are handled strictly in sequence, so
a command always runs to completion before the next one is read and no
locking is needed.
"""

import logging
import os
import signal
import socket
from typing import Callable, Optional

from ..config import FILEPATH_MAX, MSG_MAX, FlsConfig
from ..stack import FileStack, StackEmptyError, StackFullError, StackIndexError
from . import protocol
from .protocol import (
    CMD_PEEK,
    CMD_PICK,
    CMD_POP,
    CMD_PUSH,
    CMD_SIZE,
    CMD_STOP,
    MSG_ERR_INDEX,
    MSG_ERR_LENGTH,
    MSG_ERR_STACK_EMPTY,
    MSG_ERR_STACK_FULL,
    MSG_ERROR,
    MSG_SUCCESS,
)

logger = logging.getLogger(__name__)

Handler = Callable[[socket.socket], bool]


class FileStackDaemon:
    """
    fls daemon server holding the file stack.

    Listens on a Unix socket, reads one command at a time from the
    connected client and replies using the protocol in protocol.py. The
    stack lives exactly as long as this process.
    """

    def __init__(self, config: FlsConfig, stack: Optional[FileStack] = None):
        """
        Initialize the daemon.

        Args:
            config: Process configuration (socket path, role)
            stack: Stack to serve; a fresh empty one by default
        """
        self.config = config
        self.socket_path = config.socket_path
        self.stack = stack if stack is not None else FileStack()
        self._socket: Optional[socket.socket] = None
        self._shutdown_requested = False

        self._handlers: dict[str, Handler] = {
            CMD_PUSH: self._handle_push,
            CMD_POP: self._handle_pop,
            CMD_PEEK: self._handle_peek,
            CMD_PICK: self._handle_pick,
            CMD_SIZE: self._handle_size,
            CMD_STOP: self._handle_stop,
        }

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    def handle_command(self, conn: socket.socket, cmd: str) -> bool:
        """
        Route and handle one command from the client on `conn`.

        Returns:
            False once the daemon should stop serving, True otherwise
        """
        handler = self._handlers.get(cmd)
        if handler is None:
            logger.warning(f"unknown command `{cmd}'")
            protocol.send(conn, MSG_ERROR)
            protocol.send(conn, protocol.unknown_command_reason(cmd))
            return True
        return handler(conn)

    def _reply(self, conn: socket.socket, status: str, payload: str) -> None:
        protocol.send(conn, status)
        protocol.send(conn, payload)

    def _handle_push(self, conn: socket.socket) -> bool:
        """Two-step push: acknowledge the command, then read the path."""
        if self.stack.is_full:
            logger.info("push request failed (stack full)")
            self._reply(conn, MSG_ERROR, MSG_ERR_STACK_FULL)
            return True

        protocol.send(conn, MSG_SUCCESS)
        n, path = protocol.receive(conn, FILEPATH_MAX)
        if n <= 0:
            logger.info("push request failed (read error)")
            self._reply(conn, MSG_ERROR, MSG_ERR_LENGTH)
            return True

        try:
            self.stack.push(path)
        except StackFullError:
            self._reply(conn, MSG_ERROR, MSG_ERR_STACK_FULL)
            return True
        logger.info(f"PUSH `{path}'")
        self._reply(conn, MSG_SUCCESS, path)
        return True

    def _handle_pop(self, conn: socket.socket) -> bool:
        try:
            path = self.stack.pop()
        except StackEmptyError:
            logger.info("tried to pop from empty stack")
            self._reply(conn, MSG_ERROR, MSG_ERR_STACK_EMPTY)
            return True
        logger.info(f"POP `{path}'")
        self._reply(conn, MSG_SUCCESS, path)
        return True

    def _handle_peek(self, conn: socket.socket) -> bool:
        try:
            path = self.stack.peek()
        except StackEmptyError:
            self._reply(conn, MSG_ERROR, MSG_ERR_STACK_EMPTY)
            return True
        self._reply(conn, MSG_SUCCESS, path)
        return True

    def _handle_pick(self, conn: socket.socket) -> bool:
        protocol.send(conn, MSG_SUCCESS)
        n, text = protocol.receive(conn, MSG_MAX)
        if n == 0:
            # client hung up between the command and its index
            return True
        if n < 0:
            self._reply(conn, MSG_ERROR, MSG_ERR_INDEX)
            return True

        try:
            path = self.stack.pick(int(text))
        except (ValueError, StackIndexError):
            self._reply(conn, MSG_ERROR, MSG_ERR_INDEX)
            return True
        self._reply(conn, MSG_SUCCESS, path)
        return True

    def _handle_size(self, conn: socket.socket) -> bool:
        protocol.send(conn, str(len(self.stack)))
        return True

    def _handle_stop(self, conn: socket.socket) -> bool:
        logger.info("Shutting down...")
        protocol.send(conn, MSG_SUCCESS)
        self._shutdown_requested = True
        return False

    def serve_connection(self, conn: socket.socket) -> None:
        """Serve commands on `conn` until STOP, disconnect or a read error."""
        while not self._shutdown_requested:
            n, cmd = protocol.receive(conn, MSG_MAX)
            if n < 0:
                logger.info("disconnected for read error")
                return
            if n == 0:
                logger.info("disconnected for closed socket")
                return
            logger.info(f"received command `{cmd}'")
            if not self.handle_command(conn, cmd):
                return

    def serve_forever(self, listener: socket.socket, on_ready: Optional[Callable[[], None]] = None) -> None:
        """Accept and serve connections one after another until STOP.

        Args:
            listener: Bound Unix stream socket; listen() is called here
            on_ready: Called once the socket is listening
        """
        self._socket = listener
        listener.listen(1)
        if on_ready is not None:
            on_ready()

        while not self._shutdown_requested:
            logger.info("Waiting for a connection...")
            conn, _ = listener.accept()
            logger.info("Connected.")
            try:
                self.serve_connection(conn)
            finally:
                conn.close()

    def run(self, listener: socket.socket, notify_pid: Optional[int] = None) -> None:
        """Run the daemon main loop on a bound listener.

        Args:
            listener: Bound Unix stream socket
            notify_pid: Process to send SIGUSR1 once listening (the client
                that forked us and is waiting to connect)
        """
        def _signal_ready() -> None:
            if notify_pid is not None:
                logger.info(f"signalling {notify_pid}")
                os.kill(notify_pid, signal.SIGUSR1)

        logger.info(f"Daemon started with pid {os.getpid()}")
        try:
            self.serve_forever(listener, on_ready=_signal_ready)
        finally:
            self._cleanup_socket()
            logger.info("All done.")

    def _cleanup_socket(self) -> None:
        """Close the listener and remove the socket file."""
        if self._socket:
            self._socket.close()
            self._socket = None
        if self.socket_path.exists():
            self.socket_path.unlink()
        logger.info("Socket cleaned up")
