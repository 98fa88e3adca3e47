"""Shared fixtures: a real FileStackDaemon serving one end of a socketpair."""

import contextlib
import socket
import threading
from pathlib import Path
from typing import Callable, Iterator

import pytest

from fls.client import StackClient
from fls.config import FlsConfig
from fls.daemon.core import FileStackDaemon


@contextlib.contextmanager
def serving(daemon: FileStackDaemon) -> Iterator[StackClient]:
    """Serve one connection from `daemon` in a thread and yield its client."""
    server_end, client_end = socket.socketpair()
    thread = threading.Thread(target=daemon.serve_connection, args=(server_end,), daemon=True)
    thread.start()
    client = StackClient(client_end)
    try:
        yield client
    finally:
        client.close()
        thread.join(timeout=5)
        server_end.close()


def scripted(*answers: str) -> Callable[[str], str]:
    """read_line replacement that replays `answers`, then hits end of input."""
    remaining = list(answers)

    def read_line(prompt: str) -> str:
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return read_line


@pytest.fixture
def serve():
    """The serving() context manager, for tests that build their own daemon."""
    return serving


@pytest.fixture
def answers():
    """Factory for scripted prompt answers."""
    return scripted


@pytest.fixture
def config() -> FlsConfig:
    return FlsConfig(socket_path=Path("/tmp/fls-test-unused"))


@pytest.fixture
def daemon(config) -> FileStackDaemon:
    return FileStackDaemon(config)


@pytest.fixture
def client(daemon) -> Iterator[StackClient]:
    with serving(daemon) as c:
        yield c
