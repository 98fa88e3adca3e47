"""Process configuration for fls clients and the daemon.

One FlsConfig is built at startup and handed to every component that needs
it. It carries the verbosity, whether this process is the daemon, and the
socket endpoint shared by all of a user's clients.
"""

from __future__ import annotations

import dataclasses
import getpass
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from . import PROGRAM_NAME

# Environment override for the socket endpoint
ENV_SOCKET = "FLS_SOCKET"

SOCKET_DIR = Path("/tmp")

# Maximum number of entries the daemon will hold
STACK_MAX = 100

# Receive limits (payload bytes + terminator)
FILEPATH_MAX = 2000
MSG_MAX = 100

# How long a freshly bound client waits for the forked daemon to signal
DAEMON_READY_TIMEOUT = 1.0

# Interactive mode keeps draining replies while more arrive within this window
INTERACTIVE_DRAIN_TIMEOUT = 0.2

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def default_socket_path() -> Path:
    """Compute the per-user socket path, e.g. /tmp/alicefls.

    Honors FLS_SOCKET when set.
    """
    override = os.environ.get(ENV_SOCKET)
    if override:
        return Path(override)
    username = os.environ.get("USER") or getpass.getuser()
    return SOCKET_DIR / f"{username}{PROGRAM_NAME}"


@dataclass(slots=True, frozen=True)
class FlsConfig:
    """Settings fixed once per process."""

    socket_path: Path
    verbose: int = 0
    is_daemon: bool = False

    @classmethod
    def from_env(cls, verbose: int = 0) -> FlsConfig:
        return cls(socket_path=default_socket_path(), verbose=verbose)

    @property
    def log_path(self) -> Path:
        """Daemon log file, next to the socket."""
        return self.socket_path.with_name(self.socket_path.name + ".log")

    @property
    def log_prefix(self) -> str:
        return "daemon: " if self.is_daemon else ""

    def with_daemon_role(self) -> FlsConfig:
        # the daemon's log should not fill up just because the client ran with -v
        return dataclasses.replace(self, is_daemon=True, verbose=0)


def configure_logging(config: FlsConfig) -> None:
    """Set up logging for this process.

    Clients log to stderr (WARNING, INFO with -v, DEBUG with -vv).
    The daemon appends to its log file at INFO.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if config.is_daemon:
        logging.basicConfig(
            filename=str(config.log_path),
            level=logging.INFO,
            format=LOG_FORMAT,
        )
        return

    if config.verbose >= 2:
        level = logging.DEBUG
    elif config.verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(stream=sys.stderr, level=level, format="%(levelname)s: %(message)s")
