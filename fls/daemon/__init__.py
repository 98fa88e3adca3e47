"""
Daemon bootstrap for fls.

Every client tries to bind the per-user socket first. If the address is in
use a daemon is already running and the client simply connects. If the bind
succeeds, this client forks the daemon onto the freshly bound socket, waits
briefly for it to report that it is listening, and then connects like any
other client.
"""

import errno
import logging
import os
import signal
import socket
import stat
import sys
from typing import Optional

from ..config import DAEMON_READY_TIMEOUT, FlsConfig, configure_logging
from ..errors import TransportError
from .core import FileStackDaemon

logger = logging.getLogger(__name__)

__all__ = [
    "FileStackDaemon",
    "bind_or_none",
    "connect_daemon",
    "ensure_daemon",
    "start_daemon",
]


def _bind(sock: socket.socket, config: FlsConfig) -> None:
    sock.bind(str(config.socket_path))


def bind_or_none(config: FlsConfig) -> Optional[socket.socket]:
    """Bind the daemon endpoint, or return None if a daemon already owns it.

    A socket file left behind by a daemon that died is detected by a probe
    connect being refused; it is removed and the bind retried once.
    """
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        _bind(sock, config)
        return sock
    except OSError as e:
        if e.errno != errno.EADDRINUSE:
            sock.close()
            raise TransportError(f"bind {config.socket_path}: {e.strerror}") from e

    # Address in use - is anyone actually listening?
    probe = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        probe.connect(str(config.socket_path))
    except ConnectionRefusedError:
        if not stat.S_ISSOCK(os.lstat(config.socket_path).st_mode):
            sock.close()
            raise TransportError(f"`{config.socket_path}' exists and is not a socket") from None
        logger.info(f"Removing stale socket {config.socket_path}")
        config.socket_path.unlink()
        try:
            _bind(sock, config)
        except OSError as e:
            sock.close()
            if e.errno == errno.EADDRINUSE:
                # another client won the race and is starting a daemon
                return None
            raise TransportError(f"bind {config.socket_path}: {e.strerror}") from e
        return sock
    except FileNotFoundError:
        # removed between our bind and the probe
        try:
            _bind(sock, config)
        except OSError:
            sock.close()
            return None
        return sock
    else:
        logger.info("Daemon already running.")
        sock.close()
        return None
    finally:
        probe.close()


def _redirect_stdio(config: FlsConfig) -> None:
    """Point the daemon's stdin at /dev/null and stdout/stderr at its log file.

    The daemon must not keep the launching client's terminal or pipe open.
    """
    devnull = os.open(os.devnull, os.O_RDONLY)
    os.dup2(devnull, 0)
    os.close(devnull)
    log_fd = os.open(config.log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
    os.dup2(log_fd, 1)
    os.dup2(log_fd, 2)
    os.close(log_fd)


def _daemon_main(config: FlsConfig, listener: socket.socket, parent_pid: int) -> int:
    """Body of the forked daemon process; returns its exit status."""
    daemon_config = config.with_daemon_role()
    _redirect_stdio(daemon_config)
    configure_logging(daemon_config)
    # a client that vanishes mid-reply must not take the daemon down
    signal.signal(signal.SIGPIPE, signal.SIG_IGN)
    signal.pthread_sigmask(signal.SIG_UNBLOCK, {signal.SIGUSR1})
    daemon = FileStackDaemon(daemon_config)
    try:
        daemon.run(listener, notify_pid=parent_pid)
    except Exception:
        logger.exception("Daemon error")
        return 1
    return 0


def start_daemon(config: FlsConfig, listener: socket.socket) -> int:
    """Fork a daemon that serves on `listener`, and wait for it to be ready.

    The parent's copy of the listener is closed before returning.

    Returns:
        PID of the daemon process
    """
    # Block SIGUSR1 first so the readiness signal can't arrive before we wait for it
    signal.pthread_sigmask(signal.SIG_BLOCK, {signal.SIGUSR1})
    print("Starting daemon...")
    sys.stdout.flush()
    parent_pid = os.getpid()

    pid = os.fork()
    if pid == 0:
        # Child process
        os.setsid()
        status = 1
        try:
            status = _daemon_main(config, listener, parent_pid)
        finally:
            logging.shutdown()
            os._exit(status)

    # Parent process
    logger.info(f"Waiting for signal from daemon (pid {pid})...")
    try:
        if signal.sigtimedwait({signal.SIGUSR1}, DAEMON_READY_TIMEOUT) is None:
            logger.warning("Daemon failed to start")
            logger.warning("Continue anyway")
    finally:
        # a readiness signal arriving after the timeout must not kill us
        signal.signal(signal.SIGUSR1, signal.SIG_IGN)
        signal.pthread_sigmask(signal.SIG_UNBLOCK, {signal.SIGUSR1})
        listener.close()
    return pid


def connect_daemon(config: FlsConfig) -> socket.socket:
    """Return a socket connected to the daemon."""
    logger.info("Trying to connect...")
    client = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        client.connect(str(config.socket_path))
    except ConnectionRefusedError as e:
        client.close()
        raise TransportError(f"No-one listening at `{config.socket_path}'.") from e
    except OSError as e:
        client.close()
        raise TransportError(f"connect: {e}") from e
    logger.info("Connected.")
    return client


def ensure_daemon(config: FlsConfig) -> socket.socket:
    """Start a daemon if none is running, then connect to it."""
    listener = bind_or_none(config)
    if listener is not None:
        logger.info(f"pid={os.getpid()}")
        start_daemon(config, listener)
    return connect_daemon(config)
