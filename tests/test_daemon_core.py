"""Tests for the daemon's command dispatcher and session loop."""

import socket
import threading

from fls.config import FILEPATH_MAX
from fls.daemon import protocol
from fls.daemon.core import FileStackDaemon
from fls.stack import FileStack


def _recv(conn: socket.socket) -> str:
    n, text = protocol.receive(conn, FILEPATH_MAX)
    assert n > 0
    return text


class TestDispatcher:
    """Replies on the wire for each command."""

    def test_size_reply_is_bare_number(self, daemon, serve):
        daemon.stack.push("/a")
        with serve(daemon) as client:
            protocol.send(client.conn, "size")
            assert _recv(client.conn) == "1"

    def test_push_handshake(self, daemon, serve):
        with serve(daemon) as client:
            protocol.send(client.conn, "push")
            assert _recv(client.conn) == "okay"
            protocol.send(client.conn, "/tmp/a.txt")
            assert _recv(client.conn) == "okay"
            assert _recv(client.conn) == "/tmp/a.txt"
        assert list(daemon.stack) == ["/tmp/a.txt"]

    def test_push_on_full_stack_skips_payload(self, config, serve):
        daemon = FileStackDaemon(config, stack=FileStack(capacity=1))
        daemon.stack.push("/a")
        with serve(daemon) as client:
            protocol.send(client.conn, "push")
            assert _recv(client.conn) == "error"
            assert _recv(client.conn) == "file stack full"
            protocol.send(client.conn, "size")
            assert _recv(client.conn) == "1"

    def test_push_too_long_path_rejected_and_stream_recovers(self, daemon, serve):
        with serve(daemon) as client:
            protocol.send(client.conn, "push")
            assert _recv(client.conn) == "okay"
            protocol.send(client.conn, "/" + "x" * (FILEPATH_MAX + 10))
            assert _recv(client.conn) == "error"
            assert _recv(client.conn) == "file path too long"

            protocol.send(client.conn, "size")
            assert _recv(client.conn) == "0"

    def test_pop_on_empty(self, daemon, serve):
        with serve(daemon) as client:
            protocol.send(client.conn, "pop")
            assert _recv(client.conn) == "error"
            assert _recv(client.conn) == "file stack empty"

    def test_pick_handshake(self, daemon, serve):
        daemon.stack.push("/a")
        daemon.stack.push("/b")
        with serve(daemon) as client:
            protocol.send(client.conn, "pick")
            assert _recv(client.conn) == "okay"
            protocol.send(client.conn, "1")
            assert _recv(client.conn) == "okay"
            assert _recv(client.conn) == "/a"

    def test_pick_non_numeric_index(self, daemon, serve):
        daemon.stack.push("/a")
        with serve(daemon) as client:
            protocol.send(client.conn, "pick")
            assert _recv(client.conn) == "okay"
            protocol.send(client.conn, "top")
            assert _recv(client.conn) == "error"
            assert _recv(client.conn) == "stack is not quite that deep"

    def test_unknown_command_gets_error_reply(self, daemon, serve):
        with serve(daemon) as client:
            protocol.send(client.conn, "frobnicate")
            assert _recv(client.conn) == "error"
            assert _recv(client.conn) == "unknown command `frobnicate'"
            # session continues
            protocol.send(client.conn, "size")
            assert _recv(client.conn) == "0"

    def test_stop_ends_session_and_flags_shutdown(self, daemon):
        server_end, client_end = socket.socketpair()
        thread = threading.Thread(target=daemon.serve_connection, args=(server_end,))
        thread.start()
        try:
            protocol.send(client_end, "stop")
            assert _recv(client_end) == "okay"
            thread.join(timeout=5)
            assert not thread.is_alive()
            assert daemon.shutdown_requested
        finally:
            client_end.close()
            server_end.close()


class TestSessionLoop:
    """Broken clients end their session, never the daemon."""

    def test_client_vanishing_mid_push(self, daemon):
        server_end, client_end = socket.socketpair()
        client_end.sendall(b"push\0")
        client_end.close()

        daemon.serve_connection(server_end)
        server_end.close()

        assert len(daemon.stack) == 0
        assert not daemon.shutdown_requested

    def test_garbage_command_ends_session(self, daemon):
        server_end, client_end = socket.socketpair()
        client_end.sendall(b"c" * 500 + b"\0")
        client_end.close()

        daemon.serve_connection(server_end)
        server_end.close()
        assert not daemon.shutdown_requested

    def test_commands_processed_in_order(self, daemon):
        server_end, client_end = socket.socketpair()
        client_end.sendall(b"push\0/one\0push\0/two\0pop\0size\0")
        client_end.shutdown(socket.SHUT_WR)

        daemon.serve_connection(server_end)

        replies = [_recv(client_end) for _ in range(9)]
        client_end.close()
        server_end.close()
        assert replies == [
            "okay", "okay", "/one",
            "okay", "okay", "/two",
            "okay", "/two",
            "1",
        ]
        assert list(daemon.stack) == ["/one"]
