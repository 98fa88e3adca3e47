"""Tests for NUL-terminated message framing over a stream socket."""

import os
import socket

import pytest

from fls.daemon import protocol
from fls.daemon.protocol import READ_FAILED


@pytest.fixture
def pair():
    a, b = socket.socketpair()
    yield a, b
    a.close()
    b.close()


class TestReceive:
    """Framing, resynchronization and close detection."""

    def test_round_trip(self, pair):
        a, b = pair
        protocol.send(a, "hello")
        assert protocol.receive(b, 100) == (6, "hello")

    def test_empty_message(self, pair):
        a, b = pair
        protocol.send(a, "")
        assert protocol.receive(b, 100) == (1, "")

    def test_coalesced_writes_are_split(self, pair):
        a, b = pair
        a.sendall(b"one\0two\0")

        assert protocol.receive(b, 100) == (4, "one")
        assert protocol.receive(b, 100) == (4, "two")

    def test_message_split_across_writes(self, pair):
        a, b = pair
        a.sendall(b"hel")
        a.sendall(b"lo\0")

        assert protocol.receive(b, 100) == (6, "hello")

    def test_peer_closed_before_any_byte(self, pair):
        a, b = pair
        a.close()
        assert protocol.receive(b, 100) == (0, "")

    def test_peer_closed_mid_message(self, pair):
        a, b = pair
        a.sendall(b"abc")
        a.close()

        n, partial = protocol.receive(b, 100)
        assert n == READ_FAILED
        assert partial == "abc"

    def test_exactly_limit_minus_one_bytes_fits(self, pair):
        a, b = pair
        protocol.send(a, "x" * 9)
        assert protocol.receive(b, 10) == (10, "x" * 9)

    def test_overflow_drains_to_next_terminator(self, pair):
        """The oversized message is lost but the next one arrives intact."""
        a, b = pair
        a.sendall(b"x" * 25 + b"\0" + b"next\0")

        n, _ = protocol.receive(b, 10)
        assert n == READ_FAILED
        assert protocol.receive(b, 10) == (5, "next")

    def test_unacceptable_limit(self, pair):
        a, b = pair
        assert protocol.receive(b, 0)[0] == READ_FAILED

    def test_non_utf8_path_survives(self, pair):
        a, b = pair
        path = os.fsdecode(b"/tmp/caf\xe9")
        protocol.send(a, path)

        n, text = protocol.receive(b, 100)
        assert text == path
        assert os.fsencode(text) == b"/tmp/caf\xe9"


class TestSend:
    def test_send_to_vanished_peer_does_not_raise(self, pair):
        a, b = pair
        b.close()
        protocol.send(a, "anyone there?")

    def test_send_appends_single_terminator(self, pair):
        a, b = pair
        protocol.send(a, "pop")
        assert b.recv(100) == b"pop\0"


class TestReadiness:
    def test_wait_ready_times_out_without_data(self, pair):
        a, b = pair
        assert protocol.wait_ready(b, 0.05) is False

    def test_wait_ready_with_pending_data(self, pair):
        a, b = pair
        protocol.send(a, "okay")
        assert protocol.wait_ready(b, 0.05) is True

    def test_read_ack(self, pair):
        a, b = pair
        protocol.send(a, "okay")
        protocol.send(a, "error")

        assert protocol.read_ack(b) is True
        assert protocol.read_ack(b) is False

    def test_read_ack_on_closed_peer(self, pair):
        a, b = pair
        a.close()
        assert protocol.read_ack(b) is False
