"""
Unit tests for the buffered connection reader.
"""

import socket

import pytest

from pyhttpd.core.connection import (
    ConnectionState,
    IncompleteLineError,
    LineTooLongError,
)


class TestReadLine:
    """Tests for Connection.read_line()."""

    def test_reads_single_line(self, make_connection):
        """A CRLF-terminated line comes back without its CRLF."""
        conn, client = make_connection()
        client.sendall(b"GET / HTTP/1.1\r\n")

        assert conn.read_line() == "GET / HTTP/1.1"

    def test_keeps_bytes_after_crlf(self, make_connection):
        """Bytes after the first CRLF stay buffered for the next call."""
        conn, client = make_connection()
        client.sendall(b"first\r\nsecond\r\n\r\n")

        assert conn.read_line() == "first"
        assert conn.read_line() == "second"
        assert conn.read_line() == ""

    def test_line_split_across_deliveries(self, make_connection):
        """Tiny recv() sizes still assemble the full line."""
        conn, client = make_connection(buffer_size=3)
        client.sendall(b"Host: localhost:4221\r\nnext\r\n")

        assert conn.read_line() == "Host: localhost:4221"
        assert conn.read_line() == "next"

    def test_crlf_split_between_recv_calls(self, make_connection):
        """A CR at the end of one chunk and LF at the start of the next."""
        conn, client = make_connection(buffer_size=1)
        client.sendall(b"ab\r\ncd\r\n")

        assert conn.read_line() == "ab"
        assert conn.read_line() == "cd"

    def test_bare_lf_is_not_a_terminator(self, make_connection):
        """Only CRLF ends a line."""
        conn, client = make_connection()
        client.sendall(b"a\nb\r\n")

        assert conn.read_line() == "a\nb"

    def test_clean_eof_returns_none(self, make_connection):
        """Peer closes with nothing buffered: no more lines."""
        conn, client = make_connection()
        client.shutdown(socket.SHUT_WR)

        assert conn.read_line() is None

    def test_eof_after_partial_line_raises(self, make_connection):
        """Peer closes in the middle of a line."""
        conn, client = make_connection()
        client.sendall(b"GET / HT")
        client.shutdown(socket.SHUT_WR)

        with pytest.raises(IncompleteLineError):
            conn.read_line()

    def test_idle_timeout_returns_none(self, make_connection):
        """Nothing arrives before the timeout: treated like end of input."""
        conn, client = make_connection()

        assert conn.read_line(timeout=0.1) is None

    def test_timeout_after_partial_line_raises(self, make_connection):
        """Half a line then silence is an incomplete line."""
        conn, client = make_connection()
        client.sendall(b"partial")

        with pytest.raises(IncompleteLineError):
            conn.read_line(timeout=0.1)

    def test_timeout_override_is_restored(self, make_connection):
        """A per-call timeout does not stick to the socket."""
        conn, client = make_connection(timeout=2.0)

        conn.read_line(timeout=0.1)

        assert conn.socket.gettimeout() == 2.0

    def test_line_too_long_without_crlf(self, make_connection):
        """Growing past max_line_size with no CRLF fails early."""
        conn, client = make_connection(max_line_size=16)
        client.sendall(b"A" * 64)

        with pytest.raises(LineTooLongError):
            conn.read_line()

    def test_line_too_long_with_crlf(self, make_connection):
        """A complete line over the limit is rejected too."""
        conn, client = make_connection(max_line_size=16)
        client.sendall(b"B" * 40 + b"\r\n")

        with pytest.raises(LineTooLongError):
            conn.read_line()

    def test_non_ascii_bytes_round_trip(self, make_connection):
        """Lines decode as ISO-8859-1: every byte maps to one character."""
        conn, client = make_connection()
        client.sendall(b"caf\xe9 \xff\r\n")

        line = conn.read_line()

        assert line == "café ÿ"
        assert line.encode("iso-8859-1") == b"caf\xe9 \xff"


class TestReadExact:
    """Tests for Connection.read_exact() and discard()."""

    def test_uses_buffered_bytes_first(self, make_connection):
        """Body bytes that arrived with the headers are not lost."""
        conn, client = make_connection()
        client.sendall(b"head\r\nhello world")

        assert conn.read_line() == "head"
        assert conn.read_exact(5) == b"hello"
        assert conn.read_exact(6) == b" world"

    def test_reads_across_deliveries(self, make_connection):
        """Large bodies arrive in several recv() calls."""
        conn, client = make_connection(buffer_size=7)
        payload = bytes(range(256)) * 4
        client.sendall(payload)

        assert conn.read_exact(len(payload)) == payload

    def test_short_body_on_eof(self, make_connection):
        """EOF mid-body returns what arrived."""
        conn, client = make_connection()
        client.sendall(b"abc")
        client.shutdown(socket.SHUT_WR)

        assert conn.read_exact(10) == b"abc"

    def test_short_body_on_timeout(self, make_connection):
        """An idle peer mid-body also returns what arrived."""
        conn, client = make_connection(timeout=0.1)
        client.sendall(b"ab")

        assert conn.read_exact(5) == b"ab"

    def test_zero_length(self, make_connection):
        """Reading nothing never touches the socket."""
        conn, client = make_connection()

        assert conn.read_exact(0) == b""

    def test_discard_leaves_following_bytes(self, make_connection):
        """discard() skips exactly the requested amount."""
        conn, client = make_connection(buffer_size=4)
        client.sendall(b"0123456789GET / HTTP/1.1\r\n")

        assert conn.discard(10) == 10
        assert conn.read_line() == "GET / HTTP/1.1"


class TestSendAndClose:
    """Tests for writing and closing."""

    def test_send_response_counts_requests(self, make_connection):
        """Each successful send counts as one handled request."""
        conn, client = make_connection()

        assert conn.send_response(b"HTTP/1.1 200 OK\r\n\r\n") is True
        assert conn.requests_handled == 1
        assert conn.state == ConnectionState.RESPONDING
        assert client.recv(64) == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_send_to_closed_peer_returns_false(self, make_connection):
        """A vanished peer is reported, not raised."""
        conn, client = make_connection()
        client.close()

        assert conn.send_response(b"x" * 65536) is False
        assert conn.requests_handled == 0

    def test_close_is_idempotent(self, make_connection):
        """Closing twice is harmless."""
        conn, client = make_connection()

        conn.close()
        conn.close()

        assert conn.state == ConnectionState.CLOSED
        assert conn.is_closed

    def test_peer_sees_eof_after_close(self, make_connection):
        """The client reads a clean EOF after close()."""
        conn, client = make_connection()

        conn.close()

        assert client.recv(1) == b""

    def test_context_manager_closes(self, make_connection):
        """Leaving the with-block closes the connection."""
        conn, client = make_connection()

        with conn:
            pass

        assert conn.is_closed

    def test_close_logs_last_phase(self, make_connection, caplog):
        """The close log line names the phase the connection died in."""
        conn, client = make_connection()
        conn.state = ConnectionState.DISPATCHING

        with caplog.at_level("DEBUG", logger="pyhttpd.core.connection"):
            conn.close()

        assert "last phase dispatching" in caplog.text
