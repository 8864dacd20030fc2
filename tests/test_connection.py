"""
Tests for connection.py
Logic testing: Decision/Branch, State Transition, Error Path
"""
from unittest.mock import MagicMock
from urllib.parse import urlsplit

import pytest

from conftest import decode_chunked
from fetch_request_builder import (
    ConnectionBodySink,
    ConnectionRequest,
    FinalizedRequest,
    HttpMethod,
    TransferError,
)
from fetch_request_builder.connection import open_connection, request_target


class TestConnectionBodySink:
    """Tests for ConnectionBodySink framing."""

    def test_plain_writes_buffered_to_chunk_size(self):
        connection = MagicMock()
        sink = ConnectionBodySink(connection, chunked=False, chunk_size=4)

        sink.write(b"ab")
        connection.send.assert_not_called()
        sink.write(b"cdefghij")

        assert [c.args[0] for c in connection.send.call_args_list] == [b"abcd", b"efgh"]
        sink.close()
        assert connection.send.call_args_list[-1].args[0] == b"ij"
        assert sink.bytes_sent == 10

    def test_chunked_framing_and_terminator(self):
        connection = MagicMock()
        sink = ConnectionBodySink(connection, chunked=True, chunk_size=4)

        sink.write(b"abcdef")
        sink.close()

        raw = b"".join(c.args[0] for c in connection.send.call_args_list)
        assert raw == b"4\r\nabcd\r\n2\r\nef\r\n0\r\n\r\n"
        payload, sizes = decode_chunked(raw)
        assert payload == b"abcdef"
        assert sizes == [4, 2, 0]

    def test_close_is_idempotent_and_keeps_connection_open(self):
        connection = MagicMock()
        sink = ConnectionBodySink(connection, chunked=True)
        sink.close()
        sink.close()
        connection.send.assert_called_once_with(b"0\r\n\r\n")
        connection.close.assert_not_called()
        assert sink.closed is True

    def test_write_after_close(self):
        sink = ConnectionBodySink(MagicMock())
        sink.close()
        with pytest.raises(ValueError, match="closed"):
            sink.write(b"x")

    def test_abort_drops_buffer_and_skips_terminator(self):
        connection = MagicMock()
        sink = ConnectionBodySink(connection, chunked=True, chunk_size=4)

        sink.write(b"abcdef")
        sink.abort()
        sink.close()

        connection.send.assert_called_once_with(b"4\r\nabcd\r\n")
        connection.close.assert_not_called()
        assert sink.closed is True
        assert sink.bytes_sent == 4


class TestConnectionRequest:
    """Tests for ConnectionRequest state."""

    def test_properties_without_body(self, settings):
        finalized = FinalizedRequest(HttpMethod.GET, "http://x/y", [("A", "1")])
        pending = ConnectionRequest(MagicMock(), finalized, settings)
        assert pending.method == "GET"
        assert pending.url == "http://x/y"
        assert pending.headers == [("A", "1")]
        assert pending.do_output is False
        assert pending.chunked is False
        assert pending.chunk_size == 8192

    def test_on_connected_once(self, settings):
        connection = MagicMock()
        pending = ConnectionRequest(connection, FinalizedRequest(HttpMethod.GET, "http://x/"), settings)

        assert pending.on_connected() == 0
        connection.endheaders.assert_called_once()
        with pytest.raises(RuntimeError, match="already been called"):
            pending.on_connected()

    def test_header_send_failure(self, settings):
        connection = MagicMock()
        connection.endheaders.side_effect = ConnectionRefusedError("refused")
        pending = ConnectionRequest(connection, FinalizedRequest(HttpMethod.GET, "http://x/"), settings)

        with pytest.raises(TransferError, match="request headers") as exc_info:
            pending.on_connected()
        assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)
        connection.close.assert_called_once()


class TestHelpers:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("http://x", "/"),
            ("http://x/a/b", "/a/b"),
            ("http://x/a?b=1&c=2", "/a?b=1&c=2"),
            ("http://x?b=1", "/?b=1"),
        ],
    )
    def test_request_target(self, url, expected):
        assert request_target(urlsplit(url)) == expected

    def test_open_connection_http(self):
        connection = open_connection("http", "example.com", None)
        assert connection.host == "example.com"
        assert connection.port == 80
        assert connection.sock is None

    def test_open_connection_https_with_timeout(self):
        connection = open_connection("https", "example.com", 8443, timeout=3.0)
        assert type(connection).__name__ == "HTTPSConnection"
        assert connection.port == 8443
        assert connection.timeout == 3.0
