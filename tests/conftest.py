"""
Shared fixtures for fetch_request_builder tests.
"""
import http.client
import io
from typing import List, Optional, Tuple

import pytest

from fetch_request_builder import BuilderSettings, RequestEmitter


class TrackingStream(io.BytesIO):
    """BytesIO that records close() calls and can fail after N bytes."""

    def __init__(self, data: bytes, fail_after: Optional[int] = None) -> None:
        super().__init__(data)
        self.close_calls = 0
        self._fail_after = fail_after

    def read(self, size: int = -1) -> bytes:
        if self._fail_after is not None and self.tell() >= self._fail_after:
            raise OSError("disk read failed")
        return super().read(size)

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class RecordingSink:
    """Sink that records writes and can fail after N bytes."""

    def __init__(self, fail_after: Optional[int] = None) -> None:
        self.data = bytearray()
        self.close_calls = 0
        self._fail_after = fail_after

    def write(self, chunk: bytes) -> int:
        if self._fail_after is not None and len(self.data) >= self._fail_after:
            raise BrokenPipeError("connection reset by peer")
        self.data += chunk
        return len(chunk)

    def close(self) -> None:
        self.close_calls += 1


class FakeSocket:
    """Socket double for http.client connections; records sent bytes."""

    def __init__(self, fail_on_send: bool = False) -> None:
        self.sent = bytearray()
        self.closed = False
        self._fail_on_send = fail_on_send

    def sendall(self, data: bytes) -> None:
        if self._fail_on_send:
            raise ConnectionResetError("connection reset by peer")
        self.sent += data

    def close(self) -> None:
        self.closed = True


def parse_raw_request(raw: bytes) -> Tuple[str, List[Tuple[str, str]], bytes]:
    """Split raw HTTP/1.1 request bytes into request line, headers and body."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    headers = []
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers.append((name.strip(), value.strip()))
    return lines[0], headers, body


def decode_chunked(body: bytes) -> Tuple[bytes, List[int]]:
    """Decode an HTTP chunked body into its payload and chunk sizes."""
    payload = bytearray()
    sizes = []
    while True:
        size_line, _, body = body.partition(b"\r\n")
        size = int(size_line, 16)
        sizes.append(size)
        if size == 0:
            break
        payload += body[:size]
        body = body[size + 2:]
    return bytes(payload), sizes


@pytest.fixture
def settings():
    """Default settings, isolated from the environment cache."""
    return BuilderSettings()


@pytest.fixture
def fake_socket():
    return FakeSocket()


@pytest.fixture
def socket_connection_factory(fake_socket):
    """Connection factory returning real http.client connections over a fake socket."""
    created = []

    def factory(scheme, host, port, timeout):
        connection = http.client.HTTPConnection(host, port)
        connection.sock = fake_socket
        created.append((scheme, host, port, timeout))
        return connection

    factory.created = created
    return factory


@pytest.fixture
def emitter(settings, socket_connection_factory):
    return RequestEmitter(settings=settings, connection_factory=socket_connection_factory)
