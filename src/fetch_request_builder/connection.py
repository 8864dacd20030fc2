"""
Connection-style emission: a low-level http.client connection in two phases.

Phase one fixes the request line and headers on a connection that has not
opened its socket yet. Phase two (``on_connected``) sends the header block
and writes the body once the transport is established.
"""
import http.client
import io
import logging
from typing import Any, List, Optional, Tuple

from .errors import TransferError
from .finalize import FinalizedRequest, FormBody, StreamBody
from .settings import BuilderSettings
from .transfer import StreamTransferer

logger = logging.getLogger("fetch_request_builder.connection")


class ConnectionBodySink:
    """
    Writable sink that sends body bytes over an http.client connection.

    Output is framed in ``chunk_size`` blocks; with ``chunked`` each block is
    sent as an HTTP/1.1 chunk and ``close()`` writes the terminating chunk.
    ``abort()`` ends a failed body without completing its framing.
    Closing the sink finishes the body; it does not close the connection.
    """

    def __init__(self, connection: Any, chunked: bool = False, chunk_size: int = 8192) -> None:
        self._connection = connection
        self._chunked = chunked
        self._chunk_size = chunk_size
        self._buffer = bytearray()
        self._closed = False
        self.bytes_sent = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def _send(self, data: bytes) -> None:
        if self._chunked:
            self._connection.send(f"{len(data):X}\r\n".encode("ascii") + data + b"\r\n")
        else:
            self._connection.send(data)
        self.bytes_sent += len(data)

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError("I/O operation on closed body sink")
        self._buffer += data
        while len(self._buffer) >= self._chunk_size:
            block = bytes(self._buffer[: self._chunk_size])
            del self._buffer[: self._chunk_size]
            self._send(block)
        return len(data)

    def flush(self) -> None:
        if self._buffer:
            block = bytes(self._buffer)
            self._buffer.clear()
            self._send(block)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.flush()
        if self._chunked:
            self._connection.send(b"0\r\n\r\n")

    def abort(self) -> None:
        """Stop the body without flushing the buffer or writing the terminating chunk."""
        if self._closed:
            return
        self._closed = True
        dropped = len(self._buffer)
        self._buffer.clear()
        logger.debug(f"ConnectionBodySink.abort: dropped {dropped} buffered bytes after {self.bytes_sent} sent")


class ConnectionRequest:
    """
    Two-phase connection representation of a finalized request.

    ``connection`` already has its request line and headers set but has not
    sent them. Call :meth:`on_connected` once the transport is ready (it will
    open the socket itself if needed), then read the response from
    ``connection.getresponse()``.
    """

    def __init__(
        self,
        connection: Any,
        finalized: FinalizedRequest,
        settings: BuilderSettings,
    ) -> None:
        self.connection = connection
        self.finalized = finalized
        self._settings = settings
        self._completed = False

    @property
    def method(self) -> str:
        return self.finalized.method.method_name

    @property
    def url(self) -> str:
        return self.finalized.url

    @property
    def headers(self) -> List[Tuple[str, str]]:
        return list(self.finalized.headers)

    @property
    def do_output(self) -> bool:
        """Whether a body will be written in the second phase."""
        return self.finalized.body is not None

    @property
    def chunked(self) -> bool:
        body = self.finalized.body
        return isinstance(body, StreamBody) and body.chunked

    @property
    def chunk_size(self) -> int:
        return self._settings.chunk_size

    def _transferer_for(self, body: Any) -> StreamTransferer:
        if isinstance(body, StreamBody):
            return StreamTransferer(
                total_length=body.length,
                progress_callback=body.source.progress_callback,
                update_interval=body.update_interval,
                buffer_size=self._settings.buffer_size,
                cancel_token=body.cancel_token,
            )
        return StreamTransferer(total_length=body.length, buffer_size=self._settings.buffer_size)

    def on_connected(self) -> int:
        """
        Send the header block and write the body.

        Returns:
            Number of body bytes written.

        Raises:
            RuntimeError: if called more than once.
            TransferError: if the headers or body cannot be written. The
                connection is closed before the error propagates.
        """
        if self._completed:
            raise RuntimeError("on_connected() has already been called for this request")
        self._completed = True

        try:
            self.connection.endheaders()
        except OSError as e:
            self.connection.close()
            raise TransferError(f"Failed to send request headers to {self.url}: {e}", cause=e) from e

        body = self.finalized.body
        if body is None:
            logger.debug(f"ConnectionRequest.on_connected: {self.method} {self.url} has no body")
            return 0

        if isinstance(body, FormBody):
            source: Any = io.BytesIO(body.content)
        else:
            source = body.source.stream

        sink = ConnectionBodySink(self.connection, chunked=self.chunked, chunk_size=self.chunk_size)
        try:
            written = self._transferer_for(body).transfer(source, sink)
        except Exception:
            # the body was aborted mid-stream; the connection cannot be reused
            self.connection.close()
            raise

        logger.debug(
            f"ConnectionRequest.on_connected: {self.method} {self.url} wrote {written} body bytes "
            f"(chunked={self.chunked})"
        )
        return written


def request_target(split_url: Any) -> str:
    """Path and query for the request line of a split URL."""
    target = split_url.path or "/"
    if split_url.query:
        target = f"{target}?{split_url.query}"
    return target


def open_connection(
    scheme: str,
    host: str,
    port: Optional[int],
    timeout: Optional[float] = None,
) -> http.client.HTTPConnection:
    """Create an http.client connection object. The socket is opened lazily."""
    connection_cls = http.client.HTTPSConnection if scheme == "https" else http.client.HTTPConnection
    if timeout is None:
        return connection_cls(host, port)
    return connection_cls(host, port, timeout=timeout)
