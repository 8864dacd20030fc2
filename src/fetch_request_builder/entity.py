"""
Streaming request entity for httpx with progress notification.
"""
from typing import Iterator

import httpx

from .finalize import StreamBody
from .settings import DEFAULT_BUFFER_SIZE
from .transfer import StreamTransferer, safe_close


class ProgressByteStream(httpx.SyncByteStream):
    """Byte stream that feeds a body source to httpx through a StreamTransferer."""

    def __init__(self, body: StreamBody, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self._source = body.source.stream
        self.transferer = StreamTransferer(
            total_length=body.length,
            progress_callback=body.source.progress_callback,
            update_interval=body.update_interval,
            buffer_size=buffer_size,
            cancel_token=body.cancel_token,
        )

    def __iter__(self) -> Iterator[bytes]:
        yield from self.transferer.iter_chunks(self._source)

    def close(self) -> None:
        safe_close(self._source, "body source")
