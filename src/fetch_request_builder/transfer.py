"""
Bounded-buffer body transfer with progress notification.
"""
import logging
from contextlib import ExitStack
from typing import Any, Iterator, Optional

from .errors import TransferCancelledError, TransferError
from .settings import DEFAULT_BUFFER_SIZE, DEFAULT_PROGRESS_UPDATE_INTERVAL
from .types import UNKNOWN_LENGTH, CancellationToken, ProgressCallback

logger = logging.getLogger("fetch_request_builder.transfer")


def safe_close(resource: Any, name: str) -> None:
    """Close a resource, logging instead of raising so the original error is kept."""
    close = getattr(resource, "close", None)
    if close is None:
        return
    try:
        close()
    except Exception as e:
        logger.warning(f"safe_close: failed to close {name}: {e!r}")


def safe_abort(resource: Any, name: str) -> None:
    """Abort a partially written resource, falling back to close() when it has no abort()."""
    abort = getattr(resource, "abort", None)
    if abort is None:
        safe_close(resource, name)
        return
    try:
        abort()
    except Exception as e:
        logger.warning(f"safe_abort: failed to abort {name}: {e!r}")


class StreamTransferer:
    """
    Copies a source byte stream into a sink while reporting progress.

    Each cycle reads at most ``min(buffer_size, update_interval)`` bytes so
    that progress can be reported at the configured granularity. After a
    cycle has been written, the callback fires when at least
    ``update_interval`` bytes were moved since the previous notification; a
    last notification carries the true total if bytes remain unreported.

    Both ends are closed on every exit path. Read and write failures surface
    as TransferError; no retry is attempted.

    Example:
        transferer = StreamTransferer(total_length=len(data), progress_callback=on_progress)
        written = transferer.transfer(io.BytesIO(data), sink)
    """

    def __init__(
        self,
        total_length: int = UNKNOWN_LENGTH,
        progress_callback: Optional[ProgressCallback] = None,
        update_interval: int = DEFAULT_PROGRESS_UPDATE_INTERVAL,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        if update_interval <= 0:
            raise ValueError("update_interval must be positive")
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        self.total_length = total_length
        self.progress_callback = progress_callback
        self.update_interval = update_interval
        self.buffer_size = buffer_size
        self.cancel_token = cancel_token
        self.bytes_transferred = 0

    @property
    def read_size(self) -> int:
        return min(self.buffer_size, self.update_interval)

    def _check_cancelled(self) -> None:
        if self.cancel_token is not None and self.cancel_token.cancelled:
            logger.debug(f"StreamTransferer: cancelled after {self.bytes_transferred} bytes")
            raise TransferCancelledError(self.bytes_transferred)

    def _notify(self, last_update: int) -> int:
        if self.progress_callback is None:
            return last_update
        if self.bytes_transferred - last_update >= self.update_interval:
            self.progress_callback(self.bytes_transferred, self.total_length)
            return self.bytes_transferred
        return last_update

    def iter_chunks(self, source: Any) -> Iterator[bytes]:
        """
        Yield the source in bounded chunks, reporting progress once each chunk is consumed.

        The source is closed when the generator finishes, fails or is closed.
        """
        self.bytes_transferred = 0
        last_update = 0
        read_size = self.read_size
        with ExitStack() as stack:
            stack.callback(safe_close, source, "body source")
            while True:
                self._check_cancelled()
                try:
                    chunk = source.read(read_size)
                except Exception as e:
                    raise TransferError(
                        f"Failed to read body source after {self.bytes_transferred} bytes: {e}",
                        bytes_transferred=self.bytes_transferred,
                        cause=e,
                    ) from e
                if not chunk:
                    break

                yield bytes(chunk)

                self.bytes_transferred += len(chunk)
                last_update = self._notify(last_update)

            if self.progress_callback is not None and self.bytes_transferred > last_update:
                self.progress_callback(self.bytes_transferred, self.total_length)

        logger.debug(
            f"StreamTransferer.iter_chunks: finished, bytes={self.bytes_transferred}, "
            f"declared={self.total_length}"
        )

    def transfer(self, source: Any, sink: Any) -> int:
        """
        Copy every byte of ``source`` into ``sink.write()``.

        On success the sink is closed. When the copy fails or is cancelled
        the sink is aborted instead (``sink.abort()`` where available) so a
        partial body is never finished as if it were complete.

        Returns:
            Total number of bytes written.

        Raises:
            TransferError: on a read or write failure, after both ends are released.
            TransferCancelledError: when the cancel token fires between cycles.
        """
        with ExitStack() as stack:
            chunks = self.iter_chunks(source)
            stack.callback(chunks.close)
            try:
                for chunk in chunks:
                    try:
                        sink.write(chunk)
                    except Exception as e:
                        raise TransferError(
                            f"Failed to write body after {self.bytes_transferred} bytes: {e}",
                            bytes_transferred=self.bytes_transferred,
                            cause=e,
                        ) from e
            except BaseException:
                safe_abort(sink, "body sink")
                raise
            safe_close(sink, "body sink")
        return self.bytes_transferred
