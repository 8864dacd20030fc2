"""
Type definitions for fetch_request_builder.
"""
import threading
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Callable, Optional, Union


# Declared length of a body whose size is not known up front
UNKNOWN_LENGTH = -1

# Progress callback: (bytes_so_far, total_length). total_length may be UNKNOWN_LENGTH.
ProgressCallback = Callable[[int, int], None]


class HttpMethod(str, Enum):
    """HTTP verbs understood by the builder."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"

    @property
    def method_name(self) -> str:
        """Canonical verb string sent on the request line."""
        return self.value

    @property
    def params_in_body(self) -> bool:
        """Whether parameters are form-encoded into the body instead of the query string."""
        return self is HttpMethod.POST

    @property
    def supports_entity(self) -> bool:
        """Whether a request object of this verb can carry an entity."""
        return self in _ENTITY_METHODS

    @classmethod
    def parse(cls, value: Union["HttpMethod", str]) -> "HttpMethod":
        """Resolve an HttpMethod from an enum member or a case-insensitive verb."""
        if isinstance(value, HttpMethod):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(
                f"Unsupported HTTP method: {value!r}. Must be one of: {[m.value for m in cls]}"
            ) from None


_ENTITY_METHODS = frozenset({HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH})


class CancellationToken:
    """
    Cooperative cancellation flag for body transfers.

    The transferer checks the token between buffer cycles; ``cancel()`` may be
    called from any thread.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


@dataclass
class BodySource:
    """Body stream attached to a request, owned by the RequestSpec until transferred."""

    stream: BinaryIO
    """Readable byte stream. Single use."""

    length: int = UNKNOWN_LENGTH
    """Declared length in bytes, or UNKNOWN_LENGTH"""

    progress_callback: Optional[ProgressCallback] = None
    """Notified with (bytes_so_far, length) while the body is written"""

    @property
    def length_known(self) -> bool:
        return self.length >= 0
