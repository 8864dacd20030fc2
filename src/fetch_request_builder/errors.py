"""
Errors raised while building and emitting requests.
"""
from typing import Optional


class RequestBuilderError(Exception):
    """Base error for fetch_request_builder."""

    code = "REQUEST_BUILDER_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.name = type(self).__name__


class InvalidAddressError(RequestBuilderError):
    """Error thrown when a target address is not a valid absolute URL."""

    code = "INVALID_ADDRESS"

    def __init__(self, address: object, reason: str) -> None:
        super().__init__(f"Invalid address {address!r}: {reason}")
        self.address = address
        self.reason = reason


class AuthEncodingError(RequestBuilderError):
    """Error thrown when the Basic auth header cannot be computed."""

    code = "AUTH_ENCODING"


class EncodingError(RequestBuilderError):
    """Error thrown when parameters or a body string cannot be encoded."""

    code = "ENCODING"


class MissingBodySourceError(RequestBuilderError):
    """Error thrown when a file body is requested but the file does not exist."""

    code = "MISSING_BODY_SOURCE"

    def __init__(self, path: object) -> None:
        super().__init__(f"Body source file does not exist: {path}")
        self.path = path


class BodyNotSupportedError(RequestBuilderError):
    """Error thrown when a body is set on a request type that cannot carry one."""

    code = "BODY_NOT_SUPPORTED"

    def __init__(self, method: str) -> None:
        super().__init__(
            f"{method} requests cannot carry a body entity; refusing to drop the body source"
        )
        self.method = method


class TransferError(RequestBuilderError):
    """Error thrown when copying a body stream fails."""

    code = "TRANSFER"

    def __init__(
        self,
        message: str,
        bytes_transferred: int = 0,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.bytes_transferred = bytes_transferred
        self.cause = cause


class TransferCancelledError(TransferError):
    """Error thrown when a transfer is cancelled through its token."""

    code = "TRANSFER_CANCELLED"

    def __init__(self, bytes_transferred: int = 0) -> None:
        super().__init__(
            f"Transfer cancelled after {bytes_transferred} bytes",
            bytes_transferred=bytes_transferred,
        )
