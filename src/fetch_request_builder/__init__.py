"""
Chained HTTP request builder.

Accumulates a target URL, method, parameters, headers, Basic auth and an
optional streaming body, then emits either a two-phase http.client connection
or an httpx.Request ready for ``httpx.Client.send``.
"""
from .types import (
    UNKNOWN_LENGTH,
    BodySource,
    CancellationToken,
    HttpMethod,
    ProgressCallback,
)
from .errors import (
    AuthEncodingError,
    BodyNotSupportedError,
    EncodingError,
    InvalidAddressError,
    MissingBodySourceError,
    RequestBuilderError,
    TransferCancelledError,
    TransferError,
)
from .settings import BuilderSettings, get_settings
from .auth import encode_basic_auth, mask_credentials, mask_value
from .request_spec import RequestSpec
from .transfer import StreamTransferer
from .finalize import FinalizedRequest, FormBody, StreamBody, finalize_request
from .connection import ConnectionBodySink, ConnectionRequest
from .entity import ProgressByteStream
from .emitter import RequestEmitter, build_connection, build_request

__all__ = [
    # Types
    "UNKNOWN_LENGTH",
    "BodySource",
    "CancellationToken",
    "HttpMethod",
    "ProgressCallback",
    # Errors
    "RequestBuilderError",
    "InvalidAddressError",
    "AuthEncodingError",
    "EncodingError",
    "MissingBodySourceError",
    "BodyNotSupportedError",
    "TransferError",
    "TransferCancelledError",
    # Settings
    "BuilderSettings",
    "get_settings",
    # Auth
    "encode_basic_auth",
    "mask_credentials",
    "mask_value",
    # Builder
    "RequestSpec",
    # Transfer
    "StreamTransferer",
    # Emission
    "FinalizedRequest",
    "FormBody",
    "StreamBody",
    "finalize_request",
    "ConnectionBodySink",
    "ConnectionRequest",
    "ProgressByteStream",
    "RequestEmitter",
    "build_connection",
    "build_request",
]

__version__ = "0.1.0"
