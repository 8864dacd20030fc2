"""
RequestEmitter: turns a RequestSpec into an executable request.
"""
import http.client
import logging
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

import httpx

from .connection import ConnectionRequest, open_connection, request_target
from .entity import ProgressByteStream
from .errors import BodyNotSupportedError, InvalidAddressError
from .finalize import FinalizedRequest, FormBody, StreamBody, finalize_request
from .request_spec import RequestSpec
from .settings import BuilderSettings, get_settings
from .trace import print_request

logger = logging.getLogger("fetch_request_builder.emitter")

ConnectionFactory = Callable[[str, str, Optional[int], Optional[float]], Any]


class RequestEmitter:
    """
    Emits a RequestSpec as an http.client connection or an httpx.Request.

    Both representations are produced from the same FinalizedRequest so the
    query string, header and body rules match across backends.

    Example:
        emitter = RequestEmitter()

        pending = emitter.to_connection(spec)
        pending.on_connected()
        response = pending.connection.getresponse()

        with httpx.Client() as client:
            response = client.send(emitter.to_request(spec))
    """

    def __init__(
        self,
        settings: Optional[BuilderSettings] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._connection_factory = connection_factory or open_connection

    def finalize(self, spec: RequestSpec) -> FinalizedRequest:
        return finalize_request(spec, self.settings)

    def _trace(self, finalized: FinalizedRequest, target: str) -> None:
        if self.settings.trace:
            print_request(finalized, target)

    def to_connection(self, spec: RequestSpec) -> ConnectionRequest:
        """
        Build the connection representation (phase one).

        The returned connection has its method and headers set but has not
        sent anything; call ``on_connected()`` to send the headers and body.

        Raises:
            InvalidAddressError: if a connection cannot be created for the URL.
            AuthEncodingError: if the Basic auth header cannot be computed.
            EncodingError: if parameters cannot be encoded.
        """
        finalized = self.finalize(spec)
        split = urlsplit(finalized.url)

        try:
            connection = self._connection_factory(
                split.scheme.lower(),
                split.hostname,
                split.port,
                self.settings.connect_timeout,
            )
        except (http.client.InvalidURL, ValueError) as e:
            raise InvalidAddressError(finalized.url, str(e)) from e

        has_host = any(name.lower() == "host" for name, _ in finalized.headers)
        connection.putrequest(
            finalized.method.method_name,
            request_target(split),
            skip_host=has_host,
            skip_accept_encoding=True,
        )
        for name, value in finalized.headers:
            connection.putheader(name, value)

        logger.debug(
            f"RequestEmitter.to_connection: {finalized.method.value} {finalized.url}, "
            f"headers={len(finalized.headers)}, body={type(finalized.body).__name__ if finalized.body else None}"
        )
        self._trace(finalized, "connection")
        return ConnectionRequest(connection, finalized, self.settings)

    def to_request(self, spec: RequestSpec) -> httpx.Request:
        """
        Build a fully formed httpx.Request (single phase).

        Raises:
            BodyNotSupportedError: if a body stream is set on a method whose
                request cannot carry an entity.
            AuthEncodingError: if the Basic auth header cannot be computed.
            EncodingError: if parameters cannot be encoded.
        """
        finalized = self.finalize(spec)
        body = finalized.body

        content: Any = None
        if isinstance(body, StreamBody):
            if not finalized.method.supports_entity:
                logger.error(
                    f"RequestEmitter.to_request: {finalized.method.value} request cannot carry "
                    f"the body stream set for {finalized.url}"
                )
                raise BodyNotSupportedError(finalized.method.value)
            content = ProgressByteStream(body, buffer_size=self.settings.buffer_size)
        elif isinstance(body, FormBody):
            content = body.content

        try:
            request = httpx.Request(
                finalized.method.method_name,
                finalized.url,
                headers=finalized.headers,
                content=content,
            )
        except httpx.InvalidURL as e:
            raise InvalidAddressError(finalized.url, str(e)) from e

        logger.debug(
            f"RequestEmitter.to_request: {finalized.method.value} {finalized.url}, "
            f"headers={len(finalized.headers)}, body={type(body).__name__ if body else None}"
        )
        self._trace(finalized, "request")
        return request


def build_connection(spec: RequestSpec) -> ConnectionRequest:
    """Build the connection representation with default settings."""
    return RequestEmitter().to_connection(spec)


def build_request(spec: RequestSpec) -> httpx.Request:
    """Build an httpx.Request with default settings."""
    return RequestEmitter().to_request(spec)
