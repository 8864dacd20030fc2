"""
Finalization of a RequestSpec into a backend-neutral request description.

Both emission paths start from the same FinalizedRequest so the URL, header
and body rules are decided in one place.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union
from urllib.parse import quote_plus, urlsplit, urlunsplit

from .auth import encode_basic_auth
from .errors import EncodingError
from .request_spec import RequestSpec
from .settings import FORM_CONTENT_TYPE, BuilderSettings, get_settings
from .types import UNKNOWN_LENGTH, BodySource, CancellationToken, HttpMethod

logger = logging.getLogger("fetch_request_builder.finalize")

CONTENT_TYPE_HEADER = "Content-Type"
CONTENT_LENGTH_HEADER = "Content-Length"
TRANSFER_ENCODING_HEADER = "Transfer-Encoding"

_FRAMING_HEADERS = frozenset({"content-length", "transfer-encoding"})


@dataclass
class FormBody:
    """URL-encoded parameters sent as the request body."""

    content: bytes

    @property
    def length(self) -> int:
        return len(self.content)


@dataclass
class StreamBody:
    """Streaming body with progress settings captured at finalization."""

    source: BodySource
    update_interval: int
    cancel_token: Optional[CancellationToken] = None

    @property
    def length(self) -> int:
        return self.source.length

    @property
    def chunked(self) -> bool:
        return not self.source.length_known


Body = Union[FormBody, StreamBody]


@dataclass
class FinalizedRequest:
    """Everything an emitter needs to build a concrete request."""

    method: HttpMethod
    url: str
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: Optional[Body] = None
    params_overridden: bool = False


def encode_query(params: Dict[str, str], encoding: str = "utf-8") -> str:
    """
    Encode parameters as ``key=value`` pairs joined by ``&``.

    Values are form-encoded with ``quote_plus`` (a space becomes ``+``). Keys
    are written as given.
    """
    try:
        return "&".join(
            f"{key}={quote_plus(value, encoding=encoding)}" for key, value in params.items()
        )
    except (UnicodeEncodeError, LookupError) as e:
        raise EncodingError(f"Parameters cannot be encoded with {encoding}: {e}") from e


def build_url(url: str, params: Dict[str, str], method: HttpMethod, encoding: str = "utf-8") -> str:
    """
    Append parameters as a query string unless the method sends them in the body.

    The query goes before any ``#fragment``; an existing query is extended with ``&``.
    """
    if not params or method.params_in_body:
        return url
    split = urlsplit(url)
    query = encode_query(params, encoding)
    if split.query:
        query = f"{split.query}&{query}"
    return urlunsplit(split._replace(query=query))


def _has_header(headers: List[Tuple[str, str]], name: str) -> bool:
    name = name.lower()
    return any(key.lower() == name for key, _ in headers)


def _drop_headers(headers: List[Tuple[str, str]], names: frozenset, reason: str) -> List[Tuple[str, str]]:
    kept = []
    for key, value in headers:
        if key.lower() in names:
            logger.debug(f"finalize: dropping caller header {key!r} ({reason})")
            continue
        kept.append((key, value))
    return kept


def build_body(spec: RequestSpec, settings: BuilderSettings) -> Tuple[Optional[Body], bool]:
    """
    Decide the request body.

    Returns:
        ``(body, params_overridden)``. A body source takes precedence over
        form-encoded parameters; when both are configured the parameters are
        dropped and a warning is logged.
    """
    form_body = None
    if spec.params and spec.method.params_in_body:
        query = encode_query(spec.params, settings.body_encoding)
        try:
            form_body = FormBody(query.encode(settings.body_encoding))
        except UnicodeEncodeError as e:
            raise EncodingError(
                f"Parameter body cannot be encoded with {settings.body_encoding}: {e}"
            ) from e

    if spec.body is None:
        return form_body, False

    overridden = form_body is not None
    if overridden:
        logger.warning(
            f"Both {spec.method.value} params and a body stream were declared for {spec.url}. "
            f"The params ({', '.join(spec.params)}) will be overwritten by the stream."
        )
    stream_body = StreamBody(
        source=spec.body,
        update_interval=spec.progress_update_interval,
        cancel_token=spec.cancel_token,
    )
    return stream_body, overridden


def build_headers(
    spec: RequestSpec,
    body: Optional[Body],
    settings: BuilderSettings,
) -> List[Tuple[str, str]]:
    """
    Build the ordered header list.

    Caller headers come first, verbatim. Body framing headers follow, then
    the Basic auth header last so it replaces any caller ``Authorization``.
    """
    headers = list(spec.headers.items())

    if isinstance(body, FormBody):
        headers = _drop_headers(headers, _FRAMING_HEADERS, "computed from form body")
        if not _has_header(headers, CONTENT_TYPE_HEADER):
            headers.append((CONTENT_TYPE_HEADER, FORM_CONTENT_TYPE))
        headers.append((CONTENT_LENGTH_HEADER, str(body.length)))
    elif isinstance(body, StreamBody):
        headers = _drop_headers(headers, _FRAMING_HEADERS, "computed from body stream")
        if body.chunked:
            headers.append((TRANSFER_ENCODING_HEADER, "chunked"))
        else:
            headers.append((CONTENT_LENGTH_HEADER, str(body.length)))

    if spec.basic_auth is not None:
        username, password = spec.basic_auth
        name, value = encode_basic_auth(username, password, settings.auth_encoding)
        headers = _drop_headers(headers, frozenset({name.lower()}), "overridden by basic auth")
        headers.append((name, value))

    return headers


def finalize_request(spec: RequestSpec, settings: Optional[BuilderSettings] = None) -> FinalizedRequest:
    """Compute the URL, headers and body of ``spec`` once for any backend."""
    settings = settings or get_settings()

    url = build_url(spec.url, spec.params, spec.method, settings.body_encoding)
    body, overridden = build_body(spec, settings)
    headers = build_headers(spec, body, settings)

    logger.debug(
        f"finalize_request: method={spec.method.value}, url={url}, "
        f"headers={[key for key, _ in headers]}, body={type(body).__name__ if body else None}, "
        f"declared_length={body.length if body else UNKNOWN_LENGTH}"
    )
    return FinalizedRequest(
        method=spec.method,
        url=url,
        headers=headers,
        body=body,
        params_overridden=overridden,
    )
