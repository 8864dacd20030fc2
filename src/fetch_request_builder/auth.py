"""
Basic auth header encoding for fetch_request_builder.
"""
import base64
import logging
from typing import Optional, Tuple

from .errors import AuthEncodingError

logger = logging.getLogger("fetch_request_builder.auth")

AUTHORIZATION_HEADER = "Authorization"


def mask_value(val: Optional[str], visible_chars: int = 10) -> str:
    """Mask sensitive value for logging, showing the first characters only."""
    if not val:
        return "<empty>"
    if len(val) <= visible_chars:
        return "*" * len(val)
    return val[:visible_chars] + "***"


def mask_credentials(value: Optional[str]) -> str:
    """Mask a credential header value, keeping only the auth scheme and token length."""
    if not value:
        return "<empty>"
    scheme, _, token = value.partition(" ")
    if not token:
        return f"***({len(value)} chars)"
    return f"{scheme} ***({len(token)} chars)"


def _base64_encode(text: str, encoding: str) -> str:
    return base64.b64encode(text.encode(encoding)).decode("ascii")


def encode_basic_auth(username: str, password: str, encoding: str = "utf-8") -> Tuple[str, str]:
    """
    Encode credentials into a Basic auth header.

    Args:
        username: The user part. May not contain a colon (RFC 7617).
        password: The password part.
        encoding: Charset used to turn ``username:password`` into bytes.

    Returns:
        A ``(header_name, header_value)`` pair.

    Raises:
        AuthEncodingError: if the credentials cannot be encoded.
    """
    if username is None or password is None:
        raise AuthEncodingError("Basic auth requires both username and password")
    if ":" in username:
        raise AuthEncodingError("Basic auth username may not contain ':'")

    try:
        token = _base64_encode(f"{username}:{password}", encoding)
    except (UnicodeEncodeError, LookupError) as e:
        raise AuthEncodingError(
            f"Basic auth credentials cannot be encoded with {encoding}: {e}"
        ) from e

    value = f"Basic {token}"
    logger.debug(
        f"encode_basic_auth: username={username!r}, encoding={encoding} -> "
        f"{AUTHORIZATION_HEADER}={mask_credentials(value)}"
    )
    return AUTHORIZATION_HEADER, value
