"""Builder settings loaded from environment variables using Pydantic Settings."""

import codecs
from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PROGRESS_UPDATE_INTERVAL = 128
DEFAULT_BUFFER_SIZE = 1024
DEFAULT_CHUNK_SIZE = 8192
DEFAULT_ENCODING = "utf-8"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class BuilderSettings(BaseSettings):
    """Settings shared by every RequestSpec and RequestEmitter.

    Each field can be overridden with a ``FETCH_REQUEST_BUILDER_<FIELD>``
    environment variable.
    """

    model_config = SettingsConfigDict(
        env_prefix="FETCH_REQUEST_BUILDER_",
        case_sensitive=False,
        env_file=None,
    )

    progress_update_interval: int = DEFAULT_PROGRESS_UPDATE_INTERVAL
    buffer_size: int = DEFAULT_BUFFER_SIZE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    auth_encoding: str = DEFAULT_ENCODING
    body_encoding: str = DEFAULT_ENCODING
    connect_timeout: Optional[float] = None
    trace: bool = False

    @field_validator("progress_update_interval", "buffer_size", "chunk_size")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("connect_timeout")
    @classmethod
    def _positive_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("must be positive when set")
        return value

    @field_validator("auth_encoding", "body_encoding")
    @classmethod
    def _known_codec(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as e:
            raise ValueError(f"unknown encoding: {value}") from e
        return value


@lru_cache()
def get_settings() -> BuilderSettings:
    """Get cached settings instance."""
    return BuilderSettings()
