"""Configuration settings for muunto.

This module defines the default negotiation configuration: the active
formats, the default and acceptable charsets, the negotiation cache
size and the logging level. Settings are loaded from environment
variables prefixed with ``MUUNTO_`` and from ``.env`` files.
"""

import json
from typing import Annotated, Any, List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    :param charset: Default charset for produced content types
    :type charset: str
    :param charsets: Additional charsets acceptable in Accept-Charset
    :type charsets: List[str]
    :param formats: Active format identifiers in priority order
    :type formats: List[str]
    :param negotiation_cache_size: Capacity of each negotiation cache
    :type negotiation_cache_size: int
    :param log_level: Logging level for the application
    :type log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    """

    model_config = SettingsConfigDict(
        env_prefix="MUUNTO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    charset: str = Field("utf-8", description="Default charset")
    charsets: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description=(
            "Extra acceptable charsets (the default is always acceptable); "
            "a JSON list or a comma-separated string"
        ),
    )
    formats: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["json"],
        description=(
            "Active formats, first one is the default; "
            "a JSON list or a comma-separated string"
        ),
    )
    negotiation_cache_size: int = Field(
        1000, description="Maximum entries per negotiation cache"
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Logging level"
    )

    @field_validator("charsets", "formats", mode="before")
    @classmethod
    def split_list(cls, v: Any) -> Any:
        """Accept a JSON list or a comma-separated string from the environment.

        :param v: Raw value, e.g. ``'["json", "edn"]'`` or ``"json, edn"``
        :return: List of trimmed, non-empty items, or ``v`` if not a string
        """
        if not isinstance(v, str):
            return v
        v = v.strip()
        if v.startswith("["):
            return json.loads(v)
        return [item.strip() for item in v.split(",") if item.strip()]

    @field_validator("charset")
    @classmethod
    def normalize_charset(cls, v: str) -> str:
        """Lower-case and trim the default charset.

        :param v: The configured charset
        :type v: str
        :return: Normalized charset
        :rtype: str
        """
        v = v.strip().lower()
        if not v:
            raise ValueError("charset must not be empty")
        return v

    @field_validator("charsets")
    @classmethod
    def normalize_charsets(cls, v: List[str]) -> List[str]:
        """Lower-case the acceptable charsets and drop blanks."""
        return [c.strip().lower() for c in v if c and c.strip()]

    @field_validator("negotiation_cache_size")
    @classmethod
    def validate_cache_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("negotiation_cache_size must be positive")
        return v

    @property
    def acceptable_charsets(self) -> List[str]:
        """Get the full acceptable charset list, default charset first.

        :return: Ordered, de-duplicated list of charsets
        :rtype: List[str]
        """
        return list(dict.fromkeys([self.charset, *self.charsets]))


settings = Settings()
"""Global settings instance for muunto.

This instance is created once and used as the source of defaults
for ``default_options`` and ``create_negotiation_cache``.
"""
