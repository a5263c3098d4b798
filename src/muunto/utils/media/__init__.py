"""Media utilities public API (re-exports)."""

from .cache import BoundedCache, memoize
from .parse import (
    parse_accept,
    parse_accept_charset,
    parse_charset_qualities,
    parse_content_type,
    strip_parameters,
)

__all__ = [
    "BoundedCache",
    "memoize",
    "strip_parameters",
    "parse_content_type",
    "parse_accept",
    "parse_charset_qualities",
    "parse_accept_charset",
]
