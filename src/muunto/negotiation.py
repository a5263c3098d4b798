"""Content negotiation against a compiled format registry.

The three negotiation functions are pure: given the same registry and
header string they always return the same result. That makes them safe
to memoize, which :class:`NegotiationCache` does with one bounded cache
per function, keyed by the raw header string.
"""

import functools
import logging
from typing import Any, Dict, NamedTuple, Optional

from .formats.registry import CompiledRegistry
from .utils.media import (
    memoize,
    parse_accept,
    parse_accept_charset,
    parse_charset_qualities,
    parse_content_type,
)

logger = logging.getLogger(__name__)


class ContentTypeResult(NamedTuple):
    """Outcome of Content-Type negotiation."""

    format: Optional[str]
    charset: str


def negotiate_content_type(
    registry: CompiledRegistry, value: Optional[str]
) -> ContentTypeResult:
    """Negotiate the request format and charset from a Content-Type value.

    Only exact content-type literals are matched; pattern fallback needs
    to know whether the request has a body and is done by the pipeline.

    :param registry: Compiled format registry
    :type registry: CompiledRegistry
    :param value: Raw Content-Type header value
    :type value: Optional[str]
    :return: Matched format (or None) and the charset, defaulting to the
             registry charset
    :rtype: ContentTypeResult
    """
    media_type, charset = parse_content_type(value)
    fmt = registry.consumes.get(media_type) if media_type else None
    return ContentTypeResult(fmt, charset or registry.charset)


def negotiate_accept(registry: CompiledRegistry, value: Optional[str]) -> Optional[str]:
    """Negotiate the response content type from an Accept value.

    The first Accept token the registry consumes wins; quality values are
    not considered. Without a match, the canonical content type of the
    default format is returned.

    :param registry: Compiled format registry
    :type registry: CompiledRegistry
    :param value: Raw Accept header value
    :type value: Optional[str]
    :return: Negotiated content type
    :rtype: Optional[str]
    """
    for token in parse_accept(value):
        if token in registry.consumes:
            return token
    return registry.produces.get(registry.default_format)


def _wildcard_charset(
    registry: CompiledRegistry, value: Optional[str]
) -> Optional[str]:
    listed = {name for name, _ in parse_charset_qualities(value)}
    for candidate in [registry.charset, *sorted(registry.charsets)]:
        if candidate not in listed:
            return candidate
    return None


def negotiate_accept_charset(registry: CompiledRegistry, value: Optional[str]) -> str:
    """Negotiate the response charset from an Accept-Charset value.

    Charsets are tried by descending quality. ``*`` matches the default
    charset unless it is listed explicitly, otherwise any other acceptable
    charset not listed.

    :param registry: Compiled format registry
    :type registry: CompiledRegistry
    :param value: Raw Accept-Charset header value
    :type value: Optional[str]
    :return: Negotiated charset, defaulting to the registry charset
    :rtype: str
    """
    for token in parse_accept_charset(value):
        if token == "*":
            wildcard = _wildcard_charset(registry, value)
            if wildcard:
                return wildcard
        elif token in registry.charsets:
            return token
    return registry.charset


class Negotiator:
    """Negotiation entry points bound to one compiled registry."""

    def __init__(self, registry: CompiledRegistry):
        self.registry = registry

    def negotiate_content_type(self, value: Optional[str]) -> ContentTypeResult:
        return negotiate_content_type(self.registry, value)

    def negotiate_accept(self, value: Optional[str]) -> Optional[str]:
        return negotiate_accept(self.registry, value)

    def negotiate_accept_charset(self, value: Optional[str]) -> str:
        return negotiate_accept_charset(self.registry, value)


class NegotiationCache(Negotiator):
    """Negotiator memoizing each function in a bounded cache.

    Results are identical to the uncached functions; only the parsing
    cost of repeated header strings is saved. Safe for concurrent use.

    :param registry: Compiled format registry, fixed for the cache lifetime
    :type registry: CompiledRegistry
    :param max_entries: Capacity of each of the three caches
    :type max_entries: int
    """

    def __init__(self, registry: CompiledRegistry, max_entries: int = 1000):
        super().__init__(registry)
        self.max_entries = max_entries
        self.negotiate_content_type = memoize(
            functools.partial(negotiate_content_type, registry), max_entries
        )
        self.negotiate_accept = memoize(
            functools.partial(negotiate_accept, registry), max_entries
        )
        self.negotiate_accept_charset = memoize(
            functools.partial(negotiate_accept_charset, registry), max_entries
        )

    def clear(self) -> None:
        for fn in self._functions().values():
            fn.cache.clear()

    def stats(self) -> Dict[str, Dict[str, int]]:
        """Get cache statistics per negotiation function.

        :return: Mapping of function name to its cache statistics
        :rtype: Dict[str, Dict[str, int]]
        """
        return {name: fn.cache.stats() for name, fn in self._functions().items()}

    def _functions(self) -> Dict[str, Any]:
        return {
            "content_type": self.negotiate_content_type,
            "accept": self.negotiate_accept,
            "accept_charset": self.negotiate_accept_charset,
        }


def create_negotiation_cache(
    registry: CompiledRegistry, settings: Optional[Any] = None
) -> NegotiationCache:
    """Create a negotiation cache sized from settings.

    :param registry: Compiled format registry
    :type registry: CompiledRegistry
    :param settings: Settings instance, defaults to the global settings
    :type settings: Optional[Settings]
    :return: Negotiation cache bound to ``registry``
    :rtype: NegotiationCache
    """
    if settings is None:
        from .config.settings import settings

    logger.debug(
        "Creating negotiation cache with %d entries per function",
        settings.negotiation_cache_size,
    )
    return NegotiationCache(registry, settings.negotiation_cache_size)


__all__ = [
    "ContentTypeResult",
    "negotiate_content_type",
    "negotiate_accept",
    "negotiate_accept_charset",
    "Negotiator",
    "NegotiationCache",
    "create_negotiation_cache",
]
