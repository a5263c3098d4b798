"""Header value parsers for content negotiation.

This module tokenizes the ``Content-Type``, ``Accept`` and
``Accept-Charset`` header values consumed by the negotiation
functions. Parsing is deliberately forgiving: malformed pieces are
skipped rather than rejected, since absence of a usable value always
resolves to a configured default further up.
"""

from typing import List, Optional, Tuple


def strip_parameters(value: Optional[str]) -> Optional[str]:
    """Return the part of a header token before the first ``;``.

    :param value: Header token, possibly carrying parameters
    :type value: Optional[str]
    :return: Token without parameters or None if value is None
    :rtype: Optional[str]
    """
    if value is None:
        return None
    i = value.find(";")
    return value if i < 0 else value[:i]


def parse_content_type(value: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Split a Content-Type value into media type and charset.

    Parameters other than ``charset`` are dropped. The media type keeps
    its case; the charset is returned as given, minus surrounding quotes.

    :param value: Raw Content-Type header value
    :type value: Optional[str]
    :return: Tuple of (media_type, charset), either may be None
    :rtype: Tuple[Optional[str], Optional[str]]
    """
    if not value:
        return None, None
    media_type, _, params = value.partition(";")
    charset = None
    for param in params.split(";"):
        name, sep, raw = param.partition("=")
        if sep and name.strip().lower() == "charset":
            charset = raw.strip().strip('"') or None
            break
    return media_type.strip() or None, charset


def parse_accept(value: Optional[str]) -> List[str]:
    """Split an Accept value into media types in written order.

    Quality values are not honored: the first acceptable token wins
    during negotiation, so the declaration order is preserved.

    :param value: Raw Accept header value
    :type value: Optional[str]
    :return: Media type tokens without parameters
    :rtype: List[str]
    """
    if not value:
        return []
    tokens = []
    for part in value.split(","):
        token = strip_parameters(part).strip()
        if token:
            tokens.append(token)
    return tokens


def _quality(params: str) -> float:
    for param in params.split(";"):
        name, sep, raw = param.partition("=")
        if sep and name.strip().lower() == "q":
            try:
                q = float(raw.strip())
            except ValueError:
                return 1.0
            return min(max(q, 0.0), 1.0)
    return 1.0


def parse_charset_qualities(value: Optional[str]) -> List[Tuple[str, float]]:
    """Parse an Accept-Charset value into (charset, quality) pairs.

    Pairs are returned in declaration order, including those with a
    quality of zero. Charset names are lower-cased. A missing or
    unparseable ``q`` counts as 1.0.

    :param value: Raw Accept-Charset header value
    :type value: Optional[str]
    :return: List of (charset, quality) pairs
    :rtype: List[Tuple[str, float]]
    """
    if not value:
        return []
    pairs = []
    for part in value.split(","):
        name, _, params = part.partition(";")
        name = name.strip().lower()
        if name:
            pairs.append((name, _quality(params)))
    return pairs


def parse_accept_charset(value: Optional[str]) -> List[str]:
    """Rank the charsets of an Accept-Charset value by preference.

    Higher quality comes first and ties keep their declaration order.
    Charsets with a quality of zero are not acceptable and are dropped.
    The ``*`` wildcard is kept as a token for the negotiator to resolve.

    :param value: Raw Accept-Charset header value
    :type value: Optional[str]
    :return: Acceptable charsets, most preferred first
    :rtype: List[str]
    """
    ranked = [
        (-q, index, name)
        for index, (name, q) in enumerate(parse_charset_qualities(value))
        if q > 0
    ]
    ranked.sort()
    return [name for _, _, name in ranked]


__all__ = [
    "strip_parameters",
    "parse_content_type",
    "parse_accept",
    "parse_charset_qualities",
    "parse_accept_charset",
]
