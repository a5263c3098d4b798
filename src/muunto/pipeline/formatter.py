"""Request decoding and response encoding with negotiated formats.

:func:`format_request` negotiates the request format from Content-Type
(exact literal first, then patterns when a body is present) and the
response format from Accept, then decodes the body. :func:`format_response`
picks the response format by precedence (explicit override, Accept,
default) and encodes the body.

Both directions honour the ``handled`` marker of the message context,
set after a successful decode/encode or explicitly by the caller through
:func:`disable_request_decoding` / :func:`disable_response_encoding`.
"""

import logging
from typing import Optional, Tuple

from ..exceptions import DecodeError
from ..formats.registry import CompiledRegistry, encode_collections_with_override
from ..negotiation import Negotiator
from ..utils.media import strip_parameters
from .exchange import Exchange

logger = logging.getLogger(__name__)

CONTENT_TYPE = "Content-Type"
ACCEPT = "Accept"
ACCEPT_CHARSET = "Accept-Charset"


def _resolve_content_type(
    registry: CompiledRegistry, request: Exchange, negotiator: Negotiator
) -> Tuple[Optional[str], str]:
    header = request.get_header(CONTENT_TYPE)
    if not header:
        return None, registry.charset
    fmt, charset = negotiator.negotiate_content_type(header)
    if fmt is None and request.has_body():
        media_type = strip_parameters(header).strip()
        for candidate, pattern in registry.matchers:
            if pattern.search(media_type):
                fmt = candidate
                break
    return fmt, charset


def extract_content_type_format(
    registry: CompiledRegistry,
    request: Exchange,
    negotiator: Optional[Negotiator] = None,
) -> Optional[str]:
    """Resolve the request body format from its Content-Type header.

    An exact literal match wins. Otherwise, and only when the request has
    a body, the registry patterns are tried in declaration order against
    the media type and the first match wins.

    :param registry: Compiled format registry
    :type registry: CompiledRegistry
    :param request: Request to inspect
    :type request: Exchange
    :param negotiator: Optional (cached) negotiator bound to ``registry``
    :type negotiator: Optional[Negotiator]
    :return: Format identifier or None
    :rtype: Optional[str]
    """
    negotiator = negotiator or Negotiator(registry)
    return _resolve_content_type(registry, request, negotiator)[0]


def extract_accept_format(
    registry: CompiledRegistry,
    request: Exchange,
    negotiator: Optional[Negotiator] = None,
) -> Optional[str]:
    """Resolve the response format from the request Accept header.

    :return: Format identifier, or None when there is no Accept header
    :rtype: Optional[str]
    """
    header = request.get_header(ACCEPT)
    if not header:
        return None
    content_type = (negotiator or Negotiator(registry)).negotiate_accept(header)
    if not content_type:
        return None
    return registry.consumes.get(strip_parameters(content_type))


def decode_request(registry: CompiledRegistry, request: Exchange) -> bool:
    """Whether decoding is allowed for ``request``."""
    return not request.context.handled and bool(registry.decode(request))


def encode_response(
    registry: CompiledRegistry,
    request: Optional[Exchange],
    response: Exchange,
    fmt: Optional[str] = None,
) -> bool:
    """Whether encoding is allowed for ``response``.

    Besides the registry encode predicate, a body implementing the encode
    protocol of ``fmt`` is always eligible.
    """
    if response.context.handled:
        return False
    if registry.encode(request, response):
        return True
    return registry.renders_itself(fmt, response.get_body())


def format_request(
    registry: CompiledRegistry,
    request: Exchange,
    negotiator: Optional[Negotiator] = None,
) -> Exchange:
    """Negotiate formats for a request and decode its body.

    The negotiated accept format and charsets are recorded on the request
    context. The body is decoded when a content-type format was resolved,
    that format has a decoder, the request has a body and decoding is
    allowed. On success the raw body is cleared, ``body_params`` holds
    the decoded value and ``context.adapter`` names the format.

    :param registry: Compiled format registry
    :type registry: CompiledRegistry
    :param request: Request to format
    :type request: Exchange
    :param negotiator: Optional (cached) negotiator bound to ``registry``
    :type negotiator: Optional[Negotiator]
    :return: The same request, updated
    :rtype: Exchange
    :raises DecodeError: If the decoder rejects the body; the request is
                         left unchanged
    """
    negotiator = negotiator or Negotiator(registry)
    content_type_format, charset = _resolve_content_type(registry, request, negotiator)
    accept_format = extract_accept_format(registry, request, negotiator)
    accept_charset_header = request.get_header(ACCEPT_CHARSET)
    accept_charset = (
        negotiator.negotiate_accept_charset(accept_charset_header)
        if accept_charset_header
        else registry.charset
    )

    decoder = None
    if content_type_format and request.has_body() and decode_request(registry, request):
        decoder = registry.decoder(content_type_format)

    decoded = False
    body_params = None
    if decoder is not None:
        try:
            body_params = decoder(request.get_body())
            decoded = True
        except Exception as e:
            logger.warning(
                "Failed to decode %s request body: %s", content_type_format, e
            )
            raise DecodeError(content_type_format, request) from e

    context = request.context
    context.content_type_format = content_type_format
    context.accept_format = accept_format
    context.charset = charset
    context.accept_charset = accept_charset
    if decoded:
        context.adapter = content_type_format
        context.handled = True
        request.set_body(None)
        request.body_params = body_params
    return request


def format_response(
    registry: CompiledRegistry,
    request: Optional[Exchange],
    response: Exchange,
) -> Exchange:
    """Encode a response body with the negotiated format.

    Format precedence: the format consuming ``response.context.content_type``,
    then the request's accept format, then the registry default. Without
    an encoder for that format the response passes through unchanged.
    Bodies are encoded when the registry encode predicate allows it or
    when they implement the format's encode protocol.
    The Content-Type header is only set when absent.

    :param registry: Compiled format registry
    :type registry: CompiledRegistry
    :param request: The request of the exchange, if available
    :type request: Optional[Exchange]
    :param response: Response to format
    :type response: Exchange
    :return: The same response, updated
    :rtype: Exchange
    """
    if response.context.handled:
        return response

    override = response.context.content_type
    fmt = (
        (registry.consumes.get(strip_parameters(override)) if override else None)
        or (request.context.accept_format if request is not None else None)
        or registry.default_format
    )
    if not encode_response(registry, request, response, fmt):
        return response
    encoder = registry.encoder(fmt)
    if encoder is None:
        logger.debug("No encoder for format %s, response left as-is", fmt)
        return response

    response.set_body(encoder(response.get_body()))
    response.context.adapter = fmt
    response.context.handled = True
    content_type = registry.produces.get(fmt)
    if content_type and not response.get_header(CONTENT_TYPE):
        response.set_header(CONTENT_TYPE, content_type)
    return response


# =============================================================================
# Request/response helpers
# =============================================================================


def disable_request_decoding(request: Exchange) -> Exchange:
    """Leave the request body untouched by :func:`format_request`."""
    request.context.adapter = None
    request.context.handled = True
    return request


def disable_response_encoding(response: Exchange) -> Exchange:
    """Leave the response body untouched by :func:`format_response`."""
    response.context.adapter = None
    response.context.handled = True
    return response


def set_response_content_type(response: Exchange, content_type: str) -> Exchange:
    """Force the response format to the one consuming ``content_type``."""
    response.context.content_type = content_type
    return response


def force_response_encoding(response: Exchange) -> Exchange:
    """Encode the response even if its body is not a collection."""
    response.context.encode = True
    return response


__all__ = [
    "extract_content_type_format",
    "extract_accept_format",
    "decode_request",
    "encode_response",
    "format_request",
    "format_response",
    "disable_request_decoding",
    "disable_response_encoding",
    "set_response_content_type",
    "force_response_encoding",
    "encode_collections_with_override",
]
