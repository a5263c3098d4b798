"""Request/response formatting pipeline (re-exports)."""

from .exchange import Exchange, Headers, Message, NegotiatedContext, Request, Response
from .formatter import (
    decode_request,
    disable_request_decoding,
    disable_response_encoding,
    encode_collections_with_override,
    encode_response,
    extract_accept_format,
    extract_content_type_format,
    force_response_encoding,
    format_request,
    format_response,
    set_response_content_type,
)

__all__ = [
    "Exchange",
    "Headers",
    "Message",
    "NegotiatedContext",
    "Request",
    "Response",
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
