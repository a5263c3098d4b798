"""Handler middleware applying the formatting pipeline.

A handler is any callable taking a :class:`~muunto.pipeline.Request`
and returning a :class:`~muunto.pipeline.Response` (or a bare body,
which is wrapped into a 200 response).
"""

import logging
from typing import Any, Callable, Optional

from ..exceptions import DecodeError
from ..formats.registry import CompiledRegistry
from ..negotiation import Negotiator, create_negotiation_cache
from ..pipeline import (
    Request,
    Response,
    disable_response_encoding,
    format_request,
    format_response,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Any]


class FormatMiddleware:
    """Decode the request body, call the handler, encode the response body.

    :param handler: Downstream handler
    :type handler: Callable[[Request], Any]
    :param registry: Compiled format registry
    :type registry: CompiledRegistry
    :param negotiator: Negotiator bound to ``registry``; a
                       :class:`~muunto.negotiation.NegotiationCache` sized
                       from settings is created when omitted
    :type negotiator: Optional[Negotiator]
    """

    def __init__(
        self,
        handler: Handler,
        registry: CompiledRegistry,
        negotiator: Optional[Negotiator] = None,
    ):
        self.handler = handler
        self.registry = registry
        self.negotiator = negotiator or create_negotiation_cache(registry)

    def __call__(self, request: Request) -> Response:
        request = format_request(self.registry, request, self.negotiator)
        result = self.handler(request)
        response = result if isinstance(result, Response) else Response(body=result)
        return format_response(self.registry, request, response)


class DecodeErrorMiddleware:
    """Translate :class:`~muunto.exceptions.DecodeError` into a client error.

    The error response carries the JSON form of the error and is marked
    as handled so that no outer formatting re-encodes it.

    :param handler: Downstream handler, typically a :class:`FormatMiddleware`
    :type handler: Callable[[Request], Response]
    :param status: HTTP status of the error response
    :type status: int
    """

    def __init__(self, handler: Handler, status: int = 400):
        self.handler = handler
        self.status = status

    def __call__(self, request: Request) -> Response:
        try:
            return self.handler(request)
        except DecodeError as e:
            logger.info(f"Rejecting malformed {e.format} request: {e.__cause__}")
            response = Response(
                status=self.status,
                headers={"Content-Type": "application/json; charset=utf-8"},
                body=e.to_json().encode("utf-8"),
            )
            return disable_response_encoding(response)


def wrap_format(handler: Handler, registry: CompiledRegistry) -> Handler:
    """Wrap ``handler`` with decode error translation and formatting.

    :param handler: Downstream handler
    :type handler: Callable[[Request], Any]
    :param registry: Compiled format registry
    :type registry: CompiledRegistry
    :return: Wrapped handler
    :rtype: Callable[[Request], Response]
    """
    return DecodeErrorMiddleware(FormatMiddleware(handler, registry))


__all__ = ["FormatMiddleware", "DecodeErrorMiddleware", "wrap_format"]
