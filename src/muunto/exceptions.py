"""Errors raised while compiling format configurations and decoding bodies.

Every error serializes to an ``{"error", "message", "details"}`` object;
:class:`~muunto.middleware.DecodeErrorMiddleware` sends a
:class:`DecodeError` in that form as the body of the rejected request.
"""

import json
from typing import Any, Dict, List, Optional


class MuuntoError(Exception):
    """Base error of format compilation and negotiation.

    :param message: What went wrong, e.g. ``"no adapter for: yaml"``
    :param code: Machine-readable code, defaults to the class name
    :param details: Formats, content types or charsets involved
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form of the error.

        :return: ``error`` (the code), ``message`` and ``details`` keys
        """
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        """Serialize :meth:`to_dict` as JSON."""
        return json.dumps(self.to_dict())


class ConfigurationError(MuuntoError):
    """Raised when a format configuration cannot be compiled.

    This exception is raised at compile time, never while negotiating
    a request: a content type claimed by two formats, a selected format
    without an adapter spec, or an empty format selection.

    :param message: Description of the configuration error
    :param content_type: Optional content type that caused the conflict
    :param formats: Optional format identifiers involved in the error
    :param supported: Optional list of format identifiers that do have adapters
    """

    def __init__(
        self,
        message: str,
        content_type: Optional[str] = None,
        formats: Optional[List[str]] = None,
        supported: Optional[List[str]] = None,
    ):
        details: Dict[str, Any] = {}
        if content_type:
            details["content_type"] = content_type
        if formats:
            details["formats"] = list(formats)
        if supported is not None:
            details["supported"] = list(supported)
        super().__init__(message=message, code="CONFIGURATION_ERROR", details=details)
        self.content_type = content_type
        self.formats = list(formats or [])


class DecodeError(MuuntoError):
    """Raised when a request body is malformed for its negotiated format.

    The original request is attached unchanged so the hosting layer can
    inspect it while translating the failure into a client response.
    The codec exception is available as ``__cause__``.

    :param format: Identifier of the format whose decoder failed
    :param request: The request that was being decoded
    """

    def __init__(self, format: str, request: Any = None):
        super().__init__(
            message=f"Malformed {format} request.",
            code="DECODE_ERROR",
            details={"format": format},
        )
        self.format = format
        self.request = request
