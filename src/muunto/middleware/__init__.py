"""Middleware module for muunto.

This module provides handler middleware applying the format
negotiation pipeline:

- Request body decoding and response body encoding
- Decode error translation into client error responses
"""

from .format import DecodeErrorMiddleware, FormatMiddleware, wrap_format

__all__ = ["FormatMiddleware", "DecodeErrorMiddleware", "wrap_format"]
