"""Format negotiation for HTTP-like request/response exchanges.

This package compiles a declarative format configuration into lookup
tables, negotiates ``Content-Type``, ``Accept`` and ``Accept-Charset``
headers against it, and decodes request bodies and encodes response
bodies with the negotiated format.

:var __version__: Current package version
:type __version__: str
"""

__version__ = "0.1.0"
