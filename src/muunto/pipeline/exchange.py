"""Request and response model used by the formatting pipeline.

The pipeline only needs a small accessor contract from the hosting
transport (:class:`Exchange`): read and write headers, test for a body,
and read and replace the body. :class:`Request` and :class:`Response`
implement it; transports can convert into them or provide their own
objects satisfying the protocol.
"""

from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    Iterator,
    Mapping,
    Optional,
    Protocol,
    Tuple,
    runtime_checkable,
)


class Headers(MutableMapping):
    """Case-insensitive header mapping that keeps the original names."""

    def __init__(self, data: Optional[Mapping[str, str]] = None, **kwargs: str):
        self._store: Dict[str, Tuple[str, str]] = {}
        self.update(data or {}, **kwargs)

    def __setitem__(self, key: str, value: str) -> None:
        self._store[key.lower()] = (key, value)

    def __getitem__(self, key: str) -> str:
        return self._store[key.lower()][1]

    def __delitem__(self, key: str) -> None:
        del self._store[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def copy(self) -> "Headers":
        return Headers(dict(self.items()))

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"


@dataclass
class NegotiatedContext:
    """Per-message negotiation state.

    :param content_type_format: Format resolved from Content-Type
    :param accept_format: Format resolved from Accept
    :param charset: Charset of the request body
    :param accept_charset: Charset negotiated from Accept-Charset
    :param adapter: Format that decoded or encoded the body
    :param handled: Set once the body was decoded/encoded, or when the
                    caller disabled formatting for this message
    :param content_type: Per-response content-type override
    :param encode: Per-response request to encode a non-collection body
    """

    content_type_format: Optional[str] = None
    accept_format: Optional[str] = None
    charset: Optional[str] = None
    accept_charset: Optional[str] = None
    adapter: Optional[str] = None
    handled: bool = False
    content_type: Optional[str] = None
    encode: bool = False


@runtime_checkable
class Exchange(Protocol):
    """Accessor contract the pipeline needs from a request or response."""

    context: NegotiatedContext

    def get_header(self, name: str) -> Optional[str]: ...

    def set_header(self, name: str, value: str) -> None: ...

    def has_body(self) -> bool: ...

    def get_body(self) -> Any: ...

    def set_body(self, value: Any) -> None: ...


@dataclass
class Message:
    """Headers, body and negotiation context shared by requests and responses."""

    headers: Headers = field(default_factory=Headers)
    body: Any = None
    body_params: Any = None
    context: NegotiatedContext = field(default_factory=NegotiatedContext)

    def __post_init__(self) -> None:
        if not isinstance(self.headers, Headers):
            self.headers = Headers(self.headers)

    def get_header(self, name: str) -> Optional[str]:
        return self.headers.get(name)

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def has_body(self) -> bool:
        """Whether the message carries a body.

        Only ``None`` means no body; an empty payload is still a body and
        is handed to the decoder.
        """
        return self.body is not None

    def get_body(self) -> Any:
        return self.body

    def set_body(self, value: Any) -> None:
        self.body = value


@dataclass
class Request(Message):
    method: str = "GET"
    uri: str = "/"


@dataclass
class Response(Message):
    status: int = 200


__all__ = [
    "Headers",
    "NegotiatedContext",
    "Exchange",
    "Message",
    "Request",
    "Response",
]
