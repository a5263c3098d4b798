"""Format specifications and the built-in JSON adapter.

A :class:`FormatSpec` describes one serialization format: the content
types it answers to and how to build its decoder and encoder. Specs are
plain configuration; :func:`muunto.formats.registry.compile_formats`
turns a selection of them into lookup tables.

Decoder and encoder specs take one of two shapes:

- a callable, used as-is;
- a ``(factory,)`` or ``(factory, options)`` tuple, where
  ``factory(**options)`` returns the callable. The format spec's
  ``decoder_opts``/``encoder_opts`` are merged over ``options``.

This module also holds the pure option transformers used to derive
variants of a :class:`~muunto.formats.registry.FormatOptions`.
"""

import json
import re
from dataclasses import dataclass, replace
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Iterable,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
    runtime_checkable,
)

from ..exceptions import ConfigurationError

if TYPE_CHECKING:
    from .registry import FormatOptions

ContentTypeValue = Union[str, re.Pattern]
CodecSpec = Union[Callable[..., Any], Tuple[Any, ...]]


def _flatten(value: Any) -> Iterable[ContentTypeValue]:
    if isinstance(value, str) or hasattr(value, "search"):
        yield value
    elif value is not None:
        for item in value:
            yield from _flatten(item)


@dataclass(frozen=True)
class FormatSpec:
    """Declarative description of one serialization format.

    :param format: Content-type literals (``str``) and patterns
                   (compiled ``re.Pattern``), in declaration order
    :param decoder: Optional decoder spec
    :param decoder_opts: Options merged into the decoder factory options
    :param encoder: Optional encoder spec
    :param encoder_opts: Options merged into the encoder factory options
    :param encode_protocol: Optional ``(capability, render)`` pair; values
                            that are instances of ``capability`` are
                            encoded with ``render(value)``
    """

    format: Tuple[ContentTypeValue, ...] = ()
    decoder: Optional[CodecSpec] = None
    decoder_opts: Optional[Mapping[str, Any]] = None
    encoder: Optional[CodecSpec] = None
    encoder_opts: Optional[Mapping[str, Any]] = None
    encode_protocol: Optional[Tuple[type, Callable[[Any], Any]]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "format", tuple(_flatten(self.format)))

    @property
    def literals(self) -> Tuple[str, ...]:
        return tuple(t for t in self.format if isinstance(t, str))

    @property
    def patterns(self) -> Tuple[re.Pattern, ...]:
        return tuple(t for t in self.format if not isinstance(t, str))


def make_codec(spec: CodecSpec, spec_opts: Optional[Mapping[str, Any]] = None):
    """Materialize a decoder or encoder spec into a callable.

    :param spec: Callable or ``(factory, options)`` tuple
    :type spec: CodecSpec
    :param spec_opts: Options merged over the tuple's options
    :type spec_opts: Optional[Mapping[str, Any]]
    :return: The decode or encode function
    :rtype: Callable
    :raises ConfigurationError: If the spec has neither shape
    """
    if isinstance(spec, tuple):
        if not spec or len(spec) > 2 or not callable(spec[0]):
            raise ConfigurationError(f"Invalid codec spec: {spec!r}")
        factory = spec[0]
        opts = dict(spec[1]) if len(spec) == 2 and spec[1] else {}
        opts.update(spec_opts or {})
        return factory(**opts)
    if callable(spec):
        return spec
    raise ConfigurationError(f"Invalid codec spec: {spec!r}")


# =============================================================================
# JSON
# =============================================================================


@runtime_checkable
class EncodeJson(Protocol):
    """Capability of values that render themselves as JSON bytes."""

    def encode_json(self) -> bytes: ...


def encode_json(value: EncodeJson) -> bytes:
    return value.encode_json()


def make_json_decoder(**options: Any) -> Callable[[Any], Any]:
    """Create a JSON decoder.

    The decoder accepts ``bytes``, ``str`` or a readable stream. Options
    are passed through to :func:`json.loads`.
    """

    def decode(data: Any) -> Any:
        if hasattr(data, "read"):
            data = data.read()
        return json.loads(data, **options)

    return decode


def make_json_encoder(
    encoding: str = "utf-8", **options: Any
) -> Callable[[Any], bytes]:
    """Create a JSON encoder producing bytes.

    :param encoding: Text encoding of the produced bytes
    :type encoding: str
    :param options: Passed through to :func:`json.dumps`
    :return: Encode function
    :rtype: Callable[[Any], bytes]
    """

    def encode(data: Any) -> bytes:
        return json.dumps(data, **options).encode(encoding)

    return encode


JSON_FORMAT = FormatSpec(
    format=("application/json", re.compile(r"application/(.+\+)?json")),
    decoder=(make_json_decoder, {}),
    encoder=(make_json_encoder, {}),
    encode_protocol=(EncodeJson, encode_json),
)


# =============================================================================
# Option transformers
# =============================================================================


def transform_adapter_options(
    f: Callable[[FormatSpec], FormatSpec], options: "FormatOptions"
) -> "FormatOptions":
    """Apply ``f`` to every format spec of ``options``."""
    return replace(options, adapters={k: f(v) for k, v in options.adapters.items()})


def no_decoding(options: "FormatOptions") -> "FormatOptions":
    """Remove the decoders of all formats."""
    return transform_adapter_options(
        lambda spec: replace(spec, decoder=None, decoder_opts=None), options
    )


def no_encoding(options: "FormatOptions") -> "FormatOptions":
    """Remove the encoders of all formats."""
    return transform_adapter_options(
        lambda spec: replace(spec, encoder=None, encoder_opts=None), options
    )


def no_protocol_encoding(options: "FormatOptions") -> "FormatOptions":
    """Stop values from rendering themselves; always use the plain encoder."""
    return transform_adapter_options(
        lambda spec: replace(spec, encode_protocol=None), options
    )


def _update_spec(options: "FormatOptions", fmt: str, **changes: Any) -> "FormatOptions":
    if fmt not in options.adapters:
        raise ConfigurationError(
            f"no adapter for: {fmt}",
            formats=[fmt],
            supported=list(options.adapters),
        )
    adapters = dict(options.adapters)
    adapters[fmt] = replace(adapters[fmt], **changes)
    return replace(options, adapters=adapters)


def with_decoder_opts(
    options: "FormatOptions", fmt: str, opts: Mapping[str, Any]
) -> "FormatOptions":
    """Set the decoder factory options of one format."""
    return _update_spec(options, fmt, decoder_opts=dict(opts))


def with_encoder_opts(
    options: "FormatOptions", fmt: str, opts: Mapping[str, Any]
) -> "FormatOptions":
    """Set the encoder factory options of one format."""
    return _update_spec(options, fmt, encoder_opts=dict(opts))


def with_formats(options: "FormatOptions", formats: Sequence[str]) -> "FormatOptions":
    """Select the active formats; the first one becomes the default."""
    return replace(options, formats=tuple(formats))


__all__ = [
    "FormatSpec",
    "make_codec",
    "EncodeJson",
    "encode_json",
    "make_json_decoder",
    "make_json_encoder",
    "JSON_FORMAT",
    "transform_adapter_options",
    "no_decoding",
    "no_encoding",
    "no_protocol_encoding",
    "with_decoder_opts",
    "with_encoder_opts",
    "with_formats",
]
