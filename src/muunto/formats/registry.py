"""Format registry compilation.

This module turns a declarative :class:`FormatOptions` into a
:class:`CompiledRegistry`: the lookup tables consulted by every
negotiation function and by the request/response pipeline. The
registry is built explicitly and is immutable afterwards, so one
instance can be shared by all concurrent exchanges and several can
coexist (e.g. in tests) with different configurations.
"""

import logging
from collections.abc import Mapping as MappingABC, Set as SetABC
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from ..exceptions import ConfigurationError
from .adapters import JSON_FORMAT, FormatSpec, make_codec

logger = logging.getLogger(__name__)


def decode_always(request: Any) -> bool:
    return True


def encode_collections_with_override(request: Any, response: Any) -> bool:
    """Default encode predicate.

    A response is encoded when it explicitly asks for it through
    ``response.context.encode`` or when its body is collection-shaped
    (a mapping, list, tuple or set). Strings and bytes are left alone.

    :param request: The request of the exchange (unused)
    :param response: The response to inspect
    :return: Whether the response body should be encoded
    :rtype: bool
    """
    context = getattr(response, "context", None)
    if context is not None and context.encode:
        return True
    body = response.get_body()
    return isinstance(body, (MappingABC, list, tuple, SetABC))


@dataclass(frozen=True)
class FormatOptions:
    """Declarative format configuration.

    :param adapters: Format specs keyed by format identifier
    :param formats: Identifiers to activate, in priority order
    :param charset: Default charset
    :param charsets: Acceptable charsets for Accept-Charset negotiation;
                     defaults to the default charset only
    :param decode: Predicate ``request -> bool`` gating request decoding
    :param encode: Predicate ``(request, response) -> bool`` gating
                   response encoding
    """

    adapters: Mapping[str, FormatSpec] = field(default_factory=dict)
    formats: Sequence[str] = ()
    charset: str = "utf-8"
    charsets: Optional[FrozenSet[str]] = None
    decode: Callable[[Any], bool] = decode_always
    encode: Callable[[Any, Any], bool] = encode_collections_with_override


@dataclass(frozen=True)
class Adapter:
    """Compiled decode/encode functions of one format.

    ``capability`` is the class of values that render themselves with
    ``encode``, or None when the format has no encode protocol.
    """

    decode: Optional[Callable[[Any], Any]] = None
    encode: Optional[Callable[[Any], Any]] = None
    capability: Optional[type] = None


@dataclass(frozen=True, eq=False)
class CompiledRegistry:
    """Lookup tables compiled from a :class:`FormatOptions`.

    :param consumes: Content-type literal to format identifier
    :param produces: Format identifier to canonical content type
    :param matchers: Ordered (format identifier, pattern) fallbacks
    :param adapters: Format identifier to compiled :class:`Adapter`
    :param default_format: First selected format identifier
    :param formats: Selected format identifiers in priority order
    :param charset: Default charset
    :param charsets: Acceptable charsets
    :param decode: Request decode predicate
    :param encode: Response encode predicate
    """

    consumes: Mapping[str, str]
    produces: Mapping[str, str]
    matchers: Tuple[Tuple[str, Any], ...]
    adapters: Mapping[str, Adapter]
    default_format: str
    formats: Tuple[str, ...]
    charset: str
    charsets: FrozenSet[str]
    decode: Callable[[Any], bool] = decode_always
    encode: Callable[[Any, Any], bool] = encode_collections_with_override

    def decoder(self, fmt: Optional[str]) -> Optional[Callable[[Any], Any]]:
        adapter = self.adapters.get(fmt) if fmt else None
        return adapter.decode if adapter else None

    def encoder(self, fmt: Optional[str]) -> Optional[Callable[[Any], Any]]:
        adapter = self.adapters.get(fmt) if fmt else None
        return adapter.encode if adapter else None

    def renders_itself(self, fmt: Optional[str], value: Any) -> bool:
        """Whether ``value`` implements the encode protocol of ``fmt``."""
        adapter = self.adapters.get(fmt) if fmt else None
        return bool(
            adapter is not None
            and adapter.encode is not None
            and adapter.capability is not None
            and isinstance(value, adapter.capability)
        )

    def decode_body(self, fmt: str, data: Any) -> Any:
        """Decode ``data`` with the format's decoder, or return None."""
        decode = self.decoder(fmt)
        return decode(data) if decode else None

    def encode_body(self, fmt: str, data: Any) -> Any:
        """Encode ``data`` with the format's encoder, or return None."""
        encode = self.encoder(fmt)
        return encode(data) if encode else None


def _content_type_to_format(
    format_types: List[Tuple[str, FormatSpec]],
) -> Dict[str, str]:
    consumes: Dict[str, str] = {}
    for fmt, spec in format_types:
        for content_type in spec.literals:
            existing = consumes.get(content_type)
            if existing is not None and existing != fmt:
                logger.error(
                    "Content type %s claimed by formats %s and %s",
                    content_type,
                    existing,
                    fmt,
                )
                raise ConfigurationError(
                    "content-type refers to multiple formats",
                    content_type=content_type,
                    formats=[fmt, existing],
                )
            consumes[content_type] = fmt
    return consumes


def _format_to_content_type(
    format_types: List[Tuple[str, FormatSpec]], charset: str
) -> Dict[str, str]:
    produces: Dict[str, str] = {}
    for fmt, spec in format_types:
        literals = spec.literals
        if literals and fmt not in produces:
            produces[fmt] = f"{literals[0]}; charset={charset}"
    return produces


def _format_patterns(
    format_types: List[Tuple[str, FormatSpec]],
) -> Tuple[Tuple[str, Any], ...]:
    return tuple(
        (fmt, pattern) for fmt, spec in format_types for pattern in spec.patterns
    )


def _protocol_encoder(
    encode: Callable[[Any], Any], capability: type, render: Callable[[Any], Any]
) -> Callable[[Any], Any]:
    def protocol_encode(value: Any) -> Any:
        if isinstance(value, capability):
            return render(value)
        return encode(value)

    return protocol_encode


def _compile_adapter(spec: FormatSpec) -> Adapter:
    decode = make_codec(spec.decoder, spec.decoder_opts) if spec.decoder else None
    encode = None
    capability = None
    if spec.encoder:
        encode = make_codec(spec.encoder, spec.encoder_opts)
        if spec.encode_protocol:
            capability, render = spec.encode_protocol
            encode = _protocol_encoder(encode, capability, render)
    return Adapter(decode=decode, encode=encode, capability=capability)


def compile_formats(options: FormatOptions) -> CompiledRegistry:
    """Compile format options into a registry.

    Only the adapters named in ``options.formats`` are compiled, in that
    order; the first one becomes the default format.

    :param options: Declarative format configuration
    :type options: FormatOptions
    :return: Immutable compiled registry
    :rtype: CompiledRegistry
    :raises ConfigurationError: If no format is selected, a selected
                                format has no adapter spec, or a content
                                type is claimed by two formats
    """
    selected = list(dict.fromkeys(f for f in options.formats if f))
    if not selected:
        raise ConfigurationError(
            "no formats selected", supported=list(options.adapters)
        )
    for fmt in selected:
        if fmt not in options.adapters:
            logger.error("No adapter for format %s", fmt)
            raise ConfigurationError(
                f"no adapter for: {fmt}",
                formats=[fmt],
                supported=list(options.adapters),
            )

    logger.debug("Compiling formats: %s", ", ".join(selected))
    format_types = [(fmt, options.adapters[fmt]) for fmt in selected]
    charset = options.charset.strip().lower()
    charsets = frozenset(c.lower() for c in (options.charsets or ())) | {charset}

    registry = CompiledRegistry(
        consumes=MappingProxyType(_content_type_to_format(format_types)),
        produces=MappingProxyType(_format_to_content_type(format_types, charset)),
        matchers=_format_patterns(format_types),
        adapters=MappingProxyType(
            {fmt: _compile_adapter(spec) for fmt, spec in format_types}
        ),
        default_format=selected[0],
        formats=tuple(selected),
        charset=charset,
        charsets=charsets,
        decode=options.decode,
        encode=options.encode,
    )
    logger.info(
        f"Compiled {len(selected)} format(s), default {registry.default_format}, "
        f"{len(registry.consumes)} content type(s), "
        f"{len(registry.matchers)} pattern(s)"
    )
    return registry


def default_options(settings: Optional[Any] = None) -> FormatOptions:
    """Build the default format options.

    The JSON adapter is always available; the active formats and the
    charsets come from :class:`~muunto.config.settings.Settings`.

    :param settings: Settings instance, defaults to the global settings
    :type settings: Optional[Settings]
    :return: Format options ready for :func:`compile_formats`
    :rtype: FormatOptions
    """
    if settings is None:
        from ..config.settings import settings

    return FormatOptions(
        adapters={"json": JSON_FORMAT},
        formats=tuple(settings.formats),
        charset=settings.charset,
        charsets=frozenset(settings.acceptable_charsets),
    )


__all__ = [
    "FormatOptions",
    "Adapter",
    "CompiledRegistry",
    "compile_formats",
    "default_options",
    "decode_always",
    "encode_collections_with_override",
]
