"""Format specifications and registry compilation (re-exports)."""

from .adapters import (
    JSON_FORMAT,
    EncodeJson,
    FormatSpec,
    encode_json,
    make_codec,
    make_json_decoder,
    make_json_encoder,
    no_decoding,
    no_encoding,
    no_protocol_encoding,
    transform_adapter_options,
    with_decoder_opts,
    with_encoder_opts,
    with_formats,
)
from .registry import (
    Adapter,
    CompiledRegistry,
    FormatOptions,
    compile_formats,
    decode_always,
    default_options,
    encode_collections_with_override,
)

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
    "FormatOptions",
    "Adapter",
    "CompiledRegistry",
    "compile_formats",
    "default_options",
    "decode_always",
    "encode_collections_with_override",
]
