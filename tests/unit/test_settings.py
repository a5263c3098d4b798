"""Unit tests for settings, default options and logging setup."""

import logging

import pytest
from pydantic import ValidationError

from muunto.config.settings import Settings
from muunto.exceptions import ConfigurationError, DecodeError
from muunto.formats import compile_formats, default_options
from muunto.utils import logging_config


def test_settings_defaults():
    s = Settings()
    assert s.charset == "utf-8"
    assert s.formats == ["json"]
    assert s.negotiation_cache_size == 1000
    assert s.acceptable_charsets == ["utf-8"]


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("MUUNTO_CHARSET", " UTF-16 ")
    monkeypatch.setenv("MUUNTO_CHARSETS", '["ISO-8859-1", "utf-16", ""]')
    s = Settings()
    assert s.charset == "utf-16"
    assert s.acceptable_charsets == ["utf-16", "iso-8859-1"]


def test_settings_accept_comma_separated_lists(monkeypatch):
    monkeypatch.setenv("MUUNTO_FORMATS", "json")
    monkeypatch.setenv("MUUNTO_CHARSETS", "ISO-8859-1, utf-16,")
    s = Settings()
    assert s.formats == ["json"]
    assert s.charsets == ["iso-8859-1", "utf-16"]

    monkeypatch.setenv("MUUNTO_FORMATS", "json,edn")
    assert Settings().formats == ["json", "edn"]


def test_settings_rejects_bad_cache_size(monkeypatch):
    monkeypatch.setenv("MUUNTO_NEGOTIATION_CACHE_SIZE", "0")
    with pytest.raises(ValidationError):
        Settings()


def test_default_options_compile(monkeypatch):
    monkeypatch.setenv("MUUNTO_CHARSETS", '["iso-8859-1"]')
    registry = compile_formats(default_options(Settings()))
    assert registry.default_format == "json"
    assert registry.consumes == {"application/json": "json"}
    assert registry.charsets == {"utf-8", "iso-8859-1"}


def test_default_options_with_unknown_format(monkeypatch):
    monkeypatch.setenv("MUUNTO_FORMATS", '["json", "yaml"]')
    with pytest.raises(ConfigurationError):
        compile_formats(default_options(Settings()))


def test_error_serialization():
    err = DecodeError("json", request=None)
    assert err.to_dict() == {
        "error": "DECODE_ERROR",
        "message": "Malformed json request.",
        "details": {"format": "json"},
    }
    assert '"DECODE_ERROR"' in err.to_json()

    conflict = ConfigurationError(
        "content-type refers to multiple formats",
        content_type="application/json",
        formats=["json", "api"],
    )
    assert conflict.to_dict()["details"] == {
        "content_type": "application/json",
        "formats": ["json", "api"],
    }


def test_setup_logging_runs_once(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setattr(logging_config, "_LOGGING_CONFIGURED", False)

    logging_config.setup_logging("DEBUG")
    logging_config.setup_logging("DEBUG")

    assert len(calls) == 1
    assert calls[0]["level"] == logging.DEBUG
    assert logging.getLogger("muunto").level == logging.DEBUG
    logging.getLogger("muunto").setLevel(logging.NOTSET)
