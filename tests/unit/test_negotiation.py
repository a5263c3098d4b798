"""Unit tests for content negotiation and the negotiation cache."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from muunto.config.settings import Settings
from muunto.formats import JSON_FORMAT, FormatOptions, compile_formats
from muunto.negotiation import (
    NegotiationCache,
    Negotiator,
    create_negotiation_cache,
    negotiate_accept,
    negotiate_accept_charset,
    negotiate_content_type,
)

ACCEPT_HEADERS = [
    None,
    "",
    "application/json",
    "text/plain, application/json",
    "text/plain",
    "text/html;q=0.9, text/plain;q=0.8",
    "image/gif, image/jpeg, application/msword, */*",
    "application/vnd.api+json",
]


def _registry(charset="utf-8", charsets=None):
    return compile_formats(
        FormatOptions(
            adapters={"json": JSON_FORMAT},
            formats=["json"],
            charset=charset,
            charsets=frozenset(charsets) if charsets else None,
        )
    )


def test_negotiate_content_type(json_registry):
    assert negotiate_content_type(json_registry, "application/json") == ("json", "utf-8")
    assert negotiate_content_type(
        json_registry, "application/json; charset=utf-16"
    ) == ("json", "utf-16")


def test_negotiate_content_type_does_not_use_patterns(json_registry):
    result = negotiate_content_type(json_registry, "application/vnd.api+json")
    assert result.format is None
    assert result.charset == "utf-8"
    assert negotiate_content_type(json_registry, None) == (None, "utf-8")


def test_negotiate_accept_first_consumed_token_wins(multi_registry):
    assert negotiate_accept(multi_registry, "text/plain, application/json") == "text/plain"
    assert negotiate_accept(multi_registry, "image/png, application/json") == "application/json"


def test_negotiate_accept_json_only(json_registry):
    assert (
        negotiate_accept(json_registry, "text/plain, application/json")
        == "application/json"
    )
    assert negotiate_accept(json_registry, "text/plain") == "application/json; charset=utf-8"
    assert negotiate_accept(json_registry, None) == "application/json; charset=utf-8"


def test_negotiate_accept_ignores_quality(multi_registry):
    header = "application/json;q=0.1, text/plain;q=1.0"
    assert negotiate_accept(multi_registry, header) == "application/json"


def test_negotiate_accept_charset_prefers_quality():
    registry = _registry(charsets=["utf-8", "iso-8859-1"])
    assert negotiate_accept_charset(registry, "utf-8, iso-8859-1;q=0.5") == "utf-8"
    assert negotiate_accept_charset(registry, "utf-8;q=0.4, iso-8859-1;q=0.5") == "iso-8859-1"


def test_negotiate_accept_charset_only_acceptable():
    registry = _registry(charset="iso-8859-1")
    assert negotiate_accept_charset(registry, "utf-8, iso-8859-1;q=0.5") == "iso-8859-1"


def test_negotiate_accept_charset_defaults():
    registry = _registry()
    assert negotiate_accept_charset(registry, "koi8-r") == "utf-8"
    assert negotiate_accept_charset(registry, None) == "utf-8"


def test_negotiate_accept_charset_wildcard():
    registry = _registry(charsets=["utf-16"])
    assert negotiate_accept_charset(registry, "iso-8859-1, *;q=0.1") == "utf-8"
    # utf-8 is explicitly refused, the wildcard picks another acceptable one
    assert negotiate_accept_charset(registry, "utf-8;q=0, *") == "utf-16"


def test_negotiator_matches_pure_functions(multi_registry):
    negotiator = Negotiator(multi_registry)
    for header in ACCEPT_HEADERS:
        assert negotiator.negotiate_accept(header) == negotiate_accept(
            multi_registry, header
        )


@pytest.mark.parametrize("max_entries", [1, 2, 1000])
def test_cache_matches_pure_functions(multi_registry, max_entries):
    cache = NegotiationCache(multi_registry, max_entries=max_entries)
    for _ in range(3):
        for header in ACCEPT_HEADERS:
            assert cache.negotiate_accept(header) == negotiate_accept(
                multi_registry, header
            )
            assert cache.negotiate_content_type(header) == negotiate_content_type(
                multi_registry, header
            )
            assert cache.negotiate_accept_charset(header) == negotiate_accept_charset(
                multi_registry, header
            )

    stats = cache.stats()
    assert set(stats) == {"content_type", "accept", "accept_charset"}
    assert all(s["size"] <= max_entries for s in stats.values())


def test_cache_hits_and_clear(json_registry):
    cache = NegotiationCache(json_registry, max_entries=10)
    cache.negotiate_accept("application/json")
    cache.negotiate_accept("application/json")
    assert cache.stats()["accept"]["hits"] == 1

    cache.clear()
    assert cache.stats()["accept"]["size"] == 0


def test_cache_concurrent_negotiation(multi_registry):
    cache = NegotiationCache(multi_registry, max_entries=4)
    headers = ACCEPT_HEADERS * 200

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(cache.negotiate_accept, headers))

    assert results == [negotiate_accept(multi_registry, h) for h in headers]


def test_create_negotiation_cache_uses_settings(json_registry, monkeypatch):
    monkeypatch.setenv("MUUNTO_NEGOTIATION_CACHE_SIZE", "7")
    cache = create_negotiation_cache(json_registry, Settings())
    assert cache.max_entries == 7
    assert cache.stats()["accept"]["max_entries"] == 7
