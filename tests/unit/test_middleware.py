"""Unit tests for the formatting middleware."""

import json

from muunto.middleware import DecodeErrorMiddleware, FormatMiddleware, wrap_format
from muunto.negotiation import NegotiationCache
from muunto.pipeline import Request, Response


def echo_handler(request):
    return Response(status=201, body={"received": request.body_params})


def test_wrap_format_round_trip(json_registry):
    app = wrap_format(echo_handler, json_registry)
    request = Request(
        method="POST",
        headers={"Content-Type": "application/json", "Accept": "application/json"},
        body=b'{"name": "muunto"}',
    )

    response = app(request)

    assert response.status == 201
    assert json.loads(response.body) == {"received": {"name": "muunto"}}
    assert response.get_header("Content-Type") == "application/json; charset=utf-8"


def test_bare_handler_results_become_responses(json_registry):
    app = FormatMiddleware(lambda request: [1, 2, 3], json_registry)
    response = app(Request())
    assert response.status == 200
    assert response.body == b"[1, 2, 3]"


def test_final_bytes_pass_through(json_registry):
    app = FormatMiddleware(
        lambda request: Response(headers={"Content-Type": "text/csv"}, body=b"a,b"),
        json_registry,
    )
    response = app(Request())
    assert response.body == b"a,b"
    assert response.get_header("Content-Type") == "text/csv"


def test_malformed_body_becomes_client_error(json_registry):
    calls = []

    def handler(request):
        calls.append(request)
        return Response(body={})

    app = wrap_format(handler, json_registry)
    response = app(
        Request(
            method="POST",
            headers={"Content-Type": "application/json"},
            body=b"{invalid",
        )
    )

    assert calls == []
    assert response.status == 400
    payload = json.loads(response.body)
    assert payload["error"] == "DECODE_ERROR"
    assert payload["details"] == {"format": "json"}
    assert response.context.handled


def test_decode_error_status_is_configurable(json_registry):
    app = DecodeErrorMiddleware(FormatMiddleware(echo_handler, json_registry), status=422)
    response = app(
        Request(headers={"Content-Type": "application/json"}, body=b"[")
    )
    assert response.status == 422


def test_default_negotiator_is_cached(json_registry):
    app = FormatMiddleware(echo_handler, json_registry)
    assert isinstance(app.negotiator, NegotiationCache)

    for _ in range(2):
        app(Request(headers={"Accept": "application/json"}))
    assert app.negotiator.stats()["accept"]["hits"] == 1
