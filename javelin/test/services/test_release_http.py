from __future__ import annotations

from javelin.core.result import Err, Ok
from javelin.services.release.http import (
    HttpClient,
    HttpError,
    HttpResponse,
    MockHttpClient,
    RealHttpClient,
    decode_json,
)


def test_mock_answers_in_order_then_404() -> None:
    http = MockHttpClient()
    url = "https://api.github.com/gists/abc"
    http.add_json("GET", url, {"n": 1})
    http.add("GET", url, HttpError(url=url, status=503, message="busy"))

    first = http.request("GET", url)
    second = http.request("GET", url)
    third = http.request("GET", url)

    assert isinstance(first, Ok)
    assert decode_json(url, first.value) == Ok({"n": 1})
    assert second == Err(HttpError(url=url, status=503, message="busy"))
    assert isinstance(third, Err)
    assert third.error.status == 404
    assert http.calls("GET") == [("GET", url)] * 3


def test_mock_records_body_and_headers() -> None:
    http = MockHttpClient()
    http.request("PATCH", "https://x.test", headers={"A": "b"}, body=b'{"k": 1}')

    recorded = http.requests[0]
    assert recorded.headers == {"A": "b"}
    assert recorded.json() == {"k": 1}
    assert http.calls("POST") == []


def test_decode_json_rejects_garbage() -> None:
    result = decode_json("https://x.test", HttpResponse(status=200, body=b"<html>"))

    assert isinstance(result, Err)


def test_http_error_str() -> None:
    assert str(HttpError(url="u", status=500, message="oops")) == "HTTP 500: oops (u)"
    assert str(HttpError(url="u", status=0, message="timed out")) == "timed out (u)"


def test_clients_satisfy_protocol() -> None:
    assert isinstance(MockHttpClient(), HttpClient)
    assert isinstance(RealHttpClient(), HttpClient)
    assert RealHttpClient().user_agent.startswith("javelin/")
