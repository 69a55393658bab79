"""Tests for rcbot.forge.http."""

import json

import pytest

from rcbot.core.result import Err, Ok
from rcbot.forge.http import (
    HttpClient,
    HttpError,
    HttpRequest,
    HttpResponse,
    MockHttpClient,
    next_page_url,
)


class TestHttpError:
    def test_str_with_status(self) -> None:
        error = HttpError(url="https://api.github.com/x", status=422, message="Reference already exists")
        assert str(error) == "HTTP 422: Reference already exists (https://api.github.com/x)"

    def test_str_without_status(self) -> None:
        error = HttpError(url="https://example.com", status=0, message="Timeout")
        assert str(error) == "Timeout (https://example.com)"

    def test_is_frozen(self) -> None:
        error = HttpError(url="https://example.com", status=404, message="Not Found")
        with pytest.raises(AttributeError):
            error.status = 500  # type: ignore[misc]


class TestHttpRequest:
    def test_body_is_json_encoded(self) -> None:
        req = HttpRequest(method="POST", url="https://x", payload={"ref": "refs/heads/a"})
        body = req.body_bytes()
        assert body is not None
        assert json.loads(body) == {"ref": "refs/heads/a"}

    def test_no_payload_no_body(self) -> None:
        assert HttpRequest(method="GET", url="https://x").body_bytes() is None


class TestMockHttpClient:
    def test_isinstance_check(self) -> None:
        assert isinstance(MockHttpClient(), HttpClient)

    def test_queued_responses_in_order(self) -> None:
        client = MockHttpClient()
        client.add("GET", "https://x", {"n": 1})
        client.add("GET", "https://x", {"n": 2})

        first = client.send(HttpRequest("GET", "https://x"))
        second = client.send(HttpRequest("GET", "https://x"))
        third = client.send(HttpRequest("GET", "https://x"))

        assert isinstance(first, Ok) and first.value.json() == {"n": 1}
        assert isinstance(second, Ok) and second.value.json() == {"n": 2}
        # Last response is sticky.
        assert isinstance(third, Ok) and third.value.json() == {"n": 2}

    def test_unknown_url_is_404(self) -> None:
        result = MockHttpClient().send(HttpRequest("GET", "https://nowhere"))
        assert isinstance(result, Err)
        assert result.error.status == 404

    def test_error_response(self) -> None:
        client = MockHttpClient()
        client.add_error("POST", "https://x", status=422, message="exists")
        result = client.send(HttpRequest("POST", "https://x"))
        assert result == Err(HttpError(url="https://x", status=422, message="exists"))

    def test_records_requests(self) -> None:
        client = MockHttpClient()
        client.add("POST", "https://x", text="ok")
        client.send(HttpRequest("POST", "https://x", payload={"a": 1}))
        assert client.urls("POST") == ["https://x"]
        assert client.requests[0].payload == {"a": 1}


class TestNextPageUrl:
    def test_finds_next(self) -> None:
        headers = {
            "Link": (
                '<https://api.github.com/repositories/1/tags?page=2>; rel="next", '
                '<https://api.github.com/repositories/1/tags?page=5>; rel="last"'
            )
        }
        assert next_page_url(headers) == "https://api.github.com/repositories/1/tags?page=2"

    def test_header_name_is_case_insensitive(self) -> None:
        headers = {"link": '<https://x?page=3>; rel="next"'}
        assert next_page_url(headers) == "https://x?page=3"

    def test_last_page(self) -> None:
        headers = {"Link": '<https://x?page=1>; rel="prev", <https://x?page=1>; rel="first"'}
        assert next_page_url(headers) is None
        assert next_page_url({}) is None


def test_response_json_raises_on_garbage() -> None:
    with pytest.raises(ValueError):
        HttpResponse(status=200, body="<html>").json()
