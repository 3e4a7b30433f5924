from __future__ import annotations

import pytest
import requests

from hospital_finder.common.http import (
    HttpClient,
    HttpRequestError,
    RetryableHttpError,
    RetryConfig,
    describe_request,
)


class FakeResponse:
    def __init__(self, status_code: int, payload=None, raises_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._raises_json = raises_json

    def json(self):
        if self._raises_json:
            raise ValueError("bad json")
        return self._payload


def test_http_get_json_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    seen = {}

    def fake_request(**kwargs):
        seen.update(kwargs)
        return FakeResponse(200, {"ok": True})

    monkeypatch.setattr(client.session, "request", fake_request)
    payload = client.get_json("https://example.com", source_type="places", params={"type": "hospital"})

    assert payload == {"ok": True}
    assert seen["params"] == {"type": "hospital"}
    assert seen["headers"]["Accept"] == "application/json"


def test_http_retryable_status_raises_retryable_error(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503, {"x": 1}))

    with pytest.raises(RetryableHttpError):
        client.get_json("https://example.com", source_type="places")


def test_http_retries_until_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0.0, max_wait=0.0))
    responses = iter([FakeResponse(503), FakeResponse(429), FakeResponse(200, {"status": "OK"})])
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: next(responses))

    assert client.get_json("https://example.com", source_type="places") == {"status": "OK"}


def test_http_client_error_is_not_retried(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0.0, max_wait=0.0))
    calls = []

    def fake_request(**_kwargs):
        calls.append(1)
        return FakeResponse(403)

    monkeypatch.setattr(client.session, "request", fake_request)
    with pytest.raises(HttpRequestError):
        client.get_json("https://example.com", source_type="places")
    assert len(calls) == 1


def test_http_invalid_json_raises(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(200, raises_json=True))

    with pytest.raises(HttpRequestError):
        client.get_json("https://example.com", source_type="places")


def test_http_connection_error_is_wrapped(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))

    def boom(**_kwargs):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(client.session, "request", boom)
    with pytest.raises(HttpRequestError):
        client.get_json("https://example.com", source_type="places", params={"key": "secret"})


def test_describe_request_masks_key():
    described = describe_request("https://example.com/search", {"type": "hospital", "key": "secret"})
    assert "secret" not in described
    assert "type=hospital" in described
