"""Tests for AsyncApiClient."""

from __future__ import annotations

import httpx
import pytest

from gensaga.core.api.http.client import AsyncApiClient
from gensaga.core.api.http.config import HttpClientConfig
from gensaga.core.api.http.errors import (
    AuthError,
    ClientError,
    DecodeError,
    NetworkError,
    RateLimitError,
    ServerError,
    TimeoutError,
)


def _client(handler) -> AsyncApiClient:
    cfg = HttpClientConfig(base_url="https://example.test/")
    return AsyncApiClient(cfg, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_request_json_success() -> None:
    """Test successful request decodes JSON."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/ping"
        return httpx.Response(200, json={"ok": True})

    async with _client(handler) as c:
        assert await c.request_json("GET", "/v1/ping") == {"ok": True}


@pytest.mark.asyncio
async def test_bearer_token_and_params() -> None:
    """Test token is sent per request and None params are dropped."""
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={})

    async with _client(handler) as c:
        await c.request_json(
            "GET", "status", params={"requestId": "abc", "endpoint": None}, token="tok_123"
        )

    assert seen["auth"] == "Bearer tok_123"
    assert seen["params"] == {"requestId": "abc"}


@pytest.mark.asyncio
async def test_empty_body_returns_none() -> None:
    """Test 204 and empty bodies decode to None."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    async with _client(handler) as c:
        assert await c.request_json("POST", "/v1/noop", json_body={"a": 1}) is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "error_cls", "transient"),
    [
        (400, ClientError, False),
        (401, AuthError, False),
        (403, AuthError, False),
        (408, ClientError, True),
        (429, RateLimitError, True),
        (500, ServerError, True),
        (503, ServerError, True),
    ],
)
async def test_status_codes_map_to_error_classes(status, error_cls, transient) -> None:
    """Test HTTP error statuses raise categorized errors."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text="nope", headers={"x-request-id": "req-1"})

    async with _client(handler) as c:
        with pytest.raises(error_cls) as exc_info:
            await c.request_json("GET", "/v1/fail")

    err = exc_info.value
    assert err.status_code == status
    assert err.request_id == "req-1"
    assert err.is_transient is transient
    assert f"({status})" in str(err)


@pytest.mark.asyncio
async def test_non_json_body_raises_decode_error() -> None:
    """Test non-JSON content type raises DecodeError."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html></html>", headers={"content-type": "text/html"})

    async with _client(handler) as c:
        with pytest.raises(DecodeError):
            await c.request_json("GET", "/v1/html")


@pytest.mark.asyncio
async def test_connect_error_maps_to_network_error() -> None:
    """Test transport failures raise NetworkError."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as c:
        with pytest.raises(NetworkError) as exc_info:
            await c.request_json("GET", "/v1/down")

    assert exc_info.value.status_code is None
    assert exc_info.value.is_transient


@pytest.mark.asyncio
async def test_timeout_maps_to_timeout_error() -> None:
    """Test httpx timeouts raise TimeoutError."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    async with _client(handler) as c:
        with pytest.raises(TimeoutError):
            await c.request_json("GET", "/v1/slow")


def test_config_rejects_non_http_base_url() -> None:
    """Test base_url validation."""
    with pytest.raises(ValueError):
        HttpClientConfig(base_url="ftp://example.test")


def test_config_strips_trailing_slash() -> None:
    """Test base_url is normalized."""
    assert HttpClientConfig.with_timeout("https://example.test/", 10).base_url == (
        "https://example.test"
    )
