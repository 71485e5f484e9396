"""Async HTTP client wrapper built on HTTPX.

Provides:
- Structured error handling (status-code categorized exceptions)
- Request/response logging with header redaction
- Per-request bearer tokens (tokens are short-lived and never cached here)
- JSON decoding with DecodeError on malformed bodies

Retries are deliberately absent: generation POSTs are not idempotent, and
status polling carries its own backoff policy.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from gensaga.core.api.http.config import HttpClientConfig
from gensaga.core.api.http.errors import (
    ApiError,
    DecodeError,
    NetworkError,
    TimeoutError,
    categorize_status,
)
from gensaga.core.api.http.utils import get_request_id, log_request, log_response, safe_snippet


def _is_json_response(resp: httpx.Response) -> bool:
    """Check if response content-type indicates JSON."""
    ctype = resp.headers.get("content-type", "")
    return "application/json" in ctype or "+json" in ctype


class AsyncApiClient:
    """Asynchronous HTTP API client.

    Args:
        config: Client configuration
        transport: Optional custom transport (useful for testing)

    Example:
        >>> config = HttpClientConfig(base_url="https://api.example.com")
        >>> async with AsyncApiClient(config) as client:
        ...     data = await client.request_json("GET", "/v1/status", token=token)
    """

    def __init__(
        self,
        config: HttpClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={"User-Agent": config.user_agent, **config.headers},
            timeout=config.timeout,
            limits=config.limits,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncApiClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        token: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Send a request and decode the JSON body.

        Args:
            method: HTTP method
            path: Request path (relative to base_url)
            params: Query parameters (None values are dropped)
            json_body: JSON-serializable request body
            token: Optional bearer token for this request only
            headers: Extra request headers

        Returns:
            Decoded JSON data (dict, list, etc.), or None for empty bodies

        Raises:
            ApiError: On transport failure, non-2xx status or undecodable body
        """
        method_u = method.upper()
        url = f"{self.config.base_url}/{path.lstrip('/')}"

        request_headers: dict[str, str] = {"Content-Type": "application/json"}
        if headers:
            request_headers.update(headers)
        if token:
            request_headers["Authorization"] = f"Bearer {token}"

        clean_params = (
            {k: str(v) for k, v in params.items() if v is not None} if params else None
        )

        start = log_request(method_u, url, request_headers, self.config.redact_headers)
        try:
            resp = await self._client.request(
                method_u,
                url,
                params=clean_params,
                headers=request_headers,
                json=json_body,
            )
        except httpx.TimeoutException as e:
            raise TimeoutError(
                message="Request timed out", method=method_u, url=url, cause=e
            ) from e
        except httpx.RequestError as e:
            raise NetworkError(
                message=f"Network error while sending request: {e}",
                method=method_u,
                url=url,
                cause=e,
            ) from e

        log_response(method_u, url, resp.status_code, start)

        if resp.status_code >= 400:
            exc_cls = categorize_status(resp.status_code)
            raise exc_cls(
                message="HTTP error response",
                method=method_u,
                url=url,
                status_code=resp.status_code,
                request_id=get_request_id(resp.headers),
                response_body_snippet=safe_snippet(
                    resp.content or b"", self.config.max_response_body_for_error
                ),
            )

        return self._decode(resp, method_u, url)

    def _decode(self, resp: httpx.Response, method: str, url: str) -> Any:
        """Decode JSON response with structured error handling."""
        if resp.status_code == 204 or not resp.content:
            return None
        if not _is_json_response(resp):
            raise DecodeError(
                message="Response is not JSON (content-type mismatch)",
                method=method,
                url=url,
                status_code=resp.status_code,
                response_body_snippet=safe_snippet(resp.content, 512),
            )
        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(
                message="Failed to parse JSON response",
                method=method,
                url=url,
                status_code=resp.status_code,
                response_body_snippet=safe_snippet(resp.content, 512),
                cause=e,
            ) from e


__all__ = ["AsyncApiClient", "ApiError"]
