"""HTTPX wrapper used by the provider client and the HTTP record store.

Exposes a small surface:
- AsyncApiClient: async JSON client
- HttpClientConfig: configuration
- Exceptions: ApiError and subclasses
"""

from gensaga.core.api.http.client import AsyncApiClient
from gensaga.core.api.http.config import HttpClientConfig
from gensaga.core.api.http.errors import (
    ApiError,
    AuthError,
    ClientError,
    DecodeError,
    NetworkError,
    RateLimitError,
    ServerError,
    TimeoutError,
    UnexpectedStatusError,
    categorize_status,
)

__all__ = [
    "AsyncApiClient",
    "HttpClientConfig",
    "ApiError",
    "NetworkError",
    "TimeoutError",
    "DecodeError",
    "RateLimitError",
    "AuthError",
    "ClientError",
    "ServerError",
    "UnexpectedStatusError",
    "categorize_status",
]
