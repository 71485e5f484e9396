"""Utility functions for HTTP client operations."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping

logger = logging.getLogger("gensaga.core.api.http")


def safe_snippet(content: bytes, limit: int) -> str:
    """Extract safe text snippet from response content for logging.

    Args:
        content: Response body bytes
        limit: Maximum number of bytes to include

    Returns:
        Truncated, decoded text snippet
    """
    if not content:
        return ""
    return content[:limit].decode("utf-8", errors="replace")


def get_request_id(headers: Mapping[str, str]) -> str | None:
    """Extract request ID from common tracing headers (case-insensitive)."""
    for key in ("x-request-id", "x-correlation-id", "request-id", "trace-id"):
        for hk, hv in headers.items():
            if hk.lower() == key:
                return hv
    return None


def redact_headers(headers: Mapping[str, str], redact: tuple[str, ...]) -> dict[str, str]:
    """Redact sensitive headers for logging.

    Args:
        headers: Headers to redact
        redact: Header names to redact (case-insensitive)

    Returns:
        Headers with sensitive values replaced with "***REDACTED***"
    """
    red = {v.lower() for v in redact}
    return {k: ("***REDACTED***" if k.lower() in red else v) for k, v in headers.items()}


def log_request(method: str, url: str, headers: Mapping[str, str], redact: tuple[str, ...]) -> float:
    """Log outgoing request with redacted headers and return the start timestamp."""
    start = time.perf_counter()
    logger.debug(
        "HTTP request",
        extra={"method": method, "url": url, "headers": redact_headers(headers, redact)},
    )
    return start


def log_response(method: str, url: str, status_code: int, start: float) -> None:
    """Log response status with elapsed time."""
    logger.debug(
        "HTTP response",
        extra={
            "method": method,
            "url": url,
            "status_code": status_code,
            "elapsed_ms": int((time.perf_counter() - start) * 1000),
        },
    )
