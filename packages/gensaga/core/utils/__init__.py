"""Shared utilities for gensaga."""

from gensaga.core.utils.logging import (
    StructuredJSONFormatter,
    configure_logging,
    mask_token,
)

__all__ = [
    "StructuredJSONFormatter",
    "configure_logging",
    "mask_token",
]
