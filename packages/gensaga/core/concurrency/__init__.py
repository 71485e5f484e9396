"""Concurrency primitives."""

from gensaga.core.concurrency.serializer import LocalSerializer

__all__ = ["LocalSerializer"]
