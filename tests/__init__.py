"""Test suite for gensaga.

- unit/: Unit tests per component, plus end-to-end session tests against
  the in-memory backend
"""
