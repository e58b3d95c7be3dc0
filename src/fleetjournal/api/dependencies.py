"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from ..models.domain import TokenCache


@lru_cache(maxsize=1)
def get_token_cache() -> TokenCache:
    """GPS session cache shared by requests served by this process.

    Override with ``app.dependency_overrides[get_token_cache]`` to isolate it.
    """
    return TokenCache()
