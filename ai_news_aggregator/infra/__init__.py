"""Infra layer utilities (identity pools, response cache)."""

from .cache import CacheEntry, ResponseCache
from .identity_pool import Identity, IdentityPool

__all__ = ["CacheEntry", "Identity", "IdentityPool", "ResponseCache"]
