"""In-memory response cache for generated reviews."""

from .manager import CacheManager
from .models import CacheEntry, make_fingerprint

__all__ = ["CacheEntry", "CacheManager", "make_fingerprint"]
