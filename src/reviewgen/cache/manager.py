"""TTL- and size-bounded cache manager for generated review text.

Maps a request fingerprint to the text a provider produced for it. Entries
expire after the configured TTL and the store never holds more than
max_size entries; when full, the oldest-inserted entry is evicted.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from ..config import CacheConfig, ConfigManager
from ..models import GenerationRequest
from ..tasks import PeriodicTask
from .models import CacheEntry, make_fingerprint

logger = logging.getLogger(__name__)


class CacheManager:
    """In-process review cache with lazy expiry and a periodic sweep.

    Reads treat expired entries as misses but leave them in place; the
    sweep started by start_cleanup() removes them. Lookups and writes never
    raise: any internal fault is logged and degrades to a miss.

    Example:
        cache = CacheManager(config_manager)

        text = await cache.check_cache(request)
        if text is None:
            response = await provider.call_primary(request)
            await cache.cache_result(request, response.text)
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize empty cache.

        Args:
            config_manager: Source of cache settings
            clock: Time source in seconds (injectable for tests)
        """
        self.config_manager = config_manager
        self._clock = clock
        # dict preserves insertion order, which drives eviction
        self._store: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._cleanup_task: PeriodicTask | None = None

    @property
    def config(self) -> CacheConfig:
        return self.config_manager.get_cache_config()

    def get_cache_key(self, request: GenerationRequest) -> str:
        return make_fingerprint(request)

    async def check_cache(self, request: GenerationRequest) -> str | None:
        """Return cached text for the request, or None on a miss.

        Args:
            request: Request whose fingerprint is looked up

        Returns:
            Cached text if an unexpired entry exists, None otherwise
        """
        if not self.config.enabled:
            return None

        try:
            key = self.get_cache_key(request)
            entry = self._store.get(key)
            if entry is not None and entry.is_valid(self._clock()):
                self._hits += 1
                logger.debug(f"Cache hit for {request.subject_name!r}")
                return entry.text

            self._misses += 1
            if entry is not None:
                logger.debug(f"Cache entry expired for {request.subject_name!r}")
            else:
                logger.debug(f"Cache miss for {request.subject_name!r}")
            return None

        except Exception as e:
            logger.error(f"Error during cache lookup: {e}")
            # Graceful degradation - a broken cache is a miss
            return None

    async def cache_result(self, request: GenerationRequest, text: str) -> None:
        """Store generated text for the request's fingerprint.

        Evicts the oldest-inserted entry first when the store is full.
        Rewriting an existing fingerprint moves it to the newest position.
        """
        if not self.config.enabled:
            return

        try:
            config = self.config
            key = self.get_cache_key(request)
            now = self._clock()

            if key in self._store:
                del self._store[key]
            elif len(self._store) >= config.max_size:
                oldest = next(iter(self._store))
                del self._store[oldest]
                logger.debug(f"Cache full ({config.max_size}), evicted oldest entry")

            self._store[key] = CacheEntry(
                text=text, expires_at=now + config.ttl, created_at=now
            )
            logger.debug(
                f"Cached result for {request.subject_name!r} "
                f"({len(self._store)}/{config.max_size} entries)"
            )

        except Exception as e:
            logger.error(f"Failed to cache result: {e}")

    def cleanup_cache(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._store.items() if not entry.is_valid(now)]
        for key in expired:
            del self._store[key]
        if expired:
            logger.debug(f"Cache sweep removed {len(expired)} expired entries")
        return len(expired)

    def clear_cache(self) -> None:
        self._store.clear()
        logger.info("Cache cleared")

    def get_cache_stats(self) -> dict[str, Any]:
        """Summarize cache contents and hit rate."""
        now = self._clock()
        valid = sum(1 for entry in self._store.values() if entry.is_valid(now))
        lookups = self._hits + self._misses
        return {
            "enabled": self.config.enabled,
            "total": len(self._store),
            "valid": valid,
            "expired": len(self._store) - valid,
            "max_size": self.config.max_size,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / lookups if lookups else 0.0,
        }

    def start_cleanup(self) -> None:
        """Start the periodic expired-entry sweep on the running loop."""
        if self._cleanup_task is None:
            self._cleanup_task = PeriodicTask(
                "reviewgen-cache-sweep",
                self.config.cleanup_interval,
                self.cleanup_cache,
            )
        self._cleanup_task.start()

    async def stop_cleanup(self) -> None:
        if self._cleanup_task is not None:
            await self._cleanup_task.stop()
            self._cleanup_task = None
