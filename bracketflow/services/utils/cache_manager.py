"""
CacheManager - in-process cache for derived standings data
In-memory caching with TTL support, key and pattern invalidation
"""

import threading
import time
from typing import Any, Dict, Optional, Callable
from functools import wraps
import logging

logger = logging.getLogger(__name__)


class CacheManager:
    """
    Cache manager for the service layer

    Features:
    - In-memory caching with TTL
    - Readable cache keys ("standings:pool:<id>")
    - Key and pattern invalidation
    - Hit/miss metrics

    Entries are guarded by a lock because debounce timers invalidate from
    background threads.
    """

    def __init__(self, default_ttl: int = 300, clock: Callable[[], float] = time.time):
        """
        Initialize the cache manager

        Args:
            default_ttl: Default TTL in seconds (5 minutes)
            clock: Time source, seconds as float
        """
        self.cache: Dict[str, Dict[str, Any]] = {}
        self.default_ttl = default_ttl
        self.clock = clock
        self.hit_count = 0
        self.miss_count = 0
        self.invalidation_count = 0
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[Any]:
        """
        Get a value from the cache

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        with self._lock:
            if key in self.cache:
                entry = self.cache[key]
                if entry['expires_at'] > self.clock():
                    self.hit_count += 1
                    logger.debug(f"Cache hit: {key}")
                    return entry['value']
                else:
                    # expired
                    del self.cache[key]

            self.miss_count += 1
            logger.debug(f"Cache miss: {key}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None):
        """
        Store a value in the cache

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time-to-live in seconds
        """
        ttl = ttl or self.default_ttl
        now = self.clock()
        with self._lock:
            self.cache[key] = {
                'value': value,
                'expires_at': now + ttl,
                'created_at': now
            }
        logger.debug(f"Cache set: {key} (TTL: {ttl}s)")

    def get_or_compute(self, key: str, compute: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """
        Return the cached value for key, computing and storing it on a miss

        Args:
            key: Cache key
            compute: Zero-argument function producing the value
            ttl: Time-to-live in seconds

        Returns:
            Cached or freshly computed value
        """
        value = self.get(key)
        if value is not None:
            return value
        value = compute()
        if value is not None:
            self.set(key, value, ttl)
        return value

    def invalidate(self, key: str) -> int:
        """
        Invalidate one key and every key nested below it ("key:...")

        Args:
            key: Cache key, e.g. "standings:division:<id>"

        Returns:
            Number of removed entries
        """
        nested_prefix = f"{key}:"
        with self._lock:
            keys_to_delete = [k for k in self.cache if k == key or k.startswith(nested_prefix)]
            for k in keys_to_delete:
                del self.cache[k]
            self.invalidation_count += len(keys_to_delete)
        logger.info(f"Invalidated {len(keys_to_delete)} cache entries for key: {key}")
        return len(keys_to_delete)

    def invalidate_pattern(self, pattern: Optional[str] = None) -> int:
        """
        Invalidate cache entries

        Args:
            pattern: Optional - only delete keys containing this substring

        Returns:
            Number of removed entries
        """
        with self._lock:
            if pattern:
                keys_to_delete = [k for k in self.cache if pattern in k]
                for key in keys_to_delete:
                    del self.cache[key]
                count = len(keys_to_delete)
            else:
                count = len(self.cache)
                self.cache.clear()
            self.invalidation_count += count
        if pattern:
            logger.info(f"Invalidated {count} cache entries with pattern: {pattern}")
        else:
            logger.info(f"Invalidated all {count} cache entries")
        return count

    def get_stats(self) -> Dict[str, Any]:
        """
        Return cache statistics

        Returns:
            Dictionary with statistics
        """
        with self._lock:
            total_requests = self.hit_count + self.miss_count
            hit_rate = (self.hit_count / total_requests * 100) if total_requests > 0 else 0
            now = self.clock()
            active = sum(1 for entry in self.cache.values() if entry['expires_at'] > now)

            return {
                'entries': len(self.cache),
                'active_entries': active,
                'expired_entries': len(self.cache) - active,
                'hits': self.hit_count,
                'misses': self.miss_count,
                'hit_rate': f"{hit_rate:.2f}%",
                'invalidations': self.invalidation_count
            }

    @staticmethod
    def generate_key(*args, **kwargs) -> str:
        """
        Build a readable cache key from arguments

        Returns:
            Colon-separated key, e.g. "div-1:Team A"
        """
        key_parts = [str(arg) for arg in args]
        for k, v in sorted(kwargs.items()):
            key_parts.append(f"{k}={v}")
        return ":".join(key_parts)


def cached(ttl: Optional[int] = None, key_prefix: Optional[str] = None):
    """
    Decorator caching method results in self.cache_manager

    Args:
        ttl: Time-to-live in seconds
        key_prefix: Prefix for cache keys

    Example:
        @cached(key_prefix="standings:pool")
        def get_pool_standings(self, pool_id):
            return expensive_calculation()
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            if getattr(self, 'cache_manager', None) is None:
                return func(self, *args, **kwargs)

            prefix = key_prefix or f"{self.__class__.__name__}.{func.__name__}"
            cache_key = f"{prefix}:{CacheManager.generate_key(*args, **kwargs)}"

            cached_value = self.cache_manager.get(cache_key)
            if cached_value is not None:
                return cached_value

            result = func(self, *args, **kwargs)
            self.cache_manager.set(cache_key, result, ttl)
            return result

        return wrapper
    return decorator


class CacheableService:
    """
    Mixin for services with caching support
    """

    def __init__(self, *args, cache_manager: Optional[CacheManager] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.cache_manager = cache_manager or CacheManager()

    def invalidate_cache(self, pattern: Optional[str] = None):
        """
        Invalidate service cache

        Args:
            pattern: Optional - only delete keys containing this substring
        """
        if getattr(self, 'cache_manager', None) is not None:
            self.cache_manager.invalidate_pattern(pattern)

    def get_cache_stats(self) -> Dict[str, Any]:
        if getattr(self, 'cache_manager', None) is not None:
            return self.cache_manager.get_stats()
        return {}
