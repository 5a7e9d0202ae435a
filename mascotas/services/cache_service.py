"""
Redis cache for backend reads (store settings, catalog listings).

Without Redis (disabled in config or unreachable) every read misses and every
write is a no-op, so callers always fall through to the backend.
"""

import logging
import json
from typing import Any, Callable, Dict, Optional

import redis
from redis.exceptions import RedisError
from flask import Flask

logger = logging.getLogger(__name__)


class CacheService:
    """
    Cache-aside store for backend JSON documents.

    Keys pattern: {prefix}:{module}:{key}
    Each module (``settings``, ``catalog``) has its own TTL.
    """

    def __init__(self, app: Optional[Flask] = None):
        self.client: Optional[redis.Redis] = None
        self.enabled: bool = False
        self.prefix: str = "mascotas"
        self.default_ttl: int = 60
        self.module_ttls: Dict[str, int] = {}

        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Connect to Redis using the app config; disable on failure."""
        config = app.config
        self.enabled = config.get('CACHE_ENABLED', True)
        self.prefix = config.get('CACHE_KEY_PREFIX', self.prefix)
        self.default_ttl = config.get('CACHE_DEFAULT_TTL', self.default_ttl)
        self.module_ttls = {
            'settings': config.get('CACHE_SETTINGS_TTL', self.default_ttl),
            'catalog': config.get('CACHE_CATALOG_TTL', self.default_ttl),
        }

        if not self.enabled:
            logger.info("[CACHE] Disabled via config")
            return

        redis_url = config.get('REDIS_URL', 'redis://redis:6379/0')
        try:
            self.client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=3,
                socket_timeout=3,
                retry_on_timeout=True,
                health_check_interval=30
            )
            self.client.ping()
            logger.info(f"[CACHE] Connected to {redis_url}")
        except RedisError as e:
            logger.warning(f"[CACHE] Redis unavailable ({e}); running without cache")
            self.enabled = False
            self.client = None

    def is_available(self) -> bool:
        if not self.enabled or self.client is None:
            return False
        try:
            return bool(self.client.ping())
        except RedisError:
            return False

    def key(self, module: str, key: str) -> str:
        return f"{self.prefix}:{module}:{key}"

    def ttl_for(self, module: str, ttl: Optional[int] = None) -> int:
        return ttl or self.module_ttls.get(module) or self.default_ttl

    def get(self, module: str, key: str) -> Optional[Any]:
        if not self.is_available():
            return None
        try:
            raw = self.client.get(self.key(module, key))
            return json.loads(raw) if raw is not None else None
        except (RedisError, ValueError) as e:
            logger.warning(f"[CACHE] Read failed for {module}:{key}: {e}")
            return None

    def set(self, module: str, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not self.is_available():
            return False
        try:
            self.client.setex(self.key(module, key), self.ttl_for(module, ttl), json.dumps(value))
            return True
        except (RedisError, TypeError) as e:
            logger.warning(f"[CACHE] Write failed for {module}:{key}: {e}")
            return False

    def memoize(self, module: str, key: str, loader_fn: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value, or load it, store it and return it."""
        cached = self.get(module, key)
        if cached is not None:
            return cached
        value = loader_fn()
        self.set(module, key, value, ttl)
        return value

    def invalidate_module(self, module: str) -> int:
        """Drop every key of a module (after an admin write)."""
        if not self.is_available():
            return 0
        pattern = self.key(module, "*")
        try:
            keys = list(self.client.scan_iter(match=pattern, count=100))
            if keys:
                self.client.delete(*keys)
                logger.info(f"[CACHE] Invalidated {pattern} ({len(keys)} keys)")
            return len(keys)
        except RedisError as e:
            logger.warning(f"[CACHE] Invalidate failed for {pattern}: {e}")
            return 0


def init_cache(app: Flask) -> CacheService:
    """Create the cache service and register it as app.extensions['cache']."""
    cache = CacheService(app)
    app.extensions["cache"] = cache
    return cache
